from __future__ import annotations

from datetime import date

import pytest

from weatherview.domain.models import Coordinate, FailureReason, Forecast, WeatherSnapshot


class FakeLocationProvider:
    """Records requests; tests decide when and how the delegate is called."""

    def __init__(self, *, coordinate: Coordinate | None = None, reason: FailureReason | None = None):
        self.delegate = None
        self.request_count = 0
        self._coordinate = coordinate
        self._reason = reason

    def request_location(self) -> None:
        self.request_count += 1
        if self._coordinate is not None:
            self.delegate.on_location_resolved(self._coordinate)
        elif self._reason is not None:
            self.delegate.on_location_failed(self._reason)


class FakeWeatherClient:
    def __init__(
        self,
        *,
        snapshot: WeatherSnapshot | None = None,
        reason: FailureReason | None = None,
    ) -> None:
        self.requests: list[Coordinate] = []
        self.completions = []
        self._snapshot = snapshot
        self._reason = reason

    def request_weather(self, coordinate, completion) -> None:
        self.requests.append(coordinate)
        self.completions.append(completion)
        if self._snapshot is not None or self._reason is not None:
            completion(self._snapshot, self._reason)

    def complete(self, snapshot=None, reason=None) -> None:
        self.completions[-1](snapshot, reason)


LONDON = Coordinate(lat=51.5, lon=-0.12, label="London")


def make_snapshot(**overrides) -> WeatherSnapshot:
    values = {
        "location": "London",
        "icon_text": "cloud",
        "temperature": "15°C",
        # 2026-10-19 is a Monday.
        "forecasts": (
            Forecast(date=date(2026, 10, 19), icon_text="sun", max_temp=20, min_temp=10),
        ),
    }
    values.update(overrides)
    return WeatherSnapshot(**values)


@pytest.fixture
def london() -> Coordinate:
    return LONDON


@pytest.fixture
def snapshot() -> WeatherSnapshot:
    return make_snapshot()
