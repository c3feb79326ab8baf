"""Tests for the location -> weather view model."""

from __future__ import annotations

import threading
import time
from concurrent.futures import ThreadPoolExecutor
from datetime import date

import pytest

from conftest import FakeLocationProvider, FakeWeatherClient, make_snapshot
from weatherview.adapters.weather.base import ThreadedWeatherClient
from weatherview.domain.models import (
    FAILURE_MESSAGES,
    FailureReason,
    Forecast,
    ForecastView,
    WeatherViewState,
)
from weatherview.viewmodels.weather import WeatherViewModel


def _make_view_model(provider=None, client=None, dispatcher=None) -> WeatherViewModel:
    return WeatherViewModel(
        location_provider=provider or FakeLocationProvider(),
        weather_client=client or FakeWeatherClient(),
        dispatcher=dispatcher,
    )


def _fields(view_model: WeatherViewModel) -> tuple:
    return (
        view_model.error_message.value,
        view_model.location.value,
        view_model.icon_text.value,
        view_model.temperature.value,
        view_model.forecasts.value,
    )


def test_start_registers_delegate_and_requests_location_once() -> None:
    provider = FakeLocationProvider()
    view_model = _make_view_model(provider=provider)

    view_model.start()

    assert provider.delegate is view_model
    assert provider.request_count == 1


def test_subscribers_see_empty_state_before_any_callback() -> None:
    view_model = _make_view_model()
    view_model.start()

    received = {}
    view_model.error_message.subscribe(lambda value: received.setdefault("error", value))
    view_model.location.subscribe(lambda value: received.setdefault("location", value))
    view_model.icon_text.subscribe(lambda value: received.setdefault("icon", value))
    view_model.temperature.subscribe(lambda value: received.setdefault("temperature", value))
    view_model.forecasts.subscribe(lambda value: received.setdefault("forecasts", value))

    assert received == {
        "error": None,
        "location": "",
        "icon": "",
        "temperature": "",
        "forecasts": [],
    }


def test_resolved_location_is_forwarded_to_weather_client(london) -> None:
    provider = FakeLocationProvider(coordinate=london)
    client = FakeWeatherClient()
    view_model = _make_view_model(provider=provider, client=client)

    view_model.start()

    assert client.requests == [london]


def test_london_round_trip_publishes_snapshot(london, snapshot) -> None:
    provider = FakeLocationProvider(coordinate=london)
    client = FakeWeatherClient(snapshot=snapshot)
    view_model = _make_view_model(provider=provider, client=client)

    view_model.start()

    assert _fields(view_model) == (
        None,
        "London",
        "cloud",
        "15°C",
        [ForecastView(day="Mon", icon_text="sun", temperature="20/10")],
    )


def test_forecasts_are_mapped_one_to_one_in_order(london) -> None:
    forecasts = tuple(
        Forecast(date=date(2026, 10, 19 + offset), icon_text=f"icon-{offset}", max_temp=20 + offset, min_temp=offset)
        for offset in range(5)
    )
    client = FakeWeatherClient(snapshot=make_snapshot(forecasts=forecasts))
    view_model = _make_view_model(provider=FakeLocationProvider(coordinate=london), client=client)

    view_model.start()

    published = view_model.forecasts.value
    assert len(published) == 5
    assert [item.icon_text for item in published] == [f"icon-{offset}" for offset in range(5)]
    assert [item.day for item in published] == ["Mon", "Tue", "Wed", "Thu", "Fri"]
    assert published[2].temperature == "22/2"


@pytest.mark.parametrize("reason", list(FailureReason))
def test_weather_failure_sets_message_and_clears_fields(london, snapshot, reason) -> None:
    client = FakeWeatherClient()
    view_model = _make_view_model(provider=FakeLocationProvider(coordinate=london), client=client)
    view_model.start()
    client.complete(snapshot=snapshot)

    view_model.start()
    client.complete(reason=reason)

    assert _fields(view_model) == (FAILURE_MESSAGES[reason], "", "", "", [])


@pytest.mark.parametrize("reason", list(FailureReason))
def test_location_failure_path_uses_same_projection(reason) -> None:
    view_model = _make_view_model(provider=FakeLocationProvider(reason=reason))

    view_model.start()

    assert _fields(view_model) == (FAILURE_MESSAGES[reason], "", "", "", [])


def test_location_unavailable_message() -> None:
    view_model = _make_view_model(
        provider=FakeLocationProvider(reason=FailureReason.UNABLE_TO_FIND_LOCATION)
    )

    view_model.start()

    assert view_model.error_message.value == "We're having trouble getting user location."
    assert view_model.location.value == ""
    assert view_model.forecasts.value == []


def test_success_after_failure_clears_error(london, snapshot) -> None:
    client = FakeWeatherClient()
    view_model = _make_view_model(provider=FakeLocationProvider(coordinate=london), client=client)

    view_model.start()
    client.complete(reason=FailureReason.NETWORK_REQUEST_FAILED)
    assert view_model.error_message.value == "The network appears to be down."

    view_model.start()
    client.complete(snapshot=snapshot)
    assert view_model.error_message.value is None
    assert view_model.location.value == "London"


def test_completion_without_snapshot_or_reason_is_ignored(london) -> None:
    client = FakeWeatherClient()
    view_model = _make_view_model(provider=FakeLocationProvider(coordinate=london), client=client)
    view_model.start()

    client.complete()

    assert view_model.state.value == WeatherViewState.empty()


def test_state_observable_only_sees_consistent_states(london, snapshot) -> None:
    client = FakeWeatherClient()
    view_model = _make_view_model(provider=FakeLocationProvider(coordinate=london), client=client)
    states: list[WeatherViewState] = []
    view_model.state.subscribe(states.append)

    view_model.start()
    client.complete(snapshot=snapshot)
    view_model.start()
    client.complete(reason=FailureReason.JSON_PARSING_FAILED)

    assert len(states) == 3
    for state in states:
        has_data = bool(state.location or state.icon_text or state.temperature or state.forecasts)
        assert not (state.error_message is not None and has_data)
    assert states[1].location == "London"
    assert states[2].error_message == "We're having trouble parsing weather data."


def test_dispatcher_is_used_for_every_field(london, snapshot) -> None:
    pending = []
    client = FakeWeatherClient(snapshot=snapshot)
    view_model = _make_view_model(
        provider=FakeLocationProvider(coordinate=london),
        client=client,
        dispatcher=pending.append,
    )
    locations: list[str] = []
    view_model.location.subscribe(locations.append)
    view_model.icon_text.subscribe(lambda value: None)

    view_model.start()

    assert locations == [""]
    assert len(pending) == 2
    for notify in pending:
        notify()
    assert locations == ["", "London"]


class _StubThreadedClient(ThreadedWeatherClient):
    def __init__(self, snapshot, executor) -> None:
        super().__init__(executor=executor)
        self._snapshot = snapshot

    def fetch_weather(self, coordinate):
        return self._snapshot


def test_worker_thread_completion_updates_fields(london, snapshot) -> None:
    executor = ThreadPoolExecutor(max_workers=1)
    client = _StubThreadedClient(snapshot, executor)
    view_model = _make_view_model(provider=FakeLocationProvider(coordinate=london), client=client)

    view_model.start()
    executor.shutdown(wait=True)

    assert view_model.location.value == "London"
    assert view_model.error_message.value is None


def test_overlapping_rounds_publish_as_groups(london, snapshot) -> None:
    pending = []
    dispatching = threading.Event()

    def dispatcher(notify) -> None:
        if threading.current_thread().name == "slow" and not dispatching.is_set():
            dispatching.set()
            time.sleep(0.05)
        pending.append(notify)

    client = FakeWeatherClient()
    view_model = _make_view_model(
        provider=FakeLocationProvider(coordinate=london),
        client=client,
        dispatcher=dispatcher,
    )
    calls: list[tuple[str, object]] = []
    view_model.error_message.subscribe(lambda value: calls.append(("error", value)))
    view_model.location.subscribe(lambda value: calls.append(("location", value)))
    calls.clear()

    view_model.start()
    view_model.start()
    first, second = client.completions

    slow = threading.Thread(
        target=first,
        args=(None, FailureReason.NETWORK_REQUEST_FAILED),
        name="slow",
    )
    slow.start()
    assert dispatching.wait(timeout=1)
    second(snapshot, None)
    slow.join()

    for notify in pending:
        notify()

    assert calls == [
        ("error", FAILURE_MESSAGES[FailureReason.NETWORK_REQUEST_FAILED]),
        ("location", ""),
        ("error", None),
        ("location", "London"),
    ]
    assert view_model.location.value == "London"
    assert view_model.error_message.value is None


@pytest.mark.parametrize(
    ("max_temp", "min_temp", "expected"),
    [(-0.4, -3, "0/-3"), (20.5, 10.5, "21/11"), (19.4, -0.5, "19/0"), (-2.5, -7.6, "-2/-8")],
)
def test_forecast_temperatures_round_half_up(max_temp, min_temp, expected) -> None:
    forecast = Forecast(date=date(2026, 10, 19), icon_text="sun", max_temp=max_temp, min_temp=min_temp)

    assert ForecastView.from_forecast(forecast).temperature == expected
