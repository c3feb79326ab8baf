from __future__ import annotations

import logging
import threading

from ..adapters.weather.base import WeatherClient
from ..domain.models import (
    Coordinate,
    FailureReason,
    ForecastView,
    WeatherFailed,
    WeatherLoaded,
    WeatherOutcome,
    WeatherSnapshot,
    WeatherViewState,
)
from ..location.base import LocationProvider
from ..observable import Dispatcher, Observable

LOGGER = logging.getLogger(__name__)


class WeatherViewModel:
    """Turns one location -> weather round trip into observable panel fields.

    Every ``start()`` is an independent round trip. Rounds are not serialized:
    if two overlap, whichever result arrives last is what observers see. A
    round publishes all of its fields before the next round publishes any.
    """

    def __init__(
        self,
        *,
        location_provider: LocationProvider,
        weather_client: WeatherClient,
        dispatcher: Dispatcher | None = None,
    ) -> None:
        self._location_provider = location_provider
        self._weather_client = weather_client
        self._publish_lock = threading.RLock()

        initial = WeatherViewState.empty()
        self.error_message: Observable[str | None] = Observable(
            initial.error_message, dispatcher=dispatcher
        )
        self.location: Observable[str] = Observable(initial.location, dispatcher=dispatcher)
        self.icon_text: Observable[str] = Observable(initial.icon_text, dispatcher=dispatcher)
        self.temperature: Observable[str] = Observable(initial.temperature, dispatcher=dispatcher)
        self.forecasts: Observable[list[ForecastView]] = Observable(
            list(initial.forecasts), dispatcher=dispatcher
        )
        self.state: Observable[WeatherViewState] = Observable(initial, dispatcher=dispatcher)

    def start(self) -> None:
        LOGGER.info("Requesting location for weather update")
        self._location_provider.delegate = self
        self._location_provider.request_location()

    # LocationDelegate

    def on_location_resolved(self, coordinate: Coordinate) -> None:
        LOGGER.info("Location resolved to %s, requesting weather", coordinate.display_name())
        self._weather_client.request_weather(coordinate, self._on_weather_completed)

    def on_location_failed(self, reason: FailureReason) -> None:
        LOGGER.warning("Location request failed: %s", reason.value)
        self._apply(WeatherFailed(reason))

    def _on_weather_completed(
        self,
        snapshot: WeatherSnapshot | None,
        reason: FailureReason | None,
    ) -> None:
        if reason is not None:
            LOGGER.warning("Weather request failed: %s", reason.value)
            self._apply(WeatherFailed(reason))
            return
        if snapshot is None:
            LOGGER.error("Weather client completed without a snapshot or a failure reason")
            return
        self._apply(WeatherLoaded(snapshot))

    def _apply(self, outcome: WeatherOutcome) -> None:
        view_state = outcome.to_view_state()
        with self._publish_lock:
            self.error_message.post(view_state.error_message)
            self.location.post(view_state.location)
            self.icon_text.post(view_state.icon_text)
            self.temperature.post(view_state.temperature)
            self.forecasts.post(list(view_state.forecasts))
            self.state.post(view_state)
