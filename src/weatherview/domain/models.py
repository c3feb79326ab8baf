from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import date
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, field_validator


class FailureReason(str, Enum):
    URL_ERROR = "url_error"
    NETWORK_REQUEST_FAILED = "network_request_failed"
    JSON_PARSING_FAILED = "json_parsing_failed"
    UNABLE_TO_FIND_LOCATION = "unable_to_find_location"


FAILURE_MESSAGES = {
    FailureReason.URL_ERROR: "The weather service is not working.",
    FailureReason.NETWORK_REQUEST_FAILED: "The network appears to be down.",
    FailureReason.JSON_PARSING_FAILED: "We're having trouble parsing weather data.",
    FailureReason.UNABLE_TO_FIND_LOCATION: "We're having trouble getting user location.",
}


def failure_message(reason: FailureReason) -> str:
    return FAILURE_MESSAGES[reason]


def round_half_up(value: float) -> int:
    """Whole degrees for display; halves round up and there is no ``-0``."""
    return math.floor(value + 0.5) + 0


class Coordinate(BaseModel):
    model_config = ConfigDict(extra="ignore", frozen=True)

    lat: float = Field(ge=-90, le=90)
    lon: float = Field(ge=-180, le=180)
    label: str | None = None

    @field_validator("label")
    @classmethod
    def validate_label(cls, value: str | None) -> str | None:
        if value is None:
            return None
        text = value.strip()
        return text or None

    def display_name(self) -> str:
        if self.label:
            return self.label
        return f"{self.lat:.2f}, {self.lon:.2f}"


class Forecast(BaseModel):
    model_config = ConfigDict(extra="ignore", frozen=True)

    date: date
    icon_text: str
    max_temp: float
    min_temp: float


class WeatherSnapshot(BaseModel):
    model_config = ConfigDict(extra="ignore", frozen=True)

    location: str
    icon_text: str
    temperature: str
    forecasts: tuple[Forecast, ...] = Field(default_factory=tuple)


class ForecastView(BaseModel):
    """Display-ready projection of a single forecast day."""

    model_config = ConfigDict(frozen=True)

    day: str
    icon_text: str
    temperature: str

    @classmethod
    def from_forecast(cls, forecast: Forecast) -> ForecastView:
        return cls(
            day=forecast.date.strftime("%a"),
            icon_text=forecast.icon_text,
            temperature=f"{round_half_up(forecast.max_temp)}/{round_half_up(forecast.min_temp)}",
        )


class WeatherViewState(BaseModel):
    """Everything the weather panel shows, projected from one outcome.

    Either ``error_message`` is set and the data fields are empty, or
    ``error_message`` is ``None`` and the data fields come from a snapshot.
    """

    model_config = ConfigDict(frozen=True)

    error_message: str | None = None
    location: str = ""
    icon_text: str = ""
    temperature: str = ""
    forecasts: tuple[ForecastView, ...] = Field(default_factory=tuple)

    @classmethod
    def empty(cls) -> WeatherViewState:
        return cls()


@dataclass(frozen=True, slots=True)
class WeatherLoaded:
    snapshot: WeatherSnapshot

    def to_view_state(self) -> WeatherViewState:
        snapshot = self.snapshot
        return WeatherViewState(
            error_message=None,
            location=snapshot.location,
            icon_text=snapshot.icon_text,
            temperature=snapshot.temperature,
            forecasts=tuple(ForecastView.from_forecast(item) for item in snapshot.forecasts),
        )


@dataclass(frozen=True, slots=True)
class WeatherFailed:
    reason: FailureReason

    def to_view_state(self) -> WeatherViewState:
        return WeatherViewState(error_message=failure_message(self.reason))


WeatherOutcome = WeatherLoaded | WeatherFailed
