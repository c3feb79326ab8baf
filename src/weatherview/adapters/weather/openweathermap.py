from __future__ import annotations

from concurrent.futures import Executor
from datetime import date, datetime, timedelta, timezone
from typing import Any, Literal
from urllib.parse import urlencode

from ...domain.models import Coordinate, FailureReason, Forecast, WeatherSnapshot
from .base import (
    ThreadedWeatherClient,
    WeatherClientError,
    coerce_float,
    coerce_int,
    fetch_json,
    format_temperature,
    parse_error,
    validate_base_url,
)
from .icons import icon_for_openweathermap_id

OPENWEATHERMAP_BASE_URL = "https://api.openweathermap.org/data/2.5"


class _Sample:
    __slots__ = ("local_time", "temp", "temp_min", "temp_max", "condition_id", "is_day")

    def __init__(
        self,
        *,
        local_time: datetime,
        temp: float,
        temp_min: float,
        temp_max: float,
        condition_id: int,
        is_day: bool,
    ) -> None:
        self.local_time = local_time
        self.temp = temp
        self.temp_min = temp_min
        self.temp_max = temp_max
        self.condition_id = condition_id
        self.is_day = is_day


class OpenWeatherMapWeatherClient(ThreadedWeatherClient):
    """Client for the OpenWeatherMap 5 day / 3 hour forecast endpoint."""

    def __init__(
        self,
        *,
        api_key: str | None,
        units: Literal["metric", "imperial"] = "metric",
        forecast_days: int = 4,
        base_url: str | None = None,
        executor: Executor | None = None,
    ) -> None:
        super().__init__(executor=executor)
        self._api_key = (api_key or "").strip()
        self._units = units
        self._forecast_days = min(max(forecast_days, 1), 5)
        self._base_url = base_url or OPENWEATHERMAP_BASE_URL

    def build_url(self, coordinate: Coordinate) -> str:
        if not self._api_key:
            raise WeatherClientError(
                "OpenWeatherMap API key is not configured",
                reason=FailureReason.URL_ERROR,
            )
        base_url = validate_base_url(self._base_url)
        params = {
            "lat": f"{coordinate.lat:.5f}",
            "lon": f"{coordinate.lon:.5f}",
            "appid": self._api_key,
            "units": self._units,
        }
        return f"{base_url}/forecast?{urlencode(params)}"

    def fetch_weather(self, coordinate: Coordinate) -> WeatherSnapshot:
        payload = fetch_json(self.build_url(coordinate))
        return self.parse_snapshot(payload, coordinate)

    def parse_snapshot(self, payload: dict[str, Any], coordinate: Coordinate) -> WeatherSnapshot:
        city = payload.get("city")
        entries = payload.get("list")
        if not isinstance(city, dict) or not isinstance(entries, list) or not entries:
            raise parse_error("OpenWeatherMap response did not include required fields")

        offset_seconds = coerce_int(city.get("timezone", 0), field_name="city.timezone")
        samples = [self._parse_sample(entry, offset_seconds) for entry in entries]
        current = samples[0]

        return WeatherSnapshot(
            location=self._location_name(city, coordinate),
            icon_text=icon_for_openweathermap_id(current.condition_id, is_day=current.is_day),
            temperature=format_temperature(current.temp, self._units),
            forecasts=tuple(self._daily_forecasts(samples)),
        )

    @staticmethod
    def _location_name(city: dict[str, Any], coordinate: Coordinate) -> str:
        name = city.get("name")
        if not isinstance(name, str) or not name.strip():
            return coordinate.display_name()
        country = city.get("country")
        if isinstance(country, str) and country.strip():
            return f"{name.strip()}, {country.strip()}"
        return name.strip()

    @staticmethod
    def _parse_sample(entry: Any, offset_seconds: int) -> _Sample:
        if not isinstance(entry, dict):
            raise parse_error("OpenWeatherMap forecast entry was not an object")

        main = entry.get("main")
        weather = entry.get("weather")
        if not isinstance(main, dict) or not isinstance(weather, list) or not weather:
            raise parse_error("OpenWeatherMap forecast entry was incomplete")
        condition = weather[0]
        if not isinstance(condition, dict):
            raise parse_error("OpenWeatherMap weather condition was not an object")

        timestamp = coerce_int(entry.get("dt"), field_name="list[].dt")
        try:
            local_time = datetime.fromtimestamp(timestamp, tz=timezone.utc) + timedelta(
                seconds=offset_seconds
            )
        except (ValueError, OverflowError, OSError) as exc:
            raise parse_error("OpenWeatherMap forecast timestamp was out of range") from exc
        sys_data = entry.get("sys")
        pod = sys_data.get("pod") if isinstance(sys_data, dict) else None

        return _Sample(
            local_time=local_time,
            temp=coerce_float(main.get("temp"), field_name="list[].main.temp"),
            temp_min=coerce_float(main.get("temp_min"), field_name="list[].main.temp_min"),
            temp_max=coerce_float(main.get("temp_max"), field_name="list[].main.temp_max"),
            condition_id=coerce_int(condition.get("id"), field_name="list[].weather[].id"),
            is_day=pod != "n",
        )

    def _daily_forecasts(self, samples: list[_Sample]) -> list[Forecast]:
        today = samples[0].local_time.date()
        by_day: dict[date, list[_Sample]] = {}
        for sample in samples:
            day = sample.local_time.date()
            if day == today:
                continue
            by_day.setdefault(day, []).append(sample)

        forecasts: list[Forecast] = []
        for day in sorted(by_day)[: self._forecast_days]:
            day_samples = by_day[day]
            midday = min(day_samples, key=lambda item: abs(item.local_time.hour - 12))
            forecasts.append(
                Forecast(
                    date=day,
                    icon_text=icon_for_openweathermap_id(midday.condition_id),
                    max_temp=max(item.temp_max for item in day_samples),
                    min_temp=min(item.temp_min for item in day_samples),
                )
            )
        return forecasts
