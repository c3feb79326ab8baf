from __future__ import annotations

from concurrent.futures import Executor
from datetime import date
from typing import Any, Literal
from urllib.parse import urlencode

from ...domain.models import Coordinate, Forecast, WeatherSnapshot
from .base import (
    ThreadedWeatherClient,
    coerce_float,
    coerce_int,
    fetch_json,
    format_temperature,
    parse_error,
    validate_base_url,
)
from .icons import icon_for_wmo_code

OPEN_METEO_BASE_URL = "https://api.open-meteo.com/v1"


class OpenMeteoWeatherClient(ThreadedWeatherClient):
    def __init__(
        self,
        *,
        units: Literal["metric", "imperial"] = "metric",
        timezone_name: str = "auto",
        forecast_days: int = 5,
        base_url: str | None = None,
        executor: Executor | None = None,
    ) -> None:
        super().__init__(executor=executor)
        self._units = units
        self._timezone_name = timezone_name
        self._forecast_days = min(max(forecast_days, 1), 10)
        self._base_url = base_url or OPEN_METEO_BASE_URL

    def build_url(self, coordinate: Coordinate) -> str:
        base_url = validate_base_url(self._base_url)
        params = {
            "latitude": f"{coordinate.lat:.5f}",
            "longitude": f"{coordinate.lon:.5f}",
            "current": "temperature_2m,weather_code,is_day",
            "daily": "weather_code,temperature_2m_max,temperature_2m_min",
            "timezone": self._timezone_name,
            "forecast_days": str(self._forecast_days),
        }
        if self._units == "imperial":
            params["temperature_unit"] = "fahrenheit"
        return f"{base_url}/forecast?{urlencode(params)}"

    def fetch_weather(self, coordinate: Coordinate) -> WeatherSnapshot:
        payload = fetch_json(self.build_url(coordinate))
        return self.parse_snapshot(payload, coordinate)

    def parse_snapshot(self, payload: dict[str, Any], coordinate: Coordinate) -> WeatherSnapshot:
        current = payload.get("current")
        daily_data = payload.get("daily")

        if not isinstance(current, dict) or not isinstance(daily_data, dict):
            raise parse_error("Open-Meteo response did not include required fields")

        temp = coerce_float(current.get("temperature_2m"), field_name="current.temperature_2m")
        weather_code = coerce_int(current.get("weather_code"), field_name="current.weather_code")
        is_day = bool(current.get("is_day", 1))

        return WeatherSnapshot(
            location=coordinate.display_name(),
            icon_text=icon_for_wmo_code(weather_code, is_day=is_day),
            temperature=format_temperature(temp, self._units),
            forecasts=tuple(self._parse_daily_forecast(daily_data)),
        )

    @staticmethod
    def _parse_daily_forecast(daily_data: dict[str, Any]) -> list[Forecast]:
        dates = daily_data.get("time")
        min_temps = daily_data.get("temperature_2m_min")
        max_temps = daily_data.get("temperature_2m_max")
        weather_codes = daily_data.get("weather_code")

        values = (dates, min_temps, max_temps, weather_codes)
        if not all(isinstance(v, list) for v in values):
            raise parse_error("Open-Meteo daily forecast payload was incomplete")

        count = min(len(dates), len(min_temps), len(max_temps), len(weather_codes))

        forecasts: list[Forecast] = []
        for index in range(count):
            try:
                forecast_date = date.fromisoformat(str(dates[index]))
            except ValueError as exc:
                raise parse_error("Open-Meteo daily forecast date was invalid") from exc

            weather_code = coerce_int(weather_codes[index], field_name="daily.weather_code")
            forecasts.append(
                Forecast(
                    date=forecast_date,
                    icon_text=icon_for_wmo_code(weather_code),
                    max_temp=coerce_float(max_temps[index], field_name="daily.temperature_2m_max"),
                    min_temp=coerce_float(min_temps[index], field_name="daily.temperature_2m_min"),
                )
            )
        return forecasts
