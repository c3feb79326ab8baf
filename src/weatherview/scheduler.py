from __future__ import annotations

import logging
from concurrent.futures import Executor
from typing import Protocol

from apscheduler.schedulers.background import BackgroundScheduler

from .adapters.weather import OpenMeteoWeatherClient, OpenWeatherMapWeatherClient
from .location import NetworkLocationProvider
from .settings import AppSettings

LOGGER = logging.getLogger(__name__)

WEATHER_REFRESH_JOB_ID = "weather_refresh_job"


class Startable(Protocol):
    def start(self) -> None: ...


def build_weather_client(
    settings: AppSettings,
    *,
    executor: Executor | None = None,
) -> OpenMeteoWeatherClient | OpenWeatherMapWeatherClient:
    weather = settings.yaml.weather
    if weather.provider == "open_meteo":
        return OpenMeteoWeatherClient(
            units=weather.units,
            timezone_name=settings.env.weatherview_timezone,
            forecast_days=weather.forecast_days,
            base_url=weather.base_url,
            executor=executor,
        )
    if weather.provider == "openweathermap":
        return OpenWeatherMapWeatherClient(
            api_key=weather.api_key,
            units=weather.units,
            forecast_days=weather.forecast_days,
            base_url=weather.base_url,
            executor=executor,
        )
    raise ValueError(f"Unsupported weather provider: {weather.provider}")


def build_location_provider(
    settings: AppSettings,
    *,
    executor: Executor | None = None,
) -> NetworkLocationProvider:
    return NetworkLocationProvider(
        mode=settings.yaml.location.mode,
        fallback_city=settings.yaml.location.fallback_city,
        executor=executor,
    )


def run_weather_refresh_job(view_model: Startable) -> None:
    LOGGER.info("Weather refresh job starting a new round trip")
    view_model.start()


def build_scheduler(settings: AppSettings, view_model: Startable) -> BackgroundScheduler:
    scheduler = BackgroundScheduler(timezone=settings.timezone)
    if not settings.yaml.refresh.enabled:
        LOGGER.info("Periodic weather refresh is disabled")
        return scheduler

    scheduler.add_job(
        run_weather_refresh_job,
        "interval",
        kwargs={"view_model": view_model},
        minutes=settings.yaml.refresh.interval_minutes,
        jitter=settings.yaml.refresh.jitter_seconds,
        id=WEATHER_REFRESH_JOB_ID,
        replace_existing=True,
        max_instances=1,
        coalesce=True,
        misfire_grace_time=120,
    )
    return scheduler
