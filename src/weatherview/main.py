from __future__ import annotations

import asyncio
import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from fastapi import FastAPI, Request
from fastapi.responses import HTMLResponse, JSONResponse
from fastapi.templating import Jinja2Templates

from .adapters.weather import WeatherClient
from .location import LocationProvider
from .panel import WeatherPanel
from .scheduler import build_location_provider, build_scheduler, build_weather_client
from .settings import AppSettings, load_settings
from .viewmodels.weather import WeatherViewModel

LOGGER = logging.getLogger(__name__)

BASE_DIR = Path(__file__).resolve().parent
TEMPLATES_DIR = BASE_DIR / "web" / "templates"

templates = Jinja2Templates(directory=str(TEMPLATES_DIR))


def _get_settings(request: Request) -> AppSettings:
    return request.app.state.settings


def _get_panel(request: Request) -> WeatherPanel:
    return request.app.state.panel


def _format_local_refresh(value: datetime | None, settings: AppSettings) -> str | None:
    if value is None:
        return None
    return value.astimezone(settings.timezone).strftime("%H:%M:%S")


def _close_quietly(collaborator: Any) -> None:
    close = getattr(collaborator, "close", None)
    if callable(close):
        close()


def create_app(
    *,
    settings: AppSettings | None = None,
    location_provider: LocationProvider | None = None,
    weather_client: WeatherClient | None = None,
) -> FastAPI:
    @asynccontextmanager
    async def lifespan(application: FastAPI):
        app_settings = settings or load_settings()
        logging.basicConfig(level=app_settings.env.weatherview_log_level)

        provider = location_provider or build_location_provider(app_settings)
        client = weather_client or build_weather_client(app_settings)
        loop = asyncio.get_running_loop()
        view_model = WeatherViewModel(
            location_provider=provider,
            weather_client=client,
            dispatcher=loop.call_soon_threadsafe,
        )
        panel = WeatherPanel()
        view_model.state.subscribe(panel.render)

        scheduler = build_scheduler(app_settings, view_model)
        scheduler.start()

        application.state.settings = app_settings
        application.state.view_model = view_model
        application.state.panel = panel
        application.state.scheduler = scheduler
        application.state.started_at_utc = datetime.now(timezone.utc)

        view_model.start()
        try:
            yield
        finally:
            if scheduler.running:
                scheduler.shutdown(wait=False)
            if location_provider is None:
                _close_quietly(provider)
            if weather_client is None:
                _close_quietly(client)

    application = FastAPI(title="Weather View", version="0.1.0", lifespan=lifespan)

    @application.get("/", response_class=HTMLResponse)
    async def weather_page(request: Request) -> HTMLResponse:
        settings_ = _get_settings(request)
        panel = _get_panel(request)
        return templates.TemplateResponse(
            request,
            "weather.html",
            {
                "title": settings_.yaml.ui.title,
                "state": panel.view_state,
                "updated_at": _format_local_refresh(panel.updated_at_utc, settings_),
                "refresh_interval_minutes": settings_.yaml.refresh.interval_minutes,
            },
        )

    @application.get("/api/weather", response_class=JSONResponse)
    async def weather_state(request: Request) -> JSONResponse:
        return JSONResponse(_get_panel(request).as_payload())

    @application.post("/api/weather/refresh", response_class=JSONResponse, status_code=202)
    async def refresh_weather(request: Request) -> JSONResponse:
        request.app.state.view_model.start()
        return JSONResponse({"status": "accepted"}, status_code=202)

    @application.get("/health", response_class=JSONResponse)
    async def health(request: Request) -> JSONResponse:
        settings_ = _get_settings(request)
        panel = _get_panel(request)
        return JSONResponse(
            {
                "status": "ok",
                "service": "weatherview",
                "environment": settings_.env.weatherview_env,
                "timezone": settings_.env.weatherview_timezone,
                "provider": settings_.yaml.weather.provider,
                "scheduler_running": request.app.state.scheduler.running,
                "panel_updates": panel.update_count,
                "has_error": panel.view_state.error_message is not None,
                "started_at_utc": request.app.state.started_at_utc.isoformat(),
                "timestamp_utc": datetime.now(timezone.utc).isoformat(),
            }
        )

    return application


app = create_app()
