from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Literal
from urllib.parse import urlparse
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

import yaml
from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

PROJECT_ROOT = Path(__file__).resolve().parents[2]


class UiSettings(BaseModel):
    model_config = ConfigDict(extra="ignore")

    title: str = "Weather"


class RefreshSettings(BaseModel):
    model_config = ConfigDict(extra="ignore")

    enabled: bool = True
    interval_minutes: int = Field(default=10, ge=1, le=60)
    jitter_seconds: int = Field(default=15, ge=0, le=300)


class LocationSettings(BaseModel):
    model_config = ConfigDict(extra="ignore")

    mode: Literal["auto", "fixed"] = "auto"
    fallback_city: str = "London, GB"

    @field_validator("fallback_city")
    @classmethod
    def validate_fallback_city(cls, value: str) -> str:
        text = value.strip()
        if not text:
            raise ValueError("location.fallback_city must not be empty")
        return text


class WeatherSettings(BaseModel):
    model_config = ConfigDict(extra="ignore")

    provider: Literal["open_meteo", "openweathermap"] = "open_meteo"
    units: Literal["metric", "imperial"] = "metric"
    forecast_days: int = Field(default=5, ge=1, le=10)
    api_key: str | None = None
    base_url: str | None = None

    @field_validator("api_key")
    @classmethod
    def validate_api_key(cls, value: str | None) -> str | None:
        if value is None:
            return None
        text = value.strip()
        return text or None

    @field_validator("base_url")
    @classmethod
    def validate_base_url(cls, value: str | None) -> str | None:
        if value is None:
            return None
        text = value.strip()
        if not text:
            return None
        parsed = urlparse(text)
        if parsed.scheme not in ("http", "https") or not parsed.netloc:
            raise ValueError("weather.base_url must be an absolute http(s) URL")
        return text.rstrip("/")

    @model_validator(mode="after")
    def validate_provider_limits(self) -> WeatherSettings:
        if self.provider == "openweathermap" and self.forecast_days > 5:
            raise ValueError("weather.forecast_days must be <= 5 for openweathermap")
        return self


class WeatherViewYamlSettings(BaseModel):
    model_config = ConfigDict(extra="ignore")

    ui: UiSettings = Field(default_factory=UiSettings)
    refresh: RefreshSettings = Field(default_factory=RefreshSettings)
    location: LocationSettings = Field(default_factory=LocationSettings)
    weather: WeatherSettings = Field(default_factory=WeatherSettings)


class EnvSettings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    weatherview_env: Literal["dev", "test", "prod"] = "dev"
    weatherview_timezone: str = "Europe/London"
    weatherview_config_path: Path = Path("config/weatherview.yaml")
    weatherview_log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"

    @field_validator("weatherview_timezone")
    @classmethod
    def validate_timezone(cls, value: str) -> str:
        try:
            ZoneInfo(value)
        except ZoneInfoNotFoundError as exc:
            raise ValueError(f"Unknown timezone: {value}") from exc
        return value

    @field_validator("weatherview_log_level", mode="before")
    @classmethod
    def normalize_log_level(cls, value: object) -> object:
        if isinstance(value, str):
            return value.strip().upper()
        return value


class AppSettings(BaseModel):
    model_config = ConfigDict(arbitrary_types_allowed=True)

    env: EnvSettings
    yaml: WeatherViewYamlSettings
    project_root: Path
    config_path: Path
    timezone: ZoneInfo


def _resolve_project_path(path: Path) -> Path:
    if path.is_absolute():
        return path
    return (PROJECT_ROOT / path).resolve()


def load_yaml_settings(path: Path) -> WeatherViewYamlSettings:
    if not path.exists():
        raise FileNotFoundError(f"Weather config file not found: {path}")

    raw_config = yaml.safe_load(path.read_text(encoding="utf-8"))
    if raw_config is None:
        raw_config = {}
    if not isinstance(raw_config, dict):
        raise ValueError("Weather config must be a YAML mapping/object at the top level")
    return WeatherViewYamlSettings.model_validate(raw_config)


def build_settings(env: EnvSettings) -> AppSettings:
    config_path = _resolve_project_path(env.weatherview_config_path)
    return AppSettings(
        env=env,
        yaml=load_yaml_settings(config_path),
        project_root=PROJECT_ROOT,
        config_path=config_path,
        timezone=ZoneInfo(env.weatherview_timezone),
    )


@lru_cache(maxsize=1)
def load_settings() -> AppSettings:
    return build_settings(EnvSettings())
