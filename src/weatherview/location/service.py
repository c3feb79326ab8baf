from __future__ import annotations

import json
import logging
from concurrent.futures import Executor, Future, ThreadPoolExecutor
from http.client import HTTPException
from typing import Any, Literal
from urllib.error import HTTPError, URLError
from urllib.parse import urlencode
from urllib.request import Request, urlopen

from ..domain.models import Coordinate, FailureReason
from .base import LocationDelegate, LocationResolutionError

LOGGER = logging.getLogger(__name__)

IP_GEOLOCATION_URL = "https://ipapi.co/json/"
OPEN_METEO_GEOCODING_URL = "https://geocoding-api.open-meteo.com/v1/search"
DEFAULT_TIMEOUT_SECONDS = 10


def _fetch_json(url: str) -> dict[str, Any]:
    request = Request(url, headers={"User-Agent": "weatherview/0.1"})
    try:
        with urlopen(request, timeout=DEFAULT_TIMEOUT_SECONDS) as response:
            payload = json.loads(response.read().decode("utf-8"))
    except (HTTPError, URLError, OSError, HTTPException, UnicodeDecodeError, json.JSONDecodeError) as exc:
        LOGGER.warning("Location lookup request to %s failed: %s", url, exc)
        return {}

    if not isinstance(payload, dict):
        return {}
    return payload


def _coerce_float(value: Any) -> float | None:
    try:
        return float(value)
    except (TypeError, ValueError, OverflowError):
        return None


def _normalize_label(city: str | None, country: str | None, *, fallback: str) -> str:
    city_text = (city or "").strip()
    country_text = (country or "").strip()
    if city_text and country_text:
        return f"{city_text}, {country_text}"
    if city_text:
        return city_text
    if country_text:
        return country_text
    return fallback


def _build_coordinate(lat: float | None, lon: float | None, label: str) -> Coordinate | None:
    if lat is None or lon is None:
        return None
    if not (-90 <= lat <= 90) or not (-180 <= lon <= 180):
        return None
    return Coordinate(lat=lat, lon=lon, label=label)


def location_from_ip() -> Coordinate | None:
    payload = _fetch_json(IP_GEOLOCATION_URL)
    label = _normalize_label(
        payload.get("city"),
        payload.get("country_name"),
        fallback="Current location",
    )
    return _build_coordinate(
        _coerce_float(payload.get("latitude")),
        _coerce_float(payload.get("longitude")),
        label,
    )


def location_from_city(city_query: str) -> Coordinate | None:
    query = city_query.strip()
    if not query:
        return None

    params = urlencode(
        {
            "name": query,
            "count": 1,
            "language": "en",
            "format": "json",
        }
    )
    payload = _fetch_json(f"{OPEN_METEO_GEOCODING_URL}?{params}")
    results = payload.get("results")
    if not isinstance(results, list) or not results:
        return None

    result = results[0]
    if not isinstance(result, dict):
        return None

    label = _normalize_label(
        result.get("name"),
        result.get("country_code"),
        fallback=query,
    )
    return _build_coordinate(
        _coerce_float(result.get("latitude")),
        _coerce_float(result.get("longitude")),
        label,
    )


class NetworkLocationProvider:
    """Resolves the device position by IP, falling back to a configured city.

    ``request_location`` returns immediately; the lookup runs on a worker
    thread and the delegate is called from there exactly once.
    """

    def __init__(
        self,
        *,
        mode: Literal["auto", "fixed"] = "auto",
        fallback_city: str,
        executor: Executor | None = None,
    ) -> None:
        self.delegate: LocationDelegate | None = None
        self._mode = mode
        self._fallback_city = fallback_city
        self._owns_executor = executor is None
        self._executor = executor or ThreadPoolExecutor(
            max_workers=1, thread_name_prefix="location"
        )

    def resolve_location(self) -> Coordinate:
        if self._mode == "auto":
            detected = location_from_ip()
            if detected is not None:
                return detected
            LOGGER.info("IP geolocation unavailable, using fallback city %r", self._fallback_city)

        fallback = location_from_city(self._fallback_city)
        if fallback is not None:
            return fallback

        raise LocationResolutionError("Unable to resolve location from IP or fallback city")

    def request_location(self) -> None:
        delegate = self.delegate
        if delegate is None:
            raise RuntimeError("A location delegate must be set before requesting a location")
        future = self._executor.submit(self._resolve_and_notify, delegate)
        future.add_done_callback(_log_unexpected_failure)

    def close(self) -> None:
        if self._owns_executor:
            self._executor.shutdown(wait=False)

    def _resolve_and_notify(self, delegate: LocationDelegate) -> None:
        try:
            coordinate = self.resolve_location()
        except LocationResolutionError as exc:
            LOGGER.warning("Location request failed: %s", exc)
            delegate.on_location_failed(FailureReason.UNABLE_TO_FIND_LOCATION)
            return
        except Exception:
            LOGGER.exception("Location request failed unexpectedly")
            delegate.on_location_failed(FailureReason.UNABLE_TO_FIND_LOCATION)
            return
        delegate.on_location_resolved(coordinate)


def _log_unexpected_failure(future: Future) -> None:
    if future.cancelled():
        return
    exc = future.exception()
    if exc is not None:
        LOGGER.error("Location request raised unexpectedly", exc_info=exc)
