from __future__ import annotations

import json
import logging
import math
from abc import ABC, abstractmethod
from concurrent.futures import Executor, Future, ThreadPoolExecutor
from http.client import HTTPException
from typing import Any, Callable, Literal, Optional, Protocol
from urllib.error import HTTPError, URLError
from urllib.parse import urlparse
from urllib.request import Request, urlopen

from ...domain.models import Coordinate, FailureReason, WeatherSnapshot, round_half_up

LOGGER = logging.getLogger(__name__)

DEFAULT_TIMEOUT_SECONDS = 10

WeatherCompletion = Callable[[Optional[WeatherSnapshot], Optional[FailureReason]], None]

UNIT_SYMBOLS = {"metric": "C", "imperial": "F"}


class WeatherClientError(RuntimeError):
    """Raised when a weather request cannot be completed."""

    def __init__(self, message: str, *, reason: FailureReason) -> None:
        super().__init__(message)
        self.reason = reason


class WeatherClient(Protocol):
    def request_weather(self, coordinate: Coordinate, completion: WeatherCompletion) -> None:
        """Fetch weather for ``coordinate`` and call ``completion`` exactly once."""


def format_temperature(value: float, units: Literal["metric", "imperial"]) -> str:
    return f"{round_half_up(value)}°{UNIT_SYMBOLS[units]}"


def validate_base_url(url: str) -> str:
    parsed = urlparse(url)
    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        raise WeatherClientError(
            f"Weather service URL must be an absolute http(s) URL: {url!r}",
            reason=FailureReason.URL_ERROR,
        )
    return url.rstrip("/")


def fetch_json(url: str) -> dict[str, Any]:
    request = Request(url, headers={"User-Agent": "weatherview/0.1"})
    try:
        with urlopen(request, timeout=DEFAULT_TIMEOUT_SECONDS) as response:
            body = response.read()
    except HTTPError as exc:
        if exc.code in (401, 403):
            raise WeatherClientError(
                f"Weather service rejected the request with status {exc.code}",
                reason=FailureReason.URL_ERROR,
            ) from exc
        raise WeatherClientError(
            f"Weather service request failed with status {exc.code}",
            reason=FailureReason.NETWORK_REQUEST_FAILED,
        ) from exc
    except (URLError, TimeoutError, OSError, HTTPException) as exc:
        raise WeatherClientError(
            f"Weather service request failed: {exc}",
            reason=FailureReason.NETWORK_REQUEST_FAILED,
        ) from exc
    except ValueError as exc:
        raise WeatherClientError(
            f"Weather service URL is invalid: {exc}",
            reason=FailureReason.URL_ERROR,
        ) from exc

    try:
        payload = json.loads(body.decode("utf-8"))
    except (UnicodeDecodeError, json.JSONDecodeError) as exc:
        raise WeatherClientError(
            "Weather service returned a non-JSON response",
            reason=FailureReason.JSON_PARSING_FAILED,
        ) from exc

    if not isinstance(payload, dict):
        raise WeatherClientError(
            "Unexpected weather response shape",
            reason=FailureReason.JSON_PARSING_FAILED,
        )
    return payload


def parse_error(message: str) -> WeatherClientError:
    return WeatherClientError(message, reason=FailureReason.JSON_PARSING_FAILED)


def coerce_float(value: Any, *, field_name: str) -> float:
    if isinstance(value, bool):
        raise parse_error(f"Invalid numeric value for {field_name}")
    try:
        number = float(value)
    except (TypeError, ValueError, OverflowError) as exc:
        raise parse_error(f"Invalid numeric value for {field_name}") from exc
    if not math.isfinite(number):
        raise parse_error(f"Non-finite numeric value for {field_name}")
    return number


def coerce_int(value: Any, *, field_name: str) -> int:
    if isinstance(value, bool):
        raise parse_error(f"Invalid integer value for {field_name}")
    try:
        return int(value)
    except (TypeError, ValueError, OverflowError) as exc:
        raise parse_error(f"Invalid integer value for {field_name}") from exc


class ThreadedWeatherClient(ABC):
    """Runs the blocking ``fetch_weather`` on a single worker thread.

    Subclasses implement ``fetch_weather`` and raise ``WeatherClientError``
    for any failure they can classify. ``completion`` is called exactly once
    per request, in request order.
    """

    def __init__(self, *, executor: Executor | None = None) -> None:
        self._owns_executor = executor is None
        self._executor = executor or ThreadPoolExecutor(max_workers=1, thread_name_prefix="weather")

    @abstractmethod
    def fetch_weather(self, coordinate: Coordinate) -> WeatherSnapshot:
        """Fetch and normalize weather for ``coordinate``."""

    def request_weather(self, coordinate: Coordinate, completion: WeatherCompletion) -> None:
        future = self._executor.submit(self._fetch_and_complete, coordinate, completion)
        future.add_done_callback(_log_unexpected_failure)

    def close(self) -> None:
        if self._owns_executor:
            self._executor.shutdown(wait=False)

    def _fetch_and_complete(self, coordinate: Coordinate, completion: WeatherCompletion) -> None:
        try:
            snapshot = self.fetch_weather(coordinate)
        except WeatherClientError as exc:
            LOGGER.warning("Weather request for %s failed: %s", coordinate.display_name(), exc)
            completion(None, exc.reason)
            return
        except Exception:
            LOGGER.exception("Weather request for %s failed unexpectedly", coordinate.display_name())
            completion(None, FailureReason.JSON_PARSING_FAILED)
            return
        completion(snapshot, None)


def _log_unexpected_failure(future: Future) -> None:
    if future.cancelled():
        return
    exc = future.exception()
    if exc is not None:
        LOGGER.error("Weather request raised unexpectedly", exc_info=exc)
