from __future__ import annotations

from typing import Protocol

from ..domain.models import Coordinate, FailureReason


class LocationResolutionError(RuntimeError):
    """Raised when location cannot be resolved from auto and fallback methods."""


class LocationDelegate(Protocol):
    def on_location_resolved(self, coordinate: Coordinate) -> None:
        """Receive a location fix."""

    def on_location_failed(self, reason: FailureReason) -> None:
        """Receive the reason a location request failed."""


class LocationProvider(Protocol):
    delegate: LocationDelegate | None

    def request_location(self) -> None:
        """Request a single fix; the delegate is called back exactly once."""
