from .base import LocationDelegate, LocationProvider, LocationResolutionError
from .service import NetworkLocationProvider

__all__ = [
    "LocationDelegate",
    "LocationProvider",
    "LocationResolutionError",
    "NetworkLocationProvider",
]
