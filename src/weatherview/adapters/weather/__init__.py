from .base import ThreadedWeatherClient, WeatherClient, WeatherClientError, WeatherCompletion
from .open_meteo import OpenMeteoWeatherClient
from .openweathermap import OpenWeatherMapWeatherClient

__all__ = [
    "OpenMeteoWeatherClient",
    "OpenWeatherMapWeatherClient",
    "ThreadedWeatherClient",
    "WeatherClient",
    "WeatherClientError",
    "WeatherCompletion",
]
