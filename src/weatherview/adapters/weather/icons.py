"""Condition codes mapped onto the icon identifiers the panel understands."""

from __future__ import annotations

UNKNOWN_ICON = "unknown"

# WMO weather interpretation codes as used by Open-Meteo.
WMO_CODE_ICONS = {
    0: "clear",
    1: "clear",
    2: "partly-cloudy",
    3: "cloudy",
    45: "fog",
    48: "fog",
    51: "drizzle",
    53: "drizzle",
    55: "drizzle",
    56: "sleet",
    57: "sleet",
    61: "rain",
    63: "rain",
    65: "rain",
    66: "sleet",
    67: "sleet",
    71: "snow",
    73: "snow",
    75: "snow",
    77: "snow",
    80: "showers",
    81: "showers",
    82: "showers",
    85: "snow",
    86: "snow",
    95: "thunderstorm",
    96: "thunderstorm",
    99: "thunderstorm",
}

_DAY_NIGHT_ICONS = {"clear", "partly-cloudy"}


def _with_time_of_day(icon: str, is_day: bool) -> str:
    if icon in _DAY_NIGHT_ICONS:
        return f"{icon}-{'day' if is_day else 'night'}"
    return icon


def icon_for_wmo_code(code: int, *, is_day: bool = True) -> str:
    icon = WMO_CODE_ICONS.get(code)
    if icon is None:
        return UNKNOWN_ICON
    return _with_time_of_day(icon, is_day)


def icon_for_openweathermap_id(condition_id: int, *, is_day: bool = True) -> str:
    """Map an OpenWeatherMap condition id (https://openweathermap.org/weather-conditions)."""
    group = condition_id // 100
    if group == 2:
        return "thunderstorm"
    if group == 3:
        return "drizzle"
    if group == 5:
        if condition_id == 511:
            return "sleet"
        if condition_id >= 520:
            return "showers"
        return "rain"
    if group == 6:
        if condition_id in (611, 612, 613, 615, 616):
            return "sleet"
        return "snow"
    if group == 7:
        return "fog"
    if condition_id == 800:
        return _with_time_of_day("clear", is_day)
    if condition_id in (801, 802):
        return _with_time_of_day("partly-cloudy", is_day)
    if condition_id in (803, 804):
        return "cloudy"
    return UNKNOWN_ICON
