"""Helpers for fetching the hourly laundry forecast from the Open-Meteo API."""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict

import requests_cache
from retry_requests import retry

from app.config import settings
from utils.logging_utils import get_tagged_logger
logger = get_tagged_logger(__name__, tag='open_meteo_client')

cache_session = requests_cache.CachedSession('.cache', expire_after=settings.http_cache_seconds)
session = retry(cache_session, retries=settings.http_retries, backoff_factor=0.2)

OPEN_METEO_WEATHER_URL = "https://api.open-meteo.com/v1/forecast"

HOURLY_VARS = [
    "temperature_2m",
    "weather_code",
    "relative_humidity_2m",
    "wind_speed_10m",
]

EXPECTED_WEATHER_UNITS = {
    "temperature_2m": "°C",
    "weather_code": "wmo code",
    "relative_humidity_2m": "%",
    "wind_speed_10m": "km/h",
}

# Acceptable alternative spellings that should not trigger warnings.
ALLOWED_WEATHER_UNIT_SYNONYMS = {
    "temperature_2m": {"°C", "C"},
    "weather_code": {"wmo code", "WMO code", ""},
    "relative_humidity_2m": {"%", "percent"},
    "wind_speed_10m": {"km/h", "kmh", "kph"},
}


@dataclass
class HourlyForecast:
    """Raw hourly arrays from Open-Meteo plus the location's clock."""
    hourly: Dict[str, Any]
    timezone: str | None = None
    utc_offset_seconds: int = 0
    hourly_units: Dict[str, str] = field(default_factory=dict)


def _warn_on_unexpected_units(units: dict, *, context: str):
    """Log a warning if Open-Meteo returns units the drying policy does not assume."""
    if not units:
        return
    for name, expected in EXPECTED_WEATHER_UNITS.items():
        if name not in units:
            continue
        actual = units.get(name)
        if actual is None or actual == expected:
            continue
        allowed = ALLOWED_WEATHER_UNIT_SYNONYMS.get(name, set())
        if actual not in allowed:
            logger.warning(
                "Unexpected Open-Meteo unit",
                extra={"context": context, "field": name, "unit": actual, "expected": expected,
                       "allowed": sorted(allowed)},
            )


def fetch_hourly_forecast(
    latitude: float,
    longitude: float,
    *,
    timezone: str = "auto",
    forecast_days: int = 1,
) -> HourlyForecast:
    """Fetch `forecast_days` of hourly temperature, weather code, humidity and wind."""
    params = {
        "latitude": latitude,
        "longitude": longitude,
        "hourly": ",".join(HOURLY_VARS),
        "timezone": timezone,
        "forecast_days": forecast_days,
        "temperature_unit": "celsius",
        "wind_speed_unit": "kmh",
    }

    logger.debug("Requesting Open-Meteo hourly forecast", extra={"params": params})
    resp = session.get(OPEN_METEO_WEATHER_URL, params=params, timeout=settings.http_timeout_seconds)
    resp.raise_for_status()
    data = resp.json()
    if not isinstance(data, dict):
        raise ValueError(f"Unexpected Open-Meteo payload type: {type(data).__name__}")

    hourly = data["hourly"]
    hourly_units = data.get("hourly_units") or {}
    _warn_on_unexpected_units(hourly_units, context="weather_hourly")

    return HourlyForecast(
        hourly=hourly,
        timezone=data.get("timezone"),
        utc_offset_seconds=int(data.get("utc_offset_seconds") or 0),
        hourly_units=hourly_units,
    )
