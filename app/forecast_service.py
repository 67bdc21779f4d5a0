"""Normalize raw hourly forecasts and produce a laundry forecast for a location."""
from __future__ import annotations

import datetime as dt
import math
from collections.abc import Mapping, Sequence
from typing import Any, List, Optional

from app.config import settings
from app.data_sources import ForecastDataSource, build_data_source
from app.domain import (
    DAYTIME_END_HOUR,
    DAYTIME_START_HOUR,
    HourlyObservation,
    LaundryForecast,
    Location,
)
from app.recommendation_engine import classify
from utils.logging_utils import get_tagged_logger
logger = get_tagged_logger(__name__, tag="app/forecast_service")

# Open-Meteo hourly keys, in HourlyObservation field order.
RAW_KEYS = ("time", "temperature_2m", "weather_code", "relative_humidity_2m", "wind_speed_10m")


def _parse_timestamp(value: Any) -> Optional[dt.datetime]:
    """Parse an ISO-8601 timestamp string, or return None."""
    if not isinstance(value, str):
        return None
    try:
        return dt.datetime.fromisoformat(value)
    except ValueError:
        return None


def _as_float(value: Any) -> Optional[float]:
    """Coerce a provider metric to a finite float, or return None."""
    if value is None or isinstance(value, bool):
        return None
    try:
        f = float(value)
    except (TypeError, ValueError, OverflowError):
        return None
    return f if math.isfinite(f) else None


def _as_code(value: Any) -> Optional[int]:
    """Coerce a weather code to int; fractional codes are rejected."""
    f = _as_float(value)
    if f is None or not f.is_integer():
        return None
    return int(f)


def _columns(raw: Any) -> List[Sequence]:
    """Return the parallel arrays in RAW_KEYS order, or [] if any is missing."""
    if not isinstance(raw, Mapping):
        return []
    columns: List[Sequence] = []
    for key in RAW_KEYS:
        values = raw.get(key)
        if not isinstance(values, Sequence) or isinstance(values, (str, bytes)):
            logger.debug("Hourly payload missing array", extra={"key": key})
            return []
        columns.append(values)
    return columns


def normalize_hourly(raw: Mapping[str, Any] | None, today: dt.date) -> List[HourlyObservation]:
    """
    Restrict a raw hourly payload to today's daytime hours.

    Keeps entries whose date is `today` and whose hour is between
    DAYTIME_START_HOUR and DAYTIME_END_HOUR inclusive. Never raises: arrays of
    unequal length are truncated to the shortest, entries with unparseable
    timestamps or metrics are dropped, and a repeated hour keeps its first
    occurrence. The result is ordered by hour.
    """
    columns = _columns(raw)
    if not columns:
        return []

    lengths = {len(c) for c in columns}
    if len(lengths) > 1:
        logger.warning(
            "Hourly arrays differ in length; truncating to shortest",
            extra={"lengths": dict(zip(RAW_KEYS, (len(c) for c in columns)))},
        )

    by_hour: dict[int, HourlyObservation] = {}
    dropped = 0
    for time_val, temp, code, humidity, wind in zip(*columns):
        ts = _parse_timestamp(time_val)
        temperature = _as_float(temp)
        weather_code = _as_code(code)
        humidity_pct = _as_float(humidity)
        wind_kmh = _as_float(wind)
        if ts is None or None in (temperature, weather_code, humidity_pct, wind_kmh):
            dropped += 1
            continue
        if ts.date() != today or not (DAYTIME_START_HOUR <= ts.hour <= DAYTIME_END_HOUR):
            continue
        if ts.hour in by_hour:
            dropped += 1
            continue
        by_hour[ts.hour] = HourlyObservation(
            hour=ts.hour,
            temperature_c=temperature,
            weather_code=weather_code,
            humidity_pct=humidity_pct,
            wind_speed_kmh=wind_kmh,
            timestamp=time_val,
        )

    if dropped:
        logger.debug("Dropped malformed or duplicate hourly entries", extra={"dropped": dropped})

    return [by_hour[h] for h in sorted(by_hour)]


def local_today(utc_offset_seconds: int = 0, *, now: dt.datetime | None = None) -> dt.date:
    """Return the current calendar date at a fixed UTC offset."""
    tz = dt.timezone(dt.timedelta(seconds=utc_offset_seconds))
    now = now or dt.datetime.now(dt.timezone.utc)
    return now.astimezone(tz).date()


def get_laundry_forecast(
    location: Location,
    *,
    data_source: ForecastDataSource | None = None,
    today: dt.date | None = None,
    timezone: str | None = None,
    forecast_days: int | None = None,
) -> LaundryForecast:
    """
    Fetch today's hourly forecast for `location` and classify it.

    `today` defaults to the current date at the forecast location's UTC
    offset as reported by the provider. The `data_source` argument lets you
    inject alternate providers (fakes in tests, cached layers, etc.).
    Provider errors propagate to the caller.
    """
    ds = data_source or build_data_source(settings)

    logger.info(
        "Fetching laundry forecast",
        extra={"latitude": location.latitude, "longitude": location.longitude, "city": location.city},
    )
    forecast = ds.fetch_hourly_forecast(
        location.latitude,
        location.longitude,
        timezone=timezone or settings.forecast_timezone,
        forecast_days=forecast_days or settings.forecast_days,
    )

    day = today or local_today(forecast.utc_offset_seconds)
    observations = normalize_hourly(forecast.hourly, day)
    recommendation = classify(observations)

    logger.info(
        "Computed laundry recommendation",
        extra={
            "observations": len(observations),
            "windows": len(recommendation.windows),
            "verdict": recommendation.verdict.value,
        },
    )

    return LaundryForecast(
        location=location,
        timezone=forecast.timezone,
        forecast_date=day,
        observations=observations,
        recommendation=recommendation,
    )


def main():
    """Manual test helper for the forecast pipeline."""
    location = Location(latitude=14.5995, longitude=120.9842, city="Manila")
    result = get_laundry_forecast(location)
    print(f"{result.location.city} on {result.forecast_date} ({result.timezone})")
    print(result.recommendation.message)
    for w in result.recommendation.windows:
        print(f"    {w.start_hour}:00-{w.end_hour}:00  {w.avg_temp}°C  {w.avg_humidity}%  {w.avg_wind} km/h")


if __name__ == "__main__":
    main()
