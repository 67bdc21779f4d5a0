"""Reverse and forward geocoding used to label and locate a laundry forecast."""
from __future__ import annotations

from typing import Optional

import requests_cache
from retry_requests import retry

from app.config import settings
from app.domain import Location
from utils.logging_utils import get_tagged_logger
logger = get_tagged_logger(__name__, tag='geocoding_client')

# Place names change rarely; cached for geocode_cache_seconds.
cache_session = requests_cache.CachedSession('.geocode_cache', expire_after=settings.geocode_cache_seconds)
session = retry(cache_session, retries=settings.http_retries, backoff_factor=0.2)

BIGDATACLOUD_REVERSE_URL = "https://api.bigdatacloud.net/data/reverse-geocode-client"
OPEN_METEO_GEOCODING_URL = "https://geocoding-api.open-meteo.com/v1/search"


def reverse_geocode(latitude: float, longitude: float, *, language: str = "en") -> str:
    """
    Return a city name for coordinates.

    Falls back to the locality, then to the configured default name, when the
    provider has no city for the point. Transport and HTTP errors propagate.
    """
    params = {
        "latitude": latitude,
        "longitude": longitude,
        "localityLanguage": language,
    }

    resp = session.get(BIGDATACLOUD_REVERSE_URL, params=params, timeout=settings.http_timeout_seconds)
    resp.raise_for_status()
    data = resp.json() or {}
    if not isinstance(data, dict):
        raise ValueError(f"Unexpected reverse geocoding payload type: {type(data).__name__}")

    city = data.get("city") or data.get("locality") or settings.default_city_name
    logger.debug("Reverse geocoded coordinates", extra={"latitude": latitude, "longitude": longitude, "city": city})
    return city


def search_location(query: str, *, language: str = "en") -> Optional[Location]:
    """Resolve a free-text place name to the best matching Location, or None."""
    name = (query or "").strip()
    if not name:
        return None

    params = {
        "name": name,
        "count": 1,
        "language": language,
        "format": "json",
    }

    resp = session.get(OPEN_METEO_GEOCODING_URL, params=params, timeout=settings.http_timeout_seconds)
    resp.raise_for_status()
    data = resp.json() or {}
    if not isinstance(data, dict):
        raise ValueError(f"Unexpected geocoding payload type: {type(data).__name__}")

    results = data.get("results") or []
    if not results:
        logger.info("No geocoding match", extra={"query": name})
        return None

    top = results[0]
    if not isinstance(top, dict):
        raise ValueError("Unexpected geocoding result entry")
    # e.g. "Cebu City, Philippines"
    label = ", ".join(part for part in (top.get("name"), top.get("country")) if part)
    return Location(
        latitude=top["latitude"],
        longitude=top["longitude"],
        city=label or name,
    )
