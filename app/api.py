"""HTTP API for the laundry recommendation service."""

import datetime as dt
import hmac
from typing import Any, Optional

import redis
import requests
from fastapi import APIRouter, Depends, Header, HTTPException, status
from pydantic import BaseModel, Field

from .domain import (
    HourlyObservation,
    IdealWindow,
    LaundryForecast,
    Location,
    Recommendation,
    Verdict,
    WeatherBand,
    weather_band,
)
from .app_types import SessionState
from .config import settings
from .data_sources import build_data_source
from .forecast_service import get_laundry_forecast, local_today, normalize_hourly
from .recommendation_engine import classify, format_hour, round_half_up
from .session_manager import (
    create_session,
    forecast_is_fresh,
    get_session,
    reset_session,
    update_session,
    wrap_forecast,
)
from utils.logging_utils import get_tagged_logger, mask_url

logger = get_tagged_logger(__name__, tag="app/api")

# Hourly tiles cover the first eight daytime hours.
MAX_DISPLAY_HOURS = 8

_redis_client = None
if settings.api_key_redis_url:
    try:
        _redis_client = redis.Redis.from_url(settings.api_key_redis_url)
        logger.info("API key checks will use Redis backend", extra={"redis_url": mask_url(settings.api_key_redis_url)})
    except ValueError as exc:
        logger.warning("Invalid Redis URL for API key checks; falling back to static key",
                       extra={"error": str(exc)})


def require_api_key(x_api_key: str | None = Header(default=None)):
    """
    Validate X-API-Key header against Redis (if configured) or the static api_key setting.
    """
    # If no key configured anywhere, allow requests (dev/default mode).
    if not settings.api_key and not _redis_client:
        return

    if not x_api_key:
        logger.debug("No API key provided")
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Missing API key")

    if _redis_client:
        try:
            if _redis_client.sismember(settings.api_key_redis_set, x_api_key):
                return
        except redis.RedisError as e:
            logger.warning("Redis API key lookup error; falling back to static key",
                           extra={"error": str(e)})

    if settings.api_key and hmac.compare_digest(str(x_api_key), str(settings.api_key)):
        return

    logger.debug("Invalid API key provided")
    raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid API key")


router = APIRouter(dependencies=[Depends(require_api_key)])
DATA_SOURCE = build_data_source(settings)


class CoordinatesRequest(BaseModel):
    """Device coordinates, e.g. from browser geolocation."""
    latitude: float = Field(ge=-90.0, le=90.0)
    longitude: float = Field(ge=-180.0, le=180.0)


class SearchRequest(BaseModel):
    """Manually entered city or place name."""
    query: str = Field(min_length=1, max_length=200)


class RecommendationRequest(BaseModel):
    """Caller-supplied Open-Meteo style hourly arrays."""
    hourly: dict[str, Any]
    date: Optional[dt.date] = None
    utc_offset_seconds: int = Field(default=0, gt=-86400, lt=86400)


class WindowView(BaseModel):
    """An ideal window with display labels."""
    start_hour: int
    end_hour: int
    start_time: str
    end_time: str
    avg_temp: int
    avg_humidity: int
    avg_wind: int


class HourView(BaseModel):
    """One hourly tile: rounded metrics plus the weather band for its icon."""
    hour: int
    label: str
    temperature: int
    weather_code: int
    band: WeatherBand
    humidity: int
    wind_speed: int


class RecommendationResponse(BaseModel):
    """Recommendation message, every ideal window, and hourly tiles."""
    message: str
    verdict: Verdict
    windows: list[WindowView]
    best_window: WindowView | None = None
    hourly: list[HourView]


class ForecastResponse(BaseModel):
    """Session state as shown to the visitor."""
    session_id: str
    location: Location | None = None
    forecast_date: dt.date | None = None
    timezone: str | None = None
    fetched_at: dt.datetime | None = None
    recommendation: RecommendationResponse | None = None


def _window_view(window: IdealWindow) -> WindowView:
    """Attach 12-hour clock labels to a window."""
    return WindowView(
        start_hour=window.start_hour,
        end_hour=window.end_hour,
        start_time=format_hour(window.start_hour),
        end_time=format_hour(window.end_hour),
        avg_temp=window.avg_temp,
        avg_humidity=window.avg_humidity,
        avg_wind=window.avg_wind,
    )


def _hour_view(obs: HourlyObservation) -> HourView:
    """Convert an observation into a rounded display tile."""
    return HourView(
        hour=obs.hour,
        label=f"{obs.hour}:00",
        temperature=round_half_up(obs.temperature_c),
        weather_code=obs.weather_code,
        band=weather_band(obs.weather_code),
        humidity=round_half_up(obs.humidity_pct),
        wind_speed=round_half_up(obs.wind_speed_kmh),
    )


def _recommendation_response(observations: list[HourlyObservation], rec: Recommendation) -> RecommendationResponse:
    """Serialize a Recommendation with its supporting observations."""
    return RecommendationResponse(
        message=rec.message,
        verdict=rec.verdict,
        windows=[_window_view(w) for w in rec.windows],
        best_window=_window_view(rec.best_window) if rec.best_window else None,
        hourly=[_hour_view(o) for o in observations[:MAX_DISPLAY_HOURS]],
    )


def _forecast_response(session_id: str, state: SessionState) -> ForecastResponse:
    """Render a session's state; empty fields when no location has been chosen."""
    cached = state.forecast
    if cached is None:
        return ForecastResponse(session_id=session_id, location=state.location)
    forecast = cached.data
    return ForecastResponse(
        session_id=session_id,
        location=state.location or forecast.location,
        forecast_date=forecast.forecast_date,
        timezone=forecast.timezone,
        fetched_at=cached.fetched_at,
        recommendation=_recommendation_response(forecast.observations, forecast.recommendation),
    )


def _require_session(session_id: str) -> SessionState:
    """Return the session or raise 404."""
    state = get_session(session_id)
    if state is None:
        raise HTTPException(status_code=404, detail="Unknown session ID")
    return state


def _fetch_forecast(location: Location) -> LaundryForecast:
    """Retrieve and classify today's forecast, mapping provider failures to 502."""
    try:
        return get_laundry_forecast(location, data_source=DATA_SOURCE)
    except (requests.RequestException, KeyError, ValueError) as exc:
        logger.error("Weather retrieval failed", extra={"error": str(exc), "city": location.city})
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail="Failed to fetch weather data")


def _store_and_respond(session_id: str, location: Location) -> ForecastResponse:
    """Fetch for a new location, replace the session's state, and render it."""
    cached = wrap_forecast(_fetch_forecast(location))
    update_session(session_id, location=location, forecast=cached)
    return _forecast_response(session_id, SessionState(location=location, forecast=cached))


@router.post("/recommendation", response_model=RecommendationResponse)
def recommend(req: RecommendationRequest):
    """Classify caller-supplied hourly data without touching the network."""
    day = req.date or local_today(req.utc_offset_seconds)
    observations = normalize_hourly(req.hourly, day)
    rec = classify(observations)
    logger.debug("Classified supplied forecast", extra={"observations": len(observations), "verdict": rec.verdict.value})
    return _recommendation_response(observations, rec)


@router.post("/session/start", response_model=ForecastResponse)
def start_session():
    """Create an empty session; the visitor picks a location next."""
    session_id = create_session()
    logger.info("Started session")
    return ForecastResponse(session_id=session_id)


@router.get("/session/{session_id}", response_model=ForecastResponse)
def read_session(session_id: str):
    """Return the stored location and recommendation for a session."""
    return _forecast_response(session_id, _require_session(session_id))


@router.post("/session/{session_id}/location", response_model=ForecastResponse)
def set_location(session_id: str, req: CoordinatesRequest):
    """Label the visitor's coordinates, fetch today's forecast and recommend."""
    _require_session(session_id)
    try:
        city = DATA_SOURCE.reverse_geocode(req.latitude, req.longitude)
    except (requests.RequestException, KeyError, ValueError) as exc:
        logger.error("Reverse geocoding failed", extra={"error": str(exc)})
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail="Failed to get location details")

    location = Location(latitude=req.latitude, longitude=req.longitude, city=city)
    return _store_and_respond(session_id, location)


@router.post("/session/{session_id}/search", response_model=ForecastResponse)
def search(session_id: str, req: SearchRequest):
    """Resolve a typed place name, then fetch and recommend as for coordinates."""
    _require_session(session_id)
    try:
        location = DATA_SOURCE.search_location(req.query)
    except (requests.RequestException, KeyError, ValueError) as exc:
        logger.error("Location search failed", extra={"error": str(exc), "query": req.query})
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail="Failed to get location details")

    if location is None:
        raise HTTPException(status_code=404, detail="Location not found")
    return _store_and_respond(session_id, location)


@router.post("/session/{session_id}/refresh", response_model=ForecastResponse)
def refresh(session_id: str, force: bool = False):
    """Re-fetch for the stored location unless the cached forecast is still fresh."""
    state = _require_session(session_id)
    if state.location is None:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="No location set for this session")

    if not force and forecast_is_fresh(state.forecast):
        logger.debug("Serving cached forecast")
        return _forecast_response(session_id, state)

    return _store_and_respond(session_id, state.location)


@router.delete("/session/{session_id}/location", response_model=ForecastResponse)
def change_location(session_id: str):
    """Clear location, forecast and recommendation so a new location can be picked."""
    _require_session(session_id)
    reset_session(session_id)
    return _forecast_response(session_id, _require_session(session_id))
