"""Session manager facade over pluggable backends."""
from datetime import datetime, timezone
from typing import Optional

import redis

from app.app_types import CachedForecast, SessionState
from app.config import settings
from app.domain import LaundryForecast, Location
from app.session_store import InMemorySessionStore, RedisSessionStore, SessionStore
from utils.logging_utils import get_tagged_logger, mask_url

logger = get_tagged_logger(__name__, tag="session_manager")


def _init_store() -> SessionStore:
    """Initialize the backing session store based on configuration."""
    redis_url = settings.session_redis_url
    logger.debug(f"Initializing session store: redis_url='{mask_url(redis_url) or 'None'}'")
    if redis_url:
        try:
            client = redis.Redis.from_url(redis_url)
            client.ping()
            logger.info("Using RedisSessionStore", extra={"redis_url": mask_url(redis_url)})
            return RedisSessionStore(client, ttl_seconds=settings.session_ttl_seconds)
        except (redis.RedisError, ValueError) as exc:
            logger.warning("Falling back to InMemorySessionStore (Redis unavailable)", extra={"error": str(exc)})
    return InMemorySessionStore(ttl_seconds=settings.session_ttl_seconds)


_store: SessionStore = _init_store()


def use_in_memory_store_for_tests(ttl_seconds: int = 3600) -> None:
    """Override store for tests to ensure isolation and determinism."""
    global _store
    _store = InMemorySessionStore(ttl_seconds=ttl_seconds)


def wrap_forecast(forecast: LaundryForecast | CachedForecast | None) -> Optional[CachedForecast]:
    """Attach a fetch timestamp so the forecast TTL can be enforced."""
    if forecast is None or isinstance(forecast, CachedForecast):
        return forecast
    return CachedForecast(data=forecast, fetched_at=datetime.now(timezone.utc))


def forecast_is_fresh(cached: CachedForecast | None, ttl_seconds: int | None = None) -> bool:
    """Check whether a cached forecast is within the TTL window."""
    if cached is None:
        return False
    ttl = settings.forecast_ttl_seconds if ttl_seconds is None else ttl_seconds
    age = datetime.now(timezone.utc) - cached.fetched_at
    return age.total_seconds() < ttl


def create_session(location: Optional[Location] = None, forecast=None) -> str:
    """Create and persist a new session, returning its ID."""
    return _store.create_session(location, wrap_forecast(forecast))


def get_session(session_id: str) -> Optional[SessionState]:
    """Fetch a session by ID, refreshing TTL if applicable."""
    return _store.get_session(session_id)


def update_session(session_id: str, location: Optional[Location] = None, forecast=None) -> None:
    """Replace the stored location and/or forecast of a session."""
    return _store.update_session(session_id, location, wrap_forecast(forecast))


def reset_session(session_id: str) -> None:
    """Forget a session's location and forecast (the "Change location" action)."""
    return _store.reset_session(session_id)


def delete_session(session_id: str):
    """Delete a session by ID."""
    return _store.delete_session(session_id)


def clear_sessions():
    """Clear all sessions from the backing store (dev/testing)."""
    return _store.clear()
