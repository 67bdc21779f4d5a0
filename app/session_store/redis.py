"""Redis-backed session store with TTL."""

import json
import time
import uuid
from datetime import datetime
from typing import Optional

from pydantic import ValidationError

from app.app_types import CachedForecast, SessionState
from app.domain import LaundryForecast, Location
from app.session_store.base import SessionStore
from utils.logging_utils import get_tagged_logger

logger = get_tagged_logger(__name__, tag="session_store/redis_session_store")


class RedisSessionStore(SessionStore):
    """Redis-backed sessions with TTL. Stores state as JSON."""

    def __init__(
        self,
        client,
        ttl_seconds: int = 3600,
        max_age_seconds: int | None = None,
        prefix: str = "maglaba:session:",
    ) -> None:
        """Initialize with a Redis client, TTL, and optional absolute max age."""
        logger.debug("Initializing RedisSessionStore")
        self.client = client
        self.ttl = ttl_seconds
        self.max_age = max_age_seconds
        self.prefix = prefix

    def _key(self, session_id: str) -> str:
        """Return the Redis key for a session id."""
        return f"{self.prefix}{session_id}"

    @staticmethod
    def _serialize_forecast(forecast: CachedForecast | None) -> dict | None:
        """Serialize a cached forecast with its fetch timestamp."""
        if not forecast:
            return None
        return {
            "fetched_at": forecast.fetched_at.isoformat(),
            "data": forecast.data.model_dump(mode="json"),
        }

    @staticmethod
    def _deserialize_forecast(data: dict | None) -> CachedForecast | None:
        """Rebuild a cached forecast; incomplete records are treated as absent."""
        if not data or not data.get("fetched_at") or not data.get("data"):
            return None
        return CachedForecast(
            data=LaundryForecast.model_validate(data["data"]),
            fetched_at=datetime.fromisoformat(data["fetched_at"]),
        )

    def _dump(self, state: SessionState, *, created_at: float) -> bytes:
        """Serialize session state to JSON bytes."""
        data = {
            "location": state.location.model_dump(mode="json") if state.location else None,
            "forecast": self._serialize_forecast(state.forecast),
            "created_at": created_at,
        }
        return json.dumps(data).encode("utf-8")

    def _safe_load(self, raw: bytes) -> Optional[tuple[SessionState, float]]:
        """Deserialize JSON bytes into session state and created_at."""
        try:
            data = json.loads(raw.decode("utf-8"))
            location_raw = data.get("location")
            state = SessionState(
                location=Location.model_validate(location_raw) if location_raw else None,
                forecast=self._deserialize_forecast(data.get("forecast")),
            )
            created_at = data.get("created_at") or time.time()
            return state, float(created_at)
        except (UnicodeDecodeError, ValueError, ValidationError) as exc:
            logger.error("Failed to deserialize session payload: %s", exc)
            return None

    def _is_expired(self, created_at: float) -> bool:
        """Return True if the session exceeds absolute max age."""
        if self.max_age is None:
            return False
        return (time.time() - created_at) > self.max_age

    def _ttl_remaining(self, created_at: float) -> int:
        """Return TTL seconds capped by absolute max age."""
        if self.max_age is None:
            return self.ttl
        remaining = int(max(0.0, (created_at + self.max_age) - time.time()))
        return min(self.ttl, remaining)

    def _load_live(self, session_id: str) -> Optional[tuple[SessionState, float]]:
        """Read and decode a session, evicting it if past its max age."""
        try:
            raw = self.client.get(self._key(session_id))
        except Exception as exc:  # pragma: no cover - defensive
            logger.error("Failed to read session from Redis: %s", exc)
            return None
        if not raw:
            return None
        loaded = self._safe_load(raw)
        if not loaded:
            return None
        _state, created_at = loaded
        if self._is_expired(created_at):
            self.delete_session(session_id)
            return None
        return loaded

    def _write(self, session_id: str, state: SessionState, created_at: float) -> None:
        """Persist state with the remaining TTL, deleting if none is left."""
        try:
            ttl = self._ttl_remaining(created_at)
            if ttl <= 0:
                self.delete_session(session_id)
                return
            self.client.setex(self._key(session_id), ttl, self._dump(state, created_at=created_at))
        except Exception as exc:  # pragma: no cover - defensive
            logger.error("Failed to update session in Redis: %s", exc)

    def create_session(self, location: Optional[Location] = None,
                       forecast: Optional[CachedForecast] = None) -> str:
        """Create and persist a new session, returning its id."""
        sid = str(uuid.uuid4())
        created_at = time.time()
        payload = self._dump(SessionState(location=location, forecast=forecast), created_at=created_at)
        try:
            self.client.setex(self._key(sid), self._ttl_remaining(created_at), payload)
        except Exception as exc:  # pragma: no cover - defensive
            logger.error("Failed to write session to Redis: %s", exc)
            raise
        return sid

    def get_session(self, session_id: str) -> Optional[SessionState]:
        """Fetch session state, refreshing TTL, or None if missing/invalid."""
        loaded = self._load_live(session_id)
        if not loaded:
            return None
        state, created_at = loaded
        try:
            ttl = self._ttl_remaining(created_at)
            if ttl > 0:
                self.client.expire(self._key(session_id), ttl)
        except Exception as exc:  # pragma: no cover - defensive
            logger.warning("Failed to refresh session TTL: %s", exc)
        return state

    def update_session(self, session_id: str, location: Optional[Location] = None,
                       forecast: Optional[CachedForecast] = None) -> None:
        """Update an existing session; silently no-ops if missing/invalid."""
        loaded = self._load_live(session_id)
        if not loaded:
            return
        state, created_at = loaded
        if location is not None:
            state.location = location
        if forecast is not None:
            state.forecast = forecast
        self._write(session_id, state, created_at)

    def reset_session(self, session_id: str) -> None:
        """Drop location and forecast; no-op if missing/invalid."""
        loaded = self._load_live(session_id)
        if not loaded:
            return
        _state, created_at = loaded
        self._write(session_id, SessionState(), created_at)

    def delete_session(self, session_id: str) -> None:
        """Delete a session if present."""
        try:
            self.client.delete(self._key(session_id))
        except Exception as exc:  # pragma: no cover - defensive
            logger.error("Failed to delete session from Redis: %s", exc)

    def clear(self) -> None:
        """Best-effort clear for all sessions under the configured prefix."""
        try:
            for key in self.client.scan_iter(f"{self.prefix}*"):
                self.client.delete(key)
        except Exception as exc:  # pragma: no cover - defensive
            logger.error("Failed to clear sessions from Redis: %s", exc)
