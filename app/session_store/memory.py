"""In-memory session store with TTL, intended for development and tests."""

import threading
import time
import uuid
from typing import Any, Optional

from app.app_types import CachedForecast, SessionState
from app.domain import Location
from app.session_store.base import SessionStore

from utils.logging_utils import get_tagged_logger

logger = get_tagged_logger(__name__, tag="session_store/in_memory_session_store")


class InMemorySessionStore(SessionStore):
    """Thread-safe, TTL-aware in-memory store (dev/test)."""

    def __init__(self, ttl_seconds: int = 3600, max_age_seconds: int | None = None) -> None:
        """Initialize the store with a TTL (seconds) and optional absolute max age."""
        logger.debug("Initializing InMemorySessionStore")
        self.ttl = ttl_seconds
        self.max_age = max_age_seconds
        self._sessions: dict[str, dict[str, Any]] = {}
        self._lock = threading.Lock()

    def _expired(self, exp: float, created_at: float) -> bool:
        """Return True if the session is beyond TTL or absolute max age."""
        now = time.monotonic()
        if exp < now:
            return True
        if self.max_age is None:
            return False
        return now - created_at > self.max_age

    def _next_expiry(self, created_at: float) -> float:
        """Compute the next expiry time, capped by absolute max age."""
        next_exp = time.monotonic() + self.ttl
        if self.max_age is None:
            return next_exp
        return min(next_exp, created_at + self.max_age)

    def _live(self, session_id: str) -> Optional[dict[str, Any]]:
        """Return the raw record if present and unexpired; evict it otherwise. Caller holds the lock."""
        data = self._sessions.get(session_id)
        if not data:
            return None
        if self._expired(data["exp"], data["created_at"]):
            self._sessions.pop(session_id, None)
            return None
        return data

    def create_session(self, location: Optional[Location] = None,
                       forecast: Optional[CachedForecast] = None) -> str:
        """Create a new session and return its id."""
        with self._lock:
            sid = str(uuid.uuid4())
            created_at = time.monotonic()
            self._sessions[sid] = {
                "location": location,
                "forecast": forecast,
                "created_at": created_at,
                "exp": self._next_expiry(created_at),
            }
            return sid

    def get_session(self, session_id: str) -> Optional[SessionState]:
        """Return the session state, refreshing TTL, or None if missing/expired."""
        with self._lock:
            data = self._live(session_id)
            if data is None:
                return None
            data["exp"] = self._next_expiry(data["created_at"])
            return SessionState(location=data["location"], forecast=data["forecast"])

    def update_session(self, session_id: str, location: Optional[Location] = None,
                       forecast: Optional[CachedForecast] = None) -> None:
        """Update a session in place; no-op if missing/expired."""
        with self._lock:
            data = self._live(session_id)
            if data is None:
                return
            if location is not None:
                data["location"] = location
            if forecast is not None:
                data["forecast"] = forecast
            data["exp"] = self._next_expiry(data["created_at"])

    def reset_session(self, session_id: str) -> None:
        """Drop location and forecast; no-op if missing/expired."""
        with self._lock:
            data = self._live(session_id)
            if data is None:
                return
            data["location"] = None
            data["forecast"] = None
            data["exp"] = self._next_expiry(data["created_at"])

    def delete_session(self, session_id: str) -> None:
        """Remove a session if it exists."""
        with self._lock:
            self._sessions.pop(session_id, None)

    def clear(self) -> None:
        """Clear all sessions."""
        with self._lock:
            self._sessions.clear()
