"""Shared protocol and types for session storage backends."""

from typing import Optional, Protocol

from app.app_types import CachedForecast, SessionState
from app.domain import Location


class SessionStore(Protocol):
    """Protocol for session storage backends."""
    def create_session(
        self,
        location: Optional[Location] = None,
        forecast: Optional[CachedForecast] = None,
    ) -> str:
        """Persist a new session and return its id."""

    def get_session(self, session_id: str) -> Optional[SessionState]:
        """Fetch a session by id, returning None if missing or expired."""

    def update_session(
        self,
        session_id: str,
        location: Optional[Location] = None,
        forecast: Optional[CachedForecast] = None,
    ) -> None:
        """Update fields on an existing session, ignoring missing/expired ids."""

    def reset_session(self, session_id: str) -> None:
        """Forget the location and forecast of a session, keeping the id alive."""

    def delete_session(self, session_id: str) -> None:
        """Delete a session without raising if it is absent."""

    def clear(self) -> None:
        """Clear all stored sessions."""
