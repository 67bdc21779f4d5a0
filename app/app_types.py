"""Shared dataclasses and lightweight types used across modules."""

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from app.domain import LaundryForecast, Location


@dataclass
class CachedForecast:
    """LaundryForecast payload with the timestamp it was fetched."""
    data: LaundryForecast
    fetched_at: datetime


@dataclass
class SessionState:
    """Caller-owned state for one visitor: where they are and the last result."""
    location: Optional[Location] = None
    forecast: Optional[CachedForecast] = None
