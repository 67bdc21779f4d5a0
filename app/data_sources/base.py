"""Interfaces and helpers for forecast data sources."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Optional, Protocol

from app.data_sources.open_meteo_client import HourlyForecast
from app.domain import Location


class ForecastDataSource(Protocol):
    """Interface for anything that can provide an hourly forecast and place names."""

    def fetch_hourly_forecast(
        self,
        latitude: float,
        longitude: float,
        *,
        timezone: str = "auto",
        forecast_days: int = 1,
    ) -> HourlyForecast:
        """Return the raw hourly forecast arrays for a point."""
        ...

    def reverse_geocode(self, latitude: float, longitude: float) -> str:
        """Return a display name for a point."""
        ...

    def search_location(self, query: str) -> Optional[Location]:
        """Return the best match for a place name, or None."""
        ...


@dataclass
class CallableForecastDataSource(ForecastDataSource):
    """Wrap three callables so they can be swapped for different backends."""

    hourly_forecast: Callable[..., HourlyForecast]
    reverse: Callable[..., str]
    search: Callable[..., Optional[Location]]

    def fetch_hourly_forecast(self, *args, **kwargs) -> HourlyForecast:
        """Delegate to the configured hourly-forecast callable."""
        return self.hourly_forecast(*args, **kwargs)

    def reverse_geocode(self, *args, **kwargs) -> str:
        """Delegate to the configured reverse-geocoding callable."""
        return self.reverse(*args, **kwargs)

    def search_location(self, *args, **kwargs) -> Optional[Location]:
        """Delegate to the configured place-search callable."""
        return self.search(*args, **kwargs)
