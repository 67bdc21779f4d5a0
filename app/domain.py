"""Domain vocabulary and strict schemas for laundry recommendations.

This module defines the stable contract between the forecast normalizer, the
recommendation engine and the HTTP layer: the fixed drying policy, weather
code bands, and Pydantic models for the payloads that flow through the
system. Only single-code predicates live here; day-level decisions belong to
the recommendation engine.
"""

from __future__ import annotations

import datetime as dt
from enum import Enum
from typing import List, Tuple

from pydantic import BaseModel, ConfigDict, Field


class _StrictBaseModel(BaseModel):
    """Base model with strict extra handling."""

    model_config = ConfigDict(extra="forbid")


class _FrozenModel(_StrictBaseModel):
    """Strict model that cannot be mutated after construction."""

    model_config = ConfigDict(extra="forbid", frozen=True)


# Daytime observation range, inclusive.
DAYTIME_START_HOUR = 5
DAYTIME_END_HOUR = 17

# Open-Meteo (WMO) weather codes.
CLEAR_CODE_RANGE: Tuple[int, int] = (0, 3)
RAIN_CODE_RANGES: Tuple[Tuple[int, int], ...] = (
    (51, 67),  # drizzle, freezing drizzle, rain, freezing rain
    (80, 86),  # rain and snow showers
    (95, 99),  # thunderstorm
)

# Fixed drying policy for an "ideal" hour.
IDEAL_TEMP_RANGE_C: Tuple[float, float] = (20.0, 30.0)
MAX_HUMIDITY_PCT = 70.0  # exclusive
MIN_WIND_KMH = 5.0  # exclusive
MIN_WINDOW_HOURS = 2


class WeatherBand(str, Enum):
    """Coarse grouping of a weather code, used for display icons."""
    RAIN = "rain"
    CLEAR = "clear"
    CLOUDY = "cloudy"


class Verdict(str, Enum):
    """Which recommendation branch produced the message."""
    RAIN = "rain"
    IDEAL = "ideal"
    ACCEPTABLE = "acceptable"
    POOR = "poor"


MESSAGES = {
    Verdict.RAIN: "Wag mag laba! May ulan ngayong araw. 🌧️",
    Verdict.IDEAL: "Mag laba ka na! Perfect na ang panahon from {start} to {end}! ☀️",
    Verdict.ACCEPTABLE: "Pwede mag laba, pero hindi ideal ang conditions. Bantayan mo ang damit! ⛅",
    Verdict.POOR: "Hindi maganda ang panahon ngayon. Better wait na lang. 🌫️",
}


def is_rain_code(code: int) -> bool:
    """Return True for drizzle, rain, shower and thunderstorm codes."""
    return any(low <= code <= high for low, high in RAIN_CODE_RANGES)


def is_clear_code(code: int) -> bool:
    """Return True for clear through partly cloudy codes."""
    low, high = CLEAR_CODE_RANGE
    return low <= code <= high


def weather_band(code: int) -> WeatherBand:
    """Map a weather code to its display band; rain wins over clear."""
    if is_rain_code(code):
        return WeatherBand.RAIN
    if is_clear_code(code):
        return WeatherBand.CLEAR
    return WeatherBand.CLOUDY


class HourlyObservation(_FrozenModel):
    """One normalized forecast hour inside the daytime range."""
    hour: int = Field(ge=0, le=23)
    temperature_c: float
    weather_code: int
    humidity_pct: float
    wind_speed_kmh: float
    timestamp: str


class IdealWindow(_FrozenModel):
    """A run of at least two ideal hours with rounded averages."""
    start_hour: int = Field(ge=0, le=23)
    end_hour: int = Field(ge=0, le=23)
    avg_temp: int
    avg_humidity: int
    avg_wind: int

    @property
    def span(self) -> int:
        """Hours between the first and last member."""
        return self.end_hour - self.start_hour


class Recommendation(_StrictBaseModel):
    """Message plus every ideal window found for the day."""
    message: str
    verdict: Verdict
    windows: List[IdealWindow] = Field(default_factory=list)
    best_window: IdealWindow | None = None


class Location(_StrictBaseModel):
    """Coordinates with a human-readable place name."""
    latitude: float = Field(ge=-90.0, le=90.0)
    longitude: float = Field(ge=-180.0, le=180.0)
    city: str


class LaundryForecast(_StrictBaseModel):
    """Result of one successful retrieval and classification for a location."""
    location: Location
    timezone: str | None = None
    forecast_date: dt.date
    observations: List[HourlyObservation] = Field(default_factory=list)
    recommendation: Recommendation
