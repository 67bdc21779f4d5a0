"""Data source factories for plugging different forecast backends."""

from .base import CallableForecastDataSource, ForecastDataSource
from .factory import build_data_source
from .geocoding_client import reverse_geocode, search_location
from .open_meteo_client import HourlyForecast, fetch_hourly_forecast

__all__ = [
    "build_data_source",
    "ForecastDataSource",
    "CallableForecastDataSource",
    "HourlyForecast",
    "fetch_hourly_forecast",
    "reverse_geocode",
    "search_location",
]
