import unittest

from app.data_sources.factory import build_data_source, DEFAULT_SOURCE_NAME
from app.data_sources.base import CallableForecastDataSource
from app.data_sources.geocoding_client import reverse_geocode, search_location
from app.data_sources.open_meteo_client import fetch_hourly_forecast


class DummySettings:
    def __init__(self, **kwargs):
        for k, v in kwargs.items():
            setattr(self, k, v)
        self.forecast_source = getattr(self, "forecast_source", DEFAULT_SOURCE_NAME)


class TestDataSourceFactory(unittest.TestCase):
    def test_build_open_meteo_default(self):
        ds = build_data_source(DummySettings(forecast_source="open_meteo"))
        self.assertIsInstance(ds, CallableForecastDataSource)
        self.assertIs(ds.hourly_forecast, fetch_hourly_forecast)
        self.assertIs(ds.reverse, reverse_geocode)
        self.assertIs(ds.search, search_location)

    def test_empty_source_uses_default(self):
        ds = build_data_source(DummySettings(forecast_source=""))
        self.assertIsInstance(ds, CallableForecastDataSource)

    def test_unknown_source_raises(self):
        with self.assertRaises(ValueError):
            build_data_source(DummySettings(forecast_source="unknown-source"))

    def test_callable_source_delegates(self):
        ds = CallableForecastDataSource(
            hourly_forecast=lambda lat, lon, **kw: ("forecast", lat, lon, kw),
            reverse=lambda lat, lon: f"{lat},{lon}",
            search=lambda q: None,
        )
        self.assertEqual(ds.fetch_hourly_forecast(1.0, 2.0, forecast_days=1), ("forecast", 1.0, 2.0, {"forecast_days": 1}))
        self.assertEqual(ds.reverse_geocode(1.0, 2.0), "1.0,2.0")
        self.assertIsNone(ds.search_location("x"))


if __name__ == "__main__":
    unittest.main()
