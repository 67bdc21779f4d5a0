import os
import unittest

from app.config import Settings


class TestConfig(unittest.TestCase):
    def test_settings_defaults(self):
        previous = os.environ.pop("MAGLABA_FORECAST_DAYS", None)
        try:
            s = Settings()
            self.assertEqual(s.forecast_days, 1)
            self.assertEqual(s.forecast_source, "open_meteo")
            self.assertEqual(s.default_city_name, "Your Location")
            self.assertEqual(s.geocode_cache_seconds, 86400)
        finally:
            if previous is not None:
                os.environ["MAGLABA_FORECAST_DAYS"] = previous

    def test_settings_env_override(self):
        previous = os.environ.get("MAGLABA_FORECAST_TTL_SECONDS")
        try:
            os.environ["MAGLABA_FORECAST_TTL_SECONDS"] = "60"
            s = Settings()
            self.assertEqual(s.forecast_ttl_seconds, 60)
        finally:
            if previous is None:
                os.environ.pop("MAGLABA_FORECAST_TTL_SECONDS", None)
            else:
                os.environ["MAGLABA_FORECAST_TTL_SECONDS"] = previous

    def test_geocode_cache_seconds_from_env(self):
        previous = os.environ.get("MAGLABA_GEOCODE_CACHE_SECONDS")
        try:
            os.environ["MAGLABA_GEOCODE_CACHE_SECONDS"] = "600"
            self.assertEqual(Settings().geocode_cache_seconds, 600)
        finally:
            if previous is None:
                os.environ.pop("MAGLABA_GEOCODE_CACHE_SECONDS", None)
            else:
                os.environ["MAGLABA_GEOCODE_CACHE_SECONDS"] = previous

    def test_validators_normalize_case(self):
        s = Settings(forecast_source=" Open_Meteo ", log_level="debug")
        self.assertEqual(s.forecast_source, "open_meteo")
        self.assertEqual(s.log_level, "DEBUG")


if __name__ == "__main__":
    unittest.main()
