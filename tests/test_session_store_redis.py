import json
import time
import unittest
from datetime import date, datetime, timezone

from app.app_types import CachedForecast
from app.domain import HourlyObservation, LaundryForecast, Location, Verdict
from app.recommendation_engine import classify
from app.session_store.redis import RedisSessionStore


class FakeRedis:
    def __init__(self):
        self.store = {}
        self.expires = {}

    def setex(self, key, ttl, value):
        self.store[key] = value
        self.expires[key] = ttl

    def get(self, key):
        return self.store.get(key)

    def expire(self, key, ttl):
        self.expires[key] = ttl

    def delete(self, key):
        self.store.pop(key, None)
        self.expires.pop(key, None)

    def scan_iter(self, pattern):
        prefix = pattern.rstrip("*")
        return [k for k in list(self.store.keys()) if k.startswith(prefix)]


MANILA = Location(latitude=14.6, longitude=121.0, city="Manila")


def _sample_forecast() -> CachedForecast:
    observations = [
        HourlyObservation(
            hour=h,
            temperature_c=26.0,
            weather_code=1,
            humidity_pct=55.0,
            wind_speed_kmh=12.0,
            timestamp=f"2025-06-01T{h:02d}:00",
        )
        for h in (9, 10, 11)
    ]
    forecast = LaundryForecast(
        location=MANILA,
        timezone="Asia/Manila",
        forecast_date=date(2025, 6, 1),
        observations=observations,
        recommendation=classify(observations),
    )
    return CachedForecast(data=forecast, fetched_at=datetime.now(timezone.utc))


class TestRedisSessionStore(unittest.TestCase):
    def setUp(self):
        self.client = FakeRedis()
        self.store = RedisSessionStore(self.client, ttl_seconds=60)

    def test_round_trip_preserves_forecast(self):
        cached = _sample_forecast()
        sid = self.store.create_session(MANILA, cached)

        state = self.store.get_session(sid)

        self.assertEqual(state.location, MANILA)
        self.assertEqual(state.forecast.fetched_at, cached.fetched_at)
        self.assertEqual(state.forecast.data, cached.data)
        self.assertEqual(state.forecast.data.recommendation.verdict, Verdict.IDEAL)
        self.assertEqual(self.client.expires[f"maglaba:session:{sid}"], 60)

    def test_payload_is_json(self):
        sid = self.store.create_session(MANILA)
        raw = self.client.get(f"maglaba:session:{sid}")
        data = json.loads(raw.decode("utf-8"))
        self.assertEqual(data["location"]["city"], "Manila")
        self.assertIsNone(data["forecast"])

    def test_update_and_reset(self):
        sid = self.store.create_session()
        self.store.update_session(sid, location=MANILA, forecast=_sample_forecast())
        self.assertEqual(self.store.get_session(sid).location, MANILA)

        self.store.reset_session(sid)
        state = self.store.get_session(sid)
        self.assertIsNone(state.location)
        self.assertIsNone(state.forecast)

    def test_corrupt_payload_reads_as_missing(self):
        self.client.setex("maglaba:session:bad", 60, b"{not json")
        self.assertIsNone(self.store.get_session("bad"))

    def test_max_age_expires_session(self):
        store = RedisSessionStore(self.client, ttl_seconds=60, max_age_seconds=1)
        sid = store.create_session(MANILA)
        key = f"maglaba:session:{sid}"
        data = json.loads(self.client.get(key))
        data["created_at"] = time.time() - 5
        self.client.store[key] = json.dumps(data).encode("utf-8")

        self.assertIsNone(store.get_session(sid))
        self.assertNotIn(key, self.client.store)

    def test_clear_removes_prefixed_keys_only(self):
        self.store.create_session()
        self.store.create_session()
        self.client.setex("other:key", 60, b"x")

        self.store.clear()

        self.assertEqual(list(self.client.store), ["other:key"])


if __name__ == "__main__":
    unittest.main()
