"""Application configuration pulled from environment variables via pydantic."""
from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from utils.logging_utils import get_tagged_logger
logger = get_tagged_logger(__name__, tag="config")


class Settings(BaseSettings):
    """Environment-driven configuration for the MagLaba service."""
    model_config = SettingsConfigDict(env_prefix="MAGLABA_", extra="ignore")

    forecast_source: str = "open_meteo"  # options: open_meteo
    forecast_timezone: str = "auto"
    forecast_days: int = 1
    forecast_ttl_seconds: int = 900
    http_timeout_seconds: float = 10.0
    http_cache_seconds: int = 3600
    http_retries: int = 5
    geocode_cache_seconds: int = 86400
    api_key: str | None = None
    api_key_redis_url: str | None = None
    api_key_redis_set: str = "api_keys"
    session_redis_url: str | None = None
    session_ttl_seconds: int = 3600
    default_city_name: str = "Your Location"
    log_level: str = "INFO"

    @field_validator("forecast_source", mode="after")
    @classmethod
    def lower_source(cls, v: str) -> str:
        """Source names are matched case-insensitively."""
        return v.strip().lower()

    @field_validator("log_level", mode="after")
    @classmethod
    def upper_level(cls, v: str) -> str:
        """logging expects upper-case level names."""
        return v.strip().upper()


settings = Settings()


if __name__ == "__main__":
    logger.setLevel("DEBUG")
    logger.debug(f"Loaded settings: {settings.model_dump_json(indent=4)}")
