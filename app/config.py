"""
Care engine settings, one class per environment.

APP_CONFIG picks the class: app.config.ProdConfig (default), DevConfig for
`python run.py`, TestConfig for pytest.

- FLASK_SECRET_KEY feeds SECRET_KEY.
- RATELIMIT_* are read by Flask-Limiter; CARE_API_RATE_LIMIT applies to the
  POST endpoints.
- SMART_WATERING_* values are the default evaluator thresholds; API callers
  may override them per request.
"""

from __future__ import annotations
import os
import secrets


def _env_float(name: str, default: float) -> float:
    try:
        return float(os.getenv(name, default))
    except (TypeError, ValueError):
        return default


class BaseConfig:
    # Secrets & basics, random key when the env var is missing so dev/test
    # never runs with an empty string
    SECRET_KEY = os.getenv("FLASK_SECRET_KEY") or secrets.token_hex(32)
    DEBUG = False
    TESTING = False
    JSON_SORT_KEYS = False

    # OpenWeather (city lookups)
    OPENWEATHER_API_KEY = os.getenv("OPENWEATHER_API_KEY", "")

    # Supabase (read-only species_profiles table)
    SUPABASE_URL = os.getenv("SUPABASE_URL", "")
    SUPABASE_ANON_KEY = os.getenv("SUPABASE_ANON_KEY", "")
    SPECIES_PROFILES_REMOTE_ENABLED = os.getenv("SPECIES_PROFILES_REMOTE_ENABLED", "false").lower() == "true"
    SPECIES_PROFILES_TABLE = os.getenv("SPECIES_PROFILES_TABLE", "species_profiles")

    # Flask-Limiter v3
    RATELIMIT_ENABLED = os.getenv("RATELIMIT_ENABLED", "true").lower() == "true"
    RATELIMIT_STORAGE_URI = os.getenv("RATELIMIT_STORAGE_URI", "memory://")
    RATELIMIT_DEFAULT = os.getenv("RATELIMIT_DEFAULT", "60 per minute; 2000 per day")
    CARE_API_RATE_LIMIT = os.getenv("CARE_API_RATE_LIMIT", "30 per minute")

    # Smart Watering (adjustment evaluator defaults)
    SMART_WATERING_ENABLED = os.getenv("SMART_WATERING_ENABLED", "true").lower() == "true"
    SMART_WATERING_RAIN_SKIP_MM = _env_float("SMART_WATERING_RAIN_SKIP_MM", 5.0)
    SMART_WATERING_HEAT_INCREASE_C = _env_float("SMART_WATERING_HEAT_INCREASE_C", 30.0)
    SMART_WATERING_WIND_SPEED_MPS = _env_float("SMART_WATERING_WIND_SPEED_MPS", 15.0)
    SMART_WATERING_LOW_HUMIDITY_PCT = _env_float("SMART_WATERING_LOW_HUMIDITY_PCT", 30.0)
    SMART_WATERING_INDOOR_WARM_C = 25.0  # indoor "check soil" trigger

    # URLs
    PREFERRED_URL_SCHEME = os.getenv("PREFERRED_URL_SCHEME", "https")


class ProdConfig(BaseConfig):
    """Default. Checked by create_app before serving."""
    pass


class DevConfig(BaseConfig):
    """Local server via run.py."""
    ENV = "development"
    DEBUG = True
    PREFERRED_URL_SCHEME = "http"
    CARE_API_RATE_LIMIT = "300 per minute"


class TestConfig(BaseConfig):
    """pytest: no limiter, no network lookups."""
    TESTING = True
    DEBUG = True
    RATELIMIT_ENABLED = False
    OPENWEATHER_API_KEY = ""
    SPECIES_PROFILES_REMOTE_ENABLED = False
