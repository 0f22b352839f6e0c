"""
Shared test fixtures for the care engine test suite.

Provides:
- Flask app/client built with TestConfig (no limiter, no remote lookups)
- Bundled species profiles (basil, aloe, peace lily)
- Weather snapshot factory
- A fixed reference time so timelines and schedules are deterministic

Usage:
    def test_example(basil, make_weather, now):
        timeline = simulate(basil, make_weather(temperature=35), None, False, now=now)
        assert len(timeline) == 7
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone

import pytest

from app import create_app
from app.services import species_profiles
from app.services.care_models import WeatherSnapshot
from app.services.weather import clear_weather_cache

# Keep test output clean
logging.getLogger("app").setLevel(logging.WARNING)


# A Friday, so weekday names in reasons are stable
FIXED_NOW = datetime(2024, 3, 15, 12, 0, tzinfo=timezone.utc)


# ============================== App Fixtures ===============================


@pytest.fixture()
def app(monkeypatch):
    monkeypatch.setenv("APP_CONFIG", "app.config.TestConfig")
    monkeypatch.delenv("OPENWEATHER_API_KEY", raising=False)
    app = create_app()
    app.config["TESTING"] = True
    return app


@pytest.fixture()
def client(app):
    return app.test_client()


@pytest.fixture()
def runner(app):
    return app.test_cli_runner()


@pytest.fixture(autouse=True)
def _clear_caches():
    """Each test starts with empty profile and weather caches."""
    species_profiles.clear_profile_cache()
    clear_weather_cache()
    yield
    species_profiles.clear_profile_cache()
    clear_weather_cache()


# ============================ Domain Fixtures ==============================


@pytest.fixture()
def now():
    return FIXED_NOW


@pytest.fixture()
def basil():
    """Sweet basil: retention 0.4, thresholds 0.3/0.6/0.8, wind and temperature sensitive."""
    return species_profiles.get_profile("Ocimum basilicum")


@pytest.fixture()
def aloe():
    return species_profiles.get_profile("Aloe vera")


@pytest.fixture()
def peace_lily():
    return species_profiles.get_profile("Spathiphyllum wallisii")


@pytest.fixture()
def make_weather():
    """Factory for WeatherSnapshot with mild defaults (20°C, 60%, calm, dry)."""
    def _make(temperature=20.0, humidity=60.0, wind_speed=0.0, rain_forecast=0.0):
        return WeatherSnapshot(
            temperature=temperature,
            humidity=humidity,
            wind_speed=wind_speed,
            rain_forecast=rain_forecast,
        )
    return _make
