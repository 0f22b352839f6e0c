"""
Weather service helpers (OpenWeather).

Functions:
- get_weather_snapshot(city): current conditions plus 24h rain forecast as a
  WeatherSnapshot for the care engine.
- get_current_conditions(city): raw current weather for a city OR US ZIP.
- get_precipitation_forecast_mm(city): expected rain+snow over the next 24h.
- snapshot_from_payload(data): client-supplied weather -> WeatherSnapshot.

Notes:
- Uses metric units throughout; the engine works in °C, m/s and mm.
- All network functions are best-effort and return None on failure so the
  engine can fall back to its "monitor" results.
"""

from __future__ import annotations
import os
import threading
from functools import wraps
from typing import Any, Dict, List, Optional
import logging
import re
import requests
from cachetools import TTLCache
from cachetools.keys import hashkey
from datetime import datetime, timezone, timedelta
from flask import current_app, has_app_context

from .care_models import WeatherSnapshot

logger = logging.getLogger(__name__)


# ============================================================================
# OPENWEATHER CACHING
# ============================================================================
# Free tier: 60 calls/minute. Lookups are cached per city for 10 minutes;
# failed lookups (None) are not cached.

OPENWEATHER_CACHE_TTL = 600
OPENWEATHER_CACHE_MAX_CITIES = 64
OPENWEATHER_BASE_URL = "https://api.openweathermap.org/data/2.5"

_weather_caches: List[TTLCache] = []
_weather_cache_lock = threading.Lock()


def clear_weather_cache() -> None:
    """Drop every cached weather lookup."""
    with _weather_cache_lock:
        for cache in _weather_caches:
            cache.clear()


def ttl_cache(seconds: int = OPENWEATHER_CACHE_TTL, maxsize: int = OPENWEATHER_CACHE_MAX_CITIES):
    """Cache a weather lookup per argument tuple, skipping None results."""
    def decorator(func):
        cache = TTLCache(maxsize=maxsize, ttl=seconds)
        _weather_caches.append(cache)

        @wraps(func)
        def wrapper(*args, **kwargs):
            key = hashkey(*args, **kwargs)
            with _weather_cache_lock:
                if key in cache:
                    return cache[key]

            result = func(*args, **kwargs)
            if result is not None:
                with _weather_cache_lock:
                    cache[key] = result
            return result

        wrapper.cache_clear = cache.clear
        return wrapper
    return decorator


_CITY_STATE = re.compile(r"^([^,]+),\s?([A-Za-z]{2})$")
_US_ZIP = re.compile(r"^\s*(\d{5})(?:-\d{4})?\s*$")

RAIN_WINDOW_HOURS = 24


def _api_key() -> Optional[str]:
    """Environment first, then app config (tests and .env-less deploys)."""
    key = os.getenv("OPENWEATHER_API_KEY")
    if not key and has_app_context():
        key = current_app.config.get("OPENWEATHER_API_KEY")
    return key or None


def _query_params(city: str, key: str) -> Dict[str, str]:
    """
    OpenWeather location params: US ZIP codes use ``zip``, "City, ST" gets a
    ", US" suffix so state codes are not read as country codes.
    """
    params = {"appid": key, "units": "metric"}
    zip_match = _US_ZIP.match(city)
    if zip_match:
        params["zip"] = f"{zip_match.group(1)},US"
        return params

    city = city.strip()
    state_match = _CITY_STATE.match(city)
    params["q"] = f"{state_match.group(1).strip()}, {state_match.group(2).upper()}, US" if state_match else city
    return params


@ttl_cache()
def get_current_conditions(city: Optional[str]) -> Optional[Dict[str, Any]]:
    """
    Current weather for a city or US ZIP code.

    Returns:
        {"city", "temp_c", "humidity", "wind_mps", "conditions"} or None
    """
    key = _api_key()
    if not city or not key:
        return None

    url = f"{OPENWEATHER_BASE_URL}/weather"
    session = requests.Session()
    try:
        response = session.get(url, params=_query_params(city, key), timeout=6)
        if response.status_code == 404 and not _US_ZIP.match(city):
            # Retry with the raw query, "Paris, FR" style input
            response = session.get(url, params={"q": city, "appid": key, "units": "metric"}, timeout=6)
        response.raise_for_status()
        data = response.json()
    except (requests.RequestException, ValueError) as e:
        logger.warning(f"[Weather] Current conditions failed for {city}: {e}")
        return None

    main = data.get("main") or {}
    return {
        "city": data.get("name", city),
        "temp_c": main.get("temp"),
        "humidity": main.get("humidity"),
        "wind_mps": (data.get("wind") or {}).get("speed"),
        "conditions": ((data.get("weather") or [{}])[0]).get("main", ""),
    }


@ttl_cache()
def get_precipitation_forecast_mm(city: Optional[str]) -> Optional[float]:
    """
    Rain plus snow (mm) expected over the next 24 hours, summed from the
    3-hourly forecast.

    Returns:
        Millimetres rounded to 0.1, or None on error
    """
    key = _api_key()
    if not city or not key:
        return None

    try:
        response = requests.get(f"{OPENWEATHER_BASE_URL}/forecast", params=_query_params(city, key), timeout=8)
        response.raise_for_status()
        slots = response.json().get("list") or []

        start = datetime.now(timezone.utc)
        end = start + timedelta(hours=RAIN_WINDOW_HOURS)
        total_mm = sum(
            (slot.get("rain") or {}).get("3h", 0) + (slot.get("snow") or {}).get("3h", 0)
            for slot in slots
            if start <= datetime.fromtimestamp(slot["dt"], tz=timezone.utc) <= end
        )
    except (requests.RequestException, ValueError, KeyError) as e:
        logger.warning(f"[Weather] Precipitation forecast failed for {city}: {e}")
        return None

    return round(total_mm, 1)


def get_weather_snapshot(city: str | None) -> Optional[WeatherSnapshot]:
    """
    Current conditions for the care engine.

    A missing precipitation forecast counts as no rain expected.

    Returns:
        WeatherSnapshot, or None if current conditions are unavailable
    """
    current = get_current_conditions(city)
    if not current or current.get("temp_c") is None or current.get("humidity") is None:
        return None

    rain_mm = get_precipitation_forecast_mm(city) or 0.0
    return WeatherSnapshot(
        temperature=float(current["temp_c"]),
        humidity=float(current["humidity"]),
        wind_speed=float(current.get("wind_mps") or 0.0),
        rain_forecast=float(rain_mm),
        condition=current.get("conditions") or "",
        timestamp=datetime.now(timezone.utc),
    )


def snapshot_from_payload(data: Optional[Dict[str, Any]]) -> Optional[WeatherSnapshot]:
    """
    Build a snapshot from client-supplied weather.

    Returns:
        WeatherSnapshot, or None if no weather was supplied

    Raises:
        ValueError: if the payload is present but malformed
    """
    if not data:
        return None
    if not isinstance(data, dict):
        raise ValueError("weather must be an object")
    return WeatherSnapshot.from_dict(data)
