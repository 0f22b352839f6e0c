"""
Input validation and normalization for care engine requests.

Trims and bounds free-text fields, normalizes select values (environment,
growing method), parses timestamps, and builds a clean payload for the
service layer. Malformed values raise PayloadError so routes can answer 400.
"""

from __future__ import annotations
import re
from typing import Any, Dict, Optional

from app.constants import ENV_INDOOR, ENV_OUTDOOR, ENVIRONMENTS, MAX_FORECAST_HORIZON_DAYS
from app.services.care_models import GrowingMethod, SpeciesMoistureProfile, parse_datetime, parse_flag
from app.services.watering_adjustments import resolve_preferences

# Allowlist regex: we REMOVE anything NOT in this set.
# Scientific names use letters, spaces, dots ("var.") and hyphens/apostrophes in cultivars.
_SAFE_CHARS_PATTERN = re.compile(r"[^a-zA-Z0-9\s\-\.,'()/&×]+")

MAX_SPECIES_LEN = 120
MAX_PLANT_LEN = 80
MAX_CITY_LEN = 80


class PayloadError(ValueError):
    """Raised when a request payload cannot be turned into engine inputs."""


def _soft_sanitize(text: Any, max_len: int) -> str:
    """
    Normalizes names/locations:
    - strip whitespace
    - bound length
    - remove disallowed characters via allowlist
    - collapse double spaces
    """
    t = str(text or "").strip()
    if not t:
        return ""
    t = t[:max_len]
    t = _SAFE_CHARS_PATTERN.sub("", t)
    t = re.sub(r"\s{2,}", " ", t)
    return t


def normalize_environment(value: Any) -> str:
    """Coerce unknown/missing values to indoor (the conservative default)."""
    v = str(value or "").strip().lower()
    return v if v in ENVIRONMENTS else ENV_INDOOR


def _timestamp(data: Dict[str, Any], *keys: str) -> Any:
    for key in keys:
        if data.get(key) not in (None, ""):
            try:
                return parse_datetime(data[key])
            except (ValueError, OverflowError, OSError):
                raise PayloadError(f"{key} must be an ISO-8601 timestamp") from None
    return None


def parse_care_request(data: Optional[Dict[str, Any]]) -> Dict[str, Any]:
    """
    Validate a care engine request body.

    Recognized fields (snake_case or camelCase):
      species, plant_name, city, environment / is_indoor, last_watered,
      scheduled_date, growing_method, preferences, horizon_days, profile

    Returns:
        Dict with species, plant_name, city, environment, is_indoor,
        last_watered, scheduled_date, growing_method, preferences
        (WateringPreferences: config defaults plus request overrides),
        horizon_days, profile (SpeciesMoistureProfile or None), weather_raw

    Raises:
        PayloadError: if the body is not an object or a field is malformed
    """
    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise PayloadError("Request body must be a JSON object")

    raw_indoor = data.get("is_indoor", data.get("isIndoor"))
    if "environment" in data:
        environment = normalize_environment(data.get("environment"))
    elif raw_indoor is not None:
        try:
            is_indoor = parse_flag(raw_indoor, "is_indoor")
        except ValueError as e:
            raise PayloadError(str(e)) from None
        environment = ENV_INDOOR if is_indoor else ENV_OUTDOOR
    else:
        environment = ENV_INDOOR

    try:
        growing_method = GrowingMethod.from_dict(data.get("growing_method") or data.get("growingMethod"))
    except (ValueError, TypeError, AttributeError) as e:
        raise PayloadError(f"Invalid growing_method: {e}") from None

    profile = None
    raw_profile = data.get("profile")
    if raw_profile:
        if not isinstance(raw_profile, dict):
            raise PayloadError("profile must be an object")
        try:
            profile = SpeciesMoistureProfile.from_dict(raw_profile)
        except (ValueError, TypeError, AttributeError) as e:
            raise PayloadError(f"Invalid profile: {e}") from None

    raw_preferences = data.get("preferences")
    if raw_preferences is not None and not isinstance(raw_preferences, dict):
        raise PayloadError("preferences must be an object")
    try:
        preferences = resolve_preferences(raw_preferences)
    except ValueError as e:
        raise PayloadError(f"Invalid preferences: {e}") from None

    raw_horizon = data.get("horizon_days", data.get("horizonDays", MAX_FORECAST_HORIZON_DAYS))
    try:
        horizon_days = int(raw_horizon)
    except (TypeError, ValueError):
        raise PayloadError("horizon_days must be an integer") from None

    weather_raw = data.get("weather")
    if weather_raw is not None and not isinstance(weather_raw, dict):
        raise PayloadError("weather must be an object")

    return {
        "species": _soft_sanitize(data.get("species") or data.get("scientific_name"), MAX_SPECIES_LEN),
        "plant_name": _soft_sanitize(data.get("plant_name") or data.get("plantName"), MAX_PLANT_LEN),
        "city": _soft_sanitize(data.get("city"), MAX_CITY_LEN),
        "environment": environment,
        "is_indoor": environment == ENV_INDOOR,
        "last_watered": _timestamp(data, "last_watered", "lastWatered"),
        "scheduled_date": _timestamp(data, "scheduled_date", "scheduledDate"),
        "growing_method": growing_method,
        "preferences": preferences,
        "horizon_days": horizon_days,
        "profile": profile,
        "weather_raw": weather_raw,
    }
