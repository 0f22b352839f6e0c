"""
Defines JSON endpoints for the predictive care engine.

Endpoints (mounted under /api/v1/care):
- GET  /species:            Bundled species moisture profiles
- GET  /species/<name>:     One profile (fallback profile for unknown species)
- POST /interval:           Baseline watering interval in days
- POST /timeline:           7-day moisture forecast
- POST /adjustment:         Skip/increase decision for one scheduled watering
- POST /recommendation:     Single prioritized care recommendation (+ timeline)
- POST /schedule:           Next watering date (interval + adjustment)

Weather comes from the request body ("weather") or is looked up by "city".
Missing weather never fails a request: the engine answers with its no-op
results (null interval, empty timeline, pass-through adjustment, "monitor").
"""

from __future__ import annotations
from typing import Any, Dict, Optional, Tuple
from flask import Blueprint, current_app, jsonify, request

from ..extensions import limiter
from ..services import species_profiles
from ..services.care_models import (
    SpeciesMoistureProfile,
    WeatherSnapshot,
    timeline_to_dicts,
)
from ..services.moisture_timeline import simulate
from ..services.recommendations import feedback_for_severity, recommend
from ..services.watering_adjustments import evaluate
from ..services.watering_interval import calculate_interval_for_weather
from ..services.watering_schedule import build_watering_schedule
from ..services.weather import get_weather_snapshot, snapshot_from_payload
from ..utils.errors import error_response, log_info, log_warning
from ..utils.validation import PayloadError, parse_care_request


care_bp = Blueprint("care", __name__)


def _care_rate_limit() -> str:
    return current_app.config.get("CARE_API_RATE_LIMIT", "30 per minute")


def _profile_summary(profile: SpeciesMoistureProfile) -> Dict[str, Any]:
    data = profile.to_dict()
    data["drought_tolerant"] = species_profiles.is_drought_tolerant(profile)
    data["moisture_loving"] = species_profiles.is_moisture_loving(profile)
    return data


def _load_request() -> Tuple[Dict[str, Any], SpeciesMoistureProfile, Optional[WeatherSnapshot]]:
    """
    Parse the body and resolve profile and weather.

    Raises:
        PayloadError: malformed body or weather payload
    """
    parsed = parse_care_request(request.get_json(silent=True))

    profile = parsed["profile"] or species_profiles.get_profile(parsed["species"])

    try:
        weather = snapshot_from_payload(parsed["weather_raw"])
    except ValueError as e:
        raise PayloadError(f"Invalid weather: {e}") from None

    if weather is None and parsed["city"]:
        weather = get_weather_snapshot(parsed["city"])
        if weather is None:
            log_warning("Weather lookup failed", city=parsed["city"])

    if weather is None:
        log_info("Care request without weather, returning degraded result", species=profile.scientific_name)

    return parsed, profile, weather


def _bad_request(error: PayloadError):
    return error_response(error, "validation", "Care request rejected", client_message=str(error))


def _server_error(error: Exception, prefix: str):
    return error_response(error, "engine", prefix)


@care_bp.route("/species", methods=["GET"])
def list_species():
    """List the bundled species profiles."""
    profiles = species_profiles.get_all_profiles()
    return jsonify({"success": True, "species": [_profile_summary(p) for p in profiles]})


@care_bp.route("/species/<path:scientific_name>", methods=["GET"])
def get_species(scientific_name: str):
    """
    Get one species profile.

    Unknown species return the fallback profile with "is_fallback": true
    rather than 404, matching what the engine itself would use.
    """
    profile = species_profiles.get_profile(scientific_name)
    return jsonify({"success": True, "profile": _profile_summary(profile)})


@care_bp.route("/interval", methods=["POST"])
@limiter.limit(_care_rate_limit)
def watering_interval():
    """
    Baseline watering interval.

    Request body (JSON):
        {"species": "Ocimum basilicum", "environment": "outdoor",
         "weather": {"temperature": 35, "humidity": 25}}

    Returns:
        {"success": true, "interval": 1}  (interval is null without weather)
    """
    try:
        parsed, profile, weather = _load_request()
        interval = calculate_interval_for_weather(profile, weather, parsed["is_indoor"])
        return jsonify({"success": True, "interval": interval})
    except PayloadError as e:
        return _bad_request(e)
    except Exception as e:
        return _server_error(e, "Interval calculation failed")


@care_bp.route("/timeline", methods=["POST"])
@limiter.limit(_care_rate_limit)
def moisture_timeline():
    """
    Moisture forecast.

    Returns:
        {"success": true, "timeline": [{"date", "moisture", "optimal", "confidence"}, ...]}
    """
    try:
        parsed, profile, weather = _load_request()
        timeline = simulate(
            profile,
            weather,
            parsed["last_watered"],
            parsed["is_indoor"],
            horizon_days=parsed["horizon_days"],
        )
        return jsonify({"success": True, "timeline": timeline_to_dicts(timeline)})
    except PayloadError as e:
        return _bad_request(e)
    except Exception as e:
        return _server_error(e, "Timeline simulation failed")


@care_bp.route("/adjustment", methods=["POST"])
@limiter.limit(_care_rate_limit)
def watering_adjustment():
    """
    Skip/increase decision for one scheduled watering.

    Request body adds "scheduled_date" and optional "preferences" overrides
    (rain_skip_threshold, heat_increase_threshold, wind_speed_threshold,
    low_humidity_threshold, enabled).
    """
    try:
        parsed, profile, weather = _load_request()
        adjustment = evaluate(
            profile,
            parsed["species"] or profile.scientific_name,
            parsed["environment"],
            weather,
            parsed["scheduled_date"],
            preferences=parsed["preferences"],
            plant_name=parsed["plant_name"] or None,
        )
        return jsonify({"success": True, "adjustment": adjustment.to_dict()})
    except PayloadError as e:
        return _bad_request(e)
    except Exception as e:
        return _server_error(e, "Watering adjustment failed")


@care_bp.route("/recommendation", methods=["POST"])
@limiter.limit(_care_rate_limit)
def care_recommendation():
    """
    Single prioritized recommendation for the dashboard card.

    Returns:
        {"success": true, "recommendation": {...}, "timeline": [...],
         "acknowledgement": "error|warning|selection|null"}

    "acknowledgement" is the feedback the client emits when the user accepts
    a dated recommendation; it is null when there is nothing to schedule.
    """
    try:
        parsed, profile, weather = _load_request()
        timeline = simulate(
            profile,
            weather,
            parsed["last_watered"],
            parsed["is_indoor"],
            horizon_days=parsed["horizon_days"],
        )
        recommendation = recommend(
            timeline,
            profile,
            weather,
            parsed["last_watered"],
            parsed["environment"],
            parsed["growing_method"],
        )
        acknowledgement = feedback_for_severity(recommendation.severity) if recommendation.date else None
        return jsonify({
            "success": True,
            "recommendation": recommendation.to_dict(),
            "timeline": timeline_to_dicts(timeline),
            "acknowledgement": acknowledgement,
        })
    except PayloadError as e:
        return _bad_request(e)
    except Exception as e:
        return _server_error(e, "Recommendation failed")


@care_bp.route("/schedule", methods=["POST"])
@limiter.limit(_care_rate_limit)
def watering_schedule():
    """Next watering date from the baseline interval and the adjustment rules."""
    try:
        parsed, profile, weather = _load_request()
        schedule = build_watering_schedule(
            profile,
            weather,
            parsed["is_indoor"],
            last_watered=parsed["last_watered"],
            preferences=parsed["preferences"],
            plant_name=parsed["plant_name"] or None,
        )
        return jsonify({"success": True, "schedule": schedule.to_dict()})
    except PayloadError as e:
        return _bad_request(e)
    except Exception as e:
        return _server_error(e, "Watering schedule failed")
