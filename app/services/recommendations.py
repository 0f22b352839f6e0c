"""
Recommendation Generator - the single care action shown on the dashboard card.

Turns a moisture timeline (soil) or the nutrient-cycle clock (hydroponic) into
exactly one prioritized Recommendation.

Hydroponic plants with a nutrient schedule short-circuit:
- due (days since last change >= frequency)   -> nutrients / warning
- within 2 days of the next change             -> nutrients / info
- otherwise                                    -> monitor / info

Soil plants use the first matching rule:
1. A timeline point below the (environment-adjusted) minimum -> urgent
2. Outdoor and heavy rain forecast                            -> skip
3. A timeline point below the adjusted optimal                -> water_soon
4. Otherwise                                                  -> monitor

Outdoor thresholds are lowered by the species' outdoor evaporation rate;
indoor thresholds are used as-is.
"""

from __future__ import annotations
from datetime import datetime, timedelta, timezone
from typing import Callable, Optional, Sequence
import logging

from app.constants import (
    ENV_INDOOR,
    ENV_OUTDOOR,
    ENVIRONMENT_LABELS,
    FEEDBACK_ERROR,
    FEEDBACK_SELECTION,
    FEEDBACK_WARNING,
    GROWING_HYDROPONIC,
    GROWING_SOIL,
    ICON_NUTRIENTS_DUE,
    ICON_NUTRIENTS_SOON,
    ICON_RAIN,
    ICON_STABLE,
    ICON_URGENT,
    ICON_WATER_SOON,
    REC_MONITOR,
    REC_NUTRIENTS,
    REC_SKIP,
    REC_URGENT,
    REC_WATER_SOON,
    SEVERITY_INFO,
    SEVERITY_URGENT,
    SEVERITY_WARNING,
    WEATHER_FACTOR_LABELS,
)
from .care_models import (
    GrowingMethod,
    MoistureDataPoint,
    Recommendation,
    SpeciesMoistureProfile,
    WeatherSnapshot,
    ensure_utc,
)
from .moisture_timeline import days_between

logger = logging.getLogger(__name__)

NUTRIENTS_SOON_WINDOW_DAYS = 2


def _normalize_environment(environment: Optional[str]) -> str:
    return ENV_INDOOR if (environment or "").strip().lower() == ENV_INDOOR else ENV_OUTDOOR


def environment_label(environment: str, growing_method: str = GROWING_SOIL) -> str:
    return ENVIRONMENT_LABELS.get((_normalize_environment(environment), growing_method), "")


def degraded_recommendation(environment: str = ENV_INDOOR, reason: str = "Weather data unavailable") -> Recommendation:
    """Safe default when the engine is missing inputs."""
    return Recommendation(
        type=REC_MONITOR,
        message="Moisture levels stable",
        reason=reason,
        icon=ICON_STABLE,
        severity=SEVERITY_INFO,
        environment_label=environment_label(environment),
    )


# ============================================================================
# Hydroponic branch
# ============================================================================

def _recommend_hydroponic(
    growing_method: GrowingMethod,
    last_watered: Optional[datetime],
    environment: str,
    now: datetime
) -> Recommendation:
    schedule = growing_method.nutrient_schedule
    last_change = ensure_utc(last_watered) if last_watered else now
    days_since = int(days_between(last_change, now))
    frequency = schedule.frequency_days
    next_change = last_change + timedelta(days=frequency)
    label = environment_label(environment, GROWING_HYDROPONIC)

    if days_since >= frequency:
        solution = schedule.solution or "nutrient solution"
        return Recommendation(
            type=REC_NUTRIENTS,
            date=now,
            message="Nutrients due",
            reason=f"Replenish {solution} at {schedule.ppm:g} ppm",
            icon=ICON_NUTRIENTS_DUE,
            severity=SEVERITY_WARNING,
            environment_label=label,
        )

    if days_since >= frequency - NUTRIENTS_SOON_WINDOW_DAYS:
        return Recommendation(
            type=REC_NUTRIENTS,
            date=next_change,
            message="Nutrients due soon",
            reason=f"Next nutrient change on {next_change:%A}",
            icon=ICON_NUTRIENTS_SOON,
            severity=SEVERITY_INFO,
            environment_label=label,
        )

    days_remaining = int(days_between(now, next_change))
    return Recommendation(
        type=REC_MONITOR,
        message="Nutrient levels stable",
        reason=f"Next nutrient change in {days_remaining} days",
        icon=ICON_STABLE,
        severity=SEVERITY_INFO,
        environment_label=label,
    )


# ============================================================================
# Soil branch
# ============================================================================

def _first_below(timeline: Sequence[MoistureDataPoint], threshold: float) -> Optional[MoistureDataPoint]:
    return next((point for point in timeline if point.moisture < threshold), None)


def weather_impact(
    profile: SpeciesMoistureProfile,
    weather: WeatherSnapshot,
    environment: str
) -> dict:
    """
    Outdoor weather stress flags scaled by the species' outdoor factors.

    Indoor plants are never flagged.
    """
    if _normalize_environment(environment) != ENV_OUTDOOR:
        return {"high_temp": False, "strong_wind": False, "low_humidity": False, "rain_soon": False}

    factors = profile.environment_factors.outdoor
    return {
        "high_temp": weather.temperature > 30 * (1 + factors.temperature_sensitivity),
        "strong_wind": weather.wind_speed > 20 * factors.wind_sensitivity,
        "low_humidity": weather.humidity < 30 * factors.humidity_dependence,
        "rain_soon": weather.rain_forecast > profile.moisture_thresholds.optimal * 10,
    }


def _recommend_soil(
    timeline: Sequence[MoistureDataPoint],
    profile: SpeciesMoistureProfile,
    weather: WeatherSnapshot,
    environment: str
) -> Recommendation:
    environment = _normalize_environment(environment)
    thresholds = profile.moisture_thresholds
    label = environment_label(environment, GROWING_SOIL)

    if environment == ENV_INDOOR:
        adjusted_optimal = thresholds.optimal
        adjusted_min = thresholds.min
    else:
        evaporation = profile.environment_factors.outdoor.evaporation_rate
        adjusted_optimal = thresholds.optimal * (1 - evaporation)
        adjusted_min = thresholds.min * (1 - evaporation)

    critical_point = _first_below(timeline, adjusted_min)
    below_optimal_point = _first_below(timeline, adjusted_optimal)
    impact = weather_impact(profile, weather, environment)

    if critical_point:
        return Recommendation(
            type=REC_URGENT,
            date=critical_point.date,
            message="Water now",
            reason=f"{label} moisture drops below the safe minimum by {critical_point.date:%A}",
            icon=ICON_URGENT,
            severity=SEVERITY_URGENT,
            environment_label=label,
        )

    if environment == ENV_OUTDOOR and impact["rain_soon"]:
        return Recommendation(
            type=REC_SKIP,
            message="Skip watering, rain expected",
            reason=f"{weather.rain_forecast:g}mm of rain in the forecast",
            icon=ICON_RAIN,
            severity=SEVERITY_INFO,
            environment_label=label,
        )

    if below_optimal_point:
        factors = [WEATHER_FACTOR_LABELS[key] for key in ("high_temp", "strong_wind", "low_humidity") if impact[key]]
        reason = f"{label} moisture drops below optimal by {below_optimal_point.date:%A}"
        if factors:
            reason += f" ({', '.join(factors)})"
        return Recommendation(
            type=REC_WATER_SOON,
            date=below_optimal_point.date,
            message="Water soon",
            reason=reason,
            icon=ICON_WATER_SOON,
            severity=SEVERITY_WARNING,
            environment_label=label,
        )

    return Recommendation(
        type=REC_MONITOR,
        message="Moisture levels stable",
        reason="Moisture stays above optimal for the forecast period",
        icon=ICON_STABLE,
        severity=SEVERITY_INFO,
        environment_label=label,
    )


def recommend(
    timeline: Sequence[MoistureDataPoint],
    profile: Optional[SpeciesMoistureProfile],
    weather: Optional[WeatherSnapshot],
    last_watered: Optional[datetime],
    environment: str,
    growing_method: Optional[GrowingMethod] = None,
    now: Optional[datetime] = None
) -> Recommendation:
    """
    Produce the single highest-priority care recommendation.

    Args:
        timeline: Output of moisture_timeline.simulate()
        profile: Species moisture profile
        weather: Current weather snapshot
        last_watered: Last watering (or nutrient change for hydroponics)
        environment: "indoor" or "outdoor"
        growing_method: Soil (default) or hydroponic with nutrient schedule
        now: Reference time (defaults to current UTC time)

    Returns:
        Exactly one Recommendation; a "monitor" recommendation when profile or
        weather is missing
    """
    now = ensure_utc(now) if now else datetime.now(timezone.utc)
    growing_method = growing_method or GrowingMethod.soil()

    if growing_method.is_hydroponic and growing_method.nutrient_schedule:
        return _recommend_hydroponic(growing_method, last_watered, environment, now)

    if profile is None or weather is None:
        return degraded_recommendation(_normalize_environment(environment))

    return _recommend_soil(timeline, profile, weather, environment)


# ============================================================================
# Acceptance
# ============================================================================

_SEVERITY_FEEDBACK = {
    SEVERITY_URGENT: FEEDBACK_ERROR,
    SEVERITY_WARNING: FEEDBACK_WARNING,
}


def feedback_for_severity(severity: str) -> str:
    """Acknowledgement signal: urgent -> error, warning -> warning, else selection."""
    return _SEVERITY_FEEDBACK.get(severity, FEEDBACK_SELECTION)


def accept_recommendation(
    recommendation: Recommendation,
    on_schedule_watering: Optional[Callable[[datetime], None]],
    on_feedback: Optional[Callable[[str], None]] = None
) -> bool:
    """
    Handle the user accepting a recommendation.

    Dated recommendations emit the severity feedback first, then hand the date
    to the scheduling callback. Undated ones (or no callback) do nothing.

    Returns:
        True if the scheduling callback was invoked
    """
    if recommendation.date is None or on_schedule_watering is None:
        return False

    if on_feedback is not None:
        on_feedback(feedback_for_severity(recommendation.severity))

    on_schedule_watering(recommendation.date)
    logger.debug(f"[Recommendations] Scheduled {recommendation.type} for {recommendation.date.isoformat()}")
    return True

