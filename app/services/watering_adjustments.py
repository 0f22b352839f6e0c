"""
Watering Adjustment Evaluator - skip/increase decision for one scheduled watering.

Used when scheduling the next watering reminder. Rules run in a fixed order
and each one is a small pure function ``(adjustment, context) -> adjustment``:

1. Rain forecast >= rain threshold   -> skip, push to next day
2. Temperature >= heat threshold     -> increase
3. Wind speed >= wind threshold      -> increase
4. Humidity <= low-humidity threshold -> increase
5. Species override (drought-tolerant / moisture-loving allow-lists)
6. Environment override (indoor clears the rain skip; warm indoor -> check soil)

Every matching rule rewrites the recommendation/reason text, so the last
applicable rule owns the displayed message. The generic weather rules (1-4)
only ever set booleans to True; only the overrides (5-6) reset them. Species
and environment therefore always have the final say, and reordering the list
changes outcomes for combined conditions.
"""

from __future__ import annotations
from dataclasses import dataclass, replace
from datetime import datetime, timedelta, timezone
from functools import reduce
from typing import Any, Callable, Dict, Optional, Sequence
import logging

from flask import current_app, has_app_context

from app.constants import (
    DROUGHT_TOLERANT_SPECIES,
    ENV_INDOOR,
    MOISTURE_LOVING_SPECIES,
)
from .care_models import (
    SpeciesMoistureProfile,
    WateringAdjustment,
    WateringPreferences,
    WeatherSnapshot,
    ensure_utc,
)

logger = logging.getLogger(__name__)

REASON_DISABLED = "disabled"
REASON_NO_WEATHER = "no weather data"
REASON_NO_PROFILE = "no species profile"


def _get_config(key: str, default: Any) -> Any:
    """
    Get configuration value with fallback.

    Args:
        key: Config key name
        default: Default value if not configured

    Returns:
        Configuration value
    """
    if has_app_context():
        return current_app.config.get(key, default)
    return default


def resolve_preferences(overrides: Optional[Dict[str, Any]] = None) -> WateringPreferences:
    """
    Build evaluator preferences from config defaults plus optional overrides.

    Thresholds are not range-checked; negative or odd values simply produce
    counterintuitive results.

    Args:
        overrides: Partial preferences (snake_case or camelCase keys)

    Returns:
        WateringPreferences (5 mm / 30°C / 15 m/s / 30% unless configured)
    """
    defaults = WateringPreferences(
        enabled=_get_config("SMART_WATERING_ENABLED", True),
        rain_skip_threshold=_get_config("SMART_WATERING_RAIN_SKIP_MM", 5.0),
        heat_increase_threshold=_get_config("SMART_WATERING_HEAT_INCREASE_C", 30.0),
        wind_speed_threshold=_get_config("SMART_WATERING_WIND_SPEED_MPS", 15.0),
        low_humidity_threshold=_get_config("SMART_WATERING_LOW_HUMIDITY_PCT", 30.0),
    )
    return defaults.merged(overrides)


def _in_allow_list(species: Optional[str], allow_list: frozenset) -> bool:
    """Exact match on the scientific name, ignoring extra whitespace."""
    return " ".join((species or "").split()) in allow_list


def is_drought_tolerant_species(species: Optional[str]) -> bool:
    return _in_allow_list(species, DROUGHT_TOLERANT_SPECIES)


def is_moisture_loving_species(species: Optional[str]) -> bool:
    return _in_allow_list(species, MOISTURE_LOVING_SPECIES)


@dataclass(frozen=True)
class RuleContext:
    """Inputs shared by every rule in the chain."""
    plant_name: str
    species: str
    environment: str
    weather: WeatherSnapshot
    scheduled_date: datetime
    preferences: WateringPreferences
    indoor_warm_threshold: float = 25.0


Rule = Callable[[WateringAdjustment, RuleContext], WateringAdjustment]


# ============================================================================
# Weather threshold rules
# ============================================================================

def rain_rule(adjustment: WateringAdjustment, ctx: RuleContext) -> WateringAdjustment:
    rain = ctx.weather.rain_forecast
    if not rain or rain < ctx.preferences.rain_skip_threshold:
        return adjustment
    return replace(
        adjustment,
        should_skip=True,
        next_watering_date=ctx.scheduled_date + timedelta(days=1),
        reason=f"{rain:g}mm of rain expected",
        recommendation=f"Skip watering {ctx.plant_name}, rain expected soon",
    )


def heat_rule(adjustment: WateringAdjustment, ctx: RuleContext) -> WateringAdjustment:
    temperature = ctx.weather.temperature
    if temperature < ctx.preferences.heat_increase_threshold:
        return adjustment
    return replace(
        adjustment,
        should_increase=True,
        reason=f"High temperature ({temperature:g}°C)",
        recommendation=f"Consider increasing watering frequency for {ctx.plant_name} due to high temperature",
    )


def wind_rule(adjustment: WateringAdjustment, ctx: RuleContext) -> WateringAdjustment:
    wind_speed = ctx.weather.wind_speed
    if wind_speed < ctx.preferences.wind_speed_threshold:
        return adjustment
    return replace(
        adjustment,
        should_increase=True,
        reason=f"High wind speed ({wind_speed:g}m/s)",
        recommendation=f"Monitor soil moisture for {ctx.plant_name}, high winds may increase water loss",
    )


def humidity_rule(adjustment: WateringAdjustment, ctx: RuleContext) -> WateringAdjustment:
    humidity = ctx.weather.humidity
    if humidity > ctx.preferences.low_humidity_threshold:
        return adjustment
    return replace(
        adjustment,
        should_increase=True,
        reason=f"Low humidity ({humidity:g}%)",
        recommendation=f"{ctx.plant_name} may need extra water due to dry conditions",
    )


# ============================================================================
# Overrides
# ============================================================================

def species_rule(adjustment: WateringAdjustment, ctx: RuleContext) -> WateringAdjustment:
    if is_drought_tolerant_species(ctx.species):
        adjustment = replace(
            adjustment,
            should_increase=False,
            recommendation=(
                f"{ctx.plant_name} is drought-tolerant and rain is expected"
                if adjustment.should_skip else ""
            ),
        )

    if is_moisture_loving_species(ctx.species):
        adjustment = replace(
            adjustment,
            should_increase=True,
            recommendation=f"{ctx.plant_name} prefers consistent moisture, monitor closely",
        )

    return adjustment


def environment_rule(adjustment: WateringAdjustment, ctx: RuleContext) -> WateringAdjustment:
    if ctx.environment != ENV_INDOOR:
        return adjustment

    # Rain never skips indoor watering
    adjustment = replace(adjustment, should_skip=False)
    if ctx.weather.temperature >= ctx.indoor_warm_threshold:
        adjustment = replace(
            adjustment,
            recommendation=f"Check soil moisture for {ctx.plant_name}, indoor temperature is high",
        )
    return adjustment


# Order matters: see module docstring
ADJUSTMENT_RULES: Sequence[Rule] = (
    rain_rule,
    heat_rule,
    wind_rule,
    humidity_rule,
    species_rule,
    environment_rule,
)


def _pass_through(scheduled_date: Optional[datetime], reason: str, recommendation: str = "") -> WateringAdjustment:
    return WateringAdjustment(
        should_skip=False,
        should_increase=False,
        next_watering_date=scheduled_date,
        recommendation=recommendation,
        reason=reason,
    )


def apply_rules(
    initial: WateringAdjustment,
    ctx: RuleContext,
    rules: Sequence[Rule] = ADJUSTMENT_RULES
) -> WateringAdjustment:
    """Fold the rule list over an initial adjustment."""
    return reduce(lambda adjustment, rule: rule(adjustment, ctx), rules, initial)


def evaluate(
    profile: Optional[SpeciesMoistureProfile],
    species: Optional[str],
    environment: str,
    weather: Optional[WeatherSnapshot],
    scheduled_date: Optional[datetime],
    preferences: Optional[WateringPreferences] = None,
    plant_name: Optional[str] = None
) -> WateringAdjustment:
    """
    Decide whether one scheduled watering should be skipped or intensified.

    Args:
        profile: Species moisture profile (used for the display name)
        species: Scientific name checked against the override allow-lists
        environment: "indoor" or "outdoor"
        weather: Current weather snapshot
        scheduled_date: When the watering is currently scheduled
        preferences: Evaluator thresholds (config defaults if None)
        plant_name: Name used in messages (defaults to the profile's common name)

    Returns:
        WateringAdjustment. Pass-through (no skip, no increase, date unchanged)
        when evaluation is disabled or weather or profile is missing. An indoor
        plant is never skipped, but a rain-pushed date is left as is.

    Example:
        >>> adj = evaluate(profile, "Ocimum basilicum", "outdoor", rainy, today)
        >>> adj.should_skip, adj.next_watering_date == today + timedelta(days=1)
        (True, True)
    """
    scheduled_date = ensure_utc(scheduled_date) if scheduled_date else datetime.now(timezone.utc)
    preferences = preferences or resolve_preferences()

    if not preferences.enabled:
        return _pass_through(scheduled_date, REASON_DISABLED, "Smart watering is disabled")

    if weather is None:
        return _pass_through(scheduled_date, REASON_NO_WEATHER)

    if profile is None:
        return _pass_through(scheduled_date, REASON_NO_PROFILE)

    species = species or profile.scientific_name
    plant_name = plant_name or profile.display_name

    ctx = RuleContext(
        plant_name=plant_name,
        species=species,
        environment=(environment or "").strip().lower(),
        weather=weather,
        scheduled_date=scheduled_date,
        preferences=preferences,
        indoor_warm_threshold=_get_config("SMART_WATERING_INDOOR_WARM_C", 25.0),
    )

    adjustment = apply_rules(_pass_through(scheduled_date, ""), ctx)

    if adjustment.should_skip or adjustment.should_increase:
        logger.debug(
            f"[Smart Watering] {plant_name}: skip={adjustment.should_skip} "
            f"increase={adjustment.should_increase} ({adjustment.reason})"
        )
    return adjustment
