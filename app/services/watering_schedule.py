"""
Watering schedule - next watering date for a reminder.

Combines the interval calculator with the adjustment evaluator: the baseline
next date is ``last_watered + interval``, then the evaluator may push it back
(rain) or flag it for extra attention.
"""

from __future__ import annotations
from datetime import datetime, timedelta, timezone
from typing import Optional
import math

from app.constants import ENV_INDOOR, ENV_OUTDOOR
from .care_models import (
    SpeciesMoistureProfile,
    WateringPreferences,
    WateringSchedule,
    WeatherSnapshot,
    ensure_utc,
)
from .moisture_timeline import days_between
from .watering_adjustments import evaluate
from .watering_interval import calculate_interval_for_weather


def build_watering_schedule(
    profile: Optional[SpeciesMoistureProfile],
    weather: Optional[WeatherSnapshot],
    is_indoor: bool,
    last_watered: Optional[datetime] = None,
    preferences: Optional[WateringPreferences] = None,
    now: Optional[datetime] = None,
    plant_name: Optional[str] = None
) -> WateringSchedule:
    """
    Compute the next watering for a plant.

    Args:
        profile: Species moisture profile
        weather: Current weather snapshot
        is_indoor: Whether the plant lives indoors
        last_watered: Last watering (defaults to now)
        preferences: Evaluator thresholds (config defaults if None)
        now: Reference time (defaults to current UTC time)
        plant_name: Name used in adjustment messages

    Returns:
        WateringSchedule; empty (all None) when profile or weather is missing
    """
    if profile is None or weather is None:
        return WateringSchedule()

    now = ensure_utc(now) if now else datetime.now(timezone.utc)
    last_watered = ensure_utc(last_watered) if last_watered else now

    base_interval = calculate_interval_for_weather(profile, weather, is_indoor)
    base_next = last_watered + timedelta(days=base_interval)

    adjustment = evaluate(
        profile,
        profile.scientific_name,
        ENV_INDOOR if is_indoor else ENV_OUTDOOR,
        weather,
        base_next,
        preferences=preferences,
        plant_name=plant_name,
    )

    next_date = adjustment.next_watering_date
    return WateringSchedule(
        next_watering_date=next_date,
        days_until_next_watering=math.ceil(days_between(now, next_date)),
        adjustment=adjustment,
        base_interval=base_interval,
    )
