"""
Moisture Timeline Simulator - day-by-day substrate moisture forecast.

Forward-simulates fractional moisture (0 = bone dry, 1 = saturated) over a
short horizon from a species profile and a single weather snapshot. The model
is deliberately approximate: each point carries a confidence score instead of
claiming physical accuracy.

Per simulated day, starting from the previous day's moisture:
- base loss = (1 - retention) * 0.2
- temperature loss = base * (1 + max(0, (T - 20) / 30))
- humidity loss = base * max(0, (70 - RH) / 70)
- wind loss (outdoor, wind-sensitive species) = base * min(1, wind / 20)
- rain gain (outdoor) = min(0.3, rain_mm / 20)
- indoor damping x0.95
- clamp into [min, max] thresholds

Confidence restarts at 0.9 every day and is only reduced by that day's wind,
rain and indoor factors. It describes how far one day's prediction can be
trusted, not drift accumulated across the horizon; the dashboard colors each
point independently.
"""

from __future__ import annotations
from datetime import datetime, timedelta, timezone
from typing import List, Optional, Tuple

from app.constants import MAX_FORECAST_HORIZON_DAYS, DEFAULT_FORECAST_HORIZON_DAYS
from .care_models import (
    MoistureDataPoint,
    SpeciesMoistureProfile,
    WeatherSnapshot,
    ensure_utc,
)

BASE_CONFIDENCE = 0.9
SECONDS_PER_DAY = 86400


def days_between(start: datetime, end: datetime) -> float:
    """Fractional days from start to end (negative if end is earlier)."""
    return (ensure_utc(end) - ensure_utc(start)).total_seconds() / SECONDS_PER_DAY


def initial_moisture(
    profile: SpeciesMoistureProfile,
    last_watered: Optional[datetime],
    now: datetime
) -> float:
    """
    Estimate today's moisture from the time since the last watering.

    A fresh watering starts at 1.0 and decays linearly over
    ``retention_score * 10`` days, never below the species minimum.
    """
    thresholds = profile.moisture_thresholds
    if last_watered is None:
        return max(thresholds.min, 1.0)

    days_since = max(0.0, days_between(last_watered, now))
    if profile.retention_score <= 0:
        return thresholds.min
    return max(thresholds.min, 1 - days_since / (profile.retention_score * 10))


def predict_day(
    moisture: float,
    profile: SpeciesMoistureProfile,
    weather: WeatherSnapshot,
    is_indoor: bool
) -> Tuple[float, float]:
    """
    Advance moisture by one day.

    Returns:
        (moisture, confidence) for the simulated day
    """
    confidence = BASE_CONFIDENCE
    base_loss = (1 - profile.retention_score) * 0.2

    temp_factor = max(0.0, (weather.temperature - 20) / 30)
    moisture -= base_loss * (1 + temp_factor)

    humidity_factor = max(0.0, (70 - weather.humidity) / 70)
    moisture -= base_loss * humidity_factor

    if profile.sensitivities.wind and not is_indoor:
        wind_factor = min(1.0, weather.wind_speed / 20)
        moisture -= base_loss * wind_factor
        confidence *= 1 - wind_factor * 0.2

    if not is_indoor and weather.rain_forecast > 0:
        moisture += min(0.3, weather.rain_forecast / 20)
        confidence *= 0.8  # rain timing is uncertain

    if is_indoor:
        moisture *= 0.95
        confidence *= 0.9  # variable indoor conditions

    return profile.moisture_thresholds.clamp(moisture), confidence


def simulate(
    profile: Optional[SpeciesMoistureProfile],
    weather: Optional[WeatherSnapshot],
    last_watered: Optional[datetime],
    is_indoor: bool,
    horizon_days: int = DEFAULT_FORECAST_HORIZON_DAYS,
    now: Optional[datetime] = None
) -> List[MoistureDataPoint]:
    """
    Simulate the moisture trajectory for the coming days.

    Args:
        profile: Species moisture profile
        weather: Current weather snapshot
        last_watered: When the plant was last watered (None = just now)
        is_indoor: Whether the plant lives indoors
        horizon_days: Number of daily points, clamped to 1-7
        now: Reference time (defaults to current UTC time)

    Returns:
        One MoistureDataPoint per day, in date order; empty list if profile or
        weather is missing. Every moisture value lies within the profile's
        [min, max] thresholds.
    """
    if profile is None or weather is None:
        return []

    now = ensure_utc(now) if now else datetime.now(timezone.utc)
    horizon = max(1, min(MAX_FORECAST_HORIZON_DAYS, int(horizon_days)))
    optimal = profile.moisture_thresholds.optimal

    timeline: List[MoistureDataPoint] = []
    moisture = initial_moisture(profile, last_watered, now)

    for day in range(horizon):
        moisture, confidence = predict_day(moisture, profile, weather, is_indoor)
        timeline.append(MoistureDataPoint(
            date=now + timedelta(days=day),
            moisture=moisture,
            optimal=optimal,
            confidence=confidence,
        ))

    return timeline
