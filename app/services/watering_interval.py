"""
Watering Interval Calculator - baseline watering cadence in days.

Picks the species' summer or winter interval from the current temperature,
then compounds weather and environment multipliers in a fixed order:

1. Temperature: >30°C x0.7, else <15°C x1.3
2. Humidity: <40% x0.8, else >70% x1.2
3. Indoor: x1.2
4. Temperature-sensitive species: x0.9 above 25°C, else x1.1

The result is rounded half-up to whole days and never drops below
MIN_WATERING_INTERVAL_DAYS.
"""

from __future__ import annotations
from typing import Optional
import math

from app.constants import MIN_WATERING_INTERVAL_DAYS
from .care_models import SpeciesMoistureProfile, WeatherSnapshot

SUMMER_TEMPERATURE_C = 20


def seasonal_base_interval(profile: SpeciesMoistureProfile, temperature: float) -> int:
    """Summer interval above 20°C, winter interval otherwise."""
    is_summer = temperature > SUMMER_TEMPERATURE_C
    return profile.watering_interval.summer if is_summer else profile.watering_interval.winter


def calculate_interval(
    profile: Optional[SpeciesMoistureProfile],
    temperature: Optional[float],
    humidity: Optional[float],
    is_indoor: bool
) -> Optional[int]:
    """
    Calculate the watering interval for current conditions.

    Args:
        profile: Species moisture profile
        temperature: Current temperature (°C)
        humidity: Current relative humidity (%)
        is_indoor: Whether the plant lives indoors

    Returns:
        Interval in whole days (>= 1), or None if profile or weather is missing

    Example:
        >>> calculate_interval(basil, temperature=35, humidity=25, is_indoor=False)
        1
    """
    if profile is None or temperature is None or humidity is None:
        return None

    interval = float(seasonal_base_interval(profile, temperature))

    if temperature > 30:
        interval *= 0.7  # heat
    elif temperature < 15:
        interval *= 1.3  # cool

    if humidity < 40:
        interval *= 0.8  # dry air
    elif humidity > 70:
        interval *= 1.2  # humid air

    if is_indoor:
        interval *= 1.2

    if profile.sensitivities.temperature:
        interval *= 0.9 if temperature > 25 else 1.1

    return max(MIN_WATERING_INTERVAL_DAYS, math.floor(interval + 0.5))


def calculate_interval_for_weather(
    profile: Optional[SpeciesMoistureProfile],
    weather: Optional[WeatherSnapshot],
    is_indoor: bool
) -> Optional[int]:
    """Convenience wrapper taking a WeatherSnapshot (None-safe)."""
    if weather is None:
        return None
    return calculate_interval(profile, weather.temperature, weather.humidity, is_indoor)
