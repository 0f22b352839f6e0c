"""
Species Profile Service - per-species moisture physiology.

Read-only store of species moisture profiles keyed by scientific name.

Lookup order:
1. Process-lifetime profile cache
2. Bundled profile table (app/data/species_profiles.json, loaded once)
3. Supabase species_profiles table (only when SPECIES_PROFILES_REMOTE_ENABLED)
4. Fallback "average houseplant" profile

A lookup never raises and never returns None: unknown species, malformed
remote rows, and Supabase errors all degrade to the fallback profile.
"""

from __future__ import annotations
from types import MappingProxyType
from typing import Any, Dict, List, Mapping, Optional
import logging

from flask import current_app, has_app_context

from app.utils.cache import (
    cache_profile_lookup,
    clear_profile_cache as _clear_cache,
    invalidate_profile,
    profile_cache_size,
)
from app.utils.data import load_data_file
from . import supabase_client
from .care_models import (
    CareNotes,
    EnvironmentFactors,
    EnvironmentFactorSet,
    MoistureThresholds,
    Sensitivities,
    SpeciesMoistureProfile,
    WateringInterval,
)

logger = logging.getLogger(__name__)

PROFILE_DATA_FILE = "species_profiles.json"

# Thresholds for the profile-based classifiers
DROUGHT_TOLERANT_MIN = 0.7
MOISTURE_LOVING_HUMIDITY_MIN = 0.7
MOISTURE_LOVING_DROUGHT_MAX = 0.3


def _get_config(key: str, default: Any) -> Any:
    """
    Get configuration value with fallback.

    Args:
        key: Config key name
        default: Default value if not configured or outside an app context

    Returns:
        Configuration value
    """
    if has_app_context():
        return current_app.config.get(key, default)
    return default


def _normalize_name(scientific_name: Optional[str]) -> str:
    return " ".join((scientific_name or "").split()).lower()


def _load_bundled_profiles() -> Mapping[str, SpeciesMoistureProfile]:
    table: Dict[str, SpeciesMoistureProfile] = {}
    for raw in load_data_file(PROFILE_DATA_FILE):
        try:
            profile = SpeciesMoistureProfile.from_dict(raw)
        except (ValueError, TypeError) as e:
            logger.warning(f"[Species] Skipping malformed bundled profile {raw.get('scientific_name')!r}: {e}")
            continue
        table[_normalize_name(profile.scientific_name)] = profile
    return MappingProxyType(table)


# Loaded once at import; profiles are static configuration
_BUNDLED_PROFILES = _load_bundled_profiles()


def get_fallback_profile(scientific_name: Optional[str] = None) -> SpeciesMoistureProfile:
    """
    Return the documented "average houseplant" profile.

    Args:
        scientific_name: Name to carry on the profile (defaults to "Unknown species")

    Returns:
        Profile with retention 0.5, intervals 7/14 days, thresholds 0.2/0.5/0.8,
        temperature sensitivity only, and moderate environment factors
    """
    return SpeciesMoistureProfile(
        scientific_name=(scientific_name or "").strip() or "Unknown species",
        common_names=(),
        category="houseplant",
        retention_score=0.5,
        drought_tolerance=0.5,
        humidity_preference=0.5,
        watering_interval=WateringInterval(summer=7, winter=14),
        moisture_thresholds=MoistureThresholds(min=0.2, optimal=0.5, max=0.8),
        sensitivities=Sensitivities(
            overwatering=False,
            underwatering=False,
            temperature=True,
            wind=False,
        ),
        environment_factors=EnvironmentFactorSet(
            indoor=EnvironmentFactors(
                evaporation_rate=0.3,
                temperature_sensitivity=0.5,
                wind_sensitivity=0.2,
                humidity_dependence=0.5,
            ),
            outdoor=EnvironmentFactors(
                evaporation_rate=0.5,
                temperature_sensitivity=0.5,
                wind_sensitivity=0.5,
                humidity_dependence=0.5,
            ),
        ),
        care_notes=CareNotes(
            watering=(
                "Water when top inch of soil feels dry",
                "Adjust frequency based on season and environment",
            ),
            environment=(
                "Maintain consistent moisture levels",
                "Avoid extreme temperature fluctuations",
            ),
            seasonal=(
                "Reduce watering in winter",
                "Monitor more frequently during hot summer months",
            ),
        ),
        is_fallback=True,
    )


def profile_from_record(record: Dict[str, Any]) -> SpeciesMoistureProfile:
    """
    Transform a flat species_profiles row into a profile.

    Rows carry no environment factors; the moderate defaults apply.

    Raises:
        ValueError/TypeError: if required numeric columns are missing or malformed
    """
    fallback = get_fallback_profile()
    thresholds = MoistureThresholds(
        min=float(record["moisture_threshold_min"]),
        optimal=float(record["moisture_threshold_optimal"]),
        max=float(record["moisture_threshold_max"]),
    )
    if not thresholds.min <= thresholds.optimal <= thresholds.max:
        raise ValueError("moisture thresholds out of order")

    return SpeciesMoistureProfile(
        scientific_name=record["scientific_name"],
        common_names=tuple(record.get("common_names") or ()),
        category=record.get("category") or "houseplant",
        retention_score=float(record["moisture_retention_score"]),
        drought_tolerance=float(record.get("drought_tolerance", 0.5)),
        humidity_preference=float(record.get("humidity_preference", 0.5)),
        watering_interval=WateringInterval(
            summer=int(record["watering_interval_summer"]),
            winter=int(record["watering_interval_winter"]),
        ),
        moisture_thresholds=thresholds,
        sensitivities=Sensitivities(
            overwatering=bool(record.get("sensitive_to_overwatering")),
            underwatering=bool(record.get("sensitive_to_underwatering")),
            temperature=bool(record.get("sensitive_to_temperature")),
            wind=bool(record.get("sensitive_to_wind")),
        ),
        environment_factors=fallback.environment_factors,
        care_notes=CareNotes(
            watering=tuple(record.get("watering_notes") or ()),
            environment=tuple(record.get("environment_notes") or ()),
            seasonal=tuple(record.get("seasonal_notes") or ()),
        ),
    )


def _fetch_remote_profile(scientific_name: str) -> Optional[SpeciesMoistureProfile]:
    if not _get_config("SPECIES_PROFILES_REMOTE_ENABLED", False):
        return None

    table = _get_config("SPECIES_PROFILES_TABLE", "species_profiles")
    record = supabase_client.get_species_profile_record(scientific_name, table=table)
    if not record:
        return None

    try:
        return profile_from_record(record)
    except (KeyError, TypeError, ValueError) as e:
        logger.warning(f"[Species] Malformed remote profile for {scientific_name}: {e}")
        return None


@cache_profile_lookup
def _lookup_profile(scientific_name: Optional[str]) -> SpeciesMoistureProfile:
    bundled = _BUNDLED_PROFILES.get(_normalize_name(scientific_name))
    if bundled:
        return bundled

    if scientific_name:
        remote = _fetch_remote_profile(scientific_name.strip())
        if remote:
            return remote

    logger.info(f"[Species] No profile for {scientific_name!r}, using fallback")
    return get_fallback_profile(scientific_name)


def get_profile(scientific_name: Optional[str]) -> SpeciesMoistureProfile:
    """
    Look up the moisture profile for a species.

    Matching is case- and whitespace-insensitive. Never raises for an
    unknown species.

    Args:
        scientific_name: Species scientific name (e.g., "Aloe vera")

    Returns:
        SpeciesMoistureProfile (``is_fallback`` is True for unknown species)

    Example:
        >>> get_profile("Unknown species xyz").retention_score
        0.5
    """
    return _lookup_profile(scientific_name)


def get_all_profiles() -> List[SpeciesMoistureProfile]:
    """Return every bundled profile, sorted by scientific name."""
    return sorted(_BUNDLED_PROFILES.values(), key=lambda p: p.scientific_name)


def is_drought_tolerant(profile: SpeciesMoistureProfile) -> bool:
    return profile.drought_tolerance >= DROUGHT_TOLERANT_MIN


def is_moisture_loving(profile: SpeciesMoistureProfile) -> bool:
    return (
        profile.humidity_preference >= MOISTURE_LOVING_HUMIDITY_MIN
        and profile.drought_tolerance <= MOISTURE_LOVING_DROUGHT_MAX
    )


def clear_profile_cache() -> None:
    """Drop cached lookups (bundled table itself is immutable)."""
    _clear_cache()


def refresh_profiles(scientific_name: Optional[str] = None) -> int:
    """
    Drop cached lookups for one species, or all of them, so edits to the
    remote species table are picked up.

    Returns:
        Number of cache entries dropped
    """
    before = profile_cache_size()
    if scientific_name:
        invalidate_profile(scientific_name)
    else:
        _clear_cache()
    dropped = before - profile_cache_size()
    logger.info(f"[Species] Profile cache refreshed ({dropped} dropped)")
    return dropped
