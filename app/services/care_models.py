"""
Care engine data model.

Immutable records passed between the profile store, the simulators, and the
recommendation layer. Every record serializes with ``to_dict()`` for JSON
responses, and the input records (weather, growing method, preferences,
profiles) can be built from either snake_case or camelCase dicts so the mobile
client payloads are accepted unchanged.
"""

from __future__ import annotations
from dataclasses import dataclass, field, asdict, fields
from datetime import date, datetime, timezone
from typing import Any, Dict, List, Optional, Tuple

from app.constants import (
    GROWING_HYDROPONIC,
    GROWING_METHODS,
    GROWING_SOIL,
)


# ============================================================================
# Helpers
# ============================================================================

def ensure_utc(value: datetime) -> datetime:
    """Treat naive datetimes as UTC so day arithmetic never mixes offsets."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def parse_datetime(value: Any) -> Optional[datetime]:
    """
    Coerce ISO strings, dates, datetimes and epoch numbers to an aware datetime.

    Epoch numbers above 1e11 are read as milliseconds (JavaScript timestamps).

    Returns:
        Aware UTC datetime, or None for empty input

    Raises:
        ValueError: if the value cannot be interpreted as a point in time
    """
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return ensure_utc(value)
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day, tzinfo=timezone.utc)
    if isinstance(value, bool):
        raise ValueError(f"Invalid timestamp: {value!r}")
    if isinstance(value, (int, float)):
        seconds = value / 1000 if value > 1e11 else value
        return datetime.fromtimestamp(seconds, tz=timezone.utc)
    if isinstance(value, str):
        return ensure_utc(datetime.fromisoformat(value.strip().replace("Z", "+00:00")))
    raise ValueError(f"Invalid timestamp: {value!r}")


def _pick(data: Dict[str, Any], *keys: str, default: Any = None) -> Any:
    """Return the first present key (snake_case first, then aliases)."""
    for key in keys:
        if key in data and data[key] is not None:
            return data[key]
    return default


def _number(value: Any, name: str) -> float:
    if isinstance(value, bool):
        raise ValueError(f"{name} must be a number")
    try:
        return float(value)
    except (TypeError, ValueError):
        raise ValueError(f"{name} must be a number") from None


_TRUE_STRINGS = frozenset({"true", "1", "yes", "on"})
_FALSE_STRINGS = frozenset({"false", "0", "no", "off", ""})


def parse_flag(value: Any, name: str) -> bool:
    """Read a JSON boolean, 0/1, or a "true"/"false" style string."""
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)) and value in (0, 1):
        return bool(value)
    if isinstance(value, str):
        text = value.strip().lower()
        if text in _TRUE_STRINGS:
            return True
        if text in _FALSE_STRINGS:
            return False
    raise ValueError(f"{name} must be true or false")


def _serialize(value: Any) -> Any:
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, dict):
        return {k: _serialize(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_serialize(v) for v in value]
    return value


class _Serializable:
    def to_dict(self) -> Dict[str, Any]:
        return _serialize(asdict(self))


# ============================================================================
# Species profile
# ============================================================================

@dataclass(frozen=True)
class EnvironmentFactors(_Serializable):
    evaporation_rate: float = 0.5
    temperature_sensitivity: float = 0.5
    wind_sensitivity: float = 0.5
    humidity_dependence: float = 0.5

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> "EnvironmentFactors":
        data = data or {}
        return cls(
            evaporation_rate=_number(_pick(data, "evaporation_rate", "evaporationRate", default=0.5), "evaporation_rate"),
            temperature_sensitivity=_number(_pick(data, "temperature_sensitivity", "temperatureSensitivity", default=0.5), "temperature_sensitivity"),
            wind_sensitivity=_number(_pick(data, "wind_sensitivity", "windSensitivity", default=0.5), "wind_sensitivity"),
            humidity_dependence=_number(_pick(data, "humidity_dependence", "humidityDependence", default=0.5), "humidity_dependence"),
        )


@dataclass(frozen=True)
class EnvironmentFactorSet(_Serializable):
    indoor: EnvironmentFactors = field(default_factory=EnvironmentFactors)
    outdoor: EnvironmentFactors = field(default_factory=EnvironmentFactors)


@dataclass(frozen=True)
class WateringInterval(_Serializable):
    summer: int
    winter: int


@dataclass(frozen=True)
class MoistureThresholds(_Serializable):
    min: float
    optimal: float
    max: float

    def clamp(self, moisture: float) -> float:
        if moisture < self.min:
            return self.min
        if moisture > self.max:
            return self.max
        return moisture


@dataclass(frozen=True)
class Sensitivities(_Serializable):
    overwatering: bool = False
    underwatering: bool = False
    temperature: bool = False
    wind: bool = False


@dataclass(frozen=True)
class CareNotes(_Serializable):
    watering: Tuple[str, ...] = ()
    environment: Tuple[str, ...] = ()
    seasonal: Tuple[str, ...] = ()


@dataclass(frozen=True)
class SpeciesMoistureProfile(_Serializable):
    """Static physiological constants for one species."""
    scientific_name: str
    common_names: Tuple[str, ...]
    category: str
    retention_score: float
    drought_tolerance: float
    humidity_preference: float
    watering_interval: WateringInterval
    moisture_thresholds: MoistureThresholds
    sensitivities: Sensitivities
    environment_factors: EnvironmentFactorSet = field(default_factory=EnvironmentFactorSet)
    care_notes: CareNotes = field(default_factory=CareNotes)
    is_fallback: bool = False

    @property
    def display_name(self) -> str:
        return self.common_names[0] if self.common_names else self.scientific_name

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SpeciesMoistureProfile":
        """
        Build a profile from a nested dict.

        Accepts both the flat shape and the mobile client's shape where the
        physiological values live under a ``moisture`` key.

        Raises:
            ValueError: if a numeric field is malformed or thresholds are unordered
        """
        moisture = data.get("moisture") or data
        interval = _pick(moisture, "watering_interval", "wateringInterval", default={}) or {}
        thresholds = _pick(moisture, "moisture_thresholds", "moistureThresholds", default={}) or {}
        sens = moisture.get("sensitivities") or {}
        env = _pick(moisture, "environment_factors", "environmentFactors", default={}) or {}
        notes = _pick(data, "care_notes", "careNotes", default={}) or {}

        parsed_thresholds = MoistureThresholds(
            min=_number(thresholds.get("min", 0.2), "moisture_thresholds.min"),
            optimal=_number(thresholds.get("optimal", 0.5), "moisture_thresholds.optimal"),
            max=_number(thresholds.get("max", 0.8), "moisture_thresholds.max"),
        )
        if not parsed_thresholds.min <= parsed_thresholds.optimal <= parsed_thresholds.max:
            raise ValueError("moisture_thresholds must satisfy min <= optimal <= max")

        return cls(
            scientific_name=str(_pick(data, "scientific_name", "scientificName", default="Unknown species")),
            common_names=tuple(_pick(data, "common_names", "commonNames", default=()) or ()),
            category=str(data.get("category") or "houseplant"),
            retention_score=_number(_pick(moisture, "retention_score", "retentionScore", default=0.5), "retention_score"),
            drought_tolerance=_number(_pick(moisture, "drought_tolerance", "droughtTolerance", default=0.5), "drought_tolerance"),
            humidity_preference=_number(_pick(moisture, "humidity_preference", "humidityPreference", default=0.5), "humidity_preference"),
            watering_interval=WateringInterval(
                summer=int(_number(interval.get("summer", 7), "watering_interval.summer")),
                winter=int(_number(interval.get("winter", 14), "watering_interval.winter")),
            ),
            moisture_thresholds=parsed_thresholds,
            sensitivities=Sensitivities(
                overwatering=bool(sens.get("overwatering", False)),
                underwatering=bool(sens.get("underwatering", False)),
                temperature=bool(sens.get("temperature", False)),
                wind=bool(sens.get("wind", False)),
            ),
            environment_factors=EnvironmentFactorSet(
                indoor=EnvironmentFactors.from_dict(env.get("indoor")),
                outdoor=EnvironmentFactors.from_dict(env.get("outdoor")),
            ),
            care_notes=CareNotes(
                watering=tuple(notes.get("watering") or ()),
                environment=tuple(notes.get("environment") or ()),
                seasonal=tuple(notes.get("seasonal") or ()),
            ),
        )


# ============================================================================
# Weather & growing method
# ============================================================================

@dataclass(frozen=True)
class WeatherSnapshot(_Serializable):
    """Current conditions in metric units (°C, %, m/s, mm)."""
    temperature: float
    humidity: float
    wind_speed: float = 0.0
    rain_forecast: float = 0.0
    condition: str = ""
    timestamp: Optional[datetime] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "WeatherSnapshot":
        """
        Raises:
            ValueError: if temperature/humidity are missing or a number is malformed
        """
        temperature = _pick(data, "temperature", "temp_c")
        humidity = data.get("humidity")
        if temperature is None or humidity is None:
            raise ValueError("weather requires temperature and humidity")

        return cls(
            temperature=_number(temperature, "temperature"),
            humidity=_number(humidity, "humidity"),
            wind_speed=_number(_pick(data, "wind_speed", "windSpeed", "wind_mps", default=0), "wind_speed"),
            rain_forecast=_number(_pick(data, "rain_forecast", "rainForecast", "rain_mm", default=0), "rain_forecast"),
            condition=str(_pick(data, "condition", "conditions", default="")),
            timestamp=parse_datetime(data.get("timestamp")),
        )


@dataclass(frozen=True)
class NutrientSchedule(_Serializable):
    frequency_days: int
    solution: str = ""
    ppm: float = 0.0


@dataclass(frozen=True)
class GrowingMethod(_Serializable):
    type: str = GROWING_SOIL
    nutrient_schedule: Optional[NutrientSchedule] = None

    @property
    def is_hydroponic(self) -> bool:
        return self.type == GROWING_HYDROPONIC

    @classmethod
    def soil(cls) -> "GrowingMethod":
        return cls(type=GROWING_SOIL)

    @classmethod
    def hydroponic(cls, frequency_days: int, solution: str = "", ppm: float = 0.0) -> "GrowingMethod":
        return cls(
            type=GROWING_HYDROPONIC,
            nutrient_schedule=NutrientSchedule(frequency_days=frequency_days, solution=solution, ppm=ppm),
        )

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> "GrowingMethod":
        if not data:
            return cls.soil()

        method_type = str(data.get("type") or GROWING_SOIL).strip().lower()
        if method_type not in GROWING_METHODS:
            raise ValueError(f"growing_method.type must be one of {', '.join(GROWING_METHODS)}")

        schedule = _pick(data, "nutrient_schedule", "nutrientSchedule")
        if method_type != GROWING_HYDROPONIC or not schedule:
            return cls(type=method_type)

        return cls(
            type=method_type,
            nutrient_schedule=NutrientSchedule(
                frequency_days=int(_number(_pick(schedule, "frequency_days", "frequencyDays"), "frequency_days")),
                solution=str(schedule.get("solution") or ""),
                ppm=_number(schedule.get("ppm", 0), "ppm"),
            ),
        )


# ============================================================================
# Engine outputs
# ============================================================================

@dataclass(frozen=True)
class MoistureDataPoint(_Serializable):
    date: datetime
    moisture: float
    optimal: float
    confidence: float


@dataclass(frozen=True)
class WateringPreferences(_Serializable):
    enabled: bool = True
    rain_skip_threshold: float = 5.0
    heat_increase_threshold: float = 30.0
    wind_speed_threshold: float = 15.0
    low_humidity_threshold: float = 30.0

    _ALIASES = {
        "enabled": ("enabled",),
        "rain_skip_threshold": ("rain_skip_threshold", "rainSkipThreshold"),
        "heat_increase_threshold": ("heat_increase_threshold", "heatIncreaseThreshold"),
        "wind_speed_threshold": ("wind_speed_threshold", "windSpeedThreshold"),
        "low_humidity_threshold": ("low_humidity_threshold", "lowHumidityThreshold"),
    }

    def merged(self, overrides: Optional[Dict[str, Any]]) -> "WateringPreferences":
        """
        Return a copy with any provided overrides applied (unknown keys ignored).

        Raises:
            ValueError: if a threshold is not numeric or enabled is not a boolean
        """
        if not overrides:
            return self
        values = {f.name: getattr(self, f.name) for f in fields(self)}
        for name, keys in self._ALIASES.items():
            raw = _pick(overrides, *keys)
            if raw is None:
                continue
            values[name] = parse_flag(raw, name) if name == "enabled" else _number(raw, name)
        return WateringPreferences(**values)


@dataclass(frozen=True)
class WateringAdjustment(_Serializable):
    should_skip: bool
    should_increase: bool
    next_watering_date: Optional[datetime]
    recommendation: str = ""
    reason: str = ""


@dataclass(frozen=True)
class Recommendation(_Serializable):
    type: str
    message: str
    reason: str
    icon: str
    severity: str
    environment_label: str = ""
    date: Optional[datetime] = None


@dataclass(frozen=True)
class WateringSchedule(_Serializable):
    next_watering_date: Optional[datetime] = None
    days_until_next_watering: Optional[int] = None
    adjustment: Optional[WateringAdjustment] = None
    base_interval: Optional[int] = None

    @property
    def is_adjusted(self) -> bool:
        if not self.adjustment:
            return False
        return self.adjustment.should_skip or self.adjustment.should_increase

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data["is_adjusted"] = self.is_adjusted
        return data


def timeline_to_dicts(timeline: List[MoistureDataPoint]) -> List[Dict[str, Any]]:
    return [point.to_dict() for point in timeline]
