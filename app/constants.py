"""
Shared constants used across the care engine.

This module contains values that need to be consistent across services,
routes, and the CLI (recommendation types, severities, allow-lists, labels).
"""

# Plant environments
ENV_INDOOR = "indoor"
ENV_OUTDOOR = "outdoor"
ENVIRONMENTS = (ENV_INDOOR, ENV_OUTDOOR)

# Growing methods
GROWING_SOIL = "soil"
GROWING_HYDROPONIC = "hydroponic"
GROWING_METHODS = (GROWING_SOIL, GROWING_HYDROPONIC)

# Recommendation types
REC_WATER_SOON = "water_soon"
REC_SKIP = "skip"
REC_MONITOR = "monitor"
REC_URGENT = "urgent"
REC_NUTRIENTS = "nutrients"

# Recommendation severities
SEVERITY_INFO = "info"
SEVERITY_WARNING = "warning"
SEVERITY_URGENT = "urgent"

# Acknowledgement feedback emitted when a dated recommendation is accepted
FEEDBACK_ERROR = "error"
FEEDBACK_WARNING = "warning"
FEEDBACK_SELECTION = "selection"

# Icon names shown on the dashboard card
ICON_NUTRIENTS_DUE = "test-tube"
ICON_NUTRIENTS_SOON = "test-tube-empty"
ICON_STABLE = "check-circle-outline"
ICON_URGENT = "water-alert"
ICON_RAIN = "weather-rainy"
ICON_WATER_SOON = "water-outline"

# Chip labels per environment and growing medium
ENVIRONMENT_LABELS = {
    (ENV_INDOOR, GROWING_SOIL): "Indoor soil",
    (ENV_OUTDOOR, GROWING_SOIL): "Outdoor soil",
    (ENV_INDOOR, GROWING_HYDROPONIC): "Indoor hydroponic",
    (ENV_OUTDOOR, GROWING_HYDROPONIC): "Outdoor hydroponic",
}

# Weather factor labels listed in "water soon" reasons
WEATHER_FACTOR_LABELS = {
    "high_temp": "high temperature",
    "strong_wind": "strong wind",
    "low_humidity": "low humidity",
}

# Species that never get extra watering from generic weather rules
DROUGHT_TOLERANT_SPECIES = frozenset([
    "Aloe vera",
    "Sansevieria trifasciata",
    "Cactaceae",
    "Sedum",
    "Portulaca",
    "Delosperma",
    "Lavandula",
    "Rosmarinus officinalis",
])

# Species that always get closer monitoring
MOISTURE_LOVING_SPECIES = frozenset([
    "Calathea",
    "Fittonia",
    "Spathiphyllum",
    "Alocasia",
    "Colocasia",
    "Impatiens",
    "Hydrangea macrophylla",
])

# Forecast horizon bounds (days)
MAX_FORECAST_HORIZON_DAYS = 7
DEFAULT_FORECAST_HORIZON_DAYS = 7

# Shortest watering cadence the interval calculator will report
MIN_WATERING_INTERVAL_DAYS = 1
