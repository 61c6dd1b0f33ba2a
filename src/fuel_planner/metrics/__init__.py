"""Zone, pacing and glucose calculations."""

from .zones import (
    DEFAULT_ZONES,
    PACE_MIN_PER_KM,
    HRZoneModel,
    ZoneBand,
    bpm_range,
    calculate_hr_zone_breakdown,
    estimate_distance_minutes,
    format_step,
    get_zone_for_hr,
)
from .glucose import (
    GLUCOSE_STREAM_TYPES,
    build_glucose_series,
    calculate_glucose_trend,
    find_glucose_stream,
    glucose_trend_from_streams,
    looks_like_mgdl,
    normalize_glucose_mmol,
    present_samples,
)

__all__ = [
    # Zones
    "DEFAULT_ZONES",
    "PACE_MIN_PER_KM",
    "HRZoneModel",
    "ZoneBand",
    "bpm_range",
    "calculate_hr_zone_breakdown",
    "estimate_distance_minutes",
    "format_step",
    "get_zone_for_hr",
    # Glucose
    "GLUCOSE_STREAM_TYPES",
    "build_glucose_series",
    "calculate_glucose_trend",
    "find_glucose_stream",
    "glucose_trend_from_streams",
    "looks_like_mgdl",
    "normalize_glucose_mmol",
    "present_samples",
]
