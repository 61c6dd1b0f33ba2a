"""Blood glucose stream helpers: unit normalization and trend estimation."""

import math
from typing import Dict, List, Optional, Sequence, Tuple


# mg/dL per mmol/L for glucose
MGDL_PER_MMOL = 18.018

# A stream is treated as mg/dL when its mean or peak is implausible for mmol/L.
# Both comparisons are strict: mean == 15 and max == 20 stay as mmol/L.
MGDL_MEAN_THRESHOLD = 15.0
MGDL_MAX_THRESHOLD = 20.0

# Runs shorter than this (hours) are too short for a meaningful slope
MIN_TREND_HOURS = 0.2

# Stream type names CGM integrations publish glucose under
GLUCOSE_STREAM_TYPES = ("bloodglucose", "glucose", "ga_smooth")


def present_samples(
    time_s: Sequence[Optional[float]],
    values: Sequence[Optional[float]],
) -> Tuple[List[float], List[float]]:
    """
    Align a time axis with a sample series, dropping gaps.

    Intervals.icu streams hold null where a sensor dropped out. Any
    (time, value) pair with a null on either side is removed, so the two
    returned lists always have the same length.
    """
    pairs = [(t, v) for t, v in zip(time_s, values) if t is not None and v is not None]
    return [t for t, _ in pairs], [v for _, v in pairs]


def looks_like_mgdl(values: Sequence[Optional[float]]) -> bool:
    """Check whether glucose values look like mg/dL rather than mmol/L."""
    values = [v for v in values if v is not None]
    if not values:
        return False
    mean = sum(values) / len(values)
    return mean > MGDL_MEAN_THRESHOLD or max(values) > MGDL_MAX_THRESHOLD


def normalize_glucose_mmol(values: Sequence[Optional[float]]) -> List[Optional[float]]:
    """
    Return glucose values in mmol/L.

    Values already on the mmol/L scale are returned unchanged; mg/dL
    series (mean > 15 or max > 20) are divided by 18.018. Gaps stay null.

    Args:
        values: Raw glucose samples

    Returns:
        Samples in mmol/L
    """
    if looks_like_mgdl(values):
        return [v / MGDL_PER_MMOL if v is not None else None for v in values]
    return list(values)


def find_glucose_stream(streams: Dict[str, List[float]]) -> List[float]:
    """Pick the glucose series out of a stream set, whatever it is called."""
    for stream_type in GLUCOSE_STREAM_TYPES:
        data = streams.get(stream_type)
        if data:
            return data
    return []


def elapsed_minutes(seconds: float) -> int:
    """Round elapsed seconds to whole minutes (halves round up)."""
    return math.floor(seconds / 60 + 0.5)


def build_glucose_series(
    time_s: Sequence[float],
    glucose: Sequence[float],
) -> List[Tuple[int, float]]:
    """
    Pair the time axis with glucose samples for plotting.

    Args:
        time_s: Elapsed seconds per sample
        glucose: Glucose samples (mmol/L)

    Returns:
        List of (elapsed minutes, glucose)
    """
    return [(elapsed_minutes(t), g) for t, g in zip(time_s, glucose)]


def calculate_glucose_trend(
    time_s: Sequence[float],
    glucose: Sequence[float],
) -> float:
    """
    Calculate glucose rate of change in mmol/L per hour.

    Uses the first and last samples only; interior noise from CGM
    compression lows or sensor warm-up does not move the estimate.
    Returns 0.0 when there is no usable signal or the run lasted
    0.2 hours or less.

    Args:
        time_s: Elapsed seconds per sample
        glucose: Glucose samples (mmol/L)

    Returns:
        Signed trend in mmol/L/hr
    """
    pairs = list(zip(time_s, glucose))
    if len(pairs) < 2:
        return 0.0

    (t_first, g_first), (t_last, g_last) = pairs[0], pairs[-1]
    duration_hr = (t_last - t_first) / 3600
    if duration_hr <= MIN_TREND_HOURS:
        return 0.0
    return (g_last - g_first) / duration_hr


def glucose_trend_from_streams(
    streams: Dict[str, List[float]],
) -> Tuple[float, List[Tuple[int, float]]]:
    """
    Compute trend and plot series from a raw Intervals.icu stream set.

    Args:
        streams: Mapping of stream type to samples

    Returns:
        (trend in mmol/L/hr, plot series)
    """
    time_s, raw = present_samples(streams.get("time") or [], find_glucose_stream(streams))
    if len(raw) < 2:
        return 0.0, []

    glucose = normalize_glucose_mmol(raw)
    return calculate_glucose_trend(time_s, glucose), build_glucose_series(time_s, glucose)
