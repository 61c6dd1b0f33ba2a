"""Heart rate zone and pacing calculations based on LTHR."""

import math
from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple

from ..exceptions import ValidationError


# Upper bound for a zone fraction of LTHR
MAX_ZONE_FRACTION = 1.2

# Estimated running pace per intensity (minutes per km), used to turn
# distance-based steps into an estimated duration.
PACE_MIN_PER_KM: Dict[str, float] = {
    "hard": 4.75,
    "tempo": 5.15,
    "steady": 6.15,
    "easy": 6.75,
}


def _clean(value: float) -> float:
    # 1.1 * 100 == 110.00000000000001; keep floor/ceil on the intended value
    return round(value, 9)


@dataclass(frozen=True)
class ZoneBand:
    """A heart rate band expressed as fractions of LTHR."""

    min_pct: float
    max_pct: float

    def __post_init__(self):
        """Validate band bounds."""
        for value in (self.min_pct, self.max_pct):
            if not 0 < value <= MAX_ZONE_FRACTION:
                raise ValidationError(
                    f"Zone fraction {value} outside (0, {MAX_ZONE_FRACTION}]",
                    field="zones",
                )
        if self.min_pct > self.max_pct:
            raise ValidationError(
                f"Zone minimum {self.min_pct} above maximum {self.max_pct}",
                field="zones",
            )

    def bpm(self, lthr: int) -> Tuple[int, int]:
        """Heart rate range in bpm for this band."""
        return bpm_range(self.min_pct, self.max_pct, lthr)


@dataclass(frozen=True)
class HRZoneModel:
    """
    The four training bands used for workout prescriptions.

    Deployments tune the numbers; the generator only refers to the
    band names (easy, steady, tempo, hard).
    """

    easy: ZoneBand = ZoneBand(0.72, 0.80)
    steady: ZoneBand = ZoneBand(0.77, 0.84)
    tempo: ZoneBand = ZoneBand(0.88, 0.94)
    hard: ZoneBand = ZoneBand(0.95, 1.00)

    def band(self, name: str) -> ZoneBand:
        """Look up a band by name."""
        if name not in PACE_MIN_PER_KM:
            raise KeyError(f"Unknown zone: {name}")
        return getattr(self, name)

    def to_dict(self) -> dict:
        """Convert to dictionary for serialization."""
        return {
            name: {"min": self.band(name).min_pct, "max": self.band(name).max_pct}
            for name in ("easy", "steady", "tempo", "hard")
        }


DEFAULT_ZONES = HRZoneModel()


def bpm_range(pct_min: float, pct_max: float, lthr: int) -> Tuple[int, int]:
    """
    Convert an LTHR percentage range into a bpm range.

    The lower bound is floored and the upper bound ceiled so the range
    never shrinks. No clamping is applied.

    Args:
        pct_min: Lower bound as a fraction of LTHR (e.g. 0.72)
        pct_max: Upper bound as a fraction of LTHR
        lthr: Lactate Threshold Heart Rate

    Returns:
        (bpm_min, bpm_max)
    """
    return math.floor(_clean(lthr * pct_min)), math.ceil(_clean(lthr * pct_max))


def format_step(
    duration: str,
    pct_min: float,
    pct_max: float,
    lthr: int,
    note: Optional[str] = None,
) -> str:
    """
    Render one workout step as text.

    The note goes first so it is the first thing shown on a watch,
    then duration, then the zone:

        "PUMP OFF 10m 72-80% LTHR (121-136 bpm)"

    Args:
        duration: Duration or distance label ("10m", "12km")
        pct_min: Lower bound as a fraction of LTHR
        pct_max: Upper bound as a fraction of LTHR
        lthr: Lactate Threshold Heart Rate
        note: Optional prefix (fueling directive, "Uphill", ...)

    Returns:
        Step text
    """
    min_bpm, max_bpm = bpm_range(pct_min, pct_max, lthr)
    min_display = math.floor(_clean(pct_min * 100))
    max_display = math.ceil(_clean(pct_max * 100))
    core = f"{duration} {min_display}-{max_display}% LTHR ({min_bpm}-{max_bpm} bpm)"
    return f"{note} {core}" if note else core


def estimate_distance_minutes(distance_km: float, zone: str) -> float:
    """
    Estimate minutes needed to cover a distance in a given zone.

    Args:
        distance_km: Distance in km
        zone: Zone name (hard, tempo, steady, easy)

    Returns:
        Estimated duration in minutes
    """
    return distance_km * PACE_MIN_PER_KM[zone]


# Boundaries for classifying recorded HR samples (fractions of LTHR).
# Zone 5 is everything above 100%.
HR_ZONE_UPPER_BOUNDS: List[float] = [0.80, 0.88, 0.94, 1.00]


def get_zone_for_hr(hr: float, lthr: int) -> int:
    """
    Return zone number (1-5) for a heart rate sample.

    Args:
        hr: Heart rate to classify
        lthr: Lactate Threshold Heart Rate

    Returns:
        Zone number (1-5)
    """
    for zone, upper in enumerate(HR_ZONE_UPPER_BOUNDS, start=1):
        if hr <= lthr * upper:
            return zone
    return 5


def calculate_hr_zone_breakdown(hr_samples: List[Optional[float]], lthr: int) -> Dict[str, int]:
    """
    Count HR samples per zone.

    With one sample per second (Intervals.icu streams) the counts are
    seconds spent in each zone. Null samples (sensor gaps) are skipped.

    Args:
        hr_samples: Heart rate values
        lthr: Lactate Threshold Heart Rate

    Returns:
        Dictionary with z1..z5 sample counts
    """
    counts = {"z1": 0, "z2": 0, "z3": 0, "z4": 0, "z5": 0}
    for hr in hr_samples:
        if hr is None:
            continue
        counts[f"z{get_zone_for_hr(hr, lthr)}"] += 1
    return counts
