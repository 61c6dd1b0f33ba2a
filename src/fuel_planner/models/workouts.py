"""Workout data models for generated plan events."""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Optional

from ..metrics.zones import HRZoneModel, estimate_distance_minutes, format_step


class WorkoutCategory(str, Enum):
    """Categories used for fuel rates and history analysis."""
    LONG = "long"
    INTERVAL = "interval"
    EASY = "easy"
    RACE = "race"
    OTHER = "other"


def format_number(value: float) -> str:
    """Format a number without a trailing .0 when it is whole (12, 12.5)."""
    return f"{int(value)}" if float(value).is_integer() else f"{value:g}"


@dataclass(frozen=True)
class WorkoutStep:
    """
    A single step within a structured workout.

    Defined by duration OR distance. Distance steps get their estimated
    duration from the zone's pace.
    """
    zone: str
    duration_min: Optional[float] = None
    distance_km: Optional[float] = None
    note: Optional[str] = None

    def __post_init__(self):
        """Validate step after initialization."""
        if (self.duration_min is None) == (self.distance_km is None):
            raise ValueError("A step needs exactly one of duration_min or distance_km")

    @property
    def label(self) -> str:
        """Duration/distance label as shown in the description."""
        if self.distance_km is not None:
            return f"{format_number(self.distance_km)}km"
        return f"{format_number(self.duration_min)}m"

    @property
    def estimated_minutes(self) -> float:
        """Estimated duration in minutes."""
        if self.distance_km is not None:
            return estimate_distance_minutes(self.distance_km, self.zone)
        return float(self.duration_min)

    def render(self, zones: HRZoneModel, lthr: int) -> str:
        """Render as a description line (without the leading dash)."""
        band = zones.band(self.zone)
        return format_step(self.label, band.min_pct, band.max_pct, lthr, self.note)


@dataclass(frozen=True)
class WorkoutEvent:
    """
    A dated workout ready for upload to Intervals.icu.

    The description is what the athlete sees; fuel_rate, category and the
    duration/carb estimates are carried as fields so nothing has to be
    parsed back out of the text.
    """
    start_date_local: datetime
    name: str
    description: str
    external_id: str
    category: WorkoutCategory
    week_number: int
    fuel_rate: float
    estimated_duration_min: float
    total_carbs_g: int
    type: str = "Run"

    def to_payload(self) -> dict:
        """Convert to the Intervals.icu bulk event shape."""
        return {
            "category": "WORKOUT",
            "start_date_local": self.start_date_local.strftime("%Y-%m-%dT%H:%M:%S"),
            "name": self.name,
            "description": self.description,
            "external_id": self.external_id,
            "type": self.type,
        }

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return {
            **self.to_payload(),
            "workout_category": self.category.value,
            "week_number": self.week_number,
            "fuel_rate": self.fuel_rate,
            "estimated_duration_min": round(self.estimated_duration_min, 1),
            "total_carbs_g": self.total_carbs_g,
        }


@dataclass(frozen=True)
class WeeklyVolume:
    """Estimated training minutes for one plan week."""
    name: str  # "W01"
    minutes: int
