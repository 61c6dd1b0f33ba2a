"""Calendar data models merging completed activities and planned workouts."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Optional

from .workouts import WorkoutCategory


@dataclass(frozen=True)
class DataPoint:
    """A stream sample: minutes from start and value."""
    time: int
    value: float

    def to_dict(self) -> dict:
        return {"time": self.time, "value": self.value}


@dataclass(frozen=True)
class HRZoneData:
    """Time (seconds) spent in each HR zone."""
    z1: int = 0
    z2: int = 0
    z3: int = 0
    z4: int = 0
    z5: int = 0

    def to_dict(self) -> dict:
        return {"z1": self.z1, "z2": self.z2, "z3": self.z3, "z4": self.z4, "z5": self.z5}


@dataclass(frozen=True)
class StreamData:
    """Per-activity stream series for detail views."""
    glucose: List[DataPoint] = field(default_factory=list)
    heartrate: List[DataPoint] = field(default_factory=list)
    pace: List[DataPoint] = field(default_factory=list)
    cadence: List[DataPoint] = field(default_factory=list)
    altitude: List[DataPoint] = field(default_factory=list)
    power: List[DataPoint] = field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not any(
            (self.glucose, self.heartrate, self.pace, self.cadence, self.altitude, self.power)
        )

    def to_dict(self) -> dict:
        series = {
            "glucose": self.glucose,
            "heartrate": self.heartrate,
            "pace": self.pace,
            "cadence": self.cadence,
            "altitude": self.altitude,
            "power": self.power,
        }
        return {name: [p.to_dict() for p in points] for name, points in series.items()}


@dataclass(frozen=True)
class CalendarEvent:
    """A completed activity, planned workout or race on the calendar."""
    id: str
    date: datetime
    name: str
    description: str
    type: str  # "completed", "planned" or "race"
    category: WorkoutCategory
    distance: Optional[float] = None  # meters
    duration: Optional[int] = None  # moving seconds
    avg_hr: Optional[int] = None
    max_hr: Optional[int] = None
    load: Optional[float] = None
    intensity: Optional[float] = None
    pace: Optional[float] = None  # min/km
    calories: Optional[int] = None
    cadence: Optional[float] = None  # spm
    hr_zones: Optional[HRZoneData] = None
    stream_data: Optional[StreamData] = None

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "date": self.date.isoformat(),
            "name": self.name,
            "description": self.description,
            "type": self.type,
            "category": self.category.value,
            "distance": self.distance,
            "duration": self.duration,
            "avg_hr": self.avg_hr,
            "max_hr": self.max_hr,
            "load": self.load,
            "intensity": self.intensity,
            "pace": round(self.pace, 2) if self.pace is not None else None,
            "calories": self.calories,
            "cadence": self.cadence,
            "hr_zones": self.hr_zones.to_dict() if self.hr_zones else None,
            "stream_data": self.stream_data.to_dict() if self.stream_data else None,
        }
