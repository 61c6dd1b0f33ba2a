"""Data models for plans, analysis results and the calendar feed."""

from .workouts import WorkoutCategory, WorkoutEvent, WorkoutStep, WeeklyVolume, format_number
from .plan import FuelRates, RaceConfig
from .analysis import AnalysisResult, CategoryAnalysis, GlucosePoint
from .calendar import CalendarEvent, DataPoint, HRZoneData, StreamData

__all__ = [
    "WorkoutCategory",
    "WorkoutEvent",
    "WorkoutStep",
    "WeeklyVolume",
    "format_number",
    "FuelRates",
    "RaceConfig",
    "AnalysisResult",
    "CategoryAnalysis",
    "GlucosePoint",
    "CalendarEvent",
    "DataPoint",
    "HRZoneData",
    "StreamData",
]
