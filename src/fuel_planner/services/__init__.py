"""Plan generation, glucose history analysis and the calendar feed."""

from .batching import gather_in_batches
from .calendar import fetch_calendar_data
from .history_analyzer import (
    HistoryAnalyzer,
    analyze_activity,
    analyze_history,
    classify_workout,
    extract_fuel_rate,
    suggest_fuel_rate,
)
from .plan_generator import PlanGenerator, generate_plan, summarize_weekly_volume

__all__ = [
    "gather_in_batches",
    "fetch_calendar_data",
    "HistoryAnalyzer",
    "analyze_activity",
    "analyze_history",
    "classify_workout",
    "extract_fuel_rate",
    "suggest_fuel_rate",
    "PlanGenerator",
    "generate_plan",
    "summarize_weekly_volume",
]
