"""
Glucose history analysis.

Finds the most recent completed workout per category, measures how
blood glucose moved during it and turns that into a suggested fuel rate
for the next workout of the same kind.
"""

import logging
import math
import re
from datetime import date, timedelta
from typing import Callable, Dict, List, Optional

from ..integrations.base import IntegrationClient
from ..integrations.intervals import IntervalsActivity, IntervalsClient
from ..metrics.glucose import glucose_trend_from_streams
from ..models.analysis import AnalysisResult, CategoryAnalysis, GlucosePoint
from ..models.workouts import WorkoutCategory
from .batching import gather_in_batches

logger = logging.getLogger(__name__)

# Fuel adjustment policy (mmol/L per hour)
CRASH_DROP_RATE = -3.0
SPIKE_RISE_RATE = 3.0
CRASH_SCALE = 0.7
MAX_FUEL_INCREASE = 4

DEFAULT_CARBS_G = 10
DEFAULT_LOOKBACK_DAYS = 45

NO_ACTIVITIES_MSG = "No activities found"
ANALYSIS_FAILED_MSG = "Analysis failed"

# "FUEL PER 10: 8g" in current descriptions, "FUEL: 8g/10m" in older ones
_FUEL_PATTERN = re.compile(r"FUEL(?:\s+PER\s+10)?:\s*(\d+(?:\.\d+)?)\s*g", re.IGNORECASE)

WorkoutClassifier = Callable[[str], WorkoutCategory]

ANALYZED_CATEGORIES = (WorkoutCategory.LONG, WorkoutCategory.INTERVAL, WorkoutCategory.EASY)


def classify_workout(name: str) -> WorkoutCategory:
    """
    Classify a workout by its name.

    "LR"/"long" -> LONG, "tempo"/"hills" -> INTERVAL,
    "easy"/"bonus" -> EASY, anything else -> OTHER.
    """
    lower = name.lower()
    if "lr" in lower or "long" in lower:
        return WorkoutCategory.LONG
    if "tempo" in lower or "hills" in lower:
        return WorkoutCategory.INTERVAL
    if "easy" in lower or "bonus" in lower:
        return WorkoutCategory.EASY
    return WorkoutCategory.OTHER


def extract_fuel_rate(description: Optional[str], default: float = DEFAULT_CARBS_G) -> float:
    """
    Read the prescribed fuel rate (g per 10 min) back out of a workout description.

    Args:
        description: Activity description text
        default: Rate to assume when none is found

    Returns:
        Fuel rate in grams per 10 minutes
    """
    if not description:
        return default
    match = _FUEL_PATTERN.search(description)
    if not match:
        return default
    value = float(match.group(1))
    return int(value) if value.is_integer() else value


def suggest_fuel_rate(current_fuel: float, trend: float) -> float:
    """
    Suggest the next fuel rate from a glucose trend.

    A drop faster than 3 mmol/L/hr adds 1 g plus 0.7 g per mmol/L/hr beyond
    the threshold (floored, capped at +4 g). A rise faster than 3 mmol/L/hr
    removes 1 g, never going below zero. Otherwise the rate stays.

    Args:
        current_fuel: Rate the workout was done with (g per 10 min)
        trend: Glucose trend in mmol/L/hr

    Returns:
        Suggested rate (g per 10 min)
    """
    if trend < CRASH_DROP_RATE:
        diff = abs(trend - CRASH_DROP_RATE)
        return current_fuel + min(1 + math.floor(diff * CRASH_SCALE), MAX_FUEL_INCREASE)
    if trend > SPIKE_RISE_RATE:
        return max(0, current_fuel - 1)
    return current_fuel


def analyze_activity(activity: IntervalsActivity, streams: Dict[str, List[float]]) -> CategoryAnalysis:
    """
    Build the analysis for one activity from its streams.

    Missing streams give a zero trend and an empty plot; the fuel rate
    still comes from the description.
    """
    trend, series = glucose_trend_from_streams(streams)
    current_fuel = extract_fuel_rate(activity.description)
    return CategoryAnalysis(
        activity_id=activity.id,
        activity_name=activity.name,
        trend=trend,
        current_fuel=current_fuel,
        suggested_fuel=suggest_fuel_rate(current_fuel, trend),
        plot_data=[GlucosePoint(time=t, glucose=g) for t, g in series],
    )


def latest_by_category(
    activities: List[IntervalsActivity],
    classifier: WorkoutClassifier = classify_workout,
) -> Dict[WorkoutCategory, IntervalsActivity]:
    """Most recent activity per analyzed category."""
    latest: Dict[WorkoutCategory, IntervalsActivity] = {}
    for activity in sorted(activities, key=lambda a: a.start_date, reverse=True):
        category = classifier(activity.name)
        if category in ANALYZED_CATEGORIES and category not in latest:
            latest[category] = activity
    return latest


class HistoryAnalyzer:
    """
    Analyzes recent workouts tagged with a plan prefix.

    Usage:
        async with IntervalsClient(api_key) as client:
            result = await HistoryAnalyzer(client).analyze("eco16")
    """

    def __init__(
        self,
        client: IntegrationClient,
        lookback_days: int = DEFAULT_LOOKBACK_DAYS,
        classifier: WorkoutClassifier = classify_workout,
        batch_size: int = 3,
        batch_delay: float = 0.1,
    ) -> None:
        self.client = client
        self.lookback_days = lookback_days
        self.classifier = classifier
        self.batch_size = batch_size
        self.batch_delay = batch_delay

    async def _fetch_streams(self, activity: IntervalsActivity) -> Dict[str, List[float]]:
        return await self.client.get_activity_streams(activity.id)

    def _analyze_one(self, activity: IntervalsActivity, streams: Dict[str, List[float]]) -> CategoryAnalysis:
        try:
            return analyze_activity(activity, streams)
        except Exception as e:
            logger.warning(f"Could not analyze streams of {activity.id}: {e}")
            return analyze_activity(activity, {})

    async def analyze(self, prefix: str, reference_date: Optional[date] = None) -> AnalysisResult:
        """
        Analyze the most recent long, interval and easy workouts.

        Never raises: a failed activity fetch yields an empty result with
        msg "Analysis failed"; a failed stream fetch for one activity
        yields a zero trend for that category only, as do
        stream values that cannot be analyzed.

        Args:
            prefix: Plan prefix contained in workout names
            reference_date: End of the lookback window (defaults to today)

        Returns:
            AnalysisResult with one entry per category found
        """
        newest = reference_date or date.today()
        oldest = newest - timedelta(days=self.lookback_days)

        try:
            activities = await self.client.get_activities(oldest, newest)
        except Exception as e:
            logger.error(f"Analysis failed: {e}")
            return AnalysisResult(msg=ANALYSIS_FAILED_MSG)

        needle = prefix.lower()
        relevant = [a for a in activities if needle in a.name.lower()]
        if not relevant:
            logger.info(f"No activities matching '{prefix}' between {oldest} and {newest}")
            return AnalysisResult(msg=NO_ACTIVITIES_MSG)

        latest = latest_by_category(relevant, self.classifier)
        selected = list(latest.values())
        streams = await gather_in_batches(
            selected,
            self._fetch_streams,
            fallback=lambda _: {},
            batch_size=self.batch_size,
            delay=self.batch_delay,
        )

        analyses = {
            category: self._analyze_one(activity, activity_streams)
            for (category, activity), activity_streams in zip(latest.items(), streams)
        }
        for category, analysis in analyses.items():
            logger.info(
                f"{category.value}: {analysis.activity_name} trend {analysis.trend:+.1f} mmol/L/hr, "
                f"fuel {analysis.current_fuel}g -> {analysis.suggested_fuel}g"
            )

        return AnalysisResult(
            long_run=analyses.get(WorkoutCategory.LONG),
            interval=analyses.get(WorkoutCategory.INTERVAL),
            easy_run=analyses.get(WorkoutCategory.EASY),
        )


async def analyze_history(
    api_key: str,
    prefix: str,
    reference_date: Optional[date] = None,
    **client_options,
) -> AnalysisResult:
    """
    Convenience wrapper opening an Intervals.icu client for one analysis.

    Args:
        api_key: Intervals.icu API key
        prefix: Plan prefix contained in workout names
        reference_date: End of the lookback window (defaults to today)
        **client_options: Passed to IntervalsClient (athlete_id, base_url, ...)
    """
    async with IntervalsClient(api_key, **client_options) as client:
        return await HistoryAnalyzer(client).analyze(prefix, reference_date)
