"""
Calendar feed merging completed runs with planned workouts.

Completed runs carry HR-zone time and stream series for detail views;
planned workouts that already have a matching completed run on the same
day are dropped.
"""

import asyncio
import logging
from dataclasses import dataclass
from datetime import date, datetime
from typing import Dict, List, Optional, Sequence

from ..integrations.base import IntegrationClient
from ..integrations.intervals import IntervalsActivity, IntervalsEvent
from ..metrics.glucose import (
    elapsed_minutes,
    find_glucose_stream,
    normalize_glucose_mmol,
    present_samples,
)
from ..metrics.zones import calculate_hr_zone_breakdown
from ..models.calendar import CalendarEvent, DataPoint, HRZoneData, StreamData
from ..models.workouts import WorkoutCategory
from .batching import gather_in_batches
from .history_analyzer import classify_workout

logger = logging.getLogger(__name__)

RUN_TYPES = ("Run", "VirtualRun")
NAME_MATCH_CHARS = 10
DEFAULT_LTHR = 169


@dataclass(frozen=True)
class ActivityDetails:
    """Values derived from one activity's streams."""
    hr_zones: Optional[HRZoneData] = None
    stream_data: Optional[StreamData] = None
    avg_hr: Optional[int] = None
    max_hr: Optional[int] = None


def _series(
    time_s: Sequence[Optional[float]],
    values: Sequence[Optional[float]],
    scale: float = 1.0,
) -> List[DataPoint]:
    times, present = present_samples(time_s, values)
    return [DataPoint(time=elapsed_minutes(t), value=v * scale) for t, v in zip(times, present)]


def build_activity_details(streams: Dict[str, List[float]], lthr: int = DEFAULT_LTHR) -> ActivityDetails:
    """
    Derive HR zones, HR summary and plot series from a stream set.

    Cadence streams are single-foot and get doubled to steps per minute.
    Glucose is converted to mmol/L when it looks like mg/dL. Null
    samples are left out of summaries and series.
    """
    time_s = streams.get("time") or []
    heartrate = streams.get("heartrate") or []
    hr_values = [hr for hr in heartrate if hr is not None]

    hr_zones = avg_hr = max_hr = None
    if hr_values:
        hr_zones = HRZoneData(**calculate_hr_zone_breakdown(hr_values, lthr))
        avg_hr = round(sum(hr_values) / len(hr_values))
        max_hr = round(max(hr_values))

    stream_data = None
    if time_s:
        stream_data = StreamData(
            glucose=_series(time_s, normalize_glucose_mmol(find_glucose_stream(streams))),
            heartrate=_series(time_s, heartrate),
            pace=_series(time_s, streams.get("pace") or []),
            cadence=_series(time_s, streams.get("cadence") or [], scale=2),
            altitude=_series(time_s, streams.get("altitude") or []),
            power=_series(time_s, streams.get("watts") or streams.get("power") or []),
        )
        if stream_data.is_empty:
            stream_data = None

    return ActivityDetails(hr_zones=hr_zones, stream_data=stream_data, avg_hr=avg_hr, max_hr=max_hr)


def calculate_pace(distance_m: Optional[float], moving_time_s: Optional[int]) -> Optional[float]:
    """Average pace in min/km, or None without distance and time."""
    if not distance_m or not moving_time_s:
        return None
    return (moving_time_s / 60) / (distance_m / 1000)


def _local_naive(value: datetime) -> datetime:
    return value.replace(tzinfo=None)


def names_match(activity_name: str, event_name: str) -> bool:
    """Loose name match: either name contains the other's first 10 characters."""
    a = activity_name.lower()
    e = event_name.lower()
    return e[:NAME_MATCH_CHARS] in a or a[:NAME_MATCH_CHARS] in e


def is_completed(event: IntervalsEvent, activities: Sequence[IntervalsActivity]) -> bool:
    """Check whether a planned workout has a completed run on the same day."""
    event_day = event.start_date_local.date()
    return any(
        activity.local_start.date() == event_day and names_match(activity.name, event.name)
        for activity in activities
    )


def activity_to_calendar_event(activity: IntervalsActivity, details: ActivityDetails) -> CalendarEvent:
    """Build a completed calendar entry from an activity and its details."""
    return CalendarEvent(
        id=f"activity-{activity.id}",
        date=_local_naive(activity.local_start),
        name=activity.name,
        description=activity.description,
        type="completed",
        category=classify_workout(activity.name),
        distance=activity.distance,
        duration=activity.moving_time,
        avg_hr=details.avg_hr or activity.average_hr,
        max_hr=details.max_hr or activity.max_hr,
        load=activity.icu_training_load,
        intensity=activity.icu_intensity,
        pace=calculate_pace(activity.distance, activity.moving_time),
        calories=activity.calories,
        cadence=activity.average_cadence * 2 if activity.average_cadence else None,
        hr_zones=details.hr_zones,
        stream_data=details.stream_data,
    )


def planned_to_calendar_event(event: IntervalsEvent) -> CalendarEvent:
    """Build a planned (or race) calendar entry from a planned event."""
    is_race = "race" in event.name.lower()
    return CalendarEvent(
        id=f"event-{event.id}",
        date=_local_naive(event.start_date_local),
        name=event.name,
        description=event.description,
        type="race" if is_race else "planned",
        category=WorkoutCategory.RACE if is_race else classify_workout(event.name),
    )


async def fetch_calendar_data(
    client: IntegrationClient,
    start: date,
    end: date,
    lthr: int = DEFAULT_LTHR,
    batch_size: int = 3,
    batch_delay: float = 0.1,
) -> List[CalendarEvent]:
    """
    Fetch completed runs and planned workouts between two dates.

    Activity and event listings settle independently; a failed listing
    contributes nothing. Any other failure yields an empty calendar.

    Args:
        client: Intervals.icu client
        start: First day (inclusive)
        end: Last day (inclusive)
        lthr: Lactate Threshold Heart Rate for zone breakdowns
        batch_size: Concurrent stream requests
        batch_delay: Seconds between stream batches

    Returns:
        Calendar entries sorted by date
    """
    try:
        activities_result, events_result = await asyncio.gather(
            client.get_activities(start, end),
            client.get_events(start, end),
            return_exceptions=True,
        )
        activities: List[IntervalsActivity] = []
        events: List[IntervalsEvent] = []
        if isinstance(activities_result, Exception):
            logger.warning(f"Activity listing failed: {activities_result}")
        else:
            activities = activities_result
        if isinstance(events_result, Exception):
            logger.warning(f"Event listing failed: {events_result}")
        else:
            events = events_result

        runs = [a for a in activities if a.type in RUN_TYPES]

        async def fetch_details(activity: IntervalsActivity) -> ActivityDetails:
            streams = await client.get_activity_streams(activity.id)
            return build_activity_details(streams, lthr)

        details = await gather_in_batches(
            runs,
            fetch_details,
            fallback=lambda _: ActivityDetails(),
            batch_size=batch_size,
            delay=batch_delay,
        )

        calendar = [activity_to_calendar_event(a, d) for a, d in zip(runs, details)]
        for event in events:
            if event.category != "WORKOUT" or is_completed(event, runs):
                continue
            calendar.append(planned_to_calendar_event(event))

        calendar.sort(key=lambda e: e.date)
        logger.info(f"Calendar {start} to {end}: {len(calendar)} entries ({len(runs)} completed runs)")
        return calendar
    except Exception as e:
        logger.error(f"Failed to fetch calendar data: {e}")
        return []
