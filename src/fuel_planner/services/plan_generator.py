"""
Training plan generation.

Turns a RaceConfig into dated, structured workouts:
- Tuesday quality session (tempo and hills on alternating weeks)
- Thursday easy run
- Saturday optional bonus run
- Sunday long run, replaced by the race itself in the final week

Every workout carries a fueling directive with the carbohydrate rate and
an estimate of total carbs for the session.
"""

import logging
import math
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta
from itertools import groupby
from typing import List, Optional, Sequence, Tuple

from ..models.plan import RaceConfig
from ..models.workouts import (
    WeeklyVolume,
    WorkoutCategory,
    WorkoutEvent,
    WorkoutStep,
    format_number,
)

logger = logging.getLogger(__name__)

# Day offsets from Monday
TUESDAY, THURSDAY, SATURDAY, SUNDAY = 1, 3, 5, 6

WARMUP_MIN = 10
COOLDOWN_MIN = 5

SESSION_TIME = time(12, 0)
LONG_RUN_TIME = time(10, 0)

PUMP_OFF = "PUMP OFF"
PUMP_REDUCED = "PUMP ON (-50%)"

SHAKEOUT_TAG = " [SHAKEOUT]"


def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves away from zero for positives."""
    return math.floor(value + 0.5)


def estimate_total_carbs(duration_min: float, fuel_rate: float) -> int:
    """Total grams of carbohydrate for a session at ``fuel_rate`` g per 10 min."""
    return round_half_up(duration_min / 10 * fuel_rate)


def fuel_directive(pump: str, fuel_rate: float, total_carbs: int) -> str:
    """Fueling line shown as the workout title and on the warmup step."""
    return f"{pump} - FUEL PER 10: {format_number(fuel_rate)}g TOTAL: {total_carbs}g"


def plan_start_monday(race_date: date, total_weeks: int) -> date:
    """Monday of the first plan week; the last week contains race day."""
    race_monday = race_date - timedelta(days=race_date.weekday())
    return race_monday - timedelta(weeks=total_weeks - 1)


@dataclass(frozen=True)
class PlanWeek:
    """Where a week sits in the plan."""
    index: int
    start: date
    total_weeks: int

    @property
    def number(self) -> int:
        return self.index + 1

    @property
    def label(self) -> str:
        return f"W{self.number:02d}"

    @property
    def progress(self) -> float:
        return self.index / self.total_weeks

    @property
    def is_race_week(self) -> bool:
        return self.number == self.total_weeks

    @property
    def is_taper(self) -> bool:
        return self.number == self.total_weeks - 1

    @property
    def is_race_test(self) -> bool:
        return self.number in (self.total_weeks - 2, self.total_weeks - 3)

    @property
    def is_recovery(self) -> bool:
        return self.number % 4 == 0


class PlanGenerator:
    """
    Deterministic plan builder.

    ``reference_date`` stands in for "today": weeks that ended before it
    are skipped and workouts dated before it are dropped.
    """

    def __init__(self, config: RaceConfig, reference_date: date):
        self.config = config
        self.reference_date = reference_date
        self.zones = config.zones
        self.start_monday = plan_start_monday(config.race_date, config.total_weeks)

    # -------------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------------

    def _is_schedulable(self, day: date) -> bool:
        """Regular workouts must fall before race day and not in the past."""
        return self.reference_date <= day < self.config.race_date

    def _render(self, title: str, warmup: str, main: List[str], cooldown: str, reps: int) -> str:
        return "\n".join([
            title,
            "",
            "Warmup",
            f"- {warmup}",
            "",
            f"Main set {reps}x" if reps > 1 else "Main set",
            *(f"- {step}" for step in main),
            "",
            "Cooldown",
            f"- {cooldown}",
            "",
        ])

    def _build(
        self,
        week: PlanWeek,
        day_offset: int,
        start_time: time,
        name: str,
        slot: str,
        category: WorkoutCategory,
        fuel_rate: float,
        pump: str,
        main_steps: List[WorkoutStep],
        reps: int = 1,
    ) -> WorkoutEvent:
        lthr = self.config.lthr
        duration = WARMUP_MIN + reps * sum(s.estimated_minutes for s in main_steps) + COOLDOWN_MIN
        carbs = estimate_total_carbs(duration, fuel_rate)
        directive = fuel_directive(pump, fuel_rate, carbs)

        warmup = WorkoutStep("easy", duration_min=WARMUP_MIN, note=directive)
        cooldown = WorkoutStep("easy", duration_min=COOLDOWN_MIN)
        description = self._render(
            directive,
            warmup.render(self.zones, lthr),
            [s.render(self.zones, lthr) for s in main_steps],
            cooldown.render(self.zones, lthr),
            reps,
        )

        return WorkoutEvent(
            start_date_local=datetime.combine(week.start + timedelta(days=day_offset), start_time),
            name=name,
            description=description,
            external_id=f"{self.config.prefix}-{slot}-{week.number}",
            category=category,
            week_number=week.number,
            fuel_rate=fuel_rate,
            estimated_duration_min=duration,
            total_carbs_g=carbs,
        )

    # -------------------------------------------------------------------------
    # Workouts
    # -------------------------------------------------------------------------

    def quality_run(self, week: PlanWeek) -> Optional[WorkoutEvent]:
        """Tuesday tempo (odd week index) or hills (even week index)."""
        if not self._is_schedulable(week.start + timedelta(days=TUESDAY)):
            return None

        prefix = self.config.prefix
        tag = SHAKEOUT_TAG if week.is_race_week else ""

        if week.index % 2 != 0:
            if week.is_race_week:
                reps, work_min = 2, 5
            elif week.is_race_test:
                reps, work_min = 3, 8
            else:
                reps, work_min = 3 + math.floor(week.progress * 3), 8
            steps = [
                WorkoutStep("tempo", duration_min=work_min),
                WorkoutStep("easy", duration_min=2),
            ]
            kind = "Tempo"
        else:
            reps = 2 if week.is_race_week else 4 if week.is_race_test else 6
            steps = [
                WorkoutStep("hard", duration_min=2, note="Uphill"),
                WorkoutStep("easy", duration_min=2, note="Downhill"),
            ]
            kind = "Hills"

        return self._build(
            week,
            TUESDAY,
            SESSION_TIME,
            name=f"{week.label} Tue {kind} {prefix}{tag}",
            slot="tue",
            category=WorkoutCategory.INTERVAL,
            fuel_rate=self.config.fuel.interval,
            pump=PUMP_OFF,
            main_steps=steps,
            reps=reps,
        )

    def easy_run(self, week: PlanWeek) -> Optional[WorkoutEvent]:
        """Thursday easy run, growing from 40 to ~60 minutes."""
        if not self._is_schedulable(week.start + timedelta(days=THURSDAY)):
            return None

        if week.is_race_week:
            minutes = 20
        elif week.is_race_test:
            minutes = 30
        else:
            minutes = 40 + math.floor(week.progress * 20)
        tag = SHAKEOUT_TAG if week.is_race_week else ""

        return self._build(
            week,
            THURSDAY,
            SESSION_TIME,
            name=f"{week.label} Thu Easy {self.config.prefix}{tag}",
            slot="thu",
            category=WorkoutCategory.EASY,
            fuel_rate=self.config.fuel.easy_rate,
            pump=PUMP_REDUCED,
            main_steps=[WorkoutStep("easy", duration_min=minutes)],
        )

    def bonus_run(self, week: PlanWeek) -> Optional[WorkoutEvent]:
        """Saturday optional 30 minute easy run."""
        if not self._is_schedulable(week.start + timedelta(days=SATURDAY)):
            return None

        return self._build(
            week,
            SATURDAY,
            SESSION_TIME,
            name=f"{week.label} Sat Bonus (Optional) {self.config.prefix}",
            slot="sat",
            category=WorkoutCategory.EASY,
            fuel_rate=self.config.fuel.easy_rate,
            pump=PUMP_REDUCED,
            main_steps=[WorkoutStep("easy", duration_min=30)],
        )

    def long_run_km(self, week: PlanWeek) -> float:
        """Long run distance for a week, including phase overrides."""
        km, _ = self._long_run_plan(week)
        return km

    def _long_run_plan(self, week: PlanWeek) -> Tuple[float, str]:
        cfg = self.config
        ramp = (cfg.race_dist_km - cfg.start_km) / max(cfg.total_weeks - 4, 1)
        km = min(math.floor(cfg.start_km + ramp * week.index), cfg.race_dist_km)
        tag = ""
        if week.is_recovery:
            km, tag = cfg.start_km, " [RECOVERY]"
        if week.is_taper:
            km, tag = math.floor(cfg.race_dist_km * 0.5), " [TAPER]"
        if week.is_race_test:
            km, tag = cfg.race_dist_km, " [RACE TEST]"
        return km, tag

    def long_run(self, week: PlanWeek) -> Optional[WorkoutEvent]:
        """Sunday long run in the steady zone; the race itself in the final week."""
        if week.is_race_week:
            return self.race_day()
        if not self._is_schedulable(week.start + timedelta(days=SUNDAY)):
            return None

        km, tag = self._long_run_plan(week)
        return self._build(
            week,
            SUNDAY,
            LONG_RUN_TIME,
            name=f"{week.label} Sun LR ({format_number(km)}km){tag} {self.config.prefix}",
            slot="sun",
            category=WorkoutCategory.LONG,
            fuel_rate=self.config.fuel.long,
            pump=PUMP_OFF,
            main_steps=[WorkoutStep("steady", distance_km=km)],
        )

    def race_day(self) -> Optional[WorkoutEvent]:
        """The race, scheduled on race day regardless of weekday."""
        cfg = self.config
        if cfg.race_date < self.reference_date:
            return None

        race = WorkoutStep("steady", distance_km=cfg.race_dist_km)
        duration = WARMUP_MIN + race.estimated_minutes + COOLDOWN_MIN
        carbs = estimate_total_carbs(duration, cfg.fuel.long)
        directive = fuel_directive(PUMP_OFF, cfg.fuel.long, carbs)
        title = f"RACE DAY {cfg.race_name} {cfg.prefix}" if cfg.race_name else f"RACE DAY {cfg.prefix}"

        return WorkoutEvent(
            start_date_local=datetime.combine(cfg.race_date, LONG_RUN_TIME),
            name=title,
            description=f"RACE DAY! {format_number(cfg.race_dist_km)}km. {directive}\n\nGood luck!",
            external_id=f"{cfg.prefix}-race",
            category=WorkoutCategory.RACE,
            week_number=cfg.total_weeks,
            fuel_rate=cfg.fuel.long,
            estimated_duration_min=duration,
            total_carbs_g=carbs,
        )

    # -------------------------------------------------------------------------
    # Plan
    # -------------------------------------------------------------------------

    def weeks(self) -> List[PlanWeek]:
        """All plan weeks, elapsed or not."""
        return [
            PlanWeek(index=i, start=self.start_monday + timedelta(weeks=i), total_weeks=self.config.total_weeks)
            for i in range(self.config.total_weeks)
        ]

    def generate(self) -> List[WorkoutEvent]:
        """Generate all remaining workouts, ordered by week then weekday."""
        events: List[WorkoutEvent] = []
        for week in self.weeks():
            if week.start + timedelta(days=7) < self.reference_date:
                continue
            for builder in (self.quality_run, self.easy_run, self.bonus_run, self.long_run):
                event = builder(week)
                if event is not None:
                    events.append(event)

        logger.debug(
            f"Generated {len(events)} workouts for {self.config.prefix} "
            f"(race {self.config.race_date}, {self.config.total_weeks} weeks)"
        )
        return events


def generate_plan(config: RaceConfig, reference_date: Optional[date] = None) -> List[WorkoutEvent]:
    """
    Generate the structured workouts for a race.

    Args:
        config: Race and runner parameters
        reference_date: "Today" for filtering past weeks/days
            (defaults to the current date)

    Returns:
        Workouts ordered by date
    """
    return PlanGenerator(config, reference_date or date.today()).generate()


def summarize_weekly_volume(events: Sequence[WorkoutEvent]) -> List[WeeklyVolume]:
    """
    Estimated training minutes per plan week.

    Args:
        events: Generated workouts

    Returns:
        One entry per week that has workouts, ordered by week
    """
    ordered = sorted(events, key=lambda e: e.week_number)
    return [
        WeeklyVolume(
            name=f"W{week_number:02d}",
            minutes=round_half_up(sum(e.estimated_duration_min for e in week_events)),
        )
        for week_number, week_events in groupby(ordered, key=lambda e: e.week_number)
    ]
