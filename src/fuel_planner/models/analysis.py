"""Models for glucose history analysis results."""

from dataclasses import dataclass, field
from typing import List, Optional


@dataclass(frozen=True)
class GlucosePoint:
    """One plot point: elapsed minutes and glucose in mmol/L."""
    time: int
    glucose: float

    def to_dict(self) -> dict:
        return {"time": self.time, "glucose": round(self.glucose, 2)}


@dataclass(frozen=True)
class CategoryAnalysis:
    """Glucose response of the most recent workout in one category."""
    activity_id: str
    activity_name: str
    trend: float  # mmol/L per hour
    current_fuel: float  # g per 10 min the workout was prescribed
    suggested_fuel: float
    plot_data: List[GlucosePoint] = field(default_factory=list)

    @property
    def fuel_change(self) -> float:
        """Suggested change versus the current rate."""
        return self.suggested_fuel - self.current_fuel

    def to_dict(self) -> dict:
        return {
            "activity_id": self.activity_id,
            "activity_name": self.activity_name,
            "trend": round(self.trend, 2),
            "current_fuel": self.current_fuel,
            "suggested_fuel": self.suggested_fuel,
            "plot_data": [p.to_dict() for p in self.plot_data],
        }


@dataclass(frozen=True)
class AnalysisResult:
    """
    Per-category analysis. A category is None when no matching
    activity was found in the lookback window.
    """
    long_run: Optional[CategoryAnalysis] = None
    interval: Optional[CategoryAnalysis] = None
    easy_run: Optional[CategoryAnalysis] = None
    msg: Optional[str] = None

    @property
    def has_data(self) -> bool:
        return any(a is not None for a in (self.long_run, self.interval, self.easy_run))

    def to_dict(self) -> dict:
        return {
            "long_run": self.long_run.to_dict() if self.long_run else None,
            "interval": self.interval.to_dict() if self.interval else None,
            "easy_run": self.easy_run.to_dict() if self.easy_run else None,
            "msg": self.msg,
        }
