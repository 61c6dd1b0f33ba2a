"""Race and runner configuration models."""

from datetime import date
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from ..metrics.zones import DEFAULT_ZONES, HRZoneModel


class FuelRates(BaseModel):
    """
    Carbohydrate intake per workout category, in grams per 10 minutes.

    Setups with only two rates leave ``easy`` unset; easy runs then use
    the long-run rate.
    """

    model_config = ConfigDict(frozen=True)

    interval: float = Field(default=5, ge=0)
    long: float = Field(default=10, ge=0)
    easy: Optional[float] = Field(default=None, ge=0)

    @property
    def easy_rate(self) -> float:
        """Effective easy-run rate."""
        return self.long if self.easy is None else self.easy


class RaceConfig(BaseModel):
    """Input parameters for plan generation."""

    model_config = ConfigDict(frozen=True)

    race_name: str = ""
    race_date: date
    race_dist_km: float = Field(..., gt=0)
    lthr: int = Field(default=169, gt=0)
    prefix: str = Field(..., min_length=1)
    total_weeks: int = Field(..., ge=1)
    start_km: float = Field(..., gt=0)
    fuel: FuelRates = Field(default_factory=FuelRates)
    zones: HRZoneModel = DEFAULT_ZONES
