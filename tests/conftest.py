"""Shared fixtures for Fuel Planner tests."""

from datetime import date, datetime

import pytest

from fuel_planner.integrations.intervals import IntervalsActivity
from fuel_planner.models.plan import FuelRates, RaceConfig


@pytest.fixture
def race_config():
    """16 km race on Saturday 2026-06-13 with an 18 week build."""
    return RaceConfig(
        race_date=date(2026, 6, 13),
        race_dist_km=16,
        lthr=169,
        prefix="eco16",
        total_weeks=18,
        start_km=8,
        fuel=FuelRates(interval=5, long=10),
    )


@pytest.fixture
def make_activity():
    """Factory for IntervalsActivity objects."""

    def _make(
        id="i1",
        name="W01 Sun LR (8km) eco16",
        start=datetime(2026, 2, 15, 10, 0),
        description="PUMP OFF - FUEL PER 10: 10g TOTAL: 64g",
        **kwargs,
    ):
        return IntervalsActivity(
            id=id,
            name=name,
            start_date=start,
            start_date_local=start,
            description=description,
            **kwargs,
        )

    return _make
