"""Tests for glucose history analysis."""

from datetime import date, datetime
from unittest.mock import AsyncMock, MagicMock

import httpx
import pytest

from fuel_planner.integrations.base import IntegrationError
from fuel_planner.models.workouts import WorkoutCategory
from fuel_planner.services.history_analyzer import (
    ANALYSIS_FAILED_MSG,
    NO_ACTIVITIES_MSG,
    HistoryAnalyzer,
    analyze_activity,
    analyze_history,
    classify_workout,
    extract_fuel_rate,
    latest_by_category,
    suggest_fuel_rate,
)


def falling_streams(start=10.0, end=5.0):
    """One hour run with glucose going from start to end (mmol/L)."""
    return {"time": [0, 1800, 3600], "glucose": [start, (start + end) / 2, end]}


@pytest.fixture
def mock_client():
    client = MagicMock()
    client.get_activities = AsyncMock(return_value=[])
    client.get_activity_streams = AsyncMock(return_value={})
    return client


class TestClassifyWorkout:
    """Tests for name-based classification."""

    @pytest.mark.parametrize(
        "name,category",
        [
            ("W03 Sun LR (10km) eco16", WorkoutCategory.LONG),
            ("Sunday long run", WorkoutCategory.LONG),
            ("W02 Tue Tempo eco16", WorkoutCategory.INTERVAL),
            ("W01 Tue Hills eco16", WorkoutCategory.INTERVAL),
            ("W01 Thu Easy eco16", WorkoutCategory.EASY),
            ("W01 Sat Bonus (Optional) eco16", WorkoutCategory.EASY),
            ("Morning Run", WorkoutCategory.OTHER),
        ],
    )
    def test_classification(self, name, category):
        assert classify_workout(name) == category

    def test_long_wins_over_easy(self):
        assert classify_workout("Easy long run") == WorkoutCategory.LONG


class TestExtractFuelRate:
    """Tests for reading the fuel rate back out of descriptions."""

    def test_current_format(self):
        assert extract_fuel_rate("PUMP OFF - FUEL PER 10: 8g TOTAL: 40g") == 8

    def test_legacy_format(self):
        assert extract_fuel_rate("PUMP OFF - FUEL: 6g/10m") == 6

    def test_case_insensitive_decimal(self):
        assert extract_fuel_rate("fuel per 10: 7.5g") == 7.5

    def test_default(self):
        assert extract_fuel_rate(None) == 10
        assert extract_fuel_rate("") == 10
        assert extract_fuel_rate("Felt great") == 10
        assert extract_fuel_rate("Felt great", default=5) == 5


class TestSuggestFuelRate:
    """Tests for the fuel adjustment policy."""

    @pytest.mark.parametrize(
        "current,trend,expected",
        [
            (10, -5.0, 12),
            (10, -4.5, 12),
            (10, -3.0, 10),
            (10, -20.0, 14),
            (10, 0.0, 10),
            (10, 3.0, 10),
            (10, 4.0, 9),
            (0, 5.0, 0),
            (5, -6.0, 8),
        ],
    )
    def test_policy(self, current, trend, expected):
        assert suggest_fuel_rate(current, trend) == expected


class TestAnalyzeActivity:
    """Tests for single activity analysis."""

    def test_dropping_glucose(self, make_activity):
        activity = make_activity(description="PUMP OFF - FUEL PER 10: 10g TOTAL: 64g")
        analysis = analyze_activity(activity, falling_streams())

        assert analysis.trend == pytest.approx(-5.0)
        assert analysis.current_fuel == 10
        assert analysis.suggested_fuel == 12
        assert analysis.fuel_change == 2
        assert [p.time for p in analysis.plot_data] == [0, 30, 60]

    def test_no_streams(self, make_activity):
        analysis = analyze_activity(make_activity(description="FUEL PER 10: 8g"), {})
        assert analysis.trend == 0.0
        assert analysis.suggested_fuel == 8
        assert analysis.plot_data == []

    def test_to_dict(self, make_activity):
        data = analyze_activity(make_activity(), falling_streams()).to_dict()
        assert data["activity_id"] == "i1"
        assert data["trend"] == -5.0
        assert data["plot_data"][0] == {"time": 0, "glucose": 10.0}


class TestLatestByCategory:
    """Tests for picking the most recent workout per category."""

    def test_most_recent_wins(self, make_activity):
        older = make_activity(id="a", name="W01 Sun LR (8km) eco16", start=datetime(2026, 2, 15, 10))
        newer = make_activity(id="b", name="W02 Sun LR (8km) eco16", start=datetime(2026, 2, 22, 10))
        other = make_activity(id="c", name="Commute", start=datetime(2026, 2, 23, 8))

        latest = latest_by_category([older, newer, other])

        assert latest == {WorkoutCategory.LONG: newer}


class TestHistoryAnalyzer:
    """Tests for HistoryAnalyzer.analyze."""

    @pytest.mark.asyncio
    async def test_analyzes_latest_per_category(self, mock_client, make_activity):
        """Only the newest long, interval and easy runs are fetched."""
        activities = [
            make_activity(id="lr1", name="W01 Sun LR (8km) eco16", start=datetime(2026, 2, 15, 10)),
            make_activity(id="lr2", name="W02 Sun LR (8km) eco16", start=datetime(2026, 2, 22, 10)),
            make_activity(
                id="t1",
                name="W02 Tue Tempo eco16",
                start=datetime(2026, 2, 17, 12),
                description="PUMP OFF - FUEL PER 10: 5g TOTAL: 23g",
            ),
            make_activity(
                id="e1",
                name="W02 Thu Easy eco16",
                start=datetime(2026, 2, 19, 12),
                description="PUMP ON (-50%) - FUEL PER 10: 8g TOTAL: 44g",
            ),
            make_activity(id="x1", name="Morning Run", start=datetime(2026, 2, 20, 7)),
        ]
        streams = {
            "lr2": falling_streams(10.0, 5.0),
            "t1": {"time": [0, 3600], "glucose": [6.0, 10.0]},
            "e1": {"time": [0, 3600], "glucose": [7.0, 7.5]},
        }
        mock_client.get_activities.return_value = activities
        mock_client.get_activity_streams.side_effect = lambda activity_id: streams[activity_id]

        analyzer = HistoryAnalyzer(mock_client, batch_delay=0)
        result = await analyzer.analyze("eco16", reference_date=date(2026, 3, 1))

        mock_client.get_activities.assert_awaited_once_with(date(2026, 1, 15), date(2026, 3, 1))
        fetched = {call.args[0] for call in mock_client.get_activity_streams.await_args_list}
        assert fetched == {"lr2", "t1", "e1"}

        assert result.msg is None
        assert result.long_run.activity_id == "lr2"
        assert result.long_run.suggested_fuel == 12
        assert result.interval.trend == pytest.approx(4.0)
        assert result.interval.suggested_fuel == 4
        assert result.easy_run.current_fuel == 8
        assert result.easy_run.suggested_fuel == 8

    @pytest.mark.asyncio
    async def test_prefix_case_insensitive(self, mock_client, make_activity):
        mock_client.get_activities.return_value = [make_activity(name="W01 Sun LR (8km) ECO16")]

        result = await HistoryAnalyzer(mock_client, batch_delay=0).analyze("eco16", date(2026, 3, 1))

        assert result.long_run is not None
        assert result.interval is None
        assert result.easy_run is None

    @pytest.mark.asyncio
    async def test_no_matching_activities(self, mock_client, make_activity):
        mock_client.get_activities.return_value = [make_activity(name="Morning Run")]

        result = await HistoryAnalyzer(mock_client).analyze("eco16", date(2026, 3, 1))

        assert result.msg == NO_ACTIVITIES_MSG
        assert not result.has_data
        mock_client.get_activity_streams.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_activity_fetch_failure(self, mock_client):
        mock_client.get_activities.side_effect = IntegrationError("boom", "intervals")

        result = await HistoryAnalyzer(mock_client).analyze("eco16", date(2026, 3, 1))

        assert result.msg == ANALYSIS_FAILED_MSG
        assert result.to_dict() == {
            "long_run": None,
            "interval": None,
            "easy_run": None,
            "msg": ANALYSIS_FAILED_MSG,
        }

    @pytest.mark.asyncio
    async def test_stream_failure_isolated(self, mock_client, make_activity):
        """A failed stream fetch zeroes that category only."""
        mock_client.get_activities.return_value = [
            make_activity(id="lr", name="W02 Sun LR (8km) eco16"),
            make_activity(id="e", name="W02 Thu Easy eco16", start=datetime(2026, 2, 19, 12)),
        ]

        async def streams(activity_id):
            if activity_id == "lr":
                raise IntegrationError("timeout", "intervals")
            return falling_streams(10.0, 4.0)

        mock_client.get_activity_streams.side_effect = streams

        result = await HistoryAnalyzer(mock_client, batch_delay=0).analyze("eco16", date(2026, 3, 1))

        assert result.long_run.trend == 0.0
        assert result.long_run.suggested_fuel == result.long_run.current_fuel
        assert result.easy_run.trend == pytest.approx(-6.0)
        assert result.easy_run.suggested_fuel == 13

    @pytest.mark.asyncio
    async def test_null_glucose_sample(self, mock_client, make_activity):
        mock_client.get_activities.return_value = [make_activity(name="W02 Sun LR (8km) eco16")]
        mock_client.get_activity_streams.return_value = {
            "time": [0, 1800, 3600],
            "bloodglucose": [180.18, None, 90.09],
        }

        result = await HistoryAnalyzer(mock_client, batch_delay=0).analyze("eco16", date(2026, 3, 1))

        assert result.long_run.trend == pytest.approx(-5.0)
        assert result.long_run.suggested_fuel == 12
        assert [p.time for p in result.long_run.plot_data] == [0, 60]

    @pytest.mark.asyncio
    async def test_unreadable_streams_degrade_category(self, mock_client, make_activity):
        """Garbage stream values give a zero trend instead of raising."""
        mock_client.get_activities.return_value = [
            make_activity(id="lr", name="W02 Sun LR (8km) eco16"),
            make_activity(id="e", name="W02 Thu Easy eco16", start=datetime(2026, 2, 19, 12)),
        ]

        async def streams(activity_id):
            if activity_id == "lr":
                return {"time": [0, 3600], "glucose": ["n/a", 5.0]}
            return falling_streams(10.0, 4.0)

        mock_client.get_activity_streams.side_effect = streams

        result = await HistoryAnalyzer(mock_client, batch_delay=0).analyze("eco16", date(2026, 3, 1))

        assert result.long_run.trend == 0.0
        assert result.long_run.plot_data == []
        assert result.long_run.suggested_fuel == result.long_run.current_fuel
        assert result.easy_run.trend == pytest.approx(-6.0)

    @pytest.mark.asyncio
    async def test_custom_classifier(self, mock_client, make_activity):
        mock_client.get_activities.return_value = [make_activity(name="Track session eco16")]
        analyzer = HistoryAnalyzer(
            mock_client,
            classifier=lambda name: WorkoutCategory.INTERVAL,
            batch_delay=0,
        )

        result = await analyzer.analyze("eco16", date(2026, 3, 1))

        assert result.interval.activity_name == "Track session eco16"


class TestAnalyzeHistory:
    """Tests for the convenience wrapper against a mocked Intervals.icu."""

    @pytest.mark.asyncio
    async def test_end_to_end(self):
        def handler(request: httpx.Request) -> httpx.Response:
            if request.url.path.endswith("/athlete/0/activities"):
                return httpx.Response(200, json=[{
                    "id": 42,
                    "name": "W05 Sun LR (10km) eco16",
                    "start_date": "2026-03-15T09:00:00Z",
                    "start_date_local": "2026-03-15T10:00:00",
                    "description": "PUMP OFF - FUEL PER 10: 10g TOTAL: 77g",
                    "type": "Run",
                }])
            if request.url.path.endswith("/activity/42/streams"):
                return httpx.Response(200, json=[
                    {"type": "time", "data": [0, 3600]},
                    {"type": "bloodglucose", "data": [180.18, 72.072]},
                ])
            return httpx.Response(404)

        result = await analyze_history(
            "secret",
            "eco16",
            reference_date=date(2026, 3, 20),
            transport=httpx.MockTransport(handler),
        )

        assert result.long_run.activity_id == "42"
        assert result.long_run.trend == pytest.approx(-6.0)
        assert result.long_run.suggested_fuel == 13
