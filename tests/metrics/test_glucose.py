"""Tests for glucose stream helpers."""

import pytest

from fuel_planner.metrics.glucose import (
    MGDL_PER_MMOL,
    build_glucose_series,
    calculate_glucose_trend,
    find_glucose_stream,
    glucose_trend_from_streams,
    looks_like_mgdl,
    normalize_glucose_mmol,
    present_samples,
)


class TestUnitDetection:
    """Tests for mg/dL sniffing."""

    def test_mmol_values_unchanged(self):
        assert normalize_glucose_mmol([5.5, 7.2, 9.0]) == [5.5, 7.2, 9.0]

    def test_mgdl_values_converted(self):
        result = normalize_glucose_mmol([180.18, 90.09])
        assert result == pytest.approx([10.0, 5.0])

    def test_mean_exactly_15_not_converted(self):
        """Boundary is strict."""
        assert not looks_like_mgdl([15.0, 15.0])
        assert normalize_glucose_mmol([15.0, 15.0]) == [15.0, 15.0]

    def test_max_exactly_20_not_converted(self):
        assert not looks_like_mgdl([10.0, 20.0])

    def test_max_above_20_converted(self):
        assert looks_like_mgdl([10.0, 20.1])

    def test_mean_above_15_converted(self):
        assert looks_like_mgdl([16.0, 16.0])

    def test_empty(self):
        assert not looks_like_mgdl([])
        assert normalize_glucose_mmol([]) == []


class TestGlucoseTrend:
    """Tests for the two-point trend estimate."""

    def test_drop_over_one_hour(self):
        """6 -> 3 mmol/L over an hour is -3 mmol/L/hr."""
        assert calculate_glucose_trend([0, 3600], [6.0, 3.0]) == pytest.approx(-3.0)

    def test_only_endpoints_count(self):
        trend = calculate_glucose_trend([0, 1800, 3600], [6.0, 2.0, 8.0])
        assert trend == pytest.approx(2.0)

    def test_short_run_is_zero(self):
        assert calculate_glucose_trend([0, 600], [6.0, 3.0]) == 0.0

    def test_exactly_twelve_minutes_is_zero(self):
        assert calculate_glucose_trend([0, 720], [6.0, 3.0]) == 0.0

    def test_single_sample_is_zero(self):
        assert calculate_glucose_trend([0], [6.0]) == 0.0

    def test_uses_time_offset(self):
        """Slope is measured between first and last timestamps."""
        trend = calculate_glucose_trend([600, 2400], [8.0, 5.0])
        assert trend == pytest.approx(-6.0)


class TestGlucoseSeries:
    """Tests for plot series and stream lookup."""

    def test_minutes_rounded(self):
        series = build_glucose_series([0, 30, 90, 3600], [5.0, 5.1, 5.2, 6.0])
        assert [t for t, _ in series] == [0, 1, 2, 60]

    def test_find_aliases(self):
        assert find_glucose_stream({"ga_smooth": [5.0]}) == [5.0]
        assert find_glucose_stream({"glucose": [6.0], "ga_smooth": [5.0]}) == [6.0]
        assert find_glucose_stream({"bloodglucose": [7.0], "glucose": [6.0]}) == [7.0]
        assert find_glucose_stream({"heartrate": [140]}) == []

    def test_trend_from_streams_converts_units(self):
        streams = {"time": [0, 3600], "bloodglucose": [180.18, 90.09]}
        trend, series = glucose_trend_from_streams(streams)
        assert trend == pytest.approx(-90.09 / MGDL_PER_MMOL)
        assert series[0] == (0, pytest.approx(10.0))
        assert series[-1][0] == 60

    def test_trend_from_streams_missing_glucose(self):
        assert glucose_trend_from_streams({"time": [0, 3600], "heartrate": [120, 150]}) == (0.0, [])

    def test_trend_from_streams_missing_time(self):
        assert glucose_trend_from_streams({"glucose": [6.0, 3.0]}) == (0.0, [])


class TestSensorGaps:
    """Null samples from sensor dropouts."""

    def test_present_samples_drops_gaps(self):
        times, values = present_samples([0, 60, None, 180], [5.0, None, 6.0, 7.0])
        assert times == [0, 180]
        assert values == [5.0, 7.0]

    def test_unit_detection_ignores_gaps(self):
        assert looks_like_mgdl([180.0, None, 90.0])
        assert not looks_like_mgdl([None, None])

    def test_normalize_keeps_gaps(self):
        result = normalize_glucose_mmol([180.18, None])
        assert result[0] == pytest.approx(10.0)
        assert result[1] is None

    @pytest.mark.parametrize(
        "glucose,trend",
        [
            ([None, 162.162, 90.09], -72.072 / MGDL_PER_MMOL / 0.5),
            ([180.18, None, 90.09], -90.09 / MGDL_PER_MMOL),
            ([180.18, 162.162, None], -18.018 / MGDL_PER_MMOL / 0.5),
        ],
        ids=["start", "middle", "end"],
    )
    def test_trend_skips_null_sample(self, glucose, trend):
        streams = {"time": [0, 1800, 3600], "bloodglucose": glucose}
        result, series = glucose_trend_from_streams(streams)
        assert result == pytest.approx(trend)
        assert len(series) == 2

    def test_single_present_sample(self):
        assert glucose_trend_from_streams({"time": [0, 3600], "glucose": [None, 6.0]}) == (0.0, [])
