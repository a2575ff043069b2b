"""Unit tests for weight trends - pure functions, no mocks needed."""

import pytest

from fittrack.core.models import WeightEntry
from fittrack.core.trends import (
    TREND_WINDOW_PRESETS,
    compute_weight_trend,
    prepare_weight_history,
)


def _history(*weights: float) -> list[WeightEntry]:
    """Latest-first history, one entry per day counting back from the 20th."""
    return [
        WeightEntry(weight_kg=w, recorded_at=f"2026-02-{20 - i:02d}T07:00:00")
        for i, w in enumerate(weights)
    ]


class TestComputeWeightTrend:
    """Tests for compute_weight_trend."""

    def test_latest_below_average(self):
        """Latest is compared against the entries after it."""
        trend = compute_weight_trend(_history(70, 71, 72), window_days=2)

        assert trend.average_weight == pytest.approx(71.5)
        assert trend.diff == pytest.approx(-1.5)
        assert trend.direction == "down"
        assert trend.days_compared == 2

    def test_latest_excluded_from_window(self):
        """The latest reading never counts towards its own average."""
        trend = compute_weight_trend(_history(80, 70), window_days=7)
        assert trend.average_weight == 70
        assert trend.direction == "up"
        assert trend.percent_change == pytest.approx(10 / 70 * 100)

    def test_window_larger_than_history(self):
        """Only the available entries are averaged."""
        trend = compute_weight_trend(_history(70, 71, 72), window_days=30)
        assert trend.days_compared == 2

    def test_stable(self):
        trend = compute_weight_trend(_history(70, 70), window_days=3)
        assert trend.direction == "stable"
        assert trend.diff == 0

    def test_single_entry_returns_none(self):
        assert compute_weight_trend(_history(70), window_days=7) is None

    def test_empty_returns_none(self):
        assert compute_weight_trend([], window_days=7) is None

    def test_zero_window_returns_none(self):
        assert compute_weight_trend(_history(70, 71), window_days=0) is None

    def test_negative_window_returns_none(self):
        """A negative window is empty rather than a slice from the end."""
        assert compute_weight_trend(_history(70, 71, 72, 73, 74), window_days=-2) is None

    def test_presets(self):
        assert 7 in TREND_WINDOW_PRESETS


class TestPrepareWeightHistory:
    """Tests for prepare_weight_history."""

    def test_invalid_entries_dropped(self):
        """Non-numeric or non-positive weights never reach the history."""
        raw = [
            {"id": 1, "weightKg": 80, "recordedAt": "2026-02-18T07:00:00"},
            {"id": 2, "weightKg": "heavy", "recordedAt": "2026-02-19T07:00:00"},
            {"id": 3, "weightKg": 0, "recordedAt": "2026-02-19T07:00:00"},
            {"id": 4, "weightKg": -5, "recordedAt": "2026-02-19T07:00:00"},
        ]
        history = prepare_weight_history(raw)
        assert [e.id for e in history] == [1]

    def test_sorted_latest_first(self):
        """Mixed date-only and date-time values sort by day then time."""
        raw = [
            {"id": "a", "weightKg": 80, "recordedAt": "2026-02-18"},
            {"id": "b", "weightKg": 81, "recordedAt": "2026-02-19T18:00:00"},
            {"id": "c", "weightKg": 79, "recordedAt": "2026-02-19T06:00:00"},
        ]
        history = prepare_weight_history(raw)
        assert [e.id for e in history] == ["b", "c", "a"]

    def test_models_pass_through(self):
        entry = WeightEntry(weight_kg=80, recorded_at="2026-02-19")
        assert prepare_weight_history([entry]) == [entry]
