"""Tests for MCP tools with the API client and preference store mocked out."""

import threading
from unittest.mock import MagicMock, patch

import pytest

from fittrack.core.models import (
    MacroEntry,
    MacroGoals,
    SessionRecord,
    SetTiming,
    Sex,
    WeightEntry,
)
from fittrack.shell import mcp_server
from fittrack.shell.api_client import ApiError


@pytest.fixture
def api():
    """Mock API client returned by get_api_client."""
    mock_api = MagicMock()
    mock_api.get_weight_history.return_value = []
    mock_api.get_macros_history.return_value = []
    mock_api.get_creatine_history.return_value = []
    mock_api.get_body_fat_history.return_value = []
    mock_api.get_photo_list.return_value = []
    mock_api.get_macros_goals.return_value = MacroGoals()
    mock_api.get_current_user_id.return_value = "42"
    mock_api.config.base_url = "http://api.test"
    with patch.object(mcp_server, "get_api_client", return_value=mock_api):
        yield mock_api


@pytest.fixture
def prefs():
    """Mock preference store."""
    store = MagicMock()
    store.get_weight_goal.return_value = None
    store.get_sex.return_value = None
    with patch.object(mcp_server, "get_preference_store", return_value=store):
        yield store


class TestGetTrackingDay:
    """Tests for get_tracking_day tool."""

    @pytest.mark.asyncio
    async def test_macros_day(self, api):
        api.get_macros_history.return_value = [
            MacroEntry(id=1, protein=30, error_margin=5, date="2026-02-19"),
            MacroEntry(id=2, protein=20, carbs=50, error_margin=5, date="2026-02-19"),
        ]

        result = await mcp_server.get_tracking_day("2026-02-19", "macros")

        assert result["nothing_logged"] is False
        assert len(result["entries"]) == 2
        assert result["macro_stats"]["protein"]["total"] == 50
        assert result["macro_stats"]["fat"] is None
        api.close.assert_called_once()

    @pytest.mark.asyncio
    async def test_history_loaded_off_event_loop_thread(self, api):
        """Blocking API reads run in a worker thread."""
        loop_thread = threading.get_ident()
        seen = []

        def history(*args, **kwargs):
            seen.append(threading.get_ident())
            return []

        api.get_weight_history.side_effect = history
        api.get_macros_history.side_effect = history

        await mcp_server.get_tracking_day("2026-02-19", "weight")

        assert len(seen) == 2
        assert loop_thread not in seen

    @pytest.mark.asyncio
    async def test_empty_day(self, api):
        result = await mcp_server.get_tracking_day("2026-02-19", "weight")
        assert result["entries"] == []
        assert result["nothing_logged"] is True

    @pytest.mark.asyncio
    async def test_invalid_inputs(self, api):
        assert "error" in await mcp_server.get_tracking_day("19/02/2026")
        assert "error" in await mcp_server.get_tracking_day("2026-02-19", "steps")


class TestGetWeightTrend:
    """Tests for get_weight_trend tool."""

    def test_trend_in_pounds(self, api, prefs):
        api.get_weight_history.return_value = [
            WeightEntry(id=1, weight_kg=70, recorded_at="2026-02-20"),
            WeightEntry(id=2, weight_kg=71, recorded_at="2026-02-19"),
            WeightEntry(id=3, weight_kg=72, recorded_at="2026-02-18"),
        ]
        prefs.get_weight_goal.return_value = 68

        result = mcp_server.get_weight_trend(window_days=2, unit="lbs")

        assert result["direction"] == "down"
        assert result["days_compared"] == 2
        assert result["current"] == "154.3 lbs"
        assert result["goal"] == "149.9 lbs"
        prefs.get_weight_goal.assert_called_once_with("42")

    def test_not_enough_history(self, api, prefs):
        api.get_weight_history.return_value = [
            WeightEntry(id=1, weight_kg=70, recorded_at="2026-02-20")
        ]
        assert "message" in mcp_server.get_weight_trend()


class TestLogTools:
    """Tests for the logging tools."""

    def test_log_weight_converts_pounds(self, api):
        result = mcp_server.log_weight(154.3234, unit="lbs", date_str="2026-02-19")

        assert result["success"] is True
        weight_kg, recorded_at = api.log_weight.call_args.args
        assert weight_kg == pytest.approx(70, abs=0.01)
        assert recorded_at == "2026-02-19T08:00:00"

    def test_log_weight_rejects_non_positive(self, api):
        assert "error" in mcp_server.log_weight(0)
        api.log_weight.assert_not_called()

    def test_log_weight_api_error(self, api):
        api.log_weight.side_effect = ApiError("Weight too low", 400)
        assert mcp_server.log_weight(10) == {"error": "Weight too low"}

    def test_log_macros_requires_something(self, api):
        assert "error" in mcp_server.log_macros()
        api.log_macros.assert_not_called()

    def test_log_macros_negative_rejected(self, api):
        assert "error" in mcp_server.log_macros(protein=-5)

    def test_log_macros_returns_day_stats(self, api):
        api.get_macros_history.return_value = [
            MacroEntry(id=1, protein=30, date="2026-02-19"),
        ]
        result = mcp_server.log_macros(protein=30, date_str="2026-02-19", time="12:30")

        logged = api.log_macros.call_args.args[0]
        assert logged.date == "2026-02-19"
        assert logged.time == "12:30"
        assert logged.error_margin == 5
        assert result["daily_stats"]["protein"]["total"] == 30


class TestCalculateBodyFat:
    """Tests for calculate_body_fat tool."""

    def test_logs_estimate(self, api, prefs):
        api.get_height_cm.return_value = 178
        prefs.get_sex.return_value = Sex.MALE

        result = mcp_server.calculate_body_fat(85, 38, date_str="2026-02-19")

        assert result["percentage"] == 16.4
        percentage, measurements, sex, calculated_at = api.log_body_fat.call_args.args
        assert percentage == 16.4
        assert sex is Sex.MALE
        assert calculated_at == "2026-02-19T12:00:00"

    def test_height_required(self, api, prefs):
        api.get_height_cm.return_value = None
        assert "Height required" in mcp_server.calculate_body_fat(85, 38)["error"]

    def test_waist_not_above_neck(self, api, prefs):
        api.get_height_cm.return_value = 178
        result = mcp_server.calculate_body_fat(38, 40, sex="male")
        assert result["problems"] == ["Waist must be larger than neck"]
        api.log_body_fat.assert_not_called()

    def test_female_missing_hip(self, api, prefs):
        api.get_height_cm.return_value = 165
        result = mcp_server.calculate_body_fat(75, 33, sex="female")
        assert "Hip must be a positive number" in result["problems"]

    def test_bad_unit(self, api, prefs):
        api.get_height_cm.return_value = 178
        assert "error" in mcp_server.calculate_body_fat(85, 38, unit="mm", sex="male")


class TestSessionTools:
    """Tests for session tools."""

    def test_grouped_exercises(self, api):
        api.get_session.return_value = SessionRecord(
            id=5,
            start_time="2026-02-19T07:00:00",
            set_timings=[
                SetTiming(exercise_name="Squat", set_index=1, weight=100, reps=5),
                SetTiming(exercise_name="Squat", set_index=0, weight=90, reps=5),
                SetTiming(exercise_name="Row", set_index=0, weight=60, reps=10),
            ],
        )

        result = mcp_server.get_session_details("5")

        assert result["date"] == "2026-02-19"
        assert [e["name"] for e in result["exercises"]] == ["Squat", "Row"]
        assert [s["set"] for s in result["exercises"][0]["sets"]] == [1, 2]

    def test_friend_session_missing(self, api):
        api.get_friend_session.return_value = None
        assert "error" in mcp_server.get_friend_session_details("7", "5")


class TestPreferenceTools:
    """Tests for preference tools."""

    def test_set_weight_goal(self, api, prefs):
        prefs.set_weight_goal.return_value = True
        result = mcp_server.set_weight_goal(75)
        assert result == "Weight goal saved: 75.0 kg"
        prefs.set_weight_goal.assert_called_once_with("42", 75)

    def test_set_sex_invalid(self, api, prefs):
        assert mcp_server.set_sex("other") == "Sex must be male or female."
        prefs.set_sex.assert_not_called()
