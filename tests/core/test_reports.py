"""Unit tests for report generation - pure functions, no mocks needed."""

from datetime import date

from fittrack.core.models import MacroEntry, MacroGoals
from fittrack.core.reports import generate_weekly_macro_report


GOALS = MacroGoals()


class TestGenerateWeeklyMacroReport:
    """Tests for generate_weekly_macro_report."""

    def test_empty_week(self):
        """No entries gives an empty report."""
        report = generate_weekly_macro_report([], GOALS, week_start=date(2026, 2, 16))

        assert report.week_start == "2026-02-16"
        assert report.week_end == "2026-02-22"
        assert report.days_logged == 0
        assert report.daily_stats == {}
        assert report.total_protein == 0

    def test_week_with_entries(self):
        """Days with entries are aggregated and totalled."""
        entries = [
            MacroEntry(protein=30, carbs=40, date="2026-02-16"),
            MacroEntry(protein=20.3, date="2026-02-16T19:00:00"),
            MacroEntry(protein=50, calories=600, date="2026-02-18"),
        ]
        report = generate_weekly_macro_report(entries, GOALS, week_start=date(2026, 2, 16))

        assert report.days_logged == 2
        assert list(report.daily_stats) == ["2026-02-16", "2026-02-18"]
        assert report.total_protein == 100.3
        assert report.total_carbs == 40
        assert report.total_fat == 0
        assert report.total_calories == 600

    def test_entries_outside_week_ignored(self):
        entries = [
            MacroEntry(protein=30, date="2026-02-15"),
            MacroEntry(protein=30, date="2026-02-23"),
        ]
        report = generate_weekly_macro_report(entries, GOALS, week_start=date(2026, 2, 16))
        assert report.days_logged == 0

    def test_accepts_raw_payloads(self):
        entries = [{"id": 1, "protein": "12", "date": "2026-02-17"}]
        report = generate_weekly_macro_report(entries, GOALS, week_start=date(2026, 2, 16))
        assert report.total_protein == 12
