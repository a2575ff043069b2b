"""Report Generation - Pure functions for generating reports.

All functions are pure: same input always produces same output, no side effects.
"""

from datetime import date, timedelta
from typing import Any, Iterable

from .dates import local_date_key
from .macros import aggregate_macros_for_day, normalize_macro_entries
from .models import DailyMacroStats, MacroEntry, MacroGoals, WeeklyMacroReport


def _stat_total(stats: DailyMacroStats, field: str) -> float:
    stat = getattr(stats, field)
    return stat.total if stat is not None else 0.0


def generate_weekly_macro_report(
    entries: Iterable[MacroEntry | dict[str, Any]],
    goals: MacroGoals,
    week_start: date | None = None,
) -> WeeklyMacroReport:
    """Generate a seven-day macros report.

    Args:
        entries: Macros entries (may cover more or less than the week)
        goals: Daily targets used for each day's percentages
        week_start: First day of the week (defaults to 6 days ago)

    Returns:
        WeeklyMacroReport with per-day stats for days that have entries
    """
    if week_start is None:
        week_start = date.today() - timedelta(days=6)

    week_end = week_start + timedelta(days=6)
    normalized = normalize_macro_entries(entries)

    daily_stats: dict[str, DailyMacroStats] = {}
    for offset in range(7):
        day_key = local_date_key(week_start + timedelta(days=offset))
        stats = aggregate_macros_for_day(normalized, day_key, goals)
        if stats is not None:
            daily_stats[day_key] = stats

    days = list(daily_stats.values())

    return WeeklyMacroReport(
        week_start=local_date_key(week_start),
        week_end=local_date_key(week_end),
        daily_stats=daily_stats,
        total_protein=round(sum(_stat_total(s, "protein") for s in days), 1),
        total_carbs=round(sum(_stat_total(s, "carbs") for s in days), 1),
        total_fat=round(sum(_stat_total(s, "fat") for s in days), 1),
        total_calories=round(sum(_stat_total(s, "calories") for s in days), 1),
        days_logged=len(days),
    )
