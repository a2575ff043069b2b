"""Macro Calculations - Pure functions for nutrition math.

All functions are pure: same input always produces same output, no side effects.
"""

from typing import Any, Iterable, Optional

from pydantic import ValidationError

from .dates import to_day_key
from .models import DailyMacroStats, MacroEntry, MacroGoals, MacroStat

MACRO_FIELDS = ("protein", "carbs", "fat", "calories")


def normalize_macro_entry(raw: MacroEntry | dict[str, Any]) -> Optional[MacroEntry]:
    """Coerce a raw macros payload into a MacroEntry.

    Numeric strings become floats, blank or non-numeric values become None,
    and a missing or malformed date becomes "". A payload that still fails
    validation (e.g. a negative nutrient) gives None.
    """
    if isinstance(raw, MacroEntry):
        return raw
    try:
        return MacroEntry.model_validate(raw)
    except ValidationError:
        return None


def normalize_macro_entries(raw_entries: Iterable[MacroEntry | dict[str, Any]]) -> list[MacroEntry]:
    """Normalize many payloads, dropping the ones that cannot be used."""
    normalized = (normalize_macro_entry(raw) for raw in raw_entries)
    return [entry for entry in normalized if entry is not None]


def calculate_field_total(entries: list[MacroEntry], field: str) -> Optional[float]:
    """Sum one macro field over the entries that supply it.

    Args:
        entries: Entries for a single day
        field: One of protein, carbs, fat, calories

    Returns:
        The total, or None when no entry specifies the field
    """
    values = [getattr(e, field) for e in entries if getattr(e, field) is not None]
    if not values:
        return None
    return sum(values)


def calculate_average_error_margin(entries: list[MacroEntry]) -> float:
    """Mean error margin across all entries; a missing margin counts as 0."""
    if not entries:
        return 0.0
    return sum(e.error_margin or 0 for e in entries) / len(entries)


def calculate_macro_stat(total: float, avg_error_margin: float, goal: float) -> MacroStat:
    """Build the min/max band and percent-of-goal for one macro total."""
    return MacroStat(
        total=total,
        min=total * (1 - avg_error_margin / 100),
        max=total * (1 + avg_error_margin / 100),
        goal=goal,
        percentage=total / goal * 100,
    )


def aggregate_macros_for_day(
    entries: Iterable[MacroEntry | dict[str, Any]],
    day_key: str,
    goals: MacroGoals,
) -> DailyMacroStats | None:
    """Aggregate one calendar day's macros entries.

    Each macro is aggregated independently: a field contributes a statistic
    when at least one entry of the day supplies it. One average error margin
    is applied to every field.

    Args:
        entries: All loaded macros entries
        day_key: YYYY-MM-DD of the day to aggregate
        goals: Daily targets used for percentages

    Returns:
        DailyMacroStats, or None when nothing was logged that day
    """
    if not day_key:
        return None

    day_entries = [
        entry
        for entry in normalize_macro_entries(entries)
        if to_day_key(entry.date) == day_key
    ]
    if not day_entries:
        return None

    avg_error = calculate_average_error_margin(day_entries)

    stats: dict[str, Optional[MacroStat]] = {}
    for field in MACRO_FIELDS:
        total = calculate_field_total(day_entries, field)
        stats[field] = (
            calculate_macro_stat(total, avg_error, getattr(goals, field))
            if total is not None
            else None
        )

    return DailyMacroStats(
        **stats,
        entry_count=len(day_entries),
        entries=day_entries,
    )
