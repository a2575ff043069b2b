"""Weight Trends - Pure functions for weight history and short-term trend.

All functions are pure: same input always produces same output, no side effects.
"""

from datetime import datetime
from typing import Any, Iterable

from pydantic import ValidationError

from .dates import to_day_key
from .models import WeightEntry, WeightTrend

# Trailing-average windows offered to the user, in entries
TREND_WINDOW_PRESETS = (3, 7, 14, 30)
DEFAULT_TREND_WINDOW = 7


def _sort_key(entry: WeightEntry) -> tuple[str, str]:
    # Day key first so date-only and date-time strings order together
    try:
        instant = datetime.fromisoformat(entry.recorded_at.replace("Z", "+00:00"))
        if instant.tzinfo is not None:
            instant = instant.astimezone().replace(tzinfo=None)
        precise = instant.isoformat()
    except ValueError:
        precise = ""
    return to_day_key(entry.recorded_at), precise


def prepare_weight_history(raw_entries: Iterable[WeightEntry | dict[str, Any]]) -> list[WeightEntry]:
    """Turn loaded weight payloads into a clean, latest-first history.

    Entries whose mass is non-numeric or not positive are dropped here, at
    load time, so they never reach any computed view.

    Args:
        raw_entries: Weight entries as returned by the API

    Returns:
        Valid WeightEntry list sorted latest first
    """
    history: list[WeightEntry] = []
    for raw in raw_entries:
        if isinstance(raw, WeightEntry):
            history.append(raw)
            continue
        try:
            history.append(WeightEntry.model_validate(raw))
        except ValidationError:
            continue
    return sorted(history, key=_sort_key, reverse=True)


def compute_weight_trend(history: list[WeightEntry], window_days: int) -> WeightTrend | None:
    """Compare the latest weight with the average of the preceding entries.

    Args:
        history: Weight entries, latest first
        window_days: Number of preceding entries to average

    Returns:
        WeightTrend, or None without enough history
    """
    if len(history) < 2 or window_days < 1:
        return None

    window = history[1 : window_days + 1]
    if not window:
        return None

    average = sum(e.weight_kg for e in window) / len(window)
    diff = history[0].weight_kg - average
    direction = "up" if diff > 0 else "down" if diff < 0 else "stable"

    return WeightTrend(
        diff=diff,
        percent_change=diff / average * 100,
        direction=direction,
        average_weight=average,
        days_compared=len(window),
    )
