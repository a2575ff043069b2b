"""MCP Server - Tool definitions for MCP clients.

Defines the MCP tools that expose tracking views over the remote API.
The caller's bearer token is forwarded to the API for every request.
"""

import asyncio
import logging
import os
from contextvars import ContextVar
from datetime import date, datetime
from pathlib import Path

from mcp.server.fastmcp import FastMCP
from mcp.server.transport_security import TransportSecuritySettings
from pydantic import ValidationError

from ..core.body_composition import (
    estimate_body_fat_percent,
    measurements_to_cm,
    validate_body_fat_inputs,
)
from ..core.dates import build_local_iso, local_date_key, to_day_key
from ..core.macros import aggregate_macros_for_day
from ..core.models import DEFAULT_ERROR_MARGIN, MacroEntry, SessionRecord, Sex, is_loggable_values
from ..core.reports import generate_weekly_macro_report
from ..core.sessions import group_session_exercises
from ..core.state import HistoryLoaded, RecordKind, TrackingState, day_snapshot, reduce
from ..core.trends import DEFAULT_TREND_WINDOW, compute_weight_trend
from ..core.units import LENGTH_UNITS, format_weight, from_kg, to_cm, to_kg
from .api_client import ApiConfig, ApiError, TrackingApiClient
from .photo_cache import PhotoUriResolver
from .preferences import FirestoreConfig, PreferenceStore


logger = logging.getLogger(__name__)

# Context variable to store the caller's bearer token per request
current_token: ContextVar[str | None] = ContextVar("current_token", default=None)

transport_security = TransportSecuritySettings(
    enable_dns_rebinding_protection=True,
    allowed_hosts=["localhost:*", "127.0.0.1:*"],
)

mcp = FastMCP(
    "fittrack",
    instructions="""FitTrack - Personal fitness tracking assistant.

Use these tools to review body metrics (weight, body fat, creatine, macros,
progress photos) for a calendar day, see weight trends, calculate body fat
with the US Navy method, and inspect workout sessions.

Dates are local calendar days in YYYY-MM-DD format.""",
    stateless_http=True,
    transport_security=transport_security,
)

# Lazy-initialized clients
_preference_store: PreferenceStore | None = None


def get_api_client() -> TrackingApiClient:
    """Create an API client for the current caller."""
    config = ApiConfig(
        base_url=os.environ.get("FITTRACK_API_URL", "http://localhost:3000"),
        timeout=float(os.environ.get("FITTRACK_API_TIMEOUT", "10")),
    )
    return TrackingApiClient(config, token=current_token.get())


def get_preference_store() -> PreferenceStore:
    """Get or create the preference store."""
    global _preference_store
    if _preference_store is None:
        config = FirestoreConfig(database=os.environ.get("FIRESTORE_DATABASE", "fittrack"))
        _preference_store = PreferenceStore(config)
    return _preference_store


def _parse_day(date_str: str | None) -> str | None:
    """Day key for a YYYY-MM-DD string, today when omitted, None when invalid."""
    if date_str is None:
        return local_date_key(date.today())
    try:
        return local_date_key(date.fromisoformat(date_str))
    except ValueError:
        return None


def load_tracking_state(api: TrackingApiClient) -> TrackingState:
    """Fetch every tracking list and fold it into a fresh state."""
    return reduce(
        TrackingState(),
        HistoryLoaded(
            weights=api.get_weight_history(),
            macros=api.get_macros_history(),
            creatine=api.get_creatine_history(),
            body_fat=api.get_body_fat_history(),
            photos=api.get_photo_list(),
            macro_goals=api.get_macros_goals(),
        ),
    )


# ==================== Day Tools ====================


@mcp.tool()
async def get_tracking_day(date_str: str, tab: str = "macros") -> dict:
    """Show what was logged on one day for one tracking tab.

    Args:
        date_str: Date in YYYY-MM-DD format
        tab: One of weight, macros, creatine, bodyfat, photos

    Returns:
        Existing entries for the day, plus macro stats for the macros tab
    """
    day_key = _parse_day(date_str)
    if day_key is None:
        return {"error": "Invalid date format. Use YYYY-MM-DD."}
    try:
        kind = RecordKind(tab)
    except ValueError:
        return {"error": f"Unknown tab '{tab}'."}

    api = get_api_client()
    try:
        state = await asyncio.to_thread(load_tracking_state, api)
    finally:
        api.close()
    snapshot = day_snapshot(state, day_key, kind)

    result = {
        "date": day_key,
        "tab": kind.value,
        "entries": [e.model_dump() for e in snapshot.existing_entries or []],
        "nothing_logged": snapshot.show_add_form,
    }
    if snapshot.macro_stats is not None:
        result["macro_stats"] = snapshot.macro_stats.model_dump(exclude={"entries"})
    if snapshot.photos_to_fetch:
        resolver = PhotoUriResolver(
            api.config.base_url,
            Path(os.environ.get("FITTRACK_PHOTO_CACHE_DIR", "/tmp/fittrack-photos")),
            token=current_token.get(),
        )
        resolved = await resolver.prefetch(snapshot.photos_to_fetch)
        result["photos"] = {
            photo_id: entry.model_dump() if entry else None for photo_id, entry in resolved.items()
        }
    return result


@mcp.tool()
def get_weight_trend(window_days: int = DEFAULT_TREND_WINDOW, unit: str = "kg") -> dict:
    """Compare the latest weight with the average of the previous entries.

    Args:
        window_days: How many previous entries to average (3, 7, 14 or 30)
        unit: Display unit, kg or lbs

    Returns:
        Trend direction, difference and percent change, plus the weight goal
    """
    if window_days <= 0:
        return {"error": "window_days must be positive."}
    if unit not in ("kg", "lbs"):
        return {"error": "Unit must be kg or lbs."}

    api = get_api_client()
    try:
        history = api.get_weight_history()
        user_id = api.get_current_user_id()
    finally:
        api.close()

    trend = compute_weight_trend(history, window_days)
    if trend is None:
        return {"message": "Not enough weight history for a trend."}

    goal_kg = get_preference_store().get_weight_goal(user_id)
    return {
        "current": format_weight(history[0].weight_kg, unit),
        "direction": trend.direction,
        "diff": round(from_kg(trend.diff, unit), 1),
        "percent_change": round(trend.percent_change, 1),
        "average": format_weight(trend.average_weight, unit),
        "days_compared": trend.days_compared,
        "goal": format_weight(goal_kg, unit) if goal_kg else None,
    }


# ==================== Logging Tools ====================


@mcp.tool()
def log_weight(weight: float, unit: str = "kg", date_str: str | None = None) -> dict:
    """Log a body weight reading.

    Args:
        weight: Weight in the given unit
        unit: kg or lbs (stored as kg)
        date_str: Optional past date in YYYY-MM-DD format

    Returns:
        The stored weight in kilograms
    """
    if weight <= 0:
        return {"error": "Enter a valid weight."}
    try:
        weight_kg = to_kg(weight, unit)
    except ValueError:
        return {"error": "Unit must be kg or lbs."}

    if date_str is not None:
        day_key = _parse_day(date_str)
        if day_key is None:
            return {"error": "Invalid date format. Use YYYY-MM-DD."}
        recorded_at = build_local_iso(day_key, "08:00")
    else:
        recorded_at = datetime.now().astimezone().isoformat()

    api = get_api_client()
    try:
        api.log_weight(weight_kg, recorded_at)
    except ApiError as e:
        return {"error": str(e)}
    finally:
        api.close()
    return {"success": True, "weight_kg": round(weight_kg, 2), "recorded_at": recorded_at}


@mcp.tool()
def log_macros(
    name: str | None = None,
    protein: float | None = None,
    carbs: float | None = None,
    fat: float | None = None,
    calories: float | None = None,
    error_margin: float = DEFAULT_ERROR_MARGIN,
    time: str | None = None,
    date_str: str | None = None,
) -> dict:
    """Log a macros entry. Every value is optional but one value or a name is needed.

    Args:
        name: Optional label (e.g., "Lunch")
        protein: Protein in grams
        carbs: Carbohydrates in grams
        fat: Fat in grams
        calories: Calories
        error_margin: Estimated +/- percentage (default 5)
        time: Time of day HH:MM (defaults to now)
        date_str: Date in YYYY-MM-DD format (defaults to today)

    Returns:
        Updated stats for the day
    """
    if not is_loggable_values(name, protein, carbs, fat, calories):
        return {"error": "Enter at least a name or one macro value."}
    day_key = _parse_day(date_str)
    if day_key is None:
        return {"error": "Invalid date format. Use YYYY-MM-DD."}

    try:
        entry = MacroEntry(
            name=name.strip() if name and name.strip() else None,
            protein=protein,
            carbs=carbs,
            fat=fat,
            calories=calories,
            error_margin=error_margin,
            date=day_key,
            time=time or datetime.now().strftime("%H:%M"),
        )
    except ValidationError:
        return {"error": "Macro values cannot be negative."}

    api = get_api_client()
    try:
        api.log_macros(entry)
        entries = api.get_macros_history()
        goals = api.get_macros_goals()
    except ApiError as e:
        return {"error": str(e)}
    finally:
        api.close()

    stats = aggregate_macros_for_day(entries, day_key, goals)
    return {
        "success": True,
        "date": day_key,
        "daily_stats": stats.model_dump(exclude={"entries"}) if stats else None,
    }


@mcp.tool()
def calculate_body_fat(
    waist: float,
    neck: float,
    hip: float | None = None,
    unit: str = "cm",
    sex: str | None = None,
    date_str: str | None = None,
) -> dict:
    """Calculate and log body fat percentage with the US Navy method.

    Uses the stored height and, unless given, the stored sex preference.

    Args:
        waist: Waist circumference
        neck: Neck circumference
        hip: Hip circumference (required for female)
        unit: cm or in
        sex: male or female
        date_str: Optional past date in YYYY-MM-DD format

    Returns:
        The logged percentage, or the list of measurement problems
    """
    day_key = _parse_day(date_str)
    if day_key is None:
        return {"error": "Invalid date format. Use YYYY-MM-DD."}

    api = get_api_client()
    try:
        height_cm = api.get_height_cm()
        if height_cm is None:
            return {"error": "Height required. Set your height first."}

        if sex is None:
            stored = get_preference_store().get_sex(api.get_current_user_id())
            sex = stored.value if stored else Sex.MALE.value

        if unit not in LENGTH_UNITS:
            return {"error": "Please enter all measurements in cm or in."}

        problems = validate_body_fat_inputs(
            sex,
            to_cm(waist, unit),
            to_cm(neck, unit),
            to_cm(hip, unit) if hip else None,
            height_cm,
        )
        if problems:
            return {"error": "Invalid measurements.", "problems": problems}

        measurements = measurements_to_cm(waist, neck, hip, unit)
        percentage = estimate_body_fat_percent(
            sex, measurements.waist, measurements.neck, measurements.hip, height_cm
        )
        api.log_body_fat(percentage, measurements, Sex(sex), build_local_iso(day_key, "12:00"))
    except ApiError as e:
        return {"error": str(e)}
    finally:
        api.close()

    return {
        "percentage": percentage,
        "sex": sex,
        "measurements_cm": measurements.model_dump(),
        "date": day_key,
    }


# ==================== Session Tools ====================


@mcp.tool()
def get_session_details(session_id: str) -> dict:
    """Get one of your workout sessions with sets grouped by exercise.

    Args:
        session_id: The session ID

    Returns:
        Session summary and grouped exercises
    """
    api = get_api_client()
    try:
        session = api.get_session(session_id)
    finally:
        api.close()
    if session is None:
        return {"error": "Session not found."}
    return _session_view(session)


@mcp.tool()
def get_friend_session_details(friend_id: str, session_id: str) -> dict:
    """Get a friend's shared workout session with sets grouped by exercise.

    Args:
        friend_id: The friend's user ID
        session_id: The session ID

    Returns:
        Session summary and grouped exercises
    """
    api = get_api_client()
    try:
        session = api.get_friend_session(friend_id, session_id)
    finally:
        api.close()
    if session is None:
        return {"error": "Session not found or not shared with you."}
    return _session_view(session)


def _session_view(session: SessionRecord) -> dict:
    return {
        "id": session.id,
        "day_number": session.day_number,
        "title": session.day_title,
        "date": to_day_key(session.start_time),
        "total_duration": session.total_duration,
        "completed_sets": session.completed_sets,
        "exercises": [
            {
                "name": group.exercise_name,
                "sets": [
                    {"set": s.set_index + 1, "weight": s.weight, "reps": s.reps}
                    for s in group.sets
                ],
            }
            for group in group_session_exercises(session.set_timings)
        ],
    }


# ==================== Report Tools ====================


@mcp.tool()
def get_weekly_macros() -> dict:
    """Seven-day macros report ending today."""
    api = get_api_client()
    try:
        entries = api.get_macros_history(days=7)
        goals = api.get_macros_goals()
    finally:
        api.close()

    report = generate_weekly_macro_report(entries, goals)
    return {
        "week_start": report.week_start,
        "week_end": report.week_end,
        "days_logged": report.days_logged,
        "daily": {
            day: stats.model_dump(exclude={"entries"}) for day, stats in report.daily_stats.items()
        },
        "weekly_totals": {
            "protein": report.total_protein,
            "carbs": report.total_carbs,
            "fat": report.total_fat,
            "calories": report.total_calories,
        },
    }


# ==================== Preference Tools ====================


@mcp.tool()
def set_weight_goal(goal: float, unit: str = "kg") -> str:
    """Save your target body weight.

    Args:
        goal: Target weight
        unit: kg or lbs
    """
    try:
        goal_kg = to_kg(goal, unit)
    except ValueError:
        return "Unit must be kg or lbs."

    api = get_api_client()
    try:
        user_id = api.get_current_user_id()
    finally:
        api.close()

    if get_preference_store().set_weight_goal(user_id, goal_kg):
        return f"Weight goal saved: {format_weight(goal_kg, unit)}"
    return "Failed to save weight goal. Please try again."


@mcp.tool()
def set_sex(sex: str) -> str:
    """Save the sex used for body fat calculations (male or female)."""
    try:
        value = Sex(sex)
    except ValueError:
        return "Sex must be male or female."

    api = get_api_client()
    try:
        user_id = api.get_current_user_id()
    finally:
        api.close()

    if get_preference_store().set_sex(user_id, value):
        return f"Saved: {value.value}"
    return "Failed to save preference. Please try again."
