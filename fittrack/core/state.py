"""Tracking State - Typed view state updated through discrete actions.

`reduce` is pure: it returns a new TrackingState and never mutates the old
one. Lists are kept latest first; new entries go on top, deletions remove
by id. Callers reload after any mutating request, so a stale aggregate is
replaced on the next HistoryLoaded.
"""

from enum import Enum
from typing import Any, Optional, TypeVar, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from .dates import entries_for_day, to_day_key
from .macros import aggregate_macros_for_day, normalize_macro_entries
from .models import (
    BodyFatEntry,
    CreatineEntry,
    DailyMacroStats,
    MacroEntry,
    MacroGoals,
    PhotoCacheEntry,
    PhotoStatus,
    ProgressPhoto,
    WeightEntry,
)
from .trends import DEFAULT_TREND_WINDOW, prepare_weight_history


class RecordKind(str, Enum):
    """Record kinds, one per tracking tab."""

    WEIGHT = "weight"
    MACROS = "macros"
    CREATINE = "creatine"
    BODYFAT = "bodyfat"
    PHOTOS = "photos"


# kind -> (state attribute, timestamp field)
_KIND_FIELDS: dict[RecordKind, tuple[str, str]] = {
    RecordKind.WEIGHT: ("weights", "recorded_at"),
    RecordKind.MACROS: ("macros", "date"),
    RecordKind.CREATINE: ("creatine", "taken_at"),
    RecordKind.BODYFAT: ("body_fat", "date"),
    RecordKind.PHOTOS: ("photos", "taken_at"),
}

AnyEntry = Union[WeightEntry, MacroEntry, CreatineEntry, BodyFatEntry, ProgressPhoto]


class TrackingState(BaseModel):
    """Everything the tracking view holds for the current session."""

    model_config = ConfigDict(frozen=True)

    weights: list[WeightEntry] = Field(default_factory=list)
    macros: list[MacroEntry] = Field(default_factory=list)
    creatine: list[CreatineEntry] = Field(default_factory=list)
    body_fat: list[BodyFatEntry] = Field(default_factory=list)
    photos: list[ProgressPhoto] = Field(default_factory=list)
    macro_goals: MacroGoals = Field(default_factory=MacroGoals)
    trend_window: int = Field(default=DEFAULT_TREND_WINDOW, gt=0)
    photo_cache: dict[str, PhotoCacheEntry] = Field(default_factory=dict)
    photos_in_flight: frozenset[str] = Field(default_factory=frozenset)


# ==================== Actions ====================


class HistoryLoaded(BaseModel):
    """Fresh lists from the server; None leaves a list untouched.

    Items may be raw payloads. Ones that fail validation are left out
    rather than failing the whole load.
    """

    weights: Optional[list[dict | WeightEntry]] = None
    macros: Optional[list[dict | MacroEntry]] = None
    creatine: Optional[list[dict | CreatineEntry]] = None
    body_fat: Optional[list[dict | BodyFatEntry]] = None
    photos: Optional[list[dict | ProgressPhoto]] = None
    macro_goals: Optional[MacroGoals] = None


class EntryAdded(BaseModel):
    kind: RecordKind
    entry: AnyEntry


class EntryRemoved(BaseModel):
    kind: RecordKind
    entry_id: str | int


class GoalsUpdated(BaseModel):
    goals: MacroGoals


class TrendWindowChanged(BaseModel):
    window_days: int = Field(gt=0)


class PhotoFetchStarted(BaseModel):
    photo_id: str | int


class PhotoFetchSucceeded(BaseModel):
    photo_id: str | int
    local_uri: str


class PhotoFetchFailed(BaseModel):
    photo_id: str | int


Action = Union[
    HistoryLoaded,
    EntryAdded,
    EntryRemoved,
    GoalsUpdated,
    TrendWindowChanged,
    PhotoFetchStarted,
    PhotoFetchSucceeded,
    PhotoFetchFailed,
]


M = TypeVar("M", bound=BaseModel)


def _valid_entries(model: type[M], items: list[Any]) -> list[M]:
    """Validate loaded payloads, leaving out the ones that do not parse."""
    valid: list[M] = []
    for item in items:
        if isinstance(item, model):
            valid.append(item)
            continue
        try:
            valid.append(model.model_validate(item))
        except ValidationError:
            continue
    return valid


def _sorted_body_fat(entries: list[BodyFatEntry]) -> list[BodyFatEntry]:
    return sorted(entries, key=lambda e: (to_day_key(e.date), e.date), reverse=True)


def _finish_photo(state: TrackingState, photo_id: str, entry: PhotoCacheEntry) -> TrackingState:
    cache = dict(state.photo_cache)
    cache[photo_id] = entry
    return state.model_copy(
        update={
            "photo_cache": cache,
            "photos_in_flight": state.photos_in_flight - {photo_id},
        }
    )


def reduce(state: TrackingState, action: Action) -> TrackingState:
    """Apply one action and return the new state."""
    if isinstance(action, HistoryLoaded):
        updates: dict = {}
        if action.weights is not None:
            updates["weights"] = prepare_weight_history(action.weights)
        if action.macros is not None:
            updates["macros"] = normalize_macro_entries(action.macros)
        if action.creatine is not None:
            updates["creatine"] = _valid_entries(CreatineEntry, action.creatine)
        if action.body_fat is not None:
            updates["body_fat"] = _sorted_body_fat(_valid_entries(BodyFatEntry, action.body_fat))
        if action.photos is not None:
            updates["photos"] = _valid_entries(ProgressPhoto, action.photos)
        if action.macro_goals is not None:
            updates["macro_goals"] = action.macro_goals
        return state.model_copy(update=updates)

    if isinstance(action, EntryAdded):
        attr, _ = _KIND_FIELDS[action.kind]
        return state.model_copy(update={attr: [action.entry, *getattr(state, attr)]})

    if isinstance(action, EntryRemoved):
        attr, _ = _KIND_FIELDS[action.kind]
        target = str(action.entry_id)
        remaining = [e for e in getattr(state, attr) if str(e.id) != target]
        return state.model_copy(update={attr: remaining})

    if isinstance(action, GoalsUpdated):
        return state.model_copy(update={"macro_goals": action.goals})

    if isinstance(action, TrendWindowChanged):
        return state.model_copy(update={"trend_window": action.window_days})

    if isinstance(action, PhotoFetchStarted):
        photo_id = str(action.photo_id)
        return state.model_copy(
            update={"photos_in_flight": state.photos_in_flight | {photo_id}}
        )

    if isinstance(action, PhotoFetchSucceeded):
        return _finish_photo(
            state,
            str(action.photo_id),
            PhotoCacheEntry(status=PhotoStatus.READY, local_uri=action.local_uri),
        )

    if isinstance(action, PhotoFetchFailed):
        return _finish_photo(state, str(action.photo_id), PhotoCacheEntry(status=PhotoStatus.ERROR))

    raise TypeError(f"Unknown action: {type(action).__name__}")


def should_fetch_photo(state: TrackingState, photo_id: str | int) -> bool:
    """Only fetch a photo that is neither cached nor already being fetched."""
    key = str(photo_id)
    return key not in state.photo_cache and key not in state.photos_in_flight


def photo_status(state: TrackingState, photo_id: str | int) -> PhotoStatus:
    entry = state.photo_cache.get(str(photo_id))
    return entry.status if entry is not None else PhotoStatus.PENDING


# ==================== Calendar Day ====================


class DaySnapshot(BaseModel):
    """What a tapped calendar day shows for one tab."""

    day_key: str
    kind: RecordKind
    existing_entries: Optional[list[AnyEntry]] = None
    macro_stats: Optional[DailyMacroStats] = None
    photos_to_fetch: list[str] = Field(default_factory=list)
    show_add_form: bool


def day_snapshot(state: TrackingState, day_key: str, kind: RecordKind | str) -> DaySnapshot:
    """Collect the existing entries of one day for one tab.

    The add form opens directly when the day has nothing logged.
    """
    kind = RecordKind(kind)
    attr, field = _KIND_FIELDS[kind]
    existing: Optional[list] = None
    macro_stats = None
    photos_to_fetch: list[str] = []

    if kind is RecordKind.MACROS:
        macro_stats = aggregate_macros_for_day(state.macros, day_key, state.macro_goals)
        if macro_stats is not None:
            existing = list(macro_stats.entries)
    elif kind is RecordKind.BODYFAT:
        matches = entries_for_day(state.body_fat, day_key, field)
        if matches:
            existing = matches[:1]
    else:
        matches = entries_for_day(getattr(state, attr), day_key, field)
        if matches:
            existing = matches
            if kind is RecordKind.PHOTOS:
                photos_to_fetch = [str(p.id) for p in matches if should_fetch_photo(state, p.id)]

    return DaySnapshot(
        day_key=day_key,
        kind=kind,
        existing_entries=existing,
        macro_stats=macro_stats,
        photos_to_fetch=photos_to_fetch,
        show_add_form=existing is None,
    )
