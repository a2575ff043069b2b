"""Core Data Models - Pydantic models for type safety.

All models are immutable value objects with no behavior beyond validation.
Remote payloads mix camelCase and snake_case, so fields that differ accept
both spellings on input and always serialize with the snake_case name.
"""

import math
import uuid
from datetime import date as date_type, datetime
from enum import Enum
from typing import Any, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator


# Default error margin (percent) offered when logging a macros entry
DEFAULT_ERROR_MARGIN = 5.0

# Default creatine dose in grams
DEFAULT_CREATINE_GRAMS = 5.0


def _new_id() -> str:
    return str(uuid.uuid4())


def _coerce_optional_float(value: Any) -> Optional[float]:
    """Turn blank, non-numeric or non-finite input into None."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, str):
        value = value.strip()
        if not value:
            return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    if not math.isfinite(number):
        return None
    return number


class Sex(str, Enum):
    """Sex variant used by the body-fat formula."""

    MALE = "male"
    FEMALE = "female"


class WeightEntry(BaseModel):
    """A body weight reading, always stored in kilograms."""

    id: str | int = Field(default_factory=_new_id)
    weight_kg: float = Field(gt=0, validation_alias=AliasChoices("weight_kg", "weightKg"))
    recorded_at: str = Field(validation_alias=AliasChoices("recorded_at", "recordedAt"))
    note: Optional[str] = None


class MacroEntry(BaseModel):
    """A logged macros intake. Every nutrient field is optional."""

    id: str | int = Field(default_factory=_new_id)
    name: Optional[str] = None
    protein: Optional[float] = Field(default=None, ge=0, description="Protein in grams")
    carbs: Optional[float] = Field(default=None, ge=0, description="Carbohydrates in grams")
    fat: Optional[float] = Field(default=None, ge=0, description="Fat in grams")
    calories: Optional[float] = Field(default=None, ge=0, description="Calorie count")
    error_margin: Optional[float] = Field(
        default=None,
        validation_alias=AliasChoices("error_margin", "errorMargin"),
        description="Plus/minus percentage; missing counts as 0 when aggregating",
    )
    date: str = Field(
        default="",
        description="Day the entry belongs to (date or date-time string); empty when unknown",
    )
    time: Optional[str] = Field(default=None, description="Free time of day, HH:MM")
    note: Optional[str] = None

    @field_validator("protein", "carbs", "fat", "calories", "error_margin", mode="before")
    @classmethod
    def _lenient_number(cls, value: Any) -> Optional[float]:
        return _coerce_optional_float(value)

    @field_validator("date", mode="before")
    @classmethod
    def _lenient_date(cls, value: Any) -> str:
        # An unusable timestamp only stops this entry from matching a day
        if isinstance(value, (date_type, datetime)):
            return value.isoformat()
        return value if isinstance(value, str) else ""

    def is_loggable(self) -> bool:
        """True when the entry carries a macro value or a name."""
        return is_loggable_values(self.name, self.protein, self.carbs, self.fat, self.calories)


def is_loggable_values(
    name: Optional[str],
    protein: Optional[float],
    carbs: Optional[float],
    fat: Optional[float],
    calories: Optional[float],
) -> bool:
    """Check whether a macros form has anything worth logging."""
    has_value = any(v is not None for v in (protein, carbs, fat, calories))
    return has_value or bool(name and name.strip())


class MacroGoals(BaseModel):
    """Daily macro targets."""

    protein: float = Field(default=150, gt=0, description="Daily protein target in grams")
    carbs: float = Field(default=250, gt=0, description="Daily carbohydrate target in grams")
    fat: float = Field(default=65, gt=0, description="Daily fat target in grams")
    calories: float = Field(default=2000, gt=0, description="Daily calorie target")


class BodyFatMeasurements(BaseModel):
    """Circumference measurements, normalized to centimeters."""

    waist: float = Field(gt=0)
    neck: float = Field(gt=0)
    hip: float = Field(default=0, ge=0)
    unit: str = Field(default="cm", pattern="^cm$")


class BodyFatEntry(BaseModel):
    """A body fat reading computed with the US Navy method."""

    id: str | int = Field(default_factory=_new_id)
    percentage: float
    measurements: Optional[BodyFatMeasurements] = None
    sex: Sex = Field(default=Sex.MALE, validation_alias=AliasChoices("sex", "gender"))
    date: str = Field(validation_alias=AliasChoices("date", "calculated_at", "calculatedAt"))

    @field_validator("percentage")
    @classmethod
    def _one_decimal(cls, value: float) -> float:
        return round(value, 1)


class CreatineEntry(BaseModel):
    """A creatine dose."""

    id: str | int = Field(default_factory=_new_id)
    grams: float = Field(default=DEFAULT_CREATINE_GRAMS, gt=0)
    note: Optional[str] = None
    taken_at: str = Field(validation_alias=AliasChoices("taken_at", "takenAt", "date"))


class ProgressPhoto(BaseModel):
    """Metadata for a remotely stored progress photo."""

    id: str | int
    taken_at: str = Field(validation_alias=AliasChoices("taken_at", "takenAt"))


class PhotoStatus(str, Enum):
    PENDING = "pending"
    READY = "ready"
    ERROR = "error"


class PhotoCacheEntry(BaseModel):
    """Local resolution state of one photo."""

    model_config = ConfigDict(frozen=True)

    status: PhotoStatus
    local_uri: Optional[str] = None


class SetTiming(BaseModel):
    """One completed set inside a workout session."""

    exercise_name: Optional[str] = None
    exercise_id: Optional[str | int] = None
    set_index: int = Field(default=0, ge=0, description="Zero-based set position")
    weight: Optional[float] = None
    reps: Optional[float] = None
    duration_seconds: Optional[float] = Field(
        default=None, validation_alias=AliasChoices("duration_seconds", "duration")
    )
    end_time: Optional[str] = None
    muscle_group: Optional[str] = Field(
        default=None, validation_alias=AliasChoices("muscle_group", "exercise_muscle_group")
    )

    @field_validator("weight", "reps", "duration_seconds", mode="before")
    @classmethod
    def _lenient_number(cls, value: Any) -> Optional[float]:
        return _coerce_optional_float(value)


class SessionRecord(BaseModel):
    """A completed or in-progress workout session."""

    id: str | int
    day_number: Optional[int] = None
    day_title: Optional[str] = None
    start_time: Optional[str | int] = None
    end_time: Optional[str | int] = None
    total_duration: Optional[int] = Field(default=None, description="Seconds")
    completed_sets: Optional[int] = None
    muscle_groups: list[Any] = Field(default_factory=list)
    set_timings: list[SetTiming] = Field(default_factory=list)


class GroupedExercise(BaseModel):
    """Sets of one exercise, ordered by set index. Derived, never persisted."""

    exercise_name: str
    sets: list[SetTiming]


class ExerciseSetPoint(BaseModel):
    """One set of an exercise flattened for analytics."""

    date: str
    weight: float
    reps: float
    volume: float
    day_number: int
    set_number: int = Field(description="One-based set number")


class MacroStat(BaseModel):
    """Statistic for one macro over a day."""

    total: float
    min: float
    max: float
    goal: float
    percentage: float = Field(description="total / goal * 100, may exceed 100")


class DailyMacroStats(BaseModel):
    """Aggregated macros for a single calendar day."""

    protein: Optional[MacroStat] = None
    carbs: Optional[MacroStat] = None
    fat: Optional[MacroStat] = None
    calories: Optional[MacroStat] = None
    entry_count: int
    entries: list[MacroEntry]


class WeightTrend(BaseModel):
    """Latest weight compared with a trailing average."""

    diff: float
    percent_change: float
    direction: str = Field(pattern="^(up|down|stable)$")
    average_weight: float
    days_compared: int


class WeeklyMacroReport(BaseModel):
    """Seven-day macros report."""

    week_start: str
    week_end: str
    daily_stats: dict[str, DailyMacroStats]
    total_protein: float
    total_carbs: float
    total_fat: float
    total_calories: float
    days_logged: int


class PermissionType(str, Enum):
    HISTORY = "history"
    ANALYTICS = "analytics"
    PROGRAM = "program"
    JOINT_SESSION = "joint_session"
    WATCH_SESSION = "watch_session"


class GrantedPermission(BaseModel):
    """A permission this user granted to a friend."""

    id: str | int
    to_user_id: str | int = Field(validation_alias=AliasChoices("to_user_id", "toUserId"))
    to_username: Optional[str] = Field(
        default=None, validation_alias=AliasChoices("to_username", "toUsername")
    )
    permission_type: PermissionType = Field(
        validation_alias=AliasChoices("permission_type", "permissionType")
    )
    payload: Optional[dict[str, Any]] = None
    created_at: Optional[str] = Field(
        default=None, validation_alias=AliasChoices("created_at", "createdAt")
    )


class ReceivedPermission(BaseModel):
    """A permission a friend granted to this user."""

    id: str | int
    from_user_id: str | int = Field(validation_alias=AliasChoices("from_user_id", "fromUserId"))
    from_username: Optional[str] = Field(
        default=None, validation_alias=AliasChoices("from_username", "fromUsername")
    )
    permission_type: PermissionType = Field(
        validation_alias=AliasChoices("permission_type", "permissionType")
    )
    payload: Optional[dict[str, Any]] = None
    created_at: Optional[str] = Field(
        default=None, validation_alias=AliasChoices("created_at", "createdAt")
    )
