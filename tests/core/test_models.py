"""Unit tests for data models - validation and defaults."""

from datetime import date

import pytest
from pydantic import ValidationError

from fittrack.core.models import (
    DEFAULT_ERROR_MARGIN,
    BodyFatEntry,
    BodyFatMeasurements,
    CreatineEntry,
    MacroEntry,
    MacroGoals,
    ReceivedPermission,
    SetTiming,
    Sex,
    WeightEntry,
    is_loggable_values,
)


class TestWeightEntry:
    """Tests for WeightEntry model."""

    def test_camel_case_payload(self):
        """API payloads in camelCase are accepted."""
        entry = WeightEntry.model_validate(
            {"id": 3, "weightKg": 80.5, "recordedAt": "2026-02-19T07:00:00"}
        )
        assert entry.weight_kg == 80.5
        assert entry.recorded_at == "2026-02-19T07:00:00"

    def test_non_positive_rejected(self):
        """Zero or negative mass is invalid."""
        with pytest.raises(ValidationError):
            WeightEntry(weight_kg=0, recorded_at="2026-02-19")

    def test_generated_id(self):
        """A new entry gets an id."""
        assert WeightEntry(weight_kg=80, recorded_at="2026-02-19").id


class TestMacroEntry:
    """Tests for MacroEntry model."""

    def test_all_nutrients_optional(self):
        """An entry may carry no nutrient values."""
        entry = MacroEntry(name="Coffee", date="2026-02-19")
        assert entry.protein is None
        assert entry.error_margin is None

    def test_lenient_numbers(self):
        """Blank or non-numeric strings become None."""
        entry = MacroEntry.model_validate(
            {"protein": "30", "carbs": "", "fat": "abc", "calories": "NaN", "date": "2026-02-19"}
        )
        assert entry.protein == 30
        assert entry.carbs is None
        assert entry.fat is None
        assert entry.calories is None

    def test_negative_rejected(self):
        with pytest.raises(ValidationError):
            MacroEntry(protein=-1, date="2026-02-19")

    def test_loaded_margin_missing_or_invalid_is_none(self):
        """Only new entries get the default margin; loaded ones keep what they had."""
        assert MacroEntry.model_validate({"protein": 10, "date": "2026-02-19"}).error_margin is None
        assert MacroEntry.model_validate({"errorMargin": "n/a", "date": "2026-02-19"}).error_margin is None
        assert MacroEntry.model_validate({"errorMargin": "7.5", "date": "2026-02-19"}).error_margin == 7.5
        assert DEFAULT_ERROR_MARGIN == 5

    def test_unusable_date_becomes_empty(self):
        """A missing, null or non-string date never raises."""
        assert MacroEntry.model_validate({"protein": 10}).date == ""
        assert MacroEntry.model_validate({"protein": 10, "date": None}).date == ""
        assert MacroEntry.model_validate({"protein": 10, "date": ["x"]}).date == ""

    def test_date_object_accepted(self):
        assert MacroEntry(protein=10, date=date(2026, 2, 19)).date == "2026-02-19"

    def test_is_loggable(self):
        """A name or any macro value makes an entry loggable."""
        assert MacroEntry(name="Snack", date="2026-02-19").is_loggable()
        assert MacroEntry(protein=0, date="2026-02-19").is_loggable()
        assert not MacroEntry(name="  ", date="2026-02-19").is_loggable()

    def test_is_loggable_values(self):
        assert not is_loggable_values(None, None, None, None, None)
        assert is_loggable_values(None, None, None, None, 100)


class TestMacroGoals:
    """Tests for MacroGoals model."""

    def test_defaults(self):
        goals = MacroGoals()
        assert (goals.protein, goals.carbs, goals.fat, goals.calories) == (150, 250, 65, 2000)

    def test_zero_goal_rejected(self):
        with pytest.raises(ValidationError):
            MacroGoals(protein=0)


class TestBodyFatEntry:
    """Tests for BodyFatEntry model."""

    def test_percentage_rounded(self):
        entry = BodyFatEntry(percentage=16.4321, date="2026-02-19")
        assert entry.percentage == 16.4

    def test_gender_alias(self):
        """The API's gender field maps onto sex."""
        entry = BodyFatEntry.model_validate(
            {"id": 1, "percentage": 22.1, "gender": "female", "calculatedAt": "2026-02-19T12:00:00"}
        )
        assert entry.sex is Sex.FEMALE
        assert entry.date == "2026-02-19T12:00:00"

    def test_measurements_only_in_cm(self):
        with pytest.raises(ValidationError):
            BodyFatMeasurements(waist=34, neck=15, unit="in")


class TestCreatineEntry:
    """Tests for CreatineEntry model."""

    def test_default_dose(self):
        assert CreatineEntry(taken_at="2026-02-19T09:00:00").grams == 5


class TestSetTiming:
    """Tests for SetTiming model."""

    def test_aliases_and_lenient_numbers(self):
        timing = SetTiming.model_validate(
            {"exercise_name": "Squat", "set_index": 1, "weight": "100", "duration": 45,
             "exercise_muscle_group": "legs"}
        )
        assert timing.weight == 100
        assert timing.duration_seconds == 45
        assert timing.muscle_group == "legs"

    def test_negative_index_rejected(self):
        with pytest.raises(ValidationError):
            SetTiming(set_index=-1)


class TestReceivedPermission:
    """Tests for ReceivedPermission model."""

    def test_unknown_type_rejected(self):
        with pytest.raises(ValidationError):
            ReceivedPermission.model_validate(
                {"id": 1, "fromUserId": 2, "permissionType": "everything"}
            )
