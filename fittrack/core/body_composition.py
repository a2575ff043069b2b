"""Body Composition - US Navy circumference method for body fat percentage.

All functions are pure: same input always produces same output, no side effects.
"""

import math
from typing import Optional

from .models import BodyFatMeasurements, Sex
from .units import to_cm


class InvalidMeasurementError(ValueError):
    """Raised when measurements cannot produce a finite body fat estimate."""

    def __init__(self, problems: list[str]) -> None:
        self.problems = problems
        super().__init__("; ".join(problems))


def _is_positive_number(value: Optional[float]) -> bool:
    return (
        value is not None
        and not isinstance(value, bool)
        and isinstance(value, (int, float))
        and math.isfinite(value)
        and value > 0
    )


def validate_body_fat_inputs(
    sex: Sex | str,
    waist_cm: Optional[float],
    neck_cm: Optional[float],
    hip_cm: Optional[float],
    height_cm: Optional[float],
) -> list[str]:
    """Check the preconditions of the body fat formula.

    Args:
        sex: Formula variant
        waist_cm: Waist circumference in centimeters
        neck_cm: Neck circumference in centimeters
        hip_cm: Hip circumference in centimeters (female only)
        height_cm: Height in centimeters

    Returns:
        List of problems; empty when the inputs are usable
    """
    problems: list[str] = []
    try:
        sex = Sex(sex)
    except ValueError:
        return [f"Unknown sex: {sex}"]

    if not _is_positive_number(height_cm):
        problems.append("Height must be a positive number")
    if not _is_positive_number(waist_cm):
        problems.append("Waist must be a positive number")
    if not _is_positive_number(neck_cm):
        problems.append("Neck must be a positive number")
    if sex is Sex.FEMALE and not _is_positive_number(hip_cm):
        problems.append("Hip must be a positive number")
    if problems:
        return problems

    if sex is Sex.MALE and waist_cm <= neck_cm:
        problems.append("Waist must be larger than neck")
    if sex is Sex.FEMALE and waist_cm + hip_cm <= neck_cm:
        problems.append("Waist plus hip must be larger than neck")
    return problems


def estimate_body_fat_percent(
    sex: Sex | str,
    waist_cm: float,
    neck_cm: float,
    hip_cm: Optional[float],
    height_cm: float,
) -> float:
    """Estimate body fat percentage with the US Navy formula.

    The result is rounded to one decimal place and is not clamped, so
    implausible measurements show up as implausible percentages.

    Raises:
        InvalidMeasurementError: If the inputs fail validation
    """
    problems = validate_body_fat_inputs(sex, waist_cm, neck_cm, hip_cm, height_cm)
    if problems:
        raise InvalidMeasurementError(problems)

    if Sex(sex) is Sex.MALE:
        density = (
            1.0324
            - 0.19077 * math.log10(waist_cm - neck_cm)
            + 0.15456 * math.log10(height_cm)
        )
    else:
        density = (
            1.29579
            - 0.35004 * math.log10(waist_cm + hip_cm - neck_cm)
            + 0.221 * math.log10(height_cm)
        )

    if density == 0:
        raise InvalidMeasurementError(["Measurements produce an undefined estimate"])

    return round(495 / density - 450, 1)


def measurements_to_cm(
    waist: float, neck: float, hip: Optional[float], unit: str
) -> BodyFatMeasurements:
    """Normalize entered circumferences to centimeters for storage."""
    return BodyFatMeasurements(
        waist=to_cm(waist, unit),
        neck=to_cm(neck, unit),
        hip=to_cm(hip, unit) if hip else 0,
    )
