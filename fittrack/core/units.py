"""Unit Conversion - Pure functions between canonical and display units.

Canonical storage is kilograms and centimeters. Pounds, inches and feet
only ever appear at the input or display edge.
"""

KG_PER_LB = 0.453592
LB_PER_KG = 2.20462
CM_PER_INCH = 2.54
INCHES_PER_FOOT = 12

WEIGHT_UNITS = ("kg", "lbs")
LENGTH_UNITS = ("cm", "in")


def to_kg(value: float, unit: str) -> float:
    """Convert a weight in the given unit to kilograms."""
    if unit == "kg":
        return value
    if unit in ("lbs", "lb"):
        return value * KG_PER_LB
    raise ValueError(f"Unknown weight unit: {unit}")


def from_kg(kg: float, unit: str) -> float:
    """Convert kilograms to the given display unit."""
    if unit == "kg":
        return kg
    if unit in ("lbs", "lb"):
        return kg * LB_PER_KG
    raise ValueError(f"Unknown weight unit: {unit}")


def to_cm(value: float, unit: str) -> float:
    """Convert a length in the given unit to centimeters."""
    if unit == "cm":
        return value
    if unit == "in":
        return value * CM_PER_INCH
    raise ValueError(f"Unknown length unit: {unit}")


def feet_inches_to_cm(feet: float, inches: float = 0) -> float:
    """Convert a height in feet and inches to centimeters."""
    return (feet * INCHES_PER_FOOT + inches) * CM_PER_INCH


def cm_to_feet_inches(cm: float) -> tuple[int, int]:
    """Split a height in centimeters into whole feet and rounded inches."""
    total_inches = cm / CM_PER_INCH
    feet = int(total_inches // INCHES_PER_FOOT)
    inches = round(total_inches % INCHES_PER_FOOT)
    if inches == INCHES_PER_FOOT:
        feet, inches = feet + 1, 0
    return feet, inches


def format_weight(kg: float, unit: str) -> str:
    """Format a canonical weight for display, e.g. "154.3 lbs"."""
    return f"{from_kg(kg, unit):.1f} {unit}"
