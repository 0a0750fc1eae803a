"""
Field validation for user-entered set values.

Validation never raises: it returns an OperationError naming the first
field that failed, so the caller can show it next to that field.
"""

import math
from dataclasses import dataclass

from ..config import EngineSettings
from ..models import IntensityType, SetOverride, SetValues


@dataclass(frozen=True)
class OperationError:
    """A refused operation: the offending field (or None) and a readable reason."""

    field: str | None
    message: str

    def __str__(self) -> str:
        return f"{self.field}: {self.message}" if self.field else self.message


@dataclass(frozen=True)
class SetInput:
    """
    Values entered for one set.

    The intensity value is stored as RIR or RPE depending on intensity_type;
    the other metric is left untouched.
    """

    reps_min: int
    reps_max: int
    weight: float
    intensity_type: IntensityType = "RIR"
    intensity: int | None = None
    notes: str | None = None

    def clean_notes(self) -> str | None:
        if self.notes is None:
            return None
        stripped = self.notes.strip()
        return stripped or None

    def to_override(self) -> SetOverride:
        """Override carrying only the selected intensity metric."""
        return SetOverride(
            reps_min=self.reps_min,
            reps_max=self.reps_max,
            weight=float(self.weight),
            rir=self.intensity if self.intensity_type == "RIR" else None,
            rpe=self.intensity if self.intensity_type == "RPE" else None,
            notes=self.clean_notes(),
        )

    def to_values(self) -> SetValues:
        return SetValues(
            reps_min=self.reps_min,
            reps_max=self.reps_max,
            weight=float(self.weight),
            rir=self.intensity if self.intensity_type == "RIR" else None,
            rpe=self.intensity if self.intensity_type == "RPE" else None,
            notes=self.clean_notes(),
        )


def _is_int(value) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def _is_number(value) -> bool:
    return (
        isinstance(value, (int, float))
        and not isinstance(value, bool)
        and math.isfinite(value)
    )


def validate_set_input(fields: SetInput, settings: EngineSettings) -> OperationError | None:
    """
    Check entered set values.

    Rules: reps are positive integers with reps_min <= reps_max, weight is a
    non-negative number, and the intensity lies in the range of its type.

    Returns:
        None if valid, else the error for the first failing field
    """
    if not _is_int(fields.reps_min) or fields.reps_min <= 0:
        return OperationError("reps_min", "minimum reps must be a whole number greater than 0")
    if not _is_int(fields.reps_max) or fields.reps_max <= 0:
        return OperationError("reps_max", "maximum reps must be a whole number greater than 0")
    if fields.reps_min > fields.reps_max:
        return OperationError("reps_min", "minimum reps cannot exceed maximum reps")
    if not _is_number(fields.weight) or fields.weight < 0:
        return OperationError("weight", "weight must be a number greater than or equal to 0")

    if fields.intensity_type == "RIR":
        low, high = settings.rir_min, settings.rir_max
    elif fields.intensity_type == "RPE":
        low, high = settings.rpe_min, settings.rpe_max
    else:
        return OperationError("intensity_type", f"unknown intensity type {fields.intensity_type!r}")

    if not _is_int(fields.intensity) or not low <= fields.intensity <= high:
        return OperationError(
            "intensity", f"{fields.intensity_type} must be between {low} and {high}"
        )

    if fields.notes is not None and not isinstance(fields.notes, str):
        return OperationError("notes", "notes must be text")
    return None
