"""
JSON serialization for day plans, diffs and engine operations.

Handles conversion between dataclasses and JSON-compatible dicts.  The
server speaks camelCase; the local edit journal uses snake_case keys.
"""

import json
import re
from dataclasses import replace
from datetime import datetime
from typing import Any

from ..core.config import DEFAULT_EDITOR_INTENSITY, DEFAULT_EDITOR_INTENSITY_TYPE
from ..core.diff import DiffPayload
from ..core.engine.operations import (
    AddExercise,
    AddSet,
    EditSet,
    ExerciseDescriptor,
    Operation,
    RemoveExercise,
    RemoveSet,
    ResetAll,
)
from ..core.engine.validation import SetInput
from ..core.models import DayPlan, DaySet, PlannedExercise, SetOverride, SetValues
from ..core.workout import CompletionPayload


class ValidationError(Exception):
    """Raised when data validation fails."""

    pass


def validate_date(date_str: str) -> str:
    """
    Validate and normalize date string to ISO format.

    Args:
        date_str: Date string to validate

    Returns:
        Normalized YYYY-MM-DD string

    Raises:
        ValidationError: If date format is invalid
    """
    if not re.match(r"^\d{4}-\d{2}-\d{2}$", date_str):
        raise ValidationError(f"Invalid date format: {date_str}. Expected YYYY-MM-DD")

    try:
        datetime.strptime(date_str, "%Y-%m-%d")
    except ValueError as e:
        raise ValidationError(f"Invalid date: {date_str}") from e

    return date_str


def validate_non_negative(value: int | float, name: str) -> int | float:
    """
    Validate that a value is non-negative.

    Raises:
        ValidationError: If value is negative
    """
    if value < 0:
        raise ValidationError(f"{name} must be non-negative, got {value}")
    return value


def validate_positive(value: int | float, name: str) -> int | float:
    """
    Validate that a value is positive.

    Raises:
        ValidationError: If value is not positive
    """
    if value <= 0:
        raise ValidationError(f"{name} must be positive, got {value}")
    return value


def _required(data: dict[str, Any], *keys: str) -> Any:
    """Return the first present key's value; raise ValidationError if none is."""
    for key in keys:
        if data.get(key) is not None:
            return data[key]
    raise ValidationError(f"Missing field: {keys[0]}")


def _optional_int(value: Any) -> int | None:
    return int(value) if value is not None else None


# ---------------------------------------------------------------------------
# Inbound snapshot
# ---------------------------------------------------------------------------


def dict_to_template_set(data: dict[str, Any]) -> DaySet:
    """
    Convert a snapshot set dict to a pristine template DaySet.

    Accepts ``originalRepsMin``-style keys (day customization response)
    or plain ``repsMin``-style keys (routine response).

    Raises:
        ValidationError: If data is invalid
    """
    try:
        reps_min = int(_required(data, "originalRepsMin", "repsMin"))
        reps_max = int(_required(data, "originalRepsMax", "repsMax"))
        weight = float(data.get("originalWeight", data.get("weight", 0.0)) or 0.0)
        rir = _optional_int(data.get("originalRir", data.get("rir")))
        rpe = _optional_int(data.get("originalRpe", data.get("rpe")))
        set_id = int(_required(data, "setId", "id"))
        set_number = int(_required(data, "setNumber"))
    except (TypeError, ValueError) as e:
        raise ValidationError(f"Invalid set data: {e}") from e

    validate_positive(reps_min, "repsMin")
    validate_positive(reps_max, "repsMax")
    if reps_min > reps_max:
        raise ValidationError(f"repsMin ({reps_min}) exceeds repsMax ({reps_max}) for set {set_id}")
    validate_non_negative(weight, "weight")
    validate_positive(set_number, "setNumber")

    notes = data.get("originalNotes", data.get("notes"))
    original = SetValues(
        reps_min=reps_min,
        reps_max=reps_max,
        weight=weight,
        rir=rir,
        rpe=rpe,
        notes=notes or None,
    )
    return DaySet.create(set_id=set_id, set_number=set_number, original=original)


def dict_to_template_exercise(data: dict[str, Any]) -> PlannedExercise:
    """
    Convert a snapshot exercise dict to a template PlannedExercise.

    Raises:
        ValidationError: If data is invalid
    """
    try:
        routine_exercise_id = int(_required(data, "routineExerciseId", "id"))
        exercise_id = int(_required(data, "exerciseId"))
        order = int(_required(data, "order"))
        rest = _optional_int(data.get("restBetweenSets"))
    except (TypeError, ValueError) as e:
        raise ValidationError(f"Invalid exercise data: {e}") from e

    validate_positive(order, "order")
    if rest is not None:
        validate_non_negative(rest, "restBetweenSets")

    # Set numbers are positions: a gap in the snapshot is closed here
    sets = [
        s if s.set_number == number else replace(s, set_number=number)
        for number, s in enumerate(
            sorted((dict_to_template_set(s) for s in data.get("sets", [])), key=lambda s: s.set_number),
            1,
        )
    ]
    return PlannedExercise(
        routine_exercise_id=routine_exercise_id,
        exercise_id=exercise_id,
        name=str(data.get("exerciseName", data.get("name", ""))),
        muscle_group=str(data.get("exerciseMuscle", data.get("muscleGroup", "")) or ""),
        order=order,
        sets=tuple(sets),
        rest_between_sets=rest,
        notes=data.get("exerciseNotes", data.get("notes")) or None,
    )


def snapshot_to_day_plan(data: dict[str, Any]) -> DayPlan:
    """
    Build the initial DayPlan for a session from a server snapshot.

    Every set is pristine and every exercise comes from the template.
    Exercises are ordered by ``order`` (stable for ties).

    Raises:
        ValidationError: If data is invalid
    """
    try:
        absolute_day = int(_required(data, "absoluteDay"))
    except (TypeError, ValueError) as e:
        raise ValidationError(f"Invalid absoluteDay: {e}") from e
    validate_positive(absolute_day, "absoluteDay")

    actual_date = data.get("actualDate")
    if actual_date is not None:
        validate_date(actual_date)

    exercises = sorted(
        (dict_to_template_exercise(e) for e in data.get("exercises", [])),
        key=lambda ex: ex.order,
    )
    return DayPlan(
        absolute_day=absolute_day,
        routine_name=str(data.get("routineName", "")),
        exercises=tuple(exercises),
        actual_date=actual_date,
        routine_description=data.get("routineDescription"),
        macrocycle_id=_optional_int(data.get("macrocycleId")),
    )


def json_to_day_plan(text: str) -> DayPlan:
    """
    Parse a snapshot JSON document.

    Raises:
        ValidationError: If JSON is invalid or data validation fails
    """
    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        raise ValidationError(f"Invalid JSON: {e}") from e
    if not isinstance(data, dict):
        raise ValidationError("Snapshot must be a JSON object")
    return snapshot_to_day_plan(data)


# ---------------------------------------------------------------------------
# Plan state (display / --json output)
# ---------------------------------------------------------------------------


def set_values_to_dict(values: SetValues) -> dict[str, Any]:
    return {
        "repsMin": values.reps_min,
        "repsMax": values.reps_max,
        "weight": values.weight,
        "rir": values.rir,
        "rpe": values.rpe,
        "notes": values.notes,
    }


def set_override_to_dict(override: SetOverride) -> dict[str, Any]:
    d = {
        "repsMin": override.reps_min,
        "repsMax": override.reps_max,
        "weight": override.weight,
        "rir": override.rir,
        "rpe": override.rpe,
        "notes": override.notes,
    }
    return {k: v for k, v in d.items() if v is not None}


def day_set_to_dict(day_set: DaySet, removed: bool = False) -> dict[str, Any]:
    return {
        "setId": day_set.set_id,
        "setNumber": day_set.set_number,
        "origin": day_set.origin,
        "original": set_values_to_dict(day_set.original),
        "override": set_override_to_dict(day_set.override) if day_set.override else None,
        "effective": set_values_to_dict(day_set.effective),
        "isCustomized": day_set.is_customized,
        "isRemoved": removed,
    }


def day_plan_to_dict(plan: DayPlan) -> dict[str, Any]:
    """
    Convert a DayPlan to a JSON-compatible dict with derived counters.

    Args:
        plan: DayPlan to convert

    Returns:
        Dict representation
    """
    return {
        "absoluteDay": plan.absolute_day,
        "actualDate": plan.actual_date,
        "routineName": plan.routine_name,
        "routineDescription": plan.routine_description,
        "totalCustomizations": plan.total_customizations,
        "hasCustomizations": plan.has_customizations,
        "addedExercisesCount": plan.added_exercises_count,
        "removedExerciseIds": sorted(plan.removed_exercise_ids),
        "removedSetIds": sorted(plan.removed_set_ids),
        "exercises": [
            {
                "routineExerciseId": ex.routine_exercise_id,
                "exerciseId": ex.exercise_id,
                "exerciseName": ex.name,
                "exerciseMuscle": ex.muscle_group,
                "order": ex.order,
                "restBetweenSets": ex.rest_between_sets,
                "exerciseNotes": ex.notes,
                "isAddedExercise": ex.is_added_exercise,
                "isRemoved": plan.is_exercise_removed(ex),
                "numberOfSets": ex.number_of_sets,
                "customizedSetsCount": plan.customized_sets_count(ex),
                "addedSetsCount": ex.added_sets_count,
                "removedSetsCount": ex.removed_sets_count,
                "sets": [day_set_to_dict(s, plan.is_set_removed(s)) for s in ex.sets],
            }
            for ex in plan.exercises
        ],
    }


# ---------------------------------------------------------------------------
# Outbound diff
# ---------------------------------------------------------------------------


def diff_payload_to_dict(payload: DiffPayload) -> dict[str, Any]:
    """
    Convert a DiffPayload to the server's camelCase request body.

    Custom fields that are None are left out of each set customization.
    """
    customizations = []
    for c in payload.set_customizations:
        d: dict[str, Any] = {"exerciseSetId": c.exercise_set_id}
        for key, value in (
            ("customRepsMin", c.custom_reps_min),
            ("customRepsMax", c.custom_reps_max),
            ("customWeight", c.custom_weight),
            ("customRir", c.custom_rir),
            ("customRpe", c.custom_rpe),
            ("customNotes", c.custom_notes),
        ):
            if value is not None:
                d[key] = value
        customizations.append(d)

    added = []
    for ex in payload.added_exercises:
        d = {
            "exerciseId": ex.exercise_id,
            "order": ex.order,
            "restBetweenSets": ex.rest_between_sets,
            "notes": ex.notes,
            "sets": [
                {
                    "setNumber": s.set_number,
                    "repsMin": s.reps_min,
                    "repsMax": s.reps_max,
                    "weight": s.weight,
                    "rir": s.rir,
                    "rpe": s.rpe,
                    "notes": s.notes,
                }
                for s in ex.sets
            ],
        }
        if ex.extends_routine_exercise_id is not None:
            d["extendsRoutineExerciseId"] = ex.extends_routine_exercise_id
        added.append(d)

    return {
        "absoluteDay": payload.absolute_day,
        "setCustomizations": customizations,
        "addedExercises": added,
        "removedExerciseIds": list(payload.removed_exercise_ids),
        "removedSetIds": list(payload.removed_set_ids),
    }


# ---------------------------------------------------------------------------
# Completed workout
# ---------------------------------------------------------------------------


def completion_payload_to_dict(payload: CompletionPayload) -> dict[str, Any]:
    """Convert a CompletionPayload to a camelCase workout record."""
    return {
        "absoluteDay": payload.absolute_day,
        "routineName": payload.routine_name,
        "routineDescription": payload.routine_description,
        "startedAt": payload.started_at.isoformat(timespec="seconds"),
        "completedAt": payload.completed_at.isoformat(timespec="seconds"),
        "notes": payload.notes,
        "exercises": [
            {
                "exerciseId": ex.exercise_id,
                "exerciseName": ex.name,
                "exerciseMuscle": ex.muscle_group,
                "exerciseOrder": ex.order,
                "restBetweenSets": ex.rest_between_sets,
                "notes": ex.notes,
                "isAddedExercise": ex.is_added_exercise,
                "sets": [
                    {
                        "setNumber": s.set_number,
                        "targetRepsMin": s.target.reps_min,
                        "targetRepsMax": s.target.reps_max,
                        "targetWeight": s.target.weight,
                        "targetRir": s.target.rir,
                        "targetRpe": s.target.rpe,
                        "targetNotes": s.target.notes,
                        "actualReps": s.actual_reps,
                        "actualWeight": s.actual_weight,
                        "actualRir": s.actual_rir,
                        "completed": s.completed,
                        "wasAddedDuringWorkout": s.was_added_during_workout,
                    }
                    for s in ex.sets
                ],
            }
            for ex in payload.exercises
        ],
    }


# ---------------------------------------------------------------------------
# Engine operations (edit journal)
# ---------------------------------------------------------------------------


def set_input_to_dict(fields: SetInput) -> dict[str, Any]:
    return {
        "reps_min": fields.reps_min,
        "reps_max": fields.reps_max,
        "weight": fields.weight,
        "intensity_type": fields.intensity_type,
        "intensity": fields.intensity,
        "notes": fields.notes,
    }


def dict_to_set_input(data: dict[str, Any]) -> SetInput:
    try:
        return SetInput(
            reps_min=int(data["reps_min"]),
            reps_max=int(data["reps_max"]),
            weight=float(data["weight"]),
            intensity_type=data.get("intensity_type", DEFAULT_EDITOR_INTENSITY_TYPE),
            intensity=_optional_int(data.get("intensity")),
            notes=data.get("notes"),
        )
    except (KeyError, TypeError, ValueError) as e:
        raise ValidationError(f"Invalid set input: {e}") from e


def operation_to_dict(op: Operation) -> dict[str, Any]:
    """Convert an engine operation to a journal record."""
    if isinstance(op, EditSet):
        return {
            "op": "edit_set",
            "exercise_index": op.exercise_index,
            "set_index": op.set_index,
            "fields": set_input_to_dict(op.fields),
        }
    if isinstance(op, AddSet):
        return {"op": "add_set", "exercise_index": op.exercise_index}
    if isinstance(op, RemoveSet):
        return {"op": "remove_set", "exercise_index": op.exercise_index, "set_index": op.set_index}
    if isinstance(op, AddExercise):
        d = op.descriptor
        return {
            "op": "add_exercise",
            "exercise_id": d.exercise_id,
            "name": d.name,
            "muscle_group": d.muscle_group,
            "order": d.order,
            "rest_between_sets": d.rest_between_sets,
            "notes": d.notes,
            "sets": [set_input_to_dict(s) for s in d.sets],
        }
    if isinstance(op, RemoveExercise):
        return {"op": "remove_exercise", "exercise_index": op.exercise_index}
    if isinstance(op, ResetAll):
        return {"op": "reset_all"}
    raise TypeError(f"Unknown operation: {op!r}")


def dict_to_operation(data: dict[str, Any]) -> Operation:
    """
    Convert a journal record to an engine operation.

    Raises:
        ValidationError: If the record is not a known operation
    """
    kind = data.get("op")
    try:
        if kind == "edit_set":
            return EditSet(
                int(data["exercise_index"]),
                int(data["set_index"]),
                dict_to_set_input(data["fields"]),
            )
        if kind == "add_set":
            return AddSet(int(data["exercise_index"]))
        if kind == "remove_set":
            return RemoveSet(int(data["exercise_index"]), int(data["set_index"]))
        if kind == "add_exercise":
            return AddExercise(
                ExerciseDescriptor(
                    exercise_id=int(data["exercise_id"]),
                    name=str(data["name"]),
                    order=int(data["order"]),
                    sets=tuple(dict_to_set_input(s) for s in data["sets"]),
                    muscle_group=str(data.get("muscle_group", "")),
                    rest_between_sets=_optional_int(data.get("rest_between_sets")),
                    notes=data.get("notes"),
                )
            )
        if kind == "remove_exercise":
            return RemoveExercise(int(data["exercise_index"]))
        if kind == "reset_all":
            return ResetAll()
    except (KeyError, TypeError, ValueError) as e:
        raise ValidationError(f"Invalid {kind} record: {e}") from e
    raise ValidationError(f"Unknown operation: {kind!r}")


def operation_to_json_line(op: Operation) -> str:
    return json.dumps(operation_to_dict(op), separators=(",", ":"))


def json_line_to_operation(line: str) -> Operation:
    """
    Deserialize a journal line.

    Raises:
        ValidationError: If JSON is invalid or the record is unknown
    """
    try:
        data = json.loads(line.strip())
    except json.JSONDecodeError as e:
        raise ValidationError(f"Invalid JSON: {e}") from e
    return dict_to_operation(data)


# ---------------------------------------------------------------------------
# Compact set syntax
# ---------------------------------------------------------------------------

_SET_GROUP_RE = re.compile(
    r"""^
    (?:(?P<count>\d+)\s*[xX×]\s*)?           # optional N sets
    (?P<min>\d+)(?:\s*-\s*(?P<max>\d+))?     # reps or reps range
    (?:\s*@\s*(?P<weight>\d+(?:\.\d+)?)\s*(?:kg)?)?   # optional weight
    (?:\s*(?P<itype>rir|rpe)\s*(?P<ivalue>\d+))?      # optional intensity
    $""",
    re.IGNORECASE | re.VERBOSE,
)


def parse_reps_range(text: str) -> tuple[int, int]:
    """
    Parse "8" or "8-12" into (reps_min, reps_max).

    Raises:
        ValidationError: If format is invalid
    """
    m = re.fullmatch(r"\s*(\d+)\s*(?:-\s*(\d+)\s*)?", text)
    if not m:
        raise ValidationError(f"Invalid reps: '{text}'. Use N or MIN-MAX, e.g. 8-12")
    low = int(m.group(1))
    high = int(m.group(2)) if m.group(2) else low
    return low, high


def parse_set_inputs(sets_str: str) -> list[SetInput]:
    """
    Parse a comma-separated list of set groups.

    Each group is ``[Nx]MIN[-MAX][@KG] [rir V|rpe V]``:
        "3x8-12@20 rir2"   → 3 sets of 8-12 reps, 20 kg, RIR 2
        "10@0 rpe8"        → 1 set of 10 reps, bodyweight, RPE 8
        "6-8@60, 2x5@70"   → 1 set of 6-8 @ 60 kg + 2 sets of 5 @ 70 kg

    Weight defaults to 0 and intensity to the editor default (RIR 2).
    Range checks are left to the engine.

    Raises:
        ValidationError: If a group cannot be parsed
    """
    if not sets_str or not sets_str.strip():
        raise ValidationError("Sets string cannot be empty")

    result: list[SetInput] = []
    for part in (p.strip() for p in sets_str.split(",")):
        if not part:
            continue
        m = _SET_GROUP_RE.match(part)
        if not m:
            raise ValidationError(
                f"Invalid set format: '{part}'.\n"
                "Use: [Nx]MIN[-MAX][@KG] [rir V|rpe V], e.g. 3x8-12@20 rir2"
            )
        count = int(m.group("count")) if m.group("count") else 1
        if count < 1:
            raise ValidationError(f"Set count must be at least 1: '{part}'")
        reps_min = int(m.group("min"))
        reps_max = int(m.group("max")) if m.group("max") else reps_min
        weight = float(m.group("weight")) if m.group("weight") else 0.0
        if m.group("itype"):
            intensity_type = m.group("itype").upper()
            intensity = int(m.group("ivalue"))
        else:
            intensity_type = DEFAULT_EDITOR_INTENSITY_TYPE
            intensity = DEFAULT_EDITOR_INTENSITY
        for _ in range(count):
            result.append(
                SetInput(
                    reps_min=reps_min,
                    reps_max=reps_max,
                    weight=weight,
                    intensity_type=intensity_type,
                    intensity=intensity,
                )
            )

    if not result:
        raise ValidationError("No valid sets found in sets string")
    return result
