"""
Override engine: the operations that edit a day plan.

Each operation is a reducer ``(plan, ...) -> OperationResult``.  The input
plan is never modified; the result carries a new plan in which only the
touched exercise and set nodes were rebuilt.  A refused operation (bad
input, or one that would break an invariant such as "every exercise keeps
at least one visible set") returns the caller's plan unchanged together
with an OperationError.

Set visibility has three states: visible, soft-removed (template sets; id
recorded in removed_set_ids, undone only by reset_all) and hard-removed
(locally created sets; spliced out, nothing to undo).
"""

from dataclasses import dataclass, replace

from loguru import logger

from ..config import EngineSettings
from ..models import (
    ADDED_TO_EXISTING,
    ADDED_WITH_NEW_EXERCISE,
    DayPlan,
    DaySet,
    PlannedExercise,
    SetValues,
    derive_effective,
)
from .config_loader import get_settings
from .validation import OperationError, SetInput, validate_set_input


@dataclass(frozen=True)
class OperationResult:
    """Outcome of an engine operation."""

    plan: DayPlan
    error: OperationError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass(frozen=True)
class ExerciseDescriptor:
    """An exercise to add to the day, with its initial sets."""

    exercise_id: int
    name: str
    order: int
    sets: tuple[SetInput, ...]
    muscle_group: str = ""
    rest_between_sets: int | None = None
    notes: str | None = None


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------


def _refuse(plan: DayPlan, field_name: str | None, message: str) -> OperationResult:
    logger.debug(f"[ENGINE] Refused on day {plan.absolute_day}: {message}")
    return OperationResult(plan, OperationError(field_name, message))


def _exercise_at(plan: DayPlan, exercise_index: int) -> PlannedExercise:
    if not 0 <= exercise_index < len(plan.exercises):
        raise IndexError(
            f"Exercise index {exercise_index} out of range (0-{len(plan.exercises) - 1})"
        )
    return plan.exercises[exercise_index]


def _set_at(exercise: PlannedExercise, set_index: int) -> DaySet:
    if not 0 <= set_index < len(exercise.sets):
        raise IndexError(
            f"Set index {set_index} out of range for {exercise.name} (0-{len(exercise.sets) - 1})"
        )
    return exercise.sets[set_index]


def _with_exercise(plan: DayPlan, exercise_index: int, exercise: PlannedExercise) -> tuple[PlannedExercise, ...]:
    exercises = list(plan.exercises)
    exercises[exercise_index] = exercise
    return tuple(exercises)


def _with_set(exercise: PlannedExercise, set_index: int, day_set: DaySet) -> tuple[DaySet, ...]:
    sets = list(exercise.sets)
    sets[set_index] = day_set
    return tuple(sets)


def _next_set_id(plan: DayPlan) -> int:
    """Next synthetic (negative) set id, derived from the ids already in the plan."""
    ids = [s.set_id for ex in plan.exercises for s in ex.sets]
    return min([0, *ids]) - 1


def _next_routine_exercise_id(plan: DayPlan) -> int:
    ids = [ex.routine_exercise_id for ex in plan.exercises]
    return min([0, *ids]) - 1


def _renumber(sets: list[DaySet]) -> tuple[DaySet, ...]:
    """Number local sets contiguously after the template sets, which keep their numbers."""
    number = max((s.set_number for s in sets if s.is_from_template), default=0)
    renumbered = []
    for s in sets:
        if not s.is_from_template:
            number += 1
            if s.set_number != number:
                s = replace(s, set_number=number)
        renumbered.append(s)
    return tuple(renumbered)


def _default_values(settings: EngineSettings) -> SetValues:
    d = settings.default_set
    return SetValues(reps_min=d.reps_min, reps_max=d.reps_max, weight=d.weight, rir=d.rir, rpe=d.rpe)


# ---------------------------------------------------------------------------
# Operations
# ---------------------------------------------------------------------------


def edit_set(
    plan: DayPlan,
    exercise_index: int,
    set_index: int,
    fields: SetInput,
    settings: EngineSettings | None = None,
) -> OperationResult:
    """
    Apply entered values to one set.

    A template set gets an override (only the selected intensity metric is
    written, so the other keeps falling back to the original).  A set created
    this session has no server baseline: the values become its original and
    it stays un-customized.

    Args:
        plan: Current day plan
        exercise_index: 0-based index into plan.exercises
        set_index: 0-based index into the exercise's sets
        fields: Entered values
        settings: Engine settings (defaults to the loaded user settings)

    Returns:
        OperationResult with the updated plan, or the unchanged plan and an error

    Raises:
        IndexError: If an index is out of range
    """
    settings = settings or get_settings()
    exercise = _exercise_at(plan, exercise_index)
    day_set = _set_at(exercise, set_index)

    if plan.is_exercise_removed(exercise):
        return _refuse(plan, None, f"{exercise.name} has been removed from this day")
    if plan.is_set_removed(day_set):
        return _refuse(plan, None, f"set {day_set.set_number} has been removed from this day")

    error = validate_set_input(fields, settings)
    if error is not None:
        logger.debug(f"[ENGINE] edit_set validation failed: {error}")
        return OperationResult(plan, error)

    if day_set.is_from_template:
        updated = derive_effective(replace(day_set, override=fields.to_override()))
    else:
        updated = DaySet.create(
            set_id=day_set.set_id,
            set_number=day_set.set_number,
            original=fields.to_values(),
            origin=day_set.origin,
        )

    new_exercise = replace(exercise, sets=_with_set(exercise, set_index, updated))
    logger.debug(
        f"[ENGINE] Edited set {day_set.set_id} of {exercise.name} "
        f"({updated.effective.reps_min}-{updated.effective.reps_max} x {updated.effective.weight})"
    )
    return OperationResult(replace(plan, exercises=_with_exercise(plan, exercise_index, new_exercise)))


def add_set(
    plan: DayPlan,
    exercise_index: int,
    settings: EngineSettings | None = None,
) -> OperationResult:
    """
    Append a set to an exercise, copying the last visible set's effective values.

    The new set's original is that copy (or the configured default set when
    the exercise has none), so later edits start from what the user sees.
    """
    settings = settings or get_settings()
    exercise = _exercise_at(plan, exercise_index)

    if plan.is_exercise_removed(exercise):
        return _refuse(plan, None, f"{exercise.name} has been removed from this day")

    visible = plan.visible_sets(exercise)
    base = visible[-1].effective if visible else _default_values(settings)
    set_number = max((s.set_number for s in exercise.sets), default=0) + 1

    new_set = DaySet.create(
        set_id=_next_set_id(plan),
        set_number=set_number,
        original=base,
        origin=ADDED_TO_EXISTING,
    )
    new_exercise = replace(
        exercise,
        sets=exercise.sets + (new_set,),
        added_sets_count=exercise.added_sets_count + 1,
    )
    logger.debug(f"[ENGINE] Added set {new_set.set_id} (#{set_number}) to {exercise.name}")
    return OperationResult(replace(plan, exercises=_with_exercise(plan, exercise_index, new_exercise)))


def remove_set(plan: DayPlan, exercise_index: int, set_index: int) -> OperationResult:
    """
    Remove one set from an exercise.

    Template sets are hidden (their id goes to removed_set_ids); sets created
    this session are dropped and the remaining local sets renumbered to
    follow the template sets.
    Refused when it would leave the exercise without a visible set.
    """
    exercise = _exercise_at(plan, exercise_index)
    day_set = _set_at(exercise, set_index)

    if plan.is_exercise_removed(exercise):
        return _refuse(plan, None, f"{exercise.name} has been removed from this day")
    if plan.is_set_removed(day_set):
        return _refuse(plan, None, f"set {day_set.set_number} is already removed")
    if len(plan.visible_sets(exercise)) <= 1:
        return _refuse(plan, None, f"{exercise.name} must keep at least one set")

    if day_set.is_from_template:
        new_exercise = replace(exercise, removed_sets_count=exercise.removed_sets_count + 1)
        logger.debug(f"[ENGINE] Hid template set {day_set.set_id} of {exercise.name}")
        return OperationResult(
            replace(
                plan,
                exercises=_with_exercise(plan, exercise_index, new_exercise),
                removed_set_ids=plan.removed_set_ids | {day_set.set_id},
            )
        )

    remaining = [s for i, s in enumerate(exercise.sets) if i != set_index]
    added_sets_count = exercise.added_sets_count - (1 if day_set.is_extra_set else 0)
    new_exercise = replace(exercise, sets=_renumber(remaining), added_sets_count=added_sets_count)
    logger.debug(f"[ENGINE] Dropped local set {day_set.set_id} of {exercise.name}")
    return OperationResult(replace(plan, exercises=_with_exercise(plan, exercise_index, new_exercise)))


def add_exercise(
    plan: DayPlan,
    descriptor: ExerciseDescriptor,
    settings: EngineSettings | None = None,
) -> OperationResult:
    """
    Add an exercise that is not in the routine template.

    Duplicate orders are allowed; exercises are re-sorted by order with a
    stable sort, so an existing exercise stays ahead of a new one with the
    same order.
    """
    settings = settings or get_settings()

    if not isinstance(descriptor.order, int) or isinstance(descriptor.order, bool) or descriptor.order <= 0:
        return _refuse(plan, "order", "order must be a whole number greater than 0")
    if descriptor.rest_between_sets is not None and (
        not isinstance(descriptor.rest_between_sets, int) or descriptor.rest_between_sets < 0
    ):
        return _refuse(plan, "rest_between_sets", "rest must be a whole number of seconds, 0 or more")
    if not descriptor.name or not descriptor.name.strip():
        return _refuse(plan, "name", "exercise name is required")
    if not descriptor.sets:
        return _refuse(plan, "sets", "an exercise needs at least one set")

    for i, set_input in enumerate(descriptor.sets):
        error = validate_set_input(set_input, settings)
        if error is not None:
            return _refuse(plan, f"sets[{i}].{error.field}", error.message)

    first_set_id = _next_set_id(plan)
    sets = tuple(
        DaySet.create(
            set_id=first_set_id - i,
            set_number=i + 1,
            original=set_input.to_values(),
            origin=ADDED_WITH_NEW_EXERCISE,
        )
        for i, set_input in enumerate(descriptor.sets)
    )
    notes = descriptor.notes.strip() if descriptor.notes and descriptor.notes.strip() else None
    new_exercise = PlannedExercise(
        routine_exercise_id=_next_routine_exercise_id(plan),
        exercise_id=descriptor.exercise_id,
        name=descriptor.name.strip(),
        muscle_group=descriptor.muscle_group,
        order=descriptor.order,
        sets=sets,
        rest_between_sets=descriptor.rest_between_sets,
        notes=notes,
        is_added_exercise=True,
    )
    exercises = tuple(sorted(plan.exercises + (new_exercise,), key=lambda ex: ex.order))
    logger.debug(
        f"[ENGINE] Added exercise {new_exercise.name} at order {new_exercise.order} "
        f"with {len(sets)} sets"
    )
    return OperationResult(replace(plan, exercises=exercises))


def remove_exercise(plan: DayPlan, exercise_index: int) -> OperationResult:
    """
    Remove an exercise from the day.

    An added exercise is dropped.  A template exercise stays in the list (so
    it can be shown as removed) and its exercise_id goes to
    removed_exercise_ids; it is then left out of counts and of the diff.
    """
    exercise = _exercise_at(plan, exercise_index)

    if exercise.is_added_exercise:
        exercises = tuple(ex for i, ex in enumerate(plan.exercises) if i != exercise_index)
        logger.debug(f"[ENGINE] Dropped added exercise {exercise.name}")
        return OperationResult(replace(plan, exercises=exercises))

    if plan.is_exercise_removed(exercise):
        return _refuse(plan, None, f"{exercise.name} is already removed")

    logger.debug(f"[ENGINE] Hid template exercise {exercise.name} ({exercise.exercise_id})")
    return OperationResult(
        replace(plan, removed_exercise_ids=plan.removed_exercise_ids | {exercise.exercise_id})
    )


def reset_all(plan: DayPlan) -> OperationResult:
    """
    Drop every change made this session.

    Overrides are cleared, extra sets and added exercises dropped, removals
    undone and counters zeroed.  There is no per-exercise reset.
    """
    exercises: list[PlannedExercise] = []
    for exercise in plan.exercises:
        if exercise.is_added_exercise:
            continue
        template_sets = sorted(
            (s for s in exercise.sets if s.is_from_template), key=lambda s: s.set_number
        )
        sets = tuple(derive_effective(replace(s, override=None)) for s in template_sets)
        exercises.append(replace(exercise, sets=sets, removed_sets_count=0, added_sets_count=0))

    logger.debug(f"[ENGINE] Reset all changes on day {plan.absolute_day}")
    return OperationResult(
        replace(
            plan,
            exercises=tuple(sorted(exercises, key=lambda ex: ex.order)),
            removed_exercise_ids=frozenset(),
            removed_set_ids=frozenset(),
        )
    )


# ---------------------------------------------------------------------------
# Operation values (for journaling and replay)
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class EditSet:
    exercise_index: int
    set_index: int
    fields: SetInput


@dataclass(frozen=True)
class AddSet:
    exercise_index: int


@dataclass(frozen=True)
class RemoveSet:
    exercise_index: int
    set_index: int


@dataclass(frozen=True)
class AddExercise:
    descriptor: ExerciseDescriptor


@dataclass(frozen=True)
class RemoveExercise:
    exercise_index: int


@dataclass(frozen=True)
class ResetAll:
    pass


Operation = EditSet | AddSet | RemoveSet | AddExercise | RemoveExercise | ResetAll


def apply_operation(
    plan: DayPlan,
    op: Operation,
    settings: EngineSettings | None = None,
) -> OperationResult:
    """Dispatch an operation value to its reducer."""
    if isinstance(op, EditSet):
        return edit_set(plan, op.exercise_index, op.set_index, op.fields, settings)
    if isinstance(op, AddSet):
        return add_set(plan, op.exercise_index, settings)
    if isinstance(op, RemoveSet):
        return remove_set(plan, op.exercise_index, op.set_index)
    if isinstance(op, AddExercise):
        return add_exercise(plan, op.descriptor, settings)
    if isinstance(op, RemoveExercise):
        return remove_exercise(plan, op.exercise_index)
    if isinstance(op, ResetAll):
        return reset_all(plan)
    raise TypeError(f"Unknown operation: {op!r}")
