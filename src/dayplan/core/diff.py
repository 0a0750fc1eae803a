"""
Diff builder: reduce a day plan to the changes the server needs.

The payload only carries deltas.  Anything it does not mention is left as
the server already has it.
"""

from dataclasses import dataclass

from loguru import logger

from .config import RPE_MAX, RPE_MIN, SERVER_RIR_MAX
from .engine.config_loader import get_settings
from .models import DayPlan, DaySet, PlannedExercise, SetOverride


@dataclass(frozen=True)
class SetCustomization:
    """Override for one template set; None fields keep the original."""

    exercise_set_id: int
    custom_reps_min: int | None = None
    custom_reps_max: int | None = None
    custom_weight: float | None = None
    custom_rir: int | None = None
    custom_rpe: int | None = None
    custom_notes: str | None = None

    @property
    def has_any_customization(self) -> bool:
        return (
            self.custom_reps_min is not None
            or self.custom_reps_max is not None
            or self.custom_weight is not None
            or self.custom_rir is not None
            or self.custom_rpe is not None
            or bool(self.custom_notes and self.custom_notes.strip())
        )


@dataclass(frozen=True)
class AddedSet:
    set_number: int
    reps_min: int
    reps_max: int
    weight: float
    rir: int | None = None
    rpe: int | None = None
    notes: str | None = None


@dataclass(frozen=True)
class AddedExercise:
    """
    An exercise record to create for this day.

    extends_routine_exercise_id is set on the records that carry extra sets
    for a template exercise; it names the routine entry they belong to.
    """

    exercise_id: int
    order: int
    sets: tuple[AddedSet, ...]
    rest_between_sets: int | None = None
    notes: str | None = None
    extends_routine_exercise_id: int | None = None


@dataclass(frozen=True)
class DiffPayload:
    absolute_day: int
    set_customizations: tuple[SetCustomization, ...] = ()
    added_exercises: tuple[AddedExercise, ...] = ()
    removed_exercise_ids: tuple[int, ...] = ()
    removed_set_ids: tuple[int, ...] = ()

    @property
    def is_empty(self) -> bool:
        return not (
            self.set_customizations
            or self.added_exercises
            or self.removed_exercise_ids
            or self.removed_set_ids
        )


def _customization_for(set_id: int, override: SetOverride) -> SetCustomization:
    return SetCustomization(
        exercise_set_id=set_id,
        custom_reps_min=override.reps_min,
        custom_reps_max=override.reps_max,
        custom_weight=override.weight,
        custom_rir=override.rir,
        custom_rpe=override.rpe,
        custom_notes=override.notes,
    )


def _added_set(day_set: DaySet, set_number: int) -> AddedSet:
    values = day_set.original
    return AddedSet(
        set_number=set_number,
        reps_min=values.reps_min,
        reps_max=values.reps_max,
        weight=values.weight,
        rir=values.rir,
        rpe=values.rpe,
        notes=values.notes,
    )


def _is_removed(exercise: PlannedExercise, removed_exercise_ids: frozenset[int]) -> bool:
    return exercise.is_original_exercise and exercise.exercise_id in removed_exercise_ids


def build_diff(
    plan: DayPlan,
    removed_exercise_ids: frozenset[int] | None = None,
    removed_set_ids: frozenset[int] | None = None,
    extra_sets_note_template: str | None = None,
) -> DiffPayload:
    """
    Build the save payload for a day plan.

    1. Overrides of visible template sets on template exercises that are
       still in the day.  A template set without a positive id cannot be
       addressed on the server and is skipped with a warning.
    2. Every added exercise, with its sets' original values.
    3. For each template exercise with extra sets, one added-exercise record
       tagged with the owning exercise that carries only those sets.
    4. The removed exercise and set ids, sorted.

    Args:
        plan: Day plan to diff
        removed_exercise_ids: Hidden template exercises (default: the plan's)
        removed_set_ids: Hidden template sets (default: the plan's)
        extra_sets_note_template: Note for extra-set records; ``{name}`` is
            replaced with the exercise name (default: from settings)

    Returns:
        DiffPayload
    """
    if removed_exercise_ids is None:
        removed_exercise_ids = plan.removed_exercise_ids
    if removed_set_ids is None:
        removed_set_ids = plan.removed_set_ids
    if extra_sets_note_template is None:
        extra_sets_note_template = get_settings().extra_sets_note_template

    customizations: list[SetCustomization] = []
    added: list[AddedExercise] = []
    extra_records: list[AddedExercise] = []

    for exercise in plan.exercises:
        if exercise.is_added_exercise:
            added.append(
                AddedExercise(
                    exercise_id=exercise.exercise_id,
                    order=exercise.order,
                    sets=tuple(_added_set(s, s.set_number) for s in exercise.sets),
                    rest_between_sets=exercise.rest_between_sets,
                    notes=exercise.notes,
                )
            )
            continue

        if _is_removed(exercise, removed_exercise_ids):
            continue

        for day_set in exercise.sets:
            if not day_set.is_from_template or day_set.set_id in removed_set_ids:
                continue
            if day_set.override is None:
                continue
            if day_set.set_id <= 0:
                logger.warning(
                    f"[DIFF] Skipping customized template set without a server id "
                    f"(set_id={day_set.set_id}, exercise={exercise.name}, day={plan.absolute_day})"
                )
                continue
            customization = _customization_for(day_set.set_id, day_set.override)
            if customization.has_any_customization:
                customizations.append(customization)

        extra_sets = [s for s in exercise.sets if s.is_extra_set]
        if extra_sets:
            extra_records.append(
                AddedExercise(
                    exercise_id=exercise.exercise_id,
                    order=exercise.order,
                    sets=tuple(_added_set(s, n) for n, s in enumerate(extra_sets, 1)),
                    rest_between_sets=exercise.rest_between_sets,
                    notes=extra_sets_note_template.format(name=exercise.name),
                    extends_routine_exercise_id=exercise.routine_exercise_id,
                )
            )

    payload = DiffPayload(
        absolute_day=plan.absolute_day,
        set_customizations=tuple(customizations),
        added_exercises=tuple(added + extra_records),
        removed_exercise_ids=tuple(sorted(removed_exercise_ids)),
        removed_set_ids=tuple(sorted(removed_set_ids)),
    )
    logger.debug(
        f"[DIFF] Day {plan.absolute_day}: {len(customizations)} customizations, "
        f"{len(added)} added exercises, {len(extra_records)} extra-set records, "
        f"{len(payload.removed_exercise_ids)} removed exercises, "
        f"{len(payload.removed_set_ids)} removed sets"
    )
    return payload


def payload_validation_errors(payload: DiffPayload) -> list[str]:
    """
    Check a payload against the server's acceptance rules.

    The server accepts RIR up to 10 (wider than the editor) and rejects a
    customization carrying both RIR and RPE.

    Returns:
        List of problems; empty if the payload would be accepted
    """
    errors: list[str] = []
    if payload.absolute_day <= 0:
        errors.append("absolute_day must be greater than 0")

    for i, c in enumerate(payload.set_customizations):
        prefix = f"set_customizations[{i}]"
        if c.exercise_set_id is None or c.exercise_set_id <= 0:
            errors.append(f"{prefix}.exercise_set_id must be a positive id")
        if not c.has_any_customization:
            continue
        if c.custom_reps_min is not None and c.custom_reps_min <= 0:
            errors.append(f"{prefix}: custom_reps_min <= 0")
        if c.custom_reps_max is not None and c.custom_reps_max <= 0:
            errors.append(f"{prefix}: custom_reps_max <= 0")
        if (
            c.custom_reps_min is not None
            and c.custom_reps_max is not None
            and c.custom_reps_min > c.custom_reps_max
        ):
            errors.append(f"{prefix}: custom_reps_min > custom_reps_max")
        if c.custom_weight is not None and c.custom_weight < 0:
            errors.append(f"{prefix}: custom_weight < 0")
        if c.custom_rir is not None and not 0 <= c.custom_rir <= SERVER_RIR_MAX:
            errors.append(f"{prefix}: custom_rir outside 0-{SERVER_RIR_MAX}")
        if c.custom_rpe is not None and not RPE_MIN <= c.custom_rpe <= RPE_MAX:
            errors.append(f"{prefix}: custom_rpe outside {RPE_MIN}-{RPE_MAX}")
        if c.custom_rir is not None and c.custom_rpe is not None:
            errors.append(f"{prefix}: cannot customize RIR and RPE together")

    for i, ex in enumerate(payload.added_exercises):
        prefix = f"added_exercises[{i}]"
        if ex.order <= 0:
            errors.append(f"{prefix}.order must be greater than 0")
        if not ex.sets:
            errors.append(f"{prefix} has no sets")
        for s in ex.sets:
            if s.reps_min <= 0 or s.reps_max <= 0 or s.reps_min > s.reps_max:
                errors.append(f"{prefix}.set {s.set_number}: invalid reps range")
            if s.weight < 0:
                errors.append(f"{prefix}.set {s.set_number}: weight < 0")

    return errors
