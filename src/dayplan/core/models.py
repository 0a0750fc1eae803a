"""
Data models for dayplan.

Frozen dataclasses for one day of a macrocycle plan: per-set original,
override and effective values, the exercises that own them, and the day
aggregate.  Every engine operation returns a new DayPlan built by replacing
only the nodes it touched, so two plans can be compared with ``==``.
"""

from dataclasses import dataclass, field, replace
from typing import Literal

SetOrigin = Literal["from_template", "added_to_existing_exercise", "added_with_new_exercise"]
IntensityType = Literal["RIR", "RPE"]

FROM_TEMPLATE: SetOrigin = "from_template"
ADDED_TO_EXISTING: SetOrigin = "added_to_existing_exercise"
ADDED_WITH_NEW_EXERCISE: SetOrigin = "added_with_new_exercise"


@dataclass(frozen=True)
class SetValues:
    """
    Target values for one set.

    At most one of rir/rpe is normally set; a set that tracks no intensity
    has both as None.
    """

    reps_min: int
    reps_max: int
    weight: float = 0.0
    rir: int | None = None
    rpe: int | None = None
    notes: str | None = None


@dataclass(frozen=True)
class SetOverride:
    """
    Per-day override of a template set.  None = keep the original value.

    Written with only the selected intensity metric, so the other one falls
    back to the original when merged.
    """

    reps_min: int | None = None
    reps_max: int | None = None
    weight: float | None = None
    rir: int | None = None
    rpe: int | None = None
    notes: str | None = None


def merge_values(original: SetValues, override: SetOverride | None) -> SetValues:
    """Field-by-field merge: the override value where set, else the original."""
    if override is None:
        return original

    def pick(custom, base):
        return custom if custom is not None else base

    notes = override.notes if override.notes and override.notes.strip() else original.notes
    return SetValues(
        reps_min=pick(override.reps_min, original.reps_min),
        reps_max=pick(override.reps_max, original.reps_max),
        weight=pick(override.weight, original.weight),
        rir=pick(override.rir, original.rir),
        rpe=pick(override.rpe, original.rpe),
        notes=notes,
    )


@dataclass(frozen=True)
class DaySet:
    """
    One set of an exercise for this day.

    set_id is positive for sets that exist on the server and negative for
    sets created locally this session.
    """

    set_id: int
    set_number: int  # 1-based position within the exercise
    original: SetValues
    effective: SetValues
    override: SetOverride | None = None
    origin: SetOrigin = FROM_TEMPLATE

    @classmethod
    def create(
        cls,
        set_id: int,
        set_number: int,
        original: SetValues,
        override: SetOverride | None = None,
        origin: SetOrigin = FROM_TEMPLATE,
    ) -> "DaySet":
        """Build a set with its effective values already derived."""
        return cls(
            set_id=set_id,
            set_number=set_number,
            original=original,
            effective=merge_values(original, override),
            override=override,
            origin=origin,
        )

    @property
    def is_customized(self) -> bool:
        return self.override is not None

    @property
    def is_from_template(self) -> bool:
        return self.origin == FROM_TEMPLATE

    @property
    def is_added_set(self) -> bool:
        """Set created together with an exercise added this session."""
        return self.origin == ADDED_WITH_NEW_EXERCISE

    @property
    def is_extra_set(self) -> bool:
        """Set added this session to an exercise from the template."""
        return self.origin == ADDED_TO_EXISTING

    @property
    def active_intensity(self) -> tuple[IntensityType, int] | None:
        """
        The intensity metric this set is trained with, as (type, value).

        An override's metric wins; otherwise the original RIR, then RPE.
        """
        if self.override is not None:
            if self.override.rpe is not None:
                return ("RPE", self.override.rpe)
            if self.override.rir is not None:
                return ("RIR", self.override.rir)
        if self.effective.rir is not None:
            return ("RIR", self.effective.rir)
        if self.effective.rpe is not None:
            return ("RPE", self.effective.rpe)
        return None


def derive_effective(day_set: DaySet) -> DaySet:
    """Return *day_set* with effective values recomputed from original + override."""
    effective = merge_values(day_set.original, day_set.override)
    if effective == day_set.effective:
        return day_set
    return replace(day_set, effective=effective)


@dataclass(frozen=True)
class PlannedExercise:
    """
    One exercise in the day's plan.

    removed_sets_count and added_sets_count are kept by the override engine
    for display; they always match what can be counted from the sets.
    """

    routine_exercise_id: int
    exercise_id: int
    name: str
    muscle_group: str
    order: int  # 1-based execution order across the day
    sets: tuple[DaySet, ...] = ()
    rest_between_sets: int | None = None  # seconds
    notes: str | None = None
    is_added_exercise: bool = False
    removed_sets_count: int = 0
    added_sets_count: int = 0

    @property
    def is_original_exercise(self) -> bool:
        return not self.is_added_exercise

    @property
    def number_of_sets(self) -> int:
        """Visible sets."""
        return len(self.sets) - self.removed_sets_count


@dataclass(frozen=True)
class DayPlan:
    """
    The full plan for one day of a macrocycle, with this session's edits.

    removed_exercise_ids holds exercise_id values of template exercises
    hidden this session; removed_set_ids holds set_id values of hidden
    template sets.  Added exercises and extra sets are never soft-removed.
    """

    absolute_day: int
    routine_name: str
    exercises: tuple[PlannedExercise, ...] = ()
    actual_date: str | None = None  # ISO date, display only
    routine_description: str | None = None
    macrocycle_id: int | None = None
    removed_exercise_ids: frozenset[int] = field(default_factory=frozenset)
    removed_set_ids: frozenset[int] = field(default_factory=frozenset)

    def __post_init__(self) -> None:
        if self.absolute_day <= 0:
            raise ValueError("absolute_day must be positive")

    def is_exercise_removed(self, exercise: PlannedExercise) -> bool:
        return exercise.is_original_exercise and exercise.exercise_id in self.removed_exercise_ids

    def is_set_removed(self, day_set: DaySet) -> bool:
        return day_set.is_from_template and day_set.set_id in self.removed_set_ids

    def visible_sets(self, exercise: PlannedExercise) -> list[DaySet]:
        return [s for s in exercise.sets if not self.is_set_removed(s)]

    def customized_sets_count(self, exercise: PlannedExercise) -> int:
        return sum(1 for s in self.visible_sets(exercise) if s.is_customized)

    def active_exercises(self) -> list[PlannedExercise]:
        """Exercises that have not been removed, in order."""
        return [ex for ex in self.exercises if not self.is_exercise_removed(ex)]

    @property
    def total_customizations(self) -> int:
        """Customized visible sets across exercises that are not removed."""
        return sum(
            1
            for ex in self.active_exercises()
            for s in self.visible_sets(ex)
            if s.is_customized
        )

    @property
    def has_customizations(self) -> bool:
        return self.total_customizations > 0

    @property
    def added_exercises_count(self) -> int:
        return sum(1 for ex in self.exercises if ex.is_added_exercise)

    @property
    def removed_exercises_count(self) -> int:
        return sum(1 for ex in self.exercises if self.is_exercise_removed(ex))

    @property
    def has_changes(self) -> bool:
        """True if anything differs from the template for this day."""
        return bool(
            self.has_customizations
            or self.removed_exercise_ids
            or self.removed_set_ids
            or self.added_exercises_count
            or any(ex.added_sets_count for ex in self.exercises)
        )
