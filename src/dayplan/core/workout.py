"""
Live workout over a customized day plan.

Runs the day's visible sets with their effective targets and records what
was actually performed.  Adding or removing a set mid-workout goes through
the override engine, so the same last-set guard applies here as in the
day editor.
"""

from dataclasses import dataclass, field, replace
from datetime import datetime

from loguru import logger

from .config import EngineSettings
from .engine.config_loader import get_settings
from .engine.operations import add_set, remove_set
from .engine.validation import OperationError
from .models import DayPlan, DaySet, PlannedExercise, SetValues


@dataclass(frozen=True)
class SetLog:
    """What was performed for one set."""

    actual_reps: int
    actual_weight: float
    actual_rir: int | None = None


@dataclass(frozen=True)
class WorkoutStep:
    """Where to go after completing a set."""

    exercise_index: int | None  # None when the workout is finished
    set_index: int | None
    rest_seconds: int
    exercise_finished: bool = False
    workout_finished: bool = False


@dataclass(frozen=True)
class WorkoutResult:
    workout: "WorkoutSession"
    error: OperationError | None = None
    step: WorkoutStep | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass(frozen=True)
class CompletedSet:
    """Target and outcome of one set, numbered by its position in the workout."""

    set_number: int
    target: SetValues
    actual_reps: int | None = None
    actual_weight: float | None = None
    actual_rir: int | None = None
    completed: bool = False
    was_added_during_workout: bool = False


@dataclass(frozen=True)
class CompletedExercise:
    exercise_id: int
    name: str
    muscle_group: str
    order: int
    rest_between_sets: int | None
    notes: str | None
    is_added_exercise: bool
    sets: tuple[CompletedSet, ...]


@dataclass(frozen=True)
class CompletionPayload:
    """The performed workout, as recorded when it ends."""

    absolute_day: int
    routine_name: str
    routine_description: str | None
    started_at: datetime
    completed_at: datetime
    exercises: tuple[CompletedExercise, ...]
    notes: str | None = None

    @property
    def completed_sets(self) -> int:
        return sum(1 for ex in self.exercises for s in ex.sets if s.completed)


@dataclass(frozen=True)
class WorkoutSession:
    """
    A workout in progress.

    exercise_index / set_index address exercises() and sets_for(), i.e. the
    removed exercises and sets of the plan are already left out.
    """

    plan: DayPlan
    logs: dict[int, SetLog] = field(default_factory=dict)  # set_id -> log
    started_at: datetime = field(default_factory=datetime.now)
    added_set_ids: frozenset[int] = frozenset()  # sets added since start

    @classmethod
    def start(cls, plan: DayPlan, started_at: datetime | None = None) -> "WorkoutSession":
        logger.info(f"[WORKOUT] Starting day {plan.absolute_day} ({plan.routine_name})")
        return cls(plan=plan, started_at=started_at or datetime.now())

    def exercises(self) -> list[PlannedExercise]:
        return self.plan.active_exercises()

    def sets_for(self, exercise_index: int) -> list[DaySet]:
        return self.plan.visible_sets(self._exercise(exercise_index))

    def is_completed(self, day_set: DaySet) -> bool:
        return day_set.set_id in self.logs

    def _exercise(self, exercise_index: int) -> PlannedExercise:
        exercises = self.exercises()
        if not 0 <= exercise_index < len(exercises):
            raise IndexError(f"Exercise index {exercise_index} out of range (0-{len(exercises) - 1})")
        return exercises[exercise_index]

    def _set(self, exercise_index: int, set_index: int) -> DaySet:
        sets = self.sets_for(exercise_index)
        if not 0 <= set_index < len(sets):
            raise IndexError(f"Set index {set_index} out of range (0-{len(sets) - 1})")
        return sets[set_index]

    def plan_indexes(self, exercise_index: int, set_index: int | None = None) -> tuple[int, int | None]:
        """Translate workout indexes into indexes of plan.exercises / exercise.sets."""
        exercise = self._exercise(exercise_index)
        plan_exercise_index = self.plan.exercises.index(exercise)
        if set_index is None:
            return plan_exercise_index, None
        day_set = self._set(exercise_index, set_index)
        return plan_exercise_index, exercise.sets.index(day_set)

    def rest_after(self, exercise_index: int, settings: EngineSettings | None = None) -> int:
        exercise = self._exercise(exercise_index)
        if exercise.rest_between_sets is not None:
            return exercise.rest_between_sets
        return (settings or get_settings()).default_rest_seconds

    def complete_set(
        self,
        exercise_index: int,
        set_index: int,
        actual_reps: int,
        actual_weight: float,
        actual_rir: int | None = None,
        settings: EngineSettings | None = None,
    ) -> WorkoutResult:
        """
        Record a performed set and work out what comes next.

        Returns:
            WorkoutResult with the updated workout and the next step, or the
            unchanged workout and an error
        """
        settings = settings or get_settings()
        day_set = self._set(exercise_index, set_index)

        if not isinstance(actual_reps, int) or isinstance(actual_reps, bool) or actual_reps <= 0:
            return WorkoutResult(self, OperationError("actual_reps", "enter the number of reps performed"))
        if not isinstance(actual_weight, (int, float)) or isinstance(actual_weight, bool) or actual_weight < 0:
            return WorkoutResult(self, OperationError("actual_weight", "enter the weight used"))
        if actual_rir is not None and not settings.rir_min <= actual_rir <= settings.rir_max:
            return WorkoutResult(
                self,
                OperationError("actual_rir", f"RIR must be between {settings.rir_min} and {settings.rir_max}"),
            )

        logs = dict(self.logs)
        logs[day_set.set_id] = SetLog(actual_reps, float(actual_weight), actual_rir)
        workout = replace(self, logs=logs)

        sets = workout.sets_for(exercise_index)
        if set_index < len(sets) - 1:
            step = WorkoutStep(exercise_index, set_index + 1, workout.rest_after(exercise_index, settings))
        elif exercise_index < len(workout.exercises()) - 1:
            step = WorkoutStep(exercise_index + 1, 0, 0, exercise_finished=True)
        else:
            step = WorkoutStep(None, None, 0, exercise_finished=True, workout_finished=True)

        logger.debug(
            f"[WORKOUT] Set {day_set.set_id} done: {actual_reps} reps x {actual_weight} kg"
        )
        return WorkoutResult(workout, step=step)

    def add_set(self, exercise_index: int, settings: EngineSettings | None = None) -> WorkoutResult:
        plan_exercise_index, _ = self.plan_indexes(exercise_index)
        result = add_set(self.plan, plan_exercise_index, settings)
        if not result.ok:
            return WorkoutResult(self, result.error)
        new_set = result.plan.exercises[plan_exercise_index].sets[-1]
        return WorkoutResult(
            replace(self, plan=result.plan, added_set_ids=self.added_set_ids | {new_set.set_id})
        )

    def remove_set(self, exercise_index: int, set_index: int) -> WorkoutResult:
        day_set = self._set(exercise_index, set_index)
        if self.is_completed(day_set):
            return WorkoutResult(self, OperationError(None, "a completed set cannot be removed"))
        plan_exercise_index, plan_set_index = self.plan_indexes(exercise_index, set_index)
        result = remove_set(self.plan, plan_exercise_index, plan_set_index)
        if not result.ok:
            return WorkoutResult(self, result.error)
        return WorkoutResult(
            replace(self, plan=result.plan, added_set_ids=self.added_set_ids - {day_set.set_id})
        )

    def progress(self) -> tuple[int, int, int]:
        """Return (completed sets, total sets, percentage rounded to an int)."""
        all_sets = [s for ex in self.exercises() for s in self.plan.visible_sets(ex)]
        total = len(all_sets)
        completed = sum(1 for s in all_sets if self.is_completed(s))
        percentage = round(completed / total * 100) if total else 0
        return completed, total, percentage

    @property
    def is_finished(self) -> bool:
        completed, total, _ = self.progress()
        return total > 0 and completed == total

    def completion_payload(
        self,
        completed_at: datetime | None = None,
        notes: str | None = None,
    ) -> CompletionPayload:
        """
        Build the record of the performed workout.

        Every visible set of every active exercise is listed with its
        effective target; sets without a log have completed=False and no
        actual values.

        Args:
            completed_at: End time (defaults to now)
            notes: Free-text notes for the whole workout
        """
        exercises = []
        for exercise in self.exercises():
            sets = []
            for number, day_set in enumerate(self.plan.visible_sets(exercise), 1):
                log = self.logs.get(day_set.set_id)
                sets.append(
                    CompletedSet(
                        set_number=number,
                        target=day_set.effective,
                        actual_reps=log.actual_reps if log else None,
                        actual_weight=log.actual_weight if log else None,
                        actual_rir=log.actual_rir if log else None,
                        completed=log is not None,
                        was_added_during_workout=day_set.set_id in self.added_set_ids,
                    )
                )
            exercises.append(
                CompletedExercise(
                    exercise_id=exercise.exercise_id,
                    name=exercise.name,
                    muscle_group=exercise.muscle_group,
                    order=exercise.order,
                    rest_between_sets=exercise.rest_between_sets,
                    notes=exercise.notes,
                    is_added_exercise=exercise.is_added_exercise,
                    sets=tuple(sets),
                )
            )

        payload = CompletionPayload(
            absolute_day=self.plan.absolute_day,
            routine_name=self.plan.routine_name,
            routine_description=self.plan.routine_description,
            started_at=self.started_at,
            completed_at=completed_at or datetime.now(),
            exercises=tuple(exercises),
            notes=notes.strip() if notes and notes.strip() else None,
        )
        logger.info(
            f"[WORKOUT] Day {payload.absolute_day}: {payload.completed_sets} sets completed"
        )
        return payload
