"""Workout command: run the day's sets and record what was performed."""

from ...core.engine.config_loader import get_settings
from ...core.engine.operations import AddSet, RemoveSet
from ...core.models import DaySet
from ...core.workout import WorkoutSession
from ...io.serializers import completion_payload_to_dict
from .. import views
from ..app import StoreOption, app, get_store, load_plan_or_exit


def _prompt_number(label: str, default: float | int | None, cast: type) -> float | int | None:
    """
    Ask for a number until one is given. Enter keeps the default.

    Returns None only when the default is None and the user pressed Enter.
    """
    shown = "" if default is None else f"{default:g}" if isinstance(default, float) else str(default)
    while True:
        raw = views.console.input(f"    {label} [{shown}]: ").strip()
        if not raw:
            return default
        try:
            return cast(raw)
        except ValueError:
            views.print_warning(f"'{raw}' is not a number.")


def _target(day_set: DaySet) -> str:
    values = day_set.effective
    reps = f"{values.reps_min}" if values.reps_min == values.reps_max else f"{values.reps_min}-{values.reps_max}"
    label = f"{reps} reps x {values.weight:g} kg"
    intensity = views.intensity_label(day_set)
    return f"{label} {intensity}" if intensity else label


@app.command()
def workout(
    store_path: StoreOption = None,
) -> None:
    """
    Work through today's sets interactively.

    At the reps prompt: "a" adds a set to the current exercise,
    "r" removes the current set, "q" stops.
    Added and removed sets are kept as edits of the day.  When the
    workout ends with at least one set logged, the performed sets are
    recorded in the store.
    """
    store = get_store(store_path)
    settings = get_settings()
    session = WorkoutSession.start(load_plan_or_exit(store))

    if not session.exercises():
        views.print_info("No exercises left for this day.")
        return

    exercise_index, set_index = 0, 0
    while True:
        exercise = session.exercises()[exercise_index]
        sets = session.sets_for(exercise_index)
        day_set = sets[set_index]

        views.console.print()
        views.console.print(
            f"[bold]{exercise.name}[/bold] set {set_index + 1}/{len(sets)}: [cyan]{_target(day_set)}[/cyan]"
        )
        raw = views.console.input(
            f"    Reps [{day_set.effective.reps_max}] (a=add set, r=remove set, q=quit): "
        ).strip().lower()

        if raw == "q":
            break

        if raw == "a":
            plan_exercise_index, _ = session.plan_indexes(exercise_index)
            result = session.add_set(exercise_index, settings)
            if not result.ok:
                views.print_error(str(result.error))
                continue
            store.append_edit(AddSet(plan_exercise_index))
            session = result.workout
            views.print_info(f"Added a set to {exercise.name}.")
            continue

        if raw == "r":
            plan_exercise_index, plan_set_index = session.plan_indexes(exercise_index, set_index)
            result = session.remove_set(exercise_index, set_index)
            if not result.ok:
                views.print_error(str(result.error))
                continue
            store.append_edit(RemoveSet(plan_exercise_index, plan_set_index))
            session = result.workout
            views.print_info(f"Removed set {set_index + 1} of {exercise.name}.")
            if set_index < len(session.sets_for(exercise_index)):
                continue
            if exercise_index < len(session.exercises()) - 1:
                exercise_index, set_index = exercise_index + 1, 0
                continue
            break

        if raw:
            try:
                reps = int(raw)
            except ValueError:
                views.print_warning(f"'{raw}' is not a number.")
                continue
        else:
            reps = day_set.effective.reps_max

        weight = _prompt_number("Weight kg", day_set.effective.weight, float)
        rir = _prompt_number("RIR", None, int)

        result = session.complete_set(exercise_index, set_index, reps, weight, rir, settings)
        if not result.ok:
            views.print_error(str(result.error))
            continue
        session = result.workout
        step = result.step

        if step.workout_finished:
            break
        if step.exercise_finished:
            views.print_success(f"{exercise.name} done.")
        elif step.rest_seconds:
            views.print_info(f"Rest {step.rest_seconds}s")
        exercise_index, set_index = step.exercise_index, step.set_index

    views.console.print()
    completed, total, percentage = session.progress()
    views.print_progress(completed, total, percentage)
    if completed:
        store.append_workout(completion_payload_to_dict(session.completion_payload()))
        views.print_info(f"Workout recorded in {store.workouts_path}")
    if session.is_finished:
        views.print_success("Workout complete.")
