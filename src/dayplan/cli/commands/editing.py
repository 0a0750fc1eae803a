"""Editing commands: edit-set, add-set, remove-set, add-exercise, remove-exercise, reset."""

from typing import Annotated, Optional

import typer

from ...core.config import DEFAULT_EDITOR_INTENSITY, DEFAULT_EDITOR_INTENSITY_TYPE
from ...core.engine.operations import (
    AddExercise,
    AddSet,
    EditSet,
    ExerciseDescriptor,
    RemoveExercise,
    RemoveSet,
    ResetAll,
)
from ...core.engine.validation import SetInput
from ...core.models import DaySet
from ...io.serializers import ValidationError, parse_reps_range, parse_set_inputs
from .. import views
from ..app import StoreOption, YesOption, app, get_store, load_plan_or_exit, run_operation

ExerciseNumber = Annotated[
    int,
    typer.Option("--exercise", "-x", help="Exercise number as shown by 'show' (1-based)"),
]
SetNumber = Annotated[
    int,
    typer.Option("--set", "-s", help="Set number as shown by 'show' (1-based)"),
]


def editor_defaults(day_set: DaySet) -> SetInput:
    """
    Pre-fill the set editor from the set's effective values.

    A set that tracks no intensity starts at the editor default (RIR 2).
    """
    values = day_set.effective
    active = day_set.active_intensity
    if active is None:
        intensity_type, intensity = DEFAULT_EDITOR_INTENSITY_TYPE, DEFAULT_EDITOR_INTENSITY
    else:
        intensity_type, intensity = active
    return SetInput(
        reps_min=values.reps_min,
        reps_max=values.reps_max,
        weight=values.weight,
        intensity_type=intensity_type,
        intensity=intensity,
        notes=values.notes,
    )


@app.command("edit-set")
def edit_set(
    exercise: ExerciseNumber,
    set_number: SetNumber,
    reps: Annotated[
        Optional[str],
        typer.Option("--reps", "-r", help="Reps or range, e.g. 8 or 6-10"),
    ] = None,
    weight: Annotated[
        Optional[float],
        typer.Option("--weight", "-w", help="Weight in kg"),
    ] = None,
    rir: Annotated[
        Optional[int],
        typer.Option("--rir", help="Reps in reserve (0-5)"),
    ] = None,
    rpe: Annotated[
        Optional[int],
        typer.Option("--rpe", help="Rate of perceived exertion (1-10)"),
    ] = None,
    notes: Annotated[
        Optional[str],
        typer.Option("--notes", "-n", help="Notes for this set today"),
    ] = None,
    store_path: StoreOption = None,
) -> None:
    """
    Change one set's targets for this day only.

    Options left out keep the value currently shown for the set.
    """
    if rir is not None and rpe is not None:
        views.print_error("Use either --rir or --rpe, not both")
        raise typer.Exit(1)

    if exercise < 1 or set_number < 1:
        views.print_error("Exercise and set numbers start at 1")
        raise typer.Exit(1)

    store = get_store(store_path)
    plan = load_plan_or_exit(store)
    try:
        ex = plan.exercises[exercise - 1]
        day_set = ex.sets[set_number - 1]
    except IndexError:
        views.print_error(f"No set {set_number} in exercise {exercise}")
        raise typer.Exit(1)

    current = editor_defaults(day_set)
    reps_min, reps_max = current.reps_min, current.reps_max
    if reps is not None:
        try:
            reps_min, reps_max = parse_reps_range(reps)
        except ValidationError as e:
            views.print_error(str(e))
            raise typer.Exit(1)

    intensity_type, intensity = current.intensity_type, current.intensity
    if rir is not None:
        intensity_type, intensity = "RIR", rir
    elif rpe is not None:
        intensity_type, intensity = "RPE", rpe

    fields = SetInput(
        reps_min=reps_min,
        reps_max=reps_max,
        weight=weight if weight is not None else current.weight,
        intensity_type=intensity_type,
        intensity=intensity,
        notes=notes if notes is not None else current.notes,
    )
    plan = run_operation(store, EditSet(exercise - 1, set_number - 1, fields))
    updated = plan.exercises[exercise - 1].sets[set_number - 1]
    views.print_success(
        f"{ex.name} set {set_number}: {updated.effective.reps_min}-{updated.effective.reps_max} reps "
        f"x {updated.effective.weight:g} kg {views.intensity_label(updated)}".rstrip()
    )


@app.command("add-set")
def add_set(
    exercise: ExerciseNumber,
    store_path: StoreOption = None,
) -> None:
    """
    Add a set to an exercise, copying its last set.
    """
    if exercise < 1:
        views.print_error("Exercise numbers start at 1")
        raise typer.Exit(1)
    store = get_store(store_path)
    plan = run_operation(store, AddSet(exercise - 1))
    ex = plan.exercises[exercise - 1]
    views.print_success(f"Added set {len(ex.sets)} to {ex.name} ({ex.number_of_sets} sets)")


@app.command("remove-set")
def remove_set(
    exercise: ExerciseNumber,
    set_number: SetNumber,
    store_path: StoreOption = None,
) -> None:
    """
    Remove a set for this day. An exercise always keeps at least one set.
    """
    if exercise < 1 or set_number < 1:
        views.print_error("Exercise and set numbers start at 1")
        raise typer.Exit(1)
    store = get_store(store_path)
    plan = run_operation(store, RemoveSet(exercise - 1, set_number - 1))
    ex = plan.exercises[exercise - 1]
    views.print_success(f"Removed set {set_number} from {ex.name} ({ex.number_of_sets} sets left)")


@app.command("add-exercise")
def add_exercise(
    exercise_id: Annotated[
        int,
        typer.Option("--exercise-id", "-e", help="Catalog id of the exercise"),
    ],
    name: Annotated[
        str,
        typer.Option("--name", help="Exercise name"),
    ],
    sets: Annotated[
        str,
        typer.Option("--sets", "-s", help="Sets: [Nx]MIN[-MAX][@KG] [rir V|rpe V],... e.g. 3x8-12@20 rir2"),
    ],
    order: Annotated[
        Optional[int],
        typer.Option("--order", "-o", help="Position in the day (default: last)"),
    ] = None,
    muscle_group: Annotated[
        str,
        typer.Option("--muscle", "-m", help="Muscle group"),
    ] = "",
    rest: Annotated[
        Optional[int],
        typer.Option("--rest", help="Rest between sets in seconds"),
    ] = None,
    notes: Annotated[
        Optional[str],
        typer.Option("--notes", "-n", help="Notes for the exercise"),
    ] = None,
    store_path: StoreOption = None,
) -> None:
    """
    Add an exercise that is not part of the routine for this day.
    """
    store = get_store(store_path)
    plan = load_plan_or_exit(store)
    try:
        set_inputs = parse_set_inputs(sets)
    except ValidationError as e:
        views.print_error(str(e))
        raise typer.Exit(1)

    if order is None:
        order = max((ex.order for ex in plan.exercises), default=0) + 1

    descriptor = ExerciseDescriptor(
        exercise_id=exercise_id,
        name=name,
        order=order,
        sets=tuple(set_inputs),
        muscle_group=muscle_group,
        rest_between_sets=rest,
        notes=notes,
    )
    run_operation(store, AddExercise(descriptor))
    views.print_success(f"Added {name} at position {order} with {len(set_inputs)} sets")


@app.command("remove-exercise")
def remove_exercise(
    exercise: ExerciseNumber,
    yes: YesOption = False,
    store_path: StoreOption = None,
) -> None:
    """
    Remove an exercise from this day. Only 'reset' brings a routine exercise back.
    """
    store = get_store(store_path)
    plan = load_plan_or_exit(store)
    if not 1 <= exercise <= len(plan.exercises):
        views.print_error(f"Exercise must be between 1 and {len(plan.exercises)}")
        raise typer.Exit(1)

    ex = plan.exercises[exercise - 1]
    if not yes and not views.confirm_action(f"Remove {ex.name} from day {plan.absolute_day}?"):
        views.print_info("Cancelled.")
        raise typer.Exit(0)

    run_operation(store, RemoveExercise(exercise - 1))
    views.print_success(f"Removed {ex.name}")


@app.command()
def reset(
    yes: YesOption = False,
    store_path: StoreOption = None,
) -> None:
    """
    Undo every change made to this day since it was loaded.
    """
    store = get_store(store_path)
    plan = load_plan_or_exit(store)
    if not plan.has_changes:
        views.print_info("Nothing to reset.")
        return

    if not yes and not views.confirm_action("Reset the day to the routine's values?"):
        views.print_info("Cancelled.")
        raise typer.Exit(0)

    run_operation(store, ResetAll())
    views.print_success("All changes for this day were reset.")
