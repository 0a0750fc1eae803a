"""
CLI view formatters using Rich for pretty console output.

Handles table formatting and display of day plans, diffs and workouts.
"""

from rich.console import Console
from rich.table import Table

from ..core.diff import DiffPayload
from ..core.models import DayPlan, DaySet, PlannedExercise, SetValues

console = Console()


def intensity_label(day_set: DaySet) -> str:
    """Return e.g. "2 RIR" or "@8 RPE", or "" if the set tracks no intensity."""
    active = day_set.active_intensity
    if active is None:
        return ""
    kind, value = active
    return f"@{value} RPE" if kind == "RPE" else f"{value} RIR"


def _fmt_weight(weight: float) -> str:
    return f"{weight:g} kg" if weight > 0 else "BW"


def _fmt_values(values: SetValues) -> str:
    reps = f"{values.reps_min}" if values.reps_min == values.reps_max else f"{values.reps_min}-{values.reps_max}"
    return f"{reps} x {_fmt_weight(values.weight)}"


def _fmt_set_status(plan: DayPlan, day_set: DaySet) -> str:
    if plan.is_set_removed(day_set):
        return "[red]removed[/red]"
    if day_set.is_extra_set:
        return "[green]added[/green]"
    if day_set.is_added_set:
        return "[green]new[/green]"
    if day_set.is_customized:
        return "[yellow]edited[/yellow]"
    return ""


def _exercise_title(plan: DayPlan, index: int, exercise: PlannedExercise) -> str:
    title = f"{index}. {exercise.name}"
    if exercise.muscle_group:
        title += f" [dim]({exercise.muscle_group})[/dim]"
    if plan.is_exercise_removed(exercise):
        return f"[strike]{title}[/strike] [red]removed[/red]"
    if exercise.is_added_exercise:
        title += " [green]added[/green]"
    return title


def format_exercise_table(plan: DayPlan, index: int, exercise: PlannedExercise) -> Table:
    """
    Create a Rich table for one exercise's sets.

    Args:
        plan: Day plan the exercise belongs to
        index: 1-based exercise number shown to the user
        exercise: Exercise to display

    Returns:
        Rich Table object
    """
    table = Table(title=_exercise_title(plan, index, exercise), title_justify="left")
    table.add_column("#", justify="right", style="dim", width=3)
    table.add_column("Plan", style="cyan")
    table.add_column("Today", style="bold")
    table.add_column("Intensity", style="magenta")
    table.add_column("Notes")
    table.add_column("", justify="left")

    for set_index, day_set in enumerate(exercise.sets, 1):
        original = _fmt_values(day_set.original) if day_set.is_from_template else "-"
        table.add_row(
            str(set_index),
            original,
            _fmt_values(day_set.effective),
            intensity_label(day_set),
            day_set.effective.notes or "",
            _fmt_set_status(plan, day_set),
        )
    return table


def print_plan(plan: DayPlan) -> None:
    """Print the whole day with effective values and change markers."""
    header = f"[bold cyan]Day {plan.absolute_day}[/bold cyan]: {plan.routine_name}"
    if plan.actual_date:
        header += f" [dim]({plan.actual_date})[/dim]"
    console.print(header)
    if plan.routine_description:
        console.print(f"[dim]{plan.routine_description}[/dim]")
    console.print()

    if not plan.exercises:
        console.print("[yellow]No exercises planned for this day.[/yellow]")
        return

    for index, exercise in enumerate(plan.exercises, 1):
        console.print(format_exercise_table(plan, index, exercise))
        details = []
        if exercise.rest_between_sets is not None:
            details.append(f"rest {exercise.rest_between_sets}s")
        edited = plan.customized_sets_count(exercise)
        if edited:
            details.append(f"{edited} edited")
        if exercise.added_sets_count:
            details.append(f"{exercise.added_sets_count} added")
        if exercise.removed_sets_count:
            details.append(f"{exercise.removed_sets_count} removed")
        if exercise.notes:
            details.append(exercise.notes)
        if details:
            console.print(f"  [dim]{' · '.join(details)}[/dim]")
        console.print()

    print_summary(plan)


def print_summary(plan: DayPlan) -> None:
    parts = [
        f"{plan.total_customizations} edited sets",
        f"{plan.added_exercises_count} added exercises",
        f"{plan.removed_exercises_count} removed exercises",
        f"{len(plan.removed_set_ids)} removed sets",
    ]
    style = "yellow" if plan.has_changes else "dim"
    console.print(f"[{style}]{', '.join(parts)}[/{style}]")


def print_diff(payload: DiffPayload) -> None:
    """Print a short human-readable description of a diff payload."""
    if payload.is_empty:
        console.print("[dim]No changes to save.[/dim]")
        return
    for c in payload.set_customizations:
        console.print(f"  [yellow]edit[/yellow]   set {c.exercise_set_id}")
    for ex in payload.added_exercises:
        if ex.extends_routine_exercise_id is not None:
            console.print(
                f"  [green]extra[/green]  {len(ex.sets)} set(s) for exercise {ex.exercise_id}"
            )
        else:
            console.print(
                f"  [green]add[/green]    exercise {ex.exercise_id} at order {ex.order} "
                f"({len(ex.sets)} sets)"
            )
    for exercise_id in payload.removed_exercise_ids:
        console.print(f"  [red]remove[/red] exercise {exercise_id}")
    for set_id in payload.removed_set_ids:
        console.print(f"  [red]remove[/red] set {set_id}")


def print_progress(completed: int, total: int, percentage: int) -> None:
    console.print(f"[bold]Progress:[/bold] {completed}/{total} sets ({percentage}%)")


def print_success(message: str) -> None:
    """Print a success message."""
    console.print(f"[green]{message}[/green]")


def print_error(message: str) -> None:
    """Print an error message."""
    console.print(f"[red]Error: {message}[/red]")


def print_warning(message: str) -> None:
    """Print a warning message."""
    console.print(f"[yellow]Warning: {message}[/yellow]")


def print_info(message: str) -> None:
    """Print an info message."""
    console.print(f"[blue]{message}[/blue]")


def confirm_action(message: str) -> bool:
    """
    Prompt user for confirmation.

    Args:
        message: Confirmation message

    Returns:
        True if confirmed, False otherwise
    """
    response = console.input(f"{message} \\[y/N]: ")
    return response.lower() in ("y", "yes")
