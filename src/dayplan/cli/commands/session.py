"""Session commands: init, show, diff, save, discard."""

import json
from pathlib import Path
from typing import Annotated

import typer

from ...core.diff import build_diff, payload_validation_errors
from ...core.engine.config_loader import get_settings
from ...core.session import EditingSession, TransportError
from ...io.day_store import FileTransport
from ...io.serializers import ValidationError, day_plan_to_dict, diff_payload_to_dict
from .. import views
from ..app import StoreOption, YesOption, app, get_store, load_plan_or_exit

JsonOption = Annotated[
    bool,
    typer.Option("--json", "-j", help="Output as JSON for machine processing"),
]


@app.command()
def init(
    snapshot: Annotated[
        Path,
        typer.Option("--snapshot", "-f", help="Day snapshot JSON as returned by the server"),
    ],
    yes: YesOption = False,
    store_path: StoreOption = None,
) -> None:
    """
    Load a day snapshot and start a new editing session.
    """
    store = get_store(store_path)

    try:
        with open(snapshot, "r") as f:
            data = json.load(f)
    except FileNotFoundError:
        views.print_error(f"Snapshot file not found: {snapshot}")
        raise typer.Exit(1)
    except json.JSONDecodeError as e:
        views.print_error(f"Invalid JSON in {snapshot}: {e}")
        raise typer.Exit(1)

    if store.has_edits() and not yes:
        views.print_warning("The current session has unsaved edits.")
        if not views.confirm_action("Discard them and load the new snapshot?"):
            views.print_info("Cancelled.")
            raise typer.Exit(0)

    try:
        plan = store.init(data)
    except ValidationError as e:
        views.print_error(f"Invalid snapshot: {e}")
        raise typer.Exit(1)

    views.print_success(
        f"Loaded day {plan.absolute_day} ({plan.routine_name}, "
        f"{len(plan.exercises)} exercises) into {store.store_dir}"
    )


@app.command()
def show(
    json_out: JsonOption = False,
    store_path: StoreOption = None,
) -> None:
    """
    Show the day with today's values and what was changed.
    """
    store = get_store(store_path)
    plan = load_plan_or_exit(store)

    if json_out:
        print(json.dumps(day_plan_to_dict(plan), indent=2))
        return

    views.print_plan(plan)


@app.command()
def diff(
    json_out: JsonOption = False,
    store_path: StoreOption = None,
) -> None:
    """
    Show the payload 'save' would send.
    """
    store = get_store(store_path)
    plan = load_plan_or_exit(store)
    payload = build_diff(plan, extra_sets_note_template=get_settings().extra_sets_note_template)

    if json_out:
        print(json.dumps(diff_payload_to_dict(payload), indent=2))
        return

    views.console.print(f"[bold]Changes for day {plan.absolute_day}:[/bold]")
    views.print_diff(payload)
    for problem in payload_validation_errors(payload):
        views.print_warning(problem)


@app.command()
def save(
    store_path: StoreOption = None,
) -> None:
    """
    Send the day's changes and start over from the saved state.
    """
    store = get_store(store_path)
    plan = load_plan_or_exit(store)

    session = EditingSession(FileTransport(store), plan.absolute_day)
    try:
        session.open()
    except (TransportError, ValidationError) as e:
        views.print_error(str(e))
        raise typer.Exit(1)

    for op in store.load_edits():
        result = session.apply(op)
        if not result.ok:
            views.print_error(f"Stored edit was refused: {result.error}")
            raise typer.Exit(1)

    if not session.has_unsaved_changes:
        views.print_info("Nothing to save.")
        return

    problems = payload_validation_errors(session.build_diff())
    if problems:
        for problem in problems:
            views.print_error(problem)
        raise typer.Exit(1)

    try:
        payload = session.save()
    except TransportError as e:
        views.print_error(f"Save failed, your changes were kept: {e}")
        raise typer.Exit(1)

    views.print_diff(payload)
    views.print_success(f"Saved day {payload.absolute_day}.")


@app.command()
def discard(
    yes: YesOption = False,
    store_path: StoreOption = None,
) -> None:
    """
    Throw away all unsaved edits.
    """
    store = get_store(store_path)
    load_plan_or_exit(store)

    if not store.has_edits():
        views.print_info("Nothing to discard.")
        return

    if not yes and not views.confirm_action("Discard all unsaved edits?"):
        views.print_info("Cancelled.")
        raise typer.Exit(0)

    store.clear_edits()
    views.print_success("Edits discarded.")
