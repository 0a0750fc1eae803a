"""Shared Typer app object, shared option types, and store utilities."""

import sys
from pathlib import Path
from typing import Annotated, Optional

import typer
from loguru import logger

from ..core.engine.operations import Operation, apply_operation
from ..core.models import DayPlan
from ..io.day_store import DayPlanStore, get_default_store_path
from ..io.serializers import ValidationError
from . import views

# Shared --store option type used across all commands
StoreOption = Annotated[
    Optional[Path],
    typer.Option("--store", "-p", help="Session directory (default: ~/.dayplan/session)"),
]

# Shared --yes option for commands that ask before discarding work
YesOption = Annotated[
    bool,
    typer.Option("--yes", "-y", help="Do not ask for confirmation"),
]

app = typer.Typer(
    name="dayplan",
    help="Customize one day of a macrocycle training plan and build the diff to save.",
    no_args_is_help=True,
)


def _setup_logging(debug: bool = False) -> None:
    """Send engine logs to stderr; debug shows every operation."""
    logger.remove()
    logger.add(
        sys.stderr,
        format="<level>{level: <8}</level> | <level>{message}</level>",
        level="DEBUG" if debug else "WARNING",
    )


@app.callback()
def main_callback(
    debug: Annotated[
        bool,
        typer.Option("--debug", help="Log engine operations to stderr"),
    ] = False,
) -> None:
    """
    Customize one day of a macrocycle training plan.
    """
    _setup_logging(debug)


def get_store(store_path: Path | None) -> DayPlanStore:
    """Get the session store from path or default location."""
    if store_path is None:
        store_path = get_default_store_path()
    return DayPlanStore(store_path)


def load_plan_or_exit(store: DayPlanStore) -> DayPlan:
    """Rebuild the current plan, printing the problem and exiting on failure."""
    if not store.exists():
        views.print_error(f"No day loaded in {store.store_dir}")
        views.print_info("Run 'init --snapshot FILE' first.")
        raise typer.Exit(1)
    try:
        return store.load_plan()
    except (FileNotFoundError, ValidationError) as e:
        views.print_error(str(e))
        raise typer.Exit(1)


def run_operation(store: DayPlanStore, op: Operation) -> DayPlan:
    """
    Apply one operation to the stored session and journal it.

    Exits with code 1 (nothing journaled) if the engine refuses it or an
    index is out of range.
    """
    plan = load_plan_or_exit(store)
    try:
        result = apply_operation(plan, op)
    except IndexError as e:
        views.print_error(str(e))
        raise typer.Exit(1)

    if not result.ok:
        views.print_error(str(result.error))
        raise typer.Exit(1)

    store.append_edit(op)
    return result.plan
