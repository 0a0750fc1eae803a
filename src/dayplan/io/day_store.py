"""
File-based working directory for one day-plan editing session.

Layout of the store directory:
    snapshot.json   server snapshot the session started from
    edits.jsonl     one engine operation per line, replayed on load
    outbox.jsonl    saved diff payloads, one per line (the local "server")
    workouts.jsonl  completed-workout records, one per line
"""

import json
from pathlib import Path

from loguru import logger

from ..core.config import EngineSettings
from ..core.engine.operations import Operation, apply_operation
from ..core.models import DayPlan
from ..core.session import TransportError
from .serializers import (
    ValidationError,
    json_line_to_operation,
    operation_to_json_line,
    snapshot_to_day_plan,
)


class DayPlanStore:
    """
    Manages the snapshot and edit journal of a day-plan session.

    The edit journal holds only operations that succeeded when they were
    applied, so replaying it onto the snapshot reproduces the session.
    """

    def __init__(self, store_dir: str | Path):
        """
        Initialize the store.

        Args:
            store_dir: Directory holding the session files listed above
        """
        self.store_dir = Path(store_dir)
        self.snapshot_path = self.store_dir / "snapshot.json"
        self.edits_path = self.store_dir / "edits.jsonl"
        self.outbox_path = self.store_dir / "outbox.jsonl"
        self.workouts_path = self.store_dir / "workouts.jsonl"

    def exists(self) -> bool:
        """Check if a snapshot has been loaded into the store."""
        return self.snapshot_path.exists()

    def init(self, snapshot: dict) -> DayPlan:
        """
        Start a new session from a snapshot dict.

        Validates the snapshot, writes it and clears any previous edits.

        Raises:
            ValidationError: If the snapshot is invalid
        """
        plan = snapshot_to_day_plan(snapshot)
        self.store_dir.mkdir(parents=True, exist_ok=True)
        with open(self.snapshot_path, "w") as f:
            json.dump(snapshot, f, indent=2)
        self.clear_edits()
        return plan

    def load_snapshot_dict(self) -> dict:
        """
        Raises:
            FileNotFoundError: If no snapshot has been loaded
            ValidationError: If the file is not valid JSON
        """
        if not self.snapshot_path.exists():
            raise FileNotFoundError(
                f"Snapshot not found: {self.snapshot_path}. Run 'init' first."
            )
        try:
            with open(self.snapshot_path, "r") as f:
                return json.load(f)
        except json.JSONDecodeError as e:
            raise ValidationError(f"Invalid snapshot file {self.snapshot_path}: {e}") from e

    def load_snapshot(self) -> DayPlan:
        return snapshot_to_day_plan(self.load_snapshot_dict())

    def load_edits(self) -> list[Operation]:
        """
        Load all journaled operations in order.

        Raises:
            ValidationError: If a line cannot be parsed
        """
        if not self.edits_path.exists():
            return []

        ops: list[Operation] = []
        with open(self.edits_path, "r") as f:
            for line_num, line in enumerate(f, 1):
                line = line.strip()
                if not line:
                    continue
                try:
                    ops.append(json_line_to_operation(line))
                except ValidationError as e:
                    raise ValidationError(
                        f"Error parsing line {line_num} in {self.edits_path}: {e}"
                    ) from e
        return ops

    def load_plan(self, settings: EngineSettings | None = None) -> DayPlan:
        """
        Rebuild the current plan: snapshot plus every journaled edit.

        Raises:
            FileNotFoundError: If no snapshot has been loaded
            ValidationError: If the journal no longer applies to the snapshot
        """
        plan = self.load_snapshot()
        for i, op in enumerate(self.load_edits(), 1):
            try:
                result = apply_operation(plan, op, settings)
            except IndexError as e:
                raise ValidationError(f"Edit {i} in {self.edits_path} does not apply: {e}") from e
            if not result.ok:
                raise ValidationError(
                    f"Edit {i} in {self.edits_path} was refused on replay: {result.error}"
                )
            plan = result.plan
        return plan

    def append_edit(self, op: Operation) -> None:
        """Journal an operation that has been applied successfully."""
        self.store_dir.mkdir(parents=True, exist_ok=True)
        with open(self.edits_path, "a") as f:
            f.write(operation_to_json_line(op) + "\n")

    def has_edits(self) -> bool:
        return self.edits_path.exists() and self.edits_path.stat().st_size > 0

    def clear_edits(self) -> None:
        if self.edits_path.exists():
            self.edits_path.write_text("")

    def append_outbox(self, payload: dict) -> None:
        self.store_dir.mkdir(parents=True, exist_ok=True)
        with open(self.outbox_path, "a") as f:
            f.write(json.dumps(payload, separators=(",", ":")) + "\n")

    def load_outbox(self) -> list[dict]:
        if not self.outbox_path.exists():
            return []
        with open(self.outbox_path, "r") as f:
            return [json.loads(line) for line in f if line.strip()]

    def append_workout(self, record: dict) -> None:
        """Append a completed-workout record."""
        self.store_dir.mkdir(parents=True, exist_ok=True)
        with open(self.workouts_path, "a") as f:
            f.write(json.dumps(record, separators=(",", ":")) + "\n")
        logger.info(f"[STORE] Recorded workout for day {record.get('absoluteDay')} in {self.workouts_path}")

    def load_workouts(self) -> list[dict]:
        if not self.workouts_path.exists():
            return []
        with open(self.workouts_path, "r") as f:
            return [json.loads(line) for line in f if line.strip()]


class FileTransport:
    """
    DayPlanTransport backed by a DayPlanStore.

    Loading returns the stored snapshot; saving appends the payload to the
    outbox and clears the edit journal.
    """

    def __init__(self, store: DayPlanStore):
        self.store = store

    def load_day(self, absolute_day: int) -> dict:
        try:
            data = self.store.load_snapshot_dict()
        except (FileNotFoundError, ValidationError) as e:
            raise TransportError(str(e)) from e
        if data.get("absoluteDay") != absolute_day:
            raise TransportError(
                f"Stored snapshot is for day {data.get('absoluteDay')}, not day {absolute_day}"
            )
        return data

    def save_day(self, absolute_day: int, payload: dict) -> None:
        if payload.get("absoluteDay") != absolute_day:
            raise TransportError(f"Payload is for day {payload.get('absoluteDay')}, not day {absolute_day}")
        try:
            self.store.append_outbox(payload)
        except OSError as e:
            raise TransportError(f"Could not write {self.store.outbox_path}: {e}") from e
        self.store.clear_edits()
        logger.info(f"[STORE] Wrote payload for day {absolute_day} to {self.store.outbox_path}")


def get_default_store_path() -> Path:
    """Default store directory: <dayplan home>/session."""
    from ..core.engine.config_loader import get_dayplan_home

    return get_dayplan_home() / "session"
