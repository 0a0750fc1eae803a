"""
One editing session over a day plan, and the transport it saves through.

The session is owned by a single editor.  Each user action is one engine
operation applied synchronously; load and save are the only calls that go
through the transport.
"""

from typing import Protocol

from loguru import logger

from ..io.serializers import diff_payload_to_dict, snapshot_to_day_plan
from .config import EngineSettings
from .diff import DiffPayload, build_diff
from .engine.operations import Operation, OperationResult, apply_operation, reset_all
from .engine.config_loader import get_settings
from .models import DayPlan


class TransportError(Exception):
    """Raised when loading or saving a day fails."""

    pass


class DayPlanTransport(Protocol):
    """Where day snapshots come from and diffs go to."""

    def load_day(self, absolute_day: int) -> dict:
        """Return the server snapshot dict for a day."""
        ...

    def save_day(self, absolute_day: int, payload: dict) -> None:
        """Send a diff payload dict; raise TransportError on failure."""
        ...


class EditingSession:
    """
    Holds the day plan being edited plus the snapshot it started from.

    After a successful save the plan is re-fetched, so all delta tracking
    starts over from the server's state.  A failed save leaves the plan as
    it was so the user can retry.
    """

    def __init__(
        self,
        transport: DayPlanTransport,
        absolute_day: int,
        settings: EngineSettings | None = None,
    ):
        self.transport = transport
        self.absolute_day = absolute_day
        self.settings = settings or get_settings()
        self._snapshot: DayPlan | None = None
        self._plan: DayPlan | None = None

    @property
    def plan(self) -> DayPlan:
        if self._plan is None:
            raise RuntimeError("Session not opened. Call open() first.")
        return self._plan

    @property
    def has_unsaved_changes(self) -> bool:
        return self._plan is not None and self._plan != self._snapshot

    def open(self) -> DayPlan:
        """Load the day from the transport and start a fresh session."""
        data = self.transport.load_day(self.absolute_day)
        self._snapshot = snapshot_to_day_plan(data)
        self._plan = self._snapshot
        logger.info(
            f"[SESSION] Opened day {self.absolute_day} ({self._snapshot.routine_name}, "
            f"{len(self._snapshot.exercises)} exercises)"
        )
        return self._plan

    def apply(self, op: Operation) -> OperationResult:
        """Run one engine operation; the plan only changes if it succeeds."""
        result = apply_operation(self.plan, op, self.settings)
        if result.ok:
            self._plan = result.plan
        return result

    def reset(self) -> OperationResult:
        result = reset_all(self.plan)
        self._plan = result.plan
        return result

    def build_diff(self) -> DiffPayload:
        return build_diff(
            self.plan, extra_sets_note_template=self.settings.extra_sets_note_template
        )

    def save(self) -> DiffPayload:
        """
        Send the current diff and reload the day.

        The diff is built from the plan as it is when save() is called.

        Raises:
            TransportError: If the transport rejects the save (plan kept)
        """
        payload = self.build_diff()
        try:
            self.transport.save_day(self.absolute_day, diff_payload_to_dict(payload))
        except TransportError as e:
            logger.warning(f"[SESSION] Save failed for day {self.absolute_day}: {e}")
            raise

        logger.info(f"[SESSION] Saved day {self.absolute_day}; reloading snapshot")
        self.open()
        return payload

    def discard(self) -> DayPlan:
        """Throw away local edits."""
        if self._snapshot is None:
            raise RuntimeError("Session not opened. Call open() first.")
        self._plan = self._snapshot
        return self._plan
