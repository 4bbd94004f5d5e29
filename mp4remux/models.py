"""
Data models for the MP4 remux tool.

A batch is a list of BatchItem objects owned by the orchestrator. Everything
handed to the outside world (listeners, renderers) is a frozen snapshot.
"""

import os
from dataclasses import dataclass
from enum import Enum

from mp4remux.exceptions import InvalidTransitionError


class ItemState(str, Enum):
    """State of one file in a batch.

    Inherits from str for easy JSON serialization.
    """

    PENDING = "pending"  # Waiting to be processed
    CONVERTING = "converting"  # ffmpeg is running on it
    DONE = "done"  # Output written (terminal)
    FAILED = "failed"  # Conversion failed (terminal)

    @property
    def is_terminal(self) -> bool:
        return self in (ItemState.DONE, ItemState.FAILED)


class BatchState(str, Enum):
    """State of the orchestrator as a whole."""

    IDLE = "idle"
    PROBING = "probing"  # Checking that ffmpeg can be invoked
    RUNNING = "running"  # Converting items one at a time
    AWAITING_INSTALL = "awaiting_install"  # ffmpeg missing, waiting for install/retry/decline


class ToolState(str, Enum):
    """Cached result of the last ffmpeg availability probe."""

    UNKNOWN = "unknown"
    AVAILABLE = "available"
    MISSING = "missing"


class BatchOutcome(str, Enum):
    """Aggregate label shown for a batch."""

    CONVERTING = "converting"
    DONE = "done"
    FAILED = "failed"
    COMPLETED_WITH_ERRORS = "completed with errors"


class EventType(str, Enum):
    """Notifications sent to orchestrator listeners."""

    STATE_CHANGED = "state_changed"
    BATCH_STARTED = "batch_started"
    ITEM_STARTED = "item_started"
    ITEM_FINISHED = "item_finished"
    BATCH_FINISHED = "batch_finished"
    BATCH_DISCARDED = "batch_discarded"
    TOOL_MISSING = "tool_missing"
    INSTALL_STARTED = "install_started"
    INSTALL_STATUS = "install_status"
    INSTALL_FAILED = "install_failed"


@dataclass
class BatchItem:
    """One file's journey through conversion."""

    source_path: str
    display_name: str
    state: ItemState = ItemState.PENDING
    output_path: str | None = None  # Only when DONE
    error_detail: str | None = None  # Only when FAILED

    @classmethod
    def from_path(cls, path: str) -> "BatchItem":
        source_path = os.path.abspath(path)
        return cls(source_path=source_path, display_name=os.path.basename(source_path))

    def start(self) -> None:
        if self.state != ItemState.PENDING:
            raise InvalidTransitionError(f"Cannot start {self.display_name}: item is {self.state.value}")
        self.state = ItemState.CONVERTING

    def complete(self, output_path: str) -> None:
        if self.state != ItemState.CONVERTING:
            raise InvalidTransitionError(f"Cannot complete {self.display_name}: item is {self.state.value}")
        self.state = ItemState.DONE
        self.output_path = output_path

    def fail(self, detail: str) -> None:
        if self.state != ItemState.CONVERTING:
            raise InvalidTransitionError(f"Cannot fail {self.display_name}: item is {self.state.value}")
        self.state = ItemState.FAILED
        self.error_detail = detail

    def snapshot(self) -> "ItemSnapshot":
        return ItemSnapshot(
            display_name=self.display_name,
            source_path=self.source_path,
            state=self.state,
            output_path=self.output_path,
            error_detail=self.error_detail,
        )


@dataclass(frozen=True)
class ItemSnapshot:
    """Read-only copy of a BatchItem for rendering."""

    display_name: str
    source_path: str
    state: ItemState
    output_path: str | None = None
    error_detail: str | None = None

    @property
    def output_name(self) -> str | None:
        return os.path.basename(self.output_path) if self.output_path else None

    def format_status_display(self) -> str:
        """Format the item state for a status list.

        Examples: "waiting", "converting...", "→ clip.mp4", "failed: Invalid data found"
        """
        if self.state == ItemState.PENDING:
            return "waiting"
        if self.state == ItemState.CONVERTING:
            return "converting..."
        if self.state == ItemState.DONE:
            return f"→ {self.output_name}"
        return f"failed: {self.error_detail}" if self.error_detail else "failed"


def compute_outcome(state: BatchState, items: tuple[ItemSnapshot, ...]) -> BatchOutcome | None:
    """Derive the aggregate label from the item states.

    Returns None when there is nothing to summarise (no items, or a batch
    that has not started running yet).
    """
    if state == BatchState.RUNNING:
        return BatchOutcome.CONVERTING
    if not items or not all(item.state.is_terminal for item in items):
        return None
    done = sum(1 for item in items if item.state == ItemState.DONE)
    if done == len(items):
        return BatchOutcome.DONE
    if done == 0:
        return BatchOutcome.FAILED
    return BatchOutcome.COMPLETED_WITH_ERRORS


@dataclass(frozen=True)
class BatchSnapshot:
    """Read-only view of the orchestrator: batch state, items and progress."""

    state: BatchState
    items: tuple[ItemSnapshot, ...] = ()

    @property
    def total(self) -> int:
        return len(self.items)

    @property
    def done_count(self) -> int:
        return sum(1 for item in self.items if item.state == ItemState.DONE)

    @property
    def failed_count(self) -> int:
        return sum(1 for item in self.items if item.state == ItemState.FAILED)

    @property
    def terminal_count(self) -> int:
        return self.done_count + self.failed_count

    @property
    def progress_ratio(self) -> float:
        if not self.items:
            return 0.0
        return self.terminal_count / self.total

    @property
    def outcome(self) -> BatchOutcome | None:
        return compute_outcome(self.state, self.items)

    def format_header(self) -> str:
        """Header line like "converting 2/5" or "completed with errors 5/5"."""
        label = self.outcome.value if self.outcome else self.state.value.replace("_", " ")
        return f"{label} {self.terminal_count}/{self.total}"


@dataclass(frozen=True)
class BatchEvent:
    """A notification from the orchestrator."""

    kind: EventType
    snapshot: BatchSnapshot
    message: str | None = None  # Install status text, tool diagnostics
    item: ItemSnapshot | None = None  # The item for ITEM_STARTED / ITEM_FINISHED
