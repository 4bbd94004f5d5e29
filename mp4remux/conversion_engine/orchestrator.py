# mp4remux/conversion_engine/orchestrator.py
"""
Batch orchestration: availability check, install recovery and sequential
conversion of one batch of files.

The orchestrator runs on the caller's thread. Every state change is reported
to listeners as a BatchEvent carrying a read-only snapshot; other threads may
call snapshot() at any time.
"""

import logging
import os
import threading
from typing import Callable

from mp4remux.exceptions import (
    BatchActiveError,
    ConversionError,
    InstallError,
    InvalidStateError,
    ProbeError,
)
from mp4remux.models import (
    BatchEvent,
    BatchItem,
    BatchSnapshot,
    BatchState,
    EventType,
    ItemSnapshot,
    ItemState,
    ToolState,
)
from mp4remux.privacy import anonymize_filename

logger = logging.getLogger(__name__)

Listener = Callable[[BatchEvent], None]


class BatchOrchestrator:
    """Drives one batch at a time through probe -> (install) -> convert.

    Batch states: IDLE -> PROBING -> RUNNING -> IDLE, or
    PROBING -> AWAITING_INSTALL when ffmpeg is missing. From AWAITING_INSTALL
    the batch resumes through install() or retry() (both re-probe first), or is
    discarded by decline_install() / show_manual_instructions().

    Args:
        checker: object with ``probe() -> bool`` and a ``state`` ToolState
        installer: object with ``install(status_callback)`` raising InstallError
            and ``manual_instructions() -> str``
        converter: object with ``convert(input_path) -> str`` raising ConversionError
    """

    def __init__(self, checker, installer, converter):
        self._checker = checker
        self._installer = installer
        self._converter = converter

        self._lock = threading.RLock()
        self._listeners: list[Listener] = []

        self._state = BatchState.IDLE
        self._items: list[BatchItem] = []
        self._submitted_paths: tuple[str, ...] = ()
        self._retry_paths: tuple[str, ...] = ()  # Kept after decline so retry() can re-queue
        self._installing = False

    # --- Listeners ---

    def add_listener(self, listener: Listener) -> None:
        with self._lock:
            self._listeners.append(listener)

    def remove_listener(self, listener: Listener) -> None:
        with self._lock:
            if listener in self._listeners:
                self._listeners.remove(listener)

    def _emit(self, kind: EventType, message: str | None = None, item: BatchItem | None = None) -> None:
        with self._lock:
            event = BatchEvent(
                kind=kind,
                snapshot=self._snapshot_locked(),
                message=message,
                item=item.snapshot() if item else None,
            )
            listeners = list(self._listeners)
        for listener in listeners:
            try:
                listener(event)
            except Exception:
                logger.exception(f"Error in listener for event '{kind.value}'")

    # --- Queries ---

    @property
    def state(self) -> BatchState:
        return self._state

    @property
    def tool_state(self) -> ToolState:
        return getattr(self._checker, "state", ToolState.UNKNOWN)

    @property
    def can_retry(self) -> bool:
        with self._lock:
            if self._state == BatchState.AWAITING_INSTALL:
                return not self._installing
            return self._state == BatchState.IDLE and bool(self._retry_paths)

    def snapshot(self) -> BatchSnapshot:
        """Read-only copy of the batch: state, items, progress ratio and outcome label."""
        with self._lock:
            return self._snapshot_locked()

    def _snapshot_locked(self) -> BatchSnapshot:
        items: tuple[ItemSnapshot, ...] = tuple(item.snapshot() for item in self._items)
        return BatchSnapshot(state=self._state, items=items)

    def _set_state(self, state: BatchState) -> None:
        logger.debug(f"Batch state {self._state.value} -> {state.value}")
        self._state = state

    # --- Entry points ---

    def submit_batch(self, paths: list[str]) -> BatchSnapshot:
        """Start a new batch.

        Probes ffmpeg once. If it is available every file is converted before
        this returns; otherwise the batch waits in AWAITING_INSTALL.

        Raises:
            BatchActiveError: if a batch is already active.
            ValueError: if ``paths`` is empty.
            ProbeError: if the availability probe could not run at all.
        """
        source_paths = tuple(os.path.abspath(os.fspath(path)) for path in paths)
        if not source_paths:
            raise ValueError("No files submitted")

        with self._lock:
            if self._state != BatchState.IDLE:
                raise BatchActiveError(f"Cannot submit a batch while {self._state.value}")
            self._start_batch_locked(source_paths)
            self._retry_paths = ()

        logger.info(f"Batch submitted with {len(source_paths)} file(s)")
        self._emit(EventType.STATE_CHANGED)
        return self._probe_and_run()

    def retry(self) -> BatchSnapshot:
        """Re-probe and, if ffmpeg is now available, run the original paths from scratch.

        Valid while AWAITING_INSTALL, or from IDLE after the batch was declined.
        """
        with self._lock:
            if self._state == BatchState.AWAITING_INSTALL and not self._installing:
                paths = self._submitted_paths
            elif self._state == BatchState.IDLE and self._retry_paths:
                paths = self._retry_paths
                self._retry_paths = ()
            else:
                raise InvalidStateError(f"Nothing to retry while {self._state.value}")
            self._start_batch_locked(paths)

        logger.info(f"Retrying batch of {len(paths)} file(s)")
        self._emit(EventType.STATE_CHANGED)
        return self._probe_and_run()

    def install(self, status_callback: Callable[[str], None] | None = None) -> bool:
        """Install ffmpeg, then re-probe and resume the paused batch.

        Status text from the installer is forwarded as INSTALL_STATUS events
        (and to ``status_callback`` if given). On failure the batch stays in
        AWAITING_INSTALL and an INSTALL_FAILED event carries the reason.

        Returns:
            True if the installer reported success, False if it failed.
        """
        with self._lock:
            if self._state != BatchState.AWAITING_INSTALL:
                raise InvalidStateError(f"Install is only offered while awaiting install, not {self._state.value}")
            if self._installing:
                raise BatchActiveError("An install is already in progress")
            self._installing = True

        def report(text: str) -> None:
            logger.info(f"Install status: {text}")
            if status_callback:
                status_callback(text)
            self._emit(EventType.INSTALL_STATUS, message=text)

        self._emit(EventType.INSTALL_STARTED)
        try:
            self._installer.install(report)
        except InstallError as e:
            logger.error(f"ffmpeg install failed: {e.message}")
            with self._lock:
                self._installing = False
            self._emit(EventType.INSTALL_FAILED, message=e.message)
            return False
        except BaseException:
            with self._lock:
                self._installing = False
            raise

        with self._lock:
            self._installing = False
            # Installer success does not prove ffmpeg runs
            self._start_batch_locked(self._submitted_paths)

        logger.info("Installer reported success, re-probing ffmpeg")
        self._emit(EventType.STATE_CHANGED)
        self._probe_and_run()
        return True

    def decline_install(self) -> None:
        """Discard the paused batch. retry() afterwards re-queues the same paths."""
        with self._lock:
            if self._state != BatchState.AWAITING_INSTALL or self._installing:
                raise InvalidStateError(f"Cannot decline install while {self._state.value}")
            self._retry_paths = self._submitted_paths
            self._discard_locked()

        logger.info("ffmpeg install declined, batch discarded")
        self._emit(EventType.BATCH_DISCARDED)

    def show_manual_instructions(self) -> str:
        """Discard the paused batch and return manual install instructions."""
        self.decline_install()
        return self._installer.manual_instructions()

    # --- Internals ---

    def _start_batch_locked(self, paths: tuple[str, ...]) -> None:
        # Every (re)start begins from fresh PENDING items
        self._submitted_paths = paths
        self._items = [BatchItem.from_path(path) for path in paths]
        self._set_state(BatchState.PROBING)

    def _discard_locked(self) -> None:
        self._items = []
        self._submitted_paths = ()
        self._set_state(BatchState.IDLE)

    def _probe_and_run(self) -> BatchSnapshot:
        try:
            available = self._checker.probe()
        except ProbeError:
            logger.exception("ffmpeg availability probe failed, discarding batch")
            with self._lock:
                self._retry_paths = self._submitted_paths
                self._discard_locked()
            self._emit(EventType.BATCH_DISCARDED)
            raise

        if not available:
            with self._lock:
                self._set_state(BatchState.AWAITING_INSTALL)
            logger.warning("ffmpeg is not available, waiting for install")
            self._emit(EventType.TOOL_MISSING)
            return self.snapshot()

        self._run_batch()
        return self.snapshot()

    def _run_batch(self) -> None:
        with self._lock:
            self._set_state(BatchState.RUNNING)
            items = list(self._items)
        logger.info(f"Converting {len(items)} file(s)")
        self._emit(EventType.BATCH_STARTED)

        try:
            self._convert_items(items)
        except BaseException:
            self._abort_batch(items)
            raise

        with self._lock:
            self._set_state(BatchState.IDLE)
            summary = self._snapshot_locked()
        logger.info(
            f"Batch finished: {summary.outcome.value if summary.outcome else 'empty'} "
            f"({summary.done_count} done, {summary.failed_count} failed)"
        )
        self._emit(EventType.BATCH_FINISHED)

    def _convert_items(self, items: list[BatchItem]) -> None:
        for index, item in enumerate(items, start=1):
            with self._lock:
                item.start()
            logger.info(f"Converting file {index}/{len(items)}: {anonymize_filename(item.source_path)}")
            self._emit(EventType.ITEM_STARTED, item=item)

            try:
                output_path = self._converter.convert(item.source_path)
            except ConversionError as e:
                logger.warning(f"Conversion failed for {anonymize_filename(item.source_path)}: {e.message}")
                with self._lock:
                    item.fail(e.message)
            except Exception as e:
                logger.exception(f"Unexpected error converting {anonymize_filename(item.source_path)}")
                with self._lock:
                    item.fail(str(e) or type(e).__name__)
            else:
                with self._lock:
                    item.complete(output_path)

            self._emit(EventType.ITEM_FINISHED, item=item)

    def _abort_batch(self, items: list[BatchItem]) -> None:
        # Interrupted mid-batch: nothing may stay CONVERTING
        with self._lock:
            for item in items:
                if item.state == ItemState.CONVERTING:
                    item.fail("Conversion interrupted")
            self._set_state(BatchState.IDLE)
        logger.warning("Batch interrupted before all files were converted")
        self._emit(EventType.STATE_CHANGED)
