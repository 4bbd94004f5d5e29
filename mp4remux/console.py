# mp4remux/console.py
"""
Console front end: renders orchestrator events and asks the user how to
recover when ffmpeg is missing.
"""

import logging
import sys
from typing import Callable, TextIO

from mp4remux.conversion_engine.orchestrator import BatchOrchestrator
from mp4remux.models import BatchEvent, BatchState, EventType, ItemState

logger = logging.getLogger(__name__)

# Exit codes
EXIT_OK = 0
EXIT_FAILURES = 1
EXIT_TOOL_UNAVAILABLE = 2

RECOVERY_PROMPT = "[i]nstall automatically, [m]anual instructions, [r]etry, [q]uit: "
RECOVERY_CHOICES = {"i": "install", "m": "manual", "r": "retry", "q": "quit"}


class ConsoleSession:
    """Drives one BatchOrchestrator from a terminal."""

    def __init__(self, orchestrator: BatchOrchestrator, assume_yes: bool = False,
                 input_func: Callable[[str], str] = input, out: TextIO | None = None):
        self.orchestrator = orchestrator
        self.assume_yes = assume_yes
        self.input_func = input_func
        self.out = out or sys.stdout
        self._auto_install_tried = False
        orchestrator.add_listener(self.handle_event)

    def _print(self, text: str = "") -> None:
        print(text, file=self.out, flush=True)

    # --- Rendering ---

    def handle_event(self, event: BatchEvent) -> None:
        """Dispatch orchestrator events to the matching render function."""
        handler_map = {
            EventType.BATCH_STARTED: self._on_batch_started,
            EventType.ITEM_STARTED: self._on_item_changed,
            EventType.ITEM_FINISHED: self._on_item_changed,
            EventType.BATCH_FINISHED: self._on_batch_finished,
            EventType.TOOL_MISSING: self._on_tool_missing,
            EventType.INSTALL_STARTED: lambda e: self._print("Installing ffmpeg, this can take several minutes..."),
            EventType.INSTALL_STATUS: lambda e: self._print(f"  {e.message}"),
            EventType.INSTALL_FAILED: lambda e: self._print(f"install failed: {e.message}"),
        }
        handler = handler_map.get(event.kind)
        if handler:
            handler(event)

    def _on_batch_started(self, event: BatchEvent) -> None:
        self._print(event.snapshot.format_header())
        for item in event.snapshot.items:
            self._print(f"  {item.display_name}  {item.format_status_display()}")

    def _on_item_changed(self, event: BatchEvent) -> None:
        item = event.item
        line = f"  {item.display_name}  {item.format_status_display()}"
        if item.state.is_terminal:
            line += f"  [{event.snapshot.terminal_count}/{event.snapshot.total}]"
        self._print(line)

    def _on_batch_finished(self, event: BatchEvent) -> None:
        self._print(event.snapshot.format_header())

    def _on_tool_missing(self, event: BatchEvent) -> None:
        self._print("ffmpeg is required to convert videos, but it was not found on this system.")

    # --- Recovery ---

    def _ask_recovery(self) -> str:
        if self.assume_yes:
            if not self._auto_install_tried:
                self._auto_install_tried = True
                return "install"
            return "manual"
        while True:
            try:
                answer = self.input_func(RECOVERY_PROMPT).strip().lower()
            except EOFError:
                return "quit"
            choice = RECOVERY_CHOICES.get(answer[:1])
            if choice:
                return choice
            self._print("Please answer i, m, r or q.")

    def _ask_retry_after_manual(self) -> bool:
        if self.assume_yes:
            return False
        try:
            answer = self.input_func("Press Enter to retry once ffmpeg is installed, or q to quit: ")
        except EOFError:
            return False
        return not answer.strip().lower().startswith("q")

    def run(self, paths: list[str]) -> int:
        """Convert ``paths`` and return a process exit code."""
        self.orchestrator.submit_batch(paths)

        while self.orchestrator.state == BatchState.AWAITING_INSTALL:
            choice = self._ask_recovery()
            logger.info(f"Recovery choice: {choice}")
            if choice == "install":
                self.orchestrator.install()
            elif choice == "retry":
                self.orchestrator.retry()
            elif choice == "manual":
                self._print(self.orchestrator.show_manual_instructions())
                if self._ask_retry_after_manual():
                    self.orchestrator.retry()
            else:
                self.orchestrator.decline_install()

        return self.exit_code()

    def exit_code(self) -> int:
        snapshot = self.orchestrator.snapshot()
        if not snapshot.items:
            return EXIT_TOOL_UNAVAILABLE
        return EXIT_OK if snapshot.failed_count == 0 else EXIT_FAILURES

    def last_output_path(self) -> str | None:
        """Output of the last file converted successfully, if any."""
        snapshot = self.orchestrator.snapshot()
        done = [item.output_path for item in snapshot.items if item.state == ItemState.DONE]
        return done[-1] if done else None
