"""Shared fakes and fixtures for the test suite.

The orchestrator only talks to its collaborators through probe(), install()
and convert(), so the fakes below script those calls and record them.
"""

from __future__ import annotations

import logging
import os
import sys

import pytest

from mp4remux.conversion_engine.orchestrator import BatchOrchestrator
from mp4remux.exceptions import ConversionError, InstallError
from mp4remux.models import BatchEvent, ToolState

logging.basicConfig(
    level=logging.DEBUG,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    stream=sys.stderr,
    force=True,
)


class ScriptedChecker:
    """Returns the scripted probe results in order, repeating the last one."""

    def __init__(self, *results: bool):
        self.results = list(results) or [True]
        self.calls = 0
        self.state = ToolState.UNKNOWN

    def probe(self) -> bool:
        index = min(self.calls, len(self.results) - 1)
        self.calls += 1
        available = self.results[index]
        self.state = ToolState.AVAILABLE if available else ToolState.MISSING
        return available


class FakeInstaller:
    """Fails the first ``fail_times`` installs, then succeeds."""

    def __init__(self, fail_times: int = 0, error: str = "package manager failed"):
        self.fail_times = fail_times
        self.error = error
        self.calls = 0

    def install(self, status_callback=None) -> None:
        self.calls += 1
        if status_callback:
            status_callback("downloading ffmpeg")
        if self.calls <= self.fail_times:
            raise InstallError(self.error)

    def manual_instructions(self) -> str:
        return "Install ffmpeg with your package manager."


class RecordingConverter:
    """Records invocation order; fails files whose base name is in ``failures``."""

    def __init__(self, failures: dict[str, str] | None = None):
        self.failures = failures or {}
        self.calls: list[str] = []

    def convert(self, input_path: str) -> str:
        self.calls.append(os.path.basename(input_path))
        detail = self.failures.get(os.path.basename(input_path))
        if detail is not None:
            raise ConversionError(detail)
        return os.path.splitext(input_path)[0] + ".mp4"


class EventRecorder:
    def __init__(self):
        self.events: list[BatchEvent] = []

    def __call__(self, event: BatchEvent) -> None:
        self.events.append(event)

    def kinds(self):
        return [event.kind for event in self.events]

    def of(self, kind):
        return [event for event in self.events if event.kind == kind]


@pytest.fixture
def checker():
    return ScriptedChecker(True)


@pytest.fixture
def installer():
    return FakeInstaller()


@pytest.fixture
def converter():
    return RecordingConverter()


@pytest.fixture
def recorder():
    return EventRecorder()


@pytest.fixture
def make_orchestrator(recorder):
    """Build an orchestrator from fakes with the event recorder attached."""

    def _make(checker=None, installer=None, converter=None):
        orchestrator = BatchOrchestrator(
            checker=checker or ScriptedChecker(True),
            installer=installer or FakeInstaller(),
            converter=converter or RecordingConverter(),
        )
        orchestrator.add_listener(recorder)
        return orchestrator

    return _make
