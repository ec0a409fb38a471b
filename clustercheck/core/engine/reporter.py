"""
Reporter — how the runner tells the outside world what is happening.

The base class is silent; the CLI provides a console implementation.
Checks only ever talk to the reporter through their CheckContext.
"""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from clustercheck.core.engine.runner import RunReport
    from clustercheck.core.models.check import CheckResult


class Reporter:
    """No-op reporter. Subclass and override what you need."""

    def environment(self, kubeconfig: Path, domain: str) -> None:
        """The binding kubeconfig and domain are ready for manual use."""

    def note(self, message: str) -> None:
        """Free-form information for the operator."""

    def check_started(self, name: str, banner: str) -> None:
        """A check begins; ``banner`` says what it waits for."""

    def progress(self, elapsed: float) -> None:
        """A polling check is still waiting."""

    def check_finished(self, result: CheckResult) -> None:
        """A check produced its result."""

    def run_finished(self, report: RunReport) -> None:
        """All checks are done."""


class RecordingReporter(Reporter):
    """Keeps every event in memory. Used by tests and ``--json`` runs."""

    def __init__(self) -> None:
        self.events: list[tuple[str, object]] = []

    def environment(self, kubeconfig: Path, domain: str) -> None:
        self.events.append(("environment", (str(kubeconfig), domain)))

    def note(self, message: str) -> None:
        self.events.append(("note", message))

    def check_started(self, name: str, banner: str) -> None:
        self.events.append(("started", name))

    def progress(self, elapsed: float) -> None:
        self.events.append(("progress", elapsed))

    def check_finished(self, result: CheckResult) -> None:
        self.events.append(("finished", result.name))

    def run_finished(self, report: RunReport) -> None:
        self.events.append(("done", report.exit_code))

    def of(self, kind: str) -> list[object]:
        return [payload for k, payload in self.events if k == kind]
