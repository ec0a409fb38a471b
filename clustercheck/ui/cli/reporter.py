"""
Console reporter — the scrolling check transcript on stdout.

    Waiting up to 1800 seconds for the subdomain-2048.example.com subdomain to be resolvable...
    (35 seconds) ... PASS
"""

from __future__ import annotations

from pathlib import Path

import click

from clustercheck.core.engine.reporter import Reporter
from clustercheck.core.engine.runner import RunReport
from clustercheck.core.models.check import CheckResult


class ConsoleReporter(Reporter):
    """Writes progress and results with click."""

    def __init__(self, *, verbose: bool = False) -> None:
        self.verbose = verbose
        self._midline = False

    def _newline(self) -> None:
        if self._midline:
            click.echo()
            self._midline = False

    def environment(self, kubeconfig: Path, domain: str) -> None:
        click.echo("To work directly with the instance:")
        click.echo(f"export KUBECONFIG={kubeconfig}")
        click.echo(f"export DOMAIN_NAME={domain}")
        click.echo("Running tests...")

    def note(self, message: str) -> None:
        self._newline()
        click.echo(message)

    def check_started(self, name: str, banner: str) -> None:
        self._newline()
        click.echo(f"{banner}... ", nl=False)
        self._midline = True

    def progress(self, elapsed: float) -> None:
        click.echo(f"\r({int(elapsed)} seconds) ...", nl=False)
        self._midline = True

    def check_finished(self, result: CheckResult) -> None:
        if result.passed:
            click.secho("PASS", fg="green", bold=True)
        else:
            click.secho("FAIL", fg="red", bold=True)
        self._midline = False
        if result.detail and (self.verbose or result.failed):
            click.echo(f"   │ {result.detail}")

    def run_finished(self, report: RunReport) -> None:
        self._newline()
        click.echo()
        color = "green" if report.ok else "red"
        click.secho(
            f"Result: {report.passed}/{len(report.results)} checks passed",
            fg=color,
            bold=True,
        )
        for result in report.results:
            if result.failed:
                click.secho(f"   ✗ {result.name}", fg="red", nl=False)
                click.echo(f"  {result.title}")
