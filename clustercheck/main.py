"""
clustercheck — CLI entrypoint.

Usage:
    clustercheck run BINDING.json
    clustercheck run BINDING.json --only dns --only https
    clustercheck list
    python -m clustercheck.main --help

``run`` exits 0 if every selected check passed, 1 otherwise.
"""

from __future__ import annotations

import json
import sys
from pathlib import Path
from typing import NoReturn

import click

from clustercheck import __version__
from clustercheck.core.observability.logging_config import configure_from_flags

_RUN_USAGE = "Usage: clustercheck run BINDING.json"


@click.group()
@click.version_option(version=__version__, prog_name="clustercheck")
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose output.")
@click.option("--quiet", "-q", is_flag=True, help="Suppress non-essential output.")
@click.option("--debug", is_flag=True, help="Enable debug logging (very verbose).")
@click.pass_context
def cli(ctx: click.Context, verbose: bool, quiet: bool, debug: bool) -> None:
    """Acceptance checks for a broker-provisioned Kubernetes cluster."""
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    ctx.obj["quiet"] = quiet
    ctx.obj["debug"] = debug

    configure_from_flags(debug=debug, verbose=verbose, quiet=quiet)


@cli.command()
@click.argument("binding", required=False, type=click.Path(dir_okay=False, path_type=Path))
@click.option("--only", "only", multiple=True, metavar="NAME", help="Run only these checks.")
@click.option("--skip", "skip", multiple=True, metavar="NAME", help="Skip these checks.")
@click.option("--enable", "enable", multiple=True, metavar="NAME", help="Also run opt-in checks.")
@click.option(
    "--settings",
    "settings_path",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="YAML file overriding timeouts and fixture settings.",
)
@click.option("--keep-fixtures", is_flag=True, help="Leave test fixtures running afterwards.")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def run(
    ctx: click.Context,
    binding: Path | None,
    only: tuple[str, ...],
    skip: tuple[str, ...],
    enable: tuple[str, ...],
    settings_path: Path | None,
    keep_fixtures: bool,
    as_json: bool,
) -> None:
    """Run the acceptance checks against the cluster in BINDING.json.

    Examples:

        clustercheck run binding.json

        clustercheck run binding.json --skip cis --keep-fixtures

        clustercheck run binding.json --enable dnssec
    """
    from clustercheck.core.checks import select_checks
    from clustercheck.core.config.loader import ConfigError, load_binding
    from clustercheck.core.config.settings import load_settings
    from clustercheck.core.engine.reporter import Reporter
    from clustercheck.core.engine.runner import SetupError, run_checks
    from clustercheck.ui.cli.reporter import ConsoleReporter

    if binding is None:
        click.echo(_RUN_USAGE)
        sys.exit(1)

    try:
        binding_model = load_binding(binding)
        settings = load_settings(settings_path)
        checks = select_checks(only=only, skip=skip, enable=enable)
    except ConfigError as e:
        _fail(str(e), as_json)

    if keep_fixtures:
        settings = settings.model_copy(update={"teardown_fixtures": False})

    reporter = Reporter() if as_json else ConsoleReporter(verbose=ctx.obj.get("verbose", False))

    try:
        report = run_checks(binding_model, settings, checks, reporter)
    except SetupError as e:
        _fail(str(e), as_json)

    if as_json:
        click.echo(json.dumps(report.to_dict(), indent=2))

    sys.exit(report.exit_code)


@cli.command("list")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
def list_checks(as_json: bool) -> None:
    """List the available checks in execution order."""
    from clustercheck.core.checks import CHECKS

    if as_json:
        click.echo(json.dumps([
            {
                "name": c.name,
                "summary": c.summary,
                "phase": c.phase,
                "fixture": c.fixture,
                "default": c.default,
            }
            for c in CHECKS
        ], indent=2))
        return

    click.secho("\n🔎 Checks (in execution order):", fg="cyan", bold=True)
    for c in CHECKS:
        marker = "" if c.default else " (opt-in: --enable)"
        admin = " [admin]" if c.phase == "admin" else ""
        click.echo(f"   • {c.name:<14} {c.summary}{admin}{marker}")
    click.echo()


def _fail(message: str, as_json: bool) -> NoReturn:
    """Report a setup/config error and exit 1."""
    if as_json:
        click.echo(json.dumps({"error": message, "exit_code": 1}, indent=2))
    else:
        click.secho(f"❌ {message}", fg="red")
    sys.exit(1)


# ── Register sub-commands from clustercheck/ui/cli/ ───────────────

from clustercheck.ui.cli.guard import guard  # noqa: E402

cli.add_command(guard)


if __name__ == "__main__":
    cli()
