"""
CLI command for the bounded-duration guard.

Thin wrapper over ``clustercheck.core.reliability.guard``; handy for
trying a deadline by hand:

    clustercheck guard --deadline 65 -- openssl s_client -quiet -connect host:443
"""

from __future__ import annotations

import json
import sys

import click

from clustercheck.core.reliability.guard import DEFAULT_DEADLINE, run_with_deadline


@click.command("guard", context_settings={"ignore_unknown_options": True})
@click.option(
    "--deadline",
    type=float,
    default=DEFAULT_DEADLINE,
    show_default=True,
    help="Seconds the command may run.",
)
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.argument("command", nargs=-1, required=True, type=click.UNPROCESSED)
def guard(deadline: float, as_json: bool, command: tuple[str, ...]) -> None:
    """Report whether COMMAND exits within the deadline (exit 0) or not (exit 1)."""
    try:
        result = run_with_deadline(list(command), deadline)
    except FileNotFoundError as e:
        click.secho(f"❌ {e}", fg="red")
        sys.exit(1)

    if as_json:
        click.echo(json.dumps(result.to_dict(), indent=2))
    else:
        click.echo(result.message)

    sys.exit(0 if result.ok else 1)
