"""
Check registry — every acceptance check, in execution order.

Order matters only for fixtures and credentials: routing checks share
the app fixture, volume/egress checks share the volume pod, and the
admin-phase checks run last because they need different credentials.
"""

from __future__ import annotations

from collections.abc import Iterable

from clustercheck.core.checks.base import CheckContext, CheckSpec
from clustercheck.core.checks.compliance import check_cis
from clustercheck.core.checks.routing import (
    check_dns,
    check_dnssec,
    check_https,
    check_idle_timeout,
)
from clustercheck.core.checks.volume import (
    check_egress,
    check_volume_read,
    check_volume_ready,
)
from clustercheck.core.config.loader import ConfigError

CHECKS: tuple[CheckSpec, ...] = (
    CheckSpec(
        name="dns",
        summary="DNS resolution of the test subdomain",
        phase="binding",
        fixture="app",
        func=check_dns,
        banner="Waiting up to {s.dns_timeout:g} seconds for the {host} subdomain to be resolvable",
    ),
    CheckSpec(
        name="https",
        summary="HTTPS content fetch through the ingress",
        phase="binding",
        fixture="app",
        func=check_https,
        banner=(
            "Waiting up to {s.https_timeout:g} seconds for the ingress to respond "
            "with the expected content via SSL"
        ),
    ),
    CheckSpec(
        name="idle-timeout",
        summary="Idle TLS connections are closed after 60s",
        phase="binding",
        fixture="app",
        func=check_idle_timeout,
        banner="Testing that connections are closed after {s.idle_window:g}s of inactivity",
    ),
    CheckSpec(
        name="dnssec",
        summary="DNSSEC chain of trust validates",
        phase="binding",
        func=check_dnssec,
        banner="Waiting up to {s.dnssec_timeout:g} seconds for the DNSSEC chain-of-trust to be validated",
        default=False,
    ),
    CheckSpec(
        name="volume-ready",
        summary="Volume-backed pod becomes ready",
        phase="binding",
        fixture="volume",
        func=check_volume_ready,
        banner="Waiting up to {s.pod_ready_timeout:g} seconds for pod {pod} to start",
    ),
    CheckSpec(
        name="volume-read",
        summary="Pod reads back the file it wrote to its volume",
        phase="binding",
        fixture="volume",
        func=check_volume_read,
        banner="Verify pod can read back what it wrote to its volume",
    ),
    CheckSpec(
        name="egress",
        summary="Pod has no internet egress",
        phase="binding",
        fixture="volume",
        func=check_egress,
        banner="Verify pod cannot reach {s.egress_target}",
    ),
    CheckSpec(
        name="cis",
        summary="Node passes the CIS benchmark",
        phase="admin",
        func=check_cis,
        banner="Verify the last node has zero failing CIS benchmark tests",
    ),
)

CHECK_NAMES: tuple[str, ...] = tuple(c.name for c in CHECKS)


def get_check(name: str) -> CheckSpec:
    """Look up a check by name.

    Raises:
        ConfigError: Unknown name.
    """
    for spec in CHECKS:
        if spec.name == name:
            return spec
    raise ConfigError(f"Unknown check '{name}' (known: {', '.join(CHECK_NAMES)})")


def select_checks(
    only: Iterable[str] = (),
    skip: Iterable[str] = (),
    enable: Iterable[str] = (),
) -> list[CheckSpec]:
    """Resolve CLI selection flags into an ordered list of checks.

    ``only`` replaces the default set, ``enable`` adds opt-in checks to
    it, ``skip`` removes from whatever remains. Registry order is kept.

    Raises:
        ConfigError: Any name is unknown, or nothing is left to run.
    """
    only, skip, enable = set(only), set(skip), set(enable)
    for name in only | skip | enable:
        get_check(name)

    if only:
        chosen = {n for n in CHECK_NAMES if n in only}
    else:
        chosen = {c.name for c in CHECKS if c.default} | enable
    chosen -= skip

    selected = [c for c in CHECKS if c.name in chosen]
    if not selected:
        raise ConfigError("No checks selected")
    return selected


__all__ = [
    "CHECKS",
    "CHECK_NAMES",
    "CheckContext",
    "CheckSpec",
    "get_check",
    "select_checks",
]
