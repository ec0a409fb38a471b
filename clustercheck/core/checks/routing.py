"""
Routing checks — ingress, DNS automation and TLS termination.

All of them exercise the app fixture published at
``https://<subdomain>.<domain>``.
"""

from __future__ import annotations

import logging
from functools import partial

from clustercheck.core.checks.base import CheckContext
from clustercheck.core.models.check import CheckResult
from clustercheck.core.services.dns_ops import dnssec_validated, has_cname, resolver_available
from clustercheck.core.services.http_ops import page_contains
from clustercheck.core.services.tls_ops import hold_idle_session

logger = logging.getLogger(__name__)


def check_dns(ctx: CheckContext) -> CheckResult:
    """The test subdomain becomes resolvable as a CNAME.

    external-dns creates the record from the Ingress host; propagation
    through Route 53 and downstream resolvers can take a long time,
    hence the 30 minute default.
    """
    host = ctx.test_host
    if not resolver_available("nslookup"):
        return CheckResult.failure("dns", "nslookup not available", metadata={"host": host})

    outcome = ctx.poll(partial(has_cname, host), ctx.settings.dns_timeout, f"CNAME for {host}")

    detail = outcome.describe(f"CNAME for {host}")
    meta = {"host": host, "attempts": outcome.attempts}
    if outcome.matched:
        return CheckResult.success("dns", detail, metadata=meta)
    return CheckResult.failure("dns", detail, metadata=meta)


def check_https(ctx: CheckContext) -> CheckResult:
    """The ingress serves the app over verified HTTPS."""
    url = ctx.test_url
    needle = ctx.settings.expected_title
    fetch = partial(page_contains, url, needle, timeout=ctx.settings.http_request_timeout)
    outcome = ctx.poll(fetch, ctx.settings.https_timeout, f"{needle} at {url}")

    detail = outcome.describe(f"{needle} at {url}")
    meta = {"url": url, "attempts": outcome.attempts}
    if outcome.matched:
        return CheckResult.success("https", detail, metadata=meta)
    return CheckResult.failure("https", detail, metadata=meta)


def check_idle_timeout(ctx: CheckContext) -> CheckResult:
    """An idle TLS connection is closed by the server within the deadline.

    The load balancer is configured with a 60 second idle timeout; the
    guard allows a few seconds of slack on top.
    """
    try:
        result = hold_idle_session(ctx.test_host, deadline=ctx.settings.idle_deadline)
    except FileNotFoundError as e:
        return CheckResult.failure("idle-timeout", str(e))

    meta = result.to_dict()
    if not result.ok:
        return CheckResult.failure("idle-timeout", result.message, metadata=meta)

    # Refused, unresolvable or failed handshakes exit non-zero right away
    window = ctx.settings.idle_window
    if result.returncode and result.elapsed < window:
        detail = (
            f"openssl exited with code {result.returncode} after {result.elapsed:.1f}s, "
            f"before the {window:g}s idle window; no idle session was held"
        )
        return CheckResult.failure("idle-timeout", detail, metadata=meta)
    return CheckResult.success("idle-timeout", result.message, metadata=meta)


def check_dnssec(ctx: CheckContext) -> CheckResult:
    """The DNSSEC chain of trust for the domain validates.

    Off by default: the result depends on whether the resolvers between
    here and the zone pass DNSSEC records through.
    """
    domain = ctx.binding.domain_name
    if not resolver_available("delv"):
        return CheckResult.failure("dnssec", "delv not available")

    outcome = ctx.poll(
        partial(dnssec_validated, domain),
        ctx.settings.dnssec_timeout,
        f"DNSSEC validation of {domain}",
    )
    detail = outcome.describe(f"fully validated DNSSEC chain for {domain}")
    if outcome.matched:
        return CheckResult.success("dnssec", detail)
    return CheckResult.failure("dnssec", detail)
