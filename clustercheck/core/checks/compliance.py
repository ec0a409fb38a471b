"""
Compliance checks — node hardening per the CIS EKS benchmark.
"""

from __future__ import annotations

from clustercheck.core.checks.base import CheckContext
from clustercheck.core.models.check import CheckResult
from clustercheck.core.services.cis_ops import (
    EmptyReportError,
    count_failures,
    failing_sections,
    fetch_report,
)
from clustercheck.core.services.kube_cluster import last_node_name
from clustercheck.core.services.kube_common import KubectlError


def check_cis(ctx: CheckContext) -> CheckResult:
    """The last node's kube-bench report has zero failing tests."""
    try:
        node = last_node_name(ctx.client)
        report = fetch_report(ctx.client, node)
    except KubectlError as e:
        return CheckResult.failure("cis", str(e))

    try:
        fails = count_failures(report)
    except EmptyReportError:
        return CheckResult.failure("cis", f"empty report for {node}", metadata={"node": node})
    except (TypeError, ValueError) as e:
        detail = f"unreadable report for {node}: {e}"
        return CheckResult.failure("cis", detail, metadata={"node": node})

    meta = {"node": node, "fail": fails}
    if fails == 0:
        return CheckResult.success("cis", f"{node}: 0 failing CIS tests", metadata=meta)

    sections = failing_sections(report)
    meta["sections"] = sections
    detail = f"{node}: {fails} failing CIS tests in {', '.join(sections)}"
    return CheckResult.failure("cis", detail, metadata=meta)
