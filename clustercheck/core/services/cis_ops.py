"""
CIS benchmark reports — kube-bench results published as custom resources.

Each node gets a ``CISKubeBenchReport`` named after it, shaped like:

    {"report": {"sections": [{"tests": [{"fail": 0, "pass": 12, ...}, ...]}, ...]}}

Counts may come back as strings depending on the operator version.
"""

from __future__ import annotations

import logging

from clustercheck.core.services.kube_common import KubeClient

logger = logging.getLogger(__name__)

REPORT_KIND = "ciskubebenchreport"


class EmptyReportError(ValueError):
    """The report carries no test results to count."""


def fetch_report(client: KubeClient, node: str) -> dict:
    """The CIS report for ``node``.

    Raises:
        KubectlError: No report for that node, or the CRD is missing.
    """
    return client.get_json("get", REPORT_KIND, node, namespaced=False)


def count_failures(report: dict) -> int:
    """Sum of ``fail`` across every test group in every section.

    Raises:
        EmptyReportError: No section holds any test group (kube-bench
            has not published yet, or the report shape changed).
        ValueError: A ``fail`` value is not a number.
    """
    sections = (report.get("report") or {}).get("sections") or []
    total = 0
    groups = 0
    for section in sections:
        for test in section.get("tests") or []:
            total += int(test.get("fail", 0))
            groups += 1
    if not groups:
        raise EmptyReportError("report has no test results")
    return total


def failing_sections(report: dict) -> list[str]:
    """``<id> <text>`` of the sections with at least one failure."""
    out: list[str] = []
    for section in (report.get("report") or {}).get("sections") or []:
        fails = sum(int(t.get("fail", 0)) for t in section.get("tests") or [])
        if fails:
            label = " ".join(str(section.get(k, "")) for k in ("id", "text")).strip()
            out.append(f"{label or '?'} ({fails})")
    return out
