"""
Volume and network-policy checks — both run against the volume fixture pod.
"""

from __future__ import annotations

import logging
from functools import partial

from clustercheck.core.checks.base import CheckContext
from clustercheck.core.models.check import CheckResult
from clustercheck.core.services.kube_cluster import pod_exec, pod_phase, pod_ready
from clustercheck.core.services.kube_common import KubectlError

logger = logging.getLogger(__name__)

EGRESS_BLOCKED_MARKER = "100% packet loss"


def check_volume_ready(ctx: CheckContext) -> CheckResult:
    """The PVC-backed pod becomes Ready, proving dynamic provisioning works."""
    pod = ctx.volume_pod
    outcome = ctx.poll(
        partial(pod_ready, ctx.client, pod),
        ctx.settings.pod_ready_timeout,
        f"pod {pod} Ready",
    )

    if not outcome.matched:
        phase = pod_phase(ctx.client, pod) or "unknown"
        detail = outcome.describe(f"pod {pod} Ready") + f"; phase {phase}"
        return CheckResult.failure("volume-ready", detail, metadata={"phase": phase})

    # Give the container time to write its marker file
    if ctx.settings.pod_settle_delay:
        ctx.sleep(ctx.settings.pod_settle_delay)
    return CheckResult.success("volume-ready", outcome.describe(f"pod {pod} Ready"))


def check_volume_read(ctx: CheckContext) -> CheckResult:
    """The pod can read back the file it wrote onto the volume."""
    pod = ctx.volume_pod
    path = ctx.settings.volume_file
    marker = ctx.settings.volume_marker
    try:
        result = pod_exec(ctx.client, pod, ["cat", path], timeout=ctx.settings.exec_timeout)
    except KubectlError as e:
        return CheckResult.failure("volume-read", str(e))

    if marker in result.stdout:
        return CheckResult.success("volume-read", f"{path} contains {marker!r}")

    reason = result.stderr.strip() or f"{path} does not contain {marker!r}"
    return CheckResult.failure("volume-read", reason, metadata={"returncode": result.returncode})


def check_egress(ctx: CheckContext) -> CheckResult:
    """The pod cannot reach the internet.

    Polarity is inverted on purpose: total packet loss is the PASS
    condition, any reply means the default-deny egress policy leaks.
    """
    pod = ctx.volume_pod
    target = ctx.settings.egress_target
    count = ctx.settings.egress_packets
    try:
        result = pod_exec(
            ctx.client, pod, ["sh", "-c", f"ping -c {count} {target}"],
            timeout=ctx.settings.exec_timeout,
        )
    except KubectlError as e:
        return CheckResult.failure("egress", str(e))

    # ping exits non-zero on total loss; only the summary line matters
    output = result.stdout
    meta = {"target": target, "returncode": result.returncode}
    if EGRESS_BLOCKED_MARKER in output:
        detail = f"no reply from {target} ({EGRESS_BLOCKED_MARKER})"
        return CheckResult.success("egress", detail, metadata=meta)

    summary = next((line for line in output.splitlines() if "packet loss" in line), "")
    reason = summary.strip() or result.stderr.strip() or "no ping summary in output"
    return CheckResult.failure("egress", f"egress to {target} not blocked: {reason}", metadata=meta)
