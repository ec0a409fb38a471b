"""
Test runner — sequence the checks and aggregate their results.

Flow:
    binding kubeconfig → [fixtures → binding-phase checks → teardown]
        → admin kubeconfig → admin-phase checks → report

Every check runs regardless of earlier failures; the run fails if any
check failed. Setup problems (kubectl missing, a fixture that will not
apply, no admin credentials) abort the run with ``SetupError``.
Credentials files and fixtures are scoped with context managers, so
they are released on every exit path.
"""

from __future__ import annotations

import logging
import time
from contextlib import ExitStack
from dataclasses import dataclass, field
from datetime import UTC, datetime

from clustercheck.core.checks.base import CheckContext, CheckSpec
from clustercheck.core.config.settings import RunSettings
from clustercheck.core.engine.reporter import Reporter
from clustercheck.core.models.binding import Binding
from clustercheck.core.models.check import CheckResult
from clustercheck.core.services.aws_ops import AwsCliError, admin_kubeconfig
from clustercheck.core.services.fixtures import app_fixture, deployed, pod_name, volume_fixture
from clustercheck.core.services.kube_cluster import cluster_name
from clustercheck.core.services.kube_common import (
    KubeClient,
    KubectlError,
    _kubectl_available,
    kubeconfig_file,
)

logger = logging.getLogger(__name__)


class SetupError(Exception):
    """Raised when the run cannot proceed at all."""


@dataclass
class RunReport:
    """Results of one acceptance run, in execution order."""

    domain: str = ""
    started_at: str = field(default_factory=lambda: datetime.now(UTC).isoformat())
    ended_at: str = ""
    results: list[CheckResult] = field(default_factory=list)

    def add(self, result: CheckResult) -> None:
        self.results.append(result)

    @property
    def passed(self) -> int:
        return sum(1 for r in self.results if r.passed)

    @property
    def failed(self) -> int:
        return sum(1 for r in self.results if r.failed)

    @property
    def ok(self) -> bool:
        return self.failed == 0

    @property
    def exit_code(self) -> int:
        return 0 if self.ok else 1

    def to_dict(self) -> dict:
        return {
            "domain": self.domain,
            "status": "passed" if self.ok else "failed",
            "exit_code": self.exit_code,
            "started_at": self.started_at,
            "ended_at": self.ended_at,
            "total": len(self.results),
            "passed": self.passed,
            "failed": self.failed,
            "results": [r.model_dump(mode="json") for r in self.results],
        }


def run_checks(
    binding: Binding,
    settings: RunSettings,
    checks: list[CheckSpec],
    reporter: Reporter | None = None,
) -> RunReport:
    """Run ``checks`` against the cluster described by ``binding``.

    Args:
        binding: Validated credentials bundle.
        settings: Timeouts and fixture parameters.
        checks: Checks to run, already in registry order.
        reporter: Progress sink (silent if None).

    Returns:
        RunReport with one result per check.

    Raises:
        SetupError: kubectl missing, fixture apply failed, or admin
            credentials could not be obtained.
    """
    reporter = reporter or Reporter()
    report = RunReport(domain=binding.domain_name)

    binding_checks = [c for c in checks if c.phase == "binding"]
    admin_checks = [c for c in checks if c.phase == "admin"]

    kubectl = _kubectl_available()
    if not kubectl.get("available"):
        raise SetupError("kubectl not available")
    logger.info("Using kubectl %s", kubectl.get("version"))

    with kubeconfig_file(binding.kubeconfig, label="binding") as kubeconfig:
        client = KubeClient(kubeconfig, namespace=settings.namespace)
        reporter.environment(kubeconfig, binding.domain_name)

        if binding_checks:
            _run_binding_phase(client, binding, settings, binding_checks, reporter, report)

        name = ""
        if admin_checks:
            try:
                name = cluster_name(client)
            except KubectlError as e:
                raise SetupError(f"Cannot determine cluster name: {e}") from e

    if admin_checks:
        _run_admin_phase(name, binding, settings, admin_checks, reporter, report)

    report.ended_at = datetime.now(UTC).isoformat()
    reporter.run_finished(report)
    logger.info("Run finished: %d passed, %d failed", report.passed, report.failed)
    return report


def _run_binding_phase(
    client: KubeClient,
    binding: Binding,
    settings: RunSettings,
    checks: list[CheckSpec],
    reporter: Reporter,
    report: RunReport,
) -> None:
    """Checks that run with the binding's own credentials.

    Fixtures are deployed lazily, right before the first check that
    needs them, and torn down when the phase ends.
    """
    ctx = CheckContext(client=client, binding=binding, settings=settings, reporter=reporter)
    teardown = settings.teardown_fixtures

    with ExitStack() as fixtures:
        deployed_fixtures: set[str] = set()
        for spec in checks:
            if spec.fixture and spec.fixture not in deployed_fixtures:
                if spec.fixture == "app":
                    documents = app_fixture(settings, ctx.test_host)
                else:
                    documents = volume_fixture()
                    ctx.volume_pod = pod_name(documents) or ctx.volume_pod
                reporter.note(f"Deploying the {spec.fixture} fixture...")
                try:
                    fixtures.enter_context(deployed(client, documents, teardown=teardown))
                except KubectlError as e:
                    raise SetupError(f"Cannot deploy the {spec.fixture} fixture: {e}") from e
                deployed_fixtures.add(spec.fixture)
                if spec.fixture == "app":
                    reporter.note(f"You can try the fixture yourself by visiting:\n{ctx.test_url}")

            report.add(_run_one(spec, ctx, reporter))

        if deployed_fixtures:
            if teardown:
                reporter.note("Removing test fixtures...")
            else:
                reporter.note("Leaving test fixtures in place (--keep-fixtures).")


def _run_admin_phase(
    name: str,
    binding: Binding,
    settings: RunSettings,
    checks: list[CheckSpec],
    reporter: Reporter,
    report: RunReport,
) -> None:
    """Checks that need the admin kubeconfig minted from AWS credentials."""
    reporter.note(f"Obtaining admin credentials for cluster {name}...")
    try:
        with admin_kubeconfig(name) as admin_path:
            client = KubeClient(admin_path, namespace=settings.namespace)
            ctx = CheckContext(client=client, binding=binding, settings=settings, reporter=reporter)
            for spec in checks:
                report.add(_run_one(spec, ctx, reporter))
    except AwsCliError as e:
        raise SetupError(f"Cannot obtain admin kubeconfig for {name}: {e}") from e


def _run_one(spec: CheckSpec, ctx: CheckContext, reporter: Reporter) -> CheckResult:
    """Run a single check; an unexpected exception becomes a failed result."""
    started_at = datetime.now(UTC).isoformat()
    reporter.check_started(spec.name, spec.render_banner(ctx))
    start = time.monotonic()

    try:
        result = spec.func(ctx)
    except Exception as e:  # noqa: BLE001
        logger.debug("Check %s raised", spec.name, exc_info=True)
        result = CheckResult.failure(spec.name, f"{type(e).__name__}: {e}")

    result = result.model_copy(update={
        "name": spec.name,
        "title": result.title or spec.summary,
        "started_at": started_at,
        "ended_at": datetime.now(UTC).isoformat(),
        "elapsed_s": round(time.monotonic() - start, 3),
    })
    logger.info("Check %s %s: %s", spec.name, result.status, result.detail)
    reporter.check_finished(result)
    return result

