"""
Check plumbing — what a check receives and how it is registered.

A check is a plain function ``(CheckContext) -> CheckResult``. It gets
the cluster handle, binding and settings explicitly; there is no global
state to read.
"""

from __future__ import annotations

import time
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Literal

from clustercheck.core.config.settings import RunSettings
from clustercheck.core.engine.reporter import Reporter
from clustercheck.core.models.binding import Binding
from clustercheck.core.models.check import CheckResult
from clustercheck.core.reliability.polling import PollOutcome, poll_until
from clustercheck.core.services.kube_common import KubeClient

Phase = Literal["binding", "admin"]
Fixture = Literal["app", "volume"]


@dataclass
class CheckContext:
    """Everything a check needs to observe the cluster."""

    client: KubeClient
    binding: Binding
    settings: RunSettings
    reporter: Reporter = field(default_factory=Reporter)
    volume_pod: str = "ebs-app"
    clock: Callable[[], float] = time.monotonic
    sleep: Callable[[float], None] = time.sleep

    @property
    def test_host(self) -> str:
        return self.binding.test_host(self.settings.subdomain)

    @property
    def test_url(self) -> str:
        return f"https://{self.test_host}"

    def poll(
        self,
        predicate: Callable[[], bool],
        timeout: float,
        description: str,
    ) -> PollOutcome:
        """``poll_until`` with the run's interval, clock and progress reporting."""
        return poll_until(
            predicate,
            timeout,
            self.settings.poll_interval,
            description=description,
            on_progress=self.reporter.progress,
            clock=self.clock,
            sleep=self.sleep,
        )


@dataclass(frozen=True)
class CheckSpec:
    """A registered check.

    ``banner`` is a ``str.format`` template rendered against the
    context (``host``, ``url``, ``domain``, ``pod``, ``s`` for settings).
    """

    name: str
    summary: str
    phase: Phase
    func: Callable[[CheckContext], CheckResult]
    banner: str = ""
    fixture: Fixture | None = None
    default: bool = True

    def render_banner(self, ctx: CheckContext) -> str:
        if not self.banner:
            return self.summary
        return self.banner.format(
            host=ctx.test_host,
            url=ctx.test_url,
            domain=ctx.binding.domain_name,
            pod=ctx.volume_pod,
            s=ctx.settings,
        )
