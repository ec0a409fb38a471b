"""
Check result model — the outcome contract between checks and the runner.

Checks return a CheckResult; the runner folds them into a RunReport.
A check that cannot observe its signal (command missing, timeout,
unexpected output) still returns a result. It is the runner's job to
turn unexpected exceptions into failed results too, so one broken
check never stops the run.
"""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Any, Literal

from pydantic import BaseModel, Field


def _now_iso() -> str:
    """Current UTC time as ISO string."""
    return datetime.now(UTC).isoformat()


CheckStatus = Literal["passed", "failed"]


class CheckResult(BaseModel):
    """Outcome of one check."""

    name: str                         # registry name, e.g. "dns"
    title: str = ""                   # human-readable label
    status: CheckStatus = "passed"

    started_at: str = Field(default_factory=_now_iso)
    ended_at: str = Field(default_factory=_now_iso)
    elapsed_s: float = 0.0

    detail: str = ""                  # why it passed / failed
    metadata: dict[str, Any] = Field(default_factory=dict)

    @property
    def passed(self) -> bool:
        return self.status == "passed"

    @property
    def failed(self) -> bool:
        return self.status == "failed"

    @classmethod
    def success(cls, name: str, detail: str = "", **kwargs: Any) -> CheckResult:
        """Create a passing result."""
        return cls(name=name, status="passed", detail=detail, **kwargs)

    @classmethod
    def failure(cls, name: str, detail: str, **kwargs: Any) -> CheckResult:
        """Create a failing result."""
        return cls(name=name, status="failed", detail=detail, **kwargs)
