"""
Bounded-duration guard — did a command finish before a deadline?

Used by the idle-connection check: an ``openssl s_client`` session is
held open with nothing to send, and the load balancer is expected to
close it. If the process is still alive at the deadline the guard
terminates it and reports that it did NOT exit in time.

The subprocess is always reaped before ``run_with_deadline`` returns,
so the outcome is exact: COMPLETED means the process exited on its own,
TERMINATED means we stopped it.
"""

from __future__ import annotations

import enum
import logging
import subprocess
import time
from collections.abc import Sequence
from dataclasses import dataclass

logger = logging.getLogger(__name__)

DEFAULT_DEADLINE = 65.0

# Time given to SIGTERM before falling back to SIGKILL
_TERMINATE_GRACE = 5.0


class GuardOutcome(str, enum.Enum):
    COMPLETED = "completed"
    TERMINATED = "terminated"


@dataclass
class GuardResult:
    """What happened to a guarded command."""

    outcome: GuardOutcome
    deadline: float
    elapsed: float
    returncode: int | None = None

    @property
    def ok(self) -> bool:
        """True when the command exited on its own before the deadline."""
        return self.outcome is GuardOutcome.COMPLETED

    @property
    def message(self) -> str:
        secs = f"{self.deadline:g}"
        if self.ok:
            return f"The command exited within {secs} seconds."
        return f"The command did NOT exit within {secs} seconds."

    def to_dict(self) -> dict:
        return {
            "outcome": self.outcome.value,
            "ok": self.ok,
            "deadline": self.deadline,
            "elapsed": round(self.elapsed, 3),
            "returncode": self.returncode,
        }


def run_with_deadline(
    argv: Sequence[str],
    deadline: float = DEFAULT_DEADLINE,
    *,
    env: dict[str, str] | None = None,
) -> GuardResult:
    """Run ``argv`` and classify whether it exits before ``deadline``.

    stdin is an open pipe that is never written to, so interactive
    clients stay connected instead of seeing EOF. stdout and stderr are
    discarded.

    Raises:
        FileNotFoundError: If the executable does not exist.
    """
    logger.debug("Guarding %s with a %.1fs deadline", list(argv), deadline)
    start = time.monotonic()
    proc = subprocess.Popen(
        list(argv),
        stdin=subprocess.PIPE,
        stdout=subprocess.DEVNULL,
        stderr=subprocess.DEVNULL,
        env=env,
    )
    try:
        returncode = proc.wait(timeout=deadline)
    except subprocess.TimeoutExpired:
        _stop(proc)
        elapsed = time.monotonic() - start
        logger.info("Command still running after %.1fs, terminated", elapsed)
        return GuardResult(GuardOutcome.TERMINATED, deadline, elapsed, proc.returncode)
    finally:
        if proc.stdin is not None:
            proc.stdin.close()

    elapsed = time.monotonic() - start
    logger.info("Command exited with %s after %.1fs", returncode, elapsed)
    return GuardResult(GuardOutcome.COMPLETED, deadline, elapsed, returncode)


def _stop(proc: subprocess.Popen) -> None:
    """Terminate, then kill if SIGTERM is ignored. Always reaps."""
    proc.terminate()
    try:
        proc.wait(timeout=_TERMINATE_GRACE)
    except subprocess.TimeoutExpired:
        logger.warning("pid %d ignored SIGTERM, killing", proc.pid)
        proc.kill()
        proc.wait()
