"""
Polling — wait for an external system to converge.

DNS propagation, ingress readiness and pod scheduling are all eventually
consistent. Checks on them share one loop: evaluate a predicate, sleep,
repeat, until it matches or a deadline passes.

A predicate that raises (kubectl hiccup, connection reset) is treated
exactly like one that returned False. Only the deadline decides failure.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from dataclasses import dataclass

logger = logging.getLogger(__name__)


@dataclass
class PollOutcome:
    """Result of a polling run."""

    matched: bool
    attempts: int = 0
    elapsed: float = 0.0
    last_error: Exception | None = None

    def describe(self, what: str) -> str:
        if self.matched:
            return f"{what} after {self.elapsed:.0f}s ({self.attempts} attempts)"
        msg = f"{what} not observed within {self.elapsed:.0f}s ({self.attempts} attempts)"
        if self.last_error is not None:
            msg += f"; last error: {self.last_error}"
        return msg


def poll_until(
    predicate: Callable[[], bool],
    timeout: float,
    interval: float = 5.0,
    *,
    description: str = "condition",
    on_progress: Callable[[float], None] | None = None,
    clock: Callable[[], float] = time.monotonic,
    sleep: Callable[[float], None] = time.sleep,
) -> PollOutcome:
    """Poll ``predicate`` until it returns True or ``timeout`` elapses.

    The predicate is always evaluated at least once, and once more after
    the final sleep that reaches the deadline.

    Args:
        predicate: Callable returning True when the condition holds.
        timeout: Maximum wait in seconds.
        interval: Sleep between attempts in seconds.
        description: What is being waited for (logs only).
        on_progress: Called with elapsed seconds after every sleep.
        clock: Monotonic time source (injectable for tests).
        sleep: Sleep function (injectable for tests).

    Returns:
        PollOutcome with ``matched`` set when the predicate held.
    """
    start = clock()
    attempts = 0
    last_error: Exception | None = None

    while True:
        attempts += 1
        try:
            if predicate():
                elapsed = clock() - start
                logger.debug("%s matched on attempt %d (%.1fs)", description, attempts, elapsed)
                return PollOutcome(True, attempts, elapsed, last_error)
        except Exception as e:  # noqa: BLE001 — any failure means "not yet"
            last_error = e
            logger.debug("%s attempt %d raised: %s", description, attempts, e)

        elapsed = clock() - start
        if elapsed >= timeout:
            logger.info(
                "Gave up waiting for %s after %.1fs (%d attempts)",
                description, elapsed, attempts,
            )
            return PollOutcome(False, attempts, elapsed, last_error)

        sleep(min(interval, timeout - elapsed))
        if on_progress is not None:
            on_progress(clock() - start)
