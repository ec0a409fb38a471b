"""
TLS operations — idle connection behavior at the load balancer.
"""

from __future__ import annotations

import logging
import shutil

from clustercheck.core.reliability.guard import GuardResult, run_with_deadline

logger = logging.getLogger(__name__)


def hold_idle_session(host: str, port: int = 443, *, deadline: float = 65.0) -> GuardResult:
    """Open a TLS session to ``host:port``, send nothing, and wait.

    ``-quiet`` makes s_client ignore EOF on stdin, so only the server
    closing the connection ends the process early.

    Raises:
        FileNotFoundError: openssl is not installed.
    """
    if not shutil.which("openssl"):
        raise FileNotFoundError("openssl not available")

    argv = ["openssl", "s_client", "-quiet", "-connect", f"{host}:{port}"]
    result = run_with_deadline(argv, deadline)
    logger.info("Idle TLS session to %s:%d: %s", host, port, result.message)
    return result
