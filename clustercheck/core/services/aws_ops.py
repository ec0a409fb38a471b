"""
AWS operations — admin credentials for the cluster.

The binding's kubeconfig is scoped to what the broker hands out, which
is not enough to read node-level resources. The broker's own AWS
credentials (ambient in the environment) can mint an admin kubeconfig
with ``aws eks update-kubeconfig``.
"""

from __future__ import annotations

import logging
import shutil
import subprocess
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path

from clustercheck.core.services.kube_common import kubeconfig_file

logger = logging.getLogger(__name__)


class AwsCliError(Exception):
    """Raised when the aws CLI cannot produce an admin kubeconfig."""


def update_kubeconfig(cluster_name: str, kubeconfig: Path, *, timeout: int = 120) -> None:
    """Write an admin kubeconfig for ``cluster_name`` to ``kubeconfig``.

    Raises:
        AwsCliError: aws missing, timed out, or returned non-zero.
    """
    if not shutil.which("aws"):
        raise AwsCliError("aws CLI not available")

    try:
        result = subprocess.run(
            ["aws", "eks", "update-kubeconfig",
             "--kubeconfig", str(kubeconfig),
             "--name", cluster_name],
            capture_output=True, text=True, timeout=timeout,
        )
    except subprocess.TimeoutExpired as e:
        raise AwsCliError(f"aws eks update-kubeconfig timed out after {timeout}s") from e

    if result.returncode != 0:
        raise AwsCliError(
            result.stderr.strip() or f"aws eks update-kubeconfig exited {result.returncode}"
        )
    logger.info("%s", result.stdout.strip())


@contextmanager
def admin_kubeconfig(cluster_name: str) -> Iterator[Path]:
    """Admin kubeconfig for ``cluster_name``, removed when the block exits."""
    with kubeconfig_file(label="admin") as path:
        update_kubeconfig(cluster_name, path)
        yield path
