"""
Kubectl shared helpers — the single subprocess seam for the cluster.

Imported by every module that talks to the cluster. Must NOT import
from sibling services to avoid circular imports.

There is no process-wide KUBECONFIG. Each call goes through a
``KubeClient`` that carries its own kubeconfig path and passes it to
kubectl through the child's environment, so the binding credentials
and the admin credentials can never be confused.
"""

from __future__ import annotations

import json
import logging
import os
import subprocess
import tempfile
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path

logger = logging.getLogger(__name__)


class KubectlError(Exception):
    """Raised when a kubectl call that must succeed does not."""

    def __init__(self, args: tuple[str, ...], message: str, returncode: int | None = None):
        self.kubectl_args = args
        self.returncode = returncode
        super().__init__(f"kubectl {' '.join(args)}: {message}")


# ═══════════════════════════════════════════════════════════════════
#  Low-level runner
# ═══════════════════════════════════════════════════════════════════


def _run_kubectl(
    *args: str,
    kubeconfig: Path | None = None,
    timeout: int = 15,
    input: str | None = None,
) -> subprocess.CompletedProcess[str]:
    """Run a kubectl command and return the result."""
    env = None
    if kubeconfig is not None:
        env = {**os.environ, "KUBECONFIG": str(kubeconfig)}
    return subprocess.run(
        ["kubectl", *args],
        capture_output=True,
        text=True,
        timeout=timeout,
        input=input,
        env=env,
    )


def _kubectl_available() -> dict:
    """Check if kubectl is installed.

    Uses ``kubectl version --client -o json`` (the ``--short`` flag
    was removed in kubectl v1.28+).
    """
    try:
        result = _run_kubectl("version", "--client", "-o", "json")
        if result.returncode == 0:
            try:
                data = json.loads(result.stdout)
                version = data.get("clientVersion", {}).get("gitVersion", "")
            except (ValueError, AttributeError):
                version = result.stdout.strip()
            return {"available": True, "version": version}
    except (FileNotFoundError, subprocess.TimeoutExpired):
        pass

    return {"available": False, "version": None}


# ═══════════════════════════════════════════════════════════════════
#  Client handle
# ═══════════════════════════════════════════════════════════════════


@dataclass(frozen=True)
class KubeClient:
    """A kubeconfig + namespace pair that every cluster call goes through."""

    kubeconfig: Path
    namespace: str = "default"

    def run(
        self,
        *args: str,
        timeout: int = 15,
        input: str | None = None,
        namespaced: bool = True,
    ) -> subprocess.CompletedProcess[str]:
        """Run kubectl and return the raw result, whatever the exit code."""
        full = list(args)
        if namespaced:
            # Flags after "--" belong to the exec'd command
            at = full.index("--") if "--" in full else len(full)
            full[at:at] = ["-n", self.namespace]
        logger.debug("kubectl %s", " ".join(full))
        return _run_kubectl(*full, kubeconfig=self.kubeconfig, timeout=timeout, input=input)

    def check(
        self,
        *args: str,
        timeout: int = 15,
        input: str | None = None,
        namespaced: bool = True,
    ) -> str:
        """Run kubectl and return stdout, raising on any failure.

        Raises:
            KubectlError: Non-zero exit, timeout, or kubectl missing.
        """
        try:
            result = self.run(*args, timeout=timeout, input=input, namespaced=namespaced)
        except subprocess.TimeoutExpired as e:
            raise KubectlError(args, f"timed out after {timeout}s") from e
        except FileNotFoundError as e:
            raise KubectlError(args, "kubectl not found on PATH") from e

        if result.returncode != 0:
            message = result.stderr.strip() or f"exited with code {result.returncode}"
            raise KubectlError(args, message, result.returncode)
        return result.stdout

    def get_json(self, *args: str, timeout: int = 15, namespaced: bool = True) -> dict:
        """``kubectl <args> -o json`` decoded."""
        out = self.check(*args, "-o", "json", timeout=timeout, namespaced=namespaced)
        try:
            data = json.loads(out)
        except json.JSONDecodeError as e:
            raise KubectlError(args, f"unparseable JSON output: {e}") from e
        if not isinstance(data, dict):
            raise KubectlError(args, f"expected a JSON object, got {type(data).__name__}")
        return data


# ═══════════════════════════════════════════════════════════════════
#  Scoped kubeconfig files
# ═══════════════════════════════════════════════════════════════════


@contextmanager
def kubeconfig_file(content: str = "", *, label: str = "binding") -> Iterator[Path]:
    """Materialize a kubeconfig into a private temp file for the block.

    The file is created mode 0600 and removed on every exit path.
    With empty ``content`` the file is left empty for a tool such as
    ``aws eks update-kubeconfig`` to fill in.
    """
    fd, name = tempfile.mkstemp(prefix=f"clustercheck-{label}-", suffix=".kubeconfig")
    path = Path(name)
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(content)
        os.chmod(path, 0o600)
        logger.debug("Wrote %s kubeconfig to %s", label, path)
        yield path
    finally:
        path.unlink(missing_ok=True)
        logger.debug("Removed %s kubeconfig %s", label, path)
