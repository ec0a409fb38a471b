"""
Cluster operations — online kubectl interactions used by the checks.

Mutations (apply / delete) and setup lookups raise ``KubectlError``.
Observations that a check pattern-matches (exec output) return the raw
result so the check decides what a non-zero exit means.
"""

from __future__ import annotations

import logging
import subprocess

import yaml

from clustercheck.core.services.kube_common import KubeClient, KubectlError

logger = logging.getLogger(__name__)


# ═══════════════════════════════════════════════════════════════════
#  Act: apply / delete
# ═══════════════════════════════════════════════════════════════════


def apply_manifest(client: KubeClient, documents: list[dict], *, timeout: int = 60) -> str:
    """Pipe resource dicts to ``kubectl apply -f -``.

    Returns:
        kubectl's summary lines (``deployment.apps/x created`` …).
    """
    body = yaml.safe_dump_all(documents, sort_keys=False)
    out = client.check("apply", "-f", "-", input=body, timeout=timeout)
    for line in out.strip().splitlines():
        logger.info("%s", line)
    return out.strip()


def delete_manifest(client: KubeClient, documents: list[dict], *, timeout: int = 120) -> str:
    """Delete the resources described by ``documents``; missing ones are fine."""
    body = yaml.safe_dump_all(documents, sort_keys=False)
    out = client.check(
        "delete", "-f", "-", "--ignore-not-found", "--wait=false",
        input=body, timeout=timeout,
    )
    for line in out.strip().splitlines():
        logger.info("%s", line)
    return out.strip()


# ═══════════════════════════════════════════════════════════════════
#  Observe
# ═══════════════════════════════════════════════════════════════════


def pod_ready(client: KubeClient, name: str) -> bool:
    """Whether pod ``name`` reports condition ``Ready=True``.

    Raises:
        KubectlError: The pod cannot be read (not created yet, no access).
    """
    pod = client.get_json("get", "pod", name)
    conditions = pod.get("status", {}).get("conditions", []) or []
    for cond in conditions:
        if cond.get("type") == "Ready":
            return cond.get("status") == "True"
    return False


def pod_phase(client: KubeClient, name: str) -> str:
    """Pod phase, or ``""`` when the pod cannot be read."""
    try:
        pod = client.get_json("get", "pod", name)
    except KubectlError:
        return ""
    return pod.get("status", {}).get("phase", "")


def pod_exec(
    client: KubeClient,
    pod: str,
    command: list[str],
    *,
    timeout: int = 60,
) -> subprocess.CompletedProcess[str]:
    """``kubectl exec <pod> -- <command>`` without a TTY.

    Raises:
        KubectlError: kubectl is missing or the call timed out.
    """
    args = ("exec", pod, "--", *command)
    try:
        return client.run(*args, timeout=timeout)
    except subprocess.TimeoutExpired as e:
        raise KubectlError(args, f"timed out after {timeout}s") from e
    except FileNotFoundError as e:
        raise KubectlError(args, "kubectl not found on PATH") from e


def cluster_name(client: KubeClient) -> str:
    """Name of the cluster the client's kubeconfig points at.

    Prefers the current context; falls back to the first context.

    Raises:
        KubectlError: No context names a cluster.
    """
    config = client.get_json("config", "view", namespaced=False)
    contexts = config.get("contexts", []) or []
    current = config.get("current-context", "")

    chosen = next((c for c in contexts if c.get("name") == current), None)
    if chosen is None and contexts:
        chosen = contexts[0]

    name = ((chosen or {}).get("context") or {}).get("cluster", "")
    if not name:
        raise KubectlError(("config", "view"), "kubeconfig has no context with a cluster")
    return name


def last_node_name(client: KubeClient) -> str:
    """Name of the last node in ``kubectl get nodes`` order.

    Raises:
        KubectlError: The node list is empty or unreadable.
    """
    data = client.get_json("get", "nodes", namespaced=False)
    items = data.get("items", []) or []
    if not items:
        raise KubectlError(("get", "nodes"), "cluster has no nodes")
    return items[-1].get("metadata", {}).get("name", "")
