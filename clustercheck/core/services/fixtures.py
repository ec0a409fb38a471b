"""
Test fixtures — the cluster resources deployed only to be checked.

Two fixtures:

- **app**: the 2048 game behind a Deployment, Service and Ingress. The
  Ingress host is ``<subdomain>.<domain>``, so its appearance in DNS
  proves that the ingress controller and external-dns both work.
- **volume**: a PersistentVolumeClaim and a Pod that writes a marker
  file onto it, read from the bundled static manifests.

``deployed()`` scopes a fixture to a ``with`` block: everything that
was applied is deleted again on the way out, including when the apply
itself failed halfway or the run was interrupted.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator
from contextlib import contextmanager

from clustercheck.core.config.settings import RunSettings
from clustercheck.core.data import load_manifest
from clustercheck.core.services.kube_cluster import apply_manifest, delete_manifest
from clustercheck.core.services.kube_common import KubeClient, KubectlError

logger = logging.getLogger(__name__)

APP_NAME = "app-2048"
APP_DEPLOYMENT = "deployment-2048"
APP_SERVICE = "service-2048"

VOLUME_MANIFESTS = ("pv/ebs/claim.yml", "pv/ebs/pod.yml")


def app_fixture(settings: RunSettings, test_host: str) -> list[dict]:
    """Deployment + Service + Ingress for the routing checks."""
    labels = {"app.kubernetes.io/name": APP_NAME}

    deployment = {
        "apiVersion": "apps/v1",
        "kind": "Deployment",
        "metadata": {"name": APP_DEPLOYMENT},
        "spec": {
            "selector": {"matchLabels": dict(labels)},
            "replicas": settings.app_replicas,
            "template": {
                "metadata": {"labels": dict(labels)},
                "spec": {
                    "containers": [{
                        "image": settings.app_image,
                        "imagePullPolicy": "Always",
                        "name": APP_NAME,
                        "ports": [{"containerPort": 80}],
                        "securityContext": {"allowPrivilegeEscalation": False},
                    }],
                },
            },
        },
    }

    service = {
        "apiVersion": "v1",
        "kind": "Service",
        "metadata": {"name": APP_SERVICE},
        "spec": {
            "ports": [{"port": 80, "targetPort": 80, "protocol": "TCP"}],
            "type": "ClusterIP",
            "selector": dict(labels),
        },
    }

    ingress = {
        "apiVersion": "networking.k8s.io/v1",
        "kind": "Ingress",
        "metadata": {
            "name": settings.subdomain,
            "annotations": {
                "nginx.ingress.kubernetes.io/rewrite-target": "/",
                # Short TTL so back-to-back runs see a fresh record
                "external-dns.alpha.kubernetes.io/ttl": "30",
            },
        },
        "spec": {
            "rules": [{
                "host": test_host,
                "http": {
                    "paths": [{
                        "path": "/",
                        "pathType": "Prefix",
                        "backend": {
                            "service": {
                                "name": APP_SERVICE,
                                "port": {"number": 80},
                            },
                        },
                    }],
                },
            }],
        },
    }

    return [deployment, service, ingress]


def volume_fixture() -> list[dict]:
    """PersistentVolumeClaim + Pod from the bundled manifests."""
    docs: list[dict] = []
    for rel in VOLUME_MANIFESTS:
        docs.extend(load_manifest(rel))
    return docs


def pod_name(documents: list[dict]) -> str:
    """Name of the first Pod in a fixture, ``""`` if there is none."""
    for doc in documents:
        if doc.get("kind") == "Pod":
            return doc.get("metadata", {}).get("name", "")
    return ""


def describe(documents: list[dict]) -> str:
    """``Kind/name, Kind/name`` summary for logs."""
    return ", ".join(
        f"{d.get('kind', '?')}/{d.get('metadata', {}).get('name', '?')}" for d in documents
    )


@contextmanager
def deployed(
    client: KubeClient,
    documents: list[dict],
    *,
    teardown: bool = True,
) -> Iterator[list[dict]]:
    """Apply ``documents`` for the duration of the block.

    Teardown deletes the documents in reverse order, so dependents go
    before what they depend on.

    Raises:
        KubectlError: The apply failed. Teardown still runs first.
    """
    try:
        apply_manifest(client, documents)
        yield documents
    finally:
        if teardown:
            try:
                delete_manifest(client, list(reversed(documents)))
            except KubectlError as e:
                # reported, never raised
                logger.warning("Could not tear down %s: %s", describe(documents), e)
        else:
            logger.info("Leaving fixture in place: %s", describe(documents))
