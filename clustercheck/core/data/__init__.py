"""
Static fixture manifests shipped with the package.

Manifests live under ``clustercheck/core/data/manifests/`` and are
read with PyYAML on first access, then cached for the process lifetime.

Usage::

    from clustercheck.core.data import load_manifest

    docs = load_manifest("pv/ebs/pod.yml")   # list[dict]
"""

from __future__ import annotations

import copy
import logging
from functools import lru_cache
from pathlib import Path

import yaml

logger = logging.getLogger(__name__)

_MANIFEST_DIR = Path(__file__).parent / "manifests"


def manifest_path(relative_path: str) -> Path:
    """Absolute path of a bundled manifest."""
    return _MANIFEST_DIR / relative_path


@lru_cache(maxsize=None)
def _load(relative_path: str) -> tuple[dict, ...]:
    path = manifest_path(relative_path)
    with open(path, encoding="utf-8") as f:
        docs = tuple(d for d in yaml.safe_load_all(f) if isinstance(d, dict))
    logger.debug("Loaded %d resource(s) from %s", len(docs), path)
    return docs


def load_manifest(relative_path: str) -> list[dict]:
    """Resource dicts from a bundled manifest.

    Returns deep copies, so callers may edit them freely.

    Raises:
        FileNotFoundError: No such manifest.
    """
    return [copy.deepcopy(d) for d in _load(relative_path)]
