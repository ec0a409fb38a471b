"""
Binding loader — reads the broker's binding JSON into a Binding model.

This is the first thing a run does. Anything wrong with the file is a
setup error: the run aborts here, before a single kubectl call mutates
the cluster.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path

from pydantic import ValidationError

from clustercheck.core.models.binding import Binding

logger = logging.getLogger(__name__)


class ConfigError(Exception):
    """Raised when the binding or the run settings are invalid or missing."""


def load_binding(path: Path) -> Binding:
    """Load and validate a binding file.

    Args:
        path: Path to the binding JSON.

    Returns:
        Validated Binding model.

    Raises:
        ConfigError: If the file is missing, not JSON, or lacks credentials.
    """
    if not path.is_file():
        raise ConfigError(f"Binding file not found: {path}")

    logger.debug("Loading binding from %s", path)

    try:
        raw = path.read_text(encoding="utf-8")
    except OSError as e:
        raise ConfigError(f"Cannot read {path}: {e}") from e

    try:
        data = json.loads(raw)
    except json.JSONDecodeError as e:
        raise ConfigError(f"Invalid JSON in {path}: {e}") from e

    return parse_binding(data, source=str(path))


def parse_binding(data: object, source: str = "binding") -> Binding:
    """Validate an already-decoded binding document."""
    if not isinstance(data, dict):
        raise ConfigError(f"Expected a JSON object in {source}, got {type(data).__name__}")

    if "credentials" not in data:
        raise ConfigError(f"No .credentials key in {source}")

    try:
        binding = Binding.model_validate(data)
    except ValidationError as e:
        raise ConfigError(f"Invalid binding in {source}: {_first_error(e)}") from e

    logger.info("Loaded binding for domain '%s'", binding.domain_name)
    return binding


def _first_error(err: ValidationError) -> str:
    """Condense a pydantic error into one readable line."""
    errors = err.errors()
    if not errors:
        return str(err)
    first = errors[0]
    loc = ".".join(str(p) for p in first.get("loc", ()))
    return f"{loc}: {first.get('msg', '')}" if loc else first.get("msg", "")
