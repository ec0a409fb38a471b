"""
Run settings — tunables for one acceptance run.

Defaults reproduce the broker's acceptance contract (30 minutes for DNS,
10 minutes for ingress and volume, a 65 second idle deadline). A YAML
file passed with ``--settings`` can override any of them, which is how
a slow DNS provider or a local kind cluster gets a different budget:

    dns_timeout: 3600
    poll_interval: 10
    teardown_fixtures: false
"""

from __future__ import annotations

import logging
from pathlib import Path

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from clustercheck.core.config.loader import ConfigError

logger = logging.getLogger(__name__)


class RunSettings(BaseModel):
    """Timeouts, fixture names and targets for a run."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    # Polling
    poll_interval: float = Field(default=5.0, gt=0)
    dns_timeout: float = Field(default=1800.0, ge=0)
    https_timeout: float = Field(default=600.0, ge=0)
    dnssec_timeout: float = Field(default=600.0, ge=0)
    pod_ready_timeout: float = Field(default=600.0, ge=0)
    pod_settle_delay: float = Field(default=10.0, ge=0)

    # Idle connection: the server is expected to close after idle_window
    idle_window: float = Field(default=60.0, gt=0)
    idle_deadline: float = Field(default=65.0, gt=0)

    # App fixture
    namespace: str = "default"
    subdomain: str = "subdomain-2048"
    app_image: str = "alexwhen/docker-2048"
    app_replicas: int = Field(default=2, ge=1)
    expected_title: str = "<title>2048</title>"

    # Volume fixture
    volume_file: str = "/data/out.txt"
    volume_marker: str = "Pod was here!"

    # Egress
    egress_target: str = "8.8.8.8"
    egress_packets: int = Field(default=4, ge=1)

    # Per-request budgets for the one-shot calls
    http_request_timeout: float = Field(default=10.0, gt=0)
    exec_timeout: int = Field(default=60, gt=0)

    teardown_fixtures: bool = True


def load_settings(path: Path | None = None) -> RunSettings:
    """Load run settings, applying overrides from a YAML file if given.

    Raises:
        ConfigError: If the file is unreadable, not a mapping, or has
            unknown / invalid keys.
    """
    if path is None:
        return RunSettings()

    if not path.is_file():
        raise ConfigError(f"Settings file not found: {path}")

    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8"))
    except OSError as e:
        raise ConfigError(f"Cannot read {path}: {e}") from e
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {path}: {e}") from e

    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise ConfigError(f"Expected a YAML mapping in {path}, got {type(data).__name__}")

    try:
        settings = RunSettings.model_validate(data)
    except ValidationError as e:
        raise ConfigError(f"Invalid settings in {path}: {e}") from e

    logger.info("Loaded run settings from %s", path)
    return settings
