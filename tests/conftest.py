"""
Shared test fixtures and configuration.

Nothing here talks to a cluster: kubectl, nslookup, openssl and aws
are patched at their subprocess seams in the individual test modules.
"""

import json
import textwrap
from pathlib import Path

import pytest

from clustercheck.core.config.settings import RunSettings
from clustercheck.core.models.binding import Binding

KUBECONFIG_YAML = textwrap.dedent("""\
    apiVersion: v1
    kind: Config
    clusters:
      - name: broker-cluster
        cluster:
          server: https://example.invalid
    contexts:
      - name: broker
        context:
          cluster: broker-cluster
          user: broker
    current-context: broker
    users:
      - name: broker
        user:
          token: abc123
""")


class FakeClock:
    """Monotonic clock that only advances when something sleeps."""

    def __init__(self):
        self.now = 0.0
        self.sleeps: list[float] = []

    def __call__(self) -> float:
        return self.now

    def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds


@pytest.fixture
def binding_data() -> dict:
    """A broker binding document."""
    return {
        "credentials": {
            "kubeconfig": KUBECONFIG_YAML,
            "domain_name": "example.com",
        },
    }


@pytest.fixture
def binding(binding_data: dict) -> Binding:
    return Binding.model_validate(binding_data)


@pytest.fixture
def binding_file(tmp_path: Path, binding_data: dict) -> Path:
    """The binding written to disk, as the CLI receives it."""
    path = tmp_path / "binding.json"
    path.write_text(json.dumps(binding_data))
    return path


@pytest.fixture
def fast_settings() -> RunSettings:
    """Settings with no settle delay and short budgets."""
    return RunSettings(
        poll_interval=5,
        dns_timeout=30,
        https_timeout=30,
        pod_ready_timeout=30,
        pod_settle_delay=0,
        idle_deadline=2,
    )


@pytest.fixture
def fake_clock() -> FakeClock:
    return FakeClock()
