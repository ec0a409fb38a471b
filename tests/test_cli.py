"""
Tests for CLI commands — run, list, guard, and global options.

The end-to-end ``run`` tests drive the real runner and checks against a
scripted kubectl; DNS, HTTPS, TLS and aws are patched at their seams.
"""

import json
import shutil
from pathlib import Path
from unittest.mock import patch

import pytest
from click.testing import CliRunner

from clustercheck.core.reliability.guard import GuardOutcome, GuardResult
from clustercheck.main import cli

_RUN_KUBECTL = "clustercheck.core.services.kube_common._run_kubectl"
_ROUTING = "clustercheck.core.checks.routing"


def _mock_result(returncode=0, stdout="", stderr=""):
    """Create a mock subprocess.CompletedProcess."""
    return type("Result", (), {
        "returncode": returncode, "stdout": stdout, "stderr": stderr,
    })()


_PING_BLOCKED = "4 packets transmitted, 0 packets received, 100% packet loss\n"
_PING_REACHABLE = "4 packets transmitted, 4 packets received, 0% packet loss\n"


def _kubectl(*, ping=_PING_BLOCKED, cis_fail=0):
    """Scripted kubectl: answers every call a full run makes."""

    def dispatch(*args, **kwargs):
        verb = args[0]
        if verb == "version":
            return _mock_result(stdout=json.dumps({"clientVersion": {"gitVersion": "v1.30.2"}}))
        if verb == "apply":
            return _mock_result(stdout="created\n")
        if verb == "delete":
            return _mock_result(stdout="deleted\n")
        if verb == "exec":
            command = args[args.index("--") + 1:]
            if command[0] == "cat":
                return _mock_result(stdout="Pod was here!\n")
            return _mock_result(returncode=1 if "100%" in ping else 0, stdout=ping)
        if args[:2] == ("config", "view"):
            return _mock_result(stdout=json.dumps({
                "current-context": "broker",
                "contexts": [{"name": "broker", "context": {"cluster": "broker-cluster"}}],
            }))
        if args[:2] == ("get", "pod"):
            return _mock_result(stdout=json.dumps({"status": {
                "phase": "Running",
                "conditions": [{"type": "Ready", "status": "True"}],
            }}))
        if args[:2] == ("get", "nodes"):
            return _mock_result(stdout=json.dumps({"items": [{"metadata": {"name": "node-1"}}]}))
        if args[:2] == ("get", "ciskubebenchreport"):
            return _mock_result(stdout=json.dumps({"report": {"sections": [
                {"id": "4.1", "text": "Files", "tests": [{"fail": cis_fail, "pass": 9}]},
            ]}}))
        return _mock_result(returncode=1, stderr=f"unexpected kubectl {args}")

    return dispatch


@pytest.fixture
def settings_file(tmp_path: Path) -> Path:
    path = tmp_path / "settings.yml"
    path.write_text("pod_settle_delay: 0\n")
    return path


@pytest.fixture
def remote_ops():
    """Routing lookups and aws all succeed."""
    idle = GuardResult(GuardOutcome.COMPLETED, 65.0, 60.0, 0)
    with patch(f"{_ROUTING}.resolver_available", return_value=True), \
         patch(f"{_ROUTING}.has_cname", return_value=True), \
         patch(f"{_ROUTING}.page_contains", return_value=True), \
         patch(f"{_ROUTING}.hold_idle_session", return_value=idle), \
         patch("clustercheck.core.services.aws_ops.update_kubeconfig") as aws:
        yield aws


# ═══════════════════════════════════════════════════════════════════
#  Global
# ═══════════════════════════════════════════════════════════════════


class TestCLIGlobal:
    """Tests for global CLI behavior."""

    def test_help(self):
        runner = CliRunner()
        result = runner.invoke(cli, ["--help"])
        assert result.exit_code == 0
        assert "Acceptance checks" in result.output

    def test_version(self):
        runner = CliRunner()
        result = runner.invoke(cli, ["--version"])
        assert result.exit_code == 0
        assert "0.1.0" in result.output


# ═══════════════════════════════════════════════════════════════════
#  run — argument and config errors
# ═══════════════════════════════════════════════════════════════════


class TestRunArguments:
    @patch(_RUN_KUBECTL)
    def test_missing_binding(self, mock_run):
        runner = CliRunner()
        result = runner.invoke(cli, ["run"])
        assert result.exit_code == 1
        assert "Usage" in result.output
        mock_run.assert_not_called()

    @patch(_RUN_KUBECTL)
    def test_malformed_binding(self, mock_run, tmp_path: Path):
        path = tmp_path / "binding.json"
        path.write_text("{oops")
        runner = CliRunner()
        result = runner.invoke(cli, ["run", str(path)])
        assert result.exit_code == 1
        assert "Invalid JSON" in result.output
        mock_run.assert_not_called()

    @patch(_RUN_KUBECTL)
    def test_binding_without_domain(self, mock_run, tmp_path: Path):
        path = tmp_path / "binding.json"
        path.write_text(json.dumps({"credentials": {"kubeconfig": "apiVersion: v1"}}))
        runner = CliRunner()
        result = runner.invoke(cli, ["run", str(path), "--json"])
        assert result.exit_code == 1
        data = json.loads(result.stdout)
        assert "domain_name" in data["error"]
        mock_run.assert_not_called()

    def test_unknown_check(self, binding_file: Path):
        runner = CliRunner()
        result = runner.invoke(cli, ["run", str(binding_file), "--only", "bogus"])
        assert result.exit_code == 1
        assert "Unknown check" in result.output

    @patch(_RUN_KUBECTL, side_effect=FileNotFoundError("kubectl"))
    def test_kubectl_missing(self, _, binding_file: Path):
        runner = CliRunner()
        result = runner.invoke(cli, ["run", str(binding_file)])
        assert result.exit_code == 1
        assert "kubectl not available" in result.output


# ═══════════════════════════════════════════════════════════════════
#  run — end to end
# ═══════════════════════════════════════════════════════════════════


class TestRunEndToEnd:
    def test_all_pass(self, binding_file: Path, settings_file: Path, remote_ops):
        with patch(_RUN_KUBECTL, side_effect=_kubectl()):
            runner = CliRunner()
            result = runner.invoke(cli, [
                "run", str(binding_file), "--settings", str(settings_file),
            ])

        assert result.exit_code == 0, result.output
        assert "export DOMAIN_NAME=example.com" in result.output
        assert "FAIL" not in result.output
        assert "Result: 7/7 checks passed" in result.output
        remote_ops.assert_called_once()
        assert remote_ops.call_args[0][0] == "broker-cluster"

    def test_json(self, binding_file: Path, settings_file: Path, remote_ops):
        with patch(_RUN_KUBECTL, side_effect=_kubectl()):
            runner = CliRunner()
            result = runner.invoke(cli, [
                "run", str(binding_file), "--settings", str(settings_file), "--json",
            ])

        assert result.exit_code == 0, result.output
        data = json.loads(result.stdout)
        assert data["status"] == "passed"
        assert data["domain"] == "example.com"
        assert [r["name"] for r in data["results"]] == [
            "dns", "https", "idle-timeout", "volume-ready", "volume-read", "egress", "cis",
        ]

    def test_egress_reachable_fails_run(self, binding_file: Path, settings_file: Path, remote_ops):
        with patch(_RUN_KUBECTL, side_effect=_kubectl(ping=_PING_REACHABLE)):
            runner = CliRunner()
            result = runner.invoke(cli, [
                "run", str(binding_file), "--settings", str(settings_file), "--json",
            ])

        assert result.exit_code == 1
        data = json.loads(result.stdout)
        failed = [r["name"] for r in data["results"] if r["status"] == "failed"]
        assert failed == ["egress"]

    def test_cis_failures_fail_run(self, binding_file: Path, settings_file: Path, remote_ops):
        with patch(_RUN_KUBECTL, side_effect=_kubectl(cis_fail=10)):
            runner = CliRunner()
            result = runner.invoke(cli, [
                "run", str(binding_file), "--settings", str(settings_file),
            ])

        assert result.exit_code == 1
        assert "10 failing CIS tests" in result.output
        assert "✗ cis" in result.output

    def test_only_cis_deploys_no_fixtures(self, binding_file: Path, settings_file: Path, remote_ops):
        with patch(_RUN_KUBECTL, side_effect=_kubectl()) as mock_run:
            runner = CliRunner()
            result = runner.invoke(cli, [
                "run", str(binding_file), "--settings", str(settings_file),
                "--only", "cis",
            ])

        assert result.exit_code == 0, result.output
        verbs = [c[0][0] for c in mock_run.call_args_list]
        assert "apply" not in verbs
        remote_ops.assert_called_once()

    def test_keep_fixtures(self, binding_file: Path, settings_file: Path, remote_ops):
        with patch(_RUN_KUBECTL, side_effect=_kubectl()) as mock_run:
            runner = CliRunner()
            result = runner.invoke(cli, [
                "run", str(binding_file), "--settings", str(settings_file),
                "--skip", "cis", "--keep-fixtures",
            ])

        assert result.exit_code == 0, result.output
        verbs = [c[0][0] for c in mock_run.call_args_list]
        assert "apply" in verbs
        assert "delete" not in verbs
        remote_ops.assert_not_called()


# ═══════════════════════════════════════════════════════════════════
#  list
# ═══════════════════════════════════════════════════════════════════


class TestListCommand:
    def test_list(self):
        runner = CliRunner()
        result = runner.invoke(cli, ["list"])
        assert result.exit_code == 0
        assert "idle-timeout" in result.output
        assert "opt-in" in result.output

    def test_list_json(self):
        runner = CliRunner()
        result = runner.invoke(cli, ["list", "--json"])
        assert result.exit_code == 0
        data = json.loads(result.output)
        by_name = {c["name"]: c for c in data}
        assert by_name["dnssec"]["default"] is False
        assert by_name["cis"]["phase"] == "admin"
        assert by_name["egress"]["fixture"] == "volume"


# ═══════════════════════════════════════════════════════════════════
#  guard
# ═══════════════════════════════════════════════════════════════════


@pytest.mark.skipif(shutil.which("sleep") is None, reason="sleep not installed")
class TestGuardCommand:
    def test_exits_in_time(self):
        runner = CliRunner()
        result = runner.invoke(cli, ["guard", "--deadline", "5", "--", "sleep", "0.1"])
        assert result.exit_code == 0
        assert "exited within 5 seconds" in result.output

    def test_deadline_exceeded(self):
        runner = CliRunner()
        result = runner.invoke(cli, ["guard", "--deadline", "0.3", "--", "sleep", "30"])
        assert result.exit_code == 1
        assert "did NOT exit within 0.3 seconds" in result.output

    def test_json(self):
        runner = CliRunner()
        result = runner.invoke(cli, ["guard", "--deadline", "5", "--json", "--", "sleep", "0"])
        assert result.exit_code == 0
        assert json.loads(result.output)["outcome"] == "completed"

    def test_missing_command(self):
        runner = CliRunner()
        result = runner.invoke(cli, ["guard", "--", "definitely-not-a-real-binary-xyz"])
        assert result.exit_code == 1
        assert "❌" in result.output
