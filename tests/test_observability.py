"""
Tests for observability — logging level resolution + handler setup.
"""

import logging

import pytest

from clustercheck.core.observability.logging_config import (
    ENV_LOG_FILE,
    ENV_LOG_FILE_LEVEL,
    ENV_LOG_LEVEL,
    configure_from_flags,
    resolve_level,
    setup_logging,
)


@pytest.fixture(autouse=True)
def _restore_root_logger():
    """setup_logging mutates process-wide state; put it back afterwards."""
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    noisy = {n: logging.getLogger(n).level for n in ("httpx", "httpcore")}
    yield
    for h in root.handlers:
        if h not in handlers:
            h.close()
    root.handlers[:] = handlers
    root.setLevel(level)
    for name, lvl in noisy.items():
        logging.getLogger(name).setLevel(lvl)


# ── Level resolution ─────────────────────────────────────────────────


class TestResolveLevel:
    def test_default_warning(self, monkeypatch):
        monkeypatch.delenv(ENV_LOG_LEVEL, raising=False)
        assert resolve_level() == "WARNING"

    def test_env(self, monkeypatch):
        monkeypatch.setenv(ENV_LOG_LEVEL, "INFO")
        assert resolve_level() == "INFO"

    def test_flags_beat_env(self, monkeypatch):
        monkeypatch.setenv(ENV_LOG_LEVEL, "ERROR")
        assert resolve_level(verbose=True) == "INFO"

    def test_precedence(self):
        assert resolve_level(debug=True, verbose=True, quiet=True) == "DEBUG"
        assert resolve_level(verbose=True, quiet=True) == "INFO"
        assert resolve_level(quiet=True) == "ERROR"


# ── Handler setup ────────────────────────────────────────────────────


class TestSetupLogging:
    def test_single_console_handler(self):
        setup_logging("INFO")
        setup_logging("INFO")
        root = logging.getLogger()
        assert len(root.handlers) == 1
        assert root.level == logging.INFO

    def test_unknown_level_falls_back(self):
        setup_logging("LOUD")
        assert logging.getLogger().level == logging.WARNING

    def test_file_handler(self, tmp_path):
        log_file = tmp_path / "run.log"
        setup_logging("WARNING", log_file=str(log_file), log_file_level="DEBUG")

        root = logging.getLogger()
        assert len(root.handlers) == 2
        assert root.level == logging.DEBUG

        logging.getLogger("clustercheck.test").debug("polling pod ebs-app")
        for h in root.handlers:
            h.flush()
        assert "polling pod ebs-app" in log_file.read_text()

    def test_http_client_quieted(self):
        setup_logging("INFO")
        assert logging.getLogger("httpx").level == logging.WARNING

    def test_http_client_not_quieted_at_debug(self):
        logging.getLogger("httpx").setLevel(logging.NOTSET)
        setup_logging("DEBUG")
        assert logging.getLogger("httpx").level == logging.NOTSET


class TestConfigureFromFlags:
    def test_returns_level(self, monkeypatch):
        monkeypatch.delenv(ENV_LOG_LEVEL, raising=False)
        monkeypatch.delenv(ENV_LOG_FILE, raising=False)
        assert configure_from_flags(quiet=True) == "ERROR"
        assert logging.getLogger().level == logging.ERROR

    def test_log_file_from_env(self, monkeypatch, tmp_path):
        monkeypatch.delenv(ENV_LOG_LEVEL, raising=False)
        log_file = tmp_path / "cc.log"
        monkeypatch.setenv(ENV_LOG_FILE, str(log_file))
        monkeypatch.setenv(ENV_LOG_FILE_LEVEL, "INFO")

        configure_from_flags()

        logging.getLogger("clustercheck.test").info("deploying app fixture")
        for h in logging.getLogger().handlers:
            h.flush()
        assert "deploying app fixture" in log_file.read_text()
