from __future__ import annotations

import json
import logging
from unittest.mock import MagicMock

import pytest
import structlog

from ltbc.config import Settings
from ltbc.observability.logging_config import configure_logging, get_chaos_logger


class _PlainLogger:
    def __init__(self) -> None:
        self.messages: list[tuple[str, str]] = []

    def info(self, message: str) -> None:
        self.messages.append(("info", message))

    def warning(self, message: str) -> None:
        self.messages.append(("warning", message))


class _WarnOnlyLogger:
    def __init__(self) -> None:
        self.messages: list[tuple[str, str]] = []

    def info(self, message: str) -> None:
        self.messages.append(("info", message))

    def warn(self, message: str) -> None:
        self.messages.append(("warn", message))


class TestGetChaosLogger:
    def test_default_is_structlog_logger(self):
        assert get_chaos_logger() is not None

    def test_structlog_logger_used_as_is(self):
        logger = structlog.get_logger("custom")
        assert get_chaos_logger(logger) is logger

    def test_plain_logger_gets_rendered_messages(self):
        plain = _PlainLogger()
        log = get_chaos_logger(plain)
        log.warning("chaos_duplicate_scope_rule", scope="localhost")
        assert plain.messages == [("warning", "event='chaos_duplicate_scope_rule' scope='localhost'")]

    def test_mock_with_bind_is_passed_through(self):
        logger = MagicMock()
        assert get_chaos_logger(logger) is logger

    def test_warn_only_logger_receives_warnings(self):
        legacy = _WarnOnlyLogger()
        log = get_chaos_logger(legacy)
        log.warning("chaos_experiment_not_configured", experiment="slowLambda")
        log.info("chaos_experiment_active")
        assert legacy.messages == [
            ("warn", "event='chaos_experiment_not_configured' experiment='slowLambda'"),
            ("info", "event='chaos_experiment_active'"),
        ]


@pytest.fixture
def _restore_logging():
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)
    structlog.reset_defaults()


@pytest.mark.usefixtures("_restore_logging")
class TestConfigureLogging:
    def test_sets_root_level(self):
        configure_logging(Settings(), log_level="DEBUG")
        assert logging.getLogger().level == logging.DEBUG
        configure_logging(Settings(), log_level="WARNING", json_output=True)
        assert logging.getLogger().level == logging.WARNING

    def test_unknown_level_falls_back_to_info(self):
        configure_logging(Settings(), log_level="chatty")
        assert logging.getLogger().level == logging.INFO

    def test_reads_environment_settings(self, monkeypatch):
        monkeypatch.setenv("LTBC_LOG_LEVEL", "ERROR")
        configure_logging()
        assert logging.getLogger().level == logging.ERROR

    def test_explicit_level_overrides_settings(self):
        configure_logging(Settings(log_level="ERROR"), log_level="DEBUG")
        assert logging.getLogger().level == logging.DEBUG

    def test_json_events_are_tagged_with_experiment(self, capsys):
        configure_logging(Settings(experiment_name="slowLambda", json_logs=True))
        structlog.get_logger("ltbc").info("chaos_experiment_active")
        event = json.loads(capsys.readouterr().out.strip().splitlines()[-1])
        assert event["event"] == "chaos_experiment_active"
        assert event["experiment"] == "slowLambda"
        assert event["level"] == "info"

    def test_filtered_levels_are_dropped(self, capsys):
        configure_logging(Settings(json_logs=True, log_level="WARNING"))
        structlog.get_logger("ltbc").info("chaos_experiment_active")
        assert capsys.readouterr().out == ""
