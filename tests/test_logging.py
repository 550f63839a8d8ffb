"""
Tests for structured logging (domains/core/logging)
"""

import json
import logging

import pytest

from domains.core.logging import LogConfig, LogFormat, configure_logging, get_current_config, get_logger


@pytest.fixture
def restore_logging():
    yield
    configure_logging(LogConfig(level="WARNING"))


def _last_json_line(capsys):
    lines = capsys.readouterr().err.strip().splitlines()
    return json.loads(lines[-1])


def test_from_env(monkeypatch):
    monkeypatch.setenv("LOG_LEVEL", "debug")
    monkeypatch.setenv("LOG_FORMAT", "JSON")

    config = LogConfig.from_env(service_name="label-hub-cli")

    assert config.level == "DEBUG"
    assert config.format == LogFormat.JSON
    assert config.service_name == "label-hub-cli"


def test_from_env_defaults(monkeypatch):
    monkeypatch.delenv("LOG_LEVEL", raising=False)
    monkeypatch.delenv("LOG_FORMAT", raising=False)

    config = LogConfig.from_env()

    assert config.level == "INFO"
    assert config.format == LogFormat.CONSOLE


def test_stdlib_records_rendered_as_json(capsys, restore_logging):
    config = LogConfig(level="INFO", format=LogFormat.JSON, add_timestamp=False)
    configure_logging(config)

    logging.getLogger("label_hub.test").info("database_loaded: labels=%d", 3)

    payload = _last_json_line(capsys)
    assert payload["event"] == "database_loaded: labels=3"
    assert payload["level"] == "info"
    assert payload["logger"] == "label_hub.test"
    assert get_current_config() is config


def test_structlog_key_values(capsys, restore_logging):
    configure_logging(LogConfig(level="INFO", format=LogFormat.JSON))

    get_logger("label_hub.events").info("api_started", labels=2, texts=0)

    payload = _last_json_line(capsys)
    assert payload["event"] == "api_started"
    assert payload["labels"] == 2
    assert "timestamp" in payload


def test_level_filters(capsys, restore_logging):
    configure_logging(LogConfig(level="WARNING", format=LogFormat.JSON))

    logging.getLogger("label_hub.test").info("hidden")

    assert capsys.readouterr().err == ""
