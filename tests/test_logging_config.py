import json
import logging

import pytest
import structlog

from beststories import logging_config


class _Stream:
    def __init__(self, tty: bool) -> None:
        self.tty = tty

    def isatty(self) -> bool:
        return self.tty


@pytest.fixture
def restore_logging():
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield
    root.handlers = handlers
    root.setLevel(level)
    structlog.reset_defaults()


def test_json_mode_follows_tty(monkeypatch):
    monkeypatch.setattr(logging_config.sys, "stderr", _Stream(tty=False))
    assert logging_config._is_json_mode() is True
    monkeypatch.setattr(logging_config.sys, "stderr", _Stream(tty=True))
    assert logging_config._is_json_mode() is False


def test_structlog_events_rendered_as_json(restore_logging, capsys):
    logging_config.configure_logging("DEBUG", json_output=True)
    logging_config.get_logger("beststories.test_events").debug("item skipped", item_id=7)

    line = capsys.readouterr().err.strip().splitlines()[-1]
    event = json.loads(line)
    assert event["event"] == "item skipped"
    assert event["item_id"] == 7
    assert event["level"] == "debug"
    assert event["logger"] == "beststories.test_events"
    assert "timestamp" in event


def test_stdlib_records_share_the_renderer(restore_logging, capsys):
    logging_config.configure_logging("INFO", json_output=True)
    logging.getLogger("httpx").info("HTTP Request: GET /beststories.json")
    logging.getLogger("httpx").debug("below level")

    lines = capsys.readouterr().err.strip().splitlines()
    assert len(lines) == 1
    event = json.loads(lines[0])
    assert event["event"] == "HTTP Request: GET /beststories.json"
    assert event["logger"] == "httpx"


def test_level_filters_structlog_events(restore_logging, capsys):
    logging_config.configure_logging("WARNING", json_output=True)
    logger = logging_config.get_logger("beststories.test_level")
    logger.info("hidden")
    logger.warning("shown", kind="network")

    lines = capsys.readouterr().err.strip().splitlines()
    assert [json.loads(line)["event"] for line in lines] == ["shown"]
