import io
import sys

import pytest
from loguru import logger

from fullcal.logger import configure_logging


@pytest.fixture
def restore_logger(monkeypatch):
    for name in ("FULLCAL_LOG_LEVEL", "FULLCAL_LOG_FORMAT", "FULLCAL_LOG_COLORIZE"):
        monkeypatch.delenv(name, raising=False)
    yield
    logger.remove()
    logger.add(sys.stderr)


def test_configure_logging_respects_level(restore_logger):
    sink = io.StringIO()
    configure_logging(level="WARNING", colorize=False, format="{level} {message}", sink=sink)
    logger.info("hidden")
    logger.warning("shown")
    assert sink.getvalue() == "WARNING shown\n"


def test_configure_logging_env_overrides(restore_logger, monkeypatch):
    monkeypatch.setenv("FULLCAL_LOG_LEVEL", "debug")
    monkeypatch.setenv("FULLCAL_LOG_FORMAT", "[{level}] {message}")
    monkeypatch.setenv("FULLCAL_LOG_COLORIZE", "false")
    sink = io.StringIO()
    configure_logging(level="ERROR", sink=sink)
    logger.debug("details")
    assert sink.getvalue() == "[DEBUG] details\n"


def test_configure_logging_only_fullcal_records(restore_logger, converter):
    sink = io.StringIO()
    configure_logging(colorize=False, format="{name}: {message}", sink=sink, only_fullcal=True)
    logger.info("from the test module")
    converter.convert_bytes(b"BEGIN:VCALENDAR\r\nVERSION:2.0\r\nEND:VCALENDAR\r\n")
    assert sink.getvalue() == "fullcal.converter: Converted 0 events\n"


def test_configure_logging_can_keep_existing_sinks(restore_logger):
    first, second = io.StringIO(), io.StringIO()
    configure_logging(colorize=False, format="{message}", sink=first)
    configure_logging(colorize=False, format="{message}", sink=second, replace=False)
    logger.info("both")
    assert first.getvalue() == "both\n"
    assert second.getvalue() == "both\n"
