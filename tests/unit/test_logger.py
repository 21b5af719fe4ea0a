"""Tests for structured logging configuration."""

import logging

from novelcraft.utils.logger import add_log_level, configure_logging, get_logger


def test_configure_logging_custom_level() -> None:
    """Test logging configuration with custom DEBUG level."""
    configure_logging("DEBUG")

    assert logging.getLogger().level == logging.DEBUG


def test_configure_logging_unknown_level_falls_back_to_info() -> None:
    configure_logging("CHATTY")

    assert logging.getLogger().level == logging.INFO


def test_configure_logging_console_renderer() -> None:
    """Test that console output can be selected instead of JSON."""
    configure_logging("INFO", json_output=False)
    logger = get_logger(__name__)

    assert hasattr(logger, "info")
    assert hasattr(logger, "bind")


def test_add_log_level_uppercases_method_name() -> None:
    event = add_log_level(None, "warning", {"event": "title_collision"})

    assert event["level"] == "WARNING"
    assert event["event"] == "title_collision"
