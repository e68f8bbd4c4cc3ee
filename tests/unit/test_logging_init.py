from __future__ import annotations

import logging
from io import StringIO

import xlupload.logging.init as log_init
from xlupload.logging.init import (
    SUMMARY_LEVEL,
    LabeledFormatter,
    get_logger,
    log_summary,
    setup_logging,
)


def _capture(logger: logging.Logger) -> StringIO:
    buf = StringIO()
    logger.handlers[0].stream = buf  # type: ignore[attr-defined]
    return buf


def test_setup_logging_creates_logger_with_labeled_formatter(clean_logging):
    logger = setup_logging()

    assert logger.name == "xlupload"
    assert logger.level == logging.INFO
    assert len(logger.handlers) == 1
    assert isinstance(logger.handlers[0], logging.StreamHandler)
    assert isinstance(logger.handlers[0].formatter, LabeledFormatter)
    assert logger.propagate is False


def test_labeled_prefixes(clean_logging):
    logger = setup_logging()
    buf = _capture(logger)

    logger.info("Test info message")
    logger.warning("Test warning message")
    logger.error("Test error message")
    log_summary("operation=op rows=4")

    assert buf.getvalue().splitlines() == [
        "INFO Test info message",
        "WARN Test warning message",
        "ERROR Test error message",
        "SUMMARY operation=op rows=4",
    ]


def test_module_loggers_propagate_into_app_handler(clean_logging):
    buf = _capture(setup_logging())

    logging.getLogger("xlupload.services.pipeline").info("upload done op=%s", "x")

    assert buf.getvalue() == "INFO upload done op=x\n"


def test_exception_info_is_appended(clean_logging):
    buf = _capture(setup_logging())

    try:
        raise RuntimeError("boom")
    except RuntimeError:
        get_logger().error("write failed", exc_info=True)

    lines = buf.getvalue().splitlines()
    assert lines[0] == "ERROR write failed"
    assert lines[-1] == "RuntimeError: boom"


def test_setup_logging_is_idempotent_and_adjusts_level(clean_logging):
    first = setup_logging()
    second = setup_logging(debug=True)

    assert first is second
    assert len(second.handlers) == 1
    assert second.level == logging.DEBUG
    assert second.handlers[0].level == logging.DEBUG


def test_get_logger_sets_up_on_demand(clean_logging):
    assert log_init._logger is None
    logger = get_logger()
    assert logger is log_init._logger
    assert logging.getLevelName(SUMMARY_LEVEL) == "SUMMARY"
