"""
Tests for the logging helpers.

Copyright (c) 2026 Andreas Wagner. All rights reserved.
"""

import logging

from utils.logging_config import StructuredFormatter, set_level, setup_logger


def test_formatter_single_line():
    record = logging.LogRecord(
        name="calculators.lot_matching", level=logging.INFO, pathname="lot_matching.py",
        lineno=42, msg="Reconciled %d records", args=(3,), exc_info=None, func="process_all_records"
    )

    line = StructuredFormatter().format(record)

    assert line.endswith("[INFO    ] [lot_matching:process_all_records:42] Reconciled 3 records")
    assert "\n" not in line


def test_logs_go_to_stderr(capsys):
    logger = setup_logger("services.stderr_check", level="INFO")

    logger.info("reconciling ADA-USD")

    captured = capsys.readouterr()
    assert captured.out == ""
    assert "reconciling ADA-USD" in captured.err
    assert len(logger.handlers) == 1
    assert logger.propagate is False


def test_setup_logger_is_idempotent():
    first = setup_logger("services.idempotent_check")
    second = setup_logger("services.idempotent_check")

    assert first is second
    assert len(second.handlers) == 1


def test_set_level_applies_to_project_loggers():
    logger = setup_logger("parsers.level_check", level="INFO")
    other = logging.getLogger("thirdparty.level_check")
    other.setLevel(logging.WARNING)

    set_level("DEBUG")

    assert logger.level == logging.DEBUG
    assert all(h.level == logging.DEBUG for h in logger.handlers)
    assert other.level == logging.WARNING

    set_level("INFO")
