import logging

import pytest
from rich.logging import RichHandler

from sfgen.logging_config import configure_logging, get_logger


@pytest.mark.parametrize(
    "name, expected",
    [
        (None, "sfgen"),
        ("sfgen", "sfgen"),
        ("sfgen.cli", "sfgen.cli"),
        ("plugins", "sfgen.plugins"),
    ],
)
def test_get_logger_names(name, expected):
    assert get_logger(name).name == expected


@pytest.mark.parametrize("verbosity, level", [(0, logging.WARNING), (1, logging.INFO), (2, logging.DEBUG), (5, logging.DEBUG)])
def test_verbosity_levels(verbosity, level):
    assert configure_logging(verbosity).level == level


def test_handlers_are_replaced(tmp_path):
    configure_logging(0)
    logger = configure_logging(1, tmp_path / "sfgen.log")

    assert len(logger.handlers) == 2
    assert isinstance(logger.handlers[0], RichHandler)
    assert isinstance(logger.handlers[1], logging.FileHandler)
    assert not logger.propagate

    configure_logging(0)
    assert len(logger.handlers) == 1


def test_file_handler_receives_records(tmp_path):
    log_file = tmp_path / "sfgen.log"
    configure_logging(1, log_file)

    get_logger("tests").info("hello %s", "there")

    assert "INFO sfgen.tests: hello there" in log_file.read_text(encoding="utf-8")
    configure_logging(0)
