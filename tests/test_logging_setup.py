# ==============================================
# Tests for logging setup
# ==============================================

import logging

import pytest

from shapesync.logging_setup import HANDLER_NAME, setup_logging


@pytest.fixture(autouse=True)
def package_logger():
    logger = logging.getLogger("shapesync")
    yield logger
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
    logger.propagate = True
    logger.setLevel(logging.NOTSET)


def test_handler_is_added_once(package_logger):
    setup_logging()
    setup_logging("DEBUG")

    named = [h for h in package_logger.handlers if h.get_name() == HANDLER_NAME]
    assert len(named) == 1


def test_levels(package_logger):
    setup_logging("warning")
    assert package_logger.level == logging.WARNING

    setup_logging("warning", verbose=True)
    assert package_logger.level == logging.DEBUG


def test_unknown_level_falls_back_to_info(package_logger):
    setup_logging("chatty")
    assert package_logger.level == logging.INFO
