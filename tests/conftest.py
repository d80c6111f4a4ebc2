import logging

import pytest

from z16sim.log_setup import LOGGER_NAME


@pytest.fixture(autouse=True)
def _restore_package_logger():
    """setup_logging() detaches the package logger from root; undo it so
    caplog keeps seeing records in later tests."""
    yield
    logger = logging.getLogger(LOGGER_NAME)
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    logger.setLevel(logging.NOTSET)
    logger.propagate = True
