"""Shared fixtures for vellum tests."""

import logging

import pytest

from vellum import logging as vellum_logging


@pytest.fixture(autouse=True)
def reset_logger():
    """Reset the logger state between tests so output follows capsys."""
    vellum_logging._logger = None
    logging.getLogger(vellum_logging.LOGGER_NAME).handlers.clear()
    yield
    vellum_logging._logger = None
    logging.getLogger(vellum_logging.LOGGER_NAME).handlers.clear()
