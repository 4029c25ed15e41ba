"""Shared fixtures."""

import logging

import pytest

from newsingest.utils.logging import ROOT_LOGGER

from .fakes import Store


@pytest.fixture
def store() -> Store:
    return Store()


@pytest.fixture(autouse=True)
def reset_package_logger():
    """Undo handlers installed by ``configure_logging`` so caplog keeps working."""
    yield
    logger = logging.getLogger(ROOT_LOGGER)
    for handler in logger.handlers:
        handler.close()
    logger.handlers.clear()
    logger.propagate = True
    logger.setLevel(logging.NOTSET)
