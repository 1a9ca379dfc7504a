# tests/conftest.py

import logging

import pytest

from flowshape.utils.logger import init_logger


@pytest.fixture(autouse=True)
def _fresh_logger():
    # CLI tests re-bind the stream handler to the runner's stdout; start each test clean
    init_logger(level=logging.WARNING)
    yield
