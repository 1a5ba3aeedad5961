"""Root pytest configuration for all tests.

Adapters start background selection pollers only when an event loop is
running; tests drive polling explicitly through check_selection_change.
"""

import logging

import pytest


@pytest.fixture(autouse=True)
def quiet_app_logger():
    """Keep every test starting from the default 'src' logger level."""
    app_logger = logging.getLogger("src")
    level = app_logger.level
    yield
    app_logger.setLevel(level)
