"""
Pytest fixtures for the travel expense test suite.

Provides:
- Structured logging setup and a JSON log capture fixture
- The shipped BMF 2026 configuration, rate table and module config
"""

import json
import logging
from io import StringIO

import pytest

from travel_config import clear_config_cache, get_active_config
from travel_kernel.logging_config import (
    LogContext,
    StructuredFormatter,
    configure_logging,
    reset_logging,
)
from travel_modules.expense.config import ExpenseConfig
from travel_modules.expense.rates import RateTable


# =============================================================================
# Logging fixtures
# =============================================================================


@pytest.fixture(autouse=True, scope="session")
def _configure_test_logging():
    """Configure structured logging for the test suite."""
    reset_logging()
    configure_logging(level=logging.DEBUG)
    yield
    reset_logging()


@pytest.fixture(autouse=True)
def _clear_log_context():
    """Clear LogContext between tests to prevent cross-test contamination."""
    LogContext.clear()
    yield
    LogContext.clear()


@pytest.fixture
def captured_logs():
    """
    Capture travel_kernel logs as parsed JSON dicts.

    Usage::

        def test_something(captured_logs):
            service.calculate(...)
            logs = captured_logs()
            assert any(r["message"] == "expense_calculated" for r in logs)
    """
    stream = StringIO()
    handler = logging.StreamHandler(stream)
    handler.setFormatter(StructuredFormatter())
    root = logging.getLogger("travel_kernel")
    previous_level = root.level
    root.setLevel(logging.DEBUG)
    root.addHandler(handler)

    def _get_records() -> list[dict]:
        lines = stream.getvalue().strip().split("\n")
        return [json.loads(line) for line in lines if line]

    yield _get_records

    root.removeHandler(handler)
    root.setLevel(previous_level)


# =============================================================================
# Configuration fixtures
# =============================================================================


@pytest.fixture(scope="session")
def config_set():
    clear_config_cache()
    return get_active_config()


@pytest.fixture(scope="session")
def rate_table(config_set) -> RateTable:
    return RateTable.from_config_set(config_set)


@pytest.fixture(scope="session")
def expense_config(config_set) -> ExpenseConfig:
    return ExpenseConfig.from_config_set(config_set)
