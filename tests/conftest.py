"""
Pytest fixtures for the inventory kernel test suite.

Provides:
- An in-memory SQLite store per test (fresh schema, nothing shared)
- A session with a deterministic clock, and service/selector fixtures
- Builders for the common item / invoice / movement setup
- Structured log capture
"""

import json
import logging
from datetime import date
from io import StringIO

import pytest

from inventory_kernel.config import KernelConfig
from inventory_kernel.db.engine import Store
from inventory_kernel.domain.clock import DeterministicClock
from inventory_kernel.logging_config import (
    LogContext,
    StructuredFormatter,
    configure_logging,
    reset_logging,
)
from inventory_kernel.models.invoice import InvoiceType
from inventory_kernel.selectors.costing_selector import CostingSelector
from inventory_kernel.services.contact_service import ContactService
from inventory_kernel.services.invoice_service import InvoiceService
from inventory_kernel.services.item_service import ItemService
from inventory_kernel.services.reset_point_classifier import ResetPointClassifier
from inventory_kernel.services.stock_movement_service import StockMovementService


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
    Capture inventory_kernel logs as parsed JSON dicts.

    Usage::

        def test_something(captured_logs, movement_service):
            movement_service.create(...)
            logs = captured_logs()
            assert any(r["message"] == "stock_movement_created" for r in logs)
    """
    stream = StringIO()
    handler = logging.StreamHandler(stream)
    handler.setFormatter(StructuredFormatter())
    root = logging.getLogger("inventory_kernel")
    root.addHandler(handler)

    def _get_records() -> list[dict]:
        lines = stream.getvalue().strip().split("\n")
        return [json.loads(line) for line in lines if line]

    yield _get_records

    root.removeHandler(handler)


# =============================================================================
# Store and session
# =============================================================================


@pytest.fixture
def store():
    """Fresh in-memory store with all tables created."""
    s = Store("sqlite://")
    s.create_tables()
    yield s
    s.dispose()


@pytest.fixture
def session(store):
    """
    Session for a single test.

    Services only flush; the session is rolled back and closed at teardown.
    """
    sess = store.session()
    yield sess
    sess.rollback()
    sess.close()


@pytest.fixture
def clock():
    return DeterministicClock()


@pytest.fixture
def kernel_config():
    return KernelConfig(database_url="sqlite://")


# =============================================================================
# Services and selectors
# =============================================================================


@pytest.fixture
def contact_service(session, clock):
    return ContactService(session, clock)


@pytest.fixture
def item_service(session, clock):
    return ItemService(session, clock)


@pytest.fixture
def invoice_service(session, clock):
    return InvoiceService(session, clock)


@pytest.fixture
def costing_selector(session, kernel_config):
    return CostingSelector(session, kernel_config)


@pytest.fixture
def movement_service(session, clock, costing_selector):
    return StockMovementService(session, clock, ResetPointClassifier(costing_selector))


# =============================================================================
# Builders
# =============================================================================


@pytest.fixture
def make_item(item_service):
    """Create an item with sensible defaults."""

    def _make(ean: str = "8590000000001", name: str = "Screw M4", **kwargs):
        return item_service.create(ean, name, **kwargs)

    return _make


@pytest.fixture
def make_invoice(invoice_service):
    """Create an invoice; defaults to a purchase invoice issued 2024-03-01."""

    def _make(
        prefix: str = "NF",
        number: str = "INV-001",
        type: int = InvoiceType.PURCHASE_INVOICE,
        date_issue: date = date(2024, 3, 1),
        **kwargs,
    ):
        return invoice_service.create(prefix, number, type, date_issue, **kwargs)

    return _make


@pytest.fixture
def test_item(make_item):
    return make_item()
