"""
Pytest fixtures for the relief kernel test suite.

Provides:
- A fresh in-memory SQLite database per test (tables + immutability triggers)
- A deterministic clock and a ReliefOrchestrator wired to it
- Seeded collaborator rows (beneficiaries, a distributing user)
- Structured log capture
"""

import itertools
import json
import logging
from io import StringIO
from typing import Generator

import pytest
from sqlalchemy.orm import Session

from relief_kernel.db.engine import (
    create_tables,
    get_session,
    init_engine_from_url,
    reset_engine,
)
from relief_kernel.domain.clock import DeterministicClock
from relief_kernel.logging_config import (
    LogContext,
    StructuredFormatter,
    configure_logging,
    reset_logging,
)
from relief_kernel.models.directory import Beneficiary, User
from relief_kernel.services.relief_orchestrator import ReliefOrchestrator

TEST_DATABASE_URL = "sqlite:///:memory:"

# Scenario beneficiary from the distribution walkthroughs
SCENARIO_BENEFICIARY_ID = 7
TEST_ACTOR_ID = 1


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
    Capture relief_kernel logs as parsed JSON dicts.

    Usage::

        def test_something(captured_logs, relief):
            relief.inventory.restock(item.id, 5)
            logs = captured_logs()
            assert any(r["message"] == "inventory_restocked" for r in logs)
    """
    stream = StringIO()
    handler = logging.StreamHandler(stream)
    handler.setFormatter(StructuredFormatter())
    root = logging.getLogger("relief_kernel")
    root.addHandler(handler)

    def _get_records() -> list[dict]:
        lines = stream.getvalue().strip().split("\n")
        return [json.loads(line) for line in lines if line]

    yield _get_records

    root.removeHandler(handler)


# =============================================================================
# Database fixtures
# =============================================================================


@pytest.fixture
def engine():
    """Fresh in-memory database with all tables and triggers."""
    eng = init_engine_from_url(TEST_DATABASE_URL)
    create_tables()
    yield eng
    reset_engine()


@pytest.fixture
def session(engine) -> Generator[Session, None, None]:
    sess = get_session()
    yield sess
    sess.rollback()
    sess.close()


@pytest.fixture
def deterministic_clock():
    """Provide a deterministic clock for testing."""
    return DeterministicClock()


# =============================================================================
# Collaborator rows
# =============================================================================


@pytest.fixture
def test_actor_id(session) -> int:
    """A committed distributing user."""
    session.add(User(id=TEST_ACTOR_ID, username="staff", full_name="Relief Staff"))
    session.commit()
    return TEST_ACTOR_ID


@pytest.fixture
def make_beneficiary(session):
    """Factory for committed beneficiaries."""
    codes = itertools.count(1)

    def _make(beneficiary_id: int | None = None, name: str | None = None, family_size: int = 4) -> int:
        row = Beneficiary(
            id=beneficiary_id,
            beneficiary_code=f"BEN-{next(codes):04d}",
            full_name=name or "Juan Dela Cruz",
            family_size=family_size,
        )
        session.add(row)
        session.commit()
        return row.id

    return _make


@pytest.fixture
def beneficiary_id(make_beneficiary) -> int:
    return make_beneficiary(SCENARIO_BENEFICIARY_ID, "Maria Santos")


# =============================================================================
# Services
# =============================================================================


@pytest.fixture
def relief(session, deterministic_clock) -> ReliefOrchestrator:
    """Orchestrator that commits each operation, as the desktop client does."""
    return ReliefOrchestrator(session, clock=deterministic_clock, auto_commit=True)


@pytest.fixture
def inventory_service(relief):
    return relief.inventory


@pytest.fixture
def distribution_service(relief):
    return relief.distributions


@pytest.fixture
def calamity_service(relief):
    return relief.calamities


@pytest.fixture
def make_item(relief):
    """Factory for inventory items via InventoryService.create_item."""

    def _make(name: str, quantity: int, threshold: int = 10, unit: str = "pcs", category: str | None = None):
        return relief.inventory.create_item(
            name, category=category, quantity=quantity, unit=unit, low_stock_threshold=threshold
        )

    return _make
