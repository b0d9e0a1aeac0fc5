"""
Ledger and distribution-line immutability.

Two layers hold the line independently:

1. ORM listeners raise ImmutabilityViolationError before SQL is sent.
2. SQLite triggers reject raw UPDATE/DELETE even with the listeners removed.

The ledger's arithmetic (after = before + delta) is also backed by a CHECK
constraint, so a hand-built row that does not balance never lands.
"""

import pytest
from sqlalchemy import text
from sqlalchemy.exc import IntegrityError

from relief_kernel.db.engine import get_engine
from relief_kernel.db.immutability import (
    register_immutability_listeners,
    unregister_immutability_listeners,
)
from relief_kernel.db.triggers import (
    ALL_TRIGGER_NAMES,
    get_installed_triggers,
    triggers_installed,
)
from relief_kernel.domain.dtos import DistributionDraft, DistributionLine
from relief_kernel.exceptions import ImmutabilityViolationError, LedgerArithmeticError
from relief_kernel.models.distribution import DistributionItem
from relief_kernel.models.ledger import InventoryTransaction, TransactionType


@pytest.fixture
def restocked_item(relief, make_item):
    item = make_item("Rice", 10)
    relief.inventory.restock(item.id, 5)
    return item


@pytest.fixture
def ledger_row(session, restocked_item):
    return session.query(InventoryTransaction).filter_by(inventory_id=restocked_item.id).one()


@pytest.fixture
def without_listeners():
    unregister_immutability_listeners()
    yield
    register_immutability_listeners()


class TestOrmListeners:
    """Layer 1: modifications through the ORM are refused."""

    def test_update_ledger_entry_blocked(self, session, ledger_row):
        ledger_row.notes = "edited"
        with pytest.raises(ImmutabilityViolationError) as exc_info:
            session.flush()
        assert exc_info.value.entity_type == "InventoryTransaction"

    def test_delete_ledger_entry_blocked(self, session, ledger_row):
        session.delete(ledger_row)
        with pytest.raises(ImmutabilityViolationError):
            session.flush()

    def test_update_distribution_line_blocked(self, relief, session, make_item, beneficiary_id, test_actor_id):
        rice = make_item("Rice", 100)
        relief.distributions.create(
            DistributionDraft(beneficiary_id, test_actor_id, [DistributionLine(rice.id, 5)])
        )
        line = session.query(DistributionItem).one()

        line.quantity = 50
        with pytest.raises(ImmutabilityViolationError) as exc_info:
            session.flush()
        assert exc_info.value.entity_type == "DistributionItem"

    def test_violation_logged(self, session, ledger_row, captured_logs):
        ledger_row.quantity_change = 99
        with pytest.raises(ImmutabilityViolationError):
            session.flush()
        [record] = [r for r in captured_logs() if r["message"] == "immutability_violation_blocked"]
        assert record["operation"] == "UPDATE"


class TestDatabaseTriggers:
    """Layer 2: raw SQL is refused by the database itself."""

    def test_triggers_installed(self, engine):
        assert triggers_installed(get_engine())
        assert get_installed_triggers(get_engine()) == sorted(ALL_TRIGGER_NAMES)

    def test_raw_update_blocked(self, session, ledger_row, without_listeners):
        with pytest.raises(IntegrityError, match="append-only"):
            session.execute(
                text("UPDATE inventory_transactions SET quantity_change = 0 WHERE id = :id"),
                {"id": ledger_row.id},
            )

    def test_raw_delete_blocked(self, session, ledger_row, without_listeners):
        with pytest.raises(IntegrityError, match="append-only"):
            session.execute(text("DELETE FROM inventory_transactions"))

    def test_orm_update_blocked_without_listeners(self, session, ledger_row, without_listeners):
        ledger_row.notes = "edited"
        with pytest.raises(IntegrityError):
            session.flush()


class TestLedgerArithmetic:
    """Entries must balance."""

    def test_append_rejects_unbalanced(self, relief, make_item):
        item = make_item("Rice", 10)
        with pytest.raises(LedgerArithmeticError):
            relief.ledger.append(item.id, TransactionType.RESTOCK, delta=5, before=10, after=16)

    def test_check_constraint_rejects_unbalanced_row(self, session, make_item, deterministic_clock):
        item = make_item("Rice", 10)
        session.add(
            InventoryTransaction(
                inventory_id=item.id,
                transaction_type=TransactionType.RESTOCK.value,
                quantity_change=5,
                quantity_before=10,
                quantity_after=16,
                created_at=deterministic_clock.now(),
            )
        )
        with pytest.raises(IntegrityError):
            session.flush()

    def test_unknown_transaction_type_rejected(self, session, make_item, deterministic_clock):
        item = make_item("Rice", 10)
        session.add(
            InventoryTransaction(
                inventory_id=item.id,
                transaction_type="Shrinkage",
                quantity_change=-1,
                quantity_before=10,
                quantity_after=9,
                created_at=deterministic_clock.now(),
            )
        )
        with pytest.raises(IntegrityError):
            session.flush()
