"""
Fault injection: a failure in the middle of create, void or restock.

A distribution touches several rows per line (header, line, item quantity,
ledger entry).  If the store fails part-way, everything written so far in
that unit of work must be rolled back.  Store errors reach the caller as
PersistenceError; anything else is re-raised unchanged.
"""

import pytest
from sqlalchemy.exc import OperationalError

from relief_kernel.db.engine import get_session
from relief_kernel.domain.dtos import DistributionDraft, DistributionLine
from relief_kernel.exceptions import PersistenceError
from relief_kernel.models.distribution import Distribution, DistributionItem
from relief_kernel.models.inventory import InventoryItem
from relief_kernel.models.ledger import InventoryTransaction
from relief_kernel.services.inventory_service import InventoryService
from relief_kernel.services.ledger_service import TransactionLedger


@pytest.fixture
def fail_on_append(monkeypatch):
    """Make the Nth ledger append raise a driver error."""

    def _install(n: int):
        original = TransactionLedger.append
        calls = {"count": 0}

        def flaky_append(self, *args, **kwargs):
            calls["count"] += 1
            if calls["count"] == n:
                raise OperationalError("INSERT INTO inventory_transactions", {}, Exception("disk I/O error"))
            return original(self, *args, **kwargs)

        monkeypatch.setattr(TransactionLedger, "append", flaky_append)
        return calls

    return _install


@pytest.fixture
def fail_on_adjust(monkeypatch):
    """Make the Nth quantity change raise an error that is not a store error."""

    def _install(n: int):
        original = InventoryService.adjust_quantity
        calls = {"count": 0}

        def broken_adjust(self, *args, **kwargs):
            calls["count"] += 1
            if calls["count"] == n:
                raise RuntimeError("unit conversion failed")
            return original(self, *args, **kwargs)

        monkeypatch.setattr(InventoryService, "adjust_quantity", broken_adjust)
        return calls

    return _install


@pytest.fixture
def two_items(make_item):
    return make_item("Rice", 100), make_item("Water", 50)


class TestCreateFaults:
    def test_failure_on_second_line_rolls_back_first(
        self, relief, session, two_items, beneficiary_id, test_actor_id, fail_on_append
    ):
        rice, water = two_items
        fail_on_append(2)
        draft = DistributionDraft(
            beneficiary_id,
            test_actor_id,
            [DistributionLine(rice.id, 30), DistributionLine(water.id, 10)],
        )

        with pytest.raises(PersistenceError) as exc_info:
            relief.distributions.create(draft)

        assert isinstance(exc_info.value.__cause__, OperationalError)
        assert relief.inventory.get_by_id(rice.id).quantity == 100
        assert relief.inventory.get_by_id(water.id).quantity == 50
        assert session.query(Distribution).count() == 0
        assert session.query(DistributionItem).count() == 0
        assert session.query(InventoryTransaction).count() == 0

    def test_failure_logged(self, relief, two_items, beneficiary_id, test_actor_id, fail_on_append, captured_logs):
        rice, _ = two_items
        fail_on_append(1)

        with pytest.raises(PersistenceError):
            relief.distributions.create(
                DistributionDraft(beneficiary_id, test_actor_id, [DistributionLine(rice.id, 1)])
            )

        [record] = [r for r in captured_logs() if r["message"] == "unit_of_work_failed"]
        assert record["level"] == "ERROR"
        assert record["operation"] == "create_distribution"
        assert record["exc_type"] == "OperationalError"

    def test_service_usable_after_failure(self, relief, two_items, beneficiary_id, test_actor_id, fail_on_append):
        rice, _ = two_items
        fail_on_append(1)
        draft = DistributionDraft(beneficiary_id, test_actor_id, [DistributionLine(rice.id, 30)])

        with pytest.raises(PersistenceError):
            relief.distributions.create(draft)
        relief.distributions.create(draft)

        assert relief.inventory.get_by_id(rice.id).quantity == 70


class TestVoidFaults:
    def test_failure_mid_void_keeps_distribution(
        self, relief, two_items, beneficiary_id, test_actor_id, fail_on_append
    ):
        rice, water = two_items
        info = relief.distributions.create(
            DistributionDraft(
                beneficiary_id,
                test_actor_id,
                [DistributionLine(rice.id, 30), DistributionLine(water.id, 10)],
            )
        )
        fail_on_append(2)

        with pytest.raises(PersistenceError):
            relief.distributions.void(info.id, actor_id=test_actor_id)

        assert relief.distributions.find_by_id(info.id) is not None
        assert relief.inventory.get_by_id(rice.id).quantity == 70
        assert relief.inventory.get_by_id(water.id).quantity == 40
        assert len(relief.ledger.all()) == 2


class TestRestockFaults:
    def test_restock_rolled_back(self, relief, make_item, fail_on_append):
        item = make_item("Rice", 10)
        fail_on_append(1)

        with pytest.raises(PersistenceError):
            relief.inventory.restock(item.id, 5)

        assert relief.inventory.get_by_id(item.id).quantity == 10


class TestUnexpectedErrors:
    """Errors that are neither kernel nor store errors still roll back."""

    def test_second_line_error_leaves_nothing_for_next_commit(
        self, relief, make_item, two_items, beneficiary_id, test_actor_id, fail_on_adjust
    ):
        rice, water = two_items
        soap = make_item("Soap", 5)
        fail_on_adjust(2)
        draft = DistributionDraft(
            beneficiary_id,
            test_actor_id,
            [DistributionLine(rice.id, 30), DistributionLine(water.id, 10)],
        )

        with pytest.raises(RuntimeError):
            relief.distributions.create(draft)
        relief.inventory.restock(soap.id, 1)

        fresh = get_session()
        try:
            assert fresh.query(Distribution).count() == 0
            assert fresh.query(InventoryTransaction).count() == 1
            assert fresh.get(InventoryItem, rice.id).quantity == 100
            assert fresh.get(InventoryItem, water.id).quantity == 50
        finally:
            fresh.close()

    def test_unexpected_error_logged(
        self, relief, two_items, beneficiary_id, test_actor_id, fail_on_adjust, captured_logs
    ):
        rice, _ = two_items
        fail_on_adjust(1)

        with pytest.raises(RuntimeError):
            relief.distributions.create(
                DistributionDraft(beneficiary_id, test_actor_id, [DistributionLine(rice.id, 1)])
            )

        [record] = [r for r in captured_logs() if r["message"] == "unit_of_work_failed"]
        assert record["operation"] == "create_distribution"
        assert record["exc_type"] == "RuntimeError"
