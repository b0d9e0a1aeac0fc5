"""
Tests for DistributionService.distribute_batch.

The batch is best-effort: each beneficiary gets an independent distribution,
failures are recorded per beneficiary, and the caller can cancel between
beneficiaries.
"""

import pytest
from sqlalchemy.exc import OperationalError

from relief_kernel.domain.dtos import DistributionLine
from relief_kernel.exceptions import InsufficientStockError, RequiredFieldError
from relief_kernel.models.distribution import Distribution
from relief_kernel.models.ledger import InventoryTransaction
from relief_kernel.services.ledger_service import TransactionLedger
from relief_kernel.services.relief_orchestrator import ReliefOrchestrator


@pytest.fixture
def households(make_beneficiary):
    return [make_beneficiary(name=f"Household {n}") for n in range(1, 4)]


class TestBatchDistribution:
    def test_one_distribution_per_beneficiary(self, relief, make_item, households, test_actor_id):
        rice = make_item("Rice", 100)

        result = relief.distributions.distribute_batch(
            households, [DistributionLine(rice.id, 10)], distributed_by=test_actor_id
        )

        assert result.success_count == 3
        assert not result.cancelled
        assert relief.inventory.get_by_id(rice.id).quantity == 70
        assert len(relief.ledger.by_item(rice.id)) == 3
        assert {d.beneficiary_id for d in relief.distributions.get_all()} == set(households)

    def test_precheck_refuses_whole_batch(self, relief, make_item, households, test_actor_id):
        """3 x 40 > 100: nothing is distributed."""
        rice = make_item("Rice", 100)

        with pytest.raises(InsufficientStockError) as exc_info:
            relief.distributions.distribute_batch(
                households, [DistributionLine(rice.id, 40)], distributed_by=test_actor_id
            )

        assert exc_info.value.requested == 120
        assert relief.inventory.get_by_id(rice.id).quantity == 100
        assert relief.distributions.get_all() == []

    def test_without_precheck_later_beneficiaries_fail(self, relief, make_item, households, test_actor_id):
        """Earlier distributions stay committed when stock runs out mid-batch."""
        rice = make_item("Rice", 100)

        result = relief.distributions.distribute_batch(
            households,
            [DistributionLine(rice.id, 40)],
            distributed_by=test_actor_id,
            precheck=False,
        )

        assert result.success_count == 2
        [failed] = [o for o in result.outcomes if not o.succeeded]
        assert failed.beneficiary_id == households[2]
        assert failed.error_code == "INSUFFICIENT_STOCK"
        assert relief.inventory.get_by_id(rice.id).quantity == 20

    def test_unknown_beneficiary_recorded(self, relief, make_item, households, test_actor_id):
        rice = make_item("Rice", 100)

        result = relief.distributions.distribute_batch(
            [households[0], 999], [DistributionLine(rice.id, 1)], distributed_by=test_actor_id
        )

        assert [o.error_code for o in result.outcomes] == [None, "BENEFICIARY_NOT_FOUND"]

    def test_cancellation_stops_before_next(self, relief, make_item, households, test_actor_id):
        rice = make_item("Rice", 100)
        calls = []

        def should_continue():
            calls.append(1)
            return len(calls) <= 1

        result = relief.distributions.distribute_batch(
            households,
            [DistributionLine(rice.id, 5)],
            distributed_by=test_actor_id,
            should_continue=should_continue,
        )

        assert result.cancelled
        assert result.success_count == 1
        assert result.requested == 3
        assert relief.inventory.get_by_id(rice.id).quantity == 95

    def test_progress_reported(self, relief, make_item, households, test_actor_id):
        rice = make_item("Rice", 100)
        progress = []

        relief.distributions.distribute_batch(
            households,
            [DistributionLine(rice.id, 1)],
            distributed_by=test_actor_id,
            on_progress=lambda done, total: progress.append((done, total)),
        )

        assert progress == [(1, 3), (2, 3), (3, 3)]

    def test_no_beneficiaries(self, relief, make_item, test_actor_id):
        rice = make_item("Rice", 100)
        with pytest.raises(RequiredFieldError) as exc_info:
            relief.distributions.distribute_batch([], [DistributionLine(rice.id, 1)], test_actor_id)
        assert str(exc_info.value) == "Select at least one beneficiary"

    def test_batch_logged(self, relief, make_item, households, test_actor_id, captured_logs):
        rice = make_item("Rice", 100)
        relief.distributions.distribute_batch(households, [DistributionLine(rice.id, 1)], test_actor_id)
        [record] = [r for r in captured_logs() if r["message"] == "batch_distribution_completed"]
        assert record["succeeded"] == 3
        assert record["failed"] == 0


class TestCallerOwnedBatch:
    """With auto_commit=False each beneficiary runs in its own savepoint."""

    def test_failed_beneficiary_leaves_nothing_in_caller_transaction(
        self, session, make_item, households, test_actor_id, monkeypatch
    ):
        rice = make_item("Rice", 100)
        original = TransactionLedger.append
        calls = {"count": 0}

        def flaky_append(self, *args, **kwargs):
            calls["count"] += 1
            if calls["count"] == 2:
                raise OperationalError("INSERT INTO inventory_transactions", {}, Exception("disk I/O error"))
            return original(self, *args, **kwargs)

        monkeypatch.setattr(TransactionLedger, "append", flaky_append)
        relief = ReliefOrchestrator(session, auto_commit=False)

        result = relief.distributions.distribute_batch(
            households, [DistributionLine(rice.id, 10)], distributed_by=test_actor_id
        )
        session.commit()

        assert [o.error_code for o in result.outcomes] == [None, "PERSISTENCE_ERROR", None]
        assert session.query(Distribution).count() == 2
        assert session.query(InventoryTransaction).count() == 2
        assert relief.inventory.get_by_id(rice.id).quantity == 80
        assert {d.beneficiary_id for d in relief.distributions.get_all()} == {households[0], households[2]}

    def test_rejected_beneficiary_does_not_block_the_rest(self, session, make_item, households, test_actor_id):
        rice = make_item("Rice", 100)
        relief = ReliefOrchestrator(session, auto_commit=False)

        result = relief.distributions.distribute_batch(
            [households[0], 999, households[1]], [DistributionLine(rice.id, 5)], distributed_by=test_actor_id
        )
        session.commit()

        assert result.success_count == 2
        assert relief.inventory.get_by_id(rice.id).quantity == 90
