"""Tests for derived properties on the kernel DTOs."""

from dataclasses import FrozenInstanceError
from datetime import datetime, timezone

import pytest

from relief_kernel.domain.dtos import (
    BatchDistributionResult,
    BatchOutcome,
    DistributionDraft,
    DistributionInfo,
    DistributionLine,
    DistributionLineInfo,
    InventoryItemInfo,
    QuantityChange,
    VoidResult,
)


class TestInventoryItemInfo:
    def test_low_stock_is_inclusive(self):
        item = InventoryItemInfo(1, "Rice", None, 20, "sack", 20)
        assert item.is_low_stock

    def test_above_threshold_is_not_low(self):
        item = InventoryItemInfo(1, "Rice", None, 21, "sack", 20)
        assert not item.is_low_stock

    def test_frozen(self):
        item = InventoryItemInfo(1, "Rice", None, 21, "sack", 20)
        with pytest.raises(FrozenInstanceError):
            item.quantity = 0


class TestQuantityChange:
    def test_delta_and_changed(self):
        change = QuantityChange(item_id=1, before=100, after=70)
        assert change.delta == -30
        assert change.changed

    def test_no_change(self):
        assert not QuantityChange(item_id=1, before=5, after=5).changed


class TestDistributionDraft:
    def test_lines_stored_as_tuple(self):
        draft = DistributionDraft(
            beneficiary_id=7, distributed_by=1, lines=[DistributionLine(1, 30)]
        )
        assert draft.lines == (DistributionLine(1, 30),)


class TestDistributionInfo:
    def test_total_quantity(self):
        info = DistributionInfo(
            id=1,
            beneficiary_id=7,
            calamity_id=None,
            distribution_date=datetime(2024, 1, 1, tzinfo=timezone.utc),
            distributed_by=1,
            notes=None,
            lines=(DistributionLineInfo(1, 1, "Rice", 30), DistributionLineInfo(2, 2, "Water", 6)),
        )
        assert info.total_quantity == 36


class TestVoidResult:
    def test_restored_when_lines_present(self):
        assert VoidResult(1, (DistributionLine(1, 5),)).restored

    def test_not_restored_without_lines(self):
        assert not VoidResult(1, ()).restored


class TestBatchDistributionResult:
    def test_counts(self):
        result = BatchDistributionResult(
            outcomes=(
                BatchOutcome(1, distribution_id=10),
                BatchOutcome(2, error_code="INSUFFICIENT_STOCK", error_message="short"),
                BatchOutcome(3, distribution_id=11),
            ),
            requested=3,
        )
        assert result.success_count == 2
        assert result.failure_count == 1
        assert result.distribution_ids == (10, 11)
