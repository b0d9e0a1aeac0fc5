"""
Module: relief_kernel.selectors.ledger_selector
Responsibility: Read access to the inventory transaction ledger for audit
    display.
Architecture position: Kernel > Selectors.

Ordering: newest first.  Entries written in the same instant keep their
insertion order through the id tiebreak, so the display matches the order
in which the changes were applied, reversed.
"""

from sqlalchemy import func, select

from relief_kernel.domain.dtos import LedgerEntryInfo
from relief_kernel.models.ledger import InventoryTransaction, TransactionType
from relief_kernel.selectors.base import BaseSelector

_NEWEST_FIRST = (InventoryTransaction.id.desc(),)


def ledger_entry_to_dto(entry: InventoryTransaction) -> LedgerEntryInfo:
    return LedgerEntryInfo(
        id=entry.id,
        item_id=entry.inventory_id,
        actor_id=entry.user_id,
        kind=TransactionType(entry.transaction_type),
        delta=entry.quantity_change,
        before=entry.quantity_before,
        after=entry.quantity_after,
        note=entry.notes,
        reference_id=entry.reference_id,
        reference_type=entry.reference_type,
        created_at=entry.created_at,
    )


class LedgerSelector(BaseSelector):
    """Queries over ledger entries; never writes."""

    def by_item(self, item_id: int) -> list[LedgerEntryInfo]:
        stmt = (
            select(InventoryTransaction)
            .where(InventoryTransaction.inventory_id == item_id)
            .order_by(*_NEWEST_FIRST)
        )
        return [ledger_entry_to_dto(e) for e in self.session.scalars(stmt)]

    def all(self, limit: int | None = None) -> list[LedgerEntryInfo]:
        stmt = select(InventoryTransaction).order_by(*_NEWEST_FIRST)
        if limit is not None:
            stmt = stmt.limit(limit)
        return [ledger_entry_to_dto(e) for e in self.session.scalars(stmt)]

    def by_reference(self, reference_type: str, reference_id: int) -> list[LedgerEntryInfo]:
        """Entries written for one originating record, e.g. a distribution."""
        stmt = (
            select(InventoryTransaction)
            .where(
                InventoryTransaction.reference_type == reference_type,
                InventoryTransaction.reference_id == reference_id,
            )
            .order_by(*_NEWEST_FIRST)
        )
        return [ledger_entry_to_dto(e) for e in self.session.scalars(stmt)]

    def count_for_item(self, item_id: int) -> int:
        stmt = select(func.count(InventoryTransaction.id)).where(
            InventoryTransaction.inventory_id == item_id
        )
        return self.session.scalar(stmt) or 0

    def net_change_for_item(self, item_id: int) -> int:
        """Sum of all deltas for an item."""
        stmt = select(func.coalesce(func.sum(InventoryTransaction.quantity_change), 0)).where(
            InventoryTransaction.inventory_id == item_id
        )
        return self.session.scalar(stmt)
