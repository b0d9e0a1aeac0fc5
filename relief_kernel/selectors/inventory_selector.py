"""
Module: relief_kernel.selectors.inventory_selector
Responsibility: Read access to inventory items and the derived low-stock view.
Architecture position: Kernel > Selectors.
"""

from collections.abc import Iterable

from sqlalchemy import func, select

from relief_kernel.domain.dtos import InventoryItemInfo
from relief_kernel.models.inventory import InventoryItem
from relief_kernel.selectors.base import BaseSelector


def inventory_item_to_dto(item: InventoryItem) -> InventoryItemInfo:
    return InventoryItemInfo(
        id=item.id,
        name=item.item_name,
        category=item.category,
        quantity=item.quantity,
        unit=item.unit,
        low_stock_threshold=item.low_stock_threshold,
    )


class InventorySelector(BaseSelector):
    """Queries over inventory items; never writes."""

    def find_by_id(self, item_id: int) -> InventoryItemInfo | None:
        item = self.session.get(InventoryItem, item_id)
        return inventory_item_to_dto(item) if item is not None else None

    def find_by_name(self, name: str) -> InventoryItemInfo | None:
        """Exact, case-sensitive name match."""
        item = self.session.scalars(
            select(InventoryItem).where(InventoryItem.item_name == name)
        ).one_or_none()
        return inventory_item_to_dto(item) if item is not None else None

    def all(self) -> list[InventoryItemInfo]:
        stmt = select(InventoryItem).order_by(InventoryItem.item_name)
        return [inventory_item_to_dto(i) for i in self.session.scalars(stmt)]

    def low_stock(self) -> list[InventoryItemInfo]:
        """Items at or below their threshold, emptiest first."""
        stmt = (
            select(InventoryItem)
            .where(InventoryItem.quantity <= InventoryItem.low_stock_threshold)
            .order_by(InventoryItem.quantity, InventoryItem.item_name)
        )
        return [inventory_item_to_dto(i) for i in self.session.scalars(stmt)]

    def quantities(self, item_ids: Iterable[int]) -> dict[int, int]:
        """Current on-hand quantity per existing item id."""
        ids = list(item_ids)
        if not ids:
            return {}
        rows = self.session.execute(
            select(InventoryItem.id, InventoryItem.quantity).where(InventoryItem.id.in_(ids))
        )
        return {item_id: quantity for item_id, quantity in rows}

    def count(self) -> int:
        return self.session.scalar(select(func.count(InventoryItem.id))) or 0

    def low_stock_count(self) -> int:
        stmt = select(func.count(InventoryItem.id)).where(
            InventoryItem.quantity <= InventoryItem.low_stock_threshold
        )
        return self.session.scalar(stmt) or 0
