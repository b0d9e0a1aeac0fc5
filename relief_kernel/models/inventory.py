"""
Module: relief_kernel.models.inventory
Responsibility: ORM persistence for relief-goods inventory items and their
    on-hand quantities.
Architecture position: Kernel > Models.  May import from db/base.py only.
    MUST NOT import from services/, selectors/, domain/, or outer layers.

Invariants enforced:
    - item_name is unique (exact, case-sensitive) and non-empty.
    - quantity >= 0 at all times (CHECK ck_inventory_quantity_nonnegative).
    - low_stock_threshold >= 0 (CHECK ck_inventory_threshold_nonnegative).

Failure modes:
    - IntegrityError on duplicate item_name or a decrement below zero.

Audit relevance:
    quantity is mutated only by the restock / set-quantity policies and the
    distribution engine, each of which appends a ledger entry in the same
    unit of work.  The row itself holds no history.
"""

from sqlalchemy import CheckConstraint, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from relief_kernel.db.base import TrackedBase

DEFAULT_LOW_STOCK_THRESHOLD = 10


class InventoryItem(TrackedBase):
    """
    A stocked relief good (rice, canned goods, blankets, ...).

    Contract:
        Quantity changes go through InventoryService.adjust_quantity inside a
        unit of work that also writes the matching ledger entry.

    Guarantees:
        - quantity never negative (database CHECK).
        - item_name unique.

    Non-goals:
        - Low stock is derived (quantity <= threshold), never stored.
    """

    __tablename__ = "inventory"

    __table_args__ = (
        CheckConstraint("quantity >= 0", name="ck_inventory_quantity_nonnegative"),
        CheckConstraint(
            "low_stock_threshold >= 0", name="ck_inventory_threshold_nonnegative"
        ),
        CheckConstraint("length(item_name) > 0", name="ck_inventory_name_nonempty"),
    )

    item_name: Mapped[str] = mapped_column(String(100), nullable=False, unique=True)

    category: Mapped[str | None] = mapped_column(String(50), nullable=True)

    quantity: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    # Display unit, e.g. "sack", "pack", "pcs"
    unit: Mapped[str | None] = mapped_column(String(20), nullable=True)

    low_stock_threshold: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        default=DEFAULT_LOW_STOCK_THRESHOLD,
    )

    @property
    def is_low_stock(self) -> bool:
        return self.quantity <= self.low_stock_threshold

    def __repr__(self) -> str:
        return f"<InventoryItem {self.item_name}: {self.quantity} {self.unit or ''}>"
