"""
Module: relief_kernel.models.ledger
Responsibility: ORM persistence for the inventory transaction ledger -- the
    append-only audit trail of every on-hand quantity change.
Architecture position: Kernel > Models.  May import from db/base.py only.
    MUST NOT import from services/, selectors/, domain/, or outer layers.

Invariants enforced:
    - quantity_after = quantity_before + quantity_change (CHECK).
    - transaction_type in {Restock, Set Quantity, Distribution, Void Distribution}.
    - Rows are immutable from creation: ORM listeners (db/immutability.py)
      and SQLite triggers (db/triggers.py) reject UPDATE and DELETE.

Failure modes:
    - IntegrityError on unknown inventory_id / user_id (foreign keys).
    - ImmutabilityViolationError on any ORM update or delete.

Audit relevance:
    This table is the audit trail of record.  reference_id is deliberately
    NOT a foreign key: it must keep pointing at a distribution id after the
    distribution has been voided and deleted.
"""

from datetime import datetime
from enum import Enum

from sqlalchemy import CheckConstraint, ForeignKey, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from relief_kernel.db.base import Base


class TransactionType(str, Enum):
    """Kind of quantity change recorded by a ledger entry.

    Values match the persisted strings exactly.
    """

    RESTOCK = "Restock"
    SET_QUANTITY = "Set Quantity"
    DISTRIBUTION = "Distribution"
    VOID_DISTRIBUTION = "Void Distribution"


REFERENCE_TYPE_DISTRIBUTION = "Distribution"

_TYPE_VALUES = ", ".join(f"'{t.value}'" for t in TransactionType)


class InventoryTransaction(Base):
    """
    One immutable ledger entry.

    Contract:
        Inserted only through TransactionLedger.append.  Never updated or
        deleted.

    Guarantees:
        - Arithmetic closes: after == before + change.
        - created_at comes from the injected clock, not the database.
    """

    __tablename__ = "inventory_transactions"

    __table_args__ = (
        CheckConstraint(
            f"transaction_type IN ({_TYPE_VALUES})",
            name="ck_inventory_transactions_type",
        ),
        CheckConstraint(
            "quantity_after = quantity_before + quantity_change",
            name="ck_inventory_transactions_arithmetic",
        ),
        Index("idx_inventory_transactions_item", "inventory_id"),
        Index("idx_inventory_transactions_reference", "reference_type", "reference_id"),
    )

    inventory_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("inventory.id"),
        nullable=False,
    )

    # Null for system-initiated changes
    user_id: Mapped[int | None] = mapped_column(
        Integer,
        ForeignKey("users.id"),
        nullable=True,
    )

    transaction_type: Mapped[TransactionType] = mapped_column(String(20), nullable=False)

    quantity_change: Mapped[int] = mapped_column(Integer, nullable=False)

    quantity_before: Mapped[int] = mapped_column(Integer, nullable=False)

    quantity_after: Mapped[int] = mapped_column(Integer, nullable=False)

    notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    reference_id: Mapped[int | None] = mapped_column(Integer, nullable=True)

    reference_type: Mapped[str | None] = mapped_column(String(50), nullable=True)

    created_at: Mapped[datetime] = mapped_column(nullable=False)

    def __repr__(self) -> str:
        return (
            f"<InventoryTransaction {self.id} item={self.inventory_id} "
            f"{self.transaction_type} {self.quantity_change:+d}>"
        )
