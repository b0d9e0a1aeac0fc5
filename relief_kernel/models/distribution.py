"""
Module: relief_kernel.models.distribution
Responsibility: ORM persistence for distributions (one act of giving goods to
    one beneficiary) and their line items.
Architecture position: Kernel > Models.  May import from db/base.py only.
    MUST NOT import from services/, selectors/, domain/, or outer layers.

Invariants enforced:
    - Line quantity > 0 (CHECK ck_distribution_items_quantity_positive).
    - Lines are exclusively owned: ON DELETE CASCADE at the database and
      delete-orphan at the ORM level.
    - Lines are never updated (ORM listener in db/immutability.py).
    - A distribution has at least one line (checked by DistributionService
      before insert; a persisted header without lines can only come from
      outside the kernel).

Failure modes:
    - IntegrityError on unknown beneficiary / user / calamity / item ids.

Audit relevance:
    Voiding deletes the header and its lines; the ledger keeps the history
    through reference_id.
"""

from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import CheckConstraint, ForeignKey, Index, Integer, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from relief_kernel.db.base import Base

if TYPE_CHECKING:
    from relief_kernel.models.calamity import Calamity
    from relief_kernel.models.directory import Beneficiary, User
    from relief_kernel.models.inventory import InventoryItem


class Distribution(Base):
    """
    Distribution header.

    Contract:
        Created and voided only by DistributionService, each in one unit of
        work together with the inventory and ledger changes.

    Guarantees:
        - lines preserve insertion order (ordered by line id).
    """

    __tablename__ = "distributions"

    __table_args__ = (
        Index("idx_distributions_beneficiary", "beneficiary_id"),
        Index("idx_distributions_calamity", "calamity_id"),
        Index("idx_distributions_date", "distribution_date"),
    )

    beneficiary_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("beneficiaries.id"),
        nullable=False,
    )

    calamity_id: Mapped[int | None] = mapped_column(
        Integer,
        ForeignKey("calamities.id"),
        nullable=True,
    )

    distribution_date: Mapped[datetime] = mapped_column(nullable=False)

    distributed_by: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("users.id"),
        nullable=False,
    )

    notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    created_at: Mapped[datetime] = mapped_column(nullable=False)

    lines: Mapped[list["DistributionItem"]] = relationship(
        back_populates="distribution",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="DistributionItem.id",
        lazy="selectin",
    )

    beneficiary: Mapped["Beneficiary"] = relationship(foreign_keys=[beneficiary_id])

    distributor: Mapped["User"] = relationship(foreign_keys=[distributed_by])

    calamity: Mapped["Calamity | None"] = relationship(foreign_keys=[calamity_id])

    @property
    def total_quantity(self) -> int:
        return sum(line.quantity for line in self.lines)

    def __repr__(self) -> str:
        return f"<Distribution {self.id} beneficiary={self.beneficiary_id} lines={len(self.lines)}>"


class DistributionItem(Base):
    """
    One (item, quantity) line of a distribution.

    Contract:
        Immutable after creation; removed only with its parent.
    """

    __tablename__ = "distribution_items"

    __table_args__ = (
        CheckConstraint("quantity > 0", name="ck_distribution_items_quantity_positive"),
        Index("idx_distribution_items_distribution", "distribution_id"),
        Index("idx_distribution_items_inventory", "inventory_id"),
    )

    distribution_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("distributions.id", ondelete="CASCADE"),
        nullable=False,
    )

    inventory_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("inventory.id"),
        nullable=False,
    )

    quantity: Mapped[int] = mapped_column(Integer, nullable=False)

    distribution: Mapped[Distribution] = relationship(back_populates="lines")

    item: Mapped["InventoryItem"] = relationship(foreign_keys=[inventory_id], lazy="joined")

    def __repr__(self) -> str:
        return f"<DistributionItem {self.inventory_id} x{self.quantity}>"
