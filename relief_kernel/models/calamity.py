"""
Module: relief_kernel.models.calamity
Responsibility: ORM persistence for calamities (named relief events) and their
    standard item/quantity templates.
Architecture position: Kernel > Models.  May import from db/base.py only.
    MUST NOT import from services/, selectors/, domain/, or outer layers.

Invariants enforced:
    - name unique (exact, case-sensitive).
    - status in {Active, Inactive}.
    - Template quantity > 0; one template row per (calamity, item).
    - A calamity referenced by a distribution cannot be deleted (FK from
      distributions.calamity_id without cascade).

Failure modes:
    - IntegrityError on duplicate name, duplicate template item, or delete
      of a referenced calamity.
"""

from datetime import datetime
from enum import Enum
from typing import TYPE_CHECKING

from sqlalchemy import CheckConstraint, ForeignKey, Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from relief_kernel.db.base import Base

if TYPE_CHECKING:
    from relief_kernel.models.inventory import InventoryItem


class CalamityStatus(str, Enum):
    """Calamity lifecycle status.

    Only Inactive calamities may be deleted.
    """

    ACTIVE = "Active"
    INACTIVE = "Inactive"


class Calamity(Base):
    """
    A named relief event (typhoon, flood, fire, ...).

    Contract:
        Groups distributions and carries an advisory template of standard
        quantities per item.

    Non-goals:
        - Template quantities are ceilings at template-load time, not
          invariants on the calamity itself.
    """

    __tablename__ = "calamities"

    __table_args__ = (
        CheckConstraint("status IN ('Active', 'Inactive')", name="ck_calamities_status"),
    )

    name: Mapped[str] = mapped_column(String(100), nullable=False, unique=True)

    description: Mapped[str | None] = mapped_column(Text, nullable=True)

    status: Mapped[CalamityStatus] = mapped_column(
        String(10),
        nullable=False,
        default=CalamityStatus.ACTIVE.value,
    )

    created_at: Mapped[datetime] = mapped_column(nullable=False)

    items: Mapped[list["CalamityItem"]] = relationship(
        back_populates="calamity",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="CalamityItem.id",
        lazy="selectin",
    )

    @property
    def is_active(self) -> bool:
        return self.status == CalamityStatus.ACTIVE.value

    def __repr__(self) -> str:
        return f"<Calamity {self.name} ({self.status})>"


class CalamityItem(Base):
    """Standard quantity of one inventory item for a calamity."""

    __tablename__ = "calamity_items"

    __table_args__ = (
        UniqueConstraint("calamity_id", "inventory_id", name="uq_calamity_items_item"),
        CheckConstraint("standard_quantity > 0", name="ck_calamity_items_quantity_positive"),
    )

    calamity_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("calamities.id", ondelete="CASCADE"),
        nullable=False,
    )

    inventory_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("inventory.id"),
        nullable=False,
    )

    standard_quantity: Mapped[int] = mapped_column(Integer, nullable=False)

    calamity: Mapped[Calamity] = relationship(back_populates="items")

    item: Mapped["InventoryItem"] = relationship(foreign_keys=[inventory_id], lazy="joined")
