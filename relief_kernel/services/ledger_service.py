"""
TransactionLedger -- append-only inventory audit trail.

Responsibility:
    The only writer of ``inventory_transactions``.  Exposes ``append`` plus
    read helpers; there is no update or delete on the interface.

Architecture position:
    Kernel > Services.  Called by InventoryService (restock / set quantity)
    and DistributionService (create / void) inside their units of work.

Invariants enforced:
    - after == before + delta, checked before insert and again by a CHECK
      constraint.
    - Entries are never modified (ORM listeners + SQLite triggers).

Failure modes:
    - LedgerArithmeticError if the numbers do not close.
    - PersistenceError on an unknown item or actor id (foreign key).
"""

from sqlalchemy.orm import Session

from relief_kernel.domain.clock import Clock
from relief_kernel.domain.dtos import LedgerEntryInfo
from relief_kernel.exceptions import LedgerArithmeticError
from relief_kernel.logging_config import get_logger
from relief_kernel.models.ledger import InventoryTransaction, TransactionType
from relief_kernel.selectors.ledger_selector import LedgerSelector, ledger_entry_to_dto
from relief_kernel.services.base import BaseService

logger = get_logger("services.ledger")


class TransactionLedger(BaseService):
    """
    Append-only ledger of quantity changes.

    Contract:
        ``append`` flushes one row inside the caller's unit of work and
        never commits.

    Non-goals:
        - Does not read or change the item's quantity; callers pass the
          before/after they observed.
    """

    def __init__(self, session: Session, clock: Clock | None = None):
        super().__init__(session, clock, auto_commit=False)
        self._selector = LedgerSelector(session)

    def append(
        self,
        item_id: int,
        kind: TransactionType,
        delta: int,
        before: int,
        after: int,
        note: str | None = None,
        actor_id: int | None = None,
        reference_id: int | None = None,
        reference_type: str | None = None,
    ) -> LedgerEntryInfo:
        if after != before + delta:
            raise LedgerArithmeticError(item_id, before, delta, after)

        entry = InventoryTransaction(
            inventory_id=item_id,
            user_id=actor_id,
            transaction_type=TransactionType(kind).value,
            quantity_change=delta,
            quantity_before=before,
            quantity_after=after,
            notes=note,
            reference_id=reference_id,
            reference_type=reference_type,
            created_at=self.clock.now(),
        )
        with self._store_errors("ledger_append"):
            self.session.add(entry)
            self.session.flush()

        logger.info(
            "ledger_entry_appended",
            extra={
                "ledger_entry_id": entry.id,
                "inventory_id": item_id,
                "transaction_type": entry.transaction_type,
                "quantity_change": delta,
                "quantity_before": before,
                "quantity_after": after,
                "reference_id": reference_id,
            },
        )
        return ledger_entry_to_dto(entry)

    # Reads

    def by_item(self, item_id: int) -> list[LedgerEntryInfo]:
        """Entries for one item, newest first."""
        return self._selector.by_item(item_id)

    def all(self) -> list[LedgerEntryInfo]:
        """Every entry, newest first."""
        return self._selector.all()

    def by_reference(self, reference_type: str, reference_id: int) -> list[LedgerEntryInfo]:
        return self._selector.by_reference(reference_type, reference_id)
