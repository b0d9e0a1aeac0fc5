"""
InventoryService -- item records and the quantity-change policies.

Responsibility:
    Item CRUD, the raw ``adjust_quantity`` primitive, and the two ledgered
    policies: Restock (add a positive amount) and Set Quantity (absolute).

Architecture position:
    Kernel > Services.  Uses TransactionLedger for every ledgered change.

Invariants enforced:
    - quantity >= 0 (validated here for create/set; the CHECK constraint
      backs up adjust_quantity, which trusts its delta).
    - Exactly one ledger entry per actual quantity change made through a
      policy; a zero-delta Set Quantity writes nothing.
    - Item names unique by exact, case-sensitive match.

Failure modes:
    - RequiredFieldError / NegativeQuantityError / InvalidQuantityError on
      bad input.
    - DuplicateItemNameError on a taken name.
    - InventoryItemNotFoundError on an unknown id.
    - PersistenceError if the store rejects a change (e.g. a decrement
      below zero through adjust_quantity).
"""

from sqlalchemy import select, update
from sqlalchemy.orm import Session

from relief_kernel.domain.clock import Clock
from relief_kernel.domain.dtos import InventoryItemInfo, QuantityChange
from relief_kernel.exceptions import (
    DuplicateItemNameError,
    InvalidQuantityError,
    InventoryItemNotFoundError,
    NegativeQuantityError,
    RequiredFieldError,
)
from relief_kernel.logging_config import LogContext, get_logger
from relief_kernel.models.inventory import DEFAULT_LOW_STOCK_THRESHOLD, InventoryItem
from relief_kernel.models.ledger import TransactionType
from relief_kernel.selectors.inventory_selector import InventorySelector, inventory_item_to_dto
from relief_kernel.services.base import BaseService
from relief_kernel.services.ledger_service import TransactionLedger

logger = get_logger("services.inventory")


class InventoryService(BaseService):
    """
    Inventory store plus restock / set-quantity policies.

    Contract:
        Public write operations run in their own unit of work.
        ``adjust_quantity`` is a building block and joins the caller's.

    Guarantees:
        - Returned objects are InventoryItemInfo / QuantityChange DTOs.
    """

    def __init__(
        self,
        session: Session,
        ledger: TransactionLedger | None = None,
        clock: Clock | None = None,
        auto_commit: bool = False,
        default_low_stock_threshold: int = DEFAULT_LOW_STOCK_THRESHOLD,
    ):
        super().__init__(session, clock, auto_commit)
        self.ledger = ledger or TransactionLedger(session, self.clock)
        self.default_low_stock_threshold = default_low_stock_threshold
        self._selector = InventorySelector(session)

    # -- helpers -----------------------------------------------------------

    def _get_item(self, item_id: int, lock: bool = False) -> InventoryItem:
        stmt = select(InventoryItem).where(InventoryItem.id == item_id)
        if lock:
            stmt = stmt.with_for_update().execution_options(populate_existing=True)
        item = self.session.scalars(stmt).one_or_none()
        if item is None:
            raise InventoryItemNotFoundError(item_id)
        return item

    def _name_taken(self, name: str, exclude_id: int | None = None) -> bool:
        stmt = select(InventoryItem.id).where(InventoryItem.item_name == name)
        if exclude_id is not None:
            stmt = stmt.where(InventoryItem.id != exclude_id)
        return self.session.scalars(stmt).first() is not None

    @staticmethod
    def _validate_fields(name: str | None, quantity: int | None, threshold: int | None) -> None:
        if name is None or not name.strip():
            raise RequiredFieldError("item_name", "Item name is required")
        if quantity is not None and quantity < 0:
            raise NegativeQuantityError("quantity", quantity)
        if threshold is not None and threshold < 0:
            raise NegativeQuantityError("low_stock_threshold", threshold)

    # -- reads -------------------------------------------------------------

    def get_by_id(self, item_id: int) -> InventoryItemInfo:
        """
        Raises:
            InventoryItemNotFoundError: If no item has this id.
        """
        return inventory_item_to_dto(self._get_item(item_id))

    def find_by_id(self, item_id: int) -> InventoryItemInfo | None:
        return self._selector.find_by_id(item_id)

    def find_by_name(self, name: str) -> InventoryItemInfo | None:
        return self._selector.find_by_name(name)

    def get_all(self) -> list[InventoryItemInfo]:
        return self._selector.all()

    def get_low_stock(self) -> list[InventoryItemInfo]:
        return self._selector.low_stock()

    # -- item records ------------------------------------------------------

    def create_item(
        self,
        name: str,
        category: str | None = None,
        quantity: int = 0,
        unit: str | None = None,
        low_stock_threshold: int | None = None,
    ) -> InventoryItemInfo:
        """
        Add a new item with its opening quantity.

        The opening quantity is not ledgered: the ledger records changes,
        and creation is not a change to an existing balance.
        """
        threshold = (
            self.default_low_stock_threshold if low_stock_threshold is None else low_stock_threshold
        )
        self._validate_fields(name, quantity, threshold)

        with self._unit_of_work("create_item"):
            if self._name_taken(name):
                raise DuplicateItemNameError(name)
            item = InventoryItem(
                item_name=name,
                category=category,
                quantity=quantity,
                unit=unit,
                low_stock_threshold=threshold,
            )
            self.session.add(item)
            self.session.flush()
            info = inventory_item_to_dto(item)

        logger.info(
            "inventory_item_created",
            extra={"inventory_id": info.id, "item_name": name, "quantity": quantity},
        )
        return info

    def update_item(
        self,
        item_id: int,
        name: str,
        category: str | None,
        unit: str | None,
        low_stock_threshold: int,
        quantity: int | None = None,
        actor_id: int | None = None,
        notes: str | None = None,
    ) -> InventoryItemInfo:
        """
        Change an item's descriptive fields.

        A ``quantity`` that differs from the current one goes through
        ``set_quantity`` in the same unit of work, so it is ledgered.
        """
        self._validate_fields(name, quantity, low_stock_threshold)

        with self._unit_of_work("update_item"):
            item = self._get_item(item_id, lock=True)
            if self._name_taken(name, exclude_id=item_id):
                raise DuplicateItemNameError(name)
            item.item_name = name
            item.category = category
            item.unit = unit
            item.low_stock_threshold = low_stock_threshold
            self.session.flush()
            if quantity is not None:
                self.set_quantity(item_id, quantity, actor_id=actor_id, notes=notes)
            info = inventory_item_to_dto(item)

        logger.info("inventory_item_updated", extra={"inventory_id": item_id, "item_name": name})
        return info

    # -- quantity primitive ------------------------------------------------

    def adjust_quantity(self, item_id: int, delta: int) -> QuantityChange:
        """
        Atomically add ``delta`` (may be negative) to the on-hand quantity.

        Issued as ``UPDATE ... SET quantity = quantity + :delta`` so the
        change never depends on a stale read.  Callers validate that the
        result stays non-negative; the CHECK constraint rejects it otherwise.

        Raises:
            InventoryItemNotFoundError: If no item has this id.
            PersistenceError: If the store rejects the new quantity.
        """
        item = self._get_item(item_id)
        with self._store_errors("adjust_quantity"):
            self.session.execute(
                update(InventoryItem)
                .where(InventoryItem.id == item_id)
                .values(quantity=InventoryItem.quantity + delta)
                .execution_options(synchronize_session=False)
            )
            self.session.refresh(item, attribute_names=["quantity"])
        after = item.quantity
        return QuantityChange(item_id=item_id, before=after - delta, after=after)

    # -- ledgered policies -------------------------------------------------

    def restock(
        self,
        item_id: int,
        amount: int,
        actor_id: int | None = None,
        notes: str | None = None,
    ) -> QuantityChange:
        """
        Add ``amount`` units and append one Restock entry.

        Raises:
            InvalidQuantityError: If amount <= 0.
            InventoryItemNotFoundError: If no item has this id.
        """
        if amount is None or amount <= 0:
            raise InvalidQuantityError(
                "amount", amount, "Restock quantity must be greater than 0"
            )

        with LogContext.bind(item_id=item_id, actor_id=actor_id):
            with self._unit_of_work("restock"):
                change = self.adjust_quantity(item_id, amount)
                self.ledger.append(
                    item_id,
                    TransactionType.RESTOCK,
                    delta=amount,
                    before=change.before,
                    after=change.after,
                    note=notes,
                    actor_id=actor_id,
                )

            logger.info(
                "inventory_restocked",
                extra={"amount": amount, "quantity_before": change.before, "quantity_after": change.after},
            )
        return change

    def set_quantity(
        self,
        item_id: int,
        new_quantity: int,
        actor_id: int | None = None,
        notes: str | None = None,
    ) -> QuantityChange:
        """
        Set the on-hand quantity to an absolute value.

        A Set Quantity entry is appended only when the quantity actually
        changes; setting the current value is a silent no-op.

        Raises:
            NegativeQuantityError: If new_quantity < 0.
            InventoryItemNotFoundError: If no item has this id.
        """
        if new_quantity is None or new_quantity < 0:
            raise NegativeQuantityError("quantity", new_quantity)

        with LogContext.bind(item_id=item_id, actor_id=actor_id):
            with self._unit_of_work("set_quantity"):
                item = self._get_item(item_id, lock=True)
                current = item.quantity
                delta = new_quantity - current
                if delta == 0:
                    change = QuantityChange(item_id=item_id, before=current, after=current)
                else:
                    change = self.adjust_quantity(item_id, delta)
                    self.ledger.append(
                        item_id,
                        TransactionType.SET_QUANTITY,
                        delta=delta,
                        before=change.before,
                        after=change.after,
                        note=notes,
                        actor_id=actor_id,
                    )

            if change.changed:
                logger.info(
                    "inventory_quantity_set",
                    extra={"quantity_before": change.before, "quantity_after": change.after},
                )
            else:
                logger.debug("inventory_quantity_unchanged", extra={"quantity": current})
        return change
