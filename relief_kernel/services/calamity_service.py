"""
CalamityService -- named relief events and their distribution templates.

Responsibility:
    Create, update and delete calamities; expand a calamity's template into
    distribution lines that fit current stock.

Architecture position:
    Kernel > Services.  Template expansion itself is pure
    (``relief_kernel.domain.template``); this service only gathers the
    template and a stock snapshot.

Invariants enforced:
    - Names unique by exact, case-sensitive match; status Active/Inactive,
      defaulting to Active.
    - Template: one row per item, standard quantity > 0; on update every
      standard quantity must also be <= the item's current stock.
    - Delete refuses (returns False) for an Active calamity or one that any
      distribution references.

Failure modes:
    - RequiredFieldError, InvalidStatusError, InvalidQuantityError,
      DuplicateCalamityNameError, DuplicateTemplateItemError,
      TemplateQuantityExceedsStockError.
    - CalamityNotFoundError / InventoryItemNotFoundError.
"""

from collections.abc import Sequence

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from relief_kernel.domain.clock import Clock
from relief_kernel.domain.dtos import (
    CalamityInfo,
    CalamityItemInfo,
    CalamityItemSpec,
    DistributionDraft,
    DistributionLine,
)
from relief_kernel.domain.template import expand_template
from relief_kernel.exceptions import (
    CalamityNotFoundError,
    DuplicateCalamityNameError,
    DuplicateTemplateItemError,
    InvalidQuantityError,
    InvalidStatusError,
    InventoryItemNotFoundError,
    RequiredFieldError,
    TemplateQuantityExceedsStockError,
)
from relief_kernel.logging_config import LogContext, get_logger
from relief_kernel.models.calamity import Calamity, CalamityItem, CalamityStatus
from relief_kernel.models.distribution import Distribution
from relief_kernel.models.inventory import InventoryItem
from relief_kernel.selectors.inventory_selector import InventorySelector
from relief_kernel.services.base import BaseService

logger = get_logger("services.calamity")

_STATUS_VALUES = tuple(s.value for s in CalamityStatus)


def _calamity_to_dto(calamity: Calamity) -> CalamityInfo:
    return CalamityInfo(
        id=calamity.id,
        name=calamity.name,
        description=calamity.description,
        status=CalamityStatus(calamity.status),
        created_at=calamity.created_at,
        items=tuple(
            CalamityItemInfo(
                item_id=ci.inventory_id,
                item_name=ci.item.item_name,
                standard_quantity=ci.standard_quantity,
            )
            for ci in calamity.items
        ),
    )


class CalamityService(BaseService):
    """
    Calamity records and template expansion.

    Contract:
        Writes run in their own unit of work.  Reads return CalamityInfo.
    """

    def __init__(
        self,
        session: Session,
        clock: Clock | None = None,
        auto_commit: bool = False,
    ):
        super().__init__(session, clock, auto_commit)
        self._inventory = InventorySelector(session)

    # -- helpers -----------------------------------------------------------

    def _get(self, calamity_id: int) -> Calamity:
        calamity = self.session.get(Calamity, calamity_id)
        if calamity is None:
            raise CalamityNotFoundError(calamity_id)
        return calamity

    def _name_taken(self, name: str, exclude_id: int | None = None) -> bool:
        stmt = select(Calamity.id).where(Calamity.name == name)
        if exclude_id is not None:
            stmt = stmt.where(Calamity.id != exclude_id)
        return self.session.scalars(stmt).first() is not None

    @staticmethod
    def _parse_status(status: CalamityStatus | str | None) -> CalamityStatus:
        if status is None or status == "":
            return CalamityStatus.ACTIVE
        if isinstance(status, CalamityStatus):
            return status
        if status not in _STATUS_VALUES:
            raise InvalidStatusError(str(status), _STATUS_VALUES)
        return CalamityStatus(status)

    def _validate_template(
        self, items: Sequence[CalamityItemSpec], check_stock: bool
    ) -> None:
        seen: set[int] = set()
        for spec in items:
            if spec.item_id in seen:
                raise DuplicateTemplateItemError(spec.item_id)
            seen.add(spec.item_id)
            if spec.standard_quantity is None or spec.standard_quantity <= 0:
                raise InvalidQuantityError("standard_quantity", spec.standard_quantity)

        stock = {
            item.id: item
            for item in self.session.scalars(
                select(InventoryItem).where(InventoryItem.id.in_(seen))
            )
        }
        for spec in items:
            item = stock.get(spec.item_id)
            if item is None:
                raise InventoryItemNotFoundError(spec.item_id)
            if check_stock and spec.standard_quantity > item.quantity:
                raise TemplateQuantityExceedsStockError(
                    item.id, item.item_name, spec.standard_quantity, item.quantity
                )

    def _validate_name(self, name: str | None) -> None:
        if name is None or not name.strip():
            raise RequiredFieldError("name", "Calamity name is required")

    # -- writes ------------------------------------------------------------

    def create(
        self,
        name: str,
        description: str | None = None,
        status: CalamityStatus | str | None = None,
        items: Sequence[CalamityItemSpec] = (),
    ) -> CalamityInfo:
        self._validate_name(name)
        parsed_status = self._parse_status(status)
        items = tuple(items)

        with self._unit_of_work("create_calamity"):
            if self._name_taken(name):
                raise DuplicateCalamityNameError(name)
            self._validate_template(items, check_stock=False)
            calamity = Calamity(
                name=name,
                description=description,
                status=parsed_status.value,
                created_at=self.clock.now(),
                items=[
                    CalamityItem(inventory_id=spec.item_id, standard_quantity=spec.standard_quantity)
                    for spec in items
                ],
            )
            self.session.add(calamity)
            self.session.flush()
            info = _calamity_to_dto(calamity)

        logger.info(
            "calamity_created",
            extra={"calamity_id": info.id, "calamity_name": name, "template_items": len(items)},
        )
        return info

    def update(
        self,
        calamity_id: int,
        name: str,
        description: str | None,
        status: CalamityStatus | str | None,
        items: Sequence[CalamityItemSpec],
    ) -> CalamityInfo:
        """
        Replace a calamity's fields and template.

        Unlike create, every template quantity is checked against the
        item's current stock.
        """
        self._validate_name(name)
        parsed_status = self._parse_status(status)
        items = tuple(items)

        with LogContext.bind(calamity_id=calamity_id):
            with self._unit_of_work("update_calamity"):
                calamity = self._get(calamity_id)
                if self._name_taken(name, exclude_id=calamity_id):
                    raise DuplicateCalamityNameError(name)
                self._validate_template(items, check_stock=True)

                calamity.name = name
                calamity.description = description
                calamity.status = parsed_status.value
                # Old rows go first so re-adding an item does not trip the
                # (calamity_id, inventory_id) unique constraint.
                calamity.items.clear()
                self.session.flush()
                calamity.items.extend(
                    CalamityItem(inventory_id=spec.item_id, standard_quantity=spec.standard_quantity)
                    for spec in items
                )
                self.session.flush()
                info = _calamity_to_dto(calamity)

            logger.info("calamity_updated", extra={"template_items": len(items)})
        return info

    def delete(self, calamity_id: int) -> bool:
        """
        Delete an Inactive, unreferenced calamity.

        Returns:
            True if deleted; False if the calamity is Active or referenced
            by a distribution.

        Raises:
            CalamityNotFoundError: If no calamity has this id.
        """
        with LogContext.bind(calamity_id=calamity_id):
            with self._unit_of_work("delete_calamity"):
                calamity = self._get(calamity_id)
                if calamity.is_active:
                    logger.info("calamity_delete_refused", extra={"reason": "active"})
                    return False
                references = self.session.scalar(
                    select(func.count(Distribution.id)).where(Distribution.calamity_id == calamity_id)
                )
                if references:
                    logger.info(
                        "calamity_delete_refused",
                        extra={"reason": "referenced", "distribution_count": references},
                    )
                    return False
                self.session.delete(calamity)

            logger.info("calamity_deleted")
        return True

    # -- reads -------------------------------------------------------------

    def get_by_id(self, calamity_id: int) -> CalamityInfo:
        return _calamity_to_dto(self._get(calamity_id))

    def find_by_id(self, calamity_id: int) -> CalamityInfo | None:
        calamity = self.session.get(Calamity, calamity_id)
        return _calamity_to_dto(calamity) if calamity is not None else None

    def get_all(self) -> list[CalamityInfo]:
        stmt = select(Calamity).order_by(Calamity.name)
        return [_calamity_to_dto(c) for c in self.session.scalars(stmt)]

    def get_active(self) -> list[CalamityInfo]:
        stmt = (
            select(Calamity)
            .where(Calamity.status == CalamityStatus.ACTIVE.value)
            .order_by(Calamity.name)
        )
        return [_calamity_to_dto(c) for c in self.session.scalars(stmt)]

    # -- templates ---------------------------------------------------------

    def load_template(self, calamity_id: int) -> list[DistributionLine]:
        """
        Template lines clamped to current stock.

        Each line gets ``min(standard_quantity, on_hand)``; items that are
        out of stock are dropped.
        """
        calamity = self._get(calamity_id)
        template = [
            CalamityItemSpec(ci.inventory_id, ci.standard_quantity) for ci in calamity.items
        ]
        stock = self._inventory.quantities(spec.item_id for spec in template)
        lines = expand_template(template, stock)
        logger.debug(
            "calamity_template_expanded",
            extra={
                "calamity_id": calamity_id,
                "template_items": len(template),
                "lines": len(lines),
            },
        )
        return lines

    def draft_from_template(
        self,
        calamity_id: int,
        beneficiary_id: int,
        distributed_by: int,
        notes: str | None = None,
    ) -> DistributionDraft:
        """Build a draft for one beneficiary from a calamity's template."""
        return DistributionDraft(
            beneficiary_id=beneficiary_id,
            distributed_by=distributed_by,
            lines=tuple(self.load_template(calamity_id)),
            calamity_id=calamity_id,
            notes=notes,
        )
