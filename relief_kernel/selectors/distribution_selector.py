"""
Module: relief_kernel.selectors.distribution_selector
Responsibility: Read access to committed distributions and their lines.
Architecture position: Kernel > Selectors.

Voided distributions no longer exist, so every query here sees committed
distributions only.
"""

from datetime import datetime

from sqlalchemy import select

from relief_kernel.domain.dtos import DistributionInfo, DistributionLineInfo
from relief_kernel.models.distribution import Distribution
from relief_kernel.selectors.base import BaseSelector

_NEWEST_FIRST = (Distribution.distribution_date.desc(), Distribution.id.desc())


def distribution_to_dto(distribution: Distribution) -> DistributionInfo:
    return DistributionInfo(
        id=distribution.id,
        beneficiary_id=distribution.beneficiary_id,
        calamity_id=distribution.calamity_id,
        distribution_date=distribution.distribution_date,
        distributed_by=distribution.distributed_by,
        notes=distribution.notes,
        lines=tuple(
            DistributionLineInfo(
                line_id=line.id,
                item_id=line.inventory_id,
                item_name=line.item.item_name,
                quantity=line.quantity,
            )
            for line in distribution.lines
        ),
    )


class DistributionSelector(BaseSelector):
    """Queries over distributions; never writes."""

    def find_by_id(self, distribution_id: int) -> DistributionInfo | None:
        distribution = self.session.get(Distribution, distribution_id)
        return distribution_to_dto(distribution) if distribution is not None else None

    def all(self) -> list[DistributionInfo]:
        stmt = select(Distribution).order_by(*_NEWEST_FIRST)
        return [distribution_to_dto(d) for d in self.session.scalars(stmt)]

    def by_beneficiary(self, beneficiary_id: int) -> list[DistributionInfo]:
        stmt = (
            select(Distribution)
            .where(Distribution.beneficiary_id == beneficiary_id)
            .order_by(*_NEWEST_FIRST)
        )
        return [distribution_to_dto(d) for d in self.session.scalars(stmt)]

    def filtered(
        self,
        start: datetime | None = None,
        end: datetime | None = None,
        calamity_id: int | None = None,
        beneficiary_id: int | None = None,
    ) -> list[DistributionInfo]:
        """
        Distributions matching every given filter, newest first.

        Date bounds are inclusive.
        """
        stmt = select(Distribution)
        if start is not None:
            stmt = stmt.where(Distribution.distribution_date >= start)
        if end is not None:
            stmt = stmt.where(Distribution.distribution_date <= end)
        if calamity_id is not None:
            stmt = stmt.where(Distribution.calamity_id == calamity_id)
        if beneficiary_id is not None:
            stmt = stmt.where(Distribution.beneficiary_id == beneficiary_id)
        stmt = stmt.order_by(*_NEWEST_FIRST)
        return [distribution_to_dto(d) for d in self.session.scalars(stmt)]
