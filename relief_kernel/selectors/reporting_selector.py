"""
Module: relief_kernel.selectors.reporting_selector
Responsibility: Read-only aggregations consumed by dashboards and report
    collaborators: per-beneficiary stats, low stock, top items, top
    calamities, overall summary, filtered distribution listing.
Architecture position: Kernel > Selectors.

Invariants enforced:
    - Computed on demand from current rows.  Nothing is cached or
      pre-aggregated; voided distributions are simply absent.
"""

from datetime import datetime

from sqlalchemy import func, select

from relief_kernel.domain.dtos import (
    BeneficiaryStats,
    CalamityRollup,
    DistributionInfo,
    InventoryItemInfo,
    ItemRollup,
    ReliefSummary,
)
from relief_kernel.models.calamity import Calamity
from relief_kernel.models.distribution import Distribution, DistributionItem
from relief_kernel.models.inventory import InventoryItem
from relief_kernel.selectors.base import BaseSelector
from relief_kernel.selectors.directory_selector import DirectorySelector
from relief_kernel.selectors.distribution_selector import DistributionSelector
from relief_kernel.selectors.inventory_selector import InventorySelector

DEFAULT_TOP_N = 10


class ReportingSelector(BaseSelector):
    """Aggregations over distributions and inventory."""

    def __init__(self, session, top_n: int = DEFAULT_TOP_N):
        super().__init__(session)
        self.top_n = top_n
        self._inventory = InventorySelector(session)
        self._distributions = DistributionSelector(session)
        self._directory = DirectorySelector(session)

    def beneficiary_stats(self, beneficiary_id: int) -> BeneficiaryStats:
        """
        Distribution count, total items received and last distribution date.

        A beneficiary with no distributions gets zeros and None.
        """
        stmt = (
            select(
                func.count(func.distinct(Distribution.id)),
                func.coalesce(func.sum(DistributionItem.quantity), 0),
                func.max(Distribution.distribution_date),
            )
            .select_from(Distribution)
            .outerjoin(DistributionItem, DistributionItem.distribution_id == Distribution.id)
            .where(Distribution.beneficiary_id == beneficiary_id)
        )
        count, total, last = self.session.execute(stmt).one()
        return BeneficiaryStats(
            beneficiary_id=beneficiary_id,
            distribution_count=count,
            total_items_received=total,
            last_distribution_date=last,
        )

    def low_stock_items(self) -> list[InventoryItemInfo]:
        return self._inventory.low_stock()

    def top_items(self, limit: int | None = None) -> list[ItemRollup]:
        """Items by total distributed quantity, largest first."""
        total = func.sum(DistributionItem.quantity).label("total_quantity")
        stmt = (
            select(
                InventoryItem.id,
                InventoryItem.item_name,
                InventoryItem.unit,
                total,
                func.count(func.distinct(DistributionItem.distribution_id)),
            )
            .join(DistributionItem, DistributionItem.inventory_id == InventoryItem.id)
            .group_by(InventoryItem.id, InventoryItem.item_name, InventoryItem.unit)
            .order_by(total.desc(), InventoryItem.item_name)
            .limit(self.top_n if limit is None else limit)
        )
        return [
            ItemRollup(
                item_id=item_id,
                item_name=name,
                unit=unit,
                total_quantity=qty,
                distribution_count=count,
            )
            for item_id, name, unit, qty, count in self.session.execute(stmt)
        ]

    def top_calamities(self, limit: int | None = None) -> list[CalamityRollup]:
        """
        Calamities by total distributed quantity, then distribution count.

        Calamities with no distributions are left out.
        """
        total = func.coalesce(func.sum(DistributionItem.quantity), 0).label("total_quantity")
        count = func.count(func.distinct(Distribution.id)).label("distribution_count")
        stmt = (
            select(Calamity.id, Calamity.name, count, total)
            .join(Distribution, Distribution.calamity_id == Calamity.id)
            .outerjoin(DistributionItem, DistributionItem.distribution_id == Distribution.id)
            .group_by(Calamity.id, Calamity.name)
            .order_by(total.desc(), count.desc(), Calamity.name)
            .limit(self.top_n if limit is None else limit)
        )
        return [
            CalamityRollup(
                calamity_id=calamity_id,
                name=name,
                distribution_count=dist_count,
                total_quantity=qty,
            )
            for calamity_id, name, dist_count, qty in self.session.execute(stmt)
        ]

    def summary(self) -> ReliefSummary:
        total_distributions = self.session.scalar(select(func.count(Distribution.id))) or 0
        total_items = self.session.scalar(
            select(func.coalesce(func.sum(DistributionItem.quantity), 0))
        )
        return ReliefSummary(
            total_beneficiaries=self._directory.beneficiary_count(),
            total_distributions=total_distributions,
            total_items_distributed=total_items,
            inventory_item_count=self._inventory.count(),
            low_stock_count=self._inventory.low_stock_count(),
        )

    def distributions(
        self,
        start: datetime | None = None,
        end: datetime | None = None,
        calamity_id: int | None = None,
        beneficiary_id: int | None = None,
    ) -> list[DistributionInfo]:
        return self._distributions.filtered(
            start=start,
            end=end,
            calamity_id=calamity_id,
            beneficiary_id=beneficiary_id,
        )
