"""Domain models for the relief kernel."""

from relief_kernel.models.calamity import Calamity, CalamityItem, CalamityStatus
from relief_kernel.models.directory import Beneficiary, User
from relief_kernel.models.distribution import Distribution, DistributionItem
from relief_kernel.models.inventory import DEFAULT_LOW_STOCK_THRESHOLD, InventoryItem
from relief_kernel.models.ledger import (
    REFERENCE_TYPE_DISTRIBUTION,
    InventoryTransaction,
    TransactionType,
)

__all__ = [
    "Beneficiary",
    "Calamity",
    "CalamityItem",
    "CalamityStatus",
    "DEFAULT_LOW_STOCK_THRESHOLD",
    "Distribution",
    "DistributionItem",
    "InventoryItem",
    "InventoryTransaction",
    "REFERENCE_TYPE_DISTRIBUTION",
    "TransactionType",
    "User",
]
