"""Pure domain layer: clock, DTOs, stock arithmetic and template expansion."""

from relief_kernel.domain.clock import Clock, DeterministicClock, SystemClock
from relief_kernel.domain.dtos import (
    BatchDistributionResult,
    BatchOutcome,
    BeneficiaryRef,
    BeneficiaryStats,
    CalamityInfo,
    CalamityItemInfo,
    CalamityItemSpec,
    CalamityRollup,
    DistributionDraft,
    DistributionInfo,
    DistributionLine,
    DistributionLineInfo,
    InventoryItemInfo,
    ItemRollup,
    LedgerEntryInfo,
    QuantityChange,
    ReliefSummary,
    UserRef,
    VoidResult,
)

__all__ = [
    "BatchDistributionResult",
    "BatchOutcome",
    "BeneficiaryRef",
    "BeneficiaryStats",
    "CalamityInfo",
    "CalamityItemInfo",
    "CalamityItemSpec",
    "CalamityRollup",
    "Clock",
    "DeterministicClock",
    "DistributionDraft",
    "DistributionInfo",
    "DistributionLine",
    "DistributionLineInfo",
    "InventoryItemInfo",
    "ItemRollup",
    "LedgerEntryInfo",
    "QuantityChange",
    "ReliefSummary",
    "SystemClock",
    "UserRef",
    "VoidResult",
]
