"""Write-side services for the relief kernel."""

from relief_kernel.services.base import BaseService
from relief_kernel.services.calamity_service import CalamityService
from relief_kernel.services.distribution_service import DistributionService
from relief_kernel.services.inventory_service import InventoryService
from relief_kernel.services.ledger_service import TransactionLedger
from relief_kernel.services.relief_orchestrator import ReliefOrchestrator

__all__ = [
    "BaseService",
    "CalamityService",
    "DistributionService",
    "InventoryService",
    "ReliefOrchestrator",
    "TransactionLedger",
]
