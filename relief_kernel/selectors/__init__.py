"""Read-only selectors for the relief kernel."""

from relief_kernel.selectors.base import BaseSelector
from relief_kernel.selectors.directory_selector import DirectorySelector
from relief_kernel.selectors.distribution_selector import DistributionSelector
from relief_kernel.selectors.inventory_selector import InventorySelector
from relief_kernel.selectors.ledger_selector import LedgerSelector
from relief_kernel.selectors.reporting_selector import ReportingSelector

__all__ = [
    "BaseSelector",
    "DirectorySelector",
    "DistributionSelector",
    "InventorySelector",
    "LedgerSelector",
    "ReportingSelector",
]
