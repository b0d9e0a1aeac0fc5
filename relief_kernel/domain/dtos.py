"""
Data Transfer Objects for the relief kernel.

Responsibility:
    Frozen value objects that cross the service and selector boundaries.
    Callers never receive ORM instances, so nothing they hold can be
    flushed back by accident.

Architecture position:
    Kernel > Domain.  Imports the persisted enum types from models so the
    string values stay in one place; otherwise pure.
"""

from dataclasses import dataclass, field
from datetime import datetime

from relief_kernel.models.calamity import CalamityStatus
from relief_kernel.models.ledger import TransactionType

# ---------------------------------------------------------------------------
# Inventory
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class InventoryItemInfo:
    id: int
    name: str
    category: str | None
    quantity: int
    unit: str | None
    low_stock_threshold: int

    @property
    def is_low_stock(self) -> bool:
        return self.quantity <= self.low_stock_threshold


@dataclass(frozen=True)
class QuantityChange:
    """Before/after quantities of one item around one adjustment."""

    item_id: int
    before: int
    after: int

    @property
    def delta(self) -> int:
        return self.after - self.before

    @property
    def changed(self) -> bool:
        return self.after != self.before


# ---------------------------------------------------------------------------
# Ledger
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class LedgerEntryInfo:
    id: int
    item_id: int
    actor_id: int | None
    kind: TransactionType
    delta: int
    before: int
    after: int
    note: str | None
    reference_id: int | None
    reference_type: str | None
    created_at: datetime


# ---------------------------------------------------------------------------
# Distributions
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class DistributionLine:
    """Requested (item, quantity) pair."""

    item_id: int
    quantity: int


@dataclass(frozen=True)
class DistributionDraft:
    """
    A distribution that exists only in memory, before validation and commit.

    distribution_date defaults to the service clock when None.
    """

    beneficiary_id: int
    distributed_by: int
    lines: tuple[DistributionLine, ...]
    calamity_id: int | None = None
    notes: str | None = None
    distribution_date: datetime | None = None

    def __post_init__(self):
        # Accept any sequence of lines but store an immutable tuple.
        if not isinstance(self.lines, tuple):
            object.__setattr__(self, "lines", tuple(self.lines))


@dataclass(frozen=True)
class DistributionLineInfo:
    line_id: int
    item_id: int
    item_name: str
    quantity: int


@dataclass(frozen=True)
class DistributionInfo:
    id: int
    beneficiary_id: int
    calamity_id: int | None
    distribution_date: datetime
    distributed_by: int
    notes: str | None
    lines: tuple[DistributionLineInfo, ...]

    @property
    def total_quantity(self) -> int:
        return sum(line.quantity for line in self.lines)


@dataclass(frozen=True)
class VoidResult:
    """
    Outcome of voiding a distribution.

    restored is False when the distribution had no lines: it was removed
    but nothing went back into stock.
    """

    distribution_id: int
    restored_lines: tuple[DistributionLine, ...]

    @property
    def restored(self) -> bool:
        return bool(self.restored_lines)


@dataclass(frozen=True)
class BatchOutcome:
    beneficiary_id: int
    distribution_id: int | None = None
    error_code: str | None = None
    error_message: str | None = None

    @property
    def succeeded(self) -> bool:
        return self.distribution_id is not None


@dataclass(frozen=True)
class BatchDistributionResult:
    """Per-beneficiary outcomes of a best-effort batch distribution."""

    outcomes: tuple[BatchOutcome, ...] = field(default_factory=tuple)
    requested: int = 0
    cancelled: bool = False

    @property
    def success_count(self) -> int:
        return sum(1 for o in self.outcomes if o.succeeded)

    @property
    def failure_count(self) -> int:
        return sum(1 for o in self.outcomes if not o.succeeded)

    @property
    def distribution_ids(self) -> tuple[int, ...]:
        return tuple(o.distribution_id for o in self.outcomes if o.succeeded)


# ---------------------------------------------------------------------------
# Calamities
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class CalamityItemSpec:
    """Template line: standard quantity of one item per beneficiary."""

    item_id: int
    standard_quantity: int


@dataclass(frozen=True)
class CalamityItemInfo:
    item_id: int
    item_name: str
    standard_quantity: int


@dataclass(frozen=True)
class CalamityInfo:
    id: int
    name: str
    description: str | None
    status: CalamityStatus
    created_at: datetime
    items: tuple[CalamityItemInfo, ...] = ()

    @property
    def is_active(self) -> bool:
        return self.status is CalamityStatus.ACTIVE


# ---------------------------------------------------------------------------
# Reporting
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class BeneficiaryStats:
    beneficiary_id: int
    distribution_count: int
    total_items_received: int
    last_distribution_date: datetime | None


@dataclass(frozen=True)
class ItemRollup:
    item_id: int
    item_name: str
    unit: str | None
    total_quantity: int
    distribution_count: int


@dataclass(frozen=True)
class CalamityRollup:
    calamity_id: int
    name: str
    distribution_count: int
    total_quantity: int


@dataclass(frozen=True)
class ReliefSummary:
    total_beneficiaries: int
    total_distributions: int
    total_items_distributed: int
    inventory_item_count: int
    low_stock_count: int


# ---------------------------------------------------------------------------
# Collaborator lookups
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class BeneficiaryRef:
    id: int
    display_name: str
    family_size: int


@dataclass(frozen=True)
class UserRef:
    id: int
    display_name: str
