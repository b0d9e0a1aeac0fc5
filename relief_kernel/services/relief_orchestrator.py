"""
Relief Orchestrator - one entry point wiring every service to one session.

The orchestrator ties together:
- InventoryService: item records, restock, set quantity
- TransactionLedger: the append-only audit trail
- DistributionService: create / void / batch
- CalamityService: calamities and templates
- Selectors: reporting and collaborator lookups

Manages its own transaction boundary by default: every write operation
commits on success and rolls back on failure.  Set auto_commit=False to
leave the boundary to the caller (e.g. inside ``session_scope()``).
"""

from uuid import uuid4

from sqlalchemy.orm import Session

from relief_kernel.domain.clock import Clock, SystemClock
from relief_kernel.logging_config import LogContext, get_logger
from relief_kernel.models.inventory import DEFAULT_LOW_STOCK_THRESHOLD
from relief_kernel.selectors.directory_selector import DirectorySelector
from relief_kernel.selectors.reporting_selector import DEFAULT_TOP_N, ReportingSelector
from relief_kernel.services.calamity_service import CalamityService
from relief_kernel.services.distribution_service import DistributionService
from relief_kernel.services.inventory_service import InventoryService
from relief_kernel.services.ledger_service import TransactionLedger

logger = get_logger("services.relief_orchestrator")


class ReliefOrchestrator:
    """
    Facade over the kernel services for one session.

    Attributes:
        inventory: InventoryService
        ledger: TransactionLedger
        distributions: DistributionService
        calamities: CalamityService
        reports: ReportingSelector
        directory: DirectorySelector
    """

    def __init__(
        self,
        session: Session,
        clock: Clock | None = None,
        auto_commit: bool = True,
        default_low_stock_threshold: int = DEFAULT_LOW_STOCK_THRESHOLD,
        report_top_n: int = DEFAULT_TOP_N,
    ):
        self.session = session
        self.clock = clock or SystemClock()
        self.auto_commit = auto_commit

        self.ledger = TransactionLedger(session, self.clock)
        self.inventory = InventoryService(
            session,
            ledger=self.ledger,
            clock=self.clock,
            auto_commit=auto_commit,
            default_low_stock_threshold=default_low_stock_threshold,
        )
        self.distributions = DistributionService(
            session,
            inventory=self.inventory,
            clock=self.clock,
            auto_commit=auto_commit,
        )
        self.calamities = CalamityService(session, clock=self.clock, auto_commit=auto_commit)
        self.reports = ReportingSelector(session, top_n=report_top_n)
        self.directory = DirectorySelector(session)

        logger.debug(
            "relief_orchestrator_initialized",
            extra={"auto_commit": auto_commit, "report_top_n": report_top_n},
        )

    def correlation(self, correlation_id: str | None = None):
        """
        Tag every log record emitted inside the block with one correlation id.

        Usage:
            with orchestrator.correlation():
                orchestrator.distributions.create(draft)
        """
        return LogContext.bind(correlation_id=correlation_id or str(uuid4()))
