"""
DistributionService -- the distribution engine.

Responsibility:
    Validates a distribution draft against current stock, commits it
    together with its inventory decrements and ledger entries, and voids
    committed distributions with compensating entries.

Architecture position:
    Kernel > Services.  Writes through InventoryService.adjust_quantity and
    TransactionLedger.append; reads collaborators through DirectorySelector.

States:
    Draft (DistributionDraft, in memory) -> Committed (rows + ledger)
        -> Voided (rows gone, stock restored, compensating ledger).
    Void is terminal.  There is no partial state.

Invariants enforced:
    - Validate-all-before-mutate: every line is checked (item exists,
      quantity > 0, combined quantity <= stock) before anything is written.
    - create and void are each a single unit of work spanning the header,
      lines, every quantity change and every ledger entry.
    - Ledger entries written here carry reference_type "Distribution" and
      reference_id = the distribution id.

Failure modes:
    - RequiredFieldError, EmptyDistributionError, InvalidQuantityError,
      UnknownLineItemError, InsufficientStockError (all ValidationError).
    - BeneficiaryNotFoundError / UserNotFoundError / CalamityNotFoundError.
    - DistributionNotFoundError on void of an unknown or already-voided id.
    - PersistenceError on store failure; the unit of work is rolled back.

Audit relevance:
    For any create + void pair the ledger deltas per item sum to zero, and
    every entry's quantity_after equals the item's quantity at commit.
"""

from collections.abc import Callable, Iterable, Sequence
from time import monotonic

from sqlalchemy import select
from sqlalchemy.orm import Session

from relief_kernel.domain.clock import Clock
from relief_kernel.domain.dtos import (
    BatchDistributionResult,
    BatchOutcome,
    DistributionDraft,
    DistributionInfo,
    DistributionLine,
    VoidResult,
)
from relief_kernel.domain.stock import combine_lines, find_shortfalls, scale_requirements
from relief_kernel.exceptions import (
    BeneficiaryNotFoundError,
    CalamityNotFoundError,
    DistributionNotFoundError,
    EmptyDistributionError,
    InsufficientStockError,
    InvalidQuantityError,
    ReliefKernelError,
    RequiredFieldError,
    UnknownLineItemError,
    UserNotFoundError,
)
from relief_kernel.logging_config import LogContext, get_logger
from relief_kernel.models.calamity import Calamity
from relief_kernel.models.distribution import Distribution, DistributionItem
from relief_kernel.models.inventory import InventoryItem
from relief_kernel.models.ledger import REFERENCE_TYPE_DISTRIBUTION, TransactionType
from relief_kernel.selectors.directory_selector import DirectorySelector
from relief_kernel.selectors.distribution_selector import (
    DistributionSelector,
    distribution_to_dto,
)
from relief_kernel.services.base import BaseService
from relief_kernel.services.inventory_service import InventoryService

logger = get_logger("services.distribution")


class DistributionService(BaseService):
    """
    Creates and voids distributions.

    Contract:
        ``create`` and ``void`` are all-or-nothing.  ``distribute_batch`` is
        a sequence of independent ``create`` calls (best-effort; each
        beneficiary commits on its own when ``auto_commit=True`` and runs in
        its own savepoint otherwise).

    Non-goals:
        - No un-void.  A voided distribution is re-entered as a new one.
        - No retries.
    """

    def __init__(
        self,
        session: Session,
        inventory: InventoryService | None = None,
        clock: Clock | None = None,
        auto_commit: bool = False,
    ):
        super().__init__(session, clock, auto_commit)
        self.inventory = inventory or InventoryService(session, clock=self.clock)
        self.ledger = self.inventory.ledger
        self._directory = DirectorySelector(session)
        self._selector = DistributionSelector(session)

    # -- validation --------------------------------------------------------

    def _load_items(self, item_ids: Iterable[int]) -> dict[int, InventoryItem]:
        ids = list(item_ids)
        stmt = (
            select(InventoryItem)
            .where(InventoryItem.id.in_(ids))
            .execution_options(populate_existing=True)
        )
        return {item.id: item for item in self.session.scalars(stmt)}

    def _check_stock(self, required: dict[int, int]) -> None:
        items = self._load_items(required)
        for item_id in required:
            if item_id not in items:
                raise UnknownLineItemError(item_id)
        shortfalls = find_shortfalls(
            required, {item_id: item.quantity for item_id, item in items.items()}
        )
        if shortfalls:
            first = shortfalls[0]
            raise InsufficientStockError(
                first.item_id,
                items[first.item_id].item_name,
                available=first.available,
                requested=first.requested,
            )

    @staticmethod
    def _check_lines(lines: Sequence[DistributionLine]) -> None:
        if not lines:
            raise EmptyDistributionError()
        for line in lines:
            if line.quantity is None or line.quantity <= 0:
                raise InvalidQuantityError("quantity", line.quantity)

    def _validate(self, draft: DistributionDraft) -> None:
        if draft.beneficiary_id is None or draft.beneficiary_id <= 0:
            raise RequiredFieldError("beneficiary_id", "Beneficiary is required")
        if self._directory.beneficiary(draft.beneficiary_id) is None:
            raise BeneficiaryNotFoundError(draft.beneficiary_id)
        if draft.distributed_by is None or self._directory.user(draft.distributed_by) is None:
            raise UserNotFoundError(draft.distributed_by)
        if draft.calamity_id is not None and self.session.get(Calamity, draft.calamity_id) is None:
            raise CalamityNotFoundError(draft.calamity_id)
        self._check_lines(draft.lines)
        self._check_stock(combine_lines(draft.lines))

    # -- create ------------------------------------------------------------

    def create(self, draft: DistributionDraft) -> DistributionInfo:
        """
        Commit a distribution with its stock decrements and ledger entries.

        Lines are applied in the order given; each one decrements its item
        and appends a Distribution entry (delta = -quantity).

        Raises:
            ValidationError: Any of the validation failures listed above.
            NotFoundError: Beneficiary, user or calamity does not exist.
            PersistenceError: Store failure; nothing was written.
        """
        start = monotonic()
        with LogContext.bind(actor_id=draft.distributed_by):
            with self._unit_of_work("create_distribution"):
                self._validate(draft)
                beneficiary = self._directory.beneficiary(draft.beneficiary_id)

                distribution = Distribution(
                    beneficiary_id=draft.beneficiary_id,
                    calamity_id=draft.calamity_id,
                    distribution_date=draft.distribution_date or self.clock.now(),
                    distributed_by=draft.distributed_by,
                    notes=draft.notes,
                    created_at=self.clock.now(),
                    lines=[
                        DistributionItem(inventory_id=line.item_id, quantity=line.quantity)
                        for line in draft.lines
                    ],
                )
                with self._store_errors("insert_distribution"):
                    self.session.add(distribution)
                    self.session.flush()

                note = (
                    f"Distribution to beneficiary ID: {beneficiary.id} "
                    f"({beneficiary.display_name})"
                )
                with LogContext.bind(distribution_id=distribution.id):
                    for line in draft.lines:
                        change = self.inventory.adjust_quantity(line.item_id, -line.quantity)
                        self.ledger.append(
                            line.item_id,
                            TransactionType.DISTRIBUTION,
                            delta=-line.quantity,
                            before=change.before,
                            after=change.after,
                            note=note,
                            actor_id=draft.distributed_by,
                            reference_id=distribution.id,
                            reference_type=REFERENCE_TYPE_DISTRIBUTION,
                        )
                info = distribution_to_dto(distribution)

            logger.info(
                "distribution_created",
                extra={
                    "distribution_id": info.id,
                    "beneficiary_id": info.beneficiary_id,
                    "calamity_id": info.calamity_id,
                    "line_count": len(info.lines),
                    "total_quantity": info.total_quantity,
                    "duration_ms": round((monotonic() - start) * 1000, 2),
                },
            )
        return info

    # -- void --------------------------------------------------------------

    def void(self, distribution_id: int, actor_id: int | None) -> VoidResult:
        """
        Void a committed distribution.

        Deletes the distribution and its lines, then for every line
        increments the item and appends a Void Distribution entry
        (delta = +quantity) recorded against ``actor_id``.  Pass ``None``
        explicitly for a system-initiated void.

        Raises:
            DistributionNotFoundError: Unknown or already voided.
            UserNotFoundError: actor_id given but unknown.
        """
        with LogContext.bind(distribution_id=distribution_id, actor_id=actor_id):
            with self._unit_of_work("void_distribution"):
                if actor_id is not None and self._directory.user(actor_id) is None:
                    raise UserNotFoundError(actor_id)

                distribution = self.session.scalars(
                    select(Distribution)
                    .where(Distribution.id == distribution_id)
                    .with_for_update()
                ).one_or_none()
                if distribution is None:
                    raise DistributionNotFoundError(distribution_id)

                restored = tuple(
                    DistributionLine(line.inventory_id, line.quantity)
                    for line in distribution.lines
                )
                with self._store_errors("delete_distribution"):
                    self.session.delete(distribution)
                    self.session.flush()

                note = f"Distribution voided - ID: {distribution_id}"
                for line in restored:
                    change = self.inventory.adjust_quantity(line.item_id, line.quantity)
                    self.ledger.append(
                        line.item_id,
                        TransactionType.VOID_DISTRIBUTION,
                        delta=line.quantity,
                        before=change.before,
                        after=change.after,
                        note=note,
                        actor_id=actor_id,
                        reference_id=distribution_id,
                        reference_type=REFERENCE_TYPE_DISTRIBUTION,
                    )

            result = VoidResult(distribution_id=distribution_id, restored_lines=restored)
            if result.restored:
                logger.info(
                    "distribution_voided",
                    extra={
                        "line_count": len(restored),
                        "restored_quantity": sum(line.quantity for line in restored),
                    },
                )
            else:
                logger.warning("distribution_voided_without_lines")
        return result

    # -- batch -------------------------------------------------------------

    def distribute_batch(
        self,
        beneficiary_ids: Sequence[int],
        lines: Sequence[DistributionLine],
        distributed_by: int,
        calamity_id: int | None = None,
        notes: str | None = None,
        precheck: bool = True,
        should_continue: Callable[[], bool] | None = None,
        on_progress: Callable[[int, int], None] | None = None,
    ) -> BatchDistributionResult:
        """
        Give the same lines to several beneficiaries, one distribution each.

        Best-effort: a failure for one beneficiary is recorded and the batch
        moves on; earlier distributions stay committed.  With
        ``auto_commit=False`` each beneficiary runs in its own savepoint, so a
        failed one leaves nothing in the caller's transaction.  With ``precheck``
        the combined requirement (line quantity x beneficiaries) is checked
        against stock first and the whole batch is refused if it cannot be
        met.  ``should_continue`` is polled before each beneficiary; when it
        returns False no further distributions are created.

        Raises:
            RequiredFieldError: No beneficiaries given.
            EmptyDistributionError / InvalidQuantityError: Bad lines.
            UnknownLineItemError / InsufficientStockError: Precheck failed.
        """
        lines = tuple(lines)
        if not beneficiary_ids:
            raise RequiredFieldError("beneficiary_ids", "Select at least one beneficiary")
        self._check_lines(lines)
        if precheck:
            self._check_stock(scale_requirements(lines, len(beneficiary_ids)))

        total = len(beneficiary_ids)
        outcomes: list[BatchOutcome] = []
        cancelled = False
        for index, beneficiary_id in enumerate(beneficiary_ids, start=1):
            if should_continue is not None and not should_continue():
                cancelled = True
                break
            draft = DistributionDraft(
                beneficiary_id=beneficiary_id,
                distributed_by=distributed_by,
                lines=lines,
                calamity_id=calamity_id,
                notes=notes,
            )
            # One savepoint per beneficiary when the caller owns the transaction.
            savepoint = None if self.auto_commit else self.session.begin_nested()
            try:
                info = self.create(draft)
                if savepoint is not None:
                    savepoint.commit()
                outcomes.append(BatchOutcome(beneficiary_id, distribution_id=info.id))
            except ReliefKernelError as exc:
                if savepoint is not None:
                    savepoint.rollback()
                outcomes.append(
                    BatchOutcome(beneficiary_id, error_code=exc.code, error_message=str(exc))
                )
            if on_progress is not None:
                on_progress(index, total)

        result = BatchDistributionResult(outcomes=tuple(outcomes), requested=total, cancelled=cancelled)
        logger.info(
            "batch_distribution_completed",
            extra={
                "requested": total,
                "succeeded": result.success_count,
                "failed": result.failure_count,
                "cancelled": cancelled,
            },
        )
        return result

    # -- reads -------------------------------------------------------------

    def get_by_id(self, distribution_id: int) -> DistributionInfo:
        info = self._selector.find_by_id(distribution_id)
        if info is None:
            raise DistributionNotFoundError(distribution_id)
        return info

    def find_by_id(self, distribution_id: int) -> DistributionInfo | None:
        return self._selector.find_by_id(distribution_id)

    def get_all(self) -> list[DistributionInfo]:
        """All committed distributions, newest first."""
        return self._selector.all()

    def get_by_beneficiary(self, beneficiary_id: int) -> list[DistributionInfo]:
        return self._selector.by_beneficiary(beneficiary_id)
