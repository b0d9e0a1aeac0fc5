"""
BaseService -- abstract base for all kernel services.

Responsibility:
    Common constructor (session, clock, auto_commit) and the unit-of-work
    helper every write operation runs inside.

Architecture position:
    Kernel > Services -- imperative shell.  Every service in
    ``relief_kernel/services/`` extends this class.

Invariants enforced:
    - Atomic operations: everything done inside ``_unit_of_work`` is flushed
      together; with ``auto_commit=True`` the outermost unit of work commits
      on success and rolls back on any exception, kernel or not.
    - Store failures never escape raw: ``SQLAlchemyError`` is re-raised as
      ``PersistenceError`` with the driver error as ``__cause__``.
    - Building-block steps (``adjust_quantity``, ``append``) never commit;
      they run inside whichever unit of work called them.

Failure modes:
    - With ``auto_commit=False`` the caller owns the transaction and must
      roll back after an error (``session_scope()`` does this).
"""

from abc import ABC
from collections.abc import Iterator
from contextlib import contextmanager

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from relief_kernel.domain.clock import Clock, SystemClock
from relief_kernel.exceptions import PersistenceError, ReliefKernelError
from relief_kernel.logging_config import get_logger

logger = get_logger("services.unit_of_work")


class BaseService(ABC):
    """
    Abstract base class for all kernel services.

    Contract:
        Accepts a SQLAlchemy ``Session`` from the caller.  Helpers flush;
        only ``_unit_of_work`` with ``auto_commit=True`` commits.

    Guarantees:
        - Nested units of work on the same service join the outermost one,
          so an operation composed of other operations commits once.

    Non-goals:
        - No retries.  Every failure goes straight back to the caller.
    """

    def __init__(
        self,
        session: Session,
        clock: Clock | None = None,
        auto_commit: bool = False,
    ):
        self.session = session
        self.clock = clock or SystemClock()
        self.auto_commit = auto_commit
        self._uow_depth = 0

    @contextmanager
    def _unit_of_work(self, operation: str) -> Iterator[None]:
        outermost = self._uow_depth == 0
        self._uow_depth += 1
        try:
            yield
            if outermost:
                self.session.flush()
                if self.auto_commit:
                    self.session.commit()
        except ReliefKernelError as exc:
            if outermost:
                self._rollback()
                logger.warning(
                    "unit_of_work_rolled_back",
                    extra={"operation": operation, "error_code": exc.code},
                )
            raise
        except SQLAlchemyError as exc:
            if outermost:
                self._rollback()
                logger.error(
                    "unit_of_work_failed",
                    extra={"operation": operation},
                    exc_info=True,
                )
            raise PersistenceError(operation, str(getattr(exc, "orig", None) or exc)) from exc
        except Exception:
            if outermost:
                self._rollback()
                logger.error(
                    "unit_of_work_failed",
                    extra={"operation": operation},
                    exc_info=True,
                )
            raise
        finally:
            self._uow_depth -= 1

    @contextmanager
    def _store_errors(self, operation: str) -> Iterator[None]:
        """Translate store failures for a building-block step; no commit, no rollback."""
        try:
            yield
        except SQLAlchemyError as exc:
            raise PersistenceError(operation, str(getattr(exc, "orig", None) or exc)) from exc

    def _rollback(self) -> None:
        if self.auto_commit:
            self.session.rollback()
