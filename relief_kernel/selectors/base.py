"""
Module: relief_kernel.selectors.base
Responsibility: Abstract base class for all read-only query selectors -- the
    read side of the kernel.
Architecture position: Kernel > Selectors.  May import from db/, models/ and
    domain/dtos.  MUST NOT import from services/.

Invariants enforced:
    - Read-only: selectors never call session.add(), delete(), flush() or
      commit().
    - DTO return convention: frozen dataclasses, never ORM instances.
    - No caching: every call reads current state.
"""

from abc import ABC

from sqlalchemy.orm import Session


class BaseSelector(ABC):
    """
    Abstract base class for all selectors.

    Contract:
        Selectors accept a Session from the caller, perform read-only
        queries, and return DTOs or computed results.
    """

    def __init__(self, session: Session):
        self.session = session
