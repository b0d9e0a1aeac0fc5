"""
Module: relief_kernel.models.directory
Responsibility: Minimal persistence for the collaborator records the kernel
    references by id -- beneficiaries (recipients) and users (distributors).
Architecture position: Kernel > Models.  May import from db/base.py only.

Registration, household details and authentication live outside the kernel;
these tables exist so foreign keys from distributions and ledger entries
resolve, and so ledger notes and reports can show display names.
"""

from sqlalchemy import CheckConstraint, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from relief_kernel.db.base import TrackedBase


class Beneficiary(TrackedBase):
    """Relief recipient (household head)."""

    __tablename__ = "beneficiaries"

    __table_args__ = (
        CheckConstraint(
            "family_size >= 1 AND family_size <= 20",
            name="ck_beneficiaries_family_size",
        ),
    )

    beneficiary_code: Mapped[str] = mapped_column(String(20), nullable=False, unique=True)

    full_name: Mapped[str] = mapped_column(String(150), nullable=False)

    family_size: Mapped[int] = mapped_column(Integer, nullable=False, default=1)

    def __repr__(self) -> str:
        return f"<Beneficiary {self.beneficiary_code} {self.full_name}>"


class User(TrackedBase):
    """Staff member who records distributions and stock changes."""

    __tablename__ = "users"

    username: Mapped[str] = mapped_column(String(50), nullable=False, unique=True)

    full_name: Mapped[str | None] = mapped_column(String(100), nullable=True)

    @property
    def display_name(self) -> str:
        return self.full_name or self.username

    def __repr__(self) -> str:
        return f"<User {self.username}>"
