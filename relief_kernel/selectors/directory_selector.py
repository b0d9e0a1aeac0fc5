"""
Module: relief_kernel.selectors.directory_selector
Responsibility: Lookups of the collaborator records (beneficiaries, users)
    the kernel references by id.
Architecture position: Kernel > Selectors.
"""

from sqlalchemy import func, select

from relief_kernel.domain.dtos import BeneficiaryRef, UserRef
from relief_kernel.models.directory import Beneficiary, User
from relief_kernel.selectors.base import BaseSelector


class DirectorySelector(BaseSelector):
    """Beneficiary and user lookup by id."""

    def beneficiary(self, beneficiary_id: int) -> BeneficiaryRef | None:
        row = self.session.get(Beneficiary, beneficiary_id)
        if row is None:
            return None
        return BeneficiaryRef(id=row.id, display_name=row.full_name, family_size=row.family_size)

    def user(self, user_id: int) -> UserRef | None:
        row = self.session.get(User, user_id)
        if row is None:
            return None
        return UserRef(id=row.id, display_name=row.display_name)

    def beneficiary_count(self) -> int:
        return self.session.scalar(select(func.count(Beneficiary.id))) or 0
