"""
Module: ledger_kernel.models.account
Responsibility: ORM persistence for the chart of accounts as the ledger reads
    it.  Journal lines reference accounts by id only; this table backs the
    SQL implementation of the AccountCatalog port.
Architecture position: Kernel > Models.  May import from db/base.py and the
    domain catalog enums.

Failure modes:
    - IntegrityError on a duplicate account code.
"""

from sqlalchemy import Boolean, Index, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from ledger_kernel.db.base import TrackedBase, enum_column
from ledger_kernel.domain.catalog import AccountType, NormalBalance


class Account(TrackedBase):
    """
    Chart of accounts row.

    Guarantees:
        - code is unique and non-null.
        - normal_balance is stored, not derived, so the catalog owner decides.
    """

    __tablename__ = "accounts"

    __table_args__ = (
        UniqueConstraint("code", name="uq_account_code"),
        Index("idx_account_active", "is_active"),
    )

    code: Mapped[str] = mapped_column(String(50), nullable=False)

    name: Mapped[str] = mapped_column(String(255), nullable=False)

    account_type: Mapped[AccountType] = mapped_column(
        enum_column(AccountType, 20),
        nullable=False,
    )

    normal_balance: Mapped[NormalBalance] = mapped_column(
        enum_column(NormalBalance, 10),
        nullable=False,
    )

    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    def __repr__(self) -> str:
        return f"<Account {self.code} {self.name}>"
