"""
AccountCatalog -- Read-only chart-of-accounts port.

Responsibility:
    Resolves account identifiers to ``AccountInfo`` snapshots.  The ledger
    references accounts but never owns them; a missing or inactive account
    is a validation finding, never a crash.

Architecture position:
    Kernel > Domain -- abstract port plus an in-memory implementation.
    The SQL-backed implementation lives in
    ``ledger_kernel.services.account_catalog``.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Iterable
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING
from uuid import UUID

from ledger_kernel.exceptions import AccountNotFoundError

if TYPE_CHECKING:
    from ledger_kernel.models.account import Account as AccountModel


class AccountType(str, Enum):
    """Fundamental account classification."""

    ASSET = "asset"
    LIABILITY = "liability"
    EQUITY = "equity"
    REVENUE = "revenue"
    EXPENSE = "expense"

    @property
    def normal_balance(self) -> NormalBalance:
        if self in (AccountType.ASSET, AccountType.EXPENSE):
            return NormalBalance.DEBIT
        return NormalBalance.CREDIT


class NormalBalance(str, Enum):
    """Side on which an account naturally increases."""

    DEBIT = "debit"
    CREDIT = "credit"


@dataclass(frozen=True)
class AccountInfo:
    """
    Pure domain representation of an account.

    Contract:
        Immutable snapshot of catalog state; the validator reads
        ``is_active`` and nothing else.
    """

    account_id: UUID
    code: str
    name: str
    account_type: AccountType
    normal_balance: NormalBalance
    is_active: bool = True

    @classmethod
    def from_model(cls, model: AccountModel) -> AccountInfo:
        return cls(
            account_id=model.id,
            code=model.code,
            name=model.name,
            account_type=AccountType(model.account_type),
            normal_balance=NormalBalance(model.normal_balance),
            is_active=model.is_active,
        )


class AccountCatalog(ABC):
    """
    Port for account lookups.

    Contract:
        ``resolve`` returns None for an unknown id.  ``get`` raises
        AccountNotFoundError instead.
    """

    @abstractmethod
    def resolve(self, account_id: UUID) -> AccountInfo | None:
        ...

    def get(self, account_id: UUID) -> AccountInfo:
        info = self.resolve(account_id)
        if info is None:
            raise AccountNotFoundError(str(account_id))
        return info


class InMemoryAccountCatalog(AccountCatalog):
    """Dictionary-backed catalog for tests and embedded use."""

    def __init__(self, accounts: Iterable[AccountInfo] = ()):
        self._accounts: dict[UUID, AccountInfo] = {
            account.account_id: account for account in accounts
        }

    def add(self, account: AccountInfo) -> AccountInfo:
        self._accounts[account.account_id] = account
        return account

    def resolve(self, account_id: UUID) -> AccountInfo | None:
        return self._accounts.get(account_id)

    def __len__(self) -> int:
        return len(self._accounts)
