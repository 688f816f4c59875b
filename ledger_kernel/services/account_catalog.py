"""
SqlAccountCatalog -- AccountCatalog backed by the ``accounts`` table.

Responsibility:
    Resolves account ids through the ORM and hands the validator pure
    AccountInfo snapshots.  Also provides the small write surface used to
    seed a catalog (register, deactivate); the chart of accounts itself is
    owned outside the ledger.

Architecture position:
    Kernel > Services -- imperative shell adapter for the domain port.
"""

from uuid import UUID

from sqlalchemy import select
from sqlalchemy.orm import Session

from ledger_kernel.domain.catalog import (
    AccountCatalog,
    AccountInfo,
    AccountType,
    NormalBalance,
)
from ledger_kernel.exceptions import AccountNotFoundError
from ledger_kernel.logging_config import get_logger
from ledger_kernel.models.account import Account

logger = get_logger("services.account_catalog")


class SqlAccountCatalog(AccountCatalog):
    """
    SQL-backed account catalog.

    Non-goals:
        - Does NOT call session.commit() -- caller controls boundaries.
    """

    def __init__(self, session: Session):
        self._session = session

    def resolve(self, account_id: UUID) -> AccountInfo | None:
        account = self._session.get(Account, account_id)
        if account is None:
            return None
        return AccountInfo.from_model(account)

    def find_by_code(self, code: str) -> AccountInfo | None:
        account = self._session.execute(
            select(Account).where(Account.code == code)
        ).scalar_one_or_none()
        return AccountInfo.from_model(account) if account else None

    def register(
        self,
        code: str,
        name: str,
        account_type: AccountType,
        actor_id: UUID,
        normal_balance: NormalBalance | None = None,
        is_active: bool = True,
    ) -> AccountInfo:
        account_type = AccountType(account_type)
        account = Account(
            code=code,
            name=name,
            account_type=account_type,
            normal_balance=NormalBalance(normal_balance or account_type.normal_balance),
            is_active=is_active,
            created_by_id=actor_id,
        )
        self._session.add(account)
        self._session.flush()
        logger.info(
            "account_registered",
            extra={
                "account_id": str(account.id),
                "code": code,
                "account_type": account_type.value,
            },
        )
        return AccountInfo.from_model(account)

    def deactivate(self, account_id: UUID, actor_id: UUID) -> AccountInfo:
        account = self._session.get(Account, account_id)
        if account is None:
            raise AccountNotFoundError(str(account_id))
        account.is_active = False
        account.updated_by_id = actor_id
        self._session.flush()
        logger.info("account_deactivated", extra={"account_id": str(account_id)})
        return AccountInfo.from_model(account)
