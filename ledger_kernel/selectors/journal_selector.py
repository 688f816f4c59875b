"""
Module: ledger_kernel.selectors.journal_selector
Responsibility: Read-only query access to journal entries and their lines:
    lookup by id or code, filtered listings and summary statistics.
Architecture position: Kernel > Selectors.

Invariants enforced:
    - Read-only.
    - Soft-deleted drafts are excluded unless ``include_deleted=True``.
    - Totals and balance flags are recomputed from lines, never read from a
      stored column.

Failure modes:
    - Returns None or an empty list when nothing matches (never raises on
      absence of data).
"""

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.orm import Session, selectinload

from ledger_kernel.domain.entries import (
    DEFAULT_BALANCE_TOLERANCE,
    ZERO,
    EntrySnapshot,
    EntryStatus,
    EntryType,
)
from ledger_kernel.models.journal import JournalEntry, JournalLine
from ledger_kernel.selectors.base import BaseSelector


@dataclass(frozen=True)
class JournalSummary:
    """Counts and grand totals over a set of entries."""

    total_entries: int
    draft_count: int
    posted_count: int
    reversed_count: int
    unbalanced_count: int
    total_debit: Decimal
    total_credit: Decimal


class JournalSelector(BaseSelector):
    """
    Selector for journal entries.

    Guarantees:
        - Lines are eager-loaded (selectinload) and ordered by line_number.
        - Listings are ordered by transaction_date, then code.
    """

    def __init__(self, session: Session):
        super().__init__(session)

    def get_entry(
        self, entry_id: UUID, include_deleted: bool = False
    ) -> EntrySnapshot | None:
        entry = self.session.execute(
            select(JournalEntry)
            .options(selectinload(JournalEntry.lines))
            .where(JournalEntry.id == entry_id)
        ).scalar_one_or_none()
        if entry is None or (entry.deleted_at is not None and not include_deleted):
            return None
        return EntrySnapshot.from_model(entry)

    def get_entry_by_code(self, code: str) -> EntrySnapshot | None:
        entry = self.session.execute(
            select(JournalEntry)
            .options(selectinload(JournalEntry.lines))
            .where(JournalEntry.code == code, JournalEntry.deleted_at.is_(None))
        ).scalar_one_or_none()
        return EntrySnapshot.from_model(entry) if entry else None

    def list_entries(
        self,
        status: EntryStatus | None = None,
        entry_type: EntryType | None = None,
        date_from: date | None = None,
        date_to: date | None = None,
        include_deleted: bool = False,
    ) -> list[EntrySnapshot]:
        """
        List entries matching every given filter.

        Args:
            status: Only entries in this status.
            entry_type: Only entries of this type.
            date_from: transaction_date on or after this date.
            date_to: transaction_date on or before this date.
            include_deleted: Include soft-deleted drafts (audit views).
        """
        query = select(JournalEntry).options(selectinload(JournalEntry.lines))
        if status is not None:
            query = query.where(JournalEntry.status == EntryStatus(status))
        if entry_type is not None:
            query = query.where(JournalEntry.entry_type == EntryType(entry_type))
        if date_from is not None:
            query = query.where(JournalEntry.transaction_date >= date_from)
        if date_to is not None:
            query = query.where(JournalEntry.transaction_date <= date_to)
        if not include_deleted:
            query = query.where(JournalEntry.deleted_at.is_(None))
        query = query.order_by(JournalEntry.transaction_date, JournalEntry.code)

        entries = self.session.execute(query).scalars().all()
        return [EntrySnapshot.from_model(entry) for entry in entries]

    def get_entries_for_account(self, account_id: UUID) -> list[EntrySnapshot]:
        """Posted or reversed entries with at least one line on the account."""
        subquery = (
            select(JournalLine.journal_entry_id)
            .where(JournalLine.account_id == account_id)
            .distinct()
        )
        entries = self.session.execute(
            select(JournalEntry)
            .options(selectinload(JournalEntry.lines))
            .where(
                JournalEntry.id.in_(subquery),
                JournalEntry.status.in_([EntryStatus.POSTED, EntryStatus.REVERSED]),
            )
            .order_by(JournalEntry.transaction_date, JournalEntry.code)
        ).scalars().all()
        return [EntrySnapshot.from_model(entry) for entry in entries]

    def count_entries(self, status: EntryStatus | None = None) -> int:
        query = select(func.count(JournalEntry.id)).where(
            JournalEntry.deleted_at.is_(None)
        )
        if status is not None:
            query = query.where(JournalEntry.status == EntryStatus(status))
        return self.session.execute(query).scalar_one()

    def summary(
        self,
        tolerance: Decimal = DEFAULT_BALANCE_TOLERANCE,
        **filters,
    ) -> JournalSummary:
        """Summary statistics over non-deleted entries (``list_entries`` filters apply)."""
        entries = self.list_entries(**filters)
        by_status = {status: 0 for status in EntryStatus}
        for entry in entries:
            by_status[entry.status] += 1
        return JournalSummary(
            total_entries=len(entries),
            draft_count=by_status[EntryStatus.DRAFT],
            posted_count=by_status[EntryStatus.POSTED],
            reversed_count=by_status[EntryStatus.REVERSED],
            unbalanced_count=sum(1 for e in entries if not e.is_balanced(tolerance)),
            total_debit=sum((e.total_debit for e in entries), ZERO),
            total_credit=sum((e.total_credit for e in entries), ZERO),
        )
