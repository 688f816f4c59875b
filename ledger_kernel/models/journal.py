"""
Module: ledger_kernel.models.journal
Responsibility: ORM persistence for journal entries and journal lines -- the
    single source of financial truth in the ledger.
Architecture position: Kernel > Models.  May import from db/base.py and the
    domain enums.  MUST NOT import from services/ or selectors/.

Invariants enforced:
    - Code uniqueness (UNIQUE constraint on code).
    - Line ordering: (journal_entry_id, line_number) is unique.
    - Optimistic locking: ``version`` is the mapper's version_id_col, so a
      concurrent status change makes the losing UPDATE match zero rows.
    - Immutability after DRAFT (ORM listeners in db/immutability.py).

Failure modes:
    - IntegrityError on duplicate code or duplicate line number.
    - StaleDataError when ``version`` changed underneath a flush.
    - ImmutabilityViolationError on UPDATE/DELETE of a posted entry or line.

Audit relevance:
    Soft-deleted drafts keep their rows; ``deleted_at``, ``deleted_by_id`` and
    ``deletion_reason`` record who removed them and why.
"""

from datetime import date, datetime
from decimal import Decimal
from uuid import UUID

from sqlalchemy import (
    Date,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    Text,
    String,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from ledger_kernel.db.base import TrackedBase, UUIDString, enum_column
from ledger_kernel.domain.entries import ZERO, EntryStatus, EntryType


class JournalEntry(TrackedBase):
    """
    Journal entry header.

    Contract:
        Totals are never stored; ``total_debit``/``total_credit`` are computed
        from lines on read.  Status moves DRAFT -> POSTED -> REVERSED only.

    Guarantees:
        - ``reversed_by_id`` is set on an original once its reversal exists.
        - ``reversal_of_id`` is set on a reversal entry.
        - Lines load ordered by line_number.
    """

    __tablename__ = "journal_entries"

    __table_args__ = (
        UniqueConstraint("code", name="uq_journal_entry_code"),
        Index("idx_journal_entry_status", "status"),
        Index("idx_journal_entry_transaction_date", "transaction_date"),
        Index("idx_journal_entry_type", "entry_type"),
    )

    # Human-readable voucher code, e.g. JV-2025-001
    code: Mapped[str] = mapped_column(String(50), nullable=False)

    status: Mapped[EntryStatus] = mapped_column(
        enum_column(EntryStatus, 10),
        default=EntryStatus.DRAFT,
        nullable=False,
    )

    entry_type: Mapped[EntryType] = mapped_column(
        enum_column(EntryType, 20),
        default=EntryType.MANUAL,
        nullable=False,
    )

    # Drafts may be incomplete; length rules are validation findings
    description: Mapped[str] = mapped_column(Text, nullable=False, default="")

    reference: Mapped[str | None] = mapped_column(Text, nullable=True)

    transaction_date: Mapped[date | None] = mapped_column(Date, nullable=True)

    # Set only by the post transition
    posting_date: Mapped[date | None] = mapped_column(Date, nullable=True)

    posted_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )

    posted_by_id: Mapped[UUID | None] = mapped_column(UUIDString(), nullable=True)

    # On the original: the reversal that offsets it
    reversed_by_id: Mapped[UUID | None] = mapped_column(
        UUIDString(),
        ForeignKey("journal_entries.id"),
        nullable=True,
    )

    # On a reversal: the entry it offsets
    reversal_of_id: Mapped[UUID | None] = mapped_column(
        UUIDString(),
        ForeignKey("journal_entries.id"),
        nullable=True,
    )

    # Soft delete (drafts only)
    deleted_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )

    deleted_by_id: Mapped[UUID | None] = mapped_column(UUIDString(), nullable=True)

    deletion_reason: Mapped[str | None] = mapped_column(Text, nullable=True)

    version: Mapped[int] = mapped_column(Integer, nullable=False)

    lines: Mapped[list["JournalLine"]] = relationship(
        back_populates="entry",
        cascade="all, delete-orphan",
        lazy="selectin",
        order_by="JournalLine.line_number",
    )

    __mapper_args__ = {"version_id_col": version}

    def __repr__(self) -> str:
        return f"<JournalEntry {self.code} status={EntryStatus(self.status).value}>"

    @property
    def is_draft(self) -> bool:
        return self.status == EntryStatus.DRAFT

    @property
    def is_posted(self) -> bool:
        return self.status == EntryStatus.POSTED

    @property
    def is_reversed(self) -> bool:
        return self.status == EntryStatus.REVERSED

    @property
    def is_deleted(self) -> bool:
        return self.deleted_at is not None

    @property
    def total_debit(self) -> Decimal:
        return sum((line.debit_amount for line in self.lines), ZERO)

    @property
    def total_credit(self) -> Decimal:
        return sum((line.credit_amount for line in self.lines), ZERO)


class JournalLine(TrackedBase):
    """
    One account-level posting within a journal entry.

    Contract:
        ``account_id`` references the external chart of accounts; there is no
        foreign key because the catalog is not owned by the ledger.  Lines
        are immutable once the parent entry leaves DRAFT.

    Non-goals:
        - Does not validate account existence or amount exclusivity; the
          EntryValidator reports those.
    """

    __tablename__ = "journal_lines"

    __table_args__ = (
        UniqueConstraint(
            "journal_entry_id", "line_number", name="uq_journal_line_number"
        ),
        Index("idx_journal_line_entry", "journal_entry_id"),
        Index("idx_journal_line_account", "account_id"),
    )

    journal_entry_id: Mapped[UUID] = mapped_column(
        UUIDString(),
        ForeignKey("journal_entries.id"),
        nullable=False,
    )

    line_number: Mapped[int] = mapped_column(Integer, nullable=False)

    account_id: Mapped[UUID | None] = mapped_column(UUIDString(), nullable=True)

    description: Mapped[str | None] = mapped_column(Text, nullable=True)

    debit_amount: Mapped[Decimal] = mapped_column(nullable=False, default=ZERO)

    credit_amount: Mapped[Decimal] = mapped_column(nullable=False, default=ZERO)

    entry: Mapped["JournalEntry"] = relationship(back_populates="lines")

    def __repr__(self) -> str:
        return (
            f"<JournalLine {self.line_number} "
            f"Dr {self.debit_amount} Cr {self.credit_amount}>"
        )
