"""
Entries -- Immutable journal entry value types.

Responsibility:
    Defines the closed enumerations (status, entry type) and the frozen
    value objects the validator, state machine, reversal generator and edit
    session operate on.  Totals are always re-derived from lines; nothing
    here stores a debit or credit total.

Architecture position:
    Kernel > Domain -- pure functional core, zero I/O.
    MUST NOT import from db/, models/, services/, or selectors/.

Invariants enforced:
    - Line numbers are exactly 1..len(lines) after ``renumber_lines``.
    - ``compute_totals`` is the only place that sums debits and credits.

Failure modes:
    - ValueError on a non-numeric amount passed to ``to_amount``.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import TYPE_CHECKING, Any
from uuid import UUID

if TYPE_CHECKING:
    from ledger_kernel.models.journal import JournalEntry as JournalEntryModel
    from ledger_kernel.models.journal import JournalLine as JournalLineModel

ZERO = Decimal("0")

DEFAULT_BALANCE_TOLERANCE = Decimal("0.01")


class EntryStatus(str, Enum):
    """
    Lifecycle status of a journal entry.

    Contract:
        Lifecycle: DRAFT -> POSTED -> REVERSED.  No backward transitions.
    """

    DRAFT = "DRAFT"
    POSTED = "POSTED"
    REVERSED = "REVERSED"


class EntryType(str, Enum):
    """Origin of a journal entry."""

    MANUAL = "MANUAL"
    AUTO_REVENUE = "AUTO_REVENUE"
    AUTO_EXPENSE = "AUTO_EXPENSE"
    AUTO_PAYROLL = "AUTO_PAYROLL"
    AUTO_LOAN = "AUTO_LOAN"
    AUTO_PURCHASE = "AUTO_PURCHASE"
    AUTO_REFUND = "AUTO_REFUND"
    ADJUSTMENT = "ADJUSTMENT"
    CLOSING = "CLOSING"
    REVERSAL = "REVERSAL"

    @property
    def is_auto_generated(self) -> bool:
        return self.value.startswith("AUTO_")


def to_amount(value: Any) -> Decimal:
    """Coerce an amount to Decimal.  None means zero; floats go through str."""
    if value is None:
        return ZERO
    if isinstance(value, Decimal):
        return value
    if isinstance(value, float):
        return Decimal(str(value))
    return Decimal(value)


@dataclass(frozen=True)
class JournalLineData:
    """
    One account-level posting within an entry.

    Contract:
        Amounts are Decimal and default to zero.  ``account_id`` is None when
        the line has no account yet (a draft under construction).

    Non-goals:
        - Does NOT enforce debit/credit exclusivity.  A line that violates it
          is representable so the validator can report it.
    """

    account_id: UUID | None = None
    debit_amount: Decimal = ZERO
    credit_amount: Decimal = ZERO
    description: str | None = None
    line_number: int = 0
    line_id: UUID | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "debit_amount", to_amount(self.debit_amount))
        object.__setattr__(self, "credit_amount", to_amount(self.credit_amount))

    @classmethod
    def debit(
        cls, account_id: UUID | None, amount: Any, description: str | None = None
    ) -> JournalLineData:
        return cls(account_id=account_id, debit_amount=amount, description=description)

    @classmethod
    def credit(
        cls, account_id: UUID | None, amount: Any, description: str | None = None
    ) -> JournalLineData:
        return cls(account_id=account_id, credit_amount=amount, description=description)

    @property
    def is_debit(self) -> bool:
        return self.debit_amount > ZERO and self.credit_amount == ZERO

    @property
    def is_credit(self) -> bool:
        return self.credit_amount > ZERO and self.debit_amount == ZERO

    @classmethod
    def from_model(cls, model: JournalLineModel) -> JournalLineData:
        """Boundary converter; invoked from services and selectors only."""
        return cls(
            account_id=model.account_id,
            debit_amount=model.debit_amount,
            credit_amount=model.credit_amount,
            description=model.description,
            line_number=model.line_number,
            line_id=model.id,
        )

    def swapped(self) -> JournalLineData:
        """Return a copy with debit and credit exchanged."""
        return replace(
            self,
            debit_amount=self.credit_amount,
            credit_amount=self.debit_amount,
            line_id=None,
        )


def renumber_lines(lines: tuple[JournalLineData, ...] | list[JournalLineData]) -> tuple[JournalLineData, ...]:
    """Assign line numbers 1..n preserving order."""
    return tuple(
        line if line.line_number == index else replace(line, line_number=index)
        for index, line in enumerate(lines, start=1)
    )


@dataclass(frozen=True)
class EntryTotals:
    """Debit/credit totals derived from lines."""

    total_debit: Decimal
    total_credit: Decimal
    difference: Decimal
    is_balanced: bool


def compute_totals(
    lines: tuple[JournalLineData, ...] | list[JournalLineData],
    tolerance: Decimal = DEFAULT_BALANCE_TOLERANCE,
) -> EntryTotals:
    """Sum both sides.  ``difference`` is signed (debit - credit)."""
    total_debit = sum((line.debit_amount for line in lines), ZERO)
    total_credit = sum((line.credit_amount for line in lines), ZERO)
    difference = total_debit - total_credit
    return EntryTotals(
        total_debit=total_debit,
        total_credit=total_credit,
        difference=difference,
        is_balanced=abs(difference) < tolerance,
    )


@dataclass(frozen=True)
class EntryDraft:
    """
    Candidate content of a journal entry.

    Contract:
        The mutable-by-replacement payload of a Draft: everything a user can
        edit.  Lifecycle fields (status, posting stamps, reversal links)
        are deliberately absent.
    """

    description: str
    transaction_date: date | None
    lines: tuple[JournalLineData, ...] = ()
    entry_type: EntryType = EntryType.MANUAL
    reference: str | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "lines", renumber_lines(self.lines))
        object.__setattr__(self, "entry_type", EntryType(self.entry_type))

    def totals(self, tolerance: Decimal = DEFAULT_BALANCE_TOLERANCE) -> EntryTotals:
        return compute_totals(self.lines, tolerance)


@dataclass(frozen=True)
class EntryPatch:
    """
    Partial update of a Draft.  None means "leave unchanged".

    ``lines`` replaces the whole line list; it is renumbered on apply.
    """

    description: str | None = None
    reference: str | None = None
    transaction_date: date | None = None
    entry_type: EntryType | None = None
    lines: tuple[JournalLineData, ...] | None = None

    @property
    def is_empty(self) -> bool:
        return all(
            value is None
            for value in (
                self.description,
                self.reference,
                self.transaction_date,
                self.entry_type,
                self.lines,
            )
        )

    def apply_to(self, draft: EntryDraft) -> EntryDraft:
        """Return the draft that results from applying this patch."""
        changes: dict[str, Any] = {}
        if self.description is not None:
            changes["description"] = self.description
        if self.reference is not None:
            changes["reference"] = self.reference or None
        if self.transaction_date is not None:
            changes["transaction_date"] = self.transaction_date
        if self.entry_type is not None:
            changes["entry_type"] = self.entry_type
        if self.lines is not None:
            changes["lines"] = tuple(self.lines)
        return replace(draft, **changes)

    def changed_fields(self) -> tuple[str, ...]:
        return tuple(
            name
            for name in ("description", "reference", "transaction_date", "entry_type", "lines")
            if getattr(self, name) is not None
        )


@dataclass(frozen=True)
class EntrySnapshot:
    """
    Read-side view of a persisted journal entry.

    Contract:
        Produced by selectors from ORM rows; consumed by the reversal
        generator and by edit sessions.  ``total_debit``/``total_credit`` are
        properties over ``lines``, never stored values.
    """

    id: UUID
    code: str
    status: EntryStatus
    description: str
    transaction_date: date | None
    entry_type: EntryType
    lines: tuple[JournalLineData, ...]
    reference: str | None = None
    posting_date: date | None = None
    posted_at: datetime | None = None
    posted_by_id: UUID | None = None
    reversed_by_id: UUID | None = None
    reversal_of_id: UUID | None = None
    created_by_id: UUID | None = None
    is_deleted: bool = False
    metadata: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_model(cls, model: JournalEntryModel) -> EntrySnapshot:
        """Boundary converter; invoked from services and selectors only."""
        return cls(
            id=model.id,
            code=model.code,
            status=EntryStatus(model.status),
            description=model.description,
            transaction_date=model.transaction_date,
            entry_type=EntryType(model.entry_type),
            lines=tuple(
                JournalLineData.from_model(line)
                for line in sorted(model.lines, key=lambda line: line.line_number)
            ),
            reference=model.reference,
            posting_date=model.posting_date,
            posted_at=model.posted_at,
            posted_by_id=model.posted_by_id,
            reversed_by_id=model.reversed_by_id,
            reversal_of_id=model.reversal_of_id,
            created_by_id=model.created_by_id,
            is_deleted=model.deleted_at is not None,
        )

    @property
    def total_debit(self) -> Decimal:
        return compute_totals(self.lines).total_debit

    @property
    def total_credit(self) -> Decimal:
        return compute_totals(self.lines).total_credit

    def is_balanced(self, tolerance: Decimal = DEFAULT_BALANCE_TOLERANCE) -> bool:
        return compute_totals(self.lines, tolerance).is_balanced

    def to_draft(self) -> EntryDraft:
        """Editable content of this entry."""
        return EntryDraft(
            description=self.description,
            transaction_date=self.transaction_date,
            lines=self.lines,
            entry_type=self.entry_type,
            reference=self.reference,
        )
