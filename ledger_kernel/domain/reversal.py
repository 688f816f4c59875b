"""
ReversalGenerator -- Mirror entry construction.

Responsibility:
    Derives the reversing entry for a POSTED entry: same accounts, same
    line count and order, each line's debit and credit swapped.

Architecture position:
    Kernel > Domain -- pure function, zero I/O.  Invoked only from the
    reverse transition in ``ledger_kernel.services.reversal_service``.

Invariants enforced:
    - Precondition: original.status == POSTED (StateError otherwise).
    - total_debit(reversal) == total_credit(original) and vice versa.
      Swapping line-for-line (not negating an aggregate) keeps a balanced
      original balanced.

Failure modes:
    - StateError when the original is DRAFT or REVERSED.
"""

from __future__ import annotations

from dataclasses import replace
from datetime import date
from uuid import UUID, uuid4

from ledger_kernel.domain.entries import (
    EntrySnapshot,
    EntryStatus,
    EntryType,
    JournalLineData,
    renumber_lines,
)
from ledger_kernel.domain.lifecycle import LedgerAction
from ledger_kernel.exceptions import StateError

REVERSAL_LINE_PREFIX = "Reversal: "


def reversal_description(code: str) -> str:
    return f"Reversal of {code}"


def reversed_line(line: JournalLineData, max_length: int | None = None) -> JournalLineData:
    """Swap sides and tag the description, cut to ``max_length`` characters."""
    description = f"{REVERSAL_LINE_PREFIX}{line.description or ''}".rstrip()
    if max_length is not None:
        description = description[:max_length].rstrip()
    return replace(line.swapped(), description=description)


class ReversalGenerator:
    """
    Builds reversal entries.

    Contract:
        ``generate`` returns an unsaved EntrySnapshot with a fresh id, the
        configured initial status and ``reversal_of_id`` pointing at the
        original.  The caller persists it and flips the original.
    """

    def __init__(
        self,
        reversal_status: EntryStatus = EntryStatus.POSTED,
        max_line_description_length: int | None = None,
    ):
        self._reversal_status = EntryStatus(reversal_status)
        self._max_line_description_length = max_line_description_length

    @property
    def reversal_status(self) -> EntryStatus:
        return self._reversal_status

    def generate(
        self,
        original: EntrySnapshot,
        code: str,
        reversal_date: date,
        reason: str | None = None,
        entry_id: UUID | None = None,
    ) -> EntrySnapshot:
        if original.status != EntryStatus.POSTED:
            raise StateError(
                attempted=LedgerAction.REVERSE.value,
                current=original.status.value,
                entry_id=str(original.id),
            )

        lines = renumber_lines(
            tuple(
                reversed_line(line, self._max_line_description_length)
                for line in original.lines
            )
        )
        reversal = EntrySnapshot(
            id=entry_id or uuid4(),
            code=code,
            status=self._reversal_status,
            description=reversal_description(original.code),
            transaction_date=reversal_date,
            entry_type=EntryType.REVERSAL,
            lines=lines,
            reference=reason or original.code,
            reversal_of_id=original.id,
            metadata={"reversal_reason": reason, "original_code": original.code},
        )

        assert reversal.total_debit == original.total_credit
        assert reversal.total_credit == original.total_debit
        return reversal
