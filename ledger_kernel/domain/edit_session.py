"""
EditSession -- Bounded change tracking for a draft being edited.

Responsibility:
    Holds an immutable ``original`` snapshot, a ``current`` working copy and
    a bounded history of change records so a single editor can undo, redo
    or reset before saving.  Nothing here touches persisted state; the
    caller turns the session into an ``EntryPatch`` and saves it through
    ``JournalService.edit_draft``.

Architecture position:
    Kernel > Domain -- in-memory value holder, zero I/O.

Invariants enforced:
    - len(history) <= capacity at all times; the oldest record is evicted.
    - undo() writes back the recorded old value exactly; it never recomputes.
    - Line numbers stay 1..n after add_line/remove_line.

Failure modes:
    - InvalidEditTargetError for an unknown field or out-of-range line index.
    - undo()/redo() on an empty stack return None (not an error).
"""

from __future__ import annotations

from collections import deque
from dataclasses import dataclass, replace
from datetime import date, datetime
from decimal import Decimal
from typing import Any
from uuid import UUID

from ledger_kernel.domain.clock import Clock, SystemClock
from ledger_kernel.domain.entries import (
    DEFAULT_BALANCE_TOLERANCE,
    EntryDraft,
    EntryPatch,
    EntryTotals,
    EntryType,
    JournalLineData,
    compute_totals,
    renumber_lines,
    to_amount,
)
from ledger_kernel.exceptions import InvalidEditTargetError
from ledger_kernel.logging_config import get_logger

logger = get_logger("domain.edit_session")

ENTRY_FIELDS: frozenset[str] = frozenset(
    {"description", "reference", "transaction_date", "entry_type"}
)
LINE_FIELDS: frozenset[str] = frozenset(
    {"account_id", "description", "debit_amount", "credit_amount"}
)
LINES_FIELD = "lines"

DEFAULT_HISTORY_CAPACITY = 50


@dataclass(frozen=True)
class ChangeRecord:
    """One recorded edit.  ``line_index`` is 0-based; None for header fields."""

    field: str
    line_index: int | None
    old_value: Any
    new_value: Any
    timestamp: datetime

    @property
    def key(self) -> str:
        return field_key(self.field, self.line_index)


def field_key(field: str, line_index: int | None = None) -> str:
    """UI-facing location key, e.g. ``lines[0].debit_amount``."""
    if field == LINES_FIELD or line_index is None:
        return field
    return f"lines[{line_index}].{field}"


def _coerce(field: str, value: Any) -> Any:
    if field in ("debit_amount", "credit_amount"):
        return to_amount(value)
    if field == "entry_type":
        return EntryType(value)
    if field == "account_id" and isinstance(value, str):
        return UUID(value) if value else None
    if field == "transaction_date" and isinstance(value, str):
        return date.fromisoformat(value)
    if field == "reference" and value == "":
        return None
    return value


class EditSession:
    """
    Single-editor change-tracking session over one draft.

    Contract:
        ``apply_change`` compares against the current value and records a
        change only when it differs.  Any new change clears the redo stack.

    Non-goals:
        - No locking; one concurrent editor is assumed.
        - Does NOT validate.  Callers re-derive ``totals()`` or run the
          EntryValidator after each mutation as they need.
    """

    def __init__(
        self,
        original: EntryDraft,
        capacity: int = DEFAULT_HISTORY_CAPACITY,
        clock: Clock | None = None,
        entry_id: UUID | None = None,
    ):
        if capacity < 1:
            raise ValueError(f"capacity must be at least 1, got {capacity}")
        self._original = original
        self._current = original
        self._capacity = capacity
        self._clock = clock or SystemClock()
        self._entry_id = entry_id
        self._history: deque[ChangeRecord] = deque(maxlen=capacity)
        self._redo: deque[ChangeRecord] = deque(maxlen=capacity)

    @property
    def original(self) -> EntryDraft:
        return self._original

    @property
    def current(self) -> EntryDraft:
        return self._current

    @property
    def entry_id(self) -> UUID | None:
        return self._entry_id

    @property
    def capacity(self) -> int:
        return self._capacity

    @property
    def history(self) -> tuple[ChangeRecord, ...]:
        return tuple(self._history)

    @property
    def can_undo(self) -> bool:
        return bool(self._history)

    @property
    def can_redo(self) -> bool:
        return bool(self._redo)

    @property
    def has_changes(self) -> bool:
        return self._current != self._original

    def diff_count(self) -> int:
        return len(self._history)

    # ------------------------------------------------------------------
    # Mutation
    # ------------------------------------------------------------------

    def apply_change(
        self, field: str, new_value: Any, line_index: int | None = None
    ) -> bool:
        """Record and apply a change.  Returns False when nothing changed."""
        self._check_target(field, line_index)
        new_value = _coerce(field, new_value)
        old_value = self._read(self._current, field, line_index)
        if old_value == new_value:
            return False

        self._push(ChangeRecord(field, line_index, old_value, new_value, self._clock.now()))
        self._write(field, line_index, new_value)
        logger.debug(
            "edit_change_applied",
            extra={
                "field": field_key(field, line_index),
                "history_size": len(self._history),
            },
        )
        return True

    def add_line(
        self, line: JournalLineData | None = None, index: int | None = None
    ) -> int:
        """Insert a line (appended by default).  Returns its 0-based index."""
        lines = list(self._current.lines)
        position = len(lines) if index is None else index
        if position < 0 or position > len(lines):
            raise InvalidEditTargetError(LINES_FIELD, position)
        lines.insert(position, line or JournalLineData())
        self._replace_lines(renumber_lines(lines), position)
        return position

    def remove_line(self, index: int) -> JournalLineData:
        """Remove a line and renumber the rest.  Returns the removed line."""
        lines = list(self._current.lines)
        if index < 0 or index >= len(lines):
            raise InvalidEditTargetError(LINES_FIELD, index)
        removed = lines.pop(index)
        self._replace_lines(renumber_lines(lines), index)
        return removed

    def undo(self) -> str | None:
        """Restore the most recent change; None when there is nothing to undo."""
        if not self._history:
            return None
        record = self._history.pop()
        self._write(record.field, record.line_index, record.old_value)
        self._redo.append(record)
        logger.debug("edit_undo", extra={"field": record.key})
        return record.key

    def redo(self) -> str | None:
        """Re-apply the most recently undone change; None when there is none."""
        if not self._redo:
            return None
        record = self._redo.pop()
        self._write(record.field, record.line_index, record.new_value)
        self._history.append(record)
        logger.debug("edit_redo", extra={"field": record.key})
        return record.key

    def reset(self) -> None:
        """Discard all history and return to the original snapshot."""
        self._history.clear()
        self._redo.clear()
        self._current = self._original
        logger.debug("edit_reset")

    # ------------------------------------------------------------------
    # Inspection
    # ------------------------------------------------------------------

    def is_field_changed(self, field: str, line_index: int | None = None) -> bool:
        if field == LINES_FIELD:
            return self._current.lines != self._original.lines
        if line_index is None:
            if field not in ENTRY_FIELDS:
                raise InvalidEditTargetError(field)
            return getattr(self._current, field) != getattr(self._original, field)
        if field not in LINE_FIELDS:
            raise InvalidEditTargetError(field, line_index)
        in_current = 0 <= line_index < len(self._current.lines)
        in_original = 0 <= line_index < len(self._original.lines)
        if not (in_current or in_original):
            raise InvalidEditTargetError(field, line_index)
        if in_current != in_original:
            return True
        return self._read(self._current, field, line_index) != self._read(
            self._original, field, line_index
        )

    def totals(self, tolerance: Decimal = DEFAULT_BALANCE_TOLERANCE) -> EntryTotals:
        return compute_totals(self._current.lines, tolerance)

    def to_patch(self) -> EntryPatch:
        """Patch carrying every field that differs from the original."""
        current, original = self._current, self._original
        reference = None
        if current.reference != original.reference:
            reference = current.reference or ""
        return EntryPatch(
            description=(
                current.description if current.description != original.description else None
            ),
            reference=reference,
            transaction_date=(
                current.transaction_date
                if current.transaction_date != original.transaction_date
                else None
            ),
            entry_type=(
                current.entry_type if current.entry_type != original.entry_type else None
            ),
            lines=current.lines if current.lines != original.lines else None,
        )

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _push(self, record: ChangeRecord) -> None:
        self._history.append(record)
        self._redo.clear()

    def _replace_lines(self, new_lines: tuple[JournalLineData, ...], index: int) -> None:
        old_lines = self._current.lines
        self._push(
            ChangeRecord(LINES_FIELD, index, old_lines, new_lines, self._clock.now())
        )
        self._write(LINES_FIELD, None, new_lines)
        logger.debug(
            "edit_lines_changed",
            extra={"line_count": len(new_lines), "history_size": len(self._history)},
        )

    def _check_target(self, field: str, line_index: int | None) -> None:
        if line_index is None:
            if field not in ENTRY_FIELDS:
                raise InvalidEditTargetError(field)
            return
        if field not in LINE_FIELDS:
            raise InvalidEditTargetError(field, line_index)
        if line_index < 0 or line_index >= len(self._current.lines):
            raise InvalidEditTargetError(field, line_index)

    @staticmethod
    def _read(draft: EntryDraft, field: str, line_index: int | None) -> Any:
        if field == LINES_FIELD:
            return draft.lines
        if line_index is None:
            return getattr(draft, field)
        return getattr(draft.lines[line_index], field)

    def _write(self, field: str, line_index: int | None, value: Any) -> None:
        if field == LINES_FIELD:
            self._current = replace(self._current, lines=tuple(value))
        elif line_index is None:
            self._current = replace(self._current, **{field: value})
        else:
            lines = list(self._current.lines)
            lines[line_index] = replace(lines[line_index], **{field: value})
            self._current = replace(self._current, lines=tuple(lines))
