"""
Pure domain layer.

This module contains value objects and domain logic with NO dependencies on:
- ORM (SQLAlchemy)
- Database
- I/O (time is read only through an injected Clock)

All domain objects are immutable and deterministic, except EditSession,
which is an in-memory working copy by nature.
"""

from ledger_kernel.domain.catalog import (
    AccountCatalog,
    AccountInfo,
    AccountType,
    InMemoryAccountCatalog,
    NormalBalance,
)
from ledger_kernel.domain.clock import Clock, DeterministicClock, SystemClock
from ledger_kernel.domain.edit_session import ChangeRecord, EditSession
from ledger_kernel.domain.entries import (
    EntryDraft,
    EntryPatch,
    EntrySnapshot,
    EntryStatus,
    EntryTotals,
    EntryType,
    JournalLineData,
    compute_totals,
    renumber_lines,
)
from ledger_kernel.domain.lifecycle import (
    JOURNAL_ENTRY_WORKFLOW,
    LIFECYCLE_FIELDS,
    LedgerAction,
    LedgerStateMachine,
)
from ledger_kernel.domain.policy import LedgerPolicy
from ledger_kernel.domain.reversal import ReversalGenerator
from ledger_kernel.domain.validation import (
    EntryValidator,
    ValidationIssue,
    ValidationKind,
    ValidationResult,
)

__all__ = [
    # Accounts
    "AccountCatalog",
    "AccountInfo",
    "AccountType",
    "InMemoryAccountCatalog",
    "NormalBalance",
    # Time
    "Clock",
    "DeterministicClock",
    "SystemClock",
    # Entries
    "EntryDraft",
    "EntryPatch",
    "EntrySnapshot",
    "EntryStatus",
    "EntryTotals",
    "EntryType",
    "JournalLineData",
    "compute_totals",
    "renumber_lines",
    # Rules
    "EntryValidator",
    "LedgerPolicy",
    "ValidationIssue",
    "ValidationKind",
    "ValidationResult",
    # Lifecycle
    "JOURNAL_ENTRY_WORKFLOW",
    "LIFECYCLE_FIELDS",
    "LedgerAction",
    "LedgerStateMachine",
    "ReversalGenerator",
    # Editing
    "ChangeRecord",
    "EditSession",
]
