"""
LedgerStateMachine -- Journal entry lifecycle.

Responsibility
--------------
Owns the DRAFT -> POSTED -> REVERSED lifecycle: which action is legal
from which status, where it leads, and which fields may still change once
an entry has left DRAFT.  Every guard here runs before any mutation, so a
rejected transition never leaves partial data.

Architecture position
---------------------
**Kernel domain layer** -- pure value objects.  ZERO I/O.  No imports
from ``db/``, ``services/``, ``selectors/``, or outer layers.  The ORM
immutability listeners and the services both consult this module.

Invariants enforced
-------------------
* Status only moves forward; DRAFT -> REVERSED is not a transition.
* Only lifecycle columns change once status != DRAFT.
* Posting requires a clean ValidationResult.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from ledger_kernel.domain.entries import EntryStatus
from ledger_kernel.domain.validation import ValidationResult
from ledger_kernel.exceptions import (
    EntryValidationError,
    ImmutabilityViolationError,
    StateError,
)


class LedgerAction(str, Enum):
    """Operations that act on an entry's lifecycle."""

    CREATE = "CREATE"
    EDIT = "EDIT"
    POST = "POST"
    DELETE = "DELETE"
    REVERSE = "REVERSE"


@dataclass(frozen=True)
class Transition:
    """A valid state transition.  Contract: frozen."""

    from_state: EntryStatus
    to_state: EntryStatus
    action: LedgerAction


@dataclass(frozen=True)
class Workflow:
    """A state machine definition for a document lifecycle.

    Guarantees: ``initial_state`` is a member of ``states``; transitions
    reference only states in ``states``.
    """

    name: str
    initial_state: EntryStatus
    states: tuple[EntryStatus, ...]
    transitions: tuple[Transition, ...]
    terminal_states: tuple[EntryStatus, ...] = ()

    def __post_init__(self) -> None:
        if self.initial_state not in self.states:
            raise ValueError(f"initial_state {self.initial_state} not in states")
        for transition in self.transitions:
            if (
                transition.from_state not in self.states
                or transition.to_state not in self.states
            ):
                raise ValueError(f"Transition {transition} references unknown state")


JOURNAL_ENTRY_WORKFLOW = Workflow(
    name="journal_entry",
    initial_state=EntryStatus.DRAFT,
    states=(EntryStatus.DRAFT, EntryStatus.POSTED, EntryStatus.REVERSED),
    transitions=(
        Transition(EntryStatus.DRAFT, EntryStatus.DRAFT, LedgerAction.EDIT),
        Transition(EntryStatus.DRAFT, EntryStatus.DRAFT, LedgerAction.DELETE),
        Transition(EntryStatus.DRAFT, EntryStatus.POSTED, LedgerAction.POST),
        Transition(EntryStatus.POSTED, EntryStatus.REVERSED, LedgerAction.REVERSE),
    ),
    terminal_states=(EntryStatus.REVERSED,),
)

_STATUS_RANK = {
    EntryStatus.DRAFT: 0,
    EntryStatus.POSTED: 1,
    EntryStatus.REVERSED: 2,
}

# Columns that may still change after an entry leaves DRAFT.
LIFECYCLE_FIELDS: frozenset[str] = frozenset(
    {
        "status",
        "posting_date",
        "posted_at",
        "posted_by_id",
        "reversed_by_id",
        "updated_at",
        "updated_by_id",
        "version",
    }
)


class LedgerStateMachine:
    """
    Lifecycle guard for journal entries.

    Contract:
        ``transition_for`` returns the matching Transition or raises
        StateError(attempted, current).  It never returns None.

    Non-goals:
        - Does NOT persist anything.  Services apply the returned target
          status to the row.
    """

    def __init__(self, workflow: Workflow = JOURNAL_ENTRY_WORKFLOW):
        self._workflow = workflow
        self._index: dict[tuple[LedgerAction, EntryStatus], Transition] = {
            (t.action, t.from_state): t for t in workflow.transitions
        }

    @property
    def workflow(self) -> Workflow:
        return self._workflow

    def initial_status(self) -> EntryStatus:
        return self._workflow.initial_state

    def can(self, action: LedgerAction, current: EntryStatus) -> bool:
        if action == LedgerAction.CREATE:
            return True
        return (LedgerAction(action), EntryStatus(current)) in self._index

    def transition_for(
        self,
        action: LedgerAction,
        current: EntryStatus,
        entry_id: object | None = None,
    ) -> Transition:
        action = LedgerAction(action)
        current = EntryStatus(current)
        transition = self._index.get((action, current))
        if transition is None:
            raise StateError(
                attempted=action.value,
                current=current.value,
                entry_id=str(entry_id) if entry_id is not None else None,
            )
        return transition

    def next_status(self, action: LedgerAction, current: EntryStatus) -> EntryStatus:
        return self.transition_for(action, current).to_state

    def allowed_actions(self, current: EntryStatus) -> tuple[LedgerAction, ...]:
        current = EntryStatus(current)
        return tuple(
            t.action for t in self._workflow.transitions if t.from_state == current
        )

    def check_post(
        self,
        entry_id: object,
        current: EntryStatus,
        validation: ValidationResult,
    ) -> Transition:
        """
        Guard a post: status first, then validation.

        Raises:
            StateError: Entry is not a draft.
            EntryValidationError: Validation found issues.
        """
        transition = self.transition_for(LedgerAction.POST, current, entry_id)
        if not validation.is_valid:
            raise EntryValidationError(str(entry_id), validation.issues)
        return transition

    @staticmethod
    def is_forward(old: EntryStatus, new: EntryStatus) -> bool:
        """True when ``new`` is ``old`` or later in the lifecycle."""
        return _STATUS_RANK[EntryStatus(new)] >= _STATUS_RANK[EntryStatus(old)]

    @staticmethod
    def check_field_mutation(
        field_name: str,
        current: EntryStatus,
        entry_id: object,
    ) -> None:
        """Raise ImmutabilityViolationError if ``field_name`` is frozen."""
        if EntryStatus(current) == EntryStatus.DRAFT:
            return
        if field_name not in LIFECYCLE_FIELDS:
            raise ImmutabilityViolationError(
                entity_type="JournalEntry",
                entity_id=str(entry_id),
                reason=(
                    f"field '{field_name}' is immutable once the entry is "
                    f"{EntryStatus(current).value}"
                ),
            )
