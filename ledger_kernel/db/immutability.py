"""
ORM-Level Immutability Enforcement.

===============================================================================
WHY THIS EXISTS
===============================================================================

Posted journal entries cannot be edited, only reversed by a new entry that
leaves a visible trail.  The services already refuse such edits through the
LedgerStateMachine; these listeners are the last check before SQL reaches
the database, so code that bypasses the services is caught too.

===============================================================================
HOW IT WORKS
===============================================================================

    session.flush()
         |
         v
    [before_update] --> _check_*_immutability() --> ImmutabilityViolationError
         |
    [before_delete] --> _check_*_delete() ---------> ImmutabilityViolationError
         |
         v
    SQL sent to database (only if checks pass)

===============================================================================
PROTECTED ENTITIES
===============================================================================

Entity        | When immutable                 | What may still change
--------------|--------------------------------|-------------------------------
JournalEntry  | Once status != DRAFT           | lifecycle columns (LIFECYCLE_FIELDS)
JournalEntry  | Always                         | status only moves forward
JournalLine   | Once the parent != DRAFT       | nothing

===============================================================================
DESIGN DECISIONS
===============================================================================

1. "WAS" NOT "IS".  The post transition itself changes status and posting
   stamps in one flush.  The check reads the pre-flush status from
   attribute history, so DRAFT -> POSTED passes and later edits do not.

2. INLINE IMPORTS.  Models import from db, db imports from models.

===============================================================================
USAGE
===============================================================================

    from ledger_kernel.db.immutability import register_immutability_listeners
    register_immutability_listeners()  # Called once at startup

To temporarily disable (TESTS ONLY):

    unregister_immutability_listeners()
    # ... do forbidden operation ...
    register_immutability_listeners()
"""

from sqlalchemy import event, inspect
from sqlalchemy.orm.attributes import get_history

from ledger_kernel.domain.entries import EntryStatus
from ledger_kernel.domain.lifecycle import JOURNAL_ENTRY_WORKFLOW, LIFECYCLE_FIELDS
from ledger_kernel.exceptions import ImmutabilityViolationError
from ledger_kernel.logging_config import get_logger

logger = get_logger("db.immutability")

_FORWARD_MOVES: frozenset[tuple[EntryStatus, EntryStatus]] = frozenset(
    (t.from_state, t.to_state)
    for t in JOURNAL_ENTRY_WORKFLOW.transitions
    if t.from_state != t.to_state
)


def _previous_status(target) -> EntryStatus:
    history = get_history(target, "status")
    if history.deleted:
        return EntryStatus(history.deleted[0])
    return EntryStatus(target.status)


def _blocked(entity_type: str, entity_id, operation: str, reason: str, **fields):
    logger.error(
        "immutability_violation_blocked",
        extra={
            "entity_type": entity_type,
            "entity_id": str(entity_id),
            "operation": operation,
            **fields,
        },
    )
    raise ImmutabilityViolationError(
        entity_type=entity_type,
        entity_id=str(entity_id),
        reason=reason,
    )


def _check_journal_entry_immutability(mapper, connection, target):
    """
    Block non-lifecycle changes to a non-draft entry and backward status moves.
    """
    from ledger_kernel.models.journal import JournalEntry

    if not isinstance(target, JournalEntry):
        return

    previous = _previous_status(target)
    current = EntryStatus(target.status)

    if previous != current and (previous, current) not in _FORWARD_MOVES:
        _blocked(
            "JournalEntry",
            target.id,
            "UPDATE",
            f"status cannot move from {previous.value} to {current.value}",
            field="status",
        )

    if previous == EntryStatus.DRAFT:
        return

    for attr in inspect(target).attrs:
        if attr.key in LIFECYCLE_FIELDS or attr.key == "lines":
            continue
        if attr.history.has_changes():
            _blocked(
                "JournalEntry",
                target.id,
                "UPDATE",
                f"Cannot modify field '{attr.key}' on {previous.value.lower()} journal entry",
                field=attr.key,
            )


def _check_journal_entry_delete(mapper, connection, target):
    """Only drafts may be physically deleted."""
    from ledger_kernel.models.journal import JournalEntry

    if not isinstance(target, JournalEntry):
        return

    if _previous_status(target) != EntryStatus.DRAFT:
        _blocked(
            "JournalEntry",
            target.id,
            "DELETE",
            "Posted or reversed journal entries cannot be deleted",
        )


def _parent_is_frozen(target) -> bool:
    entry = target.entry
    return entry is not None and _previous_status(entry) != EntryStatus.DRAFT


def _check_journal_line_immutability(mapper, connection, target):
    """Lines are frozen once the parent entry leaves DRAFT."""
    from ledger_kernel.models.journal import JournalLine

    if not isinstance(target, JournalLine):
        return

    if _parent_is_frozen(target):
        _blocked(
            "JournalLine",
            target.id,
            "UPDATE",
            "Journal lines cannot be modified after the parent entry is posted",
        )


def _check_journal_line_delete(mapper, connection, target):
    from ledger_kernel.models.journal import JournalLine

    if not isinstance(target, JournalLine):
        return

    if _parent_is_frozen(target):
        _blocked(
            "JournalLine",
            target.id,
            "DELETE",
            "Journal lines cannot be deleted after the parent entry is posted",
        )


def register_immutability_listeners():
    """Register all immutability enforcement event listeners (idempotent)."""
    from ledger_kernel.models.journal import JournalEntry, JournalLine

    for target, name, fn in _listeners(JournalEntry, JournalLine):
        if not event.contains(target, name, fn):
            event.listen(target, name, fn)


def unregister_immutability_listeners():
    """Remove immutability enforcement event listeners.  TESTS ONLY."""
    from ledger_kernel.models.journal import JournalEntry, JournalLine

    for target, name, fn in _listeners(JournalEntry, JournalLine):
        if event.contains(target, name, fn):
            event.remove(target, name, fn)


def _listeners(entry_cls, line_cls):
    return (
        (entry_cls, "before_update", _check_journal_entry_immutability),
        (entry_cls, "before_delete", _check_journal_entry_delete),
        (line_cls, "before_update", _check_journal_line_immutability),
        (line_cls, "before_delete", _check_journal_line_delete),
    )
