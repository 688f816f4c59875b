"""
Shared row access for the journal services.

``load_entry`` is the single place entries are fetched for a transition;
``flush_versioned`` is the single place StaleDataError becomes
OptimisticLockError.
"""

from uuid import UUID

from sqlalchemy import select
from sqlalchemy.orm import Session
from sqlalchemy.orm.exc import StaleDataError

from ledger_kernel.exceptions import EntryNotFoundError, OptimisticLockError
from ledger_kernel.logging_config import get_logger
from ledger_kernel.models.journal import JournalEntry

logger = get_logger("services.persistence")


def load_entry(
    session: Session,
    entry_id: UUID,
    *,
    lock: bool = False,
    include_deleted: bool = False,
) -> JournalEntry:
    """
    Fetch an entry, optionally with a row lock.

    With ``lock=True`` the row is selected FOR UPDATE and existing identity
    map state is overwritten, so the guard that follows sees the committed
    status rather than a stale cached one.

    Raises:
        EntryNotFoundError: Unknown id, or a soft-deleted draft.
    """
    stmt = select(JournalEntry).where(JournalEntry.id == entry_id)
    if lock:
        stmt = stmt.with_for_update().execution_options(populate_existing=True)
    entry = session.execute(stmt).scalar_one_or_none()
    if entry is None or (entry.deleted_at is not None and not include_deleted):
        raise EntryNotFoundError(str(entry_id))
    return entry


def flush_versioned(session: Session, entry_id: UUID) -> None:
    """Flush, translating a version-check miss into OptimisticLockError."""
    try:
        session.flush()
    except StaleDataError as exc:
        logger.warning(
            "optimistic_lock_conflict",
            extra={"entity_type": "JournalEntry", "entity_id": str(entry_id)},
        )
        raise OptimisticLockError("JournalEntry", str(entry_id)) from exc
