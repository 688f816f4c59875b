"""
SequenceService -- voucher code allocation via locked counter rows.

Responsibility:
    Allocates human-readable voucher codes such as ``JV-2025-001``.  Each
    (prefix, year) pair owns one counter row; the row is locked with
    ``SELECT ... FOR UPDATE`` while it is incremented so two writers never
    receive the same number.

Architecture position:
    Kernel > Services -- imperative shell infrastructure.
    Called by JournalService (draft creation) and ReversalService.

Invariants enforced:
    - Monotonic per counter: the locked counter row is the only source of
      the next value; max(code)+1 is never computed.
    - Transactional: the increment is only visible once the caller's
      transaction commits.  A rollback returns the value.

Failure modes:
    - IntegrityError: two transactions creating the same counter row for
      the first time.  The loser's transaction must be retried by the caller.

Audit relevance:
    Allocations are logged at DEBUG with sequence_name and value.
"""

from sqlalchemy import select
from sqlalchemy.orm import Session

from ledger_kernel.logging_config import get_logger
from ledger_kernel.models.sequence import SequenceCounter

logger = get_logger("services.sequence")


def format_code(prefix: str, year: int, number: int, width: int = 3) -> str:
    """``format_code("JV", 2025, 1) == "JV-2025-001"``."""
    return f"{prefix}-{year}-{number:0{width}d}"


def counter_name(prefix: str, year: int) -> str:
    return f"journal_entry:{prefix}:{year}"


class SequenceService:
    """
    Service for allocating sequence numbers and voucher codes.

    Contract:
        ``next_value(name)`` returns a strictly increasing integer per name,
        starting at 1.

    Non-goals:
        - Does NOT call session.commit() -- caller controls boundaries.
    """

    def __init__(self, session: Session):
        self._session = session

    def next_value(self, sequence_name: str) -> int:
        """
        Get the next value for a named sequence.

        Preconditions:
            - ``sequence_name`` is a non-empty string.
            - The caller is within an active database transaction.

        Postconditions:
            - Returns an integer > 0, greater than any value previously
              returned for this name.
        """
        counter = self._session.execute(
            select(SequenceCounter)
            .where(SequenceCounter.name == sequence_name)
            .with_for_update()
            .execution_options(populate_existing=True)
        ).scalar_one_or_none()

        if counter is None:
            counter = SequenceCounter(name=sequence_name, current_value=0)
            self._session.add(counter)

        counter.current_value += 1
        self._session.flush()
        logger.debug(
            "sequence_allocated",
            extra={"sequence_name": sequence_name, "value": counter.current_value},
        )
        return counter.current_value

    def current_value(self, sequence_name: str) -> int | None:
        """Current value without incrementing, or None if never used."""
        counter = self._session.execute(
            select(SequenceCounter).where(SequenceCounter.name == sequence_name)
        ).scalar_one_or_none()
        return counter.current_value if counter else None

    def allocate_code(self, prefix: str, year: int, width: int = 3) -> str:
        """Allocate the next voucher code for ``prefix`` in ``year``."""
        number = self.next_value(counter_name(prefix, year))
        return format_code(prefix, year, number, width)
