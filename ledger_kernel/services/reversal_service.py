"""
ReversalService -- the reverse transition.

Responsibility:
    Validates reversal preconditions, delegates the line-for-line swap to the
    ReversalGenerator, persists the mirror entry and marks the original
    REVERSED with a back-reference, all in the caller's transaction.

Architecture position:
    Kernel > Services -- imperative shell.  Consumes SequenceService and the
    pure ReversalGenerator / LedgerStateMachine.

Invariants enforced:
    - Only POSTED entries are reversed; a REVERSED original raises
      StateError(REVERSE, REVERSED), so an entry is reversed at most once.
    - The reversal is created and the original flipped in one transaction.
      Every guard runs before the first write.
    - total_debit(reversal) == total_credit(original).
    - An auto-posted reversal passes the same EntryValidator check as any
      other post (dates, account status, description limits).

Failure modes:
    - EntryNotFoundError: Unknown id.
    - StateError: Original is DRAFT or already REVERSED.
    - EntryValidationError: Auto-posted reversal fails validation.
    - OptimisticLockError: Original's version changed under us.

Audit relevance:
    The original keeps ``reversed_by_id``; the reversal keeps
    ``reversal_of_id`` and the caller's reason.  History is never edited.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import date
from uuid import UUID

from sqlalchemy.orm import Session

from ledger_kernel.domain.clock import Clock, SystemClock
from ledger_kernel.domain.entries import EntrySnapshot, EntryStatus
from ledger_kernel.domain.lifecycle import LedgerAction, LedgerStateMachine
from ledger_kernel.domain.policy import LedgerPolicy
from ledger_kernel.domain.reversal import ReversalGenerator
from ledger_kernel.domain.validation import EntryValidator
from ledger_kernel.exceptions import EntryValidationError, StateError
from ledger_kernel.logging_config import LogContext, get_logger
from ledger_kernel.models.journal import JournalEntry, JournalLine
from ledger_kernel.services._persistence import flush_versioned, load_entry
from ledger_kernel.services.sequence_service import SequenceService

logger = get_logger("services.reversal")


@dataclass(frozen=True)
class ReversalResult:
    """Immutable result of a successful reversal."""

    original_entry_id: UUID
    reversal_entry_id: UUID
    reversal_code: str
    reversal_status: EntryStatus
    reversal_date: date


class ReversalService:
    """Orchestrator for journal entry reversals.

    Contract:
        Accepts a journal entry ID, validates preconditions, creates the
        reversal entry and flips the original -- atomically in the same
        database transaction.

    Guarantees:
        - The reversal's initial status follows ``policy.reversal_status``
          (POSTED by default, stamped with the reversal date and actor).
        - At most one reversal per original entry.

    Non-goals:
        - Does NOT call session.commit() -- caller controls boundaries.
        - Does NOT handle partial (line-level) reversals.
    """

    def __init__(
        self,
        session: Session,
        validator: EntryValidator,
        sequence: SequenceService | None = None,
        policy: LedgerPolicy | None = None,
        clock: Clock | None = None,
        state_machine: LedgerStateMachine | None = None,
    ):
        self._session = session
        self._validator = validator
        self._sequence = sequence or SequenceService(session)
        self._policy = policy or LedgerPolicy()
        self._clock = clock or SystemClock()
        self._machine = state_machine or LedgerStateMachine()
        self._generator = ReversalGenerator(
            self._policy.reversal_status,
            max_line_description_length=self._policy.max_line_description_length,
        )

    def reverse(
        self,
        entry_id: UUID,
        actor_id: UUID,
        reason: str | None = None,
        reversal_date: date | None = None,
    ) -> ReversalResult:
        """Reverse a posted entry.

        Preconditions:
            - entry_id references a POSTED JournalEntry.

        Postconditions:
            - A new REVERSAL entry exists with reversal_of_id set.
            - The original is REVERSED with reversed_by_id set.

        Raises:
            EntryNotFoundError: Unknown entry.
            StateError: Entry is not POSTED.
            EntryValidationError: Auto-posted reversal fails validation.
            OptimisticLockError: Concurrent status change detected at flush.
        """
        with LogContext.bind(actor_id=actor_id, entry_id=entry_id):
            original = self._load_and_validate(entry_id)
            return self._execute_reversal(original, actor_id, reason, reversal_date)

    # =========================================================================
    # Internal Implementation
    # =========================================================================

    def _load_and_validate(self, entry_id: UUID) -> JournalEntry:
        original = load_entry(self._session, entry_id, lock=True)
        try:
            self._machine.transition_for(LedgerAction.REVERSE, original.status, entry_id)
            if original.reversed_by_id is not None:
                raise StateError(
                    attempted=LedgerAction.REVERSE.value,
                    current=EntryStatus.REVERSED.value,
                    entry_id=str(entry_id),
                )
        except StateError:
            logger.warning(
                "transition_rejected",
                extra={
                    "action": LedgerAction.REVERSE.value,
                    "current_status": EntryStatus(original.status).value,
                },
            )
            raise
        return original

    def _check_auto_post(self, original: JournalEntry, mirror: EntrySnapshot) -> None:
        validation = self._validator.validate(mirror.to_draft())
        try:
            self._machine.check_post(original.id, EntryStatus.DRAFT, validation)
        except EntryValidationError as exc:
            logger.warning(
                "transition_rejected",
                extra={
                    "action": LedgerAction.REVERSE.value,
                    "current_status": EntryStatus(original.status).value,
                    "error_code": exc.code,
                    "issue_kinds": [kind.value for kind in exc.kinds],
                },
            )
            raise

    def _execute_reversal(
        self,
        original: JournalEntry,
        actor_id: UUID,
        reason: str | None,
        reversal_date: date | None,
    ) -> ReversalResult:
        """Build, persist and link.

        Steps:
            1. Generate the mirror entry (pure).
            2. Validate it when it is posted straight away.
            3. Allocate a code in the reversal date's year.
            4. Insert it and flush so the back-reference target exists.
            5. Flip the original under the version check.
        """
        snapshot = EntrySnapshot.from_model(original)
        reversal_date = reversal_date or self._clock.today()
        now = self._clock.now()

        mirror = self._generator.generate(snapshot, "", reversal_date, reason=reason)
        if mirror.status == EntryStatus.POSTED:
            self._check_auto_post(original, mirror)

        code = self._sequence.allocate_code(
            self._policy.code_prefix, reversal_date.year, self._policy.code_width
        )
        mirror = replace(mirror, code=code)

        reversal = JournalEntry(
            id=mirror.id,
            code=mirror.code,
            status=mirror.status,
            entry_type=mirror.entry_type,
            description=mirror.description,
            reference=mirror.reference,
            transaction_date=mirror.transaction_date,
            reversal_of_id=original.id,
            created_by_id=actor_id,
            lines=[
                JournalLine(
                    line_number=line.line_number,
                    account_id=line.account_id,
                    description=line.description,
                    debit_amount=line.debit_amount,
                    credit_amount=line.credit_amount,
                    created_by_id=actor_id,
                )
                for line in mirror.lines
            ],
        )
        if mirror.status == EntryStatus.POSTED:
            reversal.posting_date = reversal_date
            reversal.posted_at = now
            reversal.posted_by_id = actor_id
        self._session.add(reversal)
        self._session.flush()

        original.status = self._machine.next_status(LedgerAction.REVERSE, original.status)
        original.reversed_by_id = reversal.id
        original.updated_by_id = actor_id
        flush_versioned(self._session, original.id)

        logger.info(
            "reversal_completed",
            extra={
                "original_code": original.code,
                "reversal_entry_id": str(reversal.id),
                "reversal_code": reversal.code,
                "reversal_status": mirror.status.value,
                "line_count": len(mirror.lines),
                "reason": reason,
            },
        )
        return ReversalResult(
            original_entry_id=original.id,
            reversal_entry_id=reversal.id,
            reversal_code=reversal.code,
            reversal_status=mirror.status,
            reversal_date=reversal_date,
        )
