"""
JournalService -- the journal entry lifecycle operations.

Responsibility:
    Exposes the operations callers use to manage journal entries:
    create_draft, edit_draft, post_entry, delete_draft, reverse_entry and
    open_edit_session.  Each one validates through the EntryValidator,
    asks the LedgerStateMachine whether the transition is legal and only
    then writes.

Architecture position:
    Kernel > Services -- imperative shell.  Consumes the pure domain
    (validator, state machine, edit session), SequenceService and
    ReversalService.

Invariants enforced:
    - Edits, posts and deletes require DRAFT; reverse requires POSTED.
    - Posting re-validates from the persisted lines and requires a clean
      result (balanced within tolerance, every rule satisfied).
    - post/reverse lock the row FOR UPDATE and flush under the optimistic
      version check, so of two concurrent posts exactly one succeeds.
    - Guards run before the first write, so a rejection leaves no change.

Failure modes:
    - EntryNotFoundError: Unknown or soft-deleted entry.
    - StateError: Transition not legal from the current status.
    - EntryValidationError: Post attempted with validation issues.
    - DeletionReasonRequiredError / AutoGeneratedEntryError: Delete guards.
    - ReversalEntryProtectedError: Delete, or line or type edit, of a draft
      reversal.
    - OptimisticLockError: Row version changed between load and flush.

Audit relevance:
    Every transition is logged with the entry code and actor.  Rejections
    are logged as ``transition_rejected`` with the attempted action and the
    current status.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from uuid import UUID

from sqlalchemy.orm import Session

from ledger_kernel.domain.catalog import AccountCatalog
from ledger_kernel.domain.clock import Clock, SystemClock
from ledger_kernel.domain.edit_session import EditSession
from ledger_kernel.domain.entries import (
    EntryDraft,
    EntryPatch,
    EntrySnapshot,
    EntryStatus,
    EntryType,
    JournalLineData,
)
from ledger_kernel.domain.lifecycle import LedgerAction, LedgerStateMachine
from ledger_kernel.domain.policy import LedgerPolicy
from ledger_kernel.domain.validation import EntryValidator, ValidationResult
from ledger_kernel.exceptions import (
    AutoGeneratedEntryError,
    DeletionReasonRequiredError,
    EntryValidationError,
    ReversalEntryProtectedError,
    StateError,
)
from ledger_kernel.logging_config import LogContext, get_logger
from ledger_kernel.models.journal import JournalEntry, JournalLine
from ledger_kernel.services._persistence import flush_versioned, load_entry
from ledger_kernel.services.reversal_service import ReversalResult, ReversalService
from ledger_kernel.services.sequence_service import SequenceService

logger = get_logger("services.journal")


@dataclass(frozen=True)
class DraftResult:
    """Outcome of create_draft/edit_draft.  The draft is saved either way."""

    entry_id: UUID
    code: str
    validation: ValidationResult

    @property
    def is_valid(self) -> bool:
        return self.validation.is_valid


@dataclass(frozen=True)
class PostResult:
    """Outcome of a successful post."""

    entry_id: UUID
    code: str
    posting_date: date
    posted_at: datetime


class JournalService:
    """
    Journal entry lifecycle service.

    Contract:
        One instance per session.  The catalog is read-only; the policy and
        clock are injected so tests can pin them.

    Guarantees:
        - create_draft and edit_draft always save and return every
          validation finding; only post_entry enforces a clean pass.

    Non-goals:
        - Does NOT call session.commit() -- caller controls boundaries.
    """

    def __init__(
        self,
        session: Session,
        catalog: AccountCatalog,
        policy: LedgerPolicy | None = None,
        clock: Clock | None = None,
    ):
        self._session = session
        self._policy = policy or LedgerPolicy()
        self._clock = clock or SystemClock()
        self._validator = EntryValidator(catalog, self._policy, self._clock)
        self._machine = LedgerStateMachine()
        self._sequence = SequenceService(session)
        self._reversals = ReversalService(
            session,
            self._validator,
            sequence=self._sequence,
            policy=self._policy,
            clock=self._clock,
            state_machine=self._machine,
        )

    @property
    def policy(self) -> LedgerPolicy:
        return self._policy

    @property
    def validator(self) -> EntryValidator:
        return self._validator

    # =========================================================================
    # Operations
    # =========================================================================

    def create_draft(self, draft: EntryDraft, actor_id: UUID) -> DraftResult:
        """Save a new DRAFT entry and report its validation findings."""
        with LogContext.bind(actor_id=actor_id):
            validation = self._validator.validate(draft)
            year = (draft.transaction_date or self._clock.today()).year
            code = self._sequence.allocate_code(
                self._policy.code_prefix, year, self._policy.code_width
            )

            entry = JournalEntry(
                code=code,
                status=self._machine.initial_status(),
                entry_type=draft.entry_type,
                description=draft.description,
                reference=draft.reference,
                transaction_date=draft.transaction_date,
                created_by_id=actor_id,
                lines=[self._new_line(line, actor_id) for line in draft.lines],
            )
            self._session.add(entry)
            self._session.flush()

            logger.info(
                "draft_created",
                extra={
                    "entry_id": str(entry.id),
                    "code": code,
                    "entry_type": draft.entry_type.value,
                    "line_count": len(draft.lines),
                    "is_valid": validation.is_valid,
                    "issue_count": len(validation.issues),
                },
            )
            return DraftResult(entry_id=entry.id, code=code, validation=validation)

    def edit_draft(
        self, entry_id: UUID, patch: EntryPatch, actor_id: UUID
    ) -> DraftResult:
        """Apply a patch to a DRAFT and report the resulting findings.

        Raises:
            EntryNotFoundError: Unknown or deleted entry.
            StateError: Entry is not a draft.
            ReversalEntryProtectedError: Line or type change on a draft reversal.
        """
        with LogContext.bind(actor_id=actor_id, entry_id=entry_id):
            entry = load_entry(self._session, entry_id, lock=True)
            self._guard(LedgerAction.EDIT, entry)
            if patch.lines is not None or patch.entry_type is not None:
                self._protect_reversal(LedgerAction.EDIT, entry)

            updated = patch.apply_to(EntrySnapshot.from_model(entry).to_draft())
            validation = self._validator.validate(updated)

            entry.description = updated.description
            entry.reference = updated.reference
            entry.transaction_date = updated.transaction_date
            entry.entry_type = updated.entry_type
            self._sync_lines(entry, updated.lines, actor_id)
            entry.updated_by_id = actor_id
            flush_versioned(self._session, entry.id)

            logger.info(
                "draft_edited",
                extra={
                    "code": entry.code,
                    "fields": list(patch.changed_fields()),
                    "is_valid": validation.is_valid,
                    "issue_count": len(validation.issues),
                },
            )
            return DraftResult(entry_id=entry.id, code=entry.code, validation=validation)

    def post_entry(
        self, entry_id: UUID, posting_date: date | None, actor_id: UUID
    ) -> PostResult:
        """Post a DRAFT.  ``posting_date`` defaults to the clock's date.

        Raises:
            EntryNotFoundError: Unknown or deleted entry.
            StateError: Entry is not a draft.
            EntryValidationError: Entry fails validation (e.g. UNBALANCED).
            OptimisticLockError: Concurrent post detected at flush.
        """
        with LogContext.bind(actor_id=actor_id, entry_id=entry_id):
            entry = load_entry(self._session, entry_id, lock=True)
            validation = self._validator.validate(
                EntrySnapshot.from_model(entry).to_draft()
            )
            try:
                transition = self._machine.check_post(entry.id, entry.status, validation)
            except (StateError, EntryValidationError) as exc:
                self._log_rejection(LedgerAction.POST, entry, exc)
                raise

            posting_date = posting_date or self._clock.today()
            now = self._clock.now()
            entry.status = transition.to_state
            entry.posting_date = posting_date
            entry.posted_at = now
            entry.posted_by_id = actor_id
            entry.updated_by_id = actor_id
            flush_versioned(self._session, entry.id)

            logger.info(
                "entry_posted",
                extra={
                    "code": entry.code,
                    "posting_date": posting_date,
                    "total_debit": entry.total_debit,
                    "total_credit": entry.total_credit,
                },
            )
            return PostResult(
                entry_id=entry.id,
                code=entry.code,
                posting_date=posting_date,
                posted_at=now,
            )

    def delete_draft(self, entry_id: UUID, reason: str, actor_id: UUID) -> None:
        """Soft-delete a DRAFT.  The row stays for audit.

        Raises:
            EntryNotFoundError: Unknown or already deleted entry.
            StateError: Entry is not a draft.
            DeletionReasonRequiredError: Blank reason.
            AutoGeneratedEntryError: Protected non-manual draft.
            ReversalEntryProtectedError: Draft is a reversal.
        """
        with LogContext.bind(actor_id=actor_id, entry_id=entry_id):
            entry = load_entry(self._session, entry_id, lock=True)
            self._guard(LedgerAction.DELETE, entry)
            self._protect_reversal(LedgerAction.DELETE, entry)
            if not reason or not reason.strip():
                raise DeletionReasonRequiredError(str(entry_id))
            if (
                self._policy.protect_auto_generated_drafts
                and entry.entry_type != EntryType.MANUAL
            ):
                raise AutoGeneratedEntryError(str(entry_id), entry.entry_type.value)

            entry.deleted_at = self._clock.now()
            entry.deleted_by_id = actor_id
            entry.deletion_reason = reason.strip()
            entry.updated_by_id = actor_id
            flush_versioned(self._session, entry.id)

            logger.info(
                "draft_deleted",
                extra={"code": entry.code, "reason": entry.deletion_reason},
            )

    def reverse_entry(
        self,
        entry_id: UUID,
        actor_id: UUID,
        reason: str | None = None,
        reversal_date: date | None = None,
    ) -> ReversalResult:
        """Reverse a POSTED entry.  See ReversalService.reverse."""
        return self._reversals.reverse(
            entry_id, actor_id, reason=reason, reversal_date=reversal_date
        )

    def open_edit_session(self, entry_id: UUID) -> EditSession:
        """Start an in-memory edit session over a DRAFT.

        Raises:
            EntryNotFoundError: Unknown or deleted entry.
            StateError: Entry is not a draft.
        """
        entry = load_entry(self._session, entry_id)
        self._guard(LedgerAction.EDIT, entry)
        return EditSession(
            EntrySnapshot.from_model(entry).to_draft(),
            capacity=self._policy.edit_history_capacity,
            clock=self._clock,
            entry_id=entry.id,
        )

    def save_edit_session(self, session: EditSession, actor_id: UUID) -> DraftResult:
        """Persist an edit session's changes through edit_draft."""
        if session.entry_id is None:
            raise ValueError("Edit session is not bound to a persisted entry")
        return self.edit_draft(session.entry_id, session.to_patch(), actor_id)

    # =========================================================================
    # Internal Implementation
    # =========================================================================

    def _guard(self, action: LedgerAction, entry: JournalEntry) -> None:
        try:
            self._machine.transition_for(action, entry.status, entry.id)
        except StateError as exc:
            self._log_rejection(action, entry, exc)
            raise

    def _protect_reversal(self, action: LedgerAction, entry: JournalEntry) -> None:
        """Draft reversals keep their lines, type and row while the original is REVERSED."""
        if entry.reversal_of_id is None:
            return
        exc = ReversalEntryProtectedError(str(entry.id), action.value, str(entry.reversal_of_id))
        self._log_rejection(action, entry, exc)
        raise exc

    @staticmethod
    def _log_rejection(action: LedgerAction, entry: JournalEntry, exc: Exception) -> None:
        logger.warning(
            "transition_rejected",
            extra={
                "action": action.value,
                "code": entry.code,
                "current_status": EntryStatus(entry.status).value,
                "error_code": getattr(exc, "code", None),
            },
        )

    @staticmethod
    def _new_line(line: JournalLineData, actor_id: UUID) -> JournalLine:
        return JournalLine(
            line_number=line.line_number,
            account_id=line.account_id,
            description=line.description,
            debit_amount=line.debit_amount,
            credit_amount=line.credit_amount,
            created_by_id=actor_id,
        )

    def _sync_lines(
        self,
        entry: JournalEntry,
        lines: tuple[JournalLineData, ...],
        actor_id: UUID,
    ) -> None:
        """Rewrite lines in place by position; numbers stay 1..n."""
        existing = sorted(entry.lines, key=lambda row: row.line_number)
        for row, data in zip(existing, lines):
            for attr in ("account_id", "description", "debit_amount", "credit_amount"):
                value = getattr(data, attr)
                if getattr(row, attr) != value:
                    setattr(row, attr, value)
                    row.updated_by_id = actor_id
        for data in lines[len(existing):]:
            entry.lines.append(self._new_line(data, actor_id))
        for row in existing[len(lines):]:
            entry.lines.remove(row)
