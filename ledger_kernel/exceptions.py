"""
Typed Exception Hierarchy for the Ledger Kernel.

===============================================================================
WHY TYPED EXCEPTIONS
===============================================================================

Callers must be able to tell the user WHY a transition was rejected, not
just that it failed.  Parsing message strings is fragile, so:

  1. Every error has a TYPED exception class (catch by type, not message)
  2. Every exception has a CODE attribute (machine-readable, API-safe)
  3. Exceptions carry structured DATA (not just a message string)

Example:
    try:
        journal_service.post_entry(entry_id, posting_date, actor_id)
    except StateError as e:
        notify_user(f"This entry is already {e.current.lower()}")
    except EntryValidationError as e:
        return {"error": e.code, "issues": [i.message for i in e.issues]}

===============================================================================
EXCEPTION HIERARCHY
===============================================================================

All exceptions inherit from LedgerKernelError:

    LedgerKernelError (base)
    |
    +-- EntryError
    |   +-- EntryNotFoundError
    |   +-- EntryValidationError
    |   +-- DeletionReasonRequiredError
    |   +-- AutoGeneratedEntryError
    |   +-- ReversalEntryProtectedError
    |
    +-- StateError
    |
    +-- AccountError
    |   +-- AccountNotFoundError
    |
    +-- ConcurrencyError
    |   +-- OptimisticLockError
    |
    +-- ImmutabilityError
    |   +-- ImmutabilityViolationError
    |
    +-- EditSessionError
        +-- InvalidEditTargetError

===============================================================================
ERROR CODES - QUICK REFERENCE
===============================================================================

Category        | Code                        | When Raised
----------------|-----------------------------|-----------------------------------------
Entry           | ENTRY_NOT_FOUND             | Unknown or soft-deleted entry id
                | ENTRY_VALIDATION_FAILED     | Post attempted with validation issues
                | DELETION_REASON_REQUIRED    | Draft delete without a reason
                | AUTO_GENERATED_ENTRY        | Delete of a protected auto-generated draft
----------------|-----------------------------|-----------------------------------------
State           | INVALID_STATE_TRANSITION    | Transition not legal from current status
----------------|-----------------------------|-----------------------------------------
Account         | ACCOUNT_NOT_FOUND           | Catalog lookup of an unknown account
----------------|-----------------------------|-----------------------------------------
Concurrency     | OPTIMISTIC_LOCK_CONFLICT    | Row version changed under the caller
----------------|-----------------------------|-----------------------------------------
Immutability    | IMMUTABILITY_VIOLATION      | Modifying a frozen entry or line
----------------|-----------------------------|-----------------------------------------
Edit session    | INVALID_EDIT_TARGET         | Unknown field or line index

===============================================================================
DESIGN DECISIONS
===============================================================================

1. WHY NOT RAISE ON VALIDATION FAILURE DURING CREATE/EDIT?
   Drafts may be incomplete.  Validation issues are returned as data
   (ValidationResult) from create/edit and only become an exception when
   a post is attempted.

2. WHY StateError IS NOT SUBCLASSED PER TRANSITION?
   The pair (attempted, current) already identifies the conflict; callers
   branch on those attributes.

3. WHY SEPARATE ConcurrencyError FROM StateError?
   A StateError is final (the entry really is Posted).  A ConcurrencyError
   means "re-fetch and retry": the state may or may not have changed.

===============================================================================
"""


class LedgerKernelError(Exception):
    """
    Base exception for all ledger kernel errors.

    All subclasses must have a `code` class attribute for machine-readable
    error identification.
    """

    code: str = "LEDGER_KERNEL_ERROR"


# Entry-related exceptions


class EntryError(LedgerKernelError):
    """Base exception for journal entry errors."""

    code: str = "ENTRY_ERROR"


class EntryNotFoundError(EntryError):
    """Journal entry with given ID was not found."""

    code: str = "ENTRY_NOT_FOUND"

    def __init__(self, entry_id: str):
        self.entry_id = entry_id
        super().__init__(f"Journal entry not found: {entry_id}")


class EntryValidationError(EntryError):
    """
    Entry failed validation where a hard pass is required (posting).

    Carries every issue found, never just the first.
    """

    code: str = "ENTRY_VALIDATION_FAILED"

    def __init__(self, entry_id: str, issues: tuple):
        self.entry_id = entry_id
        self.issues = tuple(issues)
        summary = "; ".join(issue.message for issue in self.issues)
        super().__init__(
            f"Journal entry {entry_id} failed validation "
            f"({len(self.issues)} issue(s)): {summary}"
        )

    @property
    def kinds(self) -> tuple:
        """Validation kinds in report order."""
        return tuple(issue.kind for issue in self.issues)


class DeletionReasonRequiredError(EntryError):
    """Draft deletion requested without a reason."""

    code: str = "DELETION_REASON_REQUIRED"

    def __init__(self, entry_id: str):
        self.entry_id = entry_id
        super().__init__(f"A reason is required to delete draft {entry_id}")


class AutoGeneratedEntryError(EntryError):
    """Auto-generated drafts are protected from deletion by policy."""

    code: str = "AUTO_GENERATED_ENTRY"

    def __init__(self, entry_id: str, entry_type: str):
        self.entry_id = entry_id
        self.entry_type = entry_type
        super().__init__(
            f"Cannot delete auto-generated entry {entry_id} ({entry_type}). "
            "Create a reversing entry instead."
        )


class ReversalEntryProtectedError(EntryError):
    """
    A draft reversal may not be deleted or have its lines or type changed.

    The original it offsets is already REVERSED and points at it.
    """

    code: str = "REVERSAL_ENTRY_PROTECTED"

    def __init__(self, entry_id: str, attempted: str, original_id: str):
        self.entry_id = entry_id
        self.attempted = attempted
        self.original_id = original_id
        super().__init__(
            f"Cannot {attempted.lower()} reversal draft {entry_id}: "
            f"it offsets reversed entry {original_id}"
        )


# Lifecycle exceptions


class StateError(LedgerKernelError):
    """
    Transition requested from a state that does not permit it.

    Raised before any mutation, so a StateError never leaves partial data.
    """

    code: str = "INVALID_STATE_TRANSITION"

    def __init__(self, attempted: str, current: str, entry_id: str | None = None):
        self.attempted = attempted
        self.current = current
        self.entry_id = entry_id
        target = f" {entry_id}" if entry_id else ""
        if current == "DRAFT":
            state = "entry is still a draft"
        else:
            state = f"entry is already {current.lower()}"
        super().__init__(f"Cannot {attempted.lower()} entry{target}: {state}")


# Account-related exceptions


class AccountError(LedgerKernelError):
    """Base exception for account-related errors."""

    code: str = "ACCOUNT_ERROR"


class AccountNotFoundError(AccountError):
    """Account with given ID was not found in the catalog."""

    code: str = "ACCOUNT_NOT_FOUND"

    def __init__(self, account_id: str):
        self.account_id = account_id
        super().__init__(f"Account not found: {account_id}")


# Concurrency-related exceptions


class ConcurrencyError(LedgerKernelError):
    """Base exception for concurrency-related errors."""

    code: str = "CONCURRENCY_ERROR"


class OptimisticLockError(ConcurrencyError):
    """Optimistic locking conflict detected."""

    code: str = "OPTIMISTIC_LOCK_CONFLICT"

    def __init__(self, entity_type: str, entity_id: str):
        self.entity_type = entity_type
        self.entity_id = entity_id
        super().__init__(
            f"Optimistic lock conflict on {entity_type} {entity_id}: "
            "entry state changed, please refresh"
        )


# Immutability-related exceptions


class ImmutabilityError(LedgerKernelError):
    """Base exception for immutability-related errors."""

    code: str = "IMMUTABILITY_ERROR"


class ImmutabilityViolationError(ImmutabilityError):
    """
    Attempted to modify or delete an immutable record.

    Posted and reversed entries only ever change their lifecycle columns;
    everything else is frozen, and their lines are frozen entirely.
    """

    code: str = "IMMUTABILITY_VIOLATION"

    def __init__(self, entity_type: str, entity_id: str, reason: str):
        self.entity_type = entity_type
        self.entity_id = entity_id
        self.reason = reason
        super().__init__(
            f"Cannot modify immutable {entity_type} {entity_id}: {reason}"
        )


# Edit session exceptions


class EditSessionError(LedgerKernelError):
    """Base exception for edit session errors."""

    code: str = "EDIT_SESSION_ERROR"


class InvalidEditTargetError(EditSessionError):
    """Change addressed a field or line that does not exist."""

    code: str = "INVALID_EDIT_TARGET"

    def __init__(self, field: str, line_index: int | None = None):
        self.field = field
        self.line_index = line_index
        location = f" on line index {line_index}" if line_index is not None else ""
        super().__init__(f"Cannot edit field '{field}'{location}")
