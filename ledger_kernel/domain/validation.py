"""
EntryValidator -- Structural and arithmetic validation of a candidate entry.

Responsibility:
    Checks a candidate entry (an ``EntryDraft``) against every rule a
    posted entry must satisfy and returns ALL violations found, in a stable
    order: header rules first, then line rules in line order, then the
    entry-level amount and balance rules.

Architecture position:
    Kernel > Domain -- pure function over value objects.  The only
    collaborators are the injected AccountCatalog, LedgerPolicy and Clock;
    none of them mutate anything.

Invariants enforced:
    - At least ``policy.min_lines`` lines.
    - Every line references a resolvable, active account.
    - Every line has exactly one strictly positive side and the other zero.
    - abs(total_debit - total_credit) < policy.balance_tolerance.

Failure modes:
    - None raised.  Every finding is a ValidationIssue in the result.

Audit relevance:
    Called before create, edit and post.  Posting re-validates from the
    persisted lines so a stale "valid" flag can never be trusted.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum
from typing import Any

from ledger_kernel.domain.catalog import AccountCatalog
from ledger_kernel.domain.clock import Clock, SystemClock
from ledger_kernel.domain.entries import ZERO, EntryDraft, JournalLineData, compute_totals
from ledger_kernel.domain.policy import LedgerPolicy
from ledger_kernel.logging_config import get_logger

logger = get_logger("domain.validation")


class ValidationKind(str, Enum):
    """Closed set of validation finding kinds."""

    DESCRIPTION_REQUIRED = "DESCRIPTION_REQUIRED"
    DESCRIPTION_TOO_LONG = "DESCRIPTION_TOO_LONG"
    TRANSACTION_DATE_REQUIRED = "TRANSACTION_DATE_REQUIRED"
    TRANSACTION_DATE_IN_FUTURE = "TRANSACTION_DATE_IN_FUTURE"
    TOO_FEW_LINES = "TOO_FEW_LINES"
    MISSING_ACCOUNT = "MISSING_ACCOUNT"
    INACTIVE_ACCOUNT = "INACTIVE_ACCOUNT"
    LINE_DESCRIPTION_TOO_LONG = "LINE_DESCRIPTION_TOO_LONG"
    NEGATIVE_AMOUNT = "NEGATIVE_AMOUNT"
    BOTH_SIDES_NON_ZERO = "BOTH_SIDES_NON_ZERO"
    AMOUNT_REQUIRED = "AMOUNT_REQUIRED"
    UNBALANCED = "UNBALANCED"


@dataclass(frozen=True)
class ValidationIssue:
    """
    A single validation finding.

    Contract:
        ``kind`` is machine-readable, ``message`` says which rule failed.
        ``line_number`` is set for line-level findings.  ``details`` carries
        structured data, e.g. the signed ``difference`` for UNBALANCED.
    """

    kind: ValidationKind
    message: str
    line_number: int | None = None
    details: dict[str, Any] = field(default_factory=dict)

    @property
    def code(self) -> str:
        return self.kind.value


@dataclass(frozen=True)
class ValidationResult:
    """
    Result of validation.

    Guarantees:
        - ``issues`` is always a tuple (never None).
        - bool(result) == result.is_valid.
    """

    issues: tuple[ValidationIssue, ...] = ()

    @classmethod
    def success(cls) -> ValidationResult:
        return cls(issues=())

    @classmethod
    def failure(cls, *issues: ValidationIssue) -> ValidationResult:
        return cls(issues=tuple(issues))

    @property
    def is_valid(self) -> bool:
        return not self.issues

    @property
    def kinds(self) -> tuple[ValidationKind, ...]:
        return tuple(issue.kind for issue in self.issues)

    def has(self, kind: ValidationKind) -> bool:
        return kind in self.kinds

    def first(self, kind: ValidationKind) -> ValidationIssue | None:
        return next((issue for issue in self.issues if issue.kind == kind), None)

    def __bool__(self) -> bool:
        return self.is_valid


class EntryValidator:
    """
    Validates candidate entries.

    Contract:
        ``validate(draft)`` is pure: same draft, catalog state, policy and
        clock date always give the same result.
    """

    def __init__(
        self,
        catalog: AccountCatalog,
        policy: LedgerPolicy | None = None,
        clock: Clock | None = None,
    ):
        self._catalog = catalog
        self._policy = policy or LedgerPolicy()
        self._clock = clock or SystemClock()

    @property
    def policy(self) -> LedgerPolicy:
        return self._policy

    def validate(self, draft: EntryDraft) -> ValidationResult:
        issues: list[ValidationIssue] = []
        issues.extend(self._check_header(draft))

        if len(draft.lines) < self._policy.min_lines:
            issues.append(
                ValidationIssue(
                    kind=ValidationKind.TOO_FEW_LINES,
                    message=(
                        f"An entry needs at least {self._policy.min_lines} lines, "
                        f"found {len(draft.lines)}"
                    ),
                    details={"minimum": self._policy.min_lines, "actual": len(draft.lines)},
                )
            )

        for line in draft.lines:
            issues.extend(self._check_account(line))
            issues.extend(self._check_line_description(line))
            issues.extend(self._check_amounts(line))

        if draft.lines and all(
            line.debit_amount == ZERO and line.credit_amount == ZERO
            for line in draft.lines
        ):
            issues.append(
                ValidationIssue(
                    kind=ValidationKind.AMOUNT_REQUIRED,
                    message="At least one line must carry a non-zero amount",
                )
            )

        totals = compute_totals(draft.lines, self._policy.balance_tolerance)
        if not totals.is_balanced:
            issues.append(
                ValidationIssue(
                    kind=ValidationKind.UNBALANCED,
                    message=(
                        f"Entry is not balanced: debits {totals.total_debit} "
                        f"vs credits {totals.total_credit} "
                        f"(difference {totals.difference})"
                    ),
                    details={
                        "difference": totals.difference,
                        "total_debit": totals.total_debit,
                        "total_credit": totals.total_credit,
                    },
                )
            )

        result = ValidationResult(issues=tuple(issues))
        logger.debug(
            "entry_validated",
            extra={
                "is_valid": result.is_valid,
                "issue_kinds": [kind.value for kind in result.kinds],
            },
        )
        return result

    def _check_header(self, draft: EntryDraft) -> list[ValidationIssue]:
        issues: list[ValidationIssue] = []
        description = (draft.description or "").strip()
        if not description:
            issues.append(
                ValidationIssue(
                    kind=ValidationKind.DESCRIPTION_REQUIRED,
                    message="Description is required",
                )
            )
        elif len(draft.description) > self._policy.max_description_length:
            issues.append(
                ValidationIssue(
                    kind=ValidationKind.DESCRIPTION_TOO_LONG,
                    message=(
                        f"Description must be at most "
                        f"{self._policy.max_description_length} characters"
                    ),
                    details={
                        "maximum": self._policy.max_description_length,
                        "actual": len(draft.description),
                    },
                )
            )

        if draft.transaction_date is None:
            issues.append(
                ValidationIssue(
                    kind=ValidationKind.TRANSACTION_DATE_REQUIRED,
                    message="Transaction date is required",
                )
            )
        elif self._policy.reject_future_transaction_dates:
            today = self._clock.today()
            if draft.transaction_date > today:
                issues.append(
                    ValidationIssue(
                        kind=ValidationKind.TRANSACTION_DATE_IN_FUTURE,
                        message=(
                            f"Transaction date {draft.transaction_date.isoformat()} "
                            "cannot be in the future"
                        ),
                        details={"today": today},
                    )
                )
        return issues

    def _check_account(self, line: JournalLineData) -> list[ValidationIssue]:
        if line.account_id is None:
            return [
                ValidationIssue(
                    kind=ValidationKind.MISSING_ACCOUNT,
                    message=f"Line {line.line_number}: account is required",
                    line_number=line.line_number,
                )
            ]
        account = self._catalog.resolve(line.account_id)
        if account is None:
            return [
                ValidationIssue(
                    kind=ValidationKind.MISSING_ACCOUNT,
                    message=f"Line {line.line_number}: account {line.account_id} not found",
                    line_number=line.line_number,
                    details={"account_id": line.account_id},
                )
            ]
        if not account.is_active:
            return [
                ValidationIssue(
                    kind=ValidationKind.INACTIVE_ACCOUNT,
                    message=(
                        f"Line {line.line_number}: account {account.code} "
                        f"({account.name}) is inactive"
                    ),
                    line_number=line.line_number,
                    details={"account_id": line.account_id},
                )
            ]
        return []

    def _check_line_description(self, line: JournalLineData) -> list[ValidationIssue]:
        limit = self._policy.max_line_description_length
        if line.description and len(line.description) > limit:
            return [
                ValidationIssue(
                    kind=ValidationKind.LINE_DESCRIPTION_TOO_LONG,
                    message=(
                        f"Line {line.line_number}: description must be at most "
                        f"{limit} characters"
                    ),
                    line_number=line.line_number,
                    details={"maximum": limit, "actual": len(line.description)},
                )
            ]
        return []

    def _check_amounts(self, line: JournalLineData) -> list[ValidationIssue]:
        debit: Decimal = line.debit_amount
        credit: Decimal = line.credit_amount
        issues: list[ValidationIssue] = []

        for side, amount in (("debit", debit), ("credit", credit)):
            if amount < ZERO:
                issues.append(
                    ValidationIssue(
                        kind=ValidationKind.NEGATIVE_AMOUNT,
                        message=(
                            f"Line {line.line_number}: {side} amount cannot be negative"
                        ),
                        line_number=line.line_number,
                        details={"side": side, "amount": amount},
                    )
                )
        if issues:
            return issues

        if debit > ZERO and credit > ZERO:
            issues.append(
                ValidationIssue(
                    kind=ValidationKind.BOTH_SIDES_NON_ZERO,
                    message=(
                        f"Line {line.line_number}: a line cannot have both "
                        "debit and credit amounts"
                    ),
                    line_number=line.line_number,
                )
            )
        elif debit == ZERO and credit == ZERO:
            issues.append(
                ValidationIssue(
                    kind=ValidationKind.AMOUNT_REQUIRED,
                    message=(
                        f"Line {line.line_number}: either a debit or a credit "
                        "amount is required"
                    ),
                    line_number=line.line_number,
                )
            )
        return issues
