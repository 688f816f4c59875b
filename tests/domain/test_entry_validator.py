"""
EntryValidator tests.

Verifies:
- Every finding is reported, not just the first
- Line exclusivity, amount and account rules per line
- Balance check with the 0.01 tolerance and signed difference
- Header rules (description, transaction date)
"""

from datetime import date
from decimal import Decimal
from uuid import uuid4

import pytest

from ledger_kernel.domain.entries import EntryDraft, JournalLineData
from ledger_kernel.domain.policy import LedgerPolicy
from ledger_kernel.domain.validation import EntryValidator, ValidationKind, ValidationResult


@pytest.fixture
def validator(account_catalog, deterministic_clock):
    return EntryValidator(account_catalog, LedgerPolicy(), deterministic_clock)


def _draft(lines, description="Office supplies", transaction_date=date(2025, 6, 15)):
    return EntryDraft(description=description, transaction_date=transaction_date, lines=tuple(lines))


class TestBalancedEntries:
    """Entries satisfying every rule."""

    def test_balanced_two_line_entry_is_valid(self, validator, accounts):
        draft = _draft([
            JournalLineData.debit(accounts["expense"].account_id, "5000"),
            JournalLineData.credit(accounts["cash"].account_id, "5000"),
        ])

        result = validator.validate(draft)

        assert result.is_valid
        assert result.issues == ()
        assert bool(result) is True

    def test_difference_below_tolerance_is_balanced(self, validator, accounts):
        draft = _draft([
            JournalLineData.debit(accounts["expense"].account_id, "100.005"),
            JournalLineData.credit(accounts["cash"].account_id, "100.00"),
        ])

        assert validator.validate(draft).is_valid

    def test_multi_line_split_is_valid(self, validator, accounts):
        draft = _draft([
            JournalLineData.debit(accounts["expense"].account_id, "300.00"),
            JournalLineData.debit(accounts["expense"].account_id, "200.00"),
            JournalLineData.credit(accounts["cash"].account_id, "500.00"),
        ])

        assert validator.validate(draft).is_valid


class TestBalanceCheck:
    """abs(total_debit - total_credit) < 0.01, strictly."""

    def test_unbalanced_reports_signed_difference(self, validator, accounts):
        draft = _draft([
            JournalLineData.debit(accounts["expense"].account_id, "5000"),
            JournalLineData.credit(accounts["cash"].account_id, "4800"),
        ])

        result = validator.validate(draft)

        assert result.kinds == (ValidationKind.UNBALANCED,)
        issue = result.first(ValidationKind.UNBALANCED)
        assert issue.details["difference"] == Decimal("200.00")
        assert issue.details["total_debit"] == Decimal("5000")
        assert issue.details["total_credit"] == Decimal("4800")

    def test_credit_heavy_difference_is_negative(self, validator, accounts):
        draft = _draft([
            JournalLineData.debit(accounts["expense"].account_id, "90"),
            JournalLineData.credit(accounts["cash"].account_id, "100"),
        ])

        issue = validator.validate(draft).first(ValidationKind.UNBALANCED)

        assert issue.details["difference"] == Decimal("-10")

    def test_difference_equal_to_tolerance_is_unbalanced(self, validator, accounts):
        draft = _draft([
            JournalLineData.debit(accounts["expense"].account_id, "100.01"),
            JournalLineData.credit(accounts["cash"].account_id, "100.00"),
        ])

        assert validator.validate(draft).has(ValidationKind.UNBALANCED)

    def test_custom_tolerance_is_honoured(self, account_catalog, deterministic_clock, accounts):
        strict = EntryValidator(
            account_catalog,
            LedgerPolicy(balance_tolerance=Decimal("0.0001")),
            deterministic_clock,
        )
        draft = _draft([
            JournalLineData.debit(accounts["expense"].account_id, "100.005"),
            JournalLineData.credit(accounts["cash"].account_id, "100.00"),
        ])

        assert strict.validate(draft).has(ValidationKind.UNBALANCED)


class TestLineRules:
    """Per-line account and amount rules."""

    def test_both_sides_non_zero(self, validator, accounts):
        draft = _draft([
            JournalLineData(
                account_id=accounts["expense"].account_id,
                debit_amount=Decimal("100"),
                credit_amount=Decimal("100"),
            ),
            JournalLineData(
                account_id=accounts["cash"].account_id,
                debit_amount=Decimal("50"),
                credit_amount=Decimal("50"),
            ),
        ])

        result = validator.validate(draft)

        assert result.kinds == (
            ValidationKind.BOTH_SIDES_NON_ZERO,
            ValidationKind.BOTH_SIDES_NON_ZERO,
        )
        assert [i.line_number for i in result.issues] == [1, 2]

    def test_zero_line_requires_amount(self, validator, accounts):
        draft = _draft([
            JournalLineData.debit(accounts["expense"].account_id, "100"),
            JournalLineData.credit(accounts["cash"].account_id, "100"),
            JournalLineData(account_id=accounts["cash"].account_id),
        ])

        result = validator.validate(draft)

        assert result.kinds == (ValidationKind.AMOUNT_REQUIRED,)
        assert result.issues[0].line_number == 3

    def test_all_zero_entry_is_flagged_at_entry_level(self, validator, accounts):
        draft = _draft([
            JournalLineData(account_id=accounts["expense"].account_id),
            JournalLineData(account_id=accounts["cash"].account_id),
        ])

        result = validator.validate(draft)

        assert result.kinds == (
            ValidationKind.AMOUNT_REQUIRED,
            ValidationKind.AMOUNT_REQUIRED,
            ValidationKind.AMOUNT_REQUIRED,
        )
        assert result.issues[-1].line_number is None
        assert not result.has(ValidationKind.UNBALANCED)

    def test_negative_amounts_reported_per_side(self, validator, accounts):
        draft = _draft([
            JournalLineData(
                account_id=accounts["expense"].account_id,
                debit_amount=Decimal("-5"),
                credit_amount=Decimal("-5"),
            ),
            JournalLineData.credit(accounts["cash"].account_id, "10"),
        ])

        result = validator.validate(draft)

        negatives = [i for i in result.issues if i.kind == ValidationKind.NEGATIVE_AMOUNT]
        assert [i.details["side"] for i in negatives] == ["debit", "credit"]
        assert not result.has(ValidationKind.BOTH_SIDES_NON_ZERO)

    def test_missing_account_id(self, validator, accounts):
        draft = _draft([
            JournalLineData.debit(None, "100"),
            JournalLineData.credit(accounts["cash"].account_id, "100"),
        ])

        result = validator.validate(draft)

        assert result.kinds == (ValidationKind.MISSING_ACCOUNT,)
        assert result.issues[0].line_number == 1

    def test_unknown_account_is_missing_not_a_crash(self, validator, accounts):
        draft = _draft([
            JournalLineData.debit(uuid4(), "100"),
            JournalLineData.credit(accounts["cash"].account_id, "100"),
        ])

        assert validator.validate(draft).kinds == (ValidationKind.MISSING_ACCOUNT,)

    def test_inactive_account(self, validator, accounts):
        draft = _draft([
            JournalLineData.debit(accounts["inactive"].account_id, "100"),
            JournalLineData.credit(accounts["cash"].account_id, "100"),
        ])

        result = validator.validate(draft)

        assert result.kinds == (ValidationKind.INACTIVE_ACCOUNT,)
        assert "Retired Suspense" in result.issues[0].message

    def test_line_description_too_long(self, validator, accounts):
        draft = _draft([
            JournalLineData.debit(accounts["expense"].account_id, "100", "x" * 201),
            JournalLineData.credit(accounts["cash"].account_id, "100", "y" * 200),
        ])

        result = validator.validate(draft)

        assert result.kinds == (ValidationKind.LINE_DESCRIPTION_TOO_LONG,)
        assert result.issues[0].line_number == 1


class TestHeaderRules:
    """Description, line count and transaction date."""

    @pytest.mark.parametrize("description", ["", "   "])
    def test_description_required(self, validator, accounts, description):
        draft = _draft(
            [
                JournalLineData.debit(accounts["expense"].account_id, "100"),
                JournalLineData.credit(accounts["cash"].account_id, "100"),
            ],
            description=description,
        )

        assert validator.validate(draft).kinds == (ValidationKind.DESCRIPTION_REQUIRED,)

    def test_description_length_limit(self, validator, accounts):
        lines = [
            JournalLineData.debit(accounts["expense"].account_id, "100"),
            JournalLineData.credit(accounts["cash"].account_id, "100"),
        ]

        assert validator.validate(_draft(lines, description="d" * 500)).is_valid
        assert validator.validate(_draft(lines, description="d" * 501)).kinds == (
            ValidationKind.DESCRIPTION_TOO_LONG,
        )

    def test_too_few_lines(self, validator, accounts):
        draft = _draft([JournalLineData.debit(accounts["expense"].account_id, "100")])

        result = validator.validate(draft)

        assert result.kinds == (ValidationKind.TOO_FEW_LINES, ValidationKind.UNBALANCED)
        assert result.issues[0].details == {"minimum": 2, "actual": 1}

    @pytest.mark.parametrize("min_lines", [0, 1])
    def test_policy_cannot_allow_single_line_entries(self, min_lines):
        with pytest.raises(ValueError, match="min_lines must be at least 2"):
            LedgerPolicy(min_lines=min_lines)

    def test_transaction_date_required(self, validator, accounts):
        draft = _draft(
            [
                JournalLineData.debit(accounts["expense"].account_id, "100"),
                JournalLineData.credit(accounts["cash"].account_id, "100"),
            ],
            transaction_date=None,
        )

        assert validator.validate(draft).kinds == (ValidationKind.TRANSACTION_DATE_REQUIRED,)

    def test_future_transaction_date(self, validator, accounts):
        lines = [
            JournalLineData.debit(accounts["expense"].account_id, "100"),
            JournalLineData.credit(accounts["cash"].account_id, "100"),
        ]

        assert validator.validate(_draft(lines, transaction_date=date(2025, 6, 30))).is_valid
        assert validator.validate(_draft(lines, transaction_date=date(2025, 7, 1))).kinds == (
            ValidationKind.TRANSACTION_DATE_IN_FUTURE,
        )

    def test_future_dates_allowed_when_policy_permits(
        self, account_catalog, deterministic_clock, accounts
    ):
        lenient = EntryValidator(
            account_catalog,
            LedgerPolicy(reject_future_transaction_dates=False),
            deterministic_clock,
        )
        draft = _draft(
            [
                JournalLineData.debit(accounts["expense"].account_id, "100"),
                JournalLineData.credit(accounts["cash"].account_id, "100"),
            ],
            transaction_date=date(2026, 1, 1),
        )

        assert lenient.validate(draft).is_valid


class TestAccumulation:
    """All violations are returned in a stable order."""

    def test_every_finding_is_reported(self, validator, accounts):
        draft = _draft(
            [
                JournalLineData.debit(None, "100"),
                JournalLineData(
                    account_id=accounts["inactive"].account_id,
                    debit_amount=Decimal("10"),
                    credit_amount=Decimal("10"),
                ),
                JournalLineData.credit(accounts["cash"].account_id, "50"),
            ],
            description="",
        )

        result = validator.validate(draft)

        assert result.kinds == (
            ValidationKind.DESCRIPTION_REQUIRED,
            ValidationKind.MISSING_ACCOUNT,
            ValidationKind.INACTIVE_ACCOUNT,
            ValidationKind.BOTH_SIDES_NON_ZERO,
            ValidationKind.UNBALANCED,
        )
        assert all(issue.message for issue in result.issues)

    def test_validation_is_pure(self, validator, accounts):
        draft = _draft([
            JournalLineData.debit(accounts["expense"].account_id, "5000"),
            JournalLineData.credit(accounts["cash"].account_id, "4800"),
        ])

        assert validator.validate(draft) == validator.validate(draft)

    def test_result_helpers(self):
        assert ValidationResult.success().is_valid
        assert ValidationResult.failure().is_valid
        assert ValidationResult().first(ValidationKind.UNBALANCED) is None
