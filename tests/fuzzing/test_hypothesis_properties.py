"""
Hypothesis property tests for the journal kernel.

Properties:
- Balance: nothing unbalanced gets past the post guard, in memory or via the service
- Line exclusivity: every line of an accepted entry is exactly one-sided
- Renumbering: removing any line leaves 1..n-1 in original order
- Monotonicity: no action sequence moves an entry backward or skips a state
- Reversal: lines swap one-for-one and the totals cross over
- Undo exactness: one undo restores exactly the state before the last change
- History bound: the history never exceeds its capacity
"""

from datetime import date
from decimal import Decimal
from uuid import UUID, uuid4

import pytest
from hypothesis import HealthCheck, assume, given, settings
from hypothesis import strategies as st

from ledger_kernel.domain.edit_session import EditSession
from ledger_kernel.domain.entries import (
    ZERO,
    EntryDraft,
    EntrySnapshot,
    EntryStatus,
    EntryType,
    JournalLineData,
)
from ledger_kernel.domain.lifecycle import LedgerAction, LedgerStateMachine
from ledger_kernel.domain.reversal import ReversalGenerator
from ledger_kernel.domain.validation import EntryValidator
from ledger_kernel.exceptions import EntryValidationError, StateError
from ledger_kernel.selectors.journal_selector import JournalSelector

ACCOUNT_IDS = [
    UUID("00000000-0000-0000-0000-000000001000"),
    UUID("00000000-0000-0000-0000-000000005000"),
    UUID("00000000-0000-0000-0000-000000004000"),
]

FIXTURE_SETTINGS = settings(
    max_examples=100,
    deadline=None,
    suppress_health_check=[HealthCheck.function_scoped_fixture, HealthCheck.too_slow],
)

amounts = st.decimals(
    min_value=Decimal("0.01"),
    max_value=Decimal("99999999.99"),
    places=2,
    allow_nan=False,
    allow_infinity=False,
)


@st.composite
def one_sided_lines(draw):
    account_id = draw(st.sampled_from(ACCOUNT_IDS))
    amount = draw(amounts)
    if draw(st.booleans()):
        return JournalLineData.debit(account_id, amount)
    return JournalLineData.credit(account_id, amount)


@st.composite
def any_lines(draw):
    """Lines that may break exclusivity: zero, one-sided or two-sided."""
    zero_or_amount = st.one_of(st.just(ZERO), amounts)
    return JournalLineData(
        account_id=draw(st.sampled_from(ACCOUNT_IDS)),
        debit_amount=draw(zero_or_amount),
        credit_amount=draw(zero_or_amount),
    )


@st.composite
def balanced_line_sets(draw):
    """Debits drawn freely plus a single balancing credit."""
    debits = draw(st.lists(amounts, min_size=1, max_size=8))
    lines = [JournalLineData.debit(draw(st.sampled_from(ACCOUNT_IDS)), d) for d in debits]
    balancing = JournalLineData.credit(draw(st.sampled_from(ACCOUNT_IDS)), sum(debits, ZERO))
    position = draw(st.integers(min_value=0, max_value=len(lines)))
    lines.insert(position, balancing)
    return tuple(lines)


def _draft(lines) -> EntryDraft:
    return EntryDraft(
        description="Generated entry",
        transaction_date=date(2025, 6, 15),
        lines=tuple(lines),
    )


def _posted_snapshot(lines) -> EntrySnapshot:
    draft = _draft(lines)
    return EntrySnapshot(
        id=uuid4(),
        code="JV-2025-001",
        status=EntryStatus.POSTED,
        description=draft.description,
        transaction_date=draft.transaction_date,
        entry_type=EntryType.MANUAL,
        lines=draft.lines,
        posting_date=date(2025, 6, 30),
    )


class TestBalanceProperty:

    @given(lines=st.lists(any_lines(), min_size=2, max_size=6))
    @FIXTURE_SETTINGS
    def test_post_guard_only_passes_balanced_entries(self, lines, account_catalog, deterministic_clock):
        validator = EntryValidator(account_catalog, clock=deterministic_clock)
        draft = _draft(lines)

        validation = validator.validate(draft)
        try:
            LedgerStateMachine().check_post(uuid4(), EntryStatus.DRAFT, validation)
        except EntryValidationError:
            return

        totals = draft.totals()
        assert abs(totals.total_debit - totals.total_credit) < Decimal("0.01")

    @given(lines=balanced_line_sets())
    @FIXTURE_SETTINGS
    def test_balanced_lines_always_validate(self, lines, account_catalog, deterministic_clock):
        validator = EntryValidator(account_catalog, clock=deterministic_clock)

        assert validator.validate(_draft(lines)).is_valid

    @given(
        debit=amounts,
        skew=st.decimals(min_value=Decimal("-5"), max_value=Decimal("5"), places=2),
    )
    @settings(
        max_examples=30,
        deadline=None,
        suppress_health_check=[HealthCheck.function_scoped_fixture, HealthCheck.too_slow],
    )
    def test_posted_entries_are_balanced(
        self, debit, skew, session, journal_service, make_draft, test_actor_id
    ):
        credit = debit + skew
        assume(credit > ZERO)
        created = journal_service.create_draft(make_draft(debit=debit, credit=credit), test_actor_id)

        try:
            journal_service.post_entry(created.entry_id, date(2025, 6, 30), test_actor_id)
        except EntryValidationError:
            assert abs(skew) >= Decimal("0.01")
            return

        posted = JournalSelector(session).get_entry(created.entry_id)
        assert posted.status == EntryStatus.POSTED
        assert abs(posted.total_debit - posted.total_credit) < Decimal("0.01")


class TestLineExclusivityProperty:

    @given(lines=st.lists(any_lines(), min_size=2, max_size=6))
    @FIXTURE_SETTINGS
    def test_accepted_lines_are_one_sided(self, lines, account_catalog, deterministic_clock):
        validator = EntryValidator(account_catalog, clock=deterministic_clock)

        result = validator.validate(_draft(lines))

        if result.is_valid:
            for line in lines:
                assert not (line.debit_amount > ZERO and line.credit_amount > ZERO)
                assert not (line.debit_amount == ZERO and line.credit_amount == ZERO)


class TestRenumberingProperty:

    @given(data=st.data(), lines=st.lists(one_sided_lines(), min_size=1, max_size=10))
    @FIXTURE_SETTINGS
    def test_remove_any_line(self, data, lines, deterministic_clock):
        edit_session = EditSession(_draft(lines), clock=deterministic_clock)
        before = edit_session.current.lines
        index = data.draw(st.integers(min_value=0, max_value=len(before) - 1))

        edit_session.remove_line(index)

        remaining = edit_session.current.lines
        assert [l.line_number for l in remaining] == list(range(1, len(before)))
        expected = before[:index] + before[index + 1:]
        assert [(l.account_id, l.debit_amount, l.credit_amount) for l in remaining] == [
            (l.account_id, l.debit_amount, l.credit_amount) for l in expected
        ]


_RANK = {EntryStatus.DRAFT: 0, EntryStatus.POSTED: 1, EntryStatus.REVERSED: 2}


class TestMonotonicityProperty:

    @given(actions=st.lists(st.sampled_from(list(LedgerAction)), max_size=20))
    @settings(max_examples=200)
    def test_status_never_moves_backward(self, actions):
        machine = LedgerStateMachine()
        status = machine.initial_status()

        for action in actions:
            try:
                new_status = machine.next_status(action, status)
            except StateError:
                continue
            assert _RANK[new_status] >= _RANK[status]
            assert not (status == EntryStatus.DRAFT and new_status == EntryStatus.REVERSED)
            status = new_status

    @given(action=st.sampled_from(list(LedgerAction)))
    def test_reversed_is_terminal(self, action):
        with pytest.raises(StateError):
            LedgerStateMachine().next_status(action, EntryStatus.REVERSED)


class TestReversalProperty:

    @given(lines=st.lists(one_sided_lines(), min_size=2, max_size=10))
    @settings(max_examples=200)
    def test_reversal_swaps_every_line(self, lines):
        original = _posted_snapshot(lines)

        reversal = ReversalGenerator().generate(original, "JV-2025-002", date(2025, 6, 30))

        assert len(reversal.lines) == len(original.lines)
        for before, after in zip(original.lines, reversal.lines):
            assert after.account_id == before.account_id
            assert after.debit_amount == before.credit_amount
            assert after.credit_amount == before.debit_amount
        assert reversal.total_debit == original.total_credit
        assert reversal.total_credit == original.total_debit


@st.composite
def edits(draw):
    """(field, line_index, value) against a two-line draft."""
    kind = draw(st.sampled_from(["description", "reference", "debit_amount", "credit_amount", "account_id"]))
    if kind == "description":
        return ("description", None, draw(st.text(min_size=1, max_size=20)))
    if kind == "reference":
        return ("reference", None, draw(st.one_of(st.none(), st.text(min_size=1, max_size=10))))
    if kind == "account_id":
        return ("account_id", draw(st.integers(0, 1)), draw(st.sampled_from(ACCOUNT_IDS)))
    return (kind, draw(st.integers(0, 1)), draw(amounts))


class TestUndoProperty:

    @given(history=st.lists(edits(), max_size=15), last=edits())
    @FIXTURE_SETTINGS
    def test_single_undo_restores_previous_state(self, history, last, make_draft, deterministic_clock):
        edit_session = EditSession(make_draft(), clock=deterministic_clock)
        for field, line_index, value in history:
            edit_session.apply_change(field, value, line_index=line_index)
        before = edit_session.current

        field, line_index, value = last
        assume(edit_session.apply_change(field, value, line_index=line_index))
        edit_session.undo()

        assert edit_session.current == before


class TestHistoryBoundProperty:

    @given(count=st.integers(min_value=51, max_value=120))
    @FIXTURE_SETTINGS
    def test_history_never_exceeds_capacity(self, count, make_draft, deterministic_clock):
        edit_session = EditSession(make_draft(), capacity=50, clock=deterministic_clock)
        for n in range(count):
            edit_session.apply_change("description", f"Edit {n}")

        assert edit_session.diff_count() == 50

        undone = 0
        while edit_session.undo() is not None:
            undone += 1
        assert undone == 50
        assert edit_session.current.description == f"Edit {count - 51}"
