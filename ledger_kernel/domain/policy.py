"""
LedgerPolicy -- Kernel-side rule parameters.

Responsibility:
    Carries the tunable numbers and switches the validator, state machine,
    reversal generator and edit session consult.  The kernel never reads
    YAML; ``ledger_config.bridges.build_policy`` produces this object from
    loaded settings.

Architecture position:
    Kernel > Domain -- pure value object, zero I/O.

Failure modes:
    - ValueError on a non-positive tolerance, length limit or history
      capacity, on a line minimum below two, or on a reversal status
      other than DRAFT/POSTED.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal

from ledger_kernel.domain.entries import DEFAULT_BALANCE_TOLERANCE, EntryStatus

MIN_ENTRY_LINES = 2


@dataclass(frozen=True)
class LedgerPolicy:
    """
    Immutable rule set for one ledger.

    Guarantees:
        - Defaults reproduce the reference behaviour: 0.01 balance tolerance,
          two lines minimum, 500/200 character description limits, 50-step
          edit history and auto-posted reversals.
    """

    balance_tolerance: Decimal = DEFAULT_BALANCE_TOLERANCE
    min_lines: int = 2
    max_description_length: int = 500
    max_line_description_length: int = 200
    edit_history_capacity: int = 50
    reversal_status: EntryStatus = EntryStatus.POSTED
    code_prefix: str = "JV"
    code_width: int = 3
    reject_future_transaction_dates: bool = True
    protect_auto_generated_drafts: bool = False

    def __post_init__(self) -> None:
        object.__setattr__(self, "balance_tolerance", Decimal(str(self.balance_tolerance)))
        object.__setattr__(self, "reversal_status", EntryStatus(self.reversal_status))
        if self.balance_tolerance <= 0:
            raise ValueError(
                f"balance_tolerance must be positive, got {self.balance_tolerance}"
            )
        for name in (
            "max_description_length",
            "max_line_description_length",
            "edit_history_capacity",
            "code_width",
        ):
            if getattr(self, name) < 1:
                raise ValueError(f"{name} must be at least 1, got {getattr(self, name)}")
        if self.min_lines < MIN_ENTRY_LINES:
            raise ValueError(
                f"min_lines must be at least {MIN_ENTRY_LINES}, got {self.min_lines}"
            )
        if self.reversal_status not in (EntryStatus.DRAFT, EntryStatus.POSTED):
            raise ValueError(
                f"reversal_status must be DRAFT or POSTED, got {self.reversal_status.value}"
            )
        if not self.code_prefix:
            raise ValueError("code_prefix must be non-empty")
