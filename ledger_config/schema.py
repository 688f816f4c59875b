"""
Configuration Schema (``ledger_config.schema``).

Responsibility
--------------
Typed, frozen dataclasses describing one ledger configuration document.
Pure data; parsing lives in ``ledger_config.loader`` and translation into
kernel inputs in ``ledger_config.bridges``.

Invariants enforced
-------------------
* All dataclasses are ``frozen=True``; configuration is immutable once loaded.
* Monetary settings are ``Decimal``, never ``float``.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal


@dataclass(frozen=True)
class DatabaseSettings:
    """Connection settings consumed by ``init_engine_from_url``."""

    url: str = "sqlite://"
    echo: bool = False
    pool_size: int = 20
    max_overflow: int = 10


@dataclass(frozen=True)
class LedgerSettings:
    """The complete, validated settings for one ledger."""

    balance_tolerance: Decimal = Decimal("0.01")
    min_lines: int = 2
    max_description_length: int = 500
    max_line_description_length: int = 200
    edit_history_capacity: int = 50
    reversal_status: str = "posted"
    code_prefix: str = "JV"
    code_width: int = 3
    reject_future_transaction_dates: bool = True
    protect_auto_generated_drafts: bool = False
    database: DatabaseSettings = field(default_factory=DatabaseSettings)
    source: str | None = None
    checksum: str | None = None
