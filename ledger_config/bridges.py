"""
Config -> Kernel Bridges.

Functions that convert LedgerSettings into kernel-compatible inputs.  These
live in ledger_config (the producer) because the kernel must NEVER import
ledger_config.

Usage:
    from ledger_config import get_active_config
    from ledger_config.bridges import build_engine_kwargs, build_policy

    settings = get_active_config()
    init_engine_from_url(**build_engine_kwargs(settings))
    service = JournalService(session, catalog, policy=build_policy(settings))
"""

from __future__ import annotations

from typing import Any

from ledger_config.schema import LedgerSettings
from ledger_kernel.domain.entries import EntryStatus
from ledger_kernel.domain.policy import LedgerPolicy


def build_policy(settings: LedgerSettings) -> LedgerPolicy:
    """Build the kernel-side LedgerPolicy from loaded settings."""
    return LedgerPolicy(
        balance_tolerance=settings.balance_tolerance,
        min_lines=settings.min_lines,
        max_description_length=settings.max_description_length,
        max_line_description_length=settings.max_line_description_length,
        edit_history_capacity=settings.edit_history_capacity,
        reversal_status=EntryStatus(settings.reversal_status.upper()),
        code_prefix=settings.code_prefix,
        code_width=settings.code_width,
        reject_future_transaction_dates=settings.reject_future_transaction_dates,
        protect_auto_generated_drafts=settings.protect_auto_generated_drafts,
    )


def build_engine_kwargs(settings: LedgerSettings) -> dict[str, Any]:
    """Keyword arguments for ``ledger_kernel.db.engine.init_engine_from_url``."""
    db = settings.database
    return {
        "database_url": db.url,
        "echo": db.echo,
        "pool_size": db.pool_size,
        "max_overflow": db.max_overflow,
    }
