"""Services for the ledger kernel (write side)."""

from ledger_kernel.services.account_catalog import SqlAccountCatalog
from ledger_kernel.services.journal_service import (
    DraftResult,
    JournalService,
    PostResult,
)
from ledger_kernel.services.reversal_service import ReversalResult, ReversalService
from ledger_kernel.services.sequence_service import SequenceService

__all__ = [
    "DraftResult",
    "JournalService",
    "PostResult",
    "ReversalResult",
    "ReversalService",
    "SequenceService",
    "SqlAccountCatalog",
]
