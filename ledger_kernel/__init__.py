"""
Ledger Kernel - journal voucher engine

A double-entry journal-entry ledger with:
- Accumulating structural and arithmetic validation
- One-way Draft -> Posted -> Reversed lifecycle
- Line-for-line reversal generation
- Bounded undo/redo edit sessions for drafts
"""

__version__ = "0.1.0"
