"""
Module: ledger_kernel.selectors.base
Responsibility: Abstract base class for read-only query selectors.
Architecture position: Kernel > Selectors.  May import from db/, models/ and
    the domain value types.  MUST NOT import from services/.

Invariants enforced:
    - Read-only access: selectors never call session.add(), delete(), flush()
      or commit().
    - Selectors return frozen domain snapshots, never ORM instances.
    - The caller owns the session and its transaction scope.
"""

from abc import ABC

from sqlalchemy.orm import Session


class BaseSelector(ABC):
    """
    Abstract base class for all selectors.

    Non-goals:
        - Defines no query methods; subclasses implement them.
    """

    def __init__(self, session: Session):
        self.session = session
