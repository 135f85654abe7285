"""
Module: inventory_kernel.selectors.base
Responsibility: Abstract base class for read-only query selectors over the
    ledger and aggregate stores.
Architecture position: Kernel > Selectors.  May import from db/base.py,
    domain/ and models/.  MUST NOT import from engines, services, or outer
    layers.

Invariants enforced:
    - Read-only access: selectors MUST NOT call session.add(), delete(),
      commit() or flush().
    - DTO return convention: selectors return frozen dataclasses, not ORM
      instances.
    - Session ownership: the caller owns the session and its transaction
      (and therefore the snapshot the selector reads from).
"""

from abc import ABC
from typing import Generic, TypeVar

from sqlalchemy.orm import Session

from inventory_kernel.db.base import Base

ModelType = TypeVar("ModelType", bound=Base)


class BaseSelector(ABC, Generic[ModelType]):
    """Abstract base class for all selectors."""

    def __init__(self, session: Session):
        self.session = session
