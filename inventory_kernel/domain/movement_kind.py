"""
MovementKind -- closed enumeration of stock movement kinds.

Stored as its string value in ``stock_movements.kind``.  Any consumer that
branches on kind (the orphan policy in particular) must cover every member;
adding a kind here forces that decision to be made explicitly.
"""

from enum import Enum

from inventory_kernel.exceptions import UnknownMovementKindError


class MovementKind(str, Enum):
    """Kinds of quantity change recorded in the movement ledger."""

    PURCHASE = "purchase"  # Stock received against a purchase batch
    SALE = "sale"  # Stock consumed by a sale
    ADJUSTMENT_IN = "adjustment_in"  # Manual increase
    ADJUSTMENT_OUT = "adjustment_out"  # Manual decrease, incl. batch deletion write-off
    MANUAL_ADJUSTMENT = "manual_adjustment"  # Defect write-down that keeps batch value

    @property
    def adds_stock(self) -> bool:
        return self in (MovementKind.PURCHASE, MovementKind.ADJUSTMENT_IN)

    @classmethod
    def parse(cls, value: str) -> "MovementKind":
        """Parse a stored kind string.

        Raises:
            UnknownMovementKindError: If value is not a known kind.
        """
        try:
            return cls(value)
        except ValueError:
            raise UnknownMovementKindError(value) from None
