"""
Module: inventory_kernel.models.purchase_batch
Responsibility: ORM persistence for purchase batches -- one discrete purchase
    lot of a variant with its acquisition unit cost and remaining quantity.
Architecture position: Kernel > Models.  May import from db/base.py, domain/
    and exceptions.

Invariants enforced:
    - quantity > 0 (CHECK constraint): every lot was acquired with a positive
      quantity.
    - unit_cost has at most COST_SCALE decimal places.  A finer value is
      rejected on assignment (UnitCostPrecisionError) instead of being
      rounded by the column.
    - remaining_quantity is deliberately NOT constrained to >= 0.  Consumption
      workflows own that rule; the reconciler must be able to read a
      violating row in order to report it.

Ownership:
    Created by purchasing, mutated by consumption, deleted by administrative
    correction (all external).  The reconciliation engine only reads it.
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from uuid import UUID

from sqlalchemy import CheckConstraint, DateTime, Index, Integer, Numeric, func
from sqlalchemy.orm import Mapped, mapped_column, validates

from inventory_kernel.db.base import Base, UUIDString
from inventory_kernel.domain.dtos import COST_SCALE, BatchPosition
from inventory_kernel.exceptions import UnitCostPrecisionError

_COST_QUANTUM = Decimal(1).scaleb(-COST_SCALE)


class PurchaseBatch(Base):
    """A purchase lot of one variant."""

    __tablename__ = "purchase_batches"

    __table_args__ = (
        CheckConstraint("quantity > 0", name="ck_purchase_batches_quantity_positive"),
        Index("idx_purchase_batches_variant_id", "variant_id"),
        Index("idx_purchase_batches_order_id", "purchase_order_id"),
        Index("idx_purchase_batches_remaining", "remaining_quantity"),
    )

    variant_id: Mapped[UUID] = mapped_column(UUIDString(), nullable=False)

    purchase_order_id: Mapped[UUID | None] = mapped_column(
        UUIDString(),
        nullable=True,
    )

    # Originally acquired quantity
    quantity: Mapped[int] = mapped_column(Integer, nullable=False)

    unit_cost: Mapped[Decimal] = mapped_column(Numeric(10, COST_SCALE), nullable=False)

    remaining_quantity: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        default=0,
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )

    @validates("unit_cost")
    def _validate_unit_cost(self, key: str, value: Decimal) -> Decimal:
        cost = Decimal(value)
        if cost != cost.quantize(_COST_QUANTUM):
            raise UnitCostPrecisionError(unit_cost=str(value), scale=COST_SCALE)
        return cost

    def to_position(self) -> BatchPosition:
        return BatchPosition(
            batch_id=self.id,
            variant_id=self.variant_id,
            unit_cost=self.unit_cost,
            remaining_quantity=self.remaining_quantity,
        )

    def __repr__(self) -> str:
        return (
            f"<PurchaseBatch {self.id}: variant={self.variant_id} "
            f"remaining={self.remaining_quantity}/{self.quantity} @ {self.unit_cost}>"
        )
