"""
Module: inventory_kernel.models.inventory_summary
Responsibility: ORM persistence for the materialized per-variant aggregate
    (quantity on hand, weighted-average unit cost).
Architecture position: Kernel > Models.  May import from db/base.py, domain/
    and exceptions.

Invariants enforced:
    - One row per variant (UNIQUE variant_id).
    - The reconciler is the only writer of total_quantity, average_cost and
      last_updated.  low_stock_threshold belongs to provisioning and is left
      untouched by a reconciliation pass.

Correctness goal:
    total_quantity == sum(remaining_quantity) over the variant's batches and
    average_cost == weighted average unit cost of batches with stock left,
    or 0 when none have stock left.
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from uuid import UUID

from sqlalchemy import DateTime, Index, Integer, Numeric
from sqlalchemy.orm import Mapped, mapped_column

from inventory_kernel.db.base import Base, UUIDString
from inventory_kernel.domain.dtos import COST_SCALE, SummarySnapshot

DEFAULT_LOW_STOCK_THRESHOLD = 5


class InventorySummary(Base):
    """Materialized stock position of one variant."""

    __tablename__ = "inventory_summaries"

    __table_args__ = (
        Index("idx_inventory_quantity", "total_quantity"),
        Index("idx_inventory_low_stock", "total_quantity", "low_stock_threshold"),
    )

    variant_id: Mapped[UUID] = mapped_column(
        UUIDString(),
        nullable=False,
        unique=True,
    )

    total_quantity: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    average_cost: Mapped[Decimal] = mapped_column(
        Numeric(10, COST_SCALE),
        nullable=False,
        default=Decimal("0"),
    )

    low_stock_threshold: Mapped[int | None] = mapped_column(
        Integer,
        nullable=True,
        default=DEFAULT_LOW_STOCK_THRESHOLD,
    )

    last_updated: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )

    @property
    def total_value(self) -> Decimal:
        return self.average_cost * self.total_quantity

    def to_snapshot(self) -> SummarySnapshot:
        return SummarySnapshot(
            variant_id=self.variant_id,
            total_quantity=self.total_quantity,
            average_cost=self.average_cost,
            last_updated=self.last_updated,
        )

    def __repr__(self) -> str:
        return (
            f"<InventorySummary variant={self.variant_id} "
            f"qty={self.total_quantity} avg={self.average_cost}>"
        )
