"""
Module: inventory_kernel.models.stock_movement
Responsibility: ORM persistence for stock movements -- the immutable audit
    trail of quantity changes per variant.
Architecture position: Kernel > Models.  May import from db/base.py and
    domain/movement_kind.py only.

Invariants enforced:
    - kind is one of MovementKind (CHECK constraint mirrors the enum).
    - batch_id is nullable: manual adjustments carry no batch, and deleting a
      batch sets the reference to NULL (ON DELETE SET NULL).  On stores
      without enforced foreign keys a reference may also dangle.
    - Movements are never updated.  The orphan collector is the only
      component that deletes them.
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from uuid import UUID

from sqlalchemy import CheckConstraint, DateTime, ForeignKey, Index, Integer, String, Text, func
from sqlalchemy.orm import Mapped, mapped_column

from inventory_kernel.db.base import Base, UUIDString
from inventory_kernel.domain.dtos import MovementRef
from inventory_kernel.domain.movement_kind import MovementKind

_KIND_VALUES = ", ".join(f"'{kind.value}'" for kind in MovementKind)


class StockMovement(Base):
    """One recorded quantity change for a variant."""

    __tablename__ = "stock_movements"

    __table_args__ = (
        CheckConstraint(f"kind IN ({_KIND_VALUES})", name="ck_stock_movements_kind"),
        Index("idx_movements_variant_id", "variant_id"),
        Index("idx_movements_batch_id", "batch_id"),
        Index("idx_movements_kind", "kind"),
        Index("idx_movements_created_at", "created_at"),
    )

    variant_id: Mapped[UUID] = mapped_column(UUIDString(), nullable=False)

    batch_id: Mapped[UUID | None] = mapped_column(
        UUIDString(),
        ForeignKey("purchase_batches.id", ondelete="SET NULL"),
        nullable=True,
    )

    kind: Mapped[str] = mapped_column(String(20), nullable=False)

    # Signed delta: positive adds stock, negative removes it
    quantity: Mapped[int] = mapped_column(Integer, nullable=False)

    unit_price: Mapped[Decimal] = mapped_column(nullable=False, default=Decimal("0"))

    reason: Mapped[str | None] = mapped_column(Text, nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )

    @property
    def movement_kind(self) -> MovementKind:
        return MovementKind.parse(self.kind)

    def to_ref(self) -> MovementRef:
        return MovementRef(
            movement_id=self.id,
            variant_id=self.variant_id,
            kind=self.movement_kind,
            batch_id=self.batch_id,
            quantity=self.quantity,
        )

    def __repr__(self) -> str:
        return (
            f"<StockMovement {self.id}: {self.kind} {self.quantity:+d} "
            f"variant={self.variant_id} batch={self.batch_id}>"
        )
