"""
Domain DTOs shared between selectors, engines and services.

Pure frozen dataclasses.  Selectors build them from ORM rows so that engines
never see a Session or a mapped instance.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from uuid import UUID

from inventory_kernel.domain.movement_kind import MovementKind

# Decimal places of every stored unit cost and average cost.
COST_SCALE = 2


@dataclass(frozen=True, slots=True)
class BatchPosition:
    """Current costing-relevant state of one purchase batch."""

    batch_id: UUID
    variant_id: UUID
    unit_cost: Decimal
    remaining_quantity: int


@dataclass(frozen=True, slots=True)
class SummarySnapshot:
    """Stored state of one inventory summary row."""

    variant_id: UUID
    total_quantity: int
    average_cost: Decimal
    last_updated: datetime | None = None


@dataclass(frozen=True, slots=True)
class MovementRef:
    """Identity and classification of a stock movement."""

    movement_id: UUID
    variant_id: UUID
    kind: MovementKind
    batch_id: UUID | None
    quantity: int


@dataclass(frozen=True, slots=True)
class QuantityDiscrepancy:
    """A variant whose stored quantity disagrees with its batches."""

    variant_id: UUID
    aggregate_quantity: int
    ledger_quantity: int

    @property
    def difference(self) -> int:
        """Aggregate minus ledger (positive means the summary overstates stock)."""
        return self.aggregate_quantity - self.ledger_quantity

    def as_dict(self) -> dict:
        return {
            "variant_id": str(self.variant_id),
            "aggregate_quantity": self.aggregate_quantity,
            "ledger_quantity": self.ledger_quantity,
            "difference": self.difference,
        }
