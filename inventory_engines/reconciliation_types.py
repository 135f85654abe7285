"""
inventory_engines.reconciliation_types -- Pure frozen result types for a repair run.

ZERO I/O.  Frozen dataclasses with enum status fields and tuples for
immutable collections.  Produced by the services layer and rendered by the
CLI through ``to_dict()``.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Any
from uuid import UUID

from inventory_kernel.domain.dtos import QuantityDiscrepancy


class VariantOutcome(str, Enum):
    """What a reconciliation pass did to one variant's summary row."""

    UNCHANGED = "unchanged"  # Stored values already matched the ledger
    UPDATED = "updated"  # Existing row overwritten
    CREATED = "created"  # Row was missing and has been inserted
    FAILED = "failed"  # Rolled back; see the matching anomaly


@dataclass(frozen=True)
class VariantRepair:
    """Before and after figures of one variant."""

    variant_id: UUID
    outcome: VariantOutcome
    new_quantity: int
    new_average_cost: Decimal
    old_quantity: int | None = None  # None when the row was created
    old_average_cost: Decimal | None = None

    @property
    def changed(self) -> bool:
        return self.outcome in (VariantOutcome.UPDATED, VariantOutcome.CREATED)

    @property
    def quantity_delta(self) -> int:
        return self.new_quantity - (self.old_quantity or 0)

    def to_dict(self) -> dict[str, Any]:
        return {
            "variant_id": str(self.variant_id),
            "outcome": self.outcome.value,
            "old_quantity": self.old_quantity,
            "new_quantity": self.new_quantity,
            "old_average_cost": None if self.old_average_cost is None else str(self.old_average_cost),
            "new_average_cost": str(self.new_average_cost),
        }


@dataclass(frozen=True)
class ReconciliationAnomaly:
    """A ledger integrity problem found while reconciling one variant.

    The variant's summary row is left as it was.
    """

    variant_id: UUID
    code: str
    message: str
    details: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {
            "variant_id": str(self.variant_id),
            "code": self.code,
            "message": self.message,
            "details": {k: str(v) for k, v in self.details.items()},
        }


@dataclass(frozen=True)
class CostDiscrepancy:
    """A variant whose stored average cost differs from its batches."""

    variant_id: UUID
    aggregate_cost: Decimal
    ledger_cost: Decimal

    @property
    def difference(self) -> Decimal:
        return self.aggregate_cost - self.ledger_cost

    def to_dict(self) -> dict[str, Any]:
        return {
            "variant_id": str(self.variant_id),
            "aggregate_cost": str(self.aggregate_cost),
            "ledger_cost": str(self.ledger_cost),
            "difference": str(self.difference),
        }


@dataclass(frozen=True)
class SummaryReconciliationResult:
    """Outcome of recomputing the summary rows."""

    variants_examined: int
    repairs: tuple[VariantRepair, ...] = ()
    anomalies: tuple[ReconciliationAnomaly, ...] = ()

    @property
    def changed_repairs(self) -> tuple[VariantRepair, ...]:
        return tuple(r for r in self.repairs if r.changed)

    @property
    def variants_updated(self) -> int:
        return len(self.changed_repairs)


@dataclass(frozen=True)
class OrphanCollectionResult:
    """Outcome of removing orphaned movements."""

    removed_movement_ids: tuple[UUID, ...] = ()
    removed_by_kind: dict[str, int] = field(default_factory=dict)
    dry_run: bool = False

    @property
    def movements_removed(self) -> int:
        return len(self.removed_movement_ids)

    def to_dict(self) -> dict[str, Any]:
        return {
            "movements_removed": self.movements_removed,
            "removed_movement_ids": [str(m) for m in self.removed_movement_ids],
            "removed_by_kind": dict(self.removed_by_kind),
            "dry_run": self.dry_run,
        }


@dataclass(frozen=True)
class RepairReport:
    """Complete result of one reconciliation run.

    ``residual_discrepancies`` comes from the verification query executed
    after the repair; an empty tuple means the aggregate now agrees with
    the ledger.
    """

    run_id: UUID
    summaries: SummaryReconciliationResult
    orphans: OrphanCollectionResult
    residual_discrepancies: tuple[QuantityDiscrepancy, ...] = ()
    dry_run: bool = False
    started_at: datetime | None = None
    completed_at: datetime | None = None
    duration_ms: int = 0

    @property
    def variants_examined(self) -> int:
        return self.summaries.variants_examined

    @property
    def variants_updated(self) -> int:
        return self.summaries.variants_updated

    @property
    def repairs(self) -> tuple[VariantRepair, ...]:
        return self.summaries.changed_repairs

    @property
    def anomalies(self) -> tuple[ReconciliationAnomaly, ...]:
        return self.summaries.anomalies

    @property
    def movements_removed(self) -> int:
        return self.orphans.movements_removed

    @property
    def is_clean(self) -> bool:
        return not self.anomalies and not self.residual_discrepancies

    def to_dict(self) -> dict[str, Any]:
        return {
            "run_id": str(self.run_id),
            "dry_run": self.dry_run,
            "started_at": self.started_at.isoformat() if self.started_at else None,
            "completed_at": self.completed_at.isoformat() if self.completed_at else None,
            "duration_ms": self.duration_ms,
            "variants_examined": self.variants_examined,
            "variants_updated": self.variants_updated,
            "repairs": [r.to_dict() for r in self.repairs],
            "movements_removed": self.movements_removed,
            "removed_movement_ids": [str(m) for m in self.orphans.removed_movement_ids],
            "anomalies": [a.to_dict() for a in self.anomalies],
            "residual_discrepancies": [d.as_dict() for d in self.residual_discrepancies],
        }
