"""
inventory_services.reconciliation_service -- Recompute inventory summaries from purchase batches.

Responsibility:
    Overwrite every inventory summary row with the quantity on hand and the
    weighted-average unit cost derived from the variant's purchase batches.
    Summary rows missing for a variant that has batches are created.

Architecture position:
    Services -- stateful orchestration over engines + kernel.
    Reads batches through LedgerSelector, computes through the pure
    costing engine, writes InventorySummary rows.

Invariants enforced:
    - Full recompute: stored values are never used as an input.
    - SAVEPOINT isolation per variant: one variant's failure rolls back
      only that variant's write and is recorded as an anomaly.
    - Idempotence: a second pass over an unchanged ledger reports every
      variant as UNCHANGED.
    - Purchase batches are never written.
    - All timestamps come from the injected Clock.

Failure modes:
    - Ledger integrity errors and other per-variant errors are captured as
      ReconciliationAnomaly entries and do not abort the pass.
    - OperationalError / InterfaceError propagate unchanged; the caller
      rolls back the whole transaction.

Usage:
    reconciler = InventoryReconciler(session, clock=clock)
    result = reconciler.reconcile_summaries()
    session.commit()
"""

from __future__ import annotations

import time
from collections.abc import Collection, Sequence
from datetime import datetime
from decimal import Decimal
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.exc import InterfaceError, OperationalError
from sqlalchemy.orm import Session

from inventory_engines.costing import calculate_costing
from inventory_engines.reconciliation_types import (
    ReconciliationAnomaly,
    SummaryReconciliationResult,
    VariantOutcome,
    VariantRepair,
)
from inventory_kernel.domain.clock import Clock, SystemClock
from inventory_kernel.domain.dtos import BatchPosition
from inventory_kernel.exceptions import InventoryKernelError
from inventory_kernel.logging_config import LogContext, get_logger
from inventory_kernel.models.inventory_summary import InventorySummary
from inventory_kernel.selectors.ledger_selector import LedgerSelector

logger = get_logger("services.reconciliation")


class InventoryReconciler:
    """
    Brings inventory summary rows back in line with the ledger.

    Contract:
        ``reconcile_summaries()`` processes the union of variants that have
        a summary row and variants that have at least one batch, optionally
        restricted to ``variant_ids``.

    Non-goals:
        - Does NOT call ``session.commit()`` -- caller controls boundaries.
        - Does NOT touch stock movements (see OrphanCollector).
    """

    def __init__(
        self,
        session: Session,
        clock: Clock | None = None,
    ):
        self._session = session
        self._clock = clock or SystemClock()
        self._ledger = LedgerSelector(session)

    def reconcile_summaries(
        self,
        variant_ids: Collection[UUID] | None = None,
    ) -> SummaryReconciliationResult:
        """Recompute and overwrite summary rows.

        Args:
            variant_ids: Restrict the pass to these variants.  Variants with
                neither a summary row nor a batch are ignored.

        Returns:
            SummaryReconciliationResult with one VariantRepair per variant
            examined and one anomaly per failed variant.
        """
        t0 = time.monotonic()
        positions = self._ledger.batch_positions_by_variant(variant_ids)
        rows = self._load_summary_rows(variant_ids)

        targets = sorted(set(rows) | set(positions), key=str)

        logger.info(
            "summary_reconciliation_started",
            extra={
                "variant_count": len(targets),
                "restricted": variant_ids is not None,
            },
        )

        now = self._clock.now()
        repairs: list[VariantRepair] = []
        anomalies: list[ReconciliationAnomaly] = []

        for variant_id in targets:
            with LogContext.bind(variant_id=str(variant_id)):
                savepoint = self._session.begin_nested()
                try:
                    repair = self._reconcile_variant(
                        variant_id,
                        positions.get(variant_id, []),
                        rows.get(variant_id),
                        now,
                    )
                    savepoint.commit()
                except (OperationalError, InterfaceError):
                    raise
                except Exception as exc:
                    savepoint.rollback()
                    anomaly = _anomaly_from(variant_id, exc)
                    anomalies.append(anomaly)
                    repairs.append(_failed_repair(variant_id, rows.get(variant_id)))
                    logger.warning(
                        "variant_reconciliation_failed",
                        extra={"error_code": anomaly.code, "error_message": anomaly.message},
                    )
                    continue

                repairs.append(repair)
                if repair.changed:
                    logger.info(
                        "variant_reconciled",
                        extra={
                            "outcome": repair.outcome.value,
                            "old_quantity": repair.old_quantity,
                            "new_quantity": repair.new_quantity,
                            "old_average_cost": repair.old_average_cost,
                            "new_average_cost": repair.new_average_cost,
                        },
                    )

        result = SummaryReconciliationResult(
            variants_examined=len(targets),
            repairs=tuple(repairs),
            anomalies=tuple(anomalies),
        )

        logger.info(
            "summary_reconciliation_completed",
            extra={
                "variants_examined": result.variants_examined,
                "variants_updated": result.variants_updated,
                "anomaly_count": len(result.anomalies),
                "duration_ms": round((time.monotonic() - t0) * 1000, 2),
            },
        )
        return result

    def _load_summary_rows(
        self,
        variant_ids: Collection[UUID] | None,
    ) -> dict[UUID, InventorySummary]:
        query = select(InventorySummary)
        if variant_ids is not None:
            query = query.where(InventorySummary.variant_id.in_(list(variant_ids)))
        return {row.variant_id: row for row in self._session.execute(query).scalars()}

    def _reconcile_variant(
        self,
        variant_id: UUID,
        batches: Sequence[BatchPosition],
        row: InventorySummary | None,
        now: datetime,
    ) -> VariantRepair:
        costing = calculate_costing(
            variant_id=variant_id,
            batches=batches,
        )

        if row is None:
            self._session.add(
                InventorySummary(
                    variant_id=variant_id,
                    total_quantity=costing.total_quantity,
                    average_cost=costing.average_cost,
                    last_updated=now,
                )
            )
            self._session.flush()
            return VariantRepair(
                variant_id=variant_id,
                outcome=VariantOutcome.CREATED,
                new_quantity=costing.total_quantity,
                new_average_cost=costing.average_cost,
            )

        old_quantity = row.total_quantity
        old_average_cost = row.average_cost
        unchanged = (
            old_quantity == costing.total_quantity
            and old_average_cost == costing.average_cost
        )

        row.total_quantity = costing.total_quantity
        row.average_cost = costing.average_cost
        row.last_updated = now
        self._session.flush()

        return VariantRepair(
            variant_id=variant_id,
            outcome=VariantOutcome.UNCHANGED if unchanged else VariantOutcome.UPDATED,
            new_quantity=costing.total_quantity,
            new_average_cost=costing.average_cost,
            old_quantity=old_quantity,
            old_average_cost=old_average_cost,
        )


def _anomaly_from(variant_id: UUID, exc: Exception) -> ReconciliationAnomaly:
    if isinstance(exc, InventoryKernelError):
        details = {
            k: v for k, v in vars(exc).items()
            if not k.startswith("_") and k not in ("args", "variant_id")
        }
        return ReconciliationAnomaly(
            variant_id=variant_id,
            code=exc.code,
            message=str(exc),
            details=details,
        )
    return ReconciliationAnomaly(
        variant_id=variant_id,
        code="UNHANDLED_EXCEPTION",
        message=str(exc),
        details={"exc_type": type(exc).__name__},
    )


def _failed_repair(variant_id: UUID, row: InventorySummary | None) -> VariantRepair:
    # The savepoint rollback expired the row; reading it reloads the stored values.
    old_quantity = row.total_quantity if row is not None else None
    old_average_cost = row.average_cost if row is not None else None
    return VariantRepair(
        variant_id=variant_id,
        outcome=VariantOutcome.FAILED,
        new_quantity=old_quantity or 0,
        new_average_cost=old_average_cost if old_average_cost is not None else Decimal("0"),
        old_quantity=old_quantity,
        old_average_cost=old_average_cost,
    )
