"""
inventory_services.verification_service -- Read-only drift detection.

Responsibility:
    Report variants whose inventory summary disagrees with the ledger.
    ``verify()`` compares quantities in the database (LEFT JOIN + HAVING);
    ``cost_discrepancies()`` recomputes the weighted-average cost through
    the costing engine and compares it with the stored value.

Architecture position:
    Services -- read-only, never writes, never commits.

Invariants enforced:
    - Both methods are lazy generators; calling again re-runs the query.
    - An empty result from verify() immediately after a committed
      reconciliation is the correctness criterion of that run.
"""

from __future__ import annotations

from collections.abc import Collection, Iterator
from uuid import UUID

from sqlalchemy.orm import Session

from inventory_engines.costing import calculate_costing
from inventory_engines.reconciliation_types import CostDiscrepancy
from inventory_kernel.domain.dtos import QuantityDiscrepancy
from inventory_kernel.exceptions import LedgerIntegrityError
from inventory_kernel.logging_config import get_logger
from inventory_kernel.selectors.ledger_selector import LedgerSelector
from inventory_kernel.selectors.summary_selector import SummarySelector

logger = get_logger("services.verification")


class InventoryVerifier:
    """Compares the aggregate store with the ledger store."""

    def __init__(self, session: Session):
        self._session = session
        self._ledger = LedgerSelector(session)
        self._summaries = SummarySelector(session)

    def verify(
        self,
        variant_ids: Collection[UUID] | None = None,
    ) -> Iterator[QuantityDiscrepancy]:
        """Yield variants whose stored quantity differs from the batch sum."""
        count = 0
        for discrepancy in self._summaries.quantity_discrepancies(variant_ids):
            count += 1
            yield discrepancy
        logger.info("quantity_verification_completed", extra={"discrepancy_count": count})

    def cost_discrepancies(
        self,
        variant_ids: Collection[UUID] | None = None,
    ) -> Iterator[CostDiscrepancy]:
        """Yield variants whose stored average cost differs from the batches.

        Variants whose batches violate ledger integrity are skipped; the
        reconciler reports those as anomalies.
        """
        snapshots = self._summaries.snapshots(variant_ids)
        positions = self._ledger.batch_positions_by_variant(list(snapshots))

        for variant_id in sorted(snapshots, key=str):
            snapshot = snapshots[variant_id]
            try:
                costing = calculate_costing(
                    variant_id=variant_id,
                    batches=positions.get(variant_id, []),
                )
            except LedgerIntegrityError as exc:
                logger.warning(
                    "cost_verification_skipped",
                    extra={"variant_id": str(variant_id), "error_code": exc.code},
                )
                continue
            if snapshot.average_cost != costing.average_cost:
                yield CostDiscrepancy(
                    variant_id=variant_id,
                    aggregate_cost=snapshot.average_cost,
                    ledger_cost=costing.average_cost,
                )
