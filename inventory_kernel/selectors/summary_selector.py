"""
Module: inventory_kernel.selectors.summary_selector
Responsibility: Read-only queries over the aggregate store, including the
    verification query that compares each summary row with the quantity
    re-derived from purchase batches.
Architecture position: Kernel > Selectors.

Verification semantics:
    Summary rows are LEFT OUTER JOINed to purchase batches, so a variant with
    no batches still appears with ledger_quantity = 0.  Only rows with a
    non-zero difference are produced.  An empty result means the aggregate
    agrees with the ledger.
"""

from collections.abc import Collection, Iterator
from uuid import UUID

from sqlalchemy import func, select

from inventory_kernel.domain.dtos import QuantityDiscrepancy, SummarySnapshot
from inventory_kernel.models.inventory_summary import InventorySummary
from inventory_kernel.models.purchase_batch import PurchaseBatch
from inventory_kernel.selectors.base import BaseSelector


class SummarySelector(BaseSelector[InventorySummary]):
    """Selector for inventory summary rows."""

    def snapshots(
        self,
        variant_ids: Collection[UUID] | None = None,
    ) -> dict[UUID, SummarySnapshot]:
        """Stored summary state keyed by variant."""
        query = select(InventorySummary)
        if variant_ids is not None:
            query = query.where(InventorySummary.variant_id.in_(list(variant_ids)))
        return {
            row.variant_id: row.to_snapshot()
            for row in self.session.execute(query).scalars()
        }

    def quantity_discrepancies(
        self,
        variant_ids: Collection[UUID] | None = None,
    ) -> Iterator[QuantityDiscrepancy]:
        """Lazily yield summary rows whose quantity differs from the ledger.

        Each call issues a fresh query, so the iterator can be restarted by
        calling the method again.
        """
        ledger_quantity = func.coalesce(func.sum(PurchaseBatch.remaining_quantity), 0)

        query = (
            select(
                InventorySummary.variant_id,
                InventorySummary.total_quantity,
                ledger_quantity.label("ledger_quantity"),
            )
            .select_from(InventorySummary)
            .outerjoin(PurchaseBatch, PurchaseBatch.variant_id == InventorySummary.variant_id)
            .group_by(InventorySummary.variant_id, InventorySummary.total_quantity)
            .having(InventorySummary.total_quantity - ledger_quantity != 0)
            .order_by(InventorySummary.variant_id)
        )
        if variant_ids is not None:
            query = query.where(InventorySummary.variant_id.in_(list(variant_ids)))

        for variant_id, aggregate_quantity, ledger_total in self.session.execute(query):
            yield QuantityDiscrepancy(
                variant_id=variant_id,
                aggregate_quantity=int(aggregate_quantity),
                ledger_quantity=int(ledger_total),
            )
