"""
Module: inventory_kernel.selectors.ledger_selector
Responsibility: Read-only queries over the ledger store: purchase batch
    positions grouped by variant and orphaned stock movements.
Architecture position: Kernel > Selectors.

Failure modes:
    - UnknownMovementKindError if a movement row carries a kind outside
      MovementKind (only possible when the CHECK constraint is absent).

Audit relevance:
    Purchase batches are the source of truth for stock on hand.  Everything
    the reconciler writes into the aggregate store is derived from
    batch_positions_by_variant(); nothing is derived from movements.
"""

from collections import defaultdict
from collections.abc import Collection, Iterable
from uuid import UUID

from sqlalchemy import select

from inventory_kernel.domain.dtos import BatchPosition, MovementRef
from inventory_kernel.domain.movement_kind import MovementKind
from inventory_kernel.models.purchase_batch import PurchaseBatch
from inventory_kernel.models.stock_movement import StockMovement
from inventory_kernel.selectors.base import BaseSelector


class LedgerSelector(BaseSelector[PurchaseBatch]):
    """
    Selector for the ledger store (purchase batches and stock movements).

    Guarantees:
        - Batch positions are returned per variant in creation order.
        - Quantities are ints, unit costs Decimal (never float).
    """

    def batch_positions_by_variant(
        self,
        variant_ids: Collection[UUID] | None = None,
    ) -> dict[UUID, list[BatchPosition]]:
        """Load every batch position, grouped by variant.

        Args:
            variant_ids: Restrict to these variants.  None means all.
        """
        query = select(PurchaseBatch).order_by(
            PurchaseBatch.variant_id,
            PurchaseBatch.created_at,
            PurchaseBatch.id,
        )
        if variant_ids is not None:
            query = query.where(PurchaseBatch.variant_id.in_(list(variant_ids)))

        grouped: dict[UUID, list[BatchPosition]] = defaultdict(list)
        for batch in self.session.execute(query).scalars():
            grouped[batch.variant_id].append(batch.to_position())
        return dict(grouped)

    def orphaned_movements(
        self,
        eligible_kinds: Iterable[MovementKind],
    ) -> list[MovementRef]:
        """Movements of the given kinds whose batch reference is absent.

        Absent covers both a NULL batch_id and a batch_id that points at a
        batch which no longer exists.
        """
        kinds = [kind.value for kind in eligible_kinds]
        if not kinds:
            return []

        query = (
            select(StockMovement)
            .outerjoin(PurchaseBatch, PurchaseBatch.id == StockMovement.batch_id)
            .where(StockMovement.kind.in_(kinds))
            .where(PurchaseBatch.id.is_(None))
            .order_by(StockMovement.created_at, StockMovement.id)
        )
        return [movement.to_ref() for movement in self.session.execute(query).scalars()]
