"""
inventory_services.orphan_collector -- Remove stock movements whose purchase batch is gone.

Responsibility:
    Find movements of an orphan-eligible kind (see
    inventory_engines.orphan_policy) whose batch reference is NULL or points
    at a batch that no longer exists, and delete them by identifier.

Architecture position:
    Services -- orchestration over the orphan policy engine and the ledger
    selector.

Invariants enforced:
    - Only eligible kinds are ever deleted; sale, adjustment_out and
      manual_adjustment movements survive even with a dangling reference.
    - Deletion is by primary key, in chunks, so the statement size stays
      bounded on large backlogs.
    - Idempotent: a second pass finds nothing to remove.

Non-goals:
    - Does NOT call ``session.commit()``.
    - Does NOT adjust summary rows; movements are not an input to costing.
"""

from __future__ import annotations

from collections import Counter
from collections.abc import Iterator, Sequence
from uuid import UUID

from sqlalchemy import delete
from sqlalchemy.orm import Session

from inventory_engines.orphan_policy import ORPHAN_ELIGIBLE_KINDS, is_orphan_eligible
from inventory_engines.reconciliation_types import OrphanCollectionResult
from inventory_kernel.domain.dtos import MovementRef
from inventory_kernel.logging_config import get_logger
from inventory_kernel.models.stock_movement import StockMovement
from inventory_kernel.selectors.ledger_selector import LedgerSelector

logger = get_logger("services.orphan_collector")

DEFAULT_CHUNK_SIZE = 500


def _chunked(ids: Sequence[UUID], size: int) -> Iterator[Sequence[UUID]]:
    for start in range(0, len(ids), size):
        yield ids[start:start + size]


class OrphanCollector:
    """Deletes orphaned purchase and adjustment-in movements."""

    def __init__(self, session: Session, chunk_size: int = DEFAULT_CHUNK_SIZE):
        if chunk_size < 1:
            raise ValueError(f"chunk_size must be >= 1, got {chunk_size}")
        self._session = session
        self._chunk_size = chunk_size
        self._ledger = LedgerSelector(session)

    def find_orphans(self) -> list[MovementRef]:
        """Orphaned movements that the policy allows to be removed."""
        candidates = self._ledger.orphaned_movements(ORPHAN_ELIGIBLE_KINDS)
        return [ref for ref in candidates if is_orphan_eligible(ref.kind)]

    def collect_orphans(self, dry_run: bool = False) -> OrphanCollectionResult:
        """Delete orphaned movements.

        Args:
            dry_run: Report what would be removed without deleting.
        """
        orphans = self.find_orphans()
        ids = [ref.movement_id for ref in orphans]
        by_kind = Counter(ref.kind.value for ref in orphans)

        if ids and not dry_run:
            for chunk in _chunked(ids, self._chunk_size):
                self._session.execute(
                    delete(StockMovement).where(StockMovement.id.in_(list(chunk)))
                )

        logger.info(
            "orphan_movements_removed" if not dry_run else "orphan_movements_found",
            extra={
                "movement_count": len(ids),
                "by_kind": dict(by_kind),
                "dry_run": dry_run,
            },
        )

        return OrphanCollectionResult(
            removed_movement_ids=tuple(ids),
            removed_by_kind=dict(by_kind),
            dry_run=dry_run,
        )
