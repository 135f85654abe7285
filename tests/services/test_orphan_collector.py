"""
Tests for inventory_services.orphan_collector.

Orphans are produced the way the ledger produces them: a movement whose
batch_id is NULL (ON DELETE SET NULL, or a batch-less adjustment) and a
movement whose batch_id points at a batch id that does not exist.
"""

from uuid import uuid4

import pytest
from sqlalchemy import select

from inventory_kernel.domain.movement_kind import MovementKind
from inventory_kernel.models import StockMovement
from inventory_services.orphan_collector import OrphanCollector


@pytest.fixture
def collector(session):
    return OrphanCollector(session)


def _remaining_ids(session) -> set:
    return set(session.execute(select(StockMovement.id)).scalars().all())


class TestSelectivity:
    def test_purchase_removed_sale_kept(self, session, ledger, collector, variant_id):
        purchase = ledger.movement(variant_id, MovementKind.PURCHASE, batch_id=None, quantity=10)
        sale = ledger.movement(variant_id, MovementKind.SALE, batch_id=None, quantity=-2)

        result = collector.collect_orphans()

        assert result.removed_movement_ids == (purchase.id,)
        assert _remaining_ids(session) == {sale.id}

    def test_dangling_reference_treated_as_orphan(self, session, ledger, collector, variant_id):
        dangling = ledger.movement(variant_id, MovementKind.PURCHASE, batch_id=uuid4())

        result = collector.collect_orphans()

        assert result.movements_removed == 1
        assert dangling.id not in _remaining_ids(session)

    def test_adjustment_in_removed(self, session, ledger, collector, variant_id):
        adj = ledger.movement(variant_id, MovementKind.ADJUSTMENT_IN, batch_id=None)

        result = collector.collect_orphans()

        assert result.removed_by_kind == {"adjustment_in": 1}
        assert adj.id not in _remaining_ids(session)

    @pytest.mark.parametrize(
        "kind",
        [MovementKind.SALE, MovementKind.ADJUSTMENT_OUT, MovementKind.MANUAL_ADJUSTMENT],
    )
    def test_ineligible_kinds_survive_dangling(self, session, ledger, collector, variant_id, kind):
        kept_null = ledger.movement(variant_id, kind, batch_id=None, quantity=-1)
        kept_dangling = ledger.movement(variant_id, kind, batch_id=uuid4(), quantity=-1)

        result = collector.collect_orphans()

        assert result.movements_removed == 0
        assert _remaining_ids(session) == {kept_null.id, kept_dangling.id}

    def test_movement_with_live_batch_kept(self, session, ledger, collector, variant_id):
        batch = ledger.batch(variant_id, remaining=5, unit_cost="1.00")
        live = ledger.movement(variant_id, MovementKind.PURCHASE, batch_id=batch.id, quantity=5)

        result = collector.collect_orphans()

        assert result.movements_removed == 0
        assert _remaining_ids(session) == {live.id}


class TestBehaviour:
    def test_idempotent(self, ledger, collector, variant_id):
        ledger.movement(variant_id, MovementKind.PURCHASE, batch_id=None)

        first = collector.collect_orphans()
        second = collector.collect_orphans()

        assert first.movements_removed == 1
        assert second.movements_removed == 0

    def test_dry_run_deletes_nothing(self, session, ledger, collector, variant_id):
        orphan = ledger.movement(variant_id, MovementKind.PURCHASE, batch_id=None)

        result = collector.collect_orphans(dry_run=True)

        assert result.dry_run
        assert result.removed_movement_ids == (orphan.id,)
        assert orphan.id in _remaining_ids(session)

    def test_deletes_in_chunks(self, session, ledger, variant_id):
        orphans = [
            ledger.movement(variant_id, MovementKind.PURCHASE, batch_id=None)
            for _ in range(7)
        ]
        collector = OrphanCollector(session, chunk_size=3)

        result = collector.collect_orphans()

        assert result.movements_removed == 7
        assert set(result.removed_movement_ids) == {m.id for m in orphans}
        assert _remaining_ids(session) == set()

    def test_invalid_chunk_size(self, session):
        with pytest.raises(ValueError, match="chunk_size"):
            OrphanCollector(session, chunk_size=0)

    def test_removal_logged(self, ledger, collector, variant_id, captured_logs):
        ledger.movement(variant_id, MovementKind.PURCHASE, batch_id=None)

        collector.collect_orphans()

        records = [r for r in captured_logs() if r["message"] == "orphan_movements_removed"]
        assert len(records) == 1
        assert records[0]["movement_count"] == 1
        assert records[0]["by_kind"] == {"purchase": 1}
