"""
Tests for the cost columns of PurchaseBatch and InventorySummary.

The stored scale of unit_cost and average_cost is COST_SCALE, and the
costing engine rounds averages to that same scale.
"""

from decimal import Decimal
from uuid import uuid4

import pytest
from sqlalchemy import select

from inventory_engines.costing import DEFAULT_COST_PLACES
from inventory_kernel.domain.dtos import COST_SCALE
from inventory_kernel.exceptions import LedgerIntegrityError, UnitCostPrecisionError
from inventory_kernel.models import InventorySummary, PurchaseBatch
from inventory_services.reconciliation_service import InventoryReconciler


class TestColumnScale:
    def test_cost_columns_share_scale(self):
        unit_cost = PurchaseBatch.__table__.c.unit_cost.type
        average_cost = InventorySummary.__table__.c.average_cost.type

        assert unit_cost.scale == COST_SCALE
        assert average_cost.scale == COST_SCALE

    def test_costing_rounds_to_column_scale(self):
        assert DEFAULT_COST_PLACES == COST_SCALE


class TestUnitCostPrecision:
    def test_finer_unit_cost_rejected(self):
        with pytest.raises(UnitCostPrecisionError) as exc_info:
            PurchaseBatch(
                variant_id=uuid4(),
                quantity=3,
                unit_cost=Decimal("1.005"),
                remaining_quantity=3,
            )

        assert exc_info.value.code == "UNIT_COST_PRECISION"
        assert exc_info.value.scale == COST_SCALE
        assert exc_info.value.unit_cost == "1.005"
        assert isinstance(exc_info.value, LedgerIntegrityError)

    def test_reassignment_checked(self, variant_id):
        batch = PurchaseBatch(
            variant_id=variant_id,
            quantity=1,
            unit_cost=Decimal("2.00"),
            remaining_quantity=1,
        )

        with pytest.raises(UnitCostPrecisionError):
            batch.unit_cost = Decimal("2.001")
        assert batch.unit_cost == Decimal("2.00")

    @pytest.mark.parametrize("cost", ["3", "1.5", "1.25", "2.500"])
    def test_costs_within_scale_accepted(self, variant_id, cost):
        batch = PurchaseBatch(
            variant_id=variant_id,
            quantity=1,
            unit_cost=Decimal(cost),
            remaining_quantity=1,
        )
        assert batch.unit_cost == Decimal(cost)

    def test_unit_cost_round_trips(self, ledger, variant_id, session_factory):
        batch = ledger.batch(variant_id, remaining=3, unit_cost="1.25")
        ledger.commit()

        with session_factory() as s:
            stored = s.get(PurchaseBatch, batch.id)
            assert stored.unit_cost == Decimal("1.25")


class TestStoredAverage:
    def test_average_fits_column_and_is_stable(self, ledger, variant_id, session_factory, clock):
        ledger.batch(variant_id, remaining=3, unit_cost="1.25")
        ledger.batch(variant_id, remaining=1, unit_cost="2.01")
        ledger.commit()

        with session_factory() as s:
            InventoryReconciler(s, clock=clock).reconcile_summaries()
            s.commit()

        with session_factory() as s:
            row = s.execute(
                select(InventorySummary).where(InventorySummary.variant_id == variant_id)
            ).scalar_one()
            assert row.total_quantity == 4
            # (3 * 1.25 + 1 * 2.01) / 4 = 1.44
            assert row.average_cost == Decimal("1.44")
            assert row.total_value == Decimal("5.76")

            second = InventoryReconciler(s, clock=clock).reconcile_summaries()
            assert second.variants_updated == 0

    def test_total_value_of_empty_variant(self, ledger, variant_id):
        row = ledger.summary(variant_id, total_quantity=0, average_cost="0")
        assert row.total_value == Decimal("0")
