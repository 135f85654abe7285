"""Tests for inventory_services.verification_service."""

from decimal import Decimal
from uuid import uuid4

import pytest

from inventory_kernel.domain.dtos import QuantityDiscrepancy
from inventory_services.reconciliation_service import InventoryReconciler
from inventory_services.verification_service import InventoryVerifier


@pytest.fixture
def verifier(session):
    return InventoryVerifier(session)


class TestQuantityVerification:
    def test_reports_drift(self, ledger, verifier, variant_id):
        ledger.batch(variant_id, remaining=10, unit_cost="2.00")
        ledger.batch(variant_id, remaining=5, unit_cost="8.00")
        ledger.summary(variant_id, total_quantity=999)

        discrepancies = list(verifier.verify())

        assert discrepancies == [
            QuantityDiscrepancy(variant_id=variant_id, aggregate_quantity=999, ledger_quantity=15)
        ]
        assert discrepancies[0].difference == 984

    def test_converges_after_reconcile(self, session, ledger, verifier, clock, variant_id):
        ledger.batch(variant_id, remaining=10, unit_cost="2.00")
        ledger.batch(variant_id, remaining=5, unit_cost="8.00")
        ledger.summary(variant_id, total_quantity=999)

        InventoryReconciler(session, clock=clock).reconcile_summaries()

        assert list(verifier.verify()) == []

    def test_summary_without_batches_compared_to_zero(self, ledger, verifier, variant_id):
        ledger.summary(variant_id, total_quantity=4)

        (discrepancy,) = verifier.verify()

        assert discrepancy.ledger_quantity == 0
        assert discrepancy.difference == 4

    def test_agreeing_rows_not_reported(self, ledger, verifier, variant_id):
        ledger.batch(variant_id, remaining=3, unit_cost="1.00")
        ledger.batch(variant_id, remaining=0, unit_cost="1.00", quantity=4)
        ledger.summary(variant_id, total_quantity=3, average_cost="1.00")

        assert list(verifier.verify()) == []

    def test_restricted_to_variant_ids(self, ledger, verifier):
        a, b = uuid4(), uuid4()
        ledger.summary(a, total_quantity=1)
        ledger.summary(b, total_quantity=1)

        assert [d.variant_id for d in verifier.verify([a])] == [a]

    def test_restartable(self, ledger, verifier, variant_id):
        ledger.summary(variant_id, total_quantity=1)

        assert len(list(verifier.verify())) == 1
        assert len(list(verifier.verify())) == 1

    def test_read_only(self, session, ledger, verifier, variant_id):
        ledger.summary(variant_id, total_quantity=1)

        list(verifier.verify())

        assert not session.dirty
        assert not session.new


class TestCostVerification:
    def test_reports_cost_drift(self, ledger, verifier, variant_id):
        ledger.batch(variant_id, remaining=10, unit_cost="2.00")
        ledger.batch(variant_id, remaining=5, unit_cost="8.00")
        ledger.summary(variant_id, total_quantity=15, average_cost="3.00")

        (discrepancy,) = verifier.cost_discrepancies()

        assert discrepancy.aggregate_cost == Decimal("3.00")
        assert discrepancy.ledger_cost == Decimal("4.00")

    def test_matching_cost_not_reported(self, ledger, verifier, variant_id):
        ledger.batch(variant_id, remaining=10, unit_cost="2.00")
        ledger.summary(variant_id, total_quantity=10, average_cost="2.00")

        assert list(verifier.cost_discrepancies()) == []

    def test_integrity_violation_skipped(self, ledger, verifier, variant_id, captured_logs):
        ledger.batch(variant_id, remaining=-1, unit_cost="2.00", quantity=1)
        ledger.summary(variant_id, total_quantity=0, average_cost="9.00")

        assert list(verifier.cost_discrepancies()) == []
        assert any(r["message"] == "cost_verification_skipped" for r in captured_logs())
