"""
Module: inventory_engines
Responsibility:
    Pure calculation layer of the inventory reconciliation engine: costing,
    the orphan eligibility policy, and the immutable result types of a
    repair run.

Architecture position:
    Engines -- zero I/O.  May only import inventory_kernel.domain and
    inventory_kernel.exceptions.  MUST NOT import inventory_services.

Invariants enforced:
    - Engines never read the clock; timestamps are supplied by services.
    - Decimal-only arithmetic for costs.
    - Identical inputs always produce identical outputs.
"""

from inventory_engines.costing import CostingResult, calculate_costing, quantize_cost
from inventory_engines.orphan_policy import ORPHAN_ELIGIBLE_KINDS, is_orphan_eligible
from inventory_engines.reconciliation_types import (
    CostDiscrepancy,
    OrphanCollectionResult,
    ReconciliationAnomaly,
    RepairReport,
    SummaryReconciliationResult,
    VariantOutcome,
    VariantRepair,
)
from inventory_engines.tracer import traced_engine

__all__ = [
    "CostingResult",
    "calculate_costing",
    "quantize_cost",
    "ORPHAN_ELIGIBLE_KINDS",
    "is_orphan_eligible",
    "CostDiscrepancy",
    "OrphanCollectionResult",
    "ReconciliationAnomaly",
    "RepairReport",
    "SummaryReconciliationResult",
    "VariantOutcome",
    "VariantRepair",
    "traced_engine",
]
