"""
Module: inventory_services
Responsibility:
    Stateful orchestration over the inventory engines and kernel: the
    reconciler, the orphan collector, the verifier, and the repair service
    that owns transaction boundaries for a run.

Architecture position:
    Services -- the imperative shell.  May import inventory_engines,
    inventory_kernel and inventory_config.  Only InventoryRepairService
    commits.
"""

from inventory_services.orphan_collector import OrphanCollector
from inventory_services.reconciliation_service import InventoryReconciler
from inventory_services.repair_service import InventoryRepairService
from inventory_services.verification_service import InventoryVerifier

__all__ = [
    "InventoryReconciler",
    "InventoryRepairService",
    "InventoryVerifier",
    "OrphanCollector",
]
