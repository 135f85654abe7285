"""ORM models for the inventory ledger and aggregate stores."""

from inventory_kernel.models.inventory_summary import InventorySummary
from inventory_kernel.models.purchase_batch import PurchaseBatch
from inventory_kernel.models.stock_movement import StockMovement

__all__ = [
    "InventorySummary",
    "PurchaseBatch",
    "StockMovement",
]
