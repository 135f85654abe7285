"""Selectors for the inventory kernel (read side)."""

from inventory_kernel.selectors.ledger_selector import LedgerSelector
from inventory_kernel.selectors.summary_selector import QuantityDiscrepancy, SummarySelector

__all__ = [
    "LedgerSelector",
    "SummarySelector",
    "QuantityDiscrepancy",
]
