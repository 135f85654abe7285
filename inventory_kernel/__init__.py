"""
Inventory Kernel

Ledger and aggregate persistence for inventory reconciliation:
- Purchase batches and stock movements (the ledger)
- Per-variant inventory summaries (the materialized aggregate)
- Structured logging, typed errors, deterministic clocks
"""

__version__ = "0.1.0"
