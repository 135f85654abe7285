"""
Pure domain layer.

Data transfer objects, the movement kind enumeration and the clock
abstraction.  NO dependencies on the ORM, the database, or I/O.
"""

from inventory_kernel.domain.clock import Clock, DeterministicClock, SystemClock
from inventory_kernel.domain.dtos import (
    COST_SCALE,
    BatchPosition,
    MovementRef,
    QuantityDiscrepancy,
    SummarySnapshot,
)
from inventory_kernel.domain.movement_kind import MovementKind

__all__ = [
    "Clock",
    "DeterministicClock",
    "SystemClock",
    "COST_SCALE",
    "BatchPosition",
    "MovementRef",
    "QuantityDiscrepancy",
    "SummarySnapshot",
    "MovementKind",
]
