"""
inventory_engines.costing -- Quantity on hand and weighted-average unit cost.

Responsibility:
    Derive the aggregate figures of one variant from its purchase batch
    positions: total quantity on hand and the weighted-average unit cost of
    the stock that remains.

Architecture position:
    Engines -- pure calculation layer, zero I/O.
    May only import inventory_kernel/domain and inventory_kernel/exceptions.
    Consumed by the reconciler and the cost verification pass.

Invariants enforced:
    - total_quantity is the sum of remaining_quantity over ALL batches,
      exhausted ones included (they contribute zero).
    - average_cost is weighted over batches with remaining_quantity > 0
      only.  When no such batch exists the result is Decimal("0") through an
      explicit branch, never through a division.
    - Decimal-only arithmetic.  The cost is quantized to ``cost_places``
      with ROUND_HALF_UP, the same rounding a fixed-scale DECIMAL column
      applies on assignment, so a stored value recomputes to itself.
    - Negative remaining quantity is a ledger integrity violation and is
      raised, never clamped.

Failure modes:
    - NegativeRemainingQuantityError for a batch with remaining < 0.
    - ValueError if a batch belongs to a different variant or cost_places
      is negative.

Usage:
    from inventory_engines.costing import calculate_costing

    result = calculate_costing(variant_id=variant_id, batches=positions)
    summary.total_quantity = result.total_quantity
    summary.average_cost = result.average_cost
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from uuid import UUID

from inventory_engines.tracer import traced_engine
from inventory_kernel.domain.dtos import COST_SCALE, BatchPosition
from inventory_kernel.exceptions import NegativeRemainingQuantityError

DEFAULT_COST_PLACES = COST_SCALE

_ZERO = Decimal("0")


@dataclass(frozen=True)
class CostingResult:
    """Aggregate figures derived for one variant."""

    variant_id: UUID
    total_quantity: int
    average_cost: Decimal
    batch_count: int
    costed_batch_count: int  # Batches with remaining stock

    @property
    def total_value(self) -> Decimal:
        return self.average_cost * self.total_quantity

    @property
    def has_stock(self) -> bool:
        return self.costed_batch_count > 0


def _quantum(cost_places: int) -> Decimal:
    return Decimal(1).scaleb(-cost_places)


def quantize_cost(value: Decimal, cost_places: int = DEFAULT_COST_PLACES) -> Decimal:
    """Round a unit cost to the stored scale."""
    return Decimal(value).quantize(_quantum(cost_places), rounding=ROUND_HALF_UP)


@traced_engine("costing", "1.0", fingerprint_fields=("variant_id", "batches", "cost_places"))
def calculate_costing(
    *,
    variant_id: UUID,
    batches: Sequence[BatchPosition],
    cost_places: int = DEFAULT_COST_PLACES,
) -> CostingResult:
    """
    Compute quantity on hand and weighted-average cost for one variant.

    Formula:
        total_quantity = sum(remaining)
        average_cost   = sum(remaining * unit_cost) / sum(remaining)
                         over batches with remaining > 0

    Args:
        variant_id: Variant the batches belong to.
        batches: Every batch position of the variant (possibly empty).
        cost_places: Decimal places of the stored average cost.

    Returns:
        CostingResult.

    Raises:
        NegativeRemainingQuantityError: A batch has remaining < 0.
        ValueError: A batch belongs to another variant, or cost_places < 0.
    """
    if cost_places < 0:
        raise ValueError(f"cost_places must be >= 0, got {cost_places}")

    total_quantity = 0
    costed_quantity = 0
    costed_value = _ZERO
    costed_batch_count = 0

    for batch in batches:
        if batch.variant_id != variant_id:
            raise ValueError(
                f"Batch {batch.batch_id} belongs to variant {batch.variant_id}, "
                f"not {variant_id}"
            )
        if batch.remaining_quantity < 0:
            raise NegativeRemainingQuantityError(
                variant_id=str(variant_id),
                batch_id=str(batch.batch_id),
                remaining_quantity=batch.remaining_quantity,
            )

        total_quantity += batch.remaining_quantity
        if batch.remaining_quantity > 0:
            costed_quantity += batch.remaining_quantity
            costed_value += Decimal(batch.unit_cost) * batch.remaining_quantity
            costed_batch_count += 1

    if costed_quantity == 0:
        average_cost = quantize_cost(_ZERO, cost_places)
    else:
        average_cost = quantize_cost(costed_value / costed_quantity, cost_places)

    return CostingResult(
        variant_id=variant_id,
        total_quantity=total_quantity,
        average_cost=average_cost,
        batch_count=len(batches),
        costed_batch_count=costed_batch_count,
    )
