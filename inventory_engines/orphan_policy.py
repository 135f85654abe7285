"""
inventory_engines.orphan_policy -- Which movement kinds may be collected as orphans.

A stock movement is orphaned when the purchase batch it references no longer
exists.  Whether an orphan is *removed* depends on its kind:

    purchase           yes  The receipt is meaningless without its batch.
    adjustment_in      yes  Recorded against a batch by batch creation and
                            edits; dangling once the batch is gone.
    sale               no   Sales history outlives the lot it consumed.
    adjustment_out     no   Written on batch deletion itself; it is the
                            audit record of the deletion.
    manual_adjustment  no   Defect write-downs carry their own value.

The table below is exhaustive over MovementKind and is checked when this
module is imported, so adding a kind without deciding its policy fails fast.
"""

from __future__ import annotations

from inventory_kernel.domain.movement_kind import MovementKind
from inventory_kernel.exceptions import OrphanPolicyIncompleteError

_ORPHAN_POLICY: dict[MovementKind, bool] = {
    MovementKind.PURCHASE: True,
    MovementKind.ADJUSTMENT_IN: True,
    MovementKind.SALE: False,
    MovementKind.ADJUSTMENT_OUT: False,
    MovementKind.MANUAL_ADJUSTMENT: False,
}


def _check_policy_complete(policy: dict[MovementKind, bool]) -> None:
    missing = [kind.value for kind in MovementKind if kind not in policy]
    if missing:
        raise OrphanPolicyIncompleteError(missing)


_check_policy_complete(_ORPHAN_POLICY)

ORPHAN_ELIGIBLE_KINDS: frozenset[MovementKind] = frozenset(
    kind for kind, eligible in _ORPHAN_POLICY.items() if eligible
)


def is_orphan_eligible(kind: MovementKind) -> bool:
    """True if an orphaned movement of this kind should be removed."""
    return _ORPHAN_POLICY[kind]
