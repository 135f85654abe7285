"""
Typed exception hierarchy for the inventory kernel.

Every error carries a class-level ``code`` (machine-readable, stable across
message rewording) and stores its context as attributes so it survives
logging and JSON serialization.

    InventoryKernelError (base)
    |
    +-- LedgerIntegrityError
    |   +-- NegativeRemainingQuantityError
    |   +-- UnknownMovementKindError
    |   +-- UnitCostPrecisionError
    |
    +-- StoreError
    |   +-- StoreUnavailableError
    |
    +-- ConfigurationError
        +-- InvalidSettingsError
        +-- OrphanPolicyIncompleteError

Category        | Code                         | When Raised
----------------|------------------------------|------------------------------------
Ledger          | NEGATIVE_REMAINING_QUANTITY  | Batch has remaining_quantity < 0
                | UNKNOWN_MOVEMENT_KIND        | Movement kind not in MovementKind
                | UNIT_COST_PRECISION          | Unit cost finer than the stored scale
Store           | STORE_UNAVAILABLE            | Connectivity / transaction conflict
Configuration   | INVALID_SETTINGS             | Settings file fails validation
                | ORPHAN_POLICY_INCOMPLETE     | Movement kind missing from orphan table

Handling:

    try:
        report = repair_service.reconcile()
    except StoreUnavailableError as e:
        if e.retryable:
            schedule_retry(e.operation)

Ledger integrity errors raised while reconciling a single variant are not
propagated; the reconciler records them as anomalies on the repair report and
moves on to the next variant.
"""


class InventoryKernelError(Exception):
    """Base exception for all inventory kernel errors."""

    code: str = "INVENTORY_KERNEL_ERROR"


# Ledger integrity


class LedgerIntegrityError(InventoryKernelError):
    """Base exception for data-integrity violations found in the ledger."""

    code: str = "LEDGER_INTEGRITY_ERROR"


class NegativeRemainingQuantityError(LedgerIntegrityError):
    """
    A purchase batch reports a negative remaining quantity.

    Raised by the costing engine. Upstream consumption workflows must never
    drive a batch below zero, so this is surfaced rather than clamped.
    """

    code: str = "NEGATIVE_REMAINING_QUANTITY"

    def __init__(self, variant_id: str, batch_id: str, remaining_quantity: int):
        self.variant_id = variant_id
        self.batch_id = batch_id
        self.remaining_quantity = remaining_quantity
        super().__init__(
            f"Batch {batch_id} of variant {variant_id} has negative "
            f"remaining quantity {remaining_quantity}"
        )


class UnknownMovementKindError(LedgerIntegrityError):
    """Stock movement carries a kind outside the MovementKind enumeration."""

    code: str = "UNKNOWN_MOVEMENT_KIND"

    def __init__(self, kind: str):
        self.kind = kind
        super().__init__(f"Unknown stock movement kind: {kind!r}")


class UnitCostPrecisionError(LedgerIntegrityError):
    """A unit cost has more decimal places than the cost columns store."""

    code: str = "UNIT_COST_PRECISION"

    def __init__(self, unit_cost: str, scale: int):
        self.unit_cost = unit_cost
        self.scale = scale
        super().__init__(
            f"Unit cost {unit_cost} has more than {scale} decimal places"
        )


# Store


class StoreError(InventoryKernelError):
    """Base exception for ledger / aggregate store failures."""

    code: str = "STORE_ERROR"


class StoreUnavailableError(StoreError):
    """
    A store operation failed on connectivity or a transaction conflict.

    The surrounding transaction has been rolled back. Reconciliation is
    idempotent, so callers may simply run the operation again.
    """

    code: str = "STORE_UNAVAILABLE"

    def __init__(self, operation: str, reason: str, retryable: bool = True):
        self.operation = operation
        self.reason = reason
        self.retryable = retryable
        super().__init__(f"Store unavailable during {operation}: {reason}")


# Configuration


class ConfigurationError(InventoryKernelError):
    """Base exception for configuration errors."""

    code: str = "CONFIGURATION_ERROR"


class InvalidSettingsError(ConfigurationError):
    """Settings failed validation."""

    code: str = "INVALID_SETTINGS"

    def __init__(self, field: str, value: object, reason: str):
        self.field = field
        self.value = value
        self.reason = reason
        super().__init__(f"Invalid setting {field}={value!r}: {reason}")


class OrphanPolicyIncompleteError(ConfigurationError):
    """The orphan eligibility table does not cover every movement kind."""

    code: str = "ORPHAN_POLICY_INCOMPLETE"

    def __init__(self, missing_kinds: list[str]):
        self.missing_kinds = missing_kinds
        super().__init__(
            f"Orphan policy has no entry for movement kind(s): {', '.join(missing_kinds)}"
        )
