"""
inventory_services.repair_service -- Invocation surface for a reconciliation run.

Responsibility:
    Own the transaction boundaries of a repair run: recompute the summary
    rows in one transaction, collect orphaned movements in a second one,
    then run the verification query against the committed state and return
    a RepairReport.

Architecture position:
    Services -- the imperative shell.  Creates sessions through the
    injected session factory and commits through ``session_scope``.
    Composes InventoryReconciler, OrphanCollector and InventoryVerifier.

Invariants enforced:
    - Each step commits atomically or not at all.  A dry run rolls both
      steps back, so it never changes either store.
    - The recompute transaction reads one snapshot of the batch set
      (REPEATABLE READ on PostgreSQL, configurable).
    - Store failures surface as StoreUnavailableError (retryable); the
      failed step has been rolled back.
    - Every log line of a run carries its run_id and the step it belongs
      to (reconcile_summaries or collect_orphans).

Usage:
    service = InventoryRepairService(get_session_factory(), settings=settings.reconciliation)
    report = service.reconcile()
    if not report.is_clean:
        ...
"""

from __future__ import annotations

import time
from collections.abc import Callable, Collection, Iterator
from typing import TypeVar
from uuid import UUID, uuid4

from sqlalchemy.exc import InterfaceError, OperationalError
from sqlalchemy.orm import Session, sessionmaker

from inventory_config.schema import ReconciliationSettings
from inventory_engines.reconciliation_types import (
    CostDiscrepancy,
    OrphanCollectionResult,
    RepairReport,
)
from inventory_kernel.db.engine import session_scope
from inventory_kernel.domain.clock import Clock, SystemClock
from inventory_kernel.domain.dtos import QuantityDiscrepancy
from inventory_kernel.exceptions import StoreUnavailableError
from inventory_kernel.logging_config import LogContext, get_logger
from inventory_services.orphan_collector import OrphanCollector
from inventory_services.reconciliation_service import InventoryReconciler
from inventory_services.verification_service import InventoryVerifier

logger = get_logger("services.repair")

T = TypeVar("T")

_STORE_ERRORS = (OperationalError, InterfaceError)


def _store_unavailable(operation: str, exc: Exception) -> StoreUnavailableError:
    reason = str(getattr(exc, "orig", None) or exc)
    logger.error(
        "store_unavailable",
        extra={"operation": operation, "reason": reason},
    )
    return StoreUnavailableError(operation=operation, reason=reason, retryable=True)


class InventoryRepairService:
    """
    Runs reconciliation, orphan collection and verification.

    Contract:
        - ``reconcile()`` repairs the aggregate store and reports residual
          drift.
        - ``collect_orphans()`` runs orphan collection alone.
        - ``verify()`` / ``verify_costs()`` are read-only and lazy.
    """

    def __init__(
        self,
        session_factory: sessionmaker[Session],
        clock: Clock | None = None,
        settings: ReconciliationSettings | None = None,
    ):
        self._session_factory = session_factory
        self._clock = clock or SystemClock()
        self._settings = settings or ReconciliationSettings()

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    def reconcile(
        self,
        variant_ids: Collection[UUID] | None = None,
        dry_run: bool = False,
    ) -> RepairReport:
        """Recompute summaries, collect orphans, then verify.

        Args:
            variant_ids: Restrict recompute and verification to these
                variants.  Orphan collection is always global.
            dry_run: Compute everything, commit nothing.

        Raises:
            StoreUnavailableError: A step failed on connectivity or a
                transaction conflict.  Steps committed before it stay
                committed; re-running is safe.
        """
        run_id = uuid4()
        started_at = self._clock.now()
        t0 = time.monotonic()

        with LogContext.bind(run_id=str(run_id)):
            logger.info(
                "repair_started",
                extra={
                    "dry_run": dry_run,
                    "variant_filter": None if variant_ids is None else len(variant_ids),
                },
            )

            summaries = self._run_step(
                "reconcile_summaries",
                lambda session: InventoryReconciler(
                    session,
                    clock=self._clock,
                ).reconcile_summaries(variant_ids),
                dry_run=dry_run,
                snapshot=True,
            )

            if self._settings.collect_orphans:
                orphans = self._collect(dry_run)
            else:
                orphans = OrphanCollectionResult(dry_run=dry_run)

            residual = tuple(self.verify(variant_ids))

            duration_ms = int((time.monotonic() - t0) * 1000)
            report = RepairReport(
                run_id=run_id,
                summaries=summaries,
                orphans=orphans,
                residual_discrepancies=residual,
                dry_run=dry_run,
                started_at=started_at,
                completed_at=self._clock.now(),
                duration_ms=duration_ms,
            )

            log = logger.info if report.is_clean else logger.warning
            log(
                "repair_completed",
                extra={
                    "dry_run": dry_run,
                    "variants_examined": report.variants_examined,
                    "variants_updated": report.variants_updated,
                    "movements_removed": report.movements_removed,
                    "anomaly_count": len(report.anomalies),
                    "residual_discrepancy_count": len(residual),
                    "duration_ms": duration_ms,
                },
            )
        return report

    def collect_orphans(self, dry_run: bool = False) -> OrphanCollectionResult:
        """Run orphan collection in its own transaction."""
        with LogContext.bind(run_id=str(uuid4())):
            return self._collect(dry_run)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def verify(
        self,
        variant_ids: Collection[UUID] | None = None,
    ) -> Iterator[QuantityDiscrepancy]:
        """Lazily yield quantity discrepancies from a fresh session."""
        return self._stream(
            "verify",
            lambda session: InventoryVerifier(session).verify(variant_ids),
        )

    def verify_costs(
        self,
        variant_ids: Collection[UUID] | None = None,
    ) -> Iterator[CostDiscrepancy]:
        """Lazily yield average cost discrepancies from a fresh session."""
        return self._stream(
            "verify_costs",
            lambda session: InventoryVerifier(session).cost_discrepancies(variant_ids),
        )

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    def _collect(self, dry_run: bool) -> OrphanCollectionResult:
        return self._run_step(
            "collect_orphans",
            lambda session: OrphanCollector(
                session,
                chunk_size=self._settings.orphan_delete_chunk_size,
            ).collect_orphans(dry_run=dry_run),
            dry_run=dry_run,
        )

    def _run_step(
        self,
        operation: str,
        work: Callable[[Session], T],
        *,
        dry_run: bool,
        snapshot: bool = False,
    ) -> T:
        try:
            with LogContext.bind(step=operation), session_scope(self._session_factory) as session:
                if snapshot:
                    self._begin_snapshot(session)
                result = work(session)
                if dry_run:
                    session.rollback()
                    logger.info("dry_run_rolled_back", extra={"operation": operation})
            return result
        except _STORE_ERRORS as exc:
            raise _store_unavailable(operation, exc) from exc

    def _stream(
        self,
        operation: str,
        query: Callable[[Session], Iterator[T]],
    ) -> Iterator[T]:
        session = self._session_factory()
        try:
            yield from query(session)
        except _STORE_ERRORS as exc:
            raise _store_unavailable(operation, exc) from exc
        finally:
            session.close()

    def _begin_snapshot(self, session: Session) -> None:
        isolation = self._settings.snapshot_isolation
        if isolation is None:
            return
        if session.get_bind().dialect.name != "postgresql":
            return
        # Must be the first use of the session so the level applies to its transaction.
        session.connection(execution_options={"isolation_level": isolation})
        logger.debug("snapshot_isolation_requested", extra={"isolation_level": isolation})
