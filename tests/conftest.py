"""
Pytest fixtures for the inventory reconciliation test suite.

Provides:
- File-backed SQLite database per test (SAVEPOINT recipe installed)
- Session factory / session fixtures
- Deterministic clock
- Ledger builder for purchase batches, stock movements and summaries
- Structured log capture

A file-backed database is used instead of :memory: because the repair
service opens its own sessions and must see data committed by the test.
Tests that mix the ``session`` fixture with the repair service commit
their setup first and read results back through ``read_summaries`` /
``read_movement_ids`` (fresh sessions), so no read lock is held while the
service writes.
"""

import json
import logging
from collections.abc import Callable
from datetime import datetime, timezone
from decimal import Decimal
from io import StringIO
from uuid import UUID, uuid4

import pytest
from sqlalchemy import create_engine, select
from sqlalchemy.orm import Session, sessionmaker

from inventory_kernel.db.engine import create_tables, enable_sqlite_savepoints
from inventory_kernel.domain.clock import DeterministicClock
from inventory_kernel.domain.dtos import SummarySnapshot
from inventory_kernel.domain.movement_kind import MovementKind
from inventory_kernel.logging_config import (
    LogContext,
    StructuredFormatter,
    configure_logging,
    reset_logging,
)
from inventory_kernel.models import InventorySummary, PurchaseBatch, StockMovement


# =============================================================================
# Logging fixtures
# =============================================================================


@pytest.fixture(autouse=True, scope="session")
def _configure_test_logging():
    """Configure structured logging for the test suite."""
    reset_logging()
    configure_logging(level=logging.DEBUG)
    yield
    reset_logging()


@pytest.fixture(autouse=True)
def _clear_log_context():
    """Clear LogContext between tests to prevent cross-test contamination."""
    LogContext.clear()
    yield
    LogContext.clear()


@pytest.fixture
def captured_logs():
    """
    Capture inventory_kernel logs as parsed JSON dicts.

    Usage::

        def test_something(captured_logs, reconciler):
            reconciler.reconcile_summaries()
            logs = captured_logs()
            assert any(r["message"] == "variant_reconciled" for r in logs)
    """
    stream = StringIO()
    handler = logging.StreamHandler(stream)
    handler.setFormatter(StructuredFormatter())
    root = logging.getLogger("inventory_kernel")
    previous_level = root.level
    root.setLevel(logging.DEBUG)
    root.addHandler(handler)

    def _get_records() -> list[dict]:
        lines = stream.getvalue().strip().split("\n")
        return [json.loads(line) for line in lines if line]

    yield _get_records

    root.removeHandler(handler)
    root.setLevel(previous_level)


# =============================================================================
# Database fixtures
# =============================================================================


@pytest.fixture
def database_url(tmp_path) -> str:
    return f"sqlite:///{tmp_path / 'inventory.db'}"


@pytest.fixture
def engine(database_url):
    eng = enable_sqlite_savepoints(create_engine(database_url))
    create_tables(eng)
    yield eng
    eng.dispose()


@pytest.fixture
def session_factory(engine) -> sessionmaker[Session]:
    return sessionmaker(bind=engine, expire_on_commit=False)


@pytest.fixture
def session(session_factory):
    s = session_factory()
    try:
        yield s
    finally:
        s.rollback()
        s.close()


@pytest.fixture
def clock():
    return DeterministicClock(
        fixed_time=datetime(2026, 3, 1, 9, 30, 0, tzinfo=timezone.utc),
    )


# =============================================================================
# Ledger builder
# =============================================================================


class LedgerBuilder:
    """Writes ledger and aggregate rows for a test."""

    def __init__(self, session: Session):
        self.session = session

    def batch(
        self,
        variant_id: UUID,
        remaining: int,
        unit_cost: str | Decimal,
        quantity: int | None = None,
    ) -> PurchaseBatch:
        batch = PurchaseBatch(
            variant_id=variant_id,
            quantity=quantity if quantity is not None else max(remaining, 1),
            unit_cost=Decimal(unit_cost),
            remaining_quantity=remaining,
        )
        self.session.add(batch)
        self.session.flush()
        return batch

    def movement(
        self,
        variant_id: UUID,
        kind: MovementKind,
        batch_id: UUID | None = None,
        quantity: int = 1,
        reason: str | None = None,
    ) -> StockMovement:
        movement = StockMovement(
            variant_id=variant_id,
            batch_id=batch_id,
            kind=kind.value,
            quantity=quantity,
            reason=reason,
        )
        self.session.add(movement)
        self.session.flush()
        return movement

    def summary(
        self,
        variant_id: UUID,
        total_quantity: int = 0,
        average_cost: str | Decimal = "0",
        low_stock_threshold: int | None = 5,
    ) -> InventorySummary:
        row = InventorySummary(
            variant_id=variant_id,
            total_quantity=total_quantity,
            average_cost=Decimal(average_cost),
            low_stock_threshold=low_stock_threshold,
        )
        self.session.add(row)
        self.session.flush()
        return row

    def commit(self) -> None:
        self.session.commit()


@pytest.fixture
def ledger(session) -> LedgerBuilder:
    return LedgerBuilder(session)


@pytest.fixture
def variant_id() -> UUID:
    return uuid4()


@pytest.fixture
def read_summaries(session_factory) -> Callable[[], dict[UUID, SummarySnapshot]]:
    """Read committed summary rows through a fresh session."""

    def _read() -> dict[UUID, SummarySnapshot]:
        with session_factory() as s:
            rows = s.execute(select(InventorySummary)).scalars().all()
            return {row.variant_id: row.to_snapshot() for row in rows}

    return _read


@pytest.fixture
def read_movement_ids(session_factory) -> Callable[[], set[UUID]]:
    """Read committed stock movement ids through a fresh session."""

    def _read() -> set[UUID]:
        with session_factory() as s:
            return set(s.execute(select(StockMovement.id)).scalars().all())

    return _read
