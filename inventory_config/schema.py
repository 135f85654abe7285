"""
RepairSettings schema.

Frozen dataclasses that the loader builds from YAML.  Defaults here match
``defaults.yaml`` so a partial file only needs to name what it changes.
"""

from __future__ import annotations

from dataclasses import dataclass, field

# ---------------------------------------------------------------------------
# Sections
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class DatabaseSettings:
    """Connection settings passed to init_engine_from_url()."""

    url: str = "sqlite:///inventory.db"
    echo: bool = False
    pool_size: int = 5
    max_overflow: int = 5
    pool_timeout: int = 30
    pool_recycle: int = 1800


@dataclass(frozen=True)
class ReconciliationSettings:
    """Behaviour of a repair run."""

    orphan_delete_chunk_size: int = 500
    collect_orphans: bool = True
    # Isolation requested for the recompute transaction on PostgreSQL.
    # None keeps the engine default.
    snapshot_isolation: str | None = "REPEATABLE READ"


@dataclass(frozen=True)
class LoggingSettings:
    level: str = "INFO"


# ---------------------------------------------------------------------------
# Root
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class RepairSettings:
    """Complete runtime settings of the reconciliation engine."""

    database: DatabaseSettings = field(default_factory=DatabaseSettings)
    reconciliation: ReconciliationSettings = field(default_factory=ReconciliationSettings)
    logging: LoggingSettings = field(default_factory=LoggingSettings)
    source: str | None = None  # Path the settings were loaded from
    checksum: str = ""
