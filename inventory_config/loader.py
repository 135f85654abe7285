"""
Settings loader (``inventory_config.loader``).

Responsibility
--------------
Loads a YAML settings file and parses it into the frozen dataclasses of
``inventory_config.schema``.  Runtime callers go through
``inventory_config.get_active_settings()`` instead of calling this module.

Invariants enforced
-------------------
* Unknown keys are rejected, so a misspelt option cannot silently fall
  back to its default.
* Every value is type- and range-checked; violations raise
  ``InvalidSettingsError`` naming the dotted field.
* ``compute_checksum`` produces a deterministic SHA-256 hash of the parsed
  settings for the config trace.

Failure modes
-------------
* Missing YAML file  -> ``FileNotFoundError`` propagates.
* Malformed YAML  -> ``yaml.YAMLError`` propagates.
"""

from __future__ import annotations

import hashlib
import json
from dataclasses import asdict, fields
from pathlib import Path
from typing import Any

import yaml

from inventory_config.schema import (
    DatabaseSettings,
    LoggingSettings,
    ReconciliationSettings,
    RepairSettings,
)
from inventory_kernel.exceptions import InvalidSettingsError

_LOG_LEVELS = frozenset({"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"})
_ISOLATION_LEVELS = frozenset({"READ COMMITTED", "REPEATABLE READ", "SERIALIZABLE"})


def load_yaml_file(path: Path) -> dict[str, Any]:
    """
    Load a single YAML file and return its contents as a dict.

    Raises:
        FileNotFoundError: if the file does not exist.
        yaml.YAMLError: if the file contains invalid YAML.
        InvalidSettingsError: if the top level is not a mapping.
    """
    with open(path) as f:
        data = yaml.safe_load(f) or {}
    if not isinstance(data, dict):
        raise InvalidSettingsError("<root>", type(data).__name__, "expected a mapping")
    return data


def _section(data: dict[str, Any], name: str) -> dict[str, Any]:
    value = data.get(name) or {}
    if not isinstance(value, dict):
        raise InvalidSettingsError(name, value, "expected a mapping")
    return value


def _reject_unknown(prefix: str, data: dict[str, Any], cls: type) -> None:
    known = {f.name for f in fields(cls)}
    for key in data:
        if key not in known:
            raise InvalidSettingsError(f"{prefix}.{key}", data[key], "unknown setting")


def _int(prefix: str, data: dict[str, Any], key: str, default: int, minimum: int) -> int:
    value = data.get(key, default)
    if isinstance(value, bool) or not isinstance(value, int):
        raise InvalidSettingsError(f"{prefix}.{key}", value, "expected an integer")
    if value < minimum:
        raise InvalidSettingsError(f"{prefix}.{key}", value, f"must be >= {minimum}")
    return value


def _bool(prefix: str, data: dict[str, Any], key: str, default: bool) -> bool:
    value = data.get(key, default)
    if not isinstance(value, bool):
        raise InvalidSettingsError(f"{prefix}.{key}", value, "expected true or false")
    return value


def parse_database(data: dict[str, Any]) -> DatabaseSettings:
    _reject_unknown("database", data, DatabaseSettings)
    defaults = DatabaseSettings()
    url = data.get("url", defaults.url)
    if not isinstance(url, str) or not url.strip():
        raise InvalidSettingsError("database.url", url, "expected a non-empty URL")
    return DatabaseSettings(
        url=url,
        echo=_bool("database", data, "echo", defaults.echo),
        pool_size=_int("database", data, "pool_size", defaults.pool_size, 1),
        max_overflow=_int("database", data, "max_overflow", defaults.max_overflow, 0),
        pool_timeout=_int("database", data, "pool_timeout", defaults.pool_timeout, 1),
        pool_recycle=_int("database", data, "pool_recycle", defaults.pool_recycle, -1),
    )


def parse_reconciliation(data: dict[str, Any]) -> ReconciliationSettings:
    _reject_unknown("reconciliation", data, ReconciliationSettings)
    defaults = ReconciliationSettings()

    isolation = data.get("snapshot_isolation", defaults.snapshot_isolation)
    if isolation is not None:
        if not isinstance(isolation, str) or isolation.upper() not in _ISOLATION_LEVELS:
            raise InvalidSettingsError(
                "reconciliation.snapshot_isolation",
                isolation,
                f"expected one of {sorted(_ISOLATION_LEVELS)} or null",
            )
        isolation = isolation.upper()

    return ReconciliationSettings(
        orphan_delete_chunk_size=_int(
            "reconciliation", data, "orphan_delete_chunk_size",
            defaults.orphan_delete_chunk_size, 1,
        ),
        collect_orphans=_bool("reconciliation", data, "collect_orphans", defaults.collect_orphans),
        snapshot_isolation=isolation,
    )


def parse_logging(data: dict[str, Any]) -> LoggingSettings:
    _reject_unknown("logging", data, LoggingSettings)
    level = data.get("level", LoggingSettings().level)
    if not isinstance(level, str) or level.upper() not in _LOG_LEVELS:
        raise InvalidSettingsError("logging.level", level, f"expected one of {sorted(_LOG_LEVELS)}")
    return LoggingSettings(level=level.upper())


def parse_settings(data: dict[str, Any], source: str | None = None) -> RepairSettings:
    """Parse a settings mapping into RepairSettings (checksum included)."""
    for key in data:
        if key not in ("database", "reconciliation", "logging"):
            raise InvalidSettingsError(key, data[key], "unknown section")

    settings = RepairSettings(
        database=parse_database(_section(data, "database")),
        reconciliation=parse_reconciliation(_section(data, "reconciliation")),
        logging=parse_logging(_section(data, "logging")),
        source=source,
    )
    return RepairSettings(
        database=settings.database,
        reconciliation=settings.reconciliation,
        logging=settings.logging,
        source=source,
        checksum=compute_checksum(settings),
    )


def compute_checksum(settings: RepairSettings) -> str:
    """SHA-256 over the parsed sections (source and checksum excluded)."""
    payload = {
        "database": asdict(settings.database),
        "reconciliation": asdict(settings.reconciliation),
        "logging": asdict(settings.logging),
    }
    canonical = json.dumps(payload, sort_keys=True, default=str)
    return hashlib.sha256(canonical.encode("utf-8")).hexdigest()
