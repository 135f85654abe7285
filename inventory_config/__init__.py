"""
inventory_config -- single public entrypoint for runtime settings.

Responsibility:
    Provides the ONLY way to obtain settings at runtime through
    ``get_active_settings()``.  Services receive a ``RepairSettings``
    instance and never read files or environment variables themselves.

Invariants enforced:
    - Single entrypoint: all runtime settings flow through
      ``get_active_settings()``.
    - Environment overrides apply to the database URL only, in the order
      INVENTORY_DATABASE_URL, DATABASE_URL, file value.
    - Every successful call emits an ``INVENTORY_CONFIG_TRACE`` log entry
      carrying the checksum of the settings in effect, overrides included
      (never the URL itself, which may hold a password).

Failure modes:
    - ``FileNotFoundError`` -- the requested settings file does not exist.
    - ``yaml.YAMLError`` -- the file is not valid YAML.
    - ``InvalidSettingsError`` -- a value fails validation.
"""

from __future__ import annotations

import logging
import os
from collections.abc import Mapping
from dataclasses import replace
from pathlib import Path

from inventory_config.loader import compute_checksum, load_yaml_file, parse_settings
from inventory_config.schema import (
    DatabaseSettings,
    LoggingSettings,
    ReconciliationSettings,
    RepairSettings,
)

_logger = logging.getLogger("inventory_kernel.config")

DEFAULT_SETTINGS_FILE = Path(__file__).parent / "defaults.yaml"

DATABASE_URL_ENV_VARS = ("INVENTORY_DATABASE_URL", "DATABASE_URL")


def get_active_settings(
    config_path: Path | str | None = None,
    environ: Mapping[str, str] | None = None,
) -> RepairSettings:
    """The ONLY public settings entrypoint.

    Args:
        config_path: YAML settings file.  Defaults to
            inventory_config/defaults.yaml.
        environ: Environment used for overrides (default: os.environ).

    Returns:
        Validated, frozen RepairSettings.
    """
    path = Path(config_path) if config_path is not None else DEFAULT_SETTINGS_FILE
    env = os.environ if environ is None else environ

    settings = parse_settings(load_yaml_file(path), source=str(path))

    for var in DATABASE_URL_ENV_VARS:
        url = env.get(var)
        if url:
            settings = replace(settings, database=replace(settings.database, url=url))
            settings = replace(settings, checksum=compute_checksum(settings))
            break
    else:
        var = None

    _logger.info(
        "INVENTORY_CONFIG_TRACE",
        extra={
            "trace_type": "INVENTORY_CONFIG_TRACE",
            "source": settings.source,
            "checksum": settings.checksum,
            "database_url_override": var,
        },
    )
    return settings


__all__ = [
    "get_active_settings",
    "DEFAULT_SETTINGS_FILE",
    "DatabaseSettings",
    "LoggingSettings",
    "ReconciliationSettings",
    "RepairSettings",
]
