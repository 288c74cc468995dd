# src/capshare/core/config_store.py
"""
Persisted per-plugin config records.

Each share service owns one record, keyed by its plugin name. The record is
seeded with the plugin's schema defaults the first time the plugin is
registered, edited by the user afterwards, and re-read before every export.

No locking: two exports of the same plugin running at once read and write
the record independently.
"""

from __future__ import annotations

import json
import logging
import os
import re
import tempfile
from collections.abc import Mapping
from pathlib import Path
from typing import Any, Protocol, runtime_checkable

from capshare.plugins.errors import ConfigStoreError

logger = logging.getLogger(__name__)

# Plugin names become file names; anything else is replaced
_UNSAFE_NAME_CHARS = re.compile(r"[^A-Za-z0-9._@-]")


@runtime_checkable
class ConfigRecord(Protocol):
    """A plugin's persisted config values."""

    name: str
    path: Path

    def read(self) -> dict[str, Any]:
        """Return a fresh copy of all stored values.

        Raises:
            ConfigStoreError: If the stored record cannot be read
        """
        ...

    def get(self, key: str, default: Any = None) -> Any:
        """Return one stored value, or default if absent."""
        ...

    def set(self, key: str, value: Any) -> None:
        """Store one value."""
        ...


@runtime_checkable
class ConfigStore(Protocol):
    """Protocol for config record backends."""

    def open(self, name: str, defaults: Mapping[str, Any]) -> ConfigRecord:
        """Open (creating if needed) the record for a plugin.

        Args:
            name: Plugin name the record is keyed by
            defaults: Values written for every key the record lacks

        Returns:
            The plugin's record
        """
        ...


class JsonConfigRecord:
    """Config record stored as a JSON object in a single file."""

    def __init__(self, name: str, path: Path) -> None:
        self.name = name
        self.path = path

    def __repr__(self) -> str:
        return f"JsonConfigRecord(name={self.name!r}, path={str(self.path)!r})"

    def read(self) -> dict[str, Any]:
        if not self.path.exists():
            return {}
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, UnicodeDecodeError) as e:
            raise ConfigStoreError(self.path, str(e)) from e
        except json.JSONDecodeError as e:
            raise ConfigStoreError(self.path, f"invalid JSON ({e})") from e
        if not isinstance(data, dict):
            raise ConfigStoreError(
                self.path, f"expected a JSON object, found {type(data).__name__}"
            )
        return data

    def get(self, key: str, default: Any = None) -> Any:
        return self.read().get(key, default)

    def set(self, key: str, value: Any) -> None:
        data = self.read()
        data[key] = value
        self.write(data)

    def write(self, data: Mapping[str, Any]) -> None:
        """Replace the whole record atomically."""
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(
            prefix=f".{self.path.name}.", suffix=".tmp", dir=self.path.parent
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(dict(data), f, indent="\t", sort_keys=True)
                f.write("\n")
            os.replace(tmp_name, self.path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise


class JsonConfigStore:
    """Stores each plugin's record as ``<base_path>/<plugin name>.json``."""

    def __init__(self, base_path: Path) -> None:
        """Initialize the store.

        Args:
            base_path: Directory holding one JSON file per plugin
        """
        self.base_path = base_path

    def path_for(self, name: str) -> Path:
        """Deterministic location of a plugin's record."""
        safe = _UNSAFE_NAME_CHARS.sub("_", name).lstrip(".")
        if not safe:
            raise ValueError(f"Cannot derive a config file name from {name!r}")
        return self.base_path / f"{safe}.json"

    def open(self, name: str, defaults: Mapping[str, Any]) -> JsonConfigRecord:
        record = JsonConfigRecord(name, self.path_for(name))

        try:
            existing = record.read()
        except ConfigStoreError as e:
            # Leave a broken file alone so the user can fix it; run() reports it
            logger.warning("Not seeding unreadable config for %s: %s", name, e.reason)
            return record

        missing = {key: value for key, value in defaults.items() if key not in existing}
        if missing or not record.path.exists():
            record.write({**missing, **existing})
            logger.debug(
                "Seeded config for %s with defaults: %s", name, sorted(missing)
            )
        return record
