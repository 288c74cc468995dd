# src/capshare/plugins/errors.py
"""Error taxonomy for share-service plugins.

Only construction-time errors (MissingKeyError, InvalidDefinitionError,
SchemaDeclarationError) are ever raised to the code registering a plugin.
Everything discovered while running an export is recovered inside
ShareService.run().
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path


class ShareServiceError(Exception):
    """Base class for all share-service errors."""


class MissingKeyError(ShareServiceError, KeyError):
    """Raised when a plugin definition lacks a required top-level key.

    Attributes:
        key: Name of the missing key (e.g. "plugin_name")
    """

    def __init__(self, key: str) -> None:
        self.key = key
        super().__init__(f"Missing required key `{key}`")

    def __str__(self) -> str:
        # KeyError would otherwise render the repr of the message
        return str(self.args[0])


class InvalidDefinitionError(ShareServiceError):
    """Raised when a plugin definition value has the wrong shape.

    Attributes:
        key: Definition key holding the bad value (e.g. "formats")
        reason: Human-readable description of the problem
    """

    def __init__(self, key: str, reason: str) -> None:
        self.key = key
        self.reason = reason
        super().__init__(f"Plugin definition `{key}` {reason}")


class SchemaDeclarationError(ShareServiceError):
    """Raised when a config field descriptor is malformed.

    Attributes:
        field: Name of the offending field
        reason: Human-readable description of the problem
    """

    def __init__(self, field: str, reason: str) -> None:
        self.field = field
        self.reason = reason
        super().__init__(f"Config schema item `{field}` {reason}")


@dataclass(frozen=True)
class ConfigIssue:
    """A single problem found while validating a stored config.

    Attributes:
        path: Dotted path of the offending field ("" for the whole record)
        message: What is wrong with it
    """

    path: str
    message: str

    def __str__(self) -> str:
        return f"Config `{self.path}` {self.message}"


class ConfigValidationError(ShareServiceError):
    """Stored plugin config does not satisfy the plugin's schema."""

    def __init__(self, plugin_name: str, issues: list[ConfigIssue]) -> None:
        if not issues:
            raise ValueError("ConfigValidationError requires at least one issue")
        self.plugin_name = plugin_name
        self.issues = list(issues)
        super().__init__(f"{plugin_name}: {self.issues[0]}")

    @property
    def first(self) -> ConfigIssue:
        """The issue reported to the user."""
        return self.issues[0]


class ConfigStoreError(ShareServiceError):
    """A persisted config record could not be read."""

    def __init__(self, path: Path, reason: str) -> None:
        self.path = path
        self.reason = reason
        super().__init__(f"Cannot read config {path}: {reason}")


class ActionError(ShareServiceError):
    """Wraps an exception raised by a plugin's export action.

    Never raised out of ShareService.run(); recorded on the ExportContext
    so callers can inspect what went wrong.
    """

    def __init__(self, plugin_name: str, original: Exception) -> None:
        self.plugin_name = plugin_name
        self.original = original
        super().__init__(
            f"Action of plugin {plugin_name} failed: "
            f"{type(original).__name__}: {original}"
        )
