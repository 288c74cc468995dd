# src/capshare/plugins/context.py
"""Export context.

The ExportContext is the request object handed to a share service's action
for a single export. It is created by ShareService.run(), passed to exactly
one action call, and returned to the caller once the run has finished.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path
from types import MappingProxyType
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from capshare.core.config_store import ConfigRecord
    from capshare.plugins.errors import ActionError


@dataclass
class ExportContext:
    """Context passed to a share service's action.

    Provides access to:
    - Export options (format, file_path, width, height, fps, loop, ...)
    - The plugin's persisted config record
    - The cooperative cancellation flag

    Example:
        async def action(ctx: ExportContext) -> None:
            if not ctx.config.get("token"):
                ctx.cancel()
                return
            await upload(ctx.file_path, quality=ctx.config.get("quality"))
    """

    export_options: Mapping[str, Any]
    plugin_name: str
    config: ConfigRecord
    canceled: bool = False

    # Set by ShareService.run() when the action raised
    error: ActionError | None = field(default=None)

    def __post_init__(self) -> None:
        # Own copy; the caller's options object is never aliased
        self.export_options = MappingProxyType(dict(self.export_options))

    def cancel(self) -> None:
        """Mark the export as canceled by the action."""
        self.canceled = True

    def get(self, key: str, default: Any = None) -> Any:
        """Get an export option by name."""
        return self.export_options.get(key, default)

    @property
    def format(self) -> str | None:
        return self.export_options.get("format")

    @property
    def file_path(self) -> Path | None:
        value = self.export_options.get("file_path")
        return Path(value) if value is not None else None
