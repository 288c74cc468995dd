# src/capshare/plugins/builtin/save_file.py
"""Save to Disk share service.

Copies the exported file into the directory configured for the plugin.

Export options used:
    file_path: Path of the rendered export (required)
    file_name: Name for the saved copy (defaults to the rendered file's name)
"""

from __future__ import annotations

import asyncio
import shutil
from pathlib import Path

import structlog

from capshare.plugins.context import ExportContext
from capshare.plugins.fields import BooleanField, StringField
from capshare.plugins.service import PluginDefinition

logger = structlog.get_logger(__name__)

DEFAULT_SAVE_DIRECTORY = "~/Movies/Capshare"


def _target_path(ctx: ExportContext) -> tuple[Path, Path]:
    source = ctx.file_path
    if source is None:
        raise ValueError("Export options must include `file_path`")

    directory = Path(str(ctx.config.get("directory", DEFAULT_SAVE_DIRECTORY))).expanduser()
    file_name = ctx.get("file_name") or source.name
    return source, directory / file_name


def _copy(source: Path, target: Path, overwrite: bool) -> None:
    if not source.is_file():
        raise FileNotFoundError(f"Exported file not found: {source}")
    if target.exists() and not overwrite:
        raise FileExistsError(f"{target} already exists (enable `overwrite` to replace it)")
    target.parent.mkdir(parents=True, exist_ok=True)
    shutil.copy2(source, target)


async def save_file(ctx: ExportContext) -> None:
    """Copy the exported file into the configured directory."""
    source, target = _target_path(ctx)
    overwrite = ctx.config.get("overwrite", False) is True

    await asyncio.to_thread(_copy, source, target, overwrite)
    logger.info("Saved export", source=str(source), target=str(target))


SAVE_FILE = PluginDefinition(
    title="Save to Disk",
    formats=frozenset({"gif", "mp4", "webm", "apng"}),
    action=save_file,
    plugin_name="save-file",
    config={
        "directory": StringField(
            "Save location",
            required=True,
            default=DEFAULT_SAVE_DIRECTORY,
            min_length=1,
            description="Directory exports are copied into",
        ),
        "overwrite": BooleanField(
            "Overwrite existing files",
            default=False,
        ),
    },
)
