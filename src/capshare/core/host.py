# src/capshare/core/host.py
"""Capabilities the host application exposes to share services.

The runtime never looks the host up globally; a HostNotifier is handed to
each ShareService when it is constructed. All calls are fire-and-forget.
"""

from __future__ import annotations

from collections.abc import Mapping
from enum import Enum
from pathlib import Path
from typing import Any, Protocol, runtime_checkable

import structlog
import typer


class Surface(str, Enum):
    """Logical UI surfaces that receive events."""

    EDITOR = "editor"
    MAIN = "main"


class HostEvent(str, Enum):
    """Named events sent to the host."""

    TOGGLE_FORMAT_BUTTONS = "toggle-format-buttons"  # editor, {"enabled": bool}
    START_EXPORT = "start-export"  # main
    END_EXPORT = "end-export"  # main
    HIDE_EXPORT_WINDOW = "hide-export-window"  # main


@runtime_checkable
class HostNotifier(Protocol):
    """Channel from the runtime to the host UI."""

    def send(
        self,
        surface: Surface,
        event: HostEvent,
        payload: Mapping[str, Any] | None = None,
    ) -> None:
        """Send a named event to a UI surface."""
        ...

    def show_error(self, title: str, message: str) -> None:
        """Show an error dialog."""
        ...

    def open_path(self, path: Path) -> None:
        """Open a file in the platform's default viewer/editor."""
        ...


class ConsoleHost:
    """HostNotifier for command-line use.

    UI events become log lines, error dialogs are printed to stderr, and
    paths are opened with the platform launcher.
    """

    def __init__(self, *, launch: bool = True) -> None:
        self._launch = launch
        self._logger = structlog.get_logger(__name__)

    def send(
        self,
        surface: Surface,
        event: HostEvent,
        payload: Mapping[str, Any] | None = None,
    ) -> None:
        self._logger.info(
            "Host event",
            surface=surface.value,
            host_event=event.value,
            payload=dict(payload) if payload else None,
        )

    def show_error(self, title: str, message: str) -> None:
        typer.secho(title, fg=typer.colors.RED, bold=True, err=True)
        typer.echo(message, err=True)

    def open_path(self, path: Path) -> None:
        if not self._launch:
            typer.echo(f"Edit the config at: {path}", err=True)
            return
        typer.echo(f"Opening {path}", err=True)
        typer.launch(str(path))
