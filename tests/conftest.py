# tests/conftest.py
"""Shared test fixtures and helpers.

This module provides a recording HostNotifier, a virtual-time scheduler and
a temporary config store so share-service runs can be asserted precisely.

Hypothesis Configuration:
- "ci" profile: Fast tests for CI (100 examples) - default
- "nightly" profile: Thorough tests (1000 examples)
- "debug" profile: Minimal tests with verbose output (10 examples)

Set profile via environment variable:
    HYPOTHESIS_PROFILE=nightly pytest tests/
"""

import logging
import os
from collections.abc import Callable, Iterator, Mapping
from pathlib import Path
from typing import Any

import pytest
import structlog
from hypothesis import HealthCheck, Phase, Verbosity, settings

from capshare.core.config_store import JsonConfigStore
from capshare.core.host import HostEvent, Surface
from capshare.core.scheduler import ManualScheduler
from capshare.plugins.service import ShareService

# =============================================================================
# Hypothesis Configuration
# =============================================================================

_SUPPRESSED = [HealthCheck.function_scoped_fixture]

# CI profile: Fast tests for continuous integration
settings.register_profile(
    "ci",
    max_examples=100,
    phases=[Phase.explicit, Phase.reuse, Phase.generate, Phase.shrink],
    deadline=None,  # Disable deadline for CI (timing varies)
    suppress_health_check=_SUPPRESSED,
)

# Nightly profile: Thorough testing for scheduled runs
settings.register_profile(
    "nightly",
    max_examples=1000,
    phases=[Phase.explicit, Phase.reuse, Phase.generate, Phase.shrink],
    deadline=None,
    suppress_health_check=_SUPPRESSED,
)

# Debug profile: Minimal examples with verbose output for debugging
settings.register_profile(
    "debug",
    max_examples=10,
    verbosity=Verbosity.verbose,
    phases=[Phase.explicit, Phase.reuse, Phase.generate, Phase.shrink],
    deadline=None,
    suppress_health_check=_SUPPRESSED,
)

# Load profile from environment, default to "ci"
settings.load_profile(os.getenv("HYPOTHESIS_PROFILE", "ci"))


class RecordingHost:
    """HostNotifier that records every call in order.

    `calls` holds tuples:
        ("send", surface, event, payload)
        ("show_error", title, message)
        ("open_path", path)
    """

    def __init__(self) -> None:
        self.calls: list[tuple[Any, ...]] = []

    def send(
        self,
        surface: Surface,
        event: HostEvent,
        payload: Mapping[str, Any] | None = None,
    ) -> None:
        self.calls.append(("send", surface, event, dict(payload) if payload else None))

    def show_error(self, title: str, message: str) -> None:
        self.calls.append(("show_error", title, message))

    def open_path(self, path: Path) -> None:
        self.calls.append(("open_path", path))

    def events(self) -> list[str]:
        """Compact event names in send order, e.g. "toggle:off", "start-export"."""
        names = []
        for call in self.calls:
            if call[0] != "send":
                continue
            _, _, event, payload = call
            if event is HostEvent.TOGGLE_FORMAT_BUTTONS:
                names.append("toggle:on" if payload["enabled"] else "toggle:off")
            else:
                names.append(event.value)
        return names

    def errors(self) -> list[tuple[str, str]]:
        return [(c[1], c[2]) for c in self.calls if c[0] == "show_error"]

    def opened(self) -> list[Path]:
        return [c[1] for c in self.calls if c[0] == "open_path"]


@pytest.fixture
def host() -> RecordingHost:
    return RecordingHost()


@pytest.fixture
def scheduler() -> ManualScheduler:
    return ManualScheduler()


@pytest.fixture
def config_dir(tmp_path: Path) -> Path:
    return tmp_path / "plugins"


@pytest.fixture
def config_store(config_dir: Path) -> JsonConfigStore:
    return JsonConfigStore(config_dir)


async def noop_action(ctx: Any) -> None:
    """Action that does nothing."""


def _gif_definition(**overrides: Any) -> dict[str, Any]:
    definition: dict[str, Any] = {
        "title": "GIF",
        "formats": ["gif"],
        "plugin_name": "gif",
        "config": {"quality": {"title": "Quality", "default": 75}},
        "action": noop_action,
    }
    definition.update(overrides)
    return definition


@pytest.fixture
def gif_definition() -> Callable[..., dict[str, Any]]:
    """Factory for the GIF share-service definition, with overrides."""
    return _gif_definition


@pytest.fixture
def make_service(
    host: RecordingHost,
    config_store: JsonConfigStore,
    scheduler: ManualScheduler,
) -> Callable[..., ShareService]:
    """Build a ShareService wired to the recording host and manual scheduler."""

    def factory(definition: Any = None, **overrides: Any) -> ShareService:
        if definition is None:
            definition = _gif_definition(**overrides)
        return ShareService(
            definition,
            host=host,
            config_store=config_store,
            scheduler=scheduler,
        )

    return factory


@pytest.fixture(autouse=True)
def _restore_logging() -> Iterator[None]:
    """Undo logging configuration done by CLI invocations."""
    root_handlers = logging.root.handlers[:]
    root_level = logging.root.level
    yield
    logging.root.handlers[:] = root_handlers
    logging.root.setLevel(root_level)
    structlog.reset_defaults()
