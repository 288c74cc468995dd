# src/capshare/plugins/service.py
"""Share service: a registered export destination and its run lifecycle.

run() validates the stored config, builds an ExportContext, calls the
plugin's action, and keeps the host UI in step:

    editor  toggle-format-buttons {"enabled": False}
    main    start-export          (after a short delay, unless canceled)
    main    end-export | hide-export-window
    editor  toggle-format-buttons {"enabled": True}

The format buttons are always re-enabled, and no exception raised by an
action ever reaches the caller of run().
"""

from __future__ import annotations

import copy
import dataclasses
import inspect
import traceback
from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass
from types import MappingProxyType
from typing import TYPE_CHECKING, Any

import structlog

from capshare.core.config import DEFAULT_START_EXPORT_DELAY
from capshare.core.host import HostEvent, Surface
from capshare.core.scheduler import AsyncioScheduler
from capshare.plugins.context import ExportContext
from capshare.plugins.errors import (
    ActionError,
    ConfigIssue,
    ConfigStoreError,
    ConfigValidationError,
    InvalidDefinitionError,
    MissingKeyError,
)
from capshare.plugins.fields import FieldDescriptor
from capshare.plugins.schema import CompiledSchema, compile_schema

if TYPE_CHECKING:
    from capshare.core.config_store import ConfigRecord, ConfigStore
    from capshare.core.host import HostNotifier
    from capshare.core.scheduler import ScheduledCall, Scheduler

# Plain functions and coroutine functions are both accepted
Action = Callable[[ExportContext], Any]

REQUIRED_KEYS: tuple[str, ...] = ("title", "formats", "action", "plugin_name")


@dataclass(frozen=True)
class PluginDefinition:
    """Immutable registration record for a share service.

    Construction copies every caller-supplied structure: `formats` becomes
    a frozenset and `config` a read-only mapping of deep-copied field
    descriptors, so later changes to the plugin's objects are not seen.
    """

    title: str
    formats: frozenset[str]
    action: Action
    plugin_name: str
    config: Mapping[str, FieldDescriptor | Mapping[str, Any]] = dataclasses.field(
        default_factory=lambda: MappingProxyType({})
    )

    def __post_init__(self) -> None:
        if not isinstance(self.plugin_name, str) or not self.plugin_name:
            raise InvalidDefinitionError("plugin_name", "must be a non-empty string")
        object.__setattr__(self, "formats", _normalize_formats(self.formats))
        object.__setattr__(self, "config", _copy_config(self.config))

    @classmethod
    def from_mapping(cls, definition: Mapping[str, Any]) -> PluginDefinition:
        """Create a definition from a plugin's registration mapping.

        Args:
            definition: Mapping with title, formats, action, plugin_name and
                an optional config mapping

        Returns:
            A new definition that shares no mutable state with the input

        Raises:
            MissingKeyError: If a required key is absent
            InvalidDefinitionError: If the input is not a mapping, or
                formats, plugin_name or config has the wrong shape
        """
        if not isinstance(definition, Mapping):
            raise InvalidDefinitionError(
                "<definition>", f"must be a mapping, got {type(definition).__name__}"
            )
        for key in REQUIRED_KEYS:
            if key not in definition:
                raise MissingKeyError(key)

        return cls(
            title=definition["title"],
            formats=definition["formats"],
            action=definition["action"],
            plugin_name=definition["plugin_name"],
            config=definition.get("config") or {},
        )


def _normalize_formats(value: Any) -> frozenset[str]:
    if isinstance(value, str):
        return frozenset({value})
    if not isinstance(value, Iterable):
        raise InvalidDefinitionError(
            "formats", f"must be a collection of strings, got {type(value).__name__}"
        )
    try:
        formats = frozenset(value)
    except TypeError:
        raise InvalidDefinitionError("formats", "must contain only strings") from None
    if not all(isinstance(fmt, str) for fmt in formats):
        raise InvalidDefinitionError("formats", "must contain only strings")
    return formats


def _copy_config(
    config: Any,
) -> Mapping[str, FieldDescriptor | Mapping[str, Any]]:
    if not isinstance(config, Mapping):
        raise InvalidDefinitionError(
            "config", f"must be a mapping, got {type(config).__name__}"
        )
    return MappingProxyType({name: copy.deepcopy(field) for name, field in config.items()})


class ShareService:
    """A registered export destination.

    Usage:
        service = ShareService(
            {
                "title": "GIF",
                "formats": ["gif"],
                "plugin_name": "gif",
                "config": {"quality": {"title": "Quality", "default": 75}},
                "action": action,
            },
            host=host,
            config_store=JsonConfigStore(config_dir),
        )
        context = await service.run({"format": "gif", "file_path": "/tmp/a.gif"})
    """

    def __init__(
        self,
        definition: PluginDefinition | Mapping[str, Any],
        *,
        host: HostNotifier,
        config_store: ConfigStore,
        scheduler: Scheduler | None = None,
        start_export_delay: float = DEFAULT_START_EXPORT_DELAY,
    ) -> None:
        """Register a share service.

        Args:
            definition: PluginDefinition or its mapping form
            host: Host UI capabilities
            config_store: Backend for the plugin's persisted config
            scheduler: Runs the delayed start-export announcement
            start_export_delay: Seconds to wait before announcing the export

        Raises:
            MissingKeyError: If a required definition key is absent
            InvalidDefinitionError: If a definition value has the wrong shape,
                or plugin_name cannot key a config record
            SchemaDeclarationError: If a config field descriptor is malformed
        """
        if not isinstance(definition, PluginDefinition):
            definition = PluginDefinition.from_mapping(definition)
        self.definition = definition

        self.title = definition.title
        self.formats = definition.formats
        self.plugin_name = definition.plugin_name
        self._action = definition.action

        if start_export_delay < 0:
            raise ValueError(f"start_export_delay must be >= 0, got {start_export_delay}")

        self._host = host
        self._scheduler: Scheduler = scheduler or AsyncioScheduler()
        self._start_export_delay = start_export_delay
        self._logger = structlog.get_logger(__name__).bind(plugin=self.plugin_name)

        self.schema: CompiledSchema = compile_schema(definition.config)
        try:
            self.config: ConfigRecord = config_store.open(
                self.plugin_name, self.schema.defaults
            )
        except ValueError as e:
            raise InvalidDefinitionError("plugin_name", str(e)) from e

    def __repr__(self) -> str:
        return f"ShareService(plugin_name={self.plugin_name!r}, formats={sorted(self.formats)})"

    def supports(self, export_format: str) -> bool:
        return export_format in self.formats

    def show_error(self, err: BaseException) -> None:
        """Show an error dialog carrying the full traceback of err."""
        self._host.show_error(
            f"Error in plugin {self.plugin_name}",
            "".join(traceback.format_exception(err)),
        )

    def validate_config(self) -> list[ConfigIssue]:
        """Validate the stored config against the plugin's schema.

        Returns:
            Issues found; empty when the stored config is valid
        """
        try:
            stored = self.config.read()
        except ConfigStoreError as e:
            return [ConfigIssue(path="", message=e.reason)]
        return self.schema.validate(stored)

    def check_config(self) -> None:
        """Raise ConfigValidationError if the stored config is invalid."""
        issues = self.validate_config()
        if issues:
            raise ConfigValidationError(self.plugin_name, issues)

    async def run(self, export_options: Mapping[str, Any]) -> ExportContext | None:
        """Run one export through this service.

        Args:
            export_options: format, file_path, width, height, fps, loop, ...

        Returns:
            The ExportContext after the action finished, or None if the
            stored config was invalid and the action was not called
        """
        try:
            self.check_config()
        except ConfigValidationError as e:
            self._report_invalid_config(e)
            return None

        context = ExportContext(
            export_options=export_options,
            plugin_name=self.plugin_name,
            config=self.config,
        )

        self._host.send(Surface.EDITOR, HostEvent.TOGGLE_FORMAT_BUTTONS, {"enabled": False})
        announcer = _StartAnnouncer(self._host, context)
        pending: ScheduledCall = self._scheduler.call_later(
            self._start_export_delay, announcer
        )

        try:
            try:
                result = self._action(context)
                if inspect.isawaitable(result):
                    await result
            except Exception as err:
                pending.cancel()
                context.error = ActionError(self.plugin_name, err)
                self._logger.error(
                    "Share service action failed", error=str(err), exc_info=err
                )
                self._host.send(Surface.MAIN, HostEvent.HIDE_EXPORT_WINDOW)
                self.show_error(err)
            else:
                pending.cancel()
                if context.canceled:
                    self._logger.info("Export canceled")
                    self._host.send(Surface.MAIN, HostEvent.HIDE_EXPORT_WINDOW)
                else:
                    # A fast action finishes before the delay; announce now so
                    # start-export always precedes end-export
                    announcer()
                    self._logger.info("Export finished")
                    self._host.send(Surface.MAIN, HostEvent.END_EXPORT)
        finally:
            pending.cancel()
            self._host.send(
                Surface.EDITOR, HostEvent.TOGGLE_FORMAT_BUTTONS, {"enabled": True}
            )

        return context

    def _report_invalid_config(self, error: ConfigValidationError) -> None:
        issue = error.first
        self._logger.warning(
            "Invalid plugin config",
            field=issue.path,
            error=issue.message,
            issue_count=len(error.issues),
        )
        self._host.show_error(self.plugin_name, str(issue))
        self._host.open_path(self.config.path)


class _StartAnnouncer:
    """Sends start-export once, unless the export was canceled first."""

    def __init__(self, host: HostNotifier, context: ExportContext) -> None:
        self._host = host
        self._context = context
        self.sent = False

    def __call__(self) -> None:
        if self.sent or self._context.canceled:
            return
        self.sent = True
        self._host.send(Surface.MAIN, HostEvent.START_EXPORT)
