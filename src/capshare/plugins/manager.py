# src/capshare/plugins/manager.py
"""Share-service discovery, registration, and lookup.

Uses pluggy for hook-based plugin registration.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import TYPE_CHECKING, Any

import pluggy
import structlog

from capshare.core.config import DEFAULT_START_EXPORT_DELAY
from capshare.plugins.errors import ShareServiceError
from capshare.plugins.hookspecs import PROJECT_NAME, CapshareShareServiceSpec
from capshare.plugins.service import PluginDefinition, ShareService

if TYPE_CHECKING:
    from capshare.core.config_store import ConfigStore
    from capshare.core.host import HostNotifier
    from capshare.core.scheduler import Scheduler

logger = structlog.get_logger(__name__)


def _definition_name(definition: Any) -> str:
    if isinstance(definition, PluginDefinition):
        return definition.plugin_name
    if isinstance(definition, Mapping):
        return str(definition.get("plugin_name", definition.get("title", "<unnamed>")))
    return repr(definition)


class ShareServiceManager:
    """Builds ShareService instances for every registered plugin.

    A definition that cannot be registered (missing keys, malformed config
    schema) is logged and kept in `failures`; the remaining plugins still
    load.

    Usage:
        manager = ShareServiceManager(host=host, config_store=store)
        manager.register_builtin_plugins()
        manager.load_entrypoints()

        gif_services = manager.get_services_for_format("gif")
        save = manager.get_service("save-file")
    """

    def __init__(
        self,
        *,
        host: HostNotifier,
        config_store: ConfigStore,
        scheduler: Scheduler | None = None,
        start_export_delay: float = DEFAULT_START_EXPORT_DELAY,
    ) -> None:
        self._pm = pluggy.PluginManager(PROJECT_NAME)
        self._pm.add_hookspecs(CapshareShareServiceSpec)

        self._host = host
        self._config_store = config_store
        self._scheduler = scheduler
        self._start_export_delay = start_export_delay

        self._services: dict[str, ShareService] = {}
        # Object each service was built from, as returned by the hook
        self._sources: dict[str, Any] = {}
        self.failures: dict[str, ShareServiceError] = {}

    def register_builtin_plugins(self) -> None:
        """Register the built-in share services."""
        from capshare.plugins.builtin.hookimpl import builtin_share_services

        self.register(builtin_share_services)

    def register(self, plugin: Any) -> None:
        """Register a hook implementer.

        Args:
            plugin: Object implementing capshare_get_share_services

        Raises:
            ValueError: If two plugins use the same plugin_name
        """
        self._pm.register(plugin)
        self._refresh_services()

    def load_entrypoints(self, group: str = PROJECT_NAME) -> int:
        """Register hook implementers exposed by installed packages.

        Returns:
            Number of entry points loaded
        """
        count = self._pm.load_setuptools_entrypoints(group)
        if count:
            self._refresh_services()
        logger.debug("Loaded plugin entry points", group=group, count=count)
        return count

    def _refresh_services(self) -> None:
        """Rebuild services from hooks.

        Raises:
            ValueError: If a plugin with the same name is already registered
        """
        new_services: dict[str, ShareService] = {}
        new_sources: dict[str, Any] = {}
        new_failures: dict[str, ShareServiceError] = {}

        for definitions in self._pm.hook.capshare_get_share_services():
            for definition in definitions:
                name = _definition_name(definition)
                if name in new_services:
                    raise ValueError(
                        f"Duplicate share service plugin name: '{name}'. "
                        f"Already registered as '{new_services[name].title}'"
                    )
                existing = self._services.get(name)
                if existing is not None and self._sources.get(name) is definition:
                    new_services[name] = existing
                    new_sources[name] = definition
                    continue
                try:
                    new_services[name] = ShareService(
                        definition,
                        host=self._host,
                        config_store=self._config_store,
                        scheduler=self._scheduler,
                        start_export_delay=self._start_export_delay,
                    )
                    new_sources[name] = definition
                except ShareServiceError as e:
                    logger.error("Share service rejected", plugin=name, error=str(e))
                    new_failures[name] = e

        # All validated, update caches
        self._services = new_services
        self._sources = new_sources
        self.failures = new_failures

    # === Lookup ===

    def get_services(self) -> list[ShareService]:
        """Get all registered share services."""
        return list(self._services.values())

    def get_service(self, plugin_name: str) -> ShareService | None:
        """Get a share service by plugin name."""
        return self._services.get(plugin_name)

    def get_services_for_format(self, export_format: str) -> list[ShareService]:
        """Get share services that accept the given export format."""
        return [s for s in self._services.values() if s.supports(export_format)]
