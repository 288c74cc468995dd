# src/capshare/plugins/hookspecs.py
"""pluggy hook specifications for share-service plugins.

Plugin packages implement these hooks to register their share services.
The ShareServiceManager calls them during discovery.

Usage (implementing a plugin):
    from capshare.plugins.hookspecs import hookimpl

    class MyPlugin:
        @hookimpl  # NOT @hookspec - that's for defining specs
        def capshare_get_share_services(self):
            return [{"title": "Upload", "formats": ["gif"], ...}]

Installed packages are picked up through the "capshare" entry-point group:

    [project.entry-points.capshare]
    my_plugin = "my_package.hooks:plugin"
"""

from typing import TYPE_CHECKING, Any

import pluggy

if TYPE_CHECKING:
    from collections.abc import Mapping

    from capshare.plugins.service import PluginDefinition

# Project name for pluggy (also the entry-point group)
PROJECT_NAME = "capshare"

# Hook specification marker
hookspec = pluggy.HookspecMarker(PROJECT_NAME)

# Hook implementation marker (for plugins to use)
hookimpl = pluggy.HookimplMarker(PROJECT_NAME)


class CapshareShareServiceSpec:
    """Hook specifications for share-service plugins."""

    @hookspec
    def capshare_get_share_services(  # type: ignore[empty-body]
        self,
    ) -> list["PluginDefinition | Mapping[str, Any]"]:
        """Return share-service definitions.

        Returns:
            PluginDefinition instances or their mapping form
        """
