"""Hook implementation for built-in share services."""

from typing import Any

from capshare.plugins.hookspecs import hookimpl


class CapshareBuiltinShareServices:
    """Hook implementer for built-in share services."""

    @hookimpl
    def capshare_get_share_services(self) -> list[Any]:
        """Return built-in share-service definitions."""
        from capshare.plugins.builtin.save_file import SAVE_FILE

        return [SAVE_FILE]


# Singleton instance for registration
builtin_share_services = CapshareBuiltinShareServices()
