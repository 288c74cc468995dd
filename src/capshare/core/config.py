# src/capshare/core/config.py
"""
Runtime settings for capshare.

Uses Pydantic for validation and Dynaconf for multi-source loading.
Settings are frozen (immutable) after construction.
"""

from pathlib import Path
from typing import Any, Literal

from pydantic import BaseModel, Field

DEFAULT_CONFIG_DIR = Path("~/.config/capshare/plugins")

# Delay before announcing an export, so an action that cancels right away
# does not make the export window flash.
DEFAULT_START_EXPORT_DELAY = 0.05


class CapshareSettings(BaseModel):
    """Top-level capshare configuration."""

    model_config = {"frozen": True}

    config_dir: Path = Field(
        default=DEFAULT_CONFIG_DIR,
        description="Directory holding one JSON config record per plugin",
    )
    start_export_delay_seconds: float = Field(
        default=DEFAULT_START_EXPORT_DELAY,
        ge=0,
        description="Delay before the start-export event is sent",
    )
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(
        default="INFO", description="Minimum log level"
    )
    log_format: Literal["console", "json"] = Field(
        default="console", description="Log renderer"
    )
    load_entrypoints: bool = Field(
        default=True,
        description="Discover plugin packages through the 'capshare' entry-point group",
    )

    @property
    def resolved_config_dir(self) -> Path:
        return self.config_dir.expanduser()


def load_settings(config_path: Path | None = None) -> CapshareSettings:
    """Load settings from an optional YAML file with environment overrides.

    Uses Dynaconf for multi-source loading with precedence:
    1. Environment variables (CAPSHARE_*) - highest priority
    2. Config file, if given
    3. Defaults from Pydantic schema - lowest priority

    Args:
        config_path: Path to YAML settings file, or None for env/defaults only

    Returns:
        Validated CapshareSettings instance

    Raises:
        ValidationError: If configuration fails Pydantic validation
        FileNotFoundError: If an explicit config file doesn't exist
    """
    from dynaconf import Dynaconf

    # Explicit check for file existence (Dynaconf silently accepts missing files)
    if config_path is not None and not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    dynaconf_settings = Dynaconf(
        envvar_prefix="CAPSHARE",
        settings_files=[str(config_path)] if config_path is not None else [],
        environments=False,
        load_dotenv=False,
    )

    # Dynaconf returns uppercase keys; keep only the ones we define
    known = set(CapshareSettings.model_fields)
    raw_config: dict[str, Any] = {
        k.lower(): v
        for k, v in dynaconf_settings.as_dict().items()
        if k.lower() in known
    }
    return CapshareSettings(**raw_config)
