"""Core runtime collaborators: settings, config storage, host and scheduling."""

from capshare.core.config import CapshareSettings, load_settings
from capshare.core.config_store import (
    ConfigRecord,
    ConfigStore,
    JsonConfigRecord,
    JsonConfigStore,
)
from capshare.core.host import ConsoleHost, HostEvent, HostNotifier, Surface
from capshare.core.scheduler import (
    AsyncioScheduler,
    ManualScheduler,
    ScheduledCall,
    Scheduler,
)

__all__ = [
    "AsyncioScheduler",
    "CapshareSettings",
    "ConfigRecord",
    "ConfigStore",
    "ConsoleHost",
    "HostEvent",
    "HostNotifier",
    "JsonConfigRecord",
    "JsonConfigStore",
    "ManualScheduler",
    "ScheduledCall",
    "Scheduler",
    "Surface",
    "load_settings",
]
