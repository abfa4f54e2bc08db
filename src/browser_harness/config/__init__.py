from .settings import (
    BrowserSettings,
    DiscoverySettings,
    LoggingSettings,
    PageSettings,
    ServerSettings,
    Settings,
    get_settings,
    reload_settings,
)

__all__ = [
    "BrowserSettings",
    "DiscoverySettings",
    "LoggingSettings",
    "PageSettings",
    "ServerSettings",
    "Settings",
    "get_settings",
    "reload_settings",
]
