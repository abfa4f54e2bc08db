from .browser_constants import BrowserKind
from .lifecycle import LifecycleCoordinator, LifecycleState, ResolvedTarget, browser_environment
from .locator import BrowserConfig, BrowserDriverLocator, PageLocator
from .platform import OSFamily, PlatformInfo, current_platform
from .server import ServerHandle, ServerState, StaticFileServer
from .session import SessionFactory, SessionHandle

__all__ = [
    "BrowserKind",
    "BrowserConfig",
    "BrowserDriverLocator",
    "PageLocator",
    "LifecycleCoordinator",
    "LifecycleState",
    "ResolvedTarget",
    "browser_environment",
    "OSFamily",
    "PlatformInfo",
    "current_platform",
    "ServerHandle",
    "ServerState",
    "StaticFileServer",
    "SessionFactory",
    "SessionHandle",
]
