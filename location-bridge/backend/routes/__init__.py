"""
Route Dependencies - Centralized dependency injection for route modules

This module provides a dependency injection pattern to avoid circular imports
and make route modules testable. All manager instances are injected at startup.
"""

from dataclasses import dataclass
from typing import Optional, TYPE_CHECKING

if TYPE_CHECKING:
    # Type hints only - avoid runtime circular imports
    from config.defaults import AppDefaults
    from core.bidi.events import BiDiLogHandler
    from services.device_sessions import DeviceSessionManager


@dataclass
class RouteDependencies:
    """
    Container for all dependencies needed by route modules

    Usage in route modules:
        from routes import get_deps

        @router.get("/endpoint")
        async def handler():
            deps = get_deps()
            session = await deps.session_manager.get_session(device_id)
            return await session.geolocation.get_geolocation()
    """

    session_manager: "DeviceSessionManager"
    defaults: Optional["AppDefaults"] = None
    bidi_log_handler: Optional["BiDiLogHandler"] = None


# Global dependencies instance (set once at startup)
_deps: Optional[RouteDependencies] = None


def set_dependencies(deps: Optional[RouteDependencies]) -> None:
    """
    Set global dependencies (called once at server startup)

    Args:
        deps: RouteDependencies instance with all managers initialized
    """
    global _deps
    _deps = deps


def get_deps() -> RouteDependencies:
    """
    Get dependencies for route handlers

    Raises:
        RuntimeError: If dependencies not initialized (call set_dependencies first)
    """
    if _deps is None:
        raise RuntimeError(
            "Dependencies not initialized. "
            "Call set_dependencies() in server startup before registering routes."
        )
    return _deps


# Export public API
__all__ = [
    "RouteDependencies",
    "set_dependencies",
    "get_deps",
]
