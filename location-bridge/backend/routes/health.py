"""
Health Routes - System Health Check

Provides health check endpoint for monitoring server status.
"""

from fastapi import APIRouter
import logging
from routes import get_deps
from utils.version import APP_VERSION

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["health"])


@router.api_route("/health", methods=["GET", "HEAD"])
async def health_check():
    """
    Health check endpoint

    Returns server status, version and the open device sessions.
    Supports both GET and HEAD methods for Docker health checks.
    """
    deps = get_deps()
    sessions = deps.session_manager.list_sessions()

    return {
        "status": "ok",
        "version": APP_VERSION,
        "message": "Location Bridge is running",
        "sessions": sessions,
        "session_count": len(sessions),
    }


@router.delete("/sessions/{device_id}")
async def close_session(device_id: str):
    """Close the session (and ADB connection) for a device"""
    deps = get_deps()
    closed = await deps.session_manager.close_session(device_id)
    return {"success": closed, "device_id": device_id}
