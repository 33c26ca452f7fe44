"""
Geolocation Routes - Device Location Control

Provides endpoints for geolocation automation on Android devices:
- Get/set the device location (helper service or emulator console)
- Refresh the GPS cache
- Query/toggle location services
- Manage mock location apps (authorize, reset)

Errors raised by the command layer are LocationBridgeError subclasses and are
turned into JSON responses by the handler registered in main.py.
"""

from fastapi import APIRouter
from pydantic import BaseModel, Field
from typing import Optional
import logging
from core.location.models import Location
from routes import get_deps

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/location", tags=["geolocation"])


# Request models
class MobileGeolocationRequest(Location):
    """Full set of geolocation parameters accepted by mobile: setGeolocation"""


class RefreshGpsCacheRequest(BaseModel):
    timeout_ms: Optional[int] = Field(None, description="Zero or negative skips waiting")


class MockLocationAppRequest(BaseModel):
    app_id: str = Field(..., min_length=1)


async def _get_commands(device_id: str, emulator: bool):
    deps = get_deps()
    session = await deps.session_manager.get_session(device_id, is_emulator=emulator)
    return session.geolocation


# =============================================================================
# LOCATION ENDPOINTS
# =============================================================================


@router.get("/{device_id}")
async def get_geolocation(device_id: str, emulator: bool = False):
    """Get the current device location"""
    commands = await _get_commands(device_id, emulator)
    location = await commands.mobile_get_geolocation()
    return {"success": True, "device_id": device_id, "location": location.model_dump()}


@router.post("/{device_id}")
async def set_geolocation(device_id: str, location: Location, emulator: bool = False):
    """Set the device location and return the location reported afterwards"""
    logger.info(f"[API] Setting geolocation for {device_id}")
    commands = await _get_commands(device_id, emulator)
    actual = await commands.set_geolocation(location)
    return {"success": True, "device_id": device_id, "location": actual.model_dump()}


@router.post("/{device_id}/mobile")
async def mobile_set_geolocation(
    device_id: str, request: MobileGeolocationRequest, emulator: bool = False
):
    """Set the device location with all optional parameters"""
    commands = await _get_commands(device_id, emulator)
    await commands.mobile_set_geolocation(**request.model_dump())
    return {"success": True, "device_id": device_id}


@router.post("/{device_id}/gps-cache/refresh")
async def refresh_gps_cache(
    device_id: str, request: Optional[RefreshGpsCacheRequest] = None, emulator: bool = False
):
    """Refresh the GPS cache (requires Play Services or API 30+)"""
    commands = await _get_commands(device_id, emulator)
    await commands.mobile_refresh_gps_cache(request.timeout_ms if request else None)
    return {"success": True, "device_id": device_id}


# =============================================================================
# LOCATION SERVICES ENDPOINTS
# =============================================================================


@router.get("/{device_id}/services")
async def get_location_services(device_id: str, emulator: bool = False):
    """Check whether the GPS location provider is enabled"""
    commands = await _get_commands(device_id, emulator)
    enabled = await commands.is_location_services_enabled()
    return {"success": True, "device_id": device_id, "enabled": enabled}


@router.post("/{device_id}/services/toggle")
async def toggle_location_services(device_id: str, emulator: bool = False):
    """Toggle the GPS location provider"""
    commands = await _get_commands(device_id, emulator)
    enabled = await commands.toggle_location_services()
    return {"success": True, "device_id": device_id, "enabled": enabled}


# =============================================================================
# MOCK LOCATION ENDPOINTS
# =============================================================================


@router.post("/{device_id}/mock-apps")
async def authorize_mock_location_app(
    device_id: str, request: MockLocationAppRequest, emulator: bool = False
):
    """Allow an app to provide mock locations (grant failures are returned as errors)"""
    deps = get_deps()
    session = await deps.session_manager.get_session(device_id, is_emulator=emulator)
    await session.registry.authorize(request.app_id)
    return {"success": True, "device_id": device_id, "app_id": request.app_id}


@router.post("/{device_id}/reset")
async def reset_geolocation(device_id: str, emulator: bool = False):
    """Deny mock locations for all recorded apps that are still installed"""
    commands = await _get_commands(device_id, emulator)
    summary = await commands.mobile_reset_geolocation()
    return {"success": True, "device_id": device_id, **summary.to_dict()}
