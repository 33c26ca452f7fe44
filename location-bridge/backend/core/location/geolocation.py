"""
Geolocation Commands - device-scoped geolocation automation

Wraps the settings helper client, the location providers and the mock
location registry behind the command names exposed by the HTTP routes.
"""

import logging
import math
from typing import Optional

from core.adb.adb_device import ADBDevice
from core.location.mock_location_registry import MockLocationRegistry, RevocationSummary
from core.location.models import GEO_EPSILON, Location, epsilon_location
from core.location.settings_app import SettingsAppClient
from utils.error_handler import GeolocationError, TransportError

logger = logging.getLogger(__name__)


def _to_coordinate(value) -> float:
    """Parse a reported coordinate; zero or garbage becomes GEO_EPSILON"""
    try:
        parsed = float(str(value))
    except (TypeError, ValueError):
        return GEO_EPSILON
    if math.isnan(parsed) or parsed == 0:
        return GEO_EPSILON
    return parsed


class GeolocationCommands:
    """Geolocation commands for one device"""

    def __init__(
        self,
        device: ADBDevice,
        settings_app: SettingsAppClient,
        registry: MockLocationRegistry,
        is_emulator: bool = False,
    ):
        self.device = device
        self.settings_app = settings_app
        self.registry = registry
        self.is_emulator = is_emulator

    async def set_geolocation(self, location: Location) -> Location:
        """Set the location and return what the device reports afterwards"""
        await self.settings_app.set_geolocation(location, self.is_emulator)
        try:
            return await self.get_geolocation()
        except Exception as e:
            logger.warning(f"[Geolocation] Could not get the current geolocation info: {e}")
            logger.warning("[Geolocation] Returning the default zero'ed values")
            return epsilon_location()

    async def mobile_set_geolocation(
        self,
        latitude: float,
        longitude: float,
        altitude: Optional[float] = None,
        satellites: Optional[int] = None,
        speed: Optional[float] = None,
        bearing: Optional[float] = None,
        accuracy: Optional[float] = None,
    ) -> None:
        """
        Set the device geolocation.

        Args:
            latitude: Valid latitude value
            longitude: Valid longitude value
            altitude: Valid altitude value
            satellites: Number of satellites being tracked (1-12). Emulators only.
            speed: Valid speed value
            bearing: Valid bearing value. Real devices only.
            accuracy: Valid accuracy value. Real devices only.
        """
        location = Location(
            latitude=latitude,
            longitude=longitude,
            altitude=altitude,
            satellites=satellites,
            speed=speed,
            bearing=bearing,
            accuracy=accuracy,
        )
        await self.settings_app.set_geolocation(location, self.is_emulator)

    async def mobile_refresh_gps_cache(self, timeout_ms: Optional[int] = None) -> None:
        """
        Send a request to refresh the GPS cache.

        Only works if the device has Google Play Services installed, or runs
        API level 30+ with the vanilla LocationManager.
        """
        await self.settings_app.refresh_geolocation_cache(timeout_ms)

    async def get_geolocation(self) -> Location:
        raw = await self.settings_app.get_geolocation()
        return Location(
            latitude=_to_coordinate(raw.get("latitude")),
            longitude=_to_coordinate(raw.get("longitude")),
            altitude=_to_coordinate(raw.get("altitude")),
        )

    async def mobile_get_geolocation(self) -> Location:
        return await self.get_geolocation()

    async def is_location_services_enabled(self) -> bool:
        return "gps" in await self.device.get_location_providers()

    async def toggle_location_services(self) -> bool:
        """Flip the GPS provider state. Returns the new state."""
        logger.info("[Geolocation] Toggling location services")
        is_gps_enabled = await self.is_location_services_enabled()
        logger.debug(
            f"[Geolocation] Current GPS state: {is_gps_enabled}. "
            f"The service is going to be {'disabled' if is_gps_enabled else 'enabled'}"
        )
        await self.device.toggle_gps_location_provider(not is_gps_enabled)
        return not is_gps_enabled

    async def mobile_reset_geolocation(self) -> RevocationSummary:
        """Deny mock locations for every recorded app (real devices only)"""
        if self.is_emulator:
            raise GeolocationError(
                "Geolocation reset does not work on emulators", device_id=self.device.device_id
            )
        return await self.registry.deauthorize_all()

    async def set_mock_location_app(self, app_id: str) -> bool:
        """
        Make app_id a mock location provider.

        Returns:
            True if the grant succeeded, False if it was rejected (logged)
        """
        try:
            await self.registry.authorize(app_id)
        except TransportError as e:
            logger.warning(f"[Geolocation] Unable to set mock location for app '{app_id}': {e}")
            return False
        return True
