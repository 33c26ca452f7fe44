"""
Settings helper client - geolocation calls into the settings helper app.

The helper app (io.appium.settings by default) owns a LocationService that
feeds mock locations to the framework and a LocationInfoReceiver that reports
the current fix. Emulators are driven through the emulator console instead.
"""

import asyncio
import logging
import re
import time
from typing import Dict, List, Optional

from config import defaults as config_defaults
from core.adb.adb_device import ADBDevice
from core.location.models import Location
from utils.error_handler import GeolocationError, InvalidArgumentError, TransportError

logger = logging.getLogger(__name__)

LOCATION_DATA_PATTERN = re.compile(r'data="(-?[\d.]+)\s+(-?[\d.]+)\s+(-?[\d.]+)"')

# start-foreground-service exists since Android O
FOREGROUND_SERVICE_API_LEVEL = 26

EMULATOR_DEFAULT_ALTITUDE = "0"
EMULATOR_DEFAULT_SATELLITES = "12"


def _format_value(location: Location, name: str, required: bool = False) -> Optional[str]:
    value = getattr(location, name)
    if value is None:
        if required:
            raise InvalidArgumentError(f"{name} must be provided", field=name)
        return None
    try:
        return str(float(value)) if name != "satellites" else str(int(value))
    except (TypeError, ValueError):
        raise InvalidArgumentError(f"{name} is expected to be a valid number, got '{value}'", field=name)


class SettingsAppClient:
    """Geolocation RPC over am/emu commands"""

    def __init__(
        self,
        device: ADBDevice,
        helper_id: Optional[str] = None,
        refresh_timeout_ms: Optional[int] = None,
        poll_interval: Optional[float] = None,
    ):
        defaults = config_defaults.Defaults
        self.device = device
        self.helper_id = helper_id or defaults.SETTINGS_HELPER_ID
        self.refresh_timeout_ms = (
            refresh_timeout_ms
            if refresh_timeout_ms is not None
            else defaults.GPS_CACHE_REFRESH_TIMEOUT_MS
        )
        self.poll_interval = (
            poll_interval if poll_interval is not None else defaults.GPS_CACHE_POLL_INTERVAL
        )

    @property
    def location_service(self) -> str:
        return f"{self.helper_id}/.LocationService"

    @property
    def location_receiver(self) -> str:
        return f"{self.helper_id}/.receivers.LocationInfoReceiver"

    @property
    def location_retrieval_action(self) -> str:
        return f"{self.helper_id}.location"

    async def set_geolocation(self, location: Location, is_emulator: bool = False) -> None:
        """
        Push a mock location to the device.

        Args:
            location: Target location (latitude/longitude required)
            is_emulator: Use the emulator console instead of the helper service
        """
        longitude = _format_value(location, "longitude", required=True)
        latitude = _format_value(location, "latitude", required=True)
        altitude = _format_value(location, "altitude")
        satellites = _format_value(location, "satellites")
        speed = _format_value(location, "speed")
        bearing = _format_value(location, "bearing")
        accuracy = _format_value(location, "accuracy")

        if is_emulator:
            # geo fix <longitude> <latitude> [<altitude> [<satellites> [<velocity>]]]
            args: List[str] = [longitude, latitude]
            if altitude is not None or satellites is not None or speed is not None:
                args.append(altitude if altitude is not None else EMULATOR_DEFAULT_ALTITUDE)
            if satellites is not None or speed is not None:
                args.append(satellites if satellites is not None else EMULATOR_DEFAULT_SATELLITES)
            if speed is not None:
                args.append(speed)
            logger.info(f"[SettingsApp] Setting emulator geolocation: {args}")
            await self.device.emu(["geo", "fix", *args])
            # Some emulator builds only accept the locale decimal separator
            await self.device.emu(["geo", "fix", *[a.replace(".", ",") for a in args]])
            return

        api_level = await self.device.get_api_level()
        command = [
            "am",
            "start-foreground-service" if api_level >= FOREGROUND_SERVICE_API_LEVEL else "startservice",
            "-e", "longitude", longitude,
            "-e", "latitude", latitude,
        ]
        for name, value in (
            ("altitude", altitude),
            ("speed", speed),
            ("bearing", bearing),
            ("accuracy", accuracy),
        ):
            if value is not None:
                command.extend(["-e", name, value])
        command.append(self.location_service)
        logger.info(f"[SettingsApp] Setting geolocation on {self.device.device_id}")
        await self.device.shell(command)

    async def get_geolocation(self) -> Dict[str, str]:
        """
        Read the current fix reported by the helper app.

        Returns:
            Raw string values keyed by latitude/longitude/altitude

        Raises:
            GeolocationError: If the location cannot be retrieved or parsed
        """
        try:
            output = await self.device.shell(
                [
                    "am", "broadcast",
                    "-n", self.location_receiver,
                    "-a", self.location_retrieval_action,
                ]
            )
        except TransportError as e:
            raise GeolocationError(
                f"Cannot retrieve the current geo coordinates from the device. "
                f"Make sure the {self.helper_id} app has location permissions: {e.message}",
                device_id=self.device.device_id,
            ) from e

        match = LOCATION_DATA_PATTERN.search(output)
        if not match:
            raise GeolocationError(
                f"Cannot parse the actual location values from the command output: {output}",
                device_id=self.device.device_id,
            )
        return {"latitude": match.group(1), "longitude": match.group(2), "altitude": match.group(3)}

    async def refresh_geolocation_cache(self, timeout_ms: Optional[int] = None) -> None:
        """
        Ask the helper app to refresh its GPS cache.

        With a positive timeout the fix reported before the request is kept
        and the receiver is polled until it reports a different one. A fix
        that is readable but unchanged when the deadline passes is accepted
        (the device has not moved) and logged. No readable fix at all raises.

        Args:
            timeout_ms: How long to wait for a refreshed fix afterwards.
                        Zero or negative skips waiting.

        Raises:
            GeolocationError: If no fix can be read before the deadline
        """
        if timeout_ms is None:
            timeout_ms = self.refresh_timeout_ms

        previous_fix: Optional[Dict[str, str]] = None
        if timeout_ms > 0:
            try:
                previous_fix = await self.get_geolocation()
            except GeolocationError as e:
                logger.debug(f"[SettingsApp] No cached fix before the refresh: {e}")

        await self.device.shell(
            [
                "am", "broadcast",
                "-n", self.location_receiver,
                "-a", self.location_retrieval_action,
                "--ez", "forceUpdate", "true",
            ]
        )
        if timeout_ms <= 0:
            return

        deadline = time.monotonic() + timeout_ms / 1000
        last_fix: Optional[Dict[str, str]] = None
        last_error: Optional[Exception] = None
        while time.monotonic() < deadline:
            try:
                last_fix = await self.get_geolocation()
                if last_fix != previous_fix:
                    logger.debug(f"[SettingsApp] GPS cache refreshed on {self.device.device_id}")
                    return
            except GeolocationError as e:
                last_error = e
            await asyncio.sleep(self.poll_interval)

        if last_fix is not None:
            logger.warning(
                f"[SettingsApp] GPS fix on {self.device.device_id} unchanged after "
                f"{timeout_ms}ms, keeping {last_fix}"
            )
            return

        raise GeolocationError(
            f"The GPS cache has not been refreshed within {timeout_ms}ms: {last_error}",
            device_id=self.device.device_id,
        )
