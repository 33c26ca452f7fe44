"""
Device Sessions - per-device command objects

Each connected device gets one DeviceSession holding its ADB connection and
the geolocation command stack built on top of it. Sessions are created lazily
on first use and reused until closed.
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Dict, Optional

from config import defaults as config_defaults
from config.defaults import AppDefaults
from core.adb.adb_device import ADBDevice
from core.adb.adb_manager import ADBManager
from core.adb.base_connection import BaseADBConnection
from core.bidi.events import BiDiLogHandler, NATIVE_CONTEXT, make_context_updated_event
from core.location.geolocation import GeolocationCommands
from core.location.mock_location_registry import MockLocationRegistry
from core.location.settings_app import SettingsAppClient
from core.location.transport import ADBAuthorizationTransport
from utils.error_handler import DeviceNotFoundError

logger = logging.getLogger(__name__)


@dataclass
class DeviceSession:
    """Everything bound to one device"""

    device_id: str
    connection: BaseADBConnection
    device: ADBDevice
    registry: MockLocationRegistry
    geolocation: GeolocationCommands

    @property
    def is_emulator(self) -> bool:
        return self.geolocation.is_emulator


class DeviceSessionManager:
    """
    Creates and caches DeviceSession instances.

    Usage:
        manager = DeviceSessionManager(ADBManager())
        session = await manager.get_session("192.168.1.2:5555")
        await session.geolocation.set_mock_location_app("com.example.app")
    """

    def __init__(
        self,
        adb_manager: ADBManager,
        defaults: Optional[AppDefaults] = None,
        bidi_handler: Optional[BiDiLogHandler] = None,
    ):
        self.adb_manager = adb_manager
        self.defaults = defaults or config_defaults.Defaults
        self.bidi_handler = bidi_handler
        self._sessions: Dict[str, DeviceSession] = {}
        self._lock = asyncio.Lock()

    def build_session(
        self, connection: BaseADBConnection, is_emulator: bool = False
    ) -> DeviceSession:
        """Wire the command stack for an already connected device"""
        device = ADBDevice(connection)
        registry = MockLocationRegistry(
            ADBAuthorizationTransport(device),
            store_path=self.defaults.MOCK_APP_IDS_STORE,
            fallback_id=self.defaults.SETTINGS_HELPER_ID,
        )
        settings_app = SettingsAppClient(
            device,
            helper_id=self.defaults.SETTINGS_HELPER_ID,
            refresh_timeout_ms=self.defaults.GPS_CACHE_REFRESH_TIMEOUT_MS,
            poll_interval=self.defaults.GPS_CACHE_POLL_INTERVAL,
        )
        geolocation = GeolocationCommands(device, settings_app, registry, is_emulator=is_emulator)
        return DeviceSession(
            device_id=connection.device_id,
            connection=connection,
            device=device,
            registry=registry,
            geolocation=geolocation,
        )

    async def get_session(self, device_id: str, is_emulator: bool = False) -> DeviceSession:
        """
        Get or create the session for a device.

        Raises:
            DeviceNotFoundError: If the device cannot be connected
        """
        async with self._lock:
            session = self._sessions.get(device_id)
            if session and session.connection.available:
                was_emulator = session.geolocation.is_emulator
                session.geolocation.is_emulator = is_emulator
                if was_emulator and not is_emulator:
                    logger.info(f"[DeviceSessions] {device_id} is now used as a real device")
                    await self._authorize_mock_location_app(session)
                return session

            if session:
                logger.info(f"[DeviceSessions] Replacing stale session for {device_id}")
                self._sessions.pop(device_id, None)
                await session.connection.close()

            connection = await self.adb_manager.get_connection(device_id)
            if not await connection.connect():
                await connection.close()
                raise DeviceNotFoundError(device_id)

            session = self.build_session(connection, is_emulator=is_emulator)
            self._sessions[device_id] = session
            logger.info(f"[DeviceSessions] Session created for {device_id} (emulator={is_emulator})")

            if not is_emulator:
                await self._authorize_mock_location_app(session)

            if self.bidi_handler:
                self.bidi_handler.publish(make_context_updated_event(NATIVE_CONTEXT))
            return session

    async def _authorize_mock_location_app(self, session: DeviceSession) -> None:
        # Real devices only accept mock fixes from an authorized provider app
        if self.defaults.MOCK_LOCATION_APP:
            await session.geolocation.set_mock_location_app(self.defaults.MOCK_LOCATION_APP)

    async def close_session(self, device_id: str) -> bool:
        async with self._lock:
            session = self._sessions.pop(device_id, None)
        if not session:
            return False
        await session.connection.close()
        logger.info(f"[DeviceSessions] Session closed for {device_id}")
        return True

    async def close_all(self) -> None:
        for device_id in list(self._sessions):
            await self.close_session(device_id)

    def list_sessions(self) -> Dict[str, dict]:
        return {
            device_id: {
                "available": session.connection.available,
                "connection_type": type(session.connection).__name__,
                "is_emulator": session.is_emulator,
            }
            for device_id, session in self._sessions.items()
        }
