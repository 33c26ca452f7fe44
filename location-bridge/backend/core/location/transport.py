"""
Authorization Transport - the remote side of the mock location registry.

The registry only talks to this interface; ADBAuthorizationTransport is the
implementation backed by a real device.
"""

import logging
from abc import ABC, abstractmethod
from typing import List

from core.adb.adb_device import ADBDevice
from utils.error_handler import RemoteFileNotFoundError

logger = logging.getLogger(__name__)

MOCK_LOCATION_OP = "android:mock_location"

# Below Android M mock locations are a single global developer setting
PER_APP_MOCK_LOCATION_API_LEVEL = 23


class AuthorizationTransport(ABC):
    """Remote capability consumed by MockLocationRegistry.

    All methods raise TransportError (or a subclass) when the remote call fails.
    """

    @abstractmethod
    async def grant(self, app_id: str) -> None:
        """Allow mock locations for app_id"""

    @abstractmethod
    async def revoke(self, app_id: str) -> None:
        """Deny mock locations for app_id"""

    @abstractmethod
    async def read_remote_file(self, path: str) -> bytes:
        """Read a remote file.

        Raises:
            RemoteFileNotFoundError: If the file does not exist
        """

    @abstractmethod
    async def write_remote_file(self, path: str, data: bytes) -> None:
        """Replace a remote file without leaving a partial file behind"""

    @abstractmethod
    async def list_reference_ids(self) -> List[str]:
        """Ids currently valid on the remote side (installed third-party apps)"""


class ADBAuthorizationTransport(AuthorizationTransport):
    """Mock location transport over ADB shell commands"""

    def __init__(self, device: ADBDevice):
        self.device = device

    async def _uses_global_toggle(self) -> bool:
        return await self.device.get_api_level() < PER_APP_MOCK_LOCATION_API_LEVEL

    async def grant(self, app_id: str) -> None:
        if await self._uses_global_toggle():
            await self.device.put_setting("secure", "mock_location", 1)
        else:
            await self.device.set_appops(app_id, MOCK_LOCATION_OP, "allow")
        logger.debug(f"[ADBTransport] Mock location allowed for {app_id}")

    async def revoke(self, app_id: str) -> None:
        if await self._uses_global_toggle():
            await self.device.put_setting("secure", "mock_location", 0)
        else:
            await self.device.set_appops(app_id, MOCK_LOCATION_OP, "deny")
        logger.debug(f"[ADBTransport] Mock location denied for {app_id}")

    async def read_remote_file(self, path: str) -> bytes:
        if not await self.device.file_exists(path):
            raise RemoteFileNotFoundError(path)
        return await self.device.read_file(path)

    async def write_remote_file(self, path: str, data: bytes) -> None:
        await self.device.write_file(path, data)

    async def list_reference_ids(self) -> List[str]:
        return await self.device.list_packages(third_party=True)
