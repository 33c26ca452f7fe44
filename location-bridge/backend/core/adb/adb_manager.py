"""
ADB Manager with hybrid approach.
Priority:
1. Local ADB server (best - supports TLS, USB and emulators through the adb binary)
2. Python ADB library (good - works for port 5555 without a binary)
3. Subprocess ADB (fallback - high ports with TLS)
"""

import asyncio
import logging
import socket

from .adb_connection import PythonADBConnection
from .adb_subprocess import SubprocessADBConnection
from .base_connection import BaseADBConnection
from .config import config

_LOGGER = logging.getLogger(__name__)


class ADBManager:
    """Chooses an ADB connection type for a device id."""

    async def _check_adb_server(self) -> bool:
        """Check if an ADB server is running.

        Returns:
            True if ADB server is reachable on localhost:5037
        """
        try:

            def _test():
                sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
                sock.settimeout(2)
                result = sock.connect_ex(
                    (config.ADB_SERVER_HOST, config.ADB_SERVER_PORT)
                )
                sock.close()
                return result == 0

            return await asyncio.to_thread(_test)
        except Exception as e:
            _LOGGER.debug(f"ADB server check failed: {e}")
            return False

    @staticmethod
    def parse_device_id(device_id: str):
        """Split a network device id into (host, port).

        Returns:
            (host, port) for "host:port" ids, (None, None) for USB/emulator serials
        """
        host, sep, port = device_id.rpartition(":")
        if not sep or not host or not port.isdigit():
            return None, None
        return host, int(port)

    async def get_connection(self, device_id: str) -> BaseADBConnection:
        """Get ADB connection instance using optimal strategy.

        Args:
            device_id: "host:port" for network devices, serial for USB/emulators

        Returns:
            BaseADBConnection instance (not yet connected)
        """
        host, port = self.parse_device_id(device_id)

        if host is None:
            _LOGGER.info(f"Serial {device_id} detected - using subprocess ADB")
            return SubprocessADBConnection(device_id)

        if await self._check_adb_server():
            _LOGGER.info(f"Using local ADB server for {device_id}")
            return SubprocessADBConnection(device_id)

        # Android 11+ wireless debugging uses TLS on high ports (e.g., 45441)
        # Python ADB library doesn't support TLS, so use subprocess for these
        if port != config.DEFAULT_ADB_PORT:
            _LOGGER.info(f"Port {port} detected - using subprocess ADB (TLS support)")
            return SubprocessADBConnection(device_id)
        else:
            _LOGGER.info(f"Port {port} detected - using Python ADB library")
            return PythonADBConnection(host, port)
