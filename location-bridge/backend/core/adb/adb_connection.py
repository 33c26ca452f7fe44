"""
Pure Python ADB Connection Manager.
Uses adb-shell library - no binary dependencies required.
"""

import asyncio
import logging
import os
import re
import uuid
from typing import Optional

from adb_shell.adb_device_async import AdbDeviceTcpAsync
from adb_shell.auth.sign_pythonrsa import PythonRSASigner
from adb_shell.auth.keygen import keygen

from .base_connection import BaseADBConnection, ShellCommand
from .config import config
from utils.error_handler import ADBCommandError

_LOGGER = logging.getLogger(__name__)


class PythonADBConnection(BaseADBConnection):
    """Manage ADB connection using pure Python implementation.

    Supports:
    - TCP/IP connections on port 5555 (legacy, non-TLS)
    - RSA key generation and management

    adb-shell does not report the exit status of shell commands, so every
    command is suffixed with an echoed marker carrying ``$?``.
    """

    def __init__(self, host: str, port: int = 5555):
        """Initialize ADB connection.

        Args:
            host: Device IP address
            port: ADB port (default 5555)
        """
        super().__init__(f"{host}:{port}")
        self.host = host
        self.port = port
        self._device: Optional[AdbDeviceTcpAsync] = None
        self._lock = asyncio.Lock()
        self._signer: Optional[PythonRSASigner] = None

    async def _setup_keys(self) -> PythonRSASigner:
        """Generate and load ADB authentication keys.

        Returns:
            PythonRSASigner instance with loaded keys
        """
        adb_dir = os.path.expanduser(config.ADB_KEY_DIR)
        os.makedirs(adb_dir, exist_ok=True)
        adbkey_path = os.path.join(adb_dir, config.ADB_KEY_NAME)

        if not os.path.isfile(adbkey_path):
            _LOGGER.info("Generating new ADB authentication keys...")
            await self._run_in_executor(keygen, adbkey_path)
            _LOGGER.info(f"Keys generated at: {adbkey_path}")

        try:

            def _read_keys():
                with open(adbkey_path) as f:
                    priv = f.read()
                with open(adbkey_path + ".pub") as f:
                    pub = f.read()
                return priv, pub

            priv, pub = await self._run_in_executor(_read_keys)
            signer = PythonRSASigner(pub, priv)
            _LOGGER.debug("ADB keys loaded successfully")
            return signer

        except Exception as e:
            _LOGGER.error(f"Failed to load ADB keys: {e}")
            raise

    async def connect(self) -> bool:
        """Establish ADB connection to device.

        Returns:
            True if connected successfully, False otherwise
        """
        async with self._lock:
            try:
                if not self._signer:
                    self._signer = await self._setup_keys()

                _LOGGER.info(f"Connecting to {self.host}:{self.port} via Python ADB...")
                self._device = AdbDeviceTcpAsync(
                    host=self.host,
                    port=self.port,
                    default_transport_timeout_s=config.TRANSPORT_TIMEOUT,
                )
                await self._device.connect(
                    rsa_keys=[self._signer],
                    auth_timeout_s=config.AUTH_TIMEOUT,
                    transport_timeout_s=config.TRANSPORT_TIMEOUT,
                )

                if self._device.available:
                    _LOGGER.info(f"Connected to {self.host}:{self.port}")
                    self._connected = True
                    return True
                else:
                    _LOGGER.error(f"Failed to connect to {self.host}:{self.port}")
                    return False

            except ConnectionRefusedError:
                _LOGGER.error(f"Connection refused by {self.host}:{self.port}")
                return False
            except TimeoutError:
                _LOGGER.error(f"Connection timeout to {self.host}:{self.port}")
                return False
            except Exception as e:
                _LOGGER.error(f"ADB connection error: {e}")
                return False

    async def shell(self, command: ShellCommand) -> str:
        """Execute shell command on device.

        Args:
            command: Shell command line or argv list

        Returns:
            Command output as string

        Raises:
            ConnectionError: If not connected to device
            ADBCommandError: If the command exits with a non-zero status
        """
        if not self._device or not self._device.available:
            raise ConnectionError(f"Not connected to device {self.device_id}")

        command_line = self.format_command(command)
        marker = f"__RC_{uuid.uuid4().hex[:8]}__"

        async with self._lock:
            try:
                _LOGGER.debug(f"Executing: {command_line}")
                response = await self._device.shell(
                    f"{command_line}; echo {marker}$?",
                    read_timeout_s=config.SHELL_TIMEOUT,
                )
            except Exception as e:
                _LOGGER.error(f"Shell command failed: {e}")
                raise

        output = response or ""
        match = re.search(rf"{marker}(\d+)\s*$", output)
        if not match:
            raise ADBCommandError(
                f"Could not determine the exit status of '{command_line}'",
                device_id=self.device_id,
            )
        output = output[: match.start()].strip()
        returncode = int(match.group(1))
        if returncode != 0:
            raise ADBCommandError(
                f"'{command_line}' exited with code {returncode}: {output}",
                device_id=self.device_id,
                returncode=returncode,
            )
        return output

    async def push(self, local_path: str, remote_path: str) -> bool:
        """Push file to device.

        Args:
            local_path: Local file path
            remote_path: Path on device

        Returns:
            True if successful, False otherwise

        Raises:
            ConnectionError: If not connected to device
        """
        if not self._device or not self._device.available:
            raise ConnectionError(f"Not connected to device {self.device_id}")

        async with self._lock:
            try:
                _LOGGER.debug(f"Pushing {local_path} to {remote_path}")
                await self._device.push(local_path, remote_path)
                _LOGGER.debug("File pushed successfully")
                return True
            except Exception as e:
                _LOGGER.error(f"Push failed: {e}")
                return False

    async def close(self):
        """Close ADB connection."""
        if self._device:
            try:
                await self._device.close()
                _LOGGER.info(f"Disconnected from {self.host}:{self.port}")
            except Exception as e:
                _LOGGER.debug(f"Error closing connection: {e}")
            finally:
                self._device = None
                self._connected = False

    @property
    def available(self) -> bool:
        """Check if connection is available.

        Returns:
            True if connected, False otherwise
        """
        return self._device is not None and self._device.available
