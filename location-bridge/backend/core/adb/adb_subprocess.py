"""
Subprocess-based ADB Connection.
Uses the system adb binary, so it works for USB serials, emulators and
Android 11+ wireless debugging that uses TLS.
"""

import logging
import subprocess
from typing import List, Sequence

from .base_connection import BaseADBConnection, ShellCommand
from .config import config
from utils.error_handler import ADBCommandError

_LOGGER = logging.getLogger(__name__)


class SubprocessADBConnection(BaseADBConnection):
    """Manage ADB connection using subprocess.

    This connection type is required for:
    - USB and emulator serials (e.g., emulator-5554)
    - Android 11+ wireless debugging with TLS
    - Emulator console commands (adb emu)
    """

    def __init__(self, device_id: str):
        """Initialize subprocess ADB connection.

        Args:
            device_id: Device identifier (e.g., "192.168.1.2:45441", "emulator-5554")
        """
        super().__init__(device_id)

    def _is_network_device(self) -> bool:
        return ":" in self.device_id

    async def connect(self) -> bool:
        """Test ADB connection to device.

        Connection sequence:
        1. Check if device is already listed by adb devices
        2. If not and it is a network device, run adb connect {device_id}

        Returns:
            True if connected successfully, False otherwise
        """
        try:
            _LOGGER.info(f"Testing subprocess ADB connection to {self.device_id}...")

            def _check_devices():
                result = subprocess.run(
                    ["adb", "devices"], capture_output=True, text=True, timeout=5
                )
                return result.returncode == 0, result.stdout

            success, output = await self._run_in_executor(_check_devices)

            if success and self.device_id in output:
                _LOGGER.info(f"Device {self.device_id} already connected")
                self._connected = True
                return True

            if not self._is_network_device():
                _LOGGER.error(f"Device {self.device_id} is not attached")
                return False

            _LOGGER.info(f"Connecting to {self.device_id}...")

            def _connect():
                result = subprocess.run(
                    ["adb", "connect", self.device_id],
                    capture_output=True,
                    text=True,
                    timeout=config.CONNECTION_TIMEOUT,
                )
                return result.returncode == 0, result.stdout

            success, output = await self._run_in_executor(_connect)

            if success and "connected" in output.lower() and "cannot" not in output.lower():
                _LOGGER.info(f"Connected to {self.device_id}")
                self._connected = True
                return True
            else:
                _LOGGER.error(f"Connection failed: {output}")
                return False

        except FileNotFoundError:
            _LOGGER.error(
                "ADB binary not found. Install android-tools to use subprocess ADB."
            )
            return False
        except subprocess.TimeoutExpired:
            _LOGGER.error(f"Connection timeout after {config.CONNECTION_TIMEOUT}s")
            return False
        except Exception as e:
            _LOGGER.error(f"ADB connection error: {e}")
            return False

    async def _run_adb(self, args: List[str], timeout: int) -> str:
        """Run ``adb -s <device> <args>`` and return decoded stdout.

        Raises:
            ADBCommandError: If adb exits with a non-zero status
            TimeoutError: If the command does not finish in time
        """

        def _run():
            return subprocess.run(
                ["adb", "-s", self.device_id, *args],
                capture_output=True,
                timeout=timeout,
            )

        try:
            result = await self._run_in_executor(_run)
        except subprocess.TimeoutExpired:
            _LOGGER.error(f"adb {args[0]} timeout after {timeout}s")
            raise TimeoutError(f"Command timeout: {' '.join(args)}")

        stdout = result.stdout.decode("utf-8", errors="replace") if result.stdout else ""
        if result.returncode != 0:
            stderr = result.stderr.decode("utf-8", errors="replace") if result.stderr else ""
            raise ADBCommandError(
                f"'adb {' '.join(args)}' exited with code {result.returncode}: "
                f"{(stderr or stdout).strip()}",
                device_id=self.device_id,
                returncode=result.returncode,
            )
        return stdout.strip()

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
        if not self._connected:
            raise ConnectionError(f"Not connected to device {self.device_id}")

        command_line = self.format_command(command)
        _LOGGER.debug(f"Executing: adb -s {self.device_id} shell {command_line}")
        try:
            return await self._run_adb(["shell", command_line], config.SHELL_TIMEOUT)
        except Exception as e:
            _LOGGER.error(f"Shell command failed: {e}")
            raise

    async def emu(self, args: Sequence[str]) -> str:
        """Send a command to the emulator console.

        Raises:
            ConnectionError: If not connected to device
            ADBCommandError: If the console rejects the command
        """
        if not self._connected:
            raise ConnectionError(f"Not connected to device {self.device_id}")

        _LOGGER.debug(f"Executing: adb -s {self.device_id} emu {' '.join(args)}")
        return await self._run_adb(["emu", *[str(a) for a in args]], config.EMU_TIMEOUT)

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
        if not self._connected:
            raise ConnectionError(f"Not connected to device {self.device_id}")

        try:
            _LOGGER.debug(f"Pushing {local_path} to {remote_path}")
            await self._run_adb(["push", local_path, remote_path], config.PUSH_TIMEOUT)
            _LOGGER.debug("File pushed successfully")
            return True
        except Exception as e:
            _LOGGER.error(f"Push failed: {e}")
            return False

    async def close(self):
        """Close ADB connection (disconnect network devices)."""
        if not self._connected:
            return

        try:
            if self._is_network_device():
                _LOGGER.info(f"Disconnecting from {self.device_id}...")

                def _disconnect():
                    subprocess.run(
                        ["adb", "disconnect", self.device_id],
                        capture_output=True,
                        timeout=5,
                    )

                await self._run_in_executor(_disconnect)
                _LOGGER.info(f"Disconnected from {self.device_id}")

        except Exception as e:
            _LOGGER.debug(f"Error disconnecting: {e}")
        finally:
            self._connected = False
