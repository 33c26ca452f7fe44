"""
Base ADB Connection - Abstract interface for all connection types.
"""

import asyncio
import logging
import shlex
from abc import ABC, abstractmethod
from typing import Sequence, Union

from utils.error_handler import ADBCommandError

_LOGGER = logging.getLogger(__name__)

ShellCommand = Union[str, Sequence[str]]


class BaseADBConnection(ABC):
    """Abstract base class for all ADB connection types.

    All connection types (PythonADB, SubprocessADB) inherit from this
    to ensure consistent interface across the device helpers.
    """

    def __init__(self, device_id: str):
        """Initialize base connection.

        Args:
            device_id: Device identifier (e.g., "192.168.1.100:5555" or "emulator-5554")
        """
        self.device_id = device_id
        self._connected = False

    async def _run_in_executor(self, func, *args):
        """Run sync function in a worker thread.

        Args:
            func: Synchronous function to run
            *args: Arguments to pass to function

        Returns:
            Result from function execution
        """
        return await asyncio.to_thread(func, *args)

    @staticmethod
    def format_command(command: ShellCommand) -> str:
        """Render an argv list as a single quoted shell command line."""
        if isinstance(command, str):
            return command
        return shlex.join(str(arg) for arg in command)

    @abstractmethod
    async def connect(self) -> bool:
        """Connect to device.

        Returns:
            True if connected successfully, False otherwise
        """
        pass

    @abstractmethod
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
        pass

    @abstractmethod
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
        pass

    async def emu(self, args: Sequence[str]) -> str:
        """Send a command to the emulator console (``adb emu ...``).

        Only connections backed by the adb binary can reach the console.
        """
        raise ADBCommandError(
            f"Emulator console commands are not supported by {type(self).__name__}",
            device_id=self.device_id,
        )

    @abstractmethod
    async def close(self):
        """Close connection."""
        pass

    @property
    def available(self) -> bool:
        """Check if connection is available.

        Returns:
            True if connected, False otherwise
        """
        return self._connected
