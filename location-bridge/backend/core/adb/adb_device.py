"""
ADB Device - typed helpers on top of a single ADB connection.

Wraps the raw shell/push primitives of a BaseADBConnection with the handful of
device queries the location commands need (API level, packages, settings,
app ops, files). Every failure surfaces as a TransportError subclass.
"""

import logging
import os
import posixpath
import tempfile
from typing import List, Optional, Sequence

from .base_connection import BaseADBConnection, ShellCommand
from utils.error_handler import (
    ADBCommandError,
    LocationBridgeError,
    TransportError,
)

logger = logging.getLogger(__name__)


class ADBDevice:
    """Device-level helpers over one connection."""

    def __init__(self, connection: BaseADBConnection):
        self.connection = connection
        self._api_level: Optional[int] = None

    @property
    def device_id(self) -> str:
        return self.connection.device_id

    async def shell(self, command: ShellCommand) -> str:
        """Run a shell command, normalizing failures to TransportError."""
        try:
            return await self.connection.shell(command)
        except LocationBridgeError:
            raise
        except Exception as e:
            raise TransportError(
                f"Shell command failed on {self.device_id}: {e}", device_id=self.device_id
            ) from e

    async def emu(self, args: Sequence[str]) -> str:
        """Run an emulator console command."""
        try:
            return await self.connection.emu(args)
        except LocationBridgeError:
            raise
        except Exception as e:
            raise TransportError(
                f"Emulator command failed on {self.device_id}: {e}", device_id=self.device_id
            ) from e

    # === Properties ===

    async def get_api_level(self) -> int:
        """Get the device API level (cached after the first query)"""
        if self._api_level is None:
            output = await self.shell(["getprop", "ro.build.version.sdk"])
            try:
                self._api_level = int(output.strip())
            except ValueError:
                raise TransportError(
                    f"Cannot parse the API level from '{output}'", device_id=self.device_id
                )
            logger.debug(f"[ADBDevice] {self.device_id} API level: {self._api_level}")
        return self._api_level

    # === Files ===

    async def file_exists(self, remote_path: str) -> bool:
        """Check whether a path exists on the device"""
        try:
            await self.shell(["ls", remote_path])
            return True
        except ADBCommandError:
            return False

    async def read_file(self, remote_path: str) -> bytes:
        """Read a device file as bytes"""
        output = await self.shell(["cat", remote_path])
        return output.encode("utf-8")

    async def write_file(self, remote_path: str, data: bytes) -> None:
        """
        Write bytes to a device file without exposing a partial file.

        The content is staged in a local temporary directory, pushed next to
        the target and moved over it with a single rename.
        """
        staging_path = f"{remote_path}.tmp"
        with tempfile.TemporaryDirectory() as tmp_root:
            local_path = os.path.join(tmp_root, posixpath.basename(remote_path))
            with open(local_path, "wb") as f:
                f.write(data)

            try:
                pushed = await self.connection.push(local_path, staging_path)
            except Exception as e:
                raise TransportError(
                    f"Push to {staging_path} failed: {e}", device_id=self.device_id
                ) from e
            if not pushed:
                raise TransportError(
                    f"Push to {staging_path} failed", device_id=self.device_id
                )

        try:
            await self.shell(["mv", "-f", staging_path, remote_path])
        except TransportError:
            try:
                await self.shell(["rm", "-f", staging_path])
            except TransportError as cleanup_error:
                logger.debug(f"[ADBDevice] Could not remove {staging_path}: {cleanup_error}")
            raise

    # === Packages ===

    async def list_packages(self, third_party: bool = False) -> List[str]:
        """List installed package ids (optionally third-party only)"""
        args = ["pm", "list", "packages"]
        if third_party:
            args.append("-3")
        output = await self.shell(args)
        packages = []
        for line in output.splitlines():
            line = line.strip()
            if line.startswith("package:"):
                package = line[len("package:"):].strip()
                if package:
                    packages.append(package)
        logger.debug(f"[ADBDevice] Found {len(packages)} packages on {self.device_id}")
        return packages

    # === Settings & App Ops ===

    async def get_setting(self, namespace: str, key: str) -> str:
        return await self.shell(["settings", "get", namespace, key])

    async def put_setting(self, namespace: str, key: str, value) -> None:
        await self.shell(["settings", "put", namespace, key, str(value)])

    async def set_appops(self, package: str, op: str, mode: str) -> None:
        await self.shell(["appops", "set", package, op, mode])

    # === Location Providers ===

    async def get_location_providers(self) -> List[str]:
        """
        Get the enabled location providers.

        API 31+ has no provider list; an enabled location service is
        reported as ["gps"] to keep the legacy shape.
        """
        if await self.get_api_level() < 31:
            output = await self.get_setting("secure", "location_providers_allowed")
            return [p.strip() for p in output.strip().split(",") if p.strip()]

        output = await self.shell(["cmd", "location", "is-location-enabled"])
        return ["gps"] if output.strip() == "true" else []

    async def toggle_gps_location_provider(self, enabled: bool) -> None:
        """Enable or disable the GPS location provider"""
        if await self.get_api_level() < 31:
            await self.put_setting(
                "secure", "location_providers_allowed", f"{'+' if enabled else '-'}gps"
            )
            return
        await self.shell(
            ["cmd", "location", "set-location-enabled", "true" if enabled else "false"]
        )
