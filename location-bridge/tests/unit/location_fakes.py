from __future__ import annotations

import asyncio
import shlex
from typing import Dict, Iterable, List, Optional, Sequence

from core.adb.base_connection import BaseADBConnection
from core.location.transport import AuthorizationTransport
from utils.error_handler import ADBCommandError, RemoteFileNotFoundError, TransportError

STORE = "/data/local/tmp/mock_apps.json"


class FakeTransport(AuthorizationTransport):
    """In-memory transport with per-call failure injection."""

    def __init__(
        self,
        *,
        files: Optional[Dict[str, bytes]] = None,
        reference_ids: Iterable[str] = (),
        fail_grant: Iterable[str] = (),
        fail_revoke: Iterable[str] = (),
        fail_read: bool = False,
        fail_write: bool = False,
        fail_list: bool = False,
    ) -> None:
        self.files: Dict[str, bytes] = dict(files or {})
        self.reference_ids = list(reference_ids)
        self.fail_grant = set(fail_grant)
        self.fail_revoke = set(fail_revoke)
        self.fail_read = fail_read
        self.fail_write = fail_write
        self.fail_list = fail_list
        self.calls: List[tuple] = []
        self.granted: List[str] = []
        self.revoked: List[str] = []

    async def grant(self, app_id: str) -> None:
        self.calls.append(("grant", app_id))
        if app_id in self.fail_grant:
            raise TransportError(f"grant {app_id} rejected")
        self.granted.append(app_id)

    async def revoke(self, app_id: str) -> None:
        self.calls.append(("revoke", app_id))
        await asyncio.sleep(0)
        if app_id in self.fail_revoke:
            raise TransportError(f"revoke {app_id} rejected")
        self.revoked.append(app_id)

    async def read_remote_file(self, path: str) -> bytes:
        self.calls.append(("read", path))
        if self.fail_read:
            raise TransportError("device offline")
        if path not in self.files:
            raise RemoteFileNotFoundError(path)
        return self.files[path]

    async def write_remote_file(self, path: str, data: bytes) -> None:
        self.calls.append(("write", path))
        if self.fail_write:
            raise TransportError("read-only file system")
        self.files[path] = data

    async def list_reference_ids(self) -> List[str]:
        self.calls.append(("list", None))
        if self.fail_list:
            raise TransportError("pm crashed")
        return list(self.reference_ids)

    def call_names(self) -> List[str]:
        return [name for name, _ in self.calls]


class FakeDeviceConnection(BaseADBConnection):
    """Connection that emulates the handful of shell commands the backend sends."""

    def __init__(
        self,
        device_id: str = "192.168.1.50:5555",
        *,
        api_level: int = 30,
        packages: Sequence[str] = (),
        files: Optional[Dict[str, bytes]] = None,
        location_output: str = 'Broadcast completed: result=-1, data="0 0 0"',
        refreshed_location_output: Optional[str] = None,
        connect_ok: bool = True,
    ) -> None:
        super().__init__(device_id)
        self.api_level = api_level
        self.packages = list(packages)
        self.files: Dict[str, bytes] = dict(files or {})
        self.location_output = location_output
        self.refreshed_location_output = refreshed_location_output
        self.location_enabled = True
        self.connect_ok = connect_ok
        self.push_ok = True
        self.failing: set = set()
        self.commands: List[str] = []
        self.emu_commands: List[List[str]] = []
        self.pushed: List[tuple] = []
        self.close_calls = 0
        self.settings: Dict[tuple, str] = {}
        self.appops: Dict[str, str] = {}

    async def connect(self) -> bool:
        self._connected = self.connect_ok
        return self.connect_ok

    def _fail(self, line: str) -> ADBCommandError:
        return ADBCommandError(f"'{line}' failed", device_id=self.device_id, returncode=1)

    async def shell(self, command) -> str:
        line = self.format_command(command)
        self.commands.append(line)
        if any(line.startswith(prefix) for prefix in self.failing):
            raise self._fail(line)

        argv = shlex.split(line)
        if argv[:2] == ["getprop", "ro.build.version.sdk"]:
            return str(self.api_level)
        if argv[0] == "ls":
            if argv[1] in self.files:
                return argv[1]
            raise self._fail(line)
        if argv[0] == "cat":
            if argv[1] in self.files:
                return self.files[argv[1]].decode("utf-8").strip()
            raise self._fail(line)
        if argv[0] == "mv":
            self.files[argv[-1]] = self.files.pop(argv[-2])
            return ""
        if argv[0] == "rm":
            self.files.pop(argv[-1], None)
            return ""
        if argv[:3] == ["pm", "list", "packages"]:
            return "\n".join(f"package:{p}" for p in self.packages)
        if argv[0] == "appops":
            self.appops[argv[2]] = argv[4]
            return ""
        if argv[:2] == ["settings", "put"]:
            self.settings[(argv[2], argv[3])] = argv[4]
            return ""
        if argv[:2] == ["settings", "get"]:
            return self.settings.get((argv[2], argv[3]), "null")
        if argv[:3] == ["cmd", "location", "is-location-enabled"]:
            return "true" if self.location_enabled else "false"
        if argv[:3] == ["cmd", "location", "set-location-enabled"]:
            self.location_enabled = argv[3] == "true"
            return ""
        if argv[:2] == ["am", "broadcast"]:
            if "forceUpdate" in argv and self.refreshed_location_output is not None:
                self.location_output = self.refreshed_location_output
            return self.location_output
        return ""

    async def emu(self, args) -> str:
        self.emu_commands.append([str(a) for a in args])
        return "OK"

    async def push(self, local_path: str, remote_path: str) -> bool:
        self.pushed.append((local_path, remote_path))
        if not self.push_ok:
            return False
        with open(local_path, "rb") as f:
            self.files[remote_path] = f.read()
        return True

    async def close(self):
        self.close_calls += 1
        self._connected = False

    def argv_log(self) -> List[List[str]]:
        return [shlex.split(line) for line in self.commands]
