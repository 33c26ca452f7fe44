from __future__ import annotations

import asyncio
import subprocess

import pytest

from core.adb import adb_subprocess
from core.adb.adb_connection import PythonADBConnection
from core.adb.adb_manager import ADBManager
from core.adb.adb_subprocess import SubprocessADBConnection
from utils.error_handler import ADBCommandError


class _FakeRun:
    """Stands in for subprocess.run and answers by adb sub-command"""

    def __init__(self, responses):
        self.responses = responses
        self.calls = []

    def __call__(self, args, **kwargs):
        self.calls.append(list(args))
        key = args[3] if args[1] == "-s" else args[1]
        returncode, stdout = self.responses.get(key, (0, ""))
        if kwargs.get("text"):
            return subprocess.CompletedProcess(args, returncode, stdout, "")
        return subprocess.CompletedProcess(args, returncode, stdout.encode(), b"")


@pytest.fixture
def fake_run(monkeypatch):
    def _install(**responses):
        run = _FakeRun(responses)
        monkeypatch.setattr(adb_subprocess.subprocess, "run", run)
        return run

    return _install


def test_subprocess_connect_uses_listed_device(fake_run) -> None:
    run = fake_run(devices=(0, "List of devices attached\nemulator-5554\tdevice\n"))
    conn = SubprocessADBConnection("emulator-5554")

    assert asyncio.run(conn.connect()) is True
    assert conn.available
    assert run.calls == [["adb", "devices"]]


def test_subprocess_connect_missing_serial_fails(fake_run) -> None:
    run = fake_run(devices=(0, "List of devices attached\n"))
    conn = SubprocessADBConnection("emulator-5556")

    assert asyncio.run(conn.connect()) is False
    assert ["adb", "connect", "emulator-5556"] not in run.calls


def test_subprocess_connect_network_device(fake_run) -> None:
    run = fake_run(
        devices=(0, "List of devices attached\n"),
        connect=(0, "connected to 192.168.1.2:45441\n"),
    )
    conn = SubprocessADBConnection("192.168.1.2:45441")

    assert asyncio.run(conn.connect()) is True
    assert run.calls[-1] == ["adb", "connect", "192.168.1.2:45441"]


def test_subprocess_shell_quotes_argv(fake_run) -> None:
    run = fake_run(shell=(0, "package:com.a\n"))
    conn = SubprocessADBConnection("emulator-5554")
    conn._connected = True

    output = asyncio.run(conn.shell(["settings", "put", "secure", "key", "a b"]))

    assert output == "package:com.a"
    assert run.calls[0] == ["adb", "-s", "emulator-5554", "shell", "settings put secure key 'a b'"]


def test_subprocess_shell_nonzero_exit_raises(fake_run) -> None:
    fake_run(shell=(1, "ls: /nope: No such file or directory"))
    conn = SubprocessADBConnection("emulator-5554")
    conn._connected = True

    with pytest.raises(ADBCommandError) as exc_info:
        asyncio.run(conn.shell(["ls", "/nope"]))
    assert exc_info.value.returncode == 1


def test_subprocess_shell_requires_connection() -> None:
    with pytest.raises(ConnectionError):
        asyncio.run(SubprocessADBConnection("emulator-5554").shell("id"))


def test_subprocess_emu_and_push(fake_run) -> None:
    run = fake_run(emu=(0, "OK"), push=(1, "adb: error: failed to copy"))
    conn = SubprocessADBConnection("emulator-5554")
    conn._connected = True

    assert asyncio.run(conn.emu(["geo", "fix", "2.35", "48.85"])) == "OK"
    assert run.calls[0] == ["adb", "-s", "emulator-5554", "emu", "geo", "fix", "2.35", "48.85"]
    assert asyncio.run(conn.push("/tmp/a", "/data/local/tmp/a")) is False


class _FakeAdbShellDevice:
    """Mimics AdbDeviceTcpAsync.shell by echoing the exit-status marker"""

    available = True

    def __init__(self, output: str, returncode: int = 0):
        self.output = output
        self.returncode = returncode
        self.commands = []

    async def shell(self, command, read_timeout_s=None):
        self.commands.append(command)
        marker = command.rsplit("echo ", 1)[1].replace("$?", "")
        return f"{self.output}\n{marker}{self.returncode}\n"


def test_python_adb_shell_strips_exit_marker() -> None:
    conn = PythonADBConnection("192.168.1.2")
    conn._device = _FakeAdbShellDevice("30")

    assert asyncio.run(conn.shell(["getprop", "ro.build.version.sdk"])) == "30"
    assert conn._device.commands[0].startswith("getprop ro.build.version.sdk; echo __RC_")


def test_python_adb_shell_nonzero_exit_raises() -> None:
    conn = PythonADBConnection("192.168.1.2")
    conn._device = _FakeAdbShellDevice("cat: /nope: No such file", returncode=1)

    with pytest.raises(ADBCommandError) as exc_info:
        asyncio.run(conn.shell(["cat", "/nope"]))
    assert exc_info.value.returncode == 1


def test_python_adb_emu_is_unsupported() -> None:
    conn = PythonADBConnection("192.168.1.2")
    with pytest.raises(ADBCommandError):
        asyncio.run(conn.emu(["geo", "fix", "1", "2"]))


@pytest.mark.parametrize(
    "device_id, expected",
    [
        ("192.168.1.2:5555", ("192.168.1.2", 5555)),
        ("192.168.1.2:45441", ("192.168.1.2", 45441)),
        ("emulator-5554", (None, None)),
        ("R58M12345", (None, None)),
        (":5555", (None, None)),
    ],
)
def test_parse_device_id(device_id, expected) -> None:
    assert ADBManager.parse_device_id(device_id) == expected


@pytest.mark.parametrize(
    "device_id, server_running, expected_type",
    [
        ("emulator-5554", False, SubprocessADBConnection),
        ("192.168.1.2:5555", True, SubprocessADBConnection),
        ("192.168.1.2:45441", False, SubprocessADBConnection),
        ("192.168.1.2:5555", False, PythonADBConnection),
    ],
)
def test_connection_selection(monkeypatch, device_id, server_running, expected_type) -> None:
    async def _check(self):
        return server_running

    monkeypatch.setattr(ADBManager, "_check_adb_server", _check)
    connection = asyncio.run(ADBManager().get_connection(device_id))

    assert type(connection) is expected_type
    assert connection.device_id == device_id
