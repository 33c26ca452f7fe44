from __future__ import annotations

import asyncio
from typing import List

import pytest

from config import defaults as config_defaults
from config.defaults import AppDefaults
from core.adb.adb_device import ADBDevice
from core.location.settings_app import SettingsAppClient
from location_fakes import FakeDeviceConnection
from services.device_sessions import DeviceSessionManager
from utils.error_handler import DeviceNotFoundError, GeolocationError

DEVICE = "192.168.1.50:5555"


class QueuedADBManager:
    """Returns the prepared connections in order, one per get_connection()"""

    def __init__(self, *connections: FakeDeviceConnection):
        self.connections: List[FakeDeviceConnection] = list(connections)

    async def get_connection(self, device_id: str) -> FakeDeviceConnection:
        return self.connections.pop(0)


def test_session_uses_refresh_settings_from_defaults() -> None:
    conn = FakeDeviceConnection(location_output="no data yet")
    defaults = AppDefaults(GPS_CACHE_REFRESH_TIMEOUT_MS=30, GPS_CACHE_POLL_INTERVAL=0.01)
    manager = DeviceSessionManager(QueuedADBManager(conn), defaults=defaults)

    async def _run():
        session = await manager.get_session(DEVICE)
        assert session.geolocation.settings_app.refresh_timeout_ms == 30
        assert session.geolocation.settings_app.poll_interval == 0.01
        await session.geolocation.mobile_refresh_gps_cache()

    with pytest.raises(GeolocationError, match="within 30ms"):
        asyncio.run(_run())


def test_settings_client_reads_reloaded_defaults(monkeypatch) -> None:
    monkeypatch.setattr(config_defaults, "Defaults", config_defaults.Defaults)
    monkeypatch.setenv("GPS_CACHE_REFRESH_TIMEOUT_MS", "1")
    monkeypatch.setenv("GPS_CACHE_POLL_INTERVAL", "0.25")
    config_defaults.load_defaults_from_env()

    client = SettingsAppClient(ADBDevice(FakeDeviceConnection()))

    assert client.refresh_timeout_ms == 1
    assert client.poll_interval == 0.25


def test_emulator_session_reused_as_real_device_authorizes_helper() -> None:
    conn = FakeDeviceConnection(DEVICE)
    manager = DeviceSessionManager(QueuedADBManager(conn), defaults=AppDefaults())

    async def _run():
        first = await manager.get_session(DEVICE, is_emulator=True)
        assert conn.appops == {}
        second = await manager.get_session(DEVICE, is_emulator=False)
        return first, second

    first, second = asyncio.run(_run())

    assert second is first
    assert second.is_emulator is False
    assert conn.appops == {"io.appium.settings": "allow"}


def test_real_device_session_reused_as_emulator_does_not_reauthorize() -> None:
    conn = FakeDeviceConnection(DEVICE)
    manager = DeviceSessionManager(QueuedADBManager(conn), defaults=AppDefaults())

    async def _run():
        await manager.get_session(DEVICE)
        await manager.get_session(DEVICE, is_emulator=True)
        await manager.get_session(DEVICE, is_emulator=True)

    asyncio.run(_run())
    assert sum(1 for argv in conn.argv_log() if argv[0] == "appops") == 1


def test_stale_session_connection_is_closed() -> None:
    old = FakeDeviceConnection(DEVICE)
    new = FakeDeviceConnection(DEVICE)
    manager = DeviceSessionManager(QueuedADBManager(old, new), defaults=AppDefaults())

    async def _run():
        await manager.get_session(DEVICE)
        old._connected = False
        return await manager.get_session(DEVICE)

    session = asyncio.run(_run())

    assert old.close_calls == 1
    assert session.connection is new
    assert new.close_calls == 0


def test_failed_connect_closes_connection() -> None:
    conn = FakeDeviceConnection(DEVICE, connect_ok=False)
    manager = DeviceSessionManager(QueuedADBManager(conn), defaults=AppDefaults())

    with pytest.raises(DeviceNotFoundError):
        asyncio.run(manager.get_session(DEVICE))
    assert conn.close_calls == 1
    assert manager.list_sessions() == {}
