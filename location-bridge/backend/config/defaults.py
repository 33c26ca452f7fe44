"""
Location Bridge - Default Configuration Constants

Centralized configuration for the entire application.
Values can be overridden via environment variables.

Usage:
    from config import defaults as config_defaults
    store = config_defaults.Defaults.MOCK_APP_IDS_STORE
"""

import os
from dataclasses import dataclass


@dataclass
class AppDefaults:
    """Application-wide default configuration."""

    # ==========================================================================
    # Server Settings
    # ==========================================================================
    SERVER_PORT: int = 8083
    SERVER_HOST: str = "0.0.0.0"
    LOG_LEVEL: str = "INFO"

    # ==========================================================================
    # Mock Location Settings
    # ==========================================================================
    MOCK_APP_IDS_STORE: str = "/data/local/tmp/mock_apps.json"
    SETTINGS_HELPER_ID: str = "io.appium.settings"
    # App made mock location provider when a real device session starts ("" disables)
    MOCK_LOCATION_APP: str = "io.appium.settings"

    # ==========================================================================
    # Geolocation Settings
    # ==========================================================================
    GPS_CACHE_REFRESH_TIMEOUT_MS: int = 20000
    GPS_CACHE_POLL_INTERVAL: float = 0.5  # seconds

    # ==========================================================================
    # BiDi Event Settings
    # ==========================================================================
    BIDI_EVENT_BUFFER: int = 200

    @classmethod
    def from_env(cls) -> "AppDefaults":
        """Create config from environment variables with defaults."""
        return cls(
            SERVER_PORT=int(os.getenv("SERVER_PORT", cls.SERVER_PORT)),
            SERVER_HOST=os.getenv("SERVER_HOST", cls.SERVER_HOST),
            LOG_LEVEL=os.getenv("LOG_LEVEL", cls.LOG_LEVEL),
            MOCK_APP_IDS_STORE=os.getenv("MOCK_APP_IDS_STORE", cls.MOCK_APP_IDS_STORE),
            SETTINGS_HELPER_ID=os.getenv("SETTINGS_HELPER_ID", cls.SETTINGS_HELPER_ID),
            MOCK_LOCATION_APP=os.getenv("MOCK_LOCATION_APP", cls.MOCK_LOCATION_APP),
            GPS_CACHE_REFRESH_TIMEOUT_MS=int(
                os.getenv("GPS_CACHE_REFRESH_TIMEOUT_MS", cls.GPS_CACHE_REFRESH_TIMEOUT_MS)
            ),
            GPS_CACHE_POLL_INTERVAL=float(
                os.getenv("GPS_CACHE_POLL_INTERVAL", cls.GPS_CACHE_POLL_INTERVAL)
            ),
            BIDI_EVENT_BUFFER=int(os.getenv("BIDI_EVENT_BUFFER", cls.BIDI_EVENT_BUFFER)),
        )


# Global defaults instance - can be overridden at runtime
Defaults = AppDefaults()


def load_defaults_from_env():
    """Reload defaults from environment variables."""
    global Defaults
    Defaults = AppDefaults.from_env()
    return Defaults
