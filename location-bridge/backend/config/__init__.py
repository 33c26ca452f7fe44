"""
Location Bridge Configuration Module

Provides centralized configuration management.

Usage:
    from config import defaults as config_defaults
    timeout = config_defaults.Defaults.GPS_CACHE_REFRESH_TIMEOUT_MS

load_defaults_from_env() rebinds Defaults, so read it through the module.
"""

from .defaults import Defaults, AppDefaults, load_defaults_from_env

__all__ = ["Defaults", "AppDefaults", "load_defaults_from_env"]
