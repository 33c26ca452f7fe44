"""
Location package - geolocation commands and mock location bookkeeping
"""

from .geolocation import GeolocationCommands
from .mock_location_registry import MockLocationRegistry, OperationResult, RevocationSummary
from .models import GEO_EPSILON, Location
from .settings_app import SettingsAppClient
from .transport import ADBAuthorizationTransport, AuthorizationTransport

__all__ = [
    "GeolocationCommands",
    "MockLocationRegistry",
    "OperationResult",
    "RevocationSummary",
    "GEO_EPSILON",
    "Location",
    "SettingsAppClient",
    "ADBAuthorizationTransport",
    "AuthorizationTransport",
]
