"""
Centralized Error Handling Module for Location Bridge

Provides consistent error responses, logging, and user-friendly messages.
"""

import logging
from typing import Dict, Any, Optional
from fastapi import status
from fastapi.responses import JSONResponse

logger = logging.getLogger("location_bridge")


class LocationBridgeError(Exception):
    """Base exception for all Location Bridge errors"""

    def __init__(
        self,
        message: str,
        code: str = "UNKNOWN_ERROR",
        details: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.code = code
        self.details = details or {}
        super().__init__(self.message)


class TransportError(LocationBridgeError):
    """Raised when a remote call to the device fails (process, network, permission)"""

    def __init__(
        self,
        message: str,
        device_id: Optional[str] = None,
        code: str = "TRANSPORT_ERROR",
    ):
        super().__init__(message, code=code, details={"device_id": device_id})


class ADBConnectionError(TransportError):
    """Raised when ADB connection fails"""

    def __init__(self, message: str, device_id: Optional[str] = None):
        super().__init__(message, device_id=device_id, code="ADB_CONNECTION_ERROR")


class ADBCommandError(TransportError):
    """Raised when an ADB command exits with a failure status"""

    def __init__(
        self,
        message: str,
        device_id: Optional[str] = None,
        returncode: Optional[int] = None,
    ):
        super().__init__(message, device_id=device_id, code="ADB_COMMAND_ERROR")
        self.returncode = returncode
        self.details["returncode"] = returncode


class RemoteFileNotFoundError(LocationBridgeError):
    """Raised when an expected file does not exist on the device"""

    def __init__(self, path: str):
        super().__init__(
            f"Remote file '{path}' does not exist",
            code="REMOTE_FILE_NOT_FOUND",
            details={"path": path},
        )


class RegistryParseError(LocationBridgeError):
    """Raised when the persisted mock location app list is malformed"""

    def __init__(self, message: str, path: Optional[str] = None):
        super().__init__(message, code="REGISTRY_PARSE_ERROR", details={"path": path})


class DeviceNotFoundError(LocationBridgeError):
    """Raised when Android device is not found or disconnected"""

    def __init__(self, device_id: Optional[str] = None):
        message = (
            f"Device '{device_id}' not found or disconnected"
            if device_id
            else "No Android devices found"
        )
        super().__init__(
            message, code="DEVICE_NOT_FOUND", details={"device_id": device_id}
        )


class GeolocationError(LocationBridgeError):
    """Raised when geolocation cannot be set, read or reset"""

    def __init__(self, message: str, device_id: Optional[str] = None):
        super().__init__(
            message, code="GEOLOCATION_ERROR", details={"device_id": device_id}
        )


class InvalidArgumentError(LocationBridgeError):
    """Raised when a command receives an invalid argument"""

    def __init__(self, message: str, field: Optional[str] = None):
        super().__init__(message, code="INVALID_ARGUMENT", details={"field": field})


class UnsupportedOperationError(LocationBridgeError):
    """Raised by commands that are no longer supported"""

    def __init__(self, message: str):
        super().__init__(message, code="UNSUPPORTED_OPERATION")


def create_error_response(
    error: Exception,
    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR,
) -> JSONResponse:
    """
    Create a standardized error response

    Args:
        error: The exception that occurred
        status_code: HTTP status code

    Returns:
        JSONResponse with error details
    """
    error_response = {
        "success": False,
        "error": {
            "message": str(error),
            "type": error.__class__.__name__,
            "user_message": get_user_friendly_message(error),
        },
    }

    if isinstance(error, LocationBridgeError):
        error_response["error"]["code"] = error.code
        error_response["error"]["details"] = error.details

    logger.error(f"{error.__class__.__name__}: {error}", exc_info=True)

    return JSONResponse(status_code=status_code, content=error_response)


def handle_api_error(error: Exception) -> JSONResponse:
    """
    Handle API errors with appropriate status codes

    Args:
        error: The exception to handle

    Returns:
        JSONResponse with appropriate status code
    """
    if isinstance(error, (DeviceNotFoundError, RemoteFileNotFoundError)):
        return create_error_response(error, status.HTTP_404_NOT_FOUND)

    elif isinstance(error, (InvalidArgumentError, ValueError)):
        return create_error_response(error, status.HTTP_400_BAD_REQUEST)

    elif isinstance(error, UnsupportedOperationError):
        return create_error_response(error, status.HTTP_501_NOT_IMPLEMENTED)

    elif isinstance(error, TransportError):
        return create_error_response(error, status.HTTP_503_SERVICE_UNAVAILABLE)

    else:
        return create_error_response(error, status.HTTP_500_INTERNAL_SERVER_ERROR)


def get_user_friendly_message(error: Exception) -> str:
    """
    Get a user-friendly error message for frontend display

    Args:
        error: The exception

    Returns:
        User-friendly error message
    """
    if isinstance(error, DeviceNotFoundError):
        return "Android device not found. Please check the device is connected and ADB is enabled."

    elif isinstance(error, ADBConnectionError):
        return "Could not connect to Android device via ADB. Please check the connection and try again."

    elif isinstance(error, TransportError):
        return f"The device rejected the command: {error.message}"

    elif isinstance(error, GeolocationError):
        return f"Geolocation command failed: {error.message}"

    elif isinstance(error, (UnsupportedOperationError, InvalidArgumentError)):
        return error.message

    else:
        return f"An unexpected error occurred: {str(error)}"
