"""
Legacy app lifecycle commands.

These were removed upstream; callers should use the explicit app management
commands instead.
"""

from utils.error_handler import UnsupportedOperationError

ISSUE_URL = "https://github.com/appium/appium/issues/15807"


def _unsupported() -> UnsupportedOperationError:
    return UnsupportedOperationError(f"This API is not supported anymore. See {ISSUE_URL}")


async def launch_app():
    raise _unsupported()


async def close_app():
    raise _unsupported()


async def reset():
    raise _unsupported()
