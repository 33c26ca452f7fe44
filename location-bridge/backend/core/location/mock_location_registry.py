"""
Mock Location Registry - bookkeeping of apps granted the mock location app op.

Every app allowed to provide mock locations through this registry is recorded
in a JSON array on the device. Resetting intersects that record with the
currently installed third-party packages and denies the op for each match.

Contract:
- authorize(): the grant is the primary effect and its failure propagates;
  recording the app id is best effort and only ever logged.
- deauthorize_all(): best-effort cleanup, never raises.

Concurrent calls are not coordinated; two racing authorize() calls may lose
one record update (last writer wins). The record can always be re-derived.
"""

import asyncio
import json
import logging
from dataclasses import dataclass, field
from typing import Any, Generic, List, Optional, TypeVar

from config import defaults as config_defaults
from core.location.transport import AuthorizationTransport
from utils.error_handler import (
    InvalidArgumentError,
    RegistryParseError,
    RemoteFileNotFoundError,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class OperationResult(Generic[T]):
    """Outcome of one internal step: a value or the error that stopped it"""

    ok: bool
    value: Optional[T] = None
    error: Optional[BaseException] = None

    @classmethod
    def success(cls, value: Any = None) -> "OperationResult":
        return cls(ok=True, value=value)

    @classmethod
    def failure(cls, error: BaseException) -> "OperationResult":
        return cls(ok=False, error=error)


@dataclass
class RevocationSummary:
    """What deauthorize_all() attempted and how each revoke ended"""

    candidates: List[str] = field(default_factory=list)
    revoked: List[str] = field(default_factory=list)
    failed: List[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "candidates": list(self.candidates),
            "revoked": list(self.revoked),
            "failed": list(self.failed),
        }


def parse_authorized_ids(raw: bytes, path: Optional[str] = None) -> List[str]:
    """
    Decode the persisted app id list.

    Duplicates are dropped, first occurrence wins.

    Raises:
        RegistryParseError: If the content is not a JSON array of strings
    """
    try:
        data = json.loads(raw.decode("utf-8") if isinstance(raw, bytes) else raw)
    except (UnicodeDecodeError, ValueError) as e:
        raise RegistryParseError(f"Mock location app list is not valid JSON: {e}", path)

    if not isinstance(data, list) or not all(isinstance(item, str) for item in data):
        raise RegistryParseError("Mock location app list must be a JSON array of strings", path)

    return list(dict.fromkeys(data))


def serialize_authorized_ids(app_ids: List[str]) -> bytes:
    return json.dumps(list(app_ids)).encode("utf-8")


class MockLocationRegistry:
    """
    Device-side registry of apps authorized to mock locations.

    Args:
        transport: Remote capability used for every device interaction
        store_path: Device path of the persisted JSON array
        fallback_id: App revoked when no recorded app is still installed
    """

    def __init__(
        self,
        transport: AuthorizationTransport,
        store_path: Optional[str] = None,
        fallback_id: Optional[str] = None,
    ):
        self.transport = transport
        self.store_path = store_path or config_defaults.Defaults.MOCK_APP_IDS_STORE
        self.fallback_id = fallback_id or config_defaults.Defaults.SETTINGS_HELPER_ID

    # =========================================================================
    # PUBLIC API
    # =========================================================================

    async def authorize(self, app_id: str) -> None:
        """
        Allow app_id to mock locations and record it.

        Raises:
            InvalidArgumentError: If app_id is empty
            TransportError: If the grant itself fails
        """
        if not isinstance(app_id, str) or not app_id:
            raise InvalidArgumentError("App id must be a non-empty string", field="app_id")

        await self.transport.grant(app_id)
        logger.info(f"[MockLocationRegistry] Mock location allowed for '{app_id}'")

        result = await self._record(app_id)
        if not result.ok:
            logger.warning(
                f"[MockLocationRegistry] Unable to persist mock location app id "
                f"'{app_id}': {result.error}"
            )

    async def deauthorize_all(self) -> RevocationSummary:
        """
        Deny mock locations for every recorded app that is still installed.

        Never raises; failures are logged and reported in the summary.
        """
        summary = RevocationSummary()
        try:
            reference_result, load_result = await asyncio.gather(
                self._fetch_reference_ids(), self._load()
            )
            if not reference_result.ok:
                logger.warning(
                    f"[MockLocationRegistry] Cannot list installed packages: "
                    f"{reference_result.error}"
                )
            if not load_result.ok:
                logger.warning(
                    f"[MockLocationRegistry] Cannot load {self.store_path}: {load_result.error}"
                )
            installed = set(reference_result.value or [])
            recorded = load_result.value or []

            # Only apps that are still installed can hold the app op
            summary.candidates = [app_id for app_id in recorded if app_id in installed]

            if len(summary.candidates) <= 1:
                target = summary.candidates[0] if summary.candidates else self.fallback_id
                targets = [target]
            else:
                logger.debug(
                    f"[MockLocationRegistry] Resetting mock_location permission for "
                    f"the following apps: {summary.candidates}"
                )
                targets = summary.candidates

            results = await asyncio.gather(*(self._revoke(t) for t in targets))
            for target, result in zip(targets, results):
                if result.ok:
                    summary.revoked.append(target)
                else:
                    summary.failed.append(target)
                    logger.warning(
                        f"[MockLocationRegistry] Unable to deny mock location for "
                        f"'{target}': {result.error}"
                    )
        except Exception as e:
            logger.warning(f"[MockLocationRegistry] Unable to reset mock location: {e}")
            return summary

        logger.info(
            f"[MockLocationRegistry] Mock location reset: {len(summary.revoked)} revoked, "
            f"{len(summary.failed)} failed"
        )
        return summary

    # =========================================================================
    # INTERNAL STEPS
    # =========================================================================

    async def _load(self) -> OperationResult:
        """Load the recorded ids; a missing or malformed record is an empty one"""
        try:
            raw = await self.transport.read_remote_file(self.store_path)
        except RemoteFileNotFoundError:
            return OperationResult.success([])
        except Exception as e:
            return OperationResult.failure(e)

        try:
            return OperationResult.success(parse_authorized_ids(raw, self.store_path))
        except RegistryParseError as e:
            logger.debug(f"[MockLocationRegistry] Ignoring malformed record: {e}")
            return OperationResult.success([])

    async def _record(self, app_id: str) -> OperationResult:
        load_result = await self._load()
        if not load_result.ok:
            return load_result

        app_ids = load_result.value
        if app_id in app_ids:
            return OperationResult.success(app_ids)

        app_ids.append(app_id)
        try:
            await self.transport.write_remote_file(
                self.store_path, serialize_authorized_ids(app_ids)
            )
        except Exception as e:
            return OperationResult.failure(e)
        logger.debug(f"[MockLocationRegistry] Recorded '{app_id}' in {self.store_path}")
        return OperationResult.success(app_ids)

    async def _fetch_reference_ids(self) -> OperationResult:
        try:
            return OperationResult.success(list(await self.transport.list_reference_ids()))
        except Exception as e:
            return OperationResult.failure(e)

    async def _revoke(self, app_id: str) -> OperationResult:
        try:
            await self.transport.revoke(app_id)
            return OperationResult.success(app_id)
        except Exception as e:
            return OperationResult.failure(e)
