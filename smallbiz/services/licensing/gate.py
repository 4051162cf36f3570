"""
License Gate

Two-state machine in front of the books:

    LOCKED --activate(key) / verify()--> UNLOCKED
    UNLOCKED --deactivate()-----------> LOCKED
    LOCKED   --deactivate()-----------> LOCKED  (releases a saved key)

Activation checks, in order:
1. Key format (SBKP-YYYY-XXXX-XXXXX)
2. Key exists in the registry
3. Key is unbound (bind it) or bound to this device's fingerprint

On success the key and fingerprint are written to local storage so the
next session can verify() without asking again.

CRITICAL: This is a UX gate, not a security boundary. The registry, the
hash and this state machine all run on the user's machine.
"""

from typing import Awaitable, Callable, Optional

from smallbiz.models.license import (
    ActivationResult,
    GateState,
    LicenseInfo,
)
from smallbiz.observability import get_logger
from smallbiz.services.licensing.fingerprint import DeviceFingerprinter
from smallbiz.services.licensing.registry import (
    LicenseAlreadyBoundError,
    LicenseRegistry,
    validate_license_format,
)
from smallbiz.services.storage import (
    FINGERPRINT_KEY,
    LICENSE_KEY,
    KeyValueStorage,
    StorageError,
)


INVALID_FORMAT_MESSAGE = "Invalid license key format"
UNKNOWN_KEY_MESSAGE = "Invalid license key"
DEVICE_MISMATCH_MESSAGE = "This license is already activated on another device"

FingerprintProvider = Callable[[], Awaitable[str]]


def normalize_license_key(raw_key: str) -> str:
    """Keys are entered case-insensitively with stray whitespace."""
    return raw_key.strip().upper()


class LicenseGate:
    """
    Decides whether this browser profile / device may open the books.

    The fingerprint provider is an async callable returning the current
    device token; it defaults to DeviceFingerprinter().generate.
    """

    def __init__(
        self,
        storage: KeyValueStorage,
        registry: Optional[LicenseRegistry] = None,
        fingerprint_provider: Optional[FingerprintProvider] = None,
    ):
        self._storage = storage
        self._registry = registry or LicenseRegistry(storage)
        self._fingerprint_provider = fingerprint_provider or DeviceFingerprinter().generate
        self._logger = get_logger(__name__)

        self._license_key: Optional[str] = None
        self._device_fingerprint: Optional[str] = None

    @property
    def state(self) -> GateState:
        return GateState.UNLOCKED if self._license_key else GateState.LOCKED

    @property
    def is_unlocked(self) -> bool:
        return self.state == GateState.UNLOCKED

    @property
    def license_key(self) -> Optional[str]:
        return self._license_key

    @property
    def device_fingerprint(self) -> Optional[str]:
        return self._device_fingerprint

    @property
    def registry(self) -> LicenseRegistry:
        return self._registry

    async def activate(self, raw_key: str) -> ActivationResult:
        """
        Try to activate a license key on this device.

        Failures are returned, not raised: the result's error is the
        message shown to the user. A key activated earlier in this
        session is released once the new one is bound.

        Raises:
            StorageError: The binding or credentials could not be written;
                          nothing is left bound or unlocked
        """
        key = normalize_license_key(raw_key)

        if not validate_license_format(key):
            return self._reject(key, INVALID_FORMAT_MESSAGE)

        if key not in self._registry:
            return self._reject(key, UNKNOWN_KEY_MESSAGE)

        fingerprint = await self._fingerprint_provider()

        previous = self._registry.get(key)
        was_bound_here = previous is not None and previous.device_fingerprint == fingerprint
        try:
            record = self._registry.bind(key, fingerprint)
        except LicenseAlreadyBoundError:
            return self._reject(key, DEVICE_MISMATCH_MESSAGE, fingerprint=fingerprint)

        try:
            self._save_credentials(key, fingerprint)
        except StorageError:
            if not was_bound_here:
                self._registry.unbind(key)
            raise

        replaced_key = self._license_key
        self._license_key = key
        self._device_fingerprint = fingerprint
        if replaced_key and replaced_key != key:
            self._registry.unbind(replaced_key)
            self._logger.info("license_released", license_key=replaced_key, replaced_by=key)

        self._logger.info(
            "license_activated",
            license_key=key,
            license_type=record.type.value,
            fingerprint=fingerprint,
        )
        return ActivationResult(
            success=True,
            license_type=record.type,
            features=record.features,
        )

    async def verify(self) -> bool:
        """
        Restore an activation saved by a previous session.

        Succeeds only if both saved credentials exist, the key is known,
        and the saved fingerprint matches a freshly computed one.
        """
        saved_key = self._storage.get_item(LICENSE_KEY)
        saved_fingerprint = self._storage.get_item(FINGERPRINT_KEY)

        if not saved_key or not saved_fingerprint:
            return False

        if saved_key not in self._registry:
            self._logger.info("license_verification_failed", reason="unknown_key")
            return False

        current_fingerprint = await self._fingerprint_provider()
        if saved_fingerprint != current_fingerprint:
            self._logger.info(
                "license_verification_failed",
                reason="fingerprint_mismatch",
                license_key=saved_key,
            )
            return False

        self._license_key = saved_key
        self._device_fingerprint = saved_fingerprint
        self._logger.info("license_verified", license_key=saved_key)
        return True

    @property
    def saved_license_key(self) -> Optional[str]:
        """Key left in local storage by an earlier activation, if any."""
        return self._storage.get_item(LICENSE_KEY)

    def deactivate(self) -> None:
        """
        Log out: release the binding and forget the saved credentials.

        Also works while LOCKED. When the device fingerprint has drifted
        since activation, verify() fails, but the saved key can still be
        released as long as the saved fingerprint is the one it is bound
        to.
        """
        key = self._license_key
        if key is None:
            key = self._releasable_saved_key()
        if key:
            self._registry.unbind(key)

        self._storage.remove_item(LICENSE_KEY)
        self._storage.remove_item(FINGERPRINT_KEY)

        self._logger.info(
            "license_deactivated",
            license_key=key,
            was_unlocked=self._license_key is not None,
        )
        self._license_key = None
        self._device_fingerprint = None

    def _releasable_saved_key(self) -> Optional[str]:
        saved_key = self._storage.get_item(LICENSE_KEY)
        saved_fingerprint = self._storage.get_item(FINGERPRINT_KEY)
        if not saved_key or not saved_fingerprint:
            return None
        record = self._registry.get(saved_key)
        if record is None or record.device_fingerprint != saved_fingerprint:
            return None
        return saved_key

    def license_info(self) -> Optional[LicenseInfo]:
        """Details of the active license, or None while locked."""
        if not self._license_key:
            return None
        record = self._registry.get(self._license_key)
        if record is None:
            return None
        return LicenseInfo(
            key=record.key,
            type=record.type,
            features=record.features,
            activated_at=record.activated_at,
        )

    def has_feature(self, feature: str) -> bool:
        """True if the active license grants the feature (or 'all')."""
        if not self._license_key:
            return False
        record = self._registry.get(self._license_key)
        if record is None:
            return False
        return record.has_feature(feature)

    def _save_credentials(self, key: str, fingerprint: str) -> None:
        self._storage.set_item(LICENSE_KEY, key)
        self._storage.set_item(FINGERPRINT_KEY, fingerprint)

    def _reject(
        self,
        key: str,
        message: str,
        fingerprint: Optional[str] = None,
    ) -> ActivationResult:
        self._logger.warning(
            "license_activation_failed",
            license_key=key,
            reason=message,
            fingerprint=fingerprint,
        )
        return ActivationResult.failed(message)
