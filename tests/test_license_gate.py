"""
Tests for license activation

Scenarios:
1. Happy path activation for each key in the table
2. Rejections (format, unknown key, bound to another device)
3. Restoring a saved activation, and logout
"""

import asyncio
import re

import pytest

from smallbiz.models.license import GateState, LicenseType
from smallbiz.services.licensing import (
    DEVICE_MISMATCH_MESSAGE,
    INVALID_FORMAT_MESSAGE,
    UNKNOWN_KEY_MESSAGE,
    LicenseAlreadyBoundError,
    LicenseGate,
    LicenseRegistry,
    UnknownLicenseError,
    generate_license_key,
    normalize_license_key,
    validate_license_format,
)
from smallbiz.services.storage import (
    FINGERPRINT_KEY,
    LICENSE_BINDINGS_KEY,
    LICENSE_KEY,
    StorageError,
)

from tests.factories import FailingStorage, fingerprint_provider


DEMO_KEY = "SBKP-2025-DEMO-00001"
TRIAL_KEY = "SBKP-2025-XXXX-TRIAL"


def make_gate(storage, token="device-a"):
    return LicenseGate(storage, fingerprint_provider=fingerprint_provider(token))


class TestKeyFormat:
    """Tests for key normalization and format checks."""

    def test_normalize(self):
        assert normalize_license_key("  sbkp-2025-demo-00001 ") == DEMO_KEY

    @pytest.mark.parametrize("key", [
        "SBKP-25-DEMO-00001",
        "SBKP-2025-DEMO-0001",
        "ABCD-2025-DEMO-00001",
        "SBKP-2025-demo-00001",
        "",
    ])
    def test_invalid_formats(self, key):
        assert not validate_license_format(key)

    def test_generated_keys_are_well_formed(self):
        key = generate_license_key(2026)
        assert key.startswith("SBKP-2026-")
        assert validate_license_format(key)
        assert re.fullmatch(r"SBKP-\d{4}-[A-Z0-9]{4}-[A-Z0-9]{5}", generate_license_key())


class TestActivation:
    """Tests for activate()."""

    def test_demo_key_activates_as_full(self, storage):
        gate = make_gate(storage)
        result = asyncio.run(gate.activate(DEMO_KEY))

        assert result.success
        assert result.error is None
        assert result.license_type == LicenseType.FULL
        assert gate.state == GateState.UNLOCKED
        assert storage.get_item(LICENSE_KEY) == DEMO_KEY
        assert storage.get_item(FINGERPRINT_KEY) == "device-a"
        assert gate.registry.get(DEMO_KEY).device_fingerprint == "device-a"

    def test_lowercase_and_whitespace_accepted(self, storage):
        gate = make_gate(storage)
        result = asyncio.run(gate.activate("  sbkp-2025-prod-12345\n"))
        assert result.success
        assert gate.license_key == "SBKP-2025-PROD-12345"

    def test_bad_format(self, storage):
        gate = make_gate(storage)
        result = asyncio.run(gate.activate("hello"))
        assert not result.success
        assert result.error == INVALID_FORMAT_MESSAGE
        assert gate.state == GateState.LOCKED
        assert storage.get_item(LICENSE_KEY) is None

    def test_unknown_key(self, storage):
        result = asyncio.run(make_gate(storage).activate("SBKP-2025-ABCD-12345"))
        assert result.error == UNKNOWN_KEY_MESSAGE

    def test_second_device_rejected(self, storage):
        """First write wins: a bound key does not move to another device."""
        registry = LicenseRegistry(storage)
        first = LicenseGate(storage, registry, fingerprint_provider("device-a"))
        second = LicenseGate(storage, registry, fingerprint_provider("device-b"))

        assert asyncio.run(first.activate(DEMO_KEY)).success
        result = asyncio.run(second.activate(DEMO_KEY))

        assert not result.success
        assert result.error == DEVICE_MISMATCH_MESSAGE
        assert registry.get(DEMO_KEY).device_fingerprint == "device-a"
        assert not second.is_unlocked

    def test_same_device_can_activate_again(self, storage):
        gate = make_gate(storage)
        assert asyncio.run(gate.activate(DEMO_KEY)).success
        assert asyncio.run(gate.activate(DEMO_KEY)).success

    def test_binding_survives_restart(self, storage):
        asyncio.run(make_gate(storage, "device-a").activate(DEMO_KEY))
        assert storage.get_json(LICENSE_BINDINGS_KEY)[DEMO_KEY]["device_fingerprint"] == "device-a"

        result = asyncio.run(make_gate(storage, "device-b").activate(DEMO_KEY))
        assert result.error == DEVICE_MISMATCH_MESSAGE


class TestVerifyAndDeactivate:
    """Tests for restoring and clearing an activation."""

    def test_verify_on_same_device(self, storage):
        asyncio.run(make_gate(storage).activate(DEMO_KEY))
        restored = make_gate(storage)
        assert asyncio.run(restored.verify())
        assert restored.license_key == DEMO_KEY

    def test_verify_without_credentials(self, storage):
        assert not asyncio.run(make_gate(storage).verify())

    def test_verify_on_changed_device(self, storage):
        asyncio.run(make_gate(storage, "device-a").activate(DEMO_KEY))
        gate = make_gate(storage, "device-b")
        assert not asyncio.run(gate.verify())
        assert gate.state == GateState.LOCKED

    def test_verify_unknown_saved_key(self, storage):
        storage.set_item(LICENSE_KEY, "SBKP-2025-GONE-00000")
        storage.set_item(FINGERPRINT_KEY, "device-a")
        assert not asyncio.run(make_gate(storage).verify())

    def test_deactivate_clears_credentials_and_binding(self, storage):
        gate = make_gate(storage, "device-a")
        asyncio.run(gate.activate(DEMO_KEY))
        gate.deactivate()

        assert gate.state == GateState.LOCKED
        assert storage.get_item(LICENSE_KEY) is None
        assert storage.get_item(FINGERPRINT_KEY) is None
        assert asyncio.run(make_gate(storage, "device-b").activate(DEMO_KEY)).success


class TestFeatures:
    """Tests for license info and feature checks."""

    def test_locked_gate_has_no_features(self, storage):
        gate = make_gate(storage)
        assert gate.license_info() is None
        assert not gate.has_feature("basic")

    def test_trial_features(self, storage):
        gate = make_gate(storage)
        result = asyncio.run(gate.activate(TRIAL_KEY))
        assert result.license_type == LicenseType.TRIAL
        assert gate.has_feature("basic")
        assert not gate.has_feature("tax_center")

    def test_full_license_info(self, storage):
        gate = make_gate(storage)
        asyncio.run(gate.activate(DEMO_KEY))
        info = gate.license_info()
        assert info.key == DEMO_KEY
        assert info.type == LicenseType.FULL
        assert info.activated_at is not None
        assert gate.has_feature("tax_center")


class TestRegistry:
    """Tests for the key table itself."""

    def test_bind_unknown_key(self, storage):
        with pytest.raises(UnknownLicenseError):
            LicenseRegistry(storage).bind("SBKP-2025-NONE-00000", "x")

    def test_bind_conflict(self):
        registry = LicenseRegistry()
        registry.bind(DEMO_KEY, "a")
        with pytest.raises(LicenseAlreadyBoundError):
            registry.bind(DEMO_KEY, "b")

    def test_unbind_unknown_key_is_ignored(self):
        LicenseRegistry().unbind("SBKP-2025-NONE-00000")

    def test_corrupt_bindings_ignored(self, storage):
        storage.set_item(LICENSE_BINDINGS_KEY, "{bad")
        registry = LicenseRegistry(storage)
        assert not registry.get(DEMO_KEY).is_bound

    def test_default_table(self):
        assert sorted(LicenseRegistry().keys()) == sorted([
            "SBKP-2025-XXXX-TRIAL",
            "SBKP-2025-DEMO-00001",
            "SBKP-2025-PROD-12345",
        ])


class TestSharedStorage:
    """Several sessions, one storage backend."""

    def test_session_opened_earlier_cannot_take_over_binding(self, storage):
        """Each gate gets its own registry; the stored binding still wins."""
        first = make_gate(storage, "device-a")
        second = make_gate(storage, "device-b")

        assert asyncio.run(first.activate(DEMO_KEY)).success
        result = asyncio.run(second.activate(DEMO_KEY))

        assert result.error == DEVICE_MISMATCH_MESSAGE
        assert storage.get_json(LICENSE_BINDINGS_KEY)[DEMO_KEY]["device_fingerprint"] == "device-a"

    def test_release_seen_by_other_registry(self, storage):
        first = make_gate(storage, "device-a")
        second = make_gate(storage, "device-b")
        asyncio.run(first.activate(DEMO_KEY))
        first.deactivate()

        assert asyncio.run(second.activate(DEMO_KEY)).success

    def test_bindings_of_other_keys_preserved(self, storage):
        asyncio.run(make_gate(storage, "device-a").activate(DEMO_KEY))
        asyncio.run(make_gate(storage, "device-b").activate(TRIAL_KEY))

        bindings = storage.get_json(LICENSE_BINDINGS_KEY)
        assert bindings[DEMO_KEY]["device_fingerprint"] == "device-a"
        assert bindings[TRIAL_KEY]["device_fingerprint"] == "device-b"


class TestFailedWrites:
    """Activation that cannot be saved leaves nothing bound."""

    def test_binding_write_fails(self):
        storage = FailingStorage()
        storage.failing = True
        gate = make_gate(storage)

        with pytest.raises(StorageError):
            asyncio.run(gate.activate(DEMO_KEY))

        assert not gate.registry.get(DEMO_KEY).is_bound
        assert gate.state == GateState.LOCKED

    def test_credentials_write_fails(self):
        storage = FailingStorage()
        storage.failing = True
        storage.fail_keys = {FINGERPRINT_KEY}
        gate = make_gate(storage)

        with pytest.raises(StorageError):
            asyncio.run(gate.activate(DEMO_KEY))

        assert gate.state == GateState.LOCKED
        assert not gate.registry.get(DEMO_KEY).is_bound
        assert storage.get_json(LICENSE_BINDINGS_KEY) == {}


class TestDriftedFingerprint:
    """The same machine reporting a different fingerprint later."""

    def test_logout_while_locked_releases_saved_key(self, storage):
        asyncio.run(make_gate(storage, "fp-summer").activate(DEMO_KEY))

        later = make_gate(storage, "fp-winter")
        assert not asyncio.run(later.verify())
        assert later.saved_license_key == DEMO_KEY

        later.deactivate()
        assert later.saved_license_key is None

        result = asyncio.run(later.activate(DEMO_KEY))
        assert result.success
        assert storage.get_json(LICENSE_BINDINGS_KEY)[DEMO_KEY]["device_fingerprint"] == "fp-winter"

    def test_stale_credentials_do_not_release_newer_binding(self, storage):
        """Saved credentials only release the binding they created."""
        storage.set_item(LICENSE_KEY, DEMO_KEY)
        storage.set_item(FINGERPRINT_KEY, "old-device")
        LicenseRegistry(storage).bind(DEMO_KEY, "other-device")

        make_gate(storage, "old-device").deactivate()

        assert storage.get_json(LICENSE_BINDINGS_KEY)[DEMO_KEY]["device_fingerprint"] == "other-device"
        assert storage.get_item(LICENSE_KEY) is None


class TestSwitchingKeys:
    """Activating a second key in the same session."""

    def test_previous_key_released(self, storage):
        gate = make_gate(storage, "device-a")
        asyncio.run(gate.activate(DEMO_KEY))
        assert asyncio.run(gate.activate(TRIAL_KEY)).success

        assert gate.license_key == TRIAL_KEY
        assert not gate.registry.get(DEMO_KEY).is_bound
        assert DEMO_KEY not in storage.get_json(LICENSE_BINDINGS_KEY)
        assert asyncio.run(make_gate(storage, "device-b").activate(DEMO_KEY)).success

    def test_reactivating_same_key_keeps_binding(self, storage):
        gate = make_gate(storage, "device-a")
        asyncio.run(gate.activate(DEMO_KEY))
        asyncio.run(gate.activate(DEMO_KEY))
        assert gate.registry.get(DEMO_KEY).device_fingerprint == "device-a"
