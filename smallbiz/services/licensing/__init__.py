"""
Licensing Services Package

Device fingerprinting, the license key table and the license gate.
"""

from smallbiz.services.licensing.fingerprint import (
    AUDIO_UNAVAILABLE,
    CANVAS_UNAVAILABLE,
    WEBGL_UNAVAILABLE,
    ClientHints,
    DeviceFingerprinter,
    DeviceSignals,
    audio_fingerprint,
    canvas_fingerprint,
    hash_string,
    webgl_fingerprint,
)
from smallbiz.services.licensing.gate import (
    DEVICE_MISMATCH_MESSAGE,
    INVALID_FORMAT_MESSAGE,
    UNKNOWN_KEY_MESSAGE,
    LicenseGate,
    normalize_license_key,
)
from smallbiz.services.licensing.registry import (
    DEFAULT_LICENSES,
    LicenseAlreadyBoundError,
    LicenseError,
    LicenseRegistry,
    UnknownLicenseError,
    generate_license_key,
    validate_license_format,
)

__all__ = [
    # Fingerprint
    "AUDIO_UNAVAILABLE",
    "CANVAS_UNAVAILABLE",
    "WEBGL_UNAVAILABLE",
    "ClientHints",
    "DeviceFingerprinter",
    "DeviceSignals",
    "audio_fingerprint",
    "canvas_fingerprint",
    "hash_string",
    "webgl_fingerprint",
    # Gate
    "DEVICE_MISMATCH_MESSAGE",
    "INVALID_FORMAT_MESSAGE",
    "UNKNOWN_KEY_MESSAGE",
    "LicenseGate",
    "normalize_license_key",
    # Registry
    "DEFAULT_LICENSES",
    "LicenseAlreadyBoundError",
    "LicenseError",
    "LicenseRegistry",
    "UnknownLicenseError",
    "generate_license_key",
    "validate_license_format",
]
