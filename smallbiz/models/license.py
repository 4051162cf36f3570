"""
License Models for SmallBiz BookKeeping

CRITICAL: These records describe a LOCAL, non-authoritative license cache.
The key table ships with the application and every field can be read or
edited by the user. Treat the gate built on these models as a UX gate,
not a security boundary.
"""

import re
from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field


# Format: SBKP-YYYY-XXXX-XXXXX
LICENSE_KEY_PATTERN = re.compile(r"^SBKP-\d{4}-[A-Z0-9]{4}-[A-Z0-9]{5}$")

ALL_FEATURES = "all"


class LicenseType(str, Enum):
    """License tiers."""
    TRIAL = "trial"
    FULL = "full"


class GateState(str, Enum):
    """License gate states."""
    LOCKED = "locked"
    UNLOCKED = "unlocked"


class LicenseRecord(BaseModel):
    """
    One entry of the license table.

    A key is bound to at most one device fingerprint at a time.
    Binding is first-write-wins and lasts until deactivation.
    """

    key: str = Field(
        ...,
        pattern=LICENSE_KEY_PATTERN.pattern,
        description="License key"
    )
    type: LicenseType
    device_fingerprint: Optional[str] = Field(
        default=None,
        description="Fingerprint token this key is bound to"
    )
    activated_at: Optional[datetime] = None
    # Carried for completeness; never enforced
    expires_at: Optional[datetime] = None
    features: frozenset[str] = Field(
        default_factory=frozenset,
        description="Feature names unlocked by this key"
    )

    @property
    def is_bound(self) -> bool:
        return self.device_fingerprint is not None

    def has_feature(self, feature: str) -> bool:
        return ALL_FEATURES in self.features or feature in self.features


class ActivationResult(BaseModel):
    """
    Outcome of an activation attempt.

    On failure, error holds the message shown under the key input.
    """

    success: bool
    error: Optional[str] = None
    license_type: Optional[LicenseType] = None
    features: frozenset[str] = Field(default_factory=frozenset)

    @classmethod
    def failed(cls, error: str) -> 'ActivationResult':
        return cls(success=False, error=error)


class LicenseInfo(BaseModel):
    """What the UI shows about the active license."""

    key: str
    type: LicenseType
    features: frozenset[str]
    activated_at: Optional[datetime] = None
