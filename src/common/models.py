"""
Data models for keyshelf.

Records read from the key store and the Autocrypt store are pydantic
models, validated on the way in. The display-side view models derived
from them are plain dataclasses, rebuilt on every refresh.
"""

import re
from dataclasses import dataclass
from datetime import datetime, timezone
from email.utils import parseaddr
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

NO_EMAIL = "None"

_FINGERPRINT_RE = re.compile(r"^[0-9A-F]+$")


def normalize_fingerprint(fingerprint: str) -> str:
    """Return the canonical uppercase form of a fingerprint."""
    return fingerprint.replace(" ", "").upper()


def format_fingerprint(fingerprint: str) -> str:
    """Get fingerprint formatted in groups of 4."""
    fp = normalize_fingerprint(fingerprint)
    return " ".join(fp[i : i + 4] for i in range(0, len(fp), 4))


def strip_email(user_id: str) -> str:
    """
    Extract the bare address from an OpenPGP user ID.

    "Alice <alice@example.org>" becomes "alice@example.org"; a user ID
    without an address part is returned trimmed.
    """
    _, address = parseaddr(user_id)
    return address or user_id.strip()


class PreferEncrypt(str, Enum):
    """Autocrypt prefer-encrypt setting of an account."""

    MUTUAL = "mutual"
    NOPREFERENCE = "nopreference"


class KeyState(str, Enum):
    """Transient display state of a key summary."""

    REMOVING = "Removing…"
    FAILED = "Failed"


class SecretKeyRecord(BaseModel):
    """A secret key as held by the key store."""

    model_config = ConfigDict(frozen=True)

    fingerprint: str = Field(..., description="Hex fingerprint, uppercase")
    user_ids: list[str] = Field(default_factory=list, description="Raw user IDs")
    creation_time: datetime = Field(..., description="Key creation time")

    @field_validator("fingerprint")
    @classmethod
    def validate_fingerprint(cls, v: str) -> str:
        """Normalize the fingerprint and reject non-hex values."""
        v = normalize_fingerprint(v)
        if not v or not _FINGERPRINT_RE.match(v):
            raise ValueError("Fingerprint must be a hexadecimal string")
        return v

    @field_validator("creation_time")
    @classmethod
    def ensure_timezone(cls, v: datetime) -> datetime:
        """Treat naive creation times as UTC."""
        if v.tzinfo is None:
            return v.replace(tzinfo=timezone.utc)
        return v

    @property
    def emails(self) -> list[str]:
        """Addresses the key was created for, in user ID order."""
        return [strip_email(uid) for uid in self.user_ids]


class AutocryptAssociation(BaseModel):
    """An Autocrypt account setting pointing at a secret key."""

    model_config = ConfigDict(use_enum_values=True)

    fingerprint: str = Field(..., description="Fingerprint of the preferred key")
    email: str = Field(..., description="Address the key is preferred for")
    prefer_encrypt: PreferEncrypt = Field(default=PreferEncrypt.NOPREFERENCE)
    updated_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        description="Last time the setting changed",
    )

    @field_validator("fingerprint")
    @classmethod
    def validate_fingerprint(cls, v: str) -> str:
        v = normalize_fingerprint(v)
        if not v or not _FINGERPRINT_RE.match(v):
            raise ValueError("Fingerprint must be a hexadecimal string")
        return v

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v: str) -> str:
        v = v.strip().lower()
        if "@" not in v:
            raise ValueError("Invalid email address")
        return v


@dataclass
class SetupMessage:
    """An encrypted key backup and the code needed to open it."""

    message: str
    passphrase: str


@dataclass
class KeySummary:
    """Display-ready view of one secret key for a single refresh cycle."""

    fingerprint: str
    formatted_fingerprint: str
    created_at: datetime
    created_date: str
    created_full: str
    used_for: str
    used_for_all: list[str]
    created_for: str
    created_for_all: list[str]
    state: Optional[KeyState] = None
    error: Optional[str] = None

    @property
    def is_active(self) -> bool:
        """True if any Autocrypt account uses this key."""
        return len(self.used_for_all) > 0

    @property
    def is_removing(self) -> bool:
        return self.state is KeyState.REMOVING

    @property
    def status(self) -> str:
        """Get status text for the key."""
        if self.state is not None:
            return self.state.value
        return "Active" if self.is_active else "Archived"


@dataclass
class MoreLabel:
    """An "and N more" label with the complete list as tooltip."""

    label: str
    tooltip: str

    @classmethod
    def for_list(cls, values: list[str]) -> Optional["MoreLabel"]:
        if len(values) <= 1:
            return None
        return cls(label=f"and {len(values) - 1} more", tooltip="\n".join(values))


@dataclass
class KeyDetail:
    """Detail view of the selected key."""

    summary: KeySummary
    used_for_more: Optional[MoreLabel] = None
    created_for_more: Optional[MoreLabel] = None

    @property
    def fingerprint(self) -> str:
        return self.summary.fingerprint
