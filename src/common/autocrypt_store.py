"""
Local Autocrypt settings storage for keyshelf.

This module keeps the Autocrypt account settings (which secret key is
preferred for which address) in a JSON file, following the same
load/save approach as the client's local message storage.
"""

import json
import logging
import os
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

from pydantic import ValidationError

from .config import get_settings
from .exceptions import StorageError
from .interfaces import AutocryptStore
from .models import AutocryptAssociation, PreferEncrypt, normalize_fingerprint

logger = logging.getLogger(__name__)


class AutocryptSettingsStore(AutocryptStore):
    """
    JSON file store of Autocrypt account settings.

    The file holds one entry per address, in the order the addresses were
    first configured. That order is the one reported by
    ``associations_for``.
    """

    def __init__(self, path: Optional[str | Path] = None):
        """
        Initialize the store.

        Args:
            path: JSON file to use. Defaults to ~/.keyshelf/data/autocrypt.json
        """
        if path is None:
            path = os.path.expanduser("~/.keyshelf/data/autocrypt.json")

        self._path = Path(path)
        self._path.parent.mkdir(parents=True, exist_ok=True)
        self._accounts: dict[str, AutocryptAssociation] = {}

        self._load_data()

    @property
    def path(self) -> Path:
        return self._path

    def _load_data(self) -> None:
        """Load account settings from the JSON file."""
        if not self._path.exists():
            return

        try:
            with open(self._path, "r", encoding="utf-8") as f:
                raw = json.load(f)
            accounts = [AutocryptAssociation(**entry) for entry in raw.get("accounts", [])]
        except (OSError, json.JSONDecodeError, ValidationError, AttributeError, TypeError) as e:
            raise StorageError(
                f"Failed to load Autocrypt settings from {self._path}",
                details={"error": str(e)},
            )

        self._accounts = {account.email: account for account in accounts}
        logger.info("Loaded %d Autocrypt account(s) from storage", len(self._accounts))

    def _save_data(self) -> None:
        """Save account settings to the JSON file."""
        data = {
            "accounts": [
                account.model_dump(mode="json") for account in self._accounts.values()
            ]
        }
        try:
            with open(self._path, "w", encoding="utf-8") as f:
                json.dump(data, f, indent=2)
        except OSError as e:
            raise StorageError(
                f"Failed to save Autocrypt settings to {self._path}",
                details={"error": str(e)},
            )

    # Account operations

    def set_key(
        self,
        email: str,
        fingerprint: str,
        prefer_encrypt: PreferEncrypt | str = PreferEncrypt.NOPREFERENCE,
    ) -> AutocryptAssociation:
        """
        Use a secret key for an address.

        Args:
            email: Account address.
            fingerprint: Fingerprint of the secret key.
            prefer_encrypt: Autocrypt prefer-encrypt setting.

        Returns:
            The stored association.
        """
        account = AutocryptAssociation(
            email=email,
            fingerprint=fingerprint,
            prefer_encrypt=prefer_encrypt,
            updated_at=datetime.now(timezone.utc),
        )
        # Re-assigning an existing address keeps its position.
        self._accounts[account.email] = account
        self._save_data()

        logger.info("Autocrypt key for %s set to %s", account.email, account.fingerprint)
        return account

    def remove(self, email: str) -> bool:
        """
        Stop using any key for an address.

        Returns:
            True if the address had a setting.
        """
        removed = self._accounts.pop(email.strip().lower(), None)
        if removed is None:
            return False

        self._save_data()
        logger.info("Removed Autocrypt setting for %s", removed.email)
        return True

    def get(self, email: str) -> Optional[AutocryptAssociation]:
        return self._accounts.get(email.strip().lower())

    def associations_for_sync(self, fingerprint: str) -> list[AutocryptAssociation]:
        """Get the account settings using a fingerprint."""
        fingerprint = normalize_fingerprint(fingerprint)
        return [a for a in self._accounts.values() if a.fingerprint == fingerprint]

    async def associations_for(self, fingerprint: str) -> list[AutocryptAssociation]:
        """Async variant of ``associations_for_sync`` for the key workflow."""
        return self.associations_for_sync(fingerprint)


def create_autocrypt_store(path: Optional[str | Path] = None) -> AutocryptSettingsStore:
    """
    Create an Autocrypt settings store.

    Args:
        path: JSON file path, or None to use the configured location.

    Returns:
        AutocryptSettingsStore instance.
    """
    if path is None:
        path = get_settings().store.autocrypt_path
    return AutocryptSettingsStore(path)
