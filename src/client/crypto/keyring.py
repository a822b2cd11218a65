"""
GnuPG keyring access for keyshelf.

This module lists, exports, imports and deletes secret keys and performs
the symmetric encryption used by Autocrypt setup messages, using the
python-gnupg library.
"""

import asyncio
import logging
import os
from datetime import datetime, timezone
from typing import Optional, Union

import gnupg

from common.config import GnuPGSettings, get_settings
from common.exceptions import KeyringError
from common.interfaces import KeyStore
from common.models import SecretKeyRecord, normalize_fingerprint

logger = logging.getLogger(__name__)

SETUP_MESSAGE_CIPHER = "AES128"


class GnuPGKeyring(KeyStore):
    """
    Secret key store backed by a GnuPG home directory.

    The blocking python-gnupg calls are exposed as plain methods for the
    codecs, and wrapped with ``asyncio.to_thread`` for the ``KeyStore``
    interface used by the key workflow.
    """

    def __init__(
        self,
        gnupg_home: Optional[str] = None,
        gpg_binary: str = "gpg",
        use_agent: bool = True,
    ) -> None:
        """
        Initialize the keyring.

        Args:
            gnupg_home: Path to GnuPG home directory.
            gpg_binary: Path to GPG binary.
            use_agent: Whether to use GPG agent.

        Raises:
            KeyringError: If GnuPG cannot be started.
        """
        if gnupg_home:
            self.gnupg_home = gnupg_home
            os.makedirs(gnupg_home, mode=0o700, exist_ok=True)
        else:
            self.gnupg_home = os.path.expanduser("~/.gnupg")

        options = []
        if not use_agent:
            options.append("--no-use-agent")

        try:
            self._gpg = gnupg.GPG(
                gnupghome=self.gnupg_home,
                gpgbinary=gpg_binary,
                options=options,
            )
            self._gpg.encoding = "utf-8"
        except (OSError, ValueError) as e:
            raise KeyringError(f"Failed to initialize GnuPG: {e}")

        logger.info("Initialized GnuPG keyring with home=%s", self.gnupg_home)

    # Secret keys

    def list_secret_keys_sync(self) -> list[SecretKeyRecord]:
        """
        List secret keys in the keyring.

        Returns:
            List of SecretKeyRecord objects, in keyring order.

        Raises:
            KeyringError: If the keyring cannot be listed.
        """
        try:
            keys = self._gpg.list_keys(secret=True)
        except (OSError, ValueError) as e:
            raise KeyringError(f"Failed to list secret keys: {e}")

        return [self._parse_key_data(key_data) for key_data in keys]

    def _parse_key_data(self, key_data: dict) -> SecretKeyRecord:
        """Parse key data from GnuPG into a SecretKeyRecord."""
        creation_time = datetime.fromtimestamp(0, tz=timezone.utc)
        if key_data.get("date"):
            try:
                creation_time = datetime.fromtimestamp(int(key_data["date"]), tz=timezone.utc)
            except (ValueError, TypeError):
                logger.debug("Unparseable creation date for %s", key_data.get("fingerprint"))

        return SecretKeyRecord(
            fingerprint=key_data.get("fingerprint", ""),
            user_ids=list(key_data.get("uids", [])),
            creation_time=creation_time,
        )

    def delete_secret_key_sync(self, fingerprint: str) -> bool:
        """
        Delete the secret part of a key from the keyring.

        Args:
            fingerprint: Key fingerprint.

        Returns:
            True if deletion was successful.
        """
        fingerprint = normalize_fingerprint(fingerprint)
        result = self._gpg.delete_keys(
            fingerprint,
            secret=True,
            expect_passphrase=False,
        )
        success = result.status == "ok"

        if success:
            logger.info("Deleted secret key %s", fingerprint)
        else:
            logger.warning("Failed to delete secret key %s: %s", fingerprint, result.status)

        return success

    def export_secret_key(
        self,
        fingerprint: str,
        passphrase: Optional[str] = None,
    ) -> str:
        """
        Export a secret key in ASCII armor.

        Args:
            fingerprint: Key fingerprint.
            passphrase: Passphrase protecting the key, if any.

        Returns:
            Armored secret key block.

        Raises:
            KeyringError: If export fails.
        """
        fingerprint = normalize_fingerprint(fingerprint)
        result = self._gpg.export_keys(
            fingerprint,
            secret=True,
            armor=True,
            passphrase=passphrase,
            expect_passphrase=passphrase is not None,
        )

        if not result:
            raise KeyringError(f"Failed to export secret key {fingerprint}")

        return result

    def import_keys(self, key_data: Union[str, bytes]) -> list[str]:
        """
        Import key material into the keyring.

        Args:
            key_data: ASCII-armored or binary key data.

        Returns:
            Fingerprints of the imported secret keys. Empty if the data
            held no secret key.
        """
        result = self._gpg.import_keys(key_data)

        if not getattr(result, "sec_read", 0):
            logger.warning("Import held no secret key (%d key(s) read)", result.count or 0)
            return []

        fingerprints = [normalize_fingerprint(fp) for fp in result.fingerprints if fp]
        logger.info("Imported secret key(s): %s", ", ".join(fingerprints))
        return fingerprints

    # Symmetric encryption

    def encrypt_symmetric(self, data: Union[str, bytes], passphrase: str) -> str:
        """
        Encrypt data with a passphrase only.

        Returns:
            ASCII-armored PGP message.

        Raises:
            KeyringError: If encryption fails.
        """
        if isinstance(data, str):
            data = data.encode("utf-8")

        encrypted = self._gpg.encrypt(
            data,
            None,
            symmetric=SETUP_MESSAGE_CIPHER,
            passphrase=passphrase,
            armor=True,
        )

        if not encrypted.ok:
            raise KeyringError(f"Symmetric encryption failed: {encrypted.status}")

        return str(encrypted)

    def decrypt_symmetric(self, data: Union[str, bytes], passphrase: str) -> Optional[bytes]:
        """
        Decrypt a passphrase-protected PGP message.

        Returns:
            Plaintext bytes, or None if the passphrase is wrong or the data
            is not a PGP message.
        """
        if isinstance(data, str):
            data = data.encode("utf-8")

        decrypted = self._gpg.decrypt(data, passphrase=passphrase)
        if not decrypted.ok:
            logger.warning("Symmetric decryption failed: %s", decrypted.status)
            return None

        return decrypted.data

    # KeyStore interface

    async def list_secret_keys(self) -> list[SecretKeyRecord]:
        return await asyncio.to_thread(self.list_secret_keys_sync)

    async def delete_secret_key(self, fingerprint: str) -> bool:
        return await asyncio.to_thread(self.delete_secret_key_sync, fingerprint)


def create_keyring(settings: Optional[GnuPGSettings] = None) -> GnuPGKeyring:
    """
    Create a GnuPG keyring from settings.

    Args:
        settings: GnuPG settings, defaults to the application settings.

    Returns:
        Configured GnuPGKeyring instance.
    """
    if settings is None:
        settings = get_settings().gnupg

    return GnuPGKeyring(
        gnupg_home=settings.home,
        gpg_binary=settings.binary,
        use_agent=settings.use_agent,
    )
