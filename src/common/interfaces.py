"""
Service interfaces used by the key management workflow.

The workflow only talks to these abstract base classes; the GnuPG
keyring, the JSON Autocrypt store and the setup message codecs are the
concrete implementations shipped with keyshelf.
"""

from abc import ABC, abstractmethod

from .models import AutocryptAssociation, SecretKeyRecord, SetupMessage


class KeyStore(ABC):
    """Source of secret keys."""

    @abstractmethod
    async def list_secret_keys(self) -> list[SecretKeyRecord]:
        """List every secret key in the store."""

    @abstractmethod
    async def delete_secret_key(self, fingerprint: str) -> bool:
        """
        Delete a secret key.

        Returns:
            True if the key was deleted.
        """


class AutocryptStore(ABC):
    """Source of Autocrypt account settings."""

    @abstractmethod
    async def associations_for(self, fingerprint: str) -> list[AutocryptAssociation]:
        """Get the account settings that use a fingerprint."""


class BackupCodec(ABC):
    """Producer of encrypted key backups."""

    @abstractmethod
    async def create_backup(self, record: SecretKeyRecord) -> SetupMessage:
        """
        Create a backup of a secret key.

        Raises:
            BackupFailedError: If no backup could be produced.
        """


class ImportCodec(ABC):
    """Importer of key backups and raw secret keys."""

    @abstractmethod
    async def import_content(self, content: bytes | str) -> bool:
        """
        Import key material.

        Returns:
            True if a secret key was imported, False if the content was
            not recognized.
        """


class ConfirmationPrompt(ABC):
    """Asks the user to confirm a destructive action."""

    @abstractmethod
    def ask(self, expected_token: str) -> bool:
        """Return True if the user confirmed by entering the token."""
