"""
Pytest fixtures for keyshelf tests.

This module provides in-memory stand-ins for the key store, the Autocrypt
store and the backup/import codecs, plus a workflow wired to them.
"""

import asyncio
import os
import sys
from datetime import datetime, timezone
from typing import Optional

import pytest

# Add src to path for imports
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "src"))

from client.services.date_format_service import DateFormatService  # noqa: E402
from client.services.key_workflow import KeyWorkflow  # noqa: E402
from common.exceptions import BackupFailedError  # noqa: E402
from common.interfaces import (  # noqa: E402
    AutocryptStore,
    BackupCodec,
    ImportCodec,
    KeyStore,
)
from common.models import (  # noqa: E402
    AutocryptAssociation,
    SecretKeyRecord,
    SetupMessage,
)

FPR_1 = "0123456789ABCDEF0123456789ABCDEF01234567"
FPR_2 = "89ABCDEF0123456789ABCDEF0123456789ABCDEF"
FPR_3 = "FEDCBA9876543210FEDCBA9876543210FEDCBA98"
FPR_4 = "1111222233334444555566667777888899990000"


def make_record(
    fingerprint: str,
    created: tuple[int, int, int],
    user_ids: Optional[list[str]] = None,
) -> SecretKeyRecord:
    """Build a secret key record created at noon UTC on the given date."""
    return SecretKeyRecord(
        fingerprint=fingerprint,
        user_ids=user_ids if user_ids is not None else [f"Key {fingerprint[-4:]} <{fingerprint[-4:].lower()}@example.org>"],
        creation_time=datetime(*created, 12, 0, tzinfo=timezone.utc),
    )


class FakeKeyStore(KeyStore):
    """In-memory key store. Deletion can be held back with ``gate``."""

    def __init__(self, records: Optional[list[SecretKeyRecord]] = None) -> None:
        self.records = list(records or [])
        self.deleted: list[str] = []
        self.delete_calls = 0
        self.refuse_delete = False
        self.delete_error: Optional[Exception] = None
        self.gate: Optional[asyncio.Event] = None

    async def list_secret_keys(self) -> list[SecretKeyRecord]:
        return list(self.records)

    async def delete_secret_key(self, fingerprint: str) -> bool:
        self.delete_calls += 1
        if self.gate is not None:
            await self.gate.wait()
        if self.delete_error is not None:
            raise self.delete_error
        if self.refuse_delete:
            return False

        self.records = [r for r in self.records if r.fingerprint != fingerprint]
        self.deleted.append(fingerprint)
        return True


class FakeAutocryptStore(AutocryptStore):
    """
    In-memory Autocrypt store mapping fingerprints to addresses.

    ``delays`` gives the number of event loop turns a lookup takes, so
    lookups can be made to finish out of order.
    """

    def __init__(
        self,
        accounts: Optional[dict[str, list[str]]] = None,
        delays: Optional[dict[str, int]] = None,
    ) -> None:
        self.accounts = dict(accounts or {})
        self.delays = dict(delays or {})
        self.lookups: list[str] = []

    async def associations_for(self, fingerprint: str) -> list[AutocryptAssociation]:
        for _ in range(self.delays.get(fingerprint, 0)):
            await asyncio.sleep(0)
        self.lookups.append(fingerprint)
        return [
            AutocryptAssociation(fingerprint=fingerprint, email=email)
            for email in self.accounts.get(fingerprint, [])
        ]


class FakeBackupCodec(BackupCodec):
    def __init__(self) -> None:
        self.fail = False
        self.backed_up: list[str] = []

    async def create_backup(self, record: SecretKeyRecord) -> SetupMessage:
        if self.fail:
            raise BackupFailedError(f"Cannot export {record.fingerprint}")
        self.backed_up.append(record.fingerprint)
        return SetupMessage(
            message=f"<html>backup of {record.fingerprint}</html>",
            passphrase="1234-5678-9012-3456-7890-1234-5678-9012-3456",
        )


class FakeImportCodec(ImportCodec):
    """Accepts content starting with "-----BEGIN" and adds a key to the store."""

    def __init__(self, key_store: FakeKeyStore, imported: SecretKeyRecord) -> None:
        self._key_store = key_store
        self._imported = imported
        self.calls = 0

    async def import_content(self, content: bytes | str) -> bool:
        self.calls += 1
        if isinstance(content, bytes):
            content = content.decode("utf-8", errors="replace")
        if not content.startswith("-----BEGIN"):
            return False
        self._key_store.records.append(self._imported)
        return True


@pytest.fixture
def key_store():
    """K1 and K3 are archived, K2 is active, K4 is imported later."""
    return FakeKeyStore(
        [
            make_record(FPR_1, (2020, 1, 1)),
            make_record(FPR_2, (2021, 6, 1)),
            make_record(FPR_3, (2019, 1, 1)),
        ]
    )


@pytest.fixture
def autocrypt_store():
    return FakeAutocryptStore({FPR_2: ["bob@example.org", "alice@example.org"]})


@pytest.fixture
def backup_codec():
    return FakeBackupCodec()


@pytest.fixture
def import_codec(key_store):
    return FakeImportCodec(key_store, make_record(FPR_4, (2022, 3, 3)))


@pytest.fixture
def workflow(key_store, autocrypt_store, backup_codec, import_codec):
    return KeyWorkflow(
        key_store=key_store,
        autocrypt_store=autocrypt_store,
        backup_codec=backup_codec,
        import_codec=import_codec,
        date_format=DateFormatService("YYYY-MM-DD"),
    )
