"""
Secret key management workflow for keyshelf.

This module ranks the secret keys of the key store for display, describes
the selected key, and drives the backup, import and forget actions
against the external services. One KeyWorkflow instance belongs to one
open key manager window or CLI session; callers serialize operations on
it.
"""

import asyncio
import logging
from typing import Optional

from common.exceptions import (
    BackupFailedError,
    DeleteFailedError,
    ForgetNotAllowedError,
    KeyBusyError,
    KeyNotFoundError,
    KeyWorkflowError,
)
from common.interfaces import (
    AutocryptStore,
    BackupCodec,
    ConfirmationPrompt,
    ImportCodec,
    KeyStore,
)
from common.models import (
    NO_EMAIL,
    AutocryptAssociation,
    KeyDetail,
    KeyState,
    KeySummary,
    MoreLabel,
    SecretKeyRecord,
    SetupMessage,
    format_fingerprint,
    normalize_fingerprint,
)

from .date_format_service import DateFormatService, get_date_format_service

logger = logging.getLogger(__name__)


def confirmation_token(fingerprint: str) -> str:
    """Text the user must type to confirm forgetting a key."""
    return normalize_fingerprint(fingerprint)[-4:].lower()


def summarize_key(
    record: SecretKeyRecord,
    associations: list[AutocryptAssociation],
    date_format: DateFormatService,
) -> KeySummary:
    """
    Derive the display summary of a secret key.

    Args:
        record: The secret key.
        associations: Autocrypt settings using the key, in store order.
        date_format: Formatter for the creation date.

    Returns:
        KeySummary for the current refresh cycle.
    """
    used_for_all = list(dict.fromkeys(a.email for a in associations))
    created_for_all = sorted(record.emails)

    return KeySummary(
        fingerprint=record.fingerprint,
        formatted_fingerprint=format_fingerprint(record.fingerprint),
        created_at=record.creation_time,
        created_date=date_format.format_date(record.creation_time),
        created_full=date_format.format_date_with_time(record.creation_time),
        used_for=used_for_all[0] if used_for_all else NO_EMAIL,
        used_for_all=used_for_all,
        created_for=created_for_all[0] if created_for_all else NO_EMAIL,
        created_for_all=created_for_all,
    )


def rank_summaries(summaries: list[KeySummary]) -> list[KeySummary]:
    """Order summaries active first, then oldest first within each group."""
    return sorted(summaries, key=lambda s: (not s.is_active, s.created_at))


class KeyWorkflow:
    """
    Key list state and actions of the key manager.

    ``refresh`` rebuilds the ranked summary list from the stores and clears
    the selection. ``forget`` marks a key as removing right away and
    deletes it in a background task; a failed deletion leaves the key
    marked as failed instead of restoring its previous state.
    """

    def __init__(
        self,
        key_store: KeyStore,
        autocrypt_store: AutocryptStore,
        backup_codec: BackupCodec,
        import_codec: ImportCodec,
        date_format: Optional[DateFormatService] = None,
    ) -> None:
        """
        Initialize the workflow.

        Args:
            key_store: Source of secret keys.
            autocrypt_store: Source of Autocrypt account settings.
            backup_codec: Creates setup message backups.
            import_codec: Imports backups and secret keys.
            date_format: Date formatter, defaults to the global service.
        """
        self._key_store = key_store
        self._autocrypt_store = autocrypt_store
        self._backup_codec = backup_codec
        self._import_codec = import_codec
        self._date_format = date_format or get_date_format_service()

        self._summaries: list[KeySummary] = []
        self._records: dict[str, SecretKeyRecord] = {}
        self._selected: Optional[str] = None

        self._removing: set[str] = set()
        self._failures: dict[str, str] = {}
        self._tasks: set[asyncio.Task] = set()

    @property
    def summaries(self) -> list[KeySummary]:
        """Current ranked summaries."""
        return list(self._summaries)

    @property
    def selected(self) -> Optional[str]:
        """Fingerprint of the selected key."""
        return self._selected

    @property
    def selected_summary(self) -> Optional[KeySummary]:
        if self._selected is None:
            return None
        return self._lookup(self._selected)

    @property
    def pending(self) -> frozenset[str]:
        """Fingerprints whose deletion is in flight."""
        return frozenset(self._removing)

    # Key list

    async def refresh(self) -> list[KeySummary]:
        """
        Rebuild the key list from the stores.

        Associations of all keys are fetched concurrently. Keys with a
        deletion in flight or a failed deletion keep that state.

        Returns:
            The new ranked summaries.
        """
        records = await self._key_store.list_secret_keys()
        associations = await asyncio.gather(
            *(self._autocrypt_store.associations_for(r.fingerprint) for r in records)
        )

        summaries = []
        for record, record_associations in zip(records, associations):
            summary = summarize_key(record, record_associations, self._date_format)
            self._apply_transient_state(summary)
            summaries.append(summary)

        self._summaries = rank_summaries(summaries)
        self._records = {record.fingerprint: record for record in records}
        self._forget_stale_state()
        self._selected = None

        logger.debug(
            "Refreshed key list: %d key(s), %d active",
            len(self._summaries),
            sum(1 for s in self._summaries if s.is_active),
        )
        return self.summaries

    def _forget_stale_state(self) -> None:
        # Drop transient state of keys no longer in the store.
        self._failures = {
            fpr: error for fpr, error in self._failures.items() if fpr in self._records
        }
        self._removing.intersection_update(self._records)

    def _apply_transient_state(self, summary: KeySummary) -> None:
        if summary.fingerprint in self._removing:
            summary.state = KeyState.REMOVING
        elif summary.fingerprint in self._failures:
            summary.state = KeyState.FAILED
            summary.error = self._failures[summary.fingerprint]

    def _lookup(self, fingerprint: str) -> Optional[KeySummary]:
        fingerprint = normalize_fingerprint(fingerprint)
        for summary in self._summaries:
            if summary.fingerprint == fingerprint:
                return summary
        return None

    def _find(self, fingerprint: Optional[str]) -> KeySummary:
        if fingerprint is None:
            raise KeyWorkflowError("No key selected")

        summary = self._lookup(fingerprint)
        if summary is None:
            raise KeyNotFoundError(fingerprint)
        return summary

    def describe(self, fingerprint: str) -> KeyDetail:
        """
        Select a key and get its detail view.

        Raises:
            KeyNotFoundError: If the key is not in the current key list.
        """
        summary = self._find(fingerprint)
        self._selected = summary.fingerprint

        return KeyDetail(
            summary=summary,
            used_for_more=MoreLabel.for_list(summary.used_for_all),
            created_for_more=MoreLabel.for_list(summary.created_for_all),
        )

    # Action availability

    def can_backup(self) -> bool:
        summary = self.selected_summary
        return summary is not None and not summary.is_removing

    def can_forget(self) -> bool:
        """Only archived keys that are not already being removed can be forgotten."""
        summary = self.selected_summary
        return summary is not None and not summary.is_active and not summary.is_removing

    # Actions

    async def backup(self, fingerprint: Optional[str] = None) -> SetupMessage:
        """
        Create a setup message backup of a key.

        Args:
            fingerprint: Key to back up, defaults to the selected key.

        Returns:
            SetupMessage with the encrypted message and its setup code.

        Raises:
            KeyNotFoundError: If the key is not in the current key list.
            KeyBusyError: If the key is being removed.
            BackupFailedError: If the backup codec fails.
        """
        summary = self._find(fingerprint or self._selected)
        if summary.is_removing:
            raise KeyBusyError(summary.fingerprint)

        record = self._records[summary.fingerprint]
        try:
            setup_message = await self._backup_codec.create_backup(record)
        except BackupFailedError as e:
            logger.error("Backup of %s failed: %s", summary.fingerprint, e)
            raise

        logger.info("Created backup of %s", summary.fingerprint)
        return setup_message

    async def import_backup(self, content: bytes | str) -> bool:
        """
        Import a setup message or secret key.

        The key list is not refreshed; call ``refresh`` after a successful
        import.

        Returns:
            True if key material was imported, False if the content was
            not recognized.
        """
        imported = await self._import_codec.import_content(content)
        if imported:
            logger.info("Imported key material")
        else:
            logger.info("Import content was not recognized")
        return imported

    def _check_forgettable(self, summary: KeySummary) -> None:
        if summary.is_removing:
            raise KeyBusyError(summary.fingerprint)
        if summary.is_active:
            raise ForgetNotAllowedError(summary.fingerprint, summary.used_for_all)

    def forget(self, fingerprint: str) -> "asyncio.Task[bool]":
        """
        Forget an archived secret key.

        The key is marked as removing immediately; deletion and the
        following refresh run in a background task. Must be called from a
        running event loop.

        Args:
            fingerprint: Key to forget.

        Returns:
            Task resolving to True once the key is deleted and the list
            refreshed, or False if the deletion failed.

        Raises:
            KeyNotFoundError: If the key is not in the current key list.
            ForgetNotAllowedError: If the key is used by Autocrypt.
            KeyBusyError: If the key is already being removed.
        """
        summary = self._find(fingerprint)
        self._check_forgettable(summary)

        fingerprint = summary.fingerprint
        summary.state = KeyState.REMOVING
        summary.error = None
        self._failures.pop(fingerprint, None)
        self._removing.add(fingerprint)
        logger.info("Removing secret key %s", fingerprint)

        task = asyncio.create_task(self._delete_and_refresh(fingerprint))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def _delete_and_refresh(self, fingerprint: str) -> bool:
        try:
            deleted = await self._key_store.delete_secret_key(fingerprint)
            if not deleted:
                raise DeleteFailedError(fingerprint, "key store refused the deletion")
        except Exception as e:
            logger.error("Failed to forget secret key %s: %s", fingerprint, e)
            self._mark_failed(fingerprint, str(e))
            return False

        self._removing.discard(fingerprint)
        logger.info("Secret key %s removed", fingerprint)
        await self.refresh()
        return True

    def _mark_failed(self, fingerprint: str, error: str) -> None:
        self._removing.discard(fingerprint)
        self._failures[fingerprint] = error

        summary = self._lookup(fingerprint)
        if summary is not None:
            summary.state = KeyState.FAILED
            summary.error = error

    def confirm_and_forget(
        self,
        prompt: ConfirmationPrompt,
        fingerprint: Optional[str] = None,
    ) -> "Optional[asyncio.Task[bool]]":
        """
        Ask for the confirmation token, then forget the key.

        Args:
            prompt: Confirmation prompt shown to the user.
            fingerprint: Key to forget, defaults to the selected key.

        Returns:
            The forget task, or None if the user did not confirm.
        """
        summary = self._find(fingerprint or self._selected)
        self._check_forgettable(summary)

        if not prompt.ask(confirmation_token(summary.fingerprint)):
            logger.info("Forgetting %s cancelled", summary.fingerprint)
            return None

        return self.forget(summary.fingerprint)

    async def wait_pending(self) -> None:
        """Wait until every dispatched deletion has finished."""
        if self._tasks:
            await asyncio.gather(*self._tasks, return_exceptions=True)
