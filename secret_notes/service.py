"""
Note lifecycle over an encrypted repository.

:class:`NoteStore` encrypts note text before it reaches the repository and
decrypts it on demand. Every repository outcome is translated into one of the
three error kinds in :mod:`secret_notes.errors`.

Only repository calls and decryption of stored payloads run inside
:func:`_storage_errors`; encrypting caller content happens before it, and
not-found checks happen outside it, so a :class:`NoteNotFoundError` is never
turned into a :class:`NoteStorageError`.
"""

import dataclasses
import logging
from contextlib import contextmanager
from typing import Iterator, List, Optional

from secret_notes.crypto import NoteCipher
from secret_notes.errors import NoteNotFoundError, NoteStorageError, NoteValidationError
from secret_notes.models import Note, NoteSummary
from secret_notes.repository import NoteRepository

logger = logging.getLogger(__name__)

CREATE_FAILED = "create failed"
LIST_FAILED = "list failed"
GET_FAILED = "get failed"
UPDATE_FAILED = "update failed"
DELETE_FAILED = "delete failed"


@contextmanager
def _storage_errors(operation: str) -> Iterator[None]:
    """Re-raise any failure inside the block as NoteStorageError(operation)."""
    try:
        yield
    except Exception as exc:
        logger.exception("Note store %s: %s", operation, type(exc).__name__)
        raise NoteStorageError(operation) from exc


def _require_content(content: Optional[str]) -> str:
    if not content:
        logger.warning("Rejected empty note content")
        raise NoteValidationError("content required")
    return content


class NoteStore:
    """
    Create, list, read, update and delete encrypted notes.

    Holds only the repository and the cipher; safe to share between
    concurrent callers.
    """

    def __init__(self, repository: NoteRepository, cipher: NoteCipher):
        self._repository = repository
        self._cipher = cipher

    async def create(self, content: Optional[str]) -> Note:
        """
        Encrypt ``content`` and persist it.

        Returns the stored note in ciphertext form, with the id and creation
        time assigned by the repository.

        Raises:
            NoteValidationError: ``content`` is empty, None, or not encodable text.
            NoteStorageError: the insert failed.
        """
        ciphertext = self._encrypt(_require_content(content))
        with _storage_errors(CREATE_FAILED):
            note = await self._repository.insert(ciphertext)
        logger.info("Created note id=%s", note.id)
        return note

    async def list_all(self) -> List[NoteSummary]:
        """Return the id and creation time of every note. Payloads are never included."""
        with _storage_errors(LIST_FAILED):
            notes = await self._repository.find_all()
        return [NoteSummary(id=note.id, created_at=note.created_at) for note in notes]

    async def get_one(self, note_id: int, decrypt: bool = True) -> Note:
        """
        Fetch a note by id.

        With ``decrypt`` the returned note carries the plaintext; the stored
        record is not modified either way.

        Raises:
            NoteNotFoundError: no note with ``note_id``.
            NoteStorageError: the lookup failed or the payload could not be decrypted.
        """
        note = await self._fetch(note_id, GET_FAILED)
        if not decrypt:
            return note
        with _storage_errors(GET_FAILED):
            plaintext = self._cipher.decrypt(note.note)
        return dataclasses.replace(note, note=plaintext)

    async def update(self, note_id: int, new_content: Optional[str]) -> Note:
        """
        Replace the content of a note.

        Returns the record as re-read from the repository after the write, in
        ciphertext form.

        Raises:
            NoteValidationError: ``new_content`` is empty, None, or not encodable text.
            NoteNotFoundError: no note with ``note_id``.
            NoteStorageError: the update or the re-read failed.
        """
        ciphertext = self._encrypt(_require_content(new_content))
        with _storage_errors(UPDATE_FAILED):
            affected = await self._repository.update_by_id(note_id, ciphertext)
        if not affected:
            logger.warning("Update of missing note id=%s", note_id)
            raise NoteNotFoundError(note_id)
        note = await self._fetch(note_id, UPDATE_FAILED)
        logger.info("Updated note id=%s", note_id)
        return note

    async def remove(self, note_id: int) -> None:
        """
        Delete a note.

        Raises:
            NoteNotFoundError: no note with ``note_id``.
            NoteStorageError: the delete failed.
        """
        with _storage_errors(DELETE_FAILED):
            affected = await self._repository.delete_by_id(note_id)
        if not affected:
            logger.warning("Delete of missing note id=%s", note_id)
            raise NoteNotFoundError(note_id)
        logger.info("Deleted note id=%s", note_id)

    def _encrypt(self, content: str) -> str:
        try:
            return self._cipher.encrypt(content)
        except UnicodeEncodeError as exc:
            logger.warning("Rejected note content that is not valid Unicode text")
            raise NoteValidationError("content must be valid text") from exc

    async def _fetch(self, note_id: int, operation: str) -> Note:
        with _storage_errors(operation):
            note = await self._repository.find_by_id(note_id)
        if note is None:
            logger.warning("Note id=%s not found", note_id)
            raise NoteNotFoundError(note_id)
        return note
