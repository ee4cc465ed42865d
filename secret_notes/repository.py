import abc
import logging
from typing import Any, Callable, List, Optional, TypeVar

from sqlalchemy import delete, select, update
from sqlalchemy.orm import Session
from starlette.concurrency import run_in_threadpool

from secret_notes.models import Note, SecretNote

logger = logging.getLogger(__name__)

T = TypeVar("T")


class NoteRepository(abc.ABC):
    """
    Persistence contract consumed by the note store.

    Records are opaque to the repository: ``note`` is whatever ciphertext the
    store hands over. Ids and creation timestamps are assigned here.
    """

    @abc.abstractmethod
    async def insert(self, ciphertext: str) -> Note:
        """Persist a new record and return it with its assigned id and created_at."""

    @abc.abstractmethod
    async def find_all(self) -> List[Note]:
        """Return every record, ordered by id."""

    @abc.abstractmethod
    async def find_by_id(self, note_id: int) -> Optional[Note]:
        """Return the record with ``note_id``, or None."""

    @abc.abstractmethod
    async def update_by_id(self, note_id: int, ciphertext: str) -> int:
        """Replace the payload of ``note_id``; return the number of affected rows."""

    @abc.abstractmethod
    async def delete_by_id(self, note_id: int) -> int:
        """Delete ``note_id``; return the number of affected rows."""


class SqlAlchemyNoteRepository(NoteRepository):
    """
    NoteRepository backed by a SQLAlchemy session (one per request).

    Session work is blocking, so each call runs in the threadpool and the
    event loop stays free while the database answers. A failed call rolls the
    session back before re-raising, leaving it usable for the rest of the
    request.
    """

    def __init__(self, session: Session):
        self.session = session

    async def insert(self, ciphertext: str) -> Note:
        return await run_in_threadpool(self._run, self._insert, ciphertext)

    async def find_all(self) -> List[Note]:
        return await run_in_threadpool(self._run, self._find_all)

    async def find_by_id(self, note_id: int) -> Optional[Note]:
        return await run_in_threadpool(self._run, self._find_by_id, note_id)

    async def update_by_id(self, note_id: int, ciphertext: str) -> int:
        return await run_in_threadpool(self._run, self._update_by_id, note_id, ciphertext)

    async def delete_by_id(self, note_id: int) -> int:
        return await run_in_threadpool(self._run, self._delete_by_id, note_id)

    def _run(self, func: Callable[..., T], *args: Any) -> T:
        try:
            return func(*args)
        except Exception:
            self.session.rollback()
            raise

    def _insert(self, ciphertext: str) -> Note:
        row = SecretNote(note=ciphertext)
        self.session.add(row)
        self.session.commit()
        self.session.refresh(row)
        return Note.from_row(row)

    def _find_all(self) -> List[Note]:
        rows = self.session.execute(select(SecretNote).order_by(SecretNote.id)).scalars().all()
        return [Note.from_row(row) for row in rows]

    def _find_by_id(self, note_id: int) -> Optional[Note]:
        row = self.session.get(SecretNote, note_id)
        if row is None:
            return None
        return Note.from_row(row)

    def _update_by_id(self, note_id: int, ciphertext: str) -> int:
        statement = (
            update(SecretNote)
            .where(SecretNote.id == note_id)
            .values(note=ciphertext)
            .execution_options(synchronize_session=False)
        )
        result = self.session.execute(statement)
        self.session.commit()
        logger.debug("update secret_notes id=%s affected=%s", note_id, result.rowcount)
        return result.rowcount

    def _delete_by_id(self, note_id: int) -> int:
        statement = (
            delete(SecretNote)
            .where(SecretNote.id == note_id)
            .execution_options(synchronize_session=False)
        )
        result = self.session.execute(statement)
        self.session.commit()
        logger.debug("delete secret_notes id=%s affected=%s", note_id, result.rowcount)
        return result.rowcount
