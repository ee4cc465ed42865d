"""
Tests for the SQLAlchemy repository against an in-memory SQLite database.
"""

import asyncio
import time
from datetime import datetime
from unittest.mock import Mock

import pytest
from sqlalchemy.exc import OperationalError

from secret_notes.models import Note, SecretNote
from secret_notes.repository import NoteRepository, SqlAlchemyNoteRepository


class TestSqlAlchemyNoteRepository:

    async def test_insert_assigns_id_and_created_at(self, repository):
        note = await repository.insert("ciphertext-1")

        assert isinstance(note, Note)
        assert note.id == 1
        assert note.note == "ciphertext-1"
        assert isinstance(note.created_at, datetime)

    async def test_ids_are_increasing(self, repository):
        first = await repository.insert("c1")
        second = await repository.insert("c2")

        assert second.id > first.id

    async def test_find_all_ordered_by_id(self, repository):
        for payload in ("c1", "c2", "c3"):
            await repository.insert(payload)

        notes = await repository.find_all()

        assert [n.id for n in notes] == [1, 2, 3]
        assert [n.note for n in notes] == ["c1", "c2", "c3"]

    async def test_find_by_id(self, repository):
        created = await repository.insert("c1")

        assert await repository.find_by_id(created.id) == created
        assert await repository.find_by_id(42) is None

    async def test_returned_note_is_detached(self, repository, db_session):
        created = await repository.insert("c1")

        with pytest.raises(AttributeError):
            created.note = "plaintext"  # frozen dataclass
        assert db_session.get(SecretNote, created.id).note == "c1"

    async def test_update_by_id(self, repository):
        created = await repository.insert("c1")

        assert await repository.update_by_id(created.id, "c2") == 1
        reread = await repository.find_by_id(created.id)
        assert reread.note == "c2"
        assert reread.created_at == created.created_at

    async def test_update_missing_affects_nothing(self, repository):
        assert await repository.update_by_id(99, "c") == 0

    async def test_delete_by_id(self, repository):
        created = await repository.insert("c1")

        assert await repository.delete_by_id(created.id) == 1
        assert await repository.find_by_id(created.id) is None
        assert await repository.delete_by_id(created.id) == 0

    async def test_failed_write_rolls_back_and_reraises(self):
        session = Mock()
        session.execute.side_effect = OperationalError("UPDATE", {}, Exception("db down"))
        repository = SqlAlchemyNoteRepository(session)

        with pytest.raises(OperationalError):
            await repository.update_by_id(1, "c")

        session.rollback.assert_called_once()
        session.commit.assert_not_called()

    async def test_failed_read_rolls_back_and_reraises(self):
        session = Mock()
        session.get.side_effect = OperationalError("SELECT", {}, Exception("db down"))
        repository = SqlAlchemyNoteRepository(session)

        with pytest.raises(OperationalError):
            await repository.find_by_id(1)

        session.rollback.assert_called_once()

    async def test_failed_listing_rolls_back_and_reraises(self):
        session = Mock()
        session.execute.side_effect = OperationalError("SELECT", {}, Exception("db down"))
        repository = SqlAlchemyNoteRepository(session)

        with pytest.raises(OperationalError):
            await repository.find_all()

        session.rollback.assert_called_once()

    async def test_slow_queries_do_not_block_the_event_loop(self):
        session = Mock()

        def slow_get(model, note_id):
            time.sleep(0.2)
            return None

        session.get.side_effect = slow_get
        repository = SqlAlchemyNoteRepository(session)

        started = time.monotonic()
        results = await asyncio.gather(*(repository.find_by_id(i) for i in range(5)))
        elapsed = time.monotonic() - started

        assert results == [None] * 5
        assert elapsed < 0.5

    def test_is_a_note_repository(self, repository):
        assert isinstance(repository, NoteRepository)
