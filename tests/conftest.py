"""
Shared fixtures: an in-memory SQLite database per test, the SQLAlchemy
repository and note store built on it, and a FastAPI test client wired to
the same database.
"""

import os

# Must be set before secret_notes.db builds its module-level engine.
os.environ["DATABASE_URL"] = "sqlite://"

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from secret_notes.crypto import NoteCipher
from secret_notes.db import Base, get_db
from secret_notes.repository import SqlAlchemyNoteRepository
from secret_notes.service import NoteStore

TEST_KEY = "test_key"


@pytest.fixture
def engine():
    """Fresh in-memory SQLite engine, so ids start at 1 in every test"""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    from secret_notes.models import SecretNote  # noqa: F401
    Base.metadata.create_all(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def db_session(engine):
    TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.rollback()
        session.close()


@pytest.fixture
def cipher():
    return NoteCipher(TEST_KEY)


@pytest.fixture
def repository(db_session):
    return SqlAlchemyNoteRepository(db_session)


@pytest.fixture
def store(repository, cipher):
    return NoteStore(repository, cipher)


@pytest.fixture
def client(db_session, cipher):
    """FastAPI test client using the test database and key"""
    from secret_notes.api.main import app, get_cipher

    def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_cipher] = lambda: cipher

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()
