import logging
from functools import lru_cache
from typing import Any, Dict, List

from fastapi import Depends, FastAPI, Query, Request, Response, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.orm import Session

from secret_notes.config import get_encryption_key, parse_allowed_origin_regex, parse_allowed_origins
from secret_notes.crypto import NoteCipher
from secret_notes.db import Base, engine, get_db
from secret_notes.errors import NoteNotFoundError, NoteStorageError, NoteValidationError
from secret_notes.repository import SqlAlchemyNoteRepository
from secret_notes.schemas import NoteIn, NoteOut, NoteSummaryOut
from secret_notes.service import NoteStore

logger = logging.getLogger(__name__)

openapi_tags = [
    {"name": "Health", "description": "Service health and readiness endpoints."},
    {"name": "secret-notes", "description": "CRUD operations for notes encrypted at rest."},
]

app = FastAPI(
    title="Secret Notes API",
    description="Stores short text notes encrypted at rest and decrypts them on demand.",
    version="1.0.0",
    openapi_tags=openapi_tags,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=parse_allowed_origins(),
    allow_origin_regex=parse_allowed_origin_regex(),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@lru_cache(maxsize=1)
def get_cipher() -> NoteCipher:
    """Cipher built once from the configured key and shared by all requests."""
    return NoteCipher(get_encryption_key())


def get_note_store(
    db: Session = Depends(get_db),
    cipher: NoteCipher = Depends(get_cipher),
) -> NoteStore:
    """FastAPI dependency returning a request-scoped NoteStore."""
    return NoteStore(SqlAlchemyNoteRepository(db), cipher)


@app.exception_handler(NoteValidationError)
async def _validation_error_handler(request: Request, exc: NoteValidationError) -> JSONResponse:
    return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content={"detail": "Note content must be provided"})


@app.exception_handler(NoteNotFoundError)
async def _not_found_handler(request: Request, exc: NoteNotFoundError) -> JSONResponse:
    return JSONResponse(status_code=status.HTTP_404_NOT_FOUND, content={"detail": str(exc)})


@app.exception_handler(NoteStorageError)
async def _storage_error_handler(request: Request, exc: NoteStorageError) -> JSONResponse:
    # The cause was already logged by the store; only the operation label is returned.
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": exc.operation},
    )


@app.exception_handler(Exception)
async def _unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Return JSON for unexpected errors."""
    logger.exception("Unhandled exception on %s %s", request.method, request.url.path)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": "Internal Server Error"},
    )


@app.on_event("startup")
def _startup_create_tables() -> None:
    """
    Create database tables if they do not exist.

    Startup does not fail if the DB is unavailable; /health/db reports readiness.
    """
    try:
        Base.metadata.create_all(bind=engine)
    except Exception:
        logger.exception("Database initialization failed during startup (tables not created).")


# PUBLIC_INTERFACE
@app.get("/", tags=["Health"], summary="Health check", description="Returns a simple health payload.")
def health_check() -> Dict[str, str]:
    """Health check endpoint used by previews/monitoring."""
    return {"message": "Healthy"}


# PUBLIC_INTERFACE
@app.get(
    "/health/db",
    tags=["Health"],
    summary="Database health check",
    description=(
        "Verifies database connectivity by running a lightweight read-only query (SELECT 1). "
        "Returns status=up when the query succeeds, otherwise status=down with error details."
    ),
)
def health_check_db(db: Session = Depends(get_db)) -> Dict[str, Any]:
    """Database readiness endpoint used to verify DB connectivity."""
    try:
        value = db.execute(text("SELECT 1")).scalar_one()
        return {"status": "up", "query": "SELECT 1", "result": int(value)}
    except Exception as exc:
        return {"status": "down", "error": str(exc)}


# PUBLIC_INTERFACE
@app.post(
    "/secret-notes",
    response_model=NoteOut,
    status_code=status.HTTP_201_CREATED,
    tags=["secret-notes"],
    summary="Create a new secret note",
    description="Encrypt the note content and store it. Returns the stored (encrypted) note.",
    responses={400: {"description": "Bad Request"}},
)
async def create_note(payload: NoteIn, store: NoteStore = Depends(get_note_store)) -> NoteOut:
    """Create a note."""
    note = await store.create(payload.note)
    logger.info("Create Note - Note created with ID: %s", note.id)
    return note


# PUBLIC_INTERFACE
@app.get(
    "/secret-notes",
    response_model=List[NoteSummaryOut],
    tags=["secret-notes"],
    summary="Retrieve all secret notes",
    description="Return the id and creation time of every note. Note contents are never listed.",
)
async def list_notes(store: NoteStore = Depends(get_note_store)) -> List[NoteSummaryOut]:
    """List all notes."""
    logger.info("Find All Notes - Request received")
    notes = await store.list_all()
    logger.info("Find All Notes - %s notes found", len(notes))
    return notes


# PUBLIC_INTERFACE
@app.get(
    "/secret-notes/{note_id}",
    response_model=NoteOut,
    tags=["secret-notes"],
    summary="Retrieve a single secret note",
    description="Fetch a note by ID, decrypted only when decrypt=true.",
    responses={404: {"description": "Note not found"}},
)
async def get_note(
    note_id: int,
    decrypt: bool = Query(False, description="Whether to decrypt the note"),
    store: NoteStore = Depends(get_note_store),
) -> NoteOut:
    """Get a note by id."""
    logger.info("Find Note - Request received for ID: %s", note_id)
    note = await store.get_one(note_id, decrypt=decrypt)
    logger.info("Find Note - Note found with ID: %s", note_id)
    return note


# PUBLIC_INTERFACE
@app.patch(
    "/secret-notes/{note_id}",
    response_model=NoteOut,
    tags=["secret-notes"],
    summary="Update a secret note",
    description="Replace the content of a note. Returns the stored (encrypted) note.",
    responses={400: {"description": "Bad Request"}, 404: {"description": "Note not found"}},
)
async def update_note(
    note_id: int,
    payload: NoteIn,
    store: NoteStore = Depends(get_note_store),
) -> NoteOut:
    """Update a note by id."""
    logger.info("Update Note - Request received for ID: %s", note_id)
    note = await store.update(note_id, payload.note)
    logger.info("Update Note - Note updated with ID: %s", note_id)
    return note


# PUBLIC_INTERFACE
@app.delete(
    "/secret-notes/{note_id}",
    status_code=status.HTTP_200_OK,
    tags=["secret-notes"],
    summary="Delete a secret note",
    description="Delete a note by ID.",
    responses={404: {"description": "Note not found"}},
)
async def delete_note(note_id: int, store: NoteStore = Depends(get_note_store)) -> Response:
    """Delete a note by id."""
    logger.info("Delete Note - Request received for ID: %s", note_id)
    await store.remove(note_id)
    logger.info("Delete Note - Note deleted with ID: %s", note_id)
    return Response(status_code=status.HTTP_200_OK)
