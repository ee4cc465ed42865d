"""
Errors raised by the note store.

Exactly three kinds escape :class:`secret_notes.service.NoteStore`, all
subclasses of :class:`NoteError`. The HTTP layer maps each kind to a status
code; nothing else about the underlying failure is part of the contract.
"""


class NoteError(Exception):
    """Base class for all note store errors."""


class NoteValidationError(NoteError):
    """Caller-supplied content was empty. Raised before the repository is touched."""

    def __init__(self, message: str = "content required") -> None:
        super().__init__(message)
        self.message = message


class NoteNotFoundError(NoteError):
    """No note with the requested id existed at the time of the operation."""

    def __init__(self, note_id: int) -> None:
        super().__init__(f"Note with id {note_id} not found")
        self.note_id = note_id


class NoteStorageError(NoteError):
    """
    The repository (or the stored payload) failed unexpectedly.

    ``operation`` is one of ``"create failed"``, ``"list failed"``,
    ``"get failed"``, ``"update failed"``, ``"delete failed"``. The original
    exception is chained as ``__cause__``.
    """

    def __init__(self, operation: str) -> None:
        super().__init__(operation)
        self.operation = operation
