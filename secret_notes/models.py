from dataclasses import dataclass
from datetime import datetime

from sqlalchemy import Column, DateTime, Integer, Text, func

from secret_notes.db import Base


class SecretNote(Base):
    """SQLAlchemy model representing an encrypted note. The note column only ever holds ciphertext."""
    __tablename__ = "secret_notes"

    id = Column(Integer, primary_key=True, index=True)
    note = Column(Text, nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())


@dataclass(frozen=True)
class Note:
    """Detached snapshot of a stored note, as handed out by the repository."""

    id: int
    note: str
    created_at: datetime

    @classmethod
    def from_row(cls, row: SecretNote) -> "Note":
        return cls(id=row.id, note=row.note, created_at=row.created_at)


@dataclass(frozen=True)
class NoteSummary:
    """Identity and creation time of a note; listings never carry the payload."""

    id: int
    created_at: datetime
