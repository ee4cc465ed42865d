from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class NoteIn(BaseModel):
    """Schema for creating or replacing a note. Emptiness is checked by the note store."""
    note: str | None = Field(None, description="Plaintext note content (non-empty).")


class NoteSummaryOut(BaseModel):
    """Schema returned in listings: identity and creation time only."""
    model_config = ConfigDict(from_attributes=True)

    id: int = Field(..., description="Database ID of the note.")
    created_at: datetime = Field(..., serialization_alias="createdAt", description="Creation timestamp.")


class NoteOut(NoteSummaryOut):
    """Schema returned for a single note."""

    note: str = Field(..., description="Ciphertext, or plaintext when decryption was requested.")
