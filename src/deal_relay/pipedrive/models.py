"""Result types for Pipedrive operations."""

from pydantic import BaseModel


class FileReceipt(BaseModel):
    """Returned after a file is attached to a deal."""

    file_id: int | None = None
    deal_id: str
    file_name: str


class NoteResult(BaseModel):
    """Outcome of a note creation. ``error`` carries Pipedrive's own message."""

    success: bool
    note_id: int | None = None
    error: str | None = None
