"""Pydantic schemas for API requests and responses."""

from app.schemas.common import ErrorResponse, SuccessResponse
from app.schemas.note import Note, NoteCreate, NoteUpdate
from app.schemas.notebook import Notebook, NotebookCreate

__all__ = [
    "ErrorResponse",
    "SuccessResponse",
    "Note",
    "NoteCreate",
    "NoteUpdate",
    "Notebook",
    "NotebookCreate",
]
