"""Notebook-related Pydantic schemas."""

from datetime import datetime
from typing import Optional

from pydantic import Field

from app.schemas.common import CamelModel
from domains.notebook_hub.core.models import NotebookSummary


class NotebookCreate(CamelModel):
    """Notebook create request."""

    name: Optional[str] = Field(None, description="笔记本名称")
    section: Optional[str] = Field(None, description="分区（regular / checklist）")


class Notebook(CamelModel):
    """Notebook list item (HTTP 列表与推送共用)."""

    id: str = Field(..., alias="_id")
    user_id: str
    name: str
    section: str
    note_count: int = 0
    created_at: Optional[datetime] = None

    @classmethod
    def from_summary(cls, summary: NotebookSummary) -> "Notebook":
        notebook = summary.notebook
        return cls(
            id=notebook.id,
            user_id=notebook.user_id,
            name=notebook.name,
            section=notebook.section,
            note_count=summary.note_count,
            created_at=notebook.created_at,
        )
