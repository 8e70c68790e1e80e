"""Note-related Pydantic schemas."""

from datetime import datetime
from typing import Optional

from pydantic import Field

from app.schemas.common import CamelModel
from domains.notebook_hub.core.models import Note as NoteEntity


class NoteCreate(CamelModel):
    """Note create request."""

    content: Optional[str] = Field(None, description="笔记内容")
    section: Optional[str] = Field(None, description="分区（regular / checklist / locked）")
    notebook_id: Optional[str] = Field(None, description="所属笔记本（locked 笔记不需要）")
    title: Optional[str] = None
    is_checked: bool = False
    is_favorite: bool = False
    is_locked: bool = False


class NoteUpdate(CamelModel):
    """Note update request. 未提供的字段保持不变。"""

    title: Optional[str] = None
    content: Optional[str] = None
    is_checked: Optional[bool] = None
    is_favorite: Optional[bool] = None
    is_locked: Optional[bool] = None


class Note(CamelModel):
    """Complete note model for API responses and pushes."""

    id: str = Field(..., alias="_id")
    user_id: str
    notebook_id: Optional[str] = None
    notebook_name: Optional[str] = Field(None, description="所属笔记本名称（收藏视图展示用）")
    section: str
    title: Optional[str] = None
    content: str
    is_checked: bool = False
    is_favorite: bool = False
    is_locked: bool = False
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @classmethod
    def from_entity(cls, note: NoteEntity) -> "Note":
        return cls.model_validate(note.to_dict())
