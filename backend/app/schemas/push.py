"""Push channel message schemas.

推送条目与 HTTP 列表接口的条目结构完全一致。
"""

from typing import Any, Literal, Optional, Sequence

from app.schemas.common import CamelModel
from app.schemas.note import Note
from app.schemas.notebook import Notebook
from domains.notebook_hub.core.views import ViewKey


class NotebooksUpdated(CamelModel):
    event: Literal["notebooks_updated"] = "notebooks_updated"
    section: str
    notebooks: list[Notebook]


class NotesUpdated(CamelModel):
    event: Literal["notes_updated"] = "notes_updated"
    section: str
    notebook_id: Optional[str] = None
    notes: list[Note]


def build_push_message(key: ViewKey, data: Sequence[Any]) -> dict[str, Any]:
    """把某个视图的最新数据包装为推送消息（JSON 可序列化的 dict）"""
    if key.is_notebook_list:
        message = NotebooksUpdated(
            section=key.section,
            notebooks=[Notebook.from_summary(s) for s in data],
        )
    else:
        message = NotesUpdated(
            section=key.section,
            notebook_id=key.notebook_id,
            notes=[Note.from_entity(n) for n in data],
        )
    return message.model_dump(by_alias=True, mode="json")
