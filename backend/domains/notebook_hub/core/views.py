"""
视图键与变更影响范围

视图键（ViewKey）标识一个可缓存、可推送的列表视图:
- (section)             分区的笔记本列表，或 favorites / locked 笔记列表
- (section, notebookId) 某个笔记本内的笔记列表

服务端用它决定变更之后需要重算并推送哪些视图；客户端用同一套映射
决定变更之后哪些缓存条目需要失效。两端共用此模块，保证映射一致。
"""

from dataclasses import dataclass
from typing import Any, Iterable, Mapping, Optional

from .models import Note, Section


@dataclass(frozen=True, order=True)
class ViewKey:
    """可缓存 / 可推送的视图标识"""
    section: str
    notebook_id: Optional[str] = None

    def __post_init__(self):
        # 允许直接传入 Section 枚举
        object.__setattr__(self, "section", Section(self.section).value)

    @property
    def is_notebook_list(self) -> bool:
        """是否为分区的笔记本列表视图"""
        return self.notebook_id is None and Section(self.section).has_notebooks

    @property
    def is_note_list(self) -> bool:
        return not self.is_notebook_list

    def __str__(self) -> str:
        if self.notebook_id:
            return f"{self.section}:{self.notebook_id}"
        return self.section

    @classmethod
    def parse(cls, value: str) -> "ViewKey":
        """从 "section" 或 "section:notebookId" 形式解析"""
        section, _, notebook_id = value.partition(":")
        return cls(section, notebook_id or None)


def notebook_list_key(section: str) -> ViewKey:
    return ViewKey(section)


def notes_key(section: str, notebook_id: Optional[str] = None) -> ViewKey:
    """笔记列表视图键，favorites / locked 不带笔记本"""
    if Section(section).has_notebooks:
        return ViewKey(section, notebook_id)
    return ViewKey(section)


FAVORITES_KEY = ViewKey(Section.FAVORITES)
LOCKED_KEY = ViewKey(Section.LOCKED)


@dataclass(frozen=True)
class NoteScope:
    """
    笔记在某一时刻所处的视图范围

    只保留计算影响范围所需的字段，可以由服务端的 Note 或客户端拿到的
    JSON 负载构造。
    """
    section: str
    notebook_id: Optional[str] = None
    is_favorite: bool = False
    is_locked: bool = False

    @classmethod
    def from_note(cls, note: Note) -> "NoteScope":
        return cls(
            section=note.section,
            notebook_id=note.notebook_id,
            is_favorite=note.is_favorite,
            is_locked=note.is_locked,
        )

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> "NoteScope":
        """从接口返回的笔记 JSON（camelCase）构造"""
        return cls(
            section=payload.get("section", Section.REGULAR.value),
            notebook_id=payload.get("notebookId"),
            is_favorite=bool(payload.get("isFavorite")),
            is_locked=bool(payload.get("isLocked")),
        )


def _dedupe(keys: Iterable[ViewKey]) -> list[ViewKey]:
    seen: list[ViewKey] = []
    for key in keys:
        if key not in seen:
            seen.append(key)
    return seen


def note_view_keys(*snapshots: Optional[NoteScope], favorite_touched: bool = False) -> list[ViewKey]:
    """
    计算一次笔记变更影响的视图键

    传入变更前 / 变更后的快照（创建时没有变更前，删除时没有变更后）。

    规则:
    - 笔记本内的笔记（regular/checklist）: {section+notebookId} 以及 {section}
      （笔记本列表中的笔记数量随之变化）
    - 任一快照处于收藏状态，或本次变更涉及 isFavorite: {favorites}
    - section 为 locked: {locked}

    Args:
        *snapshots: 变更前后的笔记范围，None 会被忽略
        favorite_touched: 本次变更显式修改了 isFavorite

    Returns:
        去重且有序的视图键列表（1 到 3 个）
    """
    keys: list[ViewKey] = []
    present = [s for s in snapshots if s is not None]

    for scope in present:
        section = Section(scope.section)
        if section.has_notebooks and scope.notebook_id:
            keys.append(ViewKey(section, scope.notebook_id))
            keys.append(ViewKey(section))
        elif section == Section.LOCKED:
            keys.append(LOCKED_KEY)

    if favorite_touched or any(s.is_favorite for s in present):
        keys.append(FAVORITES_KEY)

    return _dedupe(keys)


def notebook_view_keys(section: str, removed_notes: Iterable[NoteScope] = ()) -> list[ViewKey]:
    """
    计算笔记本创建 / 删除影响的视图键

    删除笔记本会级联删除其下笔记；若其中有收藏笔记，favorites 视图也需要重算。
    """
    keys = [ViewKey(section)]
    if any(scope.is_favorite for scope in removed_notes):
        keys.append(FAVORITES_KEY)
    return keys
