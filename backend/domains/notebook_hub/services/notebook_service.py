"""
笔记本 / 笔记服务层

封装笔记本与笔记的业务逻辑:
- 归属校验（他人的实体一律视为不存在）
- 分区规则校验
- 每次变更返回受影响的视图键，供推送层重算
- 按视图键加载视图（HTTP 列表接口和推送共用）
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Generic, TypeVar

from domains.core import NotebookNotFoundError, NoteNotFoundError, ValidationError

from ..core.models import (
    NOTE_SECTIONS,
    NOTEBOOK_SECTIONS,
    Note,
    Notebook,
    NotebookSummary,
    Section,
)
from ..core.store import DEFAULT_RESULT_LIMIT, NotesStore
from ..core.views import NoteScope, ViewKey, note_view_keys, notebook_view_keys

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass
class Mutation(Generic[T]):
    """
    变更结果

    Attributes:
        result: 变更后的实体（删除时为被删除的实体）
        view_keys: 需要重算并推送的视图键
    """
    result: T
    view_keys: list[ViewKey] = field(default_factory=list)


def parse_section(value: str) -> Section:
    try:
        return Section(value)
    except ValueError as e:
        raise ValidationError(f"Invalid section: {value}", field="section") from e


class NotebookService:
    """
    笔记本 / 笔记服务

    所有方法的第一个参数都是当前会话用户，查询和变更都限定在该用户范围内。
    """

    def __init__(self, store: NotesStore, result_limit: int = DEFAULT_RESULT_LIMIT):
        self.store = store
        self.result_limit = result_limit

    # ==================== 归属校验 ====================

    def _owned_notebook(self, user_id: str, notebook_id: str | None) -> Notebook:
        notebook = self.store.get_notebook(notebook_id) if notebook_id else None
        if notebook is None or notebook.user_id != user_id:
            raise NotebookNotFoundError(notebook_id or "")
        return notebook

    def _owned_note(self, user_id: str, note_id: str) -> Note:
        note = self.store.get_note(note_id)
        if note is None or note.user_id != user_id:
            raise NoteNotFoundError(note_id)
        return note

    # ==================== 笔记本 ====================

    def list_notebooks(self, user_id: str, section: str) -> list[NotebookSummary]:
        """
        获取分区的笔记本列表（按创建时间倒序，附带笔记数量）

        favorites / locked 分区没有笔记本，返回空列表。
        """
        if not parse_section(section).has_notebooks:
            return []

        notebooks = self.store.list_notebooks(user_id, section)
        counts = self.store.count_notes(nb.id for nb in notebooks)
        return [NotebookSummary(nb, counts.get(nb.id, 0)) for nb in notebooks]

    def create_notebook(self, user_id: str, name: str | None, section: str | None) -> Mutation[NotebookSummary]:
        """创建笔记本"""
        name = (name or "").strip()
        if not name:
            raise ValidationError("Notebook name is required", field="name")

        parsed = parse_section(section or "")
        if parsed not in NOTEBOOK_SECTIONS:
            raise ValidationError(f"Notebooks cannot be created in section: {parsed.value}", field="section")

        notebook = self.store.add_notebook(Notebook(user_id=user_id, name=name, section=parsed.value))
        logger.info(f"创建笔记本: {name} (ID: {notebook.id}, 分区: {parsed.value})")

        return Mutation(NotebookSummary(notebook, 0), notebook_view_keys(notebook.section))

    def delete_notebook(self, user_id: str, notebook_id: str) -> Mutation[Notebook]:
        """删除笔记本，级联删除其下所有笔记"""
        notebook = self._owned_notebook(user_id, notebook_id)

        removed = self.store.delete_notebook(notebook.id)
        logger.info(f"删除笔记本: {notebook.name} (ID: {notebook.id}), 级联删除 {len(removed)} 条笔记")

        keys = notebook_view_keys(notebook.section, [NoteScope.from_note(n) for n in removed])
        return Mutation(notebook, keys)

    # ==================== 笔记查询 ====================

    def list_notes(self, user_id: str, section: str, notebook_id: str | None = None) -> list[Note]:
        """
        获取笔记列表（按更新时间倒序，最多 result_limit 条）

        - regular/checklist: 分区内（指定笔记本时限定该笔记本）的笔记
        - favorites: 所有已收藏笔记，不论存储分区
        - locked: locked 分区中 is_locked 的笔记
        """
        parsed = parse_section(section)

        if parsed == Section.FAVORITES:
            return self.store.query_notes(user_id, is_favorite=True, limit=self.result_limit)

        if parsed == Section.LOCKED:
            return self.store.query_notes(
                user_id, section=parsed.value, is_locked=True, limit=self.result_limit
            )

        return self.store.query_notes(
            user_id, section=parsed.value, notebook_id=notebook_id, limit=self.result_limit
        )

    def load_view(self, user_id: str, key: ViewKey) -> list[Any]:
        """按视图键加载视图数据（笔记本列表或笔记列表）"""
        if key.is_notebook_list:
            return self.list_notebooks(user_id, key.section)
        return self.list_notes(user_id, key.section, key.notebook_id)

    def get_note(self, user_id: str, note_id: str) -> Note:
        return self._owned_note(user_id, note_id)

    # ==================== 笔记变更 ====================

    def create_note(
        self,
        user_id: str,
        *,
        content: str | None,
        section: str | None,
        notebook_id: str | None = None,
        title: str | None = None,
        is_checked: bool = False,
        is_favorite: bool = False,
        is_locked: bool = False,
    ) -> Mutation[Note]:
        """
        创建笔记

        Raises:
            ValidationError: 内容为空、分区非法、分区与笔记本不匹配
            NotebookNotFoundError: 笔记本不存在或不属于当前用户
        """
        if not content or not content.strip():
            raise ValidationError("Content is required", field="content")

        parsed = parse_section(section or "")
        if parsed not in NOTE_SECTIONS:
            raise ValidationError(f"Notes cannot be stored in section: {parsed.value}", field="section")

        if parsed.has_notebooks:
            notebook = self._owned_notebook(user_id, notebook_id)
            if notebook.section != parsed.value:
                raise ValidationError(
                    f"Notebook belongs to section {notebook.section}, not {parsed.value}",
                    field="notebookId",
                )
            notebook_id = notebook.id
        else:
            # locked 笔记不属于任何笔记本
            notebook_id = None
            is_locked = True

        if is_checked and parsed != Section.CHECKLIST:
            raise ValidationError("isChecked only applies to checklist notes", field="isChecked")

        note = self.store.add_note(Note(
            user_id=user_id,
            notebook_id=notebook_id,
            section=parsed.value,
            title=title,
            content=content,
            is_checked=is_checked,
            is_favorite=is_favorite,
            is_locked=is_locked,
        ))
        logger.info(f"创建笔记: {note.id} (分区: {note.section}, 笔记本: {note.notebook_id})")

        return Mutation(note, note_view_keys(NoteScope.from_note(note)))

    def update_note(self, user_id: str, note_id: str, **changes) -> Mutation[Note]:
        """
        更新笔记

        Args:
            changes: title / content / is_checked / is_favorite / is_locked 中的任意子集，
                值为 None 的字段被忽略
        """
        before = self._owned_note(user_id, note_id)
        changes = {k: v for k, v in changes.items() if k in Note.MUTABLE_FIELDS and v is not None}

        if 'content' in changes and not changes['content'].strip():
            raise ValidationError("Content cannot be empty", field="content")

        if changes.get('is_checked') and before.section != Section.CHECKLIST.value:
            raise ValidationError("isChecked only applies to checklist notes", field="isChecked")

        if 'is_locked' in changes and changes['is_locked'] != (before.section == Section.LOCKED.value):
            raise ValidationError("isLocked is determined by the note's section", field="isLocked")

        after = self.store.update_note(note_id, **changes)
        if after is None:
            raise NoteNotFoundError(note_id)

        keys = note_view_keys(
            NoteScope.from_note(before),
            NoteScope.from_note(after),
            favorite_touched='is_favorite' in changes,
        )
        return Mutation(after, keys)

    def toggle_favorite(self, user_id: str, note_id: str) -> Mutation[Note]:
        """切换收藏状态"""
        before = self._owned_note(user_id, note_id)

        after = self.store.update_note(note_id, is_favorite=not before.is_favorite)
        if after is None:
            raise NoteNotFoundError(note_id)

        logger.info(f"笔记 {note_id} 收藏状态: {before.is_favorite} -> {after.is_favorite}")
        keys = note_view_keys(NoteScope.from_note(before), NoteScope.from_note(after), favorite_touched=True)
        return Mutation(after, keys)

    def delete_note(self, user_id: str, note_id: str) -> Mutation[Note]:
        """删除笔记"""
        note = self._owned_note(user_id, note_id)

        if not self.store.delete_note(note_id):
            raise NoteNotFoundError(note_id)

        logger.info(f"删除笔记: {note_id}")
        return Mutation(note, note_view_keys(NoteScope.from_note(note)))
