"""
进程内存储

用于开发和测试。所有读写都在一把可重入锁内完成（路由层会通过
asyncio.to_thread 在线程池中调用存储层），返回的实体均为副本，
调用方修改返回值不会影响存储内容。
"""

import itertools
import threading
from dataclasses import replace
from datetime import datetime
from typing import Dict, Iterable, List, Optional

from .models import LockSettings, Note, Notebook, User
from .store import DEFAULT_RESULT_LIMIT, NotesStore


class MemoryNotesStore(NotesStore):
    """进程内存储实现"""

    def __init__(self):
        self._lock = threading.RLock()
        self._users: Dict[str, User] = {}
        self._notebooks: Dict[str, Notebook] = {}
        self._notes: Dict[str, Note] = {}
        self._lock_settings: Dict[str, LockSettings] = {}
        # 时间戳相同时用写入序号保证排序稳定
        self._seq = itertools.count(1)
        self._order: Dict[str, int] = {}

    def _stamp(self, entity_id: str) -> int:
        seq = next(self._seq)
        self._order[entity_id] = seq
        return seq

    # ==================== 用户 ====================

    def add_user(self, user: User) -> User:
        with self._lock:
            if any(u.username == user.username for u in self._users.values()):
                raise ValueError(f"duplicate username: {user.username}")
            stored = replace(user, created_at=user.created_at or datetime.now())
            self._users[stored.id] = stored
            return replace(stored)

    def get_user(self, user_id: str) -> Optional[User]:
        with self._lock:
            user = self._users.get(user_id)
            return replace(user) if user else None

    def get_user_by_username(self, username: str) -> Optional[User]:
        with self._lock:
            for user in self._users.values():
                if user.username == username:
                    return replace(user)
        return None

    def update_user(self, user_id: str, **fields) -> bool:
        with self._lock:
            user = self._users.get(user_id)
            if user is None:
                return False
            safe = {k: v for k, v in fields.items() if k in ('username', 'pin')}
            self._users[user_id] = replace(user, **safe)
            return True

    # ==================== 笔记本 ====================

    def add_notebook(self, notebook: Notebook) -> Notebook:
        with self._lock:
            stored = replace(notebook, created_at=notebook.created_at or datetime.now())
            self._notebooks[stored.id] = stored
            self._stamp(stored.id)
            return replace(stored)

    def get_notebook(self, notebook_id: str) -> Optional[Notebook]:
        with self._lock:
            notebook = self._notebooks.get(notebook_id)
            return replace(notebook) if notebook else None

    def list_notebooks(self, user_id: str, section: str) -> List[Notebook]:
        with self._lock:
            notebooks = [
                nb for nb in self._notebooks.values()
                if nb.user_id == user_id and nb.section == section
            ]
            notebooks.sort(key=lambda nb: (nb.created_at, self._order.get(nb.id, 0)), reverse=True)
            return [replace(nb) for nb in notebooks]

    def delete_notebook(self, notebook_id: str) -> List[Note]:
        with self._lock:
            if self._notebooks.pop(notebook_id, None) is None:
                return []
            self._order.pop(notebook_id, None)

            removed = [n for n in self._notes.values() if n.notebook_id == notebook_id]
            for note in removed:
                del self._notes[note.id]
                self._order.pop(note.id, None)
            return [replace(n) for n in removed]

    def count_notes(self, notebook_ids: Iterable[str]) -> Dict[str, int]:
        with self._lock:
            counts = {nb_id: 0 for nb_id in notebook_ids}
            for note in self._notes.values():
                if note.notebook_id in counts:
                    counts[note.notebook_id] += 1
            return counts

    # ==================== 笔记 ====================

    def _populate(self, note: Note) -> Note:
        notebook = self._notebooks.get(note.notebook_id) if note.notebook_id else None
        return replace(note, notebook_name=notebook.name if notebook else None)

    def add_note(self, note: Note) -> Note:
        with self._lock:
            now = datetime.now()
            stored = replace(
                note,
                created_at=note.created_at or now,
                updated_at=now,
                notebook_name=None,
            )
            self._notes[stored.id] = stored
            self._stamp(stored.id)
            return self._populate(stored)

    def get_note(self, note_id: str) -> Optional[Note]:
        with self._lock:
            note = self._notes.get(note_id)
            return self._populate(note) if note else None

    def update_note(self, note_id: str, **fields) -> Optional[Note]:
        with self._lock:
            note = self._notes.get(note_id)
            if note is None:
                return None
            safe = {k: v for k, v in fields.items() if k in Note.MUTABLE_FIELDS}
            updated = replace(note, **safe, updated_at=datetime.now())
            self._notes[note_id] = updated
            self._stamp(note_id)
            return self._populate(updated)

    def delete_note(self, note_id: str) -> bool:
        with self._lock:
            self._order.pop(note_id, None)
            return self._notes.pop(note_id, None) is not None

    def query_notes(
        self,
        user_id: str,
        *,
        section: Optional[str] = None,
        notebook_id: Optional[str] = None,
        is_favorite: Optional[bool] = None,
        is_locked: Optional[bool] = None,
        limit: int = DEFAULT_RESULT_LIMIT,
    ) -> List[Note]:
        with self._lock:
            notes = [
                n for n in self._notes.values()
                if n.user_id == user_id
                and (section is None or n.section == section)
                and (notebook_id is None or n.notebook_id == notebook_id)
                and (is_favorite is None or n.is_favorite == is_favorite)
                and (is_locked is None or n.is_locked == is_locked)
            ]
            notes.sort(key=lambda n: (n.updated_at, self._order.get(n.id, 0)), reverse=True)
            return [self._populate(n) for n in notes[:limit]]

    # ==================== 锁定设置 ====================

    def get_lock_settings(self, user_id: str) -> Optional[LockSettings]:
        with self._lock:
            settings = self._lock_settings.get(user_id)
            return replace(settings) if settings else None

    def save_lock_password(self, user_id: str, lock_password: str) -> LockSettings:
        with self._lock:
            existing = self._lock_settings.get(user_id)
            if existing is None:
                stored = LockSettings(user_id=user_id, lock_password=lock_password, created_at=datetime.now())
            else:
                stored = replace(existing, lock_password=lock_password)
            self._lock_settings[user_id] = stored
            return replace(stored)
