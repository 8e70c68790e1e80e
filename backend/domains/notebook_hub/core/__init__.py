"""
核心层：数据模型、视图键、存储与哈希

视图键映射（views）由服务端推送和客户端缓存失效共用。
"""

from .models import (
    NOTE_SECTIONS,
    NOTEBOOK_SECTIONS,
    LockSettings,
    Note,
    Notebook,
    NotebookSummary,
    Section,
    User,
)
from .security import SecretHasher
from .store import DEFAULT_RESULT_LIMIT, NotesStore, create_notes_store
from .views import (
    FAVORITES_KEY,
    LOCKED_KEY,
    NoteScope,
    ViewKey,
    note_view_keys,
    notebook_list_key,
    notebook_view_keys,
    notes_key,
)

__all__ = [
    'Section',
    'NOTEBOOK_SECTIONS',
    'NOTE_SECTIONS',
    'User',
    'Notebook',
    'NotebookSummary',
    'Note',
    'LockSettings',
    'SecretHasher',
    'NotesStore',
    'DEFAULT_RESULT_LIMIT',
    'create_notes_store',
    'ViewKey',
    'NoteScope',
    'FAVORITES_KEY',
    'LOCKED_KEY',
    'notebook_list_key',
    'notes_key',
    'note_view_keys',
    'notebook_view_keys',
]
