"""
笔记本领域模块

个人笔记应用的服务端领域层:
- 分区: regular / checklist（按笔记本组织）、favorites（收藏视图）、locked（密码把关）
- 变更影响范围: 每次变更计算需要重算并推送的视图键
- 存储: 内存 / PostgreSQL 两种实现
"""

from .core.models import Note, Notebook, Section, User
from .core.store import NotesStore, create_notes_store
from .core.views import ViewKey
from .services import AuthService, LockService, Mutation, NotebookService

__all__ = [
    'Note',
    'Notebook',
    'Section',
    'User',
    'NotesStore',
    'create_notes_store',
    'ViewKey',
    'AuthService',
    'LockService',
    'Mutation',
    'NotebookService',
]
