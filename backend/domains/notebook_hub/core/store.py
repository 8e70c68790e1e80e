"""
笔记存储层接口

文档数据库在本系统中只作为按实体划分的简单 CRUD 接口使用。
提供两种实现:
- MemoryNotesStore: 进程内存储（开发 / 测试）
- PostgresNotesStore: PostgreSQL 存储（psycopg2）

所有查询方法都已按用户过滤，调用方无需再做归属检查之外的过滤。
"""

import logging
from abc import ABC, abstractmethod
from typing import Dict, Iterable, List, Optional

from domains.core import ConfigurationError

from .models import LockSettings, Note, Notebook, User

logger = logging.getLogger(__name__)

# 列表视图的默认结果上限
DEFAULT_RESULT_LIMIT = 100


class NotesStore(ABC):
    """
    存储层接口

    子类实现用户、笔记本、笔记、锁定设置四类实体的 CRUD。
    """

    # ==================== 用户 ====================

    @abstractmethod
    def add_user(self, user: User) -> User:
        """添加用户，用户名重复时抛出 ValueError"""

    @abstractmethod
    def get_user(self, user_id: str) -> Optional[User]:
        pass

    @abstractmethod
    def get_user_by_username(self, username: str) -> Optional[User]:
        pass

    @abstractmethod
    def update_user(self, user_id: str, **fields) -> bool:
        pass

    # ==================== 笔记本 ====================

    @abstractmethod
    def add_notebook(self, notebook: Notebook) -> Notebook:
        pass

    @abstractmethod
    def get_notebook(self, notebook_id: str) -> Optional[Notebook]:
        pass

    @abstractmethod
    def list_notebooks(self, user_id: str, section: str) -> List[Notebook]:
        """获取用户某分区的笔记本，按创建时间倒序"""

    @abstractmethod
    def delete_notebook(self, notebook_id: str) -> List[Note]:
        """
        删除笔记本并级联删除其下笔记

        Returns:
            被级联删除的笔记（笔记本不存在时为空列表）
        """

    @abstractmethod
    def count_notes(self, notebook_ids: Iterable[str]) -> Dict[str, int]:
        """统计每个笔记本下的笔记数量"""

    # ==================== 笔记 ====================

    @abstractmethod
    def add_note(self, note: Note) -> Note:
        pass

    @abstractmethod
    def get_note(self, note_id: str) -> Optional[Note]:
        pass

    @abstractmethod
    def update_note(self, note_id: str, **fields) -> Optional[Note]:
        """更新笔记字段并刷新 updated_at，返回更新后的笔记"""

    @abstractmethod
    def delete_note(self, note_id: str) -> bool:
        pass

    @abstractmethod
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
        """
        条件查询笔记

        None 表示不按该条件过滤。结果按 updated_at 倒序，
        并填充 notebook_name。
        """

    # ==================== 锁定设置 ====================

    @abstractmethod
    def get_lock_settings(self, user_id: str) -> Optional[LockSettings]:
        pass

    @abstractmethod
    def save_lock_password(self, user_id: str, lock_password: str) -> LockSettings:
        """首次设置时创建，之后覆盖"""

    def close(self) -> None:
        """释放资源"""


# ==================== 工厂 ====================

def create_notes_store(backend: str = "memory", database_url: Optional[str] = None) -> NotesStore:
    """
    按配置创建存储层

    Args:
        backend: memory / postgres
        database_url: PostgreSQL 连接 URL
    """
    if backend == "memory":
        from .memory_store import MemoryNotesStore
        return MemoryNotesStore()

    if backend == "postgres":
        from .pg_store import PostgresNotesStore
        return PostgresNotesStore(database_url)

    raise ConfigurationError("STORAGE_BACKEND", f"unsupported storage backend: {backend}")
