"""
笔记本 / 笔记数据模型定义

所有实体都严格归属于一个用户，不存在跨用户共享。

分区（Section）:
- regular: 普通笔记本，笔记归属于某个笔记本
- checklist: 清单笔记本，笔记即清单条目（isChecked 仅在此分区有意义）
- favorites: 视图而非存储分区，即 is_favorite=True 的全部笔记
- locked: 锁定笔记，不属于任何笔记本，由独立的密码把关
"""

import uuid as uuid_lib
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any


def new_id() -> str:
    """生成实体 ID"""
    return uuid_lib.uuid4().hex


class Section(str, Enum):
    """分区枚举"""
    REGULAR = "regular"
    CHECKLIST = "checklist"
    FAVORITES = "favorites"
    LOCKED = "locked"

    @property
    def has_notebooks(self) -> bool:
        """该分区下的笔记是否按笔记本组织"""
        return self in NOTEBOOK_SECTIONS

    @property
    def is_stored(self) -> bool:
        """笔记能否以该分区存储（favorites 只是视图）"""
        return self in NOTE_SECTIONS


# 笔记本只能建在这两个分区
NOTEBOOK_SECTIONS = frozenset({Section.REGULAR, Section.CHECKLIST})

# 笔记可存储的分区
NOTE_SECTIONS = frozenset({Section.REGULAR, Section.CHECKLIST, Section.LOCKED})


@dataclass
class User:
    """
    用户

    Attributes:
        id: 用户 ID
        username: 用户名（唯一）
        pin: PIN 哈希（历史数据可能是明文，登录成功后会被升级为哈希）
    """
    id: str = field(default_factory=new_id)
    username: str = ""
    pin: str = ""
    created_at: datetime | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            'id': self.id,
            'username': self.username,
            'created_at': self.created_at,
        }


@dataclass
class Notebook:
    """笔记本，删除时级联删除其下所有笔记"""
    id: str = field(default_factory=new_id)
    user_id: str = ""
    name: str = ""
    section: str = Section.REGULAR.value
    created_at: datetime | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            'id': self.id,
            'user_id': self.user_id,
            'name': self.name,
            'section': self.section,
            'created_at': self.created_at,
        }


@dataclass
class NotebookSummary:
    """笔记本列表项（附带笔记数量）"""
    notebook: Notebook
    note_count: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {**self.notebook.to_dict(), 'note_count': self.note_count}


@dataclass
class Note:
    """
    笔记

    section 决定笔记出现在哪个笔记本列表；is_favorite / is_locked 是
    独立的标记，分别投影到 favorites / locked 视图。

    Attributes:
        id: 笔记 ID
        user_id: 所属用户
        notebook_id: 所属笔记本（locked 笔记为 None）
        section: 存储分区（regular/checklist/locked）
        title: 标题（可选）
        content: 内容
        is_checked: 是否已勾选（仅 checklist）
        is_favorite: 是否收藏
        is_locked: 是否锁定
        notebook_name: 查询时填充的笔记本名称，不持久化
    """
    id: str = field(default_factory=new_id)
    user_id: str = ""
    notebook_id: str | None = None
    section: str = Section.REGULAR.value
    title: str | None = None
    content: str = ""
    is_checked: bool = False
    is_favorite: bool = False
    is_locked: bool = False
    created_at: datetime | None = None
    updated_at: datetime | None = None

    notebook_name: str | None = None

    # 可通过 update 修改的字段
    MUTABLE_FIELDS = frozenset({'title', 'content', 'is_checked', 'is_favorite', 'is_locked'})

    def to_dict(self) -> dict[str, Any]:
        """转换为字典"""
        return {
            'id': self.id,
            'user_id': self.user_id,
            'notebook_id': self.notebook_id,
            'notebook_name': self.notebook_name,
            'section': self.section,
            'title': self.title,
            'content': self.content,
            'is_checked': self.is_checked,
            'is_favorite': self.is_favorite,
            'is_locked': self.is_locked,
            'created_at': self.created_at,
            'updated_at': self.updated_at,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> 'Note':
        """从字典创建笔记实例"""
        valid_fields = {k: v for k, v in data.items() if k in cls.__dataclass_fields__}
        return cls(**valid_fields)


@dataclass
class LockSettings:
    """用户的锁定分区密码，不存在即表示尚未设置"""
    user_id: str = ""
    lock_password: str | None = None
    created_at: datetime | None = None

    @property
    def has_password(self) -> bool:
        return bool(self.lock_password)
