"""
导航状态机

状态: 当前分区、当前笔记本、当前视图（笔记本列表 / 笔记 / 清单），
以及 locked 分区的锁定子状态机:

    UNKNOWN --检查--> NEEDS_SETUP --设置密码--> UNLOCKED
    UNKNOWN --检查--> LOCKED ------解锁------> UNLOCKED
    UNLOCKED --离开 locked 分区--> LOCKED

所有状态转换都是同步的，不涉及网络。
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional

from domains.notebook_hub.core.models import Section
from domains.notebook_hub.core.views import ViewKey


class View(str, Enum):
    """当前视图"""
    NOTEBOOKS = "notebooks"
    NOTES = "notes"
    CHECKLIST = "checklist"


class LockState(str, Enum):
    """locked 分区子状态"""
    UNKNOWN = "unknown"          # 尚未向服务端确认是否设置过密码
    NEEDS_SETUP = "needs_setup"  # 未设置密码，显示设置提示
    LOCKED = "locked"            # 已设置密码，显示解锁提示
    UNLOCKED = "unlocked"        # 已解锁，显示内容


@dataclass
class NavigationState:
    """导航状态"""
    current_section: str = Section.REGULAR.value
    current_notebook: Optional[dict[str, Any]] = None
    current_view: View = View.NOTEBOOKS
    lock_state: LockState = LockState.UNKNOWN

    @property
    def current_notebook_id(self) -> Optional[str]:
        return self.current_notebook.get("_id") if self.current_notebook else None

    @property
    def is_unlocked(self) -> bool:
        return self.lock_state == LockState.UNLOCKED

    def current_key(self) -> Optional[ViewKey]:
        """
        当前可见视图的视图键

        locked 分区未解锁时没有可见视图（显示的是密码提示），返回 None。
        """
        section = Section(self.current_section)

        if section == Section.LOCKED and not self.is_unlocked:
            return None

        if section.has_notebooks and self.current_view != View.NOTEBOOKS:
            return ViewKey(section, self.current_notebook_id)

        return ViewKey(section)

    def enter_section(self, section: str) -> None:
        """切换分区，离开 locked 分区时重新上锁"""
        target = Section(section)

        if self.current_section == Section.LOCKED.value and target != Section.LOCKED and self.is_unlocked:
            self.lock_state = LockState.LOCKED

        self.current_section = target.value
        self.current_notebook = None
        self.current_view = View.NOTEBOOKS if target.has_notebooks else View.NOTES

    def open_notebook(self, notebook: dict[str, Any]) -> None:
        """进入笔记本详情视图"""
        self.current_notebook = notebook
        if self.current_section == Section.CHECKLIST.value:
            self.current_view = View.CHECKLIST
        else:
            self.current_view = View.NOTES

    def back(self) -> None:
        """回到当前分区的笔记本列表"""
        self.current_notebook = None
        if Section(self.current_section).has_notebooks:
            self.current_view = View.NOTEBOOKS

    def reset(self) -> None:
        self.current_section = Section.REGULAR.value
        self.current_notebook = None
        self.current_view = View.NOTEBOOKS
        self.lock_state = LockState.UNKNOWN
