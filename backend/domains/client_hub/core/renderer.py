"""
渲染接口

客户端状态机只产出「要显示什么」（Screen），不关心界面框架。
ViewModel 是默认实现：记录当前画面和通知，供命令行 / 测试使用。
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional, Protocol

from domains.notebook_hub.core.views import ViewKey


class ViewStatus(str, Enum):
    """画面状态"""
    IDLE = "idle"
    LOADING = "loading"
    READY = "ready"
    EMPTY = "empty"            # 已加载，但列表为空（"no items yet"）
    ERROR = "error"            # 加载失败（"failed to load"），与 EMPTY 区分
    LOCK_SETUP = "lock_setup"
    LOCK_PROMPT = "lock_prompt"
    SIGNED_OUT = "signed_out"


@dataclass
class Screen:
    """一次渲染的内容"""
    status: ViewStatus
    title: str = ""
    view_key: Optional[ViewKey] = None
    items: list[dict[str, Any]] = field(default_factory=list)
    error: Optional[str] = None


@dataclass
class Notification:
    message: str
    level: str = "info"


class ViewRenderer(Protocol):
    """界面层需要实现的接口"""

    def render(self, screen: Screen) -> None:
        ...

    def notify(self, message: str, level: str = "info") -> None:
        ...


class ViewModel:
    """默认渲染器：保存当前画面、最近的渲染历史和通知（各保留 history_limit 条）"""

    def __init__(self, history_limit: int = 100):
        self.history_limit = history_limit
        self.screen = Screen(status=ViewStatus.IDLE)
        self.history: list[Screen] = []
        self.notifications: list[Notification] = []

    def render(self, screen: Screen) -> None:
        self.screen = screen
        self.history.append(screen)
        del self.history[:-self.history_limit]

    def notify(self, message: str, level: str = "info") -> None:
        self.notifications.append(Notification(message, level))
        del self.notifications[:-self.history_limit]

    @property
    def status(self) -> ViewStatus:
        return self.screen.status

    @property
    def items(self) -> list[dict[str, Any]]:
        return self.screen.items

    @property
    def title(self) -> str:
        return self.screen.title

    @property
    def view_key(self) -> Optional[ViewKey]:
        return self.screen.view_key

    @property
    def last_notification(self) -> Optional[Notification]:
        return self.notifications[-1] if self.notifications else None
