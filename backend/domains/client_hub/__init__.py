"""
笔记客户端领域模块

客户端缓存 / 状态同步层:
- 视图缓存: 按视图键缓存完整列表，推送覆盖、变更后失效
- 导航状态机: 分区 / 笔记本 / 视图，以及 locked 分区的锁定子状态机
- 推送应用: 推送的完整列表是缓存内容的唯一写入方（首次拉取之后）
"""

from .core import ClientSettings, Freshness, LockState, NavigationState, ViewCache, ViewModel, ViewStatus
from .services import ActionDispatcher, NotesApiClient, NotesClient, PushListener

__all__ = [
    'ClientSettings',
    'Freshness',
    'LockState',
    'NavigationState',
    'ViewCache',
    'ViewModel',
    'ViewStatus',
    'ActionDispatcher',
    'NotesApiClient',
    'NotesClient',
    'PushListener',
]
