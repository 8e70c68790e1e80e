"""
服务层：API 客户端、推送监听、笔记客户端、动作分发
"""

from .api_client import NotesApiClient
from .client import NotesClient
from .dispatch import ActionDispatcher
from .push_listener import PushListener

__all__ = [
    'NotesApiClient',
    'NotesClient',
    'ActionDispatcher',
    'PushListener',
]
