"""
核心层：视图缓存、导航状态机、渲染接口、客户端配置
"""

from .cache import CacheEntry, Freshness, ViewCache
from .config import ClientSettings, get_client_settings
from .renderer import Notification, Screen, ViewModel, ViewRenderer, ViewStatus
from .state import LockState, NavigationState, View

__all__ = [
    'CacheEntry',
    'Freshness',
    'ViewCache',
    'ClientSettings',
    'get_client_settings',
    'Notification',
    'Screen',
    'ViewModel',
    'ViewRenderer',
    'ViewStatus',
    'LockState',
    'NavigationState',
    'View',
]
