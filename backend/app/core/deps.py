"""Dependency injection for FastAPI routes.

使用 ServiceRegistry 统一管理服务生命周期:
- 核心服务（存储层、认证、笔记本、锁定）由 domains.core 注册
- 推送相关服务（连接管理、重算广播）在此注册
测试时可以通过 registry.set() 替换任意服务。
"""

from typing import Annotated

from fastapi import Depends, Request

from app.core.config import get_settings
from app.core.push import ConnectionManager, ViewBroadcaster
from domains.core import AuthenticationError, ServiceRegistry, get_service_registry, register_core_services
from domains.core.logging import bind_user_context


# ============================================================================
# 初始化服务注册表
# ============================================================================

def register_push_services(registry: ServiceRegistry) -> ServiceRegistry:
    """注册推送连接管理和重算广播服务"""
    registry.register(
        "connection_manager",
        ConnectionManager,
        async_cleanup=lambda m: m.close_all(),
    )
    registry.register(
        "view_broadcaster",
        lambda: ViewBroadcaster(registry.get("connection_manager"), registry.get("notebook_service")),
        dependencies=["connection_manager", "notebook_service"],
    )
    return registry


def _ensure_services_registered() -> ServiceRegistry:
    """确保服务已注册（延迟初始化）"""
    registry = get_service_registry()
    if "notes_store" not in registry:
        settings = get_settings()
        register_core_services(
            storage_backend=settings.STORAGE_BACKEND,
            database_url=settings.DATABASE_URL,
            result_limit=settings.RESULT_LIMIT,
            hash_iterations=settings.PIN_HASH_ITERATIONS,
        )
    if "view_broadcaster" not in registry:
        register_push_services(registry)
    return registry


# ============================================================================
# Service getters - 使用 ServiceRegistry
# ============================================================================

def get_notes_store():
    """Get NotesStore singleton instance."""
    return _ensure_services_registered().get("notes_store")


def get_auth_service():
    """Get AuthService singleton instance."""
    return _ensure_services_registered().get("auth_service")


def get_notebook_service():
    """Get NotebookService singleton instance."""
    return _ensure_services_registered().get("notebook_service")


def get_lock_service():
    """Get LockService singleton instance."""
    return _ensure_services_registered().get("lock_service")


def get_connection_manager() -> ConnectionManager:
    return _ensure_services_registered().get("connection_manager")


def get_view_broadcaster() -> ViewBroadcaster:
    return _ensure_services_registered().get("view_broadcaster")


# ============================================================================
# 会话
# ============================================================================

SESSION_USER_KEY = "user_id"


def require_user(request: Request) -> str:
    """要求已登录，返回会话中的用户 ID"""
    user_id = request.session.get(SESSION_USER_KEY)
    if not user_id:
        raise AuthenticationError()
    bind_user_context(user_id)
    return user_id


CurrentUser = Annotated[str, Depends(require_user)]
