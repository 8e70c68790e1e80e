"""Application lifecycle event handlers.

使用 ServiceRegistry 统一管理生命周期。
"""

from typing import Callable

from app.core.deps import _ensure_services_registered
from domains.core import get_service_registry
from domains.core.logging import get_logger

logger = get_logger(__name__)


def create_start_handler() -> Callable:
    """Create startup event handler."""

    async def start_app() -> None:
        logger.info("api_starting", component="api")

        registry = _ensure_services_registered()

        # 预热存储层（postgres 后端在此建表，连接失败时尽早暴露）
        registry.get("notes_store")
        registry.get("view_broadcaster")

        logger.info(
            "services_initialized",
            component="registry",
            services=registry.initialized_services,
        )
        logger.info("api_started", component="api", status="success")

    return start_app


def create_stop_handler() -> Callable:
    """Create shutdown event handler."""

    async def stop_app() -> None:
        logger.info("api_stopping", component="api")

        # 使用 ServiceRegistry 统一关闭所有服务
        try:
            registry = get_service_registry()
            await registry.shutdown()
        except Exception as e:
            logger.warning("service_registry_stop_error", component="registry", error=str(e))

        logger.info("api_stopped", component="api", status="success")

    return stop_app
