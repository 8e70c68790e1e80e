"""
服务生命周期管理

笔记服务端的存储层和业务服务都通过注册表延迟创建:
- 首次 get 时按依赖顺序创建实例
- 测试中可以用 set 替换实例（如内存存储）
- 应用关闭时按创建的逆序清理

使用示例:
    registry = register_core_services(storage_backend="memory")
    service = registry.get("notebook_service")

    # 应用关闭时
    await registry.shutdown()
"""

import asyncio
import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass
class ServiceDefinition:
    """服务定义"""
    name: str
    factory: Callable[[], Any]
    instance: Any | None = None
    dependencies: list[str] = field(default_factory=list)
    cleanup: Callable[[Any], None] | None = None
    async_cleanup: Callable[[Any], Any] | None = None

    @property
    def initialized(self) -> bool:
        return self.instance is not None


class ServiceRegistry:
    """服务注册表（延迟创建、依赖注入、逆序关闭）"""

    def __init__(self):
        self._services: dict[str, ServiceDefinition] = {}
        self._init_order: list[str] = []

    def register(
        self,
        name: str,
        factory: Callable[[], T],
        dependencies: list[str] | None = None,
        cleanup: Callable[[T], None] | None = None,
        async_cleanup: Callable[[T], Any] | None = None,
    ) -> "ServiceRegistry":
        """
        注册服务工厂

        Args:
            name: 服务名
            factory: 无参工厂函数
            dependencies: 创建前需要先就绪的服务名
            cleanup / async_cleanup: 关闭时调用，缺省时调用实例的 close()
        """
        if name in self._services:
            logger.warning(f"服务 {name} 重复注册，旧定义被替换")

        self._services[name] = ServiceDefinition(
            name=name,
            factory=factory,
            dependencies=dependencies or [],
            cleanup=cleanup,
            async_cleanup=async_cleanup,
        )
        return self

    def get(self, name: str) -> Any:
        """获取服务实例，未创建时先创建其依赖再创建自身

        Raises:
            KeyError: 服务未注册
        """
        definition = self._services.get(name)
        if definition is None:
            raise KeyError(f"服务未注册: {name}")
        if definition.initialized:
            return definition.instance

        for dep in definition.dependencies:
            self.get(dep)

        try:
            definition.instance = definition.factory()
        except Exception as e:
            logger.error(f"服务 {name} 创建失败: {e}")
            raise

        self._init_order.append(name)
        logger.debug(f"服务 {name} 已创建")
        return definition.instance

    def set(self, name: str, instance: Any) -> None:
        """直接放入实例（测试替换或外部注入）"""
        definition = self._services.setdefault(
            name, ServiceDefinition(name=name, factory=lambda: instance)
        )
        definition.instance = instance
        if name not in self._init_order:
            self._init_order.append(name)

    def reset(self, name: str) -> None:
        """清理单个服务，下次 get 时重新创建"""
        definition = self._services.get(name)
        if definition is None or not definition.initialized:
            return

        self._close(definition)
        definition.instance = None
        if name in self._init_order:
            self._init_order.remove(name)

    def reset_all(self) -> None:
        for name in reversed(list(self._init_order)):
            self.reset(name)
        self._init_order.clear()

    async def shutdown(self) -> None:
        """按创建的逆序关闭所有服务"""
        logger.info("关闭服务...")

        for name in reversed(list(self._init_order)):
            definition = self._services[name]
            if definition.async_cleanup is not None:
                try:
                    result = definition.async_cleanup(definition.instance)
                    if asyncio.iscoroutine(result):
                        await result
                except Exception as e:
                    logger.warning(f"服务 {name} 异步清理失败: {e}")
            else:
                self._close(definition)
            definition.instance = None

        self._init_order.clear()
        logger.info("服务已全部关闭")

    @staticmethod
    def _close(definition: ServiceDefinition) -> None:
        close = definition.cleanup or getattr(definition.instance, "close", None)
        if close is None:
            return
        try:
            if definition.cleanup:
                close(definition.instance)
            else:
                close()
        except Exception as e:
            logger.warning(f"服务 {definition.name} 清理失败: {e}")

    @property
    def registered_services(self) -> list[str]:
        return list(self._services)

    @property
    def initialized_services(self) -> list[str]:
        return list(self._init_order)

    def __contains__(self, name: str) -> bool:
        return name in self._services


# ==================== 全局注册表 ====================

_registry: ServiceRegistry | None = None


def get_service_registry() -> ServiceRegistry:
    global _registry
    if _registry is None:
        _registry = ServiceRegistry()
    return _registry


def reset_service_registry() -> None:
    """清理并替换全局注册表（测试用）"""
    global _registry
    if _registry is not None:
        _registry.reset_all()
    _registry = ServiceRegistry()

# ==================== 服务注册辅助函数 ====================

def register_core_services(
    storage_backend: str = "memory",
    database_url: str | None = None,
    result_limit: int = 100,
    hash_iterations: int | None = None,
) -> ServiceRegistry:
    """
    注册核心服务

    在应用启动时调用，注册存储层和各业务服务。
    使用延迟导入避免循环依赖。

    Args:
        storage_backend: 存储后端（memory / postgres）
        database_url: PostgreSQL 连接 URL（postgres 后端使用）
        result_limit: 列表视图的结果上限
        hash_iterations: PIN / 锁定密码的 PBKDF2 迭代次数
    """
    registry = get_service_registry()

    # ============ Store 层 ============
    def _create_notes_store():
        from domains.notebook_hub.core.store import create_notes_store
        return create_notes_store(storage_backend, database_url=database_url)

    registry.register(
        "notes_store",
        _create_notes_store,
        cleanup=lambda s: s.close() if hasattr(s, 'close') else None
    )

    # ============ Service 层 ============
    def _create_hasher():
        from domains.notebook_hub.core.security import SecretHasher
        if hash_iterations:
            return SecretHasher(iterations=hash_iterations)
        return SecretHasher()

    def _create_auth_service():
        from domains.notebook_hub.services import AuthService
        return AuthService(registry.get("notes_store"), registry.get("secret_hasher"))

    def _create_notebook_service():
        from domains.notebook_hub.services import NotebookService
        return NotebookService(registry.get("notes_store"), result_limit=result_limit)

    def _create_lock_service():
        from domains.notebook_hub.services import LockService
        return LockService(registry.get("notes_store"), registry.get("secret_hasher"))

    registry.register("secret_hasher", _create_hasher)

    registry.register(
        "auth_service",
        _create_auth_service,
        dependencies=["notes_store", "secret_hasher"]
    )

    registry.register(
        "notebook_service",
        _create_notebook_service,
        dependencies=["notes_store"]
    )

    registry.register(
        "lock_service",
        _create_lock_service,
        dependencies=["notes_store", "secret_hasher"]
    )

    logger.info(f"已注册 {len(registry.registered_services)} 个服务")
    return registry


# ==================== 导出 ====================

__all__ = [
    "ServiceRegistry",
    "ServiceDefinition",
    "get_service_registry",
    "reset_service_registry",
    "register_core_services",
]
