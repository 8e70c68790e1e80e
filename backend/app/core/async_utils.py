"""
异步工具函数

提供在异步上下文中安全执行同步代码的工具。
"""

import asyncio
from typing import Callable, TypeVar

T = TypeVar("T")


async def run_sync(func: Callable[..., T], *args, **kwargs) -> T:
    """
    在线程池中执行同步函数，避免阻塞 event loop。

    存储层（内存锁 / psycopg2）都是同步实现，路由中的服务调用统一经此包装。

    Example:
        mutation = await run_sync(service.create_notebook, user_id, name, section)
    """
    return await asyncio.to_thread(func, *args, **kwargs)
