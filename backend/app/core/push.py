"""Push channel: connection registry and recompute-and-broadcast.

推送只是降低延迟的手段，不保证送达:
- 用户没有在线连接时直接跳过，不做重算
- 发送失败的连接会被移除
- 重算或发送失败只记录日志，不影响已经完成的 HTTP 请求
"""

import asyncio
from collections import defaultdict
from typing import Any, Iterable

from fastapi import WebSocket

from app.core.async_utils import run_sync
from app.schemas.push import build_push_message
from domains.core.logging import get_logger
from domains.notebook_hub.core.views import ViewKey
from domains.notebook_hub.services import NotebookService

logger = get_logger(__name__)


class ConnectionManager:
    """Manages WebSocket connections per user.

    同一用户可以同时有多个连接（多设备 / 多标签页），每个连接都收到全部推送。
    """

    def __init__(self):
        self._connections: dict[str, set[WebSocket]] = defaultdict(set)

    def bind(self, user_id: str, websocket: WebSocket) -> None:
        self._connections[user_id].add(websocket)
        logger.info("push_connection_bound", user_id=user_id, connections=len(self._connections[user_id]))

    def unbind(self, user_id: str, websocket: WebSocket) -> None:
        sockets = self._connections.get(user_id)
        if not sockets:
            return
        sockets.discard(websocket)
        if not sockets:
            del self._connections[user_id]
        logger.info("push_connection_unbound", user_id=user_id)

    def is_connected(self, user_id: str) -> bool:
        return bool(self._connections.get(user_id))

    def connection_count(self, user_id: str) -> int:
        return len(self._connections.get(user_id, ()))

    async def send_to_user(self, user_id: str, data: dict[str, Any]) -> int:
        """向用户的所有连接发送消息，返回成功送达的连接数"""
        delivered = 0
        for websocket in list(self._connections.get(user_id, ())):
            try:
                await websocket.send_json(data)
                delivered += 1
            except Exception as e:
                logger.warning("push_send_failed", user_id=user_id, error=str(e))
                self.unbind(user_id, websocket)
        return delivered

    async def close_all(self) -> None:
        """关闭全部连接（应用关闭时）"""
        sockets = [ws for group in self._connections.values() for ws in group]
        self._connections.clear()
        results = await asyncio.gather(*(ws.close() for ws in sockets), return_exceptions=True)
        failed = [r for r in results if isinstance(r, Exception)]
        if failed:
            logger.warning("push_close_failed", count=len(failed))


class ViewBroadcaster:
    """变更之后重算受影响的视图并推送给该用户的在线连接"""

    def __init__(self, manager: ConnectionManager, service: NotebookService):
        self.manager = manager
        self.service = service

    async def recompute_and_push(self, user_id: str, view_keys: Iterable[ViewKey]) -> None:
        keys = list(view_keys)
        if not self.manager.is_connected(user_id):
            logger.debug("push_dropped", user_id=user_id, views=[str(k) for k in keys], reason="no_connection")
            return

        for key in keys:
            # 每个视图独立查询当前状态，推送完整列表
            try:
                data = await run_sync(self.service.load_view, user_id, key)
                delivered = await self.manager.send_to_user(user_id, build_push_message(key, data))
            except Exception as e:
                logger.warning("push_recompute_failed", user_id=user_id, view=str(key), error=str(e))
                continue

            logger.debug("push_delivered", user_id=user_id, view=str(key), items=len(data), connections=delivered)
