"""
推送通道监听

基于 aiohttp 的 WebSocket 客户端:
1. 携带会话 Cookie 连接推送端点
2. 发送 authenticate 握手并等待确认
3. 后台任务把收到的消息交给回调

连接断开后不自动重连；推送只是降低延迟的手段，
断开期间客户端会在变更后主动重新拉取可见视图。
"""

import asyncio
import inspect
from typing import Any, Awaitable, Callable, Optional, Union

import aiohttp

from domains.core import ExternalServiceError
from domains.core.logging import get_logger

from ..core.config import ClientSettings, get_client_settings

logger = get_logger(__name__)

MessageHandler = Callable[[dict[str, Any]], Union[None, Awaitable[None]]]


class PushListener:
    """推送通道客户端"""

    def __init__(
        self,
        on_message: Optional[MessageHandler] = None,
        settings: Optional[ClientSettings] = None,
    ):
        self.settings = settings or get_client_settings()
        self.on_message = on_message
        self._session: Optional[aiohttp.ClientSession] = None
        self._ws: Optional[aiohttp.ClientWebSocketResponse] = None
        self._task: Optional[asyncio.Task] = None
        self.user_id: Optional[str] = None

    @property
    def connected(self) -> bool:
        return self._ws is not None and not self._ws.closed

    async def connect(self, user_id: str, cookies: Optional[dict[str, str]] = None) -> None:
        """
        建立连接并完成握手

        Raises:
            ExternalServiceError: 连接失败、握手被拒绝或超时
        """
        await self.close()

        self._session = aiohttp.ClientSession(cookies=cookies or {})
        try:
            self._ws = await self._session.ws_connect(
                self.settings.push_url,
                heartbeat=self.settings.push_heartbeat,
            )
            await self._ws.send_json({"event": "authenticate", "userId": user_id})
            ack = await self._ws.receive_json(timeout=self.settings.request_timeout)
        except (aiohttp.ClientError, asyncio.TimeoutError, ValueError, TypeError) as e:
            await self.close()
            raise ExternalServiceError("push", f"connect failed: {e}", cause=e) from e

        if ack.get("event") != "authenticated":
            await self.close()
            raise ExternalServiceError("push", f"handshake rejected: {ack.get('error', ack)}")

        self.user_id = user_id
        self._task = asyncio.create_task(self._listen())
        logger.info("push_connected", user_id=user_id, url=self.settings.push_url)

    async def _dispatch(self, message: dict[str, Any]) -> None:
        if self.on_message is None:
            return
        try:
            result = self.on_message(message)
            if inspect.isawaitable(result):
                await result
        except Exception as e:
            logger.warning("push_handler_failed", event=message.get("event"), error=str(e))

    async def _listen(self) -> None:
        ws = self._ws
        try:
            async for msg in ws:
                if msg.type == aiohttp.WSMsgType.TEXT:
                    try:
                        message = msg.json()
                    except ValueError:
                        logger.warning("push_message_malformed")
                        continue
                    if isinstance(message, dict):
                        await self._dispatch(message)
                elif msg.type == aiohttp.WSMsgType.ERROR:
                    logger.warning("push_connection_error", error=str(ws.exception()))
                    break
        finally:
            logger.info("push_disconnected", user_id=self.user_id)

    async def close(self) -> None:
        """关闭连接（可重复调用）"""
        task, self._task = self._task, None
        ws, self._ws = self._ws, None
        session, self._session = self._session, None

        if ws is not None and not ws.closed:
            await ws.close()
        if task is not None and task is not asyncio.current_task():
            task.cancel()
            await asyncio.gather(task, return_exceptions=True)
        if session is not None:
            await session.close()
