"""
笔记服务 HTTP 客户端

基于 httpx.AsyncClient，会话 Cookie 保存在客户端的 Cookie Jar 中。
错误统一映射到 domains.core 的异常体系:
- 非 2xx 响应: ApplicationError.from_status（400 -> VALIDATION, 401 -> AUTHENTICATION, ...）
- 连接失败 / 超时: ExternalServiceError
"""

from typing import Any, Optional

import httpx

from domains.core import ApplicationError, ExternalServiceError
from domains.core.logging import get_logger
from domains.notebook_hub.core.views import ViewKey

from ..core.config import ClientSettings, get_client_settings

logger = get_logger(__name__)

SERVICE_NAME = "notes-api"


class NotesApiClient:
    """笔记服务 API 客户端"""

    def __init__(
        self,
        settings: Optional[ClientSettings] = None,
        *,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.settings = settings or get_client_settings()
        self._client = httpx.AsyncClient(
            base_url=self.settings.api_base_url,
            timeout=self.settings.request_timeout,
            transport=transport,
        )

    async def __aenter__(self) -> "NotesApiClient":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    def session_cookies(self) -> dict[str, str]:
        """当前会话 Cookie（推送通道握手时携带）"""
        return {cookie.name: cookie.value for cookie in self._client.cookies.jar}

    async def _request(self, method: str, path: str, json: Any = None) -> Any:
        try:
            response = await self._client.request(method, path, json=json)
        except httpx.TimeoutException as e:
            logger.warning("api_request_timeout", method=method, path=path)
            raise ExternalServiceError(SERVICE_NAME, "request timed out", cause=e) from e
        except httpx.TransportError as e:
            logger.warning("api_request_unreachable", method=method, path=path, error=str(e))
            raise ExternalServiceError(SERVICE_NAME, str(e) or type(e).__name__, cause=e) from e

        if response.is_success:
            return response.json()

        try:
            body = response.json()
        except ValueError:
            body = {}
        message = body.get("error") if isinstance(body, dict) else None

        logger.debug("api_request_failed", method=method, path=path, status_code=response.status_code)
        raise ApplicationError.from_status(
            response.status_code,
            message or response.reason_phrase or f"HTTP {response.status_code}",
            details={"code": body.get("code")} if isinstance(body, dict) and body.get("code") else None,
        )

    # ==================== 会话 ====================

    async def register(self, username: str, pin: str) -> dict[str, Any]:
        return await self._request("POST", "/register", {"username": username, "pin": pin})

    async def login(self, username: str, pin: str) -> dict[str, Any]:
        return await self._request("POST", "/login", {"username": username, "pin": pin})

    async def logout(self) -> dict[str, Any]:
        return await self._request("POST", "/logout")

    async def check_session(self) -> dict[str, Any]:
        return await self._request("GET", "/check-session")

    # ==================== 笔记本 ====================

    async def list_notebooks(self, section: str) -> list[dict[str, Any]]:
        return await self._request("GET", f"/notebooks/{section}")

    async def create_notebook(self, name: str, section: str) -> dict[str, Any]:
        return await self._request("POST", "/notebooks", {"name": name, "section": section})

    async def delete_notebook(self, notebook_id: str) -> dict[str, Any]:
        return await self._request("DELETE", f"/notebooks/{notebook_id}")

    # ==================== 笔记 ====================

    async def list_notes(self, section: str, notebook_id: Optional[str] = None) -> list[dict[str, Any]]:
        path = f"/notes/{section}/{notebook_id}" if notebook_id else f"/notes/{section}"
        return await self._request("GET", path)

    async def create_note(self, payload: dict[str, Any]) -> dict[str, Any]:
        """payload 使用接口字段名（content / section / notebookId / isLocked ...）"""
        return await self._request("POST", "/notes", payload)

    async def update_note(self, note_id: str, changes: dict[str, Any]) -> dict[str, Any]:
        return await self._request("PUT", f"/notes/{note_id}", changes)

    async def delete_note(self, note_id: str) -> dict[str, Any]:
        return await self._request("DELETE", f"/notes/{note_id}")

    async def toggle_favorite(self, note_id: str) -> dict[str, Any]:
        return await self._request("POST", f"/notes/{note_id}/favorite")

    # ==================== 锁定 ====================

    async def set_lock_password(self, password: str) -> dict[str, Any]:
        return await self._request("POST", "/set-lock-password", {"password": password})

    async def verify_lock_password(self, password: str) -> dict[str, Any]:
        return await self._request("POST", "/verify-lock-password", {"password": password})

    async def check_lock_setup(self) -> dict[str, Any]:
        return await self._request("GET", "/check-lock-setup")

    # ==================== 视图 ====================

    async def fetch_view(self, key: ViewKey) -> list[dict[str, Any]]:
        """按视图键拉取视图（笔记本列表或笔记列表）"""
        if key.is_notebook_list:
            return await self.list_notebooks(key.section)
        return await self.list_notes(key.section, key.notebook_id)
