"""Fake notes API and push listener for client tests.

FakeNotesApi 直接调用真实的服务层（内存存储），响应经由接口 schema 序列化，
与 HTTP 接口返回的 JSON 结构一致。变更完成后先通过 FakePushListener
推送受影响的视图，再返回响应（模拟推送先于 HTTP 响应到达）。

可控行为:
- gates: 视图键 -> asyncio.Event，拉取在事件触发前挂起（数据在挂起前已读取）
- fail_views: 视图键 -> 异常，拉取该视图时抛出
- push_enabled: 关闭后变更不再推送
"""

import asyncio
from typing import Any, Optional

from app.schemas.note import Note, NoteCreate, NoteUpdate
from app.schemas.notebook import Notebook
from app.schemas.push import build_push_message
from domains.core import ApplicationError, AuthenticationError, ExternalServiceError
from domains.notebook_hub.core.memory_store import MemoryNotesStore
from domains.notebook_hub.core.security import SecretHasher
from domains.notebook_hub.core.views import ViewKey
from domains.notebook_hub.services import AuthService, LockService, NotebookService


def _dump(model) -> dict[str, Any]:
    return model.model_dump(by_alias=True, mode="json")


class FakePushListener:
    """In-process stand-in for PushListener."""

    def __init__(self, api: Optional["FakeNotesApi"] = None):
        self.on_message = None
        self.connected = False
        self.user_id: Optional[str] = None
        self.fail_connect = False
        self.connect_count = 0
        self.close_count = 0
        if api is not None:
            api.listeners.append(self)

    async def connect(self, user_id: str, cookies: Optional[dict[str, str]] = None) -> None:
        self.connect_count += 1
        if self.fail_connect:
            raise ExternalServiceError("push", "connect failed")
        self.connected = True
        self.user_id = user_id

    async def close(self) -> None:
        self.close_count += 1
        self.connected = False

    def deliver(self, message: dict[str, Any]) -> None:
        if self.connected and self.on_message is not None:
            self.on_message(message)


class FakeNotesApi:
    """Mirrors NotesApiClient on top of the real services."""

    def __init__(self):
        self.store = MemoryNotesStore()
        hasher = SecretHasher(iterations=1_000)
        self.auth = AuthService(self.store, hasher)
        self.notebooks = NotebookService(self.store)
        self.locks = LockService(self.store, hasher)

        self.user_id: Optional[str] = None
        self.calls: list[str] = []
        self.fetches: list[ViewKey] = []
        self.gates: dict[ViewKey, asyncio.Event] = {}
        self.fail_views: dict[ViewKey, ApplicationError] = {}
        self.listeners: list[FakePushListener] = []
        self.push_enabled = True

    def _user(self) -> str:
        if self.user_id is None:
            raise AuthenticationError()
        return self.user_id

    def _broadcast(self, view_keys) -> None:
        if not self.push_enabled:
            return
        for key in view_keys:
            message = build_push_message(key, self.notebooks.load_view(self.user_id, key))
            for listener in self.listeners:
                if listener.user_id == self.user_id:
                    listener.deliver(message)

    def session_cookies(self) -> dict[str, str]:
        return {}

    # ==================== 会话 ====================

    async def register(self, username: str, pin: str) -> dict[str, Any]:
        self.calls.append("register")
        user = self.auth.register(username, pin)
        self.user_id = user.id
        return {"success": True, "userId": user.id}

    async def login(self, username: str, pin: str) -> dict[str, Any]:
        self.calls.append("login")
        user = self.auth.login(username, pin)
        self.user_id = user.id
        return {"success": True, "userId": user.id}

    async def logout(self) -> dict[str, Any]:
        self.calls.append("logout")
        self.user_id = None
        return {"success": True}

    async def check_session(self) -> dict[str, Any]:
        self.calls.append("check_session")
        user = self.auth.get_user(self.user_id) if self.user_id else None
        if user is None:
            return {"authenticated": False}
        return {"authenticated": True, "userId": user.id, "username": user.username}

    # ==================== 视图 ====================

    async def fetch_view(self, key: ViewKey) -> list[dict[str, Any]]:
        self.fetches.append(key)
        user_id = self._user()
        if key in self.fail_views:
            raise self.fail_views[key]

        data = self.notebooks.load_view(user_id, key)
        if key.is_notebook_list:
            items = [_dump(Notebook.from_summary(s)) for s in data]
        else:
            items = [_dump(Note.from_entity(n)) for n in data]

        gate = self.gates.get(key)
        if gate is not None:
            await gate.wait()
        return items

    # ==================== 变更 ====================

    async def create_notebook(self, name: str, section: str) -> dict[str, Any]:
        self.calls.append("create_notebook")
        mutation = self.notebooks.create_notebook(self._user(), name, section)
        self._broadcast(mutation.view_keys)
        return _dump(Notebook.from_summary(mutation.result))

    async def delete_notebook(self, notebook_id: str) -> dict[str, Any]:
        self.calls.append("delete_notebook")
        mutation = self.notebooks.delete_notebook(self._user(), notebook_id)
        self._broadcast(mutation.view_keys)
        return {"success": True}

    async def create_note(self, payload: dict[str, Any]) -> dict[str, Any]:
        self.calls.append("create_note")
        request = NoteCreate.model_validate(payload)
        mutation = self.notebooks.create_note(
            self._user(),
            content=request.content,
            section=request.section,
            notebook_id=request.notebook_id,
            title=request.title,
            is_checked=request.is_checked,
            is_favorite=request.is_favorite,
            is_locked=request.is_locked,
        )
        self._broadcast(mutation.view_keys)
        return _dump(Note.from_entity(mutation.result))

    async def update_note(self, note_id: str, changes: dict[str, Any]) -> dict[str, Any]:
        self.calls.append("update_note")
        fields = NoteUpdate.model_validate(changes).model_dump(exclude_none=True)
        mutation = self.notebooks.update_note(self._user(), note_id, **fields)
        self._broadcast(mutation.view_keys)
        return _dump(Note.from_entity(mutation.result))

    async def delete_note(self, note_id: str) -> dict[str, Any]:
        self.calls.append("delete_note")
        mutation = self.notebooks.delete_note(self._user(), note_id)
        self._broadcast(mutation.view_keys)
        return {"success": True}

    async def toggle_favorite(self, note_id: str) -> dict[str, Any]:
        self.calls.append("toggle_favorite")
        mutation = self.notebooks.toggle_favorite(self._user(), note_id)
        self._broadcast(mutation.view_keys)
        return _dump(Note.from_entity(mutation.result))

    # ==================== 锁定 ====================

    async def set_lock_password(self, password: str) -> dict[str, Any]:
        self.calls.append("set_lock_password")
        self.locks.set_password(self._user(), password)
        return {"success": True}

    async def verify_lock_password(self, password: str) -> dict[str, Any]:
        self.calls.append("verify_lock_password")
        result = self.locks.verify(self._user(), password)
        body = {"success": result.success}
        if result.needs_setup:
            body["needsSetup"] = True
        return body

    async def check_lock_setup(self) -> dict[str, Any]:
        self.calls.append("check_lock_setup")
        return {"hasPassword": self.locks.has_password(self._user())}
