"""
笔记客户端：视图缓存 + 导航状态机 + 推送应用

导航采用 cache-or-fetch 策略:
- 缓存命中且新鲜: 立即渲染，不发请求
- 否则先渲染 loading，再拉取；拉取完成时若当前位置已经离开该视图，
  只写缓存不渲染（拉取不可取消，这是唯一需要显式检查的并发点）

变更之后不在本地修改任何列表:
- 服务端推送的完整列表是缓存内容的唯一来源
- 变更成功后把受影响的视图标记过期（推送已先到的除外）
- 推送通道未连接且当前可见视图受影响时，立即重新拉取
"""

import asyncio
from typing import Any, Awaitable, Callable, Iterable, Optional, Union

from domains.core import ApplicationError, ErrorCategory
from domains.core.logging import get_logger
from domains.notebook_hub.core.models import Section
from domains.notebook_hub.core.views import (
    FAVORITES_KEY,
    LOCKED_KEY,
    NoteScope,
    ViewKey,
    note_view_keys,
    notebook_view_keys,
    notes_key,
)

from ..core.cache import CacheEntry, ViewCache
from ..core.config import ClientSettings, get_client_settings
from ..core.renderer import Screen, ViewModel, ViewRenderer, ViewStatus
from ..core.state import LockState, NavigationState
from .api_client import NotesApiClient
from .push_listener import PushListener

logger = get_logger(__name__)

SECTION_TITLES = {
    Section.REGULAR.value: "Notebooks",
    Section.CHECKLIST.value: "Checklists",
    Section.FAVORITES.value: "Favorites",
    Section.LOCKED.value: "Locked",
}

# 登录后预热的视图（locked 视图从不预热）
PRELOAD_KEYS = (ViewKey(Section.REGULAR), ViewKey(Section.CHECKLIST), FAVORITES_KEY)

ViewKeys = Union[Iterable[ViewKey], Callable[[Any], Iterable[ViewKey]]]


class NotesClient:
    """
    笔记客户端

    每个会话 / 界面实例一个对象，缓存和导航状态都归它所有，
    登出时整体清理。

    使用示例:
        async with NotesApiClient(settings) as api:
            client = NotesClient(api, renderer=ViewModel())
            await client.login("alice", "1234")
            await client.open_notebook(notebook_id)
            await client.create_note("milk")
    """

    def __init__(
        self,
        api: NotesApiClient,
        renderer: Optional[ViewRenderer] = None,
        *,
        settings: Optional[ClientSettings] = None,
        push_listener: Optional[PushListener] = None,
        enable_push: bool = True,
    ):
        self.api = api
        self.renderer = renderer if renderer is not None else ViewModel()
        self.settings = settings or get_client_settings()
        self.cache = ViewCache()
        self.state = NavigationState()
        self.user_id: Optional[str] = None
        self.username: Optional[str] = None

        if push_listener is None and enable_push:
            push_listener = PushListener(settings=self.settings)
        if push_listener is not None:
            push_listener.on_message = self.handle_push_message
        self.push = push_listener

        # 视图键 -> (拉取任务, 发起时的缓存版本)
        self._inflight: dict[ViewKey, tuple[asyncio.Future, int]] = {}
        # 每次登录 / 登出递增，丢弃上一个会话的迟到结果
        self._epoch = 0

    # ==================== 会话 ====================

    @property
    def signed_in(self) -> bool:
        return self.user_id is not None

    @property
    def push_connected(self) -> bool:
        return self.push is not None and self.push.connected

    async def start(self) -> bool:
        """检查已有会话；已登录则进入 regular 分区，否则显示登录界面"""
        try:
            status = await self.api.check_session()
        except ApplicationError as e:
            logger.warning("session_check_failed", error=e.message)
            self._render(Screen(status=ViewStatus.ERROR, title="Sign in", error=e.message))
            return False

        if not status.get("authenticated"):
            self._show_signed_out()
            return False

        await self._begin_session(status["userId"], status.get("username"))
        return True

    async def login(self, username: str, pin: str) -> bool:
        try:
            result = await self.api.login(username, pin)
        except ApplicationError as e:
            self.renderer.notify(e.message, "error")
            return False

        await self._begin_session(result["userId"], username)
        return True

    async def register(self, username: str, pin: str) -> bool:
        try:
            result = await self.api.register(username, pin)
        except ApplicationError as e:
            self.renderer.notify(e.message, "error")
            return False

        await self._begin_session(result["userId"], username)
        return True

    async def logout(self) -> None:
        """登出：通知服务端，然后清理推送连接、缓存和导航状态"""
        try:
            await self.api.logout()
        except ApplicationError as e:
            logger.warning("logout_request_failed", error=e.message)

        await self._teardown()
        self._show_signed_out()

    async def close(self) -> None:
        """释放推送连接（不清理服务端会话）"""
        if self.push is not None:
            await self.push.close()

    async def _begin_session(self, user_id: str, username: Optional[str]) -> None:
        await self._teardown()
        self.user_id = user_id
        self.username = username
        logger.info("client_signed_in", user_id=user_id)

        await self._connect_push()
        if self.settings.preload:
            await self.preload()
        await self.navigate(Section.REGULAR)

    async def _connect_push(self) -> None:
        if self.push is None:
            return
        try:
            await self.push.connect(self.user_id, self.api.session_cookies())
        except ApplicationError as e:
            # 没有推送也能工作：变更后回退为主动拉取
            logger.warning("push_connect_failed", error=e.message)

    async def _teardown(self) -> None:
        self._epoch += 1
        if self.push is not None:
            await self.push.close()
        self._inflight.clear()
        self.cache.clear()
        self.state.reset()
        self.user_id = None
        self.username = None

    def _show_signed_out(self) -> None:
        self._render(Screen(status=ViewStatus.SIGNED_OUT, title="Sign in"))

    async def _handle_failure(self, error: ApplicationError) -> None:
        """认证失效时回到登录界面"""
        if error.category == ErrorCategory.AUTHENTICATION and self.signed_in:
            logger.info("client_session_expired", user_id=self.user_id)
            await self._teardown()
            self._show_signed_out()

    async def preload(self) -> None:
        """预热常用视图，单个视图失败不影响其他视图"""
        results = await asyncio.gather(*(self._fetch(key) for key in PRELOAD_KEYS), return_exceptions=True)
        for key, result in zip(PRELOAD_KEYS, results):
            if isinstance(result, Exception):
                logger.warning("preload_failed", view=str(key), error=str(result))

    # ==================== 拉取 ====================

    async def _load(self, key: ViewKey, started: int) -> CacheEntry:
        epoch = self._epoch
        data = await self.api.fetch_view(key)

        if epoch != self._epoch:
            # 会话已切换，结果不入缓存
            return CacheEntry(key=key, data=data)
        return self.cache.store_fetched(key, data, started)

    async def _fetch(self, key: ViewKey) -> CacheEntry:
        """
        拉取视图；同一视图的并发拉取共享同一个请求

        请求发出之后视图被标记过期（例如变更已提交），旧请求的结果可能是变更前的
        数据，此时不再复用它，而是发起新的请求。
        """
        inflight = self._inflight.get(key)
        if inflight is not None and not self.cache.invalidated_since(key, inflight[1]):
            future = inflight[0]
        else:
            started = self.cache.version
            future = asyncio.ensure_future(self._load(key, started))
            self._inflight[key] = (future, started)

            def _done(f: asyncio.Future, key: ViewKey = key) -> None:
                current = self._inflight.get(key)
                if current is not None and current[0] is f:
                    del self._inflight[key]

            future.add_done_callback(_done)

        return await asyncio.shield(future)

    def _is_visible(self, key: ViewKey, epoch: int) -> bool:
        return epoch == self._epoch and self.signed_in and self.state.current_key() == key

    async def _show(self, key: ViewKey) -> None:
        """cache-or-fetch 渲染某个视图"""
        entry = self.cache.get(key)
        if entry is not None and entry.is_fresh:
            self._render_entry(entry)
            return

        epoch = self._epoch
        self._render(Screen(status=ViewStatus.LOADING, title=self._title_for(key), view_key=key))
        try:
            entry = await self._fetch(key)
        except ApplicationError as e:
            logger.warning("view_fetch_failed", view=str(key), code=e.code, error=e.message)
            if self._is_visible(key, epoch):
                self._render(Screen(
                    status=ViewStatus.ERROR,
                    title=self._title_for(key),
                    view_key=key,
                    error=e.message,
                ))
            await self._handle_failure(e)
            return

        # 拉取期间用户可能已经离开该视图
        if self._is_visible(key, epoch):
            self._render_entry(self.cache.get(key) or entry)

    # ==================== 导航 ====================

    async def navigate(self, section: Union[str, Section]) -> None:
        """切换分区（状态切换是同步的，之后按需拉取）"""
        self.state.enter_section(section)

        if self.state.current_section == Section.LOCKED.value:
            await self._enter_locked()
            return

        await self._show(self.state.current_key())

    async def open_notebook(self, notebook_id: str) -> None:
        """进入笔记本（笔记本必须在当前分区的列表中）"""
        section_key = ViewKey(self.state.current_section) if Section(self.state.current_section).has_notebooks else None
        notebook = self._find_in(section_key, notebook_id) if section_key else None
        if notebook is None:
            self.renderer.notify("Notebook not found", "error")
            return

        self.state.open_notebook(notebook)
        await self._show(self.state.current_key())

    async def go_back(self) -> None:
        """回到笔记本列表（列表必然已加载，命中缓存不会重新拉取）"""
        self.state.back()
        key = self.state.current_key()
        if key is not None:
            await self._show(key)

    async def refresh(self) -> None:
        """重新拉取当前视图"""
        key = self.state.current_key()
        if key is None:
            if self.state.current_section == Section.LOCKED.value:
                self._render_lock_gate()
            return

        self.cache.invalidate([key])
        await self._show(key)

    # ==================== 锁定分区 ====================

    async def _enter_locked(self) -> None:
        if self.state.is_unlocked:
            await self._show(LOCKED_KEY)
            return

        # 已知设置过密码时直接提示解锁，不再询问服务端
        if self.state.lock_state != LockState.LOCKED:
            epoch = self._epoch
            try:
                status = await self.api.check_lock_setup()
            except ApplicationError as e:
                if epoch == self._epoch and self.state.current_section == Section.LOCKED.value:
                    self._render(Screen(status=ViewStatus.ERROR, title=self._title_for(LOCKED_KEY), error=e.message))
                await self._handle_failure(e)
                return

            if epoch != self._epoch or self.state.current_section != Section.LOCKED.value:
                return
            self.state.lock_state = LockState.LOCKED if status.get("hasPassword") else LockState.NEEDS_SETUP

        self._render_lock_gate()

    def _render_lock_gate(self) -> None:
        status = ViewStatus.LOCK_SETUP if self.state.lock_state == LockState.NEEDS_SETUP else ViewStatus.LOCK_PROMPT
        self._render(Screen(status=status, title=self._title_for(LOCKED_KEY)))

    async def setup_lock(self, password: str) -> bool:
        """设置锁定密码，成功后直接解锁"""
        try:
            await self.api.set_lock_password(password)
        except ApplicationError as e:
            self.renderer.notify(e.message, "error")
            await self._handle_failure(e)
            return False

        return await self._unlocked()

    async def unlock(self, password: str) -> bool:
        try:
            result = await self.api.verify_lock_password(password)
        except ApplicationError as e:
            self.renderer.notify(e.message, "error")
            await self._handle_failure(e)
            return False

        if result.get("needsSetup"):
            self.state.lock_state = LockState.NEEDS_SETUP
            if self.state.current_section == Section.LOCKED.value:
                self._render_lock_gate()
            return False

        if not result.get("success"):
            self.renderer.notify("Incorrect password", "error")
            return False

        return await self._unlocked()

    async def _unlocked(self) -> bool:
        self.state.lock_state = LockState.UNLOCKED
        if self.state.current_section == Section.LOCKED.value:
            await self._show(LOCKED_KEY)
        return True

    def lock(self) -> None:
        """手动上锁"""
        if self.state.lock_state == LockState.UNLOCKED:
            self.state.lock_state = LockState.LOCKED
        if self.state.current_section == Section.LOCKED.value:
            self._render_lock_gate()

    # ==================== 变更 ====================

    async def _mutate(self, action: str, request: Awaitable[Any], view_keys: ViewKeys) -> Optional[Any]:
        """
        发送变更请求并协调缓存

        Returns:
            服务端返回的结果；失败时通知用户并返回 None（不需要回滚任何本地状态）
        """
        started = self.cache.version
        try:
            result = await request
        except ApplicationError as e:
            logger.warning("mutation_failed", action=action, code=e.code, error=e.message)
            self.renderer.notify(e.message, "error")
            await self._handle_failure(e)
            return None

        keys = list(view_keys(result) if callable(view_keys) else view_keys)
        await self._reconcile(keys, started)
        logger.debug("mutation_applied", action=action, views=[str(k) for k in keys])
        return result

    async def _reconcile(self, keys: list[ViewKey], started_version: int) -> None:
        self.cache.invalidate(keys, unless_updated_since=started_version)

        current = self.state.current_key()
        if current in keys and not self.cache.is_fresh(current) and not self.push_connected:
            # 没有推送可等，主动拉取
            await self._show(current)

    def _find_in(self, key: Optional[ViewKey], item_id: str) -> Optional[dict[str, Any]]:
        entry = self.cache.get(key) if key else None
        if entry is None:
            return None
        return next((item for item in entry.data if item.get("_id") == item_id), None)

    def _find_note(self, note_id: str) -> Optional[dict[str, Any]]:
        return self.cache.find_item(note_id, prefer=self.state.current_key())

    async def create_notebook(self, name: str, section: Optional[str] = None) -> Optional[dict[str, Any]]:
        section = section or self.state.current_section
        if not Section(section).has_notebooks:
            self.renderer.notify(f"Notebooks cannot be created in {section}", "error")
            return None

        return await self._mutate(
            "create_notebook",
            self.api.create_notebook(name, section),
            notebook_view_keys(section),
        )

    async def delete_notebook(self, notebook_id: str) -> bool:
        notebook = self.cache.find_item(notebook_id)
        section = notebook.get("section") if notebook else self.state.current_section

        # 级联删除可能带走收藏笔记，保守地让 favorites 一并过期
        keys = [ViewKey(section), FAVORITES_KEY]
        result = await self._mutate("delete_notebook", self.api.delete_notebook(notebook_id), keys)
        if result is None:
            return False

        self.cache.discard([ViewKey(section, notebook_id)])
        if self.state.current_notebook_id == notebook_id:
            await self.go_back()
        return True

    async def create_note(self, content: str, title: Optional[str] = None) -> Optional[dict[str, Any]]:
        """
        在当前位置创建笔记

        - 笔记本内: 归属当前笔记本
        - locked（已解锁）: 创建锁定笔记
        - 其他位置: 拒绝
        """
        section = Section(self.state.current_section)
        payload: dict[str, Any] = {"content": content, "section": section.value}
        if title:
            payload["title"] = title

        if section.has_notebooks:
            if self.state.current_notebook_id is None:
                self.renderer.notify("Open a notebook first", "error")
                return None
            payload["notebookId"] = self.state.current_notebook_id
        elif section == Section.LOCKED and self.state.is_unlocked:
            payload["isLocked"] = True
        else:
            self.renderer.notify(f"Notes cannot be created in {section.value}", "error")
            return None

        return await self._mutate(
            "create_note",
            self.api.create_note(payload),
            lambda note: note_view_keys(NoteScope.from_payload(note)),
        )

    async def update_note(self, note_id: str, changes: dict[str, Any]) -> Optional[dict[str, Any]]:
        """更新笔记，changes 使用接口字段名（content / title / isChecked / isFavorite）"""
        before = self._find_note(note_id)
        before_scope = NoteScope.from_payload(before) if before else None

        return await self._mutate(
            "update_note",
            self.api.update_note(note_id, changes),
            lambda note: note_view_keys(
                before_scope, NoteScope.from_payload(note), favorite_touched="isFavorite" in changes
            ),
        )

    async def edit_note(self, note_id: str, content: Optional[str] = None, title: Optional[str] = None):
        changes = {k: v for k, v in (("content", content), ("title", title)) if v is not None}
        if not changes:
            return None
        return await self.update_note(note_id, changes)

    async def delete_note(self, note_id: str) -> bool:
        before = self._find_note(note_id)
        if before is not None:
            keys = note_view_keys(NoteScope.from_payload(before))
        else:
            keys = [k for k in (self.state.current_key(),) if k is not None]

        result = await self._mutate("delete_note", self.api.delete_note(note_id), keys)
        return result is not None

    async def toggle_favorite(self, note_id: str) -> Optional[dict[str, Any]]:
        before = self._find_note(note_id)
        before_scope = NoteScope.from_payload(before) if before else None

        return await self._mutate(
            "toggle_favorite",
            self.api.toggle_favorite(note_id),
            lambda note: note_view_keys(before_scope, NoteScope.from_payload(note), favorite_touched=True),
        )

    async def toggle_checklist_item(self, note_id: str) -> Optional[dict[str, Any]]:
        note = self._find_note(note_id)
        if note is None or note.get("section") != Section.CHECKLIST.value:
            self.renderer.notify("Not a checklist item", "error")
            return None
        return await self.update_note(note_id, {"isChecked": not note.get("isChecked", False)})

    # ==================== 推送 ====================

    def handle_push_message(self, message: dict[str, Any]) -> None:
        """推送通道消息入口"""
        event = message.get("event")
        try:
            if event == "notebooks_updated":
                key = ViewKey(message["section"])
                data = message.get("notebooks") or []
            elif event == "notes_updated":
                key = notes_key(message["section"], message.get("notebookId"))
                data = message.get("notes") or []
            else:
                logger.debug("push_ignored", event=event)
                return
        except (KeyError, ValueError) as e:
            logger.warning("push_message_invalid", event=event, error=str(e))
            return

        self.apply_push(key, data)

    def apply_push(self, key: ViewKey, data: list[dict[str, Any]]) -> None:
        """
        用推送的完整列表覆盖缓存条目；若该视图正在显示则立即重新渲染

        笔记本列表推送会顺带清理已删除笔记本的缓存；
        当前打开的笔记本被删除时回到笔记本列表。
        """
        if not self.signed_in:
            return

        self.cache.apply(key, data)

        if key.is_notebook_list:
            alive = {nb.get("_id") for nb in data}
            pruned = self.cache.prune_notebooks(key.section, alive)
            if pruned:
                logger.debug("cache_pruned", views=[str(k) for k in pruned])

            if (
                self.state.current_section == key.section
                and self.state.current_notebook_id is not None
                and self.state.current_notebook_id not in alive
            ):
                self.state.back()
                self.renderer.notify("This notebook was deleted", "info")

        if self.state.current_key() == key:
            self._render_entry(self.cache.get(key))

    # ==================== 渲染 ====================

    def _title_for(self, key: ViewKey) -> str:
        if key.notebook_id and self.state.current_notebook_id == key.notebook_id:
            return self.state.current_notebook.get("name", "")
        return SECTION_TITLES.get(key.section, key.section)

    def _render(self, screen: Screen) -> None:
        self.renderer.render(screen)

    def _render_entry(self, entry: CacheEntry) -> None:
        status = ViewStatus.READY if entry.data else ViewStatus.EMPTY
        self._render(Screen(
            status=status,
            title=self._title_for(entry.key),
            view_key=entry.key,
            items=list(entry.data),
        ))
