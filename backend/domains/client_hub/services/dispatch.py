"""
界面动作分发表

界面层只需要把「动作名 + 实体 ID」交给分发器，不再在渲染出的元素上
内联回调。新的动作可以通过 register() 追加。
"""

from typing import Any, Awaitable, Callable

from domains.core import ValidationError

from .client import NotesClient

ActionHandler = Callable[..., Awaitable[Any]]


class ActionDispatcher:
    """动作名 -> 处理函数（第一个参数为实体 ID）"""

    def __init__(self, client: NotesClient):
        self.client = client
        self._handlers: dict[str, ActionHandler] = {
            "open_notebook": client.open_notebook,
            "delete_notebook": client.delete_notebook,
            "delete_note": client.delete_note,
            "toggle_favorite": client.toggle_favorite,
            "toggle_checklist_item": client.toggle_checklist_item,
            "edit_note": client.edit_note,
        }

    @property
    def actions(self) -> list[str]:
        return sorted(self._handlers)

    def register(self, action: str, handler: ActionHandler) -> None:
        self._handlers[action] = handler

    async def dispatch(self, action: str, entity_id: str, **kwargs) -> Any:
        """
        执行动作

        Raises:
            ValidationError: 未知动作
        """
        handler = self._handlers.get(action)
        if handler is None:
            raise ValidationError(f"Unknown action: {action}", field="action")
        return await handler(entity_id, **kwargs)
