"""
锁定分区密码服务
"""

import logging
from dataclasses import dataclass

from domains.core import ValidationError

from ..core.models import LockSettings
from ..core.security import SecretHasher
from ..core.store import NotesStore

logger = logging.getLogger(__name__)


@dataclass
class LockVerification:
    """密码校验结果"""
    success: bool
    needs_setup: bool = False


class LockService:
    """锁定分区密码的设置与校验"""

    def __init__(self, store: NotesStore, hasher: SecretHasher | None = None):
        self.store = store
        self.hasher = hasher or SecretHasher()

    def has_password(self, user_id: str) -> bool:
        settings = self.store.get_lock_settings(user_id)
        return settings is not None and settings.has_password

    def set_password(self, user_id: str, password: str | None) -> LockSettings:
        """设置或覆盖锁定密码"""
        if not password:
            raise ValidationError("Password is required", field="password")

        settings = self.store.save_lock_password(user_id, self.hasher.hash(password))
        logger.info(f"用户 {user_id} 已设置锁定密码")
        return settings

    def verify(self, user_id: str, password: str | None) -> LockVerification:
        """
        校验锁定密码

        尚未设置密码时返回 needs_setup=True，而不是报错。
        """
        settings = self.store.get_lock_settings(user_id)
        if settings is None or not settings.has_password:
            return LockVerification(success=False, needs_setup=True)

        return LockVerification(success=self.hasher.verify(password or "", settings.lock_password))
