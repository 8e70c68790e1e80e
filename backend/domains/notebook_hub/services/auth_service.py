"""
用户认证服务

注册 / 登录 / 查询用户。PIN 以 PBKDF2 哈希存储；历史数据中可能存在
明文 PIN，登录成功时会顺带升级为哈希。
"""

import hmac
import logging

from domains.core import ValidationError

from ..core.models import User
from ..core.security import SecretHasher
from ..core.store import NotesStore

logger = logging.getLogger(__name__)


class AuthService:
    """用户认证服务"""

    def __init__(self, store: NotesStore, hasher: SecretHasher | None = None):
        self.store = store
        self.hasher = hasher or SecretHasher()

    @staticmethod
    def _normalize(username: str | None, pin: str | None) -> tuple[str, str]:
        username = (username or "").strip()
        if not username or not pin:
            raise ValidationError("Username and pin are required")
        return username, pin

    def register(self, username: str | None, pin: str | None) -> User:
        """
        注册新用户

        Raises:
            ValidationError: 缺少参数或用户名已存在
        """
        username, pin = self._normalize(username, pin)

        if self.store.get_user_by_username(username) is not None:
            raise ValidationError("Username already exists", field="username")

        try:
            user = self.store.add_user(User(username=username, pin=self.hasher.hash(pin)))
        except ValueError as e:
            # 并发注册同名用户时由存储层唯一约束兜底
            raise ValidationError("Username already exists", field="username") from e

        logger.info(f"注册用户: {username} (ID: {user.id})")
        return user

    def login(self, username: str | None, pin: str | None) -> User:
        """
        校验用户名和 PIN

        Raises:
            ValidationError: 缺少参数或凭据错误（不区分用户不存在和 PIN 错误）
        """
        username, pin = self._normalize(username, pin)

        user = self.store.get_user_by_username(username)
        if user is None:
            raise ValidationError("Invalid credentials")

        if SecretHasher.is_hashed(user.pin):
            valid = self.hasher.verify(pin, user.pin)
        else:
            valid = hmac.compare_digest(pin.encode("utf-8"), (user.pin or "").encode("utf-8"))
            if valid:
                user.pin = self.hasher.hash(pin)
                self.store.update_user(user.id, pin=user.pin)
                logger.info(f"用户 {user.id} 的明文 PIN 已升级为哈希")

        if not valid:
            raise ValidationError("Invalid credentials")

        return user

    def get_user(self, user_id: str) -> User | None:
        return self.store.get_user(user_id)
