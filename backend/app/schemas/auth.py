"""Auth / session schemas."""

from typing import Optional

from app.schemas.common import CamelModel


class Credentials(CamelModel):
    """Register / login request.

    字段允许缺省，由服务层给出统一的校验信息。
    """

    username: Optional[str] = None
    pin: Optional[str] = None


class AuthResponse(CamelModel):
    success: bool = True
    user_id: str


class SessionStatus(CamelModel):
    authenticated: bool
    user_id: Optional[str] = None
    username: Optional[str] = None
