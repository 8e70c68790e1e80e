"""Auth / session routes.

会话保存在签名 Cookie 中（SessionMiddleware），只存 user_id。
"""

from fastapi import APIRouter, Depends, Request

from app.core.async_utils import run_sync
from app.core.deps import SESSION_USER_KEY, get_auth_service
from app.schemas.auth import AuthResponse, Credentials, SessionStatus
from app.schemas.common import SuccessResponse
from domains.core.logging import bind_user_context, get_logger

logger = get_logger(__name__)

router = APIRouter()


@router.post("/register", response_model=AuthResponse)
async def register(
    request: Request,
    credentials: Credentials,
    service=Depends(get_auth_service),
):
    """注册并直接登录"""
    user = await run_sync(service.register, credentials.username, credentials.pin)

    request.session[SESSION_USER_KEY] = user.id
    bind_user_context(user.id)
    logger.info("user_registered", user_id=user.id)
    return AuthResponse(user_id=user.id)


@router.post("/login", response_model=AuthResponse)
async def login(
    request: Request,
    credentials: Credentials,
    service=Depends(get_auth_service),
):
    """登录"""
    user = await run_sync(service.login, credentials.username, credentials.pin)

    request.session[SESSION_USER_KEY] = user.id
    bind_user_context(user.id)
    logger.info("user_logged_in", user_id=user.id)
    return AuthResponse(user_id=user.id)


@router.post("/logout", response_model=SuccessResponse)
async def logout(request: Request):
    """退出登录（未登录时同样返回成功）"""
    request.session.clear()
    return SuccessResponse()


@router.get("/check-session", response_model=SessionStatus, response_model_exclude_none=True)
async def check_session(request: Request, service=Depends(get_auth_service)):
    """检查当前会话"""
    user_id = request.session.get(SESSION_USER_KEY)
    if not user_id:
        return SessionStatus(authenticated=False)

    user = await run_sync(service.get_user, user_id)
    if user is None:
        # 会话指向的用户已不存在
        request.session.clear()
        return SessionStatus(authenticated=False)

    return SessionStatus(authenticated=True, user_id=user.id, username=user.username)
