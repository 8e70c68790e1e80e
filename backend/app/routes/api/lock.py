"""Locked-section passphrase routes."""

from fastapi import APIRouter, Depends

from app.core.async_utils import run_sync
from app.core.deps import CurrentUser, get_lock_service
from app.schemas.common import SuccessResponse
from app.schemas.lock import LockPasswordRequest, LockSetupStatus, LockVerifyResponse

router = APIRouter()


@router.post("/set-lock-password", response_model=SuccessResponse)
async def set_lock_password(
    user_id: CurrentUser,
    request: LockPasswordRequest,
    service=Depends(get_lock_service),
):
    """设置（或覆盖）锁定密码"""
    await run_sync(service.set_password, user_id, request.password)
    return SuccessResponse()


@router.post("/verify-lock-password", response_model=LockVerifyResponse, response_model_exclude_none=True)
async def verify_lock_password(
    user_id: CurrentUser,
    request: LockPasswordRequest,
    service=Depends(get_lock_service),
):
    """校验锁定密码；尚未设置时返回 needsSetup"""
    result = await run_sync(service.verify, user_id, request.password)
    return LockVerifyResponse(success=result.success, needs_setup=result.needs_setup or None)


@router.get("/check-lock-setup", response_model=LockSetupStatus)
async def check_lock_setup(user_id: CurrentUser, service=Depends(get_lock_service)):
    """是否已设置锁定密码"""
    has_password = await run_sync(service.has_password, user_id)
    return LockSetupStatus(has_password=has_password)
