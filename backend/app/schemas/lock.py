"""Lock-section passphrase schemas."""

from typing import Optional

from app.schemas.common import CamelModel


class LockPasswordRequest(CamelModel):
    password: Optional[str] = None


class LockVerifyResponse(CamelModel):
    success: bool
    needs_setup: Optional[bool] = None


class LockSetupStatus(CamelModel):
    has_password: bool
