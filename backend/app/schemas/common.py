"""Common schemas for API responses."""

from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """接口字段统一使用 camelCase，同时允许按字段名构造"""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class SuccessResponse(BaseModel):
    """Plain success acknowledgement."""

    success: bool = True


class ErrorResponse(BaseModel):
    """Error response."""

    success: bool = False
    error: str
    code: Optional[str] = None
    details: Optional[Dict[str, Any]] = None
