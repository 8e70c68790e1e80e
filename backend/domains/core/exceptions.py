"""
统一异常体系

提供服务端与客户端共用的错误结构，包括:
- 应用异常基类 (ApplicationError)
- 常用异常类型
- HTTP 状态码映射（双向：服务端抛出 -> 状态码，客户端状态码 -> 分类）
"""

from enum import Enum
from typing import Any, Dict, Optional, List
from dataclasses import dataclass


class ErrorCategory(str, Enum):
    """错误分类"""
    VALIDATION = "validation"          # 参数验证错误
    AUTHENTICATION = "authentication"  # 未登录 / 会话失效
    NOT_FOUND = "not_found"            # 资源不存在
    CONFLICT = "conflict"              # 资源冲突
    PERMISSION = "permission"          # 权限不足
    BUSINESS = "business"              # 业务逻辑错误
    EXTERNAL = "external"              # 外部服务错误（含网络不可达）
    INTERNAL = "internal"              # 内部错误


_STATUS_BY_CATEGORY = {
    ErrorCategory.VALIDATION: 400,
    ErrorCategory.AUTHENTICATION: 401,
    ErrorCategory.PERMISSION: 403,
    ErrorCategory.NOT_FOUND: 404,
    ErrorCategory.CONFLICT: 409,
    ErrorCategory.BUSINESS: 422,
    ErrorCategory.EXTERNAL: 502,
    ErrorCategory.INTERNAL: 500,
}


@dataclass
class ApplicationError(Exception):
    """
    应用层异常基类

    所有业务相关的异常都应继承此类。

    使用示例:
        raise NotFoundError("Notebook", notebook_id)
        raise ValidationError("Username and pin are required")
    """
    code: str                                    # 错误码 (如 "NOT_FOUND", "VALIDATION_ERROR")
    message: str                                 # 用户可读的错误信息
    category: ErrorCategory = ErrorCategory.INTERNAL
    details: Optional[Dict[str, Any]] = None    # 附加详情
    cause: Optional[Exception] = None           # 原始异常

    def __post_init__(self):
        super().__init__(self.message)

    def __str__(self) -> str:
        return f"[{self.code}] {self.message}"

    @property
    def http_status_code(self) -> int:
        """映射到 HTTP 状态码"""
        return _STATUS_BY_CATEGORY.get(self.category, 500)

    @classmethod
    def from_status(
        cls,
        status_code: int,
        message: str,
        details: Optional[Dict[str, Any]] = None,
    ) -> "ApplicationError":
        """
        根据 HTTP 状态码还原异常（客户端使用）

        未知的非 2xx 状态统一归为外部服务错误。
        """
        for category, status in _STATUS_BY_CATEGORY.items():
            if status == status_code and category not in (
                ErrorCategory.EXTERNAL, ErrorCategory.INTERNAL
            ):
                break
        else:
            category = ErrorCategory.EXTERNAL

        return cls(
            code=f"HTTP_{status_code}",
            message=message,
            category=category,
            details={"status_code": status_code, **(details or {})},
        )


# ==================== 常用异常 ====================

class NotFoundError(ApplicationError):
    """资源不存在"""
    def __init__(
        self,
        resource_type: str,
        resource_id: Any,
        details: Optional[Dict] = None
    ):
        super().__init__(
            code="NOT_FOUND",
            message=f"{resource_type} not found",
            category=ErrorCategory.NOT_FOUND,
            details=details or {"resource_type": resource_type, "resource_id": str(resource_id)}
        )
        self.resource_type = resource_type
        self.resource_id = resource_id


class ValidationError(ApplicationError):
    """参数验证错误"""
    def __init__(
        self,
        message: str,
        errors: Optional[List[Dict[str, Any]]] = None,
        field: Optional[str] = None
    ):
        details = {}
        if errors:
            details["validation_errors"] = errors
        if field:
            details["field"] = field

        super().__init__(
            code="VALIDATION_ERROR",
            message=message,
            category=ErrorCategory.VALIDATION,
            details=details or None
        )
        self.errors = errors
        self.field = field


class AuthenticationError(ApplicationError):
    """未认证（无会话或会话已失效）"""
    def __init__(self, message: str = "Authentication required"):
        super().__init__(
            code="AUTHENTICATION_REQUIRED",
            message=message,
            category=ErrorCategory.AUTHENTICATION,
        )


class ExternalServiceError(ApplicationError):
    """外部服务错误"""
    def __init__(
        self,
        service_name: str,
        message: str,
        details: Optional[Dict] = None,
        cause: Optional[Exception] = None
    ):
        super().__init__(
            code="EXTERNAL_SERVICE_ERROR",
            message=f"{service_name}: {message}",
            category=ErrorCategory.EXTERNAL,
            details=details or {"service": service_name},
            cause=cause
        )


class ConfigurationError(ApplicationError):
    """配置错误"""
    def __init__(
        self,
        config_key: str,
        message: str,
        details: Optional[Dict] = None
    ):
        super().__init__(
            code="CONFIGURATION_ERROR",
            message=f"Configuration error [{config_key}]: {message}",
            category=ErrorCategory.INTERNAL,
            details=details or {"config_key": config_key}
        )


# ==================== 笔记相关异常 ====================

class NotebookNotFoundError(NotFoundError):
    """笔记本不存在（或不属于当前用户）"""
    def __init__(self, notebook_id: str):
        super().__init__("Notebook", notebook_id)
        self.notebook_id = notebook_id


class NoteNotFoundError(NotFoundError):
    """笔记不存在（或不属于当前用户）"""
    def __init__(self, note_id: str):
        super().__init__("Note", note_id)
        self.note_id = note_id


# ==================== 导出 ====================

__all__ = [
    # 基类
    "ErrorCategory",
    "ApplicationError",
    # 通用异常
    "NotFoundError",
    "ValidationError",
    "AuthenticationError",
    "ExternalServiceError",
    "ConfigurationError",
    # 笔记异常
    "NotebookNotFoundError",
    "NoteNotFoundError",
]
