"""Exception handling for FastAPI routes.

统一异常处理，集成 domains.core 的 ApplicationError 体系。

所有错误响应都带 error 字段:
    {"success": false, "error": "...", "code": "...", "details": {...}}
"""

import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from domains.core import ApplicationError

logger = logging.getLogger(__name__)


def _describe_validation_errors(exc: RequestValidationError) -> str:
    """把 pydantic 校验错误压缩为一行可读信息"""
    parts = []
    for error in exc.errors():
        location = ".".join(str(p) for p in error.get("loc", ()) if p != "body")
        message = error.get("msg", "invalid value")
        parts.append(f"{location}: {message}" if location else message)
    return "; ".join(parts) or "Invalid request"


def register_exception_handlers(app: FastAPI) -> None:
    """
    注册 FastAPI 异常处理器

    将 ApplicationError 及其子类自动转换为 HTTP 响应。

    使用示例:
        app = FastAPI()
        register_exception_handlers(app)
    """

    @app.exception_handler(ApplicationError)
    async def application_error_handler(
        request: Request,
        exc: ApplicationError
    ) -> JSONResponse:
        """处理 ApplicationError 及其子类"""
        logger.warning(
            f"Application error: [{exc.code}] {exc.message}",
            extra={"details": exc.details}
        )

        return JSONResponse(
            status_code=exc.http_status_code,
            content={
                "success": False,
                "error": exc.message,
                "code": exc.code,
                "details": exc.details,
            }
        )

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(
        request: Request,
        exc: RequestValidationError
    ) -> JSONResponse:
        """请求体 / 参数校验失败统一返回 400"""
        message = _describe_validation_errors(exc)
        logger.warning(f"Request validation failed: {message}")

        return JSONResponse(
            status_code=400,
            content={"success": False, "error": message},
        )

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(
        request: Request,
        exc: StarletteHTTPException
    ) -> JSONResponse:
        """框架层 HTTP 错误（未知路由、方法不允许等）"""
        return JSONResponse(
            status_code=exc.status_code,
            content={"success": False, "error": str(exc.detail)},
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(Exception)
    async def global_exception_handler(
        request: Request,
        exc: Exception
    ) -> JSONResponse:
        """全局异常处理器 - 捕获所有未处理的异常"""
        logger.exception(
            f"Unhandled exception: {type(exc).__name__}: {exc}",
            extra={
                "path": request.url.path,
                "method": request.method,
            }
        )

        return JSONResponse(
            status_code=500,
            content={
                "success": False,
                "error": f"Internal server error: {type(exc).__name__}",
            }
        )


__all__ = [
    "register_exception_handlers",
]
