"""FastAPI application entry point."""

import time
import uuid
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.middleware.sessions import SessionMiddleware
from starlette.responses import Response

from app.routes.api.router import api_router
from app.core.config import Settings, get_settings
from app.core.deps import SESSION_USER_KEY
from app.core.events import create_start_handler, create_stop_handler
from app.core.exceptions import register_exception_handlers

# 配置结构化日志
from domains.core.logging import configure_logging, get_logger, bind_request_context, clear_request_context

configure_logging(service_name="notes-api")
logger = get_logger(__name__)


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """HTTP 请求日志中间件"""

    # 不记录日志的路径前缀
    SKIP_PATHS = {"/health", "/docs", "/redoc", "/openapi.json", "/favicon.ico"}

    async def dispatch(self, request: Request, call_next) -> Response:
        if any(request.url.path.startswith(p) for p in self.SKIP_PATHS):
            return await call_next(request)

        # 生成请求 ID，会话已存在时一并绑定用户
        request_id = str(uuid.uuid4())[:8]
        user_id = request.session.get(SESSION_USER_KEY) if "session" in request.scope else None
        bind_request_context(request_id, user_id)

        start_time = time.time()
        method = request.method
        path = request.url.path
        client_ip = request.client.host if request.client else ""

        try:
            response = await call_next(request)
            duration_ms = (time.time() - start_time) * 1000

            logger.info(
                "http_request",
                request_id=request_id,
                method=method,
                path=path,
                status_code=response.status_code,
                duration_ms=round(duration_ms, 2),
                client_ip=client_ip,
            )

            return response

        except Exception as e:
            duration_ms = (time.time() - start_time) * 1000
            logger.error(
                "http_request_error",
                request_id=request_id,
                method=method,
                path=path,
                duration_ms=round(duration_ms, 2),
                client_ip=client_ip,
                error=str(e),
                error_type=type(e).__name__,
            )
            raise
        finally:
            clear_request_context()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler."""
    # Startup
    await create_start_handler()()
    yield
    # Shutdown
    await create_stop_handler()()


def create_application(settings: Settings | None = None) -> FastAPI:
    """Create and configure the FastAPI application."""
    settings = settings or get_settings()

    app = FastAPI(
        title=settings.PROJECT_NAME,
        description="个人笔记 REST API + 实时推送",
        version=settings.VERSION,
        openapi_url=f"{settings.API_PREFIX}/openapi.json",
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )

    # Request logging middleware（先于 Session 添加，位于其内层，可以读取会话）
    app.add_middleware(RequestLoggingMiddleware)

    app.add_middleware(
        SessionMiddleware,
        secret_key=settings.SESSION_SECRET,
        session_cookie=settings.SESSION_COOKIE,
        max_age=settings.SESSION_MAX_AGE,
        https_only=settings.SESSION_HTTPS_ONLY,
        same_site="lax",
    )

    # CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Include API router
    app.include_router(api_router, prefix=settings.API_PREFIX)

    # Register exception handlers
    register_exception_handlers(app)

    # Health check endpoint
    @app.get("/health")
    async def health_check():
        return {"status": "healthy", "version": settings.VERSION}

    return app


app = create_application()


def run_server(host: str | None = None, port: int | None = None, reload: bool = False) -> None:
    """以 uvicorn 启动 API 服务"""
    import uvicorn

    settings = get_settings()
    host = host or settings.HOST
    port = port or settings.PORT

    logger.info(f"启动笔记服务: http://{host}:{port}")
    logger.info(f"推送端点: ws://{host}:{port}{settings.API_PREFIX}/ws")

    uvicorn.run(
        "app.main:app" if reload else app,
        host=host,
        port=port,
        log_level=settings.LOG_LEVEL,
        reload=reload,
    )


if __name__ == "__main__":
    run_server()
