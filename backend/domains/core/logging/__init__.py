"""
结构化日志模块

基于 structlog 提供统一的日志配置，支持:
- 控制台输出（开发环境）
- JSON 格式输出（生产环境）
- 请求上下文绑定（request_id / user_id）
"""

from .config import (
    LogConfig,
    LogFormat,
    bind_request_context,
    bind_user_context,
    clear_request_context,
    configure_logging,
    get_logger,
)

__all__ = [
    # 配置
    "configure_logging",
    "get_logger",
    "LogConfig",
    "LogFormat",
    # 上下文
    "bind_request_context",
    "bind_user_context",
    "clear_request_context",
]
