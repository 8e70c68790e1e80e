"""Client configuration."""

from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class ClientSettings(BaseSettings):
    """笔记客户端配置（环境变量前缀 NOTES_CLIENT_）"""

    model_config = SettingsConfigDict(
        env_prefix="NOTES_CLIENT_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    base_url: str = "http://localhost:8000"
    api_prefix: str = "/api"
    push_path: str = "/ws"

    # 秒
    request_timeout: float = 10.0
    push_heartbeat: float = 25.0

    # 登录后预热 regular / checklist 笔记本列表和收藏视图
    preload: bool = True

    @property
    def api_base_url(self) -> str:
        return self.base_url.rstrip("/") + self.api_prefix

    @property
    def push_url(self) -> str:
        """推送通道地址（http -> ws, https -> wss）"""
        base = self.base_url.rstrip("/")
        if base.startswith("https://"):
            base = "wss://" + base[len("https://"):]
        elif base.startswith("http://"):
            base = "ws://" + base[len("http://"):]
        return base + self.api_prefix + self.push_path


@lru_cache
def get_client_settings() -> ClientSettings:
    return ClientSettings()
