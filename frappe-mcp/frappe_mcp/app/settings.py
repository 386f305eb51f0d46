from __future__ import annotations

from pathlib import Path
from urllib.parse import urlparse

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from libs.common.errors import ConfigurationError

DEFAULT_HINTS_DIR = str(Path(__file__).resolve().parent / "server_hints")


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        extra="ignore",
        populate_by_name=True,
        env_file=".env",
        env_file_encoding="utf-8",
    )

    service_name: str = "frappe-mcp-server"
    service_version: str = "0.3.0"
    # 원래 배포와 같은 환경변수 이름을 그대로 써요.
    host: str = Field(default="127.0.0.1", validation_alias="MCP_HOST")
    port: int = Field(default=4000, validation_alias="MCP_PORT")
    log_level: str = Field(default="INFO", validation_alias="MCP_LOG_LEVEL")
    frappe_url: str = ""
    frappe_api_key: str = ""
    frappe_api_secret: str = ""
    frappe_request_timeout_seconds: float = 30.0
    static_hints_dir: str = DEFAULT_HINTS_DIR
    disconnect_poll_seconds: float = 0.5

    @field_validator("frappe_url", "frappe_api_key", "frappe_api_secret", mode="before")
    @classmethod
    def _strip(cls, value: object) -> object:
        if isinstance(value, str):
            return value.strip()
        return value


def validate_credentials(settings: Settings) -> None:
    """원격 플랫폼 자격 증명을 기동 시점에 한 번만 검증해요.

    실제 인증은 원격 서버가 담당하고, 여기서는 값의 존재와 형식만 확인해요.
    하나라도 빠지면 `ConfigurationError`를 던져서 서버가 뜨지 않게 해요.
    """
    missing = [
        env_name
        for env_name, value in (
            ("FRAPPE_URL", settings.frappe_url),
            ("FRAPPE_API_KEY", settings.frappe_api_key),
            ("FRAPPE_API_SECRET", settings.frappe_api_secret),
        )
        if not value
    ]
    if missing:
        raise ConfigurationError(f"Missing required environment variables: {', '.join(missing)}")

    parsed = urlparse(settings.frappe_url)
    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        raise ConfigurationError(f"FRAPPE_URL must be an http(s) URL: {settings.frappe_url}")

    for env_name, value in (
        ("FRAPPE_API_KEY", settings.frappe_api_key),
        ("FRAPPE_API_SECRET", settings.frappe_api_secret),
    ):
        if any(char.isspace() for char in value) or ":" in value:
            raise ConfigurationError(f"{env_name} contains invalid characters.")


settings = Settings()
