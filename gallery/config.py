from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

ALLOWED_CONTENT_TYPES = ("image/jpeg", "image/jpg", "image/png", "image/gif", "image/webp")


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    app_name: str = "Image Gallery"
    debug: bool = False
    log_level: str = "INFO"
    host: str = "0.0.0.0"
    port: int = Field(default=3000, ge=1, le=65535)
    upload_dir: str = "uploads"
    public_dir: str = "public"
    placeholder_name: str = ".gitkeep"
    max_upload_bytes: int = Field(default=5 * 1024 * 1024, ge=1)
    rate_limit_max_requests: int = Field(default=20, ge=1)
    rate_limit_window_seconds: float = Field(default=15 * 60, gt=0)

    @property
    def upload_path(self) -> Path:
        return Path(self.upload_dir)

    @property
    def public_path(self) -> Path:
        return Path(self.public_dir)

    @property
    def allowed_content_types(self) -> frozenset[str]:
        return frozenset(ALLOWED_CONTENT_TYPES)


settings = Settings()
