"""OpenCDN configuration: Pydantic BaseSettings loaded from .env."""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path

from pydantic import field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings. Credentials default to the stock OpenCDN values."""

    app_name: str = "OpenCDN"
    debug: bool = False
    log_level: str = "INFO"

    # Network
    host: str = "127.0.0.1"
    port: int = 5000
    api_prefix: str = "/api"
    files_prefix: str = "/files"
    public_base_url: str = ""  # Empty -> http://{host}:{port}
    cors_origins: list[str] = ["*"]

    # Storage root (relative resolved from backend/ at runtime)
    storage_path: str = "./data/cdn-storage"

    # Uploads
    upload_chunk_size: int = 1024 * 1024  # 1 MB
    max_request_upload_mb: int = 1024  # Hard transport cap, independent of key quotas

    # Admin panel login
    admin_username: str = "admin"
    admin_password: str = "admin"

    # API keys: one per tier. A max size of None means unlimited.
    small_key: str = "opencdn-small-files-5mb-key"
    small_max_size_mb: int | None = 5
    small_label: str = "Small Files (max 5MB)"

    medium_key: str = "opencdn-medium-files-50mb-key"
    medium_max_size_mb: int | None = 50
    medium_label: str = "Medium Files (max 50MB)"

    large_key: str = "opencdn-large-files-unlimited-key"
    large_max_size_mb: int | None = None
    large_label: str = "Large Files (unlimited)"

    model_config = SettingsConfigDict(
        env_file=(".env", "../.env"),
        env_file_encoding="utf-8",
        env_prefix="OPENCDN_",
        extra="ignore",
    )

    @property
    def base_url(self) -> str:
        """Absolute origin used to build public file URLs."""
        if self.public_base_url:
            return self.public_base_url.rstrip("/")
        return f"http://{self.host}:{self.port}"

    @property
    def files_base_url(self) -> str:
        return self.base_url + self.files_prefix

    @property
    def max_request_upload_bytes(self) -> int:
        return self.max_request_upload_mb * 1024 * 1024

    @field_validator("cors_origins", mode="before")
    @classmethod
    def assemble_cors_origins(cls, value: list[str] | str) -> list[str]:
        if isinstance(value, str) and not value.startswith("["):
            return [o.strip() for o in value.split(",") if o.strip()]
        if isinstance(value, list):
            return value
        return ["*"]

    @field_validator("small_max_size_mb", "medium_max_size_mb", "large_max_size_mb", mode="before")
    @classmethod
    def parse_unlimited(cls, value):
        # "", "none", "unlimited" and negative numbers all mean no limit
        if value is None:
            return None
        if isinstance(value, str):
            if value.strip().lower() in ("", "none", "unlimited", "infinity", "inf"):
                return None
            value = int(value)
        if value < 0:
            return None
        return value

    @model_validator(mode="after")
    def _resolve_paths(self) -> "Settings":
        """Ensure the storage root is absolute."""
        base = Path(__file__).resolve().parent.parent  # backend/
        if not Path(self.storage_path).is_absolute():
            self.storage_path = str(base / self.storage_path)
        return self


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()


settings = get_settings()
