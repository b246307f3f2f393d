from __future__ import annotations

import secrets
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    app_host: str = "127.0.0.1"
    app_port: int = 8080
    app_data_dir: str = "./data"
    auth_token: str | None = None
    log_level: str = "INFO"
    cors_allow_origins: list[str] = Field(default_factory=lambda: ["*"])

    # GridFS-sized chunks by default
    blob_chunk_size: int = Field(default=255 * 1024, gt=0)

    @property
    def data_dir(self) -> Path:
        return Path(self.app_data_dir).resolve()

    @property
    def catalog_db_path(self) -> Path:
        return self.data_dir / "catalog.sqlite3"

    @property
    def blob_db_path(self) -> Path:
        return self.data_dir / "blobs.sqlite3"

    def ensure_dirs(self) -> None:
        self.data_dir.mkdir(parents=True, exist_ok=True)

    def resolved_auth_token(self) -> str:
        return self.auth_token or secrets.token_urlsafe(32)
