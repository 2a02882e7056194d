#!/usr/bin/env python
#
#
# -----------------------------------------------------------------------------
"""
Application configuration.

All values can be overridden via environment variables or a .env file.
"""
# -----------------------------------------------------------------------------

from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict

from docportal._version import __version__ as _pkg_version


# -----------------------------------------------------------------------------

class Settings(BaseSettings):

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # ── Application ────────────────────────────────────────────────────────

    app_name: str = "DocPortal"
    app_version: str = _pkg_version
    base_url: str = "http://localhost:8000"
    debug: bool = False
    environment: Literal["development", "testing", "production"] = "development"
    log_level: str = "INFO"
    site_name: str = "DocPortal"

    # ── Database ───────────────────────────────────────────────────────────

    database_url: str = "sqlite+aiosqlite:///./docportal.db"
    db_echo: bool = False
    db_pool_size: int = 5
    db_max_overflow: int = 10

    # ── Auth / JWT ─────────────────────────────────────────────────────────

    secret_key: str = "CHANGE-ME-IN-PRODUCTION-use-a-random-64-char-hex-string"
    algorithm: str = "HS256"
    access_token_expire_minutes: int = 60 * 24   # 24 hours
    bootstrap_admin_username: str = "admin"
    bootstrap_admin_password: str = ""

    # ── Rate limits ────────────────────────────────────────────────────────

    login_rate_limit: int = 5
    login_rate_window_seconds: int = 15 * 60
    upload_rate_limit: int = 5
    upload_rate_window_seconds: int = 60
    trust_proxy_headers: bool = False   # key limits on X-Forwarded-For

    # ── Storage ────────────────────────────────────────────────────────────

    content_root: Path = Path("./content")
    config_root: Path = Path("./config")
    images_root: Path = Path("./data/images")
    images_url_prefix: str = "/images"
    max_upload_bytes: int = 5 * 1024 * 1024   # 5 MB
    allowed_image_types: list[str] = [
        "image/png",
        "image/jpeg",
        "image/gif",
        "image/svg+xml",
        "image/webp",
    ]
    allowed_doc_extensions: list[str] = [".md", ".mdx", ".json"]
    render_cache_ttl: int = 600   # seconds

    # ── Logging ────────────────────────────────────────────────────────────

    security_log_path: str = "./logs/security.log"
    security_log_max_bytes: int = 10 * 1024 * 1024
    security_log_backups: int = 5

    # ── CORS ───────────────────────────────────────────────────────────────

    cors_origins: list[str] = [
        "http://localhost:8000",
        "http://localhost:3000",
    ]

    @property
    def is_testing(self) -> bool:
        return self.environment == "testing"

    @property
    def images_root_resolved(self) -> Path:
        p = self.images_root
        p.mkdir(parents=True, exist_ok=True)
        return p


# -----------------------------------------------------------------------------

@lru_cache
def get_settings() -> Settings:
    return Settings()


# -----------------------------------------------------------------------------
