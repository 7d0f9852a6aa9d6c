# File: sitetracker/core/config.py

import os
from functools import lru_cache
from typing import List

from pydantic import BaseModel, Field, field_validator


class Settings(BaseModel):
    PROJECT_NAME: str = "Site Tracker Portal"
    VERSION: str = "0.1.0"

    api_v1_prefix: str = "/api/v1"
    log_level: str = os.getenv("SITETRACKER_LOG_LEVEL", "INFO")

    # CORS
    backend_cors_origins: List[str] = Field(
        default=os.getenv("SITETRACKER_CORS_ORIGINS", "http://localhost:5173,http://127.0.0.1:5173"),
        validate_default=True,
    )

    # Local key-value storage (stands in for the browser's localStorage)
    database_url: str = os.getenv("SITETRACKER_DATABASE_URL", "sqlite:///./sitetracker.db")
    projects_storage_key: str = "projects"
    access_token_key: str = "access_token"
    refresh_token_key: str = "refresh_token"
    user_storage_key: str = "user"
    session_storage_key: str = "session_id"
    session_cookie_name: str = "sitetracker_session"

    # External auth backend
    auth_api_base_url: str = os.getenv("SITETRACKER_AUTH_API_URL", "http://localhost:8000/api/v1")
    http_timeout_seconds: float = 10.0
    # Access tokens live 30 minutes on the auth backend; refresh ahead of that
    token_refresh_interval_seconds: float = float(
        os.getenv("SITETRACKER_TOKEN_REFRESH_SECONDS", str(25 * 60))
    )

    # Pages
    login_page: str = "login.html"
    public_pages: List[str] = ["landing.html", "login.html"]

    # Import
    error_display_limit: int = 10

    @field_validator("backend_cors_origins", mode="before")
    @classmethod
    def assemble_cors_origins(cls, v):
        if isinstance(v, str):
            return [i.strip() for i in v.split(",") if i.strip()]
        if isinstance(v, list):
            return v
        return []


@lru_cache
def get_settings() -> Settings:
    return Settings()


settings = get_settings()
