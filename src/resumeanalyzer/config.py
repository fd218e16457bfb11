from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


def repo_root() -> Path:
    """
    Description: Resolve repository root from within src/ package.
    Layer: L0
    Input: None
    Output: Absolute Path to repo root
    """
    # src/resumeanalyzer/config.py -> src/resumeanalyzer -> src -> repo root
    return Path(__file__).resolve().parents[2]


class Settings(BaseSettings):
    """
    Description: Central configuration loader for the resume feedback service.
    Layer: L0
    Input: .env in repo root + environment variables
    Output: Strongly typed settings object
    """

    model_config = SettingsConfigDict(
        env_file=str(repo_root() / ".env"),
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Analysis backend
    GEMINI_API_KEY: Optional[str] = None
    GEMINI_MODEL: str = "gemini-1.5-flash"
    GEMINI_BASE_URL: str = "https://generativelanguage.googleapis.com/v1beta"

    # Storage
    DATABASE_URL: str = "sqlite:///outputs/resumeanalyzer.db"
    STORAGE_ROOT: str = "outputs/uploads"
    RECORD_NAMESPACE: str = "resume"

    # Conversion
    RENDER_DPI: int = 150

    # Limits
    MAX_UPLOAD_BYTES: int = 20 * 1024 * 1024  # 20 MB
    MAX_HTTP_SECONDS: float = 40.0
    TICKET_TTL_SECONDS: float = 3600.0  # finished upload tickets are forgotten after this

    # Runtime
    LOG_LEVEL: str = "INFO"


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """
    Description: Cached settings accessor for FastAPI.
    Layer: L0
    Input: None
    Output: Settings
    """
    return Settings()


def sqlite_path_from_database_url(database_url: str) -> str:
    """Convert sqlite:///path into local path."""
    if database_url.startswith("sqlite:///"):
        return database_url.replace("sqlite:///", "")
    if database_url.startswith("sqlite://"):
        return database_url.replace("sqlite://", "")
    # fallback: treat as file
    return database_url
