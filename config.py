"""
Configuration settings for audit-conduct.

Uses Pydantic Settings for environment variable management with .env file support.
"""
from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="AUDIT_",
        case_sensitive=False,
        extra="ignore",
    )

    # ========================================
    # Database
    # ========================================
    database_url: str = Field(
        default="sqlite:///data/audits.db",
        description="SQLAlchemy connection string for the session store",
    )

    # ========================================
    # Question Catalog
    # ========================================
    catalog_path: Path = Field(
        default=Path("data/catalog.json"),
        description="JSON file with departments and their questions",
    )

    # ========================================
    # Audit Conduct
    # ========================================
    autosave_debounce_seconds: float = Field(
        default=1.5,
        ge=0.0,
        description="Quiet period after the last answer before a background save",
    )
    advance_on_answer: bool = Field(
        default=True,
        description="Move to the next question after answering in linear mode",
    )

    # ========================================
    # Auditor (host-supplied identity)
    # ========================================
    auditor_id: str = Field(
        default="local",
        description="Auditor id used by the CLI when none is given",
    )
    auditor_name: str = Field(
        default="Local Auditor",
        description="Auditor display name used by the CLI when none is given",
    )

    # ========================================
    # Logging
    # ========================================
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(
        default="WARNING",
        description="Logging verbosity level",
    )
    log_file: str | None = Field(
        default="logs/audit_conduct.log",
        description="Log file path (None for stderr only)",
    )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
