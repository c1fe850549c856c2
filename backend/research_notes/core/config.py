"""Application configuration and settings management."""

from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(env_file=".env", env_prefix="RESEARCH_NOTES_", extra="ignore")

    app_name: str = Field(default="Research Notes API", description="Human readable application name.")
    environment: Literal["local", "development", "staging", "production"] = Field(
        default="local",
        description="Deployment environment name.",
    )
    log_level: str = Field(default="INFO", description="Root logging level.")

    storage_backend: Literal["memory", "rest"] = Field(
        default="memory",
        description="Where notes and projects are read from and saved to.",
    )
    storage_url: str = Field(
        default="http://localhost:54321",
        description="Base URL of the PostgREST compatible datastore.",
    )
    storage_api_key: str = Field(default="", description="API key sent to the datastore.")
    storage_timeout: float = Field(default=30.0, description="Datastore request timeout in seconds.")

    page_width_mm: float = Field(default=210.0, description="Output page width (A4 portrait).")
    page_height_mm: float = Field(default=297.0, description="Output page height (A4 portrait).")
    page_margin_mm: float = Field(default=10.0, description="Margin on every side of the page.")
    render_width_px: int = Field(
        default=1440,
        gt=0,
        description="Pixel width of the rasterized note surfaces.",
    )
    max_pages_per_note: int = Field(
        default=20,
        gt=0,
        description="Safety ceiling: slicing of one note stops once it has produced more pages than this.",
    )
    font_path: Path | None = Field(
        default=None,
        description="TrueType font used for export; Pillow's bundled font when unset.",
    )
    export_dir: Path | None = Field(
        default=None,
        description="Directory that receives a copy of every exported report.",
    )
    report_suffix: str = Field(
        default="_Research_Report.pdf",
        description="Suffix appended to the project name to form the report filename.",
    )


@lru_cache
def get_settings() -> Settings:
    """Return cached application settings."""

    return Settings()


settings = get_settings()
