"""
Seed catalog data quality configuration.

Uses pydantic-settings for type-safe environment variable loading.
"""

from functools import lru_cache
from pathlib import Path

from pydantic_settings import BaseSettings

# Find .env file: check CWD first, then project root
_env_file = Path(".env")
if not _env_file.exists():
    _root_env = Path(__file__).resolve().parent.parent.parent / ".env"
    if _root_env.exists():
        _env_file = _root_env


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Relational store
    database_url: str = "sqlite:///seeds.db"
    database_echo: bool = False

    # Notion task tracker
    notion_token: str = ""
    notion_task_tracker_id: str = ""

    # Checks
    issue_page_size: int = 10
    near_duplicate_max_distance: int = 2
    sku_min_length: int = 6
    sku_max_length: int = 12

    # Logging
    log_level: str = "INFO"
    log_json: bool = False

    model_config = {
        "env_file": str(_env_file),
        "env_file_encoding": "utf-8",
        "case_sensitive": False,
    }

    @property
    def notion_enabled(self) -> bool:
        return bool(self.notion_token and self.notion_task_tracker_id)


@lru_cache
def get_settings() -> Settings:
    """Cached settings instance."""
    return Settings()
