import logging
import os
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict, Field, field_validator

DATA_DIR = Path.home() / "issue-hunter"
DEFAULT_DB_URL = f"sqlite+aiosqlite:///{DATA_DIR / 'issues.db'}"


class Settings(BaseModel):
    """Runtime settings, read from the environment (and a .env file if present)."""
    model_config = ConfigDict(frozen=True)

    db_url: str = DEFAULT_DB_URL
    github_token: Optional[str] = None
    max_pages: Optional[int] = Field(default=None, ge=1)
    log_level: str = "INFO"

    @field_validator("log_level")
    @classmethod
    def _known_level(cls, value: str) -> str:
        level = value.upper()
        if not isinstance(logging.getLevelName(level), int):
            raise ValueError(f"Unknown log level: {value}")
        return level

    def ensure_data_dir(self) -> None:
        """Creates the parent directory of a file-backed SQLite database."""
        prefix = "sqlite+aiosqlite:///"
        if self.db_url.startswith(prefix) and ":memory:" not in self.db_url:
            Path(self.db_url[len(prefix):]).expanduser().parent.mkdir(parents=True, exist_ok=True)


def load_settings() -> Settings:
    # Load environment variables from .env file
    load_dotenv()

    return Settings(
        db_url=os.getenv("ISSUE_HUNTER_DB_URL") or DEFAULT_DB_URL,
        github_token=os.getenv("GITHUB_TOKEN") or None,
        max_pages=os.getenv("ISSUE_HUNTER_MAX_PAGES") or None,
        log_level=os.getenv("ISSUE_HUNTER_LOG_LEVEL") or "INFO",
    )
