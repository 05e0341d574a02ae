"""
dnote CLI configuration

Settings are loaded from:
1. Environment variables (prefixed with DNOTE_)
2. ~/.dnote/.env file

Key settings:
- DNOTE_DATABASE_URL: Local SQLite database (default: ~/.dnote/dnote.db)
- DNOTE_SNIPPET_CONTEXT: Characters of context shown around search matches
- DNOTE_EDITOR: Editor used by add/edit (falls back to $EDITOR)
"""

import logging
from pathlib import Path
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger(__name__)

DNOTE_DIR = Path.home() / ".dnote"


class Settings(BaseSettings):
    """dnote CLI configuration settings."""

    app_name: str = "dnote"

    # Database
    database_url: str = f"sqlite:///{DNOTE_DIR}/dnote.db"

    # Search output
    snippet_context: int = Field(default=60, ge=0)

    # Editor override for add/edit; None means use $EDITOR
    editor: Optional[str] = None

    model_config = SettingsConfigDict(
        env_prefix="DNOTE_",
        env_file=DNOTE_DIR / ".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    def get_db_path(self) -> Path:
        """Get the SQLite database file path."""
        if self.database_url.startswith("sqlite:///"):
            return Path(self.database_url.replace("sqlite:///", ""))
        return DNOTE_DIR / "dnote.db"


settings = Settings()
