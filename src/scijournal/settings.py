"""Configuration helpers for scijournal."""

from __future__ import annotations

import logging
import os
from pathlib import Path

import structlog
from dotenv import load_dotenv
from pydantic import BaseModel, Field

DEFAULT_DATA_DIR = Path.home() / ".scijournal"
DEFAULT_ATTACHMENT_EXTENSIONS = (".pdf", ".doc", ".docx", ".zip", ".rar", ".xls", ".xlsx", ".png", ".jpg")


class Settings(BaseModel):
    """Runtime configuration loaded from env vars with sensible defaults."""

    data_dir: Path = Field(default_factory=lambda: DEFAULT_DATA_DIR)
    db_filename: str = "local-storage.sqlite3"
    log_level: str = "INFO"
    api_base_url: str = "http://localhost:5000/api"
    request_timeout: float = 30.0
    cloudinary_cloud_name: str | None = None
    cloudinary_thumbnail_preset: str | None = None
    cloudinary_file_preset: str | None = None
    cloudinary_avatar_preset: str | None = None
    autosave_interval: float = 30.0
    attachment_extensions: list[str] = Field(
        default_factory=lambda: list(DEFAULT_ATTACHMENT_EXTENSIONS)
    )

    @property
    def db_path(self) -> Path:
        return self.data_dir / self.db_filename

    def ensure_directories(self) -> None:
        """Create data directories if they are missing."""
        self.data_dir.mkdir(parents=True, exist_ok=True)

    @classmethod
    def load(cls) -> "Settings":
        load_dotenv()
        data_dir = Path(os.environ.get("SCIJOURNAL_DATA_DIR", DEFAULT_DATA_DIR))
        extensions = os.environ.get("SCIJOURNAL_ATTACHMENT_EXTENSIONS")
        return cls(
            data_dir=data_dir,
            db_filename=os.environ.get("SCIJOURNAL_DB_FILENAME", "local-storage.sqlite3"),
            log_level=os.environ.get("SCIJOURNAL_LOG_LEVEL", "INFO"),
            api_base_url=os.environ.get("SCIJOURNAL_API_URL", "http://localhost:5000/api"),
            request_timeout=float(os.environ.get("SCIJOURNAL_REQUEST_TIMEOUT", "30")),
            cloudinary_cloud_name=os.environ.get("SCIJOURNAL_CLOUDINARY_CLOUD_NAME"),
            cloudinary_thumbnail_preset=os.environ.get("SCIJOURNAL_CLOUDINARY_THUMBNAIL_PRESET"),
            cloudinary_file_preset=os.environ.get("SCIJOURNAL_CLOUDINARY_FILE_PRESET"),
            cloudinary_avatar_preset=os.environ.get("SCIJOURNAL_CLOUDINARY_AVATAR_PRESET"),
            autosave_interval=float(os.environ.get("SCIJOURNAL_AUTOSAVE_INTERVAL", "30")),
            attachment_extensions=(
                [ext.strip().lower() for ext in extensions.split(",") if ext.strip()]
                if extensions
                else list(DEFAULT_ATTACHMENT_EXTENSIONS)
            ),
        )


def get_settings() -> Settings:
    """Convenience accessor for lazy modules."""
    settings = Settings.load()
    settings.ensure_directories()
    return settings


def configure_logging(level: str = "INFO") -> None:
    """Route structlog output through a level filter taken from settings."""
    structlog.configure(
        wrapper_class=structlog.make_filtering_bound_logger(
            getattr(logging, level.upper(), logging.INFO)
        ),
        cache_logger_on_first_use=False,
    )
