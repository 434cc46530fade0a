"""
Configuration for ShelfKeep.

Settings are read from environment variables (a local .env file is
honoured) and cached for the lifetime of the process.
"""

import os
from dataclasses import dataclass
from functools import lru_cache
from typing import Optional

from dotenv import load_dotenv

from shelfkeep.evaluation.rules import Rules


DEFAULT_RECYCLE_GENRES = "Magazine,Newspaper,Technology"


def _split_csv(value: str) -> tuple[str, ...]:
    return tuple(part.strip() for part in value.split(",") if part.strip())


@dataclass
class Settings:
    """Application settings loaded from environment."""

    # Catalogs
    google_books_api_key: Optional[str] = None
    catalog_order: str = "google_books,open_library"
    lookup_timeout_s: float = 10.0

    # Camera
    camera_index: int = 0
    frame_width: int = 1280
    frame_height: int = 720
    decode_interval_s: float = 0.1

    # Rules
    max_age: int = 10
    recycle_genres: str = DEFAULT_RECYCLE_GENRES

    # Logging
    log_level: str = "INFO"

    @property
    def catalogs(self) -> tuple[str, ...]:
        """Catalog names in priority order."""
        return _split_csv(self.catalog_order)

    def rules(self) -> Rules:
        """Build the evaluation rules from configured values."""
        return Rules(
            max_age=self.max_age,
            recycle_genres=frozenset(_split_csv(self.recycle_genres)),
        )

    @classmethod
    def from_env(cls) -> "Settings":
        """Load settings from environment variables."""
        load_dotenv()
        return cls(
            google_books_api_key=os.getenv("GOOGLE_BOOKS_API_KEY"),
            catalog_order=os.getenv("CATALOG_ORDER", cls.catalog_order),
            lookup_timeout_s=float(os.getenv("LOOKUP_TIMEOUT_S", cls.lookup_timeout_s)),
            camera_index=int(os.getenv("CAMERA_INDEX", cls.camera_index)),
            frame_width=int(os.getenv("CAMERA_WIDTH", cls.frame_width)),
            frame_height=int(os.getenv("CAMERA_HEIGHT", cls.frame_height)),
            decode_interval_s=float(os.getenv("DECODE_INTERVAL_S", cls.decode_interval_s)),
            max_age=int(os.getenv("RULES_MAX_AGE", cls.max_age)),
            recycle_genres=os.getenv("RULES_RECYCLE_GENRES", cls.recycle_genres),
            log_level=os.getenv("SHELFKEEP_LOG_LEVEL", cls.log_level).upper(),
        )


@lru_cache()
def get_settings() -> Settings:
    """Get cached application settings."""
    return Settings.from_env()
