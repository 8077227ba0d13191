"""Configuration management for bookrank.

Loads configuration from environment variables and provides defaults.
"""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

# Load .env file if present
load_dotenv()

CACHE_BACKENDS = ("memory", "none")
LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


@dataclass
class Config:
    """Application configuration."""

    # Database
    db_path: Path
    echo_sql: bool

    # Cache
    cache_backend: str  # memory | none

    # Logging
    log_level: str

    @classmethod
    def from_env(cls) -> "Config":
        """Load configuration from environment variables."""
        db_path_str = os.environ.get(
            "BOOKRANK_DB_PATH",
            str(Path.home() / ".bookrank" / "books.db"),
        )
        db_path = Path(db_path_str).expanduser()

        return cls(
            db_path=db_path,
            echo_sql=os.environ.get("BOOKRANK_ECHO_SQL", "false").lower() in ("1", "true", "yes"),
            cache_backend=os.environ.get("BOOKRANK_CACHE_BACKEND", "memory").lower(),
            log_level=os.environ.get("BOOKRANK_LOG_LEVEL", "WARNING").upper(),
        )

    @property
    def is_memory_db(self) -> bool:
        """Check if the database lives in memory only."""
        return str(self.db_path) == ":memory:"

    def validate(self) -> list[str]:
        """Validate configuration, return list of errors."""
        errors = []

        if self.cache_backend not in CACHE_BACKENDS:
            errors.append(
                f"Unknown cache backend: {self.cache_backend} "
                f"(expected one of {', '.join(CACHE_BACKENDS)})"
            )

        if self.log_level not in LOG_LEVELS:
            errors.append(f"Unknown log level: {self.log_level}")

        # Check database directory is writable
        if not self.is_memory_db and not self.db_path.parent.exists():
            try:
                self.db_path.parent.mkdir(parents=True, exist_ok=True)
            except PermissionError:
                errors.append(f"Cannot create database directory: {self.db_path.parent}")

        return errors


# Global config instance
_config: Optional[Config] = None


def get_config() -> Config:
    """Get or create the global config instance."""
    global _config
    if _config is None:
        _config = Config.from_env()
    return _config


def reset_config() -> None:
    """Reset the global config instance. Used for testing."""
    global _config
    _config = None
