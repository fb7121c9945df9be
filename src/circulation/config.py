"""Configuration management for library circulation.

Loads configuration from environment variables and provides defaults.
"""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

# Load .env file if present
load_dotenv()

DEFAULT_HOME = Path.home() / ".library-circulation"


@dataclass
class Config:
    """Application configuration."""

    # Relational store
    db_path: Path

    # Line-oriented files (books.txt, borrowings.txt, members.txt)
    data_dir: Path

    # Seconds to wait on a single backing-store write
    store_timeout: float

    # Activity log
    log_file: Path
    log_level: str

    @classmethod
    def from_env(cls) -> "Config":
        """Load configuration from environment variables."""
        db_path = Path(
            os.environ.get("LIBRARY_DB_PATH", str(DEFAULT_HOME / "library.db"))
        ).expanduser()

        data_dir_str = os.environ.get("LIBRARY_DATA_DIR")
        data_dir = Path(data_dir_str).expanduser() if data_dir_str else db_path.parent

        log_file_str = os.environ.get("LIBRARY_LOG_FILE")
        log_file = (
            Path(log_file_str).expanduser() if log_file_str else data_dir / "library_log.txt"
        )

        return cls(
            db_path=db_path,
            data_dir=data_dir,
            store_timeout=float(os.environ.get("LIBRARY_STORE_TIMEOUT", "5.0")),
            log_file=log_file,
            log_level=os.environ.get("LIBRARY_LOG_LEVEL", "INFO").upper(),
        )

    @property
    def books_file(self) -> Path:
        return self.data_dir / "books.txt"

    @property
    def loans_file(self) -> Path:
        return self.data_dir / "borrowings.txt"

    @property
    def members_file(self) -> Path:
        return self.data_dir / "members.txt"

    def validate(self) -> list[str]:
        """Validate configuration, return list of errors."""
        errors = []

        for directory in {self.db_path.parent, self.data_dir, self.log_file.parent}:
            if not directory.exists():
                try:
                    directory.mkdir(parents=True, exist_ok=True)
                except OSError:
                    errors.append(f"Cannot create directory: {directory}")

        if self.store_timeout <= 0:
            errors.append(f"Store timeout must be positive, got {self.store_timeout}")

        if self.log_level not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            errors.append(f"Unknown log level: {self.log_level}")

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
