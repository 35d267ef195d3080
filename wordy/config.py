"""
Engine configuration.

Settings are read from environment variables (a local .env file is loaded
first), so the host application and the test suite can point the engine at a
different database without code changes.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv


PROJECT_ROOT = Path(__file__).resolve().parents[1]
DATA_DIR = PROJECT_ROOT / "data"

DEFAULT_IMPORT_BATCH_SIZE = 100
DEFAULT_DB_TIMEOUT_SECONDS = 5.0
DEFAULT_SRS_JITTER = 0.05


def is_test_mode() -> bool:
    """Check if running in test mode."""
    return os.getenv("TEST_MODE", "false").lower() == "true"


def default_database_url() -> str:
    """
    Build the default SQLite URL.

    Uses test_wordy.db in test mode and wordy.db otherwise.
    """
    db_name = "test_wordy.db" if is_test_mode() else "wordy.db"
    return f"sqlite:///{DATA_DIR / db_name}"


@dataclass(frozen=True)
class Settings:
    database_url: str
    legacy_export_path: Optional[Path] = None
    import_batch_size: int = DEFAULT_IMPORT_BATCH_SIZE
    db_timeout_seconds: float = DEFAULT_DB_TIMEOUT_SECONDS
    srs_jitter: float = DEFAULT_SRS_JITTER
    log_level: str = "INFO"

    @classmethod
    def from_env(cls) -> "Settings":
        """Load settings from the environment (and .env, if present)."""
        load_dotenv()

        legacy_path = os.getenv("WORDY_LEGACY_EXPORT")
        return cls(
            database_url=os.getenv("WORDY_DATABASE_URL") or default_database_url(),
            legacy_export_path=Path(legacy_path) if legacy_path else None,
            import_batch_size=max(1, int(os.getenv("WORDY_IMPORT_BATCH_SIZE", DEFAULT_IMPORT_BATCH_SIZE))),
            db_timeout_seconds=float(os.getenv("WORDY_DB_TIMEOUT", DEFAULT_DB_TIMEOUT_SECONDS)),
            srs_jitter=min(0.5, max(0.0, float(os.getenv("WORDY_SRS_JITTER", DEFAULT_SRS_JITTER)))),
            log_level=os.getenv("WORDY_LOG_LEVEL", "INFO").upper(),
        )
