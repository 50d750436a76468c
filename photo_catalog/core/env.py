from __future__ import annotations

import logging
import os
from pathlib import Path

from dotenv import load_dotenv

DEFAULT_DATABASE_URL = "sqlite+pysqlite:///./photo_catalog.db"
DEFAULT_STORE_TIMEOUT = 30.0


def load_dotenv_if_present(path: str | Path = ".env") -> None:
    """Load environment variables from a .env file if it exists."""
    dotenv_path = Path(path)
    if dotenv_path.exists():
        load_dotenv(dotenv_path=dotenv_path, override=False)


def configure_logging(default_level: str = "INFO") -> None:
    """Configure root logging level from LOG_LEVEL env (default INFO)."""
    level_name = os.getenv("LOG_LEVEL", default_level).upper()
    level = getattr(logging, level_name, logging.INFO)
    logging.basicConfig(level=level)


def database_url() -> str:
    return os.getenv("DATABASE_URL", DEFAULT_DATABASE_URL)


def store_timeout() -> float:
    """Seconds a single store call may wait (STORE_TIMEOUT_SECONDS, default 30)."""
    raw = os.getenv("STORE_TIMEOUT_SECONDS")
    if not raw:
        return DEFAULT_STORE_TIMEOUT
    try:
        return float(raw)
    except ValueError:
        logging.getLogger(__name__).warning(
            "Ignoring invalid STORE_TIMEOUT_SECONDS=%r", raw
        )
        return DEFAULT_STORE_TIMEOUT
