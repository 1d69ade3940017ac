"""Configuration for the budgeting app.

Paths, defaults and logging setup live here so the UI and the core
modules read them from one place. Every value can be overridden through
an environment variable.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Optional

# Base project root - assumes this file is in pocketbook/
_PROJECT_ROOT = Path(__file__).parent.parent.resolve()

DATA_DIR = Path(os.getenv("POCKETBOOK_DATA_DIR", _PROJECT_ROOT / "data"))

# JSON file standing in for the browser's local storage
STORAGE_PATH = Path(
    os.getenv("POCKETBOOK_STORAGE_PATH", DATA_DIR / "storage.json")
).resolve()

LOG_LEVEL = os.getenv("POCKETBOOK_LOG_LEVEL", "INFO").upper()
LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"

SUPPORTED_LANGUAGES = ("en", "pt")
DEFAULT_LANGUAGE = os.getenv("POCKETBOOK_LANGUAGE", "en")
if DEFAULT_LANGUAGE not in SUPPORTED_LANGUAGES:
    DEFAULT_LANGUAGE = "en"

CURRENCY_SYMBOL = os.getenv("POCKETBOOK_CURRENCY", "R$")


def ensure_data_directories() -> None:
    """Create the data directory and the storage file's parent if missing."""
    for directory in [DATA_DIR, STORAGE_PATH.parent]:
        directory.mkdir(parents=True, exist_ok=True)


def get_storage_path() -> str:
    return str(STORAGE_PATH)


def configure_logging(level: Optional[str] = None) -> None:
    """Set up root logging once; later calls only adjust the level."""
    resolved = getattr(logging, (level or LOG_LEVEL).upper(), logging.INFO)
    root = logging.getLogger()
    if not root.handlers:
        logging.basicConfig(level=resolved, format=LOG_FORMAT)
    root.setLevel(resolved)
