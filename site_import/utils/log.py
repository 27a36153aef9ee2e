"""Console and run-log output shared by the importers."""

from __future__ import annotations

import os
from typing import Optional

from .errors import REPORT_DIR

LOG_FILE_NAME = "import.log"


def log_message(message: str, level: str = "INFO", *, log_dir: Optional[str] = None) -> None:
    """Print ``message`` and append it to the run log under ``log_dir``."""
    print(f"[{level}] {message}")
    directory = log_dir or REPORT_DIR
    os.makedirs(directory, exist_ok=True)
    with open(os.path.join(directory, LOG_FILE_NAME), "a", encoding="utf-8") as f:
        f.write(f"{level}: {message}\n")
