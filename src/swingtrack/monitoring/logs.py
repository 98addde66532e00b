"""Console and file logging for the swingtrack logger tree."""

from __future__ import annotations

import logging
import sys
from pathlib import Path
from typing import Optional

LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def setup_logging(
    level: str = "INFO",
    log_dir: Optional[str | Path] = None,
    log_file: Optional[str] = None,
) -> logging.Logger:
    log_level = getattr(logging, level.upper(), logging.INFO)
    root = logging.getLogger("swingtrack")
    root.setLevel(log_level)
    root.handlers.clear()

    formatter = logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT)

    console = logging.StreamHandler(sys.stdout)
    console.setFormatter(formatter)
    root.addHandler(console)

    if log_dir and log_file:
        log_dir = Path(log_dir)
        log_dir.mkdir(parents=True, exist_ok=True)
        handler = logging.FileHandler(log_dir / log_file, encoding="utf-8")
        handler.setFormatter(formatter)
        root.addHandler(handler)

    return root
