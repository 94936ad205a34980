from __future__ import annotations

import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional

_INITIALIZED = False


# PUBLIC_INTERFACE
def configure_logging(level: str = "INFO", *, log_path: Optional[str] = None) -> None:
    """Configure application-wide logging: console always, rotating file when log_path is set."""

    global _INITIALIZED
    if _INITIALIZED:
        return

    formatter = logging.Formatter(
        fmt="%(asctime)s %(levelname)s [%(name)s] %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    root = logging.getLogger()
    root.setLevel(getattr(logging, level.upper(), logging.INFO))

    console_handler = logging.StreamHandler()
    console_handler.setFormatter(formatter)
    root.addHandler(console_handler)

    if log_path:
        log_file = Path(log_path)
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = RotatingFileHandler(str(log_file), maxBytes=1_000_000, backupCount=5)
        file_handler.setFormatter(formatter)
        root.addHandler(file_handler)

    _INITIALIZED = True
    logging.getLogger(__name__).debug("Logging configured at %s (file: %s)", level, log_path)


__all__ = ["configure_logging"]
