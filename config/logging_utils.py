"""
Logging setup for the gateway process.

Console output always; a rotating file under ``log_dir`` when configured.
Modules log through ``logging.getLogger(__name__)``.
"""

from __future__ import annotations

import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional

LOGGER_NAME = "gateway"
LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s %(message)s"


def configure_logging(level: str = "INFO", log_dir: Optional[str] = None) -> logging.Logger:
    root = logging.getLogger()
    root.setLevel(level.upper())

    # Avoid duplicate handlers on reload
    if any(getattr(h, "_gateway_handler", False) for h in root.handlers):
        return logging.getLogger(LOGGER_NAME)

    fmt = logging.Formatter(LOG_FORMAT)

    console = logging.StreamHandler()
    console.setFormatter(fmt)
    console._gateway_handler = True
    root.addHandler(console)

    if log_dir:
        Path(log_dir).mkdir(parents=True, exist_ok=True)
        handler = RotatingFileHandler(
            str(Path(log_dir) / "gateway.log"), maxBytes=2_000_000, backupCount=5, encoding="utf-8"
        )
        handler.setFormatter(fmt)
        handler._gateway_handler = True
        root.addHandler(handler)

    return logging.getLogger(LOGGER_NAME)
