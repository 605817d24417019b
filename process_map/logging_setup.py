from __future__ import annotations

import logging
import pathlib
from typing import Optional

LOG_NAME = "process_map"
LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def configure_logging(
    log_file: Optional[pathlib.Path] = None,
    level: int = logging.INFO,
    *,
    console: bool = True,
) -> logging.Logger:
    """Attach handlers to the package logger once and return it."""
    logger = logging.getLogger(LOG_NAME)
    logger.setLevel(level)
    if not logger.handlers:
        formatter = logging.Formatter(LOG_FORMAT)
        if console:
            stream_handler = logging.StreamHandler()
            stream_handler.setFormatter(formatter)
            logger.addHandler(stream_handler)
        if log_file is not None:
            log_file.parent.mkdir(parents=True, exist_ok=True)
            file_handler = logging.FileHandler(log_file, encoding="utf-8")
            file_handler.setFormatter(formatter)
            logger.addHandler(file_handler)
        logger.propagate = False
        if log_file is not None:
            logger.info("Logging initialised. Writing to %s", log_file)
    return logger
