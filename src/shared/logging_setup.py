from __future__ import annotations

import logging
import sys
from pathlib import Path

from shared.constants import LOG_FILE_NAME, LOG_FORMAT


def setup_logging(log_dir: Path | None = None, level: int = logging.INFO) -> Path | None:
    """Configure logging to stdout and, if ``log_dir`` is given, a UTF-8 file.

    Returns:
        Path of the log file, or None when logging to stdout only.
    """
    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stdout)]
    log_file: Path | None = None
    if log_dir is not None:
        log_dir.mkdir(parents=True, exist_ok=True)
        log_file = log_dir / LOG_FILE_NAME
        handlers.append(logging.FileHandler(str(log_file), encoding='utf-8'))

    logging.basicConfig(level=level, format=LOG_FORMAT, handlers=handlers, force=True)
    return log_file
