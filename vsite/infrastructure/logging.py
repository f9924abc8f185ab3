import logging
import sys
from pathlib import Path
from typing import Optional

LOG_FORMAT = '%(asctime)s - %(levelname)s - %(message)s'

def setup_logging(debug: bool = False, log_path: Optional[Path] = None) -> logging.Logger:
    """
    Setup logging configuration for vsite.

    Warnings always go to stderr. A log file is only written when log_path
    is given, so nothing lands in the scanned directory by default.
    Returns configured logger instance.

    Args:
        debug: If True, enable DEBUG level logging (ffmpeg command lines, timings)
        log_path: Optional path to log file
    """
    level = logging.DEBUG if debug else logging.INFO

    console = logging.StreamHandler(sys.stderr)
    console.setLevel(logging.DEBUG if debug else logging.WARNING)
    console.setFormatter(logging.Formatter('%(levelname)s: %(message)s'))
    handlers = [console]

    if log_path:
        log_file = Path(log_path)
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_file, encoding='utf-8')
        file_handler.setLevel(level)
        file_handler.setFormatter(logging.Formatter(LOG_FORMAT))
        handlers.append(file_handler)

    logging.basicConfig(
        level=level,
        handlers=handlers,
        force=True  # Override any existing configuration
    )

    logger = logging.getLogger(__name__)
    if log_path:
        logger.info(f"Logging initialized: {log_path} (debug={'ON' if debug else 'OFF'})")

    return logger
