"""Logging Configuration - Centralized logging setup.

Defaults to INFO so request payloads and headers logged at DEBUG do not
end up in production logs.
"""

import logging
import sys
from pathlib import Path
from typing import Optional, Union

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


def setup_logging(
    log_level: int = logging.INFO,
    log_file: Optional[Union[str, Path]] = None
) -> None:
    """Configure logging for the application.

    Args:
        log_level: Logging level (default: INFO)
        log_file: Optional log file path; its directory is created if needed
    """
    handlers = [logging.StreamHandler(sys.stdout)]

    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(log_path, encoding="utf-8"))

    logging.basicConfig(
        level=log_level,
        format=LOG_FORMAT,
        handlers=handlers
    )

    # Quiet down noisy libraries
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)

    logging.info(f"Logging initialized ({logging.getLevelName(log_level)} level)")
