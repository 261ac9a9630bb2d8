"""
Logging utilities for the managed instance group image rollout.
"""

import logging
import sys
from typing import List, Optional

# Chatty transport loggers pulled in by google-auth
NOISY_LOGGERS = ("urllib3", "google.auth")


def setup_logging(
    verbose: bool = False, log_file: Optional[str] = "image-rollout.log"
) -> logging.Logger:
    """
    Set up logging to stdout and, optionally, a log file.

    Args:
        verbose: Enable DEBUG logging, including HTTP transport logs
        log_file: Path to log file, or None to log to stdout only

    Returns:
        Logger instance
    """
    handlers: List[logging.Handler] = [logging.StreamHandler(sys.stdout)]
    if log_file:
        handlers.append(logging.FileHandler(log_file))

    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s - %(levelname)s - %(name)s - %(message)s",
        handlers=handlers,
        force=True,
    )

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(
            logging.DEBUG if verbose else logging.WARNING
        )

    return logging.getLogger("rollout")
