"""
Logging Configuration

One place to configure the root logger so every module logs with the same format.
"""

import logging
import os
from typing import Optional, Union

LOG_FORMAT = "%(asctime)s %(levelname)-8s [%(name)s] %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
LOG_LEVEL_ENV = "GADGET_CONTAINER_LOG_LEVEL"

_configured = False


def setup_logging(level: Optional[Union[str, int]] = None) -> None:
    """
    Configure the root logger.

    The environment variable GADGET_CONTAINER_LOG_LEVEL wins over the
    ``level`` argument so operators can raise verbosity without editing config.

    Args:
        level: Level name (e.g. 'INFO') or numeric level
    """
    global _configured

    env_level = os.environ.get(LOG_LEVEL_ENV)
    if env_level:
        level = env_level
    if level is None:
        level = logging.INFO
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.INFO

    root = logging.getLogger()
    if not _configured:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(LOG_FORMAT, DATE_FORMAT))
        root.addHandler(handler)
        _configured = True
    root.setLevel(level)

    # requests/urllib3 are chatty at DEBUG
    logging.getLogger("urllib3").setLevel(max(level, logging.WARNING))


def get_logger(name: str) -> logging.Logger:
    """Return a logger with the shared configuration."""
    return logging.getLogger(name)
