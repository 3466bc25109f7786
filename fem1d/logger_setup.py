"""
Logger factory shared by the fem1d modules.

Each module calls `setup_logger(__name__)` once at import time. Handlers are
attached only to the package root logger ("fem1d"), so child loggers
propagate to a single stream handler and records are never duplicated.
"""
import logging
from typing import Optional

_FORMAT = "[%(asctime)s] [%(levelname)s] %(name)s: %(message)s"
_ROOT = "fem1d"


def setup_logger(name: str, level: Optional[int] = None) -> logging.Logger:
    """Return the logger for `name`, configuring the package root on first use."""
    root = logging.getLogger(_ROOT)
    if not root.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(_FORMAT))
        root.addHandler(handler)
        root.setLevel(logging.INFO)

    logger = logging.getLogger(name)
    if level is not None:
        logger.setLevel(level)
    return logger
