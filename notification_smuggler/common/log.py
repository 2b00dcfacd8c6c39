from __future__ import annotations

import sys
from typing import Any, Optional

from loguru import logger

from ..core.config import get_config

PACKAGE = "notification_smuggler"

DEFAULT_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss.SSS}</green> | <level>{level: <8}</level> | "
    "<cyan>{name}</cyan> - <level>{message}</level>"
)


def configure_logging(level: Optional[str] = None, sink: Any = None, fmt: str = DEFAULT_FORMAT) -> int:
    """Attach a sink for this package's records and return its handler id.

    Args:
        level: Optional override for `SmugglerConfig.log_level`.
        sink: Anything loguru accepts as a sink; defaults to stderr.
    """
    lvl = (level or get_config().log_level).upper()
    return logger.add(sink if sink is not None else sys.stderr, level=lvl, filter=PACKAGE, format=fmt)
