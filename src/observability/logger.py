"""Observability logger utilities."""

from __future__ import annotations

import logging
from typing import Optional

_PLAIN_FORMAT = "%(asctime)s %(levelname)s %(name)s %(message)s"
_STRUCTURED_FORMAT = "ts=%(asctime)s level=%(levelname)s logger=%(name)s msg=%(message)r"


def get_logger(
    name: str = "qualcode",
    log_level: Optional[str] = None,
    structured: bool = False,
) -> logging.Logger:
    """Get a configured logger.

    Args:
        name: Logger name.
        log_level: Optional log level string (e.g., "INFO").
        structured: Emit ``key=value`` records instead of the plain format.

    Returns:
        Configured logger instance.
    """

    if log_level:
        level = getattr(logging, log_level.upper(), logging.INFO)
    else:
        level = logging.INFO

    logging.basicConfig(
        level=level,
        format=_STRUCTURED_FORMAT if structured else _PLAIN_FORMAT,
    )
    logger = logging.getLogger(name)
    logger.setLevel(level)
    return logger
