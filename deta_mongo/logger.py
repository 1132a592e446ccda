"""Package-wide logger shared by every deta_mongo module."""

import logging

from .config import LOG_LEVEL

DEFAULT_LEVEL = logging.WARNING


def resolve_level(name) -> int:
    """Map a ``LOG_LEVEL`` value to a logging level; unknown values give WARNING."""
    if name is None:
        return DEFAULT_LEVEL
    text = str(name).strip()
    if text.isdigit():
        return int(text)
    level = logging.getLevelName(text.upper())
    return level if isinstance(level, int) else DEFAULT_LEVEL


logger = logging.getLogger("deta_mongo")

if not logger.handlers:
    _handler = logging.StreamHandler()
    _handler.setFormatter(
        logging.Formatter("%(asctime)s %(levelname)s %(name)s: %(message)s")
    )
    logger.addHandler(_handler)

logger.setLevel(resolve_level(LOG_LEVEL))
