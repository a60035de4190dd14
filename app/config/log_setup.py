"""Process-wide logging setup for runtime entrypoints."""

from __future__ import annotations

import logging

_LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s %(message)s"


def config_configure_logging(log_level: str) -> None:
    """Configure root logging once for the running process.

    Args:
        log_level: Logging level name such as `INFO`.

    Returns:
        None: Root logger is configured as side effect.

    Raises:
        ValueError: Raised when the level name is unknown.
    """

    normalized_level = log_level.strip().upper()
    level_value = logging.getLevelName(normalized_level)
    if not isinstance(level_value, int):
        raise ValueError(f"unsupported log_level={log_level}")

    logging.basicConfig(level=level_value, format=_LOG_FORMAT)
    logging.getLogger().setLevel(level_value)
