"""
Loguru setup for Brain.

One colorized stderr sink for humans, plus an optional rotating file sink
that writes JSON records so the fields bound with `logger.bind(...)` by the
services (entity ids, session ids, operation names) stay machine-readable.
"""

import sys
from pathlib import Path

from loguru import logger

from brain.config import LoggingConfig

CONSOLE_FORMAT = (
    "<green>{time:HH:mm:ss.SSS}</green> | <level>{level: <8}</level> | "
    "<cyan>{extra[component]}</cyan> - <level>{message}</level>"
)
FILE_FORMAT = "{time:YYYY-MM-DD HH:mm:ss.SSS} | {level: <8} | {extra[component]} | {message}"


def setup_logging(config: LoggingConfig | None = None) -> None:
    """
    Replace Loguru's default handler with Brain's sinks.

    Args:
        config: Logging settings; defaults are used when omitted
    """
    config = config or LoggingConfig()

    logger.remove()
    # Records logged through the bare loguru logger still need a component
    logger.configure(extra={"component": "brain"})

    logger.add(sys.stderr, level=config.level, format=CONSOLE_FORMAT, colorize=True)

    if not config.log_to_file:
        return

    log_dir = Path(config.log_dir)
    log_dir.mkdir(parents=True, exist_ok=True)
    logger.add(
        log_dir / "brain_{time:YYYY-MM-DD}.log",
        level=config.level,
        format=FILE_FORMAT,
        rotation=config.file_rotation,
        retention=config.file_retention,
        compression=config.compression,
        serialize=config.serialize,
        enqueue=True,
    )


def get_logger(name: str):
    """Logger tagged with the calling module, e.g. `brain.services.entity_store`."""
    return logger.bind(component=name)
