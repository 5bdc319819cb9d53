"""
Logging configuration for the Teletype manual converter.

Every module logs through a child of the "teletype_notion" logger, so one
call to setup_logger() controls the whole pipeline's output.
"""

import logging
import sys
from typing import Optional

# Third-party loggers that are noisy at INFO/DEBUG (one line per HTTP
# request or limiter slot). They are held at WARNING unless asked for.
LIBRARY_LOGGERS = ("urllib3", "requests", "pyrate_limiter")


def setup_logger(
    name: str = "teletype_notion",
    level: int = logging.INFO,
    log_file: Optional[str] = None,
    library_level: int = logging.WARNING
) -> logging.Logger:
    """
    Set up and return a logger instance.

    Args:
        name: Logger name
        level: Logging level (default: INFO)
        log_file: Optional file path for logging
        library_level: Level for HTTP and rate limiter library loggers

    Returns:
        Configured logger instance
    """
    logger = logging.getLogger(name)

    for library in LIBRARY_LOGGERS:
        logging.getLogger(library).setLevel(library_level)

    # Run scripts call this again with -v; keep the handlers, change the level
    if logger.handlers:
        logger.setLevel(level)
        for handler in logger.handlers:
            handler.setLevel(level)
        return logger

    logger.setLevel(level)

    # timestamp - stage - level - message
    formatter = logging.Formatter(
        "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S"
    )

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(level)
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    if log_file:
        file_handler = logging.FileHandler(log_file)
        file_handler.setLevel(level)
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    return logger


# Package logger, configured at import time
logger = setup_logger()


def get_module_logger(module_name: str) -> logging.Logger:
    """
    Get a child logger for a specific module.

    Child loggers (e.g. "teletype_notion.op_table") inherit the package
    logger's handlers and level; the name shows which stage logged, so a
    malformed operation row can be told apart from a failed append.

    Args:
        module_name: Name of the module (e.g., 'classifier', 'publisher')

    Returns:
        Child logger instance
    """
    return logging.getLogger(f"teletype_notion.{module_name}")
