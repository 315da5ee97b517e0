"""Logging configuration for command-line use."""

import logging
import sys


def configure_logging(level: str = "INFO") -> None:
    """Configure the root logger with a single stream handler.

    Args:
        level: Root log level name, e.g. "INFO" or "DEBUG".
    """
    root_logger = logging.getLogger()
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(
        logging.Formatter(
            "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )
    )
    root_logger.setLevel(level.upper())
    root_logger.addHandler(handler)

    # Reduce noise from HTTP and vector store clients
    for name in ("httpx", "httpcore", "openai", "chromadb"):
        logging.getLogger(name).setLevel(logging.WARNING)
