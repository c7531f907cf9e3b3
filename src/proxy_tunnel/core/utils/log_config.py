"""Logging configuration for the proxy tunnel tools.

This module provides centralized logging configuration using Loguru.
It sets up logging to both file and console with proper formatting
and log rotation. Library modules only emit records; this module is
imported by the command line front end.
"""

import os
import sys
from pathlib import Path

from loguru import logger

# Logs directory, overridable for sandboxed runs
LOG_DIR = Path(
    os.environ.get("PROXY_TUNNEL_LOG_DIR", Path.home() / ".proxy-tunnel" / "logs")
)
LOG_DIR.mkdir(parents=True, exist_ok=True)

CONSOLE_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | "
    "<level>{level: <8}</level> | "
    "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - "
    "<level>{message}</level>"
)

FILE_FORMAT = "{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {name}:{function}:{line} - {message}"


def configure_logging(console_level: str = "INFO") -> None:
    """Install the console and rotating file sinks."""
    logger.remove()  # Remove default handler

    logger.add(
        sys.stderr,
        format=CONSOLE_FORMAT,
        level=console_level,
        backtrace=True,
        diagnose=True,
    )

    logger.add(
        LOG_DIR / "tunnel.log",
        rotation="10 MB",
        retention="1 week",
        compression="zip",
        format=FILE_FORMAT,
        level="DEBUG",
        backtrace=True,
        diagnose=True,
    )


configure_logging()

__all__ = ["LOG_DIR", "configure_logging", "logger"]
