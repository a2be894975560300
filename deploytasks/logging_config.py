"""
Centralized logging configuration for the deploy tool.

Provides consistent logging across all modules with support for:
- Colored console output, short enough for interactive CLI use
- Optional rotating log file with full source locations
- Structured logging (JSON format option)
- Environment-based configuration
"""

import logging
import logging.handlers
import os
import sys
from pathlib import Path
from typing import Optional, TextIO

CONSOLE_FORMAT = "%(asctime)s %(levelname)s %(message)s"
FILE_FORMAT = (
    "%(asctime)s - %(name)s - %(levelname)s - "
    "%(module)s:%(funcName)s:%(lineno)d - %(message)s"
)
JSON_FORMAT = (
    '{"timestamp": "%(asctime)s", "level": "%(levelname)s", '
    '"logger": "%(name)s", "module": "%(module)s", '
    '"function": "%(funcName)s", "line": %(lineno)d, '
    '"message": "%(message)s"}'
)


class ColoredFormatter(logging.Formatter):
    """Custom formatter with color support for console output."""

    # ANSI color codes
    COLORS = {
        "DEBUG": "\033[36m",  # Cyan
        "INFO": "\033[32m",  # Green
        "WARNING": "\033[33m",  # Yellow
        "ERROR": "\033[31m",  # Red
        "CRITICAL": "\033[35m",  # Magenta
        "RESET": "\033[0m",  # Reset
    }

    def format(self, record: logging.LogRecord) -> str:
        """Format log record with colors."""
        levelname = record.levelname
        if levelname in self.COLORS:
            record.levelname = f"{self.COLORS[levelname]}{levelname}{self.COLORS['RESET']}"

        result = super().format(record)

        # Reset levelname for other formatters
        record.levelname = levelname

        return result


def _env_flag(name: str, default: bool) -> bool:
    return os.getenv(name, str(default)).lower() in ("1", "true", "yes")


def setup_logging(
    name: Optional[str] = "deploytasks",
    level: Optional[str] = None,
    log_file: Optional[str] = None,
    console: bool = True,
    json_format: bool = False,
    rotation: bool = True,
    max_bytes: int = 10 * 1024 * 1024,  # 10MB
    backup_count: int = 5,
    stream: Optional[TextIO] = None,
) -> logging.Logger:
    """
    Configure logging for the deploy tool.

    Args:
        name: Logger name (defaults to the package logger)
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_file: Path to log file (None = LOG_FILE or no file logging)
        console: Enable console logging
        json_format: Use JSON format for structured logging
        rotation: Enable log file rotation
        max_bytes: Maximum log file size before rotation
        backup_count: Number of backup files to keep
        stream: Console stream (defaults to stderr, stdout carries task results)

    Returns:
        Configured logger instance

    Example:
        >>> logger = setup_logging(level="DEBUG", log_file="logs/deploy.log")
        >>> logger.info("Deploying")
    """
    logger = logging.getLogger(name)

    if level is None:
        level = os.getenv("LOG_LEVEL", "INFO")
    if log_file is None:
        log_file = os.getenv("LOG_FILE")

    numeric_level = getattr(logging, level.upper(), logging.INFO)
    logger.setLevel(numeric_level)

    # Remove existing handlers to avoid duplicates
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    date_format = "%Y-%m-%dT%H:%M:%S" if json_format else "%Y-%m-%d %H:%M:%S"

    if console:
        console_handler = logging.StreamHandler(stream or sys.stderr)
        console_handler.setLevel(numeric_level)
        if json_format:
            console_formatter = logging.Formatter(JSON_FORMAT, date_format)
        else:
            console_formatter = ColoredFormatter(CONSOLE_FORMAT, date_format)
        console_handler.setFormatter(console_formatter)
        logger.addHandler(console_handler)

    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)

        if rotation:
            file_handler = logging.handlers.RotatingFileHandler(
                log_file,
                maxBytes=max_bytes,
                backupCount=backup_count,
                encoding="utf-8",
            )
        else:
            file_handler = logging.FileHandler(log_file, encoding="utf-8")

        file_handler.setLevel(numeric_level)
        file_handler.setFormatter(
            logging.Formatter(JSON_FORMAT if json_format else FILE_FORMAT, date_format)
        )
        logger.addHandler(file_handler)

    # Don't propagate to parent loggers
    logger.propagate = False

    return logger


def configure_cli_logging(verbose: bool = False) -> logging.Logger:
    """
    Configure logging for a CLI run.

    Reads configuration from environment variables:
    - LOG_LEVEL: Logging level (default: INFO, DEBUG with --verbose)
    - LOG_FILE: Log file path (default: none)
    - LOG_JSON: Use JSON format (default: false)
    - LOG_CONSOLE: Enable console output (default: true)
    """
    level = "DEBUG" if verbose else os.getenv("LOG_LEVEL", "INFO")
    return setup_logging(
        level=level,
        json_format=_env_flag("LOG_JSON", False),
        console=_env_flag("LOG_CONSOLE", True),
    )


def log_exception(
    logger: logging.Logger,
    exc: BaseException,
    message: str = "An exception occurred",
    level: int = logging.ERROR,
) -> None:
    """
    Log an exception with full traceback.

    Example:
        >>> try:
        ...     await env.run("deploy-smart-contract", name="Token")
        ... except DeployToolError as e:
        ...     log_exception(logger, e, "Deployment failed")
    """
    logger.log(level, f"{message}: {exc}", exc_info=True)
