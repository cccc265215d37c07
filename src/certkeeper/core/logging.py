"""
Loguru configuration for certkeeper.

This module configures loguru with:
- Automatic request id in each log
- Configurable format from settings
- Redirection of standard library logs (boto3, botocore) to loguru
"""

import logging
import sys
from typing import Any

from loguru import logger

from certkeeper.config import settings
from certkeeper.core.trace_context import request_id_context


def add_request_id(record: dict[str, Any]) -> bool:
    """
    Adds the request_id to the log record.

    The request_id is set by the storage service for the duration of one
    store call, so every backend operation of that call can be correlated.

    Args:
        record: Loguru record

    Returns:
        True to indicate that the filter passed
    """
    request_id = request_id_context.get()
    record["extra"]["request_id"] = request_id if request_id else "N/A"
    return True


def configure_logger() -> None:
    """
    Configures loguru with application settings.

    This function:
    1. Removes default loguru handlers
    2. Adds handler to stderr with custom configuration
    3. Configures level, format, colorization, etc.
    """
    # Remove default configuration
    logger.remove()

    logger.add(
        sink=sys.stderr,
        level=settings.log_level.upper(),
        format=settings.log_format,
        filter=add_request_id,
        colorize=settings.log_colorize,
        serialize=False,
        backtrace=True,
        diagnose=False,
        enqueue=settings.logger_enqueue,
    )


# Configure logger when importing the module
configure_logger()


__all__ = ["logger", "InterceptHandler", "intercept_standard_logging"]


class InterceptHandler(logging.Handler):
    """
    Handler to redirect standard logging logs to loguru.

    boto3, botocore and urllib3 log through the standard library; this
    handler lets their records share the loguru sink and request id.

    Usage:
        import logging
        from certkeeper.core.logging import InterceptHandler

        logging.getLogger("botocore").handlers = [InterceptHandler()]
    """

    def emit(self, record: logging.LogRecord) -> None:
        """
        Redirects a standard logging record to loguru.

        Args:
            record: logging.LogRecord record
        """
        try:
            level: str | int = logger.level(record.levelname).name
        except ValueError:
            level = record.levelno

        # Get loguru logger with appropriate depth
        loguru_logger = logger.opt(depth=6, exception=record.exc_info)
        loguru_logger.log(level, record.getMessage())


def intercept_standard_logging(level: int = logging.WARNING) -> None:
    """
    Configures redirection of standard logging to loguru.

    Intercepts logs from:
    - boto3
    - botocore (retries, credential resolution)
    - urllib3 (connection pool)

    Call this once from the process entry point.

    Args:
        level: Minimum level forwarded from the AWS SDK loggers
    """
    logging.basicConfig(handlers=[InterceptHandler()], level=level)

    for logger_name in ["boto3", "botocore", "urllib3"]:
        logging_logger = logging.getLogger(logger_name)
        logging_logger.handlers = [InterceptHandler()]
        logging_logger.setLevel(level)
        logging_logger.propagate = False
