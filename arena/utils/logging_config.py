"""Logging configuration."""
import logging
import sys
from pathlib import Path
from typing import Optional

import structlog

from arena.core.config import LoggingConfig, logging_config


def setup_logging(config: Optional[LoggingConfig] = None, level: Optional[str] = None):
    """Configure structured logging.

    Args:
        config: Logging settings (defaults to the environment-driven instance)
        level: Override for the configured log level
    """
    config = config or logging_config
    level_name = (level or config.log_level).upper()
    log_level = getattr(logging, level_name)

    # Create logs directory
    log_path = Path(config.log_file)
    log_path.parent.mkdir(parents=True, exist_ok=True)

    # Configure standard library logging
    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=log_level
    )

    # Configure structlog
    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            structlog.processors.JSONRenderer()
        ],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    # Add file handler
    file_handler = logging.FileHandler(config.log_file)
    file_handler.setLevel(log_level)

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)
    root_logger.addHandler(file_handler)
