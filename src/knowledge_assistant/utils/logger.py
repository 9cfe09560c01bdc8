"""Logging configuration using loguru."""

import sys
from pathlib import Path
from loguru import logger

from knowledge_assistant.utils.config import get_settings

CONSOLE_FORMAT = (
    "<green>{time:HH:mm:ss}</green> | "
    "<level>{level: <8}</level> | "
    "<cyan>{name}</cyan> - <level>{message}</level>"
)

FILE_FORMAT = "{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {name}:{function}:{line} - {message}"


def setup_logger():
    """Configure application logging using loguru.

    Diagnostics go to stderr so answers printed on stdout stay readable.
    A rotating file sink is added when LOG_FILE_PATH is set; LOG_FORMAT=json
    writes it as one JSON record per line.
    """
    settings = get_settings()

    logger.remove()
    logger.add(sys.stderr, format=CONSOLE_FORMAT, level=settings.log_level, colorize=True)

    if settings.log_file_path:
        log_path = Path(settings.log_file_path)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        logger.add(
            log_path,
            format=FILE_FORMAT,
            level=settings.log_level,
            rotation=f"{settings.log_max_size_mb} MB",
            retention=settings.log_backup_count,
            serialize=settings.log_format == "json",
        )

    logger.debug(f"Logger initialized (level={settings.log_level}, file={settings.log_file_path or 'none'})")
    return logger


def get_logger():
    """Get the configured logger instance."""
    return logger
