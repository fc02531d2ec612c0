# utils/logger.py
import os
import logging
from typing import Optional, Union
from dotenv import load_dotenv

load_dotenv()

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'


def _resolve_level(level: Union[int, str]) -> int:
    """Accept either a logging constant or its name ("DEBUG", "info", ...)."""
    if isinstance(level, str):
        value = logging.getLevelName(level.upper())
        return value if isinstance(value, int) else logging.INFO
    return level


def setup_logger(
    logger_name: str,
    log_file: Optional[str] = None,
    level: Union[int, str, None] = None,
    log_dir: Optional[str] = None
) -> logging.Logger:
    """
    Set up and return a warehouse logger with file and console handlers.

    Level and directory default to WAREHOUSE_LOG_LEVEL / WAREHOUSE_LOG_DIR
    when they are not passed explicitly.

    Args:
        logger_name: Name of the logger (e.g. "SilverLayer")
        log_file: Optional specific log filename (default: {logger_name}.log)
        level: Logging level or level name (default: INFO)
        log_dir: Directory for log files (default: logs)

    Returns:
        Configured logger instance
    """
    if level is None:
        level = os.environ.get("WAREHOUSE_LOG_LEVEL", "INFO")
    if log_dir is None:
        log_dir = os.environ.get("WAREHOUSE_LOG_DIR", "logs")

    os.makedirs(log_dir, exist_ok=True)

    if log_file is None:
        log_file = f"{logger_name.lower().replace(' ', '_')}.log"

    log_path = os.path.join(log_dir, log_file)

    logger = logging.getLogger(logger_name)
    logger.setLevel(_resolve_level(level))

    # Re-running setup (tests, CLI re-entry) must not stack handlers
    if logger.handlers:
        for handler in list(logger.handlers):
            handler.close()
        logger.handlers.clear()

    formatter = logging.Formatter(LOG_FORMAT)

    file_handler = logging.FileHandler(log_path)
    file_handler.setFormatter(formatter)
    logger.addHandler(file_handler)

    console_handler = logging.StreamHandler()
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    logger.debug(f"Log file is being saved to: {os.path.abspath(log_path)}")

    return logger
