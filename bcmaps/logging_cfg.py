from loguru import logger
import sys
from pathlib import Path
from typing import Optional, Union

LOG_FORMAT = "{time:YYYY-MM-DD HH:mm:ss.SSS} | {level: <8} | {module}:{function}:{line} - {message}"


def setup_logging(level: str = "INFO", log_file: Optional[Union[str, Path]] = None):
    """
    Route bcmaps logging to stderr, and to log_file as well when given.

    The file sink always records DEBUG so a run can be inspected afterwards
    whatever the console level is.
    """
    logger.remove()

    logger.add(
        sys.stderr,
        format=LOG_FORMAT,
        level=level.upper(),
        backtrace=True,
        diagnose=False
    )

    if log_file:
        log_file = Path(log_file)
        log_file.parent.mkdir(parents=True, exist_ok=True)
        logger.add(
            log_file,
            format=LOG_FORMAT,
            level="DEBUG",
            encoding="utf-8",
            backtrace=True,
            diagnose=False
        )
        logger.debug(f"Logging to {log_file}")

    return logger


def get_logger(name: str = None):
    if name:
        return logger.bind(module_name=name)
    return logger
