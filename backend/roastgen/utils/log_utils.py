"""
Logging setup

Configures loguru sinks from the logging section of config.yaml.
"""
import sys
from pathlib import Path
from typing import Optional

from loguru import logger

from roastgen.config import BASE_DIR, LOG_FILE, LOG_LEVEL, LOG_RETENTION, LOG_ROTATION


LOG_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss.SSS}</green> | <level>{level: <8}</level> | "
    "<cyan>{name}</cyan>:<cyan>{line}</cyan> - <level>{message}</level>"
)


def configure_logging(level: Optional[str] = None, log_file: Optional[str] = None) -> None:
    """
    Replace loguru's default sink with a stderr sink and an optional file sink.

    Args:
        level: Log level (default: logging.level from config.yaml)
        log_file: Log file path, relative to backend/ (default: logging.file;
                  empty string disables the file sink)
    """
    level = (level or LOG_LEVEL).upper()
    log_file = LOG_FILE if log_file is None else log_file

    logger.remove()
    logger.add(sys.stderr, level=level, format=LOG_FORMAT)

    if log_file:
        path = Path(log_file)
        if not path.is_absolute():
            path = BASE_DIR / path
        path.parent.mkdir(parents=True, exist_ok=True)
        logger.add(
            str(path),
            level=level,
            rotation=LOG_ROTATION,
            retention=LOG_RETENTION,
            encoding="utf-8",
        )
    logger.debug(f"日志已配置: level={level}, file={log_file or '(none)'}")
