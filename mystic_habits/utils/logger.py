# utils/logger.py

import logging
import logging.config
from logging.handlers import RotatingFileHandler
from pathlib import Path

DEFAULT_FORMAT = '%(asctime)s [%(levelname)s] %(name)s: %(message)s'


def setup_logger(log_file: str = "logs/mystic.log", max_bytes: int = 10_000_000,
                 backup_count: int = 5, level: str = "INFO", fmt: str = DEFAULT_FORMAT):
    """Добавить к корневому логгеру файл с ротацией (один раз на путь)"""
    path = Path(log_file)
    path.parent.mkdir(exist_ok=True, parents=True)
    logger = logging.getLogger()
    logger.setLevel(level)

    for existing in logger.handlers:
        if isinstance(existing, RotatingFileHandler) and Path(existing.baseFilename) == path.resolve():
            return logger

    handler = RotatingFileHandler(path, maxBytes=max_bytes, backupCount=backup_count, encoding="utf-8")
    handler.setFormatter(logging.Formatter(fmt))
    logger.addHandler(handler)
    return logger


def configure_logging(settings) -> None:
    """Применить get_logging_config() настроек"""
    if settings.LOG_TO_FILE:
        Path(settings.LOG_DIR).mkdir(exist_ok=True, parents=True)
    logging.config.dictConfig(settings.get_logging_config())
