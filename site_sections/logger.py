# File: site_sections/logger.py
"""site_sections.logger: Настройка логирования SiteSections.

Все модули пишут в один именованный логгер ``SiteSections``::

    from site_sections.logger import logger
    logger.info("Старт обхода")

CLI переустанавливает обработчики через :func:`init_logging` (уровень,
формат, файл с ротацией). Дочерние логгеры берутся через :func:`get_logger`.
"""
from __future__ import annotations

import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Final, Optional, Union

DEFAULT_FORMAT: Final[str] = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
LOGGER_NAME: Final[str] = "SiteSections"

# ротация файла логов: 5 МБ x 3 архива
MAX_BYTES: Final[int] = 5 * 1024 * 1024
BACKUP_COUNT: Final[int] = 3

LevelT = Union[int, str]


def _resolve_level(level: LevelT) -> int:
    if isinstance(level, int):
        return level
    resolved = logging.getLevelName(level.upper())
    if not isinstance(resolved, int):
        raise ValueError(f"Unknown log level: {level!r}")
    return resolved


def _handlers(log_file: Optional[Union[str, Path]], fmt: str) -> list[logging.Handler]:
    formatter = logging.Formatter(fmt)
    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stdout)]
    if log_file is not None:
        path = Path(log_file)
        path.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(
            RotatingFileHandler(
                filename=str(path),
                maxBytes=MAX_BYTES,
                backupCount=BACKUP_COUNT,
                encoding="utf-8",
            )
        )
    for handler in handlers:
        handler.setFormatter(formatter)
    return handlers


def configure(
    *,
    level: LevelT = "INFO",
    log_file: Optional[Union[str, Path]] = None,
    log_format: str = DEFAULT_FORMAT,
    replace_handlers: bool = True,
) -> logging.Logger:
    """Настраивает общий логгер проекта.

    Args:
        level: уровень логирования (``"DEBUG"`` или число).
        log_file: путь к файлу логов; None означает вывод только в stdout.
        log_format: строка формата для :class:`logging.Formatter`.
        replace_handlers: удалить ранее установленные обработчики.
    """
    lg = logging.getLogger(LOGGER_NAME)
    lg.setLevel(_resolve_level(level))
    if replace_handlers:
        for old in list(lg.handlers):
            lg.removeHandler(old)
            old.close()
    for handler in _handlers(log_file, log_format):
        lg.addHandler(handler)
    lg.propagate = False
    return lg


def init_logging(
    level: LevelT = "INFO",
    log_file: Optional[Union[str, Path]] = None,
    log_format: str = DEFAULT_FORMAT,
) -> logging.Logger:
    """Точка входа для CLI: заменяет обработчики и возвращает логгер."""
    return configure(level=level, log_file=log_file, log_format=log_format)


def get_logger(child: Optional[str] = None) -> logging.Logger:
    """``SiteSections`` или его дочерний логгер ``SiteSections.<child>``."""
    return logging.getLogger(f"{LOGGER_NAME}.{child}" if child else LOGGER_NAME)


logger: logging.Logger = init_logging()

__all__ = ["logger", "configure", "init_logging", "get_logger", "LOGGER_NAME", "DEFAULT_FORMAT"]
