"""
Logging for pipeline runs.

One rotating file per project (level, name and rotation come from the
`logging` section of config/pipeline.json) plus an optional console handler.
Handlers are tagged by name so repeated setup in one process (tests, a
re-run from the same shell) never attaches duplicates; calling it again with
a different config updates the existing handlers in place.
"""

from __future__ import annotations

import logging
import os
from logging.handlers import RotatingFileHandler
from typing import Optional

from constellation.core.config.models import LoggingConfig

LOGGER_NAME = "constellation"
FILE_HANDLER_NAME = "constellation-file"
CONSOLE_HANDLER_NAME = "constellation-console"

# media stripping runs on a thread pool; the thread name shows which worker wrote a line
FILE_FORMAT = "%(asctime)s | %(levelname)s | %(threadName)s | %(message)s"
CONSOLE_FORMAT = "%(message)s"


def _find(logger: logging.Logger, name: str) -> Optional[logging.Handler]:
    return next((h for h in logger.handlers if h.get_name() == name), None)


def _file_handler(logger: logging.Logger, path: str, cfg: LoggingConfig) -> RotatingFileHandler:
    h = _find(logger, FILE_HANDLER_NAME)
    if isinstance(h, RotatingFileHandler) and h.baseFilename == os.path.abspath(path):
        h.maxBytes = cfg.max_bytes
        h.backupCount = cfg.backup_count
        return h
    if h is not None:
        logger.removeHandler(h)
        h.close()
    h = RotatingFileHandler(path, maxBytes=cfg.max_bytes, backupCount=cfg.backup_count, encoding="utf-8")
    h.set_name(FILE_HANDLER_NAME)
    h.setFormatter(logging.Formatter(FILE_FORMAT))
    logger.addHandler(h)
    return h


def setup_logging(
    log_dir: str = "logs",
    cfg: Optional[LoggingConfig] = None,
    *,
    name: str = LOGGER_NAME,
) -> logging.Logger:
    cfg = cfg or LoggingConfig()
    os.makedirs(log_dir, exist_ok=True)

    logger = logging.getLogger(name)
    logger.setLevel(getattr(logging, cfg.level))
    logger.propagate = False

    _file_handler(logger, os.path.join(log_dir, cfg.file_name), cfg)

    console = _find(logger, CONSOLE_HANDLER_NAME)
    if cfg.console and console is None:
        sh = logging.StreamHandler()
        sh.set_name(CONSOLE_HANDLER_NAME)
        sh.setFormatter(logging.Formatter(CONSOLE_FORMAT))
        logger.addHandler(sh)
    elif not cfg.console and console is not None:
        logger.removeHandler(console)

    return logger
