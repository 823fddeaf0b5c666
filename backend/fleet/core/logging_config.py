"""
Logging setup.

Root logger: console plus two dated files under the log directory
(``fleet_<date>.log`` from INFO, ``error_<date>.log`` from ERROR).
Admission decisions additionally go to ``admission_<date>.log`` so accepted
and rejected deliveries can be audited without the rest of the traffic.
"""

import copy
import logging
import os
import sys
from datetime import datetime
from pathlib import Path
from typing import Dict, Optional

LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s:%(lineno)d | %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

ADMISSION_LOGGER = "fleet.services.admission"

NOISY_LOGGERS: Dict[str, int] = {
    "uvicorn.access": logging.WARNING,
    "sqlalchemy.engine": logging.WARNING,
    "apscheduler": logging.WARNING,
}


class ColoredFormatter(logging.Formatter):
    """Level names in color, for terminals only"""

    COLORS = {
        logging.DEBUG: '\033[36m',
        logging.INFO: '\033[32m',
        logging.WARNING: '\033[33m',
        logging.ERROR: '\033[31m',
        logging.CRITICAL: '\033[35m',
    }
    RESET = '\033[0m'

    def format(self, record):
        # other handlers share the record
        record = copy.copy(record)
        record.levelname = f"{self.COLORS.get(record.levelno, '')}{record.levelname}{self.RESET}"
        return super().format(record)


def _console_handler() -> logging.Handler:
    handler = logging.StreamHandler(sys.stdout)
    formatter_cls = ColoredFormatter if sys.stdout.isatty() else logging.Formatter
    handler.setFormatter(formatter_cls(LOG_FORMAT, DATE_FORMAT))
    return handler


def _file_handler(path: Path, level: int) -> logging.Handler:
    handler = logging.FileHandler(path, encoding="utf-8")
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(LOG_FORMAT, DATE_FORMAT))
    return handler


def _replace_handlers(logger: logging.Logger, *handlers: logging.Handler) -> None:
    for old in list(logger.handlers):
        logger.removeHandler(old)
        old.close()
    for handler in handlers:
        logger.addHandler(handler)


def setup_logging(log_level: str = "INFO", log_dir: Optional[str] = None) -> Path:
    """
    Configure logging for the service; safe to call more than once.

    Args:
        log_level: root level name (DEBUG ... CRITICAL)
        log_dir: directory for the files, defaults to $LOG_DIR, then ./logs

    Returns:
        the log directory in use
    """
    log_path = Path(log_dir or os.getenv("LOG_DIR", "logs"))
    log_path.mkdir(parents=True, exist_ok=True)
    today = datetime.now().strftime("%Y-%m-%d")

    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, log_level.upper(), logging.INFO))
    _replace_handlers(
        root_logger,
        _console_handler(),
        _file_handler(log_path / f"fleet_{today}.log", logging.INFO),
        _file_handler(log_path / f"error_{today}.log", logging.ERROR),
    )

    # records still propagate to the root handlers
    _replace_handlers(
        logging.getLogger(ADMISSION_LOGGER),
        _file_handler(log_path / f"admission_{today}.log", logging.INFO),
    )

    for name, level in NOISY_LOGGERS.items():
        logging.getLogger(name).setLevel(level)

    logging.info(f"📋 Logging initialised in {log_path}")
    return log_path


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)
