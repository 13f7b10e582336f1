"""
Logging utilities.

WHAT: Logging setup for the completion service
WHY: Autocomplete fires on every keystroke; the console has to stay readable
     while the log file keeps per-chunk detail for latency debugging
HOW: Console handler at INFO, file handler at DEBUG, per-logger levels from
     LOG_MODULE_LEVELS (httpx and httpcore quieted by default)
"""

import logging
import sys
from pathlib import Path

from ..core.config import settings

CONSOLE_FORMAT = '%(asctime)s.%(msecs)03d - %(name)s - %(levelname)s - %(message)s'
FILE_FORMAT = '%(asctime)s.%(msecs)03d - %(name)s - %(levelname)s - %(pathname)s:%(lineno)d - %(message)s'
DATE_FORMAT = '%Y-%m-%d %H:%M:%S'


def apply_module_levels(levels: dict[str, str]) -> dict[str, int]:
    """
    Set levels on named loggers.

    Args:
        levels: {logger name: level name}, e.g. {"completion_backend.llm": "DEBUG"}

    Returns:
        The levels actually applied; unknown level names are skipped
    """
    applied = {}
    for name, level_name in levels.items():
        level = logging.getLevelName(level_name.upper())
        if not isinstance(level, int):
            logging.getLogger(__name__).warning(f"Ignoring unknown log level {level_name!r} for {name}")
            continue
        logging.getLogger(name).setLevel(level)
        applied[name] = level
    return applied


def setup_logging():
    """
    Configure application logging.

    Millisecond timestamps are kept in both formats since completion
    latency is measured in tens of milliseconds.
    """
    log_file = Path(settings.LOG_FILE)
    log_file.parent.mkdir(parents=True, exist_ok=True)

    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO))
    root_logger.handlers.clear()

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(logging.INFO)
    console_handler.setFormatter(logging.Formatter(CONSOLE_FORMAT, datefmt=DATE_FORMAT))
    root_logger.addHandler(console_handler)

    file_handler = logging.FileHandler(log_file)
    file_handler.setLevel(logging.DEBUG)
    file_handler.setFormatter(logging.Formatter(FILE_FORMAT, datefmt=DATE_FORMAT))
    root_logger.addHandler(file_handler)

    overrides = apply_module_levels(settings.get_log_module_levels())

    root_logger.info(
        f"Logging initialized (level={settings.LOG_LEVEL}, file={log_file}, "
        f"overrides={sorted(overrides)})"
    )


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger for a module.

    Args:
        name: Module name (typically __name__)

    Returns:
        Logger instance
    """
    return logging.getLogger(name)
