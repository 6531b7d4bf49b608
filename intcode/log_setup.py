"""
Logging setup for drivers and tools built on the Intcode VM.

Library modules only call logging.getLogger(__name__); nothing in the
package attaches handlers on import. A driver that wants output calls
setup_logging() once:

  - console: rich RichHandler at `console_level` (WARNING by default),
             or a plain stderr StreamHandler with rich_console=False
  - file:    optional, everything at `level`, one timestamped file per
             process in `log_dir`

Calling it again for the same logger name returns the already
configured logger unchanged.
"""

from __future__ import annotations

import logging
import sys
from datetime import datetime
from pathlib import Path
from typing import Optional

from rich.logging import RichHandler


FILE_FORMAT = "%(asctime)s | %(levelname)-7s | %(name)s | %(funcName)s:%(lineno)d | %(message)s"
FILE_DATEFMT = "%Y-%m-%d %H:%M:%S"
CONSOLE_FORMAT = "%(asctime)s | %(levelname)-7s | %(message)s"
CONSOLE_DATEFMT = "%H:%M:%S"


def setup_logging(
    name: str = "intcode",
    level: int = logging.DEBUG,
    console_level: int = logging.WARNING,
    log_dir: Optional[Path] = None,
    rich_console: bool = True,
) -> logging.Logger:
    """Configure and return the `name` logger.

    Log files: ``<log_dir>/<name>_YYYYMMDD_HHMMSS.log``
    """
    logger = logging.getLogger(name)
    if logger.handlers:
        return logger
    logger.setLevel(level)

    if log_dir is not None:
        log_dir = Path(log_dir)
        log_dir.mkdir(parents=True, exist_ok=True)
        ts = datetime.now().strftime("%Y%m%d_%H%M%S")
        log_file = log_dir / f"{name}_{ts}.log"
        fh = logging.FileHandler(str(log_file), encoding="utf-8")
        fh.setLevel(level)
        fh.setFormatter(logging.Formatter(FILE_FORMAT, datefmt=FILE_DATEFMT))
        logger.addHandler(fh)

    if rich_console:
        ch = RichHandler(
            level=console_level,
            show_time=True,
            show_path=False,
            markup=False,
            rich_tracebacks=True,
        )
    else:
        ch = logging.StreamHandler(sys.stderr)
        ch.setFormatter(logging.Formatter(CONSOLE_FORMAT, datefmt=CONSOLE_DATEFMT))
    ch.setLevel(console_level)
    logger.addHandler(ch)

    logger.debug("Logger initialized: %s (console level %s)",
                 name, logging.getLevelName(console_level))
    return logger
