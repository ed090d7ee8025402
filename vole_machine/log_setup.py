"""
Vole Machine — Logging Setup

Console output goes through rich's RichHandler; an optional file handler
captures everything at DEBUG. Execution trace lines are logged on the
``vole_machine.trace`` logger at DEBUG, so ``-v`` on the CLI shows them live.

Log files: ``<log_dir>/<name>_YYYYMMDD_HHMMSS.log``
"""

from __future__ import annotations
import logging
from datetime import datetime
from pathlib import Path
from typing import Optional

from rich.console import Console
from rich.logging import RichHandler


def setup_logging(
    name: str = "vole_machine",
    console_level: int = logging.WARNING,
    log_dir: Optional[Path] = None,
    rich_tracebacks: bool = True,
) -> logging.Logger:
    """Configure and return the package logger.

    Calling it again replaces the handlers installed by the previous call,
    so the CLI can re-run it with a different level.
    """
    logger = logging.getLogger(name)
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    logger.setLevel(logging.DEBUG)

    # ── Console handler ──
    ch = RichHandler(
        console=Console(stderr=True),
        level=console_level,
        show_time=False,
        show_path=False,
        markup=False,
        rich_tracebacks=rich_tracebacks,
    )
    ch.setLevel(console_level)
    logger.addHandler(ch)

    # ── File handler: captures everything (DEBUG+) ──
    if log_dir is not None:
        log_dir = Path(log_dir)
        log_dir.mkdir(parents=True, exist_ok=True)
        ts = datetime.now().strftime("%Y%m%d_%H%M%S")
        log_file = log_dir / f"{name}_{ts}.log"
        fh = logging.FileHandler(str(log_file), encoding="utf-8")
        fh.setLevel(logging.DEBUG)
        fh.setFormatter(logging.Formatter(
            "%(asctime)s | %(levelname)-7s | %(name)s | %(funcName)s:%(lineno)d | %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        ))
        logger.addHandler(fh)
        logger.info("Log file: %s", log_file)

    return logger
