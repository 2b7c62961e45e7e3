"""Logging setup with Rich output on stderr."""
from __future__ import annotations

import logging
import os
from typing import Optional

from rich.console import Console
from rich.logging import RichHandler

DEFAULT_LEVEL = 'WARNING'

_console: Optional[Console] = None


def get_console() -> Console:
    global _console
    if _console is None:
        _console = Console(stderr=True)
    return _console


def setup_logging(level: Optional[str] = None) -> None:
    """
    Configure the root logger once for command line use. The level falls
    back to ARKFMT_LOG_LEVEL, then WARNING.
    """
    level = (level or os.getenv('ARKFMT_LOG_LEVEL') or DEFAULT_LEVEL).upper()

    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, level, logging.WARNING))
    root_logger.handlers.clear()
    root_logger.addHandler(RichHandler(
        console=get_console(),
        show_path=False,
        show_time=False,
        rich_tracebacks=True,
    ))


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)
