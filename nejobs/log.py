"""Logging setup for the ``nejobs`` package and its front ends.

Handlers hang off the package logger rather than the root logger, so the
Streamlit server and pytest keep control of their own output. Module loggers
outside the package (``app``, ``__main__``) are routed under it.
"""
from __future__ import annotations

import logging
import os
import sys
from datetime import date
from pathlib import Path

from dotenv import load_dotenv

PACKAGE = "nejobs"
DEFAULT_LOG_DIR = Path(__file__).resolve().parent.parent / "logs"

_formatter = logging.Formatter(
    "%(asctime)s  %(levelname)-8s  %(name)s  %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)
_console: logging.Handler | None = None


def _level_from_env() -> int:
    return getattr(logging, os.environ.get("LOG_LEVEL", "INFO").upper(), logging.INFO)


def _setup() -> logging.Logger:
    global _console
    pkg = logging.getLogger(PACKAGE)
    if _console is not None:
        return pkg

    # first module logger can be created before config.py loads .env
    load_dotenv()
    level = _level_from_env()
    pkg.setLevel(logging.DEBUG)
    pkg.propagate = False

    _console = logging.StreamHandler(sys.stdout)
    _console.setLevel(level)
    _console.setFormatter(_formatter)
    pkg.addHandler(_console)

    # urllib3 logs every retry/connection at DEBUG through requests
    logging.getLogger("urllib3").setLevel(max(level, logging.WARNING))

    if not os.environ.get("NEJOBS_NO_LOG_FILE"):
        try:
            log_dir = Path(os.environ.get("NEJOBS_LOG_DIR") or DEFAULT_LOG_DIR)
            log_dir.mkdir(parents=True, exist_ok=True)
            fh = logging.FileHandler(log_dir / f"nejobs_{date.today():%Y-%m-%d}.log", encoding="utf-8")
            fh.setLevel(logging.DEBUG)
            fh.setFormatter(_formatter)
            pkg.addHandler(fh)
        except OSError:
            pass
    return pkg


def get_logger(name: str) -> logging.Logger:
    """Named logger under the package logger; sets up handlers on first call."""
    _setup()
    if name != PACKAGE and not name.startswith(PACKAGE + "."):
        name = f"{PACKAGE}.{name}"
    return logging.getLogger(name)


def set_console_level(level: int | str) -> None:
    """Change what reaches stdout; the log file always gets DEBUG."""
    _setup()
    if isinstance(level, str):
        level = getattr(logging, level.upper(), logging.INFO)
    _console.setLevel(level)
