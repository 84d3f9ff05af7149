"""Logging setup shared by the CLI, the pipeline and the tests.

Console output always goes to stdout. A dated file under ``LOG_DIR``
(default ``logs/``) records DEBUG and up unless ``LOG_TO_FILE=0``. HTTP and
SDK libraries are held at WARNING so per-request chatter from the fetcher
threads does not drown the pipeline log.
"""
from __future__ import annotations

import logging
import os
import sys
from datetime import datetime
from pathlib import Path

_FORMAT = "%(asctime)s  %(levelname)-8s  %(name)s  %(message)s"
_DATE_FMT = "%Y-%m-%d %H:%M:%S"
_NOISY_LOGGERS = ("urllib3", "httpx", "httpcore", "openai", "redis")
_configured = False


def _log_dir() -> Path:
    return Path(os.environ.get("LOG_DIR") or Path(__file__).resolve().parent.parent / "logs")


def _file_logging_enabled() -> bool:
    return os.environ.get("LOG_TO_FILE", "1").strip().lower() not in ("0", "false", "no")


def configure_logging(level: str | None = None) -> None:
    """Install handlers once; a later call only adjusts the console level."""
    global _configured
    level_name = (level or os.environ.get("LOG_LEVEL") or "INFO").upper()
    numeric = getattr(logging, level_name, logging.INFO)
    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    root = logging.getLogger()
    if _configured:
        for handler in root.handlers:
            if type(handler) is logging.StreamHandler:
                handler.setLevel(numeric)
        if root.level > numeric:
            root.setLevel(numeric)
        return
    _configured = True
    root.setLevel(numeric)

    # Someone (pytest, an embedding app) already owns the root handlers
    if root.handlers:
        return

    formatter = logging.Formatter(_FORMAT, datefmt=_DATE_FMT)
    console = logging.StreamHandler(sys.stdout)
    console.setLevel(numeric)
    console.setFormatter(formatter)
    root.addHandler(console)

    if not _file_logging_enabled():
        return
    try:
        log_dir = _log_dir()
        log_dir.mkdir(parents=True, exist_ok=True)
        fh = logging.FileHandler(log_dir / f"jobscout_{datetime.now():%Y-%m-%d}.log", encoding="utf-8")
    except OSError as exc:
        root.warning("File logging disabled: %s", exc)
        return
    fh.setLevel(logging.DEBUG)
    fh.setFormatter(formatter)
    root.addHandler(fh)
    root.setLevel(logging.DEBUG)


def get_logger(name: str) -> logging.Logger:
    """Return a named logger, configuring handlers on first use."""
    if not _configured:
        configure_logging()
    return logging.getLogger(name)
