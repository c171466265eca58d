"""Logging setup for the console agent: a rotating log file plus a quiet console."""

from __future__ import annotations

import logging
import logging.handlers
import os
from pathlib import Path

__all__ = ["setup_logging"]

_DEFAULT_LOG_DIR = Path.home() / ".notebook_agent" / "logs"
_LOG_FILENAME = "notebook_agent.log"
_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
# httpx logs full request URLs at INFO; gemini carries the API key in the query string.
_NOISY_LOGGERS: tuple[str, ...] = ("asyncio", "httpx", "httpcore", "openai")

_active_log_path: Path | None = None


def setup_logging(
    level: int = logging.INFO,
    *,
    log_dir: Path | str | None = None,
    console: bool = True,
    max_bytes: int = 1_000_000,
    backup_count: int = 3,
    force: bool = False,
) -> Path:
    """Route root logging to ``<log_dir>/notebook_agent.log`` and return that path.

    Repeated calls are no-ops unless ``force`` is set, which lets the front
    end raise the level once persisted settings ask for debug output.
    """

    global _active_log_path
    if _active_log_path is not None and not force:
        return _active_log_path

    log_path = _log_directory(log_dir) / _LOG_FILENAME
    log_path.parent.mkdir(parents=True, exist_ok=True)
    formatter = logging.Formatter(fmt=_FORMAT, datefmt="%Y-%m-%d %H:%M:%S")

    handlers: list[logging.Handler] = [_file_handler(log_path, level, max_bytes, backup_count)]
    if console:
        # The REPL shares the terminal; only warnings and worse go there.
        handlers.append(_console_handler(max(level, logging.WARNING)))
    for handler in handlers:
        handler.setFormatter(formatter)

    logging.basicConfig(level=level, handlers=handlers, force=True)
    logging.captureWarnings(True)
    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(max(level, logging.WARNING))

    _active_log_path = log_path
    return log_path


def _log_directory(log_dir: Path | str | None) -> Path:
    chosen = log_dir or os.environ.get("NOTEBOOK_AGENT_LOG_DIR") or _DEFAULT_LOG_DIR
    return Path(chosen).expanduser()


def _file_handler(path: Path, level: int, max_bytes: int, backup_count: int) -> logging.Handler:
    handler = logging.handlers.RotatingFileHandler(
        path, maxBytes=max_bytes, backupCount=backup_count, encoding="utf-8"
    )
    handler.setLevel(level)
    return handler


def _console_handler(level: int) -> logging.Handler:
    handler = logging.StreamHandler()
    handler.setLevel(level)
    return handler
