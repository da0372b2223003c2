"""Logging bootstrap for applications embedding toolstream.

Library modules only ever call ``logging.getLogger(__name__)``; handlers are
installed here, once, by the host process.
"""

from __future__ import annotations

import logging
import logging.handlers
import os
from pathlib import Path
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from ..services.settings import Settings

__all__ = ["setup_logging", "setup_logging_from_settings", "LOG_FORMAT"]

LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
_LOG_FILE_NAME = "toolstream.log"
_LOG_FILE_MAX_BYTES = 1_000_000
_LOG_FILE_BACKUPS = 3
# Transport libraries log every request at INFO/DEBUG.
_NOISY_LOGGERS: tuple[str, ...] = ("asyncio", "httpx", "httpcore", "openai")
_active_log_path: Path | None = None


def setup_logging(
    level: int | str = logging.INFO,
    *,
    log_dir: Path | str | None = None,
    console: bool = True,
    force: bool = False,
) -> Path:
    """Route the root logger to ``<log_dir>/toolstream.log`` and optionally stderr.

    ``log_dir`` falls back to ``TOOLSTREAM_LOG_DIR``, then
    ``~/.toolstream/logs``. Later calls return the active log file untouched
    unless ``force`` is set.
    """

    global _active_log_path
    if _active_log_path is not None and not force:
        return _active_log_path

    numeric_level = _coerce_level(level)
    directory = Path(log_dir or os.environ.get("TOOLSTREAM_LOG_DIR") or Path.home() / ".toolstream" / "logs")
    directory = directory.expanduser()
    directory.mkdir(parents=True, exist_ok=True)
    log_path = directory / _LOG_FILE_NAME

    handlers: list[logging.Handler] = [
        logging.handlers.RotatingFileHandler(
            log_path, maxBytes=_LOG_FILE_MAX_BYTES, backupCount=_LOG_FILE_BACKUPS, encoding="utf-8"
        )
    ]
    if console:
        handlers.append(logging.StreamHandler())
    formatter = logging.Formatter(fmt=LOG_FORMAT, datefmt="%Y-%m-%d %H:%M:%S")
    for handler in handlers:
        handler.setFormatter(formatter)
    logging.basicConfig(level=numeric_level, handlers=handlers, force=True)

    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(max(numeric_level, logging.WARNING))

    _active_log_path = log_path
    return log_path


def setup_logging_from_settings(settings: "Settings", **kwargs: object) -> Path:
    """Configure logging at DEBUG when ``settings.debug_logging`` is on, INFO otherwise."""

    level = logging.DEBUG if settings.debug_logging else logging.INFO
    return setup_logging(level, **kwargs)  # type: ignore[arg-type]


def _coerce_level(level: int | str) -> int:
    if isinstance(level, int):
        return level
    resolved = logging.getLevelName(str(level).strip().upper())
    if not isinstance(resolved, int):
        raise ValueError(f"Unknown log level: {level!r}")
    return resolved
