"""Logging utilities for kustolint runs."""

from __future__ import annotations

import logging
from contextlib import contextmanager
from contextvars import ContextVar
from pathlib import Path
from typing import Iterator

_LOGGER_NAME = "kustolint"
_FILE_FORMAT = "%(asctime)s %(levelname)s %(name)s %(threadName)s [%(directory)s]: %(message)s"

_build_directory: ContextVar[str] = ContextVar("kustolint_build_directory", default="-")


class BuildContextFilter(logging.Filter):
    """Stamps records with the manifest directory the emitting thread is building."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.directory = _build_directory.get()
        return True


@contextmanager
def build_context(directory: str) -> Iterator[None]:
    """Tag log records emitted in this block with ``directory``."""
    token = _build_directory.set(directory)
    try:
        yield
    finally:
        _build_directory.reset(token)


def get_logger(name: str | None = None) -> logging.Logger:
    """Return a module-scoped logger under the kustolint hierarchy."""
    full_name = f"{_LOGGER_NAME}.{name}" if name else _LOGGER_NAME
    return logging.getLogger(full_name)


def configure_logging(
    *, verbose: bool = False, log_file: Path | None = None
) -> logging.Logger:
    """Configure the kustolint logger with a stderr handler and optional file sink."""
    level = logging.DEBUG if verbose else logging.INFO
    logger = logging.getLogger(_LOGGER_NAME)
    logger.setLevel(level)
    logger.propagate = False

    # Reset handlers to avoid duplicate output when the CLI is invoked multiple times.
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    stream_handler = logging.StreamHandler()
    stream_handler.setLevel(level)
    stream_handler.setFormatter(logging.Formatter("[kustolint] %(levelname)s %(message)s"))
    logger.addHandler(stream_handler)

    if log_file is not None:
        logger.addHandler(_file_handler(log_file, level))

    return logger


def attach_file_sink(log_file: Path) -> logging.Handler:
    """Add a debug-level file sink to the kustolint logger and return it.

    The caller detaches it with :func:`detach_file_sink`.
    """
    handler = _file_handler(log_file, logging.DEBUG)
    logging.getLogger(_LOGGER_NAME).addHandler(handler)
    return handler


def detach_file_sink(handler: logging.Handler) -> None:
    logging.getLogger(_LOGGER_NAME).removeHandler(handler)
    handler.close()


def _file_handler(log_file: Path, level: int) -> logging.Handler:
    handler = logging.FileHandler(log_file, encoding="utf-8")
    handler.setLevel(level)
    handler.addFilter(BuildContextFilter())
    handler.setFormatter(logging.Formatter(_FILE_FORMAT))
    return handler


__all__ = [
    "attach_file_sink",
    "build_context",
    "configure_logging",
    "detach_file_sink",
    "get_logger",
]
