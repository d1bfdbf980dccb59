"""
Structured logging for evmtx.

All loggers live under the ``evmtx`` namespace. The package attaches a
NullHandler so nothing is printed unless the application configures
logging (or calls :func:`configure_logging`).

Context is passed through ``extra={...}``; the default formatter appends
any extra fields to the message.
"""

from __future__ import annotations

import logging
from types import TracebackType
from typing import Optional, Type, Union

ROOT_LOGGER_NAME = "evmtx"
DEFAULT_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s%(context)s"

_STANDARD_ATTRS = frozenset(
    logging.LogRecord("", 0, "", 0, "", None, None).__dict__.keys()
) | {"message", "asctime", "context"}

logging.getLogger(ROOT_LOGGER_NAME).addHandler(logging.NullHandler())


class ContextFormatter(logging.Formatter):
    """Formatter that renders ``extra`` fields as ``key=value`` pairs."""

    def format(self, record: logging.LogRecord) -> str:
        extras = {
            key: value
            for key, value in record.__dict__.items()
            if key not in _STANDARD_ATTRS and not key.startswith("_")
        }
        record.context = (
            " " + " ".join(f"{key}={value}" for key, value in sorted(extras.items()))
            if extras
            else ""
        )
        return super().format(record)


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger inside the evmtx namespace.

    Args:
        name: Usually ``__name__`` of the calling module.

    Returns:
        Logger named ``evmtx.<...>``
    """
    if name == ROOT_LOGGER_NAME or name.startswith(ROOT_LOGGER_NAME + "."):
        return logging.getLogger(name)
    return logging.getLogger(f"{ROOT_LOGGER_NAME}.{name}")


def configure_logging(
    level: Union[int, str] = logging.INFO,
    fmt: str = DEFAULT_FORMAT,
    handler: Optional[logging.Handler] = None,
) -> logging.Logger:
    """
    Attach a handler to the evmtx root logger.

    Calling this more than once replaces the previously configured handler.
    """
    root = logging.getLogger(ROOT_LOGGER_NAME)
    for existing in list(root.handlers):
        if getattr(existing, "_evmtx_configured", False):
            root.removeHandler(existing)

    handler = handler or logging.StreamHandler()
    handler.setFormatter(ContextFormatter(fmt))
    handler._evmtx_configured = True  # type: ignore[attr-defined]
    root.addHandler(handler)
    root.setLevel(level)
    return root


def set_level(level: Union[int, str]) -> None:
    logging.getLogger(ROOT_LOGGER_NAME).setLevel(level)


def enable_debug() -> None:
    set_level(logging.DEBUG)


def disable_logging() -> None:
    """Silence every evmtx logger, children included."""
    set_level(logging.CRITICAL + 1)


class LogContext:
    """
    Temporarily change the evmtx log level.

    Example:
        ```python
        with LogContext(logging.DEBUG):
            client.send(to, value)
        ```
    """

    def __init__(self, level: Union[int, str]) -> None:
        self._level = level
        self._previous: Optional[int] = None

    def __enter__(self) -> "LogContext":
        root = logging.getLogger(ROOT_LOGGER_NAME)
        self._previous = root.level
        root.setLevel(self._level)
        return self

    def __exit__(
        self,
        exc_type: Optional[Type[BaseException]],
        exc: Optional[BaseException],
        tb: Optional[TracebackType],
    ) -> None:
        if self._previous is not None:
            logging.getLogger(ROOT_LOGGER_NAME).setLevel(self._previous)
