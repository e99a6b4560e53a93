"""Structured logging utilities for mfactor.

Every engine module logs through a ``StructuredLogger`` so that keyword
context (symbol counts, horizons, elapsed time) is kept separate from the
message text and can be rendered either as ``key=value`` pairs or as JSON.

Examples
--------
>>> from mfactor.logging import get_logger
>>> logger = get_logger(__name__)
>>> logger.info("Calculated multi-factor", symbols=3, dates=250)
"""

import logging
import json
import sys
import time
from functools import wraps
from typing import Any, Dict, Optional

ROOT_LOGGER = 'mfactor'


class StructuredFormatter(logging.Formatter):
    """Render log records as human-readable lines or JSON documents.

    Parameters
    ----------
    json_mode : bool, default False
        If True, output one JSON object per record.
    """

    def __init__(self, json_mode: bool = False):
        super().__init__()
        self.json_mode = json_mode

    def format(self, record: logging.LogRecord) -> str:
        if self.json_mode:
            return self._format_json(record)
        return self._format_human(record)

    def _format_json(self, record: logging.LogRecord) -> str:
        payload = {
            'timestamp': self.formatTime(record),
            'level': record.levelname,
            'logger': record.name,
            'message': record.getMessage(),
        }

        context = getattr(record, 'context', None)
        if context:
            payload['context'] = context

        if record.exc_info:
            payload['exception'] = self.formatException(record.exc_info)

        return json.dumps(payload, default=str)

    def _format_human(self, record: logging.LogRecord) -> str:
        line = f"{self.formatTime(record)} [{record.levelname:8}] {record.name}: {record.getMessage()}"

        context = getattr(record, 'context', None)
        if context:
            line = f"{line} | " + ' '.join(f"{k}={v}" for k, v in context.items())

        if record.exc_info:
            line = f"{line}\n{self.formatException(record.exc_info)}"

        return line


class StructuredLogger(logging.Logger):
    """Logger accepting keyword arguments as structured context.

    Examples
    --------
    >>> logger = StructuredLogger('mfactor.engine')
    >>> logger.warning("No calendar overlap", symbol='SOL')
    """

    def _log_with_context(self, level: int, msg: str, args: tuple,
                          exc_info: Any = None, extra: Optional[Dict] = None,
                          stack_info: bool = False, stacklevel: int = 1,
                          **context: Any) -> None:
        extra = dict(extra or {})
        extra['context'] = context
        super()._log(level, msg, args, exc_info, extra, stack_info, stacklevel + 1)

    def debug(self, msg: str, *args, **context) -> None:
        if self.isEnabledFor(logging.DEBUG):
            self._log_with_context(logging.DEBUG, msg, args, **context)

    def info(self, msg: str, *args, **context) -> None:
        if self.isEnabledFor(logging.INFO):
            self._log_with_context(logging.INFO, msg, args, **context)

    def warning(self, msg: str, *args, **context) -> None:
        if self.isEnabledFor(logging.WARNING):
            self._log_with_context(logging.WARNING, msg, args, **context)

    def error(self, msg: str, *args, **context) -> None:
        if self.isEnabledFor(logging.ERROR):
            self._log_with_context(logging.ERROR, msg, args, **context)

    def critical(self, msg: str, *args, **context) -> None:
        if self.isEnabledFor(logging.CRITICAL):
            self._log_with_context(logging.CRITICAL, msg, args, **context)


def _stream_handler(json_mode: bool) -> logging.Handler:
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(StructuredFormatter(json_mode=json_mode))
    return handler


def get_logger(name: str, json_mode: bool = False) -> StructuredLogger:
    """Get or create a structured logger.

    Loggers under the ``mfactor`` namespace share the handler installed on
    the package root logger; any other name gets its own stderr handler.

    Parameters
    ----------
    name : str
        Logger name (typically ``__name__``)
    json_mode : bool, default False
        Output JSON when a handler has to be created

    Returns
    -------
    StructuredLogger
    """
    logging.setLoggerClass(StructuredLogger)

    if name == ROOT_LOGGER or name.startswith(ROOT_LOGGER + '.'):
        root = logging.getLogger(ROOT_LOGGER)
        if not root.handlers:
            root.addHandler(_stream_handler(json_mode))
            root.setLevel(logging.WARNING)
        return logging.getLogger(name)

    logger = logging.getLogger(name)
    if not logger.handlers:
        logger.addHandler(_stream_handler(json_mode))
        logger.setLevel(logging.INFO)

    return logger


def configure_logging(level: int = logging.INFO, json_mode: bool = False) -> None:
    """Reset the ``mfactor`` root logger to a single stderr handler.

    Parameters
    ----------
    level : int, default logging.INFO
        Logging level
    json_mode : bool, default False
        If True, output all logs as JSON

    Examples
    --------
    >>> configure_logging(level=logging.DEBUG, json_mode=True)
    """
    logging.setLoggerClass(StructuredLogger)

    root = logging.getLogger(ROOT_LOGGER)
    root.setLevel(level)

    for handler in root.handlers[:]:
        root.removeHandler(handler)

    root.addHandler(_stream_handler(json_mode))


def log_execution_time(logger: Optional[logging.Logger] = None, label: Optional[str] = None):
    """Decorator logging the wall time of each call.

    Successful calls are logged at debug level, failures at error level
    before the exception is re-raised.

    Parameters
    ----------
    logger : logging.Logger, optional
        Logger to use. Defaults to the decorated function's module logger.
    label : str, optional
        Text used in the message instead of the function name.
    """
    def decorator(func):
        @wraps(func)
        def wrapper(*args, **kwargs):
            _logger = logger or get_logger(func.__module__)
            what = label or func.__name__
            start = time.perf_counter()
            try:
                result = func(*args, **kwargs)
            except Exception as e:
                _logger.error(f"{what} failed",
                              elapsed_ms=round((time.perf_counter() - start) * 1000, 2),
                              error=str(e))
                raise
            _logger.debug(f"{what} completed",
                          elapsed_ms=round((time.perf_counter() - start) * 1000, 2))
            return result
        return wrapper
    return decorator
