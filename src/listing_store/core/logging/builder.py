# src/listing_store/core/logging/builder.py
"""
Logging builder: create and apply a dictConfig logging configuration and optionally
wire a background QueueListener so log IO leaves the event loop thread.

  - make_dict_config(settings) builds the dictConfig mapping (pure, easy to test)
  - setup_logging(settings) applies it, and with LOG_USE_QUEUE moves the real
    handlers behind a QueueHandler / QueueListener pair
  - stop_queue_logging() flushes and stops the listener at shutdown

Settings are duck-typed: any object with the LOG_* / ENV / ENABLE_SQL_LOGGING
attributes works (tests pass SimpleNamespace objects). Optional knobs:
  - LOG_USE_QUEUE: bool, enable queue-backed logging
  - LOG_QUEUE_MAX_SIZE: int, > 0 bounds the queue (records are dropped when full)
  - LOG_QUEUE_BLOCKING: bool, block producers on a full bounded queue instead
"""

from __future__ import annotations

from pathlib import Path
import logging
import logging.config
import queue as _queue
import threading
from typing import Optional
from logging.handlers import QueueHandler, QueueListener

from listing_store.utils.logging import get_project_name

from .formatters import JsonFormatter, ColorFormatter
from .filters import RequestIdFilter, RedactFilter
from .handlers import (
    get_console_handler,
    get_file_handler,
    get_error_file_handler,
    get_error_console_handler,
)

from listing_store.config.settings import Settings

_QUEUE_LISTENER: Optional[QueueListener] = None
_QUEUE: Optional[_queue.Queue] = None

_DROPPED_LOGS_COUNT = 0
_DROPPED_LOGS_LOCK = threading.Lock()

# Third-party loggers that only get their own level, never extra handlers.
QUIET_LOGGERS = ("aiosqlite", "asyncio")


class NonBlockingQueueHandler(QueueHandler):
    """
    QueueHandler that drops (and counts) records instead of blocking producers when
    a bounded queue is full.
    """

    def emit(self, record: logging.LogRecord) -> None:
        global _DROPPED_LOGS_COUNT
        try:
            self.queue.put_nowait(self.prepare(record))
        except _queue.Full:
            with _DROPPED_LOGS_LOCK:
                _DROPPED_LOGS_COUNT += 1
            self.handleError(record)


def get_queue_stats() -> dict:
    """Small diagnostics about queue usage (dropped logs count)."""
    with _DROPPED_LOGS_LOCK:
        return {"dropped_logs": _DROPPED_LOGS_COUNT, "queue_present": _QUEUE is not None}


def _file_logging_enabled(settings: Settings) -> bool:
    return (not settings.LOG_TO_STDOUT) and bool(settings.LOG_DIR)


# -----------------------
# dictConfig builder
# -----------------------
def make_dict_config(settings: Settings) -> dict:
    """
    Build the dictConfig mapping:
      - formatters: "standard" (colour in text mode, plain otherwise) and "json"
      - filters: "request_id", "redact"
      - handlers: console plus either file/error_file or error_console
      - loggers: root, listing_store, sqlalchemy.engine and the quiet third-party ones
    """
    formatters = {
        "standard": {
            "()": ColorFormatter if settings.LOG_FORMAT == "text" else logging.Formatter,
            "format": "%(asctime)s | %(levelname)s | %(name)s | %(request_id)s | %(message)s",
        },
        "json": {
            "()": JsonFormatter,
            "env": settings.ENV,
            "service": get_project_name(default="listing-store"),
        },
    }

    filters = {
        "request_id": {"()": RequestIdFilter},
        "redact": {"()": RedactFilter},
    }

    handlers: dict[str, dict] = {"console": get_console_handler(settings)}

    if _file_logging_enabled(settings):
        handlers["file"] = get_file_handler(settings)
        handlers["error_file"] = get_error_file_handler(settings)
    else:
        handlers["error_console"] = get_error_console_handler(settings)

    loggers = {
        "": {
            "handlers": list(handlers.keys()),
            "level": settings.LOG_LEVEL,
            "propagate": True,
        },
        "listing_store": {
            "level": settings.LOG_LEVEL,
            "propagate": True,
        },
        # SQL logging may contain parameter values
        "sqlalchemy.engine": {
            "level": "DEBUG" if settings.ENABLE_SQL_LOGGING else "WARNING",
            "handlers": ["console"],
            "propagate": False,
        },
    }
    for name in QUIET_LOGGERS:
        loggers[name] = {"level": "WARNING", "propagate": True}

    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": formatters,
        "filters": filters,
        "handlers": handlers,
        "loggers": loggers,
    }


# --------------------------
# Entrypoint: setup & optional queue wiring
# --------------------------
def setup_logging(settings: Settings) -> None:
    """
    Apply the logging configuration, then optionally switch to queue-backed logging.

    With LOG_USE_QUEUE the handlers created by dictConfig are detached from every
    logger and handed to a QueueListener thread; the root logger gets a QueueHandler
    carrying RequestIdFilter and RedactFilter, so the correlation id is read in the
    producing context (where the contextvar is set) before the record is queued.
    """
    global _QUEUE_LISTENER, _QUEUE

    # a previous queue listener would otherwise keep the old handlers alive
    stop_queue_logging()

    if _file_logging_enabled(settings):
        Path(settings.LOG_DIR).mkdir(parents=True, exist_ok=True)

    logging.config.dictConfig(make_dict_config(settings))

    # safety net so %(request_id)s is always present on root records
    logging.getLogger().addFilter(RequestIdFilter())

    if not getattr(settings, "LOG_USE_QUEUE", False):
        return

    max_size = getattr(settings, "LOG_QUEUE_MAX_SIZE", 0) or 0
    blocking = bool(getattr(settings, "LOG_QUEUE_BLOCKING", False))

    root_logger = logging.getLogger()
    current_handlers = list(root_logger.handlers)
    if not current_handlers:
        return

    handlers_to_move = set(current_handlers)
    for logger_obj in list(logging.Logger.manager.loggerDict.values()):
        if isinstance(logger_obj, logging.Logger):
            for h in list(logger_obj.handlers):
                if h in handlers_to_move:
                    logger_obj.removeHandler(h)
    for h in list(root_logger.handlers):
        if h in handlers_to_move:
            root_logger.removeHandler(h)

    log_queue: _queue.Queue = _queue.Queue(max_size) if max_size > 0 else _queue.Queue()

    if max_size > 0 and not blocking:
        qh: QueueHandler = NonBlockingQueueHandler(log_queue)
    else:
        qh = QueueHandler(log_queue)

    listener = QueueListener(log_queue, *current_handlers, respect_handler_level=True)
    listener.start()

    qh.addFilter(RequestIdFilter())
    qh.addFilter(RedactFilter())
    root_logger.addHandler(qh)

    _QUEUE_LISTENER = listener
    _QUEUE = log_queue


def stop_queue_logging() -> None:
    """Stop the QueueListener (flushing queued records) and clear module refs."""
    global _QUEUE_LISTENER, _QUEUE
    listener = _QUEUE_LISTENER
    if listener is None:
        return

    try:
        listener.stop()
    except Exception:
        logging.getLogger(__name__).exception("Failed to stop QueueListener cleanly")
    finally:
        _QUEUE_LISTENER = None
        _QUEUE = None
