# src/listing_store/core/logging/handlers.py
"""
Handler factories for logging.dictConfig.

Each function returns a handler configuration dict; the builder decides which of
them are wired in. Formatter and filter names ("json", "standard", "request_id",
"redact") must exist in the dictConfig built by builder.py.

| Handler         | Destination          | Levels        | Active when                          |
| --------------- | -------------------- | ------------- | ------------------------------------ |
| console         | stderr               | >= LOG_LEVEL  | always                               |
| file            | LOG_DIR/app.log      | >= LOG_LEVEL  | LOG_TO_STDOUT is false and LOG_DIR   |
| error_file      | LOG_DIR/errors.log   | >= ERROR      | LOG_TO_STDOUT is false and LOG_DIR   |
| error_console   | stderr (JSON)        | >= ERROR      | otherwise                            |
"""

from pathlib import Path

from listing_store.config.settings import Settings

_FILTERS = ["request_id", "redact"]


def _formatter_name(settings: Settings) -> str:
    return "json" if settings.LOG_FORMAT == "json" else "standard"


def get_console_handler(settings: Settings) -> dict:
    """
    Console (StreamHandler, stderr) at LOG_LEVEL, formatted per LOG_FORMAT.

    Add "stream": "ext://sys.stdout" to the returned dict to write to stdout instead.
    """
    return {
        "class": "logging.StreamHandler",
        "formatter": _formatter_name(settings),
        "level": settings.LOG_LEVEL,
        "filters": list(_FILTERS),
    }


def get_file_handler(settings: Settings) -> dict:
    return {
        "class": "logging.handlers.RotatingFileHandler",
        "formatter": _formatter_name(settings),
        "level": settings.LOG_LEVEL,
        "filename": str(Path(settings.LOG_DIR) / "app.log"),
        "maxBytes": settings.LOG_MAX_BYTES,
        "backupCount": settings.LOG_BACKUP_COUNT,
        "encoding": "utf-8",
        "filters": list(_FILTERS),
    }


# Errors go to their own rotating file, always as JSON.
def get_error_file_handler(settings: Settings) -> dict:
    return {
        "class": "logging.handlers.RotatingFileHandler",
        "formatter": "json",
        "level": "ERROR",
        "filename": str(Path(settings.LOG_DIR) / "errors.log"),
        "maxBytes": settings.LOG_MAX_BYTES,
        "backupCount": settings.LOG_BACKUP_COUNT,
        "encoding": "utf-8",
        "filters": list(_FILTERS),
    }


def get_error_console_handler(settings: Settings) -> dict:
    return {
        "class": "logging.StreamHandler",
        "formatter": "json",
        "level": "ERROR",
        "filters": list(_FILTERS),
    }
