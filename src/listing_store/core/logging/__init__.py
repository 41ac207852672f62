# src/listing_store/core/logging/
# ├─ __init__.py      # public API
# ├─ builder.py       # make_dict_config(settings) + setup_logging(settings) + queue wiring
# ├─ context.py       # request_context(): correlation id for one unit of work
# ├─ filters.py       # RequestIdFilter, RedactFilter (+ contextvar helpers)
# ├─ formatters.py    # JsonFormatter, ColorFormatter
# └─ handlers.py      # handler factories for dictConfig

from .builder import setup_logging, make_dict_config, stop_queue_logging
from .context import request_context
from .filters import set_request_id, get_request_id, reset_request_id, RequestIdFilter, RedactFilter

__all__ = [
    "setup_logging",
    "make_dict_config",
    "stop_queue_logging",
    "request_context",
    "set_request_id",
    "get_request_id",
    "reset_request_id",
    "RequestIdFilter",
    "RedactFilter",
]
