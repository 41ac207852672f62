import logging

import pytest

from listing_store.config import get_settings
from listing_store.core.logging.builder import setup_logging, stop_queue_logging


@pytest.fixture(autouse=True)
def restore_logging(request):
    """Tests in this package reconfigure logging; put the session setup back afterwards."""
    yield
    stop_queue_logging()
    setup_logging(get_settings())

    caplog_plugin = request.config.pluginmanager.getplugin("logging-plugin")
    handler = getattr(caplog_plugin, "caplog_handler", None) if caplog_plugin else None
    if handler is not None:
        logging.getLogger().addHandler(handler)
