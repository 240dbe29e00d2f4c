#!/usr/bin/env python
import logging

## must be set before the imports below, davkit.lib.error reads it
__version__ = "0.1.0"

from .async_davclient import AsyncDAVClient
from .davclient import DAVClient
from .davclient import get_davclient

# Silence notification of no default logging handler
log = logging.getLogger("davkit")


class NullHandler(logging.Handler):
    def emit(self, record) -> None:
        pass


log.addHandler(NullHandler())

__all__ = ["__version__", "AsyncDAVClient", "DAVClient", "get_davclient"]
