#!/usr/bin/env python
import logging

## Defined before anything else is imported, lib.error needs it
__version__ = "0.1.0"

# Silence notification of no default logging handler
log = logging.getLogger("webdavclient")


class NullHandler(logging.Handler):
    def emit(self, record) -> None:
        pass


log.addHandler(NullHandler())

from .async_davclient import AsyncDAVClient  # noqa: E402
from .davclient import DAVClient  # noqa: E402
from .davclient import get_davclient  # noqa: E402

__all__ = ["__version__", "AsyncDAVClient", "DAVClient", "get_davclient"]
