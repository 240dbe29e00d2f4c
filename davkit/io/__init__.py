"""
I/O layer for the DAV protocol.

This module provides sync and async implementations for executing
DAVRequest objects and returning DAVResponse objects.

The I/O layer is intentionally thin - it only handles HTTP transport
and digest authentication.  All protocol logic (XML building/parsing)
is in davkit.protocol.

Example (sync):
    from davkit.protocol import DAVProtocol
    from davkit.io import SyncIO

    protocol = DAVProtocol(base_url="https://dav.example.com")
    with SyncIO(username="user", password="secret") as io:
        request = protocol.propfind_request("/addressbooks/", {"d:displayname": {}})
        response = io.execute(request)
        results = protocol.parse_response(response)

Example (async):
    from davkit.protocol import DAVProtocol
    from davkit.io import AsyncIO

    protocol = DAVProtocol(base_url="https://dav.example.com")
    async with AsyncIO(username="user", password="secret") as io:
        request = protocol.propfind_request("/addressbooks/", {"d:displayname": {}})
        response = await io.execute(request)
        results = protocol.parse_response(response)
"""

from .base import AsyncIOProtocol, SyncIOProtocol
from .sync import SyncIO
from .async_ import AsyncIO

__all__ = [
    # Protocols
    "SyncIOProtocol",
    "AsyncIOProtocol",
    # Implementations
    "SyncIO",
    "AsyncIO",
]
