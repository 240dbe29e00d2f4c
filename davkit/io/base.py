"""
The contract between the clients and a transport.

A transport takes a fully built :class:`DAVRequest` (absolute URL, final
headers, serialized body), performs the one HTTP exchange it describes
(authentication included) and hands back a :class:`DAVResponse`.  It
doesn't interpret status codes; only a missing answer (connection
refused, timeout, TLS failure) is an error, raised as a
:class:`davkit.lib.error.TransportFailure` subclass.

Anything with matching ``execute`` and ``close`` methods will do, i.e. a
test double answering with canned responses.
"""

from typing import Protocol, runtime_checkable

from davkit.protocol.types import DAVRequest, DAVResponse


@runtime_checkable
class SyncIOProtocol(Protocol):
    """Blocking transport, used by :class:`davkit.davclient.DAVClient`."""

    def execute(self, request: DAVRequest) -> DAVResponse:
        ...

    def close(self) -> None:
        ...


@runtime_checkable
class AsyncIOProtocol(Protocol):
    """Transport for :class:`davkit.async_davclient.AsyncDAVClient`."""

    async def execute(self, request: DAVRequest) -> DAVResponse:
        ...

    async def close(self) -> None:
        ...
