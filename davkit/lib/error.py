#!/usr/bin/env python
import logging
import os
from collections import defaultdict
from typing import Dict
from typing import Optional
from typing import Type

from davkit import __version__

## one of DEBUG, DEVELOPMENT, PRODUCTION
debugmode = os.environ.get("PYTHON_DAVKIT_DEBUGMODE")
if not debugmode:
    if "dev" in __version__ or __version__ == "(unknown)":
        debugmode = "DEVELOPMENT"
    else:
        debugmode = "PRODUCTION"

log = logging.getLogger("davkit")
if debugmode.startswith("DEBUG"):
    log.setLevel(logging.DEBUG)
else:
    log.setLevel(logging.WARNING)


def weirdness(*reasons) -> None:
    """
    Logs a deviation from what a well-behaved server would send.  The
    caller is expected to carry on with some fallback value.
    """
    reason = " : ".join(str(x) for x in reasons)
    log.warning(f"Deviation from expectations found: {reason}")


class DAVError(Exception):
    url: Optional[str] = None
    reason: str = "no reason"

    def __init__(self, url: Optional[str] = None, reason: Optional[str] = None) -> None:
        if url:
            self.url = url
        if reason:
            self.reason = reason

    def __str__(self) -> str:
        return "%s at '%s', reason %s" % (
            self.__class__.__name__,
            self.url,
            self.reason,
        )


class MalformedRequestBody(DAVError):
    """
    The property request tree given to the serializer does not have
    the expected shape (i.e. several root elements, or an attribute
    marker that isn't a flat string mapping).
    """

    pass


class MalformedResponseBody(DAVError):
    """
    The server delivered something that isn't well-formed XML, or that
    has no multistatus element, while a multistatus document was expected.
    """

    pass


class UnexpectedShape(DAVError):
    """
    A multistatus document is missing some expected children.  This is
    never raised by the parser, it's passed to :func:`weirdness` and the
    parser degrades to fallback values.
    """

    pass


class TransportFailure(DAVError):
    """
    The HTTP exchange itself failed (connection refused, timeout, TLS
    problems, ...).  The original exception is available as __cause__.
    """

    pass


class NotFoundError(DAVError):
    pass


class PropfindError(TransportFailure):
    pass


class ReportError(TransportFailure):
    pass


class PutError(TransportFailure):
    pass


class DeleteError(TransportFailure):
    pass


exception_by_method: Dict[str, Type[TransportFailure]] = defaultdict(
    lambda: TransportFailure
)
for method in (
    "delete",
    "put",
    "report",
    "propfind",
):
    exception_by_method[method] = locals()[method[0].upper() + method[1:] + "Error"]
