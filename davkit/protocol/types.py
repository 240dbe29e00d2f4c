"""
Core protocol types for the Sans-I/O DAV implementation.

These dataclasses represent HTTP requests and responses at the protocol level,
independent of any I/O implementation, together with the parsed results
handed back to library users.
"""

from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum
from typing import Any, Dict, List, Optional, Union

from davkit.lib.namespace import DAVNamespace
from davkit.lib.python_utilities import to_normal_str

## A value in a property request tree or in a parsed response: a scalar,
## a nested mapping or a list of repeated elements.  bool must be matched
## before int, as it's a subclass.
DAVValue = Union[
    bool, int, float, datetime, date, str, Dict[str, "DAVValue"], List["DAVValue"]
]

## Reserved keys in a property tree
ATTRIBUTES = "_attributes"
TEXT = "_text"


class DAVMethod(Enum):
    """WebDAV/CalDAV HTTP methods."""

    GET = "GET"
    PUT = "PUT"
    DELETE = "DELETE"
    PROPFIND = "PROPFIND"
    PROPPATCH = "PROPPATCH"
    REPORT = "REPORT"
    MKCALENDAR = "MKCALENDAR"
    MKCOL = "MKCOL"
    OPTIONS = "OPTIONS"


class DAVDepth(str, Enum):
    """Values of the Depth header."""

    ZERO = "0"
    ONE = "1"
    INFINITY = "infinity"


@dataclass(frozen=True)
class DAVProp:
    """
    A property to ask for, i.e. ``DAVProp("getetag", DAVNamespace.DAV)``.
    """

    name: str
    namespace: DAVNamespace = DAVNamespace.DAV


@dataclass(frozen=True)
class DAVRequest:
    """
    Represents an HTTP request to be made.

    This is a pure data structure with no I/O. It describes what request
    should be made, but does not make it.

    Attributes:
        method: HTTP method (GET, PUT, PROPFIND, etc.)
        url: Full URL for the request
        headers: HTTP headers as dict
        body: Request body (optional)
    """

    method: Union[DAVMethod, str]
    url: str
    headers: dict[str, str] = field(default_factory=dict)
    body: Union[str, bytes, None] = None

    @property
    def method_name(self) -> str:
        """The verb as sent on the wire, i.e. "PROPFIND" or "COPY"."""
        return getattr(self.method, "value", self.method)


@dataclass(frozen=True)
class DAVResponse:
    """
    Represents an HTTP response received.

    Attributes:
        status: HTTP status code
        reason: HTTP reason phrase
        url: Final URL (after redirects)
        headers: HTTP headers as dict
        body: Response body as bytes
    """

    status: int
    reason: str = ""
    url: str = ""
    headers: dict[str, str] = field(default_factory=dict)
    body: bytes = b""

    @property
    def ok(self) -> bool:
        """True if status indicates success (2xx)."""
        return 200 <= self.status < 300

    @property
    def content_type(self) -> str:
        for k, v in self.headers.items():
            if k.lower() == "content-type":
                return v
        return ""

    @property
    def is_xml(self) -> bool:
        return "xml" in self.content_type.lower()

    @property
    def text(self) -> str:
        return to_normal_str(self.body) or ""


@dataclass(frozen=True)
class MultistatusResult:
    """
    One ``response`` element of a multistatus document.

    Attributes:
        href: URL or path of the resource, as given by the server
        status: numeric status code from the response status line
        status_text: reason text from the response status line
        ok: False if the response carries an error element
        error: the parsed error element, if any
        responsedescription: human readable text from the server, if any
        props: properties of all propstat blocks merged, keyed by
            normalized (camelCased, prefix-less) property name
    """

    href: Optional[str]
    status: int
    status_text: str
    ok: bool
    error: Optional[DAVValue] = None
    responsedescription: Optional[DAVValue] = None
    props: Dict[str, DAVValue] = field(default_factory=dict)


@dataclass(frozen=True)
class RawResult:
    """
    A response that wasn't parsed, i.e. an error status, a non-XML
    content type, or parsing explicitly disabled.
    """

    href: str
    ok: bool
    status: int
    status_text: str
    raw: str


DAVResult = Union[MultistatusResult, RawResult]


def as_list(value: Any) -> list:
    """
    Some elements (response, propstat, ...) may be given once or
    several times.  Returns a list in any case.
    """
    if value is None:
        return []
    if isinstance(value, list):
        return value
    return [value]
