#!/usr/bin/env python
from enum import Enum
from types import MappingProxyType
from typing import Iterable
from typing import Mapping
from typing import Optional


class DAVNamespace(str, Enum):
    CALENDAR_SERVER = "http://calendarserver.org/ns/"
    CALDAV_APPLE = "http://apple.com/ns/ical/"
    CALDAV = "urn:ietf:params:xml:ns:caldav"
    CARDDAV = "urn:ietf:params:xml:ns:carddav"
    DAV = "DAV:"


class DAVNamespaceShort(str, Enum):
    CALENDAR_SERVER = "cs"
    CALDAV_APPLE = "ca"
    CALDAV = "c"
    CARDDAV = "card"
    DAV = "d"


## alias -> URI.  This is the one namespace table of the library, both the
## serializer (resolving prefixes) and the parsers refer to it.
nsmap: Mapping[str, str] = MappingProxyType(
    {DAVNamespaceShort[x.name].value: x.value for x in DAVNamespace}
)

_alias_by_uri: Mapping[str, str] = MappingProxyType(
    {uri: alias for alias, uri in nsmap.items()}
)


def short_name(namespace: str) -> Optional[str]:
    """Returns the alias of a namespace URI, or None if it's unknown"""
    return _alias_by_uri.get(getattr(namespace, "value", namespace))


def dav_attributes(namespaces: Iterable[DAVNamespace]) -> dict:
    """
    Namespace declarations for the root element of a request body,
    i.e. ``{"xmlns:d": "DAV:", "xmlns:card": "urn:...:carddav"}``
    """
    return {"xmlns:%s" % short_name(x): DAVNamespace(x).value for x in namespaces}
