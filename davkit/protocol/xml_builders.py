"""
Pure functions for building DAV XML request bodies.

Request bodies are described as property request trees: nested mappings
keyed by element name, where a list stands for repeated sibling elements
and the reserved ``_attributes`` key holds the XML attributes of an
element.  All functions in this module are pure - they take data in and
return XML out, with no side effects or I/O.
"""
from datetime import date
from datetime import datetime
from datetime import timezone
from typing import Any
from typing import Dict
from typing import Iterator
from typing import Mapping
from typing import Optional
from typing import Sequence
from typing import Tuple
from typing import Union

from lxml import etree
from lxml.etree import _Element

from davkit.lib import error
from davkit.lib.namespace import dav_attributes
from davkit.lib.namespace import DAVNamespace
from davkit.lib.namespace import nsmap
from davkit.lib.namespace import short_name

from .types import ATTRIBUTES
from .types import DAVProp
from .types import TEXT

PropTree = Mapping[str, Any]

utc_tz = timezone.utc


def serialize(
    body: PropTree,
    namespace: Optional[str] = None,
    attributes: Optional[Mapping[str, str]] = None,
) -> str:
    """
    Converts a property request tree into an XML document.

    Args:
        body: tree with exactly one root element
        namespace: alias to prepend to every element name not carrying
                   a prefix already, at all depths
        attributes: attributes for the root element

    Returns:
        The XML document, starting with the XML declaration

    Raises:
        MalformedRequestBody: if the tree does not have the expected shape
    """
    if not isinstance(body, Mapping):
        raise error.MalformedRequestBody(
            reason="request body should be a mapping, not %s" % type(body).__name__
        )
    roots = [k for k in body if k not in (ATTRIBUTES, TEXT)]
    if len(roots) != 1:
        raise error.MalformedRequestBody(
            reason="exactly one root element expected, got %s" % roots
        )
    name = roots[0]
    value = body[name]
    if isinstance(value, list):
        raise error.MalformedRequestBody(reason="the root element %s is repeated" % name)

    root_attributes = dict(_check_attributes(name, _attributes_of(value)))
    root_attributes.update(_check_attributes(name, attributes))

    ## Namespace declarations of the root element.  Prefixes used in the
    ## document but never declared are looked up in the namespace table.
    scope = _declarations(root_attributes)
    used = list(_prefixes(name, value, namespace))
    used += [k.split(":", 1)[0] for k in root_attributes if ":" in k]
    for prefix in used:
        if prefix not in scope and prefix in nsmap:
            scope[prefix] = nsmap[prefix]

    try:
        root = _build(None, name, value, namespace, scope, root_attributes)
    except ValueError as e:
        ## lxml refuses invalid element and attribute names
        raise error.MalformedRequestBody(reason=str(e)) from e
    return etree.tostring(root, encoding="utf-8", xml_declaration=True).decode("utf-8")


def _qualify(name: Any, namespace: Optional[str]) -> str:
    if not isinstance(name, str) or not name:
        raise error.MalformedRequestBody(reason="invalid element name %r" % (name,))
    if namespace and ":" not in name:
        return "%s:%s" % (namespace, name)
    return name


def _attributes_of(value: Any) -> Optional[Mapping]:
    if isinstance(value, Mapping):
        return value.get(ATTRIBUTES)
    return None


def _check_attributes(name: str, attributes: Any) -> Iterator[Tuple[str, str]]:
    if attributes is None:
        return
    if not isinstance(attributes, Mapping):
        raise error.MalformedRequestBody(
            reason="attributes of %s should be a mapping, not %s"
            % (name, type(attributes).__name__)
        )
    for k, v in attributes.items():
        if not isinstance(k, str) or not isinstance(v, str):
            raise error.MalformedRequestBody(
                reason="attribute %r of %s is not a string to string entry" % (k, name)
            )
        yield k, v


def _declarations(attributes: Mapping[str, str]) -> Dict[Optional[str], str]:
    decl: Dict[Optional[str], str] = {}
    for k, v in attributes.items():
        if k == "xmlns":
            decl[None] = v
        elif k.startswith("xmlns:"):
            decl[k[6:]] = v
    return decl


def _prefixes(name: str, value: Any, namespace: Optional[str]) -> Iterator[str]:
    """All prefixes used for element and attribute names in a subtree"""
    if isinstance(value, list):
        for item in value:
            yield from _prefixes(name, item, namespace)
        return
    qname = _qualify(name, namespace)
    if ":" in qname:
        yield qname.split(":", 1)[0]
    if not isinstance(value, Mapping):
        return
    for k in _attributes_of(value) or {}:
        if isinstance(k, str) and ":" in k and not k.startswith("xmlns:"):
            yield k.split(":", 1)[0]
    for k, v in value.items():
        if k not in (ATTRIBUTES, TEXT):
            yield from _prefixes(k, v, namespace)


def _clark(name: str, scope: Mapping[Optional[str], str], default: bool = True) -> str:
    prefix, sep, local = name.partition(":")
    if not sep:
        if default and scope.get(None):
            return "{%s}%s" % (scope[None], name)
        return name
    if prefix not in scope:
        raise error.MalformedRequestBody(
            reason="unknown namespace prefix %r in %s, declare it with "
            "attributes={'xmlns:%s': <namespace uri>}" % (prefix, name, prefix)
        )
    return "{%s}%s" % (scope[prefix], local)


def _text(name: str, value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (int, float)):
        return str(value)
    if isinstance(value, (date, datetime)):
        return value.isoformat()
    if isinstance(value, bytes):
        return value.decode("utf-8")
    if isinstance(value, str):
        return value
    raise error.MalformedRequestBody(
        reason="unexpected value of type %s in %s" % (type(value).__name__, name)
    )


def _build(
    parent: Optional[_Element],
    name: str,
    value: Any,
    namespace: Optional[str],
    scope: Dict[Optional[str], str],
    attributes: Optional[Dict[str, str]] = None,
) -> _Element:
    name = _qualify(name, namespace)
    if attributes is None:
        attributes = dict(_check_attributes(name, _attributes_of(value)))

    if parent is None:
        declared = scope
    else:
        declared = _declarations(attributes)
        scope = {**scope, **declared}
    tag = _clark(name, scope)
    if parent is None:
        element = etree.Element(tag, nsmap=declared)
    else:
        element = etree.SubElement(parent, tag, nsmap=declared or None)

    for k, v in attributes.items():
        if k != "xmlns" and not k.startswith("xmlns:"):
            element.set(_clark(k, scope, default=False), v)

    if isinstance(value, Mapping):
        if TEXT in value:
            element.text = _text(name, value[TEXT])
        for child_name, child in value.items():
            if child_name in (ATTRIBUTES, TEXT):
                continue
            for item in child if isinstance(child, list) else [child]:
                if isinstance(item, list):
                    raise error.MalformedRequestBody(
                        reason="nested list in %s" % child_name
                    )
                _build(element, child_name, item, namespace, scope)
    elif value is not None:
        element.text = _text(name, value)
    return element


def format_props(props: Sequence[DAVProp]) -> Dict[str, dict]:
    """
    Turns property descriptors into a ``prop`` subtree, i.e.
    ``[DAVProp("getetag")]`` -> ``{"d:getetag": {}}``
    """
    tree: Dict[str, dict] = {}
    for prop in props:
        alias = short_name(prop.namespace)
        if alias is None:
            raise error.MalformedRequestBody(
                reason="unknown namespace %s for %s" % (prop.namespace, prop.name)
            )
        tree["%s:%s" % (alias, prop.name)] = {}
    return tree


def _prop_tree(props: Union[PropTree, Sequence[DAVProp], None]) -> PropTree:
    if props is None:
        return {}
    if isinstance(props, Mapping):
        return props
    return format_props(props)


def build_propfind_body(props: Union[PropTree, Sequence[DAVProp], None] = None) -> str:
    """
    Build PROPFIND request body XML.

    Args:
        props: prop subtree, or a list of property descriptors
    """
    return serialize(
        {
            "propfind": {
                ATTRIBUTES: dav_attributes(
                    [
                        DAVNamespace.CALDAV,
                        DAVNamespace.CALDAV_APPLE,
                        DAVNamespace.CALENDAR_SERVER,
                        DAVNamespace.CARDDAV,
                        DAVNamespace.DAV,
                    ]
                ),
                "prop": _prop_tree(props),
            }
        },
        namespace="d",
    )


def build_addressbook_query_body(
    props: Union[PropTree, Sequence[DAVProp]],
    filters: Optional[PropTree] = None,
) -> str:
    """
    Build addressbook-query REPORT request body (RFC 6352, section 8.6).
    By default all cards having a formatted name are matched.
    """
    if filters is None:
        filters = {"card:prop-filter": {ATTRIBUTES: {"name": "FN"}}}
    return serialize(
        {
            "card:addressbook-query": {
                ATTRIBUTES: dav_attributes([DAVNamespace.CARDDAV, DAVNamespace.DAV]),
                "d:prop": _prop_tree(props),
                "card:filter": filters,
            }
        }
    )


def build_calendar_query_body(
    props: Union[PropTree, Sequence[DAVProp]],
    filters: Optional[PropTree] = None,
    timezone: Optional[str] = None,
) -> str:
    """
    Build calendar-query REPORT request body (RFC 4791, section 7.8).
    Without filters, every object of the calendar is matched.
    """
    if filters is None:
        filters = {"c:comp-filter": {ATTRIBUTES: {"name": "VCALENDAR"}}}
    query: Dict[str, Any] = {
        ATTRIBUTES: dav_attributes(
            [
                DAVNamespace.CALDAV,
                DAVNamespace.CALENDAR_SERVER,
                DAVNamespace.CALDAV_APPLE,
                DAVNamespace.DAV,
            ]
        ),
        "d:prop": _prop_tree(props),
        "c:filter": filters,
    }
    if timezone:
        query["c:timezone"] = timezone
    return serialize({"c:calendar-query": query})


def _to_utc_date_string(ts: Union[date, datetime]) -> str:
    """coerce datetimes to UTC (assume localtime if nothing is given)"""
    if not isinstance(ts, datetime):
        ts = datetime(ts.year, ts.month, ts.day)
    return ts.astimezone(utc_tz).strftime("%Y%m%dT%H%M%SZ")


def build_time_range_filter(
    start: Optional[Union[date, datetime]] = None,
    end: Optional[Union[date, datetime]] = None,
    component: str = "VEVENT",
) -> PropTree:
    """
    A calendar-query filter matching ``component`` objects overlapping
    the given time range.
    """
    time_range = {}
    if start is not None:
        time_range["start"] = _to_utc_date_string(start)
    if end is not None:
        time_range["end"] = _to_utc_date_string(end)
    comp: Dict[str, Any] = {ATTRIBUTES: {"name": component}}
    if time_range:
        comp["c:time-range"] = {ATTRIBUTES: time_range}
    return {
        "c:comp-filter": {
            ATTRIBUTES: {"name": "VCALENDAR"},
            "c:comp-filter": comp,
        }
    }
