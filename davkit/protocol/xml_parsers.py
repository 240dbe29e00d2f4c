"""
Pure functions for parsing DAV XML responses.

All functions in this module are pure - they take XML in and return
structured data out, with no side effects or I/O.

Parsing happens in two stages.  :func:`parse_xml` turns a document into a
compact tree of plain dicts and lists: element names are stripped of
their namespace prefix and camelCased, ``xmlns`` attributes are dropped
and text leaves are coerced to native values.  :func:`parse_multistatus`
then walks that tree into one :class:`MultistatusResult` per ``response``
element.
"""

import logging
import re
from typing import Any, Dict, List, Optional, Union

from lxml import etree
from lxml.etree import _Element

from davkit.lib import error

from .coercion import native_type, normalize_key
from .types import ATTRIBUTES, TEXT, DAVValue, MultistatusResult, as_list

log = logging.getLogger(__name__)

_STATUS_LINE = re.compile(r"^\S+\s(?P<status>\d+)\s(?P<status_text>.+)$")
_XML_NS = "http://www.w3.org/XML/1998/namespace"


def parse_xml(body: Union[str, bytes], huge_tree: bool = False) -> Dict[str, DAVValue]:
    """
    Parse an XML document into a compact tree.

    Args:
        body: The XML document
        huge_tree: Allow parsing very large XML documents

    Returns:
        ``{root_name: root_value}``

    Raises:
        MalformedResponseBody: If body is not well-formed XML
    """
    if isinstance(body, str):
        body = body.encode("utf-8")
    parser = etree.XMLParser(
        remove_blank_text=True,
        remove_comments=True,
        remove_pis=True,
        resolve_entities=False,
        huge_tree=huge_tree,
    )
    try:
        root = etree.fromstring(body, parser)
    except (etree.XMLSyntaxError, ValueError) as e:
        raise error.MalformedResponseBody(reason=str(e)) from e
    return {_element_name(root): _element_value(root)}


def _element_name(element: _Element) -> str:
    qname = etree.QName(element)
    if element.prefix:
        return normalize_key("%s:%s" % (element.prefix, qname.localname))
    return normalize_key(qname.localname)


def _attribute_name(element: _Element, key: str) -> str:
    qname = etree.QName(key)
    if not qname.namespace:
        return qname.localname
    if qname.namespace == _XML_NS:
        return "xml:%s" % qname.localname
    for prefix, uri in element.nsmap.items():
        if prefix and uri == qname.namespace:
            return "%s:%s" % (prefix, qname.localname)
    return qname.localname


def _declarations(element: _Element) -> Dict[str, str]:
    """
    The namespace declarations made on the element itself.  lxml keeps
    them out of ``attrib``, so they are taken from the difference between
    the nsmap of the element and the one of its parent.
    """
    parent = element.getparent()
    inherited = parent.nsmap if parent is not None else {}
    declarations = {}
    for prefix, uri in element.nsmap.items():
        if inherited.get(prefix) == uri:
            continue
        declarations["xmlns:%s" % prefix if prefix else "xmlns"] = uri
    return declarations


def _filter_attributes(attributes: Dict[str, str]) -> Dict[str, str]:
    return {k: v for k, v in attributes.items() if k != "xmlns"}


def _element_value(element: _Element) -> DAVValue:
    attributes = _declarations(element)
    attributes.update(
        {_attribute_name(element, k): v for k, v in element.attrib.items()}
    )
    attributes = _filter_attributes(attributes)
    children = [x for x in element if isinstance(x.tag, str)]
    text = (element.text or "").strip()

    if not children:
        if not attributes:
            return native_type(text) if text else {}
        value: Dict[str, DAVValue] = {ATTRIBUTES: attributes}
        if text:
            value[TEXT] = native_type(text)
        return value

    value = {}
    if attributes:
        value[ATTRIBUTES] = attributes
    if text:
        value[TEXT] = native_type(text)
    repeated = set()
    for child in children:
        name = _element_name(child)
        child_value = _element_value(child)
        if name not in value:
            value[name] = child_value
        elif name in repeated:
            value[name].append(child_value)
        else:
            value[name] = [value[name], child_value]
            repeated.add(name)
    return value


def _find_multistatus(tree: Dict[str, DAVValue]) -> DAVValue:
    """
    The general format is:
        <multistatus>
            <response>...</response>
            <response>...</response>
        </multistatus>

    but some servers wrap it in an outer <xml> element.
    """
    if "multistatus" in tree:
        return tree["multistatus"]
    for root in tree.values():
        if isinstance(root, dict) and "multistatus" in root:
            return root["multistatus"]
    raise error.MalformedResponseBody(
        reason="no multistatus element found, root is %s" % list(tree)
    )


def parse_multistatus(
    body: Union[str, bytes],
    status: int = 207,
    status_text: str = "Multi-Status",
    ok: bool = True,
    huge_tree: bool = False,
) -> List[MultistatusResult]:
    """
    Parse a 207 Multi-Status response body.

    Args:
        body: Raw XML response
        status: HTTP status of the whole exchange, used when a response
                element carries no (parseable) status line
        status_text: HTTP reason of the whole exchange
        ok: success flag of the whole exchange, used for empty responses
        huge_tree: Allow parsing very large XML documents

    Returns:
        One MultistatusResult per response element, in document order

    Raises:
        MalformedResponseBody: If body is not valid XML or has no
                               multistatus element
    """
    multistatus = _find_multistatus(parse_xml(body, huge_tree=huge_tree))
    if isinstance(multistatus, dict):
        responses = as_list(multistatus.get("response"))
    else:
        responses = []
    if not responses:
        error.weirdness(error.UnexpectedShape(reason="multistatus without response"))
        responses = [None]
    return [_parse_response(x, status, status_text, ok) for x in responses]


def _parse_response(
    response: Any, status: int, status_text: str, ok: bool
) -> MultistatusResult:
    if not response or not isinstance(response, dict):
        error.weirdness(error.UnexpectedShape(reason="empty response element"))
        return MultistatusResult(href=None, status=status, status_text=status_text, ok=ok)

    status_line = response.get("status")
    match = _STATUS_LINE.match(status_line) if isinstance(status_line, str) else None
    if match:
        status = int(match.group("status"))
        status_text = match.group("status_text")
    elif status_line is not None:
        error.weirdness(
            error.UnexpectedShape(reason="unparseable status line %r" % (status_line,))
        )

    err = response.get("error")
    return MultistatusResult(
        href=response.get("href"),
        status=status,
        status_text=status_text,
        ok=err is None,
        error=err,
        responsedescription=response.get("responsedescription"),
        props=_merge_props(response.get("href"), response.get("propstat")),
    )


def _merge_props(href: Optional[DAVValue], propstat: DAVValue) -> Dict[str, DAVValue]:
    """
    Folds the prop elements of all propstat blocks into one dict.  On
    collisions, the later block wins.
    """
    props: Dict[str, DAVValue] = {}
    for block in as_list(propstat):
        prop = block.get("prop") if isinstance(block, dict) else None
        if isinstance(prop, dict):
            props.update((k, v) for k, v in prop.items() if k not in (ATTRIBUTES, TEXT))
        else:
            log.debug("propstat without properties for %s: %r", href, block)
    return props
