#!/usr/bin/env python
"""
Collections are the containers of DAV resources - address books on a
CardDAV server, calendars on a CalDAV server.  This module holds what's
common to both; :mod:`davkit.addressbook` and :mod:`davkit.calendar`
build upon it.
"""
import logging
from dataclasses import dataclass
from dataclasses import field
from typing import Any
from typing import List
from typing import Mapping
from typing import Optional
from typing import Tuple
from typing import TYPE_CHECKING
from typing import Union

from davkit.lib import error
from davkit.lib.url import URL
from davkit.lib.url import url_equals
from davkit.protocol import DAVDepth
from davkit.protocol import DAVMethod
from davkit.protocol import DAVResult
from davkit.protocol import DAVValue
from davkit.protocol import MultistatusResult
from davkit.protocol.types import as_list

if TYPE_CHECKING:
    from davkit.davclient import DAVClient

log = logging.getLogger("davkit")


@dataclass
class DAVAccount:
    """
    Where the collections of an account are found.  Discovering those
    URLs is left to the caller.

    Attributes:
        root_url: the server root, hrefs in responses are relative to it
        home_url: the calendar home set or address book home set
        account_type: "caldav" or "carddav"
    """

    root_url: str
    home_url: Optional[str] = None
    account_type: str = "carddav"


@dataclass
class DAVCollection:
    url: str
    display_name: Optional[DAVValue] = None
    ctag: Optional[DAVValue] = None
    sync_token: Optional[DAVValue] = None
    resourcetype: Optional[DAVValue] = None
    reports: List[str] = field(default_factory=list)
    data: Optional[MultistatusResult] = None
    account: Optional[DAVAccount] = None


def has_value(value: Any) -> bool:
    """False for missing properties and empty elements"""
    return value is not None and value != "" and value != {}


def multistatus_results(results: List[DAVResult]) -> List[MultistatusResult]:
    """
    Drops raw results (error statuses, non-XML bodies), logging them.
    """
    ret = []
    for r in results:
        if isinstance(r, MultistatusResult):
            ret.append(r)
        else:
            log.warning("%s answered %s %s", r.href, r.status, r.status_text)
    return ret


def collection_query(
    client: "DAVClient",
    url: Union[str, URL],
    body: Union[Mapping[str, Any], str],
    depth: Union[DAVDepth, str, int, None] = None,
    default_namespace: Optional[str] = "d",
    headers: Optional[Mapping[str, Any]] = None,
) -> List[DAVResult]:
    """
    Sends a REPORT query to a collection.  The body is either a property
    request tree, or an XML document made by one of the builders in
    :mod:`davkit.protocol.xml_builders`.

    Returns:
        The results, or an empty list if the server found nothing
    """
    results = client.dav_request(
        url,
        DAVMethod.REPORT,
        body,
        namespace=default_namespace,
        headers={"Depth": depth, **(headers or {})},
        convert_incoming=not isinstance(body, (str, bytes)),
    )
    if (
        len(results) == 1
        and isinstance(results[0], MultistatusResult)
        and results[0].href is None
        and not results[0].props
    ):
        ## an empty multistatus
        return []
    return results


def supported_report_set(
    client: "DAVClient",
    url: Union[str, URL],
    headers: Optional[Mapping[str, Any]] = None,
) -> List[str]:
    """
    Asks the collection what REPORTs it supports.

    Returns:
        Report names as parsed, i.e. ``["syncCollection", "addressbookMultiget"]``
    """
    results = multistatus_results(
        client.propfind(
            url, {"d:supported-report-set": {}}, depth=DAVDepth.ZERO, headers=headers
        )
    )
    if not results:
        return []
    report_set = results[0].props.get("supportedReportSet")
    if not isinstance(report_set, dict):
        return []
    reports = []
    for supported in as_list(report_set.get("supportedReport")):
        report = supported.get("report") if isinstance(supported, dict) else None
        if isinstance(report, dict):
            reports.extend(k for k in report if not k.startswith("_"))
    return reports


def is_collection_dirty(
    client: "DAVClient",
    collection: DAVCollection,
    headers: Optional[Mapping[str, Any]] = None,
) -> Tuple[bool, Optional[str]]:
    """
    Compares the ctag of the collection with the one on the server.
    Both are compared as text.  Unquoted numeric ctags are coerced to
    numbers by the parser, so "0042" and "42" are taken for the same.

    Returns:
        (is_dirty, new_ctag)

    Raises:
        NotFoundError: if the server doesn't report the collection
    """
    results = multistatus_results(
        client.propfind(
            collection.url, {"cs:getctag": {}}, depth=DAVDepth.ZERO, headers=headers
        )
    )
    base = URL.objectify(collection.url)
    for result in results:
        if result.href is not None and url_equals(base.join(str(result.href)), base):
            ctag = result.props.get("getctag")
            new_ctag = str(ctag) if has_value(ctag) else None
            old_ctag = str(collection.ctag) if has_value(collection.ctag) else None
            return (old_ctag != new_ctag, new_ctag)
    raise error.NotFoundError(url=str(collection.url), reason="collection not found")
