#!/usr/bin/env python
"""
CalDAV (RFC 4791) calendars and the calendar objects in them.
"""
import logging
from dataclasses import dataclass
from dataclasses import field
from datetime import date
from datetime import datetime
from typing import Any
from typing import List
from typing import Mapping
from typing import Optional
from typing import Sequence
from typing import TYPE_CHECKING
from typing import Union

import icalendar

from davkit.collection import collection_query
from davkit.collection import DAVAccount
from davkit.collection import DAVCollection
from davkit.collection import has_value
from davkit.collection import multistatus_results
from davkit.collection import supported_report_set
from davkit.lib.namespace import DAVNamespace
from davkit.lib.url import URL
from davkit.protocol import ATTRIBUTES
from davkit.protocol import DAVDepth
from davkit.protocol import DAVProp
from davkit.protocol import DAVResponse
from davkit.protocol import DAVResult
from davkit.protocol import DAVValue
from davkit.protocol import MultistatusResult
from davkit.protocol.types import as_list
from davkit.protocol.xml_builders import build_calendar_query_body
from davkit.protocol.xml_builders import build_time_range_filter

if TYPE_CHECKING:
    from davkit.davclient import DAVClient

log = logging.getLogger("davkit")

ICAL_CONTENT_TYPE = "text/calendar; charset=utf-8"


@dataclass
class DAVCalendar(DAVCollection):
    description: Optional[DAVValue] = None
    color: Optional[DAVValue] = None
    components: List[str] = field(default_factory=list)


@dataclass
class DAVCalendarObject:
    url: str
    etag: Optional[DAVValue] = None
    calendar_data: Optional[str] = None
    data: Optional[MultistatusResult] = None
    calendar: Optional[DAVCalendar] = None

    @property
    def icalendar_instance(self) -> Optional[icalendar.Calendar]:
        """The calendar data parsed by icalendar, or None if there is no data"""
        if not self.calendar_data:
            return None
        return icalendar.Calendar.from_ical(self.calendar_data)


def _is_calendar(resourcetype: DAVValue) -> bool:
    return isinstance(resourcetype, dict) and "calendar" in resourcetype


def _components(component_set: DAVValue) -> List[str]:
    ## <c:supported-calendar-component-set><c:comp name="VEVENT"/>...
    if not isinstance(component_set, dict):
        return []
    ret = []
    for comp in as_list(component_set.get("comp")):
        if isinstance(comp, dict) and "name" in comp.get(ATTRIBUTES, {}):
            ret.append(comp[ATTRIBUTES]["name"])
    return ret


def calendar_query(
    client: "DAVClient",
    url: Union[str, URL],
    props: Sequence[DAVProp],
    filters: Optional[Mapping[str, Any]] = None,
    timezone: Optional[str] = None,
    depth: Union[DAVDepth, str, int, None] = None,
    headers: Optional[Mapping[str, Any]] = None,
) -> List[DAVResult]:
    """
    Sends a calendar-query REPORT.  Without filters, every object of the
    calendar is matched.
    """
    return collection_query(
        client,
        url,
        build_calendar_query_body(props, filters, timezone),
        depth=depth,
        headers=headers,
    )


def fetch_calendars(
    client: "DAVClient",
    account: DAVAccount,
    headers: Optional[Mapping[str, Any]] = None,
) -> List[DAVCalendar]:
    """
    Lists the calendars below the home URL (calendar home set) of the
    account.
    """
    results = multistatus_results(
        client.propfind(
            account.home_url,
            [
                DAVProp("calendar-description", DAVNamespace.CALDAV),
                DAVProp("calendar-timezone", DAVNamespace.CALDAV),
                DAVProp("displayname", DAVNamespace.DAV),
                DAVProp("getctag", DAVNamespace.CALENDAR_SERVER),
                DAVProp("resourcetype", DAVNamespace.DAV),
                DAVProp("supported-calendar-component-set", DAVNamespace.CALDAV),
                DAVProp("sync-token", DAVNamespace.DAV),
                DAVProp("calendar-color", DAVNamespace.CALDAV_APPLE),
            ],
            depth=DAVDepth.ONE,
            headers=headers,
        )
    )
    calendars = []
    for r in results:
        if not _is_calendar(r.props.get("resourcetype")):
            continue
        url = str(URL.objectify(account.root_url).join(str(r.href)))
        calendars.append(
            DAVCalendar(
                url=url,
                display_name=r.props.get("displayname"),
                ctag=r.props.get("getctag"),
                sync_token=r.props.get("syncToken"),
                resourcetype=r.props.get("resourcetype"),
                reports=supported_report_set(client, url, headers=headers),
                data=r,
                account=account,
                description=r.props.get("calendarDescription"),
                color=r.props.get("calendarColor"),
                components=_components(r.props.get("supportedCalendarComponentSet")),
            )
        )
    return calendars


def fetch_calendar_objects(
    client: "DAVClient",
    calendar: DAVCalendar,
    start: Optional[Union[date, datetime]] = None,
    end: Optional[Union[date, datetime]] = None,
    component: str = "VEVENT",
    headers: Optional[Mapping[str, Any]] = None,
) -> List[DAVCalendarObject]:
    """
    Fetches the objects of a calendar with their etags.  If start or end
    is given, only ``component`` objects overlapping that time range are
    returned.
    """
    filters = None
    if start is not None or end is not None:
        filters = build_time_range_filter(start, end, component)
    results = calendar_query(
        client,
        calendar.url,
        [
            DAVProp("getetag", DAVNamespace.DAV),
            DAVProp("calendar-data", DAVNamespace.CALDAV),
        ],
        filters=filters,
        depth=DAVDepth.ONE,
        headers=headers,
    )
    root = calendar.account.root_url if calendar.account else calendar.url
    objects = []
    for r in multistatus_results(results):
        calendar_data = r.props.get("calendarData")
        objects.append(
            DAVCalendarObject(
                url=str(URL.objectify(root).join(str(r.href))),
                etag=r.props.get("getetag"),
                calendar_data=str(calendar_data) if has_value(calendar_data) else None,
                data=r,
                calendar=calendar,
            )
        )
    return objects


def _ical_text(ical: Any) -> Union[str, bytes]:
    if isinstance(ical, icalendar.Calendar):
        return ical.to_ical()
    return ical


def create_calendar_object(
    client: "DAVClient",
    calendar: DAVCalendar,
    ical: Union[str, bytes, icalendar.Calendar],
    filename: str,
    headers: Optional[Mapping[str, Any]] = None,
) -> DAVResponse:
    """
    Stores a new object in the calendar.

    Args:
        ical: the iCalendar data, as text or as an icalendar.Calendar
        filename: name of the new resource, i.e. "meeting.ics"
    """
    return client.create_object(
        URL.objectify(calendar.url).join(filename),
        _ical_text(ical),
        headers={"Content-Type": ICAL_CONTENT_TYPE, **(headers or {})},
    )


def update_calendar_object(
    client: "DAVClient",
    calendar_object: DAVCalendarObject,
    headers: Optional[Mapping[str, Any]] = None,
) -> DAVResponse:
    ## an unquoted numeric etag has been coerced to a number, see update_vcard
    return client.update_object(
        calendar_object.url,
        calendar_object.calendar_data,
        calendar_object.etag,
        headers={"Content-Type": ICAL_CONTENT_TYPE, **(headers or {})},
    )


def delete_calendar_object(
    client: "DAVClient",
    calendar_object: DAVCalendarObject,
    headers: Optional[Mapping[str, Any]] = None,
) -> DAVResponse:
    return client.delete_object(
        calendar_object.url, calendar_object.etag, headers=headers
    )
