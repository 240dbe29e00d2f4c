#!/usr/bin/env python
# -*- encoding: utf-8 -*-
"""
Tests for collections, address books and calendars.  A DAVClient is
wired to a transport that answers with canned multistatus documents, so
the whole stack from request building to result parsing is exercised.
"""
from datetime import datetime
from datetime import timezone

import icalendar
import pytest
from lxml import etree

from davkit import DAVClient
from davkit.addressbook import create_vcard
from davkit.addressbook import DAVAddressBook
from davkit.addressbook import DAVVCard
from davkit.addressbook import delete_vcard
from davkit.addressbook import fetch_address_books
from davkit.addressbook import fetch_vcards
from davkit.addressbook import update_vcard
from davkit.calendar import create_calendar_object
from davkit.calendar import DAVCalendar
from davkit.calendar import DAVCalendarObject
from davkit.calendar import delete_calendar_object
from davkit.calendar import fetch_calendar_objects
from davkit.calendar import fetch_calendars
from davkit.calendar import update_calendar_object
from davkit.collection import collection_query
from davkit.collection import DAVAccount
from davkit.collection import DAVCollection
from davkit.collection import is_collection_dirty
from davkit.collection import supported_report_set
from davkit.lib import error
from davkit.protocol import DAVMethod
from davkit.protocol import DAVResponse

ROOT = "https://dav.example.com/"

VCARD = "BEGIN:VCARD\nVERSION:3.0\nFN:Alice Example\nN:Example;Alice;;;\nUID:alice\nEND:VCARD"

EVENT = """BEGIN:VCALENDAR
VERSION:2.0
PRODID:-//davkit//tests//EN
BEGIN:VEVENT
UID:meeting-1
DTSTAMP:20240301T080000Z
DTSTART:20240301T100000Z
DTEND:20240301T110000Z
SUMMARY:Planning meeting
END:VEVENT
END:VCALENDAR"""


class FakeIO:
    """Answers every request with the next canned response"""

    def __init__(self, *bodies):
        self.responses = [
            DAVResponse(
                status=207,
                reason="Multi-Status",
                headers={"Content-Type": "application/xml; charset=utf-8"},
                body=x.encode("utf-8"),
            )
            if isinstance(x, str)
            else x
            for x in bodies
        ]
        self.requests = []

    def execute(self, request):
        self.requests.append(request)
        return self.responses.pop(0)

    def close(self):
        pass


def multistatus(*responses):
    return (
        '<d:multistatus xmlns:d="DAV:" xmlns:cs="http://calendarserver.org/ns/" '
        'xmlns:card="urn:ietf:params:xml:ns:carddav" '
        'xmlns:c="urn:ietf:params:xml:ns:caldav" '
        'xmlns:ca="http://apple.com/ns/ical/">%s</d:multistatus>' % "".join(responses)
    )


def response(href, props="", status="HTTP/1.1 200 OK"):
    return (
        "<d:response><d:href>%s</d:href><d:propstat><d:prop>%s</d:prop>"
        "<d:status>%s</d:status></d:propstat></d:response>" % (href, props, status)
    )


def report_set(href, *reports):
    return multistatus(
        response(
            href,
            "<d:supported-report-set>%s</d:supported-report-set>"
            % "".join(
                "<d:supported-report><d:report>%s</d:report></d:supported-report>" % x
                for x in reports
            ),
        )
    )


def client_with(*bodies):
    io = FakeIO(*bodies)
    return DAVClient(ROOT, io=io), io


def body_of(request):
    return etree.fromstring(request.body.encode("utf-8"))


@pytest.fixture
def carddav_account():
    return DAVAccount(
        root_url=ROOT,
        home_url=ROOT + "dav/addressbooks/alice/",
        account_type="carddav",
    )


@pytest.fixture
def caldav_account():
    return DAVAccount(
        root_url=ROOT,
        home_url=ROOT + "dav/calendars/alice/",
        account_type="caldav",
    )


class TestCollection:
    def test_collection_query(self):
        client, io = client_with(
            multistatus(response("/dav/ab/1.vcf", '<d:getetag>"1"</d:getetag>'))
        )
        results = collection_query(
            client,
            ROOT + "dav/ab/",
            {"addressbook-query": {"d:prop": {"d:getetag": {}}}},
            depth=1,
            default_namespace="card",
        )
        request = io.requests[0]
        assert request.method == DAVMethod.REPORT
        assert request.headers["Depth"] == "1"
        assert body_of(request).tag == "{urn:ietf:params:xml:ns:carddav}addressbook-query"
        assert len(results) == 1
        assert results[0].props["getetag"] == '"1"'

    def test_collection_query_empty(self):
        client, io = client_with('<d:multistatus xmlns:d="DAV:"/>')
        assert collection_query(client, ROOT, {"d:sync-collection": {}}) == []

    def test_supported_report_set(self):
        client, io = client_with(
            report_set(
                "/dav/ab/", "<d:sync-collection/>", "<card:addressbook-multiget/>"
            )
        )
        assert supported_report_set(client, ROOT + "dav/ab/") == [
            "syncCollection",
            "addressbookMultiget",
        ]
        assert io.requests[0].headers["Depth"] == "0"

    def test_supported_report_set_error(self):
        client, io = client_with(
            DAVResponse(status=403, reason="Forbidden", body=b"no")
        )
        assert supported_report_set(client, ROOT + "dav/ab/") == []

    def test_is_collection_dirty(self):
        collection = DAVCollection(url=ROOT + "dav/ab/", ctag=42)
        client, io = client_with(
            multistatus(response("/dav/ab/", "<cs:getctag>43</cs:getctag>")),
            multistatus(response("/dav/ab", "<cs:getctag>42</cs:getctag>")),
        )
        assert is_collection_dirty(client, collection) == (True, "43")
        assert is_collection_dirty(client, collection) == (False, "42")
        assert io.requests[0].method == DAVMethod.PROPFIND
        assert io.requests[0].headers["Depth"] == "0"

    def test_is_collection_dirty_not_found(self):
        collection = DAVCollection(url=ROOT + "dav/ab/", ctag="42")
        client, io = client_with(
            multistatus(response("/dav/other/", "<cs:getctag>43</cs:getctag>"))
        )
        with pytest.raises(error.NotFoundError):
            is_collection_dirty(client, collection)


class TestAddressBook:
    def test_fetch_address_books(self, carddav_account):
        client, io = client_with(
            multistatus(
                response(
                    "/dav/addressbooks/alice/",
                    "<d:resourcetype><d:collection/></d:resourcetype>",
                ),
                response(
                    "/dav/addressbooks/alice/contacts/",
                    "<d:displayname>Contacts</d:displayname>"
                    "<cs:getctag>7</cs:getctag>"
                    "<d:sync-token>http://dav.example.com/sync/3</d:sync-token>"
                    "<d:resourcetype><d:collection/><card:addressbook/></d:resourcetype>",
                ),
            ),
            report_set("/dav/addressbooks/alice/contacts/", "<d:sync-collection/>"),
        )
        books = fetch_address_books(client, carddav_account)

        assert len(books) == 1
        book = books[0]
        assert book.url == ROOT + "dav/addressbooks/alice/contacts/"
        assert book.display_name == "Contacts"
        assert book.ctag == 7
        assert book.sync_token == "http://dav.example.com/sync/3"
        assert book.resourcetype == {"collection": {}, "addressbook": {}}
        assert book.reports == ["syncCollection"]
        assert book.account is carddav_account

        propfind = io.requests[0]
        assert propfind.method == DAVMethod.PROPFIND
        assert propfind.url == ROOT + "dav/addressbooks/alice/"
        assert propfind.headers["Depth"] == "1"
        asked = [x.tag for x in body_of(propfind).find("{DAV:}prop")]
        assert "{http://calendarserver.org/ns/}getctag" in asked
        assert io.requests[1].url == book.url

    def test_fetch_vcards(self, carddav_account):
        book = DAVAddressBook(url=ROOT + "dav/ab/", account=carddav_account)
        client, io = client_with(
            multistatus(
                response(
                    "/dav/ab/alice.vcf",
                    '<d:getetag>"a1"</d:getetag>'
                    "<card:address-data>%s</card:address-data>" % VCARD,
                ),
                response("/dav/ab/empty.vcf", '<d:getetag>"e1"</d:getetag>'),
            )
        )
        vcards = fetch_vcards(client, book)

        request = io.requests[0]
        assert request.method == DAVMethod.REPORT
        assert request.headers["Depth"] == "1"
        root = body_of(request)
        assert root.tag == "{urn:ietf:params:xml:ns:carddav}addressbook-query"

        assert [x.url for x in vcards] == [
            ROOT + "dav/ab/alice.vcf",
            ROOT + "dav/ab/empty.vcf",
        ]
        alice = vcards[0]
        assert alice.etag == '"a1"'
        assert alice.address_data == VCARD
        assert alice.address_book is book
        assert alice.vobject_instance.fn.value == "Alice Example"
        assert vcards[1].address_data is None
        assert vcards[1].vobject_instance is None

    def test_fetch_vcards_empty(self):
        book = DAVAddressBook(url=ROOT + "dav/ab/")
        client, io = client_with('<d:multistatus xmlns:d="DAV:"/>')
        assert fetch_vcards(client, book) == []

    def test_create_update_delete(self):
        book = DAVAddressBook(url=ROOT + "dav/ab/")
        client, io = client_with(
            DAVResponse(status=201, reason="Created"),
            DAVResponse(status=204, reason="No Content"),
            DAVResponse(status=204, reason="No Content"),
        )
        response = create_vcard(client, book, VCARD, "alice.vcf")
        assert response.status == 201
        put = io.requests[0]
        assert put.method == DAVMethod.PUT
        assert put.url == ROOT + "dav/ab/alice.vcf"
        assert put.headers["Content-Type"].startswith("text/vcard")
        assert put.body == VCARD

        vcard = DAVVCard(url=put.url, etag='"a1"', address_data=VCARD)
        update_vcard(client, vcard)
        assert io.requests[1].headers["If-Match"] == '"a1"'
        assert io.requests[1].body == VCARD

        delete_vcard(client, vcard)
        assert io.requests[2].method == DAVMethod.DELETE
        assert io.requests[2].headers["If-Match"] == '"a1"'

    def test_quoted_etag_sent_verbatim(self):
        book = DAVAddressBook(url=ROOT + "dav/ab/")
        client, io = client_with(
            multistatus(
                response(
                    "/dav/ab/alice.vcf",
                    '<d:getetag>"0123"</d:getetag>'
                    "<card:address-data>%s</card:address-data>" % VCARD,
                )
            ),
            DAVResponse(status=204, reason="No Content"),
        )
        vcard = fetch_vcards(client, book)[0]
        assert vcard.etag == '"0123"'
        update_vcard(client, vcard)
        assert io.requests[1].headers["If-Match"] == '"0123"'

    def test_create_from_vobject(self):
        book = DAVAddressBook(url=ROOT + "dav/ab/")
        client, io = client_with(DAVResponse(status=201))
        card = DAVVCard(url="", address_data=VCARD).vobject_instance
        create_vcard(client, book, card, "alice.vcf")
        assert "FN:Alice Example" in io.requests[0].body


class TestCalendar:
    def test_fetch_calendars(self, caldav_account):
        client, io = client_with(
            multistatus(
                response(
                    "/dav/calendars/alice/",
                    "<d:resourcetype><d:collection/></d:resourcetype>",
                ),
                response(
                    "/dav/calendars/alice/work/",
                    "<d:displayname>Work</d:displayname>"
                    "<c:calendar-description>Work stuff</c:calendar-description>"
                    "<ca:calendar-color>#FF0000FF</ca:calendar-color>"
                    "<cs:getctag>abc</cs:getctag>"
                    "<d:resourcetype><d:collection/><c:calendar/></d:resourcetype>"
                    "<c:supported-calendar-component-set>"
                    '<c:comp name="VEVENT"/><c:comp name="VTODO"/>'
                    "</c:supported-calendar-component-set>",
                ),
            ),
            multistatus(
                response(
                    "/dav/calendars/alice/work/",
                    "<d:supported-report-set/>",
                )
            ),
        )
        calendars = fetch_calendars(client, caldav_account)

        assert len(calendars) == 1
        calendar = calendars[0]
        assert calendar.url == ROOT + "dav/calendars/alice/work/"
        assert calendar.display_name == "Work"
        assert calendar.description == "Work stuff"
        assert calendar.color == "#FF0000FF"
        assert calendar.ctag == "abc"
        assert calendar.components == ["VEVENT", "VTODO"]
        assert calendar.reports == []
        assert io.requests[0].headers["Depth"] == "1"

    def test_fetch_calendar_objects(self, caldav_account):
        calendar = DAVCalendar(url=ROOT + "dav/cal/work/", account=caldav_account)
        client, io = client_with(
            multistatus(
                response(
                    "/dav/cal/work/meeting-1.ics",
                    '<d:getetag>"m1"</d:getetag>'
                    "<c:calendar-data>%s</c:calendar-data>" % EVENT,
                )
            )
        )
        objects = fetch_calendar_objects(
            client,
            calendar,
            start=datetime(2024, 3, 1, tzinfo=timezone.utc),
            end=datetime(2024, 3, 2, tzinfo=timezone.utc),
        )

        request = io.requests[0]
        assert request.method == DAVMethod.REPORT
        time_range = body_of(request).find(
            ".//{urn:ietf:params:xml:ns:caldav}time-range"
        )
        assert time_range.get("start") == "20240301T000000Z"
        assert time_range.get("end") == "20240302T000000Z"

        assert len(objects) == 1
        event = objects[0]
        assert event.url == ROOT + "dav/cal/work/meeting-1.ics"
        assert event.etag == '"m1"'
        assert event.calendar is calendar
        ical = event.icalendar_instance
        assert isinstance(ical, icalendar.Calendar)
        assert str(ical.walk("VEVENT")[0]["SUMMARY"]) == "Planning meeting"

    def test_fetch_all_calendar_objects(self):
        calendar = DAVCalendar(url=ROOT + "dav/cal/work/")
        client, io = client_with('<d:multistatus xmlns:d="DAV:"/>')
        assert fetch_calendar_objects(client, calendar) == []
        root = body_of(io.requests[0])
        assert root.find(".//{urn:ietf:params:xml:ns:caldav}time-range") is None

    def test_create_update_delete(self):
        calendar = DAVCalendar(url=ROOT + "dav/cal/work/")
        client, io = client_with(
            DAVResponse(status=201, reason="Created"),
            DAVResponse(status=204, reason="No Content"),
            DAVResponse(status=204, reason="No Content"),
        )
        create_calendar_object(
            client, calendar, icalendar.Calendar.from_ical(EVENT), "meeting-1.ics"
        )
        put = io.requests[0]
        assert put.url == ROOT + "dav/cal/work/meeting-1.ics"
        assert put.headers["Content-Type"].startswith("text/calendar")
        assert isinstance(put.body, bytes)
        assert b"SUMMARY:Planning meeting" in put.body

        event = DAVCalendarObject(url=put.url, etag='"m1"', calendar_data=EVENT)
        update_calendar_object(client, event)
        assert io.requests[1].headers["If-Match"] == '"m1"'

        delete_calendar_object(client, event)
        assert io.requests[2].method == DAVMethod.DELETE
        assert io.requests[2].url == put.url
