#!/usr/bin/env python
"""
CardDAV (RFC 6352) address books and the vCards in them.
"""
import logging
from dataclasses import dataclass
from typing import Any
from typing import List
from typing import Mapping
from typing import Optional
from typing import Sequence
from typing import TYPE_CHECKING
from typing import Union

import vobject

from davkit.collection import collection_query
from davkit.collection import DAVAccount
from davkit.collection import DAVCollection
from davkit.collection import has_value
from davkit.collection import multistatus_results
from davkit.collection import supported_report_set
from davkit.lib.namespace import DAVNamespace
from davkit.lib.url import URL
from davkit.protocol import DAVDepth
from davkit.protocol import DAVProp
from davkit.protocol import DAVResponse
from davkit.protocol import DAVResult
from davkit.protocol import DAVValue
from davkit.protocol import MultistatusResult
from davkit.protocol.xml_builders import build_addressbook_query_body

if TYPE_CHECKING:
    from davkit.davclient import DAVClient

log = logging.getLogger("davkit")

VCARD_CONTENT_TYPE = "text/vcard; charset=utf-8"


@dataclass
class DAVAddressBook(DAVCollection):
    pass


@dataclass
class DAVVCard:
    url: str
    etag: Optional[DAVValue] = None
    address_data: Optional[str] = None
    data: Optional[MultistatusResult] = None
    address_book: Optional[DAVAddressBook] = None

    @property
    def vobject_instance(self):
        """The vCard parsed by vobject, or None if there is no data"""
        if not self.address_data:
            return None
        return vobject.readOne(self.address_data)


def address_book_query(
    client: "DAVClient",
    url: Union[str, URL],
    props: Sequence[DAVProp],
    filters: Optional[Mapping[str, Any]] = None,
    depth: Union[DAVDepth, str, int, None] = None,
    headers: Optional[Mapping[str, Any]] = None,
) -> List[DAVResult]:
    """
    Sends an addressbook-query REPORT.  Without filters, all cards having
    a formatted name (FN) are matched.
    """
    return collection_query(
        client,
        url,
        build_addressbook_query_body(props, filters),
        depth=depth,
        headers=headers,
    )


def fetch_address_books(
    client: "DAVClient",
    account: DAVAccount,
    headers: Optional[Mapping[str, Any]] = None,
) -> List[DAVAddressBook]:
    """
    Lists the address books below the home URL of the account.  Every
    collection with a display name is considered an address book.
    """
    results = multistatus_results(
        client.propfind(
            account.home_url,
            [
                DAVProp("displayname", DAVNamespace.DAV),
                DAVProp("getctag", DAVNamespace.CALENDAR_SERVER),
                DAVProp("resourcetype", DAVNamespace.DAV),
                DAVProp("sync-token", DAVNamespace.DAV),
            ],
            depth=DAVDepth.ONE,
            headers=headers,
        )
    )
    address_books = []
    for r in results:
        if not has_value(r.props.get("displayname")):
            continue
        log.debug("Found address book named %s, props: %s", r.props["displayname"], r.props)
        url = str(URL.objectify(account.root_url).join(str(r.href)))
        address_books.append(
            DAVAddressBook(
                url=url,
                display_name=r.props.get("displayname"),
                ctag=r.props.get("getctag"),
                sync_token=r.props.get("syncToken"),
                resourcetype=r.props.get("resourcetype"),
                reports=supported_report_set(client, url, headers=headers),
                data=r,
                account=account,
            )
        )
    return address_books


def fetch_vcards(
    client: "DAVClient",
    address_book: DAVAddressBook,
    headers: Optional[Mapping[str, Any]] = None,
) -> List[DAVVCard]:
    """
    Fetches all vCards of an address book, with their etags.
    """
    results = address_book_query(
        client,
        address_book.url,
        [
            DAVProp("getetag", DAVNamespace.DAV),
            DAVProp("address-data", DAVNamespace.CARDDAV),
        ],
        depth=DAVDepth.ONE,
        headers=headers,
    )
    root = address_book.account.root_url if address_book.account else address_book.url
    vcards = []
    for r in multistatus_results(results):
        address_data = r.props.get("addressData")
        vcards.append(
            DAVVCard(
                url=str(URL.objectify(root).join(str(r.href))),
                etag=r.props.get("getetag"),
                address_data=str(address_data) if has_value(address_data) else None,
                data=r,
                address_book=address_book,
            )
        )
    return vcards


def _vcard_text(vcard: Any) -> str:
    ## a vobject component, or the serialized card
    if hasattr(vcard, "serialize"):
        return vcard.serialize()
    return vcard


def create_vcard(
    client: "DAVClient",
    address_book: DAVAddressBook,
    vcard: Any,
    filename: str,
    headers: Optional[Mapping[str, Any]] = None,
) -> DAVResponse:
    """
    Stores a new vCard in the address book.

    Args:
        vcard: the vCard as a string, or as a vobject component
        filename: name of the new resource, i.e. "alice.vcf"
    """
    return client.create_object(
        URL.objectify(address_book.url).join(filename),
        _vcard_text(vcard),
        headers={"Content-Type": VCARD_CONTENT_TYPE, **(headers or {})},
    )


def update_vcard(
    client: "DAVClient",
    vcard: DAVVCard,
    headers: Optional[Mapping[str, Any]] = None,
) -> DAVResponse:
    """
    Writes the address data of the vCard back.  The server refuses the
    update if the card was changed since the etag was fetched.

    The etag is sent as it was parsed.  Quoted etags (the usual form)
    arrive verbatim, but an unquoted numeric one went through number
    coercion, so leading zeros are lost and the server won't match it.
    """
    return client.update_object(
        vcard.url,
        vcard.address_data,
        vcard.etag,
        headers={"Content-Type": VCARD_CONTENT_TYPE, **(headers or {})},
    )


def delete_vcard(
    client: "DAVClient",
    vcard: DAVVCard,
    headers: Optional[Mapping[str, Any]] = None,
) -> DAVResponse:
    return client.delete_object(vcard.url, vcard.etag, headers=headers)
