"""
DAV protocol operations combining request building and response parsing.

This class provides a high-level interface to DAV operations while
remaining completely I/O-free.  The clients in :mod:`davkit.davclient`
and :mod:`davkit.async_davclient` wire it to a transport.
"""

import logging
from typing import Any, Dict, List, Mapping, Optional, Union
from urllib.parse import urljoin, urlparse

from davkit import __version__
from davkit.lib.python_utilities import cleanup_falsy

from .types import DAVDepth, DAVMethod, DAVRequest, DAVResponse, DAVResult, RawResult
from .xml_builders import build_propfind_body, serialize
from .xml_parsers import parse_multistatus

log = logging.getLogger(__name__)


def _merge_headers(*headers: Mapping[str, str]) -> Dict[str, str]:
    """Header names are case insensitive - the last one given wins"""
    merged: Dict[str, str] = {}
    for h in headers:
        for k, v in h.items():
            for existing in [x for x in merged if x.lower() == k.lower()]:
                del merged[existing]
            merged[k] = v
    return merged



def _method(method: Union[DAVMethod, str]) -> Union[DAVMethod, str]:
    ## verbs without a DAVMethod member (COPY, MOVE, LOCK, ...) are sent as given
    if isinstance(method, DAVMethod):
        return method
    name = method.upper()
    try:
        return DAVMethod(name)
    except ValueError:
        return name


class DAVProtocol:
    """
    Sans-I/O DAV protocol handler.

    Builds requests and parses responses without doing any I/O.
    All HTTP communication is delegated to an external I/O implementation.

    Example:
        protocol = DAVProtocol(base_url="https://dav.example.com/")

        # Build request
        request = protocol.propfind_request("/addressbooks/user/", {"d:displayname": {}})

        # Execute with your I/O (not shown)
        response = io.execute(request)

        # Parse response
        results = protocol.parse_response(response)
    """

    def __init__(
        self,
        base_url: str = "",
        headers: Optional[Mapping[str, str]] = None,
        huge_tree: bool = False,
    ):
        """
        Initialize the protocol handler.

        Args:
            base_url: Base URL for the DAV server, relative paths are
                      resolved against it
            headers: Headers to add to every request
            huge_tree: Allow parsing very large XML documents
        """
        self.base_url = base_url or ""
        self.headers = dict(headers or {})
        self.huge_tree = huge_tree

    def _base_headers(self) -> Dict[str, str]:
        """Return base headers for all requests."""
        return _merge_headers(
            {
                "User-Agent": "python-davkit/" + __version__,
                "Content-Type": "application/xml; charset=utf-8",
            },
            self.headers,
        )

    def _resolve_url(self, path: str) -> str:
        """
        Resolve a path to a full URL.

        Args:
            path: Relative path or absolute URL

        Returns:
            Full URL
        """
        path = str(path) if path else ""
        if not path:
            return self.base_url
        if urlparse(path).scheme or not self.base_url:
            return path
        return urljoin(self.base_url, path)

    # =========================================================================
    # Request builders
    # =========================================================================

    def build_request(
        self,
        url: str,
        method: Union[DAVMethod, str],
        body: Any = None,
        namespace: Optional[str] = None,
        headers: Optional[Mapping[str, Any]] = None,
        attributes: Optional[Mapping[str, str]] = None,
        convert_incoming: bool = True,
    ) -> DAVRequest:
        """
        Build a request for any method.

        Args:
            url: Resource path or URL
            method: HTTP method
            body: property request tree, or the final payload if
                  convert_incoming is False
            namespace: alias added to all unqualified element names
            headers: extra headers, None values are dropped
            attributes: attributes of the root element
            convert_incoming: serialize body to XML

        Raises:
            MalformedRequestBody: if body can't be serialized
        """
        if convert_incoming and body is not None:
            body = serialize(body, namespace=namespace, attributes=attributes)
        return DAVRequest(
            method=_method(method),
            url=self._resolve_url(url),
            headers=_merge_headers(self._base_headers(), cleanup_falsy(headers)),
            body=body,
        )

    def propfind_request(
        self,
        url: str,
        props: Any = None,
        depth: Union[DAVDepth, str, int, None] = None,
        headers: Optional[Mapping[str, Any]] = None,
    ) -> DAVRequest:
        """
        Build a PROPFIND request.

        Args:
            url: Resource path or URL
            props: prop subtree, or a list of DAVProp
            depth: Depth header value (0, 1, or "infinity")
        """
        return self.build_request(
            url,
            DAVMethod.PROPFIND,
            build_propfind_body(props),
            headers={"Depth": depth, **(headers or {})},
            convert_incoming=False,
        )

    def put_request(
        self,
        url: str,
        data: Union[str, bytes],
        etag: Optional[str] = None,
        headers: Optional[Mapping[str, Any]] = None,
    ) -> DAVRequest:
        """
        Build a PUT request.  With an etag, the server will only accept
        it if the resource wasn't changed in the meantime.
        """
        return self.build_request(
            url,
            DAVMethod.PUT,
            data,
            headers={"If-Match": etag, **(headers or {})},
            convert_incoming=False,
        )

    def delete_request(
        self,
        url: str,
        etag: Optional[str] = None,
        headers: Optional[Mapping[str, Any]] = None,
    ) -> DAVRequest:
        """Build a (conditional) DELETE request."""
        request = self.build_request(
            url,
            DAVMethod.DELETE,
            headers={"If-Match": etag, **(headers or {})},
            convert_incoming=False,
        )
        ## no body, no content type
        return DAVRequest(
            method=request.method,
            url=request.url,
            headers={
                k: v
                for k, v in request.headers.items()
                if k.lower() != "content-type"
            },
        )

    # =========================================================================
    # Response parsers
    # =========================================================================

    def parse_response(
        self, response: DAVResponse, parse_outgoing: bool = True
    ) -> List[DAVResult]:
        """
        Turns a response into results.

        Error statuses, bodies that aren't XML and responses where
        parsing was declined are delivered as a single RawResult, anything
        else is parsed as a multistatus document.

        Raises:
            MalformedResponseBody: if the XML can't be parsed
        """
        if not response.ok or not response.is_xml or not parse_outgoing:
            log.debug(
                "not parsing response - status %i, content type %r",
                response.status,
                response.content_type,
            )
            return [
                RawResult(
                    href=response.url,
                    ok=response.ok,
                    status=response.status,
                    status_text=response.reason,
                    raw=response.text,
                )
            ]
        return parse_multistatus(
            response.body,
            status=response.status,
            status_text=response.reason,
            ok=response.ok,
            huge_tree=self.huge_tree,
        )
