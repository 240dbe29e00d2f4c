"""
Synchronous I/O implementation using the requests library.
"""

import logging
from typing import Optional, Union

import requests
from requests.auth import AuthBase, HTTPDigestAuth

from davkit.lib import error
from davkit.lib.python_utilities import to_normal_str, to_wire
from davkit.protocol.types import DAVRequest, DAVResponse

log = logging.getLogger(__name__)


class SyncIO:
    """
    Synchronous I/O shell using the requests library.

    This is a thin wrapper that executes DAVRequest objects via HTTP
    and returns DAVResponse objects.  If a username is given, digest
    authentication is used.

    Example:
        io = SyncIO(username="user", password="secret")
        request = protocol.propfind_request("/addressbooks/", {"d:displayname": {}})
        response = io.execute(request)
        results = protocol.parse_response(response)
    """

    def __init__(
        self,
        session: Optional[requests.Session] = None,
        username: Optional[str] = None,
        password: Optional[str] = None,
        auth: Optional[AuthBase] = None,
        timeout: Optional[float] = None,
        verify: Union[bool, str] = True,
    ):
        """
        Initialize the sync I/O handler.

        Args:
            session: Existing requests Session to use (creates new if None)
            username: Username for digest authentication
            password: Password for digest authentication
            auth: A requests auth object, used instead of username/password
            timeout: Request timeout in seconds, None means no timeout
            verify: Verify SSL certificates, or path of a CA bundle
        """
        self._owns_session = session is None
        self.session = session or requests.Session()
        if auth is None and username is not None:
            auth = HTTPDigestAuth(username, password or "")
        self.auth = auth
        self.timeout = timeout
        self.verify = verify

    def execute(self, request: DAVRequest) -> DAVResponse:
        """
        Execute a DAVRequest and return DAVResponse.

        Args:
            request: The request to execute

        Returns:
            DAVResponse with status, reason, final url, headers, and body

        Raises:
            TransportFailure: if no response was received at all
        """
        log.debug(
            "sending request - method=%s, url=%s, headers=%s\nbody:\n%s",
            request.method_name,
            request.url,
            request.headers,
            to_normal_str(request.body),
        )
        try:
            response = self.session.request(
                method=request.method_name,
                url=request.url,
                headers=request.headers,
                data=to_wire(request.body),
                auth=self.auth,
                timeout=self.timeout,
                verify=self.verify,
            )
        except requests.RequestException as e:
            raise error.exception_by_method[request.method_name.lower()](
                url=request.url, reason=str(e)
            ) from e
        log.debug("server responded with %i %s", response.status_code, response.reason)

        return DAVResponse(
            status=response.status_code,
            ## incidents with a response without a reason have been observed
            reason=response.reason or "",
            url=response.url or request.url,
            headers=dict(response.headers),
            body=response.content or b"",
        )

    def close(self) -> None:
        """Close the session if we created it."""
        if self._owns_session and self.session:
            self.session.close()

    def __enter__(self) -> "SyncIO":
        """Context manager entry."""
        return self

    def __exit__(self, *args) -> None:
        """Context manager exit."""
        self.close()
