#!/usr/bin/env python
from typing import Any
from typing import Optional
from typing import Union
from urllib.parse import quote
from urllib.parse import SplitResult
from urllib.parse import unquote
from urllib.parse import urlsplit
from urllib.parse import urlunsplit

from davkit.lib.python_utilities import to_normal_str
from davkit.lib.python_utilities import to_unicode

DEFAULT_PORTS = {"https": 443, "http": 80}


class URL:
    """
    A URL or an href.  All functions in the library accepting URLs take a
    URL object or a string.

    Hrefs in multistatus responses may be relative to the collection,
    absolute paths or complete URLs; :meth:`join` turns any of them into
    a full URL, given a base.  The components of the split URL
    (``scheme``, ``hostname``, ``path``, ``username``, ...) are available
    as attributes.
    """

    def __init__(self, url: Union[str, bytes, SplitResult]) -> None:
        if isinstance(url, SplitResult):
            self.parts = url
        else:
            self.parts = urlsplit(to_normal_str(to_unicode(url)))

    @classmethod
    def objectify(cls, url: Union["URL", str, bytes, SplitResult, None]) -> Optional["URL"]:
        if url is None or isinstance(url, URL):
            return url
        return cls(url)

    def __getattr__(self, attr: str) -> Any:
        if attr == "parts":
            raise AttributeError(attr)
        return getattr(self.parts, attr)

    def __str__(self) -> str:
        return urlunsplit(self.parts)

    def __repr__(self) -> str:
        return "URL(%s)" % self

    def __bool__(self) -> bool:
        return bool(str(self))

    def __eq__(self, other: object) -> bool:
        if str(self) == str(other):
            return True
        if not isinstance(other, URL):
            other = URL(str(other))
        return str(self.canonical()) == str(other.canonical())

    def __ne__(self, other: object) -> bool:
        return not self == other

    def __hash__(self) -> int:
        return hash(str(self))

    def _replace(self, **kwargs: Any) -> "URL":
        return URL(self.parts._replace(**kwargs))

    def is_auth(self) -> bool:
        return self.username is not None

    def unauth(self) -> "URL":
        """The URL without credentials, with an explicit port"""
        if not self.is_auth():
            return self
        port = self.port or DEFAULT_PORTS[self.scheme]
        return self._replace(
            netloc="%s:%s" % (self.hostname, port), path=self.path.replace("//", "/")
        )

    def canonical(self) -> "URL":
        """
        Credentials removed, default port filled in, no double slashes and
        the path quoted the same way everywhere
        """
        url = self.unauth()
        scheme = url.scheme or "https"
        netloc = url.netloc
        if netloc and ":" not in netloc:
            netloc = "%s:%s" % (netloc, DEFAULT_PORTS.get(scheme, ""))
            netloc = netloc.rstrip(":")
        path = quote(unquote(url.path.replace("//", "/")))
        return URL(SplitResult(scheme, netloc, path, url.query, url.fragment))

    def strip_trailing_slash(self) -> "URL":
        if self.path.endswith("/"):
            return self._replace(path=self.path[:-1])
        return self

    def join(self, path: Any) -> "URL":
        """
        Resolves an href against this URL.  A relative path is appended to
        the path of self, an absolute path replaces it, and a full URL is
        taken as it is - as long as it points to the same server.

        Raises:
            ValueError: if path is a URL on another server
        """
        if not path or not str(path):
            return self
        other = URL.objectify(path)
        if (
            (other.scheme and self.scheme and other.scheme != self.scheme)
            or (other.hostname and self.hostname and other.hostname != self.hostname)
            or (other.port and self.port and other.port != self.port)
        ):
            raise ValueError("%s can't be joined with %s" % (self, other))

        if other.path.startswith("/"):
            new_path = other.path
        elif self.path.endswith("/"):
            new_path = self.path + other.path
        else:
            new_path = "%s/%s" % (self.path, other.path)
        return URL(
            SplitResult(
                self.scheme or other.scheme,
                self.netloc or other.netloc,
                new_path,
                other.query,
                other.fragment,
            )
        )


def url_equals(a: Union[URL, str, None], b: Union[URL, str, None]) -> bool:
    """
    Compares two URLs, disregarding a trailing slash.  Relative hrefs
    are only equal to other relative hrefs.
    """
    if not a or not b:
        return False
    return URL.objectify(a).strip_trailing_slash() == URL.objectify(b).strip_trailing_slash()
