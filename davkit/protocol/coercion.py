"""
Text-level helpers for the XML marshaling layer.

``native_type`` turns the character data of an XML leaf into the best
matching Python scalar, ``normalize_key`` turns a (possibly prefixed)
element name into the camelCase key used in parsed results.  Both are
pure and total.
"""
import re
from datetime import date
from datetime import datetime
from email.utils import parsedate_to_datetime
from typing import Union

_INTEGER = re.compile(r"^[+-]?\d+$")
_FLOAT = re.compile(r"^[+-]?(\d+\.\d*|\.\d+|\d+(?=[eE]))([eE][+-]?\d+)?$")
_ISO_DATE = re.compile(r"^\d{4}-\d{2}-\d{2}$")
_ISO_DATETIME = re.compile(
    r"^\d{4}-\d{2}-\d{2}[T ]\d{2}:\d{2}(:\d{2}(\.\d{1,6})?)?(Z|[+-]\d{2}:?\d{2})?$"
)
## RFC 1123, i.e. "Mon, 12 Jan 1998 09:25:56 GMT" as in DAV:getlastmodified
_HTTP_DATE = re.compile(
    r"^(Mon|Tue|Wed|Thu|Fri|Sat|Sun), \d{2} [A-Z][a-z]{2} \d{4} \d{2}:\d{2}:\d{2} (GMT|UTC|[+-]\d{4})$"
)

_PREFIX = re.compile(r"^[^:]+:")
_DELIMITED = re.compile(r"[-_]+(.)")

Scalar = Union[bool, int, float, date, datetime, str]


def _parse_date(text: str) -> Union[date, datetime, None]:
    try:
        if _ISO_DATE.match(text):
            return date.fromisoformat(text)
        if _ISO_DATETIME.match(text):
            ## datetime.fromisoformat only learned about "Z" in python 3.11
            if text.endswith("Z"):
                text = text[:-1] + "+00:00"
            return datetime.fromisoformat(text)
        if _HTTP_DATE.match(text):
            return parsedate_to_datetime(text)
    except ValueError:
        ## looks like a date, but isn't one - i.e. 2024-02-31
        return None
    return None


def native_type(text: str) -> Scalar:
    """
    Returns the "best" native value for some XML character data.

    The checks are done in a fixed order: boolean literals, integers,
    floats, dates - and if nothing matches, the text is returned as it
    is.  Empty strings are returned untouched.
    """
    if not text:
        return text
    if text == "true":
        return True
    if text == "false":
        return False
    if _INTEGER.match(text):
        return int(text)
    if _FLOAT.match(text):
        return float(text)
    parsed = _parse_date(text)
    if parsed is not None:
        return parsed
    return text


def camel_case(name: str) -> str:
    """
    ``sync-token`` -> ``syncToken``, ``supported_report`` -> ``supportedReport``
    """
    return _DELIMITED.sub(lambda m: m.group(1).upper(), name)


def normalize_key(name: str) -> str:
    """
    Strips the namespace prefix of an element name and camelCases the rest,
    so that ``cs:getctag`` becomes ``getctag`` and ``d:sync-token`` becomes
    ``syncToken``.
    """
    return camel_case(_PREFIX.sub("", name, count=1))
