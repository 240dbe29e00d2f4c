from typing import Mapping
from typing import Optional


def to_wire(text):
    """
    Bytes with CRLF line endings, as iCalendar and vCard payloads want them.
    """
    if text is None:
        return None
    if isinstance(text, str):
        text = bytes(text, "utf-8")
    text = text.replace(b"\n", b"\r\n")
    text = text.replace(b"\r\r\n", b"\r\n")
    return text


def to_normal_str(text):
    """
    Make sure we return a normal string, no matter if we got bytes or str
    """
    if text is None:
        return text
    if not isinstance(text, str):
        text = text.decode("utf-8")
    text = text.replace("\r\n", "\n")
    return text


def to_unicode(text):
    if text and isinstance(text, bytes):
        return text.decode("utf-8")
    return text


def cleanup_falsy(headers: Optional[Mapping]) -> dict:
    """
    Drops header entries with empty values, so that optional things like
    ``Depth`` or ``If-Match`` can be passed on as None.
    """
    return {
        k: str(getattr(v, "value", v))
        for k, v in (headers or {}).items()
        if v is not None and v != ""
    }
