"""
Sans-I/O DAV protocol implementation.

This module provides protocol-level operations without any I/O.
It builds requests and parses responses as pure data transformations.

The protocol layer is organized into:
- types: Core data structures (DAVRequest, DAVResponse, result types)
- coercion: Text node coercion and element name normalization
- xml_builders: Pure functions to build XML request bodies
- xml_parsers: Pure functions to parse XML response bodies
- operations: DAVProtocol class combining builders and parsers

Example usage:

    from davkit.protocol import DAVProtocol

    protocol = DAVProtocol(base_url="https://dav.example.com")

    # Build a request (no I/O)
    request = protocol.propfind_request(
        "/addressbooks/user/",
        {"d:displayname": {}, "cs:getctag": {}},
        depth=1,
    )

    # Execute via your preferred I/O (sync, async, or mock)
    response = your_http_client.execute(request)

    # Parse response (no I/O)
    results = protocol.parse_response(response)
"""

from .coercion import camel_case, native_type, normalize_key
from .types import (
    ATTRIBUTES,
    TEXT,
    # Enums
    DAVDepth,
    DAVMethod,
    # Request/Response
    DAVProp,
    DAVRequest,
    DAVResponse,
    # Result types
    DAVResult,
    DAVValue,
    MultistatusResult,
    RawResult,
)
from .xml_builders import (
    build_addressbook_query_body,
    build_calendar_query_body,
    build_propfind_body,
    build_time_range_filter,
    format_props,
    serialize,
)
from .xml_parsers import parse_multistatus, parse_xml
from .operations import DAVProtocol

__all__ = [
    "ATTRIBUTES",
    "TEXT",
    # Enums
    "DAVDepth",
    "DAVMethod",
    # Request/Response
    "DAVProp",
    "DAVRequest",
    "DAVResponse",
    # Result types
    "DAVResult",
    "DAVValue",
    "MultistatusResult",
    "RawResult",
    # Coercion
    "camel_case",
    "native_type",
    "normalize_key",
    # XML Builders
    "build_addressbook_query_body",
    "build_calendar_query_body",
    "build_propfind_body",
    "build_time_range_filter",
    "format_props",
    "serialize",
    # XML Parsers
    "parse_multistatus",
    "parse_xml",
    # Protocol
    "DAVProtocol",
]
