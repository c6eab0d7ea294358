"""
Response decoding: JSON body, pagination count and status metadata.
"""

from http import HTTPStatus
from typing import Any, Optional, Tuple

from .exceptions import InvalidResponse, ParseError
from .json_value import JsonValue, parse_json
from .retry import RawResponse
from .types import ResponseMetadata

_MESSAGE_KEYS = ("message", "error_description", "msg", "error")


def parse_content_range(header: Optional[str]) -> Optional[int]:
    """
    Extract the total from a ``<unit> <start>-<end>/<total>`` header.

    Returns None when the header is absent or the total is unknown (``*``).

    Raises:
        InvalidResponse: if the header is present but unparsable.
    """
    if header is None:
        return None
    _, slash, total = header.rpartition("/")
    total = total.strip()
    if not slash:
        raise InvalidResponse(f"Unparsable Content-Range header: {header!r}")
    if total == "*":
        return None
    if not total.isdecimal():
        raise InvalidResponse(f"Unparsable Content-Range header: {header!r}")
    return int(total)


def status_text(response: RawResponse) -> str:
    if response.reason:
        return response.reason
    try:
        return HTTPStatus(response.status).phrase
    except ValueError:
        return ""


def build_metadata(response: RawResponse) -> ResponseMetadata:
    return ResponseMetadata(
        status=response.status,
        status_text=status_text(response),
        count=parse_content_range(response.headers.get("Content-Range")),
    )


def decode_response(response: RawResponse) -> Tuple[JsonValue, ResponseMetadata]:
    """
    Parse the body as JSON and build the response metadata.

    Raises:
        ParseError: the body is not well-formed JSON.
        InvalidResponse: the Content-Range header is unparsable.
    """
    metadata = build_metadata(response)
    return parse_json(response.body), metadata


def error_details(response: RawResponse, default: str) -> Tuple[str, Any]:
    """
    Pick a human readable message out of an error body.

    Returns ``(message, parsed_body)``; the body is None when it is empty or
    not JSON.
    """
    if not response.body:
        return default, None
    try:
        body = parse_json(response.body)
    except ParseError:
        return default, None
    if isinstance(body, dict):
        for key in _MESSAGE_KEYS:
            value = body.get(key)
            if isinstance(value, str) and value:
                return value, body
    return default, body
