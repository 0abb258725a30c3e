import logging
import re
from dataclasses import dataclass, field
from typing import Dict, Mapping, Optional, Tuple

import httpx

from httpbridge.error import InvalidHeader

logger = logging.getLogger(__name__)

# token = 1*tchar (RFC 9110, section 5.6.2)
_TOKEN = re.compile(r"[!#$%&'*+\-.^_`|~0-9A-Za-z]+")

# Control characters other than HTAB, and DEL.
_INVALID_FIELD_CHARS = re.compile(r"[\x00-\x08\x0a-\x1f\x7f]")


def validate_header_name(name: str) -> Tuple[bool, str]:
    if not name:
        return False, "header name is empty"
    if not _TOKEN.fullmatch(name):
        return False, f"invalid header name: {name!r}"
    return True, ""


def validate_header_value(name: str, value: str) -> Tuple[bool, str]:
    if _INVALID_FIELD_CHARS.search(value):
        return False, f"invalid value for header {name!r}: {value!r}"
    if value != value.strip(" \t"):
        return False, f"value for header {name!r} has surrounding whitespace"
    return True, ""


@dataclass(frozen=True)
class RequestSpec:
    """A validated GET request, ready to be handed to the transport."""

    url: str
    headers: Mapping[str, str] = field(default_factory=dict)
    body: Optional[bytes] = None

    def to_httpx(self) -> httpx.Request:
        """Convert to an httpx request.

        The request is built directly rather than through a client so that
        none of the client's default headers are merged in. Values are
        encoded as UTF-8 bytes because httpx only accepts ASCII strings.
        """
        headers = [
            (name.encode("ascii"), value.encode("utf-8"))
            for name, value in self.headers.items()
        ]
        return httpx.Request("GET", self.url, headers=headers, content=self.body)


def build(
    url: str,
    headers: Optional[Mapping[str, str]] = None,
    body: Optional[bytes] = None,
) -> RequestSpec:
    """Validate the inputs of a GET request.

    Args:
        url: The URL to request.

        headers: Request headers, sent as given. No header is added.

        body: Raw request payload, attached verbatim.

    Returns:
        The request spec.

    Raises:
        InvalidHeader: if a header name or value is malformed. Nothing is
            sent in that case.
    """
    checked: Dict[str, str] = {}
    for name, value in (headers or {}).items():
        valid, reason = validate_header_name(name)
        if not valid:
            raise InvalidHeader(reason)
        valid, reason = validate_header_value(name, value)
        if not valid:
            raise InvalidHeader(reason)
        checked[name] = value

    if body is not None:
        body = bytes(body)

    logger.debug("built GET request for %s with %d header(s)", url, len(checked))
    return RequestSpec(url=url, headers=checked, body=body)
