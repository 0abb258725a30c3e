"""An HTTP GET bridge with blocking and asyncio call surfaces.

    >>> import httpbridge
    >>> response = httpbridge.get("https://example.com")
    >>> response.status()
    200
    >>> body = response.text()

From a coroutine, the request runs on a shared event loop and the caller
awaits it:

    >>> response = await httpbridge.get_async("https://example.com")
    >>> body = await response.atext()
"""

from httpbridge.asyncio import SharedLoop, shared_loop
from httpbridge.bridge import get, get_async, get_bridged
from httpbridge.config import Config
from httpbridge.error import (
    BridgeError,
    DecodeFailure,
    InvalidHeader,
    RequestFailed,
    ResponseConsumed,
)
from httpbridge.request import RequestSpec, build
from httpbridge.response import Response

__all__ = [
    "BridgeError",
    "Config",
    "DecodeFailure",
    "InvalidHeader",
    "RequestFailed",
    "RequestSpec",
    "Response",
    "ResponseConsumed",
    "SharedLoop",
    "build",
    "get",
    "get_async",
    "get_bridged",
    "shared_loop",
]
