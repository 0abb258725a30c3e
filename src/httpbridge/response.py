import weakref
from dataclasses import dataclass
from typing import Optional, Union

import httpx
from http_message_signatures.structures import CaseInsensitiveDict

from httpbridge.asyncio import SharedLoop
from httpbridge.error import DecodeFailure, ResponseConsumed
from httpbridge.transport import read


@dataclass
class Unconsumed:
    response: httpx.Response


class Consumed:
    def __repr__(self):
        return "Consumed"


CONSUMED = Consumed()

BodyState = Union[Unconsumed, Consumed]


class Response:
    """Response is a one-shot handle on an HTTP response.

    Status, URL and headers can be read any number of times until the body
    is consumed with text() or atext(). Consuming the body is allowed once;
    afterwards every method raises ResponseConsumed.

    Responses produced by the blocking API carry a body that was buffered
    before the call returned. Responses produced on a shared loop still
    stream their body from that loop, and reading it waits for the loop. If
    such a response is dropped without reading the body, its connection is
    released when the handle is garbage collected.

    A Response is meant to be used by a single caller. It is not safe to
    consume it concurrently from multiple threads or tasks.
    """

    __slots__ = ("_state", "_loop", "_finalizer", "__weakref__")

    def __init__(self, response: httpx.Response, loop: Optional[SharedLoop] = None):
        self._state: BodyState = Unconsumed(response)
        self._loop = loop
        self._finalizer: Optional[weakref.finalize] = None
        if loop is not None:
            self._finalizer = weakref.finalize(self, loop.release, response)
            self._finalizer.atexit = False

    def __repr__(self):
        match self._state:
            case Unconsumed(response):
                return f"<Response [{response.status_code}]>"
            case _:
                return "<Response [consumed]>"

    @property
    def consumed(self) -> bool:
        return isinstance(self._state, Consumed)

    def _inner(self) -> httpx.Response:
        match self._state:
            case Unconsumed(response):
                return response
            case _:
                raise ResponseConsumed()

    def _take(self) -> httpx.Response:
        response = self._inner()
        self._state = CONSUMED
        if self._finalizer is not None:
            self._finalizer.detach()
        return response

    def _release(self):
        """Close the underlying stream without consuming the handle."""
        if self._finalizer is not None:
            self._finalizer()

    def status(self) -> int:
        """Returns the HTTP status code."""
        return self._inner().status_code

    def url(self) -> str:
        """Returns the URL of the response, after following redirects."""
        return str(self._inner().url)

    def headers(self) -> CaseInsensitiveDict:
        """Returns a snapshot of the response headers.

        Lookups are case-insensitive. When the server sent a header more than
        once, only the last value is kept.

        Raises:
            DecodeFailure: if a header value is not valid UTF-8.
        """
        headers = CaseInsensitiveDict()
        for name, value in self._inner().headers.raw:
            try:
                headers[name.decode("ascii")] = value.decode("utf-8")
            except UnicodeDecodeError as e:
                raise DecodeFailure(f"header {name!r} is not valid text: {e}") from e
        return headers

    def text(self) -> str:
        """Consume the response and return the body decoded as text.

        The charset of the Content-Type header is used when present, UTF-8
        otherwise. The response is consumed even if reading or decoding the
        body fails.

        Raises:
            ResponseConsumed: if the body was already consumed.
            RequestFailed: if the transport failed while reading the body.
            DecodeFailure: if the body cannot be decoded.
        """
        response = self._take()
        if self._loop is None:
            content = response.content
        else:
            content = self._loop.run(read(response))
        return _decode(response, content)

    async def atext(self) -> str:
        """Like text(), but awaits the body instead of blocking the calling
        thread."""
        response = self._take()
        if self._loop is None:
            content = response.content
        else:
            loop = self._loop
            content = await loop.wrap(loop.submit(read(response)))
        return _decode(response, content)


def _decode(response: httpx.Response, content: bytes) -> str:
    encoding = response.charset_encoding or "utf-8"
    try:
        return content.decode(encoding)
    except (UnicodeDecodeError, LookupError) as e:
        raise DecodeFailure(f"body is not valid {encoding} text: {e}") from e
