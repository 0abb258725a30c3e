"""Glue between the bridge and the httpx transport."""

import logging

import httpx

from httpbridge.error import RequestFailed
from httpbridge.request import RequestSpec

logger = logging.getLogger(__name__)

# See https://www.python-httpx.org/exceptions/
TRANSPORT_ERRORS = (httpx.HTTPError, httpx.InvalidURL, httpx.StreamError)


def request_failed(error: Exception) -> RequestFailed:
    message = str(error)
    name = type(error).__name__
    return RequestFailed(f"{name}: {message}" if message else name)


async def send(client: httpx.AsyncClient, spec: RequestSpec) -> httpx.Response:
    """Send the request and wait for the status line and headers. The body
    is left unread on the returned response."""
    logger.debug("sending GET request to %s", spec.url)
    try:
        response = await client.send(spec.to_httpx(), stream=True)
    except TRANSPORT_ERRORS as e:
        raise request_failed(e) from e
    logger.debug("received status %d from %s", response.status_code, response.url)
    return response


async def read(response: httpx.Response) -> bytes:
    """Read the rest of the body and release the connection."""
    try:
        content = await response.aread()
    except TRANSPORT_ERRORS as e:
        raise request_failed(e) from e
    finally:
        await response.aclose()
    logger.debug("read %d byte body from %s", len(content), response.url)
    return content
