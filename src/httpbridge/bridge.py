"""Execution modes of HTTP GET requests.

The same send sequence runs in one of three ways:

- get: on a throwaway event loop owned by the call, blocking the caller.
- get_async: as a task on the process-wide shared loop, returning an
  awaitable bound to the caller's event loop.
- get_bridged: as a task on the shared loop, blocking the caller until the
  task completes.
"""

import asyncio
import concurrent.futures
import functools
import logging
from typing import Mapping, Optional

import httpx

from httpbridge.asyncio import SharedLoop, shared_loop
from httpbridge.config import DEFAULT_CONFIG, Config
from httpbridge.error import InvalidHeader
from httpbridge.request import RequestSpec, build
from httpbridge.response import Response
from httpbridge.transport import read, send

logger = logging.getLogger(__name__)


def get(
    url: str,
    headers: Optional[Mapping[str, str]] = None,
    body: Optional[bytes] = None,
    config: Optional[Config] = None,
) -> Response:
    """Perform an HTTP GET and block until the response is available.

    The request runs on a new event loop that is closed before the function
    returns, whether the request succeeded or not. The body is read in full
    before the loop is closed, so the returned response does not depend on
    any event loop.

    Args:
        url: The URL to request.

        headers: Request headers, sent as given.

        body: Raw request payload.

        config: Transport options. Defaults to DEFAULT_CONFIG.

    Returns:
        The response.

    Raises:
        InvalidHeader: if a header is malformed; nothing is sent.
        RequestFailed: if the transport failed.
    """
    spec = build(url, headers, body)
    with asyncio.Runner() as runner:
        response = runner.run(_fetch(spec, config or DEFAULT_CONFIG))
    return Response(response)


def get_async(
    url: str,
    headers: Optional[Mapping[str, str]] = None,
    body: Optional[bytes] = None,
    loop: Optional[SharedLoop] = None,
) -> "asyncio.Future[Response]":
    """Start an HTTP GET on the shared loop and return a future of the
    response. Must be called from a running event loop.

    The returned future belongs to the caller's event loop. Failures,
    including malformed headers, are set on the future. Cancelling it
    cancels the request.

    Args:
        url: The URL to request.

        headers: Request headers, sent as given.

        body: Raw request payload.

        loop: The shared loop to run the request on. Defaults to the
            process-wide loop returned by shared_loop().
    """
    caller = asyncio.get_running_loop()
    shared = loop or shared_loop()
    try:
        spec = build(url, headers, body)
    except InvalidHeader as e:
        future = caller.create_future()
        future.set_exception(e)
        return future
    source = shared.submit(_open(spec, shared))
    future = shared.wrap(source)
    future.add_done_callback(functools.partial(_release_if_cancelled, source))
    return future


def get_bridged(
    url: str,
    headers: Optional[Mapping[str, str]] = None,
    body: Optional[bytes] = None,
    loop: Optional[SharedLoop] = None,
) -> Response:
    """Perform an HTTP GET on the shared loop and block until the response
    is available. Unlike get, no event loop is created for the call.

    The body of the returned response is read from the shared loop when it
    is consumed.
    """
    spec = build(url, headers, body)
    shared = loop or shared_loop()
    return shared.run(_open(spec, shared))


async def _fetch(spec: RequestSpec, config: Config) -> httpx.Response:
    async with config.client() as client:
        response = await send(client, spec)
        await read(response)
    return response


async def _open(spec: RequestSpec, loop: SharedLoop) -> Response:
    response = await send(loop.client(), spec)
    return Response(response, loop=loop)


def _release_if_cancelled(
    source: "concurrent.futures.Future[Response]", future: "asyncio.Future[Response]"
):
    # The request may have completed on the shared loop after the caller
    # gave up on it, in which case nobody will ever see the response.
    if not future.cancelled() or not source.done() or source.cancelled():
        return
    if source.exception() is None:
        source.result()._release()
