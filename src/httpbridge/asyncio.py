import asyncio
import concurrent.futures
import logging
import threading
from typing import Any, Coroutine, Optional, TypeVar

import httpx

from httpbridge.config import DEFAULT_CONFIG, Config

logger = logging.getLogger(__name__)

T = TypeVar("T")


class SharedLoop:
    """SharedLoop is an event loop running forever in a daemon thread.

    Callers never touch the loop directly: they submit coroutines and wait on
    (or await) the futures they get back. The loop is started on first use.
    The process-wide instance returned by shared_loop() is never closed;
    other instances can be created and closed to scope the loop to a test.

    Args:
        config: Transport options of the httpx client owned by the loop.
    """

    def __init__(self, config: Config = DEFAULT_CONFIG):
        self.config = config
        self._lock = threading.Lock()
        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._thread: Optional[threading.Thread] = None
        self._client: Optional[httpx.AsyncClient] = None

    def __enter__(self):
        self.start()
        return self

    def __exit__(self, *args, **kwargs):
        self.close()

    @property
    def running(self) -> bool:
        return self._loop is not None

    def start(self) -> asyncio.AbstractEventLoop:
        """Start the loop thread if it is not running yet, and return the
        loop."""
        with self._lock:
            if self._loop is None:
                loop = asyncio.new_event_loop()
                ready = threading.Event()
                thread = threading.Thread(
                    target=_run_forever,
                    args=(loop, ready),
                    name="httpbridge-shared-loop",
                    daemon=True,
                )
                thread.start()
                ready.wait()
                self._loop, self._thread = loop, thread
                logger.debug("started shared event loop in thread %s", thread.name)
            return self._loop

    def in_loop_thread(self) -> bool:
        return self._thread is threading.current_thread()

    def client(self) -> httpx.AsyncClient:
        """Returns the httpx client of the loop, creating it on first use.
        Must be called from a coroutine running on the shared loop."""
        if self._client is None:
            self._client = self.config.client()
        return self._client

    def submit(self, coro: Coroutine[Any, Any, T]) -> "concurrent.futures.Future[T]":
        """Schedule the coroutine as a task on the shared loop."""
        return asyncio.run_coroutine_threadsafe(coro, self.start())

    def wrap(self, future: "concurrent.futures.Future[T]") -> "asyncio.Future[T]":
        """Adapt a future of the shared loop to the caller's running loop.

        Cancelling the returned future cancels the task on the shared loop.
        """
        return asyncio.wrap_future(future, loop=asyncio.get_running_loop())

    def release(self, response: httpx.Response):
        """Close a streaming response of the loop's client, returning its
        connection to the pool. Safe to call from any thread, including
        garbage collection; does nothing if the loop is not running."""
        loop = self._loop
        if loop is None or response.is_closed:
            return
        coro = response.aclose()
        try:
            asyncio.run_coroutine_threadsafe(coro, loop)
        except RuntimeError:
            # the loop was closed concurrently, its client went with it
            coro.close()

    def run(self, coro: Coroutine[Any, Any, T]) -> T:
        """Submit the coroutine and block the calling thread until it
        completes."""
        if self.in_loop_thread():
            coro.close()
            raise RuntimeError(
                "SharedLoop.run() cannot be called from the shared loop thread"
            )
        future = self.submit(coro)
        try:
            return future.result()
        except BaseException:
            future.cancel()
            raise

    def close(self):
        """Stop the loop and join its thread. Pending tasks are cancelled and
        the httpx client is closed."""
        with self._lock:
            loop, thread = self._loop, self._thread
            self._loop = self._thread = None
        if loop is None or thread is None:
            return
        asyncio.run_coroutine_threadsafe(self._shutdown(), loop).result()
        loop.call_soon_threadsafe(loop.stop)
        thread.join()
        loop.close()
        logger.debug("closed shared event loop")

    async def _shutdown(self):
        if self._client is not None:
            client, self._client = self._client, None
            await client.aclose()

        current = asyncio.current_task()
        to_cancel = [task for task in asyncio.all_tasks() if task is not current]
        for task in to_cancel:
            task.cancel()
        await asyncio.gather(*to_cancel, return_exceptions=True)
        await asyncio.get_running_loop().shutdown_asyncgens()


def _run_forever(loop: asyncio.AbstractEventLoop, ready: threading.Event):
    asyncio.set_event_loop(loop)
    loop.call_soon(ready.set)
    loop.run_forever()


_shared: Optional[SharedLoop] = None
_shared_lock = threading.Lock()


def shared_loop() -> SharedLoop:
    """Returns the process-wide SharedLoop, creating it on first use."""
    global _shared
    with _shared_lock:
        if _shared is None:
            _shared = SharedLoop()
        return _shared
