import asyncio
import threading

import httpx
import pytest

from httpbridge.asyncio import SharedLoop, shared_loop


async def current_thread():
    return threading.current_thread()


async def fail():
    raise ValueError("oops")


def test_shared_loop_starts_lazily():
    loop = SharedLoop()
    try:
        assert not loop.running
        thread = loop.run(current_thread())
        assert loop.running
        assert thread is not threading.current_thread()
        assert thread.daemon
    finally:
        loop.close()
    assert not loop.running


def test_shared_loop_reuses_thread():
    with SharedLoop() as loop:
        assert loop.run(current_thread()) is loop.run(current_thread())


def test_shared_loop_propagates_errors():
    with SharedLoop() as loop:
        with pytest.raises(ValueError, match="oops"):
            loop.run(fail())
        with pytest.raises(ValueError, match="oops"):
            loop.submit(fail()).result()


def test_shared_loop_run_from_loop_thread():
    with SharedLoop() as loop:

        async def nested():
            return loop.run(current_thread())

        with pytest.raises(RuntimeError):
            loop.run(nested())


def test_shared_loop_client_is_created_once():
    with SharedLoop() as loop:

        async def clients():
            return loop.client(), loop.client()

        first, second = loop.run(clients())
        assert first is second
    assert first.is_closed


def test_shared_loop_close_cancels_pending_tasks():
    loop = SharedLoop()

    async def forever():
        await asyncio.Event().wait()

    future = loop.submit(forever())
    loop.close()
    assert future.cancelled()


@pytest.mark.asyncio
async def test_shared_loop_wrap():
    with SharedLoop() as loop:
        future = loop.wrap(loop.submit(current_thread()))
        assert isinstance(future, asyncio.Future)
        assert await future is not threading.current_thread()


@pytest.mark.asyncio
async def test_shared_loop_wrap_cancel():
    with SharedLoop() as loop:
        started = threading.Event()
        cancelled = threading.Event()

        async def forever():
            started.set()
            try:
                await asyncio.Event().wait()
            except asyncio.CancelledError:
                cancelled.set()
                raise

        future = loop.wrap(loop.submit(forever()))
        await asyncio.get_running_loop().run_in_executor(None, started.wait, 5)
        future.cancel()
        with pytest.raises(asyncio.CancelledError):
            await future
        assert await asyncio.get_running_loop().run_in_executor(
            None, cancelled.wait, 5
        )


def test_shared_loop_is_process_wide():
    assert shared_loop() is shared_loop()


def test_shared_loop_release():
    response = httpx.Response(200, stream=httpx.ByteStream(b"body"))
    with SharedLoop() as loop:
        loop.release(response)
        # Tasks start in submission order, so the close has run by now.
        loop.run(asyncio.sleep(0))
        assert response.is_closed


def test_shared_loop_release_when_not_running():
    response = httpx.Response(200, stream=httpx.ByteStream(b"body"))
    loop = SharedLoop()
    loop.release(response)
    assert not loop.running
    assert not response.is_closed
