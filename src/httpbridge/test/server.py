import asyncio
import threading
from typing import Optional

from aiohttp import web


class Server:
    """Test server for an aiohttp application. The server runs on its own
    event loop in a background thread, so that blocking clients can be
    tested from the main thread.

    The server counts the TCP connections it accepts, which lets tests
    assert that no network activity happened.

    Args:
        app: Application to serve.
        host: Hostname to bind to.
        port: Port to bind to, or 0 to bind to any available port.
    """

    def __init__(self, app: web.Application, host: str = "127.0.0.1", port: int = 0):
        self.app = app
        self.host = host
        self.port = port
        self.connections = 0

        self._runner = asyncio.Runner()
        self._thread: Optional[threading.Thread] = None
        self._app_runner: Optional[web.AppRunner] = None
        self._server: Optional[asyncio.AbstractServer] = None
        self._stopped: Optional[asyncio.Event] = None

    @property
    def url(self) -> str:
        """Returns the URL of the server."""
        return f"http://{self.host}:{self.port}"

    def url_for(self, path: str) -> str:
        return self.url + path

    def start(self):
        """Start the server."""
        self._runner.run(self._start())
        self._thread = threading.Thread(target=self._runner.run, args=(self._wait(),))
        self._thread.start()

    def stop(self):
        """Stop the server."""
        assert self._stopped is not None and self._thread is not None
        self._runner.get_loop().call_soon_threadsafe(self._stopped.set)
        self._thread.join()
        self._runner.close()

    def __enter__(self):
        self.start()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.stop()

    async def _start(self):
        self._app_runner = web.AppRunner(self.app, access_log=None)
        await self._app_runner.setup()

        loop = asyncio.get_running_loop()
        self._server = await loop.create_server(self._accept, self.host, self.port)
        if self.port == 0:
            self.port = self._server.sockets[0].getsockname()[1]
        self._stopped = asyncio.Event()

    def _accept(self):
        assert self._app_runner is not None and self._app_runner.server is not None
        self.connections += 1
        return self._app_runner.server()

    async def _wait(self):
        assert self._stopped is not None
        await self._stopped.wait()
        assert self._server is not None and self._app_runner is not None
        self._server.close()
        await self._app_runner.cleanup()
