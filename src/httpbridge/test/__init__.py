import unittest

from httpbridge.asyncio import SharedLoop

from .server import Server
from .service import make_app

__all__ = [
    "Server",
    "TestCase",
    "make_app",
]


class TestCase(unittest.TestCase):
    """Base class of test cases that talk to the fixture service.

    Each test gets its own server and its own shared loop, both closed on
    tear down.
    """

    def setUp(self):
        self.server = Server(make_app())
        self.server.start()
        self.loop = SharedLoop()

    def tearDown(self):
        self.loop.close()
        self.server.stop()

    def url_for(self, path: str) -> str:
        return self.server.url_for(path)
