from dataclasses import dataclass
from typing import Optional

import httpx

DEFAULT_MAX_REDIRECTS = 10
DEFAULT_MAX_CONNECTIONS = 100
DEFAULT_MAX_KEEPALIVE_CONNECTIONS = 20


@dataclass(frozen=True)
class Config:
    """Transport options applied to the httpx clients created by the bridge.

    There is no timeout by default: a call to an unresponsive peer may block
    indefinitely. Proxy and certificate settings are never read from the
    environment.
    """

    follow_redirects: bool = True
    max_redirects: int = DEFAULT_MAX_REDIRECTS
    timeout: Optional[float] = None
    verify: bool = True
    max_connections: int = DEFAULT_MAX_CONNECTIONS

    def client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            follow_redirects=self.follow_redirects,
            max_redirects=self.max_redirects,
            timeout=httpx.Timeout(self.timeout),
            verify=self.verify,
            limits=httpx.Limits(
                max_connections=self.max_connections,
                max_keepalive_connections=min(
                    self.max_connections, DEFAULT_MAX_KEEPALIVE_CONNECTIONS
                ),
            ),
            trust_env=False,
        )


DEFAULT_CONFIG = Config()
