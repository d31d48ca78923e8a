"""HTTP client connector for asset downloads and webhook delivery."""

from typing import Any

import httpx
from dagster import ConfigurableResource

from hls_tracker.connectors.settings import SettingsResource


class HTTPResource(ConfigurableResource[Any]):
    """HTTP resource for creating async httpx clients.

    Clients follow redirects: the preview and band assets are served behind
    303 redirects to signed object URLs.
    """

    settings: SettingsResource

    def create_client(self, transport: httpx.AsyncBaseTransport | None = None) -> httpx.AsyncClient:
        """Create async HTTP client.

        :param transport: Optional transport override
        :returns: Configured httpx AsyncClient, to be used as an async context manager
        """
        return httpx.AsyncClient(
            follow_redirects=True,
            timeout=httpx.Timeout(self.settings.http_timeout_seconds),
            transport=transport,
        )
