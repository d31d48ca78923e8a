"""STAC client connector for the HLS scene catalog."""

from typing import Any

from dagster import ConfigurableResource
from pystac_client import Client

from hls_tracker.connectors.settings import SettingsResource


class STACResource(ConfigurableResource[Any]):
    """STAC resource for creating STAC API clients."""

    settings: SettingsResource

    def create_client(self) -> Any:
        """Create STAC client.

        Opening the client fetches the catalog landing page, so callers treat
        a failure here like a failed search.

        :returns: Configured STAC client
        """
        return Client.open(self.settings.stac_api_url)
