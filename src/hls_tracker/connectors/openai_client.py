"""OpenAI client connector for scene analysis."""

from typing import Any

from dagster import ConfigurableResource
from openai import AsyncOpenAI

from hls_tracker.connectors.settings import SettingsResource


class OpenAIResource(ConfigurableResource[Any]):
    """OpenAI resource for creating async chat-completion clients."""

    settings: SettingsResource

    def create_client(self) -> AsyncOpenAI:
        """Create OpenAI client.

        Built with ``max_retries=0``: a failed analysis ends the run.

        :returns: Configured AsyncOpenAI client
        """
        return AsyncOpenAI(
            api_key=self.settings.openai_api_key,
            timeout=self.settings.http_timeout_seconds,
            max_retries=0,
        )
