from types import SimpleNamespace
from typing import Any

import httpx
import pytest

from hls_tracker.connectors import openai_client
from hls_tracker.connectors.http_client import HTTPResource
from hls_tracker.connectors.openai_client import OpenAIResource
from hls_tracker.connectors.s3_client import S3Resource
from hls_tracker.connectors.settings import SettingsResource
from hls_tracker.connectors.stac_client import STACResource


@pytest.fixture
def tracker_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("AWS_REGION", "eu-west-1")
    monkeypatch.setenv("AWS_S3_ENDPOINT", "http://localhost:9000")
    monkeypatch.setenv("AWS_S3_PIPELINE_BUCKET_NAME", "bucket")
    monkeypatch.setenv("AWS_S3_USE_SSL", "false")
    monkeypatch.setenv("STAC_API_URL", "http://stac")
    monkeypatch.setenv("EARTHDATA_TOKEN", "earthdata-token")
    monkeypatch.setenv("OPENAI_API_KEY", "sk-test")
    monkeypatch.setenv("HTTP_TIMEOUT_SECONDS", "30")
    monkeypatch.setenv("BAND_URL_EXPIRY_SECONDS", "600")
    monkeypatch.delenv("OPENAI_MODEL", raising=False)


def test_settings_create_from_env_uses_defaults(tracker_env: None) -> None:
    """
    Test that SettingsResource correctly loads from environment variables.

    Verifies that all settings are correctly read from environment,
    numeric values are parsed, and defaults are applied where appropriate.
    """
    settings = SettingsResource.create()
    assert settings.aws_region == "eu-west-1"
    assert settings.aws_s3_endpoint == "http://localhost:9000"
    assert settings.aws_s3_pipeline_bucket_name == "bucket"
    assert settings.aws_s3_use_ssl is False
    assert settings.stac_api_url == "http://stac"
    assert settings.earthdata_token == "earthdata-token"
    assert settings.openai_api_key == "sk-test"
    assert settings.openai_model == "gpt-4"
    assert settings.http_timeout_seconds == 30.0
    assert settings.band_url_expiry_seconds == 600


def test_s3_resource_creates_client(monkeypatch: pytest.MonkeyPatch, tracker_env: None) -> None:
    """
    Test that S3Resource creates a boto3 S3 client with correct parameters.

    Verifies that the resource passes the endpoint, region and SSL settings
    to boto3.
    """
    calls: dict[str, Any] = {}

    def fake_client(service: str, **kwargs: Any) -> Any:
        calls["service"] = service
        calls.update(kwargs)
        return SimpleNamespace()

    monkeypatch.setattr("boto3.client", fake_client)

    resource = S3Resource(settings=SettingsResource.create(swallow_errors=True))
    client = resource.get_client()
    assert client is not None
    assert calls["service"] == "s3"
    assert calls["endpoint_url"] == "http://localhost:9000"
    assert calls["region_name"] == "eu-west-1"
    assert calls["use_ssl"] is False
    assert calls["config"].signature_version == "s3v4"
    assert calls["config"].s3 == {"addressing_style": "path"}


def test_stac_resource_creates_client(monkeypatch: pytest.MonkeyPatch, tracker_env: None) -> None:
    """
    Test that STACResource creates a STAC client with correct URL.

    Verifies that the resource correctly initializes the STAC client
    with the configured API URL.
    """
    created = {}

    class FakeClient:
        @staticmethod
        def open(url: str) -> str:
            created["url"] = url
            return "fake-client"

    monkeypatch.setattr("hls_tracker.connectors.stac_client.Client", FakeClient)

    resource = STACResource(settings=SettingsResource.create(swallow_errors=True))
    client = resource.create_client()
    assert client == "fake-client"
    assert created["url"] == "http://stac"


@pytest.mark.asyncio
async def test_http_resource_follows_redirects(tracker_env: None) -> None:
    """Test that HTTP clients follow redirects and use the configured timeout."""

    def handle(request: httpx.Request) -> httpx.Response:
        if request.url.path == "/start":
            return httpx.Response(303, headers={"Location": "https://signed.example/end"})
        return httpx.Response(200, content=b"done")

    resource = HTTPResource(settings=SettingsResource.create(swallow_errors=True))
    async with resource.create_client(transport=httpx.MockTransport(handle)) as client:
        response = await client.get("https://data.example/start")

    assert response.content == b"done"
    assert str(response.url) == "https://signed.example/end"
    assert client.timeout.read == 30.0


def test_openai_resource_disables_retries(monkeypatch: pytest.MonkeyPatch, tracker_env: None) -> None:
    """Test that the OpenAI client is created with the API key and no retries."""
    created: dict[str, Any] = {}

    def fake_async_openai(**kwargs: Any) -> str:
        created.update(kwargs)
        return "fake-openai"

    monkeypatch.setattr(openai_client, "AsyncOpenAI", fake_async_openai)

    resource = OpenAIResource(settings=SettingsResource.create(swallow_errors=True))
    assert resource.create_client() == "fake-openai"
    assert created == {"api_key": "sk-test", "timeout": 30.0, "max_retries": 0}
