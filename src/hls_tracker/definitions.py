"""Dagster definitions for the HLS tracker pipeline."""

from dagster import Definitions

from hls_tracker.connectors.http_client import HTTPResource
from hls_tracker.connectors.openai_client import OpenAIResource
from hls_tracker.connectors.s3_client import S3Resource
from hls_tracker.connectors.settings import SettingsResource
from hls_tracker.connectors.stac_client import STACResource
from hls_tracker.triggers.jobs import check_tracker_job

settings = SettingsResource.create(swallow_errors=True)

defs = Definitions(
    jobs=[check_tracker_job],
    resources={
        "s3": S3Resource(settings=settings),
        "stac": STACResource(settings=settings),
        "http": HTTPResource(settings=settings),
        "llm": OpenAIResource(settings=settings),
        "settings": settings,
    },
)
