"""Dagster ops for tracker checks."""

from typing import Any

from dagster import Config, Failure, OpExecutionContext, Output, op

from hls_tracker.connectors.http_client import HTTPResource
from hls_tracker.connectors.openai_client import OpenAIResource
from hls_tracker.connectors.s3_client import S3Resource
from hls_tracker.connectors.settings import SettingsResource
from hls_tracker.connectors.stac_client import STACResource
from hls_tracker.exceptions import TrackerCheckError
from hls_tracker.pipeline import TrackerRunResult, run_tracker_check
from hls_tracker.storage import load_tracked_region


class TrackerCheckConfig(Config):
    """Run config of a tracker check."""

    tracker_id: str


def _create_success_output(result: TrackerRunResult) -> Output[dict[str, Any]]:
    """Create success Output for a tracker check.

    :param result: Run result
    :returns: Output with the event record and delivery metadata
    """
    event = result.event
    return Output(
        event.to_record(),
        metadata={
            "success": True,
            "event_id": event.id,
            "tracker_id": event.tracker_id,
            "cloud_cover": event.cloud_cover,
            "img_avg_color": event.img_avg_color,
            "tile_count": len(event.tile_avg_color),
            "webhooks_delivered": len(result.deliveries) - len(result.failed_deliveries),
            "webhooks_failed": len(result.failed_deliveries),
            "failed_targets": ", ".join(f"{d.target} ({d.error_kind})" for d in result.failed_deliveries),
        },
    )


@op
async def check_tracker(
    context: OpExecutionContext,
    config: TrackerCheckConfig,
    s3: S3Resource,
    stac: STACResource,
    http: HTTPResource,
    llm: OpenAIResource,
    settings: SettingsResource,
) -> Output[dict[str, Any]]:
    """Check a tracker's MGRS cell for new HLS imagery and emit an event.

    :param context: Dagster context
    :param config: Run config with the tracker ID
    :param s3: S3 resource
    :param stac: STAC resource
    :param http: HTTP resource
    :param llm: OpenAI resource
    :param settings: Settings resource
    :returns: Output with the recorded event
    """
    try:
        region = load_tracked_region(context, s3, settings, config.tracker_id)
        result = await run_tracker_check(context, region, s3, stac, http, llm, settings)
    except TrackerCheckError as e:
        context.log.error(f"Tracker check for {config.tracker_id} failed at {e.stage}: {e.message}")
        raise Failure(description=f"{type(e).__name__}: {e.message}", metadata=e.to_error_dict()) from e

    return _create_success_output(result)
