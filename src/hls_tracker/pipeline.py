"""Tracker check pipeline: locate, search, fetch, tile, analyze, deliver."""

import asyncio
from datetime import date
from typing import Any

from dagster import AssetExecutionContext, OpExecutionContext
from pydantic import BaseModel

from hls_tracker.analysis import request_analysis
from hls_tracker.connectors.settings import SettingsResource
from hls_tracker.geospatial.grid_ops import extent_km, locate_cell
from hls_tracker.geospatial.raster_ops import tile_band_raster
from hls_tracker.geospatial.stac_ops import fetch_band, find_scene
from hls_tracker.models.models import (
    AnalysisOutcome,
    DeliveryOutcome,
    TrackedRegion,
    TrackerEvent,
)
from hls_tracker.notifications import notify_webhooks
from hls_tracker.storage import discard_band_asset, record_tracker_event, store_band_asset


class TrackerRunResult(BaseModel):
    """Outcome of a successful tracker check.

    :param event: Recorded tracker event
    :param deliveries: Webhook delivery outcome per target
    """

    event: TrackerEvent
    deliveries: list[DeliveryOutcome]

    @property
    def failed_deliveries(self) -> list[DeliveryOutcome]:
        return [d for d in self.deliveries if not d.success]


async def _deliver_and_record(
    context: OpExecutionContext | AssetExecutionContext,
    http_client: Any,
    s3: Any,
    settings: SettingsResource,
    s3_client: Any,
    region: TrackedRegion,
    event: TrackerEvent,
) -> list[DeliveryOutcome]:
    """Run webhook fan-out and event persistence side by side.

    Neither sink waits for the other. Webhook failures are absorbed; a
    persistence failure is raised once both have finished.
    """
    deliveries, recorded = await asyncio.gather(
        notify_webhooks(context, http_client, event, region.webhook_targets, region.signing_secret),
        asyncio.to_thread(record_tracker_event, context, s3, settings, event, s3_client),
        return_exceptions=True,
    )

    if isinstance(deliveries, BaseException):
        context.log.error(f"Webhook fan-out failed: {deliveries!r}")
        deliveries = [
            DeliveryOutcome(target=target, success=False, error_kind=type(deliveries).__name__)
            for target in region.webhook_targets
        ]
    if isinstance(recorded, BaseException):
        raise recorded
    return deliveries


async def run_tracker_check(
    context: OpExecutionContext | AssetExecutionContext,
    region: TrackedRegion,
    s3: Any,
    stac: Any,
    http: Any,
    openai_resource: Any,
    settings: SettingsResource,
    today: date | None = None,
) -> TrackerRunResult:
    """Run one tracker check end to end.

    Every stage failure raises a ``TrackerCheckError`` subclass and ends the
    run; nothing is recorded or delivered in that case. Only webhook
    delivery failures are absorbed.

    :param context: Dagster context
    :param region: Tracker record
    :param s3: S3 resource
    :param stac: STAC resource
    :param http: HTTP resource
    :param openai_resource: OpenAI resource
    :param settings: Settings resource
    :param today: Day of the first catalog search, defaults to the current UTC date
    :returns: TrackerRunResult with the recorded event
    """
    bbox = locate_cell(region.mgrs)
    width_km, height_km = extent_km(bbox)
    context.log.info(
        f"Tracker {region.id}: MGRS {region.mgrs} located at {bbox.as_list()} ({width_km:.1f} x {height_km:.1f} km)"
    )

    context.log.info("Searching for HLS data...")
    scene = await find_scene(context, stac, bbox, today=today)

    s3_client = s3.get_client()
    async with http.create_client() as http_client:
        preview_url, catalog_item, band_bytes = await fetch_band(
            context, http_client, scene, settings.earthdata_token
        )
        band = await asyncio.to_thread(store_band_asset, context, s3, settings, region.id, band_bytes, s3_client)

        context.log.info("Making analysis...")
        try:
            stats = await asyncio.to_thread(tile_band_raster, band.url)
        finally:
            await asyncio.to_thread(discard_band_asset, context, s3, settings, band, s3_client)
        context.log.info(f"Tiled {stats.width}x{stats.height} raster into {len(stats.tile_means)} tiles")

        context.log.info("Producing model analysis...")
        async with openai_resource.create_client() as openai_client:
            narrative = await request_analysis(
                context,
                openai_client,
                region.mgrs,
                catalog_item.cloud_cover_percentage,
                stats.image_mean,
                stats.tile_means,
                model=settings.openai_model,
            )

        outcome = AnalysisOutcome(
            cloud_cover=catalog_item.cloud_cover_percentage,
            img_avg_color=stats.image_mean,
            tile_avg_color=stats.tile_means,
            narrative=narrative,
            bbox=catalog_item.bbox,
            sat_image=preview_url,
        )
        event = TrackerEvent.from_outcome(region.id, outcome)

        context.log.info("Firing webhooks and logging event...")
        deliveries = await _deliver_and_record(context, http_client, s3, settings, s3_client, region, event)

    context.log.info(f"Done! Event {event.id} recorded for tracker {region.id}")
    return TrackerRunResult(event=event, deliveries=deliveries)
