"""Storage operations for tracker records, transient bands and tracker events."""

import json
import uuid
from typing import Any

from botocore.exceptions import BotoCoreError, ClientError
from dagster import AssetExecutionContext, OpExecutionContext
from pydantic import ValidationError

from hls_tracker.config.constants import (
    AWS_S3_TRACKER_EVENTS_KEY,
    AWS_S3_TRACKERS_KEY,
    AWS_S3_TRANSIENT_BANDS_KEY,
)
from hls_tracker.connectors.s3_client import S3Resource
from hls_tracker.connectors.settings import SettingsResource
from hls_tracker.exceptions import StorageFailure, TrackerNotFound
from hls_tracker.models.models import BandAsset, TrackedRegion, TrackerEvent


def _is_missing(error: ClientError) -> bool:
    return error.response.get("Error", {}).get("Code") in ("404", "NoSuchKey", "NotFound")


def tracker_key(tracker_id: str) -> str:
    return f"{AWS_S3_TRACKERS_KEY}/{tracker_id}.json"


def tracker_event_key(tracker_id: str, event_id: str) -> str:
    return f"{AWS_S3_TRACKER_EVENTS_KEY}/{tracker_id}/{event_id}.json"


def load_tracked_region(
    context: OpExecutionContext | AssetExecutionContext,
    s3: S3Resource,
    settings: SettingsResource,
    tracker_id: str,
    s3_client: Any | None = None,
) -> TrackedRegion:
    """Load a tracker record from S3.

    Tracker records are written by the tracker-management service; this
    pipeline only reads them.

    :param context: Dagster context
    :param s3: S3 resource
    :param settings: Settings resource
    :param tracker_id: Tracker ID
    :param s3_client: Optional S3 client
    :returns: TrackedRegion
    :raises TrackerNotFound: If no record exists for the tracker
    :raises StorageFailure: If the record cannot be read or parsed
    """
    if s3_client is None:
        s3_client = s3.get_client()
    bucket = settings.aws_s3_pipeline_bucket_name
    key = tracker_key(tracker_id)

    try:
        response = s3_client.get_object(Bucket=bucket, Key=key)
        record = json.loads(response["Body"].read().decode("utf-8"))
    except ClientError as e:
        if _is_missing(e):
            raise TrackerNotFound(f"Tracker {tracker_id} was not found at s3://{bucket}/{key}") from e
        raise StorageFailure(f"Error loading tracker {tracker_id}: {e}", stage="load_tracker") from e
    except (BotoCoreError, ValueError) as e:
        raise StorageFailure(f"Error loading tracker {tracker_id}: {e}", stage="load_tracker") from e

    try:
        region = TrackedRegion.model_validate(record)
    except ValidationError as e:
        raise StorageFailure(f"Tracker record {key} is invalid: {e}", stage="load_tracker") from e

    context.log.debug(f"Loaded tracker {tracker_id} (MGRS {region.mgrs}, {len(region.webhook_targets)} webhook(s))")
    return region


def store_band_asset(
    context: OpExecutionContext | AssetExecutionContext,
    s3: S3Resource,
    settings: SettingsResource,
    tracker_id: str,
    band_bytes: bytes,
    s3_client: Any | None = None,
) -> BandAsset:
    """Store band bytes under a transient key and presign a GET URL for them.

    :param context: Dagster context
    :param s3: S3 resource
    :param settings: Settings resource
    :param tracker_id: Tracker ID, used in the key
    :param band_bytes: Raw GeoTIFF bytes
    :param s3_client: Optional S3 client
    :returns: BandAsset addressable by URL
    :raises StorageFailure: If the upload or presigning fails
    """
    if s3_client is None:
        s3_client = s3.get_client()
    bucket = settings.aws_s3_pipeline_bucket_name
    key = f"{AWS_S3_TRANSIENT_BANDS_KEY}/{tracker_id}/{uuid.uuid4()}.tif"

    try:
        s3_client.put_object(Bucket=bucket, Key=key, Body=band_bytes, ContentType="image/tiff")
        url = s3_client.generate_presigned_url(
            "get_object",
            Params={"Bucket": bucket, "Key": key},
            ExpiresIn=settings.band_url_expiry_seconds,
        )
    except (ClientError, BotoCoreError) as e:
        raise StorageFailure(f"Failed to store band image: {e}") from e

    if not url:
        raise StorageFailure(f"No URL for stored band image s3://{bucket}/{key}")

    context.log.debug(f"Stored band image ({len(band_bytes)} bytes) at s3://{bucket}/{key}")
    return BandAsset(url=url, key=key, size_bytes=len(band_bytes))


def discard_band_asset(
    context: OpExecutionContext | AssetExecutionContext,
    s3: S3Resource,
    settings: SettingsResource,
    band: BandAsset,
    s3_client: Any | None = None,
) -> None:
    """Delete a transient band image.

    :param context: Dagster context
    :param s3: S3 resource
    :param settings: Settings resource
    :param band: Band asset to delete
    :param s3_client: Optional S3 client
    """
    if s3_client is None:
        s3_client = s3.get_client()
    try:
        s3_client.delete_object(Bucket=settings.aws_s3_pipeline_bucket_name, Key=band.key)
    except (ClientError, BotoCoreError) as e:
        context.log.warning(f"Could not delete transient band image {band.key}: {e}")


def record_tracker_event(
    context: OpExecutionContext | AssetExecutionContext,
    s3: S3Resource,
    settings: SettingsResource,
    event: TrackerEvent,
    s3_client: Any | None = None,
) -> str:
    """Append a tracker event to the event store.

    Events are never overwritten: an existing key is a failure.

    :param context: Dagster context
    :param s3: S3 resource
    :param settings: Settings resource
    :param event: Tracker event
    :param s3_client: Optional S3 client
    :returns: Event ID
    :raises StorageFailure: If the event exists already or cannot be written
    """
    if s3_client is None:
        s3_client = s3.get_client()
    bucket = settings.aws_s3_pipeline_bucket_name
    key = tracker_event_key(event.tracker_id, event.id)

    try:
        s3_client.head_object(Bucket=bucket, Key=key)
    except ClientError as e:
        if not _is_missing(e):
            raise StorageFailure(f"Error checking event {event.id}: {e}", stage="record") from e
    except BotoCoreError as e:
        raise StorageFailure(f"Error checking event {event.id}: {e}", stage="record") from e
    else:
        raise StorageFailure(f"Event {event.id} already exists at s3://{bucket}/{key}", stage="record")

    try:
        s3_client.put_object(
            Bucket=bucket,
            Key=key,
            Body=json.dumps(event.to_record(), indent=2).encode("utf-8"),
            ContentType="application/json",
        )
    except (ClientError, BotoCoreError) as e:
        raise StorageFailure(f"Failed to write event {event.id}: {e}", stage="record") from e

    context.log.info(f"Logged tracker event to S3: s3://{bucket}/{key}")
    return event.id


def list_tracker_event_keys(s3_client: Any, bucket: str, tracker_id: str) -> list[str]:
    """List event object keys of one tracker.

    :param s3_client: S3 client
    :param bucket: S3 bucket name
    :param tracker_id: Tracker ID
    :returns: Event JSON keys, most recently written first
    """
    objects = []
    paginator = s3_client.get_paginator("list_objects_v2")
    page_iterator = paginator.paginate(Bucket=bucket, Prefix=f"{AWS_S3_TRACKER_EVENTS_KEY}/{tracker_id}/")

    for page in page_iterator:
        for obj in page.get("Contents", []):
            if obj["Key"].endswith(".json"):
                objects.append(obj)

    objects.sort(key=lambda obj: str(obj.get("LastModified", "")), reverse=True)
    return [obj["Key"] for obj in objects]
