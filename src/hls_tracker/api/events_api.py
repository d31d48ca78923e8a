"""FastAPI application for reading recorded tracker events from S3.

This API reads directly from S3 on each request, so events recorded by a
tracker check are available immediately without restarting the server.
"""

import json
from functools import lru_cache
from typing import Any

from botocore.exceptions import ClientError
from fastapi import FastAPI, HTTPException, Query

from hls_tracker.connectors.s3_client import S3Resource
from hls_tracker.connectors.settings import SettingsResource
from hls_tracker.storage import list_tracker_event_keys, tracker_event_key

app = FastAPI(
    title="HLS Tracker Events API",
    description="Read-only API over recorded tracker events",
    version="1.0.0",
)


@lru_cache(maxsize=1)
def get_settings() -> SettingsResource:
    return SettingsResource.create(swallow_errors=True)


@lru_cache(maxsize=1)
def get_s3_client() -> Any:
    return S3Resource(settings=get_settings()).get_client()


def _load_json_from_s3(key: str) -> dict[str, Any]:
    """Load JSON object from S3.

    :param key: S3 key
    :returns: JSON dictionary
    :raises HTTPException: If object not found
    """
    try:
        response = get_s3_client().get_object(Bucket=get_settings().aws_s3_pipeline_bucket_name, Key=key)
        content = response["Body"].read().decode("utf-8")
        result: dict[str, Any] = json.loads(content)
        return result
    except ClientError as e:
        if e.response.get("Error", {}).get("Code") == "NoSuchKey":
            raise HTTPException(status_code=404, detail=f"Event not found: {key}") from e
        raise HTTPException(status_code=500, detail=f"Error loading from S3: {e}") from e


@app.get("/trackers/{tracker_id}/events")
def list_tracker_events(
    tracker_id: str,
    limit: int = Query(default=10, ge=1, le=1000),
    event_type: str | None = Query(default=None, description="Filter by event type (e.g. 'hls')"),
) -> dict[str, Any]:
    """List recorded events of a tracker, most recent first.

    :param tracker_id: Tracker ID
    :param limit: Maximum number of events to return
    :param event_type: Event type filter
    :returns: Tracker ID and its events
    """
    keys = list_tracker_event_keys(get_s3_client(), get_settings().aws_s3_pipeline_bucket_name, tracker_id)

    events = []
    for key in keys:
        try:
            event = _load_json_from_s3(key)
        except HTTPException:
            continue
        if event_type and event.get("eventType") != event_type:
            continue
        events.append(event)
        if len(events) >= limit:
            break

    return {"trackerId": tracker_id, "events": events}


@app.get("/trackers/{tracker_id}/events/{event_id}")
def get_tracker_event(tracker_id: str, event_id: str) -> dict[str, Any]:
    """Get one recorded event.

    :param tracker_id: Tracker ID
    :param event_id: Event ID
    :returns: Event record
    """
    try:
        return _load_json_from_s3(tracker_event_key(tracker_id, event_id))
    except HTTPException as e:
        if e.status_code == 404:
            raise HTTPException(status_code=404, detail=f"Event not found: {event_id}") from e
        raise
