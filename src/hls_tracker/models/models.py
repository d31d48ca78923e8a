"""Data models for tracker checks."""

import uuid
from datetime import date
from typing import Any

from pydantic import BaseModel, ConfigDict, Field as PydanticField, model_validator
from shapely.geometry import MultiPoint, mapping

from hls_tracker.config.constants import HLS_EVENT_TYPE


class TrackedRegion(BaseModel):
    """Tracker record as owned by the tracker-management collaborator.

    :param id: Tracker ID
    :param mgrs: 5-character MGRS grid cell (100 km square)
    :param webhook_targets: Webhook URIs notified on every event
    :param signing_secret: Secret sent with every webhook delivery
    """

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    id: str = PydanticField(..., description="ID of the tracker")
    mgrs: str = PydanticField(..., description="MGRS grid cell identifier")
    webhook_targets: list[str] = PydanticField(default_factory=list, alias="webhookTargets")
    signing_secret: str = PydanticField(..., alias="signingSecret")
    name: str | None = PydanticField(default=None, description="Display name of the tracker")
    description: str | None = PydanticField(default=None, description="Free-text description")


class BoundingBox(BaseModel):
    """Bounding box in degrees.

    :param west: Minimum longitude
    :param south: Minimum latitude
    :param east: Maximum longitude
    :param north: Maximum latitude
    """

    model_config = ConfigDict(frozen=True)

    west: float
    south: float
    east: float
    north: float

    @model_validator(mode="after")
    def _check_ordering(self) -> "BoundingBox":
        if not (self.west < self.east and self.south < self.north):
            raise ValueError(
                f"Invalid bounding box: west={self.west} east={self.east} south={self.south} north={self.north}"
            )
        return self

    def corners(self) -> list[list[float]]:
        """Return the south-west and north-east corners as [lon, lat] pairs."""
        return [[self.west, self.south], [self.east, self.north]]

    def to_multipoint(self) -> dict[str, Any]:
        """Return the two opposing corners as a GeoJSON MultiPoint.

        :returns: GeoJSON geometry dictionary
        """
        geometry = mapping(MultiPoint(self.corners()))
        return {"type": geometry["type"], "coordinates": [list(point) for point in geometry["coordinates"]]}

    def as_list(self) -> list[float]:
        return [self.west, self.south, self.east, self.north]


class SceneReference(BaseModel):
    """Catalog item found by a search.

    :param url: Self link of the catalog item
    :param search_date: Calendar day the successful search asked for
    :param attempts: Number of searches issued, including the successful one
    """

    model_config = ConfigDict(frozen=True)

    url: str
    search_date: date
    attempts: int = 1


class CatalogItem(BaseModel):
    """Fields of a catalog item document used downstream.

    :param cloud_cover: Cloud cover as reported by the catalog (0-1 fraction)
    :param assets: Asset name to href mapping
    :param bbox: Item bounding box [west, south, east, north]
    """

    cloud_cover: float
    assets: dict[str, str]
    bbox: list[float]

    @property
    def cloud_cover_percentage(self) -> float:
        """Cloud cover as a percentage rounded to two decimals."""
        return round(self.cloud_cover * 100, 2)


class BandAsset(BaseModel):
    """Band raster stored for the duration of one run.

    :param url: Address the raster reader opens
    :param key: Object store key, used to discard the asset
    :param size_bytes: Size of the stored raster
    """

    url: str
    key: str
    size_bytes: int


class TileStatistics(BaseModel):
    """Brightness statistics of a tiled band raster.

    :param image_mean: Unweighted mean of the tile means
    :param tile_means: Tile means in scan order (x outer, y inner)
    :param width: Raster width in pixels
    :param height: Raster height in pixels
    """

    model_config = ConfigDict(frozen=True)

    image_mean: float
    tile_means: list[float]
    width: int
    height: int


class AnalysisOutcome(BaseModel):
    """Unit of record delivered to webhooks and persisted.

    :param cloud_cover: Cloud cover percentage (two decimals)
    :param img_avg_color: Image mean
    :param tile_avg_color: Tile means in scan order
    :param narrative: Model narrative
    :param bbox: Catalog item bounding box [west, south, east, north]
    :param sat_image: Resolved preview image URL
    """

    model_config = ConfigDict(frozen=True)

    cloud_cover: float = PydanticField(..., ge=0, le=100)
    img_avg_color: float
    tile_avg_color: list[float]
    narrative: str
    bbox: list[float]
    sat_image: str | None = None


class TrackerEvent(BaseModel):
    """Immutable record of one successful tracker check."""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    id: str = PydanticField(default_factory=lambda: str(uuid.uuid4()))
    tracker_id: str = PydanticField(..., alias="trackerId")
    event_type: str = PydanticField(default=HLS_EVENT_TYPE, alias="eventType")
    gpt4_response: str = PydanticField(..., alias="gpt4Response")
    sat_image: str | None = PydanticField(default=None, alias="satImage")
    cloud_cover: float = PydanticField(..., alias="cloudCover")
    img_avg_color: float = PydanticField(..., alias="imgAvgColor")
    tile_avg_color: list[float] = PydanticField(..., alias="tileAvgColor")
    bbox: list[list[float]] = PydanticField(..., description="[[lat, lng], [lat, lng]] lower left, upper right")

    @classmethod
    def from_outcome(cls, tracker_id: str, outcome: AnalysisOutcome) -> "TrackerEvent":
        """Create an event from an analysis outcome.

        :param tracker_id: Owning tracker ID
        :param outcome: Analysis outcome
        :returns: TrackerEvent with a fresh ID
        """
        west, south, east, north = outcome.bbox
        return cls(
            tracker_id=tracker_id,
            gpt4_response=outcome.narrative,
            sat_image=outcome.sat_image,
            cloud_cover=outcome.cloud_cover,
            img_avg_color=outcome.img_avg_color,
            tile_avg_color=list(outcome.tile_avg_color),
            bbox=[[south, west], [north, east]],
        )

    def to_record(self) -> dict[str, Any]:
        """Persisted representation."""
        return self.model_dump(mode="json", by_alias=True)

    def webhook_payload(self) -> dict[str, Any]:
        """Webhook body: the record without its storage ID."""
        record = self.to_record()
        record.pop("id")
        return record


class DeliveryOutcome(BaseModel):
    """Result of one webhook delivery.

    :param target: Webhook URI
    :param success: Whether the target accepted the event
    :param error_kind: Failure kind, None on success
    """

    target: str
    success: bool
    error_kind: str | None = None
