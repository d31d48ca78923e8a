"""Error taxonomy for a tracker check run.

Every failure that ends an invocation is a ``TrackerCheckError`` subclass.
Each carries the pipeline ``stage`` it was raised from and a stable
machine-readable ``code``. Webhook delivery failures are not part of this
taxonomy: they are recorded per target and never end a run.
"""

from __future__ import annotations


class TrackerCheckError(Exception):
    """Base exception for a terminal tracker check failure.

    :param message: Human-readable error description
    :param stage: Pipeline stage where the error occurred
    :param code: Machine-readable error code
    """

    default_stage: str = ""
    default_code: str = ""

    def __init__(self, message: str = "", *, stage: str = "", code: str = "") -> None:
        self.message = message
        self.stage = stage or self.default_stage
        self.code = code or self.default_code
        super().__init__(message)

    def to_error_dict(self) -> dict[str, str]:
        """Return a structured error payload with stable keys."""
        return {
            "error": type(self).__name__,
            "code": self.code,
            "stage": self.stage,
            "message": self.message,
        }


class TrackerNotFound(TrackerCheckError):
    """Tracker record is missing from the tracker store."""

    default_stage = "load_tracker"
    default_code = "TRACKER_NOT_FOUND"


class InvalidCoordinate(TrackerCheckError):
    """MGRS conversion produced an unusable latitude/longitude."""

    default_stage = "locate"
    default_code = "INVALID_COORDINATE"


class SceneNotFound(TrackerCheckError):
    """No scene was found after exhausting all search days."""

    default_stage = "search"
    default_code = "SCENE_NOT_FOUND"

    def __init__(self, message: str = "", *, attempts: int = 0, **kwargs: str) -> None:
        self.attempts = attempts
        super().__init__(message, **kwargs)


class MalformedCatalogResponse(TrackerCheckError):
    """Catalog response lacks a field the pipeline depends on."""

    default_stage = "search"
    default_code = "MALFORMED_CATALOG_RESPONSE"


class AssetUnavailable(TrackerCheckError):
    """Item document, preview or band asset could not be retrieved."""

    default_stage = "fetch"
    default_code = "ASSET_UNAVAILABLE"


class StorageFailure(TrackerCheckError):
    """Object store write or read failed."""

    default_stage = "store"
    default_code = "STORAGE_FAILURE"


class RasterReadError(TrackerCheckError):
    """Band raster could not be opened or a tile window could not be read."""

    default_stage = "tile"
    default_code = "RASTER_READ_ERROR"


class AnalysisUnavailable(TrackerCheckError):
    """Language-model completion failed or returned no content."""

    default_stage = "analyze"
    default_code = "ANALYSIS_UNAVAILABLE"
