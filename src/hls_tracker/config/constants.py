"""Constants for catalog search, raster tiling and S3 paths."""

DEFAULT_STAC_API_URL = "https://cmr.earthdata.nasa.gov/stac/LPCLOUD"
DEFAULT_OPENAI_MODEL = "gpt-4"
DEFAULT_HTTP_TIMEOUT_SECONDS = 60.0
DEFAULT_BAND_URL_EXPIRY_SECONDS = 900

HLS_COLLECTION = "HLSL30.v2.0"
HLS_EVENT_TYPE = "hls"
SEARCH_LIMIT = 1
MAX_SEARCH_RETRIES = 5

PREVIEW_ASSET_KEY = "browse"
BAND_ASSET_KEY = "B07"
BAND_ASSET_NAME = "Red Edge 3"

# 100 km square, 50 km each side of the center
HALF_EXTENT_KM = 50.0
KM_PER_DEGREE = 111.132

TILE_WIDTH = 366
TILE_HEIGHT = 366

AWS_S3_TRACKERS_KEY = "trackers"
AWS_S3_TRACKER_EVENTS_KEY = "tracker-events"
AWS_S3_TRANSIENT_BANDS_KEY = "transient/bands"

SIGNING_SECRET_HEADER = "signing-secret"

ANALYSIS_TEMPERATURE = 1
ANALYSIS_MAX_TOKENS = 1500
ANALYSIS_TOP_P = 1
