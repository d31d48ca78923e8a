"""STAC operations for finding HLS scenes and fetching band assets."""

import asyncio
import math
from datetime import UTC, date, datetime, timedelta
from typing import Any

import httpx
from dagster import AssetExecutionContext, OpExecutionContext
from jsonpath_ng.ext import parse
from pystac_client.exceptions import APIError

from hls_tracker.config.constants import (
    BAND_ASSET_KEY,
    HLS_COLLECTION,
    MAX_SEARCH_RETRIES,
    PREVIEW_ASSET_KEY,
    SEARCH_LIMIT,
)
from hls_tracker.exceptions import AssetUnavailable, MalformedCatalogResponse, SceneNotFound
from hls_tracker.models.models import BoundingBox, CatalogItem, SceneReference

_SELF_LINK = parse('$.links[?(@.rel == "self")].href')


def build_search_params(bbox: BoundingBox, search_date: date) -> dict[str, Any]:
    """Build catalog search parameters for one calendar day.

    :param bbox: Bounding box to intersect
    :param search_date: Calendar day to search
    :returns: Search keyword arguments for the STAC client
    """
    return {
        "limit": SEARCH_LIMIT,
        "max_items": SEARCH_LIMIT,
        "collections": [HLS_COLLECTION],
        "datetime": f"{search_date.isoformat()}T00:00:00Z",
        "intersects": bbox.to_multipoint(),
    }


def extract_self_link(feature: dict[str, Any]) -> str:
    """Extract the self link of a catalog feature.

    :param feature: STAC item dictionary
    :returns: Self link href
    :raises MalformedCatalogResponse: If the feature has no self link
    """
    matches = _SELF_LINK.find(feature)
    if not matches or not matches[0].value:
        raise MalformedCatalogResponse(f"Catalog feature {feature.get('id')!r} has no self link")
    return str(matches[0].value)


def _search_day(stac_client: Any, params: dict[str, Any]) -> list[dict[str, Any]]:
    return list(stac_client.search(**params).items_as_dicts())


async def find_scene(
    context: OpExecutionContext | AssetExecutionContext,
    stac: Any,
    bbox: BoundingBox,
    today: date | None = None,
    max_retries: int = MAX_SEARCH_RETRIES,
) -> SceneReference:
    """Find the freshest HLS scene intersecting a bounding box.

    Searches today first, then steps back one calendar day per failed
    attempt: a catalog error or an empty result both count as a failure.

    :param context: Dagster context
    :param stac: STAC resource
    :param bbox: Bounding box
    :param today: Day of the first attempt, defaults to the current UTC date
    :param max_retries: Retries after the first attempt
    :returns: SceneReference of the first feature found
    :raises SceneNotFound: If every attempt failed
    """
    search_date = today or datetime.now(UTC).date()
    stac_client = None

    for attempt in range(max_retries + 1):
        if attempt > 0:
            context.log.warning(f"Attempt {attempt + 1}/{max_retries + 1} to search for HLS data ({search_date})")

        params = build_search_params(bbox, search_date)
        try:
            if stac_client is None:
                stac_client = await asyncio.to_thread(stac.create_client)
            features = await asyncio.to_thread(_search_day, stac_client, params)
        except APIError as e:
            context.log.error(f"HLS search failed for {search_date}: {e}")
            features = None

        if features:
            scene_url = extract_self_link(features[0])
            context.log.info(f"Found HLS scene for {search_date}: {scene_url}")
            return SceneReference(url=scene_url, search_date=search_date, attempts=attempt + 1)

        if features is not None:
            context.log.warning(f"No HLS data found for {search_date}. Trying the previous day.")
        search_date -= timedelta(days=1)

    raise SceneNotFound(
        f"Failed to find HLS data after {max_retries + 1} attempts",
        attempts=max_retries + 1,
    )


def parse_catalog_item(item: dict[str, Any]) -> CatalogItem:
    """Parse a catalog item document.

    :param item: STAC item dictionary
    :returns: CatalogItem
    :raises AssetUnavailable: If cloud cover or assets are missing
    :raises MalformedCatalogResponse: If cloud cover is not a fraction in [0, 1]
    """
    properties = item.get("properties") or {}
    cloud_cover = properties.get("eo:cloud_cover")
    if cloud_cover is None:
        raise AssetUnavailable(f"Catalog item {item.get('id')!r} has no eo:cloud_cover property")
    try:
        cloud_cover = float(cloud_cover)
    except (TypeError, ValueError):
        cloud_cover = math.nan
    if not 0 <= cloud_cover <= 1:
        raise MalformedCatalogResponse(
            f"Catalog item {item.get('id')!r} has eo:cloud_cover {cloud_cover}, expected a fraction in [0, 1]",
            stage="fetch",
        )

    assets = {name: asset["href"] for name, asset in (item.get("assets") or {}).items() if asset.get("href")}
    bbox = item.get("bbox")
    if not bbox or len(bbox) != 4:
        raise AssetUnavailable(f"Catalog item {item.get('id')!r} has no usable bbox")

    return CatalogItem(cloud_cover=cloud_cover, assets=assets, bbox=[float(v) for v in bbox])


async def _get(http_client: httpx.AsyncClient, url: str, **kwargs: Any) -> httpx.Response:
    try:
        response = await http_client.get(url, **kwargs)
        response.raise_for_status()
    except httpx.HTTPStatusError as e:
        raise AssetUnavailable(f"GET {url} returned status {e.response.status_code}") from e
    except (httpx.HTTPError, httpx.InvalidURL) as e:
        raise AssetUnavailable(f"GET {url} failed: {e}") from e
    return response


async def fetch_band(
    context: OpExecutionContext | AssetExecutionContext,
    http_client: httpx.AsyncClient,
    scene: SceneReference,
    earthdata_token: str,
    band_key: str = BAND_ASSET_KEY,
) -> tuple[str, CatalogItem, bytes]:
    """Fetch catalog item, resolve its preview and download one band.

    :param context: Dagster context
    :param http_client: Async HTTP client following redirects
    :param scene: Scene found by the search
    :param earthdata_token: Bearer token for the band download
    :param band_key: Asset key of the band
    :returns: Tuple of (preview_url, catalog_item, band_bytes)
    :raises AssetUnavailable: If the item, preview or band cannot be retrieved
    """
    item_response = await _get(http_client, scene.url)
    try:
        item_json = item_response.json()
    except ValueError as e:
        raise AssetUnavailable(f"Catalog item at {scene.url} is not valid JSON") from e
    catalog_item = parse_catalog_item(item_json)

    preview_href = catalog_item.assets.get(PREVIEW_ASSET_KEY)
    if preview_href is None:
        raise AssetUnavailable(f"Catalog item has no {PREVIEW_ASSET_KEY!r} asset")
    preview_response = await _get(http_client, preview_href)
    preview_url = str(preview_response.url)
    context.log.debug(f"Preview image resolved to {preview_url}")

    band_href = catalog_item.assets.get(band_key)
    if band_href is None:
        raise AssetUnavailable(
            f"Catalog item has no {band_key!r} asset. Available: {sorted(catalog_item.assets)}"
        )

    context.log.info(f"Downloading band {band_key}")
    band_response = await _get(http_client, band_href, headers={"Authorization": f"Bearer {earthdata_token}"})
    return preview_url, catalog_item, band_response.content
