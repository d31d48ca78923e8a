"""Raster operations for tiled band statistics."""

from collections.abc import Iterator
from typing import Any

import numpy as np
import rasterio
from numpy.typing import NDArray
from rasterio.errors import RasterioError
from rasterio.windows import Window

from hls_tracker.config.constants import TILE_HEIGHT, TILE_WIDTH
from hls_tracker.exceptions import RasterReadError
from hls_tracker.models.models import TileStatistics


def iter_tile_windows(
    width: int, height: int, tile_width: int = TILE_WIDTH, tile_height: int = TILE_HEIGHT
) -> Iterator[Window]:
    """Yield tile windows in scan order, clipped to the raster bounds.

    The outer loop walks x, the inner loop walks y. Edge tiles are smaller
    when the raster size is not a multiple of the tile size.

    :param width: Raster width in pixels
    :param height: Raster height in pixels
    :param tile_width: Tile width in pixels
    :param tile_height: Tile height in pixels
    :yields: rasterio Window per tile
    """
    for x in range(0, width, tile_width):
        for y in range(0, height, tile_height):
            yield Window(x, y, min(tile_width, width - x), min(tile_height, height - y))


def tile_mean(tile: NDArray[Any] | float) -> float:
    """Mean of one tile.

    :param tile: Pixel values, or a single scalar
    :returns: The scalar itself, or the arithmetic mean of the pixels
    """
    if np.ndim(tile) == 0:
        return float(tile)
    return float(np.mean(np.asarray(tile, dtype="float64")))


def compute_tile_statistics(src: Any, tile_width: int = TILE_WIDTH, tile_height: int = TILE_HEIGHT) -> TileStatistics:
    """Compute per-tile and image means of band 1 of an open raster.

    :param src: Open rasterio dataset
    :param tile_width: Tile width in pixels
    :param tile_height: Tile height in pixels
    :returns: TileStatistics
    """
    width, height = src.width, src.height
    if width <= 0 or height <= 0:
        raise RasterReadError(f"Raster has no pixels ({width}x{height})")

    tile_means = [
        tile_mean(src.read(1, window=window))
        for window in iter_tile_windows(width, height, tile_width, tile_height)
    ]
    image_mean = sum(tile_means) / len(tile_means)
    return TileStatistics(image_mean=image_mean, tile_means=tile_means, width=width, height=height)


def tile_band_raster(band_url: str, tile_width: int = TILE_WIDTH, tile_height: int = TILE_HEIGHT) -> TileStatistics:
    """Open a band raster and compute its tile statistics.

    Any read failure aborts the whole computation; no partial result is returned.

    :param band_url: URL or path of the band GeoTIFF
    :param tile_width: Tile width in pixels
    :param tile_height: Tile height in pixels
    :returns: TileStatistics
    :raises RasterReadError: If the raster or a tile window cannot be read
    """
    try:
        with rasterio.open(band_url) as src:
            return compute_tile_statistics(src, tile_width, tile_height)
    except RasterioError as e:
        raise RasterReadError(f"Failed to read band raster: {e}") from e
