"""
Geospatial operations for tracker checks.

This module contains:
- Grid operations (MGRS cell to bounding box)
- STAC operations (scene search with day stepping, band retrieval)
- Raster operations (tiled band statistics)
"""
