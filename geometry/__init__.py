"""Geometry package: shapely/pyproj engine and shapefile decoding."""

from .engine import GeometryEngine
from .shapefile_decoder import decode_shapefile_zip, display_name

__all__ = [
    "GeometryEngine",
    "decode_shapefile_zip",
    "display_name",
]
