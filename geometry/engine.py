#!/usr/bin/env python3
"""
Geometry Engine

ARCHITECTURAL OVERVIEW:
=======================
Responsibility: Stateless geometry operations used by the tool workflows,
all in WGS84 lon/lat in and out.

Key Features:
1. Kilometre buffers computed in a local azimuthal-equidistant projection
   centred on each geometry, then converted back to WGS84
2. Boolean predicates and set operations (intersects, intersection, union,
   within) via Shapely
3. Centroids and geodesic distances (pyproj.Geod on the configured ellipsoid)

Navigation Guide:
- GeometryEngine: Main engine class
- buffer / buffer_features: Distance-based buffering
- intersect / union: Pairwise set operations (None when empty)

For Navigation: Use VS Code outline (Ctrl+Shift+O)
"""

from typing import List, Optional
import logging

from pyproj import CRS, Geod, Transformer
from shapely.geometry import LineString, Point
from shapely.geometry.base import BaseGeometry
from shapely.ops import transform

from Dhulikhel_WebGIS.config_types import APP_CONFIG, GeometryConfig
from Dhulikhel_WebGIS.models.data_models import Feature, FeatureCollection

# ═══════════════════════════════════════════════════════════════════════════
# 🔧 CONSTANTS
# ═══════════════════════════════════════════════════════════════════════════

CRS_WGS84 = "EPSG:4326"

logger = logging.getLogger(__name__)

# ═══════════════════════════════════════════════════════════════════════════
# 📐 GEOMETRY ENGINE
# ═══════════════════════════════════════════════════════════════════════════


class GeometryEngine:
    """
    Geometry operations for the analysis workflows.

    Buffers are computed in metres in a projection centred on the input so
    the radius is accurate anywhere on the globe; distances are geodesic.
    """

    def __init__(self, config: GeometryConfig = APP_CONFIG.geometry) -> None:
        self._quad_segs = config.buffer_quad_segs
        self._geod = Geod(ellps=config.ellipsoid)

    # ───────────────────────────────────────────────────────────────────
    # Construction
    # ───────────────────────────────────────────────────────────────────

    @staticmethod
    def point(lon: float, lat: float) -> Point:
        return Point(lon, lat)

    # ───────────────────────────────────────────────────────────────────
    # Buffers
    # ───────────────────────────────────────────────────────────────────

    def buffer(self, geom: BaseGeometry, distance_km: float) -> BaseGeometry:
        """
        Buffer a WGS84 geometry by a distance in kilometres.

        Args:
            geom: Geometry in lon/lat
            distance_km: Buffer radius, must be > 0

        Returns:
            Buffered polygon in lon/lat.

        Raises:
            ValueError: If the distance is not positive or the geometry is empty.
        """
        if distance_km <= 0:
            raise ValueError(f"Buffer distance must be > 0, got {distance_km}")
        if geom.is_empty:
            raise ValueError("Cannot buffer an empty geometry")

        to_local, to_wgs84 = self._local_transformers(geom)
        projected = transform(to_local.transform, geom)
        buffered = projected.buffer(distance_km * 1000.0, quad_segs=self._quad_segs)
        return transform(to_wgs84.transform, buffered)

    def buffer_features(
        self, collection: FeatureCollection, distance_km: float
    ) -> List[Feature]:
        """Buffer every feature of a collection, keeping its attributes."""
        return [
            Feature(self.buffer(f.geometry, distance_km), dict(f.properties))
            for f in collection
        ]

    def _local_transformers(self, geom: BaseGeometry):
        """WGS84 <-> azimuthal equidistant transformers centred on geom."""
        centre = geom.centroid
        local_crs = CRS.from_proj4(
            f"+proj=aeqd +lat_0={centre.y} +lon_0={centre.x} "
            f"+datum=WGS84 +units=m +no_defs"
        )
        to_local = Transformer.from_crs(CRS_WGS84, local_crs, always_xy=True)
        to_wgs84 = Transformer.from_crs(local_crs, CRS_WGS84, always_xy=True)
        return to_local, to_wgs84

    # ───────────────────────────────────────────────────────────────────
    # Predicates and set operations
    # ───────────────────────────────────────────────────────────────────

    @staticmethod
    def intersects(a: BaseGeometry, b: BaseGeometry) -> bool:
        return a.intersects(b)

    @staticmethod
    def within(a: BaseGeometry, b: BaseGeometry) -> bool:
        return a.within(b)

    @staticmethod
    def intersect(a: BaseGeometry, b: BaseGeometry) -> Optional[BaseGeometry]:
        """Intersection of two geometries, None when empty."""
        result = a.intersection(b)
        if result.is_empty:
            return None
        return result

    @staticmethod
    def union(a: BaseGeometry, b: BaseGeometry) -> Optional[BaseGeometry]:
        """Union of two geometries, None when empty."""
        result = a.union(b)
        if result.is_empty:
            return None
        return result

    # ───────────────────────────────────────────────────────────────────
    # Measurement
    # ───────────────────────────────────────────────────────────────────

    @staticmethod
    def centroid(geom: BaseGeometry) -> Point:
        if geom.is_empty:
            raise ValueError("Cannot take the centroid of an empty geometry")
        return geom.centroid

    def distance_km(self, a: Point, b: Point) -> float:
        """Geodesic distance between two lon/lat points in kilometres."""
        _, _, metres = self._geod.inv(a.x, a.y, b.x, b.y)
        return metres / 1000.0

    @staticmethod
    def line_between(a: Point, b: Point) -> LineString:
        return LineString([(a.x, a.y), (b.x, b.y)])
