"""
Typed data models for the web map client.

Architectural Overview:
=======================
Enums replace the string literals the UI sends ("road-buffer", "intersect",
"A"...) and immutable dataclasses wrap GeoJSON features as shapely
geometries tagged with the collection they came from.

Key Interactions:
-----------------
- Input: provider/ and geometry/shapefile_decoder.py hand raw GeoJSON dicts to
  FeatureCollection.from_geojson(), which validates every member.
- Output: rendering/ turns Feature objects back into GeoJSON for the browser.
- Navigation: Use VS Code outline (Ctrl+Shift+O) for quick navigation

MODIFICATION POINT: Add new data sources to CollectionSource and give them an
allow-list below.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, FrozenSet, Iterator, Optional, Sequence, Tuple

from shapely.geometry import mapping, shape
from shapely.geometry.base import BaseGeometry

from .errors import DataLoadError

logger = logging.getLogger(__name__)


# ═══════════════════════════════════════════════════════════════════════════
# 🏷️ ENUMS SECTION
# ═══════════════════════════════════════════════════════════════════════════


class CollectionSource(Enum):
    """Where a feature collection came from.

    Values for provider-backed sources double as the endpoint names in
    CONFIG_DATA['provider']['endpoints'].
    """

    LOCAL = "local"
    DISTRICT = "district"
    PROVINCE = "province"
    ROADS = "roads"
    BUILDINGS = "buildings"
    HOSPITALS = "hospitals"
    SHAPEFILE_A = "shapefile_a"
    SHAPEFILE_B = "shapefile_b"

    @property
    def label(self) -> str:
        """Human readable name used in popups and layer names."""
        return _SOURCE_LABELS[self]

    @property
    def description(self) -> str:
        """Phrase used in load error messages ("Failed to fetch roads")."""
        return _SOURCE_DESCRIPTIONS[self]


_SOURCE_LABELS = {
    CollectionSource.LOCAL: "Local Level",
    CollectionSource.DISTRICT: "District",
    CollectionSource.PROVINCE: "Province",
    CollectionSource.ROADS: "Roads",
    CollectionSource.BUILDINGS: "Buildings",
    CollectionSource.HOSPITALS: "Hospitals",
    CollectionSource.SHAPEFILE_A: "Shapefile A",
    CollectionSource.SHAPEFILE_B: "Shapefile B",
}

_SOURCE_DESCRIPTIONS = {
    CollectionSource.LOCAL: "local level data",
    CollectionSource.DISTRICT: "district data",
    CollectionSource.PROVINCE: "province data",
    CollectionSource.ROADS: "roads",
    CollectionSource.BUILDINGS: "buildings",
    CollectionSource.HOSPITALS: "hospitals",
    CollectionSource.SHAPEFILE_A: "shapefile A",
    CollectionSource.SHAPEFILE_B: "shapefile B",
}

BOUNDARY_SOURCES: Tuple[CollectionSource, ...] = (
    CollectionSource.LOCAL,
    CollectionSource.DISTRICT,
    CollectionSource.PROVINCE,
)

INFRASTRUCTURE_SOURCES: Tuple[CollectionSource, ...] = (
    CollectionSource.ROADS,
    CollectionSource.BUILDINGS,
    CollectionSource.HOSPITALS,
)


class GeometryFamily(Enum):
    """Point-like vs line-like vs area-like geometry types."""

    POINT = "point"
    LINE = "line"
    AREA = "area"
    OTHER = "other"

    @classmethod
    def of_type(cls, geom_type: Optional[str]) -> "GeometryFamily":
        """Family of a GeoJSON/shapely geometry type name."""
        if geom_type in POINT_TYPES:
            return cls.POINT
        if geom_type in LINE_TYPES:
            return cls.LINE
        if geom_type in AREA_TYPES:
            return cls.AREA
        return cls.OTHER


class ToolContext(Enum):
    """The active analysis mode. Exactly one is active at any time."""

    NONE = "none"
    BUFFER = "buffer"
    INTERSECT = "intersect"
    UNION = "union"
    ROAD_BUFFER = "road-buffer"
    PROXIMITY = "proximity"

    @classmethod
    def from_string(cls, s: str) -> "ToolContext":
        """Parse a context name; unknown names raise ValueError."""
        for member in cls:
            if member.value == s:
                return member
        raise ValueError(f"Unknown tool context: {s!r}")


class ToolPanel(Enum):
    """Sub-tool selector of the shapefile-analysis section."""

    NONE = "none"
    BUFFER = "buffer"
    INTERSECT = "intersect"
    UNION = "union"

    @property
    def context(self) -> ToolContext:
        return _PANEL_CONTEXTS[self]

    @classmethod
    def from_string(cls, s: str) -> "ToolPanel":
        for member in cls:
            if member.value == s:
                return member
        raise ValueError(f"Unknown tool panel: {s!r}")

    @classmethod
    def for_context(cls, context: ToolContext) -> Optional["ToolPanel"]:
        """Panel showing a context, None for section-level contexts."""
        for panel, ctx in _PANEL_CONTEXTS.items():
            if ctx is context:
                return panel
        return None


_PANEL_CONTEXTS = {
    ToolPanel.NONE: ToolContext.NONE,
    ToolPanel.BUFFER: ToolContext.BUFFER,
    ToolPanel.INTERSECT: ToolContext.INTERSECT,
    ToolPanel.UNION: ToolContext.UNION,
}


class Section(Enum):
    """Top-level UI sections."""

    SHAPEFILE_ANALYSIS = "shapefile-analysis"
    ROAD_BUFFER = "road-buffer"
    PROXIMITY_ANALYSIS = "proximity-analysis"

    @classmethod
    def from_string(cls, s: str) -> "Section":
        for member in cls:
            if member.value == s:
                return member
        raise ValueError(f"Unknown section: {s!r}")

    @classmethod
    def for_context(cls, context: ToolContext) -> "Section":
        """Section that hosts a context."""
        if context is ToolContext.ROAD_BUFFER:
            return cls.ROAD_BUFFER
        if context is ToolContext.PROXIMITY:
            return cls.PROXIMITY_ANALYSIS
        return cls.SHAPEFILE_ANALYSIS

    def context_for(self, panel: ToolPanel) -> ToolContext:
        """Context entered when this section is shown with the given panel."""
        if self is Section.ROAD_BUFFER:
            return ToolContext.ROAD_BUFFER
        if self is Section.PROXIMITY_ANALYSIS:
            return ToolContext.PROXIMITY
        if self is Section.SHAPEFILE_ANALYSIS:
            return panel.context
        raise ValueError(f"Unhandled section: {self}")


class UploadSlot(Enum):
    """The two user upload slots."""

    A = "A"
    B = "B"

    @property
    def source(self) -> CollectionSource:
        if self is UploadSlot.A:
            return CollectionSource.SHAPEFILE_A
        return CollectionSource.SHAPEFILE_B

    @property
    def style_key(self) -> str:
        return self.source.value

    @classmethod
    def from_string(cls, s: str) -> "UploadSlot":
        for member in cls:
            if member.value == s.upper():
                return member
        raise ValueError(f"Unknown upload slot: {s!r}")


# ═══════════════════════════════════════════════════════════════════════════
# 📐 GEOMETRY ALLOW-LISTS
# ═══════════════════════════════════════════════════════════════════════════

POINT_TYPES: FrozenSet[str] = frozenset({"Point", "MultiPoint"})
LINE_TYPES: FrozenSet[str] = frozenset({"LineString", "MultiLineString"})
AREA_TYPES: FrozenSet[str] = frozenset({"Polygon", "MultiPolygon"})

# None = any geometry type, as long as a geometry is present
ANY_GEOMETRY: Optional[FrozenSet[str]] = None


# ═══════════════════════════════════════════════════════════════════════════
# 🧱 FEATURE DATACLASSES
# ═══════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True, eq=False)
class Feature:
    """One geometry + attribute record.

    Compared by identity: two features with equal coordinates are still
    different map objects.
    """

    geometry: BaseGeometry
    properties: Dict[str, Any] = field(default_factory=dict)

    @property
    def geom_type(self) -> str:
        return self.geometry.geom_type

    @property
    def family(self) -> GeometryFamily:
        return GeometryFamily.of_type(self.geom_type)

    def prop(self, key: str, default: str) -> Any:
        """Attribute value, or default when missing or blank."""
        value = self.properties.get(key)
        if value is None or value == "":
            return default
        return value

    def to_geojson(self) -> Dict[str, Any]:
        """GeoJSON Feature dict."""
        return {
            "type": "Feature",
            "geometry": mapping(self.geometry),
            "properties": dict(self.properties),
        }


def validate_envelope(data: Any, description: str) -> None:
    """
    Check the FeatureCollection envelope: has a 'type' and a 'features' list.

    Raises:
        DataLoadError: If the envelope is malformed.
    """
    if (
        not isinstance(data, dict)
        or not data.get("type")
        or not isinstance(data.get("features"), list)
    ):
        raise DataLoadError(f"Invalid GeoJSON format for {description}")


@dataclass(frozen=True, eq=False)
class FeatureCollection:
    """Immutable-once-loaded set of features tagged by source."""

    source: CollectionSource
    features: Tuple[Feature, ...] = ()
    name: Optional[str] = None

    @classmethod
    def from_geojson(
        cls,
        data: Dict[str, Any],
        source: CollectionSource,
        allowed_types: Optional[FrozenSet[str]] = ANY_GEOMETRY,
        name: Optional[str] = None,
    ) -> "FeatureCollection":
        """
        Build a validated collection from a GeoJSON FeatureCollection dict.

        Members without a geometry, with an unparseable geometry, or whose
        type is outside allowed_types are dropped with a warning.

        Args:
            data: GeoJSON FeatureCollection
            source: Source tag for the collection
            allowed_types: Geometry type allow-list (None = any type)
            name: Optional display name

        Raises:
            DataLoadError: If the envelope itself is malformed.
        """
        validate_envelope(data, source.description)

        features = []
        dropped = 0
        for raw in data["features"]:
            feature = _parse_feature(raw, source, allowed_types)
            if feature is None:
                dropped += 1
            else:
                features.append(feature)

        if dropped:
            logger.warning(
                f"{source.label}: discarded {dropped} of {len(data['features'])} "
                f"features with missing or disallowed geometry"
            )
        if not features:
            logger.warning(f"{source.label}: no valid features after filtering")

        return cls(source=source, features=tuple(features), name=name)

    @classmethod
    def of(
        cls, source: CollectionSource, features: Sequence[Feature], name: Optional[str] = None
    ) -> "FeatureCollection":
        return cls(source=source, features=tuple(features), name=name)

    def __len__(self) -> int:
        return len(self.features)

    def __iter__(self) -> Iterator[Feature]:
        return iter(self.features)

    @property
    def is_empty(self) -> bool:
        return not self.features

    def to_geojson(self) -> Dict[str, Any]:
        return {
            "type": "FeatureCollection",
            "features": [f.to_geojson() for f in self.features],
        }


def _parse_feature(
    raw: Any,
    source: CollectionSource,
    allowed_types: Optional[FrozenSet[str]],
) -> Optional[Feature]:
    """Parse one GeoJSON feature, None when it must be discarded."""
    if not isinstance(raw, dict) or not raw.get("geometry"):
        logger.debug(f"{source.label}: feature without geometry discarded")
        return None
    if not isinstance(raw["geometry"], dict):
        logger.warning(f"{source.label}: non-object geometry discarded")
        return None

    geom_type = raw["geometry"].get("type")
    if allowed_types is not None and (
        not isinstance(geom_type, str) or geom_type not in allowed_types
    ):
        logger.debug(f"{source.label}: geometry type {geom_type} discarded")
        return None

    try:
        geometry = shape(raw["geometry"])
    except Exception as e:
        logger.warning(f"{source.label}: unparseable {geom_type} geometry: {e}")
        return None

    properties = raw.get("properties") or {}
    if not isinstance(properties, dict):
        logger.warning(f"{source.label}: non-object properties replaced with {{}}")
        properties = {}

    return Feature(geometry=geometry, properties=dict(properties))
