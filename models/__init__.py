"""Data models package for typed features, enums and client errors."""

from .data_models import (
    ANY_GEOMETRY,
    AREA_TYPES,
    BOUNDARY_SOURCES,
    INFRASTRUCTURE_SOURCES,
    LINE_TYPES,
    POINT_TYPES,
    CollectionSource,
    Feature,
    FeatureCollection,
    GeometryFamily,
    Section,
    ToolContext,
    ToolPanel,
    UploadSlot,
    validate_envelope,
)

from .errors import (
    DataLoadError,
    GeometryOperationError,
    PreconditionError,
    WebGISError,
)

__all__ = [
    # Geometry allow-lists
    "ANY_GEOMETRY",
    "AREA_TYPES",
    "LINE_TYPES",
    "POINT_TYPES",
    # Source groups
    "BOUNDARY_SOURCES",
    "INFRASTRUCTURE_SOURCES",
    # Enums
    "CollectionSource",
    "GeometryFamily",
    "Section",
    "ToolContext",
    "ToolPanel",
    "UploadSlot",
    # Features
    "Feature",
    "FeatureCollection",
    "validate_envelope",
    # Errors
    "DataLoadError",
    "GeometryOperationError",
    "PreconditionError",
    "WebGISError",
]
