"""
Error taxonomy for the web map client.

Every error that reaches the user is a WebGISError; its message is what the
notice shows. Per-item geometry failures inside loops are never raised as
these, they are logged and the item is skipped.
"""


class WebGISError(Exception):
    """Base class for user-facing client errors."""


class DataLoadError(WebGISError):
    """Fetch failure, non-2xx response, malformed GeoJSON, or bad upload."""


class GeometryOperationError(WebGISError):
    """A single-input geometry workflow (buffer, road buffer) failed."""


class PreconditionError(WebGISError, ValueError):
    """Missing data or an invalid user parameter, raised before any engine call."""
