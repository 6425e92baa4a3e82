"""Data provider package (GeoJSON API client)."""

from .client import DataProviderClient

__all__ = ["DataProviderClient"]
