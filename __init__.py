"""
Dhulikhel WebGIS

Interactive map analysis client: buffer, intersect and union of uploaded
shapefiles, road-corridor impact counts and nearest-hospital search over
boundary and infrastructure layers served by a local GeoJSON API.
"""

from Dhulikhel_WebGIS.config_types import APP_CONFIG
from Dhulikhel_WebGIS.models.data_models import ToolContext
from Dhulikhel_WebGIS.session.client import MapClient

__all__ = ["MapClient", "APP_CONFIG", "ToolContext"]
