"""
Zipped shapefile decoding.

Turns an uploaded .zip bundle (shp/shx/dbf/prj) into a WGS84 GeoJSON
FeatureCollection dict using geopandas.
"""

from pathlib import Path
from typing import Any, Dict
import json
import logging
import tempfile

import geopandas as gpd

from Dhulikhel_WebGIS.models.errors import DataLoadError

CRS_WGS84 = "EPSG:4326"

logger = logging.getLogger(__name__)


def display_name(filename: str) -> str:
    """Upload display name: the file name without its .zip suffix."""
    name = Path(filename or "").name
    return name.replace(".zip", "")


def decode_shapefile_zip(data: bytes, filename: str) -> Dict[str, Any]:
    """
    Decode a zipped shapefile into a GeoJSON FeatureCollection.

    Args:
        data: Raw bytes of the uploaded .zip file
        filename: Original upload name (used for the temp file suffix)

    Returns:
        GeoJSON FeatureCollection dict in EPSG:4326.

    Raises:
        DataLoadError: If the bundle cannot be read.
    """
    if not data:
        raise DataLoadError("Error loading shapefile: empty upload")

    try:
        with tempfile.TemporaryDirectory() as tmp_dir:
            zip_path = Path(tmp_dir) / "upload.zip"
            zip_path.write_bytes(data)
            gdf = gpd.read_file(f"zip://{zip_path}")

        if gdf.crs is None:
            logger.warning(f"{filename}: no .prj in bundle, assuming {CRS_WGS84}")
            gdf = gdf.set_crs(CRS_WGS84)
        elif gdf.crs.to_string() != CRS_WGS84:
            logger.info(f"Converting {filename} from {gdf.crs} to {CRS_WGS84}")
            gdf = gdf.to_crs(CRS_WGS84)

        geojson = json.loads(gdf.to_json(default=str))
    except Exception as e:
        logger.error(f"❌ Failed to decode shapefile {filename}: {e}")
        raise DataLoadError(f"Error loading shapefile: {e}") from e

    logger.info(f"📂 Decoded {filename}: {len(geojson.get('features', []))} features")
    return geojson
