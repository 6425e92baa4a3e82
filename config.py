#!/usr/bin/env python3
"""
Dhulikhel WebGIS - Configuration

ARCHITECTURAL OVERVIEW:
=======================
Responsibility: Centralized configuration for the web map client.
Single source of truth for the data provider, map defaults, layer styles,
selection colours, geometry settings and the map server.

Configuration Sections:
1. map: Initial map view and base tile layers
2. provider: Data provider base URL, endpoints, timeout
3. styles: Per-layer styles (overlays, infrastructure, slots, results)
4. selection: Highlight colours for general and road selection
5. geometry: Buffer resolution and distance units
6. server: Flask host/port/debug

Pattern:
- config.py defines the CONFIG_DATA dictionary (edit this)
- config_types.py defines typed dataclasses and loads from CONFIG_DATA

Navigation Guide:
- Use VS Code outline (Ctrl+Shift+O) to jump between sections
"""

import os
from typing import Dict, Any, TypeVar, Callable, Optional

T = TypeVar("T")


def _env_or_default(
    key: str, default: T, type_fn: Optional[Callable[[str], T]] = None
) -> T:
    """
    Get value from environment variable or use default.

    Args:
        key: Environment variable name (e.g., "WEBGIS_API_BASE_URL")
        default: Default value if env var not set
        type_fn: Optional type conversion function (e.g., float, int)

    Returns:
        Value from environment (converted) or default

    Example:
        >>> _env_or_default("WEBGIS_SERVER_PORT", 5060, int)
        5060  # If env var not set
    """
    val = os.getenv(key)
    if val is not None:
        if type_fn is not None:
            return type_fn(val)
        return val  # type: ignore
    return default


def _env_bool(key: str, default: bool) -> bool:
    """
    Get boolean value from environment variable.

    Treats "true", "1", "yes" as True (case-insensitive).
    Any other value or unset returns default.
    """
    val = os.getenv(key)
    if val is None:
        return default
    return val.lower() in ("true", "1", "yes")


def _env_optional_float(key: str) -> Optional[float]:
    """Float from environment, None when unset or empty."""
    val = os.getenv(key)
    if not val:
        return None
    return float(val)


# ═══════════════════════════════════════════════════════════════════════════
# 🗺️ WEBGIS CONFIGURATION
# ═══════════════════════════════════════════════════════════════════════════

CONFIG_DATA: Dict[str, Any] = {
    # ═══════════════════════════════════════════════════════════════════════
    # 🗺️ MAP SETTINGS
    # ═══════════════════════════════════════════════════════════════════════
    "map": {
        "center": [27.6201, 85.5394],  # [lat, lon] - Dhulikhel, Nepal
        "zoom": 13,
        "analysis_pane_z_index": 450,
        "overlay_pane_z_index": 400,
        "base_layers": [
            {
                "name": "OpenStreetMap",
                "url": "https://{s}.tile.openstreetmap.org/{z}/{x}/{y}.png",
                "attribution": "&copy; OpenStreetMap contributors",
                "max_zoom": 19,
            },
            {
                "name": "Satellite",
                "url": "https://server.arcgisonline.com/ArcGIS/rest/services/World_Imagery/MapServer/tile/{z}/{y}/{x}",
                "attribution": "Tiles &copy; Esri",
                "max_zoom": 19,
            },
            {
                "name": "Topographic",
                "url": "https://{s}.tile.opentopomap.org/{z}/{x}/{y}.png",
                "attribution": "&copy; OpenStreetMap contributors, SRTM | &copy; OpenTopoMap",
                "max_zoom": 17,
            },
        ],
    },
    # ═══════════════════════════════════════════════════════════════════════
    # 🌐 DATA PROVIDER
    # ═══════════════════════════════════════════════════════════════════════
    "provider": {
        "base_url": _env_or_default("WEBGIS_API_BASE_URL", "http://localhost:3000"),
        # None = wait forever (the loading message stays up)
        "timeout_s": _env_optional_float("WEBGIS_API_TIMEOUT_S"),
        "endpoints": {
            "local": "/api/local",
            "district": "/api/district",
            "province": "/api/province",
            "roads": "/api/roads",
            "buildings": "/api/buildings",
            "hospitals": "/api/hospitals",
        },
    },
    # ═══════════════════════════════════════════════════════════════════════
    # 🎨 LAYER STYLES
    # ═══════════════════════════════════════════════════════════════════════
    "styles": {
        "local": {"color": "#ff7800", "weight": 2, "fill_opacity": 0.1},
        "district": {"color": "#00ff78", "weight": 2, "fill_opacity": 0.1},
        "province": {"color": "#7800ff", "weight": 2, "fill_opacity": 0.1},
        "roads": {"color": "#1e40af", "weight": 3},
        "buildings": {"color": "#be123c", "weight": 2, "fill_opacity": 0.5, "radius": 5},
        "hospitals": {"color": "#16a34a", "weight": 2, "fill_opacity": 0.7, "radius": 6},
        "shapefile_a": {"color": "#6b7280", "weight": 2},
        "shapefile_b": {"color": "#16a34a", "weight": 2},
        "buffer_result": {"color": "#f59e0b", "weight": 2, "fill_opacity": 0.2},
        "intersect_result": {"color": "#dc2626", "weight": 2, "fill_opacity": 0.2},
        "union_result": {"color": "#8b5cf6", "weight": 2, "fill_opacity": 0.2},
        "road_buffer": {"color": "#f59e0b", "weight": 3, "fill_opacity": 0.5},
        "affected_buildings": {"color": "#dc2626", "weight": 2, "fill_opacity": 0.5, "radius": 5},
        "affected_hospitals": {"color": "#16a34a", "weight": 2, "fill_opacity": 0.7, "radius": 6},
        "marked_point": {"color": "#8b5cf6", "weight": 2, "fill_opacity": 0.9, "radius": 10},
        "search_radius": {"color": "#8b5cf6", "weight": 3, "fill_opacity": 0.3},
        "nearest_hospital": {"color": "#16a34a", "weight": 3, "fill_opacity": 0.9, "radius": 10},
        "distance_line": {
            "color": "#ff0000",
            "weight": 4,
            "opacity": 0.8,
            "dash_array": "5, 10",
        },
    },
    # ═══════════════════════════════════════════════════════════════════════
    # 🖱️ SELECTION
    # ═══════════════════════════════════════════════════════════════════════
    "selection": {
        "highlight_color": "#1d4ed8",
        "fallback_color": "#f59e0b",
        "fallback_label": "Analysis Result",
        "road_highlight_color": "#f97316",
        "road_base_color": "#1e40af",
        "delete_key": "Delete",
    },
    # ═══════════════════════════════════════════════════════════════════════
    # 📐 GEOMETRY
    # ═══════════════════════════════════════════════════════════════════════
    "geometry": {
        "buffer_quad_segs": 16,  # Segments per quarter circle
        "ellipsoid": "WGS84",
    },
    # ═══════════════════════════════════════════════════════════════════════
    # 🚀 MAP SERVER
    # ═══════════════════════════════════════════════════════════════════════
    "server": {
        "host": _env_or_default("WEBGIS_SERVER_HOST", "127.0.0.1"),
        "port": _env_or_default("WEBGIS_SERVER_PORT", 5060, int),
        "debug": _env_bool("WEBGIS_DEBUG", False),
        "log_level": _env_or_default("WEBGIS_LOG_LEVEL", "INFO"),
        "max_upload_mb": 50,
    },
}
