#!/usr/bin/env python3
"""
Dhulikhel WebGIS - Configuration Types

ARCHITECTURAL OVERVIEW:
=======================
Responsibility: Typed, immutable configuration objects built from the
CONFIG_DATA dictionary in config.py.

Follows the Typed Configuration Architecture pattern:
- config.py defines CONFIG_DATA dictionary (user edits this)
- config_types.py defines frozen dataclasses (this file)
- APP_CONFIG module-level instance for client/server access
- Business logic receives typed objects, never raw dicts

For Navigation: Use VS Code outline (Ctrl+Shift+O)
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Tuple


# ═══════════════════════════════════════════════════════════════════════════
# 🗺️ MAP CONFIGURATION
# ═══════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True)
class BaseLayerConfig:
    """One selectable base tile layer (rendered by the browser)."""

    name: str
    url: str
    attribution: str = ""
    max_zoom: int = 19

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "BaseLayerConfig":
        """Create from dictionary."""
        return cls(
            name=d["name"],
            url=d["url"],
            attribution=d.get("attribution", ""),
            max_zoom=d.get("max_zoom", 19),
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "name": self.name,
            "url": self.url,
            "attribution": self.attribution,
            "maxZoom": self.max_zoom,
        }


@dataclass(frozen=True)
class MapConfig:
    """Initial view and pane ordering."""

    center_lat: float = 27.6201
    center_lon: float = 85.5394
    zoom: int = 13
    overlay_pane_z_index: int = 400
    analysis_pane_z_index: int = 450
    base_layers: Tuple[BaseLayerConfig, ...] = ()

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "MapConfig":
        """Create from dictionary."""
        center = d.get("center", [27.6201, 85.5394])
        return cls(
            center_lat=center[0],
            center_lon=center[1],
            zoom=d.get("zoom", 13),
            overlay_pane_z_index=d.get("overlay_pane_z_index", 400),
            analysis_pane_z_index=d.get("analysis_pane_z_index", 450),
            base_layers=tuple(
                BaseLayerConfig.from_dict(b) for b in d.get("base_layers", [])
            ),
        )

    def __post_init__(self) -> None:
        """Analysis output must draw above the overlays."""
        if self.analysis_pane_z_index <= self.overlay_pane_z_index:
            raise ValueError(
                f"analysis_pane_z_index ({self.analysis_pane_z_index}) must be > "
                f"overlay_pane_z_index ({self.overlay_pane_z_index})"
            )

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "center": [self.center_lat, self.center_lon],
            "zoom": self.zoom,
            "baseLayers": [b.to_dict() for b in self.base_layers],
        }


# ═══════════════════════════════════════════════════════════════════════════
# 🌐 DATA PROVIDER CONFIGURATION
# ═══════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True)
class ProviderConfig:
    """
    Data provider location.

    Attributes:
        base_url: Scheme + host + port of the GeoJSON API
        timeout_s: Request timeout in seconds, None waits indefinitely
        endpoints: Collection name -> path ("local", "district", "province",
            "roads", "buildings", "hospitals")
    """

    base_url: str = "http://localhost:3000"
    timeout_s: Optional[float] = None
    endpoints: Dict[str, str] = field(default_factory=dict)

    REQUIRED_ENDPOINTS = (
        "local",
        "district",
        "province",
        "roads",
        "buildings",
        "hospitals",
    )

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "ProviderConfig":
        """Create from CONFIG_DATA['provider']."""
        return cls(
            base_url=d.get("base_url", "http://localhost:3000"),
            timeout_s=d.get("timeout_s"),
            endpoints=dict(d.get("endpoints", {})),
        )

    def __post_init__(self) -> None:
        """Validate endpoints and timeout."""
        missing = [k for k in self.REQUIRED_ENDPOINTS if k not in self.endpoints]
        if missing:
            raise ValueError(f"Missing provider endpoints: {missing}")
        if self.timeout_s is not None and self.timeout_s <= 0:
            raise ValueError(f"timeout_s must be > 0 or None, got {self.timeout_s}")

    def url_for(self, name: str) -> str:
        """Absolute URL of a named endpoint."""
        return self.base_url.rstrip("/") + self.endpoints[name]


# ═══════════════════════════════════════════════════════════════════════════
# 🎨 STYLE CONFIGURATION
# ═══════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True)
class LayerStyleConfig:
    """Leaflet-style path options for one layer kind."""

    color: str = "#3388ff"
    weight: float = 2
    fill_opacity: Optional[float] = None
    opacity: Optional[float] = None
    dash_array: Optional[str] = None
    radius: Optional[float] = None  # Circle marker radius (pixels) for points

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "LayerStyleConfig":
        """Create from dictionary."""
        return cls(
            color=d.get("color", "#3388ff"),
            weight=d.get("weight", 2),
            fill_opacity=d.get("fill_opacity"),
            opacity=d.get("opacity"),
            dash_array=d.get("dash_array"),
            radius=d.get("radius"),
        )


@dataclass(frozen=True)
class StyleConfig:
    """All layer styles, keyed by layer kind (see config.py 'styles')."""

    styles: Dict[str, LayerStyleConfig] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "StyleConfig":
        """Create from CONFIG_DATA['styles']."""
        return cls(
            styles={name: LayerStyleConfig.from_dict(s) for name, s in d.items()}
        )

    def get(self, name: str) -> LayerStyleConfig:
        """Style for a layer kind; unknown kinds get the default style."""
        return self.styles.get(name, LayerStyleConfig())


# ═══════════════════════════════════════════════════════════════════════════
# 🖱️ SELECTION CONFIGURATION
# ═══════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True)
class SelectionConfig:
    """Highlight colours for the general and road selections."""

    highlight_color: str = "#1d4ed8"
    fallback_color: str = "#f59e0b"
    fallback_label: str = "Analysis Result"
    road_highlight_color: str = "#f97316"
    road_base_color: str = "#1e40af"
    delete_key: str = "Delete"

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "SelectionConfig":
        """Create from dictionary."""
        return cls(
            highlight_color=d.get("highlight_color", "#1d4ed8"),
            fallback_color=d.get("fallback_color", "#f59e0b"),
            fallback_label=d.get("fallback_label", "Analysis Result"),
            road_highlight_color=d.get("road_highlight_color", "#f97316"),
            road_base_color=d.get("road_base_color", "#1e40af"),
            delete_key=d.get("delete_key", "Delete"),
        )


# ═══════════════════════════════════════════════════════════════════════════
# 📐 GEOMETRY CONFIGURATION
# ═══════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True)
class GeometryConfig:
    """Buffer smoothness and the ellipsoid used for distances."""

    buffer_quad_segs: int = 16
    ellipsoid: str = "WGS84"

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "GeometryConfig":
        """Create from dictionary."""
        return cls(
            buffer_quad_segs=d.get("buffer_quad_segs", 16),
            ellipsoid=d.get("ellipsoid", "WGS84"),
        )

    def __post_init__(self) -> None:
        if self.buffer_quad_segs < 1:
            raise ValueError(
                f"buffer_quad_segs must be >= 1, got {self.buffer_quad_segs}"
            )


# ═══════════════════════════════════════════════════════════════════════════
# 🚀 SERVER CONFIGURATION
# ═══════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True)
class ServerConfig:
    """Flask map server settings."""

    host: str = "127.0.0.1"
    port: int = 5060
    debug: bool = False
    log_level: str = "INFO"
    max_upload_mb: int = 50

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "ServerConfig":
        """Create from dictionary."""
        return cls(
            host=d.get("host", "127.0.0.1"),
            port=int(d.get("port", 5060)),
            debug=bool(d.get("debug", False)),
            log_level=str(d.get("log_level", "INFO")).upper(),
            max_upload_mb=d.get("max_upload_mb", 50),
        )

    def __post_init__(self) -> None:
        if not 0 < self.port < 65536:
            raise ValueError(f"port must be in 1..65535, got {self.port}")


# ═══════════════════════════════════════════════════════════════════════════
# ⚙️ APP CONFIGURATION (ROOT)
# ═══════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True)
class AppConfig:
    """
    Root configuration object.

    Usage:
        from Dhulikhel_WebGIS.config import CONFIG_DATA
        from Dhulikhel_WebGIS.config_types import AppConfig

        app_config = AppConfig.from_dict(CONFIG_DATA)
        url = app_config.provider.url_for("roads")
    """

    map: MapConfig
    provider: ProviderConfig
    styles: StyleConfig
    selection: SelectionConfig
    geometry: GeometryConfig
    server: ServerConfig

    @classmethod
    def from_dict(cls, config: Dict[str, Any]) -> "AppConfig":
        """Create AppConfig from the CONFIG_DATA dictionary."""
        return cls(
            map=MapConfig.from_dict(config.get("map", {})),
            provider=ProviderConfig.from_dict(config.get("provider", {})),
            styles=StyleConfig.from_dict(config.get("styles", {})),
            selection=SelectionConfig.from_dict(config.get("selection", {})),
            geometry=GeometryConfig.from_dict(config.get("geometry", {})),
            server=ServerConfig.from_dict(config.get("server", {})),
        )

    def to_frontend_dict(self) -> Dict[str, Any]:
        """Settings the Leaflet page needs (no provider internals)."""
        return {
            "map": self.map.to_dict(),
            "highlightColor": self.selection.highlight_color,
            "roadHighlightColor": self.selection.road_highlight_color,
            "deleteKey": self.selection.delete_key,
            "panes": {
                "overlay": self.map.overlay_pane_z_index,
                "analysis": self.map.analysis_pane_z_index,
            },
        }


# ═══════════════════════════════════════════════════════════════════════════
# 📌 MODULE-LEVEL CONFIG INSTANCE
# ═══════════════════════════════════════════════════════════════════════════

from Dhulikhel_WebGIS.config import CONFIG_DATA

# Edit config.py to change settings (restart server after changes)
APP_CONFIG: AppConfig = AppConfig.from_dict(CONFIG_DATA)


def get_frontend_config() -> Dict[str, Any]:
    """Coordination boundary for frontend config access."""
    return APP_CONFIG.to_frontend_dict()
