#!/usr/bin/env python3
"""
Rendered Layers

ARCHITECTURAL OVERVIEW:
=======================
Responsibility: Visual wrappers around features, the server-side twin of
Leaflet's L.geoJSON groups.

Key Concepts:
- FeatureLayer: one feature + mutable style + popup text (a Leaflet sub-layer)
- LayerGroup: ordered FeatureLayers sharing a pane (a Leaflet GeoJSON layer)
- Pane: OVERLAY for base data, ANALYSIS for results (always drawn above)

The browser page draws LayerGroup.to_dict() output verbatim; every
style change (highlight, revert) happens here.

For Navigation: Use VS Code outline (Ctrl+Shift+O)
"""

from dataclasses import dataclass, replace
from enum import Enum
from typing import Any, Callable, Dict, Iterable, Iterator, List, Optional, Tuple
import itertools

from Dhulikhel_WebGIS.config_types import LayerStyleConfig
from Dhulikhel_WebGIS.models.data_models import Feature

Bounds = Tuple[float, float, float, float]  # (min_lon, min_lat, max_lon, max_lat)
PopupFn = Callable[[Feature], str]

_layer_ids = itertools.count(1)


# ═══════════════════════════════════════════════════════════════════════════
# 🎨 PANES AND STYLES
# ═══════════════════════════════════════════════════════════════════════════


class Pane(Enum):
    """Leaflet pane names."""

    OVERLAY = "overlayPane"
    ANALYSIS = "analysisLayer"


@dataclass(frozen=True)
class LayerStyle:
    """Leaflet path options of one feature."""

    color: Optional[str] = None
    weight: float = 2
    fill_opacity: Optional[float] = None
    opacity: Optional[float] = None
    dash_array: Optional[str] = None
    radius: Optional[float] = None

    @classmethod
    def from_config(cls, config: LayerStyleConfig) -> "LayerStyle":
        return cls(
            color=config.color,
            weight=config.weight,
            fill_opacity=config.fill_opacity,
            opacity=config.opacity,
            dash_array=config.dash_array,
            radius=config.radius,
        )

    def to_dict(self) -> Dict[str, Any]:
        """Leaflet option names, unset options omitted."""
        options = {
            "color": self.color,
            "weight": self.weight,
            "fillOpacity": self.fill_opacity,
            "opacity": self.opacity,
            "dashArray": self.dash_array,
            "radius": self.radius,
        }
        return {k: v for k, v in options.items() if v is not None}


# ═══════════════════════════════════════════════════════════════════════════
# 🧩 LAYERS
# ═══════════════════════════════════════════════════════════════════════════


class FeatureLayer:
    """One rendered feature."""

    def __init__(
        self,
        layer_id: str,
        feature: Feature,
        style: LayerStyle,
        popup: Optional[str] = None,
    ) -> None:
        self.id = layer_id
        self.feature = feature
        self.style = style
        self.popup = popup
        self.popup_open = False
        self.clickable = False
        self.original_color: Optional[str] = None

    def set_color(self, color: Optional[str]) -> None:
        self.style = replace(self.style, color=color)

    def open_popup(self) -> None:
        self.popup_open = True

    def close_popup(self) -> None:
        self.popup_open = False

    def to_dict(self) -> Dict[str, Any]:
        """GeoJSON feature with render metadata under '_render'."""
        geojson = self.feature.to_geojson()
        geojson["id"] = self.id
        geojson["_render"] = {
            "style": self.style.to_dict(),
            "popup": self.popup,
            "popupOpen": self.popup_open,
            "clickable": self.clickable,
        }
        return geojson

    def __repr__(self) -> str:
        return f"FeatureLayer({self.id!r}, {self.feature.geom_type})"


class LayerGroup:
    """An ordered group of FeatureLayers added to or removed from the map as one."""

    def __init__(
        self,
        layer_id: str,
        name: str,
        feature_layers: List[FeatureLayer],
        pane: Pane = Pane.OVERLAY,
    ) -> None:
        self.id = layer_id
        self.name = name
        self.pane = pane
        self.feature_layers = feature_layers
        self.selectable = False

    def __iter__(self) -> Iterator[FeatureLayer]:
        return iter(self.feature_layers)

    def __len__(self) -> int:
        return len(self.feature_layers)

    def get(self, feature_layer_id: str) -> Optional[FeatureLayer]:
        for feature_layer in self.feature_layers:
            if feature_layer.id == feature_layer_id:
                return feature_layer
        return None

    def bounds(self) -> Optional[Bounds]:
        """Combined bounds of every feature, None for an empty group."""
        all_bounds = [
            fl.feature.geometry.bounds
            for fl in self.feature_layers
            if not fl.feature.geometry.is_empty
        ]
        if not all_bounds:
            return None
        return (
            min(b[0] for b in all_bounds),
            min(b[1] for b in all_bounds),
            max(b[2] for b in all_bounds),
            max(b[3] for b in all_bounds),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "pane": self.pane.value,
            "selectable": self.selectable,
            "geojson": {
                "type": "FeatureCollection",
                "features": [fl.to_dict() for fl in self.feature_layers],
            },
        }

    def __repr__(self) -> str:
        return f"LayerGroup({self.id!r}, {self.name!r}, {len(self)} features)"


# ═══════════════════════════════════════════════════════════════════════════
# 🏭 FACTORY
# ═══════════════════════════════════════════════════════════════════════════


def build_layer_group(
    features: Iterable[Feature],
    name: str,
    style: LayerStyleConfig,
    pane: Pane = Pane.OVERLAY,
    popup: Optional[PopupFn] = None,
) -> LayerGroup:
    """
    Wrap features into a new LayerGroup (the L.geoJSON equivalent).

    Args:
        features: Features to render, in order
        name: Layer name shown in the UI
        style: Style applied to every feature
        pane: Target pane
        popup: Optional per-feature popup text builder

    Returns:
        A new LayerGroup with a unique id (not yet on the map).
    """
    group_id = f"layer-{next(_layer_ids)}"
    layer_style = LayerStyle.from_config(style)
    feature_layers = [
        FeatureLayer(
            layer_id=f"{group_id}:{index}",
            feature=feature,
            style=layer_style,
            popup=popup(feature) if popup else None,
        )
        for index, feature in enumerate(features)
    ]
    return LayerGroup(group_id, name, feature_layers, pane=pane)
