#!/usr/bin/env python3
"""
Map View

ARCHITECTURAL OVERVIEW:
=======================
Responsibility: The layer registry the browser map mirrors: which layer
groups are on the map, in which pane, and what extent the viewport should
fit. It does not track layer lifecycles; the session decides what to add
and remove.

Key Interactions:
- SessionState / workflows call add_layer, remove_layer, fit_bounds
- SelectionController calls find_feature to resolve clicked feature ids
- server/ returns snapshot() to the Leaflet page

For Navigation: Use VS Code outline (Ctrl+Shift+O)
"""

from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Tuple
import logging

from Dhulikhel_WebGIS.config_types import APP_CONFIG, MapConfig
from Dhulikhel_WebGIS.rendering.layers import Bounds, FeatureLayer, LayerGroup, Pane

logger = logging.getLogger(__name__)


@dataclass
class Viewport:
    """Map centre/zoom plus the last requested fit extent."""

    center_lat: float
    center_lon: float
    zoom: int
    bounds: Optional[Bounds] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "center": [self.center_lat, self.center_lon],
            "zoom": self.zoom,
            "bounds": list(self.bounds) if self.bounds else None,
        }


class MapView:
    """Ordered set of layer groups currently on the map."""

    def __init__(self, config: MapConfig = APP_CONFIG.map) -> None:
        self.viewport = Viewport(config.center_lat, config.center_lon, config.zoom)
        self.pane_z_index: Dict[Pane, int] = {
            Pane.OVERLAY: config.overlay_pane_z_index,
            Pane.ANALYSIS: config.analysis_pane_z_index,
        }
        self._layers: List[LayerGroup] = []

    # ───────────────────────────────────────────────────────────────────
    # Layer membership
    # ───────────────────────────────────────────────────────────────────

    def add_layer(self, group: LayerGroup) -> None:
        """Add a group; adding one already on the map is a no-op."""
        if not self.has_layer(group):
            self._layers.append(group)
            logger.debug(f"Added {group}")

    def remove_layer(self, group: LayerGroup) -> None:
        """Remove a group; removing one not on the map is a no-op."""
        if self.has_layer(group):
            self._layers.remove(group)
            logger.debug(f"Removed {group}")

    def has_layer(self, group: LayerGroup) -> bool:
        return any(layer is group for layer in self._layers)

    @property
    def layers(self) -> Tuple[LayerGroup, ...]:
        """Groups in draw order: by pane z-index, then insertion order."""
        return tuple(sorted(self._layers, key=lambda g: self.pane_z_index[g.pane]))

    def find_feature(
        self, feature_layer_id: str
    ) -> Optional[Tuple[FeatureLayer, LayerGroup]]:
        """Resolve a clicked feature id to (feature layer, parent group)."""
        for group in self._layers:
            feature_layer = group.get(feature_layer_id)
            if feature_layer is not None:
                return feature_layer, group
        return None

    # ───────────────────────────────────────────────────────────────────
    # Viewport
    # ───────────────────────────────────────────────────────────────────

    def fit_bounds(self, bounds: Optional[Bounds]) -> None:
        if bounds is None:
            logger.debug("fit_bounds ignored: empty extent")
            return
        self.viewport.bounds = bounds

    def snapshot(self) -> Dict[str, Any]:
        return {
            "viewport": self.viewport.to_dict(),
            "panes": {pane.value: z for pane, z in self.pane_z_index.items()},
            "layers": [group.to_dict() for group in self.layers],
        }
