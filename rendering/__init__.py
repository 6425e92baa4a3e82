"""Rendering package: layer groups, popups and the map layer registry."""

from .layers import FeatureLayer, LayerGroup, LayerStyle, Pane, build_layer_group
from .map_view import MapView, Viewport

__all__ = [
    "FeatureLayer",
    "LayerGroup",
    "LayerStyle",
    "MapView",
    "Pane",
    "Viewport",
    "build_layer_group",
]
