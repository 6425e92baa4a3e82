#!/usr/bin/env python3
"""
Session State

ARCHITECTURAL OVERVIEW:
=======================
Responsibility: The single authoritative record of what is loaded, what is
selected, which tool context is active, and which analysis layers are live.
All mutations go through the methods below.

Key Concepts:
- Upload slots A/B: user shapefiles with their derived layer
- Boundary overlays: local/district/province, loaded once at start
- Infrastructure: roads/buildings/hospitals, reloaded per tool context
- Selection / road selection / marked point: single-slot transient state
- Analysis result set: layers from the most recent successful tool run
- Context epoch: bumped on every context teardown, used to reject stale loads

Navigation Guide:
- SLOTS, SELECTION, ANALYSIS RESULTS, INFRASTRUCTURE, CONTEXT sections

For Navigation: Use VS Code outline (Ctrl+Shift+O)
"""

from dataclasses import dataclass
from typing import Any, Dict, List, Optional
import logging

from shapely.geometry import Point

from Dhulikhel_WebGIS.config_types import APP_CONFIG, AppConfig
from Dhulikhel_WebGIS.models.data_models import (
    BOUNDARY_SOURCES,
    INFRASTRUCTURE_SOURCES,
    CollectionSource,
    FeatureCollection,
    Section,
    ToolContext,
    ToolPanel,
    UploadSlot,
)
from Dhulikhel_WebGIS.rendering.layers import FeatureLayer, LayerGroup, build_layer_group
from Dhulikhel_WebGIS.rendering.map_view import MapView
from Dhulikhel_WebGIS.rendering.popups import fixed_popup

logger = logging.getLogger(__name__)


# ═══════════════════════════════════════════════════════════════════════════
# 📦 STATE RECORDS
# ═══════════════════════════════════════════════════════════════════════════


@dataclass
class SlotContent:
    """A filled upload slot."""

    collection: FeatureCollection
    layer: LayerGroup
    name: str


@dataclass
class Selection:
    """The general selection: a feature and the group it belongs to."""

    feature_layer: FeatureLayer
    group: LayerGroup


@dataclass
class MarkedPoint:
    """The user-placed point of the proximity tool."""

    geometry: Point
    layer: LayerGroup


# ═══════════════════════════════════════════════════════════════════════════
# 🗄️ SESSION STATE
# ═══════════════════════════════════════════════════════════════════════════


class SessionState:
    """Process-wide store for one map client. Nothing is persisted."""

    def __init__(self, map_view: MapView, config: AppConfig = APP_CONFIG) -> None:
        self.map_view = map_view
        self.config = config

        self.slots: Dict[UploadSlot, Optional[SlotContent]] = {
            slot: None for slot in UploadSlot
        }
        self.overlays: Dict[CollectionSource, Optional[FeatureCollection]] = {
            source: None for source in BOUNDARY_SOURCES
        }
        self.overlay_layers: Dict[CollectionSource, Optional[LayerGroup]] = {
            source: None for source in BOUNDARY_SOURCES
        }
        self.infrastructure: Dict[CollectionSource, Optional[FeatureCollection]] = {
            source: None for source in INFRASTRUCTURE_SOURCES
        }
        self.infrastructure_layers: Dict[CollectionSource, Optional[LayerGroup]] = {
            source: None for source in INFRASTRUCTURE_SOURCES
        }

        self.context = ToolContext.NONE
        self.tool_panel = ToolPanel.NONE

        self.selection: Optional[Selection] = None
        self.road_selection: Optional[FeatureLayer] = None
        self.marked_point: Optional[MarkedPoint] = None
        self.point_selection_armed = False

        self.analysis_results: List[LayerGroup] = []

        self.report_text = ""
        self.status_text = ""
        self.loading_message: Optional[str] = None
        self.context_epoch = 0

    # ═══════════════════════════════════════════════════════════════════
    # 📂 SLOTS
    # ═══════════════════════════════════════════════════════════════════

    def set_slot(
        self, slot: UploadSlot, collection: FeatureCollection, name: str
    ) -> SlotContent:
        """Fill a slot, replacing (and removing from the map) any prior content."""
        previous = self.slots[slot]
        if previous is not None:
            self.forget_layer(previous.layer)

        layer = build_layer_group(
            collection,
            name=name,
            style=self.config.styles.get(slot.style_key),
            popup=fixed_popup(name),
        )
        self.map_view.add_layer(layer)
        self.map_view.fit_bounds(layer.bounds())

        content = SlotContent(collection=collection, layer=layer, name=name)
        self.slots[slot] = content
        logger.info(f"📂 Slot {slot.value} <- {name} ({len(collection)} features)")
        return content

    def clear_slot(self, slot: UploadSlot) -> None:
        content = self.slots[slot]
        if content is not None:
            self.forget_layer(content.layer)
        self.slots[slot] = None

    def clear_all_slots(self) -> None:
        for slot in UploadSlot:
            self.clear_slot(slot)
        self.clear_selection()

    def slot_collection(self, slot: UploadSlot) -> Optional[FeatureCollection]:
        content = self.slots[slot]
        return content.collection if content else None

    # ═══════════════════════════════════════════════════════════════════
    # 🖱️ SELECTION
    # ═══════════════════════════════════════════════════════════════════

    def clear_selection(self) -> bool:
        """Revert the highlight, close the popup. True if something was selected."""
        if self.selection is None:
            return False
        feature_layer = self.selection.feature_layer
        feature_layer.set_color(feature_layer.original_color)
        feature_layer.close_popup()
        self.selection = None
        return True

    def clear_road_selection(self) -> bool:
        if self.road_selection is None:
            return False
        self.road_selection.set_color(self.config.selection.road_base_color)
        self.road_selection = None
        return True

    def forget_layer(self, group: LayerGroup) -> None:
        """Take a group off the map and drop any selection pointing into it."""
        self.map_view.remove_layer(group)
        if self.selection is not None and self.selection.group is group:
            self.clear_selection()
        road = self.road_selection
        if road is not None and group.get(road.id) is road:
            self.clear_road_selection()

    @property
    def remove_selected_visible(self) -> bool:
        return self.selection is not None

    @property
    def remove_selected_road_visible(self) -> bool:
        return self.road_selection is not None

    # ═══════════════════════════════════════════════════════════════════
    # 📊 ANALYSIS RESULTS
    # ═══════════════════════════════════════════════════════════════════

    def push_analysis_result(self, *layers: LayerGroup) -> None:
        """Add layers to the map and to the current result set."""
        for layer in layers:
            self.map_view.add_layer(layer)
            self.analysis_results.append(layer)

    def clear_analysis_results(self) -> None:
        """Remove every result layer from the map and empty the set."""
        for layer in self.analysis_results:
            self.map_view.remove_layer(layer)
        self.analysis_results = []
        self.clear_selection()

    def drop_analysis_result(self, group: LayerGroup) -> None:
        self.analysis_results = [l for l in self.analysis_results if l is not group]

    # ═══════════════════════════════════════════════════════════════════
    # 🏥 OVERLAYS AND INFRASTRUCTURE
    # ═══════════════════════════════════════════════════════════════════

    def set_overlay(
        self, source: CollectionSource, collection: FeatureCollection, layer: LayerGroup
    ) -> None:
        """Store a boundary overlay; overlays start hidden until toggled on."""
        previous = self.overlay_layers[source]
        if previous is not None:
            self.forget_layer(previous)
        self.overlays[source] = collection
        self.overlay_layers[source] = layer

    def set_infrastructure(
        self, source: CollectionSource, collection: FeatureCollection, layer: LayerGroup
    ) -> None:
        self.clear_infrastructure(source)
        self.infrastructure[source] = collection
        self.infrastructure_layers[source] = layer
        self.map_view.add_layer(layer)

    def clear_infrastructure(self, *sources: CollectionSource) -> None:
        for source in sources:
            layer = self.infrastructure_layers[source]
            if layer is not None:
                self.forget_layer(layer)
            self.infrastructure[source] = None
            self.infrastructure_layers[source] = None

    def show_infrastructure(self, *sources: CollectionSource) -> None:
        """Re-add loaded infrastructure layers that were hidden."""
        for source in sources:
            layer = self.infrastructure_layers[source]
            if layer is not None and not self.map_view.has_layer(layer):
                self.map_view.add_layer(layer)

    def is_road_layer(self, group: LayerGroup) -> bool:
        return self.infrastructure_layers[CollectionSource.ROADS] is group

    # ═══════════════════════════════════════════════════════════════════
    # 📍 MARKED POINT
    # ═══════════════════════════════════════════════════════════════════

    def clear_marked_point(self) -> None:
        if self.marked_point is not None:
            self.forget_layer(self.marked_point.layer)
        self.marked_point = None

    # ═══════════════════════════════════════════════════════════════════
    # 🔀 CONTEXT
    # ═══════════════════════════════════════════════════════════════════

    def teardown_context(self) -> None:
        """
        Discard every piece of context-transient state.

        Unconditional and idempotent; bumps the epoch so loads started under
        the previous context are recognised as stale.
        """
        self.clear_selection()
        self.clear_road_selection()
        self.point_selection_armed = False
        self.clear_marked_point()
        self.clear_analysis_results()
        self.clear_infrastructure(*INFRASTRUCTURE_SOURCES)
        self.report_text = ""
        self.status_text = ""
        self.loading_message = None
        self.context_epoch += 1
        logger.debug(f"Context torn down (epoch {self.context_epoch})")

    def is_current(self, epoch: int) -> bool:
        return epoch == self.context_epoch

    # ═══════════════════════════════════════════════════════════════════
    # 📸 SNAPSHOT
    # ═══════════════════════════════════════════════════════════════════

    def snapshot(self) -> Dict[str, Any]:
        """JSON-ready view of the session for the browser page."""
        marked = self.marked_point
        return {
            "context": self.context.value,
            "section": Section.for_context(self.context).value,
            "toolPanel": self.tool_panel.value,
            "slots": {
                slot.value: (content.name if content else None)
                for slot, content in self.slots.items()
            },
            "overlays": {
                source.value: {
                    "layerId": layer.id,
                    "visible": self.map_view.has_layer(layer),
                }
                for source, layer in self.overlay_layers.items()
                if layer is not None
            },
            "selection": (
                {
                    "featureId": self.selection.feature_layer.id,
                    "layerId": self.selection.group.id,
                }
                if self.selection
                else None
            ),
            "roadSelection": self.road_selection.id if self.road_selection else None,
            "markedPoint": (
                [marked.geometry.x, marked.geometry.y] if marked else None
            ),
            "pointSelectionArmed": self.point_selection_armed,
            "analysisLayerIds": [layer.id for layer in self.analysis_results],
            "removeSelectedVisible": self.remove_selected_visible,
            "removeSelectedRoadVisible": self.remove_selected_road_visible,
            "reportText": self.report_text,
            "statusText": self.status_text,
            "loadingMessage": self.loading_message,
            **self.map_view.snapshot(),
        }
