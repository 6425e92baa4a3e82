#!/usr/bin/env python3
"""
Map Client

ARCHITECTURAL OVERVIEW:
=======================
Responsibility: The application facade. Owns the session state, map view,
geometry engine, notice board, selection controller and the workflows, and
exposes every user command as one method.

Key Interactions:
- server/ calls these methods on its event-loop thread
- Context switches tear down transient state, then run the entry action
  chosen by an exhaustive ToolContext -> action table
- Every command catches WebGISError, logs it and posts its message as a
  notice; nothing is retried

Navigation Guide:
- LIFECYCLE: start, switch_context, switch_section, select_tool_panel
- UPLOADS: upload_shapefile, clear_uploaded_shapefiles
- TOOLS: apply_buffer, intersect, union, run_road_buffer, run_proximity
- MAP EVENTS: dispatch, remove_selected, remove_selected_road

For Navigation: Use VS Code outline (Ctrl+Shift+O)
"""

from contextlib import contextmanager
from typing import Any, Awaitable, Callable, Dict, Iterator, Optional
import logging

from Dhulikhel_WebGIS.config_types import APP_CONFIG, AppConfig
from Dhulikhel_WebGIS.geometry.engine import GeometryEngine
from Dhulikhel_WebGIS.geometry.shapefile_decoder import decode_shapefile_zip, display_name
from Dhulikhel_WebGIS.models.data_models import (
    CollectionSource,
    FeatureCollection,
    Section,
    ToolContext,
    ToolPanel,
    UploadSlot,
)
from Dhulikhel_WebGIS.models.errors import WebGISError
from Dhulikhel_WebGIS.rendering.layers import LayerGroup
from Dhulikhel_WebGIS.rendering.map_view import MapView
from Dhulikhel_WebGIS.session.events import (
    FeatureClick,
    KeyPress,
    MapClick,
    MapEvent,
    Transition,
    TransitionKind,
)
from Dhulikhel_WebGIS.session.notices import NoticeBoard
from Dhulikhel_WebGIS.session.selection import SelectionController
from Dhulikhel_WebGIS.session.state import SessionState, SlotContent
from Dhulikhel_WebGIS.workflows.overlays import OverlayLoader
from Dhulikhel_WebGIS.workflows.proximity import ProximityReport, ProximityWorkflow
from Dhulikhel_WebGIS.workflows.road_corridor import RoadCorridorWorkflow, RoadImpactReport
from Dhulikhel_WebGIS.workflows.set_operations import SetOperationWorkflow

logger = logging.getLogger(__name__)

EntryAction = Optional[Callable[[], Awaitable[None]]]


class MapClient:
    """
    One user's map session.

    Args:
        provider: Object with `async fetch(source) -> dict`
            (DataProviderClient in production, a fake in tests)
        config: Application configuration
        engine: Geometry engine (default: GeometryEngine(config.geometry))
        notices: Notice board (default: a new one)
    """

    def __init__(
        self,
        provider: Any,
        config: AppConfig = APP_CONFIG,
        engine: Optional[GeometryEngine] = None,
        notices: Optional[NoticeBoard] = None,
    ) -> None:
        self.config = config
        self.provider = provider
        self.engine = engine or GeometryEngine(config.geometry)
        self.notices = notices or NoticeBoard()
        self.map_view = MapView(config.map)
        self.state = SessionState(self.map_view, config)
        self.selection = SelectionController(self.state, config.selection)

        self.overlays = OverlayLoader(self.state, self.selection, provider, config)
        self.set_operations = SetOperationWorkflow(
            self.state, self.engine, self.selection, self.notices, config
        )
        self.road_corridor = RoadCorridorWorkflow(
            self.state, self.engine, self.selection, provider, config
        )
        self.proximity = ProximityWorkflow(
            self.state, self.engine, self.selection, provider, config
        )

        self._entry_actions: Dict[ToolContext, EntryAction] = {
            ToolContext.NONE: None,
            ToolContext.BUFFER: None,
            ToolContext.INTERSECT: None,
            ToolContext.UNION: None,
            ToolContext.ROAD_BUFFER: self.road_corridor.load,
            ToolContext.PROXIMITY: self.proximity.load,
        }
        self._loading_messages: Dict[ToolContext, str] = {
            ToolContext.ROAD_BUFFER: self.road_corridor.loading_message,
            ToolContext.PROXIMITY: self.proximity.loading_message,
        }
        missing = set(ToolContext) - set(self._entry_actions)
        if missing:
            raise RuntimeError(f"No entry action for contexts: {missing}")

    # ═══════════════════════════════════════════════════════════════════
    # 🔧 COMMAND WRAPPER
    # ═══════════════════════════════════════════════════════════════════

    @contextmanager
    def _command(self, name: str) -> Iterator[None]:
        """Turn a WebGISError into a logged, posted notice."""
        try:
            yield
        except WebGISError as e:
            logger.error(f"❌ {name}: {e}")
            self.notices.post(str(e))

    # ═══════════════════════════════════════════════════════════════════
    # 🚀 LIFECYCLE
    # ═══════════════════════════════════════════════════════════════════

    async def start(self) -> None:
        """Load the boundary overlays, showing the loading message meanwhile."""
        logger.info("🚀 Starting map client")
        self.state.loading_message = self.overlays.loading_message
        try:
            with self._command("Overlay load"):
                await self.overlays.load()
        finally:
            # A context load started meanwhile owns the message now
            if self.state.loading_message == self.overlays.loading_message:
                self.state.loading_message = None

    async def switch_context(self, context: ToolContext) -> None:
        """
        Tear down the current context, then run the new context's entry action.

        Teardown is unconditional, so switching to the active context
        reloads it from scratch.
        """
        logger.info(f"🔀 Switching context {self.state.context.value} -> {context.value}")
        self.state.teardown_context()
        self.state.context = context
        panel = ToolPanel.for_context(context)
        if panel is not None:
            self.state.tool_panel = panel

        entry = self._entry_actions[context]
        if entry is None:
            return

        epoch = self.state.context_epoch
        self.state.loading_message = self._loading_messages[context]
        try:
            with self._command(f"Entering {context.value}"):
                await entry()
        finally:
            if self.state.is_current(epoch):
                self.state.loading_message = None

    async def switch_section(self, section: Section) -> None:
        await self.switch_context(section.context_for(self.state.tool_panel))

    async def select_tool_panel(self, panel: ToolPanel) -> None:
        """
        Change the sub-tool selector of the shapefile-analysis section.

        Outside that section only the selector value is recorded.
        """
        self.state.tool_panel = panel
        if Section.for_context(self.state.context) is Section.SHAPEFILE_ANALYSIS:
            await self.switch_context(panel.context)

    # ═══════════════════════════════════════════════════════════════════
    # 📂 UPLOADS
    # ═══════════════════════════════════════════════════════════════════

    def upload_shapefile(
        self, slot: UploadSlot, data: bytes, filename: str
    ) -> Optional[SlotContent]:
        """Decode a zipped shapefile into a slot; the slot is unchanged on failure."""
        with self._command(f"Upload to slot {slot.value}"):
            geojson = decode_shapefile_zip(data, filename)
            name = display_name(filename)
            collection = FeatureCollection.from_geojson(geojson, slot.source, name=name)
            content = self.state.set_slot(slot, collection, name)
            self.selection.arm_selectable(content.layer, name)
            return content
        return None

    def clear_uploaded_shapefiles(self) -> None:
        self.state.clear_all_slots()
        logger.info("🧹 Cleared uploaded shapefiles")

    # ═══════════════════════════════════════════════════════════════════
    # 🛠️ TOOLS
    # ═══════════════════════════════════════════════════════════════════

    def apply_buffer(self, distance: Any) -> Optional[LayerGroup]:
        with self._command("Buffer"):
            return self.set_operations.buffer(distance)
        return None

    def intersect(self) -> Optional[LayerGroup]:
        with self._command("Intersect"):
            return self.set_operations.intersect()
        return None

    def union(self) -> Optional[LayerGroup]:
        with self._command("Union"):
            return self.set_operations.union()
        return None

    def run_road_buffer(self, distance: Any) -> Optional[RoadImpactReport]:
        with self._command("Road buffer"):
            return self.road_corridor.run(distance)
        return None

    def enable_point_selection(self) -> None:
        self.proximity.enable_point_selection()

    def disable_point_selection(self) -> None:
        self.proximity.disable_point_selection()

    def run_proximity(self, radius: Any) -> Optional[ProximityReport]:
        with self._command("Proximity"):
            return self.proximity.run(radius)
        return None

    def set_overlay_visible(self, source: CollectionSource, visible: bool) -> None:
        with self._command("Overlay toggle"):
            self.overlays.set_visible(source, visible)

    # ═══════════════════════════════════════════════════════════════════
    # 🖱️ MAP EVENTS
    # ═══════════════════════════════════════════════════════════════════

    def dispatch(self, event: MapEvent) -> Transition:
        """Route one map event and report the resulting transition."""
        with self._command("Map event"):
            if isinstance(event, FeatureClick):
                transition = self.selection.handle_feature_click(event)
                if transition.kind is not TransitionKind.PASS_THROUGH:
                    return transition
                if event.lon is None or event.lat is None:
                    return self.selection.handle_background_click()
                return self._background_click(MapClick(event.lon, event.lat))
            if isinstance(event, MapClick):
                return self._background_click(event)
            if isinstance(event, KeyPress):
                return self.selection.handle_key(event)
            raise TypeError(f"Unsupported map event: {event!r}")
        return Transition.ignored()

    def _background_click(self, event: MapClick) -> Transition:
        if self.proximity.accepts_clicks():
            return self.proximity.mark_point(event.lon, event.lat)
        return self.selection.handle_background_click()

    def remove_selected(self) -> Transition:
        with self._command("Remove selected"):
            return self.selection.remove_selected()
        return Transition.ignored()

    def remove_selected_road(self) -> Transition:
        return self.selection.remove_selected_road()

    # ═══════════════════════════════════════════════════════════════════
    # 📸 SNAPSHOT
    # ═══════════════════════════════════════════════════════════════════

    def snapshot(self) -> Dict[str, Any]:
        return self.state.snapshot()
