#!/usr/bin/env python3
"""
Proximity Search Workflow

ARCHITECTURAL OVERVIEW:
=======================
Responsibility: Nearest-hospital search from a user-marked point.

State machine:
    Idle -> (context entered, data loaded) -> Ready
         -> (point selection armed, map clicked) -> PointMarked
         -> (run) -> ResultsShown

Every further map click while armed replaces the marked point and clears
the previous results. Point selection stays armed until it is disabled or
the context changes.

Nearest hospital: geodesic distance from the marked point to each hospital
centroid, candidates restricted to the search radius, first-seen wins ties.
The search-radius polygon is drawn for display only.

For Navigation: Use VS Code outline (Ctrl+Shift+O)
"""

from dataclasses import dataclass
from typing import Any, Dict, Optional
import logging

from Dhulikhel_WebGIS.config_types import APP_CONFIG, AppConfig
from Dhulikhel_WebGIS.geometry.engine import GeometryEngine
from Dhulikhel_WebGIS.models.data_models import (
    ANY_GEOMETRY,
    POINT_TYPES,
    CollectionSource,
    Feature,
    ToolContext,
)
from Dhulikhel_WebGIS.models.errors import (
    DataLoadError,
    GeometryOperationError,
    PreconditionError,
)
from Dhulikhel_WebGIS.rendering.layers import Pane, build_layer_group
from Dhulikhel_WebGIS.rendering.popups import (
    building_popup,
    fixed_popup,
    hospital_lines,
    hospital_popup,
)
from Dhulikhel_WebGIS.session.events import Transition, TransitionKind
from Dhulikhel_WebGIS.session.selection import SelectionController
from Dhulikhel_WebGIS.session.state import MarkedPoint, SessionState
from Dhulikhel_WebGIS.workflows.common import (
    fetch_collection,
    parse_positive_km,
    publish_results,
)

logger = logging.getLogger(__name__)

PROXIMITY_SOURCES = (CollectionSource.BUILDINGS, CollectionSource.HOSPITALS)

STATUS_ARMED = "Click on the map to mark a location."
STATUS_MARKED = 'Location marked. Click "Find Nearest Hospital" to proceed.'
NONE_FOUND = "No hospitals found within the specified radius."


@dataclass(frozen=True)
class ProximityReport:
    """Outcome of one nearest-hospital search."""

    radius_km: float
    hospital: Optional[Feature] = None
    distance_km: Optional[float] = None

    @property
    def found(self) -> bool:
        return self.hospital is not None

    def to_text(self) -> str:
        if self.hospital is None:
            return NONE_FOUND
        lines = ["Nearest Hospital"] + hospital_lines(self.hospital)
        lines.append(f"Distance: {self.distance_km:.2f} km")
        return "\n".join(lines)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "radiusKm": self.radius_km,
            "found": self.found,
            "hospital": dict(self.hospital.properties) if self.hospital else None,
            "distanceKm": self.distance_km,
        }


class ProximityWorkflow:
    """Proximity-analysis section: data load, point marking, search."""

    loading_message = "Loading proximity data..."

    def __init__(
        self,
        state: SessionState,
        engine: GeometryEngine,
        selection: SelectionController,
        provider: Any,
        config: AppConfig = APP_CONFIG,
    ) -> None:
        self.state = state
        self.engine = engine
        self.selection = selection
        self.provider = provider
        self.config = config

    # ═══════════════════════════════════════════════════════════════════
    # 📂 ENTRY ACTION
    # ═══════════════════════════════════════════════════════════════════

    async def load(self) -> None:
        """
        Fetch buildings (points only) then hospitals (any geometry).

        Raises:
            DataLoadError: "Error loading proximity data: ..."
        """
        state = self.state
        state.clear_infrastructure(*PROXIMITY_SOURCES)
        epoch = state.context_epoch

        plan = (
            (CollectionSource.BUILDINGS, POINT_TYPES, building_popup, "Building"),
            (CollectionSource.HOSPITALS, ANY_GEOMETRY, hospital_popup, "Hospital"),
        )
        for source, allowed_types, popup, label in plan:
            try:
                collection = await fetch_collection(
                    self.provider, state, source, allowed_types, epoch
                )
            except DataLoadError as e:
                if not state.is_current(epoch):
                    logger.info(f"⏭️ Ignoring failed stale {source.label} load: {e}")
                    return
                raise DataLoadError(f"Error loading proximity data: {e}") from e
            if collection is None:
                return

            layer = build_layer_group(
                collection,
                name=source.label,
                style=self.config.styles.get(source.value),
                popup=popup,
            )
            self.selection.arm_selectable(layer, label)
            state.set_infrastructure(source, collection, layer)
            logger.info(f"✅ {source.label} loaded: {len(collection)} features")

        for source in PROXIMITY_SOURCES:
            layer = state.infrastructure_layers[source]
            if layer is not None and len(layer):
                state.map_view.fit_bounds(layer.bounds())
                break

    # ═══════════════════════════════════════════════════════════════════
    # 📍 POINT MARKING
    # ═══════════════════════════════════════════════════════════════════

    def enable_point_selection(self) -> None:
        self.state.point_selection_armed = True
        self.state.status_text = STATUS_ARMED

    def disable_point_selection(self) -> None:
        self.state.point_selection_armed = False

    def accepts_clicks(self) -> bool:
        """True when a background click should mark a point."""
        return (
            self.state.point_selection_armed
            and self.state.context is ToolContext.PROXIMITY
        )

    def mark_point(self, lon: float, lat: float) -> Transition:
        """Replace the marked point (and any results) with a new one."""
        state = self.state
        state.clear_marked_point()
        state.clear_analysis_results()

        point = self.engine.point(lon, lat)
        layer = build_layer_group(
            [Feature(point)],
            name="Marked Location",
            style=self.config.styles.get("marked_point"),
            pane=Pane.ANALYSIS,
            popup=fixed_popup("Marked Location"),
        )
        self.selection.arm_selectable(layer, "Marked Location")
        state.map_view.add_layer(layer)
        state.marked_point = MarkedPoint(geometry=point, layer=layer)
        state.map_view.fit_bounds(layer.bounds())
        state.show_infrastructure(*PROXIMITY_SOURCES)
        state.report_text = ""
        state.status_text = STATUS_MARKED

        logger.info(f"📍 Marked location at ({lon:.5f}, {lat:.5f})")
        return Transition(TransitionKind.POINT_MARKED, layer.id)

    # ═══════════════════════════════════════════════════════════════════
    # 🏥 NEAREST HOSPITAL
    # ═══════════════════════════════════════════════════════════════════

    def run(self, raw_radius: Any) -> ProximityReport:
        """
        Find the nearest hospital within the radius of the marked point.

        Args:
            raw_radius: Search radius in km as entered

        Returns:
            ProximityReport; report.found is False when nothing is in range,
            in which case the previous results are cleared and none added.

        Raises:
            PreconditionError: No marked point, hospitals not loaded, or bad radius.
            GeometryOperationError: The search-radius buffer could not be built.
        """
        state = self.state
        marked = state.marked_point
        if marked is None:
            raise PreconditionError(
                "Please mark a location on the map by clicking 'Mark Location' "
                "and selecting a point."
            )
        hospitals = state.infrastructure[CollectionSource.HOSPITALS]
        if hospitals is None:
            raise PreconditionError(
                "Hospital data not loaded. Please ensure data is fetched from the server."
            )
        km = parse_positive_km(
            raw_radius, "Please enter a valid positive search radius in kilometers."
        )

        try:
            search_area = self.engine.buffer(marked.geometry, km)
        except Exception as e:
            logger.error(f"❌ Search radius buffer failed: {e}")
            raise GeometryOperationError(
                f"An error occurred while processing the proximity analysis: {e}"
            ) from e

        nearest: Optional[Feature] = None
        nearest_centroid = None
        min_distance = float("inf")
        for hospital in hospitals:
            try:
                centroid = self.engine.centroid(hospital.geometry)
                distance = self.engine.distance_km(marked.geometry, centroid)
            except Exception as e:
                logger.warning(
                    f"Error processing hospital ID {hospital.prop('id', 'Unknown')}: {e}"
                )
                continue
            if distance <= km and distance < min_distance:
                min_distance = distance
                nearest = hospital
                nearest_centroid = centroid

        if nearest is None:
            logger.info(f"🏥 No hospital within {km} km")
            state.clear_analysis_results()
            state.report_text = NONE_FOUND
            return ProximityReport(radius_km=km)

        styles = self.config.styles
        radius_layer = build_layer_group(
            [Feature(search_area)],
            name="Search Radius",
            style=styles.get("search_radius"),
            pane=Pane.ANALYSIS,
            popup=fixed_popup("Search Radius"),
        )
        hospital_layer = build_layer_group(
            [nearest],
            name="Nearest Hospital",
            style=styles.get("nearest_hospital"),
            pane=Pane.ANALYSIS,
            popup=hospital_popup,
        )
        line_layer = build_layer_group(
            [Feature(self.engine.line_between(marked.geometry, nearest_centroid))],
            name="Distance Line",
            style=styles.get("distance_line"),
            pane=Pane.ANALYSIS,
            popup=fixed_popup(f"Distance: {min_distance:.2f} km"),
        )

        publish_results(
            state,
            self.selection,
            [
                (radius_layer, "Search Radius"),
                (hospital_layer, "Nearest Hospital"),
                (line_layer, "Distance Line"),
            ],
        )
        state.map_view.add_layer(marked.layer)
        state.show_infrastructure(*PROXIMITY_SOURCES)
        state.map_view.fit_bounds(radius_layer.bounds())

        report = ProximityReport(radius_km=km, hospital=nearest, distance_km=min_distance)
        state.report_text = report.to_text()
        logger.info(
            f"🏥 Nearest hospital {nearest.prop('name', 'N/A')} at {min_distance:.2f} km"
        )
        return report
