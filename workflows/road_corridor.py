#!/usr/bin/env python3
"""
Road-Corridor Impact Workflow

ARCHITECTURAL OVERVIEW:
=======================
Responsibility: Load roads, buildings and hospitals for the road-buffer
section and count what falls inside a buffer around one selected road.

State machine:
    Idle -> (context entered) -> DataLoaded -> (road clicked) -> RoadSelected
         -> (run) -> ResultsShown -> (road reselected / context left) -> ...

Key Interactions:
- load(): awaited by MapClient on context entry, strictly sequential
  fetches (roads, buildings, hospitals) with a stale check after each one
- run(): uses the road selected through SelectionController

For Navigation: Use VS Code outline (Ctrl+Shift+O)
"""

from dataclasses import dataclass
from typing import Any, Dict, List, Tuple
import logging

from shapely.geometry.base import BaseGeometry

from Dhulikhel_WebGIS.config_types import APP_CONFIG, AppConfig
from Dhulikhel_WebGIS.geometry.engine import GeometryEngine
from Dhulikhel_WebGIS.models.data_models import (
    ANY_GEOMETRY,
    INFRASTRUCTURE_SOURCES,
    LINE_TYPES,
    CollectionSource,
    Feature,
    FeatureCollection,
    GeometryFamily,
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
    hospital_popup,
    road_popup,
)
from Dhulikhel_WebGIS.session.selection import SelectionController
from Dhulikhel_WebGIS.session.state import SessionState
from Dhulikhel_WebGIS.workflows.common import (
    fetch_collection,
    parse_positive_km,
    publish_results,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RoadImpactReport:
    """Outcome of one road-buffer run."""

    distance_km: float
    affected_buildings: Tuple[Feature, ...]
    affected_hospitals: Tuple[Feature, ...]

    @property
    def buildings_affected(self) -> int:
        return len(self.affected_buildings)

    @property
    def hospitals_affected(self) -> int:
        return len(self.affected_hospitals)

    def to_text(self) -> str:
        return (
            f"Number of buildings affected: {self.buildings_affected}\n"
            f"Number of hospitals affected: {self.hospitals_affected}"
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "distanceKm": self.distance_km,
            "buildingsAffected": self.buildings_affected,
            "hospitalsAffected": self.hospitals_affected,
        }


class RoadCorridorWorkflow:
    """Road-buffer section: data load plus impact analysis."""

    loading_message = "Loading road-corridor data..."

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
        Fetch roads, then buildings, then hospitals.

        A failure aborts the remaining fetches; collections already loaded
        in this call stay. Responses arriving after a context switch are
        discarded.

        Raises:
            DataLoadError: "Error loading road-corridor data: ..."
        """
        state = self.state
        state.clear_infrastructure(*INFRASTRUCTURE_SOURCES)
        epoch = state.context_epoch

        plan = (
            (CollectionSource.ROADS, LINE_TYPES, road_popup),
            (CollectionSource.BUILDINGS, ANY_GEOMETRY, building_popup),
            (CollectionSource.HOSPITALS, ANY_GEOMETRY, hospital_popup),
        )
        for source, allowed_types, popup in plan:
            try:
                collection = await fetch_collection(
                    self.provider, state, source, allowed_types, epoch
                )
            except DataLoadError as e:
                if not state.is_current(epoch):
                    logger.info(f"⏭️ Ignoring failed stale {source.label} load: {e}")
                    return
                raise DataLoadError(f"Error loading road-corridor data: {e}") from e
            if collection is None:
                return

            layer = build_layer_group(
                collection,
                name=source.label,
                style=self.config.styles.get(source.value),
                popup=popup,
            )
            state.set_infrastructure(source, collection, layer)
            if source is CollectionSource.ROADS:
                state.map_view.fit_bounds(layer.bounds())
            logger.info(f"✅ {source.label} loaded: {len(collection)} features")

    # ═══════════════════════════════════════════════════════════════════
    # 🛣️ IMPACT ANALYSIS
    # ═══════════════════════════════════════════════════════════════════

    def run(self, raw_distance: Any) -> RoadImpactReport:
        """
        Buffer the selected road and classify buildings and hospitals.

        Args:
            raw_distance: Buffer radius in km as entered

        Returns:
            RoadImpactReport with the affected features and counts.

        Raises:
            PreconditionError: Data not loaded, no road selected, bad
                distance, or a non-line road.
            GeometryOperationError: The road buffer could not be built.
        """
        state = self.state
        buildings = state.infrastructure[CollectionSource.BUILDINGS]
        hospitals = state.infrastructure[CollectionSource.HOSPITALS]
        if state.infrastructure[CollectionSource.ROADS] is None or buildings is None or hospitals is None:
            raise PreconditionError(
                "Road, building, or hospital data not loaded. "
                "Please ensure data is fetched from the server."
            )

        road = state.road_selection
        if road is None:
            raise PreconditionError("Please select a road by clicking on it on the map.")

        km = parse_positive_km(
            raw_distance, "Please enter a valid positive buffer distance in kilometers."
        )

        if road.feature.family is not GeometryFamily.LINE:
            raise PreconditionError(
                "Invalid road geometry. Please select a valid LineString or "
                "MultiLineString road."
            )

        try:
            corridor = self.engine.buffer(road.feature.geometry, km)
        except Exception as e:
            logger.error(f"❌ Road buffer failed for {road.id}: {e}")
            raise GeometryOperationError(
                f"An error occurred while processing the road buffer: {e}"
            ) from e

        report = RoadImpactReport(
            distance_km=km,
            affected_buildings=tuple(self._affected(buildings, corridor)),
            affected_hospitals=tuple(self._affected(hospitals, corridor)),
        )

        styles = self.config.styles
        buffer_layer = build_layer_group(
            [Feature(corridor, dict(road.feature.properties))],
            name="Road Buffer",
            style=styles.get("road_buffer"),
            pane=Pane.ANALYSIS,
            popup=fixed_popup(f"Road Buffer ({km:g} km)"),
        )
        buildings_layer = build_layer_group(
            report.affected_buildings,
            name="Affected Buildings",
            style=styles.get("affected_buildings"),
            pane=Pane.ANALYSIS,
            popup=building_popup,
        )
        hospitals_layer = build_layer_group(
            report.affected_hospitals,
            name="Affected Hospitals",
            style=styles.get("affected_hospitals"),
            pane=Pane.ANALYSIS,
            popup=hospital_popup,
        )

        state.clear_analysis_results()
        state.show_infrastructure(*INFRASTRUCTURE_SOURCES)
        publish_results(
            state,
            self.selection,
            [
                (buffer_layer, "Road Buffer"),
                (buildings_layer, "Affected Buildings"),
                (hospitals_layer, "Affected Hospitals"),
            ],
        )
        state.report_text = report.to_text()
        state.map_view.fit_bounds(buffer_layer.bounds())
        state.clear_road_selection()

        logger.info(
            f"🛣️ Road buffer {km} km: {report.buildings_affected} buildings, "
            f"{report.hospitals_affected} hospitals affected"
        )
        return report

    def _affected(
        self, collection: FeatureCollection, corridor: BaseGeometry
    ) -> List[Feature]:
        """Features inside the corridor; a feature that errors counts as outside."""
        affected = []
        for feature in collection:
            try:
                if feature.family is GeometryFamily.POINT:
                    inside = self.engine.within(feature.geometry, corridor)
                else:
                    inside = self.engine.intersect(feature.geometry, corridor) is not None
            except Exception as e:
                logger.warning(
                    f"Error processing {collection.source.label} ID "
                    f"{feature.prop('id', 'Unknown')}: {e}"
                )
                continue
            if inside:
                affected.append(feature)
        return affected
