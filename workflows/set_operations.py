#!/usr/bin/env python3
"""
Shapefile Set Operations

ARCHITECTURAL OVERVIEW:
=======================
Responsibility: Buffer, Intersect and Union over the two upload slots.

Workflow:
1. Check preconditions (slots filled, distance valid); nothing is mutated
   when one fails
2. Run the geometry engine
3. Replace the analysis result set with one result layer, arm it for
   selection and fit the viewport to it

Intersect tests the intersects predicate before computing the exact
intersection; Union computes every pair unconditionally and skips pairs
that fail. Both keep only non-empty results. A run that finds nothing
still clears the previous result set.

For Navigation: Use VS Code outline (Ctrl+Shift+O)
"""

from typing import Any, List, Optional, Tuple
import logging

from Dhulikhel_WebGIS.config_types import APP_CONFIG, AppConfig
from Dhulikhel_WebGIS.geometry.engine import GeometryEngine
from Dhulikhel_WebGIS.models.data_models import Feature, FeatureCollection, UploadSlot
from Dhulikhel_WebGIS.models.errors import GeometryOperationError, PreconditionError
from Dhulikhel_WebGIS.rendering.layers import LayerGroup, build_layer_group
from Dhulikhel_WebGIS.rendering.popups import fixed_popup
from Dhulikhel_WebGIS.session.notices import NoticeBoard
from Dhulikhel_WebGIS.session.selection import SelectionController
from Dhulikhel_WebGIS.session.state import SessionState
from Dhulikhel_WebGIS.workflows.common import parse_positive_km, publish_results

logger = logging.getLogger(__name__)

BUFFER_LABEL = "Buffer Result"
INTERSECT_LABEL = "Intersect Result"
UNION_LABEL = "Union Result"


class SetOperationWorkflow:
    """Buffer / Intersect / Union tools of the shapefile-analysis section."""

    def __init__(
        self,
        state: SessionState,
        engine: GeometryEngine,
        selection: SelectionController,
        notices: NoticeBoard,
        config: AppConfig = APP_CONFIG,
    ) -> None:
        self.state = state
        self.engine = engine
        self.selection = selection
        self.notices = notices
        self.config = config

    # ═══════════════════════════════════════════════════════════════════
    # 🟠 BUFFER
    # ═══════════════════════════════════════════════════════════════════

    def buffer(self, raw_distance: Any) -> LayerGroup:
        """
        Buffer every feature of slot A.

        Args:
            raw_distance: Radius in km as entered (number or numeric string)

        Returns:
            The "Buffer Result" layer, now the whole analysis result set.

        Raises:
            PreconditionError: Slot A empty or distance invalid.
            GeometryOperationError: The engine failed on the collection.
        """
        collection = self.state.slot_collection(UploadSlot.A)
        if collection is None:
            raise PreconditionError("Upload Shapefile A first.")
        km = parse_positive_km(raw_distance, "Enter a valid positive distance.")

        try:
            buffered = self.engine.buffer_features(collection, km)
        except Exception as e:
            logger.error(f"❌ Buffer of {len(collection)} features failed: {e}")
            raise GeometryOperationError(f"Error creating buffer: {e}") from e

        logger.info(f"🟠 Buffered {len(buffered)} features by {km} km")
        return self._publish(buffered, BUFFER_LABEL, "buffer_result")

    # ═══════════════════════════════════════════════════════════════════
    # 🔴 INTERSECT
    # ═══════════════════════════════════════════════════════════════════

    def intersect(self) -> Optional[LayerGroup]:
        """
        Pairwise intersection of slot A with slot B.

        Returns None (with a notice) when no pair intersects; the previous
        result set is cleared.
        """
        collection_a, collection_b = self._both_slots()

        results: List[Feature] = []
        for feature_a in collection_a:
            for feature_b in collection_b:
                try:
                    if not self.engine.intersects(feature_a.geometry, feature_b.geometry):
                        continue
                    overlap = self.engine.intersect(feature_a.geometry, feature_b.geometry)
                except Exception as e:
                    logger.warning(f"Intersect failed for one pair: {e}")
                    continue
                if overlap is not None:
                    results.append(Feature(overlap))

        if not results:
            self.state.clear_analysis_results()
            self.notices.post("No intersections found.")
            return None

        logger.info(
            f"🔴 {len(results)} intersections from "
            f"{len(collection_a)} x {len(collection_b)} pairs"
        )
        return self._publish(results, INTERSECT_LABEL, "intersect_result")

    # ═══════════════════════════════════════════════════════════════════
    # 🟣 UNION
    # ═══════════════════════════════════════════════════════════════════

    def union(self) -> Optional[LayerGroup]:
        """
        Pairwise union of slot A with slot B.

        A failing pair is logged and skipped; the remaining pairs still run.
        Returns None (with a notice) when every pair failed or was empty; the
        previous result set is cleared.
        """
        collection_a, collection_b = self._both_slots()

        results: List[Feature] = []
        failed = 0
        for feature_a in collection_a:
            for feature_b in collection_b:
                try:
                    merged = self.engine.union(feature_a.geometry, feature_b.geometry)
                except Exception as e:
                    failed += 1
                    logger.warning(f"Union operation failed for some features: {e}")
                    continue
                if merged is not None:
                    results.append(Feature(merged))

        if not results:
            self.state.clear_analysis_results()
            self.notices.post("No valid unions found.")
            return None

        logger.info(f"🟣 {len(results)} unions ({failed} pairs skipped)")
        return self._publish(results, UNION_LABEL, "union_result")

    # ═══════════════════════════════════════════════════════════════════
    # 🔧 HELPERS
    # ═══════════════════════════════════════════════════════════════════

    def _both_slots(self) -> Tuple[FeatureCollection, FeatureCollection]:
        collection_a = self.state.slot_collection(UploadSlot.A)
        collection_b = self.state.slot_collection(UploadSlot.B)
        if collection_a is None or collection_b is None:
            raise PreconditionError("Upload both shapefiles.")
        return collection_a, collection_b

    def _publish(self, features: List[Feature], label: str, style_key: str) -> LayerGroup:
        group = build_layer_group(
            features,
            name=label,
            style=self.config.styles.get(style_key),
            popup=fixed_popup(label),
        )
        publish_results(self.state, self.selection, [(group, label)])
        self.state.map_view.fit_bounds(group.bounds())
        self.state.clear_selection()
        return group
