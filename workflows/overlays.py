"""
Administrative boundary overlays (local level, district, province).

Loaded once at start, filtered to polygons, and registered as toggleable
overlays. They stay off the map until switched on, like entries of a
Leaflet layer control.
"""

import logging

from Dhulikhel_WebGIS.config_types import APP_CONFIG, AppConfig
from Dhulikhel_WebGIS.models.data_models import (
    AREA_TYPES,
    BOUNDARY_SOURCES,
    CollectionSource,
    FeatureCollection,
)
from Dhulikhel_WebGIS.models.errors import DataLoadError, PreconditionError
from Dhulikhel_WebGIS.rendering.layers import build_layer_group
from Dhulikhel_WebGIS.rendering.popups import boundary_popup
from Dhulikhel_WebGIS.session.selection import SelectionController
from Dhulikhel_WebGIS.session.state import SessionState

logger = logging.getLogger(__name__)


class OverlayLoader:
    """Loads and toggles the boundary overlays."""

    loading_message = "Loading overlay layers..."

    def __init__(
        self,
        state: SessionState,
        selection: SelectionController,
        provider,
        config: AppConfig = APP_CONFIG,
    ) -> None:
        self.state = state
        self.selection = selection
        self.provider = provider
        self.config = config

    async def load(self) -> None:
        """
        Fetch local, district and province boundaries in sequence.

        Raises:
            DataLoadError: "Error loading overlay layers: ..." on the first
                failing fetch; overlays loaded before it are kept.
        """
        for source in BOUNDARY_SOURCES:
            try:
                data = await self.provider.fetch(source)
                collection = FeatureCollection.from_geojson(
                    data, source, allowed_types=AREA_TYPES
                )
            except DataLoadError as e:
                raise DataLoadError(f"Error loading overlay layers: {e}") from e

            layer = build_layer_group(
                collection,
                name=source.label,
                style=self.config.styles.get(source.value),
                popup=boundary_popup(source.label),
            )
            self.selection.arm_selectable(layer, source.label)
            self.state.set_overlay(source, collection, layer)
            logger.info(f"✅ {source.label} loaded: {len(collection)} features")

        for source in BOUNDARY_SOURCES:
            layer = self.state.overlay_layers[source]
            if layer is not None and len(layer):
                self.state.map_view.fit_bounds(layer.bounds())
                break

    def set_visible(self, source: CollectionSource, visible: bool) -> None:
        """Switch one overlay on or off."""
        if source not in BOUNDARY_SOURCES:
            raise PreconditionError(f"{source.label} is not a boundary overlay.")
        layer = self.state.overlay_layers[source]
        if layer is None:
            raise PreconditionError(f"{source.label} overlay not loaded.")

        if visible:
            self.state.map_view.add_layer(layer)
        else:
            self.state.forget_layer(layer)
        logger.debug(f"{source.label} overlay {'shown' if visible else 'hidden'}")
