"""
Selection Controller

Click-to-select, highlight, deselect and delete for every rendered feature.
Two independent single-slot selections exist: the general selection (any
armed layer) and the road selection (road layer of the road-corridor tool).
Neither one observes the other's clicks; both are cleared by background
clicks and context switches.

Handlers take an event, mutate SessionState and return a Transition.
"""

from typing import Optional
import logging

from Dhulikhel_WebGIS.config_types import APP_CONFIG, SelectionConfig
from Dhulikhel_WebGIS.models.data_models import ToolContext
from Dhulikhel_WebGIS.models.errors import PreconditionError
from Dhulikhel_WebGIS.rendering.layers import FeatureLayer, LayerGroup
from Dhulikhel_WebGIS.session.events import FeatureClick, KeyPress, Transition, TransitionKind
from Dhulikhel_WebGIS.session.state import Selection, SessionState

logger = logging.getLogger(__name__)


class SelectionController:
    """State machine for the general and road selections."""

    def __init__(
        self, state: SessionState, config: SelectionConfig = APP_CONFIG.selection
    ) -> None:
        self.state = state
        self.config = config

    # ═══════════════════════════════════════════════════════════════════
    # 🎯 ARMING
    # ═══════════════════════════════════════════════════════════════════

    def arm_selectable(self, group: LayerGroup, label: Optional[str] = None) -> None:
        """
        Make every feature of a group clickable.

        Records each feature's pre-highlight colour and gives features
        without a popup the fallback label.
        """
        fallback = label or self.config.fallback_label
        for feature_layer in group:
            feature_layer.original_color = (
                feature_layer.style.color or self.config.fallback_color
            )
            feature_layer.clickable = True
            if feature_layer.popup is None:
                feature_layer.popup = fallback
        group.selectable = True

    # ═══════════════════════════════════════════════════════════════════
    # 🖱️ CLICKS
    # ═══════════════════════════════════════════════════════════════════

    def handle_feature_click(self, event: FeatureClick) -> Transition:
        """
        Route a click on a rendered feature.

        Returns PASS_THROUGH when the feature does not handle clicks, so the
        caller can treat it as a background click.
        """
        found = self.state.map_view.find_feature(event.feature_id)
        if found is None:
            logger.debug(f"Click on unknown feature {event.feature_id} ignored")
            return Transition.ignored()
        feature_layer, group = found

        if self.state.is_road_layer(group):
            if self.state.context is ToolContext.ROAD_BUFFER:
                return self._toggle_road(feature_layer, group)
            return Transition(TransitionKind.PASS_THROUGH, group.id)

        if not feature_layer.clickable:
            return Transition(TransitionKind.PASS_THROUGH, group.id)

        return self._toggle_selection(feature_layer, group)

    def handle_background_click(self) -> Transition:
        """Background click: clear both selections."""
        cleared = self.state.clear_selection()
        cleared_road = self.state.clear_road_selection()
        if cleared or cleared_road:
            return Transition(TransitionKind.SELECTION_CLEARED)
        return Transition.ignored()

    def _toggle_selection(
        self, feature_layer: FeatureLayer, group: LayerGroup
    ) -> Transition:
        current = self.state.selection
        if current is not None and current.feature_layer is feature_layer:
            self.state.clear_selection()
            return Transition(TransitionKind.DESELECTED, group.id)

        self.state.clear_selection()
        feature_layer.set_color(self.config.highlight_color)
        feature_layer.open_popup()
        self.state.selection = Selection(feature_layer=feature_layer, group=group)
        logger.debug(f"Selected {feature_layer.id} in {group.name}")
        return Transition(TransitionKind.SELECTED, group.id)

    def _toggle_road(self, feature_layer: FeatureLayer, group: LayerGroup) -> Transition:
        if self.state.road_selection is feature_layer:
            self.state.clear_road_selection()
            return Transition(TransitionKind.ROAD_DESELECTED, group.id)

        self.state.clear_road_selection()
        feature_layer.set_color(self.config.road_highlight_color)
        self.state.road_selection = feature_layer
        logger.debug(f"Road selected: {feature_layer.id}")
        return Transition(TransitionKind.ROAD_SELECTED, group.id)

    # ═══════════════════════════════════════════════════════════════════
    # 🗑️ REMOVAL
    # ═══════════════════════════════════════════════════════════════════

    def remove_selected(self) -> Transition:
        """
        Remove the whole parent group of the selected feature.

        Raises:
            PreconditionError: If nothing is selected.
        """
        selection = self.state.selection
        if selection is None:
            raise PreconditionError("No feature selected.")

        group = selection.group
        self.state.map_view.remove_layer(group)
        self.state.drop_analysis_result(group)
        self.state.clear_selection()
        logger.info(f"🗑️ Removed layer {group.name} ({len(group)} features)")
        return Transition(TransitionKind.LAYER_REMOVED, group.id)

    def remove_selected_road(self) -> Transition:
        """The "remove selected road" control: drops the road selection."""
        if not self.state.clear_road_selection():
            return Transition.ignored()
        return Transition(TransitionKind.ROAD_DESELECTED)

    def handle_key(self, event: KeyPress) -> Transition:
        if event.key == self.config.delete_key and self.state.selection is not None:
            return self.remove_selected()
        return Transition.ignored()
