#!/usr/bin/env python3
"""
Selection Controller Tests

Exclusive global selection, toggle-off, whole-group removal, the Delete
key, background clicks, and the separate road selection.
"""

import asyncio

import pytest

from conftest import collection, feature, fill_slot, polygon

from Dhulikhel_WebGIS.models.data_models import CollectionSource, ToolContext, UploadSlot
from Dhulikhel_WebGIS.rendering.layers import LayerStyle
from Dhulikhel_WebGIS.session.events import FeatureClick, KeyPress, MapClick, TransitionKind

HIGHLIGHT = "#1d4ed8"


@pytest.fixture
def two_parcels(client):
    """Slot A with two parcels; returns (client, group)."""
    fill_slot(
        client,
        UploadSlot.A,
        collection(
            feature(polygon(85.50, 27.60, 85.51, 27.61), name="P1"),
            feature(polygon(85.52, 27.60, 85.53, 27.61), name="P2"),
        ),
        "parcels",
    )
    return client, client.state.slots[UploadSlot.A].layer


class TestArming:
    def test_records_original_colour_and_popup(self, two_parcels):
        _, group = two_parcels
        assert group.selectable
        for fl in group:
            assert fl.clickable
            assert fl.original_color == "#6b7280"
            assert fl.popup == "parcels"

    def test_fallback_colour_and_label(self, client):
        from Dhulikhel_WebGIS.rendering.layers import FeatureLayer, LayerGroup
        from Dhulikhel_WebGIS.models.data_models import Feature
        from shapely.geometry import Point

        fl = FeatureLayer("x:0", Feature(Point(0, 0)), LayerStyle(color=None))
        group = LayerGroup("x", "x", [fl])
        client.selection.arm_selectable(group)
        assert fl.original_color == "#f59e0b"
        assert fl.popup == "Analysis Result"


class TestFeatureClicks:
    def test_select_then_switch_reverts_first(self, two_parcels):
        client, group = two_parcels
        f1, f2 = group.feature_layers

        t1 = client.dispatch(FeatureClick(f1.id))
        assert t1.kind is TransitionKind.SELECTED
        assert f1.style.color == HIGHLIGHT
        assert f1.popup_open
        assert client.state.remove_selected_visible

        t2 = client.dispatch(FeatureClick(f2.id))
        assert t2.kind is TransitionKind.SELECTED
        assert f1.style.color == "#6b7280"
        assert not f1.popup_open
        assert f2.style.color == HIGHLIGHT
        assert client.state.selection.feature_layer is f2

    def test_second_click_toggles_off(self, two_parcels):
        client, group = two_parcels
        f1 = group.feature_layers[0]
        client.dispatch(FeatureClick(f1.id))
        t = client.dispatch(FeatureClick(f1.id))
        assert t.kind is TransitionKind.DESELECTED
        assert client.state.selection is None
        assert f1.style.color == "#6b7280"
        assert not client.state.remove_selected_visible

    def test_unknown_feature_ignored(self, client):
        assert client.dispatch(FeatureClick("layer-999:0")).kind is TransitionKind.IGNORED

    def test_background_click_clears(self, two_parcels):
        client, group = two_parcels
        client.dispatch(FeatureClick(group.feature_layers[0].id))
        t = client.dispatch(MapClick(85.0, 27.0))
        assert t.kind is TransitionKind.SELECTION_CLEARED
        assert client.state.selection is None

    def test_background_click_with_nothing_selected(self, client):
        assert client.dispatch(MapClick(85.0, 27.0)).kind is TransitionKind.IGNORED


class TestRemoveSelected:
    def test_removes_entire_group(self, two_parcels):
        client, group = two_parcels
        client.dispatch(FeatureClick(group.feature_layers[1].id))
        t = client.remove_selected()
        assert t.kind is TransitionKind.LAYER_REMOVED
        assert t.layer_id == group.id
        assert not client.map_view.has_layer(group)
        assert client.map_view.find_feature(group.feature_layers[0].id) is None
        assert client.state.selection is None

    def test_drops_group_from_result_set(self, two_parcels):
        client, _ = two_parcels
        result = client.apply_buffer(1)
        client.dispatch(FeatureClick(result.feature_layers[0].id))
        client.remove_selected()
        assert client.state.analysis_results == []

    def test_nothing_selected_posts_notice(self, client):
        t = client.remove_selected()
        assert t.kind is TransitionKind.IGNORED
        assert client.notices.take() == "No feature selected."

    def test_delete_key(self, two_parcels):
        client, group = two_parcels
        client.dispatch(FeatureClick(group.feature_layers[0].id))
        t = client.dispatch(KeyPress("Delete"))
        assert t.kind is TransitionKind.LAYER_REMOVED
        assert not client.map_view.has_layer(group)

    def test_other_keys_and_delete_without_selection_ignored(self, two_parcels):
        client, group = two_parcels
        assert client.dispatch(KeyPress("Delete")).kind is TransitionKind.IGNORED
        client.dispatch(FeatureClick(group.feature_layers[0].id))
        assert client.dispatch(KeyPress("Backspace")).kind is TransitionKind.IGNORED
        assert client.map_view.has_layer(group)


class TestRoadSelection:
    @pytest.fixture
    def road_client(self, client):
        asyncio.run(client.switch_context(ToolContext.ROAD_BUFFER))
        return client

    def test_road_toggle(self, road_client):
        roads = road_client.state.infrastructure_layers[CollectionSource.ROADS]
        r1 = roads.feature_layers[0]

        t = road_client.dispatch(FeatureClick(r1.id))
        assert t.kind is TransitionKind.ROAD_SELECTED
        assert r1.style.color == "#f97316"
        assert road_client.state.remove_selected_road_visible

        t = road_client.dispatch(FeatureClick(r1.id))
        assert t.kind is TransitionKind.ROAD_DESELECTED
        assert r1.style.color == "#1e40af"
        assert road_client.state.road_selection is None

    def test_reselecting_other_road_reverts_first(self, road_client):
        r1, r2 = road_client.state.infrastructure_layers[CollectionSource.ROADS].feature_layers
        road_client.dispatch(FeatureClick(r1.id))
        road_client.dispatch(FeatureClick(r2.id))
        assert r1.style.color == "#1e40af"
        assert road_client.state.road_selection is r2

    def test_road_click_does_not_touch_general_selection(self, road_client):
        fill_slot(road_client, UploadSlot.A, collection(feature(polygon(85.5, 27.6, 85.51, 27.61))), "a")
        parcel = road_client.state.slots[UploadSlot.A].layer.feature_layers[0]
        road = road_client.state.infrastructure_layers[CollectionSource.ROADS].feature_layers[0]

        road_client.dispatch(FeatureClick(parcel.id))
        road_client.dispatch(FeatureClick(road.id))
        assert road_client.state.selection.feature_layer is parcel
        assert road_client.state.road_selection is road

    def test_background_click_clears_both(self, road_client):
        road = road_client.state.infrastructure_layers[CollectionSource.ROADS].feature_layers[0]
        road_client.dispatch(FeatureClick(road.id))
        road_client.dispatch(MapClick(85.0, 27.0))
        assert road_client.state.road_selection is None

    def test_unarmed_building_click_passes_through_to_background(self, road_client):
        road = road_client.state.infrastructure_layers[CollectionSource.ROADS].feature_layers[0]
        building = road_client.state.infrastructure_layers[CollectionSource.BUILDINGS].feature_layers[0]
        road_client.dispatch(FeatureClick(road.id))
        t = road_client.dispatch(FeatureClick(building.id, lon=85.54, lat=27.6205))
        assert t.kind is TransitionKind.SELECTION_CLEARED
        assert road_client.state.road_selection is None

    def test_remove_selected_road(self, road_client):
        road = road_client.state.infrastructure_layers[CollectionSource.ROADS].feature_layers[0]
        road_client.dispatch(FeatureClick(road.id))
        assert road_client.remove_selected_road().kind is TransitionKind.ROAD_DESELECTED
        assert road_client.state.road_selection is None
        assert road_client.remove_selected_road().kind is TransitionKind.IGNORED
