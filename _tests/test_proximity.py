#!/usr/bin/env python3
"""
Proximity Workflow Tests

Point marking and the nearest-hospital search. Hospitals H1/H3/H5 sit
exactly 1/3/5 km north of ORIGIN (geodesic), so distances are known.
"""

import asyncio

import pytest

from conftest import ORIGIN, FakeProvider, collection, feature, point_north_of_origin, provider_data

from Dhulikhel_WebGIS.config_types import APP_CONFIG
from Dhulikhel_WebGIS.models.data_models import CollectionSource, ToolContext
from Dhulikhel_WebGIS.rendering.layers import Pane
from Dhulikhel_WebGIS.session.client import MapClient
from Dhulikhel_WebGIS.session.events import FeatureClick, MapClick, TransitionKind
from Dhulikhel_WebGIS.workflows.proximity import NONE_FOUND, STATUS_ARMED, STATUS_MARKED


def _enter(client):
    asyncio.run(client.switch_context(ToolContext.PROXIMITY))
    return client


def _mark_origin(client):
    client.enable_point_selection()
    return client.dispatch(MapClick(*ORIGIN))


# ============================================================================
# LOAD
# ============================================================================


class TestLoad:
    def test_buildings_points_only_hospitals_any(self, client, provider):
        _enter(client)
        infra = client.state.infrastructure
        assert provider.calls == [CollectionSource.BUILDINGS, CollectionSource.HOSPITALS]
        assert sorted(f.properties["id"] for f in infra[CollectionSource.BUILDINGS]) == [
            "B-far",
            "B-near",
        ]
        assert len(infra[CollectionSource.HOSPITALS]) == 3
        assert infra[CollectionSource.ROADS] is None

    def test_loaded_features_are_selectable(self, client):
        _enter(client)
        hospitals = client.state.infrastructure_layers[CollectionSource.HOSPITALS]
        assert hospitals.selectable
        t = client.dispatch(FeatureClick(hospitals.feature_layers[0].id))
        assert t.kind is TransitionKind.SELECTED

    def test_fits_to_buildings(self, client):
        _enter(client)
        buildings = client.state.infrastructure_layers[CollectionSource.BUILDINGS]
        assert client.map_view.viewport.bounds == buildings.bounds()

    def test_fits_to_hospitals_without_buildings(self):
        data = provider_data()
        data[CollectionSource.BUILDINGS] = collection()
        client = _enter(MapClient(FakeProvider(data), APP_CONFIG))
        hospitals = client.state.infrastructure_layers[CollectionSource.HOSPITALS]
        assert client.map_view.viewport.bounds == hospitals.bounds()

    def test_failure_message(self):
        client = _enter(MapClient(FakeProvider(failing={CollectionSource.HOSPITALS}), APP_CONFIG))
        assert client.notices.take() == (
            "Error loading proximity data: Failed to fetch hospitals: 500 Internal Server Error"
        )
        assert client.state.infrastructure[CollectionSource.BUILDINGS] is not None


# ============================================================================
# POINT MARKING
# ============================================================================


class TestPointMarking:
    def test_click_ignored_until_armed(self, client):
        _enter(client)
        t = client.dispatch(MapClick(*ORIGIN))
        assert t.kind is TransitionKind.IGNORED
        assert client.state.marked_point is None

    def test_enable_sets_status(self, client):
        _enter(client)
        client.enable_point_selection()
        assert client.state.point_selection_armed
        assert client.state.status_text == STATUS_ARMED

    def test_mark(self, client):
        _enter(client)
        t = _mark_origin(client)
        assert t.kind is TransitionKind.POINT_MARKED

        marked = client.state.marked_point
        assert (marked.geometry.x, marked.geometry.y) == ORIGIN
        assert marked.layer.pane is Pane.ANALYSIS
        assert marked.layer.name == "Marked Location"
        assert client.map_view.has_layer(marked.layer)
        assert client.state.status_text == STATUS_MARKED
        assert client.state.point_selection_armed

    def test_remark_replaces_point_and_results(self, client):
        _enter(client)
        _mark_origin(client)
        first = client.state.marked_point.layer
        client.run_proximity(4)
        assert client.state.analysis_results

        client.dispatch(MapClick(85.55, 27.61))
        assert not client.map_view.has_layer(first)
        assert client.state.analysis_results == []
        assert client.state.report_text == ""
        assert client.state.marked_point.geometry.x == 85.55

    def test_disable_stops_marking(self, client):
        _enter(client)
        client.enable_point_selection()
        client.disable_point_selection()
        assert client.dispatch(MapClick(*ORIGIN)).kind is TransitionKind.IGNORED

    def test_click_outside_proximity_context_does_not_mark(self, client):
        client.enable_point_selection()
        assert client.dispatch(MapClick(*ORIGIN)).kind is TransitionKind.IGNORED
        assert client.state.marked_point is None

    def test_context_switch_disarms(self, client):
        _enter(client)
        _mark_origin(client)
        asyncio.run(client.switch_context(ToolContext.PROXIMITY))
        assert not client.state.point_selection_armed
        assert client.state.marked_point is None


# ============================================================================
# NEAREST HOSPITAL
# ============================================================================


class TestNearestHospital:
    def test_finds_nearest_within_radius(self, client):
        _enter(client)
        _mark_origin(client)
        report = client.run_proximity("4")

        assert report.found
        assert report.hospital.properties["id"] == "H1"
        assert report.distance_km == pytest.approx(1.0, abs=1e-6)
        assert client.state.report_text == (
            "Nearest Hospital\n"
            "Hospital ID: H1\n"
            "Name: Dhulikhel Hospital\n"
            "Type: General\n"
            "Distance: 1.00 km"
        )

        names = [layer.name for layer in client.state.analysis_results]
        assert names == ["Search Radius", "Nearest Hospital", "Distance Line"]
        line = client.state.analysis_results[2].feature_layers[0]
        assert line.popup == "Distance: 1.00 km"
        assert line.feature.geom_type == "LineString"
        assert client.map_view.has_layer(client.state.marked_point.layer)

    def test_nothing_in_range(self, client):
        _enter(client)
        _mark_origin(client)
        report = client.run_proximity(0.5)
        assert not report.found
        assert client.state.report_text == NONE_FOUND
        assert client.state.analysis_results == []

    def test_empty_rerun_clears_previous_results(self, client):
        _enter(client)
        _mark_origin(client)
        client.run_proximity(4)
        first = list(client.state.analysis_results)

        report = client.run_proximity(0.5)
        assert not report.found
        assert client.state.report_text == NONE_FOUND
        assert client.state.analysis_results == []
        assert not any(client.map_view.has_layer(layer) for layer in first)
        assert client.map_view.has_layer(client.state.marked_point.layer)

    def test_radius_is_inclusive_of_boundary_hospital(self):
        data = provider_data()
        data[CollectionSource.HOSPITALS] = collection(
            feature(point_north_of_origin(2.0), id="H2", name="Edge Clinic"),
        )
        client = _enter(MapClient(FakeProvider(data), APP_CONFIG))
        _mark_origin(client)
        # Distance is 2.0 km up to float noise
        report = client.run_proximity(2.000001)
        assert report.found

    def test_tie_keeps_first_seen(self):
        data = provider_data()
        data[CollectionSource.HOSPITALS] = collection(
            feature(point_north_of_origin(1.0), id="first"),
            feature(point_north_of_origin(1.0), id="second"),
        )
        client = _enter(MapClient(FakeProvider(data), APP_CONFIG))
        _mark_origin(client)
        assert client.run_proximity(5).hospital.properties["id"] == "first"

    def test_polygon_hospital_uses_centroid(self):
        data = provider_data()
        lon, lat = point_north_of_origin(1.0)["coordinates"]
        data[CollectionSource.HOSPITALS] = collection(
            feature(
                {
                    "type": "Polygon",
                    "coordinates": [[
                        [lon - 0.001, lat - 0.001],
                        [lon + 0.001, lat - 0.001],
                        [lon + 0.001, lat + 0.001],
                        [lon - 0.001, lat + 0.001],
                        [lon - 0.001, lat - 0.001],
                    ]],
                },
                id="campus",
            ),
        )
        client = _enter(MapClient(FakeProvider(data), APP_CONFIG))
        _mark_origin(client)
        report = client.run_proximity(2)
        assert report.distance_km == pytest.approx(1.0, abs=1e-3)

    def test_to_dict(self, client):
        _enter(client)
        _mark_origin(client)
        report = client.run_proximity(4)
        d = report.to_dict()
        assert d["found"] is True
        assert d["hospital"]["name"] == "Dhulikhel Hospital"
        assert d["radiusKm"] == 4.0


class TestNearestHospitalPreconditions:
    def test_no_marked_point(self, client):
        _enter(client)
        assert client.run_proximity(4) is None
        assert client.notices.take() == (
            "Please mark a location on the map by clicking 'Mark Location' "
            "and selecting a point."
        )

    def test_hospitals_not_loaded(self):
        client = _enter(MapClient(FakeProvider(failing={CollectionSource.HOSPITALS}), APP_CONFIG))
        client.notices.take()
        _mark_origin(client)
        assert client.run_proximity(4) is None
        assert client.notices.take() == (
            "Hospital data not loaded. Please ensure data is fetched from the server."
        )

    @pytest.mark.parametrize("raw", ["", "far", 0, "-2"])
    def test_bad_radius(self, client, raw):
        _enter(client)
        _mark_origin(client)
        assert client.run_proximity(raw) is None
        assert client.notices.take() == (
            "Please enter a valid positive search radius in kilometers."
        )


class TestMalformedProviderData:
    def test_malformed_members_skipped_during_load(self):
        data = provider_data()
        data[CollectionSource.HOSPITALS] = collection(
            feature(point_north_of_origin(1.0), id="H1"),
            {"type": "Feature", "geometry": "garbage", "properties": {}},
            {"type": "Feature", "geometry": point_north_of_origin(2.0), "properties": ["x"]},
        )
        client = _enter(MapClient(FakeProvider(data), APP_CONFIG))

        assert client.notices.take() is None
        hospitals = client.state.infrastructure[CollectionSource.HOSPITALS]
        assert len(hospitals) == 2
        assert hospitals.features[1].properties == {}
        assert client.state.loading_message is None
