#!/usr/bin/env python3
"""
Set Operation Workflow Tests

Buffer / Intersect / Union over the two upload slots: preconditions,
notices for empty results, skipped failing pairs, and result-set
replacement.
"""

import pytest
from shapely.geometry import box

from conftest import FakeProvider, collection, feature, fill_slot, polygon

from Dhulikhel_WebGIS.config_types import APP_CONFIG
from Dhulikhel_WebGIS.geometry import GeometryEngine
from Dhulikhel_WebGIS.models.data_models import UploadSlot
from Dhulikhel_WebGIS.rendering.layers import Pane
from Dhulikhel_WebGIS.models.errors import PreconditionError
from Dhulikhel_WebGIS.session.client import MapClient
from Dhulikhel_WebGIS.session.events import FeatureClick
from Dhulikhel_WebGIS.workflows.common import parse_positive_km


def _fill_overlapping(client):
    fill_slot(client, UploadSlot.A, collection(feature(polygon(85.50, 27.60, 85.52, 27.62))), "zoning")
    fill_slot(client, UploadSlot.B, collection(feature(polygon(85.51, 27.61, 85.53, 27.63))), "flood")


def _fill_disjoint(client):
    fill_slot(client, UploadSlot.A, collection(feature(polygon(85.50, 27.60, 85.51, 27.61))), "zoning")
    fill_slot(client, UploadSlot.B, collection(feature(polygon(85.60, 27.70, 85.61, 27.71))), "flood")


class FlakyEngine(GeometryEngine):
    """Union raises for any pair whose first geometry starts west of 85.505."""

    def union(self, a, b):
        if a.bounds[0] < 85.505:
            raise ValueError("TopologyException: side location conflict")
        return super().union(a, b)


# ============================================================================
# DISTANCE PARSING
# ============================================================================


class TestParsePositiveKm:
    @pytest.mark.parametrize(
        "raw,expected",
        [(2, 2.0), (0.25, 0.25), ("1.5", 1.5), (" 3km", 3.0), ("2e-1", 0.2), (".5", 0.5)],
    )
    def test_accepts(self, raw, expected):
        assert parse_positive_km(raw, "bad") == pytest.approx(expected)

    @pytest.mark.parametrize(
        "raw", [None, True, "", "abc", "0", "-1", 0, -2.5, "Infinity", float("nan"), "1e999"]
    )
    def test_rejects(self, raw):
        with pytest.raises(PreconditionError, match="^bad$"):
            parse_positive_km(raw, "bad")


# ============================================================================
# BUFFER
# ============================================================================


class TestBuffer:
    def test_requires_slot_a(self, client):
        assert client.apply_buffer(1) is None
        assert client.notices.take() == "Upload Shapefile A first."
        assert client.state.analysis_results == []

    @pytest.mark.parametrize("raw", ["", "abc", 0, "-3"])
    def test_requires_positive_distance(self, client, raw):
        _fill_overlapping(client)
        assert client.apply_buffer(raw) is None
        assert client.notices.take() == "Enter a valid positive distance."

    def test_creates_selectable_result_layer(self, client):
        _fill_overlapping(client)
        result = client.apply_buffer("0.5")

        assert result.name == "Buffer Result"
        assert result.pane is Pane.OVERLAY
        assert result.selectable
        assert client.map_view.has_layer(result)
        assert client.state.analysis_results == [result]
        assert client.map_view.viewport.bounds == result.bounds()

        buffered = result.feature_layers[0]
        assert buffered.feature.geometry.contains(box(85.50, 27.60, 85.52, 27.62))
        assert buffered.popup == "Buffer Result"
        assert buffered.style.color == "#f59e0b"
        assert client.notices.take() is None

    def test_second_run_replaces_results(self, client):
        _fill_overlapping(client)
        first = client.apply_buffer(1)
        second = client.apply_buffer(2)
        assert client.state.analysis_results == [second]
        assert not client.map_view.has_layer(first)

    def test_failed_run_keeps_previous_results(self, client):
        _fill_overlapping(client)
        first = client.apply_buffer(1)
        client.apply_buffer("nope")
        assert client.state.analysis_results == [first]


# ============================================================================
# INTERSECT
# ============================================================================


class TestIntersect:
    def test_requires_both_slots(self, client):
        fill_slot(client, UploadSlot.A, collection(feature(polygon(0, 0, 1, 1))), "a")
        assert client.intersect() is None
        assert client.notices.take() == "Upload both shapefiles."

    def test_overlap(self, client):
        _fill_overlapping(client)
        result = client.intersect()
        assert result.name == "Intersect Result"
        assert len(result) == 1
        assert result.feature_layers[0].feature.geometry.equals(box(85.51, 27.61, 85.52, 27.62))
        assert result.feature_layers[0].feature.properties == {}
        assert client.state.analysis_results == [result]

    def test_disjoint_posts_notice_and_adds_nothing(self, client):
        _fill_disjoint(client)
        layers_before = len(client.map_view.layers)
        assert client.intersect() is None
        assert client.notices.take() == "No intersections found."
        assert len(client.map_view.layers) == layers_before
        assert client.state.analysis_results == []

    def test_only_intersecting_pairs_kept(self, client):
        fill_slot(
            client,
            UploadSlot.A,
            collection(
                feature(polygon(85.50, 27.60, 85.52, 27.62)),
                feature(polygon(85.90, 27.90, 85.91, 27.91)),
            ),
            "a",
        )
        fill_slot(client, UploadSlot.B, collection(feature(polygon(85.51, 27.61, 85.53, 27.63))), "b")
        assert len(client.intersect()) == 1

    def test_empty_rerun_clears_previous_result(self, client):
        _fill_overlapping(client)
        first = client.intersect()
        fill_slot(client, UploadSlot.B, collection(feature(polygon(85.60, 27.70, 85.61, 27.71))), "flood")

        assert client.intersect() is None
        assert client.notices.take() == "No intersections found."
        assert client.state.analysis_results == []
        assert not client.map_view.has_layer(first)


# ============================================================================
# UNION
# ============================================================================


class TestUnion:
    def test_requires_both_slots(self, client):
        assert client.union() is None
        assert client.notices.take() == "Upload both shapefiles."

    def test_every_pair_unioned(self, client):
        _fill_disjoint(client)
        result = client.union()
        assert result.name == "Union Result"
        assert len(result) == 1
        assert result.feature_layers[0].feature.geom_type == "MultiPolygon"

    def test_failing_pair_skipped(self):
        client = MapClient(FakeProvider(), APP_CONFIG, engine=FlakyEngine(APP_CONFIG.geometry))
        fill_slot(
            client,
            UploadSlot.A,
            collection(
                feature(polygon(85.50, 27.60, 85.51, 27.61)),
                feature(polygon(85.52, 27.60, 85.53, 27.61)),
            ),
            "a",
        )
        fill_slot(client, UploadSlot.B, collection(feature(polygon(85.51, 27.60, 85.52, 27.61))), "b")

        result = client.union()
        assert len(result) == 1
        assert client.notices.take() is None

    def test_all_pairs_failing_posts_notice(self):
        client = MapClient(FakeProvider(), APP_CONFIG, engine=FlakyEngine(APP_CONFIG.geometry))
        fill_slot(client, UploadSlot.A, collection(feature(polygon(85.50, 27.60, 85.51, 27.61))), "a")
        fill_slot(client, UploadSlot.B, collection(feature(polygon(85.51, 27.60, 85.52, 27.61))), "b")
        assert client.union() is None
        assert client.notices.take() == "No valid unions found."

    def test_all_failing_rerun_clears_previous_result(self):
        client = MapClient(FakeProvider(), APP_CONFIG, engine=FlakyEngine(APP_CONFIG.geometry))
        fill_slot(client, UploadSlot.A, collection(feature(polygon(85.52, 27.60, 85.53, 27.61))), "a")
        fill_slot(client, UploadSlot.B, collection(feature(polygon(85.51, 27.60, 85.52, 27.61))), "b")
        first = client.union()
        assert first is not None

        fill_slot(client, UploadSlot.A, collection(feature(polygon(85.50, 27.60, 85.51, 27.61))), "a")
        assert client.union() is None
        assert client.notices.take() == "No valid unions found."
        assert client.state.analysis_results == []
        assert not client.map_view.has_layer(first)

    def test_union_replaces_intersect_result(self, client):
        _fill_overlapping(client)
        intersect = client.intersect()
        union = client.union()
        assert client.state.analysis_results == [union]
        assert not client.map_view.has_layer(intersect)


class TestClearUploads:
    def test_clears_slots_and_selection(self, client):
        _fill_overlapping(client)
        layer_a = client.state.slots[UploadSlot.A].layer
        client.dispatch(FeatureClick(layer_a.feature_layers[0].id))
        client.clear_uploaded_shapefiles()
        assert client.state.slots == {UploadSlot.A: None, UploadSlot.B: None}
        assert client.state.selection is None
        assert not client.map_view.has_layer(layer_a)
