"""
Shared fixtures for the WebGIS tests.

Geometry is placed around Dhulikhel (lon 85.54, lat 27.62). Hospitals are
laid out with pyproj.Geod.fwd at exact geodesic distances north of
ORIGIN so proximity results are predictable.
"""

import asyncio
import copy
from typing import Any, Dict, Iterable, Optional

import pytest
from pyproj import Geod
from shapely.geometry import box, mapping

from Dhulikhel_WebGIS.config_types import APP_CONFIG
from Dhulikhel_WebGIS.models.data_models import (
    CollectionSource,
    FeatureCollection,
    UploadSlot,
    validate_envelope,
)
from Dhulikhel_WebGIS.models.errors import DataLoadError
from Dhulikhel_WebGIS.session.client import MapClient

ORIGIN = (85.54, 27.60)  # (lon, lat) used as the marked point
_GEOD = Geod(ellps="WGS84")


# ============================================================================
# GEOJSON BUILDERS
# ============================================================================


def feature(geometry: Dict[str, Any], **properties: Any) -> Dict[str, Any]:
    return {"type": "Feature", "geometry": geometry, "properties": properties}


def collection(*features: Dict[str, Any]) -> Dict[str, Any]:
    return {"type": "FeatureCollection", "features": list(features)}


def point(lon: float, lat: float) -> Dict[str, Any]:
    return {"type": "Point", "coordinates": [lon, lat]}


def polygon(min_lon: float, min_lat: float, max_lon: float, max_lat: float) -> Dict[str, Any]:
    return mapping(box(min_lon, min_lat, max_lon, max_lat))


def point_north_of_origin(km: float) -> Dict[str, Any]:
    lon, lat, _ = _GEOD.fwd(ORIGIN[0], ORIGIN[1], 0.0, km * 1000.0)
    return point(lon, lat)


def provider_data() -> Dict[CollectionSource, Dict[str, Any]]:
    """One GeoJSON collection per provider endpoint."""
    return {
        CollectionSource.LOCAL: collection(
            feature(polygon(85.52, 27.60, 85.56, 27.64), name="Dhulikhel"),
            feature(point(85.54, 27.62), name="stray point"),
        ),
        CollectionSource.DISTRICT: collection(
            feature(polygon(85.40, 27.50, 85.70, 27.75), name="Kavrepalanchok"),
        ),
        CollectionSource.PROVINCE: collection(
            feature(polygon(84.50, 27.00, 86.50, 28.20), name="Bagmati"),
        ),
        CollectionSource.ROADS: collection(
            feature(
                {"type": "LineString", "coordinates": [[85.53, 27.62], [85.55, 27.62]]},
                id="R1",
            ),
            feature(
                {"type": "LineString", "coordinates": [[85.60, 27.70], [85.61, 27.70]]},
                id="R2",
            ),
            feature(point(85.54, 27.62), id="not-a-road"),
            {"type": "Feature", "geometry": None, "properties": {"id": "no-geometry"}},
        ),
        CollectionSource.BUILDINGS: collection(
            feature(point(85.54, 27.6205), id="B-near"),
            feature(point(85.54, 27.65), id="B-far"),
            feature(polygon(85.5449, 27.6195, 85.5451, 27.6205), id="B-footprint"),
        ),
        CollectionSource.HOSPITALS: collection(
            feature(point_north_of_origin(1.0), id="H1", name="Dhulikhel Hospital", type="General"),
            feature(point_north_of_origin(3.0), id="H3", name="Banepa Clinic", type="Clinic"),
            feature(point_north_of_origin(5.0), id="H5", name="Panauti Hospital"),
            {"type": "Feature", "geometry": None, "properties": {"id": "H-none"}},
        ),
    }


# ============================================================================
# FAKE PROVIDERS
# ============================================================================


class FakeProvider:
    """In-memory data provider with the DataProviderClient fetch contract."""

    def __init__(
        self,
        data: Optional[Dict[CollectionSource, Dict[str, Any]]] = None,
        failing: Iterable[CollectionSource] = (),
    ) -> None:
        self.data = provider_data() if data is None else data
        self.failing = set(failing)
        self.calls = []

    async def fetch(self, source: CollectionSource) -> Dict[str, Any]:
        self.calls.append(source)
        if source in self.failing or source not in self.data:
            raise DataLoadError(f"Failed to fetch {source.description}: 500 Internal Server Error")
        payload = copy.deepcopy(self.data[source])
        validate_envelope(payload, source.description)
        return payload


class GatedProvider(FakeProvider):
    """Holds fetches of the gated sources until they are released."""

    def __init__(self, gated: Iterable[CollectionSource], **kwargs: Any) -> None:
        super().__init__(**kwargs)
        self.gated = set(gated)
        self.gates: Dict[CollectionSource, asyncio.Event] = {}
        self.waiting = 0

    def _gate(self, source: CollectionSource) -> asyncio.Event:
        if source not in self.gates:
            self.gates[source] = asyncio.Event()
        return self.gates[source]

    def release(self, *sources: CollectionSource) -> None:
        """Let fetches of `sources` (default: every gated source) complete."""
        for source in sources or self.gated:
            self._gate(source).set()

    async def fetch(self, source: CollectionSource) -> Dict[str, Any]:
        if source in self.gated:
            self.waiting += 1
            await self._gate(source).wait()
        return await super().fetch(source)


# ============================================================================
# CLIENT FIXTURES
# ============================================================================


@pytest.fixture
def provider() -> FakeProvider:
    return FakeProvider()


@pytest.fixture
def client(provider: FakeProvider) -> MapClient:
    return MapClient(provider, APP_CONFIG)


def fill_slot(client: MapClient, slot: UploadSlot, geojson: Dict[str, Any], name: str) -> None:
    """Put a collection straight into an upload slot (no zip decoding)."""
    fc = FeatureCollection.from_geojson(geojson, slot.source, name=name)
    content = client.state.set_slot(slot, fc, name)
    client.selection.arm_selectable(content.layer, name)
