#!/usr/bin/env python3
"""
Data Provider Client

ARCHITECTURAL OVERVIEW:
=======================
Responsibility: Fetch GeoJSON FeatureCollections (boundaries, roads,
buildings, hospitals) from the local data API.

Key Features:
1. One GET per collection on a shared requests.Session
2. Envelope validation (has 'type', has a 'features' list)
3. Async wrapper so workflows await a fetch without blocking the event loop

Every failure (connection error, non-2xx, bad JSON, bad envelope) becomes a
DataLoadError. Nothing is retried.

For Navigation: Use VS Code outline (Ctrl+Shift+O)
"""

from typing import Any, Dict, Optional
import asyncio
import logging

import requests

from Dhulikhel_WebGIS.config_types import APP_CONFIG, ProviderConfig
from Dhulikhel_WebGIS.models.data_models import CollectionSource, validate_envelope
from Dhulikhel_WebGIS.models.errors import DataLoadError

logger = logging.getLogger(__name__)


class DataProviderClient:
    """
    HTTP client for the GeoJSON data API.

    Workflows depend only on `await fetch(source)`, so tests substitute any
    object with the same coroutine.
    """

    def __init__(
        self,
        config: ProviderConfig = APP_CONFIG.provider,
        session: Optional[requests.Session] = None,
    ) -> None:
        self._config = config
        self._session = session or requests.Session()

    def fetch_json(self, source: CollectionSource) -> Dict[str, Any]:
        """
        Blocking fetch of one collection.

        Args:
            source: Provider-backed collection (boundary or infrastructure)

        Returns:
            The validated GeoJSON FeatureCollection dict.

        Raises:
            DataLoadError: On any network, status or format problem.
        """
        url = self._config.url_for(source.value)
        what = source.description
        logger.info(f"🌐 GET {url}")

        try:
            response = self._session.get(url, timeout=self._config.timeout_s)
        except requests.RequestException as e:
            raise DataLoadError(f"Failed to fetch {what}: {e}") from e

        if not response.ok:
            raise DataLoadError(
                f"Failed to fetch {what}: {response.status_code} {response.reason}"
            )

        try:
            data = response.json()
        except ValueError as e:
            raise DataLoadError(f"Invalid GeoJSON format for {what}") from e

        validate_envelope(data, what)
        logger.info(f"✅ {source.label}: {len(data['features'])} features received")
        return data

    async def fetch(self, source: CollectionSource) -> Dict[str, Any]:
        """Fetch one collection in a worker thread."""
        return await asyncio.to_thread(self.fetch_json, source)

    def close(self) -> None:
        self._session.close()
