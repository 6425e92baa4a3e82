"""Helpers shared by the tool workflows."""

from typing import Any, FrozenSet, Optional, Sequence, Tuple
import logging
import math
import re

from Dhulikhel_WebGIS.models.data_models import CollectionSource, FeatureCollection
from Dhulikhel_WebGIS.models.errors import PreconditionError
from Dhulikhel_WebGIS.rendering.layers import LayerGroup
from Dhulikhel_WebGIS.session.selection import SelectionController
from Dhulikhel_WebGIS.session.state import SessionState

logger = logging.getLogger(__name__)

# Leading decimal number of a string, the part parseFloat() would read
_LEADING_NUMBER = re.compile(r"^\s*[+-]?(\d+\.?\d*|\.\d+)([eE][+-]?\d+)?")


def parse_positive_km(raw: Any, message: str) -> float:
    """
    Parse a user-entered distance in kilometres.

    Accepts numbers and numeric strings ("2.5", " 3km" -> 3.0). Anything
    non-numeric, non-finite or not strictly positive is rejected.

    Raises:
        PreconditionError: With the given message when the value is invalid.
    """
    if isinstance(raw, bool) or raw is None:
        raise PreconditionError(message)

    if isinstance(raw, (int, float)):
        value = float(raw)
    else:
        match = _LEADING_NUMBER.match(str(raw))
        if match is None:
            raise PreconditionError(message)
        value = float(match.group(0))

    if not math.isfinite(value) or value <= 0:
        raise PreconditionError(message)
    return value


def publish_results(
    state: SessionState,
    selection: SelectionController,
    results: Sequence[Tuple[LayerGroup, str]],
) -> None:
    """Replace the analysis result set with the given (layer, label) pairs."""
    state.clear_analysis_results()
    for group, label in results:
        state.push_analysis_result(group)
        selection.arm_selectable(group, label)


async def fetch_collection(
    provider: Any,
    state: SessionState,
    source: CollectionSource,
    allowed_types: Optional[FrozenSet[str]],
    epoch: int,
) -> Optional[FeatureCollection]:
    """
    Fetch and validate one collection for the context that started at epoch.

    Returns:
        The collection, or None when the context changed while the fetch
        was in flight (the response is discarded).

    Raises:
        DataLoadError: If the fetch or validation fails while still current.
    """
    data = await provider.fetch(source)
    if not state.is_current(epoch):
        logger.info(f"⏭️ Discarding stale {source.label} response (epoch {epoch})")
        return None
    return FeatureCollection.from_geojson(data, source, allowed_types=allowed_types)
