"""
Map events and the transitions they produce.

The browser reports raw interactions as these events; MapClient.dispatch
routes them to the selection controller or the proximity workflow and
returns a Transition describing what changed.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Union


@dataclass(frozen=True)
class FeatureClick:
    """Click on a rendered feature; lon/lat is where the click landed."""

    feature_id: str
    lon: Optional[float] = None
    lat: Optional[float] = None


@dataclass(frozen=True)
class MapClick:
    """Click on the map background."""

    lon: float
    lat: float


@dataclass(frozen=True)
class KeyPress:
    key: str


MapEvent = Union[FeatureClick, MapClick, KeyPress]


class TransitionKind(Enum):
    IGNORED = "ignored"
    PASS_THROUGH = "pass_through"  # feature not clickable, treat as background
    SELECTED = "selected"
    DESELECTED = "deselected"
    SELECTION_CLEARED = "selection_cleared"
    ROAD_SELECTED = "road_selected"
    ROAD_DESELECTED = "road_deselected"
    POINT_MARKED = "point_marked"
    LAYER_REMOVED = "layer_removed"


@dataclass(frozen=True)
class Transition:
    kind: TransitionKind
    layer_id: Optional[str] = None

    @classmethod
    def ignored(cls) -> "Transition":
        return cls(TransitionKind.IGNORED)
