"""Tool workflows: set operations, road-corridor impact, proximity, overlays."""

from .common import parse_positive_km, publish_results
from .overlays import OverlayLoader
from .proximity import ProximityReport, ProximityWorkflow
from .road_corridor import RoadCorridorWorkflow, RoadImpactReport
from .set_operations import SetOperationWorkflow

__all__ = [
    "OverlayLoader",
    "ProximityReport",
    "ProximityWorkflow",
    "RoadCorridorWorkflow",
    "RoadImpactReport",
    "SetOperationWorkflow",
    "parse_positive_km",
    "publish_results",
]
