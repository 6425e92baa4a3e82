"""Popup text builders for the standard layers."""

from Dhulikhel_WebGIS.models.data_models import Feature
from Dhulikhel_WebGIS.rendering.layers import PopupFn


def boundary_popup(label: str) -> PopupFn:
    """'Local Level: Dhulikhel' style popups."""

    def _popup(feature: Feature) -> str:
        return f"{label}: {feature.prop('name', 'Unknown')}"

    return _popup


def fixed_popup(text: str) -> PopupFn:
    return lambda feature: text


def road_popup(feature: Feature) -> str:
    return f"Road ID: {feature.prop('id', 'Unknown')}"


def building_popup(feature: Feature) -> str:
    return f"Building ID: {feature.prop('id', 'Unknown')}"


def hospital_popup(feature: Feature) -> str:
    return "\n".join(hospital_lines(feature))


def hospital_lines(feature: Feature):
    """Identifying attributes of a hospital, one per line."""
    return [
        f"Hospital ID: {feature.prop('id', 'Unknown')}",
        f"Name: {feature.prop('name', 'N/A')}",
        f"Type: {feature.prop('type', 'N/A')}",
    ]
