"""
Session package: state store, selection controller, events and notices.

MapClient lives in session.client and is imported from there directly
(it depends on the workflows, which depend on this package).
"""

from .events import FeatureClick, KeyPress, MapClick, MapEvent, Transition, TransitionKind
from .notices import NoticeBoard
from .selection import SelectionController
from .state import MarkedPoint, Selection, SessionState, SlotContent

__all__ = [
    "FeatureClick",
    "KeyPress",
    "MapClick",
    "MapEvent",
    "MarkedPoint",
    "NoticeBoard",
    "Selection",
    "SelectionController",
    "SessionState",
    "SlotContent",
    "Transition",
    "TransitionKind",
]
