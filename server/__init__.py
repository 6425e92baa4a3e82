"""Flask map server hosting one MapClient for the Leaflet page."""

from .loop_thread import EventLoopThread

__all__ = ["EventLoopThread"]
