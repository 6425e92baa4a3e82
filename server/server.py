#!/usr/bin/env python3
"""
Dhulikhel WebGIS - Flask Map Server

ARCHITECTURAL OVERVIEW:
=======================
Responsibility: Host one MapClient for the Leaflet page. Every route turns
an HTTP request into one client command, runs it on the dedicated event
loop thread, and answers with the full session snapshot plus any notice the
command posted.

Key Interactions:
- MapClient (session/client.py) holds all state; routes never touch it
  directly, only through EventLoopThread.run()/call()
- DataProviderClient (provider/client.py) fetches the GeoJSON collections
- html_template.generate_html() renders the page at "/"

Navigation Guide:
- HELPERS: request parsing and snapshot responses
- ROUTES: page, config, state, commands, map events
- STARTUP: initialize_services(), setup_logging(), main()

For Navigation: Use VS Code outline (Ctrl+Shift+O)
"""

from concurrent.futures import TimeoutError as FuturesTimeoutError
from typing import Any, Awaitable, Dict, List, Optional
import argparse
import logging
import sys

from flask import Flask, Response, jsonify, request
from flask_cors import CORS

from Dhulikhel_WebGIS.config_types import APP_CONFIG, AppConfig, get_frontend_config
from Dhulikhel_WebGIS.models.data_models import (
    CollectionSource,
    Section,
    ToolPanel,
    UploadSlot,
)
from Dhulikhel_WebGIS.provider.client import DataProviderClient
from Dhulikhel_WebGIS.server.html_template import generate_html
from Dhulikhel_WebGIS.server.loop_thread import EventLoopThread
from Dhulikhel_WebGIS.session.client import MapClient
from Dhulikhel_WebGIS.session.events import FeatureClick, KeyPress, MapClick, Transition

# ═══════════════════════════════════════════════════════════════════════════
# 🔧 CONFIGURATION
# ═══════════════════════════════════════════════════════════════════════════

# Seconds a request waits for a data load before answering with the
# current state (loading message still set); the load keeps running.
LOAD_WAIT_S = 30.0

# ═══════════════════════════════════════════════════════════════════════════
# 🌐 FLASK APPLICATION
# ═══════════════════════════════════════════════════════════════════════════

app = Flask(__name__)
CORS(app)
app.config["MAX_CONTENT_LENGTH"] = APP_CONFIG.server.max_upload_mb * 1024 * 1024

# Global services - initialized on startup
client: Optional[MapClient] = None
loop_thread: Optional[EventLoopThread] = None

logger = logging.getLogger(__name__)


class RequestBodyError(Exception):
    """Malformed request body; answered with HTTP 400."""


# ═══════════════════════════════════════════════════════════════════════════
# 🔧 HELPERS
# ═══════════════════════════════════════════════════════════════════════════


def _not_initialized():
    return jsonify({"error": "Server not initialized"}), 500


def _json_body() -> Dict[str, Any]:
    data = request.get_json(silent=True)
    return data if isinstance(data, dict) else {}


def _require(data: Dict[str, Any], key: str) -> Any:
    if key not in data or data[key] is None:
        raise RequestBodyError(f"Missing '{key}' in request body")
    return data[key]


def _float(data: Dict[str, Any], key: str) -> float:
    try:
        return float(_require(data, key))
    except (TypeError, ValueError) as e:
        raise RequestBodyError(f"'{key}' must be a number") from e


def _optional_float(data: Dict[str, Any], key: str) -> Optional[float]:
    if data.get(key) is None:
        return None
    return _float(data, key)


def _state_response(extra: Optional[Dict[str, Any]] = None) -> Response:
    """Snapshot of the session plus the pending notice (which is consumed)."""

    def _collect() -> Dict[str, Any]:
        snapshot = client.snapshot()
        snapshot["notice"] = client.notices.take()
        return snapshot

    payload = loop_thread.call(_collect)
    if extra:
        payload.update(extra)
    return jsonify(payload)


def _transition_dict(transition: Transition) -> Dict[str, Any]:
    return {"kind": transition.kind.value, "layerId": transition.layer_id}


def _run_load(coro: Awaitable[None]) -> None:
    """Run a loading command, giving up waiting (not the load) after LOAD_WAIT_S."""
    future = loop_thread.submit(coro)
    try:
        future.result(LOAD_WAIT_S)
    except FuturesTimeoutError:
        logger.warning(f"⏳ Load still running after {LOAD_WAIT_S}s, answering with current state")


@app.errorhandler(RequestBodyError)
def handle_request_body_error(e: RequestBodyError):
    return jsonify({"error": str(e)}), 400


@app.errorhandler(ValueError)
def handle_value_error(e: ValueError):
    """Unknown section, panel, slot or overlay names."""
    return jsonify({"error": str(e)}), 400


# ═══════════════════════════════════════════════════════════════════════════
# 🛣️ PAGE AND STATE ROUTES
# ═══════════════════════════════════════════════════════════════════════════


@app.route("/")
def index() -> Response:
    """Serve the Leaflet map page."""
    return Response(generate_html(get_frontend_config()), mimetype="text/html")


@app.route("/api/config")
def get_config() -> Response:
    """Frontend configuration (map view, base layers, highlight colours)."""
    return jsonify(get_frontend_config())


@app.route("/api/state")
def get_state():
    """Full session snapshot: layers as GeoJSON, viewport, selection, texts."""
    if client is None:
        return _not_initialized()
    return _state_response()


# ═══════════════════════════════════════════════════════════════════════════
# 🔀 SECTIONS AND TOOLS
# ═══════════════════════════════════════════════════════════════════════════


@app.route("/api/section", methods=["POST"])
def switch_section():
    """
    Switch the active section.

    Request Body:
        {"section": "shapefile-analysis" | "road-buffer" | "proximity-analysis"}
    """
    if client is None:
        return _not_initialized()
    section = Section.from_string(_require(_json_body(), "section"))
    _run_load(client.switch_section(section))
    return _state_response()


@app.route("/api/tool", methods=["POST"])
def select_tool():
    """
    Change the tool selector.

    Request Body:
        {"panel": "none" | "buffer" | "intersect" | "union"}
    """
    if client is None:
        return _not_initialized()
    panel = ToolPanel.from_string(_require(_json_body(), "panel"))
    _run_load(client.select_tool_panel(panel))
    return _state_response()


# ═══════════════════════════════════════════════════════════════════════════
# 📂 UPLOADS
# ═══════════════════════════════════════════════════════════════════════════


@app.route("/api/upload/clear", methods=["POST"])
def clear_uploads():
    if client is None:
        return _not_initialized()
    loop_thread.call(client.clear_uploaded_shapefiles)
    return _state_response()


@app.route("/api/upload/<slot>", methods=["POST"])
def upload_shapefile(slot: str):
    """Upload a zipped shapefile (multipart field 'file') into slot A or B."""
    if client is None:
        return _not_initialized()
    upload_slot = UploadSlot.from_string(slot)
    file = request.files.get("file")
    if file is None:
        raise RequestBodyError("Missing 'file' upload")
    data = file.read()
    logger.info(f"📂 Upload {file.filename} ({len(data)} bytes) -> slot {upload_slot.value}")
    loop_thread.call(client.upload_shapefile, upload_slot, data, file.filename or "")
    return _state_response()


# ═══════════════════════════════════════════════════════════════════════════
# 🛠️ TOOLS
# ═══════════════════════════════════════════════════════════════════════════


@app.route("/api/buffer", methods=["POST"])
def apply_buffer():
    """Request Body: {"distance": number | string} (km)"""
    if client is None:
        return _not_initialized()
    layer = loop_thread.call(client.apply_buffer, _json_body().get("distance"))
    return _state_response({"resultLayerId": layer.id if layer else None})


@app.route("/api/intersect", methods=["POST"])
def intersect():
    if client is None:
        return _not_initialized()
    layer = loop_thread.call(client.intersect)
    return _state_response({"resultLayerId": layer.id if layer else None})


@app.route("/api/union", methods=["POST"])
def union():
    if client is None:
        return _not_initialized()
    layer = loop_thread.call(client.union)
    return _state_response({"resultLayerId": layer.id if layer else None})


@app.route("/api/road-buffer", methods=["POST"])
def road_buffer():
    """Request Body: {"distance": number | string} (km)"""
    if client is None:
        return _not_initialized()
    report = loop_thread.call(client.run_road_buffer, _json_body().get("distance"))
    return _state_response({"report": report.to_dict() if report else None})


@app.route("/api/proximity/point-selection", methods=["POST"])
def point_selection():
    """Request Body: {"enabled": bool} (default true)"""
    if client is None:
        return _not_initialized()
    if _json_body().get("enabled", True):
        loop_thread.call(client.enable_point_selection)
    else:
        loop_thread.call(client.disable_point_selection)
    return _state_response()


@app.route("/api/proximity", methods=["POST"])
def proximity():
    """Request Body: {"radius": number | string} (km)"""
    if client is None:
        return _not_initialized()
    report = loop_thread.call(client.run_proximity, _json_body().get("radius"))
    return _state_response({"report": report.to_dict() if report else None})


@app.route("/api/overlay", methods=["POST"])
def toggle_overlay():
    """Request Body: {"source": "local" | "district" | "province", "visible": bool}"""
    if client is None:
        return _not_initialized()
    data = _json_body()
    source = CollectionSource(_require(data, "source"))
    visible = bool(data.get("visible", True))
    loop_thread.call(client.set_overlay_visible, source, visible)
    return _state_response()


# ═══════════════════════════════════════════════════════════════════════════
# 🖱️ MAP EVENTS
# ═══════════════════════════════════════════════════════════════════════════


@app.route("/api/click/feature", methods=["POST"])
def click_feature():
    """Request Body: {"featureId": str, "lon": float?, "lat": float?}"""
    if client is None:
        return _not_initialized()
    data = _json_body()
    event = FeatureClick(
        feature_id=str(_require(data, "featureId")),
        lon=_optional_float(data, "lon"),
        lat=_optional_float(data, "lat"),
    )
    transition = loop_thread.call(client.dispatch, event)
    return _state_response({"transition": _transition_dict(transition)})


@app.route("/api/click/map", methods=["POST"])
def click_map():
    """Request Body: {"lon": float, "lat": float}"""
    if client is None:
        return _not_initialized()
    data = _json_body()
    event = MapClick(lon=_float(data, "lon"), lat=_float(data, "lat"))
    transition = loop_thread.call(client.dispatch, event)
    return _state_response({"transition": _transition_dict(transition)})


@app.route("/api/key", methods=["POST"])
def key_press():
    """Request Body: {"key": str}"""
    if client is None:
        return _not_initialized()
    event = KeyPress(key=str(_require(_json_body(), "key")))
    transition = loop_thread.call(client.dispatch, event)
    return _state_response({"transition": _transition_dict(transition)})


@app.route("/api/remove-selected", methods=["POST"])
def remove_selected():
    if client is None:
        return _not_initialized()
    transition = loop_thread.call(client.remove_selected)
    return _state_response({"transition": _transition_dict(transition)})


@app.route("/api/remove-selected-road", methods=["POST"])
def remove_selected_road():
    if client is None:
        return _not_initialized()
    transition = loop_thread.call(client.remove_selected_road)
    return _state_response({"transition": _transition_dict(transition)})


# ═══════════════════════════════════════════════════════════════════════════
# 🚀 SERVER INITIALIZATION
# ═══════════════════════════════════════════════════════════════════════════


def setup_logging(level: str = "INFO") -> None:
    """Configure root logging for the server process."""
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(levelname)s:%(name)s:%(message)s",
    )


def initialize_services(provider: Any = None, config: AppConfig = APP_CONFIG) -> bool:
    """
    Start the event loop thread, create the map client and load the overlays.

    Args:
        provider: Data provider (default: DataProviderClient(config.provider))
        config: Application configuration

    Returns:
        True if initialization succeeded, False otherwise.
    """
    global client, loop_thread

    try:
        logger.info(f"🚀 Initializing services (provider: {config.provider.base_url})")
        loop_thread = EventLoopThread().start()
        client = MapClient(provider or DataProviderClient(config.provider), config)
        _run_load(client.start())
        logger.info("✅ Map client ready")
        return True

    except Exception as e:
        logger.error(f"❌ Failed to initialize services: {e}")
        shutdown_services()
        return False


def shutdown_services() -> None:
    """Stop the loop thread and release the provider session."""
    global client, loop_thread

    if client is not None and hasattr(client.provider, "close"):
        client.provider.close()
    if loop_thread is not None:
        loop_thread.stop()
    client = None
    loop_thread = None


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    server = APP_CONFIG.server
    parser = argparse.ArgumentParser(
        description="Dhulikhel WebGIS map server",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
    dhulikhel-webgis
    dhulikhel-webgis --port 8080 --log-level DEBUG
        """,
    )
    parser.add_argument("--host", default=server.host, help=f"Bind address (default: {server.host})")
    parser.add_argument("--port", type=int, default=server.port, help=f"Port (default: {server.port})")
    parser.add_argument("--debug", action="store_true", default=server.debug, help="Flask debug mode")
    parser.add_argument(
        "--log-level", default=server.log_level, help=f"Log level (default: {server.log_level})"
    )
    return parser.parse_args(argv)


def main(argv: Optional[List[str]] = None) -> None:
    """Main entry point - initialize and start server."""
    args = parse_args(argv)
    setup_logging(args.log_level)

    if not initialize_services():
        logger.error("Failed to initialize. Check the data provider settings.")
        sys.exit(1)

    logger.info(f"🌐 Starting server at http://{args.host}:{args.port}")
    logger.info(f"   Open browser to: http://{args.host}:{args.port}")

    # The reloader would start a second process with its own loop thread
    app.run(host=args.host, port=args.port, debug=args.debug, use_reloader=False)


if __name__ == "__main__":
    main()
