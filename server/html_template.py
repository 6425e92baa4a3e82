"""
HTML template for the Leaflet map page.

═══════════════════════════════════════════════════════════════════════════════
ARCHITECTURAL OVERVIEW
═══════════════════════════════════════════════════════════════════════════════

Responsibility: Generate the single page served at "/". The page holds no
analysis state: it forwards every click, key press and form action to the
HTTP API and redraws whatever session snapshot comes back.

Key Features:
- Leaflet map with the configured base layers and an "analysisLayer" pane
- Section tabs, tool selector, upload inputs and tool buttons
- Overlay checkboxes for the boundary layers
- Notices shown with alert()

For Navigation: Use VS Code outline (Ctrl+Shift+O)

═══════════════════════════════════════════════════════════════════════════════
"""

import json
from typing import Any, Dict


# ═══════════════════════════════════════════════════════════════════════════════
# 📄 TEMPLATE GENERATION
# ═══════════════════════════════════════════════════════════════════════════════


def generate_html(frontend_config: Dict[str, Any], title: str = "Dhulikhel WebGIS") -> str:
    """
    Build the complete page.

    Args:
        frontend_config: AppConfig.to_frontend_dict() output
        title: Page title

    Returns:
        Complete HTML string
    """
    config_json = json.dumps(frontend_config)
    return (
        _PAGE.replace("__TITLE__", title)
        .replace("__CSS__", _CSS)
        .replace("__BODY__", _BODY)
        .replace("__CONFIG__", config_json)
        .replace("__SCRIPT__", _SCRIPT)
    )


# ═══════════════════════════════════════════════════════════════════════════════
# 🧱 PAGE PARTS
# ═══════════════════════════════════════════════════════════════════════════════

_PAGE = """<!DOCTYPE html>
<html lang="en">
<head>
<meta charset="utf-8">
<title>__TITLE__</title>
<meta name="viewport" content="width=device-width, initial-scale=1">
<link rel="stylesheet" href="https://unpkg.com/leaflet@1.9.4/dist/leaflet.css">
<script src="https://unpkg.com/leaflet@1.9.4/dist/leaflet.js"></script>
<style>__CSS__</style>
</head>
<body>
__BODY__
<script>
const CONFIG = __CONFIG__;
__SCRIPT__
</script>
</body>
</html>
"""

_CSS = """
body { margin: 0; display: flex; height: 100vh; font-family: sans-serif; }
#sidebar { width: 320px; padding: 12px; overflow-y: auto; background: #f8fafc; }
#map { flex: 1; }
section { display: none; }
section.active { display: block; }
.tabs button.active { background: #1d4ed8; color: white; }
.tool-section { display: none; margin-top: 8px; }
#loadingMessage { display: none; color: #b45309; }
.hidden { display: none; }
pre { white-space: pre-wrap; }
"""

_BODY = """
<div id="sidebar">
  <div class="tabs">
    <button data-section="shapefile-analysis">Shapefile Analysis</button>
    <button data-section="road-buffer">Road Buffer</button>
    <button data-section="proximity-analysis">Proximity</button>
  </div>
  <p id="loadingMessage"></p>

  <section id="shapefile-analysis">
    <label>Tool
      <select id="toolSelector">
        <option value="none">None</option>
        <option value="buffer">Buffer</option>
        <option value="intersect">Intersect</option>
        <option value="union">Union</option>
      </select>
    </label>
    <div>
      <label>Shapefile A <input type="file" id="shapefileA" accept=".zip"></label>
      <label>Shapefile B <input type="file" id="shapefileB" accept=".zip"></label>
      <button id="clearUploads">Clear uploads</button>
    </div>
    <div class="tool-section" id="bufferTool">
      <input id="bufferDistance" placeholder="Distance (km)">
      <button id="applyBuffer">Apply Buffer</button>
    </div>
    <div class="tool-section" id="intersectTool"><button id="runIntersect">Intersect</button></div>
    <div class="tool-section" id="unionTool"><button id="runUnion">Union</button></div>
  </section>

  <section id="road-buffer">
    <input id="roadBufferDistance" placeholder="Buffer distance (km)">
    <button id="runRoadBuffer">Run Road Buffer</button>
    <button id="removeSelectedRoadBtn" class="hidden">Remove selected road</button>
  </section>

  <section id="proximity-analysis">
    <button id="markLocation">Mark Location</button>
    <input id="proximityRadius" placeholder="Search radius (km)">
    <button id="runProximity">Find Nearest Hospital</button>
  </section>

  <pre id="statusText"></pre>
  <pre id="reportText"></pre>
  <button id="removeSelectedBtn" class="hidden">Remove selected</button>
  <div id="overlayToggles"></div>
</div>
<div id="map"></div>
"""

_SCRIPT = """
const map = L.map('map').setView(CONFIG.map.center, CONFIG.map.zoom);
map.createPane('analysisLayer');
map.getPane('analysisLayer').style.zIndex = CONFIG.panes.analysis;

const baseLayers = {};
CONFIG.map.baseLayers.forEach((b, i) => {
  const layer = L.tileLayer(b.url, { attribution: b.attribution, maxZoom: b.maxZoom });
  baseLayers[b.name] = layer;
  if (i === 0) layer.addTo(map);
});
L.control.layers(baseLayers, {}, { position: 'topright' }).addTo(map);

let drawn = [];
let lastBounds = null;
const $ = id => document.getElementById(id);

async function post(path, body) {
  const opts = { method: 'POST' };
  if (body instanceof FormData) {
    opts.body = body;
  } else {
    opts.headers = { 'Content-Type': 'application/json' };
    opts.body = JSON.stringify(body || {});
  }
  const response = await fetch(path, opts);
  render(await response.json());
}

function drawLayer(group) {
  const pane = group.pane === 'analysisLayer' ? 'analysisLayer' : 'overlayPane';
  return L.geoJSON(group.geojson, {
    pane: pane,
    style: f => f._render.style,
    pointToLayer: (f, latlng) => L.circleMarker(latlng, Object.assign({ pane: pane }, f._render.style)),
    onEachFeature: (f, layer) => {
      if (f._render.popup) layer.bindPopup(f._render.popup.replace(/\\n/g, '<br>'));
      layer.on('click', e => {
        L.DomEvent.stopPropagation(e);
        post('/api/click/feature', { featureId: f.id, lon: e.latlng.lng, lat: e.latlng.lat });
      });
      if (f._render.popupOpen) setTimeout(() => layer.openPopup(), 0);
    }
  }).addTo(map);
}

function render(state) {
  if (state.error) { alert(state.error); return; }
  drawn.forEach(l => map.removeLayer(l));
  drawn = state.layers.map(drawLayer);

  const bounds = state.viewport.bounds;
  if (bounds && JSON.stringify(bounds) !== JSON.stringify(lastBounds)) {
    map.fitBounds([[bounds[1], bounds[0]], [bounds[3], bounds[2]]]);
  }
  lastBounds = bounds;

  document.querySelectorAll('section').forEach(s => s.classList.toggle('active', s.id === state.section));
  document.querySelectorAll('.tabs button').forEach(b => b.classList.toggle('active', b.dataset.section === state.section));
  $('toolSelector').value = state.toolPanel;
  document.querySelectorAll('.tool-section').forEach(el => el.style.display = 'none');
  if (state.toolPanel !== 'none') $(state.toolPanel + 'Tool').style.display = 'block';

  $('loadingMessage').style.display = state.loadingMessage ? 'block' : 'none';
  $('loadingMessage').textContent = state.loadingMessage || '';
  $('statusText').textContent = state.statusText;
  $('reportText').textContent = state.reportText;
  $('removeSelectedBtn').classList.toggle('hidden', !state.removeSelectedVisible);
  $('removeSelectedRoadBtn').classList.toggle('hidden', !state.removeSelectedRoadVisible);

  const toggles = $('overlayToggles');
  toggles.innerHTML = '';
  Object.entries(state.overlays).forEach(([source, info]) => {
    const label = document.createElement('label');
    const box = document.createElement('input');
    box.type = 'checkbox';
    box.checked = info.visible;
    box.onchange = () => post('/api/overlay', { source: source, visible: box.checked });
    label.append(box, ' ' + source);
    toggles.append(label, document.createElement('br'));
  });

  if (state.notice) alert(state.notice);
  if (state.loadingMessage) setTimeout(refresh, 1000);
}

async function refresh() {
  const response = await fetch('/api/state');
  render(await response.json());
}

function upload(slot, input) {
  const file = input.files[0];
  if (!file) return;
  const form = new FormData();
  form.append('file', file);
  post('/api/upload/' + slot, form);
}

document.querySelectorAll('.tabs button').forEach(b =>
  b.onclick = () => post('/api/section', { section: b.dataset.section }));
$('toolSelector').onchange = e => post('/api/tool', { panel: e.target.value });
$('shapefileA').onchange = e => upload('A', e.target);
$('shapefileB').onchange = e => upload('B', e.target);
$('clearUploads').onclick = () => post('/api/upload/clear');
$('applyBuffer').onclick = () => post('/api/buffer', { distance: $('bufferDistance').value });
$('runIntersect').onclick = () => post('/api/intersect');
$('runUnion').onclick = () => post('/api/union');
$('runRoadBuffer').onclick = () => post('/api/road-buffer', { distance: $('roadBufferDistance').value });
$('removeSelectedRoadBtn').onclick = () => post('/api/remove-selected-road');
$('markLocation').onclick = () => post('/api/proximity/point-selection', { enabled: true });
$('runProximity').onclick = () => post('/api/proximity', { radius: $('proximityRadius').value });
$('removeSelectedBtn').onclick = () => post('/api/remove-selected');
map.on('click', e => post('/api/click/map', { lon: e.latlng.lng, lat: e.latlng.lat }));
document.addEventListener('keydown', e => {
  if (e.key === CONFIG.deleteKey) post('/api/key', { key: e.key });
});

refresh();
"""
