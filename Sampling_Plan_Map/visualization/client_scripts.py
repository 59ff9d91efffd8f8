#!/usr/bin/env python3
"""
Client-Side JavaScript Generators

ARCHITECTURAL OVERVIEW:
=======================
Responsibility: Generate JavaScript code for HTML panel interactivity.
Pure functions that return JavaScript strings - no Plotly dependency.

Script Categories:
- Overlay layer toggles (one checkbox per MapModel layer)
- Base layer switching (radio buttons → map.style / map.layers)
- Search restricted to the searchable layer
- Feature details (full popup HTML on click)

Dependencies:
- json (for JavaScript data embedding)

Navigation Guide:
- Use VS Code outline (Ctrl+Shift+O) to jump between functions
"""

import json
from typing import Any, Dict, List


def script_json(value: Any) -> str:
    """JSON literal safe to embed inside a <script> element."""
    return json.dumps(value).replace("</", "<\\/")


# ═══════════════════════════════════════════════════════════════════════════
# 🏗️ LAYER TOGGLE SCRIPTS
# ═══════════════════════════════════════════════════════════════════════════


def generate_layer_toggle_scripts(layer_traces: Dict[str, List[int]]) -> str:
    """
    Generate JavaScript for overlay layer visibility toggles.

    Each checkbox with class "overlayLayerCheckbox" names its layer in
    data-layer; toggling it shows/hides every trace of that layer.

    Args:
        layer_traces: Layer name → trace indices

    Returns:
        JavaScript code block as string (without <script> tags)
    """
    return f"""
    // === LAYER STATE ===
    const LAYER_TRACES = {script_json(layer_traces)};

    // Helper to toggle trace visibility AND hoverinfo together
    // When hidden, hoverinfo is set to 'skip' so tooltips don't show
    function setTraceVisibility(plotDiv, traceIndices, isVisible) {{
        if (!plotDiv || traceIndices.length === 0) return;

        const hoverInfoUpdates = traceIndices.map(idx => {{
            const trace = plotDiv.data[idx];
            if (isVisible) {{
                return trace._originalHoverinfo || trace.hoverinfo || 'text';
            }} else {{
                if (!trace._originalHoverinfo && trace.hoverinfo !== 'skip') {{
                    trace._originalHoverinfo = trace.hoverinfo || 'text';
                }}
                return 'skip';
            }}
        }});

        Plotly.restyle(plotDiv, {{
            'visible': isVisible,
            'hoverinfo': hoverInfoUpdates
        }}, traceIndices);
    }}

    function setLayerVisibility(layerName, isVisible) {{
        const plotDiv = document.querySelector('.plotly-graph-div');
        const traceIndices = LAYER_TRACES[layerName] || [];
        setTraceVisibility(plotDiv, traceIndices, isVisible);
        const checkbox = document.querySelector(
            '.overlayLayerCheckbox[data-layer="' + layerName + '"]'
        );
        if (checkbox) checkbox.checked = isVisible;
    }}

    // === CHECKBOX EVENT LISTENERS ===

    document.querySelectorAll('.overlayLayerCheckbox').forEach(checkbox => {{
        checkbox.addEventListener('change', function() {{
            setLayerVisibility(this.getAttribute('data-layer'), this.checked);
        }});
    }});
"""


# ═══════════════════════════════════════════════════════════════════════════
# 🗺️ BASE LAYER SCRIPTS
# ═══════════════════════════════════════════════════════════════════════════


def generate_base_layer_scripts(base_layers: Dict[str, Dict[str, Any]]) -> str:
    """
    Generate JavaScript for the base layer radio buttons.

    Args:
        base_layers: Base layer name → {"style": ..., "layers": [...]}

    Returns:
        JavaScript code block as string (without <script> tags)
    """
    return f"""
    const BASE_LAYERS = {script_json(base_layers)};

    document.querySelectorAll('.baseLayerRadio').forEach(radio => {{
        radio.addEventListener('change', function() {{
            if (!this.checked) return;
            const plotDiv = document.querySelector('.plotly-graph-div');
            const base = BASE_LAYERS[this.value];
            if (!plotDiv || !base) return;
            Plotly.relayout(plotDiv, {{
                'map.style': base.style,
                'map.layers': base.layers
            }});
        }});
    }});
"""


# ═══════════════════════════════════════════════════════════════════════════
# 🔍 SEARCH SCRIPTS
# ═══════════════════════════════════════════════════════════════════════════


def generate_search_scripts(
    search_index: Dict[str, Any], zoom: float, max_results: int = 20
) -> str:
    """
    Generate JavaScript for the search box.

    Matches are case-insensitive substrings of feature id or label, or an
    exact id match when the query is wrapped in double quotes. Clicking a
    result shows the searchable layer and centers the map on the feature.

    Args:
        search_index: SearchIndex.as_dict() output
        zoom: Zoom level used when jumping to a result
        max_results: Maximum number of results listed

    Returns:
        JavaScript code block as string (without <script> tags)
    """
    return f"""
    const SEARCH_INDEX = {script_json(search_index)};
    const SEARCH_ZOOM = {script_json(zoom)};
    const SEARCH_MAX_RESULTS = {int(max_results)};

    function findEntries(query) {{
        query = query.trim();
        if (!query) return [];
        if (query.length > 1 && query.startsWith('"') && query.endsWith('"')) {{
            const exact = query.slice(1, -1);
            return SEARCH_INDEX.entries.filter(e => e.id === exact);
        }}
        const needle = query.toLowerCase();
        return SEARCH_INDEX.entries.filter(e =>
            e.id.toLowerCase().includes(needle) || e.label.toLowerCase().includes(needle)
        );
    }}

    function jumpToEntry(entry) {{
        const plotDiv = document.querySelector('.plotly-graph-div');
        if (!plotDiv) return;
        if (typeof setLayerVisibility === 'function') {{
            setLayerVisibility(SEARCH_INDEX.layer, true);
        }}
        Plotly.relayout(plotDiv, {{
            'map.center': {{lon: entry.lon, lat: entry.lat}},
            'map.zoom': SEARCH_ZOOM
        }});
    }}

    function renderSearchResults(matches) {{
        const list = document.getElementById('searchResults');
        if (!list) return;
        list.innerHTML = '';
        matches.slice(0, SEARCH_MAX_RESULTS).forEach(entry => {{
            const item = document.createElement('div');
            item.className = 'search-result';
            item.textContent = entry.label;
            item.addEventListener('click', () => jumpToEntry(entry));
            list.appendChild(item);
        }});
        const status = document.getElementById('searchStatus');
        if (status) {{
            status.textContent = matches.length > SEARCH_MAX_RESULTS
                ? matches.length + ' matches (first ' + SEARCH_MAX_RESULTS + ' shown)'
                : matches.length + ' match' + (matches.length === 1 ? '' : 'es');
        }}
    }}

    const searchInput = document.getElementById('searchInput');
    if (searchInput) {{
        searchInput.addEventListener('input', function() {{
            renderSearchResults(findEntries(this.value));
        }});
        searchInput.addEventListener('keydown', function(event) {{
            if (event.key !== 'Enter') return;
            const matches = findEntries(this.value);
            if (matches.length > 0) jumpToEntry(matches[0]);
        }});
    }}
"""


# ═══════════════════════════════════════════════════════════════════════════
# 📝 FEATURE DETAILS SCRIPTS
# ═══════════════════════════════════════════════════════════════════════════


def generate_feature_details_script(popups: Dict[str, List[str]]) -> str:
    """
    Generate JavaScript that shows a clicked feature's popup in the details panel.

    Traces carry meta = layer name and customdata = feature index, so the
    popup is looked up in the same per-layer list the geometry came from.

    Args:
        popups: Layer name → popup HTML per feature, in feature order

    Returns:
        JavaScript code block as string (without <script> tags)
    """
    return f"""
    const FEATURE_POPUPS = {script_json(popups)};

    (function attachFeatureDetails() {{
        const plotDiv = document.querySelector('.plotly-graph-div');
        const panel = document.getElementById('featureDetails');
        if (!plotDiv || !panel || typeof plotDiv.on !== 'function') return;
        plotDiv.on('plotly_click', function(data) {{
            if (!data || !data.points || data.points.length === 0) return;
            const pt = data.points[0];
            const layerPopups = FEATURE_POPUPS[pt.data.meta] || [];
            const popup = layerPopups[pt.customdata];
            if (popup !== undefined) panel.innerHTML = popup;
        }});
    }})();
"""
