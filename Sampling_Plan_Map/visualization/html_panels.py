#!/usr/bin/env python3
"""
HTML Panel Generators

ARCHITECTURAL OVERVIEW:
=======================
Responsibility: Generate HTML strings for UI panels.
Pure functions that return HTML strings - no Plotly dependency.

Panels:
- Legend panel (category colors of the shared ColorScale)
- Layers panel (base layer radios, overlay layer checkboxes)
- Search panel (searchable layer only)
- Feature details panel (full popup of the clicked feature)

Dependencies:
- client_scripts (for JavaScript code generation)

Navigation Guide:
- Use VS Code outline (Ctrl+Shift+O) to jump between functions
"""

import html
from typing import Any, Dict, List

from Sampling_Plan_Map.models.map_model import BaseLayer, Layer, Legend, SearchIndex
from Sampling_Plan_Map.visualization.client_scripts import (
    generate_base_layer_scripts,
    generate_layer_toggle_scripts,
    generate_search_scripts,
)


# ===========================================================================
# STYLING CONSTANTS (liquid glass panel style)
# ===========================================================================

LIQUID_GLASS_STYLE = (
    "background: rgba(255, 255, 255, 0.75); "
    "backdrop-filter: blur(12px) saturate(180%); "
    "-webkit-backdrop-filter: blur(12px) saturate(180%); "
    "border: 1px solid rgba(255, 255, 255, 0.4); "
    "border-radius: 16px; "
    "box-shadow: 0 8px 32px rgba(0, 0, 0, 0.1), inset 0 1px 1px rgba(255, 255, 255, 0.6); "
    "padding: 12px 16px;"
)

PANEL_STYLE_ITEM = (
    "font-family: Arial, sans-serif; font-size: 11px; color: rgb(42, 63, 95);"
)

PANEL_STYLE_HEADER = (
    "font-family: Arial, sans-serif; "
    "font-size: 12px; "
    "font-weight: bold; "
    "color: rgb(42, 63, 95);"
)

DEFAULT_LEFT_PANEL_WIDTH = 200
DEFAULT_RIGHT_PANEL_WIDTH = 220
DEFAULT_PANEL_VERTICAL_GAP = 12


def _panel(panel_id: str, title: str, body: str, width: int, gap: int = 0) -> str:
    return f"""
<div id="{panel_id}" style="
    margin-top: {gap}px;
    {LIQUID_GLASS_STYLE}
    {PANEL_STYLE_ITEM}
    width: {width}px;
">
    <div style="{PANEL_STYLE_HEADER} margin-bottom: 8px;">
        {html.escape(title)}
    </div>
{body}
</div>
"""


# ===========================================================================
# LEGEND PANEL
# ===========================================================================


def generate_legend_panel_html(
    legend: Legend,
    panel_width: int = DEFAULT_RIGHT_PANEL_WIDTH,
) -> str:
    """
    Generate HTML for the category legend (display only).

    One swatch per ColorScale domain value, in domain order.

    Args:
        legend: Legend of the map model
        panel_width: Panel width in pixels

    Returns:
        HTML string for legend panel
    """
    items = [
        f'<div class="legend-item">'
        f'<span class="legend-swatch" style="background-color: {color};"></span>'
        f'<span class="legend-label">{html.escape(category)}</span>'
        f"</div>"
        for category, color in legend.color_scale.items()
    ]
    if not items:
        items.append('<div class="legend-item">No categories</div>')
    return _panel("legendPanel", legend.title, "\n".join(items), panel_width)


# ===========================================================================
# LAYERS PANEL
# ===========================================================================


def generate_layers_panel_html(
    overlay_layers: List[Layer],
    base_layers: List[BaseLayer],
    layer_traces: Dict[str, List[int]],
    base_layer_settings: Dict[str, Dict[str, Any]],
    panel_width: int = DEFAULT_LEFT_PANEL_WIDTH,
    vertical_gap: int = 0,
) -> str:
    """
    Generate HTML for the Layers panel.

    Base layers are radio buttons (exactly one shown); overlay layers are
    independent checkboxes, checked when the layer starts visible. Overlay
    checkboxes are listed top layer first.

    Args:
        overlay_layers: Overlay layers in draw order (bottom → top)
        base_layers: Selectable background maps
        layer_traces: Layer name → trace indices
        base_layer_settings: Base layer name → map style/layers dict
        panel_width: Panel width in pixels
        vertical_gap: Vertical gap from previous panel

    Returns:
        HTML string for layers panel (with its <script> block)
    """
    base_items = []
    for base in base_layers:
        checked = " checked" if base.default else ""
        base_items.append(
            f"""
    <label style="display: flex; align-items: center; cursor: pointer; margin: 5px 0;">
        <input type="radio" name="baseLayer" class="baseLayerRadio" value="{html.escape(base.name)}"{checked} style="margin-right: 8px;">
        <span style="font-size: 11px;">{html.escape(base.name)}</span>
    </label>"""
        )

    overlay_items = []
    for layer in reversed(overlay_layers):
        checked = " checked" if layer.visible else ""
        count = len(layer.features)
        overlay_items.append(
            f"""
    <label class="layer-toggle" style="display: flex; align-items: center; cursor: pointer; margin: 5px 0;">
        <input type="checkbox" class="overlayLayerCheckbox" data-layer="{html.escape(layer.name)}"{checked} style="margin-right: 8px;">
        <span style="font-size: 11px;">{html.escape(layer.name)} ({count})</span>
    </label>"""
        )

    body = (
        '<div class="panel-subheader">Base map</div>'
        + "".join(base_items)
        + '<div class="panel-subheader">Overlays</div>'
        + "".join(overlay_items)
    )
    scripts = generate_base_layer_scripts(
        base_layer_settings
    ) + generate_layer_toggle_scripts(layer_traces)

    return (
        _panel("layersPanel", "Layers", body, panel_width, vertical_gap)
        + f"\n<script>\n{scripts}\n</script>\n"
    )


# ===========================================================================
# SEARCH PANEL
# ===========================================================================


def generate_search_panel_html(
    search_index: SearchIndex,
    zoom: float,
    panel_width: int = DEFAULT_LEFT_PANEL_WIDTH,
    vertical_gap: int = DEFAULT_PANEL_VERTICAL_GAP,
) -> str:
    """
    Generate HTML for the search box (searchable layer only).

    Args:
        search_index: Index of the searchable layer
        zoom: Zoom level used when jumping to a result
        panel_width: Panel width in pixels
        vertical_gap: Vertical gap from previous panel

    Returns:
        HTML string for search panel (with its <script> block)
    """
    body = f"""
    <input type="text" id="searchInput" placeholder="Search {html.escape(search_index.layer_name)}..."
        style="width: 100%; box-sizing: border-box; padding: 4px 6px; font-size: 11px;">
    <div id="searchStatus" class="search-status"></div>
    <div id="searchResults"></div>"""
    script = generate_search_scripts(search_index.as_dict(), zoom)
    return (
        _panel("searchPanel", "Search", body, panel_width, vertical_gap)
        + f"\n<script>\n{script}\n</script>\n"
    )


# ===========================================================================
# FEATURE DETAILS PANEL
# ===========================================================================


def generate_details_panel_html(
    panel_width: int = DEFAULT_RIGHT_PANEL_WIDTH,
    vertical_gap: int = DEFAULT_PANEL_VERTICAL_GAP,
) -> str:
    """Empty details panel filled by the feature details script on click."""
    body = '<div id="featureDetails">Click a feature to see its details.</div>'
    return _panel("detailsPanel", "Details", body, panel_width, vertical_gap)


# ===========================================================================
# PANEL STYLES CSS
# ===========================================================================


def generate_panel_styles_css() -> str:
    """Generate CSS styles for all panels."""
    return """
    <style>
        .panel-subheader {
            margin: 8px 0 2px 0;
            font-weight: 600;
            color: #666;
        }

        .layer-toggle {
            margin: 6px 0;
        }

        .legend-item {
            display: flex;
            align-items: center;
            margin: 6px 0;
        }

        .legend-swatch {
            width: 14px;
            height: 14px;
            margin-right: 8px;
            border-radius: 50%;
            border: 1px solid rgba(0, 0, 0, 0.4);
        }

        .legend-label {
            flex: 1;
        }

        .search-status {
            margin: 4px 0;
            color: #666;
        }

        .search-result {
            padding: 3px 4px;
            cursor: pointer;
            border-radius: 4px;
        }

        .search-result:hover {
            background: rgba(74, 144, 217, 0.2);
        }

        #featureDetails hr {
            border: none;
            border-top: 1px solid rgba(42, 63, 95, 0.3);
            margin: 4px 0;
        }
    </style>
    """
