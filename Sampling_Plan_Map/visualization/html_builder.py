#!/usr/bin/env python3
"""
HTML Map Builder

ARCHITECTURAL OVERVIEW:
=======================
Responsibility: Render a MapModel to a standalone interactive HTML file.
This is a consumer of the MapModel only; nothing here feeds back into the
core pipeline.

Page Layout:
    ┌──────────────┬──────────────────────────┬──────────────┐
    │ Layers panel │                          │ Legend panel │
    │ Search panel │      Plotly map          │ Details      │
    └──────────────┴──────────────────────────┴──────────────┘

Steps:
1. Build overlay traces (plotly_traces) and the map layout
2. fig.to_html (plotly.js embedded)
3. Generate sidebar panels (html_panels) and scripts (client_scripts)
4. Wrap the plot div in a flex layout and write the file

Dependencies:
- plotly.graph_objects

Navigation Guide:
- Use VS Code outline (Ctrl+Shift+O) to jump between functions
"""

import logging
from pathlib import Path
from typing import Dict, List, Optional, Tuple, Union

import plotly.graph_objects as go

from Sampling_Plan_Map.config_types import VisualizationConfig
from Sampling_Plan_Map.models.map_model import MapModel
from Sampling_Plan_Map.visualization.client_scripts import (
    generate_feature_details_script,
)
from Sampling_Plan_Map.visualization.html_panels import (
    DEFAULT_LEFT_PANEL_WIDTH,
    DEFAULT_RIGHT_PANEL_WIDTH,
    generate_details_panel_html,
    generate_layers_panel_html,
    generate_legend_panel_html,
    generate_panel_styles_css,
    generate_search_panel_html,
)
from Sampling_Plan_Map.visualization.plotly_traces import (
    base_layer_settings,
    build_layer_traces,
    build_map_layout,
)

PANEL_TOP_OFFSET = 40
SIDEBAR_SPACING = 20
# Zoom used when jumping to a search result
SEARCH_RESULT_ZOOM = 13.0


def build_figure(
    model: MapModel,
    visualization_config: Optional[VisualizationConfig] = None,
    logger: Optional[logging.Logger] = None,
) -> Tuple[go.Figure, Dict[str, List[int]]]:
    """
    Build the Plotly figure for a map model.

    Returns:
        (figure, layer name → trace indices)
    """
    traces, layer_traces = build_layer_traces(model, logger)
    fig = go.Figure(data=traces)
    fig.update_layout(**build_map_layout(model, visualization_config))
    return fig, layer_traces


def _generate_sidebar_panels(
    model: MapModel, layer_traces: Dict[str, List[int]]
) -> Tuple[str, str]:
    """Build (left_sidebar_html, right_sidebar_html)."""
    base_settings = {b.name: base_layer_settings(b) for b in model.base_layers}

    left_sidebar_html = generate_layers_panel_html(
        list(model.overlay_layers),
        list(model.base_layers),
        layer_traces,
        base_settings,
    ) + generate_search_panel_html(model.search_index, SEARCH_RESULT_ZOOM)

    right_sidebar_html = generate_legend_panel_html(
        model.legend
    ) + generate_details_panel_html()

    return left_sidebar_html, right_sidebar_html


def _build_flex_wrapper_html(
    left_sidebar_html: str,
    right_sidebar_html: str,
    left_sidebar_width: int,
    right_sidebar_width: int,
) -> Tuple[str, str]:
    """Build flex wrapper HTML for sidebars. Returns (wrapper_start, wrapper_end)."""
    flex_wrapper_start = f"""
<div id="plotPageWrapper" style="
    display: flex;
    flex-direction: row;
    min-height: 100vh;
    width: fit-content;
    padding: 0 20px 20px 0;
    box-sizing: border-box;
">
    <div id="leftSidebar" style="
        display: flex;
        flex-direction: column;
        width: {left_sidebar_width}px;
        min-width: {left_sidebar_width}px;
        flex-shrink: 0;
        padding-top: {PANEL_TOP_OFFSET}px;
    ">
{left_sidebar_html}
    </div>
    <div id="plotContainer" style="
        flex-shrink: 0;
        min-width: 0;
    ">
"""

    flex_wrapper_end = f"""
    </div>
    <div id="rightSidebar" style="
        display: flex;
        flex-direction: column;
        width: {right_sidebar_width}px;
        min-width: {right_sidebar_width}px;
        flex-shrink: 0;
        padding-top: {PANEL_TOP_OFFSET}px;
    ">
{right_sidebar_html}
    </div>
</div>
"""
    return flex_wrapper_start, flex_wrapper_end


def _assemble_final_html(
    plotly_html: str,
    model: MapModel,
    left_sidebar_html: str,
    right_sidebar_html: str,
) -> str:
    """Assemble final HTML with flex layout and embedded scripts."""
    flex_wrapper_start, flex_wrapper_end = _build_flex_wrapper_html(
        left_sidebar_html,
        right_sidebar_html,
        DEFAULT_LEFT_PANEL_WIDTH + SIDEBAR_SPACING,
        DEFAULT_RIGHT_PANEL_WIDTH + SIDEBAR_SPACING,
    )

    final_html = plotly_html.replace("</head>", f"{generate_panel_styles_css()}</head>", 1)
    final_html = final_html.replace("<div>", f"{flex_wrapper_start}<div>", 1)
    final_html = final_html.replace("</body>", f"{flex_wrapper_end}</body>")

    # Details script needs the plot div, so it goes after the wrapper
    popups = {layer.name: list(layer.popups) for layer in model.overlay_layers}
    details_script = f"<script>\n{generate_feature_details_script(popups)}</script>"
    final_html = final_html.replace("</body>", f"{details_script}</body>")

    return final_html


def generate_map_html(
    model: MapModel,
    output_path: Union[str, Path],
    visualization_config: Optional[VisualizationConfig] = None,
    logger: Optional[logging.Logger] = None,
) -> go.Figure:
    """
    Render the map model to a standalone HTML file.

    Args:
        model: Map model to render
        output_path: Destination HTML file (parent folders are created)
        visualization_config: Figure size and zoom settings (defaults if None)
        logger: Optional logger instance

    Returns:
        The Plotly figure embedded in the page
    """
    fig, layer_traces = build_figure(model, visualization_config, logger)
    plotly_html = fig.to_html(
        include_plotlyjs=True,
        full_html=True,
        config={"displayModeBar": True, "scrollZoom": True},
    )

    left_sidebar_html, right_sidebar_html = _generate_sidebar_panels(
        model, layer_traces
    )
    final_html = _assemble_final_html(
        plotly_html, model, left_sidebar_html, right_sidebar_html
    )

    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    with open(output_path, "w", encoding="utf-8") as f:
        f.write(final_html)
    if logger:
        logger.info("Map HTML saved: %s", output_path)
    return fig
