#!/usr/bin/env python3
"""
Visualization Package

ARCHITECTURAL OVERVIEW:
=======================
Responsibility: Render a MapModel as a standalone interactive HTML map.

Modules:
- geometry_utils: Color conversions, bounds and zoom utilities
- plotly_traces: Plotly Scattermap trace builders and map layout
- html_panels: HTML/CSS panel generators (legend, layers, search, details)
- client_scripts: JavaScript for toggles, base layers, search, details
- html_builder: Page assembly and file output

Usage:
    from Sampling_Plan_Map.visualization import generate_map_html

    generate_map_html(map_model, "Output/sampling_plan_map.html")

Navigation Guide:
- Each module has its own docstring with function list
- Use VS Code outline (Ctrl+Shift+O) to jump between functions
"""

# ===========================================================================
# GEOMETRY UTILITIES
# ===========================================================================

from Sampling_Plan_Map.visualization.geometry_utils import (
    hex_to_rgb,
    hex_to_rgba,
    bounds_to_center,
    expand_bounds,
    union_bounds,
    zoom_for_bounds,
)

# ===========================================================================
# PLOTLY TRACES
# ===========================================================================

from Sampling_Plan_Map.visualization.plotly_traces import (
    build_layer_traces,
    build_map_layout,
    build_point_layer_trace,
    build_polygon_layer_traces,
)

# ===========================================================================
# HTML OUTPUT
# ===========================================================================

from Sampling_Plan_Map.visualization.html_builder import (
    build_figure,
    generate_map_html,
)

__all__ = [
    # Geometry utilities
    "hex_to_rgb",
    "hex_to_rgba",
    "bounds_to_center",
    "expand_bounds",
    "union_bounds",
    "zoom_for_bounds",
    # Plotly traces
    "build_layer_traces",
    "build_map_layout",
    "build_point_layer_trace",
    "build_polygon_layer_traces",
    # HTML output
    "build_figure",
    "generate_map_html",
]
