#!/usr/bin/env python3
"""
Plotly Trace Builder Functions

ARCHITECTURAL OVERVIEW:
=======================
Responsibility: Turn MapModel layers into Plotly map traces.

Key Patterns:
- Functions return go.Scattermap trace objects (tile-based map, lon/lat)
- Polygon layers are merged into one trace per fill color, with None
  separators between rings
- Point layers become a single marker trace with per-feature colors
- Every trace carries meta = layer name and customdata = feature index in
  that layer, so client scripts can map a clicked point back to its popup
- build_layer_traces also returns layer name → trace indices for toggles

KNOWN LIMITATIONS:
==================
Plotly fill='toself' cannot render polygon holes as transparent, so only
exterior rings are drawn. Hover labels support a small HTML subset; <hr> is
shown as a line break there (the full popup is shown on click).

Dependencies:
- plotly.graph_objects
- shapely (geometry access)

Navigation Guide:
- Use VS Code outline (Ctrl+Shift+O) to jump between functions
"""

import logging
from typing import Any, Dict, List, Optional, Tuple

import plotly.graph_objects as go
from shapely.geometry.base import BaseGeometry

from Sampling_Plan_Map.config_types import VisualizationConfig
from Sampling_Plan_Map.models.map_model import BaseLayer, Layer, LayerKind, MapModel
from Sampling_Plan_Map.visualization.geometry_utils import (
    bounds_to_center,
    expand_bounds,
    hex_to_rgba,
    zoom_for_bounds,
)

# Plotly default when nothing on the map has a finite extent
_FALLBACK_CENTER = (-79.0, 37.5)


# ===========================================================================
# GEOMETRY HELPERS
# ===========================================================================


def hover_text(popup: str) -> str:
    """Popup HTML reduced to what Plotly hover labels render."""
    return popup.replace("<hr>", "<br>")


def extract_polygon_rings(geom: BaseGeometry) -> Tuple[List[Any], List[Any]]:
    """
    Exterior ring coordinates of a Polygon/MultiPolygon.

    Args:
        geom: Shapely geometry (non-polygon or empty geometries give nothing)

    Returns:
        (lons, lats) with a None after every ring
    """
    if geom is None or geom.is_empty:
        return [], []

    if geom.geom_type == "Polygon":
        polygons = [geom]
    elif geom.geom_type == "MultiPolygon":
        polygons = list(geom.geoms)
    else:
        return [], []

    lons: List[Any] = []
    lats: List[Any] = []
    for poly in polygons:
        xs, ys = poly.exterior.coords.xy
        lons.extend(xs)
        lats.extend(ys)
        lons.append(None)
        lats.append(None)
    return lons, lats


# ===========================================================================
# LAYER TRACES
# ===========================================================================


def build_polygon_layer_traces(layer: Layer) -> List[go.Scattermap]:
    """
    Build merged polygon traces for one layer, one trace per fill color.

    Args:
        layer: Polygon layer

    Returns:
        List of go.Scattermap traces (empty if the layer has no features)
    """
    by_color: Dict[str, Dict[str, List[Any]]] = {}
    for idx, feature in enumerate(layer.features):
        lons, lats = extract_polygon_rings(feature.geometry)
        if not lons:
            continue
        bucket = by_color.setdefault(
            feature.color, {"lon": [], "lat": [], "text": [], "customdata": []}
        )
        bucket["lon"].extend(lons)
        bucket["lat"].extend(lats)
        bucket["text"].extend([hover_text(feature.popup)] * len(lons))
        bucket["customdata"].extend([idx] * len(lons))

    style = layer.style
    traces = []
    for color, bucket in by_color.items():
        traces.append(
            go.Scattermap(
                lon=bucket["lon"],
                lat=bucket["lat"],
                mode="lines",
                fill="toself",
                fillcolor=hex_to_rgba(color, style.fill_opacity),
                line=dict(color=style.color, width=style.weight),
                hovertext=bucket["text"],
                hoverinfo="text",
                customdata=bucket["customdata"],
                meta=layer.name,
                name=layer.name,
                opacity=style.opacity,
                visible=layer.visible,
                showlegend=False,
            )
        )
    return traces


def build_point_layer_trace(layer: Layer) -> Optional[go.Scattermap]:
    """
    Build one marker trace for a point or marker layer.

    Returns:
        go.Scattermap, or None if the layer has no features
    """
    if layer.is_empty:
        return None

    style = layer.style
    return go.Scattermap(
        lon=[f.geometry.x for f in layer.features],
        lat=[f.geometry.y for f in layer.features],
        mode="markers",
        marker=dict(
            size=style.radius * 2,
            color=[f.color for f in layer.features],
            opacity=style.fill_opacity,
        ),
        hovertext=[hover_text(f.popup) for f in layer.features],
        hoverinfo="text",
        customdata=list(range(len(layer.features))),
        meta=layer.name,
        name=layer.name,
        visible=layer.visible,
        showlegend=False,
    )


def build_layer_traces(
    model: MapModel,
    logger: Optional[logging.Logger] = None,
) -> Tuple[List[go.Scattermap], Dict[str, List[int]]]:
    """
    Build all overlay traces in layer order.

    Args:
        model: Map model to draw
        logger: Optional logger instance

    Returns:
        (traces, layer name → indices of its traces in the figure)
    """
    traces: List[go.Scattermap] = []
    layer_traces: Dict[str, List[int]] = {}

    for layer in model.overlay_layers:
        if layer.kind == LayerKind.POLYGON:
            new_traces = build_polygon_layer_traces(layer)
        else:
            point_trace = build_point_layer_trace(layer)
            new_traces = [point_trace] if point_trace is not None else []
        layer_traces[layer.name] = list(
            range(len(traces), len(traces) + len(new_traces))
        )
        traces.extend(new_traces)

    if logger:
        logger.info(f"   Built {len(traces)} traces for {len(layer_traces)} layers")
    return traces, layer_traces


# ===========================================================================
# LAYOUT
# ===========================================================================


def base_layer_settings(base: BaseLayer) -> Dict[str, Any]:
    """map.style / map.layers for one base layer (raster tiles as a layer)."""
    layers: List[Dict[str, Any]] = []
    if base.tiles:
        layers.append(
            dict(
                below="traces",
                sourcetype="raster",
                sourceattribution=base.attribution or "",
                source=[base.tiles],
            )
        )
    return {"style": base.style, "layers": layers}


def build_map_layout(
    model: MapModel, visualization_config: Optional[VisualizationConfig] = None
) -> Dict[str, Any]:
    """
    Layout dict for fig.update_layout.

    The map is centered on the model bounds with a fitted zoom; the default
    base layer is applied.
    """
    vis = visualization_config or VisualizationConfig()
    if model.bounds is not None:
        lon, lat = bounds_to_center(model.bounds)
        zoom = zoom_for_bounds(expand_bounds(model.bounds), vis.default_zoom)
    else:
        lon, lat = _FALLBACK_CENTER
        zoom = vis.default_zoom

    base = base_layer_settings(model.default_base_layer)
    return dict(
        title=dict(text=model.title, x=0.5),
        width=vis.figure_width,
        height=vis.figure_height,
        margin=dict(l=0, r=0, t=40, b=0),
        showlegend=False,
        hovermode="closest",
        map=dict(
            style=base["style"],
            layers=base["layers"],
            center=dict(lon=lon, lat=lat),
            zoom=zoom,
        ),
    )
