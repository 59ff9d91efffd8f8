"""Data models package for sites, run polygons, color scales and the map model."""

from .data_models import (
    ColorScale,
    RunPolygon,
    Site,
    SiteSource,
    WatershedPolygon,
    # Batch conversion utilities
    sites_from_dicts,
    sites_to_dicts,
)

from .map_model import (
    BaseLayer,
    Feature,
    HighlightStyle,
    Layer,
    LayerKind,
    LayerStyle,
    Legend,
    MapModel,
    SearchEntry,
    SearchIndex,
)

__all__ = [
    # Pipeline models
    "ColorScale",
    "RunPolygon",
    "Site",
    "SiteSource",
    "WatershedPolygon",
    # Batch conversion utilities
    "sites_from_dicts",
    "sites_to_dicts",
    # Map model
    "BaseLayer",
    "Feature",
    "HighlightStyle",
    "Layer",
    "LayerKind",
    "LayerStyle",
    "Legend",
    "MapModel",
    "SearchEntry",
    "SearchIndex",
]
