"""
Declarative map model handed to a rendering surface.

Architectural Overview:
=======================
The MapModel is an inert value object. LayerComposer builds it in a single
pass; nothing in the core mutates it afterwards, and a changed input set
means building a new one. Renderers read it (see visualization.html_builder)
or export it with to_dict().

Structure:
----------
- MapModel
  - base_layers: background maps (one is the default)
  - overlay_layers: ordered Layer list, drawn bottom to top
    - Layer.features: Feature(feature_id, geometry, label, popup, color)
  - legend: title + ColorScale
  - searchable_group + search_index: lookup restricted to one layer
  - initial_visibility: read-only layer name → bool

Each Feature bundles its own geometry, label and popup, so the i-th popup
always annotates the i-th geometry of the same layer.
"""

from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Any, Dict, List, Mapping, Optional, Tuple

from shapely.geometry import mapping as geometry_mapping
from shapely.geometry.base import BaseGeometry

from .data_models import ColorScale


# ═══════════════════════════════════════════════════════════════════════════
# 🏷️ ENUMS SECTION
# ═══════════════════════════════════════════════════════════════════════════


class LayerKind(Enum):
    """How a layer's features are drawn."""

    POLYGON = "polygon"
    POINT = "point"  # category-colored circle markers
    MARKER = "marker"  # default-styled markers

    @classmethod
    def from_string(cls, s: str) -> "LayerKind":
        """Convert string to LayerKind, with fallback to POINT."""
        for member in cls:
            if member.value == s:
                return member
        return cls.POINT


# ═══════════════════════════════════════════════════════════════════════════
# 🎨 STYLE SECTION
# ═══════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True)
class HighlightStyle:
    """Style applied while a feature is hovered."""

    weight: float = 3.0
    color: str = "#FFFF00"
    fill_opacity: float = 0.6


@dataclass(frozen=True)
class LayerStyle:
    """Layer-wide stroke and fill style.

    Per-feature fill colors (category colors) live on Feature.color; this
    style carries the stroke color and everything shared by the layer.
    """

    color: str = "#000000"
    weight: float = 1.0
    opacity: float = 1.0
    fill_opacity: float = 0.9
    radius: float = 6.0
    highlight: HighlightStyle = field(default_factory=HighlightStyle)

    def as_dict(self) -> Dict[str, Any]:
        return {
            "color": self.color,
            "weight": self.weight,
            "opacity": self.opacity,
            "fill_opacity": self.fill_opacity,
            "radius": self.radius,
            "highlight": {
                "weight": self.highlight.weight,
                "color": self.highlight.color,
                "fill_opacity": self.highlight.fill_opacity,
            },
        }


# ═══════════════════════════════════════════════════════════════════════════
# 🗂️ LAYER SECTION
# ═══════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True)
class Feature:
    """One drawable item of a layer."""

    feature_id: str
    geometry: BaseGeometry
    label: str
    popup: str
    color: str

    def as_dict(self) -> Dict[str, Any]:
        return {
            "id": self.feature_id,
            "geometry": geometry_mapping(self.geometry),
            "label": self.label,
            "popup": self.popup,
            "color": self.color,
        }


@dataclass(frozen=True)
class Layer:
    """A named, independently toggleable set of features."""

    name: str
    kind: LayerKind
    features: Tuple[Feature, ...]
    style: LayerStyle
    visible: bool = True
    layer_id_field: str = "id"
    detail: bool = False

    @property
    def geometries(self) -> Tuple[BaseGeometry, ...]:
        return tuple(f.geometry for f in self.features)

    @property
    def labels(self) -> Tuple[str, ...]:
        return tuple(f.label for f in self.features)

    @property
    def popups(self) -> Tuple[str, ...]:
        return tuple(f.popup for f in self.features)

    @property
    def feature_ids(self) -> Tuple[str, ...]:
        return tuple(f.feature_id for f in self.features)

    @property
    def is_empty(self) -> bool:
        return not self.features

    def as_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "kind": self.kind.value,
            "visible": self.visible,
            "detail": self.detail,
            "layer_id_field": self.layer_id_field,
            "style": self.style.as_dict(),
            "features": [f.as_dict() for f in self.features],
        }


@dataclass(frozen=True)
class BaseLayer:
    """A background map the renderer can switch to."""

    name: str
    style: str
    tiles: Optional[str] = None
    attribution: Optional[str] = None
    default: bool = False

    def as_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "style": self.style,
            "tiles": self.tiles,
            "attribution": self.attribution,
            "default": self.default,
        }


@dataclass(frozen=True)
class Legend:
    """Legend title plus the shared category color scale."""

    title: str
    color_scale: ColorScale

    def as_dict(self) -> Dict[str, Any]:
        return {"title": self.title, "entries": self.color_scale.items()}


# ═══════════════════════════════════════════════════════════════════════════
# 🔍 SEARCH INDEX SECTION
# ═══════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True)
class SearchEntry:
    """One searchable feature: id/label pair plus where to zoom to."""

    feature_id: str
    label: str
    longitude: float
    latitude: float


@dataclass(frozen=True)
class SearchIndex:
    """Id/label lookup over the features of a single layer."""

    layer_name: str
    entries: Tuple[SearchEntry, ...] = ()

    def search(self, query: str, exact: bool = False) -> List[SearchEntry]:
        """
        Find entries by feature id or label.

        Args:
            query: Text to look for
            exact: Require an exact id match instead of a case-insensitive
                substring match on id or label

        Returns:
            Matching entries in layer order
        """
        query = query.strip()
        if not query:
            return []
        if exact:
            return [e for e in self.entries if e.feature_id == query]
        needle = query.lower()
        return [
            e
            for e in self.entries
            if needle in e.feature_id.lower() or needle in e.label.lower()
        ]

    def as_dict(self) -> Dict[str, Any]:
        return {
            "layer": self.layer_name,
            "entries": [
                {
                    "id": e.feature_id,
                    "label": e.label,
                    "lon": e.longitude,
                    "lat": e.latitude,
                }
                for e in self.entries
            ],
        }


# ═══════════════════════════════════════════════════════════════════════════
# 🗺️ MAP MODEL SECTION
# ═══════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True)
class MapModel:
    """Everything a renderer needs to draw the sampling plan map."""

    title: str
    base_layers: Tuple[BaseLayer, ...]
    overlay_layers: Tuple[Layer, ...]
    legend: Legend
    searchable_group: str
    search_index: SearchIndex
    initial_visibility: Mapping[str, bool]
    bounds: Optional[Tuple[float, float, float, float]] = None

    def __post_init__(self) -> None:
        # Read-only view over a private copy
        object.__setattr__(
            self, "initial_visibility", MappingProxyType(dict(self.initial_visibility))
        )

    def layer(self, name: str) -> Optional[Layer]:
        """Overlay layer by name, or None."""
        for layer in self.overlay_layers:
            if layer.name == name:
                return layer
        return None

    @property
    def layer_names(self) -> List[str]:
        return [layer.name for layer in self.overlay_layers]

    @property
    def default_base_layer(self) -> BaseLayer:
        for base in self.base_layers:
            if base.default:
                return base
        return self.base_layers[0]

    def to_dict(self) -> Dict[str, Any]:
        """Renderer-neutral, JSON-serializable view of the model."""
        return {
            "title": self.title,
            "base_layers": [b.as_dict() for b in self.base_layers],
            "overlay_layers": [layer.as_dict() for layer in self.overlay_layers],
            "legend": self.legend.as_dict(),
            "searchable_group": self.searchable_group,
            "search_index": self.search_index.as_dict(),
            "initial_visibility": dict(self.initial_visibility),
            "bounds": list(self.bounds) if self.bounds else None,
        }
