#!/usr/bin/env python3
"""
Layer Composer

ARCHITECTURAL OVERVIEW:
=======================
Responsibility: Assemble the MapModel from watersheds, run polygons, point
groups and the shared ColorScale in a single pass.

Layer Order (bottom → top):
1. Watersheds (filtered to the region, detail layer, hidden on load)
2. Runs (one polygon per non-degenerate RunPolygon)
3. One point layer per PointGroup, in the order given

Key Rules:
- The region filter is applied before anything else. No match raises
  RegionFilterEmptyError.
- Every Feature is created from one record, so a watershed popup is built
  from the same filtered, ordered row as the geometry it annotates.
- Degenerate runs are left out of the Runs layer without error; their sites
  still appear in the point layers.
- Sites with non-finite coordinates are not drawn.
- The search index covers the searchable layer only.

Dependencies:
- shapely (bounds, representative points)
- models.map_model (output value objects)

Navigation Guide:
- Use VS Code outline (Ctrl+Shift+O) to jump between functions
"""

import html
import logging
from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence, Tuple

from Sampling_Plan_Map.config_types import (
    AppConfig,
    LayersConfig,
    OverlaySpec,
    StyleConfig,
    VisualizationConfig,
)
from Sampling_Plan_Map.exceptions import RegionFilterEmptyError
from Sampling_Plan_Map.models.data_models import (
    ColorScale,
    RunPolygon,
    Site,
    SiteSource,
    WatershedPolygon,
)
from Sampling_Plan_Map.models.map_model import (
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
from Sampling_Plan_Map.visualization.geometry_utils import union_bounds

logger = logging.getLogger(__name__)


# ═══════════════════════════════════════════════════════════════════════════
# 📍 POINT GROUPS
# ═══════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True)
class PointGroup:
    """Sites drawn together as one point layer."""

    key: str
    name: str
    sites: Tuple[Site, ...]
    categorized: bool = True
    detail: bool = False
    kind: LayerKind = LayerKind.POINT

    @classmethod
    def from_spec(
        cls, key: str, spec: OverlaySpec, sites: Sequence[Site]
    ) -> "PointGroup":
        return cls(
            key=key,
            name=spec.name,
            sites=tuple(sites),
            categorized=spec.categorized,
            detail=spec.detail,
            kind=LayerKind.from_string(spec.kind),
        )


def point_groups_from_sources(
    sites_by_source: Dict[SiteSource, Sequence[Site]],
    layers: Optional[LayersConfig] = None,
) -> List[PointGroup]:
    """
    One PointGroup per site source, in SiteSource order.

    Sources missing from sites_by_source get no layer.
    """
    layers = layers or LayersConfig()
    specs = {
        SiteSource.AMBIENT: layers.stations,
        SiteSource.HF_BACTERIA: layers.hf_bacteria,
        SiteSource.LAKES: layers.lakes,
    }
    return [
        PointGroup.from_spec(source.value, specs[source], sites_by_source[source])
        for source in SiteSource
        if source in sites_by_source
    ]


# ═══════════════════════════════════════════════════════════════════════════
# 🏷️ POPUPS
# ═══════════════════════════════════════════════════════════════════════════


def watershed_popup(watershed: WatershedPolygon) -> str:
    """"{id}<hr>{name}<br>{basin}" for one watershed."""
    return (
        f"{html.escape(watershed.id)}<hr>"
        f"{html.escape(watershed.name)}<br>{html.escape(watershed.basin)}"
    )


def site_popup(site: Site, category_label: str = "Category") -> str:
    lines = [f"<b>{html.escape(site.id)}</b>"]
    if site.name:
        lines.append(html.escape(site.name))
    lines.append(f"Run: {html.escape(site.group)}")
    lines.append(f"{html.escape(category_label)}: {html.escape(site.category)}")
    return "<br>".join(lines)


# ═══════════════════════════════════════════════════════════════════════════
# 🧩 COMPOSER
# ═══════════════════════════════════════════════════════════════════════════


def filter_watersheds(
    watersheds: Sequence[WatershedPolygon], region_filter: Optional[str]
) -> List[WatershedPolygon]:
    """
    Watersheds whose region_code equals region_filter, in input order.

    Raises:
        RegionFilterEmptyError: If region_filter is set and nothing matches
    """
    if region_filter is None:
        return list(watersheds)
    kept = [w for w in watersheds if w.region_code == region_filter]
    if not kept:
        available = sorted({w.region_code for w in watersheds if w.region_code})
        raise RegionFilterEmptyError(region_filter, available)
    logger.info(
        f"   🗺️ Region '{region_filter}': {len(kept)}/{len(watersheds)} watersheds"
    )
    return kept


class LayerComposer:
    """Builds MapModel instances from core records and display settings."""

    def __init__(
        self,
        layers: Optional[LayersConfig] = None,
        visualization: Optional[VisualizationConfig] = None,
        title: str = "Sampling Plan",
    ) -> None:
        self.layers = layers or LayersConfig()
        self.visualization = visualization or VisualizationConfig()
        self.title = title

    @classmethod
    def from_app_config(cls, app_config: AppConfig) -> "LayerComposer":
        return cls(app_config.layers, app_config.visualization, app_config.map_title)

    def _style(self, style: StyleConfig) -> LayerStyle:
        highlight = self.visualization.highlight
        return LayerStyle(
            color=style.color,
            weight=style.weight,
            opacity=style.opacity,
            fill_opacity=style.fill_opacity,
            radius=style.radius,
            highlight=HighlightStyle(
                weight=highlight.weight,
                color=highlight.color,
                fill_opacity=highlight.fill_opacity,
            ),
        )

    def _watershed_layer(self, watersheds: Sequence[WatershedPolygon]) -> Layer:
        style = self._style(self.visualization.watershed_polygon)
        features = tuple(
            Feature(
                feature_id=w.id,
                geometry=w.geometry,
                label=f"{w.id} {w.name}".strip(),
                popup=watershed_popup(w),
                color=style.color,
            )
            for w in watersheds
        )
        spec = self.layers.watersheds
        return Layer(
            name=spec.name,
            kind=LayerKind.POLYGON,
            features=features,
            style=style,
            visible=not spec.detail,
            detail=spec.detail,
        )

    def _runs_layer(
        self, run_polygons: Sequence[RunPolygon], color_scale: ColorScale
    ) -> Layer:
        features = tuple(
            Feature(
                feature_id=rp.group_id,
                geometry=rp.hull,
                label=rp.group_id,
                popup=html.escape(rp.group_id),
                color=color_scale.color_for(rp.representative_category),
            )
            for rp in run_polygons
            if not rp.degenerate
        )
        skipped = sum(1 for rp in run_polygons if rp.degenerate)
        if skipped:
            logger.info(f"   🔷 {skipped} degenerate run(s) left out of the runs layer")
        spec = self.layers.runs
        return Layer(
            name=spec.name,
            kind=LayerKind.POLYGON,
            features=features,
            style=self._style(self.visualization.run_polygon),
            visible=not spec.detail,
            layer_id_field="group_id",
            detail=spec.detail,
        )

    def _point_layer(self, group: PointGroup, color_scale: ColorScale) -> Layer:
        marker = (
            self.visualization.lake_marker
            if group.kind == LayerKind.MARKER
            else self.visualization.point_marker
        )
        style = self._style(marker)
        features = tuple(
            Feature(
                feature_id=site.id,
                geometry=site.point,
                label=site.label,
                popup=site_popup(site, self.layers.legend_title),
                color=(
                    color_scale.color_for(site.category)
                    if group.categorized
                    else style.color
                ),
            )
            for site in group.sites
            if site.has_finite_coordinates
        )
        return Layer(
            name=group.name,
            kind=group.kind,
            features=features,
            style=style,
            visible=not group.detail,
            detail=group.detail,
        )

    def _search_index(self, overlay_layers: Sequence[Layer]) -> SearchIndex:
        name = self.layers.searchable_group
        layer = next((lyr for lyr in overlay_layers if lyr.name == name), None)
        if layer is None:
            logger.warning(f"Searchable layer '{name}' not found; search disabled")
            return SearchIndex(layer_name=name)
        entries = []
        for feature in layer.features:
            anchor = feature.geometry.representative_point()
            entries.append(
                SearchEntry(feature.feature_id, feature.label, anchor.x, anchor.y)
            )
        return SearchIndex(layer_name=name, entries=tuple(entries))

    def compose(
        self,
        watersheds: Sequence[WatershedPolygon],
        run_polygons: Sequence[RunPolygon],
        point_groups: Sequence[PointGroup],
        color_scale: ColorScale,
        region_filter: Optional[str] = None,
    ) -> MapModel:
        """
        Build the MapModel.

        Args:
            watersheds: All watershed polygons (filtered here)
            run_polygons: Output of build_run_polygons
            point_groups: Point layers to draw, bottom to top
            color_scale: Shared category colors (also the legend)
            region_filter: region_code to keep, or None for every watershed

        Returns:
            Inert MapModel

        Raises:
            RegionFilterEmptyError: If region_filter matches no watershed
        """
        kept = filter_watersheds(watersheds, region_filter)

        overlay_layers = [
            self._watershed_layer(kept),
            self._runs_layer(run_polygons, color_scale),
        ]
        overlay_layers.extend(self._point_layer(g, color_scale) for g in point_groups)

        names = [layer.name for layer in overlay_layers]
        if len(set(names)) != len(names):
            raise ValueError(f"Overlay layer names must be unique, got {names}")

        bounds = union_bounds(
            [
                feature.geometry.bounds
                for layer in overlay_layers
                for feature in layer.features
                if not feature.geometry.is_empty
            ]
        )

        base_layers = tuple(
            BaseLayer(
                name=b.name,
                style=b.style,
                tiles=b.tiles,
                attribution=b.attribution,
                default=b is self.visualization.default_base_layer,
            )
            for b in self.visualization.base_layers
        )

        model = MapModel(
            title=self.title,
            base_layers=base_layers,
            overlay_layers=tuple(overlay_layers),
            legend=Legend(self.layers.legend_title, color_scale),
            searchable_group=self.layers.searchable_group,
            search_index=self._search_index(overlay_layers),
            initial_visibility={layer.name: layer.visible for layer in overlay_layers},
            bounds=bounds,
        )
        logger.info(
            f"   ✅ Map model: {len(overlay_layers)} layers, "
            f"{sum(len(layer.features) for layer in overlay_layers)} features"
        )
        return model


def compose(
    watersheds: Sequence[WatershedPolygon],
    run_polygons: Sequence[RunPolygon],
    point_groups: Sequence[PointGroup],
    color_scale: ColorScale,
    region_filter: Optional[str] = None,
    app_config: Optional[AppConfig] = None,
) -> MapModel:
    """Compose with the display settings of app_config (defaults if None)."""
    composer = (
        LayerComposer.from_app_config(app_config) if app_config else LayerComposer()
    )
    return composer.compose(
        watersheds, run_polygons, point_groups, color_scale, region_filter
    )
