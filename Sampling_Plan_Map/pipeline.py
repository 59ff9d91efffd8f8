#!/usr/bin/env python3
"""
Sampling Plan Map Pipeline

ARCHITECTURAL OVERVIEW:
=======================
Responsibility: One-call orchestration of the core.

    SamplingPlanTables
        → build_run_polygons (ambient sites)
        → build_scale (categories of categorized point groups, first-seen order)
        → LayerComposer.compose
        → PipelineResult(map_model, warnings, run_polygons, color_scale)

export_geometries writes the sites and run hulls as GeoJSON for GIS review.

The ColorScale is built exactly once and passed to the composer, so the Runs
layer, every categorized point layer and the legend share one mapping.

Warnings are collected, not raised: loading warnings first, then geometry
warnings in run order, then skipped sites of the other point layers. Fatal
errors (InputValidationError, RegionFilterEmptyError) propagate to the caller.

Navigation Guide:
- Use VS Code outline (Ctrl+Shift+O) to jump between functions
"""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional, Sequence, Tuple, Union

import pandas as pd

from Sampling_Plan_Map.colorizer import build_scale
from Sampling_Plan_Map.config_types import AppConfig
from Sampling_Plan_Map.data_adapter import DataAdapter
from Sampling_Plan_Map.exceptions import (
    DegenerateGroupWarning,
    DroppedRowWarning,
    NonFiniteCoordinateWarning,
)
from Sampling_Plan_Map.geometry_builder import (
    build_run_polygons,
    collect_geometry_warnings,
    run_polygons_to_geodataframe,
    sites_to_geodataframe,
)
from Sampling_Plan_Map.layer_composer import (
    LayerComposer,
    PointGroup,
    point_groups_from_sources,
)
from Sampling_Plan_Map.models.data_models import (
    ColorScale,
    RunPolygon,
    Site,
    SiteSource,
    WatershedPolygon,
)
from Sampling_Plan_Map.models.map_model import MapModel

logger = logging.getLogger(__name__)

PipelineWarning = Union[
    DegenerateGroupWarning, NonFiniteCoordinateWarning, DroppedRowWarning
]


@dataclass(frozen=True)
class SamplingPlanTables:
    """Normalized inputs of one pipeline run."""

    ambient: Tuple[Site, ...]
    watersheds: Tuple[WatershedPolygon, ...]
    hf_bacteria: Optional[Tuple[Site, ...]] = None
    lakes: Optional[Tuple[Site, ...]] = None
    warnings: Tuple[DroppedRowWarning, ...] = field(default_factory=tuple)

    @property
    def sites_by_source(self) -> Dict[SiteSource, Tuple[Site, ...]]:
        result = {SiteSource.AMBIENT: self.ambient}
        if self.hf_bacteria is not None:
            result[SiteSource.HF_BACTERIA] = self.hf_bacteria
        if self.lakes is not None:
            result[SiteSource.LAKES] = self.lakes
        return result


@dataclass(frozen=True)
class PipelineResult:
    """MapModel plus everything the caller may want to report."""

    map_model: MapModel
    warnings: Tuple[PipelineWarning, ...]
    run_polygons: Tuple[RunPolygon, ...]
    color_scale: ColorScale


def collect_point_warnings(
    point_groups: Sequence[PointGroup],
) -> List[NonFiniteCoordinateWarning]:
    """
    NonFiniteCoordinateWarning per skipped site of the non-ambient point layers.

    Ambient sites are reported through their run polygons already.
    """
    return [
        NonFiniteCoordinateWarning(site.id, site.group)
        for group in point_groups
        if group.key != SiteSource.AMBIENT.value
        for site in group.sites
        if not site.has_finite_coordinates
    ]


def build_sampling_plan_map(
    tables: SamplingPlanTables, app_config: Optional[AppConfig] = None
) -> PipelineResult:
    """
    Build the MapModel from normalized tables.

    Args:
        tables: Normalized sites and watersheds
        app_config: Application config (defaults if None)

    Returns:
        PipelineResult

    Raises:
        InputValidationError: Too many non-finite coordinates in a run
        RegionFilterEmptyError: Region filter matched no watershed
    """
    app_config = app_config or AppConfig()

    run_polygons = build_run_polygons(
        tables.ambient,
        app_config.quality_control.max_invalid_coordinate_fraction,
    )

    point_groups = point_groups_from_sources(tables.sites_by_source, app_config.layers)
    categories = [
        site.category
        for group in point_groups
        if group.categorized
        for site in group.sites
    ]
    color_scale = build_scale(categories, app_config.palette.size, app_config.palette)

    map_model = LayerComposer.from_app_config(app_config).compose(
        tables.watersheds,
        run_polygons,
        point_groups,
        color_scale,
        app_config.region_filter,
    )

    warnings: List[PipelineWarning] = list(tables.warnings)
    warnings.extend(collect_geometry_warnings(run_polygons))
    warnings.extend(collect_point_warnings(point_groups))
    logger.info(f"   ✅ Map built with {len(warnings)} warning(s)")

    return PipelineResult(
        map_model=map_model,
        warnings=tuple(warnings),
        run_polygons=tuple(run_polygons),
        color_scale=color_scale,
    )


def load_sampling_plan_tables(
    app_config: AppConfig, adapter: Optional[DataAdapter] = None
) -> SamplingPlanTables:
    """
    Read and normalize every input named in app_config.file_paths.

    Raises:
        FileNotFoundError: If an input file is missing
        InputValidationError: If a table is empty or lacks required columns
    """
    adapter = adapter or DataAdapter.from_app_config(app_config)
    paths = app_config.file_paths
    layers = app_config.layers

    stations: Optional[pd.DataFrame] = None
    if paths.stations_csv:
        stations = adapter.read_table(paths.stations_csv)

    warnings: List[DroppedRowWarning] = []

    def load(
        sheet: str, source: SiteSource, **defaults: Optional[str]
    ) -> Tuple[Site, ...]:
        sites, sheet_warnings = adapter.load_sites(
            paths.sampling_plan_xlsx, sheet, source, stations, **defaults
        )
        warnings.extend(sheet_warnings)
        return tuple(sites)

    ambient = load(paths.ambient_sheet, SiteSource.AMBIENT)
    hf_bacteria = (
        load(
            paths.hf_bacteria_sheet,
            SiteSource.HF_BACTERIA,
            default_group=layers.hf_bacteria.name,
        )
        if paths.hf_bacteria_sheet
        else None
    )
    lakes = (
        load(
            paths.lakes_sheet,
            SiteSource.LAKES,
            default_category=layers.lakes.name,
            default_group=layers.lakes.name,
        )
        if paths.lakes_sheet
        else None
    )

    watersheds, watershed_warnings = adapter.normalize_watersheds(
        adapter.read_watersheds(paths.watersheds_shp)
    )
    warnings.extend(watershed_warnings)

    return SamplingPlanTables(
        ambient=ambient,
        watersheds=tuple(watersheds),
        hf_bacteria=hf_bacteria,
        lakes=lakes,
        warnings=tuple(warnings),
    )


def summarize_warnings(warnings: Sequence[PipelineWarning]) -> List[str]:
    """Human-readable warning messages in order."""
    return [w.message for w in warnings]


def export_geometries(
    tables: SamplingPlanTables,
    result: PipelineResult,
    output_dir: Path,
    log: Optional[logging.Logger] = None,
) -> Dict[str, str]:
    """
    Export sites and run hulls as GeoJSON (EPSG:4326) next to the map.

    Files are overwritten if they already exist. Empty tables are skipped.

    Returns:
        Dict mapping "sites" / "run_polygons" -> path of the created file
    """
    if log is None:
        log = logger

    output_dir.mkdir(parents=True, exist_ok=True)
    log.info(f"📤 Exporting geometries to: {output_dir}")

    all_sites = [site for sites in tables.sites_by_source.values() for site in sites]
    frames = {
        "sites": sites_to_geodataframe(all_sites),
        "run_polygons": run_polygons_to_geodataframe(result.run_polygons),
    }

    exported: Dict[str, str] = {}
    for name, gdf in frames.items():
        if gdf.empty:
            continue
        path = output_dir / f"{name}.geojson"
        gdf.to_file(path, driver="GeoJSON")
        exported[name] = str(path)
        log.info(f"   ✅ {name}: {len(gdf)} features")
    return exported
