#!/usr/bin/env python3
"""
Sampling Plan Map - Configuration

ARCHITECTURAL OVERVIEW:
=======================
Responsibility: Centralized configuration for the sampling plan map.
Single source of truth for file paths, region filter, palette, layer
defaults, visualization styling and input column aliases.

Configuration Sections (ordered by how often they are edited):
1. sampling_year / region_filter: plan being reviewed
2. palette: category color generation
3. layers: overlay names, detail flags, searchable layer
4. quality_control: coordinate validation thresholds
5. column_aliases: input column normalization
6. visualization: plotly styling and base layers
7. file_paths: input/output file locations (bottom - rarely changed)

Navigation Guide:
- Use VS Code outline (Ctrl+Shift+O) to jump between sections
"""

import os
from typing import Dict, Any, TypeVar, Callable, Optional

T = TypeVar("T")


def _env_or_default(
    key: str, default: T, type_fn: Optional[Callable[[str], T]] = None
) -> T:
    """
    Get value from environment variable or use default.

    Args:
        key: Environment variable name (e.g., "SPM_REGION")
        default: Default value if env var not set
        type_fn: Optional type conversion function (e.g., float, int)

    Returns:
        Value from environment (converted) or default

    Example:
        >>> _env_or_default("SPM_PALETTE_SIZE", 12, int)
        12  # If env var not set
    """
    val = os.getenv(key)
    if val is not None:
        if type_fn is not None:
            return type_fn(val)
        return val  # type: ignore
    return default


def _env_bool(key: str, default: bool) -> bool:
    """
    Get boolean value from environment variable.

    Treats "true", "1", "yes" as True (case-insensitive).
    Any other value or unset returns default.
    """
    val = os.getenv(key)
    if val is None:
        return default
    return val.lower() in ("true", "1", "yes")


# ═══════════════════════════════════════════════════════════════════════════
# 🔧 ENVIRONMENT VARIABLE OVERRIDES
# ═══════════════════════════════════════════════════════════════════════════
# SPM_YEAR            - int, sampling year of the plan (default: 2025)
# SPM_REGION          - str, watershed region code to render (default: "BRRO")
# SPM_PALETTE_SIZE    - int, number of palette colors (default: 12)
# SPM_MAX_INVALID     - float, max share of a run with bad coordinates (default: 0.5)
# SPM_USE_CACHE       - "true"/"false", read/write normalized CSV caches (default: true)
# SPM_DATA_DIR        - str, folder holding the input workbooks (default: "data")
# SPM_OUTPUT_DIR      - str, folder for the HTML map (default: "Output")
#
# Example usage:
#   export SPM_REGION=PRO
#   export SPM_YEAR=2026
#   python -m Sampling_Plan_Map.main
# ═══════════════════════════════════════════════════════════════════════════

_DATA_DIR = _env_or_default("SPM_DATA_DIR", "data")

# ═══════════════════════════════════════════════════════════════════════════
# ⚙️ MASTER CONFIGURATION
# ═══════════════════════════════════════════════════════════════════════════

CONFIG: Dict[str, Any] = {
    # ═══════════════════════════════════════════════════════════════════════
    # 📅 PLAN UNDER REVIEW
    # ═══════════════════════════════════════════════════════════════════════
    "sampling_year": _env_or_default("SPM_YEAR", 2025, int),
    # Only watersheds with this assessment region code are drawn
    "region_filter": _env_or_default("SPM_REGION", "BRRO"),
    "map_title": "Ambient Monitoring Sampling Plan",
    # ═══════════════════════════════════════════════════════════════════════
    # 🎨 CATEGORY PALETTE (HUSL hue circle)
    # ═══════════════════════════════════════════════════════════════════════
    "palette": {
        "size": _env_or_default("SPM_PALETTE_SIZE", 12, int),
        # Hue circle start angle in degrees (ggplot-style offset)
        "hue_start": 15.0,
        # Saturation steps from low to high across the palette (percent)
        "saturation_low": 70.0,
        "saturation_high": 100.0,
        "lightness": 65.0,
    },
    # ═══════════════════════════════════════════════════════════════════════
    # 🗂️ OVERLAY LAYERS
    # ═══════════════════════════════════════════════════════════════════════
    # detail=True layers start hidden to keep the first render light
    "layers": {
        "watersheds": {"name": "Watersheds", "detail": True},
        "runs": {"name": "Runs", "detail": False},
        "stations": {
            "name": "Stations",
            "detail": False,
            "categorized": True,
            "kind": "point",
        },
        "hf_bacteria": {
            "name": "HF Bacteria",
            "detail": True,
            "categorized": True,
            "kind": "point",
        },
        "lakes": {
            "name": "Lake Stations",
            "detail": True,
            "categorized": False,
            "kind": "marker",
        },
        "searchable_group": "Stations",
        "legend_title": "Program Code",
    },
    # ═══════════════════════════════════════════════════════════════════════
    # ✅ QUALITY CONTROL
    # ═══════════════════════════════════════════════════════════════════════
    "quality_control": {
        "max_invalid_coordinate_fraction": _env_or_default(
            "SPM_MAX_INVALID", 0.5, float
        ),
        "crs": "EPSG:4326",
    },
    # ═══════════════════════════════════════════════════════════════════════
    # 🏷️ INPUT COLUMN ALIASES (matched case-insensitively)
    # ═══════════════════════════════════════════════════════════════════════
    "column_aliases": {
        "site": {
            "id": ["StationID", "Station ID", "FDT_STA_ID", "Site", "SITE_CODE"],
            "longitude": ["Longitude", "LONG_DD", "FDT_LONG", "LON", "Long"],
            "latitude": ["Latitude", "LAT_DD", "FDT_LAT", "LAT", "Lat"],
            "category": ["Program Code", "ProgramCode", "Category", "Code"],
            "group": ["Run", "Run Name", "RunID", "Run ID", "Group"],
            "year": ["Year", "Sample Year"],
            "name": ["Station Description", "StationDescription", "Site Name", "Name"],
        },
        "station": {
            "id": ["StationID", "Station ID", "FDT_STA_ID", "STA_ID"],
            "longitude": ["Longitude", "LONG_DD", "FDT_LONG", "LON"],
            "latitude": ["Latitude", "LAT_DD", "FDT_LAT", "LAT"],
        },
        "watershed": {
            "id": ["HUC12", "HUC", "VAHU6", "huc_cd"],
            "name": ["HU_12_NAME", "HUC_NAME", "NAME", "Name"],
            "basin": ["Basin", "BASIN", "Basin_Name", "VAHU6_NAME"],
            "region_code": ["ASSESS_REG", "Region", "REGION", "RegionCode"],
        },
    },
    # ═══════════════════════════════════════════════════════════════════════
    # 🖼️ VISUALIZATION (Plotly map styling)
    # ═══════════════════════════════════════════════════════════════════════
    "visualization": {
        "figure_width": 1200,
        "figure_height": 900,
        "default_zoom": 8.0,
        "point_marker": {
            "radius": 6,
            "weight": 1,
            "opacity": 1.0,
            "fill_opacity": 0.95,
            "color": "#000000",
        },
        "lake_marker": {
            "radius": 8,
            "weight": 1,
            "opacity": 1.0,
            "fill_opacity": 0.9,
            "color": "#1F78B4",
        },
        "run_polygon": {
            "weight": 2,
            "opacity": 0.9,
            "fill_opacity": 0.35,
            "color": "#333333",
        },
        "watershed_polygon": {
            "weight": 1,
            "opacity": 0.8,
            "fill_opacity": 0.05,
            "color": "#6E6E6E",
        },
        "highlight": {"weight": 3, "color": "#FFFF00", "fill_opacity": 0.6},
        # First entry with default=True is shown on load
        "base_layers": [
            {"name": "Simple Carto", "style": "carto-positron", "default": True},
            {"name": "Street Map", "style": "open-street-map"},
            {"name": "Dark Carto", "style": "carto-darkmatter"},
            {
                "name": "Satellite",
                "style": "white-bg",
                "tiles": "https://server.arcgisonline.com/ArcGIS/rest/services/World_Imagery/MapServer/tile/{z}/{y}/{x}",
                "attribution": "Esri",
            },
        ],
    },
    # ═══════════════════════════════════════════════════════════════════════
    # 📁 FILE PATHS (relative to the working directory)
    # ═══════════════════════════════════════════════════════════════════════
    "file_paths": {
        "sampling_plan_xlsx": os.path.join(_DATA_DIR, "sampling_plan.xlsx"),
        "ambient_sheet": "Ambient",
        "hf_bacteria_sheet": "HF Bacteria",
        "lakes_sheet": "Lakes",
        "stations_csv": os.path.join(_DATA_DIR, "stations.csv"),
        "watersheds_shp": os.path.join(_DATA_DIR, "watersheds.shp"),
        "cache_dir": os.path.join(_DATA_DIR, "cache"),
        "use_cache": _env_bool("SPM_USE_CACHE", True),
        "output_dir": _env_or_default("SPM_OUTPUT_DIR", "Output"),
        "output_html": "sampling_plan_map.html",
        "log_dir": "logs",
    },
}
