"""
═══════════════════════════════════════════════════════════════════════════════
📋 UNIFIED CONFIGURATION TYPES
═══════════════════════════════════════════════════════════════════════════════

ARCHITECTURAL OVERVIEW
----------------------
Responsibility: Define all configuration dataclasses for the sampling plan map.
Replaces scattered CONFIG dictionary access with typed, validated config objects.

Usage:
    from Sampling_Plan_Map.config import CONFIG
    from Sampling_Plan_Map.config_types import AppConfig

    # Create once at application startup
    app_config = AppConfig.from_dict(CONFIG)

    # Use throughout the application
    palette = app_config.palette

For Navigation: Use VS Code outline (Ctrl+Shift+O)

NAVIGATION GUIDE
----------------
# ═════ 1. FILE PATHS CONFIGURATION
# ═════ 2. PALETTE CONFIGURATION
# ═════ 3. LAYER CONFIGURATION
# ═════ 4. QUALITY CONTROL CONFIGURATION
# ═════ 5. COLUMN ALIAS CONFIGURATION
# ═════ 6. VISUALIZATION CONFIGURATION
# ═════ 7. APP CONFIG (MASTER FACADE)

═══════════════════════════════════════════════════════════════════════════════
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Any, List, Optional, Tuple


# ═══════════════════════════════════════════════════════════════════════════════
# 📁 1. FILE PATHS CONFIGURATION
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True)
class FilePathsConfig:
    """
    File path configuration for inputs and outputs.

    Attributes:
        sampling_plan_xlsx: Workbook holding the per-category site sheets.
        ambient_sheet: Sheet with ambient run sites.
        hf_bacteria_sheet: Sheet with high-frequency bacteria sites.
        lakes_sheet: Sheet with lake sites.
        stations_csv: Station master table (coordinates by station id).
        watersheds_shp: Watershed boundary polygons.
        cache_dir: Folder for normalized CSV caches.
        use_cache: Whether normalized tables are read from/written to cache.
        output_dir: Directory for the rendered map.
        output_html: File name of the rendered map.
        log_dir: Directory for log files.
    """

    sampling_plan_xlsx: str = ""
    ambient_sheet: str = "Ambient"
    hf_bacteria_sheet: str = "HF Bacteria"
    lakes_sheet: str = "Lakes"
    stations_csv: str = ""
    watersheds_shp: str = ""
    cache_dir: str = "cache"
    use_cache: bool = True
    output_dir: str = "Output"
    output_html: str = "sampling_plan_map.html"
    log_dir: str = "logs"

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "FilePathsConfig":
        """Create FilePathsConfig from CONFIG['file_paths'] dictionary."""
        return cls(
            sampling_plan_xlsx=d.get("sampling_plan_xlsx", ""),
            ambient_sheet=d.get("ambient_sheet", "Ambient"),
            hf_bacteria_sheet=d.get("hf_bacteria_sheet", "HF Bacteria"),
            lakes_sheet=d.get("lakes_sheet", "Lakes"),
            stations_csv=d.get("stations_csv", ""),
            watersheds_shp=d.get("watersheds_shp", ""),
            cache_dir=d.get("cache_dir", "cache"),
            use_cache=d.get("use_cache", True),
            output_dir=d.get("output_dir", "Output"),
            output_html=d.get("output_html", "sampling_plan_map.html"),
            log_dir=d.get("log_dir", "logs"),
        )

    @property
    def output_html_path(self) -> Path:
        """Full path of the rendered HTML map."""
        return Path(self.output_dir) / self.output_html

    @property
    def cache_path(self) -> Path:
        """Get cache directory as Path object."""
        return Path(self.cache_dir)

    @property
    def log_path(self) -> Path:
        """Get log directory as Path object."""
        return Path(self.log_dir)


# ═══════════════════════════════════════════════════════════════════════════════
# 🎨 2. PALETTE CONFIGURATION
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True)
class PaletteConfig:
    """
    HUSL palette settings used by the category colorizer.

    Attributes:
        size: Number of distinct palette colors (categories beyond this repeat).
        hue_start: Hue angle of the first color in degrees.
        saturation_low: Lower saturation bound (0-100).
        saturation_high: Upper saturation bound (0-100).
        lightness: Lightness shared by every palette color (0-100).
    """

    size: int = 12
    hue_start: float = 15.0
    saturation_low: float = 70.0
    saturation_high: float = 100.0
    lightness: float = 65.0

    def __post_init__(self) -> None:
        """Validate palette settings."""
        if self.size < 1:
            raise ValueError(f"palette size must be >= 1, got {self.size}")
        if not 0 <= self.saturation_low <= self.saturation_high <= 100:
            raise ValueError(
                f"saturation bounds must satisfy 0 <= low <= high <= 100, "
                f"got ({self.saturation_low}, {self.saturation_high})"
            )
        if not 0 <= self.lightness <= 100:
            raise ValueError(f"lightness must be in [0, 100], got {self.lightness}")

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "PaletteConfig":
        """Create PaletteConfig from CONFIG['palette'] dictionary."""
        return cls(
            size=int(d.get("size", 12)),
            hue_start=float(d.get("hue_start", 15.0)),
            saturation_low=float(d.get("saturation_low", 70.0)),
            saturation_high=float(d.get("saturation_high", 100.0)),
            lightness=float(d.get("lightness", 65.0)),
        )


# ═══════════════════════════════════════════════════════════════════════════════
# 🗂️ 3. LAYER CONFIGURATION
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True)
class OverlaySpec:
    """Display name and flags for one overlay layer."""

    name: str
    detail: bool = False
    categorized: bool = False
    kind: str = "point"

    @classmethod
    def from_dict(cls, d: Dict[str, Any], default_name: str) -> "OverlaySpec":
        """Create OverlaySpec from a CONFIG['layers'][key] dictionary."""
        return cls(
            name=d.get("name", default_name),
            detail=d.get("detail", False),
            categorized=d.get("categorized", False),
            kind=d.get("kind", "point"),
        )


@dataclass(frozen=True)
class LayersConfig:
    """
    Overlay layer names and initial visibility flags.

    Layers marked detail=True start hidden; everything else starts visible.
    """

    watersheds: OverlaySpec = field(
        default_factory=lambda: OverlaySpec("Watersheds", detail=True)
    )
    runs: OverlaySpec = field(default_factory=lambda: OverlaySpec("Runs"))
    stations: OverlaySpec = field(
        default_factory=lambda: OverlaySpec("Stations", categorized=True)
    )
    hf_bacteria: OverlaySpec = field(
        default_factory=lambda: OverlaySpec(
            "HF Bacteria", detail=True, categorized=True
        )
    )
    lakes: OverlaySpec = field(
        default_factory=lambda: OverlaySpec("Lake Stations", detail=True, kind="marker")
    )
    searchable_group: str = "Stations"
    legend_title: str = "Program Code"

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "LayersConfig":
        """Create LayersConfig from CONFIG['layers'] dictionary."""
        defaults = cls()

        def spec(key: str) -> OverlaySpec:
            fallback = getattr(defaults, key)
            if key not in d:
                return fallback
            return OverlaySpec.from_dict(d[key], fallback.name)

        return cls(
            watersheds=spec("watersheds"),
            runs=spec("runs"),
            stations=spec("stations"),
            hf_bacteria=spec("hf_bacteria"),
            lakes=spec("lakes"),
            searchable_group=d.get("searchable_group", "Stations"),
            legend_title=d.get("legend_title", "Program Code"),
        )


# ═══════════════════════════════════════════════════════════════════════════════
# ✅ 4. QUALITY CONTROL CONFIGURATION
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True)
class QualityControlConfig:
    """Input validation thresholds."""

    max_invalid_coordinate_fraction: float = 0.5
    crs: str = "EPSG:4326"

    def __post_init__(self) -> None:
        """Validate the fraction range."""
        if not 0.0 <= self.max_invalid_coordinate_fraction <= 1.0:
            raise ValueError(
                "max_invalid_coordinate_fraction must be in [0, 1], "
                f"got {self.max_invalid_coordinate_fraction}"
            )

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "QualityControlConfig":
        """Create QualityControlConfig from CONFIG['quality_control'] dictionary."""
        return cls(
            max_invalid_coordinate_fraction=float(
                d.get("max_invalid_coordinate_fraction", 0.5)
            ),
            crs=d.get("crs", "EPSG:4326"),
        )


# ═══════════════════════════════════════════════════════════════════════════════
# 🏷️ 5. COLUMN ALIAS CONFIGURATION
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True)
class ColumnAliasesConfig:
    """
    Canonical column name -> accepted source column names, per table kind.

    Matching is case-insensitive and whitespace-trimmed. A canonical name
    always matches itself.
    """

    site: Dict[str, List[str]] = field(default_factory=dict)
    station: Dict[str, List[str]] = field(default_factory=dict)
    watershed: Dict[str, List[str]] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "ColumnAliasesConfig":
        """Create ColumnAliasesConfig from CONFIG['column_aliases'] dictionary."""
        return cls(
            site={k: list(v) for k, v in d.get("site", {}).items()},
            station={k: list(v) for k, v in d.get("station", {}).items()},
            watershed={k: list(v) for k, v in d.get("watershed", {}).items()},
        )


# ═══════════════════════════════════════════════════════════════════════════════
# 🖼️ 6. VISUALIZATION CONFIGURATION
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True)
class StyleConfig:
    """Stroke/fill styling shared by marker and polygon layers."""

    color: str = "#000000"
    weight: float = 1.0
    opacity: float = 1.0
    fill_opacity: float = 0.9
    radius: float = 6.0

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "StyleConfig":
        """Create StyleConfig from dictionary."""
        return cls(
            color=d.get("color", "#000000"),
            weight=d.get("weight", 1.0),
            opacity=d.get("opacity", 1.0),
            fill_opacity=d.get("fill_opacity", 0.9),
            radius=d.get("radius", 6.0),
        )


@dataclass(frozen=True)
class HighlightConfig:
    """Style applied to a feature under the cursor."""

    weight: float = 3.0
    color: str = "#FFFF00"
    fill_opacity: float = 0.6

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "HighlightConfig":
        """Create HighlightConfig from dictionary."""
        return cls(
            weight=d.get("weight", 3.0),
            color=d.get("color", "#FFFF00"),
            fill_opacity=d.get("fill_opacity", 0.6),
        )


@dataclass(frozen=True)
class BaseLayerConfig:
    """A selectable background map."""

    name: str
    style: str
    tiles: Optional[str] = None
    attribution: Optional[str] = None
    default: bool = False

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "BaseLayerConfig":
        """Create BaseLayerConfig from dictionary."""
        return cls(
            name=d["name"],
            style=d.get("style", "carto-positron"),
            tiles=d.get("tiles"),
            attribution=d.get("attribution"),
            default=d.get("default", False),
        )


def _default_base_layers() -> Tuple[BaseLayerConfig, ...]:
    return (
        BaseLayerConfig("Simple Carto", "carto-positron", default=True),
        BaseLayerConfig("Street Map", "open-street-map"),
    )


@dataclass(frozen=True)
class VisualizationConfig:
    """
    Plotly map styling.

    Attributes:
        figure_width: Figure width in pixels.
        figure_height: Figure height in pixels.
        default_zoom: Zoom used when the data extent cannot be fitted.
        point_marker: Style of categorized point layers.
        lake_marker: Style of uncategorized marker layers.
        run_polygon: Style of the run hull layer.
        watershed_polygon: Style of the watershed boundary layer.
        highlight: Hover highlight style.
        base_layers: Selectable background maps.
    """

    figure_width: int = 1200
    figure_height: int = 900
    default_zoom: float = 8.0
    point_marker: StyleConfig = field(default_factory=StyleConfig)
    lake_marker: StyleConfig = field(
        default_factory=lambda: StyleConfig(color="#1F78B4", radius=8.0)
    )
    run_polygon: StyleConfig = field(
        default_factory=lambda: StyleConfig(
            color="#333333", weight=2.0, opacity=0.9, fill_opacity=0.35
        )
    )
    watershed_polygon: StyleConfig = field(
        default_factory=lambda: StyleConfig(
            color="#6E6E6E", weight=1.0, opacity=0.8, fill_opacity=0.05
        )
    )
    highlight: HighlightConfig = field(default_factory=HighlightConfig)
    base_layers: Tuple[BaseLayerConfig, ...] = field(
        default_factory=_default_base_layers
    )

    def __post_init__(self) -> None:
        """Validate base layers."""
        if not self.base_layers:
            raise ValueError("at least one base layer is required")

    @property
    def default_base_layer(self) -> BaseLayerConfig:
        """First base layer flagged default, else the first one."""
        for base in self.base_layers:
            if base.default:
                return base
        return self.base_layers[0]

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "VisualizationConfig":
        """Create VisualizationConfig from CONFIG['visualization'] dictionary."""
        defaults = cls()
        base_layers = d.get("base_layers")
        return cls(
            figure_width=d.get("figure_width", 1200),
            figure_height=d.get("figure_height", 900),
            default_zoom=d.get("default_zoom", 8.0),
            point_marker=StyleConfig.from_dict(d["point_marker"])
            if "point_marker" in d
            else defaults.point_marker,
            lake_marker=StyleConfig.from_dict(d["lake_marker"])
            if "lake_marker" in d
            else defaults.lake_marker,
            run_polygon=StyleConfig.from_dict(d["run_polygon"])
            if "run_polygon" in d
            else defaults.run_polygon,
            watershed_polygon=StyleConfig.from_dict(d["watershed_polygon"])
            if "watershed_polygon" in d
            else defaults.watershed_polygon,
            highlight=HighlightConfig.from_dict(d.get("highlight", {})),
            base_layers=tuple(BaseLayerConfig.from_dict(b) for b in base_layers)
            if base_layers
            else defaults.base_layers,
        )


# ═══════════════════════════════════════════════════════════════════════════════
# 🏛️ 7. APP CONFIG (MASTER FACADE)
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True)
class AppConfig:
    """
    Master configuration facade.

    Wraps every configuration section in a typed object so modules never
    reach into the raw CONFIG dictionary.
    """

    sampling_year: int = 2025
    region_filter: Optional[str] = None
    map_title: str = "Ambient Monitoring Sampling Plan"
    file_paths: FilePathsConfig = field(default_factory=FilePathsConfig)
    palette: PaletteConfig = field(default_factory=PaletteConfig)
    layers: LayersConfig = field(default_factory=LayersConfig)
    quality_control: QualityControlConfig = field(default_factory=QualityControlConfig)
    column_aliases: ColumnAliasesConfig = field(default_factory=ColumnAliasesConfig)
    visualization: VisualizationConfig = field(default_factory=VisualizationConfig)

    @classmethod
    def from_dict(cls, config_dict: Dict[str, Any]) -> "AppConfig":
        """
        Create AppConfig from the master CONFIG dictionary.

        Args:
            config_dict: The CONFIG dictionary from config.py

        Returns:
            Fully populated AppConfig
        """
        region = config_dict.get("region_filter")
        return cls(
            sampling_year=int(config_dict.get("sampling_year", 2025)),
            region_filter=region if region else None,
            map_title=config_dict.get("map_title", "Ambient Monitoring Sampling Plan"),
            file_paths=FilePathsConfig.from_dict(config_dict.get("file_paths", {})),
            palette=PaletteConfig.from_dict(config_dict.get("palette", {})),
            layers=LayersConfig.from_dict(config_dict.get("layers", {})),
            quality_control=QualityControlConfig.from_dict(
                config_dict.get("quality_control", {})
            ),
            column_aliases=ColumnAliasesConfig.from_dict(
                config_dict.get("column_aliases", {})
            ),
            visualization=VisualizationConfig.from_dict(
                config_dict.get("visualization", {})
            ),
        )
