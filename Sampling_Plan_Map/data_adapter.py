#!/usr/bin/env python3
"""
Data Adapter

ARCHITECTURAL OVERVIEW:
=======================
Responsibility: Turn raw sampling plan tables into the canonical records the
core consumes (Site, WatershedPolygon). Everything source-specific lives
here; GeometryBuilder and LayerComposer never see raw column names.

Key Steps (sites):
1. Column normalization via the alias tables in CONFIG["column_aliases"].
   A leading year on a header ("2025 Run") is stripped before matching and
   captured as the site year.
2. Predicate row filtering (no id, all plan fields empty, missing category
   or run). Dropped rows are reported as DroppedRowWarning, never silently.
3. Missing coordinates filled from the station table by id (left merge).
4. Records → Site dataclasses. Unparseable coordinates become NaN and are
   handled downstream by GeometryBuilder.

Key Steps (watersheds):
1. GeoDataFrame, or DataFrame with a WKT geometry column
2. Column normalization, CRS set or reprojected to EPSG:4326
3. Rows without geometry dropped with a warning

Also provides file readers (pandas / geopandas) and a CSV cache of
normalized site tables keyed by a SHA256 fingerprint of their inputs.

Navigation Guide:
- Use VS Code outline (Ctrl+Shift+O) to jump between sections
"""

import hashlib
import json
import logging
import re
from dataclasses import asdict
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Tuple, Union

import geopandas as gpd
import pandas as pd

from Sampling_Plan_Map.config_types import AppConfig, ColumnAliasesConfig
from Sampling_Plan_Map.exceptions import DroppedRowWarning, InputValidationError
from Sampling_Plan_Map.models.data_models import (
    Site,
    SiteSource,
    WatershedPolygon,
    sites_from_dicts,
    sites_to_dicts,
)

logger = logging.getLogger(__name__)

SITE_REQUIRED = ("id", "longitude", "latitude", "category", "group")
SITE_OPTIONAL = ("year", "name")
STATION_REQUIRED = ("id", "longitude", "latitude")
WATERSHED_REQUIRED = ("id", "region_code")
WATERSHED_OPTIONAL = ("name", "basin")
WKT_COLUMNS = ("geometry", "wkt", "geometry_wkt", "geom")

_CANONICAL = {
    "site": SITE_REQUIRED + SITE_OPTIONAL,
    "station": STATION_REQUIRED,
    "watershed": WATERSHED_REQUIRED + WATERSHED_OPTIONAL,
}

# "2025 Run" -> year 2025, base "Run"
_YEAR_PREFIX = re.compile(r"^(?P<year>(?:19|20)\d{2})\s+(?P<base>\S.*)$")


# ═══════════════════════════════════════════════════════════════════════════
# 🧹 VALUE HELPERS
# ═══════════════════════════════════════════════════════════════════════════


def _clean_text(value: Any) -> str:
    """Cell value as trimmed text; missing → ""; 1234.0 → "1234"."""
    if value is None or (not isinstance(value, str) and pd.isna(value)):
        return ""
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value).strip()


def _parse_year(value: Any) -> Optional[int]:
    text = _clean_text(value)
    if not text:
        return None
    try:
        return int(float(text))
    except ValueError:
        return None


def _blank(series: pd.Series) -> pd.Series:
    """Boolean mask of missing or whitespace-only cells."""
    return series.isna() | series.astype(str).str.strip().eq("")


# ═══════════════════════════════════════════════════════════════════════════
# 🔄 DATA ADAPTER
# ═══════════════════════════════════════════════════════════════════════════


class DataAdapter:
    """
    Normalizes raw tables into canonical Site / WatershedPolygon records.

    Usage:
        adapter = DataAdapter.from_app_config(app_config)
        sites, warnings = adapter.normalize_sites(df, table="Ambient",
                                                  stations=stations_df)
        watersheds, ws_warnings = adapter.normalize_watersheds(gdf)
    """

    def __init__(
        self,
        aliases: Optional[ColumnAliasesConfig] = None,
        sampling_year: Optional[int] = None,
        crs: str = "EPSG:4326",
        cache_dir: Optional[Union[str, Path]] = None,
    ) -> None:
        self.aliases = aliases or ColumnAliasesConfig()
        self.sampling_year = sampling_year
        self.crs = crs
        self.cache_dir = Path(cache_dir) if cache_dir is not None else None

    @classmethod
    def from_app_config(cls, app_config: AppConfig) -> "DataAdapter":
        """Build an adapter from the typed application config."""
        file_paths = app_config.file_paths
        return cls(
            aliases=app_config.column_aliases,
            sampling_year=app_config.sampling_year,
            crs=app_config.quality_control.crs,
            cache_dir=file_paths.cache_path if file_paths.use_cache else None,
        )

    # ───────────────────────────────────────────────────────────────────────
    # Column normalization
    # ───────────────────────────────────────────────────────────────────────

    def _alias_lookup(self, table_kind: str) -> Dict[str, str]:
        """lower-cased source name → canonical name (canonical names map to themselves)."""
        lookup: Dict[str, str] = {}
        for canonical, aliases in getattr(self.aliases, table_kind).items():
            for alias in aliases:
                lookup.setdefault(alias.strip().lower(), canonical)
        for canonical in _CANONICAL[table_kind]:
            lookup[canonical] = canonical
        return lookup

    def normalize_columns(
        self, df: pd.DataFrame, table_kind: str
    ) -> Tuple[pd.DataFrame, Optional[int]]:
        """
        Rename source columns to canonical names.

        When several source columns map to the same canonical name, the first
        one wins unless a later one is labeled with the configured sampling
        year. Losing columns are dropped so the result has unique names.

        Args:
            df: Raw table
            table_kind: "site", "station" or "watershed"

        Returns:
            (renamed copy of df, year captured from a year-labeled header or None)
        """
        lookup = self._alias_lookup(table_kind)
        chosen: Dict[str, Tuple[Any, Optional[int]]] = {}
        losers: List[Any] = []

        for col in df.columns:
            text = str(col).strip()
            year = None
            match = _YEAR_PREFIX.match(text)
            if match:
                year = int(match.group("year"))
                text = match.group("base")
            canonical = lookup.get(text.lower())
            if canonical is None:
                continue
            if canonical in chosen:
                prev_col, prev_year = chosen[canonical]
                prefer_new = (
                    self.sampling_year is not None
                    and year == self.sampling_year
                    and prev_year != self.sampling_year
                )
                if not prefer_new:
                    logger.warning(
                        f"Column '{col}' also maps to '{canonical}'; keeping '{prev_col}'"
                    )
                    losers.append(col)
                    continue
                logger.warning(
                    f"Column '{prev_col}' also maps to '{canonical}'; keeping '{col}'"
                )
                losers.append(prev_col)
            chosen[canonical] = (col, year)

        renamed = df.drop(columns=losers).rename(
            columns={src: canonical for canonical, (src, _) in chosen.items()}
        )
        years = [year for _, year in chosen.values() if year is not None]
        return renamed, (years[0] if years else None)

    @staticmethod
    def _require(df: pd.DataFrame, required: Sequence[str], table: str) -> None:
        missing = [c for c in required if c not in df.columns]
        if missing:
            raise InputValidationError(
                f"Table '{table}' is missing required column(s): {missing}",
                table=table,
                columns=missing,
            )

    # ───────────────────────────────────────────────────────────────────────
    # Station lookup
    # ───────────────────────────────────────────────────────────────────────

    def attach_station_coordinates(
        self, sites: pd.DataFrame, stations: pd.DataFrame, table: str = "sites"
    ) -> pd.DataFrame:
        """
        Fill missing site coordinates from a station table by id.

        Args:
            sites: Site table with canonical column names (needs "id")
            stations: Raw station table (normalized here)
            table: Site table name, for log messages

        Returns:
            Copy of sites with longitude/latitude columns filled where the
            station table knows the id
        """
        stations, _ = self.normalize_columns(stations, "station")
        self._require(stations, STATION_REQUIRED, "stations")

        lookup = stations[list(STATION_REQUIRED)].copy()
        lookup["id"] = lookup["id"].map(_clean_text)
        lookup = lookup[lookup["id"] != ""].drop_duplicates(subset="id", keep="first")

        result = sites.merge(
            lookup,
            on="id",
            how="left",
            suffixes=("", "_station"),
            indicator=True,
        )

        matched = int((result["_merge"] == "both").sum())
        unmatched_ids = result.loc[result["_merge"] == "left_only", "id"].tolist()
        logger.info(
            f"   📍 {table}: {matched}/{len(result)} sites matched the station table"
        )
        if unmatched_ids:
            logger.info(f"   Station ids not found: {unmatched_ids}")

        # Overlapping columns get the suffix; otherwise the station column is used as is
        for coord in ("longitude", "latitude"):
            station_col = f"{coord}_station"
            if station_col in result.columns:
                result[coord] = pd.to_numeric(result[coord], errors="coerce").fillna(
                    pd.to_numeric(result[station_col], errors="coerce")
                )
                result = result.drop(columns=station_col)

        return result.drop(columns="_merge")

    # ───────────────────────────────────────────────────────────────────────
    # Sites
    # ───────────────────────────────────────────────────────────────────────

    def normalize_sites(
        self,
        df: pd.DataFrame,
        table: str = "sites",
        source: SiteSource = SiteSource.AMBIENT,
        stations: Optional[pd.DataFrame] = None,
        default_category: Optional[str] = None,
        default_group: Optional[str] = None,
    ) -> Tuple[List[Site], List[DroppedRowWarning]]:
        """
        Normalize one site table.

        Args:
            df: Raw site table
            table: Table name used in errors and warnings
            source: Point group the sites belong to
            stations: Optional station table used to fill coordinates
            default_category: Category for tables without a category column
            default_group: Run name for tables without a run column

        Returns:
            (sites in table order, one DroppedRowWarning per filtering predicate
            that removed rows)

        Raises:
            InputValidationError: Empty table, missing required columns, or no
                rows left after filtering
        """
        if df.empty:
            raise InputValidationError(f"Table '{table}' is empty", table=table)

        df, header_year = self.normalize_columns(df, "site")
        self._require(df, ("id",), table)
        if "category" not in df.columns and default_category is not None:
            df = df.assign(category=default_category)
        if "group" not in df.columns and default_group is not None:
            df = df.assign(group=default_group)

        warnings: List[DroppedRowWarning] = []

        def drop(mask: pd.Series, reason: str) -> pd.DataFrame:
            count = int(mask.sum())
            if count:
                warnings.append(DroppedRowWarning(table, reason, count))
                logger.info(f"   🧹 {table}: dropped {count} row(s) ({reason})")
            return df[~mask]

        plan_fields = [c for c in ("category", "group", "year") if c in df.columns]
        if plan_fields:
            all_empty = pd.concat([_blank(df[c]) for c in plan_fields], axis=1).all(
                axis=1
            )
            df = drop(all_empty, "all plan fields empty")
        df = drop(_blank(df["id"]), "missing site id")

        df = df.assign(id=df["id"].map(_clean_text))
        if stations is not None:
            df = self.attach_station_coordinates(df, stations, table)
        self._require(df, SITE_REQUIRED, table)

        df = drop(
            _blank(df["category"]) | _blank(df["group"]), "missing category or run"
        )
        if df.empty:
            raise InputValidationError(
                f"Table '{table}' has no usable rows after filtering", table=table
            )

        longitudes = pd.to_numeric(df["longitude"], errors="coerce")
        latitudes = pd.to_numeric(df["latitude"], errors="coerce")
        row_years = df["year"] if "year" in df.columns else [None] * len(df)
        names = df["name"] if "name" in df.columns else [None] * len(df)
        fallback_year = header_year if header_year is not None else self.sampling_year

        sites = []
        for site_id, lon, lat, category, group, year, name in zip(
            df["id"], longitudes, latitudes, df["category"], df["group"], row_years, names
        ):
            row_year = _parse_year(year)
            sites.append(
                Site(
                    id=site_id,
                    longitude=float(lon),
                    latitude=float(lat),
                    category=_clean_text(category),
                    group=_clean_text(group),
                    year=row_year if row_year is not None else fallback_year,
                    name=_clean_text(name) or None,
                    source=source,
                )
            )

        logger.info(f"   ✅ {table}: {len(sites)} sites")
        return sites, warnings

    # ───────────────────────────────────────────────────────────────────────
    # Watersheds
    # ───────────────────────────────────────────────────────────────────────

    def _to_geodataframe(
        self, data: Union[gpd.GeoDataFrame, pd.DataFrame], source_crs: Optional[str]
    ) -> gpd.GeoDataFrame:
        if isinstance(data, gpd.GeoDataFrame):
            return data
        wkt_col = next(
            (c for c in data.columns if str(c).strip().lower() in WKT_COLUMNS), None
        )
        if wkt_col is None:
            raise InputValidationError(
                "Watershed table has no geometry or WKT column",
                table="watersheds",
                columns=("geometry",),
            )
        geometry = gpd.GeoSeries.from_wkt(
            data[wkt_col].where(~_blank(data[wkt_col]), None)
        )
        return gpd.GeoDataFrame(
            data.drop(columns=wkt_col),
            geometry=geometry.values,
            crs=source_crs or self.crs,
        )

    def normalize_watersheds(
        self,
        data: Union[gpd.GeoDataFrame, pd.DataFrame],
        source_crs: Optional[str] = None,
    ) -> Tuple[List[WatershedPolygon], List[DroppedRowWarning]]:
        """
        Normalize watershed polygons.

        Args:
            data: GeoDataFrame, or DataFrame with a WKT column
            source_crs: CRS of WKT input, or of a GeoDataFrame without one
                (defaults to the target CRS)

        Returns:
            (watersheds in table order, dropped-row warnings)

        Raises:
            InputValidationError: Empty table or missing id/region columns
        """
        table = "watersheds"
        if data.empty:
            raise InputValidationError(f"Table '{table}' is empty", table=table)

        gdf = self._to_geodataframe(data, source_crs)
        geometry_name = gdf.geometry.name
        attrs, _ = self.normalize_columns(gdf.drop(columns=geometry_name), "watershed")
        self._require(attrs, WATERSHED_REQUIRED, table)

        gdf = gpd.GeoDataFrame(attrs, geometry=gdf.geometry.values, crs=gdf.crs)
        if gdf.crs is None:
            gdf = gdf.set_crs(source_crs or self.crs)
        if gdf.crs.to_string() != self.crs:
            gdf = gdf.to_crs(self.crs)

        warnings: List[DroppedRowWarning] = []
        no_geometry = gdf.geometry.isna() | gdf.geometry.is_empty
        if no_geometry.any():
            count = int(no_geometry.sum())
            warnings.append(DroppedRowWarning(table, "missing geometry", count))
            logger.info(f"   🧹 {table}: dropped {count} row(s) (missing geometry)")
            gdf = gdf[~no_geometry]

        watersheds = [
            WatershedPolygon(
                id=_clean_text(row["id"]),
                name=_clean_text(row["name"]) if "name" in gdf.columns else "",
                basin=_clean_text(row["basin"]) if "basin" in gdf.columns else "",
                region_code=_clean_text(row["region_code"]),
                geometry=row["geometry"],
            )
            for _, row in gdf.iterrows()
        ]
        logger.info(f"   ✅ {table}: {len(watersheds)} polygons")
        return watersheds, warnings

    # ───────────────────────────────────────────────────────────────────────
    # Readers
    # ───────────────────────────────────────────────────────────────────────

    @staticmethod
    def read_table(path: Union[str, Path], sheet_name: Optional[str] = None) -> pd.DataFrame:
        """
        Read a CSV or Excel table with trimmed string column names.

        Raises:
            FileNotFoundError: If the file does not exist
        """
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"Table not found: {path}")
        logger.info(f"📂 Loading {path.name}" + (f" [{sheet_name}]" if sheet_name else ""))

        if path.suffix.lower() in (".xlsx", ".xlsm", ".xls"):
            df = pd.read_excel(path, sheet_name=sheet_name or 0)
        else:
            df = pd.read_csv(path)
        df.columns = [str(c).strip() for c in df.columns]
        return df

    @staticmethod
    def read_watersheds(path: Union[str, Path]) -> gpd.GeoDataFrame:
        """
        Read watershed polygons with geopandas (shapefile, GeoJSON, GPKG...).

        Raises:
            FileNotFoundError: If the file does not exist
        """
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"Watershed file not found: {path}")
        logger.info(f"📂 Loading watersheds: {path}")
        return gpd.read_file(path)

    # ───────────────────────────────────────────────────────────────────────
    # CSV cache
    # ───────────────────────────────────────────────────────────────────────

    def sites_fingerprint(
        self,
        path: Union[str, Path],
        sheet_name: Optional[str] = None,
        source: SiteSource = SiteSource.AMBIENT,
        stations: Optional[pd.DataFrame] = None,
        default_category: Optional[str] = None,
        default_group: Optional[str] = None,
    ) -> str:
        """
        SHA256 fingerprint of everything that shapes a normalized site table.

        Covers the source file bytes, the sheet, the station table and the
        column aliases, so editing any of them misses the cache.

        Returns:
            SHA256 hex string (first 16 chars)

        Raises:
            FileNotFoundError: If the source file does not exist
        """
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"Table not found: {path}")
        hasher = hashlib.sha256()

        # === SOURCE TABLE ===
        hasher.update(path.read_bytes())
        hasher.update(f"sheet:{sheet_name}|source:{source.value}".encode("utf-8"))
        hasher.update(
            f"defaults:{default_category}|{default_group}".encode("utf-8")
        )

        # === STATION TABLE ===
        if stations is not None:
            hasher.update(stations.to_csv(index=False).encode("utf-8"))

        # === COLUMN ALIASES ===
        hasher.update(
            json.dumps(asdict(self.aliases), sort_keys=True).encode("utf-8")
        )

        return hasher.hexdigest()[:16]

    def cache_file(self, name: str, fingerprint: str) -> Optional[Path]:
        """Cache CSV path for a table, or None when caching is off."""
        if self.cache_dir is None:
            return None
        slug = re.sub(r"[^A-Za-z0-9]+", "_", name).strip("_").lower()
        year = self.sampling_year or "all"
        return self.cache_dir / f"{slug}_{year}_{fingerprint}.csv"

    def read_cached_sites(
        self, name: str, fingerprint: str
    ) -> Optional[Tuple[List[Site], List[DroppedRowWarning]]]:
        """
        Sites and their loading warnings from the cache.

        Returns None if caching is off or nothing is cached for this
        fingerprint.
        """
        path = self.cache_file(name, fingerprint)
        if path is None or not path.exists():
            return None
        logger.info(f"📂 Loading cached {name}: {path}")
        df = pd.read_csv(
            path, dtype={"id": str, "category": str, "group": str, "name": str}
        )
        warnings_path = path.with_suffix(".warnings.json")
        warnings: List[DroppedRowWarning] = []
        if warnings_path.exists():
            warnings = [
                DroppedRowWarning(**record)
                for record in json.loads(warnings_path.read_text(encoding="utf-8"))
            ]
        return sites_from_dicts(df.to_dict("records")), warnings

    def write_cached_sites(
        self,
        sites: List[Site],
        warnings: List[DroppedRowWarning],
        name: str,
        fingerprint: str,
    ) -> Optional[Path]:
        """Write normalized sites and their warnings to the cache."""
        path = self.cache_file(name, fingerprint)
        if path is None:
            return None
        path.parent.mkdir(parents=True, exist_ok=True)
        pd.DataFrame(sites_to_dicts(sites)).to_csv(path, index=False)
        path.with_suffix(".warnings.json").write_text(
            json.dumps([asdict(w) for w in warnings]), encoding="utf-8"
        )
        logger.info(f"   💾 Cached {len(sites)} {name} sites: {path}")
        return path

    def load_sites(
        self,
        path: Union[str, Path],
        sheet_name: Optional[str] = None,
        source: SiteSource = SiteSource.AMBIENT,
        stations: Optional[pd.DataFrame] = None,
        default_category: Optional[str] = None,
        default_group: Optional[str] = None,
    ) -> Tuple[List[Site], List[DroppedRowWarning]]:
        """
        Read and normalize a site table, going through the CSV cache.

        The cache entry is keyed by sites_fingerprint, so a hit replays the
        warnings recorded when the entry was written.
        """
        table = sheet_name or Path(path).stem
        fingerprint = ""
        if self.cache_dir is not None:
            fingerprint = self.sites_fingerprint(
                path, sheet_name, source, stations, default_category, default_group
            )
            cached = self.read_cached_sites(table, fingerprint)
            if cached is not None:
                return cached

        sites, warnings = self.normalize_sites(
            self.read_table(path, sheet_name),
            table=table,
            source=source,
            stations=stations,
            default_category=default_category,
            default_group=default_group,
        )
        self.write_cached_sites(sites, warnings, table, fingerprint)
        return sites, warnings
