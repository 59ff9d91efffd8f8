"""
Unit tests for the DataAdapter.

Tests:
1. Alias and year-labeled column normalization
2. Predicate row filtering with DroppedRowWarning records
3. Missing columns / empty tables
4. Station coordinate fill
5. Watershed normalization (WKT and GeoDataFrame, reprojection)
6. Readers and CSV cache

Run with: python -m pytest Sampling_Plan_Map/_tests/test_data_adapter.py -v
"""

import math

import geopandas as gpd
import pandas as pd
import pytest
from shapely.geometry import box

from Sampling_Plan_Map.config import CONFIG
from Sampling_Plan_Map.config_types import AppConfig
from Sampling_Plan_Map.data_adapter import DataAdapter
from Sampling_Plan_Map.exceptions import DroppedRowWarning, InputValidationError
from Sampling_Plan_Map.models.data_models import SiteSource


# ============================================================================
# FIXTURES
# ============================================================================


@pytest.fixture
def adapter():
    """Adapter using the configured column aliases and sampling year 2025."""
    aliases = AppConfig.from_dict(CONFIG).column_aliases
    return DataAdapter(aliases=aliases, sampling_year=2025)


@pytest.fixture
def ambient_sheet():
    """Ambient sheet as exported: year-labeled run column, messy rows."""
    return pd.DataFrame(
        {
            "StationID": ["S1", "S2", None, None, "S5", "S6"],
            "Longitude": [-79.0, -79.1, None, -79.2, -79.3, -79.4],
            "Latitude": [37.0, 37.1, None, 37.2, 37.3, 37.4],
            "Program Code": ["AW", "AW", None, "TR", None, "TR"],
            "2025 Run": ["RUN1", "RUN1", None, "RUN2", "RUN2", "RUN2"],
            "Station Description": ["Upper", None, None, None, None, "Lower"],
        }
    )


# ============================================================================
# COLUMN NORMALIZATION
# ============================================================================


class TestColumnNormalization:
    """Test alias and year-prefix handling."""

    def test_aliases_and_year_prefix(self, adapter, ambient_sheet):
        df, year = adapter.normalize_columns(ambient_sheet, "site")
        assert year == 2025
        assert {"id", "longitude", "latitude", "category", "group", "name"} <= set(
            df.columns
        )

    def test_sampling_year_column_preferred(self, adapter):
        raw = pd.DataFrame(
            {
                "StationID": ["S1"],
                "2024 Run": ["OLD"],
                "2025 Run": ["NEW"],
            }
        )
        df, year = adapter.normalize_columns(raw, "site")
        assert year == 2025
        assert list(df["group"]) == ["NEW"]
        assert "2024 Run" not in df.columns

    def test_first_alias_wins_without_year(self, adapter):
        raw = pd.DataFrame({"StationID": ["S1"], "FDT_STA_ID": ["S9"]})
        df, _ = adapter.normalize_columns(raw, "site")
        assert list(df["id"]) == ["S1"]
        assert list(df.columns).count("id") == 1

    def test_matching_is_case_insensitive(self, adapter):
        raw = pd.DataFrame({" stationid ": ["S1"], "PROGRAM CODE": ["AW"]})
        df, _ = adapter.normalize_columns(raw, "site")
        assert {"id", "category"} <= set(df.columns)


# ============================================================================
# SITE NORMALIZATION
# ============================================================================


class TestNormalizeSites:
    """Test site table normalization."""

    def test_predicate_filtering(self, adapter, ambient_sheet):
        sites, warnings = adapter.normalize_sites(ambient_sheet, table="Ambient")
        assert [s.id for s in sites] == ["S1", "S2", "S6"]
        assert warnings == [
            DroppedRowWarning("Ambient", "all plan fields empty", 1),
            DroppedRowWarning("Ambient", "missing site id", 1),
            DroppedRowWarning("Ambient", "missing category or run", 1),
        ]

    def test_site_fields(self, adapter, ambient_sheet):
        sites, _ = adapter.normalize_sites(
            ambient_sheet, table="Ambient", source=SiteSource.AMBIENT
        )
        first = sites[0]
        assert first.group == "RUN1"
        assert first.category == "AW"
        assert first.year == 2025
        assert first.name == "Upper"
        assert sites[1].name is None
        assert first.longitude == pytest.approx(-79.0)

    def test_numeric_ids_are_text(self, adapter):
        raw = pd.DataFrame(
            {
                "StationID": [1234.0, 5678.0],
                "Longitude": [-79.0, -79.1],
                "Latitude": [37.0, 37.1],
                "Program Code": ["AW", "AW"],
                "Run": ["R", "R"],
            }
        )
        sites, _ = adapter.normalize_sites(raw)
        assert [s.id for s in sites] == ["1234", "5678"]

    def test_unparseable_coordinate_becomes_nan(self, adapter):
        raw = pd.DataFrame(
            {
                "StationID": ["S1"],
                "Longitude": ["n/a"],
                "Latitude": [37.0],
                "Program Code": ["AW"],
                "Run": ["R"],
            }
        )
        sites, _ = adapter.normalize_sites(raw)
        assert math.isnan(sites[0].longitude)
        assert not sites[0].has_finite_coordinates

    def test_defaults_for_uncategorized_tables(self, adapter):
        raw = pd.DataFrame(
            {"StationID": ["L1"], "Longitude": [-79.0], "Latitude": [37.0]}
        )
        sites, _ = adapter.normalize_sites(
            raw,
            table="Lakes",
            source=SiteSource.LAKES,
            default_category="Lake Stations",
            default_group="Lake Stations",
        )
        assert sites[0].category == "Lake Stations"
        assert sites[0].source is SiteSource.LAKES

    def test_missing_required_column(self, adapter):
        raw = pd.DataFrame(
            {"StationID": ["S1"], "Longitude": [-79.0], "Latitude": [37.0]}
        )
        with pytest.raises(InputValidationError) as exc_info:
            adapter.normalize_sites(raw, table="Ambient")
        assert exc_info.value.table == "Ambient"
        assert set(exc_info.value.columns) == {"category", "group"}

    def test_empty_table(self, adapter):
        with pytest.raises(InputValidationError):
            adapter.normalize_sites(pd.DataFrame(), table="Ambient")

    def test_no_usable_rows(self, adapter):
        raw = pd.DataFrame(
            {
                "StationID": [None],
                "Longitude": [-79.0],
                "Latitude": [37.0],
                "Program Code": ["AW"],
                "Run": ["R"],
            }
        )
        with pytest.raises(InputValidationError):
            adapter.normalize_sites(raw, table="Ambient")


# ============================================================================
# STATION LOOKUP
# ============================================================================


class TestStationCoordinates:
    """Test filling coordinates from the station table."""

    @pytest.fixture
    def stations(self):
        return pd.DataFrame(
            {
                "FDT_STA_ID": ["S1", "S2", "S2"],
                "LONG_DD": [-80.0, -80.5, -99.0],
                "LAT_DD": [36.0, 36.5, 99.0],
            }
        )

    def test_coordinates_filled_by_id(self, adapter, stations):
        raw = pd.DataFrame(
            {
                "StationID": ["S1", "S2", "S3"],
                "Program Code": ["AW", "AW", "TR"],
                "Run": ["R1", "R1", "R2"],
            }
        )
        sites, _ = adapter.normalize_sites(raw, stations=stations)
        by_id = {s.id: s for s in sites}
        assert by_id["S1"].location == (-80.0, 36.0)
        # First station row wins for duplicate ids
        assert by_id["S2"].location == (-80.5, 36.5)
        assert not by_id["S3"].has_finite_coordinates

    def test_existing_coordinates_kept(self, adapter, stations):
        raw = pd.DataFrame(
            {
                "StationID": ["S1", "S2"],
                "Longitude": [-81.0, None],
                "Latitude": [35.0, None],
            }
        )
        filled = adapter.attach_station_coordinates(
            raw.rename(
                columns={"StationID": "id", "Longitude": "longitude", "Latitude": "latitude"}
            ),
            stations,
        )
        assert list(filled["longitude"]) == [-81.0, -80.5]
        assert list(filled["latitude"]) == [35.0, 36.5]
        assert "_merge" not in filled.columns


# ============================================================================
# WATERSHEDS
# ============================================================================


class TestNormalizeWatersheds:
    """Test watershed polygon normalization."""

    def test_from_wkt_table(self, adapter):
        raw = pd.DataFrame(
            {
                "HUC12": ["020801030101", "020801030102", "020801030103"],
                "HU_12_NAME": ["Upper Creek", "Lower Creek", "No Shape"],
                "Basin": ["James", "James", "James"],
                "ASSESS_REG": ["BRRO", "PRO", "BRRO"],
                "WKT": [
                    "POLYGON ((-80 37, -79 37, -79 38, -80 38, -80 37))",
                    "POLYGON ((-79 37, -78 37, -78 38, -79 38, -79 37))",
                    None,
                ],
            }
        )
        watersheds, warnings = adapter.normalize_watersheds(raw)
        assert [w.id for w in watersheds] == ["020801030101", "020801030102"]
        assert watersheds[0].name == "Upper Creek"
        assert watersheds[0].basin == "James"
        assert watersheds[1].region_code == "PRO"
        assert watersheds[0].geometry.bounds == (-80.0, 37.0, -79.0, 38.0)
        assert warnings == [DroppedRowWarning("watersheds", "missing geometry", 1)]

    def test_geodataframe_reprojected(self, adapter):
        gdf = gpd.GeoDataFrame(
            {"HUC12": ["H1"], "NAME": ["Shed"], "ASSESS_REG": ["BRRO"]},
            geometry=[box(-8800000, 4480000, -8790000, 4490000)],
            crs="EPSG:3857",
        )
        [watershed], _ = adapter.normalize_watersheds(gdf)
        minx, miny, maxx, maxy = watershed.geometry.bounds
        assert -80.0 < minx < maxx < -78.0
        assert 36.0 < miny < maxy < 38.0
        assert watershed.basin == ""

    def test_missing_region_column(self, adapter):
        raw = pd.DataFrame(
            {"HUC12": ["H1"], "WKT": ["POLYGON ((0 0, 1 0, 1 1, 0 0))"]}
        )
        with pytest.raises(InputValidationError) as exc_info:
            adapter.normalize_watersheds(raw)
        assert exc_info.value.columns == ("region_code",)

    def test_missing_geometry_column(self, adapter):
        with pytest.raises(InputValidationError):
            adapter.normalize_watersheds(
                pd.DataFrame({"HUC12": ["H1"], "ASSESS_REG": ["BRRO"]})
            )


# ============================================================================
# READERS AND CACHE
# ============================================================================


class TestReadersAndCache:
    """Test file readers and the normalized CSV cache."""

    def test_read_table_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            DataAdapter.read_table(tmp_path / "missing.csv")

    def test_read_table_strips_columns(self, tmp_path):
        path = tmp_path / "stations.csv"
        path.write_text(" StationID ,Longitude\nS1,-79.0\n", encoding="utf-8")
        df = DataAdapter.read_table(path)
        assert list(df.columns) == ["StationID", "Longitude"]

    def test_cache_disabled_without_dir(self, adapter):
        assert adapter.cache_file("Ambient", "0123abcd") is None
        assert adapter.read_cached_sites("Ambient", "0123abcd") is None

    def test_load_sites_writes_and_reuses_cache(
        self, tmp_path, ambient_sheet, monkeypatch
    ):
        aliases = AppConfig.from_dict(CONFIG).column_aliases
        adapter = DataAdapter(aliases, sampling_year=2025, cache_dir=tmp_path / "cache")
        source = tmp_path / "ambient.csv"
        ambient_sheet.to_csv(source, index=False)

        sites, warnings = adapter.load_sites(source)
        assert len(warnings) == 3
        fingerprint = adapter.sites_fingerprint(source)
        assert adapter.cache_file("ambient", fingerprint).exists()

        # Unchanged source: second load must come from the cache
        def fail_read(*args, **kwargs):
            raise AssertionError("source table read on a cache hit")

        monkeypatch.setattr(DataAdapter, "read_table", staticmethod(fail_read))
        cached, cached_warnings = adapter.load_sites(source)
        assert [s.id for s in cached] == [s.id for s in sites]
        assert [s.group for s in cached] == ["RUN1", "RUN1", "RUN2"]
        assert [s.name for s in cached] == ["Upper", None, "Lower"]
        assert cached[0].year == 2025
        assert cached[2].latitude == pytest.approx(37.4)
        assert cached_warnings == warnings

    def test_edited_source_misses_cache(self, tmp_path):
        adapter = DataAdapter(sampling_year=2025, cache_dir=tmp_path / "cache")
        source = tmp_path / "plan.csv"
        columns = {"longitude": -79.0, "latitude": 37.0, "category": "AW", "group": "R"}

        pd.DataFrame([{"id": "a", **columns}]).to_csv(source, index=False)
        first, _ = adapter.load_sites(source)

        pd.DataFrame([{"id": "a", **columns}, {"id": "b", **columns}]).to_csv(
            source, index=False
        )
        second, _ = adapter.load_sites(source)

        assert [s.id for s in first] == ["a"]
        assert [s.id for s in second] == ["a", "b"]

    def test_fingerprint_covers_stations_and_sheet(self, tmp_path, ambient_sheet):
        adapter = DataAdapter(sampling_year=2025, cache_dir=tmp_path / "cache")
        source = tmp_path / "ambient.csv"
        ambient_sheet.to_csv(source, index=False)
        stations = pd.DataFrame({"id": ["S1"], "longitude": [-79.0], "latitude": [37.0]})

        base = adapter.sites_fingerprint(source)
        assert adapter.sites_fingerprint(source) == base
        assert adapter.sites_fingerprint(source, stations=stations) != base
        assert adapter.sites_fingerprint(source, sheet_name="Lakes") != base
