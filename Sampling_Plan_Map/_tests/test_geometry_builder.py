"""
Unit tests for the run geometry builder.

Tests:
1. Hull covers every member site; interior points are not vertices
2. Collinear boundary points stay hull vertices
3. Degenerate runs (coincident / collinear / single site)
4. Non-finite coordinates (dropped, or fatal beyond the allowed fraction)
5. Run order, representative category and warning records
6. GeoDataFrame conversion

Run with: python -m pytest Sampling_Plan_Map/_tests/test_geometry_builder.py -v
"""

import math

import pytest
from shapely.geometry import Point

from Sampling_Plan_Map.exceptions import (
    DegenerateGroupWarning,
    InputValidationError,
    NonFiniteCoordinateWarning,
)
from Sampling_Plan_Map.geometry_builder import (
    are_collinear,
    build_run_polygons,
    collect_geometry_warnings,
    convex_hull_vertices,
    group_sites,
    run_polygons_to_geodataframe,
    sites_to_geodataframe,
)
from Sampling_Plan_Map.models.data_models import Site


def make_site(site_id, lon, lat, group="RUN1", category="AW"):
    return Site(
        id=site_id, longitude=lon, latitude=lat, category=category, group=group
    )


# ============================================================================
# FIXTURES
# ============================================================================


@pytest.fixture
def square_run():
    """Square corners, one edge midpoint and one interior point."""
    return [
        make_site("S1", 0.0, 0.0),
        make_site("S2", 2.0, 0.0),
        make_site("S3", 2.0, 2.0),
        make_site("S4", 0.0, 2.0),
        make_site("EDGE", 1.0, 0.0),
        make_site("MID", 1.0, 1.0),
    ]


# ============================================================================
# HULL PRIMITIVES
# ============================================================================


class TestHullPrimitives:
    """Test the planar hull helpers."""

    def test_collinear_boundary_point_kept(self):
        pts = [(0.0, 0.0), (2.0, 0.0), (2.0, 2.0), (0.0, 2.0), (1.0, 0.0)]
        hull = convex_hull_vertices(pts)
        assert (1.0, 0.0) in hull
        assert len(hull) == 5

    def test_interior_point_and_duplicates_excluded(self):
        pts = [(0.0, 0.0), (2.0, 0.0), (0.0, 2.0), (0.5, 0.5), (0.0, 0.0)]
        hull = convex_hull_vertices(pts)
        assert (0.5, 0.5) not in hull
        assert len(hull) == 3

    def test_vertical_edge_points_kept(self):
        pts = [(0.0, 0.0), (0.0, 1.0), (0.0, 2.0), (2.0, 0.0), (2.0, 2.0)]
        hull = convex_hull_vertices(pts)
        assert (0.0, 1.0) in hull
        assert len(hull) == 5

    def test_hull_is_counter_clockwise(self):
        hull = convex_hull_vertices([(0.0, 0.0), (1.0, 0.0), (0.0, 1.0)])
        area2 = sum(
            hull[i][0] * hull[(i + 1) % 3][1] - hull[(i + 1) % 3][0] * hull[i][1]
            for i in range(3)
        )
        assert area2 > 0

    def test_are_collinear(self):
        assert are_collinear([(0.0, 0.0), (1.0, 1.0), (2.0, 2.0)])
        assert not are_collinear([(0.0, 0.0), (1.0, 1.0), (2.0, 0.0)])

    def test_are_collinear_decimal_degrees(self):
        # Not exact in binary floating point
        assert are_collinear([(-77.1, 37.1), (-77.2, 37.2), (-77.3, 37.3)])
        assert not are_collinear([(-77.1, 37.1), (-77.2, 37.2), (-77.3, 37.31)])

    def test_decimal_boundary_point_kept(self):
        pts = [(-77.3, 37.3), (-77.2, 37.2), (-77.1, 37.1), (-77.1, 37.3)]
        hull = convex_hull_vertices(pts)
        assert (-77.2, 37.2) in hull
        assert len(hull) == 4


# ============================================================================
# RUN POLYGONS
# ============================================================================


class TestBuildRunPolygons:
    """Test RunPolygon construction."""

    def test_hull_covers_every_site(self, square_run):
        [rp] = build_run_polygons(square_run)
        assert not rp.degenerate
        for site in square_run:
            assert rp.hull.covers(Point(site.longitude, site.latitude))

    def test_hull_vertices(self, square_run):
        [rp] = build_run_polygons(square_run)
        vertices = set(rp.hull.exterior.coords)
        assert (1.0, 0.0) in vertices
        assert (1.0, 1.0) not in vertices
        assert rp.hull.area == pytest.approx(4.0)

    def test_members_keep_duplicates(self):
        sites = [
            make_site("A", 0.0, 0.0),
            make_site("A", 0.0, 0.0),
            make_site("B", 1.0, 0.0),
            make_site("C", 0.0, 1.0),
        ]
        [rp] = build_run_polygons(sites)
        assert rp.member_site_ids == ("A", "A", "B", "C")
        assert rp.member_count == 4
        assert rp.distinct_location_count == 3
        assert not rp.degenerate

    def test_two_distinct_locations_is_degenerate(self):
        sites = [
            make_site("A", 0.0, 0.0),
            make_site("B", 0.0, 0.0),
            make_site("C", 1.0, 1.0),
        ]
        [rp] = build_run_polygons(sites)
        assert rp.degenerate
        assert rp.hull.is_empty
        assert rp.distinct_location_count == 2
        assert not rp.collinear

    def test_collinear_is_degenerate(self):
        sites = [make_site(f"S{i}", float(i), float(i)) for i in range(4)]
        [rp] = build_run_polygons(sites)
        assert rp.degenerate
        assert rp.collinear
        assert rp.hull.is_empty

    def test_collinear_decimal_coordinates_is_degenerate(self):
        sites = [
            make_site("A", -77.1, 37.1),
            make_site("B", -77.2, 37.2),
            make_site("C", -77.3, 37.3),
        ]
        [rp] = build_run_polygons(sites)
        assert rp.degenerate
        assert rp.collinear
        assert rp.hull.is_empty

    def test_single_site_is_degenerate(self):
        [rp] = build_run_polygons([make_site("ONLY", -79.0, 37.0)])
        assert rp.degenerate
        assert rp.member_site_ids == ("ONLY",)

    def test_run_order_is_first_seen(self):
        sites = [
            make_site("1", 0.0, 0.0, group="RUN_B"),
            make_site("2", 0.0, 0.0, group="RUN_A"),
            make_site("3", 1.0, 0.0, group="RUN_B"),
        ]
        assert list(group_sites(sites)) == ["RUN_B", "RUN_A"]
        assert [rp.group_id for rp in build_run_polygons(sites)] == ["RUN_B", "RUN_A"]

    def test_representative_category_is_first_member(self):
        sites = [
            make_site("1", 0.0, 0.0, category="TR"),
            make_site("2", 1.0, 0.0, category="AW"),
            make_site("3", 0.0, 1.0, category="AW"),
        ]
        [rp] = build_run_polygons(sites)
        assert rp.representative_category == "TR"


# ============================================================================
# NON-FINITE COORDINATES
# ============================================================================


class TestNonFiniteCoordinates:
    """Test handling of NaN / inf coordinates."""

    def test_non_finite_site_dropped_from_hull(self):
        sites = [
            make_site("S1", 0.0, 0.0),
            make_site("S2", 1.0, 0.0),
            make_site("S3", 0.0, 1.0),
            make_site("BAD", math.nan, 1.0),
        ]
        [rp] = build_run_polygons(sites)
        assert not rp.degenerate
        assert rp.dropped_site_ids == ("BAD",)
        assert "BAD" in rp.member_site_ids

        warnings = collect_geometry_warnings([rp])
        assert warnings == [NonFiniteCoordinateWarning("BAD", "RUN1")]

    def test_too_many_non_finite_raises(self):
        sites = [
            make_site("S1", 0.0, 0.0),
            make_site("BAD1", math.inf, 0.0),
            make_site("BAD2", 0.0, math.nan),
        ]
        with pytest.raises(InputValidationError) as exc_info:
            build_run_polygons(sites, max_invalid_fraction=0.5)
        assert "RUN1" in str(exc_info.value)
        assert exc_info.value.columns == ("longitude", "latitude")

    def test_fraction_limit_is_inclusive(self):
        sites = [make_site("S1", 0.0, 0.0), make_site("BAD", math.nan, 0.0)]
        [rp] = build_run_polygons(sites, max_invalid_fraction=0.5)
        assert rp.degenerate
        assert rp.dropped_site_ids == ("BAD",)


# ============================================================================
# WARNINGS AND CONVERSION
# ============================================================================


class TestWarningsAndConversion:
    """Test warning records and GeoDataFrame conversion."""

    def test_degenerate_warning_in_run_order(self):
        sites = [
            make_site("A1", 0.0, 0.0, group="RUN_A"),
            make_site("B1", 0.0, 0.0, group="RUN_B"),
            make_site("B2", 1.0, 0.0, group="RUN_B"),
            make_site("B3", 0.0, 1.0, group="RUN_B"),
            make_site("C1", 0.0, 0.0, group="RUN_C"),
            make_site("C2", 1.0, 1.0, group="RUN_C"),
            make_site("C3", 2.0, 2.0, group="RUN_C"),
        ]
        warnings = collect_geometry_warnings(build_run_polygons(sites))
        assert warnings == [
            DegenerateGroupWarning("RUN_A", 1, False),
            DegenerateGroupWarning("RUN_C", 3, True),
        ]
        assert "collinear" in warnings[1].message

    def test_sites_to_geodataframe_skips_non_finite(self):
        sites = [make_site("S1", -79.0, 37.0), make_site("BAD", math.nan, 37.0)]
        gdf = sites_to_geodataframe(sites)
        assert list(gdf["id"]) == ["S1"]
        assert gdf.crs.to_string() == "EPSG:4326"
        assert gdf.geometry.iloc[0].equals(Point(-79.0, 37.0))

    def test_sites_to_geodataframe_empty(self):
        gdf = sites_to_geodataframe([])
        assert gdf.empty
        assert "category" in gdf.columns

    def test_run_polygons_to_geodataframe_excludes_degenerate(self, square_run):
        sites = square_run + [make_site("LONE", 5.0, 5.0, group="RUN2")]
        gdf = run_polygons_to_geodataframe(build_run_polygons(sites))
        assert list(gdf["group_id"]) == ["RUN1"]
        assert list(gdf["n_sites"]) == [6]
