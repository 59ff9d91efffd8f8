#!/usr/bin/env python3
"""
Run Geometry Builder

ARCHITECTURAL OVERVIEW:
=======================
Responsibility: Turn site records into geometry.
1. Site rows → point GeoDataFrame (EPSG:4326)
2. Sites grouped by run → one RunPolygon per run (convex hull or degenerate)

Key Rules:
- Runs keep first-seen order.
- Coincident points (exact coordinate match) count once for the hull but
  every site stays a member of its run.
- Hull vertices include points lying on the hull boundary between corners;
  interior points and duplicates are excluded.
- Fewer than 3 distinct locations, or all locations on one line, gives a
  degenerate RunPolygon with an empty hull.
- Sites with non-finite coordinates are left out of the hull and listed in
  RunPolygon.dropped_site_ids. If the dropped share of a run exceeds the
  configured fraction the whole input is rejected.

Dependencies:
- shapely (hull polygon, containment checks)
- geopandas (point / polygon GeoDataFrames)

Navigation Guide:
- Use VS Code outline (Ctrl+Shift+O) to jump between functions
"""

import logging
import math
from typing import Dict, List, Sequence, Tuple, Union

import geopandas as gpd
from shapely.geometry import Polygon

from Sampling_Plan_Map.exceptions import (
    DegenerateGroupWarning,
    InputValidationError,
    NonFiniteCoordinateWarning,
)
from Sampling_Plan_Map.models.data_models import RunPolygon, Site

logger = logging.getLogger(__name__)

CRS_WGS84 = "EPSG:4326"
COLLINEAR_TOLERANCE = 1e-9
SITE_COLUMNS = [
    "id", "longitude", "latitude", "category", "group", "year", "name", "source"
]

Coordinate = Tuple[float, float]
GeometryWarning = Union[DegenerateGroupWarning, NonFiniteCoordinateWarning]


# ═══════════════════════════════════════════════════════════════════════════
# 📐 PLANAR HULL PRIMITIVES
# ═══════════════════════════════════════════════════════════════════════════


def _cross(o: Coordinate, a: Coordinate, b: Coordinate) -> float:
    """Z component of (a - o) × (b - o); > 0 means a counter-clockwise turn."""
    return (a[0] - o[0]) * (b[1] - o[1]) - (a[1] - o[1]) * (b[0] - o[0])


def _turn(o: Coordinate, a: Coordinate, b: Coordinate) -> int:
    """
    Orientation of o → a → b: 1 counter-clockwise, -1 clockwise, 0 collinear.

    The cross product is compared against COLLINEAR_TOLERANCE times the
    product of both edge lengths, i.e. a bound on the sine of the turn angle.
    Decimal degrees such as 37.1 are not exact in binary, so three sites on
    one line rarely give an exact zero.
    """
    cross = _cross(o, a, b)
    tolerance = (
        COLLINEAR_TOLERANCE
        * math.hypot(a[0] - o[0], a[1] - o[1])
        * math.hypot(b[0] - o[0], b[1] - o[1])
    )
    if cross > tolerance:
        return 1
    if cross < -tolerance:
        return -1
    return 0


def are_collinear(points: Sequence[Coordinate]) -> bool:
    """True when every point lies on one line (within COLLINEAR_TOLERANCE)."""
    distinct = list(dict.fromkeys(points))
    if len(distinct) < 3:
        return True
    # Farthest point from the origin gives the best-conditioned direction
    origin = distinct[0]
    direction = max(
        distinct[1:], key=lambda p: math.hypot(p[0] - origin[0], p[1] - origin[1])
    )
    return all(_turn(origin, direction, p) == 0 for p in distinct[1:])


def convex_hull_vertices(points: Sequence[Coordinate]) -> List[Coordinate]:
    """
    Convex hull by Andrew's monotone chain, keeping collinear boundary points.

    Only a clockwise turn beyond COLLINEAR_TOLERANCE pops a vertex, so points
    lying on a hull edge stay in the ring. Duplicates are removed up front.
    Callers must reject collinear input first (see are_collinear); on such
    input the two chains would retrace the same segment.

    Args:
        points: (x, y) coordinates, at least 3 distinct and not collinear

    Returns:
        Hull vertices in counter-clockwise order, first vertex not repeated
    """
    pts = sorted(set(points))
    if len(pts) < 3:
        return pts

    lower: List[Coordinate] = []
    for p in pts:
        while len(lower) >= 2 and _turn(lower[-2], lower[-1], p) < 0:
            lower.pop()
        lower.append(p)

    upper: List[Coordinate] = []
    for p in reversed(pts):
        while len(upper) >= 2 and _turn(upper[-2], upper[-1], p) < 0:
            upper.pop()
        upper.append(p)

    # Last point of each chain is the first point of the other
    return lower[:-1] + upper[:-1]


# ═══════════════════════════════════════════════════════════════════════════
# 🔷 RUN POLYGONS
# ═══════════════════════════════════════════════════════════════════════════


def group_sites(sites: Sequence[Site]) -> Dict[str, List[Site]]:
    """Group sites by run, preserving first-seen run order and member order."""
    groups: Dict[str, List[Site]] = {}
    for site in sites:
        groups.setdefault(site.group, []).append(site)
    return groups


def _build_one_run(
    group_id: str,
    members: List[Site],
    max_invalid_fraction: float,
) -> RunPolygon:
    valid = [s for s in members if s.has_finite_coordinates]
    dropped = tuple(s.id for s in members if not s.has_finite_coordinates)

    if dropped and len(dropped) / len(members) > max_invalid_fraction:
        raise InputValidationError(
            f"Run '{group_id}': {len(dropped)} of {len(members)} sites have "
            f"non-finite coordinates (limit {max_invalid_fraction:.0%})",
            table="sites",
            columns=("longitude", "latitude"),
        )

    locations = list(dict.fromkeys(s.location for s in valid))
    collinear = len(locations) >= 3 and are_collinear(locations)

    if len(locations) < 3 or collinear:
        hull = Polygon()
        degenerate = True
    else:
        hull = Polygon(convex_hull_vertices(locations))
        degenerate = False

    return RunPolygon(
        group_id=group_id,
        member_site_ids=tuple(s.id for s in members),
        hull=hull,
        representative_category=members[0].category,
        degenerate=degenerate,
        distinct_location_count=len(locations),
        collinear=collinear,
        dropped_site_ids=dropped,
    )


def build_run_polygons(
    sites: Sequence[Site],
    max_invalid_fraction: float = 0.5,
) -> List[RunPolygon]:
    """
    Build one RunPolygon per run from its member sites.

    Args:
        sites: Normalized sites (any order; run order follows first appearance)
        max_invalid_fraction: Largest share of a run's sites that may have
            non-finite coordinates before the input is rejected

    Returns:
        RunPolygons in first-seen run order

    Raises:
        InputValidationError: If a run has too many non-finite coordinates
    """
    run_polygons = [
        _build_one_run(group_id, members, max_invalid_fraction)
        for group_id, members in group_sites(sites).items()
    ]

    n_degenerate = sum(1 for rp in run_polygons if rp.degenerate)
    logger.info(
        f"Built {len(run_polygons)} run polygons "
        f"({len(run_polygons) - n_degenerate} hulls, {n_degenerate} degenerate)"
    )
    return run_polygons


def collect_geometry_warnings(
    run_polygons: Sequence[RunPolygon],
) -> List[GeometryWarning]:
    """
    Turn RunPolygon metadata into warning records for the caller.

    Returns:
        NonFiniteCoordinateWarning per dropped site, then
        DegenerateGroupWarning per degenerate run, in run order
    """
    warnings: List[GeometryWarning] = []
    for rp in run_polygons:
        for site_id in rp.dropped_site_ids:
            warnings.append(NonFiniteCoordinateWarning(site_id, rp.group_id))
        if rp.degenerate:
            warnings.append(
                DegenerateGroupWarning(
                    rp.group_id, rp.distinct_location_count, rp.collinear
                )
            )
    return warnings


# ═══════════════════════════════════════════════════════════════════════════
# 🧭 GEODATAFRAME CONVERSION
# ═══════════════════════════════════════════════════════════════════════════


def sites_to_geodataframe(sites: Sequence[Site]) -> gpd.GeoDataFrame:
    """
    Point GeoDataFrame of the sites with finite coordinates.

    Args:
        sites: Normalized sites

    Returns:
        GeoDataFrame (EPSG:4326) with the canonical site columns
    """
    finite = [s for s in sites if s.has_finite_coordinates]
    if not finite:
        return gpd.GeoDataFrame(
            columns=SITE_COLUMNS + ["geometry"], geometry="geometry", crs=CRS_WGS84
        )
    return gpd.GeoDataFrame(
        [s.as_dict() for s in finite],
        columns=SITE_COLUMNS,
        geometry=[s.point for s in finite],
        crs=CRS_WGS84,
    )


def run_polygons_to_geodataframe(
    run_polygons: Sequence[RunPolygon],
) -> gpd.GeoDataFrame:
    """Polygon GeoDataFrame of the non-degenerate runs (EPSG:4326)."""
    rows = [rp for rp in run_polygons if not rp.degenerate]
    return gpd.GeoDataFrame(
        {
            "group_id": [rp.group_id for rp in rows],
            "category": [rp.representative_category for rp in rows],
            "n_sites": [rp.member_count for rp in rows],
        },
        geometry=[rp.hull for rp in rows],
        crs=CRS_WGS84,
    )
