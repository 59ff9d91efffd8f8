"""
Typed data models for the sampling plan pipeline.

Architectural Overview:
=======================
This module contains the immutable dataclasses that flow through the core
pipeline instead of raw DataFrame rows. Sites and watersheds arrive from the
DataAdapter already normalized; RunPolygons are derived once per pipeline
run and never mutated; the ColorScale is built once and passed explicitly to
every layer that needs category colors.

Key Interactions:
-----------------
- Input: DataAdapter creates Site / WatershedPolygon instances
- Derived: GeometryBuilder creates RunPolygon instances from Sites
- Shared: CategoryColorizer creates the ColorScale used by LayerComposer
- Output: as_dict() methods provide plain-dict views for JSON export

Data Flow:
----------
1. Site rows → GeometryBuilder groups by run → RunPolygon per run
2. Distinct categories (first-seen order) → ColorScale
3. RunPolygon + Sites + WatershedPolygon + ColorScale → LayerComposer
"""

import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional, Tuple

from shapely.geometry import Point, Polygon
from shapely.geometry.base import BaseGeometry


# ═══════════════════════════════════════════════════════════════════════════
# 🏷️ ENUMS SECTION
# ═══════════════════════════════════════════════════════════════════════════


class SiteSource(Enum):
    """Which sampling category table a site came from.

    MODIFICATION POINT: Add new sampling categories here
    """

    AMBIENT = "ambient"
    HF_BACTERIA = "hf_bacteria"
    LAKES = "lakes"

    @classmethod
    def from_string(cls, s: str) -> "SiteSource":
        """Convert string to SiteSource, with fallback to AMBIENT.

        Args:
            s: String like "ambient", "hf_bacteria", "lakes"

        Returns:
            Matching SiteSource enum member, or AMBIENT if not found
        """
        for member in cls:
            if member.value == s:
                return member
        return cls.AMBIENT


# ═══════════════════════════════════════════════════════════════════════════
# 📍 SITE DATACLASS SECTION
# ═══════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True)
class Site:
    """One monitoring site scheduled in the sampling plan.

    Coordinates are WGS84 longitude/latitude. They may be non-finite when the
    source row had a bad value; such sites are kept so GeometryBuilder can
    report them, but they never contribute to a hull or a map marker.

    Usage Examples:
    ---------------
    ```python
    site = Site(id="2-JMS279.41", longitude=-77.43, latitude=37.53,
                category="AW", group="RUN1", year=2025)
    site.point        # shapely Point(-77.43, 37.53)
    site.location     # (-77.43, 37.53) for exact-match deduplication
    ```
    """

    id: str
    longitude: float
    latitude: float
    category: str
    group: str
    year: Optional[int] = None
    name: Optional[str] = None
    source: SiteSource = SiteSource.AMBIENT

    @property
    def has_finite_coordinates(self) -> bool:
        """True when both longitude and latitude are finite numbers."""
        return math.isfinite(self.longitude) and math.isfinite(self.latitude)

    @property
    def location(self) -> Tuple[float, float]:
        """Exact (longitude, latitude) pair used for coincident-point checks."""
        return (self.longitude, self.latitude)

    @property
    def point(self) -> Point:
        """Point geometry of the site."""
        return Point(self.longitude, self.latitude)

    @property
    def label(self) -> str:
        """Short text used for hover labels and search results."""
        if self.name:
            return f"{self.id} {self.name}"
        return self.id

    def as_dict(self) -> Dict[str, Any]:
        """Convert to dict for DataFrame construction and JSON export."""
        return {
            "id": self.id,
            "longitude": self.longitude,
            "latitude": self.latitude,
            "category": self.category,
            "group": self.group,
            "year": self.year,
            "name": self.name,
            "source": self.source.value,
        }

    @classmethod
    def from_dict(cls, d: Mapping[str, Any]) -> "Site":
        """Create Site from a canonical-schema mapping.

        Raises:
            KeyError: If id, longitude, latitude, category or group are missing
        """
        year = d.get("year")
        name = d.get("name")
        source = d.get("source", SiteSource.AMBIENT)
        if not isinstance(source, SiteSource):
            source = SiteSource.from_string(str(source))
        return cls(
            id=str(d["id"]),
            longitude=_as_float(d["longitude"]),
            latitude=_as_float(d["latitude"]),
            category=str(d["category"]),
            group=str(d["group"]),
            year=int(year) if year is not None and not _is_missing(year) else None,
            name=str(name) if name is not None and not _is_missing(name) else None,
            source=source,
        )


def _is_missing(value: Any) -> bool:
    return isinstance(value, float) and math.isnan(value)


def _as_float(value: Any) -> float:
    """Coerce to float, mapping unparseable values to NaN."""
    try:
        return float(value)
    except (TypeError, ValueError):
        return math.nan


# ═══════════════════════════════════════════════════════════════════════════
# 🗺️ WATERSHED DATACLASS SECTION
# ═══════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True)
class WatershedPolygon:
    """Externally supplied watershed boundary, keyed by HUC code."""

    id: str
    name: str
    basin: str
    region_code: str
    geometry: BaseGeometry

    def as_dict(self) -> Dict[str, Any]:
        """Attribute dict (geometry as WKT)."""
        return {
            "id": self.id,
            "name": self.name,
            "basin": self.basin,
            "region_code": self.region_code,
            "geometry": self.geometry.wkt,
        }


# ═══════════════════════════════════════════════════════════════════════════
# 🔷 RUN POLYGON DATACLASS SECTION
# ═══════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True)
class RunPolygon:
    """Convex hull of one run's sites.

    Key Design Decision:
    --------------------
    A run with fewer than 3 distinct locations, or whose locations are all
    collinear, gets degenerate=True and an empty hull. LayerComposer leaves
    it out of the polygon layer while its sites still render as points.

    representative_category is the category of the run's first member. Mixed
    category runs are not majority-voted.
    """

    group_id: str
    member_site_ids: Tuple[str, ...]
    hull: Polygon
    representative_category: str
    degenerate: bool = False
    distinct_location_count: int = 0
    collinear: bool = False
    dropped_site_ids: Tuple[str, ...] = field(default_factory=tuple)

    @property
    def member_count(self) -> int:
        """Number of member sites (duplicates included)."""
        return len(self.member_site_ids)

    def as_dict(self) -> Dict[str, Any]:
        """Convert to dict for JSON export."""
        return {
            "group_id": self.group_id,
            "member_site_ids": list(self.member_site_ids),
            "hull": None if self.hull.is_empty else self.hull.wkt,
            "representative_category": self.representative_category,
            "degenerate": self.degenerate,
            "distinct_location_count": self.distinct_location_count,
            "collinear": self.collinear,
            "dropped_site_ids": list(self.dropped_site_ids),
        }


# ═══════════════════════════════════════════════════════════════════════════
# 🎨 COLOR SCALE DATACLASS SECTION
# ═══════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True)
class ColorScale:
    """Category → color assignment.

    The i-th domain value gets palette[i % len(palette)], so the mapping
    depends only on domain order and palette. Two scales built from the same
    ordered domain agree on every color.
    """

    domain: Tuple[str, ...]
    palette: Tuple[str, ...]
    unknown_color: str = "#808080"

    def __post_init__(self) -> None:
        if not self.palette:
            raise ValueError("ColorScale palette cannot be empty")
        if len(set(self.domain)) != len(self.domain):
            raise ValueError("ColorScale domain values must be distinct")

    @property
    def mapping(self) -> Dict[str, str]:
        """Category → hex color for every domain value."""
        n = len(self.palette)
        return {value: self.palette[i % n] for i, value in enumerate(self.domain)}

    def color_for(self, category: Optional[str]) -> str:
        """Color of a category, or unknown_color if outside the domain."""
        if category is None:
            return self.unknown_color
        return self.mapping.get(category, self.unknown_color)

    def items(self) -> List[Tuple[str, str]]:
        """(category, color) pairs in domain order, for legends."""
        mapping = self.mapping
        return [(value, mapping[value]) for value in self.domain]

    def as_dict(self) -> Dict[str, Any]:
        """Convert to dict for JSON export."""
        return {
            "domain": list(self.domain),
            "palette": list(self.palette),
            "mapping": self.mapping,
        }


# ═══════════════════════════════════════════════════════════════════════════
# 🔄 BATCH CONVERSION UTILITIES SECTION
# ═══════════════════════════════════════════════════════════════════════════


def sites_from_dicts(dicts: List[Mapping[str, Any]]) -> List[Site]:
    """Convert canonical-schema dicts (e.g. DataFrame records) to Sites.

    Use at system boundaries (file I/O, cached CSV tables).
    """
    return [Site.from_dict(d) for d in dicts]


def sites_to_dicts(sites: List[Site]) -> List[Dict[str, Any]]:
    """Convert Sites to dicts for DataFrame construction or JSON export."""
    return [site.as_dict() for site in sites]
