"""
Error taxonomy and non-fatal warning records.

Fatal problems raise an exception derived from ValueError and abort map
construction before a MapModel exists. Per-row anomalies are recorded as
frozen warning records that travel back to the caller with the finished
MapModel; they are never raised.
"""

from dataclasses import dataclass
from typing import Optional, Sequence, Tuple


# ═══════════════════════════════════════════════════════════════════════════
# ❌ FATAL ERRORS
# ═══════════════════════════════════════════════════════════════════════════


class InputValidationError(ValueError):
    """A required table or column is missing, empty or unusable.

    Attributes:
        table: Name of the offending input table
        columns: Required columns that were missing (empty if not a column problem)
    """

    def __init__(
        self, message: str, table: str = "", columns: Sequence[str] = ()
    ) -> None:
        super().__init__(message)
        self.table = table
        self.columns: Tuple[str, ...] = tuple(columns)


class RegionFilterEmptyError(ValueError):
    """The region filter matched no watershed polygons."""

    def __init__(self, region_code: str, available: Sequence[str] = ()) -> None:
        self.region_code = region_code
        self.available: Tuple[str, ...] = tuple(available)
        message = f"Region filter '{region_code}' matched no watersheds"
        if self.available:
            message += f" (available regions: {', '.join(self.available)})"
        super().__init__(message)


# ═══════════════════════════════════════════════════════════════════════════
# ⚠️ NON-FATAL WARNING RECORDS
# ═══════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True)
class DegenerateGroupWarning:
    """A run whose sites cannot form a polygon.

    The run is left out of the polygon layer; its sites stay on the map.
    """

    group_id: str
    distinct_locations: int
    collinear: bool = False

    @property
    def message(self) -> str:
        if self.collinear:
            reason = f"all {self.distinct_locations} locations are collinear"
        else:
            reason = f"only {self.distinct_locations} distinct location(s)"
        return f"Run '{self.group_id}' has no polygon: {reason}"


@dataclass(frozen=True)
class NonFiniteCoordinateWarning:
    """A site left out of the map because of a bad coordinate."""

    site_id: str
    group_id: Optional[str] = None

    @property
    def message(self) -> str:
        where = f" in run '{self.group_id}'" if self.group_id else ""
        return f"Site '{self.site_id}'{where} has a non-finite coordinate and was skipped"


@dataclass(frozen=True)
class DroppedRowWarning:
    """Rows removed from an input table by a filtering predicate."""

    table: str
    reason: str
    count: int

    @property
    def message(self) -> str:
        return f"{self.count} row(s) dropped from '{self.table}': {self.reason}"
