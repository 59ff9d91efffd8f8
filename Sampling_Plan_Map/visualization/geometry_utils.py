#!/usr/bin/env python3
"""
Geometry Utility Functions

ARCHITECTURAL OVERVIEW:
=======================
Responsibility: Pure geometry and color computations for visualization.
No external dependencies on Plotly or HTML generation.

Key Functions:
1. Color conversions (hex to RGB, hex to rgba string)
2. Bounds manipulation (center calculation, expansion, zoom estimate)

Dependencies:
- numpy

Navigation Guide:
- Use VS Code outline (Ctrl+Shift+O) to jump between functions
"""

import math
from typing import Optional, Sequence, Tuple

import numpy as np


# ===========================================================================
# COLOR UTILITIES
# ===========================================================================


def hex_to_rgb(hex_color: str) -> Tuple[int, int, int]:
    """
    Convert hex color string to RGB tuple.

    Args:
        hex_color: Color string like "#FF5733" or "FF5733"

    Returns:
        Tuple of (R, G, B) integers 0-255
    """
    hex_color = hex_color.lstrip("#")
    return tuple(int(hex_color[i : i + 2], 16) for i in (0, 2, 4))


def hex_to_rgba(hex_color: str, alpha: float) -> str:
    """
    Convert hex color to a CSS/Plotly rgba() string.

    Args:
        hex_color: Color string like "#FF5733"
        alpha: Opacity 0-1

    Returns:
        String like "rgba(255, 87, 51, 0.35)"
    """
    r, g, b = hex_to_rgb(hex_color)
    return f"rgba({r}, {g}, {b}, {alpha})"


# ===========================================================================
# COORDINATE UTILITIES
# ===========================================================================


def bounds_to_center(
    bounds: Tuple[float, float, float, float],
) -> Tuple[float, float]:
    """
    Calculate center point from bounds.

    Args:
        bounds: (minx, miny, maxx, maxy)

    Returns:
        Tuple of (center_x, center_y)
    """
    center_x = (bounds[0] + bounds[2]) / 2
    center_y = (bounds[1] + bounds[3]) / 2
    return (center_x, center_y)


def expand_bounds(
    bounds: Tuple[float, float, float, float],
    factor: float = 0.1,
) -> Tuple[float, float, float, float]:
    """
    Expand bounds by a percentage factor.

    Args:
        bounds: (minx, miny, maxx, maxy)
        factor: Expansion factor (0.1 = 10% on each side)

    Returns:
        Expanded bounds tuple
    """
    minx, miny, maxx, maxy = bounds
    width = maxx - minx
    height = maxy - miny

    return (
        minx - width * factor,
        miny - height * factor,
        maxx + width * factor,
        maxy + height * factor,
    )


def union_bounds(
    all_bounds: Sequence[Tuple[float, float, float, float]],
) -> Optional[Tuple[float, float, float, float]]:
    """
    Smallest bounds covering every input bounds tuple.

    Args:
        all_bounds: Sequence of (minx, miny, maxx, maxy); NaN entries ignored

    Returns:
        Combined bounds, or None if nothing finite was given
    """
    finite = [b for b in all_bounds if all(math.isfinite(v) for v in b)]
    if not finite:
        return None
    arr = np.array(finite, dtype=float)
    return (
        float(arr[:, 0].min()),
        float(arr[:, 1].min()),
        float(arr[:, 2].max()),
        float(arr[:, 3].max()),
    )


def zoom_for_bounds(
    bounds: Tuple[float, float, float, float],
    default_zoom: float = 8.0,
) -> float:
    """
    Estimate a web-mercator zoom level that fits lon/lat bounds.

    Args:
        bounds: (min_lon, min_lat, max_lon, max_lat)
        default_zoom: Returned when the extent is a single point

    Returns:
        Zoom level between 1 and 16
    """
    span = max(bounds[2] - bounds[0], bounds[3] - bounds[1])
    if span <= 0:
        return default_zoom
    zoom = math.log2(360.0 / span)
    return float(min(16.0, max(1.0, round(zoom, 1))))
