#!/usr/bin/env python3
"""
Category Colorizer

ARCHITECTURAL OVERVIEW:
=======================
Responsibility: Build the single ColorScale shared by every category-colored
layer and the legend.

The palette samples `size` evenly spaced hues around the HUSL hue circle
(a perceptually uniform, cyclic form of CIELUV) starting at `hue_start`, with
saturation stepped between the two bounds and a fixed lightness. The domain
is the distinct category values in first-seen order. Both are pure functions
of their inputs, so separately built scales for the same ordered domain
assign identical colors.

Categories beyond the palette size reuse colors cyclically.

Dependencies:
- numpy (hue/saturation sampling)
- seaborn (HUSL -> RGB conversion)
- matplotlib (RGB -> hex)
"""

import logging
from typing import Hashable, Iterable, List, Optional, Sequence, Tuple

import numpy as np
import seaborn as sns
from matplotlib.colors import to_hex

from Sampling_Plan_Map.config_types import PaletteConfig
from Sampling_Plan_Map.models.data_models import ColorScale

logger = logging.getLogger(__name__)


def distinct_in_order(values: Iterable[Hashable]) -> List[Hashable]:
    """Distinct values in first-seen order (not sorted)."""
    return list(dict.fromkeys(values))


def generate_palette(
    palette_size: int, config: Optional[PaletteConfig] = None
) -> Tuple[str, ...]:
    """
    Evenly sample the HUSL hue circle.

    Args:
        palette_size: Number of colors
        config: Hue start, saturation bounds and lightness (defaults if None)

    Returns:
        Tuple of hex colors, length palette_size
    """
    if palette_size < 1:
        raise ValueError(f"palette_size must be >= 1, got {palette_size}")
    config = config or PaletteConfig()

    # endpoint=False: the circle wraps, so hue_start + 360 would repeat the first color
    hues = config.hue_start + np.linspace(0.0, 360.0, palette_size, endpoint=False)
    if palette_size == 1:
        saturations = np.array([config.saturation_high])
    else:
        saturations = np.linspace(
            config.saturation_low, config.saturation_high, palette_size
        )

    # seaborn takes hue as a fraction of the circle, saturation and lightness in [0, 1]
    return tuple(
        to_hex(
            sns.husl_palette(
                1, h=(h % 360.0) / 360.0, s=s / 100.0, l=config.lightness / 100.0
            )[0]
        )
        for h, s in zip(hues, saturations)
    )


def build_scale(
    categories: Sequence[str],
    palette_size: int,
    config: Optional[PaletteConfig] = None,
) -> ColorScale:
    """
    Build the category color scale.

    Args:
        categories: Category values in data order (duplicates allowed; the
            domain keeps the first occurrence of each)
        palette_size: Number of palette colors
        config: Palette settings (defaults if None)

    Returns:
        ColorScale whose i-th domain value gets palette[i % palette_size]
    """
    domain = tuple(str(c) for c in distinct_in_order(categories))
    palette = generate_palette(palette_size, config)

    if len(domain) > palette_size:
        logger.warning(
            f"{len(domain)} categories but only {palette_size} palette colors; "
            "colors will repeat"
        )

    return ColorScale(domain=domain, palette=palette)
