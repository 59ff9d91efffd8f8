"""
Sampling Plan Map

Turns a yearly field-sampling plan (sites grouped into runs and categories)
into a layered interactive map: watershed boundaries, run convex hulls and
category-colored site markers with legend and search.
"""

from Sampling_Plan_Map.config import CONFIG
from Sampling_Plan_Map.pipeline import (
    PipelineResult,
    SamplingPlanTables,
    build_sampling_plan_map,
)

__all__ = [
    "CONFIG",
    "PipelineResult",
    "SamplingPlanTables",
    "build_sampling_plan_map",
]
