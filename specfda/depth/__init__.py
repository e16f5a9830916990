"""Functional depth, median curves and depth-based outlier detection."""

# Authors: Ching-Chuan Chen
# SPDX-License-Identifier: MIT
from specfda.depth.band_depth import (
    DEPTH_METHODS,
    band_depth,
    combined_band_depth,
    depth_ordering,
    fd_depth,
    functional_depth,
    modified_band_depth,
)
from specfda.depth.depth_result_class import DepthResult, OutlierResult
from specfda.depth.outliers import depth_outliers

__all__ = [
    "DEPTH_METHODS",
    "DepthResult",
    "OutlierResult",
    "band_depth",
    "combined_band_depth",
    "depth_ordering",
    "depth_outliers",
    "fd_depth",
    "functional_depth",
    "modified_band_depth",
]
