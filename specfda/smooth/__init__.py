"""Penalized basis smoothing and smoothing-parameter selection."""

# Authors: Ching-Chuan Chen
# SPDX-License-Identifier: MIT
from specfda.smooth.basis_smoother import BasisSmoother, select_smoothing_parameter, smooth_basis
from specfda.smooth.smoothing_result_class import GcvSearchResult, SmoothingFit

__all__ = [
    "BasisSmoother",
    "GcvSearchResult",
    "SmoothingFit",
    "select_smoothing_parameter",
    "smooth_basis",
]
