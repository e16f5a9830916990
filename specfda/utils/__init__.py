"""Utilities to help with functional data analysis."""

# Authors: Ching-Chuan Chen
# SPDX-License-Identifier: MIT
from specfda.utils.linalg import get_eigen_analysis_results, solve_symmetric_system
from specfda.utils.quadrature import gauss_legendre_nodes, refine_breaks
from specfda.utils.utility import check_grid, check_sample_matrix, log_spaced_candidates

__all__ = [
    "check_grid",
    "check_sample_matrix",
    "gauss_legendre_nodes",
    "get_eigen_analysis_results",
    "log_spaced_candidates",
    "refine_breaks",
    "solve_symmetric_system",
]
