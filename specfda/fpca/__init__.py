"""Functional principal component analysis."""

# Authors: Ching-Chuan Chen
# SPDX-License-Identifier: MIT
from specfda.fpca.fpca_result_class import PCAResult
from specfda.fpca.functional_pca import FunctionalPCA, functional_pca, select_num_pcs_fve

__all__ = [
    "FunctionalPCA",
    "PCAResult",
    "functional_pca",
    "select_num_pcs_fve",
]
