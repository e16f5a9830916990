"""The classes to save the results for functional PCA"""

# Authors: Ching-Chuan Chen
# SPDX-License-Identifier: MIT
from dataclasses import dataclass

import numpy as np

from specfda.fdata import FunctionalObject


@dataclass(frozen=True)
class PCAResult:
    """Functional principal components of a set of curves.

    Attributes
    ----------
    harmonics : FunctionalObject
        K' principal component functions, orthonormal under the basis inner
        product ``W`` for any penalty weight.
    eigenvalues : np.ndarray of shape (K',)
        Variance captured by each component, non-increasing.
    variance_explained : np.ndarray of shape (K',)
        Fraction of the total variance per component.
    cumulative_variance_explained : np.ndarray of shape (K',)
    scores : np.ndarray of shape (N, K')
        Projections of the centered curves on the harmonics.
    mean : FunctionalObject
        Mean curve (one row).
    penalty_weight : float
    penalty_order : int
    """

    harmonics: FunctionalObject
    eigenvalues: np.ndarray
    variance_explained: np.ndarray
    cumulative_variance_explained: np.ndarray
    scores: np.ndarray
    mean: FunctionalObject
    penalty_weight: float = 0.0
    penalty_order: int = 2

    def __post_init__(self) -> None:
        for arr in (self.eigenvalues, self.variance_explained, self.cumulative_variance_explained, self.scores):
            arr.setflags(write=False)

    @property
    def n_components(self) -> int:
        return self.harmonics.n_curves
