"""The classes to save the results of penalized basis smoothing"""

# Authors: Ching-Chuan Chen
# SPDX-License-Identifier: MIT
from dataclasses import dataclass, fields

import numpy as np

from specfda.basis import Basis
from specfda.fdata import FunctionalObject


def _freeze_arrays(obj) -> None:
    for field in fields(obj):
        value = getattr(obj, field.name)
        if isinstance(value, np.ndarray):
            value.setflags(write=False)


@dataclass(frozen=True)
class SmoothingFit:
    """Penalized least-squares fit of N curves at a single smoothing parameter.

    Attributes
    ----------
    coefficients : np.ndarray of shape (n_curves, n_basis)
    gcv : np.ndarray of shape (n_curves,)
        Per-curve GCV score ``M * RSS_i / (M - df)^2`` (+inf when ``M <= df``).
    df : float
        Effective degrees of freedom, the trace of the hat matrix.
    rss : np.ndarray of shape (n_curves,)
        Per-curve residual sum of squares.
    lambda_ : float
    penalty_order : int
    hat_diagonal : np.ndarray of shape (n_points,)
    grid : np.ndarray of shape (n_points,)
    basis : Basis
    solver : {"cholesky", "symmetric", "lstsq"}
        Routine that solved the normal equations.
    """

    coefficients: np.ndarray
    gcv: np.ndarray
    df: float
    rss: np.ndarray
    lambda_: float
    penalty_order: int
    hat_diagonal: np.ndarray
    grid: np.ndarray
    basis: Basis
    solver: str = "cholesky"

    def __post_init__(self) -> None:
        _freeze_arrays(self)

    @property
    def fd(self) -> FunctionalObject:
        return FunctionalObject(self.coefficients, self.basis)

    @property
    def mean_gcv(self) -> float:
        return float(np.mean(self.gcv))


@dataclass(frozen=True)
class GcvSearchResult:
    """Outcome of a GCV search over smoothing-parameter candidates.

    Attributes
    ----------
    lambda_candidates : np.ndarray of shape (n_candidates,)
    gcv_scores : np.ndarray of shape (n_candidates,)
        Mean GCV per candidate; +inf for failed candidates.
    failed : np.ndarray of shape (n_candidates,)
        True where the fit raised a numerical error.
    best_lambda : float
    best_fit : SmoothingFit
        Refit at `best_lambda`.
    """

    lambda_candidates: np.ndarray
    gcv_scores: np.ndarray
    failed: np.ndarray
    best_lambda: float
    best_fit: SmoothingFit

    def __post_init__(self) -> None:
        _freeze_arrays(self)

    @property
    def best_index(self) -> int:
        return int(np.argmin(self.gcv_scores))
