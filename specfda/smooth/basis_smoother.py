"""Penalized basis smoothing of sampled curves with GCV smoothing-parameter selection."""

# Authors: Ching-Chuan Chen
# SPDX-License-Identifier: MIT
import logging
import math
import warnings
from typing import List, Optional, Tuple, Union

import numpy as np
from joblib import Parallel, delayed
from sklearn.base import BaseEstimator
from sklearn.utils.validation import check_array, check_is_fitted

from specfda.basis import Basis
from specfda.exceptions import ConfigurationError, NumericalError
from specfda.fdata import FunctionalObject
from specfda.smooth.smoothing_result_class import GcvSearchResult, SmoothingFit
from specfda.utils import check_grid, check_sample_matrix, log_spaced_candidates, solve_symmetric_system

logger = logging.getLogger(__name__)


def _check_lambda(lambda_: float) -> float:
    if isinstance(lambda_, bool) or not isinstance(lambda_, (int, float, np.integer, np.floating)):
        raise ConfigurationError(f"lambda_ must be a real number, got {lambda_!r}.")
    if not math.isfinite(lambda_) or lambda_ < 0:
        raise ConfigurationError(f"lambda_ must be finite and non-negative, got {lambda_!r}.")
    return float(lambda_)


def _check_lambda_candidates(lambda_candidates: Union[np.ndarray, List[float]]) -> np.ndarray:
    candidates = check_array(lambda_candidates, ensure_2d=False, dtype=np.float64)
    if candidates.ndim != 1 or candidates.size == 0:
        raise ConfigurationError(f"lambda_candidates must be a non-empty 1D array, got shape {candidates.shape}.")
    if np.any(candidates < 0):
        raise ConfigurationError("lambda_candidates must be non-negative.")
    if np.any(np.diff(candidates) <= 0):
        raise ConfigurationError("lambda_candidates must be strictly increasing.")
    return candidates


def _penalized_fit(phi: np.ndarray, samples: np.ndarray, penalty: np.ndarray, lambda_: float) -> Tuple[np.ndarray, np.ndarray, str]:
    """Solve ``(Φ'Φ + λR) C' = Φ'Y'`` and return the coefficients, hat diagonal and solver."""
    n_curves = samples.shape[0]
    system = phi.T @ phi + lambda_ * penalty
    # one solve for the coefficients and for (Φ'Φ + λR)^{-1} Φ' used by the hat matrix
    rhs = np.hstack([phi.T @ samples.T, phi.T])
    solution, solver = solve_symmetric_system(system, rhs)
    if not np.all(np.isfinite(solution)):
        raise NumericalError(f"Smoothing system at lambda={lambda_:.3e} produced non-finite coefficients.")
    coefficients = solution[:, :n_curves].T
    hat_diagonal = np.sum(phi * solution[:, n_curves:].T, axis=1)
    return coefficients, hat_diagonal, solver


def _gcv_scores(samples: np.ndarray, fitted: np.ndarray, df: float) -> Tuple[np.ndarray, np.ndarray]:
    n_points = samples.shape[1]
    rss = np.sum((samples - fitted) ** 2, axis=1)
    denominator = n_points - df
    if denominator <= 1e-8 * n_points:
        return rss, np.full(rss.shape, np.inf)
    return rss, n_points * rss / denominator**2


def _fit_at_lambda(
    grid: np.ndarray, samples: np.ndarray, basis: Basis, phi: np.ndarray, penalty: np.ndarray, lambda_: float, penalty_order: int
) -> SmoothingFit:
    coefficients, hat_diagonal, solver = _penalized_fit(phi, samples, penalty, lambda_)
    df = float(np.sum(hat_diagonal))
    rss, gcv = _gcv_scores(samples, coefficients @ phi.T, df)
    return SmoothingFit(
        coefficients=coefficients,
        gcv=gcv,
        df=df,
        rss=rss,
        lambda_=lambda_,
        penalty_order=penalty_order,
        hat_diagonal=hat_diagonal,
        grid=grid,
        basis=basis,
        solver=solver,
    )


def smooth_basis(
    grid: Union[np.ndarray, List[float]],
    samples: Union[np.ndarray, List[List[float]]],
    basis: Basis,
    lambda_: float = 0.0,
    penalty_order: int = 2,
) -> SmoothingFit:
    """
    Fit every curve by penalized least squares in a basis.

    Parameters
    ----------
    grid : array-like of shape (M,)
        Strictly increasing evaluation grid inside the basis range.
    samples : array-like of shape (N, M)
        Observed curves, one per row.
    basis : Basis
        Basis with K functions.
    lambda_ : float, default=0.0
        Non-negative smoothing parameter.
    penalty_order : int, default=2
        Derivative order of the roughness penalty.

    Returns
    -------
    SmoothingFit
        Coefficients, per-curve GCV and RSS, degrees of freedom and hat diagonal.

    Raises
    ------
    ConfigurationError
        If `lambda_` is negative, the grid is not increasing or the penalty
        order is unsupported.
    DimensionError
        If the samples are not a 2D matrix.
    DomainError
        If the sample width differs from the grid length or the grid leaves
        the basis range.
    NumericalError
        If the normal equations cannot be solved.

    Notes
    -----
    With ``A = Φ'Φ + λR`` the hat matrix is ``S = Φ A^{-1} Φ'`` and
    ``GCV_i = M * RSS_i / (M - tr S)^2``. All curves share ``A``, so the
    system is factored once.
    """
    grid = check_grid(grid)
    samples = check_sample_matrix(samples, grid)
    lambda_ = _check_lambda(lambda_)
    penalty = basis.penalty_matrix(penalty_order)
    phi = basis.evaluate(grid)
    fit = _fit_at_lambda(grid, samples, basis, phi, penalty, lambda_, penalty_order)
    logger.debug("Smoothed %d curves with lambda=%.3e (df=%.3f, solver=%s).", samples.shape[0], lambda_, fit.df, fit.solver)
    return fit


def _score_candidate(phi: np.ndarray, samples: np.ndarray, penalty: np.ndarray, lambda_: float) -> Tuple[float, Optional[str]]:
    try:
        coefficients, hat_diagonal, _ = _penalized_fit(phi, samples, penalty, lambda_)
    except NumericalError as e:
        return np.inf, str(e)
    _, gcv = _gcv_scores(samples, coefficients @ phi.T, float(np.sum(hat_diagonal)))
    return float(np.mean(gcv)), None


def select_smoothing_parameter(
    grid: Union[np.ndarray, List[float]],
    samples: Union[np.ndarray, List[List[float]]],
    basis: Basis,
    penalty_order: int = 2,
    log10_lambda_range: Tuple[float, float] = (-8.0, 4.0),
    log10_lambda_step: float = 0.5,
    lambda_candidates: Optional[Union[np.ndarray, List[float]]] = None,
    n_jobs: Optional[int] = None,
) -> GcvSearchResult:
    """
    Choose the smoothing parameter minimizing the mean GCV across curves.

    Parameters
    ----------
    grid : array-like of shape (M,)
    samples : array-like of shape (N, M)
    basis : Basis
    penalty_order : int, default=2
    log10_lambda_range : tuple of float, default=(-8.0, 4.0)
        Bounds of the log10-spaced candidate grid.
    log10_lambda_step : float, default=0.5
        Spacing of the candidate grid in log10 units.
    lambda_candidates : array-like, optional
        Strictly increasing, non-negative candidates replacing the log10 grid.
    n_jobs : int, optional
        Number of joblib workers; candidates are scored sequentially when None.

    Returns
    -------
    GcvSearchResult
        Scores for every candidate plus the refit at the best candidate.
        Ties resolve to the smallest candidate.

    Raises
    ------
    ConfigurationError
        If the candidate grid is invalid.
    NumericalError
        If every candidate fails or yields a non-finite score.

    Warns
    -----
    UserWarning
        When some candidates fail, or when the best candidate lies on the
        boundary of the candidate grid.
    """
    grid = check_grid(grid)
    samples = check_sample_matrix(samples, grid)
    if lambda_candidates is None:
        candidates = log_spaced_candidates(log10_lambda_range, log10_lambda_step)
    else:
        candidates = _check_lambda_candidates(lambda_candidates)
    penalty = basis.penalty_matrix(penalty_order)
    phi = basis.evaluate(grid)

    if n_jobs is None:
        outcomes = [_score_candidate(phi, samples, penalty, lam) for lam in candidates]
    else:
        outcomes = Parallel(n_jobs=n_jobs)(delayed(_score_candidate)(phi, samples, penalty, lam) for lam in candidates)

    gcv_scores = np.array([score for score, _ in outcomes], dtype=np.float64)
    failed = np.array([error is not None for _, error in outcomes], dtype=bool)
    if np.any(failed):
        warnings.warn(
            f"{int(failed.sum())} of {candidates.size} smoothing parameter candidates failed and were scored as +inf, "
            f"e.g. lambda={candidates[np.argmax(failed)]:.3e}: {outcomes[int(np.argmax(failed))][1]}"
        )
    if np.all(failed):
        raise NumericalError("Every smoothing parameter candidate failed; the smoothing problem cannot be solved.")
    if not np.any(np.isfinite(gcv_scores)):
        raise NumericalError("All GCV scores are non-finite. Check the basis size against the number of grid points.")

    best_index = int(np.argmin(gcv_scores))
    best_lambda = float(candidates[best_index])
    if candidates.size > 1 and best_index in (0, candidates.size - 1):
        warnings.warn(f"The selected smoothing parameter {best_lambda:.3e} lies on the boundary of the candidate grid; consider widening it.")
    logger.info("GCV selected lambda=%.3e (mean GCV=%.6g) among %d candidates.", best_lambda, gcv_scores[best_index], candidates.size)

    best_fit = _fit_at_lambda(grid, samples, basis, phi, penalty, best_lambda, penalty_order)
    return GcvSearchResult(
        lambda_candidates=candidates,
        gcv_scores=gcv_scores,
        failed=failed,
        best_lambda=best_lambda,
        best_fit=best_fit,
    )


class BasisSmoother(BaseEstimator):
    """
    Penalized basis smoother with optional GCV selection of the smoothing parameter.

    Parameters
    ----------
    basis : Basis
        Basis in which curves are represented.
    lambda_value : float, optional
        Fixed smoothing parameter. If None, it is selected by GCV.
    penalty_order : int, default=2
        Derivative order of the roughness penalty.
    log10_lambda_range : tuple of float, default=(-8.0, 4.0)
    log10_lambda_step : float, default=0.5
    lambda_candidates : array-like, optional
        Explicit candidates for GCV selection.
    n_jobs : int, optional
        joblib workers for GCV selection.

    Attributes
    ----------
    grid_ : np.ndarray of shape (M,)
    fit_result_ : SmoothingFit
    fd_ : FunctionalObject
        Smoothed training curves.
    lambda_ : float
        Selected/used smoothing parameter.
    lambda_selection_results_ : dict or None
        Candidates, GCV scores, failed flags and the chosen value; None when
        `lambda_value` is fixed.

    Examples
    --------
    >>> import numpy as np
    >>> from specfda.basis import BSplineBasis
    >>> from specfda.smooth import BasisSmoother
    >>> t = np.linspace(0.0, 1.0, 51)
    >>> y = np.sin(2 * np.pi * t)[None, :]
    >>> smoother = BasisSmoother(BSplineBasis((0.0, 1.0), n_basis=12), lambda_value=1e-6).fit(t, y)
    >>> bool(np.max(np.abs(smoother.fitted_values() - y)) < 1e-2)
    True
    """

    def __init__(
        self,
        basis: Basis,
        lambda_value: Optional[float] = None,
        penalty_order: int = 2,
        log10_lambda_range: Tuple[float, float] = (-8.0, 4.0),
        log10_lambda_step: float = 0.5,
        lambda_candidates: Optional[Union[np.ndarray, List[float]]] = None,
        n_jobs: Optional[int] = None,
    ) -> None:
        if not isinstance(basis, Basis):
            raise ConfigurationError(f"basis must be a Basis instance, got {type(basis).__name__}.")
        if lambda_value is not None:
            _check_lambda(lambda_value)
        if n_jobs is not None and (isinstance(n_jobs, bool) or not isinstance(n_jobs, int) or n_jobs == 0):
            raise ConfigurationError(f"n_jobs must be a non-zero integer or None, got {n_jobs!r}.")
        self.basis = basis
        self.lambda_value = lambda_value
        self.penalty_order = penalty_order
        self.log10_lambda_range = log10_lambda_range
        self.log10_lambda_step = log10_lambda_step
        self.lambda_candidates = lambda_candidates
        self.n_jobs = n_jobs

    def fit(self, grid: Union[np.ndarray, List[float]], samples: Union[np.ndarray, List[List[float]]]) -> "BasisSmoother":
        """Smooth the training curves.

        Parameters
        ----------
        grid : array-like of shape (M,)
        samples : array-like of shape (N, M)

        Returns
        -------
        BasisSmoother
            Fitted estimator (self).
        """
        if self.lambda_value is None:
            search = select_smoothing_parameter(
                grid,
                samples,
                self.basis,
                penalty_order=self.penalty_order,
                log10_lambda_range=self.log10_lambda_range,
                log10_lambda_step=self.log10_lambda_step,
                lambda_candidates=self.lambda_candidates,
                n_jobs=self.n_jobs,
            )
            self.fit_result_ = search.best_fit
            self.lambda_selection_results_ = {
                "lambda_candidates": search.lambda_candidates,
                "gcv_scores": search.gcv_scores,
                "failed": search.failed,
                "best_lambda": search.best_lambda,
            }
        else:
            self.fit_result_ = smooth_basis(grid, samples, self.basis, self.lambda_value, self.penalty_order)
            self.lambda_selection_results_ = None
        self.grid_ = self.fit_result_.grid
        self.lambda_ = self.fit_result_.lambda_
        self.fd_ = self.fit_result_.fd
        return self

    def transform(self, samples: Union[np.ndarray, List[List[float]]]) -> FunctionalObject:
        """Smooth new curves observed on the training grid at the fitted lambda."""
        check_is_fitted(self, ["fit_result_", "grid_", "lambda_"])
        return smooth_basis(self.grid_, samples, self.basis, self.lambda_, self.penalty_order).fd

    def fit_transform(self, grid: Union[np.ndarray, List[float]], samples: Union[np.ndarray, List[List[float]]]) -> FunctionalObject:
        return self.fit(grid, samples).fd_

    def fitted_values(self) -> np.ndarray:
        """Smoothed training curves evaluated on the training grid, shape (N, M)."""
        check_is_fitted(self, ["fit_result_", "grid_", "lambda_"])
        return self.fd_.evaluate(self.grid_)
