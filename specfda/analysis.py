"""End-to-end functional analysis of a set of spectra."""

# Authors: Ching-Chuan Chen
# SPDX-License-Identifier: MIT
import logging
import math
import time
from typing import Dict, List, Literal, Optional, Tuple, Union

import numpy as np
from sklearn.base import BaseEstimator
from sklearn.utils.validation import check_is_fitted

from specfda.basis import SUPPORTED_DERIVATIVES, Basis, BSplineBasis, FourierBasis
from specfda.depth import DEPTH_METHODS, depth_outliers, fd_depth
from specfda.exceptions import ConfigurationError
from specfda.fpca import functional_pca
from specfda.regression import FunctionalLinearRegression
from specfda.smooth import BasisSmoother
from specfda.utils import check_grid, check_sample_matrix

logger = logging.getLogger(__name__)


class SmoothingParams:
    """
    Parameters of the basis smoothing stage.

    Parameters
    ----------
    basis_type : {'bspline', 'fourier'}, default='bspline'
        Basis family fitted to the curves.
    n_basis : int, default=20
        Number of basis functions. Must be odd for a Fourier basis.
    order : int, default=4
        B-spline order (4 gives cubic splines). Ignored for a Fourier basis.
    period : float, optional
        Fourier period; defaults to the width of the grid.
    penalty_order : int, default=2
        Derivative order of the roughness penalty.
    lambda_ : float, optional
        Fixed smoothing parameter. If None, it is selected by GCV.
    log10_lambda_range : tuple of float, default=(-8.0, 4.0)
        Range of the GCV search in log10 units.
    log10_lambda_step : float, default=0.5
        Spacing of the GCV search in log10 units.
    n_jobs : int, optional
        Number of joblib workers used by the GCV search.
    """

    def __init__(
        self,
        basis_type: Literal["bspline", "fourier"] = "bspline",
        n_basis: int = 20,
        order: int = 4,
        period: Optional[float] = None,
        penalty_order: int = 2,
        lambda_: Optional[float] = None,
        log10_lambda_range: Tuple[float, float] = (-8.0, 4.0),
        log10_lambda_step: float = 0.5,
        n_jobs: Optional[int] = None,
    ):
        if basis_type not in ["bspline", "fourier"]:
            raise ConfigurationError("basis_type must be either 'bspline' or 'fourier'.")
        if isinstance(n_basis, bool) or not isinstance(n_basis, int) or n_basis <= 0:
            raise ConfigurationError("n_basis must be a positive integer.")
        if basis_type == "fourier" and n_basis % 2 == 0:
            raise ConfigurationError("n_basis must be odd for a Fourier basis.")
        if isinstance(order, bool) or not isinstance(order, int) or order <= 0:
            raise ConfigurationError("order must be a positive integer.")
        if basis_type == "bspline" and n_basis < order + 1:
            raise ConfigurationError(f"n_basis must be at least order + 1 = {order + 1} for a B-spline basis.")
        if period is not None and (not isinstance(period, (int, float)) or not math.isfinite(period) or period <= 0):
            raise ConfigurationError("period must be a positive scalar.")
        if penalty_order not in SUPPORTED_DERIVATIVES or isinstance(penalty_order, bool):
            raise ConfigurationError(f"penalty_order must be one of {SUPPORTED_DERIVATIVES}.")
        if lambda_ is not None and (not isinstance(lambda_, (int, float)) or not math.isfinite(lambda_) or lambda_ < 0):
            raise ConfigurationError("lambda_ must be a non-negative scalar.")
        if len(log10_lambda_range) != 2 or not log10_lambda_range[0] <= log10_lambda_range[1]:
            raise ConfigurationError("log10_lambda_range must be an increasing pair of floats.")
        if not isinstance(log10_lambda_step, (int, float)) or log10_lambda_step <= 0:
            raise ConfigurationError("log10_lambda_step must be a positive scalar.")
        if n_jobs is not None and (isinstance(n_jobs, bool) or not isinstance(n_jobs, int) or n_jobs == 0):
            raise ConfigurationError("n_jobs must be a non-zero integer or None.")

        self.basis_type = basis_type
        self.n_basis = n_basis
        self.order = order
        self.period = period
        self.penalty_order = penalty_order
        self.lambda_ = lambda_
        self.log10_lambda_range = tuple(log10_lambda_range)
        self.log10_lambda_step = log10_lambda_step
        self.n_jobs = n_jobs

    def make_basis(self, domain_range: Tuple[float, float], n_basis: Optional[int] = None) -> Basis:
        """Build the configured basis on `domain_range`, optionally with another size."""
        n_basis = self.n_basis if n_basis is None else n_basis
        if self.basis_type == "fourier":
            return FourierBasis(domain_range, n_basis=n_basis, period=self.period)
        return BSplineBasis(domain_range, n_basis=n_basis, order=self.order)

    def __repr__(self):
        """Return a concise representation of parameters for logging/debugging."""
        return (
            f"SmoothingParams(basis_type='{self.basis_type}', n_basis={self.n_basis}, order={self.order}, "
            f"period={self.period}, penalty_order={self.penalty_order}, lambda_={self.lambda_}, "
            f"log10_lambda_range={self.log10_lambda_range}, log10_lambda_step={self.log10_lambda_step}, n_jobs={self.n_jobs})"
        )


class AnalysisParams:
    """
    Parameters of the analysis pipeline.

    Parameters
    ----------
    smoothing : SmoothingParams, optional
        Smoothing stage parameters; defaults to ``SmoothingParams()``.
    n_components : int, optional
        Number of principal components. If None, chosen by `fve_threshold`.
    fve_threshold : float, default=0.99
        Cumulative fraction of variance explained, in (0, 1].
    harmonic_penalty : float, default=0.0
        Roughness penalty on the principal component functions.
    depth_method : {'BD2', 'MBD', 'Both'}, default='MBD'
        Functional depth used for the median, ordering and outlier flags.
    outlier_factor : float, default=1.5
        IQR multiplier of the outlier rule.
    regression_n_basis : int, optional
        Size of the basis of the regression coefficient function, of the same
        family as the smoothing basis. If None, the smoothing basis is used.
    """

    def __init__(
        self,
        smoothing: Optional[SmoothingParams] = None,
        n_components: Optional[int] = None,
        fve_threshold: float = 0.99,
        harmonic_penalty: float = 0.0,
        depth_method: Literal["BD2", "MBD", "Both"] = "MBD",
        outlier_factor: float = 1.5,
        regression_n_basis: Optional[int] = None,
    ):
        if smoothing is None:
            smoothing = SmoothingParams()
        if not isinstance(smoothing, SmoothingParams):
            raise ConfigurationError("smoothing must be an instance of SmoothingParams.")
        if n_components is not None and (isinstance(n_components, bool) or not isinstance(n_components, int) or n_components <= 0):
            raise ConfigurationError("n_components must be a positive integer or None.")
        if not isinstance(fve_threshold, (int, float)) or not 0.0 < fve_threshold <= 1.0:
            raise ConfigurationError("fve_threshold must be a float in (0, 1].")
        if not isinstance(harmonic_penalty, (int, float)) or not math.isfinite(harmonic_penalty) or harmonic_penalty < 0:
            raise ConfigurationError("harmonic_penalty must be a non-negative scalar.")
        if depth_method not in DEPTH_METHODS:
            raise ConfigurationError(f"depth_method must be one of {list(DEPTH_METHODS)}.")
        if isinstance(outlier_factor, bool) or not isinstance(outlier_factor, (int, float)) or not math.isfinite(outlier_factor) or outlier_factor < 0:
            raise ConfigurationError("outlier_factor must be a non-negative scalar.")
        if regression_n_basis is not None:
            if isinstance(regression_n_basis, bool) or not isinstance(regression_n_basis, int) or regression_n_basis <= 0:
                raise ConfigurationError("regression_n_basis must be a positive integer or None.")
            if smoothing.basis_type == "fourier" and regression_n_basis % 2 == 0:
                raise ConfigurationError("regression_n_basis must be odd for a Fourier basis.")
            if smoothing.basis_type == "bspline" and regression_n_basis < smoothing.order + 1:
                raise ConfigurationError(f"regression_n_basis must be at least {smoothing.order + 1} for a B-spline basis.")

        self.smoothing = smoothing
        self.n_components = n_components
        self.fve_threshold = fve_threshold
        self.harmonic_penalty = harmonic_penalty
        self.depth_method = depth_method
        self.outlier_factor = outlier_factor
        self.regression_n_basis = regression_n_basis

    def __repr__(self):
        """Return a concise representation of parameters for logging/debugging."""
        return (
            f"AnalysisParams(smoothing={self.smoothing!r}, n_components={self.n_components}, "
            f"fve_threshold={self.fve_threshold}, harmonic_penalty={self.harmonic_penalty}, "
            f"depth_method='{self.depth_method}', outlier_factor={self.outlier_factor}, "
            f"regression_n_basis={self.regression_n_basis})"
        )


class SpectraAnalysis(BaseEstimator):
    """
    Smoothing, functional PCA, depth and regression of a set of spectra.

    Parameters
    ----------
    params : AnalysisParams, optional
        Pipeline parameters; defaults to ``AnalysisParams()``.

    Attributes
    ----------
    smoothing_ : SmoothingFit
        Penalized basis fit of the spectra, with the GCV-selected lambda.
    lambda_selection_results_ : dict or None
        GCV search summary, or None when lambda was fixed.
    fpca_ : PCAResult
    depth_ : DepthResult
        Depth of the smoothed spectra evaluated on the grid.
    outliers_ : OutlierResult
    regressions_ : Dict[str, RegressionFit]
        One scalar-on-function fit per covariate.
    elapsed_time_ : Dict[str, float]
        Seconds spent in each stage and in total.

    Notes
    -----
    Any error raised by a stage aborts the run; no partial results are kept.
    """

    def __init__(self, params: Optional[AnalysisParams] = None):
        if params is not None and not isinstance(params, AnalysisParams):
            raise ConfigurationError("params must be an instance of AnalysisParams.")
        self.params = params

    def fit(
        self,
        grid: Union[np.ndarray, List[float]],
        samples: Union[np.ndarray, List[List[float]]],
        covariates: Optional[Dict[str, Union[np.ndarray, List[float]]]] = None,
    ) -> "SpectraAnalysis":
        """Run every stage on the spectra.

        Parameters
        ----------
        grid : array-like of shape (M,)
            Strictly increasing wavelengths.
        samples : array-like of shape (N, M)
            One spectrum per row.
        covariates : dict of str to array-like of shape (N,), optional
            Scalar responses, each regressed on the smoothed spectra.

        Returns
        -------
        SpectraAnalysis
            Fitted pipeline (self).
        """
        params = AnalysisParams() if self.params is None else self.params
        sp = params.smoothing
        fit_start_time = time.time_ns()
        grid = check_grid(grid)
        samples = check_sample_matrix(samples, grid)
        logger.info("Analyzing %d spectra on %d points with %r.", samples.shape[0], grid.size, params)

        start_time = time.time_ns()
        basis = sp.make_basis((float(grid[0]), float(grid[-1])))
        smoother = BasisSmoother(
            basis,
            lambda_value=sp.lambda_,
            penalty_order=sp.penalty_order,
            log10_lambda_range=sp.log10_lambda_range,
            log10_lambda_step=sp.log10_lambda_step,
            n_jobs=sp.n_jobs,
        ).fit(grid, samples)
        smoothing = smoother.fit_result_
        fd = smoother.fd_
        smoothing_time = (time.time_ns() - start_time) / 1e9

        start_time = time.time_ns()
        fpca = functional_pca(
            fd,
            n_components=params.n_components,
            fve_threshold=params.fve_threshold,
            penalty_weight=params.harmonic_penalty,
            penalty_order=sp.penalty_order,
        )
        fpca_time = (time.time_ns() - start_time) / 1e9

        start_time = time.time_ns()
        depth = fd_depth(fd, grid, method=params.depth_method)
        outliers = depth_outliers(depth, factor=params.outlier_factor)
        depth_time = (time.time_ns() - start_time) / 1e9

        start_time = time.time_ns()
        regressions = {}
        if covariates:
            beta_basis = None if params.regression_n_basis is None else sp.make_basis(basis.domain_range, params.regression_n_basis)
            for name, response in covariates.items():
                model = FunctionalLinearRegression(beta_basis=beta_basis, penalty_order=sp.penalty_order).fit(fd, response)
                regressions[name] = model.fit_result_
                logger.info("Regression of %s on the spectra: R^2=%.4f.", name, model.fit_result_.r2)
        regression_time = (time.time_ns() - start_time) / 1e9

        self.smoothing_ = smoothing
        self.lambda_selection_results_ = smoother.lambda_selection_results_
        self.fpca_ = fpca
        self.depth_ = depth
        self.outliers_ = outliers
        self.regressions_ = regressions
        self.elapsed_time_ = {
            "smoothing": smoothing_time,
            "fpca": fpca_time,
            "depth": depth_time,
            "regression": regression_time,
            "fit_total_time": (time.time_ns() - fit_start_time) / 1e9,
        }
        logger.info(
            "Analysis done: lambda=%.3g, %d components, median curve %d, %d outliers.",
            smoothing.lambda_,
            fpca.n_components,
            depth.median_index,
            outliers.outlier_indices.size,
        )
        return self

    @property
    def fd_(self):
        """Smoothed spectra as a FunctionalObject."""
        check_is_fitted(self, ["smoothing_"])
        return self.smoothing_.fd
