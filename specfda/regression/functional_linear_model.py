"""Scalar-on-function linear regression with a basis-expanded coefficient function."""

# Authors: Ching-Chuan Chen
# SPDX-License-Identifier: MIT
import logging
import math
import warnings
from typing import List, Optional, Union

import numpy as np
from sklearn.base import BaseEstimator, RegressorMixin
from sklearn.utils.validation import check_array, check_is_fitted

from specfda.basis import Basis
from specfda.exceptions import ConfigurationError, DimensionError
from specfda.fdata import FunctionalObject
from specfda.regression.regression_result_class import RegressionFit
from specfda.utils import solve_symmetric_system

logger = logging.getLogger(__name__)


class FunctionalLinearRegression(BaseEstimator, RegressorMixin):
    """
    Functional linear model ``y_i = a + ∫ X_i(t) β(t) dt + ε_i``.

    Parameters
    ----------
    beta_basis : Basis, optional
        Basis of β; defaults to the predictor basis. Must share its range.
    penalty_weight : float, default=0.0
        Roughness penalty ``λ ∫ (D^d β)^2`` added to the least-squares criterion.
    penalty_order : int, default=2
        Derivative order d of the penalty.

    Attributes
    ----------
    fit_result_ : RegressionFit
    coef_ : np.ndarray of shape (K_beta,)
        Coefficients of β.
    intercept_ : float
    beta_basis_ : Basis
    predictor_basis_ : Basis

    Notes
    -----
    With predictor coefficients ``C`` and cross mass matrix
    ``J[k, l] = ∫ φ_k ψ_l``, the integral equals ``(C J) b`` so the model is
    a linear regression on the design ``D = [1, C J]``. The covariance of the
    estimates is ``σ² (D'D + P)^{-1} D'D (D'D + P)^{-1}``, which reduces to
    the OLS covariance without penalty.

    Examples
    --------
    >>> import numpy as np
    >>> from specfda.basis import FourierBasis
    >>> from specfda.fdata import FunctionalObject
    >>> from specfda.regression import FunctionalLinearRegression
    >>> rng = np.random.default_rng(0)
    >>> fd = FunctionalObject(rng.normal(size=(30, 3)), FourierBasis((0.0, 1.0), n_basis=3))
    >>> y = 1.0 + fd.coefficients @ np.array([0.5, -1.0, 2.0])
    >>> model = FunctionalLinearRegression().fit(fd, y)
    >>> np.round(model.coef_, 6)
    array([ 0.5, -1. ,  2. ])
    """

    def __init__(self, beta_basis: Optional[Basis] = None, penalty_weight: float = 0.0, penalty_order: int = 2) -> None:
        if beta_basis is not None and not isinstance(beta_basis, Basis):
            raise ConfigurationError(f"beta_basis must be a Basis instance or None, got {type(beta_basis).__name__}.")
        if isinstance(penalty_weight, bool) or not isinstance(penalty_weight, (int, float)):
            raise ConfigurationError("penalty_weight must be a non-negative scalar.")
        if not math.isfinite(penalty_weight) or penalty_weight < 0:
            raise ConfigurationError("penalty_weight must be a non-negative scalar.")
        self.beta_basis = beta_basis
        self.penalty_weight = penalty_weight
        self.penalty_order = penalty_order

    def _design(self, fd: FunctionalObject, beta_basis: Basis) -> np.ndarray:
        if not isinstance(fd, FunctionalObject):
            raise ConfigurationError(f"X must be a FunctionalObject, got {type(fd).__name__}.")
        if not fd.basis.is_compatible(beta_basis):
            raise DimensionError(f"Predictor basis range {fd.basis.domain_range} differs from the beta basis range {beta_basis.domain_range}.")
        z = fd.coefficients @ fd.basis.inner_product_matrix(beta_basis)
        return np.column_stack([np.ones(fd.n_curves), z])

    def fit(self, X: FunctionalObject, y: Union[np.ndarray, List[float]]) -> "FunctionalLinearRegression":
        """Fit the model.

        Parameters
        ----------
        X : FunctionalObject
            N predictor curves.
        y : array-like of shape (N,)
            Scalar responses.

        Returns
        -------
        FunctionalLinearRegression
            Fitted estimator (self).

        Raises
        ------
        DimensionError
            If N differs between `X` and `y`, the bases have different ranges,
            or there are not more curves than parameters.
        """
        beta_basis = X.basis if self.beta_basis is None and isinstance(X, FunctionalObject) else self.beta_basis
        design = self._design(X, beta_basis)
        y = check_array(y, ensure_2d=False, dtype=np.float64)
        if y.ndim != 1:
            raise DimensionError(f"y must be a 1D array, got shape {y.shape}.")
        n_samples, n_params = design.shape
        if y.shape[0] != n_samples:
            raise DimensionError(f"X has {n_samples} curves but y has {y.shape[0]} responses.")
        if n_samples <= n_params:
            raise DimensionError(f"Need more curves ({n_samples}) than model parameters ({n_params}).")

        gram = design.T @ design
        penalty = np.zeros((n_params, n_params))
        if self.penalty_weight > 0:
            penalty[1:, 1:] = self.penalty_weight * beta_basis.penalty_matrix(self.penalty_order)
        system = gram + penalty
        coefs, solver = solve_symmetric_system(system, design.T @ y)
        system_inv, _ = solve_symmetric_system(system, np.eye(n_params))

        fitted = design @ coefs
        residuals = y - fitted
        rss = float(residuals @ residuals)
        df_model = float(np.sum(design * (design @ system_inv), axis=1).sum())
        df_residual = n_samples - df_model
        sigma2 = rss / df_residual
        tss = float(np.sum((y - y.mean()) ** 2))
        if tss > 0:
            r2 = 1.0 - rss / tss
        else:
            warnings.warn("The response is constant; R^2 is set to 0.")
            r2 = 0.0
        adjusted_r2 = 1.0 - (1.0 - r2) * (n_samples - 1) / df_residual
        covariance = sigma2 * system_inv @ gram @ system_inv
        std_errors = np.sqrt(np.clip(np.diag(covariance), 0.0, None))
        logger.info("Fitted functional linear model on %d curves (R^2=%.4f, df=%.2f, solver=%s).", n_samples, r2, df_model, solver)

        beta_coefs = coefs[1:].copy()
        self.fit_result_ = RegressionFit(
            beta_coefficients=beta_coefs,
            beta=FunctionalObject(beta_coefs, beta_basis),
            intercept=float(coefs[0]),
            fitted_values=fitted,
            residuals=residuals,
            r2=r2,
            adjusted_r2=adjusted_r2,
            residual_std_error=math.sqrt(sigma2),
            std_errors=std_errors,
            df_model=df_model,
            df_residual=df_residual,
            penalty_weight=float(self.penalty_weight),
        )
        self.coef_ = self.fit_result_.beta_coefficients
        self.intercept_ = self.fit_result_.intercept
        self.beta_basis_ = beta_basis
        self.predictor_basis_ = X.basis
        return self

    def predict(self, X: FunctionalObject) -> np.ndarray:
        """Predict responses for new predictor curves, shape (N,)."""
        check_is_fitted(self, ["fit_result_", "beta_basis_"])
        design = self._design(X, self.beta_basis_)
        return self.intercept_ + design[:, 1:] @ self.coef_
