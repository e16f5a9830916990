"""The classes to save the results of scalar-on-function regression"""

# Authors: Ching-Chuan Chen
# SPDX-License-Identifier: MIT
from dataclasses import dataclass

import numpy as np

from specfda.fdata import FunctionalObject


@dataclass(frozen=True)
class RegressionFit:
    """Fitted scalar-on-function linear model ``y = a + ∫ X(t) β(t) dt + ε``.

    Attributes
    ----------
    beta_coefficients : np.ndarray of shape (K_beta,)
        Coefficients of β in its basis.
    beta : FunctionalObject
        β as a single-curve functional object.
    intercept : float
    fitted_values : np.ndarray of shape (N,)
    residuals : np.ndarray of shape (N,)
    r2 : float
    adjusted_r2 : float
    residual_std_error : float
    std_errors : np.ndarray of shape (K_beta + 1,)
        Standard errors of the intercept followed by the β coefficients.
    df_model : float
        Effective number of parameters (trace of the hat matrix).
    df_residual : float
    penalty_weight : float
    """

    beta_coefficients: np.ndarray
    beta: FunctionalObject
    intercept: float
    fitted_values: np.ndarray
    residuals: np.ndarray
    r2: float
    adjusted_r2: float
    residual_std_error: float
    std_errors: np.ndarray
    df_model: float
    df_residual: float
    penalty_weight: float = 0.0

    def __post_init__(self) -> None:
        for arr in (self.beta_coefficients, self.fitted_values, self.residuals, self.std_errors):
            arr.setflags(write=False)
