"""Scalar-on-function regression."""

# Authors: Ching-Chuan Chen
# SPDX-License-Identifier: MIT
from specfda.regression.functional_linear_model import FunctionalLinearRegression
from specfda.regression.regression_result_class import RegressionFit

__all__ = ["FunctionalLinearRegression", "RegressionFit"]
