"""Exception types raised by specfda."""

# Authors: Ching-Chuan Chen
# SPDX-License-Identifier: MIT


class FDAError(Exception):
    """Base class of all specfda errors."""


class DomainError(FDAError, ValueError):
    """Evaluation points outside a basis range or mismatched grids."""


class DimensionError(FDAError, ValueError):
    """Inconsistent numbers of curves, grid points or basis functions."""


class ConfigurationError(FDAError, ValueError):
    """Invalid basis, smoothing or analysis parameters."""


class NumericalError(FDAError, ArithmeticError):
    """A factorization or eigen-decomposition could not be completed."""
