"""Functional object: curves stored as coefficients in a shared basis."""

# Authors: Ching-Chuan Chen
# SPDX-License-Identifier: MIT
from numbers import Real
from typing import List, Optional, Union

import numpy as np
from sklearn.utils.validation import check_array

from specfda.basis import Basis
from specfda.exceptions import ConfigurationError, DimensionError


class FunctionalObject:
    """
    A collection of N curves ``x_i(t) = sum_k C[i, k] φ_k(t)``.

    Parameters
    ----------
    coefficients : array-like of shape (n_curves, n_basis) or (n_basis,)
        Coefficient matrix, one row per curve. A 1D input is a single curve.
    basis : Basis
        Basis shared by all curves.

    Attributes
    ----------
    coefficients : np.ndarray of shape (n_curves, n_basis)
        Read-only copy of the input coefficients.
    basis : Basis

    Raises
    ------
    DimensionError
        If the coefficient width differs from ``basis.n_basis``.

    Examples
    --------
    >>> import numpy as np
    >>> from specfda.basis import FourierBasis
    >>> from specfda.fdata import FunctionalObject
    >>> fd = FunctionalObject(np.array([[0.0, 1.0, 0.0]]), FourierBasis((0.0, 1.0), n_basis=3))
    >>> fd.evaluate(np.array([0.25])).round(6)
    array([[1.414214]])
    """

    def __init__(self, coefficients: Union[np.ndarray, List[List[float]]], basis: Basis) -> None:
        if not isinstance(basis, Basis):
            raise ConfigurationError(f"basis must be a Basis instance, got {type(basis).__name__}.")
        coefficients = check_array(coefficients, ensure_2d=False, dtype=np.float64, copy=True)
        if coefficients.ndim == 1:
            coefficients = coefficients.reshape((1, -1))
        if coefficients.ndim != 2:
            raise DimensionError(f"coefficients must be 2D, got shape {coefficients.shape}.")
        if coefficients.shape[1] != basis.n_basis:
            raise DimensionError(f"coefficients have {coefficients.shape[1]} columns but the basis has {basis.n_basis} functions.")
        coefficients.setflags(write=False)
        self._coefficients = coefficients
        self._basis = basis

    @property
    def coefficients(self) -> np.ndarray:
        return self._coefficients

    @property
    def basis(self) -> Basis:
        return self._basis

    @property
    def n_curves(self) -> int:
        return self._coefficients.shape[0]

    @property
    def domain_range(self):
        return self._basis.domain_range

    def __len__(self) -> int:
        return self.n_curves

    def evaluate(self, t: Union[np.ndarray, List[float], float], derivative: int = 0) -> np.ndarray:
        """Evaluate every curve (or its derivative) at the points `t`.

        Returns
        -------
        np.ndarray of shape (n_curves, len(t))
        """
        return self._coefficients @ self._basis.evaluate(t, derivative).T

    def __call__(self, t: Union[np.ndarray, List[float], float], derivative: int = 0) -> np.ndarray:
        return self.evaluate(t, derivative)

    def derivative(self, order: int = 1) -> "FunctionalObject":
        """Exact derivative of each curve as a new functional object."""
        d_basis, d_coefs = self._basis.derivative(self._coefficients, order)
        return FunctionalObject(d_coefs, d_basis)

    def __getitem__(self, key) -> "FunctionalObject":
        if isinstance(key, (int, np.integer)):
            key = [int(key)]
        return FunctionalObject(self._coefficients[key], self._basis)

    def mean(self) -> "FunctionalObject":
        """Pointwise mean curve (a single-row object)."""
        return FunctionalObject(self._coefficients.mean(axis=0, keepdims=True), self._basis)

    def center(self) -> "FunctionalObject":
        """Curves with the mean curve subtracted."""
        return self - self.mean()

    def inner_product(self, other: Optional["FunctionalObject"] = None) -> np.ndarray:
        """L2 inner products ``<x_i, y_j>`` between the curves of two objects.

        Parameters
        ----------
        other : FunctionalObject, optional
            Defaults to this object. Its basis may differ but must share the range.

        Returns
        -------
        np.ndarray of shape (self.n_curves, other.n_curves)
        """
        other = self if other is None else other
        cross = self._basis.inner_product_matrix(other.basis)
        return self._coefficients @ cross @ other.coefficients.T

    def norm(self) -> np.ndarray:
        """L2 norm of each curve."""
        gram = self._basis.gram_matrix()
        squared = np.sum((self._coefficients @ gram) * self._coefficients, axis=1)
        return np.sqrt(np.clip(squared, 0.0, None))

    def _check_operand(self, other: "FunctionalObject") -> None:
        if other.basis != self._basis:
            raise DimensionError(f"Cannot combine functional objects in different bases: {self._basis!r} and {other.basis!r}.")
        if self.n_curves != other.n_curves and 1 not in (self.n_curves, other.n_curves):
            raise DimensionError(f"Cannot broadcast {self.n_curves} curves against {other.n_curves} curves.")

    def __add__(self, other):
        if not isinstance(other, FunctionalObject):
            return NotImplemented
        self._check_operand(other)
        return FunctionalObject(self._coefficients + other.coefficients, self._basis)

    def __sub__(self, other):
        if not isinstance(other, FunctionalObject):
            return NotImplemented
        self._check_operand(other)
        return FunctionalObject(self._coefficients - other.coefficients, self._basis)

    def __neg__(self):
        return FunctionalObject(-self._coefficients, self._basis)

    def __mul__(self, other):
        if not isinstance(other, Real):
            return NotImplemented
        return FunctionalObject(self._coefficients * float(other), self._basis)

    __rmul__ = __mul__

    def __truediv__(self, other):
        if not isinstance(other, Real):
            return NotImplemented
        if other == 0:
            raise ZeroDivisionError("Cannot divide a functional object by zero.")
        return FunctionalObject(self._coefficients / float(other), self._basis)

    def __repr__(self) -> str:
        return f"FunctionalObject(n_curves={self.n_curves}, basis={self._basis!r})"
