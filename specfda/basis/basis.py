"""B-spline and Fourier basis systems with derivative and roughness-penalty support."""

# Authors: Ching-Chuan Chen
# SPDX-License-Identifier: MIT
import math
from abc import ABC, abstractmethod
from typing import Dict, List, Optional, Tuple, Union

import numpy as np
from scipy.interpolate import BSpline

from specfda.exceptions import ConfigurationError, DimensionError, DomainError
from specfda.utils.quadrature import gauss_legendre_nodes, refine_breaks

SUPPORTED_DERIVATIVES = (0, 1, 2, 3, 4)

# relative tolerance (w.r.t. the range width) for points on the range boundary
_DOMAIN_RTOL = 1e-10


def _check_derivative(derivative: int) -> int:
    if isinstance(derivative, bool) or not isinstance(derivative, (int, np.integer)) or derivative not in SUPPORTED_DERIVATIVES:
        raise ConfigurationError(f"Derivative order must be one of {SUPPORTED_DERIVATIVES}, got {derivative!r}.")
    return int(derivative)


class Basis(ABC):
    """
    A family of ``n_basis`` functions defined over a closed range.

    Parameters
    ----------
    domain_range : tuple of float
        The ``(lower, upper)`` range of the basis.
    n_basis : int
        Number of basis functions K.

    Notes
    -----
    Bases are immutable and may be shared by any number of functional
    objects. Penalty matrices are computed once per derivative order and
    cached as read-only arrays.
    """

    #: smallest admissible number of basis functions
    min_n_basis = 1

    def __init__(self, domain_range: Tuple[float, float], n_basis: int) -> None:
        if len(domain_range) != 2:
            raise ConfigurationError(f"domain_range must be a (lower, upper) pair, got {domain_range!r}.")
        lower, upper = float(domain_range[0]), float(domain_range[1])
        if not (math.isfinite(lower) and math.isfinite(upper)) or lower >= upper:
            raise ConfigurationError(f"domain_range must be finite with lower < upper, got {domain_range!r}.")
        if isinstance(n_basis, bool) or not isinstance(n_basis, (int, np.integer)):
            raise ConfigurationError(f"n_basis must be an integer, got {n_basis!r}.")
        if n_basis < self.min_n_basis:
            raise ConfigurationError(f"{type(self).__name__} requires n_basis >= {self.min_n_basis}, got {n_basis}.")
        self._domain_range = (lower, upper)
        self._n_basis = int(n_basis)
        self._penalty_cache: Dict[int, np.ndarray] = {}

    @property
    def domain_range(self) -> Tuple[float, float]:
        return self._domain_range

    @property
    def n_basis(self) -> int:
        return self._n_basis

    @property
    def width(self) -> float:
        return self._domain_range[1] - self._domain_range[0]

    def _check_points(self, t: Union[np.ndarray, List[float], float]) -> np.ndarray:
        t = np.atleast_1d(np.asarray(t, dtype=np.float64))
        if t.ndim != 1:
            raise DimensionError(f"Evaluation points must be a 1D array, got shape {t.shape}.")
        if not np.all(np.isfinite(t)):
            raise DomainError("Evaluation points contain non-finite values.")
        lower, upper = self._domain_range
        tol = _DOMAIN_RTOL * self.width
        outside = (t < lower - tol) | (t > upper + tol)
        if np.any(outside):
            bad = t[outside]
            raise DomainError(
                f"{bad.size} evaluation point(s) lie outside the basis range [{lower!r}, {upper!r}], e.g. {bad[:5].tolist()}."
            )
        return np.clip(t, lower, upper)

    def evaluate(self, t: Union[np.ndarray, List[float], float], derivative: int = 0) -> np.ndarray:
        """Evaluate all basis functions (or a derivative) at the points `t`.

        Parameters
        ----------
        t : array-like of shape (m,)
            Points inside `domain_range`.
        derivative : int, default=0
            Derivative order, one of ``SUPPORTED_DERIVATIVES``.

        Returns
        -------
        np.ndarray of shape (m, n_basis)
            Evaluation matrix; row i holds all K functions at ``t[i]``.

        Raises
        ------
        DomainError
            If any point falls outside the range.
        ConfigurationError
            If the derivative order is unsupported.
        """
        derivative = _check_derivative(derivative)
        return self._evaluate(self._check_points(t), derivative)

    def __call__(self, t: Union[np.ndarray, List[float], float], derivative: int = 0) -> np.ndarray:
        return self.evaluate(t, derivative)

    def penalty_matrix(self, derivative: int = 2) -> np.ndarray:
        """Roughness matrix ``R_d[i, j] = ∫ D^d φ_i(t) D^d φ_j(t) dt`` (read-only, K x K)."""
        derivative = _check_derivative(derivative)
        if derivative not in self._penalty_cache:
            penalty = self._penalty(derivative)
            penalty = 0.5 * (penalty + penalty.T)
            penalty.setflags(write=False)
            self._penalty_cache[derivative] = penalty
        return self._penalty_cache[derivative]

    def gram_matrix(self) -> np.ndarray:
        """Mass matrix ``W[i, j] = ∫ φ_i(t) φ_j(t) dt``."""
        return self.penalty_matrix(0)

    def inner_product_matrix(self, other: Optional["Basis"] = None) -> np.ndarray:
        """Cross mass matrix ``J[i, j] = ∫ φ_i(t) ψ_j(t) dt`` with another basis.

        Parameters
        ----------
        other : Basis, optional
            Second basis on the same range; defaults to this basis.

        Returns
        -------
        np.ndarray of shape (self.n_basis, other.n_basis)

        Raises
        ------
        DimensionError
            If the two bases are defined on different ranges.
        """
        if other is None or other == self:
            return self.gram_matrix()
        if not self.is_compatible(other):
            raise DimensionError(f"Bases are defined on different ranges: {self.domain_range} and {other.domain_range}.")
        self_breaks, self_nodes = self._quadrature_rule()
        other_breaks, other_nodes = other._quadrature_rule()
        breaks = np.unique(np.concatenate([self_breaks, other_breaks]))
        nodes, weights = gauss_legendre_nodes(breaks, max(self_nodes, other_nodes))
        return (self._evaluate(nodes, 0) * weights[:, None]).T @ other._evaluate(nodes, 0)

    def is_compatible(self, other: "Basis") -> bool:
        """Whether `other` shares this basis' range (within the boundary tolerance)."""
        tol = _DOMAIN_RTOL * max(self.width, other.width)
        return bool(np.allclose(self.domain_range, other.domain_range, rtol=0.0, atol=tol))

    def _penalty(self, derivative: int) -> np.ndarray:
        breaks, num_nodes = self._quadrature_rule()
        nodes, weights = gauss_legendre_nodes(breaks, num_nodes)
        values = self._evaluate(nodes, derivative)
        return (values * weights[:, None]).T @ values

    @abstractmethod
    def _evaluate(self, t: np.ndarray, derivative: int) -> np.ndarray:
        """Evaluate on points already validated to lie inside the range."""

    @abstractmethod
    def _quadrature_rule(self) -> Tuple[np.ndarray, int]:
        """Interval breaks and Gauss-Legendre nodes per interval for integrating products."""

    @abstractmethod
    def derivative(self, coefficients: np.ndarray, order: int = 1) -> Tuple["Basis", np.ndarray]:
        """Represent the `order`-th derivative of ``coefficients @ φ`` exactly.

        Parameters
        ----------
        coefficients : np.ndarray of shape (n_curves, n_basis)
        order : int, default=1

        Returns
        -------
        basis : Basis
            Basis of the derivative functions.
        coefficients : np.ndarray of shape (n_curves, basis.n_basis)
        """


class BSplineBasis(Basis):
    """
    B-spline basis of a given order with clamped boundary knots.

    Parameters
    ----------
    domain_range : tuple of float
        ``(lower, upper)`` range.
    n_basis : int, optional
        Number of basis functions. Required when `breaks` is None; when both
        are given they must agree (``n_basis == len(breaks) + order - 2``).
    order : int, default=4
        Spline order (degree + 1); 4 gives cubic splines.
    breaks : array-like, optional
        Strictly increasing breakpoints whose first and last entries equal the
        range ends. Evenly spaced when omitted.

    Notes
    -----
    The knot sequence repeats each range end ``order`` times so that the basis
    spans every spline of that order on the breakpoints. At least one interior
    breakpoint is required, i.e. ``n_basis >= order + 1``.
    """

    def __init__(
        self,
        domain_range: Tuple[float, float],
        n_basis: Optional[int] = None,
        order: int = 4,
        breaks: Optional[Union[np.ndarray, List[float]]] = None,
    ) -> None:
        if isinstance(order, bool) or not isinstance(order, (int, np.integer)) or order < 1:
            raise ConfigurationError(f"B-spline order must be a positive integer, got {order!r}.")
        self.order = int(order)
        self.min_n_basis = self.order + 1

        if breaks is None:
            if n_basis is None:
                raise ConfigurationError("Either n_basis or breaks must be provided for a B-spline basis.")
            super().__init__(domain_range, n_basis)
            breaks = np.linspace(self.domain_range[0], self.domain_range[1], self.n_basis - self.order + 2)
        else:
            breaks = np.asarray(breaks, dtype=np.float64)
            if breaks.ndim != 1 or breaks.size < 2:
                raise ConfigurationError("breaks must be a 1D array with at least two points.")
            implied = breaks.size + self.order - 2
            if n_basis is not None and n_basis != implied:
                raise ConfigurationError(f"n_basis={n_basis} is inconsistent with {breaks.size} breaks and order {self.order} (expected {implied}).")
            super().__init__(domain_range, implied)
            if np.any(np.diff(breaks) <= 0):
                raise ConfigurationError("breaks must be strictly increasing.")
            if breaks[0] != self.domain_range[0] or breaks[-1] != self.domain_range[1]:
                raise ConfigurationError(f"breaks must start and end at the range ends {self.domain_range}, got [{breaks[0]}, {breaks[-1]}].")

        breaks = breaks.copy()
        breaks.setflags(write=False)
        self.breaks = breaks
        knots = np.concatenate([np.repeat(breaks[0], self.order - 1), breaks, np.repeat(breaks[-1], self.order - 1)])
        knots.setflags(write=False)
        self.knots = knots
        self._splines = {0: BSpline(knots, np.eye(self.n_basis), self.order - 1, extrapolate=True)}

    def _evaluate(self, t: np.ndarray, derivative: int) -> np.ndarray:
        if derivative >= self.order:
            return np.zeros((t.size, self.n_basis))
        if derivative not in self._splines:
            self._splines[derivative] = self._splines[0].derivative(derivative)
        return np.asarray(self._splines[derivative](t)).reshape((t.size, self.n_basis))

    def _quadrature_rule(self) -> Tuple[np.ndarray, int]:
        # products of two degree (order - 1) pieces are integrated exactly
        return np.asarray(self.breaks), self.order

    def derivative(self, coefficients: np.ndarray, order: int = 1) -> Tuple["BSplineBasis", np.ndarray]:
        order = _check_derivative(order)
        if order == 0:
            return self, coefficients
        if order >= self.order:
            raise ConfigurationError(f"Cannot represent derivative of order {order} for a B-spline basis of order {self.order}.")
        knots = np.asarray(self.knots)
        degree = self.order - 1
        coefs = np.asarray(coefficients, dtype=np.float64).T
        for _ in range(order):
            dt = knots[degree + 1 : -1] - knots[1 : -degree - 1]
            coefs = (coefs[1:] - coefs[:-1]) * degree / dt[:, None]
            knots = knots[1:-1]
            degree -= 1
        return BSplineBasis(self.domain_range, order=self.order - order, breaks=self.breaks), coefs.T

    def __eq__(self, other: object) -> bool:
        return (
            isinstance(other, BSplineBasis)
            and self.order == other.order
            and self.domain_range == other.domain_range
            and np.array_equal(self.breaks, other.breaks)
        )

    def __hash__(self) -> int:
        return hash(("bspline", self.domain_range, self.order, self.breaks.tobytes()))

    def __repr__(self) -> str:
        return f"BSplineBasis(domain_range={self.domain_range}, n_basis={self.n_basis}, order={self.order})"


class FourierBasis(Basis):
    """
    Fourier basis: a constant followed by sine/cosine pairs.

    Parameters
    ----------
    domain_range : tuple of float
        ``(lower, upper)`` range.
    n_basis : int, default=3
        Odd number of functions: ``1, sin(ωt), cos(ωt), sin(2ωt), cos(2ωt), ...``.
    period : float, optional
        Period T; defaults to the range width.

    Notes
    -----
    Functions are scaled by ``1/sqrt(T)`` and ``sqrt(2/T)`` so they are
    orthonormal over one period, and phases are measured from the lower end
    of the range. When the range spans exactly one period, penalty matrices are
    diagonal and computed analytically: ``(kω)^(2d)`` for the k-th pair.
    """

    def __init__(self, domain_range: Tuple[float, float], n_basis: int = 3, period: Optional[float] = None) -> None:
        super().__init__(domain_range, n_basis)
        if self.n_basis % 2 == 0:
            raise ConfigurationError(f"A Fourier basis needs an odd number of functions, got n_basis={self.n_basis}.")
        period = self.width if period is None else float(period)
        if not (math.isfinite(period) and period > 0):
            raise ConfigurationError(f"period must be a positive finite number, got {period!r}.")
        self.period = period
        self.omega = 2.0 * math.pi / period
        self.num_harmonics = (self.n_basis - 1) // 2

    def _evaluate(self, t: np.ndarray, derivative: int) -> np.ndarray:
        x = t - self.domain_range[0]
        values = np.zeros((t.size, self.n_basis))
        if derivative == 0:
            values[:, 0] = 1.0 / math.sqrt(self.period)
        scale = math.sqrt(2.0 / self.period)
        phase = 0.5 * math.pi * derivative
        for k in range(1, self.num_harmonics + 1):
            freq = k * self.omega
            values[:, 2 * k - 1] = scale * freq**derivative * np.sin(freq * x + phase)
            values[:, 2 * k] = scale * freq**derivative * np.cos(freq * x + phase)
        return values

    def _quadrature_rule(self) -> Tuple[np.ndarray, int]:
        cycles = self.num_harmonics * self.width / self.period
        breaks = refine_breaks(np.array(self.domain_range), max(16, int(np.ceil(4 * cycles))))
        return breaks, 10

    def _spans_one_period(self) -> bool:
        return abs(self.width - self.period) <= _DOMAIN_RTOL * self.period

    def _penalty(self, derivative: int) -> np.ndarray:
        if not self._spans_one_period():
            return super()._penalty(derivative)
        diag = np.zeros(self.n_basis)
        diag[0] = 1.0 if derivative == 0 else 0.0
        for k in range(1, self.num_harmonics + 1):
            diag[2 * k - 1 : 2 * k + 1] = (k * self.omega) ** (2 * derivative)
        return np.diag(diag)

    def derivative(self, coefficients: np.ndarray, order: int = 1) -> Tuple["FourierBasis", np.ndarray]:
        order = _check_derivative(order)
        coefs = np.array(coefficients, dtype=np.float64)
        for _ in range(order):
            new = np.zeros_like(coefs)
            for k in range(1, self.num_harmonics + 1):
                freq = k * self.omega
                sin_coef, cos_coef = coefs[:, 2 * k - 1], coefs[:, 2 * k]
                new[:, 2 * k - 1] = -freq * cos_coef
                new[:, 2 * k] = freq * sin_coef
            coefs = new
        return self, coefs

    def __eq__(self, other: object) -> bool:
        return (
            isinstance(other, FourierBasis)
            and self.n_basis == other.n_basis
            and self.domain_range == other.domain_range
            and self.period == other.period
        )

    def __hash__(self) -> int:
        return hash(("fourier", self.domain_range, self.n_basis, self.period))

    def __repr__(self) -> str:
        return f"FourierBasis(domain_range={self.domain_range}, n_basis={self.n_basis}, period={self.period})"
