"""Functional principal component analysis on basis-expanded curves."""

# Authors: Ching-Chuan Chen
# SPDX-License-Identifier: MIT
import logging
import math
import warnings
from typing import Optional, Tuple, Union

import numpy as np
import scipy.linalg
from sklearn.base import BaseEstimator
from sklearn.utils.validation import check_array, check_is_fitted

from specfda.exceptions import ConfigurationError, DimensionError, NumericalError
from specfda.fdata import FunctionalObject
from specfda.fpca.fpca_result_class import PCAResult
from specfda.utils import get_eigen_analysis_results

logger = logging.getLogger(__name__)


def select_num_pcs_fve(variance_explained: np.ndarray, fve_threshold: float, max_components: int) -> Tuple[np.ndarray, int]:
    """
    Select the number of principal components based on the explained variance.

    Parameters
    ----------
    variance_explained : np.ndarray
        Fraction of variance explained per component, in decreasing order.
    fve_threshold : float
        Target cumulative fraction of variance explained.
    max_components : int
        The maximum number of principal components to consider.

    Returns
    -------
    cumulative_fve : np.ndarray
        The cumulative explained variance for each principal component.
    num_pcs : int
        Smallest number of components whose cumulative fraction reaches the
        threshold, capped at `max_components`.
    """
    cumulative_fve = np.cumsum(variance_explained)
    num_pcs = min(int(np.searchsorted(cumulative_fve, fve_threshold)) + 1, max_components)
    return cumulative_fve, num_pcs


def _align_signs(harmonic_coefs: np.ndarray, gram: np.ndarray, mean_coefs: np.ndarray) -> np.ndarray:
    """Flip harmonics (columns) so their inner product with the mean is non-negative.

    Harmonics orthogonal to the mean, or all harmonics when the mean is zero,
    get their largest-magnitude coefficient positive instead.
    """
    inner = harmonic_coefs.T @ gram @ mean_coefs
    mean_norm = math.sqrt(max(float(mean_coefs @ gram @ mean_coefs), 0.0))
    scale = max(1.0, float(np.max(np.abs(harmonic_coefs), initial=0.0)))
    signs = np.sign(inner)
    undecided = np.abs(inner) <= 1e-12 * scale * max(mean_norm, 1.0)
    if mean_norm <= 1e-12:
        undecided[:] = True
    largest = harmonic_coefs[np.argmax(np.abs(harmonic_coefs), axis=0), np.arange(harmonic_coefs.shape[1])]
    signs[undecided] = np.sign(largest[undecided])
    signs[signs == 0] = 1.0
    return harmonic_coefs * signs


def functional_pca(
    fd: FunctionalObject,
    n_components: Optional[int] = None,
    fve_threshold: float = 0.99,
    penalty_weight: float = 0.0,
    penalty_order: int = 2,
) -> PCAResult:
    """
    Compute functional principal components of basis-expanded curves.

    Parameters
    ----------
    fd : FunctionalObject
        N curves sharing a basis with K functions.
    n_components : int, optional
        Number of components K'. If None, the smallest number reaching
        `fve_threshold` is used.
    fve_threshold : float, default=0.99
        Cumulative fraction of variance explained used when `n_components` is None.
    penalty_weight : float, default=0.0
        Roughness penalty on the harmonics; 0 gives classical fPCA.
    penalty_order : int, default=2
        Derivative order of the harmonic penalty.

    Returns
    -------
    PCAResult

    Raises
    ------
    ConfigurationError
        If ``n_components <= 0`` or another parameter is invalid.
    DimensionError
        If fewer than two curves are given.
    NumericalError
        If ``n_components > min(N - 1, K)``, if the curves have no variance,
        or if a factorization fails.

    Notes
    -----
    With coefficient matrix ``C`` centered to ``Cc``, ``V = Cc' Cc / N``,
    mass matrix ``W`` and ``J = W + λR = L L'``, the eigenproblem
    ``L^{-1} W V W L^{-T} u = μ u`` yields harmonics ``b = L^{-T} u`` with
    ``b' J b = I``. When ``λ > 0`` the retained harmonics are then made
    orthonormal under ``W`` in component order, so the leading harmonic keeps
    its direction and later ones lose their components along earlier ones.
    Scores are ``Cc W b`` for the final harmonics. The eigenvalues and
    variance proportions are those of the penalized problem.
    """
    if not isinstance(fd, FunctionalObject):
        raise ConfigurationError(f"fd must be a FunctionalObject, got {type(fd).__name__}.")
    if not (isinstance(fve_threshold, (int, float)) and 0.0 < fve_threshold <= 1.0):
        raise ConfigurationError(f"fve_threshold must be a float in (0, 1], got {fve_threshold!r}.")
    if not (isinstance(penalty_weight, (int, float)) and math.isfinite(penalty_weight) and penalty_weight >= 0.0):
        raise ConfigurationError(f"penalty_weight must be finite and non-negative, got {penalty_weight!r}.")

    n_curves, n_basis = fd.coefficients.shape
    if n_curves < 2:
        raise DimensionError(f"Functional PCA needs at least two curves, got {n_curves}.")
    if n_curves <= 3:
        warnings.warn("The number of curves is less than or equal to 3. This may lead to unreliable results in functional PCA.")
    max_components = min(n_curves - 1, n_basis)
    if n_components is not None:
        if isinstance(n_components, bool) or not isinstance(n_components, (int, np.integer)):
            raise ConfigurationError(f"n_components must be a positive integer or None, got {n_components!r}.")
        if n_components <= 0:
            raise ConfigurationError(f"n_components must be positive, got {n_components}.")
        if n_components > max_components:
            raise NumericalError(
                f"Cannot extract {n_components} components from {n_curves} curves in a basis of {n_basis} functions "
                f"(at most {max_components})."
            )

    basis = fd.basis
    mean_coefs = fd.coefficients.mean(axis=0)
    centered = fd.coefficients - mean_coefs
    cov_coefs = centered.T @ centered / n_curves
    gram = basis.gram_matrix()
    metric = gram + penalty_weight * basis.penalty_matrix(penalty_order) if penalty_weight > 0 else np.array(gram)

    try:
        chol = scipy.linalg.cholesky(metric, lower=True)
    except np.linalg.LinAlgError as e:
        raise NumericalError(f"Cholesky factorization of the {n_basis}x{n_basis} harmonic metric failed: {e!s}") from e
    half = scipy.linalg.solve_triangular(chol, gram @ cov_coefs @ gram, lower=True)
    reduced = scipy.linalg.solve_triangular(chol, half.T, lower=True)
    reduced = 0.5 * (reduced + reduced.T)

    eig_lambda, eig_vector = get_eigen_analysis_results(reduced)
    positive = np.clip(eig_lambda, 0.0, None)
    total = positive.sum()
    if not total > 0:
        raise NumericalError("The curves have no variation; principal components are undefined.")
    variance_explained = positive / total

    if n_components is None:
        _, n_components = select_num_pcs_fve(variance_explained, fve_threshold, max_components)
    n_components = int(n_components)

    harmonic_coefs = scipy.linalg.solve_triangular(chol, eig_vector[:, :n_components], lower=True, trans="T")
    if penalty_weight > 0:
        # Gram-Schmidt under W in component order: H <- H L_h^{-T} with H' W H = L_h L_h'
        try:
            chol_h = scipy.linalg.cholesky(harmonic_coefs.T @ gram @ harmonic_coefs, lower=True)
        except np.linalg.LinAlgError as e:
            raise NumericalError(f"The penalized harmonics are linearly dependent under the basis inner product: {e!s}") from e
        harmonic_coefs = scipy.linalg.solve_triangular(chol_h, harmonic_coefs.T, lower=True).T
    harmonic_coefs = _align_signs(harmonic_coefs, gram, mean_coefs)
    scores = centered @ gram @ harmonic_coefs
    logger.info(
        "Retained %d functional principal components explaining %.4f of the variance.",
        n_components,
        variance_explained[:n_components].sum(),
    )

    return PCAResult(
        harmonics=FunctionalObject(harmonic_coefs.T, basis),
        eigenvalues=eig_lambda[:n_components].copy(),
        variance_explained=variance_explained[:n_components].copy(),
        cumulative_variance_explained=np.cumsum(variance_explained)[:n_components],
        scores=scores,
        mean=FunctionalObject(mean_coefs, basis),
        penalty_weight=float(penalty_weight),
        penalty_order=penalty_order,
    )


class FunctionalPCA(BaseEstimator):
    """
    Functional principal component analysis estimator.

    Parameters
    ----------
    n_components : int, optional
        Number of components; selected by `fve_threshold` when None.
    fve_threshold : float, default=0.99
    penalty_weight : float, default=0.0
        Roughness penalty on the harmonics.
    penalty_order : int, default=2

    Attributes
    ----------
    fpca_result_ : PCAResult
    n_components_ : int
    harmonics_ : FunctionalObject
    mean_ : FunctionalObject

    See Also
    --------
    functional_pca : Functional interface returning a PCAResult.
    """

    def __init__(
        self,
        n_components: Optional[int] = None,
        fve_threshold: float = 0.99,
        penalty_weight: float = 0.0,
        penalty_order: int = 2,
    ) -> None:
        if n_components is not None and (isinstance(n_components, bool) or not isinstance(n_components, int) or n_components <= 0):
            raise ConfigurationError("n_components must be a positive integer or None.")
        if not isinstance(fve_threshold, (int, float)) or not 0.0 < fve_threshold <= 1.0:
            raise ConfigurationError("fve_threshold must be a float in (0, 1].")
        if not isinstance(penalty_weight, (int, float)) or penalty_weight < 0:
            raise ConfigurationError("penalty_weight must be a non-negative scalar.")
        self.n_components = n_components
        self.fve_threshold = fve_threshold
        self.penalty_weight = penalty_weight
        self.penalty_order = penalty_order

    def fit(self, fd: FunctionalObject, y=None) -> "FunctionalPCA":
        """Fit the principal components of `fd`.

        Returns
        -------
        FunctionalPCA
            Fitted estimator (self).
        """
        self.fpca_result_ = functional_pca(
            fd,
            n_components=self.n_components,
            fve_threshold=self.fve_threshold,
            penalty_weight=self.penalty_weight,
            penalty_order=self.penalty_order,
        )
        self.n_components_ = self.fpca_result_.n_components
        self.harmonics_ = self.fpca_result_.harmonics
        self.mean_ = self.fpca_result_.mean
        return self

    def transform(self, fd: FunctionalObject) -> np.ndarray:
        """Scores of (new) curves on the fitted harmonics, shape (n_curves, n_components_)."""
        check_is_fitted(self, ["fpca_result_"])
        if fd.basis != self.harmonics_.basis:
            raise DimensionError(f"Curves are in {fd.basis!r} but the components were fitted in {self.harmonics_.basis!r}.")
        centered = fd.coefficients - self.mean_.coefficients
        return centered @ fd.basis.gram_matrix() @ self.harmonics_.coefficients.T

    def fit_transform(self, fd: FunctionalObject, y=None) -> np.ndarray:
        return self.fit(fd).fpca_result_.scores

    def inverse_transform(self, scores: Union[np.ndarray, list]) -> FunctionalObject:
        """Reconstruct curves from scores as ``mean + scores @ harmonics``."""
        check_is_fitted(self, ["fpca_result_"])
        scores = check_array(scores, ensure_2d=False, dtype=np.float64)
        if scores.ndim == 1:
            scores = scores.reshape((1, -1))
        if scores.shape[1] != self.n_components_:
            raise DimensionError(f"scores must have {self.n_components_} columns, got {scores.shape[1]}.")
        coefs = self.mean_.coefficients + scores @ self.harmonics_.coefficients
        return FunctionalObject(coefs, self.harmonics_.basis)
