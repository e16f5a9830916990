"""Linear algebra helpers: stable symmetric solves and symmetric eigen-decomposition."""

# Authors: Ching-Chuan Chen
# SPDX-License-Identifier: MIT
import logging
import warnings
from typing import Tuple

import numpy as np
import scipy.linalg

from specfda.exceptions import NumericalError

logger = logging.getLogger(__name__)

# reciprocal condition numbers below this are treated as ill-conditioned for Cholesky
_RCOND_CHOLESKY = 1e-12


def solve_symmetric_system(a: np.ndarray, b: np.ndarray) -> Tuple[np.ndarray, str]:
    """Solve ``a @ x = b`` for a symmetric (semi-)definite matrix ``a``.

    The routines are tried in the order LAPACK posv (Cholesky), sysv
    (symmetric indefinite) and gelss (SVD least squares). The first two are
    only used when ``a`` is numerically well conditioned; the SVD path returns
    the minimum-norm solution for singular systems.

    Parameters
    ----------
    a : np.ndarray of shape (k, k)
        Symmetric system matrix.
    b : np.ndarray of shape (k,) or (k, nrhs)
        Right-hand side(s).

    Returns
    -------
    x : np.ndarray
        Solution with the shape of `b`.
    method : {"cholesky", "symmetric", "lstsq"}
        The routine that produced the solution.

    Raises
    ------
    NumericalError
        If the inputs are not finite or no routine succeeds.
    """
    if not (np.all(np.isfinite(a)) and np.all(np.isfinite(b))):
        raise NumericalError(f"Linear system of size {a.shape} contains non-finite values.")

    rcond = _reciprocal_condition(a)
    if rcond > _RCOND_CHOLESKY:
        try:
            factor = scipy.linalg.cho_factor(a, lower=True, check_finite=False)
            return scipy.linalg.cho_solve(factor, b, check_finite=False), "cholesky"
        except np.linalg.LinAlgError:
            logger.debug("Cholesky factorization failed (rcond=%.3e); trying symmetric solve.", rcond)
        try:
            with warnings.catch_warnings():
                warnings.simplefilter("error", scipy.linalg.LinAlgWarning)
                return scipy.linalg.solve(a, b, assume_a="sym", check_finite=False), "symmetric"
        except (np.linalg.LinAlgError, scipy.linalg.LinAlgWarning):
            logger.debug("Symmetric solve failed (rcond=%.3e); falling back to SVD least squares.", rcond)
    else:
        logger.debug("System is ill-conditioned (rcond=%.3e); using SVD least squares.", rcond)

    try:
        x, *_ = scipy.linalg.lstsq(a, b, lapack_driver="gelss", check_finite=False)
    except (np.linalg.LinAlgError, ValueError) as e:
        raise NumericalError(f"No factorization succeeded for the {a.shape[0]}x{a.shape[1]} system: {e!s}") from e
    return x, "lstsq"


def _reciprocal_condition(a: np.ndarray) -> float:
    """Return the 2-norm reciprocal condition number of a symmetric matrix."""
    try:
        eig = np.abs(scipy.linalg.eigvalsh(a, check_finite=False))
    except np.linalg.LinAlgError:
        return 0.0
    largest = eig.max() if eig.size > 0 else 0.0
    if largest <= 0:
        return 0.0
    return float(eig.min() / largest)


def get_eigen_analysis_results(sym_mat: np.ndarray) -> Tuple[np.ndarray, np.ndarray]:
    """
    Compute eigenvalues and eigenvectors of a symmetric matrix.

    Parameters
    ----------
    sym_mat : np.ndarray of shape (k, k)
        Symmetric matrix; only the lower triangle is referenced.

    Returns
    -------
    eig_lambda : np.ndarray of shape (k,)
        Eigenvalues sorted in descending order. Ties keep their original
        (ascending LAPACK) index order, so the ordering is deterministic.
    eig_vector : np.ndarray of shape (k, k)
        Corresponding unit eigenvectors (columns).

    Raises
    ------
    NumericalError
        If the LAPACK driver fails or the matrix contains non-finite values.

    Warns
    -----
    UserWarning
        If clearly negative eigenvalues appear, i.e. the matrix is not
        positive semi-definite.
    """
    if not np.all(np.isfinite(sym_mat)):
        raise NumericalError(f"Matrix of shape {sym_mat.shape} contains non-finite values; eigen-decomposition is undefined.")
    try:
        eig_lambda, eig_vector = scipy.linalg.eigh(sym_mat, lower=True, driver="evd", check_finite=False)
    except np.linalg.LinAlgError as e:
        raise NumericalError(f"LAPACK syevd failed on a {sym_mat.shape[0]}x{sym_mat.shape[1]} matrix: {e!s}") from e

    tol = 10.0 * np.finfo(np.float64).eps * max(1.0, float(np.max(np.abs(eig_lambda), initial=0.0)))
    if np.any(eig_lambda < -tol):
        warnings.warn("Eigenvalues contain negative values. The matrix may not be positive semi-definite.")

    ord_idx = np.argsort(-eig_lambda, kind="stable")
    return eig_lambda[ord_idx], eig_vector[:, ord_idx]
