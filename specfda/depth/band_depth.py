"""Band depths (BD2, MBD and their combination) for curves on a common grid."""

# Authors: Ching-Chuan Chen
# SPDX-License-Identifier: MIT
import logging
from typing import Callable, Dict, List, Literal, Optional, Union

import numpy as np
from sklearn.utils.validation import check_array

from specfda.depth.depth_result_class import DepthResult
from specfda.exceptions import ConfigurationError, DimensionError
from specfda.fdata import FunctionalObject
from specfda.utils import check_grid

logger = logging.getLogger(__name__)

ArrayLike = Union[np.ndarray, List[List[float]]]


def _check_curves(curves: ArrayLike, name: str = "curves", n_points: Optional[int] = None) -> np.ndarray:
    curves = check_array(curves, ensure_2d=False, allow_nd=True, dtype=np.float64)
    if curves.ndim != 2:
        raise DimensionError(f"{name} must be a 2D array of shape (n_curves, n_points), got shape {curves.shape}.")
    if curves.shape[0] < 2:
        raise DimensionError(f"{name} must contain at least two curves, got {curves.shape[0]}.")
    if n_points is not None and curves.shape[1] != n_points:
        raise DimensionError(f"{name} have {curves.shape[1]} points per curve, expected {n_points}.")
    return curves


def _prepare(curves: ArrayLike, reference: Optional[ArrayLike]):
    curves = _check_curves(curves)
    reference = curves if reference is None else _check_curves(reference, "reference", curves.shape[1])
    n_ref = reference.shape[0]
    return curves, reference, n_ref * (n_ref - 1) // 2


def _pairs(n: np.ndarray) -> np.ndarray:
    return n * (n - 1) // 2


def _mbd_pair_counts(curves: np.ndarray, reference: np.ndarray) -> np.ndarray:
    """Sum over grid points of the number of reference pairs whose band contains each curve."""
    n_ref, n_points = reference.shape
    sorted_ref = np.sort(reference, axis=0)
    total = np.zeros(curves.shape[0], dtype=np.int64)
    for j in range(n_points):
        below = np.searchsorted(sorted_ref[:, j], curves[:, j], side="left")
        above = n_ref - np.searchsorted(sorted_ref[:, j], curves[:, j], side="right")
        total += _pairs(n_ref) - _pairs(above) - _pairs(below)
    return total


def _bd2_pair_counts(curves: np.ndarray, reference: np.ndarray) -> np.ndarray:
    """Number of reference pairs whose band contains each curve on the whole grid."""
    counts = np.zeros(curves.shape[0], dtype=np.int64)
    for i, curve in enumerate(curves):
        above = (reference > curve).astype(np.float64)
        below = (reference < curve).astype(np.float64)
        # a pair fails when both members lie strictly on the same side at some point
        contained = ((above @ above.T) == 0) & ((below @ below.T) == 0)
        counts[i] = (int(contained.sum()) - int(np.trace(contained))) // 2
    return counts


def modified_band_depth(curves: ArrayLike, reference: Optional[ArrayLike] = None) -> np.ndarray:
    """
    Modified band depth (MBD) of each curve.

    Parameters
    ----------
    curves : array-like of shape (N, M)
        Curves evaluated on a common grid.
    reference : array-like of shape (R, M), optional
        Sample forming the bands; defaults to `curves`.

    Returns
    -------
    np.ndarray of shape (N,)
        Average over grid points of the fraction of reference pairs ``{j, k}``
        with ``min(x_j, x_k) <= x <= max(x_j, x_k)``.

    Notes
    -----
    At each point the count of containing pairs is
    ``C(R, 2) - C(#above, 2) - C(#below, 2)``, read off the sorted reference
    column, so the cost is O(N M log R).
    """
    curves, reference, n_pairs = _prepare(curves, reference)
    return _mbd_pair_counts(curves, reference) / (n_pairs * curves.shape[1])


def band_depth(curves: ArrayLike, reference: Optional[ArrayLike] = None) -> np.ndarray:
    """
    Band depth of order two (BD2) of each curve.

    Parameters
    ----------
    curves : array-like of shape (N, M)
    reference : array-like of shape (R, M), optional
        Sample forming the bands; defaults to `curves`.

    Returns
    -------
    np.ndarray of shape (N,)
        Fraction of reference pairs whose band contains the curve at every
        grid point (inclusive bounds).

    Notes
    -----
    Costs O(N R^2 M) time and O(R^2 + R M) memory per curve, which is fine
    for a few hundred curves but does not scale much beyond that.
    """
    curves, reference, n_pairs = _prepare(curves, reference)
    return _bd2_pair_counts(curves, reference) / n_pairs


def combined_band_depth(curves: ArrayLike, reference: Optional[ArrayLike] = None) -> np.ndarray:
    """
    BD2 refined by MBD ("Both").

    Returns ``(k + MBD) / (C + 1)`` where ``k`` is the BD2 pair count and ``C``
    the number of reference pairs. Curves are ordered by BD2 first and MBD only
    separates curves with equal BD2; values stay in [0, 1].
    """
    curves, reference, n_pairs = _prepare(curves, reference)
    mbd = _mbd_pair_counts(curves, reference) / (n_pairs * curves.shape[1])
    return (_bd2_pair_counts(curves, reference) + mbd) / (n_pairs + 1)


DEPTH_METHODS: Dict[str, Callable[..., np.ndarray]] = {
    "BD2": band_depth,
    "MBD": modified_band_depth,
    "Both": combined_band_depth,
}


def depth_ordering(depths: np.ndarray, mbd: np.ndarray) -> np.ndarray:
    """Indices from the deepest to the most outlying curve; ties by MBD, then by index."""
    return np.lexsort((np.arange(depths.size), -mbd, -depths))


def functional_depth(
    curves: ArrayLike,
    method: Literal["BD2", "MBD", "Both"] = "MBD",
    reference: Optional[ArrayLike] = None,
) -> DepthResult:
    """
    Compute the depth of each curve, the median curve and the center-outward ordering.

    Parameters
    ----------
    curves : array-like of shape (N, M)
        Curves on a common grid, N >= 2.
    method : {"BD2", "MBD", "Both"}, default="MBD"
    reference : array-like of shape (R, M), optional
        Sample forming the bands; defaults to `curves`. Pairs that include the
        curve itself count as containing it.

    Returns
    -------
    DepthResult

    Raises
    ------
    ConfigurationError
        If `method` is unknown.
    DimensionError
        If fewer than two curves are given or `curves` and `reference` have a
        different number of points. Both are sampled curves, so this is a
        shape mismatch rather than a grid mismatch.
    """
    if method not in DEPTH_METHODS:
        raise ConfigurationError(f"method must be one of {list(DEPTH_METHODS)}, got {method!r}.")
    curves, reference, n_pairs = _prepare(curves, reference)
    mbd = _mbd_pair_counts(curves, reference) / (n_pairs * curves.shape[1])
    bd2 = None
    if method == "MBD":
        depths = mbd
        rank_depths = mbd
    else:
        bd2_counts = _bd2_pair_counts(curves, reference)
        bd2 = bd2_counts / n_pairs
        # BD2 ties are frequent, so ranking always goes through the BD2-then-MBD value
        rank_depths = (bd2_counts + mbd) / (n_pairs + 1)
        depths = bd2 if method == "BD2" else rank_depths
    median_index = int(np.argmax(rank_depths))
    logger.debug("Computed %s depth of %d curves; median curve index %d.", method, curves.shape[0], median_index)
    return DepthResult(
        depths=np.array(depths, dtype=np.float64),
        median_index=median_index,
        method=method,
        ordering=depth_ordering(rank_depths, mbd),
        mbd=mbd,
        bd2=bd2,
        rank_depths=np.array(rank_depths, dtype=np.float64),
    )


def fd_depth(
    fd: FunctionalObject,
    grid: Union[np.ndarray, List[float]],
    method: Literal["BD2", "MBD", "Both"] = "MBD",
    reference: Optional[FunctionalObject] = None,
) -> DepthResult:
    """Depth of functional objects evaluated on `grid`; see `functional_depth`."""
    grid = check_grid(grid)
    curves = fd.evaluate(grid)
    ref_values = None if reference is None else reference.evaluate(grid)
    return functional_depth(curves, method=method, reference=ref_values)
