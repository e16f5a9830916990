"""Composite Gauss-Legendre quadrature on piecewise intervals."""

# Authors: Ching-Chuan Chen
# SPDX-License-Identifier: MIT
from typing import Tuple

import numpy as np


def gauss_legendre_nodes(breaks: np.ndarray, num_nodes: int) -> Tuple[np.ndarray, np.ndarray]:
    """Return nodes and weights of a composite Gauss-Legendre rule.

    Each interval ``[breaks[i], breaks[i + 1]]`` receives `num_nodes` nodes, so
    the rule is exact for piecewise polynomials of degree ``2 * num_nodes - 1``
    whose pieces are delimited by `breaks`.

    Parameters
    ----------
    breaks : np.ndarray of shape (n_breaks,)
        Strictly increasing interval end points.
    num_nodes : int
        Nodes per interval (>= 1).

    Returns
    -------
    nodes : np.ndarray of shape ((n_breaks - 1) * num_nodes,)
    weights : np.ndarray of shape ((n_breaks - 1) * num_nodes,)
    """
    if num_nodes < 1:
        raise ValueError("num_nodes must be a positive integer.")
    ref_nodes, ref_weights = np.polynomial.legendre.leggauss(num_nodes)
    left = breaks[:-1].reshape((-1, 1))
    half_width = 0.5 * np.diff(breaks).reshape((-1, 1))
    nodes = left + half_width * (ref_nodes + 1.0)
    weights = half_width * ref_weights
    # clip round-off so nodes never leave [breaks[0], breaks[-1]]
    return np.clip(nodes.ravel(), breaks[0], breaks[-1]), weights.ravel()


def refine_breaks(breaks: np.ndarray, min_intervals: int) -> np.ndarray:
    """Split each interval evenly so that there are at least `min_intervals` intervals."""
    num_intervals = breaks.size - 1
    if num_intervals >= min_intervals:
        return breaks
    splits = int(np.ceil(min_intervals / num_intervals))
    pieces = [np.linspace(lo, hi, splits + 1)[:-1] for lo, hi in zip(breaks[:-1], breaks[1:])]
    return np.concatenate(pieces + [breaks[-1:]])
