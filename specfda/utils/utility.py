"""Utility functions for validating grids and sample matrices."""

# Authors: Ching-Chuan Chen
# SPDX-License-Identifier: MIT
from typing import List, Optional, Tuple, Union

import numpy as np
from sklearn.utils.validation import check_array

from specfda.exceptions import ConfigurationError, DimensionError, DomainError


def check_grid(grid: Union[np.ndarray, List[float]], min_points: int = 2) -> np.ndarray:
    """Validate an evaluation grid and return it as a read-only float64 array.

    Parameters
    ----------
    grid : array-like of shape (M,)
        Evaluation points (e.g. wavelengths).
    min_points : int, default=2
        Minimum number of points.

    Returns
    -------
    np.ndarray of shape (M,)
        Read-only copy of the grid.

    Raises
    ------
    DimensionError
        If the grid is not 1D or has fewer than `min_points` points.
    ConfigurationError
        If the grid is not strictly increasing.
    """
    grid = check_array(grid, ensure_2d=False, dtype=np.float64, copy=True)
    if grid.ndim != 1:
        raise DimensionError(f"grid must be a 1D array, got shape {grid.shape}.")
    if grid.size < min_points:
        raise DimensionError(f"grid must have at least {min_points} points, got {grid.size}.")
    steps = np.diff(grid)
    if np.any(steps <= 0):
        first_bad = int(np.argmax(steps <= 0))
        raise ConfigurationError(
            f"grid must be strictly increasing; grid[{first_bad}]={grid[first_bad]!r} >= grid[{first_bad + 1}]={grid[first_bad + 1]!r}."
        )
    grid.setflags(write=False)
    return grid


def check_sample_matrix(samples: Union[np.ndarray, List[List[float]]], grid: Optional[np.ndarray] = None) -> np.ndarray:
    """Validate an (N, M) matrix of curves, rows aligned to `grid`.

    A 1D input is treated as a single curve.

    Raises
    ------
    DimensionError
        If the matrix is not 2D.
    DomainError
        If its width differs from the grid length; the samples were taken on a
        different grid.
    """
    samples = check_array(samples, ensure_2d=False, allow_nd=True, dtype=np.float64)
    if samples.ndim == 1:
        samples = samples.reshape((1, -1))
    if samples.ndim != 2:
        raise DimensionError(f"samples must be a 2D array of shape (n_curves, n_points), got shape {samples.shape}.")
    if grid is not None and samples.shape[1] != grid.shape[0]:
        raise DomainError(f"samples have {samples.shape[1]} points per curve but the grid has {grid.shape[0]} points.")
    return samples


def log_spaced_candidates(log10_range: Tuple[float, float] = (-8.0, 4.0), log10_step: float = 0.5) -> np.ndarray:
    """Generate candidates equally spaced in log10, both ends included.

    Parameters
    ----------
    log10_range : tuple of float, default=(-8.0, 4.0)
        Lower and upper log10 bounds.
    log10_step : float, default=0.5
        Positive spacing in log10 units.

    Returns
    -------
    np.ndarray
        Strictly increasing candidate values ``10 ** exponent``.
    """
    low, high = log10_range
    if not np.isfinite(low) or not np.isfinite(high) or low > high:
        raise ConfigurationError(f"log10 range must be finite and increasing, got {log10_range!r}.")
    if not log10_step > 0:
        raise ConfigurationError(f"log10 step must be positive, got {log10_step!r}.")
    num = int(np.floor((high - low) / log10_step + 1e-9)) + 1
    return 10.0 ** (low + log10_step * np.arange(num))
