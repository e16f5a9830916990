"""The classes to save functional depth and outlier flagging results"""

# Authors: Ching-Chuan Chen
# SPDX-License-Identifier: MIT
from dataclasses import dataclass
from typing import Literal, Optional

import numpy as np


@dataclass(frozen=True)
class DepthResult:
    """Functional depth of each curve.

    Attributes
    ----------
    depths : np.ndarray of shape (N,)
        Depth in [0, 1] under `method`.
    median_index : int
        Index of the curve with the largest `rank_depths` (lowest index on ties).
    method : {"BD2", "MBD", "Both"}
    ordering : np.ndarray of shape (N,)
        Curve indices from the deepest to the most outlying. Ties in
        `rank_depths` are broken by MBD, then by index.
    mbd : np.ndarray of shape (N,)
        Modified band depth, always computed.
    bd2 : np.ndarray of shape (N,) or None
        Band depth of order 2; None when `method` is "MBD".
    rank_depths : np.ndarray of shape (N,)
        Depth used to rank curves and to flag outliers. Equal to `depths` for
        "MBD" and "Both". For "BD2" it is the "Both" value
        ``(k + MBD) / (C + 1)``, which keeps the BD2 order and separates
        curves with equal BD2 by their MBD. Defaults to `depths`.
    """

    depths: np.ndarray
    median_index: int
    method: Literal["BD2", "MBD", "Both"]
    ordering: np.ndarray
    mbd: np.ndarray
    bd2: Optional[np.ndarray] = None
    rank_depths: Optional[np.ndarray] = None

    def __post_init__(self) -> None:
        if self.rank_depths is None:
            object.__setattr__(self, "rank_depths", self.depths)
        for arr in (self.depths, self.ordering, self.mbd, self.bd2, self.rank_depths):
            if arr is not None:
                arr.setflags(write=False)


@dataclass(frozen=True)
class OutlierResult:
    """Interquartile-range outlier rule and central-sample rule applied to depths.

    Attributes
    ----------
    depths : np.ndarray of shape (N,)
    q1, q3, iqr : float
        Quartiles of the depths and their difference.
    threshold : float
        ``q1 - factor * iqr``; depths strictly below it are outliers.
    outlier_mask : np.ndarray of shape (N,)
    outlier_indices : np.ndarray
    central_mask : np.ndarray of shape (N,)
        Curves whose depth is at least the median depth.
    """

    depths: np.ndarray
    q1: float
    q3: float
    iqr: float
    threshold: float
    outlier_mask: np.ndarray
    outlier_indices: np.ndarray
    central_mask: np.ndarray

    def __post_init__(self) -> None:
        for arr in (self.depths, self.outlier_mask, self.outlier_indices, self.central_mask):
            arr.setflags(write=False)

    @property
    def central_indices(self) -> np.ndarray:
        return np.flatnonzero(self.central_mask)
