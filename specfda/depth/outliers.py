"""Outlier and central-sample rules on functional depths."""

# Authors: Ching-Chuan Chen
# SPDX-License-Identifier: MIT
import logging
import math
from typing import List, Union

import numpy as np
from sklearn.utils.validation import check_array

from specfda.depth.depth_result_class import DepthResult, OutlierResult
from specfda.exceptions import ConfigurationError, DimensionError

logger = logging.getLogger(__name__)


def depth_outliers(depths: Union[DepthResult, np.ndarray, List[float]], factor: float = 1.5) -> OutlierResult:
    """
    Flag outlying and central curves from their depths.

    Parameters
    ----------
    depths : DepthResult or array-like of shape (N,)
        Depth values, or a depth result whose `rank_depths` are used. Under
        "BD2" these separate curves that share a BD2 value by their MBD, so
        the rule still applies when many BD2 depths tie.
    factor : float, default=1.5
        IQR multiplier of the outlier rule.

    Returns
    -------
    OutlierResult
        Curves with ``depth < Q1 - factor * IQR`` are outliers; curves with
        ``depth >= median(depth)`` are central. Quartiles use linear
        interpolation between order statistics.

    Raises
    ------
    ConfigurationError
        If `factor` is negative or not finite.
    DimensionError
        If `depths` is not a non-empty 1D array.
    """
    if isinstance(factor, bool) or not isinstance(factor, (int, float)) or not math.isfinite(factor) or factor < 0:
        raise ConfigurationError(f"factor must be a finite non-negative number, got {factor!r}.")
    values = depths.rank_depths if isinstance(depths, DepthResult) else depths
    values = check_array(values, ensure_2d=False, dtype=np.float64, copy=True)
    if values.ndim != 1:
        raise DimensionError(f"depths must be a 1D array, got shape {values.shape}.")

    q1, q3 = np.percentile(values, [25.0, 75.0])
    iqr = float(q3 - q1)
    threshold = float(q1 - factor * iqr)
    outlier_mask = values < threshold
    central_mask = values >= np.median(values)
    logger.info("Flagged %d outlying and %d central curves out of %d.", int(outlier_mask.sum()), int(central_mask.sum()), values.size)
    return OutlierResult(
        depths=values,
        q1=float(q1),
        q3=float(q3),
        iqr=iqr,
        threshold=threshold,
        outlier_mask=outlier_mask,
        outlier_indices=np.flatnonzero(outlier_mask),
        central_mask=central_mask,
    )
