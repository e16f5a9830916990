import numpy as np
import pytest
from numpy.testing import assert_allclose

from specfda.depth import depth_outliers, functional_depth
from specfda.exceptions import ConfigurationError, DimensionError


def test_iqr_and_central_rules():
    result = depth_outliers([0.1, 0.5, 0.6, 0.7, 0.8])
    assert result.q1 == pytest.approx(0.5)
    assert result.q3 == pytest.approx(0.7)
    assert result.iqr == pytest.approx(0.2)
    assert result.threshold == pytest.approx(0.2)
    assert_allclose(result.outlier_indices, [0])
    assert_allclose(result.outlier_mask, [True, False, False, False, False])
    assert_allclose(result.central_indices, [2, 3, 4])


def test_factor_changes_threshold():
    depths = np.array([0.1, 0.5, 0.6, 0.7, 0.8])
    assert depth_outliers(depths, factor=3.0).outlier_indices.size == 0
    assert_allclose(depth_outliers(depths, factor=0.0).outlier_indices, [0])


def test_accepts_depth_result():
    curves = np.array([[0.0] * 3, [1.0] * 3, [2.0] * 3, [3.0] * 3])
    result = depth_outliers(functional_depth(curves))
    assert_allclose(result.depths, functional_depth(curves).depths)
    assert_allclose(result.central_indices, [1, 2])


def test_tied_bd2_depths_use_mbd():
    grid = np.linspace(0.0, 1.0, 40)
    base = np.sin(2 * np.pi * grid)
    # each curve takes every rank equally often, so only the shifted one stands out
    offsets = np.array([[(i + m) % 8 for m in range(40)] for i in range(8)], dtype=np.float64)
    curves = np.vstack([base + 0.1 * offsets, base + 5.0])
    depth = functional_depth(curves, method="BD2")
    assert depth_outliers(depth.depths).outlier_indices.size == 0
    result = depth_outliers(depth)
    assert_allclose(result.depths, depth.rank_depths)
    assert list(result.outlier_indices) == [8]


def test_constant_depths_flag_nothing():
    result = depth_outliers(np.full(6, 0.4))
    assert result.iqr == 0.0
    assert result.outlier_indices.size == 0
    assert result.central_mask.all()


@pytest.mark.parametrize("factor", [-1.0, np.inf, True])
def test_invalid_factor(factor):
    with pytest.raises(ConfigurationError):
        depth_outliers([0.1, 0.2, 0.3], factor=factor)


def test_invalid_depths():
    with pytest.raises(DimensionError):
        depth_outliers(np.ones((2, 2)))
