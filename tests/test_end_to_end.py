import numpy as np
import pytest
from numpy.testing import assert_allclose

from specfda import AnalysisParams, SmoothingParams, SpectraAnalysis, SpectraDataGenerator
from specfda.basis import BSplineBasis
from specfda.depth import depth_outliers, fd_depth, functional_depth
from specfda.fpca import FunctionalPCA
from specfda.regression import FunctionalLinearRegression
from specfda.smooth import BasisSmoother


@pytest.fixture
def five_curves():
    rng = np.random.default_rng(42)
    grid = np.linspace(0.0, 1.0, 100)
    base = np.sin(2 * np.pi * grid)
    curves = np.vstack([base] * 4 + [3.0 * base]) + 0.1 * rng.standard_normal((5, 100))
    return grid, curves


def test_scaled_curve_is_least_deep_under_bd2(five_curves):
    _, curves = five_curves
    result = functional_depth(curves, method="BD2")
    # no band of two other curves holds a whole noisy curve, so BD2 ties at 4/10
    assert_allclose(result.depths, 0.4)
    assert result.ordering[-1] == 4
    assert result.mbd[4] == result.mbd.min()
    assert np.argmin(result.rank_depths) == 4
    outliers = depth_outliers(result)
    assert 4 in outliers.outlier_indices
    assert not outliers.central_mask[4]


@pytest.mark.parametrize("method", ["MBD", "Both"])
def test_scaled_curve_is_flagged(five_curves, method):
    _, curves = five_curves
    result = functional_depth(curves, method=method)
    assert result.ordering[-1] == 4
    assert result.median_index != 4
    outliers = depth_outliers(result)
    assert list(outliers.outlier_indices) == [4]
    assert not outliers.central_mask[4]


def test_smoothed_scaled_curve_is_least_deep(five_curves):
    grid, curves = five_curves
    smoother = BasisSmoother(BSplineBasis((0.0, 1.0), n_basis=15), log10_lambda_range=(-10.0, -2.0)).fit(grid, curves)
    result = fd_depth(smoother.fd_, grid, method="BD2")
    assert result.depths[4] == pytest.approx(0.4)
    assert result.depths[4] == result.depths.min()
    assert result.ordering[-1] == 4


def test_pipeline_on_scaled_curves(five_curves):
    grid, curves = five_curves
    params = AnalysisParams(smoothing=SmoothingParams(n_basis=15, lambda_=1e-6), depth_method="BD2")
    analysis = SpectraAnalysis(params).fit(grid, curves)
    assert analysis.depth_.ordering[-1] == 4
    assert analysis.depth_.median_index != 4
    # the first component separates the amplitude of curve 5
    scores = analysis.fpca_.scores[:, 0]
    assert np.argmax(np.abs(scores - np.median(scores))) == 4


def test_pipeline_flags_scaled_curve_under_bd2(five_curves):
    grid, curves = five_curves
    # a light fit keeps the noise, so BD2 ties and MBD separates the curves
    params = AnalysisParams(smoothing=SmoothingParams(n_basis=60, lambda_=1e-10), depth_method="BD2")
    analysis = SpectraAnalysis(params).fit(grid, curves)
    assert analysis.depth_.median_index == analysis.depth_.ordering[0]
    assert 4 in analysis.outliers_.outlier_indices
    assert_allclose(analysis.outliers_.depths, analysis.depth_.rank_depths)


def test_spectra_workflow():
    data = SpectraDataGenerator().generate(60, seed=7)
    basis = BSplineBasis((850.0, 1050.0), n_basis=25)
    smoother = BasisSmoother(basis, log10_lambda_range=(-6.0, 2.0), log10_lambda_step=1.0).fit(data.grid, data.samples)
    fd = smoother.fd_

    pca = FunctionalPCA(n_components=4).fit(fd)
    assert pca.fpca_result_.cumulative_variance_explained[-1] > 0.9
    errors = []
    for n_components in (2, 4, 25):
        pca = FunctionalPCA(n_components=n_components).fit(fd)
        errors.append(np.sum((pca.inverse_transform(pca.transform(fd)) - fd).norm() ** 2))
    assert errors[0] >= errors[1] >= errors[2]
    assert errors[2] == pytest.approx(0.0, abs=1e-8)

    train, test = slice(0, 45), slice(45, 60)
    model = FunctionalLinearRegression(beta_basis=BSplineBasis((850.0, 1050.0), n_basis=10))
    model.fit(fd[train], data.covariates["fat"][train])
    assert model.score(fd[test], data.covariates["fat"][test]) > 0.7

    depth = fd_depth(fd, data.grid, method="Both")
    assert 0 <= depth.median_index < 60
    assert depth_outliers(depth).outlier_indices.size < 10
