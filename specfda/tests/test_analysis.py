import numpy as np
import pytest
from numpy.testing import assert_allclose
from sklearn.exceptions import NotFittedError

from specfda import AnalysisParams, SmoothingParams, SpectraAnalysis, SpectraDataGenerator
from specfda.basis import BSplineBasis, FourierBasis
from specfda.exceptions import ConfigurationError, DimensionError, DomainError


@pytest.fixture(scope="module")
def spectra():
    return SpectraDataGenerator().generate(40, seed=2024)


@pytest.fixture(scope="module")
def fitted(spectra):
    params = AnalysisParams(
        smoothing=SmoothingParams(n_basis=20, log10_lambda_range=(-6.0, 2.0), log10_lambda_step=1.0),
        regression_n_basis=8,
    )
    return SpectraAnalysis(params).fit(spectra.grid, spectra.samples, spectra.covariates)


def test_pipeline_results(spectra, fitted):
    assert fitted.smoothing_.coefficients.shape == (40, 20)
    assert fitted.lambda_selection_results_ is not None
    assert fitted.smoothing_.lambda_ == fitted.lambda_selection_results_["best_lambda"]
    assert 1 <= fitted.fpca_.n_components <= 20
    assert fitted.fpca_.cumulative_variance_explained[-1] >= 0.99 - 1e-12
    assert fitted.depth_.depths.shape == (40,)
    assert fitted.depth_.method == "MBD"
    assert fitted.outliers_.depths is not None
    assert set(fitted.regressions_) == {"fat", "water", "protein"}
    assert fitted.regressions_["fat"].beta_coefficients.shape == (8,)
    assert fitted.regressions_["fat"].r2 > 0.8
    assert set(fitted.elapsed_time_) == {"smoothing", "fpca", "depth", "regression", "fit_total_time"}
    assert all(v >= 0 for v in fitted.elapsed_time_.values())
    assert_allclose(fitted.fd_.evaluate(spectra.grid), spectra.samples, atol=0.05)


def test_fixed_lambda_fourier_without_covariates(spectra):
    params = AnalysisParams(
        smoothing=SmoothingParams(basis_type="fourier", n_basis=11, lambda_=1e-4),
        n_components=3,
        depth_method="Both",
    )
    analysis = SpectraAnalysis(params).fit(spectra.grid, spectra.samples)
    assert isinstance(analysis.smoothing_.basis, FourierBasis)
    assert analysis.smoothing_.lambda_ == 1e-4
    assert analysis.lambda_selection_results_ is None
    assert analysis.fpca_.n_components == 3
    assert analysis.depth_.bd2 is not None
    assert analysis.regressions_ == {}


def test_default_params(spectra):
    analysis = SpectraAnalysis().fit(spectra.grid, spectra.samples[:10])
    assert isinstance(analysis.smoothing_.basis, BSplineBasis)
    assert analysis.smoothing_.basis.n_basis == 20


def test_errors_abort_the_run(spectra):
    analysis = SpectraAnalysis(AnalysisParams(smoothing=SmoothingParams(lambda_=1e-4)))
    with pytest.raises(DomainError):
        analysis.fit(spectra.grid, spectra.samples[:, :-1])
    with pytest.raises(DimensionError):
        analysis.fit(spectra.grid, spectra.samples, {"fat": spectra.covariates["fat"][:-1]})
    assert not hasattr(analysis, "smoothing_")
    with pytest.raises(NotFittedError):
        analysis.fd_


def test_smoothing_params():
    params = SmoothingParams(basis_type="fourier", n_basis=7, period=2.0)
    basis = params.make_basis((0.0, 1.0))
    assert isinstance(basis, FourierBasis)
    assert basis.period == 2.0
    assert params.make_basis((0.0, 1.0), n_basis=5).n_basis == 5
    assert "basis_type='fourier'" in repr(params)
    assert isinstance(SmoothingParams().make_basis((0.0, 1.0)), BSplineBasis)


@pytest.mark.parametrize(
    "kwargs",
    [
        {"basis_type": "wavelet"},
        {"n_basis": 0},
        {"basis_type": "fourier", "n_basis": 10},
        {"n_basis": 4, "order": 4},
        {"period": -1.0},
        {"penalty_order": 5},
        {"penalty_order": True},
        {"lambda_": -1.0},
        {"log10_lambda_range": (2.0, -2.0)},
        {"log10_lambda_step": 0.0},
        {"n_jobs": 0},
    ],
)
def test_invalid_smoothing_params(kwargs):
    with pytest.raises(ConfigurationError):
        SmoothingParams(**kwargs)


@pytest.mark.parametrize(
    "kwargs",
    [
        {"smoothing": "bspline"},
        {"n_components": 0},
        {"fve_threshold": 1.5},
        {"harmonic_penalty": -1.0},
        {"depth_method": "Tukey"},
        {"outlier_factor": -0.5},
        {"regression_n_basis": 2},
        {"smoothing": SmoothingParams(basis_type="fourier", n_basis=9), "regression_n_basis": 4},
    ],
)
def test_invalid_analysis_params(kwargs):
    with pytest.raises(ConfigurationError):
        AnalysisParams(**kwargs)


def test_analysis_params_repr():
    text = repr(AnalysisParams(depth_method="BD2"))
    assert text.startswith("AnalysisParams(smoothing=SmoothingParams(")
    assert "depth_method='BD2'" in text


def test_invalid_pipeline_params():
    with pytest.raises(ConfigurationError):
        SpectraAnalysis(params={"depth_method": "MBD"})
