import numpy as np
import pytest
from numpy.testing import assert_allclose
from sklearn.exceptions import NotFittedError

from specfda.basis import BSplineBasis, FourierBasis
from specfda.exceptions import ConfigurationError, DimensionError
from specfda.fdata import FunctionalObject
from specfda.regression import FunctionalLinearRegression

TRUE_BETA = np.array([0.5, -1.0, 2.0, 0.25, -0.75])


def _simulate(n_curves, seed, noise=0.1):
    rng = np.random.default_rng(seed)
    basis = FourierBasis((0.0, 1.0), n_basis=5)
    fd = FunctionalObject(rng.normal(size=(n_curves, 5)), basis)
    # the Fourier basis is orthonormal, so ∫ X β = C @ b
    y = 1.5 + fd.coefficients @ TRUE_BETA + noise * rng.standard_normal(n_curves)
    return fd, y


def test_recovers_beta_consistently():
    errors = []
    for n_curves in (50, 2000):
        fd, y = _simulate(n_curves, seed=0)
        model = FunctionalLinearRegression().fit(fd, y)
        errors.append(np.max(np.abs(model.coef_ - TRUE_BETA)))
        assert model.fit_result_.r2 > 0.9
        assert model.intercept_ == pytest.approx(1.5, abs=0.1)
    assert errors[1] < errors[0]
    assert errors[1] < 0.02


def test_matches_ordinary_least_squares():
    fd, y = _simulate(40, seed=1)
    fit = FunctionalLinearRegression().fit(fd, y).fit_result_
    design = np.column_stack([np.ones(40), fd.coefficients])
    coefs, *_ = np.linalg.lstsq(design, y, rcond=None)
    assert_allclose(fit.intercept, coefs[0])
    assert_allclose(fit.beta_coefficients, coefs[1:])
    rss = np.sum((y - design @ coefs) ** 2)
    sigma2 = rss / (40 - 6)
    assert fit.df_model == pytest.approx(6.0)
    assert fit.df_residual == pytest.approx(34.0)
    assert fit.residual_std_error == pytest.approx(np.sqrt(sigma2))
    assert_allclose(fit.std_errors, np.sqrt(np.diag(sigma2 * np.linalg.inv(design.T @ design))))
    assert_allclose(fit.fitted_values + fit.residuals, y)
    tss = np.sum((y - y.mean()) ** 2)
    assert fit.r2 == pytest.approx(1 - rss / tss)
    assert fit.adjusted_r2 == pytest.approx(1 - (1 - fit.r2) * 39 / 34)


def test_separate_beta_basis():
    rng = np.random.default_rng(2)
    x_basis = BSplineBasis((0.0, 1.0), n_basis=12)
    beta_basis = FourierBasis((0.0, 1.0), n_basis=3)
    fd = FunctionalObject(rng.normal(size=(80, 12)), x_basis)
    beta = FunctionalObject(np.array([0.0, 1.0, -0.5]), beta_basis)
    y = fd.inner_product(beta)[:, 0] + 0.01 * rng.standard_normal(80)
    model = FunctionalLinearRegression(beta_basis=beta_basis).fit(fd, y)
    assert model.fit_result_.beta.basis == beta_basis
    assert_allclose(model.coef_, [0.0, 1.0, -0.5], atol=0.05)
    assert_allclose(model.predict(fd), model.fit_result_.fitted_values)
    assert model.score(fd, y) > 0.9


def test_penalty_smooths_beta():
    rng = np.random.default_rng(3)
    basis = BSplineBasis((0.0, 1.0), n_basis=15)
    fd = FunctionalObject(rng.normal(size=(60, 15)), basis)
    y = fd.coefficients.sum(axis=1) * 0.1 + 0.5 * rng.standard_normal(60)
    rough = FunctionalLinearRegression().fit(fd, y)
    smooth = FunctionalLinearRegression(penalty_weight=1.0).fit(fd, y)
    penalty = basis.penalty_matrix(2)
    assert smooth.coef_ @ penalty @ smooth.coef_ < rough.coef_ @ penalty @ rough.coef_
    assert smooth.fit_result_.df_model < rough.fit_result_.df_model
    assert smooth.fit_result_.penalty_weight == 1.0


def test_dimension_errors():
    fd, y = _simulate(20, seed=4)
    with pytest.raises(DimensionError):
        FunctionalLinearRegression().fit(fd, y[:-1])
    with pytest.raises(DimensionError):
        FunctionalLinearRegression(beta_basis=FourierBasis((0.0, 2.0), n_basis=3)).fit(fd, y)
    with pytest.raises(DimensionError):
        FunctionalLinearRegression().fit(fd[:6], y[:6])
    with pytest.raises(DimensionError):
        FunctionalLinearRegression().fit(fd, np.ones((20, 2)))


def test_invalid_configuration():
    with pytest.raises(ConfigurationError):
        FunctionalLinearRegression(penalty_weight=-1.0)
    with pytest.raises(ConfigurationError):
        FunctionalLinearRegression(beta_basis="fourier")  # type: ignore[arg-type]
    with pytest.raises(ConfigurationError):
        FunctionalLinearRegression().fit(np.ones((5, 3)), np.ones(5))  # type: ignore[arg-type]


def test_constant_response_warns():
    fd, _ = _simulate(20, seed=5)
    with pytest.warns(UserWarning, match="constant"):
        fit = FunctionalLinearRegression().fit(fd, np.full(20, 3.0)).fit_result_
    assert fit.intercept == pytest.approx(3.0)
    assert_allclose(fit.beta_coefficients, 0.0, atol=1e-10)


def test_not_fitted():
    fd, _ = _simulate(10, seed=6)
    with pytest.raises(NotFittedError):
        FunctionalLinearRegression().predict(fd)
