import numpy as np
import pytest
from numpy.testing import assert_allclose

from specfda.basis import BSplineBasis, FourierBasis
from specfda.exceptions import ConfigurationError, DimensionError
from specfda.fdata import FunctionalObject


@pytest.fixture
def fourier_fd():
    basis = FourierBasis((0.0, 1.0), n_basis=5)
    coefs = np.array(
        [
            [1.0, 0.5, 0.0, 0.0, 0.1],
            [0.0, -1.0, 2.0, 0.3, 0.0],
            [2.0, 0.0, 0.0, 1.0, -1.0],
        ]
    )
    return FunctionalObject(coefs, basis)


def test_construction_copies_and_freezes():
    basis = BSplineBasis((0.0, 1.0), n_basis=6)
    coefs = np.ones((2, 6))
    fd = FunctionalObject(coefs, basis)
    coefs[0, 0] = 5.0
    assert fd.coefficients[0, 0] == 1.0
    with pytest.raises(ValueError):
        fd.coefficients[0, 0] = 2.0
    assert len(fd) == 2
    assert fd.domain_range == (0.0, 1.0)


def test_single_curve_input():
    fd = FunctionalObject(np.zeros(6), BSplineBasis((0.0, 1.0), n_basis=6))
    assert fd.coefficients.shape == (1, 6)


def test_invalid_construction():
    basis = BSplineBasis((0.0, 1.0), n_basis=6)
    with pytest.raises(DimensionError):
        FunctionalObject(np.ones((2, 5)), basis)
    with pytest.raises(ConfigurationError):
        FunctionalObject(np.ones((2, 6)), "basis")  # type: ignore[arg-type]


def test_evaluate_matches_basis(fourier_fd):
    t = np.linspace(0.0, 1.0, 9)
    expected = fourier_fd.coefficients @ fourier_fd.basis.evaluate(t).T
    assert_allclose(fourier_fd.evaluate(t), expected)
    assert_allclose(fourier_fd(t, derivative=1), fourier_fd.coefficients @ fourier_fd.basis.evaluate(t, 1).T)


def test_arithmetic(fourier_fd):
    t = np.linspace(0.0, 1.0, 7)
    values = fourier_fd(t)
    assert_allclose((fourier_fd + fourier_fd)(t), 2 * values)
    assert_allclose((fourier_fd - fourier_fd)(t), 0.0, atol=1e-12)
    assert_allclose((-fourier_fd)(t), -values)
    assert_allclose((3 * fourier_fd)(t), 3 * values)
    assert_allclose((fourier_fd * 0.5)(t), 0.5 * values)
    assert_allclose((fourier_fd / 4)(t), values / 4)
    # a single curve broadcasts against many
    assert_allclose((fourier_fd - fourier_fd[0])(t), values - values[0])
    with pytest.raises(ZeroDivisionError):
        fourier_fd / 0
    with pytest.raises(TypeError):
        fourier_fd * fourier_fd


def test_arithmetic_requires_same_basis(fourier_fd):
    other = FunctionalObject(np.ones((3, 7)), FourierBasis((0.0, 1.0), n_basis=7))
    with pytest.raises(DimensionError):
        fourier_fd + other
    with pytest.raises(DimensionError):
        fourier_fd[:2] + fourier_fd


def test_indexing(fourier_fd):
    assert fourier_fd[1].coefficients.shape == (1, 5)
    assert_allclose(fourier_fd[1].coefficients[0], fourier_fd.coefficients[1])
    assert fourier_fd[[0, 2]].n_curves == 2
    assert fourier_fd[np.array([True, False, True])].n_curves == 2


def test_mean_and_center(fourier_fd):
    assert_allclose(fourier_fd.mean().coefficients[0], fourier_fd.coefficients.mean(axis=0))
    assert_allclose(fourier_fd.center().coefficients.mean(axis=0), 0.0, atol=1e-15)


def test_inner_product_and_norm(fourier_fd):
    # orthonormal basis: inner products reduce to coefficient dot products
    c = fourier_fd.coefficients
    assert_allclose(fourier_fd.inner_product(), c @ c.T, atol=1e-12)
    assert_allclose(fourier_fd.norm(), np.linalg.norm(c, axis=1), atol=1e-12)


def test_inner_product_across_bases():
    t = np.linspace(0.0, 1.0, 201)
    bspline = BSplineBasis((0.0, 1.0), n_basis=12)
    fourier = FourierBasis((0.0, 1.0), n_basis=3)
    # the constant function one in both bases
    ones_bspline = FunctionalObject(np.ones(12), bspline)
    ones_fourier = FunctionalObject(np.array([1.0, 0.0, 0.0]), fourier)
    assert_allclose(ones_bspline(t), 1.0)
    assert_allclose(ones_bspline.inner_product(ones_fourier), [[1.0]], rtol=1e-10)


def test_derivative_object():
    basis = BSplineBasis((0.0, 2.0), n_basis=9)
    rng = np.random.default_rng(1)
    fd = FunctionalObject(rng.normal(size=(4, 9)), basis)
    d_fd = fd.derivative(2)
    t = np.linspace(0.0, 2.0, 21)
    assert d_fd.basis.order == 2
    assert_allclose(d_fd(t), fd(t, derivative=2), atol=1e-9)
    assert "n_curves=4" in repr(fd)
