import numpy as np
import pytest

from specfda.basis import BSplineBasis


@pytest.fixture
def noisy_sines():
    rng = np.random.default_rng(0)
    grid = np.linspace(0.0, 1.0, 101)
    signal = np.sin(2.0 * np.pi * grid)
    samples = signal + 0.2 * rng.standard_normal((5, grid.size))
    return grid, samples


@pytest.fixture
def bspline30():
    return BSplineBasis((0.0, 1.0), n_basis=30)
