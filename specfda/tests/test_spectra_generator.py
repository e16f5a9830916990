import numpy as np
import pytest
from numpy.testing import assert_allclose

from specfda.exceptions import ConfigurationError, DimensionError
from specfda.functional_data_generator import DEFAULT_BANDS, SpectraDataGenerator, SpectraDataset


def test_generator_happy_path():
    gen = SpectraDataGenerator()
    data = gen.generate(30, seed=100)
    assert isinstance(data, SpectraDataset)
    assert data.n_samples == 30
    assert data.samples.shape == (30, 100)
    assert_allclose(data.grid, np.linspace(850.0, 1050.0, 100))
    assert set(data.covariates) == {"fat", "water", "protein"}
    assert np.all(np.isfinite(data.samples))
    assert np.all((data.covariates["fat"] >= 1.0) & (data.covariates["fat"] <= 50.0))
    assert np.all((data.covariates["protein"] >= 11.0) & (data.covariates["protein"] <= 21.0))
    total = data.covariates["fat"] + data.covariates["water"] + data.covariates["protein"]
    assert np.all((total >= 98.0) & (total <= 99.5))
    with pytest.raises(ValueError):
        data.samples[0, 0] = 0.0


def test_generator_is_seeded():
    gen = SpectraDataGenerator()
    first = gen.generate(5, seed=7)
    second = gen.generate(5, seed=7)
    assert_allclose(first.samples, second.samples)
    assert_allclose(first.covariates["fat"], second.covariates["fat"])
    assert not np.allclose(first.samples, gen.generate(5, seed=8).samples)


def test_fat_band_tracks_fat_content():
    gen = SpectraDataGenerator(noise_sd=0.0, variation_sd=0.0)
    data = gen.generate(200, seed=1)
    fat_channel = int(np.argmin(np.abs(data.grid - DEFAULT_BANDS["fat"][0])))
    corr = np.corrcoef(data.covariates["fat"], data.samples[:, fat_channel] - data.samples[:, 0])[0, 1]
    assert corr > 0.9


def test_mean_spectrum_without_noise():
    grid = np.linspace(900.0, 1000.0, 21)
    gen = SpectraDataGenerator(grid, baseline_func=lambda t: np.zeros_like(t), variation_sd=0.0, noise_sd=0.0)
    spectrum = gen.mean_spectrum({"fat": 10.0})
    center, _, strength = DEFAULT_BANDS["fat"]
    peak = int(np.argmin(np.abs(grid - center)))
    assert spectrum[peak] == pytest.approx(10.0 * strength * np.exp(-0.5 * ((grid[peak] - center) / 18.0) ** 2))
    assert int(np.argmax(spectrum)) == peak


@pytest.mark.parametrize("num_pcs", [1, 3, 5])
def test_specific_num_pcs(num_pcs):
    gen = SpectraDataGenerator(np.linspace(0.0, 100.0, 30), num_pcs=num_pcs)
    assert gen.get_num_pcs() == num_pcs
    assert gen.get_components().shape == (30, num_pcs)


def test_num_pcs_by_fve():
    gen = SpectraDataGenerator(np.linspace(0.0, 100.0, 30))
    assert 1 <= gen.get_num_pcs() < 30
    components = gen.get_components()
    # retained components carry most of the unit pointwise variance
    assert np.all(np.sum(components**2, axis=1) <= 1.0 + 1e-6)
    assert np.mean(np.sum(components**2, axis=1)) > 0.9


@pytest.mark.parametrize("num_pcs", [0, -1, 31])
def test_num_pcs_invalid(num_pcs):
    with pytest.raises(ConfigurationError, match="num_pcs must be a positive integer"):
        SpectraDataGenerator(np.linspace(0.0, 1.0, 30), num_pcs=num_pcs)


@pytest.mark.parametrize("num_pcs", [2.5, "string", True])
def test_num_pcs_invalid_types(num_pcs):
    with pytest.raises(ConfigurationError, match="num_pcs must be an integer."):
        SpectraDataGenerator(np.linspace(0.0, 1.0, 30), num_pcs=num_pcs)


def test_invalid_settings():
    with pytest.raises(ConfigurationError):
        SpectraDataGenerator(variation_prop_thresh=1.0)
    with pytest.raises(ConfigurationError):
        SpectraDataGenerator(length_scale=0.0)
    with pytest.raises(ConfigurationError):
        SpectraDataGenerator(noise_sd=-0.1)
    with pytest.raises(ConfigurationError):
        SpectraDataGenerator(bands={"fat": (928.0, 18.0, 0.01)})
    with pytest.raises(ConfigurationError):
        SpectraDataGenerator(np.array([1.0, 0.5, 2.0]))
    with pytest.raises(DimensionError):
        SpectraDataGenerator(np.array([1.0, 2.0]))
    with pytest.raises(ConfigurationError):
        SpectraDataGenerator().generate(0)
