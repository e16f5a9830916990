"""Synthetic absorbance spectra generation.

This module provides a class to synthesize Tecator-like near-infrared
absorbance spectra together with their fat, water and protein content. The
smooth random variation between spectra is drawn from a low-rank
eigen-decomposition of a correlation surface on the wavelength grid.
"""

# Authors: Ching-Chuan Chen
# SPDX-License-Identifier: MIT

from dataclasses import dataclass
from typing import Callable, Dict, Optional, Tuple, Union

import numpy as np
from scipy.special import j0

from specfda.exceptions import ConfigurationError
from specfda.fpca import select_num_pcs_fve
from specfda.utils import check_grid, get_eigen_analysis_results

# center (nm), width (nm), absorbance per percent of content
DEFAULT_BANDS: Dict[str, Tuple[float, float, float]] = {
    "fat": (928.0, 18.0, 0.012),
    "water": (972.0, 24.0, 0.006),
    "protein": (1020.0, 28.0, 0.010),
}


def default_baseline(t: np.ndarray) -> np.ndarray:
    """Slowly rising absorbance baseline over the observed range."""
    u = (t - t[0]) / (t[-1] - t[0])
    return 2.6 + 0.6 * u + 0.25 * u**2


@dataclass(frozen=True)
class SpectraDataset:
    """Absorbance spectra on a common wavelength grid.

    Attributes
    ----------
    grid : np.ndarray of shape (M,)
        Wavelengths.
    samples : np.ndarray of shape (N, M)
        One spectrum per row.
    covariates : dict of str to np.ndarray of shape (N,)
        Percentages of fat, water and protein.
    """

    grid: np.ndarray
    samples: np.ndarray
    covariates: Dict[str, np.ndarray]

    def __post_init__(self) -> None:
        for arr in (self.grid, self.samples, *self.covariates.values()):
            arr.setflags(write=False)

    @property
    def n_samples(self) -> int:
        return self.samples.shape[0]


class SpectraDataGenerator:
    """Generator for synthetic absorbance spectra on a fixed wavelength grid.

    Each spectrum is a scattered baseline plus Gaussian absorption bands whose
    heights are proportional to the fat, water and protein content, plus
    low-rank smooth variation and Gaussian measurement noise.

    Parameters
    ----------
    grid : np.ndarray of shape (M,), optional
        Strictly increasing wavelengths; defaults to 100 points on
        [850, 1050] nm.
    baseline_func : Callable[[np.ndarray], np.ndarray], optional
        Baseline evaluated on `grid`; defaults to `default_baseline`.
    corr_func : Callable[[np.ndarray], np.ndarray], default=scipy.special.j0
        Correlation kernel k(h) of the smooth variation, where h is the
        absolute lag divided by `length_scale`.
    length_scale : float, default=25.0
        Lag scaling in grid units.
    variation_prop_thresh : float, default=0.99
        Threshold of fraction of variance explained (FVE) to choose the number
        of components if `num_pcs` is None. Must satisfy 0 < thresh < 1.
    num_pcs : int or None, default=None
        Number of components of the smooth variation to retain.
    variation_sd : float, default=0.02
        Pointwise standard deviation of the smooth variation.
    noise_sd : float, default=0.002
        Standard deviation of the measurement noise.
    bands : dict, optional
        Mapping of constituent name to (center, width, absorbance per
        percent); defaults to `DEFAULT_BANDS`.

    Notes
    -----
    The correlation surface is ``k(|t_i - t_j| / length_scale)``. It is
    decomposed lazily on first use.
    """

    def __init__(
        self,
        grid: Optional[np.ndarray] = None,
        baseline_func: Optional[Callable[[np.ndarray], np.ndarray]] = None,
        corr_func: Callable[[np.ndarray], np.ndarray] = j0,
        length_scale: float = 25.0,
        variation_prop_thresh: float = 0.99,
        num_pcs: Optional[int] = None,
        variation_sd: float = 0.02,
        noise_sd: float = 0.002,
        bands: Optional[Dict[str, Tuple[float, float, float]]] = None,
    ):
        self.grid: np.ndarray = check_grid(np.linspace(850.0, 1050.0, 100) if grid is None else grid, min_points=3)
        self.baseline_func = default_baseline if baseline_func is None else baseline_func
        self.corr_func = corr_func
        if not (0 < variation_prop_thresh < 1):
            raise ConfigurationError("variation_prop_thresh must be between 0 and 1.")
        if num_pcs is not None:
            if isinstance(num_pcs, bool) or not isinstance(num_pcs, int):
                raise ConfigurationError("num_pcs must be an integer.")
            if not (1 <= num_pcs <= self.grid.size):
                raise ConfigurationError("num_pcs must be a positive integer between 1 and length of grid.")
        for name, value in (("length_scale", length_scale), ("variation_sd", variation_sd), ("noise_sd", noise_sd)):
            if not np.isfinite(value) or value < 0 or (name == "length_scale" and value == 0):
                raise ConfigurationError(f"{name} must be a finite non-negative number, got {value!r}.")
        self.bands = dict(DEFAULT_BANDS if bands is None else bands)
        missing = set(DEFAULT_BANDS) - set(self.bands)
        if missing:
            raise ConfigurationError(f"bands must define {sorted(DEFAULT_BANDS)}, missing {sorted(missing)}.")
        self.length_scale = float(length_scale)
        self.variation_prop_thresh = variation_prop_thresh
        self.variation_sd = float(variation_sd)
        self.noise_sd = float(noise_sd)
        self._num_pcs: Optional[int] = num_pcs
        self._components: Optional[np.ndarray] = None

    def __calculate_components(self) -> None:
        lags = np.abs(self.grid[:, None] - self.grid[None, :]) / self.length_scale
        corr_mat = self.corr_func(lags)
        # diagonal jitter keeps the surface numerically positive definite
        corr_mat = corr_mat + 1e-8 * np.eye(self.grid.size)
        eig_lambda, eig_vector = get_eigen_analysis_results(corr_mat)
        eig_lambda = np.clip(eig_lambda, 0.0, None)
        if self._num_pcs is None:
            _, self._num_pcs = select_num_pcs_fve(eig_lambda / eig_lambda.sum(), self.variation_prop_thresh, self.grid.size)
        k = self._num_pcs
        self._components = eig_vector[:, :k] * np.sqrt(eig_lambda[:k])

    def get_components(self) -> np.ndarray:
        """Return the scaled eigenvectors of the variation, shape (M, k)."""
        if self._components is None:
            self.__calculate_components()
        return self._components

    def get_num_pcs(self) -> int:
        """Return the number of retained variation components."""
        if self._num_pcs is None:
            self.__calculate_components()
        return self._num_pcs

    def mean_spectrum(self, composition: Dict[str, float]) -> np.ndarray:
        """Noise-free spectrum for a given composition (percent by constituent)."""
        spectrum = np.asarray(self.baseline_func(self.grid), dtype=np.float64).copy()
        for name, (center, width, strength) in self.bands.items():
            spectrum += composition.get(name, 0.0) * strength * np.exp(-0.5 * ((self.grid - center) / width) ** 2)
        return spectrum

    def generate(self, n: int, seed: Union[int, np.random.Generator, None] = None) -> SpectraDataset:
        """Generate absorbance spectra.

        Parameters
        ----------
        n : int
            Number of spectra, at least 1.
        seed : int or np.random.Generator, optional
            Random seed for reproducibility.

        Returns
        -------
        SpectraDataset
            Spectra with fat, water and protein percentages.

        Notes
        -----
        Fat is drawn uniformly on [1, 50] and protein on [11, 21] percent;
        water makes up the rest after 0.5 to 2 percent of ash. Scatter enters
        as a random multiplicative and additive baseline shift.
        """
        if isinstance(n, bool) or not isinstance(n, (int, np.integer)) or n < 1:
            raise ConfigurationError(f"n must be a positive integer, got {n!r}.")
        rng = np.random.default_rng(seed)
        components = self.get_components()
        m = self.grid.size

        fat = rng.uniform(1.0, 50.0, n)
        protein = rng.uniform(11.0, 21.0, n)
        ash = rng.uniform(0.5, 2.0, n)
        water = 100.0 - fat - protein - ash
        covariates = {"fat": fat, "water": water, "protein": protein}

        baseline = np.asarray(self.baseline_func(self.grid), dtype=np.float64)
        multiplicative = 1.0 + 0.03 * rng.standard_normal((n, 1))
        additive = 0.05 * rng.standard_normal((n, 1))
        samples = baseline * multiplicative + additive
        for name, (center, width, strength) in self.bands.items():
            band = np.exp(-0.5 * ((self.grid - center) / width) ** 2)
            samples += np.outer(covariates[name] * strength, band)
        scores = rng.standard_normal((n, components.shape[1]))
        samples += self.variation_sd * scores @ components.T
        samples += rng.normal(0.0, self.noise_sd, (n, m))
        return SpectraDataset(grid=self.grid.copy(), samples=samples, covariates=covariates)
