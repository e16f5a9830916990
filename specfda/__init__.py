"""Configure global settings and get information about the working environment."""

# Authors: Ching-Chuan Chen
# SPDX-License-Identifier: MIT

# Functional Data Analysis of spectra (specfda) for Python
# ========================================================
#
# specfda is a Python package for functional data analysis of spectrometric curves,
# such as near-infrared absorbance spectra related to fat, water and protein content.
#
# It provides penalized basis smoothing with generalized cross-validation, functional
# principal component analysis, band depths for median curves and outlier detection,
# and scalar-on-function linear regression.
# This package is designed to leverage scikit-learn's interface and utilities, making it easy to integrate with other machine learning workflows.

import importlib as _importlib
import logging

logger = logging.getLogger(__name__)


# PEP0440 compatible formatted version, see:
# https://www.python.org/dev/peps/pep-0440/
#
# Generic release markers:
#   X.Y.0   # For first release after an increment in Y
#   X.Y.Z   # For bugfix releases
#
# Admissible pre-release markers:
#   X.Y.ZaN   # Alpha release
#   X.Y.ZbN   # Beta release
#   X.Y.ZrcN  # Release Candidate
#   X.Y.Z     # Final release
#
# Dev branch marker is: 'X.Y.dev' or 'X.Y.devN' where N is an integer.
# 'X.Y.dev0' is the canonical version of 'X.Y.dev'

__version__ = "0.1.0.dev0"

from specfda.analysis import AnalysisParams, SmoothingParams, SpectraAnalysis  # noqa: F401 E402
from specfda.functional_data_generator import SpectraDataGenerator, SpectraDataset  # noqa: F401 E402

_submodules = [
    "basis",
    "depth",
    "exceptions",
    "fdata",
    "fpca",
    "regression",
    "smooth",
    "utils",
]

__all__ = _submodules + [
    "AnalysisParams",
    "SmoothingParams",
    "SpectraAnalysis",
    "SpectraDataGenerator",
    "SpectraDataset",
]


def __dir__():
    return __all__


def __getattr__(name):
    if name in _submodules:
        return _importlib.import_module(f"specfda.{name}")
    else:
        try:
            return globals()[name]
        except KeyError:
            raise AttributeError(f"Module 'specfda' has no attribute '{name}'")
