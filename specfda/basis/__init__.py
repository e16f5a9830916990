"""Basis systems used to represent functional observations."""

# Authors: Ching-Chuan Chen
# SPDX-License-Identifier: MIT
from specfda.basis.basis import SUPPORTED_DERIVATIVES, Basis, BSplineBasis, FourierBasis

__all__ = [
    "Basis",
    "BSplineBasis",
    "FourierBasis",
    "SUPPORTED_DERIVATIVES",
]
