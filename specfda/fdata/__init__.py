"""Functional data objects."""

# Authors: Ching-Chuan Chen
# SPDX-License-Identifier: MIT
from specfda.fdata.functional_object import FunctionalObject

__all__ = ["FunctionalObject"]
