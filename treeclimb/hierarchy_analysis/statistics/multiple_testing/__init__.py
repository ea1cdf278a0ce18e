"""Multiple testing correction utilities for statistical hypothesis testing.

This package provides methods for controlling the false discovery rate (FDR)
and the family-wise error rate (FWER) over a pooled family of p-values.

Modules
-------
base
    NaN-aware p-value adjustment
flat_correction
    One correction method applied across all p-values
dispatcher
    Unified interface for selecting correction methods by name
"""

from .base import adjust_p_values
from .flat_correction import flat_correction
from .dispatcher import (
    P_ADJUST_METHODS,
    apply_multiple_testing_correction,
    controls_fdr,
    resolve_correction_method,
)

__all__ = [
    # Core functions
    "adjust_p_values",
    # Correction methods
    "flat_correction",
    # Dispatcher
    "P_ADJUST_METHODS",
    "apply_multiple_testing_correction",
    "controls_fdr",
    "resolve_correction_method",
]
