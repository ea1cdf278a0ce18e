from .multiple_testing import (
    adjust_p_values,
    apply_multiple_testing_correction,
    controls_fdr,
    flat_correction,
    resolve_correction_method,
)

__all__ = [
    # Multiple testing correction
    "adjust_p_values",
    "apply_multiple_testing_correction",
    "controls_fdr",
    "flat_correction",
    "resolve_correction_method",
]
