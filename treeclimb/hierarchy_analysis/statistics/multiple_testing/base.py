"""Core p-value adjustment on top of statsmodels.

This module provides the NaN-aware adjustment that every correction method
builds upon.

Missing p-values denote hypotheses that were never tested. They are left
missing in the output and do not count towards the number of tests, which
matches R's ``p.adjust``.

References
----------
Benjamini, Y., and Hochberg, Y. (1995). Controlling the false discovery
rate: a practical and powerful approach to multiple testing. Journal of
the Royal Statistical Society Series B, 57, 289-300.
"""

from __future__ import annotations

import numpy as np
from statsmodels.stats.multitest import multipletests


def adjust_p_values(p_values: np.ndarray, method: str = "fdr_bh") -> np.ndarray:
    """Adjust p-values with a statsmodels ``multipletests`` method.

    Parameters
    ----------
    p_values : np.ndarray
        Raw p-values; NaN marks an untested hypothesis.
    method : str, default="fdr_bh"
        A statsmodels method name, or ``"none"`` to return the input as is.

    Returns
    -------
    np.ndarray (float)
        Adjusted p-values aligned to the input, NaN where the input is NaN.

    Examples
    --------
    >>> import numpy as np
    >>> adjust_p_values(np.array([0.01, np.nan, 0.04]))
    array([0.02, nan, 0.04])
    """
    p_values_array = np.asarray(p_values, dtype=float)
    adjusted = np.full(p_values_array.shape, np.nan, dtype=float)

    tested = ~np.isnan(p_values_array)
    if not tested.any():
        return adjusted

    if method == "none":
        adjusted[tested] = p_values_array[tested]
        return adjusted

    # alpha only drives the reject flags, which are recomputed by callers
    _, corrected, _, _ = multipletests(
        p_values_array[tested],
        alpha=0.05,
        method=method,
        is_sorted=False,
        returnsorted=False,
    )
    adjusted[tested] = corrected.astype(float)
    return adjusted


__all__ = ["adjust_p_values"]
