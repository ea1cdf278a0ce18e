"""Flat correction across all p-values.

This module applies one correction uniformly across all tests without
considering any structure. Candidate levels pool the p-values of every
feature into a single flat family.
"""

from __future__ import annotations

from typing import Tuple

import numpy as np

from .base import adjust_p_values


def flat_correction(
    p_values: np.ndarray,
    alpha: float,
    method: str = "fdr_bh",
) -> Tuple[np.ndarray, np.ndarray]:
    """Apply one correction method across all p-values.

    Parameters
    ----------
    p_values : np.ndarray
        Array of p-values for each test; NaN marks an untested hypothesis
    alpha : float
        Rejection threshold on the adjusted p-values
    method : str
        Resolved statsmodels method name (or ``"none"``)

    Returns
    -------
    Tuple[np.ndarray, np.ndarray]
        (reject_null, adjusted_p_values) arrays aligned to input

    Examples
    --------
    >>> import numpy as np
    >>> p_values = np.array([0.001, 0.01, 0.03, 0.05, 0.1])
    >>> rejected, adjusted = flat_correction(p_values, alpha=0.05)
    """
    n = len(p_values)
    if n == 0:
        return np.zeros(0, dtype=bool), np.ones(0, dtype=float)

    adjusted_p = adjust_p_values(p_values, method=method)
    with np.errstate(invalid="ignore"):
        reject_null = adjusted_p <= alpha
    return reject_null, adjusted_p


__all__ = ["flat_correction"]
