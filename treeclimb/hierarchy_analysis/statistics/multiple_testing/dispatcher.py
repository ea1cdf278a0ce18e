"""Dispatcher for multiple testing correction methods.

This module provides a unified interface for selecting and applying
correction methods from a string identifier. Both the R ``p.adjust`` names
and the native statsmodels names are accepted.
"""

from __future__ import annotations

from typing import Dict, Tuple

import numpy as np

from treeclimb.errors import ConfigurationError

from .flat_correction import flat_correction

# R p.adjust name -> statsmodels multipletests name
P_ADJUST_METHODS: Dict[str, str] = {
    "BH": "fdr_bh",
    "fdr": "fdr_bh",
    "BY": "fdr_by",
    "bonferroni": "bonferroni",
    "holm": "holm",
    "hochberg": "simes-hochberg",
    "hommel": "hommel",
    "none": "none",
}

STATSMODELS_METHODS = frozenset(
    {
        "bonferroni",
        "sidak",
        "holm-sidak",
        "holm",
        "simes-hochberg",
        "hommel",
        "fdr_bh",
        "fdr_by",
        "fdr_tsbh",
        "fdr_tsbky",
    }
)

FDR_METHODS = frozenset({"fdr_bh", "fdr_by", "fdr_tsbh", "fdr_tsbky"})


def resolve_correction_method(method: str) -> str:
    """Translate a user-facing method name into a statsmodels name.

    Raises
    ------
    ConfigurationError
        If ``method`` is not a known correction method.
    """
    if method in P_ADJUST_METHODS:
        return P_ADJUST_METHODS[method]
    if method in STATSMODELS_METHODS:
        return method
    supported = sorted(set(P_ADJUST_METHODS) | STATSMODELS_METHODS)
    raise ConfigurationError(
        f"Unknown correction method: {method!r}. Supported methods: {supported}"
    )


def controls_fdr(method: str) -> bool:
    """Whether ``method`` controls the FDR (as opposed to the FWER)."""
    return resolve_correction_method(method) in FDR_METHODS


def apply_multiple_testing_correction(
    p_values: np.ndarray,
    alpha: float,
    method: str = "BH",
) -> Tuple[np.ndarray, np.ndarray]:
    """Adjust ``p_values`` with the named method and flag rejections.

    This is the main entry point for multiple testing correction.

    Parameters
    ----------
    p_values : np.ndarray
        Array of p-values; NaN marks an untested hypothesis
    alpha : float
        Rejection threshold on the adjusted p-values
    method : str
        Correction method, e.g. "BH" (default), "BY", "holm", "bonferroni"
        or any statsmodels ``multipletests`` name

    Returns
    -------
    Tuple[np.ndarray, np.ndarray]
        (reject_null, adjusted_p_values) arrays aligned to input

    Raises
    ------
    ConfigurationError
        If method is not one of the supported values

    Examples
    --------
    >>> import numpy as np
    >>> p_values = np.array([0.01, 0.02, 0.03, 0.04])
    >>> rejected, adjusted = apply_multiple_testing_correction(
    ...     p_values, alpha=0.05, method="BH"
    ... )
    """
    resolved = resolve_correction_method(method)
    return flat_correction(np.asarray(p_values, dtype=float), alpha, method=resolved)


__all__ = [
    "P_ADJUST_METHODS",
    "resolve_correction_method",
    "controls_fdr",
    "apply_multiple_testing_correction",
]
