"""Table of the top differentially abundant nodes.

Thin adapter over the result table of an external differential-abundance
test (edgeR ``topTags`` layout: one row per tested entity, indexed by the
entity's label, with at least ``logFC`` and ``PValue`` columns). The labels
are translated into node ids so the table can feed
:func:`~treeclimb.hierarchy_analysis.evaluate.evaluate_candidates`.
"""

from __future__ import annotations

import pandas as pd

from treeclimb.errors import ConfigurationError
from treeclimb.tree.poset_tree import PosetTree

from .statistics.multiple_testing import (
    adjust_p_values,
    controls_fdr,
    resolve_correction_method,
)

SORT_OPTIONS = ("PValue", "logFC", "none")


def top_nodes(
    results: pd.DataFrame,
    tree: PosetTree,
    n: int = 10,
    adjust_method: str = "BH",
    sort_by: str = "PValue",
    p_value: float = 1.0,
) -> pd.DataFrame:
    """Extract the most differentially abundant nodes.

    Parameters
    ----------
    results
        Test results indexed by node label, with ``logFC`` and ``PValue``.
    tree
        Tree whose node labels (or ids) index ``results``.
    n
        Maximum number of rows to return, taken after the ``p_value`` cutoff.
    adjust_method
        Multiple testing correction applied to ``PValue`` across all rows.
    sort_by
        ``"PValue"``, ``"logFC"`` (absolute value, decreasing) or ``"none"``.
    p_value
        Keep rows whose adjusted p-value is at most this cutoff.

    Returns
    -------
    pandas.DataFrame
        A ``node`` column followed by the input columns and ``FDR`` (or
        ``FWER`` for family-wise methods; no column for ``"none"``).
    """
    if sort_by not in SORT_OPTIONS:
        raise ConfigurationError(f"sort_by must be one of {SORT_OPTIONS}, got {sort_by!r}")
    for col in ("logFC", "PValue"):
        if col not in results.columns:
            raise ConfigurationError(f"Column {col!r} is missing from the test results")

    table = results.copy()
    resolved = resolve_correction_method(adjust_method)
    cutoff_col = "PValue"
    if resolved != "none":
        cutoff_col = "FDR" if controls_fdr(resolved) else "FWER"
        table[cutoff_col] = adjust_p_values(table["PValue"].to_numpy(dtype=float), resolved)

    if sort_by == "PValue":
        table = table.sort_values("PValue", kind="mergesort")
    elif sort_by == "logFC":
        table = table.sort_values("logFC", key=lambda s: -s.abs(), kind="mergesort")

    table = table[table[cutoff_col] <= p_value].head(n)
    table.insert(0, "node", tree.node_for_labels(table.index))
    return table


__all__ = ["top_nodes"]
