"""Selection of the best candidate level.

Among the valid levels the best ones reject the most (pseudo) leaves and,
among those, the fewest nodes: at equal leaf coverage fewer and larger
branches are preferred. Ties keep candidate-family order and the first
tied level is the canonical winner.
"""

from __future__ import annotations

from typing import List, Tuple

import pandas as pd

from treeclimb.errors import NoValidCandidate


def select_best_levels(level_info: pd.DataFrame) -> List[str]:
    """Return the names of all best levels, in candidate-family order.

    Raises
    ------
    NoValidCandidate
        If no level is valid.
    """
    valid = level_info[level_info["is_valid"].astype(bool)]
    if valid.empty:
        raise NoValidCandidate(
            "No candidate level satisfies the validity bound; include the "
            "t = 0 level or widen the candidate family."
        )
    best = valid[valid["rej_leaf"] == valid["rej_leaf"].max()]
    best = best[best["rej_node"] == best["rej_node"].min()]
    return best["level_name"].astype(str).tolist()


def mark_best_levels(level_info: pd.DataFrame) -> Tuple[pd.DataFrame, str]:
    """Flag the best levels and return the canonical winner.

    Returns
    -------
    (pandas.DataFrame, str)
        A copy of ``level_info`` with the ``best`` column filled in, and the
        name of the first best level.
    """
    names = select_best_levels(level_info)
    marked = level_info.copy()
    marked["best"] = marked["level_name"].astype(str).isin(names)
    return marked, names[0]


__all__ = ["select_best_levels", "mark_best_levels"]
