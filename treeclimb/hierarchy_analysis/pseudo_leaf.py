"""Pseudo-leaf level of a tree for one tested feature.

Some nodes are not tested because they lack sufficient data (their p-value
is missing). An internal node then acts as a leaf when none of its
descendants was tested: the *pseudo-leaf level* is the set of tested nodes
closest to the leaves.

The level is found by walking every root-to-leaf path of the tree:

#. On each path the deepest tested node is a candidate.
#. A candidate shared by several paths (an internal node) is accepted only
   if, on every path through it, no node below it is tested. A candidate
   seen on a single path is a leaf and is accepted directly.
"""

from __future__ import annotations

from typing import Dict, List, Set, Tuple

import numpy as np
import pandas as pd

from treeclimb.tree.poset_tree import PosetTree


def tested_nodes(
    score_table: pd.DataFrame, node_column: str, p_column: str
) -> Set[int]:
    """Nodes of ``score_table`` with a non-missing p-value."""
    p = pd.to_numeric(score_table[p_column], errors="coerce").to_numpy(dtype=float)
    nodes = score_table[node_column].to_numpy()
    return {int(n) for n in nodes[~np.isnan(p)]}


def find_pseudo_leaves(
    tree: PosetTree,
    score_table: pd.DataFrame,
    node_column: str,
    p_column: str,
) -> List[int]:
    """Return the pseudo-leaf level of one feature.

    Parameters
    ----------
    tree
        The hierarchy.
    score_table
        Score rows of one feature; NaN p-values mark untested nodes.
    node_column, p_column
        Column roles in ``score_table``.

    Returns
    -------
    list[int]
        Pseudo leaves in ascending order. Empty when no node was tested.

    Notes
    -----
    With every node tested the pseudo-leaf level equals the leaf level.
    """
    tested = tested_nodes(score_table, node_column, p_column)
    if not tested:
        return []

    paths = tree.root_to_leaf_paths()

    # node -> [(path index, position on path)]
    positions: Dict[int, List[Tuple[int, int]]] = {}
    for i, path in enumerate(paths):
        for k, node in enumerate(path):
            positions.setdefault(node, []).append((i, k))

    deepest: Set[int] = set()
    for path in paths:
        for node in path:
            if node in tested:
                deepest.add(node)
                break

    pseudo = []
    for node in deepest:
        locs = positions[node]
        if len(locs) == 1:
            pseudo.append(node)
            continue
        below_tested = any(
            n in tested for i, k in locs for n in paths[i][:k]
        )
        if not below_tested:
            pseudo.append(node)
    return sorted(pseudo)


__all__ = ["tested_nodes", "find_pseudo_leaves"]
