"""Number of (pseudo) leaves below each node.

The counts turn a set of rejected nodes into the number of leaves they
implicate. In the default mode a node counts the real leaves of its
subtree; in pseudo-leaf mode it counts the pseudo leaves of one feature.
A node that is itself a (pseudo) leaf counts itself.
"""

from __future__ import annotations

from typing import Iterable, Optional

import pandas as pd

from treeclimb.tree.poset_tree import PosetTree


def count_leaves(tree: PosetTree, nodes: Optional[Iterable[int]] = None) -> pd.Series:
    """Count the real leaves below each node.

    Parameters
    ----------
    tree
        The hierarchy.
    nodes
        Nodes to count for; defaults to every node of the tree.

    Returns
    -------
    pandas.Series
        ``n_leaf`` indexed by node id.
    """
    nodes = tree.all_nodes() if nodes is None else list(nodes)
    leaves = tree.find_descendants(nodes, only_leaf=True, include_self=True)
    return pd.Series(
        [len(leaves[n]) for n in nodes],
        index=pd.Index(nodes, name="node"),
        name="n_leaf",
        dtype=int,
    )


def count_pseudo_leaves(
    tree: PosetTree,
    nodes: Iterable[int],
    pseudo_leaves: Iterable[int],
) -> pd.DataFrame:
    """Count real and pseudo leaves below each node of one feature.

    Parameters
    ----------
    tree
        The hierarchy.
    nodes
        Node column of the feature's score table. Rows are kept in this
        order (duplicates included) so the result aligns with the table.
    pseudo_leaves
        Pseudo-leaf level of the feature.

    Returns
    -------
    pandas.DataFrame
        Columns ``node``, ``n_leaf`` and ``n_pseudo_leaf``, one row per entry
        of ``nodes``.
    """
    nodes = [int(n) for n in nodes]
    pseudo = frozenset(pseudo_leaves)
    unique = list(dict.fromkeys(nodes))
    leaves = tree.find_descendants(unique, only_leaf=True, include_self=True)
    subtree = tree.find_descendants(unique, only_leaf=False, include_self=True)
    return pd.DataFrame(
        {
            "node": nodes,
            "n_leaf": [len(leaves[n]) for n in nodes],
            "n_pseudo_leaf": [len(subtree[n] & pseudo) for n in nodes],
        }
    )


__all__ = ["count_leaves", "count_pseudo_leaves"]
