import numpy as np
import pandas as pd

from treeclimb.hierarchy_analysis.pseudo_leaf import find_pseudo_leaves, tested_nodes
from treeclimb.tree.poset_tree import PosetTree

# Library helper, not a test; keep pytest from collecting it.
tested_nodes.__test__ = False


def _scores(untested=()):
    nodes = list(range(1, 20))
    p = [np.nan if n in untested else 0.5 for n in nodes]
    return pd.DataFrame({"node": nodes, "pvalue": p, "sign": 1})


def test_fully_tested_tree_has_leaves_as_pseudo_leaves(tiny_tree):
    pseudo = find_pseudo_leaves(tiny_tree, _scores(), "node", "pvalue")
    assert pseudo == tiny_tree.all_nodes(only_leaf=True)


def test_untested_leaves_promote_their_parent(tiny_tree):
    pseudo = find_pseudo_leaves(tiny_tree, _scores(untested={1, 2}), "node", "pvalue")
    assert pseudo == [3, 4, 5, 6, 7, 8, 9, 10, 14]


def test_shared_ancestor_with_tested_sibling_is_not_a_pseudo_leaf(tiny_tree):
    # 14 is deepest on the path of leaf 1 but leaf 2 below it is tested;
    # 13 is deepest on the path of leaf 3 but 14 and 2 below it are tested.
    pseudo = find_pseudo_leaves(tiny_tree, _scores(untested={1, 3}), "node", "pvalue")
    assert pseudo == [2, 4, 5, 6, 7, 8, 9, 10]


def test_tested_node_two_steps_below_blocks_a_shared_ancestor(tiny_tree):
    # 12 is deepest on the path of leaf 3 (3 and 13 untested). Its child 13 on
    # the path of leaf 1 is untested, but 14 further down is tested.
    untested = {1, 2, 3, 13, 18}
    pseudo = find_pseudo_leaves(tiny_tree, _scores(untested=untested), "node", "pvalue")
    assert pseudo == [4, 5, 6, 7, 8, 9, 10, 14]
    assert 12 not in pseudo


def test_nodes_without_rows_count_as_untested(tiny_tree):
    scores = _scores().query("node not in [1, 2]")
    pseudo = find_pseudo_leaves(tiny_tree, scores, "node", "pvalue")
    assert 14 in pseudo
    assert 1 not in pseudo


def test_untested_tree_has_no_pseudo_leaves(tiny_tree):
    scores = _scores(untested=set(range(1, 20)))
    assert tested_nodes(scores, "node", "pvalue") == set()
    assert find_pseudo_leaves(tiny_tree, scores, "node", "pvalue") == []


# 10 -> 11, 4;  11 -> 1, 2, 12;  12 -> 3, 5
POLYTOMY_EDGES = [(10, 11), (10, 4), (11, 1), (11, 2), (11, 12), (12, 3), (12, 5)]


def _polytomy_scores(untested):
    nodes = [1, 2, 3, 4, 5, 10, 11, 12]
    p = [np.nan if n in untested else 0.5 for n in nodes]
    return pd.DataFrame({"node": nodes, "pvalue": p, "sign": 1})


def test_polytomy_with_mixed_testing():
    tree = PosetTree.from_edges(POLYTOMY_EDGES)

    # 11 is deepest on the path of leaf 1 only; leaf 2 below it is tested.
    scores = _polytomy_scores(untested={1})
    assert find_pseudo_leaves(tree, scores, "node", "pvalue") == [2, 3, 4, 5]

    # 11 is deepest on the paths of leaves 1 and 2, but 12 on its third
    # branch is tested.
    scores = _polytomy_scores(untested={1, 2, 3, 5})
    assert find_pseudo_leaves(tree, scores, "node", "pvalue") == [4, 12]

    # Nothing below 11 is tested on any of its three branches.
    scores = _polytomy_scores(untested={1, 2, 3, 5, 12})
    assert find_pseudo_leaves(tree, scores, "node", "pvalue") == [4, 11]
