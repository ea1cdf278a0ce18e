import os
import sys

import pandas as pd
import pytest

# Ensure the project root is on sys.path so absolute imports like
# ``import treeclimb`` work without installing the package.
ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if ROOT not in sys.path:
    sys.path.insert(0, ROOT)

from treeclimb.tree.poset_tree import PosetTree  # noqa: E402

# 19 nodes: leaves 1-10, internal nodes 11-19, root 11.
#
#   11 -> 12, 15
#   12 -> 13, 18      15 -> 16, 17
#   13 -> 14, 3       16 -> 6, 7
#   14 -> 1, 2        17 -> 8, 19
#   18 -> 4, 5        19 -> 9, 10
TINY_TREE_EDGES = [
    (11, 12),
    (11, 15),
    (12, 13),
    (12, 18),
    (13, 14),
    (13, 3),
    (14, 1),
    (14, 2),
    (18, 4),
    (18, 5),
    (15, 16),
    (15, 17),
    (16, 6),
    (16, 7),
    (17, 8),
    (17, 19),
    (19, 9),
    (19, 10),
]

# Signal on leaves 1-5 and on nodes 13, 14 (up) and 18 (down); noise elsewhere.
TINY_P_VALUES = {
    1: 1e-4,
    2: 2e-4,
    3: 3e-4,
    4: 4e-4,
    5: 5e-4,
    6: 0.41,
    7: 0.83,
    8: 0.27,
    9: 0.66,
    10: 0.92,
    11: 0.55,
    12: 0.36,
    13: 5e-5,
    14: 1.5e-4,
    15: 0.74,
    16: 0.19,
    17: 0.58,
    18: 2.5e-4,
    19: 0.47,
}

TINY_SIGNS = {
    1: 1, 2: 1, 3: 1, 13: 1, 14: 1,
    4: -1, 5: -1, 18: -1,
    6: 1, 7: -1, 8: 1, 9: -1, 10: 1,
    11: 1, 12: -1, 15: 1, 16: -1, 17: 1, 19: -1,
}

# Candidate levels from fine (leaves) to coarse.
TINY_LEVELS = {
    0: [1, 2, 3, 4, 5, 6, 7, 8, 9, 10],
    0.05: [14, 3, 18, 6, 7, 8, 9, 10],
    0.1: [13, 18, 6, 7, 8, 9, 10],
    0.2: [13, 18, 16, 17],
}


@pytest.fixture
def tiny_tree() -> PosetTree:
    return PosetTree.from_edges(TINY_TREE_EDGES)


@pytest.fixture
def tiny_scores() -> pd.DataFrame:
    nodes = sorted(TINY_P_VALUES)
    return pd.DataFrame(
        {
            "node": nodes,
            "pvalue": [TINY_P_VALUES[n] for n in nodes],
            "sign": [TINY_SIGNS[n] for n in nodes],
        }
    )


@pytest.fixture
def tiny_levels() -> dict:
    return {t: list(nodes) for t, nodes in TINY_LEVELS.items()}
