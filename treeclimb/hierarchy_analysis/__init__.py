"""
Resolution selection on hierarchical trees with leaf-level FDR control.

This package provides functions for choosing the level of a tree at which
to interpret hierarchical test results:
- Pseudo-leaf levels for features with untested nodes
- Leaf counts per node
- Evaluation of candidate levels and selection of the best one
- Extraction of top nodes from external test results
"""

from .candidate_evaluation import CandidateEvaluator, LevelRecord
from .candidate_selection import mark_best_levels, select_best_levels
from .evaluate import evaluate_candidates
from .leaf_counts import count_leaves, count_pseudo_leaves
from .pseudo_leaf import find_pseudo_leaves
from .result import CandidateEvaluationResult
from .score_tables import ColumnRoles, ScoreData
from .top_nodes import top_nodes
from .statistics import apply_multiple_testing_correction

__all__ = [
    "evaluate_candidates",
    "CandidateEvaluationResult",
    "CandidateEvaluator",
    "LevelRecord",
    "ColumnRoles",
    "ScoreData",
    "count_leaves",
    "count_pseudo_leaves",
    "find_pseudo_leaves",
    "mark_best_levels",
    "select_best_levels",
    "top_nodes",
    "apply_multiple_testing_correction",
]
