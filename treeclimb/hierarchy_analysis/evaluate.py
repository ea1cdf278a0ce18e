"""Evaluate candidate levels of a tree and select the best one.

:func:`evaluate_candidates` is the entry point. It validates every input
before any level is scored, evaluates the levels (possibly in parallel),
selects the valid level with the most leaf-level discoveries and re-tests
the selected nodes of that level.

Example
-------
>>> tree = PosetTree.from_edges([(3, 1), (3, 2)])
>>> scores = pd.DataFrame({"node": [1, 2, 3],
...                        "pvalue": [0.001, 0.002, 0.0001],
...                        "sign": [1, 1, 1]})
>>> levels = {0: [1, 2], 0.1: [3]}
>>> res = evaluate_candidates(tree, levels, scores)
"""

from __future__ import annotations

import logging
from typing import Callable, Hashable, Iterable, Mapping, Optional, Union

import pandas as pd

from treeclimb import config
from treeclimb.errors import ConfigurationError
from treeclimb.tree.poset_tree import PosetTree

from .candidate_evaluation import (
    CandidateEvaluator,
    LevelRecord,
    _get_n_jobs,
    build_level_info,
    check_candidate_nodes,
    check_tuning_keys,
    evaluate_levels,
    materialize_families,
    prepare_features,
)
from .candidate_selection import mark_best_levels
from .logging import (
    log_best_level,
    log_evaluation_start,
    log_level_evaluated,
    log_pseudo_leaf_progress,
)
from .result import CandidateEvaluationResult, assemble_output, best_candidate_nodes
from .score_tables import SINGLE, ColumnRoles, build_score_data, validate_score_data
from .statistics.multiple_testing import resolve_correction_method

logger = logging.getLogger(__name__)

CandidateFamily = Mapping[Hashable, Iterable[int]]


def evaluate_candidates(
    tree: PosetTree,
    levels: Union[CandidateFamily, Mapping[Hashable, CandidateFamily]],
    score_data: Union[pd.DataFrame, Mapping[Hashable, pd.DataFrame]],
    node_column: str = config.NODE_COLUMN,
    p_column: str = config.P_COLUMN,
    sign_column: str = config.SIGN_COLUMN,
    feature_column: Optional[str] = None,
    kind: str = SINGLE,
    method: str = config.CORRECTION_METHOD,
    limit_rej: float = config.FDR_LIMIT,
    use_pseudo_leaf: bool = False,
    n_jobs: Optional[int] = None,
    timeout: Optional[float] = None,
    on_level_evaluated: Optional[Callable[[LevelRecord], None]] = None,
    verbose: bool = False,
) -> CandidateEvaluationResult:
    """Evaluate all candidate levels and select the one with best performance.

    Parameters
    ----------
    tree
        The hierarchy the score tables and candidate levels refer to.
    levels
        ``kind="single"``: a candidate family, i.e. an ordered mapping from
        tuning value to the nodes of the candidate level.
        ``kind="multiple"``: a mapping ``feature -> candidate family``. Every
        family must use the same ordered tuning keys.
    score_data
        ``kind="single"``: one score table. ``kind="multiple"``: a mapping
        ``feature -> score table`` with the same features as ``levels``.
    node_column, p_column, sign_column
        Columns holding the node id, the p-value and the direction of change.
    feature_column
        Column naming the feature; recommended for ``kind="multiple"`` so the
        output rows can be told apart.
    kind
        ``"single"`` or ``"multiple"``.
    method
        Multiple testing correction method (default Benjamini-Hochberg).
    limit_rej
        Target FDR on the (pseudo) leaf level.
    use_pseudo_leaf
        If True, FDR is controlled on the pseudo-leaf level: the tested nodes
        closest to the leaves. Otherwise on the leaf level of the tree.
    n_jobs
        Worker threads for evaluating levels; defaults to the
        ``TREECLIMB_N_JOBS`` environment variable, else all cores for large
        families and sequential for small ones.
    timeout
        Per-level time limit for the worker pool. Exceeding it aborts the
        evaluation without a result.
    on_level_evaluated
        Called with each :class:`LevelRecord`, in candidate order, once all
        levels are evaluated.
    verbose
        Log progress at INFO instead of DEBUG.

    Returns
    -------
    CandidateEvaluationResult

    Raises
    ------
    ConfigurationError
        Inconsistent inputs (see :mod:`treeclimb.errors`).
    InvalidNode
        A score row or candidate level names a node outside the tree.
    NoValidCandidate
        No candidate level is valid.
    """
    if not isinstance(tree, PosetTree):
        raise TypeError("tree should be a PosetTree")
    if not 0 < limit_rej <= 1:
        raise ConfigurationError(f"limit_rej must lie in (0, 1], got {limit_rej!r}")
    resolve_correction_method(method)

    roles = ColumnRoles(
        node=node_column, p_value=p_column, sign=sign_column, feature=feature_column
    )
    data = build_score_data(score_data, kind)
    validate_score_data(data, roles, tree)

    if kind == SINGLE:
        families = [levels]
    else:
        if not isinstance(levels, Mapping) or set(levels) != set(data.feature_ids):
            raise ConfigurationError("levels must map the same features as score_data")
        families = [levels[fid] for fid in data.feature_ids]
    families = materialize_families(families)
    keys = check_tuning_keys(families)
    check_candidate_nodes(tree, families)

    def _feature_done(index: int, total: int) -> None:
        if use_pseudo_leaf:
            log_pseudo_leaf_progress(index, total, verbose=verbose)

    features = prepare_features(
        tree, data, roles, use_pseudo_leaf=use_pseudo_leaf, on_feature=_feature_done
    )
    evaluator = CandidateEvaluator(
        tree,
        features,
        method=method,
        limit_rej=limit_rej,
        use_pseudo_leaf=use_pseudo_leaf,
    )

    n_jobs = _get_n_jobs(len(keys), n_jobs)
    log_evaluation_start(len(keys), len(data), n_jobs, verbose=verbose)
    records, selections = evaluate_levels(
        evaluator, keys, families, n_jobs=n_jobs, timeout=timeout
    )
    for i, record in enumerate(records, start=1):
        log_level_evaluated(i, len(records), record.level_name, record.is_valid, verbose=verbose)
        if on_level_evaluated is not None:
            on_level_evaluated(record)

    level_info, best_name = mark_best_levels(build_level_info(records, method, limit_rej))
    log_best_level(best_name, int(level_info["best"].sum()), verbose=verbose)

    best_key = keys[[str(k) for k in keys].index(best_name)]
    output = assemble_output(data, selections[best_name], roles, method, limit_rej)
    if kind == SINGLE:
        candidate_list = families[0]
    else:
        candidate_list = dict(zip(data.feature_ids, families))

    return CandidateEvaluationResult(
        candidate_best=best_candidate_nodes(data, families, best_key),
        best_level=best_name,
        output=output,
        candidate_list=candidate_list,
        level_info=level_info,
        fdr=limit_rej,
        method=method,
        column_info=roles,
    )


__all__ = ["evaluate_candidates"]
