"""Evaluation of candidate levels of a tree.

Each candidate level is a set of nodes cutting the tree at one resolution,
keyed by a tuning parameter ``t``. For every level the p-values of the
selected nodes of all features are pooled and corrected jointly. The
rejections are then summarised into

* ``n_m``: the number of (pseudo) leaves implicated by the rejected nodes,
* ``n_C``: the number of branches, i.e. rejected internal nodes plus the
  distinct parents of rejected leaves, counted separately per direction of
  change and per feature,

and the average branch size ``n_m / max(n_C, 1)`` bounds the tuning values
for which leaf-level FDR stays controlled::

    upper_t = min(2 * limit_rej * (max(av_size, 1) - 1), 1)

A level is valid when ``upper_t > t`` or ``t == 0``.

Levels are independent of each other, so they are evaluated on a
``joblib`` thread pool. The tree, score tables and leaf counts are only read
during evaluation.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from typing import (
    Callable,
    Dict,
    Hashable,
    Iterable,
    List,
    Mapping,
    Optional,
    Sequence,
    Tuple,
)

import numpy as np
import pandas as pd
from joblib import Parallel, delayed

from treeclimb import config
from treeclimb.errors import ConfigurationError, InvalidNode
from treeclimb.tree.poset_tree import PosetTree

from .leaf_counts import count_leaves, count_pseudo_leaves
from .pseudo_leaf import find_pseudo_leaves
from .score_tables import ColumnRoles, ScoreData, row_lookup
from .statistics.multiple_testing import apply_multiple_testing_correction

logger = logging.getLogger(__name__)

LEVEL_INFO_COLUMNS = [
    "t",
    "upper_t",
    "is_valid",
    "method",
    "limit_rej",
    "level_name",
    "best",
    "rej_leaf",
    "rej_node",
    "rej_pseudo_leaf",
    "rej_pseudo_node",
]


@dataclass(frozen=True)
class LevelRecord:
    """Evaluation summary of one candidate level."""

    t: float
    level_name: str
    upper_t: float
    is_valid: bool
    rej_leaf: int
    rej_node: int
    n_branch: int
    rej_pseudo_leaf: Optional[int] = None
    rej_pseudo_node: Optional[int] = None


@dataclass(frozen=True)
class FeatureScores:
    """Read-only arrays of one feature's score table.

    ``n_counted`` holds, per row, the number of leaves (or pseudo leaves)
    below the row's node.
    """

    feature_id: Hashable
    nodes: np.ndarray
    p_values: np.ndarray
    signs: np.ndarray
    n_counted: np.ndarray
    row_of: Dict[int, int] = field(repr=False)
    pseudo_leaves: Optional[Tuple[int, ...]] = None


# =====================================================================
# Tuning parameter keys
# =====================================================================


def parse_tuning_value(key: Hashable) -> float:
    """Numeric tuning value of a candidate-family key."""
    try:
        return float(key)
    except (TypeError, ValueError):
        raise ConfigurationError(
            f"Candidate level keys must be numeric tuning values, got {key!r}"
        ) from None


def materialize_families(
    families: Sequence[Mapping[Hashable, Iterable[int]]],
) -> List[Dict[Hashable, List[int]]]:
    """Copy every candidate family into ``key -> list of nodes``.

    Levels may be given as one-shot iterators; they are read exactly once
    here so validation, evaluation and the result all see the same nodes.
    """
    out = []
    for family in families:
        if not isinstance(family, Mapping):
            raise ConfigurationError(
                "Candidate levels must be a mapping of tuning value -> nodes, "
                f"got {type(family).__name__}"
            )
        out.append({key: list(nodes) for key, nodes in family.items()})
    return out


def check_tuning_keys(families: Sequence[Mapping[Hashable, Iterable[int]]]) -> List[Hashable]:
    """Return the shared, ordered tuning keys of all candidate families.

    Raises
    ------
    ConfigurationError
        If a family is empty, or the families do not share exactly the same
        ordered keys.
    """
    keys = [list(family.keys()) for family in families]
    first = keys[0]
    if not first:
        raise ConfigurationError("No candidate levels were supplied")
    for other in keys[1:]:
        if other != first:
            raise ConfigurationError(
                "Candidate levels of different features use different tuning "
                f"parameter keys: {first} vs {other}"
            )
    names = [str(k) for k in first]
    if len(set(names)) != len(names):
        raise ConfigurationError(f"Candidate level names are not unique: {names}")
    for key in first:
        parse_tuning_value(key)
    return first


def check_candidate_nodes(
    tree: PosetTree, families: Sequence[Mapping[Hashable, Iterable[int]]]
) -> None:
    """Raise :class:`InvalidNode` if a candidate level names an unknown node."""
    for family in families:
        for nodes in family.values():
            for node in nodes:
                if node not in tree:
                    raise InvalidNode(node)


# =====================================================================
# Per-feature preparation
# =====================================================================


def prepare_features(
    tree: PosetTree,
    data: ScoreData,
    roles: ColumnRoles,
    use_pseudo_leaf: bool = False,
    on_feature: Optional[Callable[[int, int], None]] = None,
) -> List[FeatureScores]:
    """Extract the arrays needed for evaluation from every score table.

    In pseudo-leaf mode the pseudo-leaf level of each feature is derived here
    and the rows count pseudo leaves; otherwise they count real leaves.
    """
    n_leaf_all = count_leaves(tree) if not use_pseudo_leaf else None

    features = []
    for i, (fid, table) in enumerate(data):
        nodes = table[roles.node].to_numpy().astype(int)
        p_values = pd.to_numeric(table[roles.p_value], errors="coerce").to_numpy(dtype=float)
        signs = pd.to_numeric(table[roles.sign], errors="coerce").to_numpy(dtype=float)

        if use_pseudo_leaf:
            pseudo = find_pseudo_leaves(tree, table, roles.node, roles.p_value)
            info = count_pseudo_leaves(tree, nodes, pseudo)
            n_counted = info["n_pseudo_leaf"].to_numpy(dtype=int)
            pseudo_leaves = tuple(pseudo)
        else:
            n_counted = n_leaf_all.reindex(nodes).to_numpy(dtype=int)
            pseudo_leaves = None

        features.append(
            FeatureScores(
                feature_id=fid,
                nodes=nodes,
                p_values=p_values,
                signs=signs,
                n_counted=n_counted,
                row_of=row_lookup(table, roles.node),
                pseudo_leaves=pseudo_leaves,
            )
        )
        if on_feature is not None:
            on_feature(i + 1, len(data))
    return features


# =====================================================================
# Evaluator
# =====================================================================


class CandidateEvaluator:
    """Evaluate candidate levels against shared, read-only inputs.

    Parameters
    ----------
    tree
        The hierarchy. Its caches are filled on construction so the evaluator
        can be shared by worker threads.
    features
        Output of :func:`prepare_features`.
    method
        Multiple testing correction method name.
    limit_rej
        Target FDR on the (pseudo) leaf level.
    use_pseudo_leaf
        Whether leaf counts refer to pseudo leaves.
    """

    def __init__(
        self,
        tree: PosetTree,
        features: Sequence[FeatureScores],
        method: str = config.CORRECTION_METHOD,
        limit_rej: float = config.FDR_LIMIT,
        use_pseudo_leaf: bool = False,
    ) -> None:
        self.tree = tree.prepare()
        self.features = tuple(features)
        self.method = method
        self.limit_rej = limit_rej
        self.use_pseudo_leaf = use_pseudo_leaf
        self._leaf_parents = tree.leaf_parents()

    def match(self, level_nodes: Sequence[Iterable[int]]) -> Tuple[np.ndarray, ...]:
        """Row positions of each feature's candidate nodes.

        Nodes without a row in a feature's score table are skipped.
        """
        selections = []
        for feature, nodes in zip(self.features, level_nodes):
            rows = []
            for node in nodes:
                pos = feature.row_of.get(int(node))
                if pos is None:
                    logger.debug(
                        "Node %s has no score row for feature %r", node, feature.feature_id
                    )
                    continue
                rows.append(pos)
            selections.append(np.asarray(rows, dtype=int))
        return tuple(selections)

    def branch_count(self, selections: Sequence[np.ndarray], maxp: float) -> int:
        """Count the branches ``n_C`` implicated at p-value threshold ``maxp``.

        Within each feature and each direction of change, rejected internal
        nodes count once each and rejected leaves count once per distinct
        parent.
        """
        n_branch = 0
        for feature, sel in zip(self.features, selections):
            nodes = feature.nodes[sel]
            signs = np.sign(feature.signs[sel])
            keep = (feature.p_values[sel] <= maxp) & ~np.isnan(signs)
            for s in np.unique(signs[keep]):
                group = nodes[keep & (signs == s)]
                is_leaf = np.array([self.tree.is_leaf(n) for n in group], dtype=bool)
                internal = set(group[~is_leaf].tolist())
                parents = {self._leaf_parents[n] for n in group[is_leaf].tolist()}
                n_branch += len(internal) + len(parents)
        return n_branch

    def upper_bound(self, n_implicated: int, n_branch: int) -> float:
        """Largest tuning value that keeps leaf-level FDR controlled."""
        av_size = n_implicated / max(n_branch, 1)
        upper = min(2 * self.limit_rej * (max(av_size, 1) - 1), 1)
        return round(upper, config.UPPER_BOUND_DECIMALS)

    def evaluate_level(
        self,
        t: float,
        level_name: str,
        level_nodes: Sequence[Iterable[int]],
    ) -> Tuple[LevelRecord, Tuple[np.ndarray, ...]]:
        """Evaluate one candidate level.

        Parameters
        ----------
        t
            Tuning value of the level.
        level_name
            Name of the level in the candidate family.
        level_nodes
            Candidate nodes of the level, one iterable per feature.

        Returns
        -------
        (LevelRecord, tuple of np.ndarray)
            The level summary and the selected row positions per feature.
        """
        selections = self.match(level_nodes)

        pooled_p = np.concatenate([f.p_values[sel] for f, sel in zip(self.features, selections)])
        pooled_n = np.concatenate([f.n_counted[sel] for f, sel in zip(self.features, selections)])
        reject, _ = apply_multiple_testing_correction(
            pooled_p, alpha=self.limit_rej, method=self.method
        )

        maxp = float(pooled_p[reject].max()) if reject.any() else config.MISSING_BRANCH_P
        n_branch = self.branch_count(selections, maxp)
        n_implicated = int(pooled_n[reject].sum())
        upper_t = self.upper_bound(n_implicated, n_branch)

        record = LevelRecord(
            t=t,
            level_name=level_name,
            upper_t=upper_t,
            is_valid=bool(upper_t > t or t == 0),
            rej_leaf=n_implicated,
            rej_node=int(reject.sum()),
            n_branch=n_branch,
            rej_pseudo_leaf=n_implicated if self.use_pseudo_leaf else None,
            rej_pseudo_node=n_branch if self.use_pseudo_leaf else None,
        )
        return record, selections


# =====================================================================
# Parallelism control
# =====================================================================


def _get_n_jobs(n_tasks: int, n_jobs: Optional[int] = None) -> int:
    """Resolve the number of parallel workers.

    An explicit ``n_jobs`` wins, then the ``TREECLIMB_N_JOBS`` environment
    variable. Small candidate families run sequentially.
    """
    if n_jobs is not None:
        return n_jobs
    env = os.environ.get(config.N_JOBS_ENV_VAR)
    if env is not None:
        try:
            return max(int(env), 1)
        except ValueError:
            logger.warning("Ignoring non-integer %s=%r", config.N_JOBS_ENV_VAR, env)
    if n_tasks < config.MIN_LEVELS_FOR_PARALLEL:
        return 1
    return -1  # joblib: use all available cores


def evaluate_levels(
    evaluator: CandidateEvaluator,
    keys: Sequence[Hashable],
    families: Sequence[Mapping[Hashable, Iterable[int]]],
    n_jobs: int = 1,
    timeout: Optional[float] = None,
) -> Tuple[List[LevelRecord], Dict[str, Tuple[np.ndarray, ...]]]:
    """Evaluate every candidate level, in key order.

    Parameters
    ----------
    evaluator
        Evaluator holding the shared inputs.
    keys
        Ordered tuning keys shared by all ``families``.
    families
        One candidate family per feature, in the evaluator's feature order.
    n_jobs
        Number of worker threads (joblib convention, ``-1`` for all cores).
    timeout
        Per-level time limit passed to :class:`joblib.Parallel`; applies only
        when ``n_jobs != 1``. A timeout aborts the whole evaluation.

    Returns
    -------
    records
        One :class:`LevelRecord` per key, in key order.
    selections
        ``level_name -> selected row positions per feature``.
    """
    tasks = [
        (parse_tuning_value(key), str(key), [family[key] for family in families])
        for key in keys
    ]
    results = Parallel(n_jobs=n_jobs, prefer="threads", timeout=timeout)(
        delayed(evaluator.evaluate_level)(t, name, nodes) for t, name, nodes in tasks
    )

    records = [record for record, _ in results]
    selections = {record.level_name: sel for record, sel in results}
    return records, selections


def build_level_info(
    records: Sequence[LevelRecord], method: str, limit_rej: float
) -> pd.DataFrame:
    """Tabulate level records; ``best`` starts out ``False``."""
    level_info = pd.DataFrame(
        {
            "t": [r.t for r in records],
            "upper_t": [r.upper_t for r in records],
            "is_valid": [r.is_valid for r in records],
            "method": method,
            "limit_rej": limit_rej,
            "level_name": [r.level_name for r in records],
            "best": False,
            "rej_leaf": [r.rej_leaf for r in records],
            "rej_node": [r.rej_node for r in records],
            "rej_pseudo_leaf": pd.array([r.rej_pseudo_leaf for r in records], dtype="Int64"),
            "rej_pseudo_node": pd.array([r.rej_pseudo_node for r in records], dtype="Int64"),
        },
        columns=LEVEL_INFO_COLUMNS,
    )
    return level_info


__all__ = [
    "LEVEL_INFO_COLUMNS",
    "LevelRecord",
    "FeatureScores",
    "parse_tuning_value",
    "materialize_families",
    "check_tuning_keys",
    "check_candidate_nodes",
    "prepare_features",
    "CandidateEvaluator",
    "evaluate_levels",
    "build_level_info",
]
