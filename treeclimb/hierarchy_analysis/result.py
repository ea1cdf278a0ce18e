"""Result of a candidate evaluation.

The winning level is re-tested on its own: the selected score rows of all
features are pooled, corrected once more, and flagged as signal nodes when
the adjusted p-value is at most the target FDR.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Hashable, List, Mapping, Sequence, Union

import numpy as np
import pandas as pd

from treeclimb import config

from .score_tables import SINGLE, ColumnRoles, ScoreData
from .statistics.multiple_testing import apply_multiple_testing_correction


@dataclass(frozen=True)
class CandidateEvaluationResult:
    """Everything needed to audit a candidate evaluation.

    Attributes
    ----------
    candidate_best
        Nodes of the best level; a list for ``kind="single"``, otherwise a
        ``feature -> list`` mapping.
    best_level
        Name of the best level in the candidate family.
    output
        Selected score rows of the best level with ``adj_p`` and
        ``signal_node`` columns appended.
    candidate_list
        The candidate family (families) that was evaluated.
    level_info
        One row per candidate level, see ``LEVEL_INFO_COLUMNS``.
    fdr
        Target FDR.
    method
        Multiple testing correction method.
    column_info
        Column roles used to read the score tables.
    """

    candidate_best: Union[List[int], Dict[Hashable, List[int]]]
    best_level: str
    output: pd.DataFrame
    candidate_list: Any
    level_info: pd.DataFrame
    fdr: float
    method: str
    column_info: ColumnRoles

    @property
    def signal_nodes(self) -> List[int]:
        """Nodes flagged as signal on the best level."""
        out = self.output
        return out.loc[out[config.SIGNAL_COLUMN], self.column_info.node].tolist()


def assemble_output(
    data: ScoreData,
    selections: Sequence[np.ndarray],
    roles: ColumnRoles,
    method: str,
    limit_rej: float,
) -> pd.DataFrame:
    """Pool the selected rows of every feature and re-run the correction."""
    frames = [table.iloc[sel] for (_, table), sel in zip(data, selections)]
    output = pd.concat(frames, ignore_index=True)

    p_values = pd.to_numeric(output[roles.p_value], errors="coerce").to_numpy(dtype=float)
    reject, adjusted = apply_multiple_testing_correction(p_values, alpha=limit_rej, method=method)
    output[config.ADJUSTED_P_COLUMN] = adjusted
    output[config.SIGNAL_COLUMN] = reject.astype(bool)
    return output


def best_candidate_nodes(
    data: ScoreData,
    families: Sequence[Mapping[Hashable, Sequence[int]]],
    best_key: Hashable,
) -> Union[List[int], Dict[Hashable, List[int]]]:
    """Nodes of the best level, shaped like the caller's input."""
    per_feature = [list(family[best_key]) for family in families]
    if data.kind == SINGLE:
        return per_feature[0]
    return dict(zip(data.feature_ids, per_feature))


__all__ = ["CandidateEvaluationResult", "assemble_output", "best_candidate_nodes"]
