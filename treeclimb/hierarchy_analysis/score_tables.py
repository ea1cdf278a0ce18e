"""Score tables and the column roles used to read them.

A score table is a ``pandas.DataFrame`` with one row per tested node. The
columns holding the node id, the p-value, the direction of change and
(optionally) the feature are named by the caller; :class:`ColumnRoles`
resolves those names once and checks them against every table before any
candidate level is evaluated.

Single- and multiple-feature input both become a :class:`ScoreData`, an
ordered sequence of ``(feature_id, table)`` pairs, so the evaluation code
never branches on the number of features.
"""

from __future__ import annotations

import logging
import warnings
from dataclasses import dataclass
from typing import Dict, Hashable, Iterator, List, Mapping, Optional, Tuple

import numpy as np
import pandas as pd

from treeclimb import config
from treeclimb.errors import ConfigurationError, InvalidNode
from treeclimb.tree.poset_tree import PosetTree

logger = logging.getLogger(__name__)

SINGLE = "single"
MULTIPLE = "multiple"


@dataclass(frozen=True)
class ColumnRoles:
    """Names of the score-table columns for each role."""

    node: str = config.NODE_COLUMN
    p_value: str = config.P_COLUMN
    sign: str = config.SIGN_COLUMN
    feature: Optional[str] = None

    def required(self) -> List[str]:
        cols = [self.node, self.p_value, self.sign]
        if self.feature is not None:
            cols.append(self.feature)
        return cols

    def as_dict(self) -> Dict[str, Optional[str]]:
        return {
            "node_column": self.node,
            "p_column": self.p_value,
            "sign_column": self.sign,
            "feature_column": self.feature,
        }


@dataclass(frozen=True)
class ScoreData:
    """Ordered ``(feature_id, score table)`` pairs.

    ``kind`` remembers whether the caller passed a single table
    (``"single"``) or a mapping of tables (``"multiple"``).
    """

    kind: str
    features: Tuple[Tuple[Hashable, pd.DataFrame], ...]

    @classmethod
    def single(cls, table: pd.DataFrame) -> "ScoreData":
        return cls(kind=SINGLE, features=((None, table),))

    @classmethod
    def multiple(cls, tables: Mapping[Hashable, pd.DataFrame]) -> "ScoreData":
        return cls(kind=MULTIPLE, features=tuple(tables.items()))

    def __len__(self) -> int:
        return len(self.features)

    def __iter__(self) -> Iterator[Tuple[Hashable, pd.DataFrame]]:
        return iter(self.features)

    @property
    def feature_ids(self) -> List[Hashable]:
        return [fid for fid, _ in self.features]

    @property
    def tables(self) -> List[pd.DataFrame]:
        return [table for _, table in self.features]


def build_score_data(score_data, kind: str) -> ScoreData:
    """Wrap user input into a :class:`ScoreData`.

    Parameters
    ----------
    score_data
        A DataFrame (``kind="single"``) or a mapping ``feature -> DataFrame``
        (``kind="multiple"``).
    kind
        ``"single"`` or ``"multiple"``.
    """
    if kind == SINGLE:
        if not isinstance(score_data, pd.DataFrame):
            raise ConfigurationError(
                "score_data must be a DataFrame when kind='single'"
            )
        return ScoreData.single(score_data)
    if kind == MULTIPLE:
        if not isinstance(score_data, Mapping) or not score_data:
            raise ConfigurationError(
                "score_data must be a non-empty mapping of feature -> DataFrame "
                "when kind='multiple'"
            )
        for fid, table in score_data.items():
            if not isinstance(table, pd.DataFrame):
                raise ConfigurationError(
                    f"Score table of feature {fid!r} is not a DataFrame"
                )
        return ScoreData.multiple(score_data)
    raise ConfigurationError(f"kind must be 'single' or 'multiple', got {kind!r}")


def validate_score_data(
    data: ScoreData,
    roles: ColumnRoles,
    tree: PosetTree,
) -> None:
    """Check every score table against the column roles and the tree.

    Raises
    ------
    ConfigurationError
        If a role column is missing, p-values or signs are not numeric,
        p-values fall outside ``[0, 1]`` or a tested row has no sign.
    InvalidNode
        If a table references a node that is not in the tree.
    """
    if data.kind == MULTIPLE and roles.feature is None:
        msg = (
            "To distinguish results from different features, feature_column "
            "is required when kind='multiple'"
        )
        warnings.warn(msg, UserWarning, stacklevel=3)
        logger.warning(msg)

    for fid, table in data:
        missing = [c for c in roles.required() if c not in table.columns]
        if missing:
            where = "score table" if fid is None else f"score table of feature {fid!r}"
            raise ConfigurationError(f"Columns {missing} are missing from the {where}")

        p = _numeric_column(table, roles.p_value, "p-values")
        if np.any((p < 0) | (p > 1)):
            raise ConfigurationError(
                f"p-values in column {roles.p_value!r} must lie in [0, 1]"
            )

        sign = _numeric_column(table, roles.sign, "signs")
        unsigned = ~np.isnan(p) & np.isnan(sign)
        if unsigned.any():
            nodes = table[roles.node].to_numpy()[unsigned].tolist()
            raise ConfigurationError(
                f"Tested nodes {nodes} have no value in sign column {roles.sign!r}"
            )

        for node in table[roles.node].tolist():
            if node not in tree:
                raise InvalidNode(node)


def _numeric_column(table: pd.DataFrame, column: str, what: str) -> np.ndarray:
    """Column as floats; missing entries become NaN, anything else must parse."""
    raw = table[column]
    values = pd.to_numeric(raw, errors="coerce")
    unparsed = values.isna() & raw.notna()
    if unparsed.any():
        bad = raw[unparsed].unique().tolist()
        raise ConfigurationError(f"Non-numeric {what} in column {column!r}: {bad}")
    return values.to_numpy(dtype=float)


def row_lookup(table: pd.DataFrame, node_column: str) -> Dict[int, int]:
    """Map node id -> position of its first row in ``table``."""
    lookup: Dict[int, int] = {}
    for pos, node in enumerate(table[node_column].tolist()):
        lookup.setdefault(int(node), pos)
    return lookup


__all__ = [
    "SINGLE",
    "MULTIPLE",
    "ColumnRoles",
    "ScoreData",
    "build_score_data",
    "validate_score_data",
    "row_lookup",
]
